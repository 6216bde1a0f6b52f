# src/itsm_source/plugins/sources/fetcher.py
"""Single-page fetch with bounded retry.

Retry policy:
- Only RetriableError is retried. Any other exception propagates at once.
- Delays come from a fixed table (default 60s, 120s, 240s); retry i waits
  backoff_seconds[i - 1] and re-issues the identical request.
- When the last retry also fails the page is treated as empty. Callers see
  "no rows", the same as an exhausted table, and the failure shows up only
  in the logs.

Each fetch_page() call builds its own tenacity Retrying, so splits fetched
concurrently by different threads never share retry state.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Sequence
from typing import Any

from tenacity import (
    RetryCallState,
    RetryError,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_chain,
    wait_fixed,
    wait_none,
)

from itsm_source.contracts import FetchedPage, RetriableError
from itsm_source.core.config import DEFAULT_BACKOFF_SECONDS
from itsm_source.core.logging import get_logger
from itsm_source.plugins.protocols import TableApiProtocol

logger = get_logger(__name__)

Sleep = Callable[[float], None]


class PagedTableFetcher:
    """Fetch one split's page, masking transient API failures.

    On a non-empty page the same attempt also fetches the table's column
    catalog, so the schema is only ever looked up for tables that have rows.

    Example:
        fetcher = PagedTableFetcher(api, sleep=fake_sleep)
        page = fetcher.fetch_page("incident", None, None, offset=0, page_size=100)
        for row in page.rows:
            ...
    """

    def __init__(
        self,
        api: TableApiProtocol,
        *,
        backoff_seconds: Sequence[float] = DEFAULT_BACKOFF_SECONDS,
        sleep: Sleep = time.sleep,
    ) -> None:
        self._api = api
        self._backoff_seconds = tuple(backoff_seconds)
        self._sleep = sleep

    @property
    def max_attempts(self) -> int:
        """Initial attempt plus one per backoff delay."""
        return len(self._backoff_seconds) + 1

    def fetch_page(
        self,
        table_name: str,
        start_date: str | None,
        end_date: str | None,
        offset: int,
        page_size: int,
    ) -> FetchedPage:
        """Fetch rows [offset, offset + page_size) of a table.

        Returns:
            FetchedPage with the rows (and catalog when rows were found), or
            an empty FetchedPage once retries are exhausted.

        Raises:
            ValueError: If offset is negative or page_size is not positive.
            Exception: Any non-retriable failure from the API, unchanged.
        """
        if offset < 0:
            raise ValueError(f"offset must be >= 0, got {offset}")
        if page_size <= 0:
            raise ValueError(f"page_size must be > 0, got {page_size}")

        window = {"table": table_name, "offset": offset, "end": offset + page_size}

        try:
            for attempt in self._retrying(window):
                with attempt:
                    page = self._fetch_once(table_name, start_date, end_date, offset, page_size)
        except RetryError as e:
            logger.warning(
                "Retries exhausted, treating page as empty",
                attempts=e.last_attempt.attempt_number,
                error=str(e.last_attempt.exception()),
                **window,
            )
            return FetchedPage(attempts=e.last_attempt.attempt_number)

        return FetchedPage(
            rows=page.rows,
            catalog=page.catalog,
            attempts=attempt.retry_state.attempt_number,
        )

    def _retrying(self, window: dict[str, Any]) -> Retrying:
        def log_retry(retry_state: RetryCallState) -> None:
            error = retry_state.outcome.exception() if retry_state.outcome else None
            delay = retry_state.next_action.sleep if retry_state.next_action else 0.0
            logger.info(
                "Retrying page fetch",
                retry=retry_state.attempt_number,
                delay_seconds=delay,
                error=str(error),
                **window,
            )

        if self._backoff_seconds:
            wait = wait_chain(*(wait_fixed(delay) for delay in self._backoff_seconds))
        else:
            wait = wait_none()

        return Retrying(
            retry=retry_if_exception_type(RetriableError),
            stop=stop_after_attempt(self.max_attempts),
            wait=wait,
            sleep=self._sleep,
            before_sleep=log_retry,
        )

    def _fetch_once(
        self,
        table_name: str,
        start_date: str | None,
        end_date: str | None,
        offset: int,
        page_size: int,
    ) -> FetchedPage:
        start = time.monotonic()
        rows = self._api.fetch_table_records(
            table_name, start_date, end_date, offset, page_size
        )
        logger.info(
            "Fetched page",
            table=table_name,
            offset=offset,
            end=offset + page_size,
            rows=len(rows),
            seconds=round(time.monotonic() - start, 3),
        )
        if not rows:
            return FetchedPage()

        catalog = self._api.fetch_table_schema(table_name, None, None, False)
        return FetchedPage(
            rows=tuple(rows),
            catalog=tuple(catalog) if catalog is not None else None,
        )
