# src/itsm_source/plugins/sources/table_source.py
"""ServiceNow table source plugin.

Reads one table through the Table API. The row count is fetched once to plan
page-sized splits, and each split is read by its own TableRecordReader.

The output schema is not known until the first non-empty page has been
fetched, so output_schema starts as DynamicRowSchema and is replaced by a
generated model once the column catalog has been read.
"""

import time
from collections.abc import Callable, Iterator
from datetime import date, datetime
from typing import Any, Protocol

from pydantic import Field, field_validator, model_validator

from itsm_source.contracts import QueryMode, Split, TableSchema, ValueType
from itsm_source.core.config import RetrySettings
from itsm_source.core.logging import get_logger
from itsm_source.plugins.base import BaseSource
from itsm_source.plugins.clients import TableAPIClient
from itsm_source.plugins.config_base import CredentialsConfig
from itsm_source.plugins.context import PluginContext
from itsm_source.plugins.protocols import TableApiProtocol
from itsm_source.plugins.schemas import DynamicRowSchema, PluginSchema, schema_model_for
from itsm_source.plugins.sources.fetcher import PagedTableFetcher
from itsm_source.plugins.sources.reader import TableRecordReader

logger = get_logger(__name__)

DATE_FORMAT = "%Y-%m-%d"


class CountingTableApi(TableApiProtocol, Protocol):
    """Table API that can also count rows, as needed for split planning."""

    def fetch_record_count(
        self,
        table_name: str,
        start_date: str | None = None,
        end_date: str | None = None,
    ) -> int: ...

    def close(self) -> None: ...


class TableSourceConfig(CredentialsConfig):
    """Configuration for the ServiceNow table source.

    query_mode and value_type accept their display values in any case
    ("table", "REPORTING", "display").
    """

    query_mode: QueryMode = QueryMode.TABLE
    table_name: str | None = None
    table_name_field: str = "tablename"
    value_type: ValueType = ValueType.ACTUAL
    start_date: str | None = None
    end_date: str | None = None
    page_size: int = Field(default=5000, gt=0)
    timeout_seconds: float = Field(default=60.0, gt=0)

    @field_validator("query_mode", mode="before")
    @classmethod
    def parse_query_mode(cls, v: Any) -> Any:
        if isinstance(v, str):
            return QueryMode.from_value(v)
        return v

    @field_validator("value_type", mode="before")
    @classmethod
    def parse_value_type(cls, v: Any) -> Any:
        if isinstance(v, str):
            return ValueType.from_value(v)
        return v

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def validate_date(cls, v: Any) -> str | None:
        if v is None or v == "":
            return None
        # YAML loads unquoted 2024-01-31 as a date
        if isinstance(v, date):
            return v.strftime(DATE_FORMAT)
        if not isinstance(v, str):
            raise ValueError(f"expected a YYYY-MM-DD string, got {type(v).__name__}")
        try:
            datetime.strptime(v, DATE_FORMAT)
        except ValueError as e:
            raise ValueError(f"'{v}' is not a date in YYYY-MM-DD format") from e
        return v

    @model_validator(mode="after")
    def validate_mode_requirements(self) -> "TableSourceConfig":
        if self.query_mode is QueryMode.TABLE and not (self.table_name and self.table_name.strip()):
            raise ValueError("table_name is required in Table mode")
        if self.query_mode is QueryMode.REPORTING and not self.table_name_field.strip():
            raise ValueError("table_name_field cannot be empty in Reporting mode")
        if self.start_date and self.end_date and self.end_window < self.start_window:
            raise ValueError(
                f"end_date {self.end_date} is before start_date {self.start_date}"
            )
        return self

    @property
    def start_window(self) -> date | None:
        if not self.start_date:
            return None
        return datetime.strptime(self.start_date, DATE_FORMAT).date()

    @property
    def end_window(self) -> date | None:
        if not self.end_date:
            return None
        return datetime.strptime(self.end_date, DATE_FORMAT).date()

    @property
    def reporting(self) -> bool:
        return self.query_mode is QueryMode.REPORTING


def plan_splits(table_name: str, total: int, page_size: int) -> list[Split]:
    """One split per page window of a table.

    Example:
        plan_splits("incident", 250, 100)
        -> [Split("incident", 0), Split("incident", 100), Split("incident", 200)]
    """
    if page_size <= 0:
        raise ValueError(f"page_size must be > 0, got {page_size}")
    if not table_name or total <= 0:
        return []
    return [Split(table_name, offset) for offset in range(0, total, page_size)]


class TableSource(BaseSource):
    """Load typed records from a ServiceNow table.

    Config options:
        api_endpoint, client_id, client_secret, user, password: instance
            access (required)
        query_mode: "Table" (default) or "Reporting"
        table_name: Table to read (required in Table mode)
        table_name_field: Synthetic field carrying the table name in
            Reporting mode (default: "tablename")
        value_type: "Actual" (default) or "Display"
        start_date, end_date: Optional sys_updated_on window, YYYY-MM-DD
        page_size: Rows per split (default: 5000)
        timeout_seconds: HTTP timeout (default: 60)
    """

    name = "servicenow_table"
    plugin_version = "0.1.0"

    def __init__(
        self,
        config: dict[str, Any],
        *,
        retry: RetrySettings | None = None,
        api: CountingTableApi | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        super().__init__(config)
        cfg = TableSourceConfig.from_dict(config)
        self._cfg = cfg

        self._owns_api = api is None
        if api is None:
            api = TableAPIClient(
                base_url=cfg.base_url(),
                client_id=cfg.client_id,
                client_secret=cfg.client_secret,
                user=cfg.user,
                password=cfg.password,
                value_type=cfg.value_type,
                timeout=cfg.timeout_seconds,
            )
        self._api: CountingTableApi | None = api

        retry = retry or RetrySettings()
        self._fetcher = PagedTableFetcher(api, backoff_seconds=retry.backoff_seconds, sleep=sleep)

        self._table_schema: TableSchema | None = None
        self.output_schema: type[PluginSchema] = DynamicRowSchema

    @property
    def table_name(self) -> str:
        return (self._cfg.table_name or "").strip()

    @property
    def table_schema(self) -> TableSchema | None:
        """Schema of the most recently read non-empty page."""
        return self._table_schema

    def load(self, ctx: PluginContext) -> Iterator[dict[str, Any]]:
        """Read every split of the configured table.

        Yields:
            Typed records in table order.

        Raises:
            RetriableError: If the row count request fails transiently. Only
                page fetches are retried.
            ApiError: Non-retriable API failure.
            RecordDecodeError: If a row cannot be decoded.
        """
        if self._api is None:
            raise RuntimeError(f"{self.name} source has been closed")

        table_name = self.table_name
        total = self._api.fetch_record_count(
            table_name, self._cfg.start_date, self._cfg.end_date
        )
        splits = plan_splits(table_name, total, self._cfg.page_size)
        logger.info(
            "Planned splits",
            run_id=ctx.run_id,
            table=table_name,
            total=total,
            splits=len(splits),
        )

        for split in splits:
            reader = TableRecordReader(
                split,
                self._fetcher,
                page_size=self._cfg.page_size,
                start_date=self._cfg.start_date,
                end_date=self._cfg.end_date,
                table_name_field=self._cfg.table_name_field if self._cfg.reporting else None,
            )
            try:
                while reader.advance():
                    if reader.schema is not None and reader.schema != self._table_schema:
                        self._set_schema(reader.schema)
                    yield reader.current_record()
            finally:
                reader.close()

    def close(self) -> None:
        """Release the HTTP client. Safe to call more than once."""
        if self._api is not None and self._owns_api:
            self._api.close()
        self._api = None

    def _set_schema(self, schema: TableSchema) -> None:
        self._table_schema = schema
        self.output_schema = schema_model_for(schema)
        logger.debug("Discovered schema", table=schema.table_name, fields=schema.field_names)
