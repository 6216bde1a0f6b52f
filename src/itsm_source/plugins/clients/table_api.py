# src/itsm_source/plugins/clients/table_api.py
"""HTTP client for the ServiceNow Table, Schema and Aggregate APIs.

Error handling follows a two-way split:
1. Transient failures (HTTP 429, 5xx, timeouts, connection errors) raise
   RetriableError so the fetcher can back off and retry.
2. Everything else (auth rejection, other 4xx, malformed payloads) raises
   ApiError and ends the split.
"""

from __future__ import annotations

import time
from typing import Any

import httpx

from itsm_source.contracts import ApiError, ColumnInfo, RawRow, RetriableError, ValueType
from itsm_source.core.logging import get_logger

logger = get_logger(__name__)

DATE_FIELD = "sys_updated_on"


def build_date_query(start_date: str | None, end_date: str | None) -> str | None:
    """Build an encoded query restricting rows to an inclusive update window.

    Either bound may be omitted. Returns None when neither is given.
    """
    clauses = []
    if start_date:
        clauses.append(
            f"{DATE_FIELD}>=javascript:gs.dateGenerate('{start_date}','00:00:00')"
        )
    if end_date:
        clauses.append(
            f"{DATE_FIELD}<=javascript:gs.dateGenerate('{end_date}','23:59:59')"
        )
    return "^".join(clauses) if clauses else None


class TableAPIClient:
    """Client for one ServiceNow instance.

    Authenticates with an OAuth2 password grant on first use and caches the
    access token for the lifetime of the client.

    Example:
        client = TableAPIClient(
            base_url="https://instance.service-now.com",
            client_id="...",
            client_secret="...",
            user="svc_reader",
            password="...",
        )
        rows = client.fetch_table_records("incident", None, None, 0, 100)
        client.close()
    """

    TOKEN_PATH = "/oauth_token.do"
    TABLE_PATH = "/api/now/table/{table}"
    SCHEMA_PATH = "/api/now/doc/table/schema/{table}"
    STATS_PATH = "/api/now/stats/{table}"

    def __init__(
        self,
        *,
        base_url: str,
        client_id: str,
        client_secret: str,
        user: str,
        password: str,
        value_type: ValueType = ValueType.ACTUAL,
        timeout: float = 60.0,
        http_client: httpx.Client | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._client_id = client_id
        self._client_secret = client_secret
        self._user = user
        self._password = password
        self._value_type = value_type
        self._timeout = timeout
        self._http_client = http_client
        self._access_token: str | None = None

    def get_access_token(self) -> str:
        """Return the cached access token, requesting one if needed."""
        if self._access_token is None:
            payload = self._send(
                "POST",
                self.TOKEN_PATH,
                data={
                    "grant_type": "password",
                    "client_id": self._client_id,
                    "client_secret": self._client_secret,
                    "username": self._user,
                    "password": self._password,
                },
                authenticated=False,
            )
            try:
                token = payload["access_token"]
            except (KeyError, TypeError) as e:
                raise ApiError(f"Malformed token response: missing {e}") from e
            if not isinstance(token, str) or not token:
                raise ApiError("Malformed token response: empty access_token")
            self._access_token = token
        return self._access_token

    def fetch_table_records(
        self,
        table_name: str,
        start_date: str | None,
        end_date: str | None,
        offset: int,
        page_size: int,
    ) -> list[RawRow]:
        """Fetch one page of rows from a table.

        Returns an empty list without calling the API when table_name is empty.

        Raises:
            RetriableError: Transient failure, safe to retry.
            ApiError: Non-retriable failure or malformed payload.
        """
        if not table_name:
            logger.debug("Empty table name, nothing to read")
            return []

        params: dict[str, Any] = {
            "sysparm_offset": offset,
            "sysparm_limit": page_size,
            "sysparm_display_value": self._display_value_param(),
            "sysparm_exclude_reference_link": "true",
        }
        query = build_date_query(start_date, end_date)
        if query:
            params["sysparm_query"] = query

        payload = self._send("GET", self.TABLE_PATH.format(table=table_name), params=params)
        result = self._result(payload, table_name)
        if not isinstance(result, list):
            raise ApiError(
                f"Expected a list of rows for table {table_name!r}, got {type(result).__name__}"
            )
        for row in result:
            if not isinstance(row, dict):
                raise ApiError(
                    f"Expected row objects for table {table_name!r}, got {type(row).__name__}"
                )
        return result

    def fetch_table_schema(
        self,
        table_name: str,
        filter: str | None = None,
        fields: str | None = None,
        include_display_values: bool = False,
    ) -> list[ColumnInfo] | None:
        """Fetch the column catalog of a table.

        Returns None when the instance has no schema for the table (HTTP 404
        or an empty result).

        Raises:
            RetriableError: Transient failure, safe to retry.
            ApiError: Non-retriable failure or malformed payload.
        """
        if not table_name:
            return None

        params: dict[str, Any] = {}
        if filter:
            params["sysparm_query"] = filter
        if fields:
            params["sysparm_fields"] = fields
        if include_display_values:
            params["sysparm_display_value"] = "true"

        try:
            payload = self._send(
                "GET", self.SCHEMA_PATH.format(table=table_name), params=params
            )
        except ApiError as e:
            if e.status_code == 404:
                logger.info("No column metadata available", table=table_name)
                return None
            raise

        result = self._result(payload, table_name)
        if not result:
            return None
        if not isinstance(result, list):
            raise ApiError(
                f"Expected a list of columns for table {table_name!r}, got {type(result).__name__}"
            )
        try:
            return [
                ColumnInfo(name=str(column["name"]), type_hint=str(column["internalType"]))
                for column in result
            ]
        except (KeyError, TypeError) as e:
            raise ApiError(f"Malformed column metadata for table {table_name!r}: {e}") from e

    def fetch_record_count(
        self,
        table_name: str,
        start_date: str | None = None,
        end_date: str | None = None,
    ) -> int:
        """Count the rows of a table inside the optional update window.

        Raises:
            RetriableError: Transient failure, safe to retry.
            ApiError: Non-retriable failure or malformed payload.
        """
        if not table_name:
            return 0

        params: dict[str, Any] = {"sysparm_count": "true"}
        query = build_date_query(start_date, end_date)
        if query:
            params["sysparm_query"] = query

        payload = self._send("GET", self.STATS_PATH.format(table=table_name), params=params)
        result = self._result(payload, table_name)
        try:
            return int(result["stats"]["count"])
        except (KeyError, TypeError, ValueError) as e:
            raise ApiError(f"Malformed record count for table {table_name!r}: {e}") from e

    def close(self) -> None:
        """Close the underlying HTTP client. Safe to call more than once."""
        if self._http_client is not None:
            self._http_client.close()
            self._http_client = None
        self._access_token = None

    def _display_value_param(self) -> str:
        return "true" if self._value_type is ValueType.DISPLAY else "false"

    def _get_http_client(self) -> httpx.Client:
        """Get or create HTTP client for API calls."""
        if self._http_client is None:
            self._http_client = httpx.Client(timeout=self._timeout)
        return self._http_client

    def _send(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        data: dict[str, Any] | None = None,
        authenticated: bool = True,
    ) -> Any:
        """Send one request and return the decoded JSON body."""
        headers = {"Accept": "application/json"}
        if authenticated:
            headers["Authorization"] = f"Bearer {self.get_access_token()}"

        client = self._get_http_client()
        start = time.perf_counter()
        try:
            response = client.request(
                method, self._base_url + path, params=params, data=data, headers=headers
            )
        except httpx.TransportError as e:
            raise RetriableError(f"{method} {path} failed: {type(e).__name__}: {e}") from e
        latency_ms = (time.perf_counter() - start) * 1000

        logger.debug(
            "API call",
            method=method,
            path=path,
            status_code=response.status_code,
            latency_ms=round(latency_ms, 1),
        )

        status = response.status_code
        if status == 429 or status >= 500:
            raise RetriableError(
                f"{method} {path} returned HTTP {status}", status_code=status
            )
        if status >= 400:
            raise ApiError(f"{method} {path} returned HTTP {status}", status_code=status)

        try:
            return response.json()
        except ValueError as e:
            raise ApiError(f"{method} {path} returned a non-JSON body: {e}") from e

    @staticmethod
    def _result(payload: Any, table_name: str) -> Any:
        try:
            return payload["result"]
        except (KeyError, TypeError) as e:
            raise ApiError(
                f"Malformed response for table {table_name!r}: missing 'result'"
            ) from e
