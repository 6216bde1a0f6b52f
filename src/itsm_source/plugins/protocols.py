# src/itsm_source/plugins/protocols.py
"""Protocols defining the contracts between the source and its collaborators.

These protocols define what methods implementations must provide.
They're used for type checking and for runtime isinstance() checks in tests.

Contracts:
- Source: Loads typed records into the caller (one per run)
- TableApi: Remote REST access the fetch/decode cycle depends on
"""

from collections.abc import Iterator
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from itsm_source.contracts import ColumnInfo, RawRow
    from itsm_source.plugins.context import PluginContext
    from itsm_source.plugins.schemas import PluginSchema


@runtime_checkable
class SourceProtocol(Protocol):
    """Protocol for source plugins.

    Lifecycle:
    1. __init__(config) - Plugin instantiation
    2. on_start(ctx) - Called before loading (optional)
    3. load(ctx) - Yields records
    4. close() - Cleanup
    """

    name: str
    output_schema: type["PluginSchema"]

    def __init__(self, config: dict[str, Any]) -> None:
        """Initialize with configuration."""
        ...

    def load(self, ctx: "PluginContext") -> Iterator[dict[str, Any]]:
        """Load and yield records from the source.

        Args:
            ctx: Plugin context with run metadata

        Yields:
            Record dicts matching output_schema
        """
        ...

    def close(self) -> None:
        """Clean up resources.

        Called after all records are loaded or on error.
        """
        ...

    # === Optional Lifecycle Hooks ===

    def on_start(self, ctx: "PluginContext") -> None:
        """Called before load(). Override for setup."""
        ...

    def on_complete(self, ctx: "PluginContext") -> None:
        """Called after load() completes. Override for finalization."""
        ...


@runtime_checkable
class TableApiProtocol(Protocol):
    """Remote Table API as seen by the fetcher.

    Implementations raise RetriableError for transient failures and
    ApiError (or any other exception) for hard failures.
    """

    def fetch_table_records(
        self,
        table_name: str,
        start_date: str | None,
        end_date: str | None,
        offset: int,
        page_size: int,
    ) -> list["RawRow"]:
        """Fetch rows [offset, offset + page_size) of a table.

        An empty table name yields an empty list, not an error.
        """
        ...

    def fetch_table_schema(
        self,
        table_name: str,
        filter: str | None = None,
        fields: str | None = None,
        include_display_values: bool = False,
    ) -> list["ColumnInfo"] | None:
        """Fetch the column catalog of a table.

        Returns None when the API has no column metadata for the table.
        """
        ...
