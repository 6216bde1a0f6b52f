"""Data shapes that cross the fetch/decode boundary.

Rows arrive from the API as loosely typed JSON objects (RawRow), are grouped
into one page per split (FetchedPage), and leave the decoder as typed records
whose shape is fixed by a TableSchema built from the remote column catalog.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from itsm_source.contracts.enums import FieldType

# A single JSON scalar as sent by the API. Anything else is a payload error.
WireValue = str | int | float | bool | None

RawRow = Mapping[str, WireValue]

TypedRecord = dict[str, Any]


@dataclass(frozen=True)
class Split:
    """One unit of work: a single page window of one table.

    Created by split planning, read-only for the lifetime of a fetch cycle.
    """

    table_name: str
    offset: int

    def __post_init__(self) -> None:
        if self.offset < 0:
            raise ValueError(f"Split offset must be >= 0, got {self.offset}")


@dataclass(frozen=True)
class ColumnInfo:
    """One entry of a table's column catalog."""

    name: str
    type_hint: str


@dataclass(frozen=True)
class SchemaField:
    """One output field. Every field is nullable."""

    name: str
    field_type: FieldType


@dataclass(frozen=True)
class TableSchema:
    """Ordered output schema for one table.

    table_fields are the columns decoded from each row. When table_name_field
    is set (reporting mode) a trailing STRING field of that name carries the
    literal table name.
    """

    table_name: str
    table_fields: tuple[SchemaField, ...]
    table_name_field: str | None = None

    @property
    def fields(self) -> tuple[SchemaField, ...]:
        """All output fields in record order, synthetic field last."""
        if self.table_name_field is None:
            return self.table_fields
        return (*self.table_fields, SchemaField(self.table_name_field, FieldType.STRING))

    @property
    def field_names(self) -> list[str]:
        return [f.name for f in self.fields]


@dataclass(frozen=True)
class FetchedPage:
    """Result of fetching one split's page.

    catalog is populated only when rows is non-empty and the API returned
    column metadata; an empty page never carries a catalog.
    """

    rows: tuple[RawRow, ...] = ()
    catalog: tuple[ColumnInfo, ...] | None = None
    attempts: int = field(default=1, compare=False)

    @property
    def is_empty(self) -> bool:
        return not self.rows
