"""Shared contracts for cross-boundary data types.

Import pattern:
    from itsm_source.contracts import Split, TableSchema, RetriableError
"""

from itsm_source.contracts.enums import (
    FieldType,
    QueryMode,
    ValueType,
    WireKind,
)
from itsm_source.contracts.errors import (
    ApiError,
    RecordDecodeError,
    RetriableError,
    SourceError,
    UnsupportedFieldTypeError,
)
from itsm_source.contracts.data import (
    ColumnInfo,
    FetchedPage,
    RawRow,
    SchemaField,
    Split,
    TableSchema,
    TypedRecord,
    WireValue,
)

__all__ = [
    # data
    "ColumnInfo",
    "FetchedPage",
    "RawRow",
    "SchemaField",
    "Split",
    "TableSchema",
    "TypedRecord",
    "WireValue",
    # enums
    "FieldType",
    "QueryMode",
    "ValueType",
    "WireKind",
    # errors
    "ApiError",
    "RecordDecodeError",
    "RetriableError",
    "SourceError",
    "UnsupportedFieldTypeError",
]
