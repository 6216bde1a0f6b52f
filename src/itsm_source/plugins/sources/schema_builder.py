# src/itsm_source/plugins/sources/schema_builder.py
"""Derive a TableSchema from a table's column catalog."""

from collections.abc import Iterable

from itsm_source.contracts import ColumnInfo, FetchedPage, FieldType, SchemaField, TableSchema

# ServiceNow internal types with a non-string representation.
# Anything not listed (reference, glide_date_time, journal, ...) reads as STRING.
TYPE_HINTS: dict[str, FieldType] = {
    "integer": FieldType.INTEGER,
    "decimal": FieldType.DOUBLE,
    "float": FieldType.DOUBLE,
    "currency": FieldType.DOUBLE,
    "price": FieldType.DOUBLE,
    "boolean": FieldType.BOOLEAN,
}


def field_type_for(type_hint: str) -> FieldType:
    return TYPE_HINTS.get(type_hint.strip().lower(), FieldType.STRING)


def build_schema(
    table_name: str,
    columns: Iterable[ColumnInfo],
    table_name_field: str | None = None,
) -> TableSchema:
    """Build the output schema for a table.

    Args:
        table_name: Table the columns belong to
        columns: Column catalog in API order
        table_name_field: Name of the synthetic table-name field (reporting
            mode), or None

    Returns:
        Immutable TableSchema with columns in catalog order
    """
    return TableSchema(
        table_name=table_name,
        table_fields=tuple(
            SchemaField(column.name, field_type_for(column.type_hint)) for column in columns
        ),
        table_name_field=table_name_field,
    )


def ensure_schema(
    page: FetchedPage,
    table_name: str,
    table_name_field: str | None = None,
) -> TableSchema | None:
    """Schema for a freshly fetched page, or None if the page is empty.

    A non-empty page without column metadata yields a schema with no table
    fields.
    """
    if page.is_empty:
        return None
    return build_schema(table_name, page.catalog or (), table_name_field)
