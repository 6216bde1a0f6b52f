# src/itsm_source/plugins/schemas.py
"""Pydantic-based output schemas for source plugins.

A source's output shape is only known after the remote column catalog has
been read, so output schemas are built at runtime from a TableSchema.
The generated model documents the discovered shape for downstream
consumers and can validate a decoded record against it.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, create_model

from itsm_source.contracts import FieldType, TableSchema

_PYTHON_TYPES: dict[FieldType, type] = {
    FieldType.STRING: str,
    FieldType.INTEGER: int,
    FieldType.LONG: int,
    FieldType.DOUBLE: float,
    FieldType.FLOAT: float,
    FieldType.BOOLEAN: bool,
    FieldType.TIMESTAMP_MILLIS: int,
}


class PluginSchema(BaseModel):
    """Base class for plugin output schemas.

    Validation is strict because decoded records are already typed.
    Dump with model_dump(by_alias=True) to get a row keyed by column name.
    """

    model_config = ConfigDict(
        extra="forbid",
        strict=True,
        frozen=True,
    )


class DynamicRowSchema(PluginSchema):
    """Placeholder schema before the column catalog has been read."""

    model_config = ConfigDict(extra="allow", strict=False, frozen=True)


def schema_model_for(table_schema: TableSchema) -> type[PluginSchema]:
    """Build a PluginSchema subclass mirroring a TableSchema.

    Every field is Optional with a None default, matching the decoder's
    nullable output. Column names are carried as aliases because a column
    may be called "schema" or "json" and shadow a BaseModel attribute.
    """
    field_definitions: dict[str, Any] = {
        f"field_{i}": (
            _PYTHON_TYPES[f.field_type] | None,
            Field(default=None, alias=f.name),
        )
        for i, f in enumerate(table_schema.fields)
    }
    model_name = f"{table_schema.table_name or 'Table'}RowSchema"
    return create_model(model_name, __base__=PluginSchema, **field_definitions)

