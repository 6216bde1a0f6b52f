# tests/plugins/test_schemas.py
"""Tests for plugin output schemas."""

import pytest
from pydantic import ValidationError

from itsm_source.contracts import FieldType, SchemaField, TableSchema
from itsm_source.plugins.schemas import (
    DynamicRowSchema,
    PluginSchema,
    schema_model_for,
)


def incident_schema(table_name_field: str | None = None) -> TableSchema:
    return TableSchema(
        table_name="incident",
        table_fields=(
            SchemaField("number", FieldType.STRING),
            SchemaField("priority", FieldType.INTEGER),
            SchemaField("active", FieldType.BOOLEAN),
            SchemaField("cost", FieldType.DOUBLE),
        ),
        table_name_field=table_name_field,
    )


class TestDynamicRowSchema:
    """Placeholder schema accepts any fields."""

    def test_accepts_extra_fields(self) -> None:
        row = DynamicRowSchema.model_validate({"anything": 1, "else": "x"})
        assert row.model_dump() == {"anything": 1, "else": "x"}


class TestSchemaModelFor:
    """Generated models mirror a TableSchema."""

    def test_model_is_plugin_schema(self) -> None:
        model = schema_model_for(incident_schema())
        assert issubclass(model, PluginSchema)
        assert model.__name__ == "incidentRowSchema"

    def test_round_trips_decoded_record(self) -> None:
        model = schema_model_for(incident_schema())
        record = {"number": "INC0000001", "priority": 3, "active": True, "cost": 1.5}
        assert model.model_validate(record).model_dump(by_alias=True) == record

    def test_fields_default_to_none(self) -> None:
        model = schema_model_for(incident_schema())
        assert model.model_validate({}).model_dump(by_alias=True) == {
            "number": None,
            "priority": None,
            "active": None,
            "cost": None,
        }

    def test_reporting_field_included_last(self) -> None:
        model = schema_model_for(incident_schema(table_name_field="tablename"))
        row = model.model_validate({"tablename": "incident"}).model_dump(by_alias=True)
        assert list(row) == ["number", "priority", "active", "cost", "tablename"]
        assert row["tablename"] == "incident"

    def test_strict_types(self) -> None:
        model = schema_model_for(incident_schema())
        with pytest.raises(ValidationError):
            model.model_validate({"priority": "3"})

    def test_unknown_field_rejected(self) -> None:
        model = schema_model_for(incident_schema())
        with pytest.raises(ValidationError):
            model.model_validate({"unknown": "x"})

    def test_column_names_shadowing_model_attributes(self) -> None:
        schema = TableSchema(
            table_name="sys_properties",
            table_fields=(
                SchemaField("schema", FieldType.STRING),
                SchemaField("json", FieldType.STRING),
            ),
        )
        model = schema_model_for(schema)
        assert model.model_validate({"schema": "a", "json": "b"}).model_dump(by_alias=True) == {
            "schema": "a",
            "json": "b",
        }

    def test_empty_schema(self) -> None:
        model = schema_model_for(TableSchema(table_name="", table_fields=()))
        assert model.__name__ == "TableRowSchema"
        assert model.model_validate({}).model_dump(by_alias=True) == {}

