"""Modes, value types, and field types used across subsystem boundaries.

Config strings from users are matched case-insensitively via from_value();
everything else compares enum members directly.
"""

from enum import Enum


class QueryMode(str, Enum):
    """How the source selects and tags tables.

    TABLE: read a single named table, records carry only its columns.
    REPORTING: records additionally carry the source table name in a
        synthetic trailing field.
    """

    TABLE = "Table"
    REPORTING = "Reporting"

    @classmethod
    def from_value(cls, value: str) -> "QueryMode":
        """Look up a mode by its display value, ignoring case.

        Raises:
            ValueError: If value names no mode.
        """
        for mode in cls:
            if mode.value.lower() == value.strip().lower():
                return mode
        supported = ", ".join(m.value for m in cls)
        raise ValueError(f"Unsupported query mode: {value!r}. Supported modes are: {supported}")


class ValueType(str, Enum):
    """Which representation of a column value the API returns.

    ACTUAL: raw stored values (sys_ids, internal codes).
    DISPLAY: human-readable display values.
    """

    ACTUAL = "Actual"
    DISPLAY = "Display"

    @classmethod
    def from_value(cls, value: str) -> "ValueType":
        """Look up a value type by its display value, ignoring case.

        Raises:
            ValueError: If value names no value type.
        """
        for value_type in cls:
            if value_type.value.lower() == value.strip().lower():
                return value_type
        supported = ", ".join(v.value for v in cls)
        raise ValueError(f"Unsupported value type: {value!r}. Supported value types are: {supported}")


class FieldType(str, Enum):
    """Target type of a decoded record field.

    TIMESTAMP_MILLIS is a logical type. It can appear in a schema but the
    decoder has no coercion for it and rejects it at decode time.
    """

    STRING = "string"
    INTEGER = "int"
    LONG = "long"
    DOUBLE = "double"
    FLOAT = "float"
    BOOLEAN = "boolean"
    TIMESTAMP_MILLIS = "timestamp_millis"

    @property
    def is_logical(self) -> bool:
        """True for logical types layered over a primitive."""
        return self is FieldType.TIMESTAMP_MILLIS


class WireKind(str, Enum):
    """Kind of an untyped JSON value as it arrives from the API.

    The set is closed: every wire value classifies into exactly one kind.
    """

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    ABSENT = "absent"
