# src/itsm_source/plugins/sources/coercion.py
"""Wire value coercion into the record type system.

Coercion is two steps:
1. classify() maps the raw JSON value onto a closed set of WireKinds.
2. A coercer looked up by target FieldType turns (kind, value) into the
   typed value.

Empty string is the API's usual spelling of "no value". It becomes None for
numeric and boolean targets but stays "" for STRING targets.
"""

import re
from collections.abc import Callable, Mapping
from typing import Any

from itsm_source.contracts import (
    FieldType,
    UnsupportedFieldTypeError,
    WireKind,
    WireValue,
)

TRUE_LITERALS = frozenset({"true", "1"})

# Plain ASCII decimal spellings. int() and float() alone would also take
# "1_000", non-ASCII digits, "nan" and "inf".
INTEGER_PATTERN = re.compile(r"[+-]?[0-9]+")
DECIMAL_PATTERN = re.compile(r"[+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")

Coercer = Callable[[WireKind, WireValue], Any]


def classify(value: object) -> WireKind:
    """Classify a raw JSON value.

    Raises:
        TypeError: If value is not a JSON scalar (nested objects, lists).
    """
    if value is None:
        return WireKind.ABSENT
    # bool before int: bool is an int subclass
    if isinstance(value, bool):
        return WireKind.BOOLEAN
    if isinstance(value, int | float):
        return WireKind.NUMBER
    if isinstance(value, str):
        return WireKind.STRING
    raise TypeError(f"Unsupported wire value of type {type(value).__name__}")


def to_string(kind: WireKind, value: WireValue) -> str:
    if kind is WireKind.ABSENT:
        return ""
    if kind is WireKind.BOOLEAN:
        return "true" if value else "false"
    return str(value)


def to_integer(kind: WireKind, value: WireValue) -> int | None:
    if kind is WireKind.ABSENT or value == "":
        return None
    if kind is WireKind.BOOLEAN:
        raise ValueError(f"Cannot convert boolean {value!r} to integer")
    if kind is WireKind.STRING and not INTEGER_PATTERN.fullmatch(value):  # type: ignore[arg-type]
        raise ValueError(f"Cannot convert {value!r} to integer: not a whole number")
    try:
        return int(value)  # type: ignore[arg-type]
    except OverflowError as e:
        raise ValueError(f"Cannot convert {value!r} to integer: {e}") from e


def to_double(kind: WireKind, value: WireValue) -> float | None:
    if kind is WireKind.ABSENT or value == "":
        return None
    if kind is WireKind.BOOLEAN:
        raise ValueError(f"Cannot convert boolean {value!r} to double")
    if kind is WireKind.STRING and not DECIMAL_PATTERN.fullmatch(value):  # type: ignore[arg-type]
        raise ValueError(f"Cannot convert {value!r} to double: not a decimal number")
    return float(value)  # type: ignore[arg-type]


def to_boolean(kind: WireKind, value: WireValue) -> bool | None:
    if kind is WireKind.ABSENT or value == "":
        return None
    if kind is WireKind.BOOLEAN:
        return bool(value)
    return str(value).strip().lower() in TRUE_LITERALS


COERCERS: Mapping[FieldType, Coercer] = {
    FieldType.STRING: to_string,
    FieldType.INTEGER: to_integer,
    FieldType.LONG: to_integer,
    FieldType.DOUBLE: to_double,
    FieldType.FLOAT: to_double,
    FieldType.BOOLEAN: to_boolean,
}


def coerce(field_type: FieldType, value: WireValue) -> Any:
    """Coerce one wire value into field_type.

    Raises:
        UnsupportedFieldTypeError: field_type has no coercer (logical types).
        ValueError: value cannot be parsed as field_type.
        TypeError: value is not a JSON scalar.
    """
    coercer = COERCERS.get(field_type)
    if coercer is None:
        raise UnsupportedFieldTypeError(f"Unsupported field type: {field_type.value}")
    return coercer(classify(value), value)


def convert_field(
    field_name: str,
    field_type: FieldType,
    row: Mapping[str, WireValue],
) -> Any:
    """Decode one field of a row.

    A column missing from the row decodes to None, but an unsupported
    field type is rejected whether or not the column is present.
    """
    if field_type not in COERCERS:
        raise UnsupportedFieldTypeError(
            f"Unsupported field type {field_type.value} for field {field_name!r}"
        )
    if field_name not in row:
        return None
    return coerce(field_type, row[field_name])
