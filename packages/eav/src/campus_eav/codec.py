"""
codec.py — Typed value encoding for the entity_values table.

Each value row has one column per primitive kind:

    string  -> value_string  (VARCHAR)
    number  -> value_number  (DOUBLE)
    date    -> value_date    (TIMESTAMP, naive UTC)
    boolean -> value_bool    (TINYINT 0/1)

Only the column matching the attribute's declared data type is ever
populated. Numbers are stored as DOUBLE: integers beyond 2**53 lose
precision, the same range a JavaScript number can hold exactly. EncodedValue carries the kind together with the payload so the
row layout is derived from one place.

Usage:
    from campus_eav.codec import decode, encode

    encoded = encode("boolean", True)
    encoded.column        # "value_bool"
    encoded.as_row()      # (None, None, None, 1)

    decode("boolean", {"value_bool": 1})   # True
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from campus_shared.models import DataType
from campus_shared.time_utils import parse_datetime

from campus_eav.errors import InvalidDataTypeError, ValueEncodingError

VALUE_COLUMNS: tuple[str, ...] = ("value_string", "value_number", "value_date", "value_bool")

_COLUMN_FOR: dict[DataType, str] = {
    DataType.STRING: "value_string",
    DataType.NUMBER: "value_number",
    DataType.DATE: "value_date",
    DataType.BOOLEAN: "value_bool",
}

_TRUE_STRINGS = frozenset({"true", "t", "yes", "y", "1", "on"})
_FALSE_STRINGS = frozenset({"false", "f", "no", "n", "0", "off", ""})


def parse_data_type(raw: DataType | str) -> DataType:
    """Resolve a declared data type; anything outside the four kinds is rejected."""
    if isinstance(raw, DataType):
        return raw
    try:
        return DataType(str(raw).strip().lower())
    except ValueError:
        raise InvalidDataTypeError(raw) from None


def column_for(data_type: DataType | str) -> str:
    return _COLUMN_FOR[parse_data_type(data_type)]


@dataclass(frozen=True)
class EncodedValue:
    """A value ready for storage, tagged with its data type."""

    data_type: DataType
    value: Any

    @property
    def column(self) -> str:
        return _COLUMN_FOR[self.data_type]

    def as_row(self) -> tuple[Any, ...]:
        """The four typed slots in VALUE_COLUMNS order, one populated."""
        return tuple(self.value if col == self.column else None for col in VALUE_COLUMNS)


# ---------------------------------------------------------------------------
# Encode
# ---------------------------------------------------------------------------


def _encode_boolean(raw: Any) -> int:
    if isinstance(raw, str):
        s = raw.strip().lower()
        if s in _TRUE_STRINGS:
            return 1
        if s in _FALSE_STRINGS:
            return 0
    return 1 if raw else 0


def _encode_date(raw: Any) -> datetime:
    if not isinstance(raw, (str, date, datetime)):
        raise ValueEncodingError(f"cannot store {type(raw).__name__} as date")
    parsed = parse_datetime(raw)
    if parsed is None:
        raise ValueEncodingError(f"unparseable date value: {raw!r}")
    return parsed


def _encode_number(raw: Any) -> int | float:
    if isinstance(raw, bool):
        return int(raw)
    if isinstance(raw, (int, float)):
        return raw
    if isinstance(raw, (Decimal, str)):
        try:
            return float(raw)
        except ValueError:
            raise ValueEncodingError(f"not a number: {raw!r}") from None
    raise ValueEncodingError(f"cannot store {type(raw).__name__} as number")


def _encode_string(raw: Any) -> str:
    if isinstance(raw, str):
        return raw
    if isinstance(raw, (dict, list, tuple)):
        return json.dumps(raw, default=str)
    return str(raw)


def encode(data_type: DataType | str, raw: Any) -> EncodedValue:
    """
    Convert an application value into its storage representation.

    Args:
        data_type: Declared data type of the attribute.
        raw:       Non-null application value.

    Returns:
        EncodedValue for the declared column.

    Raises:
        InvalidDataTypeError: data_type is not one of the four kinds.
        ValueEncodingError:   raw is None or not representable in the type.
    """
    kind = parse_data_type(data_type)
    if raw is None:
        raise ValueEncodingError("null values are not encoded")

    match kind:
        case DataType.BOOLEAN:
            value: Any = _encode_boolean(raw)
        case DataType.DATE:
            value = _encode_date(raw)
        case DataType.NUMBER:
            value = _encode_number(raw)
        case DataType.STRING:
            value = _encode_string(raw)
    return EncodedValue(kind, value)


# ---------------------------------------------------------------------------
# Decode
# ---------------------------------------------------------------------------


def _decode_number(stored: Any) -> int | float:
    number = float(stored)
    if number.is_integer():
        return int(number)
    return number


def _decode_string(stored: str) -> Any:
    # JSON containers written by _encode_string come back as containers
    if stored[:1] not in ("[", "{"):
        return stored
    try:
        parsed = json.loads(stored)
    except ValueError:
        return stored
    if isinstance(parsed, list) or (isinstance(parsed, dict) and parsed):
        return parsed
    return stored


def decode(data_type: DataType | str, row: Mapping[str, Any]) -> Any:
    """
    Read the declared column of a fetched value row.

    Returns None when nothing is stored in that column.
    """
    kind = parse_data_type(data_type)
    stored = row.get(_COLUMN_FOR[kind])
    if stored is None:
        return None

    match kind:
        case DataType.BOOLEAN:
            return bool(stored)
        case DataType.NUMBER:
            return _decode_number(stored)
        case DataType.STRING:
            return _decode_string(stored)
        case DataType.DATE:
            return stored
