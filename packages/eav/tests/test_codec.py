"""
tests/test_codec.py — Tests for typed value encoding and decoding.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from campus_eav.codec import (
    VALUE_COLUMNS,
    EncodedValue,
    column_for,
    decode,
    encode,
    parse_data_type,
)
from campus_eav.errors import InvalidDataTypeError, ValueEncodingError
from campus_shared.models import DataType
from campus_shared.time_utils import parse_datetime


class TestParseDataType:
    @pytest.mark.parametrize("raw", ["string", "number", "date", "boolean"])
    def test_known_kinds(self, raw):
        assert parse_data_type(raw).value == raw

    def test_case_and_whitespace_insensitive(self):
        assert parse_data_type(" Boolean ") is DataType.BOOLEAN

    def test_enum_passes_through(self):
        assert parse_data_type(DataType.DATE) is DataType.DATE

    @pytest.mark.parametrize("raw", ["text", "int", "json", ""])
    def test_unknown_kind_rejected(self, raw):
        with pytest.raises(InvalidDataTypeError, match="invalid data type"):
            parse_data_type(raw)

    def test_invalid_data_type_is_value_error(self):
        with pytest.raises(ValueError):
            parse_data_type("decimal")

    def test_column_for(self):
        assert column_for("string") == "value_string"
        assert column_for(DataType.NUMBER) == "value_number"
        assert column_for("date") == "value_date"
        assert column_for("boolean") == "value_bool"


class TestEncodedValue:
    def test_only_declared_column_populated(self):
        row = encode("number", 3).as_row()
        assert len(row) == len(VALUE_COLUMNS)
        assert row == (None, 3, None, None)

    def test_column_follows_data_type(self):
        encoded = EncodedValue(DataType.BOOLEAN, 1)
        assert encoded.column == "value_bool"
        assert encoded.as_row() == (None, None, None, 1)

    def test_null_is_not_encoded(self):
        with pytest.raises(ValueEncodingError):
            encode("string", None)

    def test_unknown_type_rejected_before_value(self):
        with pytest.raises(InvalidDataTypeError):
            encode("blob", b"\x00")


class TestEncodeBoolean:
    @pytest.mark.parametrize("raw", [True, 1, "true", "TRUE", "yes", "y", "1", "on", " t "])
    def test_truthy(self, raw):
        assert encode("boolean", raw).value == 1

    @pytest.mark.parametrize("raw", [False, 0, "false", "False", "no", "n", "0", "off", ""])
    def test_falsy(self, raw):
        assert encode("boolean", raw).value == 0

    def test_other_values_use_truthiness(self):
        assert encode("boolean", [1]).value == 1
        assert encode("boolean", []).value == 0


class TestEncodeNumber:
    def test_int_and_float_pass_through(self):
        assert encode("number", 30).value == 30
        assert encode("number", 2.5).value == pytest.approx(2.5)

    def test_numeric_string(self):
        assert encode("number", "2024").value == pytest.approx(2024.0)
        assert encode("number", " 3.75 ").value == pytest.approx(3.75)

    def test_decimal(self):
        assert encode("number", Decimal("1250.50")).value == pytest.approx(1250.5)

    def test_bool_stored_as_int(self):
        assert encode("number", True).value == 1

    def test_non_numeric_string_rejected(self):
        with pytest.raises(ValueEncodingError, match="not a number"):
            encode("number", "three")

    def test_unsupported_type_rejected(self):
        with pytest.raises(ValueEncodingError):
            encode("number", {"credits": 3})


class TestEncodeString:
    def test_string_pass_through(self):
        assert encode("string", "Fall").value == "Fall"

    def test_scalar_stringified(self):
        assert encode("string", 42).value == "42"

    def test_containers_stored_as_json(self):
        assert encode("string", ["MATH101", "CS100"]).value == '["MATH101", "CS100"]'
        assert encode("string", {"mon": "10:00"}).value == '{"mon": "10:00"}'


class TestEncodeDate:
    def test_iso_date_string(self):
        assert encode("date", "2024-01-15").value == datetime(2024, 1, 15)

    def test_offset_converted_to_naive_utc(self):
        assert encode("date", "2024-01-15T09:30:00+02:00").value == datetime(2024, 1, 15, 7, 30)

    def test_date_object_maps_to_midnight(self):
        assert encode("date", date(2024, 3, 1)).value == datetime(2024, 3, 1)

    def test_aware_datetime(self):
        aware = datetime(2024, 3, 1, 12, 0, tzinfo=timezone(timedelta(hours=-5)))
        assert encode("date", aware).value == datetime(2024, 3, 1, 17, 0)

    def test_loose_string(self):
        assert encode("date", "Jan 15 2024").value == datetime(2024, 1, 15)

    def test_unparseable_string_rejected(self):
        with pytest.raises(ValueEncodingError, match="unparseable"):
            encode("date", "not a date")

    def test_number_rejected(self):
        with pytest.raises(ValueEncodingError):
            encode("date", 20240115)


class TestDecode:
    def test_missing_column_is_none(self):
        assert decode("string", {}) is None

    def test_other_columns_ignored(self):
        row = {"value_string": "stale", "value_number": None}
        assert decode("number", row) is None

    def test_whole_number_decodes_to_int(self):
        value = decode("number", {"value_number": 3.0})
        assert value == 3
        assert isinstance(value, int)

    def test_fractional_number_stays_float(self):
        assert decode("number", {"value_number": 2.5}) == pytest.approx(2.5)

    @pytest.mark.parametrize("stored,expected", [(1, True), (0, False)])
    def test_boolean(self, stored, expected):
        assert decode("boolean", {"value_bool": stored}) is expected

    def test_date_returned_as_stored(self):
        stored = datetime(2024, 1, 15, 7, 30)
        assert decode("date", {"value_date": stored}) == stored

    def test_plain_string(self):
        assert decode("string", {"value_string": "Intro to CS"}) == "Intro to CS"

    def test_json_list_revived(self):
        assert decode("string", {"value_string": '["a", "b"]'}) == ["a", "b"]

    def test_json_object_revived(self):
        assert decode("string", {"value_string": '{"mon": "10:00"}'}) == {"mon": "10:00"}

    def test_empty_object_kept_as_text(self):
        assert decode("string", {"value_string": "{}"}) == "{}"

    def test_malformed_json_kept_as_text(self):
        assert decode("string", {"value_string": "[see syllabus"}) == "[see syllabus"

    def test_container_survives_encode_decode(self):
        schedule = {"days": ["Mon", "Wed"], "time": "10:00"}
        encoded = encode("string", schedule)
        assert decode("string", {encoded.column: encoded.value}) == schedule


class TestParseDatetime:
    def test_none(self):
        assert parse_datetime(None) is None

    def test_blank(self):
        assert parse_datetime("   ") is None

    def test_iso_is_not_day_first(self):
        assert parse_datetime("2024-02-03") == datetime(2024, 2, 3)

    def test_zulu(self):
        assert parse_datetime("2024-01-15T09:30:00Z") == datetime(2024, 1, 15, 9, 30)

    def test_unsupported_type(self):
        assert parse_datetime(12345) is None  # type: ignore[arg-type]
