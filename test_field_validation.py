import pytest

from app.models.schema_models import FieldSchema, FieldType
from app.models.result_models import FieldErrorKind
from app.services.field_validation_service import validate, parse_date, parse_number


def schema(*items):
    return [FieldSchema(field=f, type=t, required=r) for f, t, r in items]


def test_required_empty_string_is_missing():
    ok, values, error = validate(schema(("Serial", FieldType.STRING, True)), {"Serial": "   "})
    assert not ok
    assert values is None
    assert error.field == "Serial"
    assert error.kind == FieldErrorKind.MISSING_FIELD


@pytest.mark.parametrize("field_type", list(FieldType))
def test_required_missing_or_none_for_every_type(field_type):
    s = schema(("Value", field_type, True))
    for raw in ({}, {"Value": None}):
        ok, _, error = validate(s, raw)
        assert not ok
        assert error.kind == FieldErrorKind.MISSING_FIELD


def test_first_failing_field_in_schema_order_wins():
    s = schema(
        ("Temperature", FieldType.NUMBER, False),
        ("Operator", FieldType.STRING, True),
        ("Checked On", FieldType.DATE, True),
    )
    ok, _, error = validate(s, {"Temperature": "hot", "Operator": ""})
    assert not ok
    assert error.field == "Temperature"
    assert error.kind == FieldErrorKind.INVALID_NUMBER

    ok, _, error = validate(s, {"Temperature": "37", "Operator": "", "Checked On": "bad"})
    assert error.field == "Operator"
    assert error.kind == FieldErrorKind.MISSING_FIELD


def test_number_normalizes_to_float():
    ok, values, _ = validate(schema(("Pressure", FieldType.NUMBER, True)), {"Pressure": " 12.5 "})
    assert ok
    assert values == {"Pressure": 12.5}
    assert isinstance(values["Pressure"], float)


@pytest.mark.parametrize("raw", ["abc", "12,5", "1_000", "nan", "inf", "1e400", "0x10", "--1"])
def test_invalid_numbers(raw):
    ok, _, error = validate(schema(("Pressure", FieldType.NUMBER, False)), {"Pressure": raw})
    assert not ok
    assert error.kind == FieldErrorKind.INVALID_NUMBER


def test_optional_empty_number_is_none():
    ok, values, _ = validate(schema(("Pressure", FieldType.NUMBER, False)), {"Pressure": ""})
    assert ok
    assert values == {"Pressure": None}


def test_leap_day_rules():
    s = schema(("Installed", FieldType.DATE, True))
    ok, _, error = validate(s, {"Installed": "2025/02/29"})
    assert not ok
    assert error.kind == FieldErrorKind.INVALID_DATE

    ok, values, _ = validate(s, {"Installed": "2024/02/29"})
    assert ok
    assert values["Installed"] == "2024/02/29"


def test_date_overflow_and_format():
    s = schema(("Installed", FieldType.DATE, False))
    for raw in ("2026/04/31", "2026/13/01", "26/04/01", "2026/4/1", "2026-04/01", "April 1 2026"):
        ok, _, error = validate(s, {"Installed": raw})
        assert not ok, raw
        assert error.kind == FieldErrorKind.INVALID_DATE


def test_iso_date_is_normalized_to_slash_form():
    ok, values, _ = validate(schema(("Installed", FieldType.DATE, False)), {"Installed": "2026-04-30"})
    assert ok
    assert values["Installed"] == "2026/04/30"


def test_boolean_is_not_coerced_from_string():
    s = schema(("Passed", FieldType.BOOLEAN, False))
    ok, values, _ = validate(s, {"Passed": False})
    assert ok and values == {"Passed": False}

    ok, values, _ = validate(s, {})
    assert ok and values == {"Passed": None}

    ok, _, error = validate(s, {"Passed": "true"})
    assert not ok
    assert error.kind == FieldErrorKind.INVALID_BOOLEAN


def test_string_field_rejects_boolean():
    for raw in (True, False):
        ok, values, error = validate(schema(("Operator", FieldType.STRING, False)), {"Operator": raw})
        assert not ok
        assert values is None
        assert error.field == "Operator"
        assert error.kind == FieldErrorKind.INVALID_STRING


def test_required_boolean_false_is_a_value():
    ok, values, _ = validate(schema(("Passed", FieldType.BOOLEAN, True)), {"Passed": False})
    assert ok
    assert values == {"Passed": False}


def test_output_has_exactly_schema_fields():
    s = schema(("Serial", FieldType.STRING, False), ("Note", FieldType.STRING, False))
    ok, values, _ = validate(s, {"Serial": "  A-1 ", "Unknown": "x"})
    assert ok
    assert values == {"Serial": "A-1", "Note": ""}


def test_error_message_names_the_field():
    _, _, error = validate(schema(("Serial", FieldType.STRING, True)), {})
    assert "Serial" in error.message


def test_parsers():
    assert parse_number("-3") == -3.0
    assert parse_number(".5") == 0.5
    assert parse_number("1e3") == 1000.0
    assert parse_date("2024/02/29").day == 29
    assert parse_date("2023/02/29") is None
