from datetime import date

import pytest

from field_engine.core.field_types import (
    EMPTY_DISPLAY,
    FieldType,
    as_number,
    check_value,
    format_value,
    generate_field_key,
    is_empty,
    is_valid_field_key,
)
from field_engine.schemas.fields import FieldDescriptor


def _field(ftype, **kw):
    return FieldDescriptor(field_key="f", label="F", type=ftype, **kw)


def test_is_empty_treats_false_and_zero_as_values():
    assert is_empty(None)
    assert is_empty("   ")
    assert is_empty([])
    assert is_empty({})
    assert not is_empty(0)
    assert not is_empty(False)
    assert not is_empty("0")


def test_as_number_accepts_numeric_strings_only():
    assert as_number(3) == 3.0
    assert as_number(" 2.5 ") == 2.5
    assert as_number("abc") is None
    assert as_number(True) is None
    assert as_number(float("nan")) is None
    assert as_number("inf") is None


@pytest.mark.parametrize(
    "ftype,value,expected",
    [
        (FieldType.TEXT, "hello", None),
        (FieldType.TEXT, 12, "type"),
        (FieldType.NUMBER, "12.5", None),
        (FieldType.NUMBER, "twelve", "type"),
        (FieldType.DATE, "2024-03-01", None),
        (FieldType.DATE, date(2024, 3, 1), None),
        (FieldType.DATE, "01/03/2024", "type"),
        (FieldType.BOOLEAN, True, None),
        (FieldType.BOOLEAN, "yes", "type"),
        (FieldType.SIGNATURE, "data:image/png;base64,AAAA", None),
        (FieldType.IMAGE, 5, "type"),
    ],
)
def test_check_value_per_type(ftype, value, expected):
    failure = check_value(_field(ftype), value)
    assert (failure[0] if failure else None) == expected


def test_check_select_against_options():
    field = _field(FieldType.SELECT, options=[{"label": "One", "value": 1}, {"label": "Two", "value": 2}])
    assert check_value(field, 1) is None
    # string form of an option value is accepted
    assert check_value(field, "2") is None
    assert check_value(field, 3) == ("choice", "Must be one of allowed choices")


def test_format_value():
    assert format_value(_field(FieldType.NUMBER), 1234567) == "1,234,567"
    assert format_value(_field(FieldType.NUMBER), 1234.5) == "1,234.50"
    assert format_value(_field(FieldType.BOOLEAN), False) == "No"
    assert format_value(_field(FieldType.DATE), date(2024, 1, 2)) == "2024-01-02"
    assert format_value(_field(FieldType.TEXT), "") == EMPTY_DISPLAY
    select = _field(FieldType.SELECT, options=[{"label": "Cash", "value": "cash"}])
    assert format_value(select, "cash") == "Cash"
    assert format_value(select, "card") == "card"


@pytest.mark.parametrize(
    "label,key",
    [
        ("Warranty Period", "warranty_period"),
        ("Ürün Adı", "urun_adi"),
        ("  Straße / Nr. ", "strasse_nr"),
        ("2nd Phone", "_2nd_phone"),
    ],
)
def test_generate_field_key(label, key):
    assert generate_field_key(label) == key
    assert is_valid_field_key(key)


def test_is_valid_field_key():
    assert is_valid_field_key("warranty_period")
    assert not is_valid_field_key("Warranty")
    assert not is_valid_field_key("1abc")
    assert not is_valid_field_key("")
