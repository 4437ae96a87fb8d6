import pytest

from ratehub.services.settings_service import (
    MARGIN,
    STANDARD_HOURS,
    get_exchange_ratio,
    get_setting,
    is_well_formed,
    parse_setting,
)


@pytest.mark.parametrize(
    "value,value_type,expected",
    [
        ("0.2", "float", 0.2),
        ("12abc", "float", 12.0),
        ("  7.5 hours", "number", 7.5),
        ("abc", "float", 0.0),
        ("", "float", 0.0),
        ("1e400", "float", 0.0),
        ("1.9", "integer", 1.0),
        ("-3", "integer", -3.0),
        ("true", "boolean", 1.0),
        ("TRUE", "boolean", 0.0),
        ("false", "boolean", 0.0),
    ],
)
def test_parse_setting(value, value_type, expected):
    assert parse_setting(value, value_type) == expected


def test_parse_setting_never_raises_on_none():
    assert parse_setting(None, "float") == 0.0


def test_well_formed_values():
    assert is_well_formed("0.25", "float")
    assert is_well_formed("anything", "string")
    assert is_well_formed("false", "boolean")
    assert not is_well_formed("yes", "boolean")
    assert not is_well_formed("n/a", "integer")


def test_get_setting_falls_back_to_defaults():
    assert get_setting({}, STANDARD_HOURS) == 160.0
    assert get_setting({MARGIN: 0.35}, MARGIN) == 0.35
    assert get_setting({}, "unknown") == 0.0
    assert get_setting({}, "unknown", 3.0) == 3.0


def test_exchange_ratio_requires_positive_value():
    assert get_exchange_ratio({}) is None
    assert get_exchange_ratio({"exchange_ratio": 0.0}) is None
    assert get_exchange_ratio({"exchange_ratio": 4.0}) == 4.0


@pytest.mark.parametrize(
    "value,value_type",
    [("12abc", "float"), ("0.2%", "number"), ("7 hours", "integer"), ("1.5", "integer"), ("1e400", "float")],
)
def test_trailing_text_is_not_well_formed(value, value_type):
    assert not is_well_formed(value, value_type)
    assert isinstance(parse_setting(value, value_type), float)


def test_surrounding_whitespace_is_well_formed():
    assert is_well_formed(" 0.25 ", "float")
    assert is_well_formed("42", "integer")
