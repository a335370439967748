from datetime import date, datetime

import pytest

from nepali_calendar.api.converter import BsDate, ad_to_bs
from nepali_calendar.api.errors import MalformedDateError
from nepali_calendar.api.validators import (
    ValidationResult,
    age_on,
    is_future_date,
    is_not_future_date,
    is_valid_calendar_date,
    is_within_bounds,
    meets_minimum_age,
    resolve_calendar_kind,
    to_gregorian,
    validate_date,
)

TODAY = date(2024, 6, 15)


@pytest.mark.parametrize(
    "value,calendar,expected",
    [
        (BsDate(2081, 1, 1), None, "bs"),
        (date(2024, 4, 13), "bs", "ad"),
        ("2081-01-01", None, "bs"),
        ("1965-01-01", None, "ad"),
        ("2024-04-13", "ad", "ad"),
        ("2024-04-13", " BS ", "bs"),
    ],
)
def test_resolve_calendar_kind(value, calendar, expected):
    assert resolve_calendar_kind(value, calendar) == expected


def test_resolve_calendar_kind_rejects_unknown_calendar():
    with pytest.raises(ValueError):
        resolve_calendar_kind("2081-01-01", "lunar")


def test_to_gregorian():
    assert to_gregorian("2081-01-01", "bs") == date(2024, 4, 13)
    assert to_gregorian("२०८१-०१-०१") == date(2024, 4, 13)
    assert to_gregorian("2024-04-13", "ad") == date(2024, 4, 13)
    assert to_gregorian(datetime(2024, 4, 13, 8, 0)) == date(2024, 4, 13)
    with pytest.raises(MalformedDateError):
        to_gregorian("2024-02-30", "ad")


@pytest.mark.parametrize(
    "value,calendar,expected",
    [
        ("2081-01-31", "bs", True),
        ("2081-01-32", "bs", False),
        ("2080-12-31", "bs", False),
        ((2081, 2, 32), "bs", True),
        ((2081, 3, 32), "bs", False),
        ("2024-02-29", "ad", True),
        ("2023-02-29", "ad", False),
        ("२०८१-०१-१५", "bs", True),
        ("bad", "bs", False),
        ("2081-01", "bs", False),
        (BsDate(2081, 1, 1), "bs", True),
    ],
)
def test_is_valid_calendar_date(value, calendar, expected):
    assert is_valid_calendar_date(value, calendar) is expected


@pytest.mark.parametrize(
    "birth,expected",
    [(date(2006, 6, 15), 18), (date(2006, 6, 16), 17), (date(2006, 6, 14), 18), (date(2024, 6, 15), 0)],
)
def test_age_on(birth, expected):
    assert age_on(birth, TODAY) == expected


def test_minimum_age_boundary_in_gregorian():
    assert meets_minimum_age("2006-06-15", "ad", 18, today=TODAY)
    assert not meets_minimum_age("2006-06-16", "ad", 18, today=TODAY)
    assert meets_minimum_age(date(2006, 6, 15), None, 18, today=TODAY)


def test_minimum_age_boundary_in_bikram_sambat():
    turning_today = ad_to_bs(date(2006, 6, 15)).isoformat()
    one_day_short = ad_to_bs(date(2006, 6, 16)).isoformat()
    assert meets_minimum_age(turning_today, "bs", 18, today=TODAY)
    assert not meets_minimum_age(one_day_short, "bs", 18, today=TODAY)


@pytest.mark.parametrize("value", ["", "   ", "not a date", "2081-01-32", "1900-01-01"])
def test_minimum_age_is_false_for_unusable_input(value):
    assert meets_minimum_age(value, "bs", 0, today=TODAY) is False


def test_minimum_age_with_guessed_calendar():
    assert meets_minimum_age("1965-01-01", None, 18, today=TODAY)
    assert not meets_minimum_age("2075-01-01", None, 18, today=TODAY)


def test_bounds_compare_in_value_calendar():
    value = BsDate(2081, 1, 15)
    assert is_within_bounds(value, minimum=date(2024, 4, 13))
    assert not is_within_bounds(value, maximum=BsDate(2081, 1, 10))
    assert is_within_bounds(value, BsDate(2081, 1, 15), BsDate(2081, 1, 15))
    assert not is_within_bounds(date(2024, 4, 12), minimum=BsDate(2081, 1, 1))
    assert is_within_bounds(datetime(2024, 4, 13, 23, 59), minimum=BsDate(2081, 1, 1))


def test_bounds_beyond_table_fall_back_to_gregorian():
    assert is_within_bounds(BsDate(2100, 12, 30), maximum=date(2050, 1, 1))
    assert not is_within_bounds(BsDate(1970, 1, 1), minimum=date(2050, 1, 1))


def test_future_predicates():
    assert is_not_future_date("2081-02-22", "bs", today=TODAY)
    assert not is_future_date("2081-02-22", "bs", today=TODAY)
    assert is_future_date("2024-06-16", "ad", today=TODAY)
    assert not is_not_future_date("2024-06-16", "ad", today=TODAY)
    assert not is_future_date("garbage", "ad", today=TODAY)
    assert not is_not_future_date("garbage", "ad", today=TODAY)


@pytest.mark.parametrize(
    "value,kwargs,message",
    [
        ("", {}, "Date is required"),
        (None, {}, "Date is required"),
        ("abc", {"calendar": "ad"}, "Invalid date format"),
        ("2024-02-30", {"calendar": "ad"}, "Invalid date format"),
        ("2081-01-32", {"calendar": "bs"}, "Invalid Nepali date"),
        ("2081-01-01", {"calendar": "lunar"}, "calendar must be either 'bs' or 'ad'"),
        ("2024-06-16", {"calendar": "ad"}, "Date cannot be in the future"),
        ("2024-06-15", {"calendar": "ad", "require_future": True}, "Date must be in the future"),
        ("2010-01-01", {"calendar": "ad", "min_age": 18}, "Age must be at least 18 years"),
        ("1950-01-01", {"calendar": "ad", "max_age": 60}, "Age must be less than 60 years"),
        ("2081-01-01", {"calendar": "bs", "min_date": "2081-01-15"}, "Date must be after 2081-01-15"),
        ("2081-01-20", {"calendar": "bs", "max_date": "2081-01-15"}, "Date must be before 2081-01-15"),
        ("2081-01-01", {"calendar": "bs", "min_date": "garbage"}, "Invalid minimum date"),
        ("2081-01-01", {"calendar": "bs", "max_date": "2081-13-01"}, "Invalid maximum date"),
    ],
)
def test_validate_date_messages(value, kwargs, message):
    result = validate_date(value, today=TODAY, **kwargs)
    assert result == ValidationResult(False, message)


@pytest.mark.parametrize(
    "value,kwargs",
    [
        ("", {"required": False}),
        ("2081-01-01", {"calendar": "bs"}),
        ("2024-06-16", {"calendar": "ad", "allow_future": True}),
        ("2024-06-16", {"calendar": "ad", "require_future": True}),
        ("2006-06-15", {"calendar": "ad", "min_age": 18, "max_age": 18}),
        ("2081-01-15", {"calendar": "bs", "min_date": date(2024, 4, 13), "max_date": BsDate(2081, 2, 1)}),
        (BsDate(2081, 1, 1), {}),
    ],
)
def test_validate_date_accepts(value, kwargs):
    assert validate_date(value, today=TODAY, **kwargs) == ValidationResult(True)
