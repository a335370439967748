import json

import pytest

from nepali_calendar.api import calendar_table
from nepali_calendar.api.converter import BsDate
from nepali_calendar.api.errors import CalendarDataError, InvalidDayError, OutOfRangeError


def test_supported_range():
    years = calendar_table.supported_years()
    assert years[0] == calendar_table.MIN_YEAR == 1970
    assert years[-1] == calendar_table.MAX_YEAR == 2100
    assert calendar_table.total_days() == 47848


@pytest.mark.parametrize(
    "year,month,expected",
    [(2081, 1, 31), (2081, 2, 32), (2081, 3, 31), (2081, 12, 31), (2080, 12, 30), (2081, 9, 29), (2100, 12, 30)],
)
def test_month_length(year, month, expected):
    assert calendar_table.month_length(year, month) == expected


def test_every_month_length_is_plausible():
    for year in calendar_table.supported_years():
        lengths = calendar_table.month_lengths(year)
        assert len(lengths) == 12
        assert all(29 <= n <= 32 for n in lengths)
        assert calendar_table.year_length(year) == sum(lengths)


def test_year_length_of_known_year():
    assert calendar_table.year_length(2081) == 366


@pytest.mark.parametrize("year", [1969, 2101, "2081"])
def test_unknown_year_is_out_of_range(year):
    with pytest.raises(OutOfRangeError):
        calendar_table.month_length(year, 1)


@pytest.mark.parametrize("month", [0, 13])
def test_unknown_month_is_invalid(month):
    with pytest.raises(InvalidDayError):
        calendar_table.month_length(2081, month)


def test_year_start_offsets_are_relative_to_epoch():
    assert calendar_table.year_start_offset(2000) == 0
    assert calendar_table.year_start_offset(2081) == 29585
    assert calendar_table.year_start_offset(1970) == -10958


def test_year_from_offset():
    assert calendar_table.year_from_offset(0) == (2000, 0)
    assert calendar_table.year_from_offset(29585) == (2081, 0)
    assert calendar_table.year_from_offset(29584) == (2080, 364)
    assert calendar_table.year_from_offset(-10958) == (1970, 0)


@pytest.mark.parametrize("offset", [-10959, 47848 - 10958])
def test_year_from_offset_outside_table(offset):
    with pytest.raises(OutOfRangeError):
        calendar_table.year_from_offset(offset)


@pytest.mark.parametrize(
    "value,expected",
    [
        ("2081-01-31", True),
        ("2081/02/32", True),
        ("2081/03/32", False),
        ("2081-01-32", False),
        ("2080-12-31", False),
        ((2081, 13, 1), False),
        ("2101-01-01", False),
        (BsDate(2081, 1, 1), True),
        ("garbage", False),
        (None, False),
    ],
)
def test_is_valid(value, expected):
    assert calendar_table.is_valid(value) is expected


def test_name_tables():
    assert calendar_table.month_name(1) == "Baisakh"
    assert calendar_table.month_name(1, "ne") == "बैशाख"
    assert calendar_table.month_name(12) == "Chaitra"
    assert calendar_table.gregorian_month_name(4, "ne") == "अप्रिल"
    assert calendar_table.weekday_name(0) == "Sunday"
    assert calendar_table.weekday_name(6, "ne") == "शनिवार"
    assert calendar_table.weekday_name(6, "ne", short=True) == "श"


def test_unknown_locale_is_rejected():
    with pytest.raises(ValueError):
        calendar_table.month_name(1, "fr")


def _write_table(path, **overrides):
    payload = {
        "version": "test",
        "min_year": 2080,
        "max_year": 2081,
        "epoch": {"bs": "2081-01-01", "ad": "2024-04-13"},
        "months": {
            "2080": [31, 32, 31, 32, 31, 30, 30, 30, 29, 29, 30, 30],
            "2081": [31, 32, 31, 32, 31, 30, 30, 30, 29, 30, 29, 31],
        },
    }
    payload.update(overrides)
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def test_load_table_accepts_well_formed_asset(tmp_path):
    version, rows, epoch_bs, epoch_ad = calendar_table._load_table(_write_table(tmp_path / "t.json"))
    assert version == "test"
    assert sorted(rows) == [2080, 2081]
    assert epoch_bs == (2081, 1, 1)
    assert epoch_ad.isoformat() == "2024-04-13"


@pytest.mark.parametrize(
    "overrides",
    [
        {"months": {"2080": [31] * 12}},
        {"months": {"2080": [31] * 12, "2081": [31] * 11}},
        {"months": {"2080": [31] * 12, "2081": [28] + [31] * 11}},
        {"epoch": {"bs": "2079-01-01", "ad": "2022-04-14"}},
        {"epoch": {"bs": "2081-01-01"}},
    ],
)
def test_load_table_rejects_corrupt_asset(tmp_path, overrides):
    with pytest.raises(CalendarDataError):
        calendar_table._load_table(_write_table(tmp_path / "t.json", **overrides))


def test_load_table_rejects_unreadable_file(tmp_path):
    broken = tmp_path / "broken.json"
    broken.write_text("{not json", encoding="utf-8")
    with pytest.raises(CalendarDataError):
        calendar_table._load_table(broken)
    with pytest.raises(CalendarDataError):
        calendar_table._load_table(tmp_path / "missing.json")
