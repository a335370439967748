"""Bikram Sambat month-length table and calendar name tables.

The month lengths are read once from ``data/bs_calendar.json``. Extending the
supported range is a data update: add the year rows and bump ``version``.
"""
from __future__ import annotations

import json
import logging
from bisect import bisect_right
from datetime import date
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Tuple, Union

from .errors import CalendarDataError, InvalidDayError, OutOfRangeError

__all__ = [
    "BS_MONTHS_EN",
    "BS_MONTHS_NE",
    "EPOCH_AD",
    "EPOCH_BS",
    "GREGORIAN_MONTHS_EN",
    "GREGORIAN_MONTHS_NE",
    "MAX_YEAR",
    "MIN_YEAR",
    "TABLE_VERSION",
    "VALID_LOCALES",
    "WEEKDAYS_EN",
    "WEEKDAYS_NE",
    "WEEKDAYS_SHORT_EN",
    "WEEKDAYS_SHORT_NE",
    "gregorian_month_name",
    "is_valid",
    "month_length",
    "month_lengths",
    "month_name",
    "supported_years",
    "total_days",
    "weekday_name",
    "year_from_offset",
    "year_length",
    "year_start_offset",
]

logger = logging.getLogger(__name__)

DATA_PATH = Path(__file__).resolve().parent.parent / "data" / "bs_calendar.json"

VALID_LOCALES = {"ne", "en"}

BS_MONTHS_EN = (
    "Baisakh", "Jestha", "Ashar", "Shrawan", "Bhadra", "Ashoj",
    "Kartik", "Mangsir", "Poush", "Magh", "Falgun", "Chaitra",
)
BS_MONTHS_NE = (
    "बैशाख", "जेठ", "अषाढ", "श्रावण", "भाद्र", "आश्विन",
    "कार्तिक", "मङ्सिर", "पौष", "माघ", "फाल्गुन", "चैत्र",
)
GREGORIAN_MONTHS_EN = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)
GREGORIAN_MONTHS_NE = (
    "जनवरी", "फेब्रुअरी", "मार्च", "अप्रिल", "मे", "जुन",
    "जुलाई", "अगस्ट", "सेप्टेम्बर", "अक्टोबर", "नोभेम्बर", "डिसेम्बर",
)
# Week starts on Sunday (index 0), as printed on Nepali calendars.
WEEKDAYS_EN = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")
WEEKDAYS_NE = ("आइतवार", "सोमवार", "मङ्गलवार", "बुधवार", "बिहिवार", "शुक्रवार", "शनिवार")
WEEKDAYS_SHORT_EN = ("S", "M", "T", "W", "T", "F", "S")
WEEKDAYS_SHORT_NE = ("आ", "सो", "मं", "बु", "बि", "शु", "श")


def _parse_iso(value: str) -> Tuple[int, int, int]:
    year, month, day = (int(part) for part in value.split("-"))
    return year, month, day


def _load_table(path: Path) -> Tuple[str, Dict[int, Tuple[int, ...]], Tuple[int, int, int], date]:
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise CalendarDataError(f"Cannot read Bikram Sambat table from {path}") from exc

    try:
        min_year = int(payload["min_year"])
        max_year = int(payload["max_year"])
        rows = {int(year): tuple(int(n) for n in lengths) for year, lengths in payload["months"].items()}
        epoch_bs = _parse_iso(payload["epoch"]["bs"])
        epoch_ad = date(*_parse_iso(payload["epoch"]["ad"]))
        version = str(payload["version"])
    except (KeyError, TypeError, ValueError) as exc:
        raise CalendarDataError("Bikram Sambat table is missing required keys") from exc

    expected = set(range(min_year, max_year + 1))
    if set(rows) != expected:
        missing = sorted(expected - set(rows))
        raise CalendarDataError(f"Bikram Sambat table is not contiguous; missing years: {missing[:5]}")
    for year, lengths in rows.items():
        if len(lengths) != 12:
            raise CalendarDataError(f"Year {year} must list 12 month lengths, got {len(lengths)}")
        if any(not 29 <= n <= 32 for n in lengths):
            raise CalendarDataError(f"Year {year} has a month length outside 29..32: {lengths}")

    ey, em, ed = epoch_bs
    if ey not in rows or not 1 <= em <= 12 or not 1 <= ed <= rows[ey][em - 1]:
        raise CalendarDataError(f"Epoch {payload['epoch']['bs']} is not inside the table")

    return version, rows, epoch_bs, epoch_ad


TABLE_VERSION, _TABLE, EPOCH_BS, EPOCH_AD = _load_table(DATA_PATH)
MIN_YEAR = min(_TABLE)
MAX_YEAR = max(_TABLE)

# _YEAR_STARTS[i] is the day offset of Baisakh 1 of (MIN_YEAR + i) from Baisakh 1 of MIN_YEAR;
# the final entry is the total number of days in the table.
_YEAR_STARTS: List[int] = [0]
for _year in range(MIN_YEAR, MAX_YEAR + 1):
    _YEAR_STARTS.append(_YEAR_STARTS[-1] + sum(_TABLE[_year]))

_EPOCH_OFFSET = (
    _YEAR_STARTS[EPOCH_BS[0] - MIN_YEAR] + sum(_TABLE[EPOCH_BS[0]][: EPOCH_BS[1] - 1]) + EPOCH_BS[2] - 1
)

logger.debug("Loaded Bikram Sambat table %s covering %s-%s", TABLE_VERSION, MIN_YEAR, MAX_YEAR)


def supported_years() -> range:
    return range(MIN_YEAR, MAX_YEAR + 1)


def _require_year(year: int) -> Tuple[int, ...]:
    try:
        return _TABLE[year]
    except (KeyError, TypeError):
        raise OutOfRangeError(
            f"Bikram Sambat year {year!r} is outside the supported range {MIN_YEAR}-{MAX_YEAR}"
        ) from None


def month_lengths(year: int) -> Tuple[int, ...]:
    """Return the twelve month lengths of ``year``."""

    return _require_year(year)


def month_length(year: int, month: int) -> int:
    """Return the number of days in ``month`` (1..12) of BS ``year``."""

    lengths = _require_year(year)
    if not isinstance(month, int) or not 1 <= month <= 12:
        raise InvalidDayError(f"month must be in 1..12, got {month!r}")
    return lengths[month - 1]


def year_length(year: int) -> int:
    return sum(_require_year(year))


def total_days() -> int:
    return _YEAR_STARTS[-1]


def year_start_offset(year: int) -> int:
    """Day offset of Baisakh 1 of ``year`` from the epoch's BS date."""

    _require_year(year)
    return _YEAR_STARTS[year - MIN_YEAR] - _EPOCH_OFFSET


def year_from_offset(offset: int) -> Tuple[int, int]:
    """Return ``(year, day_of_year)`` for a day offset from the epoch.

    ``day_of_year`` is zero based. Raises ``OutOfRangeError`` if the offset
    falls outside the table.
    """

    absolute = offset + _EPOCH_OFFSET
    if absolute < 0 or absolute >= _YEAR_STARTS[-1]:
        raise OutOfRangeError(f"Day offset {offset} is outside the supported range {MIN_YEAR}-{MAX_YEAR}")
    index = bisect_right(_YEAR_STARTS, absolute) - 1
    return MIN_YEAR + index, absolute - _YEAR_STARTS[index]


def _as_parts(value: Union[str, Iterable[int], object]) -> Tuple[int, int, int]:
    if isinstance(value, str):
        tokens = value.strip().replace("/", "-").split("-")
        if len(tokens) != 3:
            raise ValueError(f"Unsupported Bikram Sambat date string: {value!r}")
        year, month, day = (int(part) for part in tokens)
        return year, month, day
    if all(hasattr(value, attr) for attr in ("year", "month", "day")):
        return int(value.year), int(value.month), int(value.day)  # type: ignore[attr-defined]
    year, month, day = value  # type: ignore[misc]
    return int(year), int(month), int(day)


def is_valid(value: Union[str, Iterable[int], object]) -> bool:
    """Return ``True`` if ``value`` names an existing Bikram Sambat day."""

    try:
        year, month, day = _as_parts(value)
    except (TypeError, ValueError):
        return False
    lengths = _TABLE.get(year)
    if lengths is None or not 1 <= month <= 12:
        return False
    return 1 <= day <= lengths[month - 1]


def _check_locale(locale: str) -> str:
    if locale not in VALID_LOCALES:
        raise ValueError("locale must be one of: {}".format(", ".join(sorted(VALID_LOCALES))))
    return locale


def month_name(month: int, locale: str = "en") -> str:
    names = BS_MONTHS_NE if _check_locale(locale) == "ne" else BS_MONTHS_EN
    if not 1 <= month <= 12:
        raise InvalidDayError(f"month must be in 1..12, got {month!r}")
    return names[month - 1]


def gregorian_month_name(month: int, locale: str = "en") -> str:
    names = GREGORIAN_MONTHS_NE if _check_locale(locale) == "ne" else GREGORIAN_MONTHS_EN
    if not 1 <= month <= 12:
        raise ValueError(f"month must be in 1..12, got {month!r}")
    return names[month - 1]


def weekday_name(index: int, locale: str = "en", *, short: bool = False) -> str:
    """Return the weekday name for ``index`` (0 = Sunday)."""

    _check_locale(locale)
    tables: Mapping[Tuple[str, bool], Tuple[str, ...]] = {
        ("en", False): WEEKDAYS_EN,
        ("ne", False): WEEKDAYS_NE,
        ("en", True): WEEKDAYS_SHORT_EN,
        ("ne", True): WEEKDAYS_SHORT_NE,
    }
    return tables[(locale, short)][index % 7]
