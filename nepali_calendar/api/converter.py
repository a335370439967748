"""Gregorian ↔ Bikram Sambat conversion helpers.

Conversions are exact day-offset walks over the month-length table, anchored
at ``2000-01-01 BS == 1943-04-14 AD``. Dates outside the table raise
``OutOfRangeError``; the legacy flat-offset estimate is only available through
``ApproximateFallbackUsed``.
"""
from __future__ import annotations

import calendar
import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Iterable, Optional, Tuple, Union

from . import calendar_table
from .errors import (
    ApproximateFallbackUsed,
    InvalidDayError,
    MalformedDateError,
    OutOfRangeError,
)

__all__ = [
    "BsDate",
    "NEPAL_TZ",
    "MAX_AD_DATE",
    "MIN_AD_DATE",
    "ad_to_bs",
    "approximate_ad_to_bs",
    "approximate_bs_to_ad",
    "bs_to_ad",
    "coerce_bs",
    "coerce_gregorian",
    "day_of_week",
    "first_weekday_of_month",
    "nepal_today",
    "today_bs",
]

logger = logging.getLogger(__name__)

NEPAL_TZ = timezone(timedelta(hours=5, minutes=45), "NPT")

# Legacy fallback: BS runs roughly 56 years and 8 months ahead of AD.
_APPROX_YEAR_OFFSET = 56
_APPROX_MONTH_OFFSET = 8

BsValue = Union[str, "BsDate", Iterable[int]]
AdValue = Union[str, date, datetime, Iterable[int]]


def _validate_bs(year: int, month: int, day: int) -> None:
    max_day = calendar_table.month_length(year, month)
    if not 1 <= day <= max_day:
        raise InvalidDayError(f"day must be in 1..{max_day} for {year}-{month:02d}, got {day}")


@dataclass(frozen=True, order=True)
class BsDate:
    """Immutable representation of a Bikram Sambat calendar date."""

    year: int
    month: int
    day: int

    def __post_init__(self) -> None:
        _validate_bs(self.year, self.month, self.day)

    def isoformat(self, sep: str = "-") -> str:
        return f"{self.year:04d}{sep}{self.month:02d}{sep}{self.day:02d}"

    def to_gregorian(self) -> date:
        return bs_to_ad(self)

    def weekday(self) -> int:
        """Day of week with Sunday as 0."""

        return day_of_week(self)

    def __str__(self) -> str:
        return self.isoformat()


def _split(value: str) -> Tuple[int, int, int]:
    tokens = value.strip().replace("/", "-").split("-")
    if len(tokens) != 3:
        raise MalformedDateError(f"Expected YYYY-MM-DD, got {value[:32]!r}")
    try:
        year, month, day = (int(part) for part in tokens)
    except ValueError:
        raise MalformedDateError(f"Date fields must be numeric, got {value[:32]!r}") from None
    return year, month, day


def coerce_gregorian(value: AdValue) -> Tuple[int, int, int]:
    if isinstance(value, datetime):
        value = value.date()
    if isinstance(value, date):
        return value.year, value.month, value.day
    if isinstance(value, str):
        return _split(value)
    try:
        year, month, day = value  # type: ignore[misc]
        return int(year), int(month), int(day)
    except (TypeError, ValueError) as exc:
        raise MalformedDateError("Expected a date, string, or iterable of three integers") from exc


def coerce_bs(value: BsValue) -> Tuple[int, int, int]:
    if isinstance(value, BsDate):
        return value.year, value.month, value.day
    if isinstance(value, str):
        return _split(value)
    try:
        year, month, day = value  # type: ignore[misc]
        return int(year), int(month), int(day)
    except (TypeError, ValueError) as exc:
        raise MalformedDateError("Expected a BsDate, string, or iterable of three integers") from exc


def _gregorian(value: AdValue) -> date:
    gy, gm, gd = coerce_gregorian(value)
    try:
        return date(gy, gm, gd)
    except (ValueError, OverflowError) as exc:
        raise MalformedDateError(f"{gy:04d}-{gm:02d}-{gd:02d} is not a Gregorian date") from exc


def _exact_ad_to_bs(target: date) -> BsDate:
    offset = (target - calendar_table.EPOCH_AD).days
    year, remaining = calendar_table.year_from_offset(offset)
    month = 1
    for length in calendar_table.month_lengths(year):
        if remaining < length:
            break
        remaining -= length
        month += 1
    return BsDate(year, month, remaining + 1)


def _exact_bs_to_ad(year: int, month: int, day: int) -> date:
    _validate_bs(year, month, day)
    offset = calendar_table.year_start_offset(year)
    offset += sum(calendar_table.month_lengths(year)[: month - 1])
    offset += day - 1
    return calendar_table.EPOCH_AD + timedelta(days=offset)


MIN_AD_DATE = _exact_bs_to_ad(calendar_table.MIN_YEAR, 1, 1)
MAX_AD_DATE = _exact_bs_to_ad(
    calendar_table.MAX_YEAR, 12, calendar_table.month_length(calendar_table.MAX_YEAR, 12)
)


def approximate_ad_to_bs(target: date) -> Tuple[int, int, int]:
    """Flat-offset estimate of a BS date. Not exact; the day is not range checked."""

    month = target.month + _APPROX_MONTH_OFFSET
    year = target.year + _APPROX_YEAR_OFFSET
    if month > 12:
        month -= 12
        year += 1
    return year, month, target.day


def approximate_bs_to_ad(year: int, month: int, day: int) -> date:
    """Flat-offset estimate of an AD date, with the day clamped to the month."""

    if not 1 <= month <= 12:
        raise InvalidDayError(f"month must be in 1..12, got {month}")
    month -= _APPROX_MONTH_OFFSET
    year -= _APPROX_YEAR_OFFSET
    if month <= 0:
        month += 12
        year -= 1
    if not date.min.year <= year <= date.max.year:
        raise OutOfRangeError(f"BS year {year + _APPROX_YEAR_OFFSET} cannot be approximated")
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, max(1, min(day, last_day)))


def ad_to_bs(value: AdValue, *, allow_approximate: bool = False) -> BsDate:
    """Convert a Gregorian date to Bikram Sambat.

    Raises ``OutOfRangeError`` when the date lies outside the table, or
    ``ApproximateFallbackUsed`` (carrying the estimate) when
    ``allow_approximate`` is set.
    """

    target = _gregorian(value)
    try:
        return _exact_ad_to_bs(target)
    except OutOfRangeError as exc:
        if not allow_approximate:
            raise OutOfRangeError(
                f"{target.isoformat()} is outside the supported range "
                f"{MIN_AD_DATE.isoformat()}..{MAX_AD_DATE.isoformat()}"
            ) from exc
        estimate = approximate_ad_to_bs(target)
        logger.warning("Approximate BS conversion used for %s -> %s", target.isoformat(), estimate)
        raise ApproximateFallbackUsed(
            f"{target.isoformat()} is outside the BS table; approximate value attached", estimate
        ) from exc


def bs_to_ad(value: BsValue, *, allow_approximate: bool = False) -> date:
    """Convert a Bikram Sambat date to Gregorian.

    Raises ``OutOfRangeError`` or ``InvalidDayError``. With
    ``allow_approximate`` an out-of-range year raises
    ``ApproximateFallbackUsed`` carrying the estimated ``date`` instead.
    """

    year, month, day = coerce_bs(value)
    try:
        return _exact_bs_to_ad(year, month, day)
    except OutOfRangeError as exc:
        if not allow_approximate:
            raise
        estimate = approximate_bs_to_ad(year, month, day)
        logger.warning("Approximate AD conversion used for %s-%s-%s -> %s", year, month, day, estimate)
        raise ApproximateFallbackUsed(
            f"{year:04d}-{month:02d}-{day:02d} is outside the BS table; approximate value attached",
            estimate,
        ) from exc


def day_of_week(value: BsValue) -> int:
    """Return the weekday of a BS date, 0 = Sunday .. 6 = Saturday."""

    return (bs_to_ad(value).weekday() + 1) % 7


def first_weekday_of_month(year: int, month: int) -> int:
    return day_of_week((year, month, 1))


def nepal_today(now: Optional[datetime] = None) -> date:
    """Return today's Gregorian date in Nepal Standard Time."""

    if now is None:
        now = datetime.now(tz=NEPAL_TZ)
    elif now.tzinfo is not None:
        now = now.astimezone(NEPAL_TZ)
    return now.date()


def today_bs(now: Optional[datetime] = None) -> BsDate:
    return ad_to_bs(nepal_today(now))
