"""Date predicates used by form rules.

Every predicate is total: malformed or unconvertible input yields ``False``
(or an invalid ``ValidationResult``) rather than an exception.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Literal, Optional, Tuple, Union

from . import calendar_table
from .converter import BsDate, ad_to_bs, bs_to_ad, nepal_today
from .errors import ConversionError, OutOfRangeError, ParseError
from .formatting import looks_like_bs, normalize_value, parse_date

__all__ = [
    "CalendarKind",
    "ValidationResult",
    "age_on",
    "is_future_date",
    "is_not_future_date",
    "is_valid_calendar_date",
    "is_within_bounds",
    "meets_minimum_age",
    "resolve_calendar_kind",
    "to_gregorian",
    "validate_date",
]

logger = logging.getLogger(__name__)

CalendarKind = Literal["bs", "ad"]
DateInput = Union[str, BsDate, date, datetime]


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of ``validate_date``; ``message`` is set when invalid."""

    is_valid: bool
    message: Optional[str] = None


def resolve_calendar_kind(value: DateInput, calendar: Optional[str] = None) -> CalendarKind:
    """Decide which calendar ``value`` is written in.

    Typed values carry their calendar. For text, an explicit ``calendar`` wins;
    without one the ``looks_like_bs`` heuristic decides.
    """

    if isinstance(value, BsDate):
        return "bs"
    if isinstance(value, date):
        return "ad"
    if calendar is not None:
        normalized = calendar.strip().lower()
        if normalized not in ("bs", "ad"):
            raise ValueError("calendar must be either 'bs' or 'ad'")
        return normalized  # type: ignore[return-value]
    return "bs" if looks_like_bs(value) else "ad"


def to_gregorian(value: DateInput, calendar: Optional[str] = None) -> date:
    """Return the AD date for ``value``; raises ``ConversionError`` or ``ParseError``."""

    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, BsDate):
        return bs_to_ad(value)
    parts = parse_date(normalize_value(value))
    if resolve_calendar_kind(value, calendar) == "bs":
        return bs_to_ad(parts)
    return parts.as_ad()


def is_valid_calendar_date(value: Union[str, BsDate, date, Tuple[int, int, int]], calendar: str = "bs") -> bool:
    """Check that ``value`` names an existing day in ``calendar``."""

    if isinstance(value, BsDate):
        return True
    if isinstance(value, date):
        return True
    try:
        if isinstance(value, str):
            year, month, day = parse_date(normalize_value(value))
        else:
            year, month, day = (int(part) for part in value)
    except (ParseError, TypeError, ValueError):
        return False
    if calendar == "bs":
        return calendar_table.is_valid((year, month, day))
    try:
        date(year, month, day)
    except ValueError:
        return False
    return True


def age_on(birth: date, today: date) -> int:
    """Whole years between ``birth`` and ``today``."""

    years = today.year - birth.year
    if (today.month, today.day) < (birth.month, birth.day):
        years -= 1
    return years


def meets_minimum_age(
    value: DateInput,
    calendar: Optional[str],
    min_years: int,
    *,
    today: Optional[date] = None,
) -> bool:
    """Return ``True`` if someone born on ``value`` is at least ``min_years`` old.

    ``calendar`` is ``"bs"``, ``"ad"`` or ``None`` (guess from the year field).
    Turning ``min_years`` today counts as meeting the floor.
    """

    if isinstance(value, str) and not value.strip():
        return False
    try:
        birth = to_gregorian(value, calendar)
    except (ConversionError, ParseError, ValueError) as exc:
        logger.debug("Age check failed for %r: %s", value, exc)
        return False
    return age_on(birth, today or nepal_today()) >= min_years


def _same_calendar(value: Union[BsDate, date], bound: Union[BsDate, date]) -> Tuple[object, object]:
    if isinstance(value, BsDate) and not isinstance(bound, BsDate):
        try:
            return value, ad_to_bs(bound)
        except OutOfRangeError:
            # Bound lies beyond the BS table; compare in AD where both exist.
            return bs_to_ad(value), bound
    if not isinstance(value, BsDate) and isinstance(bound, BsDate):
        return value, bs_to_ad(bound)
    return value, bound


def is_within_bounds(
    value: Union[BsDate, date, datetime],
    minimum: Optional[Union[BsDate, date, datetime]] = None,
    maximum: Optional[Union[BsDate, date, datetime]] = None,
) -> bool:
    """Inclusive range check, comparing in ``value``'s own calendar."""

    if isinstance(value, datetime):
        value = value.date()
    if minimum is not None:
        if isinstance(minimum, datetime):
            minimum = minimum.date()
        left, low = _same_calendar(value, minimum)
        if left < low:  # type: ignore[operator]
            return False
    if maximum is not None:
        if isinstance(maximum, datetime):
            maximum = maximum.date()
        left, high = _same_calendar(value, maximum)
        if left > high:  # type: ignore[operator]
            return False
    return True


def is_not_future_date(value: DateInput, calendar: Optional[str] = None, *, today: Optional[date] = None) -> bool:
    try:
        checked = to_gregorian(value, calendar)
    except (ConversionError, ParseError, ValueError):
        return False
    return checked <= (today or nepal_today())


def is_future_date(value: DateInput, calendar: Optional[str] = None, *, today: Optional[date] = None) -> bool:
    try:
        checked = to_gregorian(value, calendar)
    except (ConversionError, ParseError, ValueError):
        return False
    return checked > (today or nepal_today())


def _bound_to_gregorian(bound: DateInput, calendar: Optional[str]) -> date:
    if isinstance(bound, str):
        # Bounds written as text share the value's calendar.
        return to_gregorian(bound, calendar or "ad")
    return to_gregorian(bound)


def validate_date(
    value: Optional[DateInput],
    calendar: Optional[str] = None,
    *,
    required: bool = True,
    min_age: Optional[int] = None,
    max_age: Optional[int] = None,
    allow_future: bool = False,
    require_future: bool = False,
    min_date: Optional[DateInput] = None,
    max_date: Optional[DateInput] = None,
    today: Optional[date] = None,
) -> ValidationResult:
    """Apply the composite form rule to a date value."""

    if value is None or (isinstance(value, str) and not value.strip()):
        if required:
            return ValidationResult(False, "Date is required")
        return ValidationResult(True)

    try:
        kind = resolve_calendar_kind(value, calendar)
    except ValueError as exc:
        return ValidationResult(False, str(exc))

    try:
        checked = to_gregorian(value, kind)
    except ParseError:
        return ValidationResult(False, "Invalid date format")
    except ConversionError:
        if kind == "bs":
            return ValidationResult(False, "Invalid Nepali date")
        return ValidationResult(False, "Invalid date format")

    current = today or nepal_today()
    if require_future and checked <= current:
        return ValidationResult(False, "Date must be in the future")
    if not allow_future and not require_future and checked > current:
        return ValidationResult(False, "Date cannot be in the future")

    if min_age is not None or max_age is not None:
        age = age_on(checked, current)
        if min_age is not None and age < min_age:
            return ValidationResult(False, f"Age must be at least {min_age} years")
        if max_age is not None and age > max_age:
            return ValidationResult(False, f"Age must be less than {max_age} years")

    if min_date is not None:
        try:
            low = _bound_to_gregorian(min_date, kind)
        except (ConversionError, ParseError):
            return ValidationResult(False, "Invalid minimum date")
        if checked < low:
            return ValidationResult(False, f"Date must be after {min_date}")

    if max_date is not None:
        try:
            high = _bound_to_gregorian(max_date, kind)
        except (ConversionError, ParseError):
            return ValidationResult(False, "Invalid maximum date")
        if checked > high:
            return ValidationResult(False, f"Date must be before {max_date}")

    return ValidationResult(True)
