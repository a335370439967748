"""Locale-aware rendering and lenient parsing of calendar dates.

Recognizes numeric layouts such as::

    2081-01-15   2081/01/15   01/15/2081   १५-०१-२०८१ (Devanagari digits)

Parsing never decides between BS and AD; ``DateParts`` stays calendar-neutral
until the caller picks ``as_bs`` or ``as_ad``.
"""
from __future__ import annotations

import re
from datetime import date, datetime
from functools import lru_cache
from typing import Callable, Dict, NamedTuple, Optional, Tuple, Union

from . import calendar_table
from .converter import BsDate, day_of_week
from .errors import MalformedDateError

__all__ = [
    "CANONICAL_PATTERN",
    "DateParts",
    "format_date",
    "looks_like_bs",
    "normalize_value",
    "parse_date",
    "to_devanagari",
    "to_latin_digits",
]

CANONICAL_PATTERN = "YYYY-MM-DD"

_DEVANAGARI_DIGITS = "०१२३४५६७८९"
_TO_DEVANAGARI = str.maketrans("0123456789", _DEVANAGARI_DIGITS)
_TO_LATIN = str.maketrans(_DEVANAGARI_DIGITS, "0123456789")

_TOKEN_RE = re.compile(r"YYYY|MMMM|dddd|MM|DD")
_ISO_DATETIME_RE = re.compile(r"^(\d{4}-\d{2}-\d{2})[T ]\d{2}:\d{2}")
_MAX_FIELD_DIGITS = 4
_LEADING_FIELD_RE = re.compile(r"^(\d{1,4})(?=[-/.\s]|$)")


class DateParts(NamedTuple):
    """Year, month and day read from text, not yet bound to a calendar."""

    year: int
    month: int
    day: int

    def as_bs(self) -> BsDate:
        return BsDate(self.year, self.month, self.day)

    def as_ad(self) -> date:
        try:
            return date(self.year, self.month, self.day)
        except ValueError as exc:
            raise MalformedDateError(f"{self.isoformat()} is not a Gregorian date") from exc

    def isoformat(self) -> str:
        return f"{self.year:04d}-{self.month:02d}-{self.day:02d}"


def to_devanagari(value: Union[int, str]) -> str:
    return str(value).translate(_TO_DEVANAGARI)


def to_latin_digits(text: str) -> str:
    return text.translate(_TO_LATIN)


def _digits(value: Union[int, str], locale: str) -> str:
    text = str(value)
    return to_devanagari(text) if locale == "ne" else text


@lru_cache(maxsize=32)
def _numeric_layout(pattern: str) -> Tuple[Tuple[str, ...], str]:
    tokens = tuple(_TOKEN_RE.findall(pattern))
    if sorted(tokens) != ["DD", "MM", "YYYY"]:
        raise ValueError(f"Pattern must contain YYYY, MM and DD exactly once: {pattern!r}")
    separators = _TOKEN_RE.sub("", pattern)
    if len(separators) != 2 or any(ch.isalnum() or ch.isspace() for ch in separators):
        raise ValueError(f"Pattern needs a single punctuation separator between fields: {pattern!r}")
    return tokens, separators


def parse_date(text: str, pattern: str = CANONICAL_PATTERN) -> DateParts:
    """Read ``text`` laid out as ``pattern`` into ``DateParts``.

    Devanagari digits are accepted. Raises ``MalformedDateError`` when the
    field count is wrong or a field is empty, non-numeric or longer than
    four digits.
    """

    order, separators = _numeric_layout(pattern)
    if not isinstance(text, str):
        raise MalformedDateError(f"Expected text, got {type(text).__name__}")
    clean = to_latin_digits(text).strip()
    fields = re.split("[" + re.escape(separators) + "]", clean)
    if len(fields) != len(order):
        raise MalformedDateError(f"{text[:32]!r} does not match {pattern}")
    if not all(field.isascii() and field.isdigit() for field in fields):
        raise MalformedDateError(f"{text[:32]!r} has non-numeric fields")
    if any(len(field) > _MAX_FIELD_DIGITS for field in fields):
        raise MalformedDateError(f"{text[:32]!r} has a field longer than {_MAX_FIELD_DIGITS} digits")
    values = dict(zip(order, (int(field) for field in fields)))
    return DateParts(values["YYYY"], values["MM"], values["DD"])


def format_date(
    value: Union[BsDate, date, datetime, DateParts],
    pattern: str = CANONICAL_PATTERN,
    locale: str = "en",
) -> str:
    """Render ``value`` using ``pattern`` tokens.

    ``YYYY``, ``MM`` and ``DD`` are zero padded. ``MMMM`` and ``dddd`` render
    month and weekday names in the value's own calendar, which ``DateParts``
    does not have. ``locale="ne"`` switches digits and names to Nepali.
    """

    if locale not in calendar_table.VALID_LOCALES:
        raise ValueError("locale must be one of: {}".format(", ".join(sorted(calendar_table.VALID_LOCALES))))
    if isinstance(value, datetime):
        value = value.date()

    month_label: Optional[Callable[[], str]] = None
    weekday_label: Optional[Callable[[], str]] = None
    if isinstance(value, BsDate):
        bs = value
        month_label = lambda: calendar_table.month_name(bs.month, locale)  # noqa: E731
        weekday_label = lambda: calendar_table.weekday_name(day_of_week(bs), locale)  # noqa: E731
    elif isinstance(value, date):
        ad = value
        month_label = lambda: calendar_table.gregorian_month_name(ad.month, locale)  # noqa: E731
        weekday_label = lambda: calendar_table.weekday_name((ad.weekday() + 1) % 7, locale)  # noqa: E731

    numbers: Dict[str, str] = {
        "YYYY": f"{value.year:04d}",
        "MM": f"{value.month:02d}",
        "DD": f"{value.day:02d}",
    }

    def _render(match: "re.Match[str]") -> str:
        token = match.group(0)
        if token in numbers:
            return _digits(numbers[token], locale)
        label = month_label if token == "MMMM" else weekday_label
        if label is None:
            raise ValueError(f"{token} needs a calendar-bound date, got {type(value).__name__}")
        return label()

    return _TOKEN_RE.sub(_render, pattern)


def looks_like_bs(text: str) -> bool:
    """Guess whether ``text`` is a BS date from its leading year field.

    This is a heuristic: AD years 1970-2100 look exactly like BS years, so a
    host that knows the calendar should say so instead of relying on this.
    """

    if not isinstance(text, str):
        return False
    match = _LEADING_FIELD_RE.match(to_latin_digits(text).strip())
    if match is None:
        return False
    return calendar_table.MIN_YEAR <= int(match.group(1)) <= calendar_table.MAX_YEAR


def normalize_value(text: Optional[str]) -> str:
    """Prepare a controlled value for display.

    Transliterates digits, trims whitespace and reduces ISO datetimes to their
    date part; anything else is returned as is.
    """

    if not text:
        return ""
    clean = to_latin_digits(str(text)).strip()
    match = _ISO_DATETIME_RE.match(clean)
    if match:
        return match.group(1)
    return clean
