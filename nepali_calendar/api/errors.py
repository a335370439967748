"""Exception hierarchy shared by the Bikram Sambat engine."""
from __future__ import annotations

from typing import Any, Optional

__all__ = [
    "ApproximateFallbackUsed",
    "CalendarDataError",
    "ConversionError",
    "DateValidationError",
    "InvalidDayError",
    "MalformedDateError",
    "NepaliCalendarError",
    "OutOfRangeError",
    "ParseError",
]


class NepaliCalendarError(Exception):
    """Base error."""


class CalendarDataError(NepaliCalendarError):
    """Raised when the bundled month-length table is missing or inconsistent."""


class ConversionError(NepaliCalendarError, ValueError):
    """Raised by the converter for dates it cannot map exactly."""


class OutOfRangeError(ConversionError):
    """The year falls outside the supported Bikram Sambat table."""


class InvalidDayError(ConversionError):
    """The month or day does not exist in the given year."""


class ApproximateFallbackUsed(ConversionError):
    """Degraded flat-offset conversion was requested and applied.

    The estimate is only reachable through ``approximation`` so that it is
    never mistaken for an exact result.
    """

    def __init__(self, message: str, approximation: Any) -> None:
        super().__init__(message)
        self.approximation = approximation


class ParseError(NepaliCalendarError, ValueError):
    """Raised when text cannot be read as a date."""


class MalformedDateError(ParseError, ConversionError):
    """The text does not match the expected field pattern."""


class DateValidationError(NepaliCalendarError, ValueError):
    """A committed value violates a picker rule (required, bounds, age)."""

    def __init__(self, message: str, value: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.value = value
