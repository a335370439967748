"""Server-side helpers exposed by the Nepali calendar package."""

from . import calendar_table, converter, errors, formatting, picker, preferences, validators

__all__ = [
    "calendar_table",
    "converter",
    "errors",
    "formatting",
    "picker",
    "preferences",
    "validators",
]
