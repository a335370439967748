"""Toolkit-independent state machine behind the Bikram Sambat date picker.

The controller keeps three things in step: the text field (``raw_text``),
the calendar grid (``view_year``/``view_month``/``view_mode``) and the host's
controlled value. The host pushes values in with ``receive_external_value``
and receives canonical ``YYYY-MM-DD`` strings through ``on_change``. A value
equal to the controller's own last emission is treated as an echo and is
never parsed or emitted again.

The grid and the text field always show BS dates; ``convert_to_bs`` only
selects the calendar of the emitted canonical value.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, fields, replace
from datetime import date, datetime
from enum import Enum
from typing import Any, Callable, Mapping, Optional, Tuple, Union

from . import calendar_table, preferences
from .converter import BsDate, ad_to_bs, bs_to_ad, first_weekday_of_month, nepal_today
from .errors import ConversionError, DateValidationError, OutOfRangeError, ParseError
from .formatting import CANONICAL_PATTERN, format_date, normalize_value, parse_date, to_devanagari
from .validators import is_within_bounds, meets_minimum_age

__all__ = [
    "DayCell",
    "MonthCell",
    "PickerController",
    "PickerOptions",
    "PickerState",
    "PickerView",
    "ViewMode",
    "YEAR_WINDOW",
    "YearCell",
    "year_window_for",
]

logger = logging.getLogger(__name__)

YEAR_WINDOW = 20
SATURDAY = 6

BoundInput = Union[str, BsDate, date, datetime, None]


class ViewMode(str, Enum):
    CALENDAR = "calendar"
    MONTHS = "months"
    YEARS = "years"


_NEXT_MODE = {
    ViewMode.CALENDAR: ViewMode.MONTHS,
    ViewMode.MONTHS: ViewMode.YEARS,
    ViewMode.YEARS: ViewMode.CALENDAR,
}


def year_window_for(year: int) -> Tuple[int, int]:
    """Return the ``(start, end)`` year window that contains ``year``."""

    start = calendar_table.MIN_YEAR + ((year - calendar_table.MIN_YEAR) // YEAR_WINDOW) * YEAR_WINDOW
    return start, start + YEAR_WINDOW


def _check_locale(name: str, value: str) -> str:
    if value not in calendar_table.VALID_LOCALES:
        raise ValueError(
            "{} must be one of: {}".format(name, ", ".join(sorted(calendar_table.VALID_LOCALES)))
        )
    return value


def _as_gregorian(value: Union[BsDate, date]) -> date:
    return bs_to_ad(value) if isinstance(value, BsDate) else value


@dataclass(frozen=True)
class PickerOptions:
    """Immutable picker configuration, validated once at construction.

    ``min_date``/``max_date`` may be given as ``BsDate``, ``date`` or text in
    the value calendar. They are stored as ``BsDate``, except AD dates outside
    the BS table, which stay ``date``.
    """

    calendar_locale: str = "ne"
    value_locale: str = "en"
    convert_to_bs: bool = False
    min_age: int = 0
    required: bool = False
    min_date: Optional[Union[BsDate, date]] = None
    max_date: Optional[Union[BsDate, date]] = None

    def __post_init__(self) -> None:
        _check_locale("calendar_locale", self.calendar_locale)
        _check_locale("value_locale", self.value_locale)
        if isinstance(self.min_age, bool) or not isinstance(self.min_age, int) or self.min_age < 0:
            raise ValueError("min_age must be a non-negative integer")
        object.__setattr__(self, "convert_to_bs", bool(self.convert_to_bs))
        object.__setattr__(self, "required", bool(self.required))
        object.__setattr__(self, "min_date", self._coerce_bound(self.min_date))
        object.__setattr__(self, "max_date", self._coerce_bound(self.max_date))
        if self.min_date and self.max_date and _as_gregorian(self.min_date) > _as_gregorian(self.max_date):
            raise ValueError(f"min_date {self.min_date} is after max_date {self.max_date}")

    @property
    def value_calendar(self) -> str:
        return "bs" if self.convert_to_bs else "ad"

    def _coerce_bound(self, bound: BoundInput) -> Optional[Union[BsDate, date]]:
        if bound is None or bound == "":
            return None
        if isinstance(bound, BsDate):
            return bound
        if isinstance(bound, datetime):
            bound = bound.date()
        if not isinstance(bound, date):
            parts = parse_date(normalize_value(bound))
            if self.convert_to_bs:
                return parts.as_bs()
            bound = parts.as_ad()
        try:
            return ad_to_bs(bound)
        except OutOfRangeError:
            logger.debug("Bound %s lies outside the BS table; keeping it as AD", bound)
            return bound

    @classmethod
    def from_mapping(cls, options: Mapping[str, Any]) -> "PickerOptions":
        """Build options from host props, accepting camelCase keys."""

        aliases = {
            "calendarLocale": "calendar_locale",
            "calenderLocale": "calendar_locale",
            "valueLocale": "value_locale",
            "convertToBS": "convert_to_bs",
            "minAge": "min_age",
            "minDate": "min_date",
            "maxDate": "max_date",
        }
        known = {f.name for f in fields(cls)}
        kwargs = {}
        for key, value in options.items():
            name = aliases.get(key, key)
            if name not in known:
                raise ValueError(f"Unknown picker option: {key!r}")
            kwargs[name] = value
        return cls(**kwargs)

    @classmethod
    def from_preferences(cls, user: Optional[str] = None, **overrides: Any) -> "PickerOptions":
        """Seed ``convert_to_bs`` from the resolved calendar preference."""

        kwargs: dict = {"convert_to_bs": preferences.is_bs_enabled(user)}
        kwargs.update(overrides)
        return cls(**kwargs)


@dataclass(frozen=True)
class PickerState:
    view_mode: ViewMode
    view_year: int
    view_month: int
    year_window: Tuple[int, int]
    selected: Optional[BsDate] = None
    raw_text: str = ""
    is_open: bool = False


@dataclass(frozen=True)
class DayCell:
    day: int
    label: str
    is_today: bool
    is_selected: bool
    is_disabled: bool
    is_weekend: bool


@dataclass(frozen=True)
class MonthCell:
    month: int
    label: str
    is_current: bool


@dataclass(frozen=True)
class YearCell:
    year: int
    label: str
    is_current: bool
    is_disabled: bool


@dataclass(frozen=True)
class PickerView:
    """Everything a host needs to draw the popover for the current state."""

    mode: ViewMode
    header: str
    weekdays: Tuple[str, ...] = ()
    leading_blanks: int = 0
    cells: Tuple[Union[DayCell, MonthCell, YearCell], ...] = ()
    bs_preview: str = ""


class PickerController:
    """Stateful date picker mediating text input, grid clicks and host value."""

    def __init__(
        self,
        options: Optional[PickerOptions] = None,
        *,
        value: Optional[str] = None,
        on_change: Optional[Callable[[str], None]] = None,
        clock: Optional[Callable[[], date]] = None,
    ) -> None:
        self.options = options or PickerOptions()
        self._on_change = on_change
        self._clock = clock or nepal_today
        self._last_emitted: Optional[str] = None

        today = self.today()
        self._state = PickerState(
            view_mode=ViewMode.CALENDAR,
            view_year=today.year,
            view_month=today.month,
            year_window=year_window_for(today.year),
        )
        if value:
            self._seed(value)

    # -- read side -----------------------------------------------------

    @property
    def state(self) -> PickerState:
        return self._state

    @property
    def last_emitted(self) -> Optional[str]:
        return self._last_emitted

    @property
    def bs_preview(self) -> str:
        """BS rendition of the selection, shown under the field in BS mode."""

        selected = self._state.selected
        if not self.options.convert_to_bs or selected is None:
            return ""
        return selected.isoformat()

    def today(self) -> BsDate:
        return ad_to_bs(self._clock())

    def display_text(self, value: BsDate) -> str:
        return format_date(value, CANONICAL_PATTERN, self.options.value_locale)

    def canonical_value(self, value: BsDate) -> str:
        """ASCII ``YYYY-MM-DD`` in the configured value calendar."""

        if self.options.convert_to_bs:
            return value.isoformat()
        return bs_to_ad(value).isoformat()

    def is_disabled(self, value: Union[int, BsDate]) -> bool:
        """Return ``True`` if a day cannot be picked.

        ``value`` is a ``BsDate`` or a day number in the displayed month.
        """

        if isinstance(value, int):
            candidate = (self._state.view_year, self._state.view_month, value)
            if not calendar_table.is_valid(candidate):
                return True
            value = BsDate(*candidate)
        if not is_within_bounds(value, self.options.min_date, self.options.max_date):
            return True
        if self.options.min_age > 0:
            return not meets_minimum_age(value, "bs", self.options.min_age, today=self._clock())
        return False

    # -- transitions ---------------------------------------------------

    def _set(self, **changes: Any) -> None:
        self._state = replace(self._state, **changes)

    def open(self) -> None:
        self._set(is_open=True)

    def close(self) -> None:
        self._set(is_open=False)

    def navigate_prev(self) -> None:
        self._navigate(-1)

    def navigate_next(self) -> None:
        self._navigate(1)

    def _navigate(self, delta: int) -> None:
        state = self._state
        if state.view_mode is ViewMode.CALENDAR:
            year, month = state.view_year, state.view_month + delta
            if month > 12:
                year, month = year + 1, 1
            elif month < 1:
                year, month = year - 1, 12
            if year in calendar_table.supported_years():
                self._set(view_year=year, view_month=month)
        elif state.view_mode is ViewMode.MONTHS:
            year = state.view_year + delta
            if year in calendar_table.supported_years():
                self._set(view_year=year)
        else:
            start, end = state.year_window
            start, end = start + delta * YEAR_WINDOW, end + delta * YEAR_WINDOW
            if end >= calendar_table.MIN_YEAR and start <= calendar_table.MAX_YEAR:
                self._set(year_window=(start, end))
        logger.debug("Picker navigated %+d in %s: %s", delta, state.view_mode.value, self._state)

    def drill_in(self) -> None:
        """Cycle the header view: calendar → months → years → calendar."""

        mode = _NEXT_MODE[self._state.view_mode]
        if mode is ViewMode.YEARS:
            self._set(view_mode=mode, year_window=year_window_for(self._state.view_year))
        else:
            self._set(view_mode=mode)

    def pick_year(self, year: int) -> None:
        if year not in calendar_table.supported_years():
            return
        self._set(view_year=year, view_mode=ViewMode.MONTHS)

    def pick_month(self, month: int) -> None:
        if not 1 <= month <= 12:
            return
        self._set(view_month=month, view_mode=ViewMode.CALENDAR)

    def go_to_today(self) -> None:
        today = self.today()
        self._set(view_year=today.year, view_month=today.month, view_mode=ViewMode.CALENDAR)

    def pick_day(self, day: int) -> Optional[str]:
        """Select ``day`` of the displayed month; disabled days are ignored.

        Returns the emitted canonical value, or ``None`` if nothing happened.
        """

        if self.is_disabled(day):
            logger.debug("Ignoring click on disabled day %s-%s-%s",
                         self._state.view_year, self._state.view_month, day)
            return None
        picked = BsDate(self._state.view_year, self._state.view_month, day)
        self._set(selected=picked, raw_text=self.display_text(picked), is_open=False)
        return self._emit(picked)

    def type_text(self, text: str) -> Optional[str]:
        """Mirror typed text and emit once it reads as a real BS date.

        Partial input such as ``"2081-0"`` is kept in ``raw_text`` without
        touching the selection or notifying the host.
        """

        self._set(raw_text=text)
        try:
            typed = parse_date(text).as_bs()
        except (ParseError, ConversionError) as exc:
            logger.debug("Holding partial input %r: %s", text, exc)
            return None
        self._set(selected=typed, view_year=typed.year, view_month=typed.month)
        return self._emit(typed)

    def receive_external_value(self, value: Optional[str]) -> None:
        """Accept a controlled value pushed by the host.

        An echo of the last emission only re-centres the grid on the
        selection. Any other value re-seeds the display. Neither path emits.
        """

        incoming = "" if value is None else str(value)
        if self._last_emitted is not None and incoming == self._last_emitted:
            selected = self._state.selected
            if selected is not None:
                self._set(view_year=selected.year, view_month=selected.month)
            return
        self._last_emitted = None
        self._seed(incoming)

    def commit(self) -> str:
        """Resolve the field on blur or submit.

        Returns the canonical value (``""`` for an empty optional field) or
        raises ``ParseError``, ``ConversionError`` or ``DateValidationError``
        for the host to report.
        """

        text = self._state.raw_text.strip()
        if not text:
            if self.options.required:
                raise DateValidationError("Date is required", text)
            return ""
        committed = parse_date(text).as_bs()
        if self.options.min_date and not is_within_bounds(committed, minimum=self.options.min_date):
            raise DateValidationError(f"Date must be after {self.options.min_date}", text)
        if self.options.max_date and not is_within_bounds(committed, maximum=self.options.max_date):
            raise DateValidationError(f"Date must be before {self.options.max_date}", text)
        if self.options.min_age > 0 and not meets_minimum_age(
            committed, "bs", self.options.min_age, today=self._clock()
        ):
            raise DateValidationError(f"Age must be at least {self.options.min_age} years", text)
        self._set(selected=committed)
        return self.canonical_value(committed)

    def _emit(self, value: BsDate) -> str:
        canonical = self.canonical_value(value)
        self._last_emitted = canonical
        logger.debug("Picker emitting %s", canonical)
        if self._on_change is not None:
            self._on_change(canonical)
        return canonical

    def _seed(self, value: str) -> None:
        normalized = normalize_value(value)
        if not normalized:
            self._set(selected=None, raw_text="")
            return
        try:
            parts = parse_date(normalized)
            seeded = parts.as_bs() if self.options.convert_to_bs else ad_to_bs(parts.as_ad())
        except (ParseError, ConversionError) as exc:
            logger.debug("Displaying unparsable controlled value %r: %s", value, exc)
            self._set(raw_text=normalized)
            return
        self._set(
            selected=seeded,
            raw_text=self.display_text(seeded),
            view_year=seeded.year,
            view_month=seeded.month,
        )

    # -- rendering -----------------------------------------------------

    def _digits(self, value: int) -> str:
        return to_devanagari(value) if self.options.value_locale == "ne" else str(value)

    def render(self) -> PickerView:
        state = self._state
        if state.view_mode is ViewMode.MONTHS:
            return PickerView(
                mode=state.view_mode,
                header=self._digits(state.view_year),
                cells=tuple(
                    MonthCell(month, calendar_table.month_name(month, self.options.calendar_locale),
                              month == state.view_month)
                    for month in range(1, 13)
                ),
                bs_preview=self.bs_preview,
            )
        if state.view_mode is ViewMode.YEARS:
            start, end = state.year_window
            return PickerView(
                mode=state.view_mode,
                header=f"{self._digits(start)} - {self._digits(end)}",
                cells=tuple(
                    YearCell(year, self._digits(year), year == state.view_year,
                             year not in calendar_table.supported_years())
                    for year in range(start, end + 1)
                ),
                bs_preview=self.bs_preview,
            )
        return self._render_calendar()

    def _render_calendar(self) -> PickerView:
        state = self._state
        year, month = state.view_year, state.view_month
        leading = first_weekday_of_month(year, month)
        today = self.today()
        cells = []
        for day in range(1, calendar_table.month_length(year, month) + 1):
            current = BsDate(year, month, day)
            cells.append(
                DayCell(
                    day=day,
                    label=self._digits(day),
                    is_today=current == today,
                    is_selected=current == state.selected,
                    is_disabled=self.is_disabled(current),
                    is_weekend=(leading + day - 1) % 7 == SATURDAY,
                )
            )
        locale = self.options.calendar_locale
        return PickerView(
            mode=state.view_mode,
            header=f"{calendar_table.month_name(month, locale)} {self._digits(year)}",
            weekdays=tuple(calendar_table.weekday_name(i, locale, short=True) for i in range(7)),
            leading_blanks=leading,
            cells=tuple(cells),
            bs_preview=self.bs_preview,
        )
