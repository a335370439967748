"""Hook implementations that integrate the Nepali calendar with Frappe."""
from __future__ import annotations

from typing import Dict, Optional

from .api import calendar_table, preferences
from .api.converter import today_bs


def build_boot_payload(user: Optional[str] = None) -> Dict[str, object]:
    """Preference context, year range and the name tables client pickers render with."""

    payload = preferences.get_preference_context(user)
    payload["min_year"] = calendar_table.MIN_YEAR
    payload["max_year"] = calendar_table.MAX_YEAR
    payload["today_bs"] = today_bs().isoformat()
    payload["months"] = {
        "en": list(calendar_table.BS_MONTHS_EN),
        "ne": list(calendar_table.BS_MONTHS_NE),
    }
    payload["weekdays_short"] = {
        "en": list(calendar_table.WEEKDAYS_SHORT_EN),
        "ne": list(calendar_table.WEEKDAYS_SHORT_NE),
    }
    return payload


def boot_session(bootinfo):
    """Inject the resolved calendar preference into the boot payload."""

    payload = build_boot_payload()
    if isinstance(bootinfo, dict):
        bootinfo.setdefault("nepali_calendar", payload)
    else:  # ``bootinfo`` is typically a ``frappe._dict``
        setattr(bootinfo, "nepali_calendar", payload)
