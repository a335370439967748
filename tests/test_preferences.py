import importlib

import pytest


def reload_preferences():
    module = importlib.import_module("nepali_calendar.api.preferences")
    return importlib.reload(module)


def test_default_preference_is_bs():
    preferences = reload_preferences()
    resolved = preferences.resolve_calendar()
    assert resolved.value == "bs"
    assert resolved.source == "default"
    assert preferences.is_bs_enabled()


def test_system_preference_overrides_default():
    preferences = reload_preferences()
    preferences.set_system_calendar("ad")
    resolved = preferences.resolve_calendar()
    assert resolved.value == "ad"
    assert resolved.source == "system"
    assert not preferences.is_bs_enabled()
    context = preferences.get_preference_context()
    assert context["active_calendar"] == "ad"
    assert context["source"] == "system"
    assert context["convert_to_bs"] is False


def test_user_preference_has_priority_over_system():
    preferences = reload_preferences()
    preferences.set_system_calendar("ad")
    preferences.set_user_calendar("bs", user="demo@example.com")
    resolved = preferences.resolve_calendar(user="demo@example.com")
    assert resolved.value == "bs"
    assert resolved.source == "user"
    context = preferences.get_preference_context(user="demo@example.com")
    assert context["active_calendar"] == "bs"
    assert context["user_calendar"] == "bs"
    assert context["system_calendar"] == "ad"
    assert context["source"] == "user"


@pytest.mark.parametrize(
    "alias,expected",
    [("Nepali", "bs"), ("Bikram Sambat", "bs"), (" gregorian ", "ad"), ("English", "ad"), ("AD", "ad")],
)
def test_calendar_aliases_are_normalised(alias, expected):
    preferences = reload_preferences()
    assert preferences.set_system_calendar(alias).value == expected


def test_setting_invalid_calendar_raises_value_error():
    preferences = reload_preferences()
    with pytest.raises(ValueError):
        preferences.set_system_calendar("lunar")


def test_user_preference_requires_user_outside_frappe():
    preferences = reload_preferences()
    with pytest.raises(RuntimeError):
        preferences.set_user_calendar("bs")


def test_context_reports_table_range():
    preferences = reload_preferences()
    context = preferences.get_calendar_preference()
    assert context["min_year"] == 1970
    assert context["max_year"] == 2100
    assert context["table_version"]
    assert "system_calendar" not in context


def test_set_calendar_preference_scopes():
    preferences = reload_preferences()
    context = preferences.set_calendar_preference("system", "ad")
    assert context["active_calendar"] == "ad"
    context = preferences.set_calendar_preference("user", "bs", user="ram@example.com")
    assert context["active_calendar"] == "bs"
    assert context["source"] == "user"
    with pytest.raises(ValueError):
        preferences.set_calendar_preference("team", "bs")
