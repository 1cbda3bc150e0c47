"""Tests for typed state-change commands."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

import pytest

from menodiary import commands as cmds
from menodiary.schema import DailyLog, UserProfile, default_state
from menodiary.storage import Store


@pytest.fixture()
def state():
    s = default_state()
    s.profile.name = "Ana"
    s.profile.isOnboarded = True
    return s


def test_apply_does_not_mutate_input(state):
    before = state.to_dict()
    cmds.apply(state, cmds.SetTheme("dark"))
    cmds.apply(state, cmds.ToggleSymptom("2024-01-01", "hot_flash", datetime(2024, 1, 1, 8)))
    assert state.to_dict() == before


def test_upsert_log(state):
    out = cmds.apply(state, cmds.UpsertLog(DailyLog(date="2024-01-01", mood="hard")))
    assert out.logs["2024-01-01"].mood == "hard"


def test_upsert_log_rejects_bad_date(state):
    with pytest.raises(ValueError):
        cmds.apply(state, cmds.UpsertLog(DailyLog(date="yesterday")))


@pytest.mark.parametrize("key", ["20240101", "2024-W01-1", "2024-1-5"])
def test_upsert_log_rejects_non_canonical_date(state, key):
    with pytest.raises(ValueError):
        cmds.apply(state, cmds.UpsertLog(DailyLog(date=key)))


def test_toggle_symptom_on_then_off(state):
    at = datetime(2024, 1, 1, 8)
    on = cmds.apply(state, cmds.ToggleSymptom("2024-01-01", "hot_flash", at))
    assert on.logs["2024-01-01"].symptoms == ["hot_flash"]
    off = cmds.apply(on, cmds.ToggleSymptom("2024-01-01", "hot_flash", at))
    assert off.logs["2024-01-01"].symptoms == []
    assert off.logs["2024-01-01"].timeline == []


def test_set_theme(state):
    assert cmds.apply(state, cmds.SetTheme("dark")).profile.theme == "dark"


def test_set_theme_rejects_unknown(state):
    with pytest.raises(ValueError):
        cmds.apply(state, cmds.SetTheme("neon"))


def test_set_name_strips(state):
    assert cmds.apply(state, cmds.SetName("  Bia ")).profile.name == "Bia"


def test_set_notifications(state):
    out = cmds.apply(state, cmds.SetNotifications(enabled=True, daily_time="9pm"))
    assert out.profile.notifications.enabled is True
    assert out.profile.notifications.dailyTime == "21:00"


def test_set_notifications_partial_keeps_other_fields(state):
    out = cmds.apply(state, cmds.SetNotifications(daily_time="07:30"))
    assert out.profile.notifications.enabled is False
    assert out.profile.notifications.dailyTime == "07:30"


def test_set_notifications_bad_time(state):
    with pytest.raises(ValueError):
        cmds.apply(state, cmds.SetNotifications(daily_time="noonish"))


def test_set_reminder_type(state):
    out = cmds.apply(state, cmds.SetReminderType("medicationCheck", True))
    assert out.profile.notifications.reminderTypes.medicationCheck is True


def test_set_reminder_type_unknown(state):
    with pytest.raises(ValueError):
        cmds.apply(state, cmds.SetReminderType("weekly", True))


def test_set_therapy(state):
    out = cmds.apply(state, cmds.SetTherapy("systemic", "2024-02-01"))
    assert out.profile.hrtStatus == "systemic"
    assert out.profile.hrtStartDate == "2024-02-01"


def test_set_therapy_none_keeps_stored_start(state):
    started = cmds.apply(state, cmds.SetTherapy("local", "2024-02-01"))
    out = cmds.apply(started, cmds.SetTherapy("phyto"))
    assert out.profile.hrtStartDate == "2024-02-01"


def test_set_therapy_empty_start_clears(state):
    started = cmds.apply(state, cmds.SetTherapy("local", "2024-02-01"))
    out = cmds.apply(started, cmds.SetTherapy("local", ""))
    assert out.profile.hrtStartDate is None


def test_set_therapy_rejects_bad_values(state):
    with pytest.raises(ValueError):
        cmds.apply(state, cmds.SetTherapy("pills"))
    with pytest.raises(ValueError):
        cmds.apply(state, cmds.SetTherapy("systemic", "Feb 1st"))


def test_complete_onboarding_requires_name():
    with pytest.raises(ValueError):
        cmds.apply(default_state(), cmds.CompleteOnboarding(UserProfile(name="  ")))


def test_complete_onboarding_sets_flag():
    out = cmds.apply(default_state(), cmds.CompleteOnboarding(UserProfile(name="Ana", age=50)))
    assert out.profile.isOnboarded is True
    assert out.profile.age == 50


def test_unknown_command(state):
    with pytest.raises(TypeError):
        cmds.apply(state, object())


def test_execute_persists(tmp_path: Path):
    store = Store(tmp_path / "data.json")
    cmds.execute(store, cmds.CompleteOnboarding(UserProfile(name="Ana")))
    cmds.execute(store, cmds.SetTheme("dark"))
    loaded = store.load()
    assert loaded.profile.isOnboarded is True
    assert loaded.profile.theme == "dark"
