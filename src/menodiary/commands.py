"""
Typed state changes.

Front ends describe what the user did with one of these objects instead of
poking fields by name. ``apply`` is pure; ``execute`` is the store-backed
version.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Union

from ._util import _date_from_key, _now_local, _to_ms
from .repository import toggle_symptom_on_log
from .schema import (
    HRT_STATUSES,
    REMINDER_KINDS,
    THEMES,
    AppState,
    DailyLog,
    UserProfile,
    copy_state,
    with_profile,
)
from .storage import Store
from .timeparse import parse_clock

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UpsertLog:
    log: DailyLog


@dataclass(frozen=True)
class ToggleSymptom:
    date: str
    symptom_id: str
    at: datetime | None = None


@dataclass(frozen=True)
class SaveProfile:
    profile: UserProfile


@dataclass(frozen=True)
class CompleteOnboarding:
    profile: UserProfile


@dataclass(frozen=True)
class SetName:
    name: str


@dataclass(frozen=True)
class SetTheme:
    theme: str


@dataclass(frozen=True)
class SetNotifications:
    enabled: bool | None = None
    daily_time: str | None = None


@dataclass(frozen=True)
class SetReminderType:
    kind: str
    on: bool


@dataclass(frozen=True)
class SetTherapy:
    status: str
    start_date: str | None = None


Command = Union[
    UpsertLog,
    ToggleSymptom,
    SaveProfile,
    CompleteOnboarding,
    SetName,
    SetTheme,
    SetNotifications,
    SetReminderType,
    SetTherapy,
]


def _check_date(value: str, what: str) -> None:
    if _date_from_key(value) is None:
        raise ValueError(f"{what} must be a YYYY-MM-DD date (got {value!r})")


def apply(state: AppState, command: Command) -> AppState:
    """Return a new state with ``command`` applied. ``state`` is left alone."""
    if isinstance(command, UpsertLog):
        _check_date(command.log.date, "log date")
        out = copy_state(state)
        out.logs[command.log.date] = command.log
        return out

    if isinstance(command, ToggleSymptom):
        _check_date(command.date, "date")
        out = copy_state(state)
        at_ms = _to_ms(command.at or _now_local())
        out.logs[command.date] = toggle_symptom_on_log(
            out.logs.get(command.date), command.date, command.symptom_id, at_ms
        )
        return out

    if isinstance(command, SaveProfile):
        out = copy_state(state)
        out.profile = command.profile
        return out

    if isinstance(command, CompleteOnboarding):
        if not command.profile.name.strip():
            raise ValueError("a name is required to finish onboarding")
        out = copy_state(state)
        out.profile = replace(command.profile, isOnboarded=True)
        return out

    if isinstance(command, SetName):
        return with_profile(state, name=command.name.strip())

    if isinstance(command, SetTheme):
        if command.theme not in THEMES:
            raise ValueError(f"theme must be one of {', '.join(THEMES)}")
        return with_profile(state, theme=command.theme)

    if isinstance(command, SetNotifications):
        out = copy_state(state)
        n = out.profile.notifications
        if command.enabled is not None:
            n.enabled = command.enabled
        if command.daily_time is not None:
            n.dailyTime = parse_clock(command.daily_time)
        return out

    if isinstance(command, SetReminderType):
        if command.kind not in REMINDER_KINDS:
            raise ValueError(f"reminder type must be one of {', '.join(REMINDER_KINDS)}")
        out = copy_state(state)
        setattr(out.profile.notifications.reminderTypes, command.kind, bool(command.on))
        return out

    if isinstance(command, SetTherapy):
        if command.status not in HRT_STATUSES:
            raise ValueError(f"therapy status must be one of {', '.join(HRT_STATUSES)}")
        # None keeps the stored start date, "" clears it
        start = state.profile.hrtStartDate if command.start_date is None else (command.start_date or None)
        if start is not None:
            _check_date(start, "therapy start date")
        return with_profile(state, hrtStatus=command.status, hrtStartDate=start)

    raise TypeError(f"unknown command {type(command).__name__}")


def execute(store: Store, command: Command) -> AppState:
    state = apply(store.load(), command)
    if not store.save(state):
        logger.warning("%s was applied but could not be persisted", type(command).__name__)
    return state
