"""
Session-start reminder heuristics.

Both checks only read the history. Nothing records that a reminder was
shown, so running the evaluator twice in the same hour gives the same
answer twice.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from ._util import _date_from_key, _now_local
from .schema import AppState
from .timeparse import clock_hour

logger = logging.getLogger(__name__)

INACTIVITY_THRESHOLD_DAYS = 3
MEDICATION_FOLLOW_UP_HOURS = 2


@dataclass(frozen=True)
class Reminder:
    kind: str
    title: str
    body: str


def days_since_last_log(state: AppState, now: datetime) -> int | None:
    dates = [d for d in (_date_from_key(k) for k in state.logs) if d is not None]
    if not dates:
        return None
    return (now.date() - max(dates)).days


def check_inactivity(state: AppState, now: datetime) -> Reminder | None:
    if not state.profile.notifications.reminderTypes.inactivity:
        return None
    elapsed = days_since_last_log(state, now)
    if elapsed is None or elapsed <= INACTIVITY_THRESHOLD_DAYS:
        return None
    return Reminder(
        kind="inactivity",
        title="We miss you",
        body=f"It has been {elapsed} days since your last check-in. How are you feeling?",
    )


def check_medication_follow_up(state: AppState, now: datetime) -> Reminder | None:
    profile = state.profile
    if not profile.notifications.reminderTypes.medicationCheck:
        return None
    if profile.hrtStatus == "none":
        return None
    hour = clock_hour(profile.notifications.dailyTime)
    if hour is None:
        logger.debug("Skipping medication check: bad dailyTime %r", profile.notifications.dailyTime)
        return None
    # no wrap past midnight: a 22:00 or 23:00 reminder never gets a follow-up
    if now.hour != hour + MEDICATION_FOLLOW_UP_HOURS:
        return None
    return Reminder(
        kind="medication_check",
        title="Therapy check",
        body="Did you take your hormone therapy today? Mark it in today's check-in.",
    )


def evaluate_reminders(
    state: AppState,
    now: datetime | None = None,
    permission_granted: bool = True,
) -> list[Reminder]:
    notifications = state.profile.notifications
    if not notifications.enabled or not permission_granted:
        return []

    now = now or _now_local()
    out: list[Reminder] = []
    for check in (check_inactivity, check_medication_follow_up):
        r = check(state, now)
        if r is not None:
            out.append(r)
    return out
