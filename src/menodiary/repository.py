"""
Read-modify-write operations over the stored document.

Each function loads the whole document from the store, changes it, saves it
back and returns the refreshed state. Callers hold no state of their own.
"""

from __future__ import annotations

import logging
from datetime import datetime

from ._util import _now_local, _to_ms
from .schema import MOODS, AppState, DailyLog, TimelineEvent, UserProfile, unique_ids
from .storage import Store

logger = logging.getLogger(__name__)


def load_state(store: Store) -> AppState:
    return store.load()


def save_profile(store: Store, profile: UserProfile) -> AppState:
    state = store.load()
    state.profile = profile
    store.save(state)
    return state


def clear_data(store: Store) -> AppState:
    logger.info("Erasing all data in %s", store.path)
    return store.clear()


def upsert_log(store: Store, log: DailyLog) -> AppState:
    """Replace the log for ``log.date`` in full. No field-level merge."""
    state = store.load()
    state.logs[log.date] = log
    store.save(state)
    return state


def check_in(
    store: Store,
    date: str,
    mood: str,
    symptoms: list[str],
    medication_taken: bool,
    notes: str = "",
    now: datetime | None = None,
) -> AppState:
    """
    Save the daily check-in form for ``date``.

    Mood, symptoms, medication flag and notes are replaced. The day's
    timeline is carried over, minus events for symptoms no longer ticked.
    """
    if mood not in MOODS:
        raise ValueError(f"mood must be one of {', '.join(MOODS)} (got {mood!r})")

    existing = store.load().logs.get(date)
    ids = unique_ids(symptoms)
    log = DailyLog(
        date=date,
        mood=mood,
        symptoms=ids,
        medicationTaken=bool(medication_taken),
        notes=notes or "",
        timestamp=_to_ms(now or _now_local()),
        timeline=[e for e in existing.timeline if e.id in ids] if existing else [],
    )
    return upsert_log(store, log)


def toggle_symptom_on_log(log: DailyLog | None, date: str, symptom_id: str, at_ms: int) -> DailyLog:
    """
    Pure toggle used by both the repository and the command layer.

    The symptom list and the timeline move together: toggling off drops the
    id and every timeline event carrying it, toggling on adds the id and
    appends exactly one event.
    """
    if log is None:
        return DailyLog(
            date=date,
            mood="normal",
            symptoms=[symptom_id],
            medicationTaken=False,
            notes="",
            timestamp=at_ms,
            timeline=[TimelineEvent(id=symptom_id, timestamp=at_ms)],
        )

    if symptom_id in log.symptoms:
        symptoms = [s for s in log.symptoms if s != symptom_id]
        timeline = [e for e in log.timeline if e.id != symptom_id]
    else:
        symptoms = [*log.symptoms, symptom_id]
        timeline = [*log.timeline, TimelineEvent(id=symptom_id, timestamp=at_ms)]

    return DailyLog(
        date=log.date,
        mood=log.mood,
        symptoms=symptoms,
        medicationTaken=log.medicationTaken,
        notes=log.notes,
        timestamp=at_ms,
        timeline=timeline,
    )


def toggle_quick_symptom(store: Store, date: str, symptom_id: str, now: datetime | None = None) -> AppState:
    state = store.load()
    at_ms = _to_ms(now or _now_local())
    state.logs[date] = toggle_symptom_on_log(state.logs.get(date), date, symptom_id, at_ms)
    store.save(state)
    return state
