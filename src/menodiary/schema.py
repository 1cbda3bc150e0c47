"""
Canonical shape of the persisted document.

The JSON layout uses the camelCase keys of the original mobile app so that
existing documents keep loading:

    { "profile": {...}, "logs": { "YYYY-MM-DD": {...} } }

Every ``from_dict`` starts from the defaults and lays the stored values on
top, which is how fields added by later versions appear in old documents.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields, replace
from typing import Any

logger = logging.getLogger(__name__)

MOODS = ("great", "normal", "hard")
THEMES = ("light", "dark")
HRT_STATUSES = ("none", "systemic", "local", "phyto")
SUPPORT_NETWORK = ("yes", "no", "partial")
REMINDER_KINDS = ("daily", "inactivity", "medicationCheck", "periodPrediction")

DEFAULT_DAILY_TIME = "20:00"


@dataclass
class ReminderTypes:
    daily: bool = True
    inactivity: bool = True
    medicationCheck: bool = False
    periodPrediction: bool = False

    def to_dict(self) -> dict[str, bool]:
        return {k: bool(getattr(self, k)) for k in REMINDER_KINDS}

    @classmethod
    def from_dict(cls, raw: Any) -> "ReminderTypes":
        out = cls()
        if not isinstance(raw, dict):
            return out
        for k in REMINDER_KINDS:
            if k in raw:
                setattr(out, k, bool(raw[k]))
        return out


@dataclass
class NotificationSettings:
    enabled: bool = False
    dailyTime: str = DEFAULT_DAILY_TIME
    reminderTypes: ReminderTypes = field(default_factory=ReminderTypes)

    def to_dict(self) -> dict[str, Any]:
        return {
            "enabled": bool(self.enabled),
            "dailyTime": self.dailyTime,
            "reminderTypes": self.reminderTypes.to_dict(),
        }

    @classmethod
    def from_dict(cls, raw: Any) -> "NotificationSettings":
        out = cls()
        if not isinstance(raw, dict):
            return out
        if "enabled" in raw:
            out.enabled = bool(raw["enabled"])
        if isinstance(raw.get("dailyTime"), str) and raw["dailyTime"].strip():
            out.dailyTime = raw["dailyTime"].strip()
        out.reminderTypes = ReminderTypes.from_dict(raw.get("reminderTypes"))
        return out


@dataclass
class UserProfile:
    name: str = ""
    isOnboarded: bool = False
    theme: str = "light"
    notifications: NotificationSettings = field(default_factory=NotificationSettings)

    # biological
    age: int = 45
    lastPeriodDate: str = ""
    surgicalHistory: list[str] = field(default_factory=list)

    # sociodemographic
    maritalStatus: str = ""
    occupation: str = ""

    # hormone therapy
    hrtStatus: str = "none"
    hrtStartDate: str | None = None

    # life history
    menopausePerception: str = ""
    supportNetwork: str = "partial"
    bodyImageFeeling: str = ""
    goals: list[str] = field(default_factory=list)

    # keys written by a newer version; carried through untouched
    extras: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = dict(self.extras)
        for f in fields(self):
            if f.name == "extras":
                continue
            value = getattr(self, f.name)
            if f.name == "notifications":
                value = value.to_dict()
            elif isinstance(value, list):
                value = list(value)
            if f.name == "hrtStartDate" and not value:
                continue
            out[f.name] = value
        return out

    @classmethod
    def from_dict(cls, raw: Any) -> "UserProfile":
        """Shallow merge of ``raw`` over the default profile."""
        merged = default_profile()
        if not isinstance(raw, dict):
            return merged

        known = {f.name for f in fields(cls)} - {"extras"}
        for key, value in raw.items():
            if key not in known:
                merged.extras[key] = value
                continue
            if key == "notifications":
                merged.notifications = NotificationSettings.from_dict(value)
            elif key in ("surgicalHistory", "goals"):
                merged_list = [str(v) for v in value] if isinstance(value, list) else []
                setattr(merged, key, merged_list)
            elif key == "age":
                try:
                    merged.age = int(value)
                except (TypeError, ValueError, OverflowError):
                    logger.warning("Ignoring non-numeric age %r", value)
            elif key == "isOnboarded":
                merged.isOnboarded = bool(value)
            elif key == "hrtStartDate":
                merged.hrtStartDate = str(value) if value else None
            elif value is not None:
                setattr(merged, key, value)

        if merged.hrtStatus not in HRT_STATUSES:
            logger.warning("Unknown hrtStatus %r; treating as 'none'", merged.hrtStatus)
            merged.hrtStatus = "none"
        if merged.theme not in THEMES:
            merged.theme = "light"
        return merged


@dataclass
class TimelineEvent:
    id: str
    timestamp: int

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "timestamp": int(self.timestamp)}


@dataclass
class DailyLog:
    date: str
    mood: str = "normal"
    symptoms: list[str] = field(default_factory=list)
    medicationTaken: bool = False
    notes: str = ""
    timestamp: int = 0
    timeline: list[TimelineEvent] = field(default_factory=list)

    def has_symptom(self, symptom_id: str) -> bool:
        return symptom_id in self.symptoms

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date,
            "mood": self.mood,
            "symptoms": list(self.symptoms),
            "medicationTaken": bool(self.medicationTaken),
            "notes": self.notes,
            "timestamp": int(self.timestamp),
            "timeline": [e.to_dict() for e in self.timeline],
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any], date_key: str | None = None) -> "DailyLog":
        date = str(raw.get("date") or date_key or "")
        mood = raw.get("mood", "normal")
        if mood not in MOODS:
            logger.warning("Log %s has unknown mood %r; using 'normal'", date, mood)
            mood = "normal"

        symptoms = raw.get("symptoms", [])
        if not isinstance(symptoms, list):
            symptoms = []

        timeline: list[TimelineEvent] = []
        stored_timeline = raw.get("timeline")
        if not isinstance(stored_timeline, list):
            stored_timeline = []
        for ev in stored_timeline:
            if not isinstance(ev, dict) or "id" not in ev:
                continue
            try:
                timeline.append(TimelineEvent(id=str(ev["id"]), timestamp=int(ev.get("timestamp", 0))))
            except (TypeError, ValueError, OverflowError):
                logger.warning("Dropping malformed timeline event %r on %s", ev, date)

        try:
            ts = int(raw.get("timestamp", 0) or 0)
        except (TypeError, ValueError, OverflowError):
            ts = 0

        return cls(
            date=date,
            mood=mood,
            symptoms=unique_ids(symptoms),
            medicationTaken=bool(raw.get("medicationTaken", False)),
            notes=str(raw.get("notes") or ""),
            timestamp=ts,
            timeline=timeline,
        )


@dataclass
class AppState:
    profile: UserProfile = field(default_factory=lambda: default_profile())
    logs: dict[str, DailyLog] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "profile": self.profile.to_dict(),
            "logs": {d: log.to_dict() for d, log in sorted(self.logs.items())},
        }

    @classmethod
    def from_dict(cls, raw: Any) -> "AppState":
        if not isinstance(raw, dict):
            return default_state()
        logs: dict[str, DailyLog] = {}
        stored_logs = raw.get("logs")
        if isinstance(stored_logs, dict):
            for key, value in stored_logs.items():
                if not isinstance(value, dict):
                    logger.warning("Skipping malformed log under key %r", key)
                    continue
                log = DailyLog.from_dict(value, date_key=str(key))
                # the key is the primary key
                log.date = str(key)
                logs[str(key)] = log
        return cls(profile=UserProfile.from_dict(raw.get("profile")), logs=logs)


def unique_ids(values: list[Any]) -> list[str]:
    seen: set[str] = set()
    out: list[str] = []
    for v in values:
        s = str(v).strip()
        if not s or s in seen:
            continue
        seen.add(s)
        out.append(s)
    return out


def default_profile() -> UserProfile:
    return UserProfile()


def default_state() -> AppState:
    return AppState(profile=default_profile(), logs={})


def copy_state(state: AppState) -> AppState:
    """Deep copy through the serialised form; commands never mutate their input."""
    return AppState.from_dict(state.to_dict())


def with_profile(state: AppState, **changes: Any) -> AppState:
    out = copy_state(state)
    out.profile = replace(out.profile, **changes)
    return out
