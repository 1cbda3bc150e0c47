"""
Derived analytics over the journal.

Everything here is a pure function of an ``AppState`` and a ``DateRange``:
nothing is cached and nothing is written, so any of these may be called as
often as a front end likes.

"Insufficient data" is always reported as an explicit result (``None``
percentages, an ``insufficient_data`` status) and never as a zero.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Iterator

from ._util import _date_from_key
from .schema import AppState, DailyLog
from .symptoms import symptom_name

MOOD_BASE_SCORE = {"great": 90, "normal": 50, "hard": 20}
SYMPTOM_PENALTY = 5
MAX_SYMPTOM_PENALTY = 30

PRESET_DAYS = {"7d": 7, "30d": 30, "90d": 90}
PRESETS = ("7d", "30d", "90d", "all", "custom")
DEFAULT_WINDOW_DAYS = 30

OK = "ok"
INSUFFICIENT_DATA = "insufficient_data"


# -------------------------
# Date ranges
# -------------------------

@dataclass(frozen=True)
class DateRange:
    start: date
    end: date

    def __contains__(self, day: date) -> bool:
        return self.start <= day <= self.end

    @property
    def days(self) -> int:
        return (self.end - self.start).days + 1

    def label(self) -> str:
        return f"{self.start.isoformat()} … {self.end.isoformat()}"


def _window(today: date, days: int) -> DateRange:
    return DateRange(today - timedelta(days=days - 1), today)


def _log_dates(state: AppState) -> list[date]:
    out = []
    for key in state.logs:
        d = _date_from_key(key)
        if d is not None:
            out.append(d)
    return sorted(out)


def resolve_range(
    preset: str,
    today: date,
    state: AppState | None = None,
    start: date | None = None,
    end: date | None = None,
) -> DateRange:
    """
    Turn a named preset into an inclusive ``[start, end]`` pair.

    ``all`` spans the earliest log to the later of today and the latest log;
    with no logs it falls back to the default window. ``custom`` swaps
    reversed bounds and falls back to the default window when a bound is
    missing.
    """
    if preset in PRESET_DAYS:
        return _window(today, PRESET_DAYS[preset])

    if preset == "all":
        dates = _log_dates(state) if state is not None else []
        if not dates:
            return _window(today, DEFAULT_WINDOW_DAYS)
        return DateRange(dates[0], max(today, dates[-1]))

    if preset == "custom":
        if start is None or end is None:
            return _window(today, DEFAULT_WINDOW_DAYS)
        if start > end:
            start, end = end, start
        return DateRange(start, end)

    raise ValueError(f"unknown range preset {preset!r}; expected one of {', '.join(PRESETS)}")


def _dated_logs(state: AppState, rng: DateRange | None) -> list[tuple[date, DailyLog]]:
    picked: list[tuple[date, DailyLog]] = []
    for key, log in state.logs.items():
        d = _date_from_key(key)
        if d is None:
            continue
        if rng is not None and d not in rng:
            continue
        picked.append((d, log))
    picked.sort(key=lambda x: x[0])
    return picked


def filter_logs(state: AppState, rng: DateRange | None = None) -> list[DailyLog]:
    """Logs inside ``rng`` (all logs when None), date ascending."""
    return [log for _, log in _dated_logs(state, rng)]


# -------------------------
# Mood trend
# -------------------------

@dataclass(frozen=True)
class TrendPoint:
    date: str
    score: int


def mood_score(log: DailyLog) -> int:
    """Daily well-being index in [0, 100]."""
    base = MOOD_BASE_SCORE.get(log.mood, MOOD_BASE_SCORE["normal"])
    penalty = min(MAX_SYMPTOM_PENALTY, len(log.symptoms) * SYMPTOM_PENALTY)
    return max(0, base - penalty)


def mood_trend(state: AppState, rng: DateRange | None = None) -> Iterator[TrendPoint]:
    for log in filter_logs(state, rng):
        yield TrendPoint(date=log.date, score=mood_score(log))


def mood_counts(logs: list[DailyLog]) -> dict[str, int]:
    counts = {m: 0 for m in MOOD_BASE_SCORE}
    for log in logs:
        counts[log.mood] = counts.get(log.mood, 0) + 1
    return counts


# -------------------------
# Symptom frequency
# -------------------------

@dataclass(frozen=True)
class SymptomFrequency:
    symptom_id: str
    count: int
    percentage: float

    @property
    def name(self) -> str:
        return symptom_name(self.symptom_id)


def symptom_frequency(state: AppState, rng: DateRange | None = None) -> list[SymptomFrequency]:
    """
    Rank symptoms by the number of logged days carrying them.

    Percentages are relative to the logged days in range. Ties keep the
    order in which the symptoms were first seen (days ascending).
    """
    logs = filter_logs(state, rng)
    total = len(logs)
    if total == 0:
        return []

    counts: dict[str, int] = {}
    for log in logs:
        for sid in dict.fromkeys(log.symptoms):
            counts[sid] = counts.get(sid, 0) + 1

    # sorted() is stable, so dict insertion order breaks ties
    ranked = sorted(counts.items(), key=lambda x: -x[1])
    return [
        SymptomFrequency(symptom_id=sid, count=c, percentage=round(100.0 * c / total, 1))
        for sid, c in ranked
    ]


# -------------------------
# Therapy before/after
# -------------------------

@dataclass(frozen=True)
class ComparisonMetric:
    """
    A per-day percentage compared across the therapy start.

    ``counts_presence`` measures days with the marker symptom; otherwise days
    without it. ``higher_is_better`` fixes what counts as an improvement.
    """

    key: str
    label: str
    symptom_id: str
    counts_presence: bool
    higher_is_better: bool

    def percentage(self, logs: list[DailyLog]) -> float | None:
        if not logs:
            return None
        hits = sum(1 for log in logs if log.has_symptom(self.symptom_id) == self.counts_presence)
        return round(100.0 * hits / len(logs), 1)


HOT_FLASH_FREQUENCY = ComparisonMetric(
    key="hot_flash_frequency",
    label="Hot flash days",
    symptom_id="hot_flash",
    counts_presence=True,
    higher_is_better=False,
)

GOOD_SLEEP = ComparisonMetric(
    key="good_sleep",
    label="Good sleep days (no insomnia)",
    symptom_id="insomnia",
    counts_presence=False,
    higher_is_better=True,
)

DEFAULT_METRICS = (HOT_FLASH_FREQUENCY, GOOD_SLEEP)


@dataclass(frozen=True)
class MetricComparison:
    metric: ComparisonMetric
    before: float | None
    after: float | None

    @property
    def change(self) -> float | None:
        if self.before is None or self.after is None:
            return None
        return round(self.after - self.before, 1)

    @property
    def improved(self) -> bool | None:
        """True/False by the metric's polarity; None when unchanged or unknown."""
        delta = self.change
        if delta is None or delta == 0:
            return None
        return delta > 0 if self.metric.higher_is_better else delta < 0


@dataclass(frozen=True)
class TherapyComparison:
    status: str
    start_date: str | None = None
    before_days: int = 0
    after_days: int = 0
    rows: list[MetricComparison] = field(default_factory=list)
    reason: str = ""

    @property
    def available(self) -> bool:
        return self.status == OK


def therapy_comparison(
    state: AppState,
    rng: DateRange | None = None,
    metrics: tuple[ComparisonMetric, ...] = DEFAULT_METRICS,
) -> TherapyComparison:
    profile = state.profile
    if profile.hrtStatus == "none":
        return TherapyComparison(status=INSUFFICIENT_DATA, reason="no hormone therapy recorded")

    start = _date_from_key(profile.hrtStartDate or "")
    if start is None:
        return TherapyComparison(status=INSUFFICIENT_DATA, reason="therapy start date not set")

    before: list[DailyLog] = []
    after: list[DailyLog] = []
    for d, log in _dated_logs(state, rng):
        (before if d < start else after).append(log)

    if not before or not after:
        return TherapyComparison(
            status=INSUFFICIENT_DATA,
            start_date=start.isoformat(),
            before_days=len(before),
            after_days=len(after),
            reason="need logs both before and after the therapy start",
        )

    rows = [MetricComparison(metric=m, before=m.percentage(before), after=m.percentage(after)) for m in metrics]
    return TherapyComparison(
        status=OK,
        start_date=start.isoformat(),
        before_days=len(before),
        after_days=len(after),
        rows=rows,
    )


# -------------------------
# Report / dashboard helpers
# -------------------------

def severity_level(log: DailyLog | None) -> str:
    """Calendar heat-map bucket for one day."""
    if log is None:
        return "none"
    n = len(log.symptoms)
    if log.mood == "great" and n < 2:
        return "good"
    score = {"great": 0, "normal": 2, "hard": 4}.get(log.mood, 2) + n * 0.5
    if score < 4:
        return "mild"
    if score < 7:
        return "moderate"
    return "severe"


def symptom_count_series(state: AppState, last: int = 14) -> list[tuple[str, int, str]]:
    """(date, symptom count, mood) for the most recent ``last`` logs."""
    logs = filter_logs(state)[-last:] if last > 0 else []
    return [(log.date, len(log.symptoms), log.mood) for log in logs]


@dataclass(frozen=True)
class Report:
    range: DateRange
    name: str
    age: int
    last_period: str
    therapy: str
    therapy_start: str | None
    total_days: int
    hard_days: int
    great_days: int
    average_score: float | None
    top_symptoms: list[SymptomFrequency]
    recent_notes: list[tuple[str, str]]


def build_report(state: AppState, rng: DateRange, top: int = 5, notes: int = 5) -> Report:
    logs = filter_logs(state, rng)
    counts = mood_counts(logs)
    scores = [p.score for p in mood_trend(state, rng)]
    recent = [(log.date, log.notes.strip()) for log in logs[-notes:] if log.notes.strip()] if notes > 0 else []

    p = state.profile
    return Report(
        range=rng,
        name=p.name,
        age=p.age,
        last_period=p.lastPeriodDate,
        therapy=p.hrtStatus,
        therapy_start=p.hrtStartDate,
        total_days=len(logs),
        hard_days=counts["hard"],
        great_days=counts["great"],
        average_score=round(sum(scores) / len(scores), 1) if scores else None,
        top_symptoms=symptom_frequency(state, rng)[:top],
        recent_notes=recent,
    )
