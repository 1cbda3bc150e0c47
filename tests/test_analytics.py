"""Tests for the analytics engine."""

from __future__ import annotations

from datetime import date

import pytest

from menodiary.analytics import (
    DEFAULT_WINDOW_DAYS,
    GOOD_SLEEP,
    HOT_FLASH_FREQUENCY,
    INSUFFICIENT_DATA,
    OK,
    ComparisonMetric,
    DateRange,
    build_report,
    filter_logs,
    mood_counts,
    mood_score,
    mood_trend,
    resolve_range,
    severity_level,
    symptom_count_series,
    symptom_frequency,
    therapy_comparison,
)
from menodiary.schema import DailyLog, default_state

TODAY = date(2024, 1, 31)


def _state(*logs: DailyLog, hrt: str = "none", start: str | None = None):
    s = default_state()
    for log in logs:
        s.logs[log.date] = log
    s.profile.hrtStatus = hrt
    s.profile.hrtStartDate = start
    return s


def _log(d: str, mood: str = "normal", symptoms=(), notes: str = "") -> DailyLog:
    return DailyLog(date=d, mood=mood, symptoms=list(symptoms), notes=notes)


@pytest.fixture()
def scenario():
    return _state(
        _log("2024-01-01", "hard", ["hot_flash", "insomnia"]),
        _log("2024-01-02", "great"),
    )


# ---- mood score / trend ----


def test_scenario_mood_trend(scenario):
    points = list(mood_trend(scenario))
    assert [(p.date, p.score) for p in points] == [("2024-01-01", 10), ("2024-01-02", 90)]


@pytest.mark.parametrize("mood", ["great", "normal", "hard"])
@pytest.mark.parametrize("n", [0, 1, 3, 6, 7, 20])
def test_mood_score_bounded(mood, n):
    score = mood_score(_log("2024-01-01", mood, [f"s{i}" for i in range(n)]))
    assert 0 <= score <= 100


def test_mood_score_penalty_caps_at_30():
    assert mood_score(_log("2024-01-01", "great", [f"s{i}" for i in range(10)])) == 60


def test_mood_score_floors_at_zero():
    assert mood_score(_log("2024-01-01", "hard", [f"s{i}" for i in range(10)])) == 0


def test_mood_trend_is_date_ascending_and_restartable():
    s = _state(_log("2024-01-03"), _log("2024-01-01"), _log("2024-01-02"))
    first = [p.date for p in mood_trend(s)]
    second = [p.date for p in mood_trend(s)]
    assert first == second == ["2024-01-01", "2024-01-02", "2024-01-03"]


def test_mood_trend_respects_range():
    s = _state(_log("2024-01-01"), _log("2024-01-10"), _log("2024-01-20"))
    rng = DateRange(date(2024, 1, 5), date(2024, 1, 20))
    assert [p.date for p in mood_trend(s, rng)] == ["2024-01-10", "2024-01-20"]


def test_mood_trend_is_lazy(scenario):
    it = mood_trend(scenario)
    assert next(it).date == "2024-01-01"


# ---- symptom frequency ----


def test_scenario_symptom_ranking(scenario):
    table = symptom_frequency(scenario)
    assert [(r.symptom_id, r.count, r.percentage) for r in table] == [
        ("hot_flash", 1, 50.0),
        ("insomnia", 1, 50.0),
    ]


def test_symptom_frequency_sorted_by_count_then_first_seen():
    s = _state(
        _log("2024-01-01", symptoms=["b", "a"]),
        _log("2024-01-02", symptoms=["a", "c"]),
        _log("2024-01-03", symptoms=["c"]),
    )
    assert [(r.symptom_id, r.count) for r in symptom_frequency(s)] == [("a", 2), ("c", 2), ("b", 1)]


def test_symptom_frequency_percentages_bounded():
    s = _state(
        _log("2024-01-01", symptoms=["a", "b", "c"]),
        _log("2024-01-02", symptoms=["a"]),
        _log("2024-01-03"),
    )
    table = symptom_frequency(s)
    assert all(0 <= r.percentage <= 100 for r in table)
    assert sum(r.count for r in table) <= 3 * 3
    assert table[0].percentage == pytest.approx(66.7)


def test_symptom_frequency_empty_range():
    s = _state(_log("2024-01-01", symptoms=["a"]))
    rng = DateRange(date(2023, 1, 1), date(2023, 1, 31))
    assert symptom_frequency(s, rng) == []


def test_symptom_frequency_name_lookup(scenario):
    assert symptom_frequency(scenario)[0].name == "Hot flashes"


# ---- therapy comparison ----


def _therapy_state():
    return _state(
        _log("2024-01-01", symptoms=["hot_flash", "insomnia"]),
        _log("2024-01-02", symptoms=["hot_flash"]),
        _log("2024-01-10", symptoms=["insomnia"]),
        _log("2024-01-11"),
        hrt="systemic",
        start="2024-01-10",
    )


def test_therapy_comparison_buckets_and_polarity():
    result = therapy_comparison(_therapy_state())
    assert result.status == OK
    assert result.available
    assert (result.before_days, result.after_days) == (2, 2)

    hot, sleep = result.rows
    assert hot.metric is HOT_FLASH_FREQUENCY
    assert (hot.before, hot.after) == (100.0, 0.0)
    assert hot.change == -100.0
    assert hot.improved is True

    assert sleep.metric is GOOD_SLEEP
    assert (sleep.before, sleep.after) == (50.0, 50.0)
    assert sleep.improved is None


def test_therapy_start_day_counts_as_after():
    s = _state(_log("2024-01-09"), _log("2024-01-10"), hrt="local", start="2024-01-10")
    result = therapy_comparison(s)
    assert (result.before_days, result.after_days) == (1, 1)


def test_rise_in_good_sleep_is_improvement():
    s = _state(
        _log("2024-01-01", symptoms=["insomnia"]),
        _log("2024-01-05"),
        hrt="phyto",
        start="2024-01-03",
    )
    sleep = therapy_comparison(s).rows[1]
    assert (sleep.before, sleep.after) == (0.0, 100.0)
    assert sleep.improved is True


def test_custom_metric_polarity():
    more_is_worse = ComparisonMetric("anx", "Anxiety days", "anxiety", True, higher_is_better=False)
    s = _state(
        _log("2024-01-01"),
        _log("2024-01-05", symptoms=["anxiety"]),
        hrt="systemic",
        start="2024-01-03",
    )
    row = therapy_comparison(s, metrics=(more_is_worse,)).rows[0]
    assert row.improved is False


def test_therapy_insufficient_without_therapy(scenario):
    result = therapy_comparison(scenario)
    assert result.status == INSUFFICIENT_DATA
    assert result.rows == []


def test_therapy_insufficient_without_start_date():
    s = _therapy_state()
    s.profile.hrtStartDate = None
    assert therapy_comparison(s).status == INSUFFICIENT_DATA


@pytest.mark.parametrize("start", ["2023-12-01", "2024-02-01"])
def test_therapy_insufficient_when_a_bucket_is_empty(start):
    s = _therapy_state()
    s.profile.hrtStartDate = start
    result = therapy_comparison(s)
    assert result.status == INSUFFICIENT_DATA
    assert result.rows == []
    assert result.before_days + result.after_days == 4


def test_therapy_insufficient_with_no_logs():
    s = _state(hrt="systemic", start="2024-01-10")
    assert therapy_comparison(s).status == INSUFFICIENT_DATA


def test_metric_percentage_of_empty_bucket_is_none():
    assert HOT_FLASH_FREQUENCY.percentage([]) is None


# ---- date ranges ----


@pytest.mark.parametrize("preset,days", [("7d", 7), ("30d", 30), ("90d", 90)])
def test_preset_windows(preset, days):
    rng = resolve_range(preset, TODAY)
    assert rng.end == TODAY
    assert rng.days == days


def test_all_time_spans_logs():
    s = _state(_log("2023-11-05"), _log("2024-01-02"))
    rng = resolve_range("all", TODAY, s)
    assert rng == DateRange(date(2023, 11, 5), TODAY)


def test_all_time_with_future_log_extends_end():
    s = _state(_log("2024-02-10"))
    assert resolve_range("all", TODAY, s).end == date(2024, 2, 10)


def test_all_time_without_logs_falls_back():
    rng = resolve_range("all", TODAY, default_state())
    assert rng.end == TODAY
    assert rng.days == DEFAULT_WINDOW_DAYS


def test_custom_range_swaps_reversed_bounds():
    rng = resolve_range("custom", TODAY, start=date(2024, 1, 20), end=date(2024, 1, 5))
    assert rng == DateRange(date(2024, 1, 5), date(2024, 1, 20))


def test_custom_range_missing_bound_falls_back():
    rng = resolve_range("custom", TODAY, start=date(2024, 1, 20))
    assert rng.days == DEFAULT_WINDOW_DAYS


def test_unknown_preset():
    with pytest.raises(ValueError):
        resolve_range("fortnight", TODAY)


def test_range_is_inclusive():
    s = _state(_log("2024-01-05"), _log("2024-01-06"), _log("2024-01-07"))
    rng = DateRange(date(2024, 1, 5), date(2024, 1, 7))
    assert len(filter_logs(s, rng)) == 3


def test_filter_skips_bad_keys():
    s = _state(_log("2024-01-05"))
    s.logs["garbage"] = _log("garbage")
    s.logs["20240106"] = _log("20240106")
    s.logs["2024-W01-3"] = _log("2024-W01-3")
    assert [log.date for log in filter_logs(s)] == ["2024-01-05"]


# ---- report helpers ----


def test_mood_counts(scenario):
    assert mood_counts(filter_logs(scenario)) == {"great": 1, "normal": 0, "hard": 1}


@pytest.mark.parametrize(
    "mood,n,level",
    [
        ("great", 1, "good"),
        ("great", 2, "mild"),
        ("normal", 3, "mild"),
        ("normal", 4, "moderate"),
        ("hard", 5, "moderate"),
        ("hard", 6, "severe"),
    ],
)
def test_severity_level(mood, n, level):
    assert severity_level(_log("2024-01-01", mood, [f"s{i}" for i in range(n)])) == level


def test_severity_level_missing_log():
    assert severity_level(None) == "none"


def test_symptom_count_series_keeps_latest():
    s = _state(*[_log(f"2024-01-{d:02d}", symptoms=["a"] * (d % 3)) for d in range(1, 21)])
    series = symptom_count_series(s, last=14)
    assert len(series) == 14
    assert series[-1] == ("2024-01-20", 2, "normal")


def test_build_report(scenario):
    scenario.logs["2024-01-02"].notes = "felt light"
    scenario.profile.name = "Ana"
    r = build_report(scenario, resolve_range("all", TODAY, scenario))
    assert r.name == "Ana"
    assert r.total_days == 2
    assert (r.hard_days, r.great_days) == (1, 1)
    assert r.average_score == 50.0
    assert [row.symptom_id for row in r.top_symptoms] == ["hot_flash", "insomnia"]
    assert r.recent_notes == [("2024-01-02", "felt light")]


def test_build_report_empty_range():
    r = build_report(default_state(), resolve_range("7d", TODAY))
    assert r.total_days == 0
    assert r.average_score is None
    assert r.top_symptoms == []
