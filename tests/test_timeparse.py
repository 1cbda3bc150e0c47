"""Tests for timeparse.parse_day / parse_clock."""

from __future__ import annotations

from datetime import date

import pytest

from menodiary.timeparse import clock_hour, parse_clock, parse_day

TODAY = date(2026, 2, 25)


# ---- None / blank ----


def test_none_returns_today():
    assert parse_day(None, TODAY) == "2026-02-25"


def test_blank_returns_today():
    assert parse_day("  ", TODAY) == "2026-02-25"


def test_default_today_is_real_today():
    assert parse_day(None) == date.today().isoformat()


# ---- keywords ----


def test_today_keyword():
    assert parse_day("Today", TODAY) == "2026-02-25"


def test_yesterday():
    assert parse_day("yesterday", TODAY) == "2026-02-24"


def test_tomorrow():
    assert parse_day("tomorrow", TODAY) == "2026-02-26"


# ---- relative ----


def test_days_ago():
    assert parse_day("3 days ago", TODAY) == "2026-02-22"


def test_one_day_ago():
    assert parse_day("1 day ago", TODAY) == "2026-02-24"


def test_weeks_ago_crosses_month():
    assert parse_day("4 weeks ago", TODAY) == "2026-01-28"


# ---- absolute ----


def test_iso_date():
    assert parse_day("2024-01-05", TODAY) == "2024-01-05"


def test_iso_datetime_keeps_date():
    assert parse_day("2024-01-05T23:10:00-05:00", TODAY) == "2024-01-05"


def test_slash_formats():
    assert parse_day("2024/01/05", TODAY) == "2024-01-05"
    assert parse_day("05/01/2024", TODAY) == "2024-01-05"


def test_garbage_raises():
    with pytest.raises(ValueError):
        parse_day("next blue moon", TODAY)


# ---- clock ----


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("20:00", "20:00"),
        ("8pm", "20:00"),
        ("8 PM", "20:00"),
        ("7:30am", "07:30"),
        ("7:30 pm", "19:30"),
        ("9", "09:00"),
        ("12am", "00:00"),
    ],
)
def test_parse_clock(raw, expected):
    assert parse_clock(raw) == expected


def test_parse_clock_bad():
    with pytest.raises(ValueError):
        parse_clock("25:00")


def test_clock_hour():
    assert clock_hour("21:45") == 21
    assert clock_hour("later") is None
