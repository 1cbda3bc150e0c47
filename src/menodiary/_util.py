"""Shared low-level helpers used across the core and cli.py."""

from __future__ import annotations

from datetime import date, datetime


def _now_local() -> datetime:
    return datetime.now().astimezone()


def _today() -> date:
    return _now_local().date()


def _to_ms(dt: datetime) -> int:
    return int(dt.timestamp() * 1000)


def _dt_from_ms(ms: int) -> datetime | None:
    try:
        return datetime.fromtimestamp(int(ms) / 1000).astimezone()
    except (TypeError, ValueError, OverflowError, OSError):
        return None


def _date_from_key(key: str) -> date | None:
    """Strict YYYY-MM-DD only; None for anything else."""
    key = str(key)
    try:
        d = date.fromisoformat(key)
    except ValueError:
        return None
    # 3.11+ also accepts 20240101 and 2024-W01-1
    return d if d.isoformat() == key else None


def _fmt_time(dt: datetime) -> str:
    # Windows-safe formatting
    try:
        return dt.strftime("%-I:%M %p")
    except ValueError:
        return dt.strftime("%I:%M %p").lstrip("0")
