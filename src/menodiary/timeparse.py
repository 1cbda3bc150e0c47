from __future__ import annotations

import re
from datetime import date, datetime, timedelta

from ._util import _today


def parse_day(value: str | None, today: date | None = None) -> str:
    """
    Parse a flexible user date into a YYYY-MM-DD log key.
    Accepts:
      - None / blank -> today
      - ISO dates "2026-02-25" (or a full ISO datetime; the date part is kept)
      - "2026/02/25", "25/02/2026"
      - keywords: "today", "yesterday", "tomorrow"
      - relative: "3 days ago", "1 week ago"
    Raises ValueError when nothing matches.
    """
    base = today or _today()
    if not value or not value.strip():
        return base.isoformat()

    s = value.strip().lower()

    # --- 1) keywords ---
    if s == "today":
        return base.isoformat()
    if s == "yesterday":
        return (base - timedelta(days=1)).isoformat()
    if s == "tomorrow":
        return (base + timedelta(days=1)).isoformat()

    # --- 2) relative like "3 days ago", "2 weeks ago" ---
    m = re.fullmatch(r"(\d+)\s*(day|days|week|weeks)\s*ago", s)
    if m:
        n = int(m.group(1))
        days = n * 7 if "week" in m.group(2) else n
        return (base - timedelta(days=days)).isoformat()

    # --- 3) ISO date / datetime ---
    try:
        return date.fromisoformat(s).isoformat()
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(value.strip()).date().isoformat()
    except ValueError:
        pass

    # --- 4) other common date formats ---
    for fmt in ("%Y/%m/%d", "%d/%m/%Y", "%d.%m.%Y"):
        try:
            return datetime.strptime(s, fmt).date().isoformat()
        except ValueError:
            continue

    raise ValueError(
        f"Could not parse date {value!r}. Try '2026-02-25', 'yesterday' or '3 days ago'."
    )


def parse_clock(value: str) -> str:
    """
    Parse a time of day like '9am', '7:30 pm', '20:00' into 'HH:MM'.
    """
    s = str(value).strip().lower()

    t_formats = [
        "%I:%M%p",
        "%I:%M %p",
        "%I%p",
        "%I %p",
        "%H:%M",
        "%H",
    ]
    for fmt in t_formats:
        try:
            t = datetime.strptime(s, fmt)
            return f"{t.hour:02d}:{t.minute:02d}"
        except ValueError:
            continue

    raise ValueError(f"Could not parse time of day {value!r}. Try '20:00' or '8pm'.")


def clock_hour(value: str) -> int | None:
    """Hour of a stored 'HH:MM' value, or None if it is malformed."""
    try:
        return int(parse_clock(value).split(":")[0])
    except ValueError:
        return None
