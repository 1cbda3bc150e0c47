from __future__ import annotations

import argparse
import csv
import logging
import stat
import sys
from dataclasses import replace
from datetime import date, datetime
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from . import commands as cmds
from ._util import _dt_from_ms, _fmt_time, _now_local, _today
from .analytics import (
    INSUFFICIENT_DATA,
    PRESETS,
    DateRange,
    build_report,
    filter_logs,
    mood_score,
    mood_trend,
    resolve_range,
    severity_level,
    symptom_frequency,
    symptom_count_series,
    therapy_comparison,
)
from .insight import InsightClient, request_insight
from .paths import locate_data_file
from .reminders import evaluate_reminders
from .repository import check_in, clear_data, load_state, toggle_quick_symptom
from .safety import UnsafeDataPathError, assert_safe_data_path
from .schema import (
    HRT_STATUSES,
    MOODS,
    REMINDER_KINDS,
    SUPPORT_NETWORK,
    THEMES,
    AppState,
    DailyLog,
)
from .storage import Store
from .symptoms import CATEGORIES, QUICK_SYMPTOMS, by_category, is_known, symptom_name
from .timeparse import parse_day

MOOD_EMOJI = {"great": "😊", "normal": "😐", "hard": "😣"}


# -------------------------
# Argument helpers
# -------------------------

def _store(args: argparse.Namespace) -> Store:
    return Store(args.data_path)


def _load_ready(args: argparse.Namespace) -> AppState:
    """Load state, refusing to go on until onboarding is done."""
    state = load_state(_store(args))
    if not state.profile.isOnboarded:
        raise SystemExit("Not set up yet. Run `meno onboard --name <your name>` first.")
    return state


def _day(value: str | None) -> str:
    try:
        return parse_day(value)
    except ValueError as e:
        raise SystemExit(str(e)) from e


def _optional_day(value: str | None) -> date | None:
    if not value:
        return None
    return date.fromisoformat(_day(value))


def _parse_symptoms(raw: str | None) -> list[str]:
    if not raw:
        return []
    out: list[str] = []
    seen = set()
    for chunk in raw.replace(",", " ").split():
        key = chunk.strip().lower()
        if not key or key in seen:
            continue
        seen.add(key)
        out.append(key)
    for sid in out:
        if not is_known(sid):
            print(f"⚠️ Unknown symptom id {sid!r} (see `meno catalog`); logging it anyway.", file=sys.stderr)
    return out


def _range(args: argparse.Namespace, state: AppState) -> DateRange:
    return resolve_range(
        args.range,
        _today(),
        state,
        start=_optional_day(getattr(args, "start", None)),
        end=_optional_day(getattr(args, "end", None)),
    )


def _run(state_fn) -> AppState:
    try:
        return state_fn()
    except ValueError as e:
        raise SystemExit(str(e)) from e


# -------------------------
# Formatting helpers
# -------------------------

def _sparkline(values: list[float], vmin: float = 0.0, vmax: float = 100.0) -> str:
    if not values:
        return ""
    blocks = "▁▂▃▄▅▆▇█"
    span = max(1e-9, vmax - vmin)
    out = []
    for v in values:
        x = (v - vmin) / span
        idx = int(round(x * (len(blocks) - 1)))
        idx = max(0, min(len(blocks) - 1, idx))
        out.append(blocks[idx])
    return "".join(out)


def _pct(value: float | None) -> str:
    return "insufficient data" if value is None else f"{value:.1f}%"


def _bar(percentage: float, width: int = 20) -> str:
    return "▇" * int(round(percentage / 100 * width))


def _print_log_line(log: DailyLog) -> None:
    line = f"{log.date} — {MOOD_EMOJI.get(log.mood, '')} {log.mood} • {len(log.symptoms)} symptoms"
    if log.medicationTaken:
        line += " • 💊"
    if log.notes:
        line += f" ({log.notes})"
    print(line)


def _print_log_block(log: DailyLog) -> None:
    dt = _dt_from_ms(log.timestamp) if log.timestamp else None
    print("```")
    print("📒 Daily Log")
    print(f"- 📅 Date: {log.date}")
    if dt:
        print(f"- 🕒 Updated: {_fmt_time(dt)}")
    print(f"- {MOOD_EMOJI.get(log.mood, '🙂')} Mood: {log.mood} (score {mood_score(log)}/100, {severity_level(log)})")
    if log.symptoms:
        print(f"- 🩺 Symptoms: {', '.join(symptom_name(s) for s in log.symptoms)}")
    print(f"- 💊 Medication taken: {'yes' if log.medicationTaken else 'no'}")
    if log.timeline:
        events = []
        for ev in log.timeline:
            ev_dt = _dt_from_ms(ev.timestamp)
            events.append(f"{_fmt_time(ev_dt) if ev_dt else '?'} {symptom_name(ev.id)}")
        print(f"- ⏱️ Timeline: {'; '.join(events)}")
    if log.notes:
        print(f"- 📝 Notes: {log.notes}")
    print("```")


def _print_log(log: DailyLog, fmt: str) -> None:
    if fmt == "block":
        _print_log_block(log)
    else:
        _print_log_line(log)


# -------------------------
# CSV helpers
# -------------------------

LOG_CSV_FIELDS = [
    "date",
    "weekday",
    "mood",
    "score",
    "severity",
    "symptoms",
    "symptom_count",
    "medication_taken",
    "timeline_events",
    "notes",
]


def _write_csv(out_path: Path, fieldnames: list[str], rows: list[dict[str, Any]]) -> None:
    out_path.parent.mkdir(parents=True, exist_ok=True)
    with out_path.open("w", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=fieldnames, quoting=csv.QUOTE_MINIMAL)
        w.writeheader()
        if rows:
            w.writerows(rows)


# -------------------------
# Setup commands
# -------------------------

def cmd_init(args: argparse.Namespace) -> None:
    store = _store(args)
    state = store.load()
    if not store.save(state):
        raise SystemExit(f"Could not write {args.data_path} (see log output).")
    print(f"✅ Initialized data file: {args.data_path}")
    if not state.profile.isOnboarded:
        print("↳ next: meno onboard --name <your name>")


def cmd_where(args: argparse.Namespace) -> None:
    print(args.data_path)
    print(f"↳ using {args.data_source}")


def cmd_doctor(args: argparse.Namespace) -> None:
    print("=== menodiary Doctor ===")
    print("✅ Data path safety guard: OK")

    store = _store(args)
    if not store.exists():
        print("⚠️ Data file missing (run `meno init`)")
        print("=== Done ===")
        return

    state = store.load()
    print("✅ JSON readable: OK")
    print(f"👤 Onboarded: {'yes' if state.profile.isOnboarded else 'no'}")
    print(f"📒 Logs stored: {len(state.logs)}")

    mismatched = [
        log.date for log in state.logs.values()
        if not {e.id for e in log.timeline} <= set(log.symptoms)
    ]
    if mismatched:
        print(f"⚠️ Timeline events without a matching symptom on: {', '.join(sorted(mismatched))}")

    perms = stat.S_IMODE(args.data_path.stat().st_mode)
    print(f"🔐 File permissions: {oct(perms)} (target 0o600)")
    print("=== Done ===")


def cmd_catalog(args: argparse.Namespace) -> None:
    for cat in CATEGORIES:
        print(f"[{cat}]")
        for s in by_category(cat):
            quick = " ⚡" if s.id in QUICK_SYMPTOMS else ""
            print(f"- {s.id}: {s.name}{quick}")
    print("\n⚡ = quick symptom (use `meno tap <id>`)")


def cmd_onboard(args: argparse.Namespace) -> None:
    store = _store(args)
    current = store.load().profile
    profile = replace(
        current,
        name=args.name.strip(),
        age=args.age if args.age is not None else current.age,
        lastPeriodDate=_day(args.last_period) if args.last_period else current.lastPeriodDate,
        surgicalHistory=list(args.surgery) if args.surgery else current.surgicalHistory,
        maritalStatus=args.marital_status or current.maritalStatus,
        occupation=args.occupation or current.occupation,
        hrtStatus=args.therapy or current.hrtStatus,
        hrtStartDate=_day(args.therapy_start) if args.therapy_start else current.hrtStartDate,
        menopausePerception=args.perception or current.menopausePerception,
        supportNetwork=args.support or current.supportNetwork,
        bodyImageFeeling=args.body_image or current.bodyImageFeeling,
        goals=list(args.goal) if args.goal else current.goals,
    )
    _run(lambda: cmds.execute(store, cmds.CompleteOnboarding(profile)))
    print(f"🌸 Welcome, {profile.name.split()[0]}! Your diary is ready.")


# -------------------------
# Profile / notification commands
# -------------------------

def cmd_profile_show(args: argparse.Namespace) -> None:
    p = _load_ready(args).profile
    print("=== Profile ===")
    print(f"- name: {p.name}")
    print(f"- age: {p.age}")
    print(f"- theme: {p.theme}")
    print(f"- last period: {p.lastPeriodDate or 'not informed'}")
    print(f"- surgical history: {', '.join(p.surgicalHistory) or 'none'}")
    print(f"- marital status: {p.maritalStatus or '—'}")
    print(f"- occupation: {p.occupation or '—'}")
    therapy = p.hrtStatus
    if p.hrtStartDate:
        therapy += f" (since {p.hrtStartDate})"
    print(f"- hormone therapy: {therapy}")
    print(f"- support network: {p.supportNetwork}")
    if p.menopausePerception:
        print(f"- perception: {p.menopausePerception}")
    if p.bodyImageFeeling:
        print(f"- body image: {p.bodyImageFeeling}")
    if p.goals:
        print(f"- goals: {', '.join(p.goals)}")


def cmd_profile_set(args: argparse.Namespace) -> None:
    store = _store(args)
    state = _load_ready(args)

    to_run: list[cmds.Command] = []
    if args.name:
        to_run.append(cmds.SetName(args.name))
    if args.theme:
        to_run.append(cmds.SetTheme(args.theme))
    if args.therapy or args.therapy_start is not None:
        start = None
        if args.therapy_start is not None:
            start = _day(args.therapy_start) if args.therapy_start else ""
        to_run.append(cmds.SetTherapy(args.therapy or state.profile.hrtStatus, start))

    changes: dict[str, Any] = {}
    if args.age is not None:
        changes["age"] = args.age
    if args.last_period:
        changes["lastPeriodDate"] = _day(args.last_period)
    if args.occupation is not None:
        changes["occupation"] = args.occupation
    if args.marital_status is not None:
        changes["maritalStatus"] = args.marital_status
    if args.support:
        changes["supportNetwork"] = args.support
    if changes:
        to_run.append(cmds.SaveProfile(replace(state.profile, **changes)))

    if not to_run:
        raise SystemExit("Nothing to change (see `meno profile set --help`).")

    # profile snapshots must not undo the typed changes before them
    to_run.sort(key=lambda c: not isinstance(c, cmds.SaveProfile))
    for command in to_run:
        _run(lambda: cmds.execute(store, command))
    print("✅ Profile updated.")


def cmd_notify_show(args: argparse.Namespace) -> None:
    n = _load_ready(args).profile.notifications
    print("=== Notifications ===")
    print(f"- enabled: {'yes' if n.enabled else 'no'}")
    print(f"- daily time: {n.dailyTime}")
    for kind in REMINDER_KINDS:
        print(f"- {kind}: {'on' if getattr(n.reminderTypes, kind) else 'off'}")


def cmd_notify_set(args: argparse.Namespace) -> None:
    store = _store(args)
    _load_ready(args)

    to_run: list[cmds.Command] = []
    if args.enabled is not None or args.time:
        to_run.append(cmds.SetNotifications(enabled=args.enabled, daily_time=args.time))
    for kind in args.enable or []:
        to_run.append(cmds.SetReminderType(kind, True))
    for kind in args.disable or []:
        to_run.append(cmds.SetReminderType(kind, False))

    if not to_run:
        raise SystemExit("Nothing to change (see `meno notify set --help`).")
    for command in to_run:
        _run(lambda: cmds.execute(store, command))
    print("🔔 Notification settings updated.")


# -------------------------
# Log commands
# -------------------------

def cmd_checkin(args: argparse.Namespace) -> None:
    _load_ready(args)
    day = _day(args.date)
    symptoms = _parse_symptoms(args.symptoms)
    state = _run(lambda: check_in(_store(args), day, args.mood, symptoms, args.meds, args.notes or ""))
    log = state.logs[day]
    if args.format == "block":
        _print_log_block(log)
    else:
        print(f"✅ Check-in saved for {day}: {log.mood}, {len(log.symptoms)} symptoms")


def cmd_tap(args: argparse.Namespace) -> None:
    _load_ready(args)
    day = _day(args.date)
    sid = args.symptom.strip().lower()
    if not is_known(sid):
        print(f"⚠️ Unknown symptom id {sid!r} (see `meno catalog`); logging it anyway.", file=sys.stderr)
    log = toggle_quick_symptom(_store(args), day, sid).logs[day]
    if log.has_symptom(sid):
        n = sum(1 for e in log.timeline if e.id == sid)
        print(f"⚡ {symptom_name(sid)} logged on {day} ({n} today)")
    else:
        print(f"↩️ {symptom_name(sid)} removed from {day}")


def cmd_log_list(args: argparse.Namespace) -> None:
    state = _load_ready(args)
    logs = list(reversed(filter_logs(state)))  # newest first
    if not logs:
        print("No records yet. Do your first check-in!")
        return
    if args.format == "line":
        print("=== Previous records (newest first) ===")
    for log in logs[: args.limit]:
        _print_log(log, args.format)


def cmd_log_today(args: argparse.Namespace) -> None:
    state = _load_ready(args)
    today = _today().isoformat()
    log = state.logs.get(today)
    if log is None:
        print(f"No check-in yet for today ({today}). How are you feeling?")
        return
    _print_log(log, args.format)


def cmd_log_show(args: argparse.Namespace) -> None:
    state = _load_ready(args)
    day = _day(args.date)
    log = state.logs.get(day)
    if log is None:
        raise SystemExit(f"No log for {day}.")
    _print_log_block(log)


def cmd_log_chart(args: argparse.Namespace) -> None:
    series = symptom_count_series(_load_ready(args), last=args.last)
    if not series:
        print("No records yet. Do your first check-in!")
        return
    peak = max(n for _, n, _ in series)
    print(f"=== Symptoms per day (last {len(series)} logs) ===")
    print(f"- sparkline: {_sparkline([n for _, n, _ in series], vmax=max(peak, 1))}")
    for day, n, mood in series:
        print(f"- {day}: {n:>2} {'▇' * n} {MOOD_EMOJI.get(mood, '')}")


# -------------------------
# Analytics commands
# -------------------------

def cmd_trend(args: argparse.Namespace) -> None:
    state = _load_ready(args)
    rng = _range(args, state)
    points = list(mood_trend(state, rng))
    if not points:
        print(f"No records for {rng.label()}.")
        return

    scores = [p.score for p in points]
    print(f"=== Mood trend ({rng.label()}) ===")
    print(f"- days with data: {len(points)}")
    print(f"- average: {sum(scores) / len(scores):.1f}/100")
    print(f"- sparkline: {_sparkline(scores)}")
    print("\n[Daily scores]")
    for p in points:
        print(f"- {p.date}: {p.score:>3} {_bar(p.score)}")


def cmd_symptoms(args: argparse.Namespace) -> None:
    state = _load_ready(args)
    rng = _range(args, state)
    table = symptom_frequency(state, rng)
    if not table:
        print(f"No symptoms recorded for {rng.label()}.")
        return
    print(f"=== Symptom frequency ({rng.label()}) ===")
    for row in table[: args.limit]:
        print(f"- {row.name}: {row.count}x ({row.percentage:.0f}%) {_bar(row.percentage)}")


def cmd_therapy(args: argparse.Namespace) -> None:
    state = _load_ready(args)
    rng = _range(args, state)
    result = therapy_comparison(state, rng)

    print("=== Therapy before/after ===")
    if result.status == INSUFFICIENT_DATA:
        print(f"Insufficient data: {result.reason}.")
        if result.start_date:
            print(f"- start: {result.start_date} (before: {result.before_days} days, after: {result.after_days} days)")
        return

    print(f"- therapy: {state.profile.hrtStatus} since {result.start_date}")
    print(f"- days logged before: {result.before_days}, after: {result.after_days}")
    for row in result.rows:
        verdict = {True: "improved", False: "worse", None: "no change"}[row.improved]
        print(
            f"- {row.metric.label}: {_pct(row.before)} → {_pct(row.after)} "
            f"({row.change:+.1f} pts, {verdict})"
        )


def cmd_report(args: argparse.Namespace) -> None:
    state = _load_ready(args)
    rng = _range(args, state)
    r = build_report(state, rng)

    print("==============================")
    print("Follow-up report")
    print("==============================\n")
    print("[PROFILE]")
    print(f"- name: {r.name}")
    print(f"- age: {r.age}")
    print(f"- last period: {r.last_period or 'not informed'}")
    therapy = r.therapy + (f" (since {r.therapy_start})" if r.therapy_start else "")
    print(f"- hormone therapy: {therapy}")

    print(f"\n[PERIOD {r.range.label()}]")
    print(f"- days logged: {r.total_days}")
    print(f"- hard days: {r.hard_days}")
    print(f"- great days: {r.great_days}")
    if r.average_score is not None:
        print(f"- average well-being: {r.average_score:.1f}/100")

    print("\n[TOP SYMPTOMS]")
    if not r.top_symptoms:
        print("Not enough data.")
    for row in r.top_symptoms:
        print(f"- {row.name}: {row.count}x ({row.percentage:.0f}%)")

    if r.recent_notes:
        print("\n[RECENT NOTES]")
        for d, note in r.recent_notes:
            print(f"- {d}: \"{note}\"")

    print("\nℹ️ This record is personal and does not replace a professional medical evaluation.")


def cmd_export(args: argparse.Namespace) -> None:
    state = _load_ready(args)
    rng = _range(args, state)

    rows: list[dict[str, Any]] = []
    for log in filter_logs(state, rng):
        rows.append(
            {
                "date": log.date,
                "weekday": date.fromisoformat(log.date).strftime("%a"),
                "mood": log.mood,
                "score": mood_score(log),
                "severity": severity_level(log),
                "symptoms": ", ".join(log.symptoms),
                "symptom_count": len(log.symptoms),
                "medication_taken": "yes" if log.medicationTaken else "no",
                "timeline_events": len(log.timeline),
                "notes": log.notes.strip(),
            }
        )

    out_path = Path(args.csv).expanduser().resolve()
    _write_csv(out_path, LOG_CSV_FIELDS, rows)

    if rows:
        print(f"📄 Exported {len(rows)} rows ({rng.label()}) → {out_path}")
    else:
        print(f"📄 Exported header-only CSV (no rows for {rng.label()}) → {out_path}")


def cmd_remind(args: argparse.Namespace) -> None:
    state = _load_ready(args)
    now = _now_local()
    if args.now:
        try:
            now = datetime.fromisoformat(args.now)
        except ValueError as e:
            raise SystemExit(f"--now must be an ISO datetime (got {args.now!r})") from e

    if not state.profile.notifications.enabled:
        print("🔕 Notifications are off (enable with `meno notify set --on`).")
        return

    reminders = evaluate_reminders(state, now, permission_granted=not args.no_permission)
    if not reminders:
        print("No reminders right now.")
        return
    for r in reminders:
        print(f"🔔 {r.title}: {r.body}")


def cmd_insight(args: argparse.Namespace) -> None:
    state = _load_ready(args)
    print("✨ Virtual coach")
    print(request_insight(state, InsightClient.from_env()))


def cmd_reset(args: argparse.Namespace) -> None:
    if not args.yes:
        raise SystemExit("Refusing to reset without --yes (this deletes your profile and every log).")
    before = len(_store(args).load().logs)
    clear_data(_store(args))
    print(f"🧹 All data erased ({before} logs). Run `meno onboard` to start again.")


# -------------------------
# Parser
# -------------------------

def _add_range_args(p: argparse.ArgumentParser, default: str = "30d") -> None:
    p.add_argument("--range", choices=PRESETS, default=default,
                   help=f"Report window: {', '.join(PRESETS)} (default {default})")
    p.add_argument("--start", default=None, help="Custom range start (with --range custom)")
    p.add_argument("--end", default=None, help="Custom range end (with --range custom)")


def main(argv=None) -> None:
    load_dotenv()

    p = argparse.ArgumentParser(prog="meno", description="Menopause symptom diary")
    p.add_argument("--data", default=None, help="Path to data JSON (overrides env/default)")
    p.add_argument("--profile", default=None, help="Profile name (e.g. dev/test)")
    p.add_argument("--allow-repo-data-path", action="store_true", help="Override safety guard (not recommended)")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging on stderr")

    sub = p.add_subparsers(dest="cmd", required=True)
    sub.add_parser("init", help="Initialize data store safely").set_defaults(func=cmd_init)
    sub.add_parser("where", help="Show which data file is active and why").set_defaults(func=cmd_where)
    sub.add_parser("doctor", help="Run safety + health checks").set_defaults(func=cmd_doctor)
    sub.add_parser("catalog", help="List known symptom ids").set_defaults(func=cmd_catalog)

    onboard = sub.add_parser("onboard", help="Create your profile")
    onboard.add_argument("--name", required=True)
    onboard.add_argument("--age", type=int, default=None)
    onboard.add_argument("--last-period", dest="last_period", default=None, help="Date of last period")
    onboard.add_argument("--surgery", action="append", default=None,
                         help="Surgical history entry (repeatable, e.g. hysterectomy)")
    onboard.add_argument("--marital-status", dest="marital_status", default=None)
    onboard.add_argument("--occupation", default=None)
    onboard.add_argument("--therapy", choices=HRT_STATUSES, default=None, help="Hormone therapy status")
    onboard.add_argument("--therapy-start", dest="therapy_start", default=None, help="Hormone therapy start date")
    onboard.add_argument("--perception", default=None, help="How you perceive this phase")
    onboard.add_argument("--support", choices=SUPPORT_NETWORK, default=None, help="Do you have a support network?")
    onboard.add_argument("--body-image", dest="body_image", default=None)
    onboard.add_argument("--goal", action="append", default=None, help="Goal (repeatable)")
    onboard.set_defaults(func=cmd_onboard)

    # ---- profile ----
    profile = sub.add_parser("profile", help="Show or change your profile")
    profile_sub = profile.add_subparsers(dest="profile_cmd", required=True)
    profile_sub.add_parser("show", help="Show profile").set_defaults(func=cmd_profile_show)

    profile_set = profile_sub.add_parser("set", help="Change profile fields")
    profile_set.add_argument("--name", default=None)
    profile_set.add_argument("--theme", choices=THEMES, default=None)
    profile_set.add_argument("--therapy", choices=HRT_STATUSES, default=None)
    profile_set.add_argument("--therapy-start", dest="therapy_start", default=None,
                             help="Therapy start date ('' clears it)")
    profile_set.add_argument("--age", type=int, default=None)
    profile_set.add_argument("--last-period", dest="last_period", default=None)
    profile_set.add_argument("--occupation", default=None)
    profile_set.add_argument("--marital-status", dest="marital_status", default=None)
    profile_set.add_argument("--support", choices=SUPPORT_NETWORK, default=None)
    profile_set.set_defaults(func=cmd_profile_set)

    # ---- notify ----
    notify = sub.add_parser("notify", help="Reminder settings")
    notify_sub = notify.add_subparsers(dest="notify_cmd", required=True)
    notify_sub.add_parser("show", help="Show reminder settings").set_defaults(func=cmd_notify_show)

    notify_set = notify_sub.add_parser("set", help="Change reminder settings")
    onoff = notify_set.add_mutually_exclusive_group()
    onoff.add_argument("--on", dest="enabled", action="store_const", const=True, default=None)
    onoff.add_argument("--off", dest="enabled", action="store_const", const=False)
    notify_set.add_argument("--time", default=None, help="Daily reminder time (e.g. 20:00 or 8pm)")
    notify_set.add_argument("--enable", action="append", choices=REMINDER_KINDS, default=None)
    notify_set.add_argument("--disable", action="append", choices=REMINDER_KINDS, default=None)
    notify_set.set_defaults(func=cmd_notify_set)

    # ---- logging ----
    checkin = sub.add_parser("checkin", help="Save the daily check-in")
    checkin.add_argument("--date", default=None, help="Day to log (default today; e.g. yesterday, 2026-02-25)")
    checkin.add_argument("--mood", choices=MOODS, default="normal")
    checkin.add_argument("--symptoms", default=None, help="Comma or space-separated symptom ids")
    checkin.add_argument("--meds", action="store_true", help="Medication / therapy taken today")
    checkin.add_argument("--notes", default=None)
    checkin.add_argument("--format", choices=["line", "block"], default="line")
    checkin.set_defaults(func=cmd_checkin)

    tap = sub.add_parser("tap", help="Toggle a quick symptom for a day")
    tap.add_argument("symptom", help="Symptom id (see `meno catalog`)")
    tap.add_argument("--date", default=None)
    tap.set_defaults(func=cmd_tap)

    log = sub.add_parser("log", help="Browse daily logs")
    log_sub = log.add_subparsers(dest="log_cmd", required=True)

    log_list = log_sub.add_parser("list", help="List logs (newest first)")
    log_list.add_argument("--limit", type=int, default=30)
    log_list.add_argument("--format", choices=["line", "block"], default="line")
    log_list.set_defaults(func=cmd_log_list)

    log_today = log_sub.add_parser("today", help="Show today's log")
    log_today.add_argument("--format", choices=["line", "block"], default="block")
    log_today.set_defaults(func=cmd_log_today)

    log_show = log_sub.add_parser("show", help="Show one day's log")
    log_show.add_argument("date")
    log_show.set_defaults(func=cmd_log_show)

    log_chart = log_sub.add_parser("chart", help="Symptom count per day for the most recent logs")
    log_chart.add_argument("--last", type=int, default=14)
    log_chart.set_defaults(func=cmd_log_chart)

    # ---- analytics ----
    trend = sub.add_parser("trend", help="Daily well-being trend")
    _add_range_args(trend)
    trend.set_defaults(func=cmd_trend)

    symptoms = sub.add_parser("symptoms", help="Most frequent symptoms")
    _add_range_args(symptoms)
    symptoms.add_argument("--limit", type=int, default=10)
    symptoms.set_defaults(func=cmd_symptoms)

    therapy = sub.add_parser("therapy", help="Compare before/after hormone therapy")
    _add_range_args(therapy, default="all")
    therapy.set_defaults(func=cmd_therapy)

    report = sub.add_parser("report", help="Follow-up report for your doctor")
    _add_range_args(report)
    report.set_defaults(func=cmd_report)

    export = sub.add_parser("export", help="Export logs to a clinician-friendly CSV")
    export.add_argument("--csv", required=True, help="Output CSV path (e.g. ~/diary.csv)")
    _add_range_args(export)
    export.set_defaults(func=cmd_export)

    remind = sub.add_parser("remind", help="Evaluate reminders now")
    remind.add_argument("--no-permission", dest="no_permission", action="store_true",
                        help="Behave as if notification permission was denied")
    remind.add_argument("--now", default=None, help="Evaluate at this ISO datetime instead of now")
    remind.set_defaults(func=cmd_remind)

    sub.add_parser("insight", help="Ask the virtual coach about your last week").set_defaults(func=cmd_insight)

    reset = sub.add_parser("reset", help="Erase ALL data (requires --yes)")
    reset.add_argument("--yes", action="store_true", help="Confirm destructive reset")
    reset.set_defaults(func=cmd_reset)

    args = p.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    location = locate_data_file(args.data, args.profile)
    args.data_path = location.path
    args.data_source = location.source

    try:
        assert_safe_data_path(args.data_path, args.allow_repo_data_path)
    except UnsafeDataPathError as e:
        print(f"🚫 {e}", file=sys.stderr)
        raise SystemExit(2) from e

    args.func(args)
