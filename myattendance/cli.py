"""
CLI (Command Line Interface).

This module provides quick terminal commands, e.g.:

    myattendance subject add "Operating Systems"
    myattendance subject add "OS Lab" --lab
    myattendance timetable assign 1 "Operating Systems"
    myattendance mark 2026-01-12 "Operating Systems" absent
    myattendance stats "Operating Systems"
    myattendance summary
    myattendance history "Operating Systems"
    myattendance calendar --month 2026-01
    myattendance interactive

Note:
- The interactive menu lives in myattendance/interactive.py
- Subjects can be given by id or by (case-insensitive) name
- Every handler returns an exit code; main() exits with it
"""

from __future__ import annotations

import argparse
import logging
import os
from datetime import date
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.markup import escape

from myattendance.ledger import prune_subject, toggle_status
from myattendance.model import LAB, STATUSES, THEORY, State, Subject, Weekday
from myattendance.remote import RemoteStore, RemoteStoreError
from myattendance.report import (
    print_allowances,
    print_calendar,
    print_history,
    print_subject_stats,
    print_summary,
    print_timetable,
)
from myattendance.safe_absence import checkpoint_allowances
from myattendance.semester import EXAM_CHECKPOINTS, SEMESTER_CALENDAR
from myattendance.stats import attendance_history, meets_on
from myattendance.storage import load_state, save_state
from myattendance.timetable import assign, new_subject, remove_subject, rename_subject, unassign

REMOTE_ENV = "MYATTENDANCE_REMOTE"

console = Console()


def parse_date(text: str) -> date:
    try:
        return date.fromisoformat((text or "").strip())
    except ValueError:
        raise ValueError(f"Invalid date {text!r}, expected YYYY-MM-DD") from None


def find_subject(state: State, ref: str) -> Subject:
    """
    Resolve a subject by id, or by case-insensitive name.
    """
    ref = (ref or "").strip()
    if not ref:
        raise ValueError("Please provide a subject.")

    by_id = state.subject_by_id(ref)
    if by_id is not None:
        return by_id

    matches = [s for s in state.subjects if s.name.lower() == ref.lower()]
    if len(matches) == 1:
        return matches[0]
    if len(matches) > 1:
        raise ValueError(f"Subject name {ref!r} is ambiguous, use the id instead.")
    raise ValueError(f"Unknown subject: {ref!r}")


def _today(args: argparse.Namespace) -> date:
    return parse_date(args.today) if args.today else date.today()


def _remote(args: argparse.Namespace) -> Optional[RemoteStore]:
    url = args.remote or os.environ.get(REMOTE_ENV, "")
    return RemoteStore(url) if url.strip() else None


def _cmd_subject(args: argparse.Namespace, state: State) -> int:
    if args.subject_command == "list":
        if not state.subjects:
            console.print("No subjects yet.")
            return 0
        for s in state.subjects:
            console.print(f"{s.id} | {escape(s.name)} | {s.type}")
        return 0

    if args.subject_command == "add":
        sub = new_subject(args.name, LAB if args.lab else THEORY)
        state.subjects.append(sub)
        save_state(state, args.state)
        console.print(f"Added: {escape(sub.name)} ({sub.type}) id={sub.id}")
        return 0

    sub = find_subject(state, args.subject)

    if args.subject_command == "rename":
        state.subjects = rename_subject(state.subjects, sub.id, args.name)
        save_state(state, args.state)
        console.print(f"Renamed: {escape(sub.name)} -> {escape(args.name.strip())}")
        return 0

    if args.subject_command == "remove":
        state.subjects, state.timetable = remove_subject(state.subjects, state.timetable, sub.id)
        state.attendance = prune_subject(state.attendance, sub.id)
        save_state(state, args.state)
        console.print(f"Removed: {escape(sub.name)}")
        return 0

    return 2


def _cmd_timetable(args: argparse.Namespace, state: State) -> int:
    if args.timetable_command == "show":
        print_timetable(console, state)
        return 0

    sub = find_subject(state, args.subject)
    if args.timetable_command == "assign":
        state.timetable = assign(state.timetable, args.weekday, sub.id)
        verb = "Assigned"
    else:
        state.timetable = unassign(state.timetable, args.weekday, sub.id)
        verb = "Unassigned"
    save_state(state, args.state)
    console.print(f"{verb}: {escape(sub.name)} on {Weekday(args.weekday).label}")
    return 0


def _cmd_mark(args: argparse.Namespace, state: State) -> int:
    """
    Toggle a status for one subject on one date.
    """
    day = parse_date(args.date)
    sub = find_subject(state, args.subject)

    entry = next((e for e in SEMESTER_CALENDAR if e.date == day), None)
    if entry is None:
        console.print(f"Warning: {day} is outside the semester calendar (not counted).")
    elif not entry.is_instructional:
        console.print(f"Warning: {day} is '{entry.title}' ({entry.type}), not an instructional day (not counted).")
    elif not meets_on(sub.id, entry, state.timetable):
        console.print(f"Warning: {escape(sub.name)} is not on the timetable for {day} (not counted).")

    state.attendance = toggle_status(state.attendance, day, sub.id, args.status)
    save_state(state, args.state)

    current = state.attendance.get(day.isoformat(), {}).get(sub.id, "present")
    console.print(f"{day} {escape(sub.name)}: {current}")
    return 0


def _cmd_stats(args: argparse.Namespace, state: State) -> int:
    sub = find_subject(state, args.subject)
    print_subject_stats(console, sub, SEMESTER_CALENDAR, state, EXAM_CHECKPOINTS, _today(args))
    allowances = checkpoint_allowances(sub, SEMESTER_CALENDAR, state.attendance, state.timetable, EXAM_CHECKPOINTS)
    print_allowances(console, allowances)
    return 0


def _cmd_summary(args: argparse.Namespace, state: State) -> int:
    print_summary(console, SEMESTER_CALENDAR, state, EXAM_CHECKPOINTS, _today(args))
    return 0


def _cmd_history(args: argparse.Namespace, state: State) -> int:
    sub = find_subject(state, args.subject)
    until = parse_date(args.until) if args.until else None
    since = parse_date(args.since) if args.since else None
    history = attendance_history(sub, SEMESTER_CALENDAR, state.attendance, state.timetable, until, since)
    print_history(console, sub, history)
    return 0


def _cmd_calendar(args: argparse.Namespace, state: State) -> int:
    print_calendar(console, SEMESTER_CALENDAR, state, args.month)
    return 0


def _cmd_pull(args: argparse.Namespace) -> int:
    remote = _remote(args)
    if remote is None:
        console.print(f"No remote configured (use --remote URL or set {REMOTE_ENV}).")
        return 1
    state = remote.load()
    if state is None:
        console.print("Remote document does not exist yet. Push first.")
        return 1
    save_state(state, args.state)
    console.print(f"Pulled {len(state.subjects)} subjects from {remote.url}")
    return 0


def _cmd_push(args: argparse.Namespace, state: State) -> int:
    remote = _remote(args)
    if remote is None:
        console.print(f"No remote configured (use --remote URL or set {REMOTE_ENV}).")
        return 1
    remote.save(state)
    console.print(f"Pushed {len(state.subjects)} subjects to {remote.url}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    """
    Build the argparse CLI parser with sub-commands.
    """
    parser = argparse.ArgumentParser(prog="myattendance", description="MyAttendance CLI")
    parser.add_argument("--state", type=Path, default=None, help="Path to state.json (default: inside the package)")
    parser.add_argument("--remote", type=str, default=None, help=f"Remote document URL (default: ${REMOTE_ENV})")
    parser.add_argument("--today", type=str, default=None, help="Pretend today is YYYY-MM-DD")
    parser.add_argument("--verbose", "-v", action="store_true", help="Show diagnostic log messages")
    sub = parser.add_subparsers(dest="command", required=True)

    p_subject = sub.add_parser("subject", help="Manage subjects")
    subject_sub = p_subject.add_subparsers(dest="subject_command", required=True)
    p_add = subject_sub.add_parser("add", help="Add a subject")
    p_add.add_argument("name", type=str, help="Subject name")
    p_add.add_argument("--lab", action="store_true", help="Lab subject (counts double)")
    p_rename = subject_sub.add_parser("rename", help="Rename a subject")
    p_rename.add_argument("subject", type=str, help="Subject id or name")
    p_rename.add_argument("name", type=str, help="New name")
    p_remove = subject_sub.add_parser("remove", help="Remove a subject and its attendance")
    p_remove.add_argument("subject", type=str, help="Subject id or name")
    subject_sub.add_parser("list", help="List subjects")

    p_tt = sub.add_parser("timetable", help="Show or edit the weekly timetable")
    tt_sub = p_tt.add_subparsers(dest="timetable_command", required=True)
    tt_sub.add_parser("show", help="Show the weekly timetable")
    for name, help_text in (("assign", "Add a subject to a weekday"), ("unassign", "Remove a subject from a weekday")):
        p = tt_sub.add_parser(name, help=help_text)
        p.add_argument("weekday", type=int, choices=[int(wd) for wd in Weekday], help="1=Mon .. 5=Fri")
        p.add_argument("subject", type=str, help="Subject id or name")

    p_mark = sub.add_parser("mark", help="Toggle attendance status for a class")
    p_mark.add_argument("date", type=str, help="Date (YYYY-MM-DD)")
    p_mark.add_argument("subject", type=str, help="Subject id or name")
    p_mark.add_argument("status", type=str, choices=STATUSES, help="Status to set (again to clear)")

    p_stats = sub.add_parser("stats", help="Attendance stats of one subject")
    p_stats.add_argument("subject", type=str, help="Subject id or name")

    sub.add_parser("summary", help="Attendance summary of all subjects")

    p_hist = sub.add_parser("history", help="Absences and ODs of one subject")
    p_hist.add_argument("subject", type=str, help="Subject id or name")
    p_hist.add_argument("--since", type=str, default=None, help="First date (inclusive)")
    p_hist.add_argument("--until", type=str, default=None, help="Last date (inclusive)")

    p_cal = sub.add_parser("calendar", help="Show the academic calendar")
    p_cal.add_argument("--month", type=str, default=None, help="Only this month (YYYY-MM)")

    sub.add_parser("pull", help="Replace local state with the remote document")
    sub.add_parser("push", help="Upload local state to the remote document")

    sub.add_parser("interactive", help="Interactive menu mode")

    return parser


def _dispatch(args: argparse.Namespace) -> int:
    if args.command == "pull":
        return _cmd_pull(args)

    state = load_state(args.state)

    if args.command == "subject":
        return _cmd_subject(args, state)
    if args.command == "timetable":
        return _cmd_timetable(args, state)
    if args.command == "mark":
        return _cmd_mark(args, state)
    if args.command == "stats":
        return _cmd_stats(args, state)
    if args.command == "summary":
        return _cmd_summary(args, state)
    if args.command == "history":
        return _cmd_history(args, state)
    if args.command == "calendar":
        return _cmd_calendar(args, state)
    if args.command == "push":
        return _cmd_push(args, state)

    if args.command == "interactive":
        from myattendance.interactive import run_interactive

        run_interactive(args.state, remote=_remote(args), today=_today(args))
        return 0

    return 2


def main(argv: list[str] | None = None) -> None:
    """
    CLI entry point. Parses args, dispatches to command handlers,
    and exits via SystemExit with a return code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    try:
        code = _dispatch(args)
    except ValueError as exc:
        console.print(f"Error: {exc}")
        code = 1
    except RemoteStoreError as exc:
        console.print(f"Remote error: {exc}")
        code = 1
    raise SystemExit(code)
