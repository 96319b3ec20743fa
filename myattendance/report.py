"""
Terminal rendering of attendance data with rich.

All functions take the Console to print to, so tests can capture output with
Console(file=io.StringIO()).
"""

from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from myattendance.model import (
    INSTRUCTIONAL,
    CalendarEntry,
    CheckpointAllowance,
    ExamCheckpoint,
    HistoryItem,
    State,
    Subject,
    SubjectStats,
    Weekday,
)
from myattendance.safe_absence import can_miss_before_next, checkpoint_allowances, next_checkpoint
from myattendance.stats import compute_stats, effective_weekday, percentage
from myattendance.timetable import subjects_on


def pct_style(p: float) -> str:
    if p >= 85:
        return "green"
    if p >= 75:
        return "yellow"
    return "red"


def _pct(p: float) -> str:
    return f"[{pct_style(p)}]{p:.2f}%[/]"


def _subject_label(subject: Subject) -> str:
    name = escape(subject.name)
    return f"{name} (lab)" if subject.is_lab else name


def subject_overview(
    subject: Subject,
    calendar: Sequence[CalendarEntry],
    state: State,
    checkpoints: Sequence[ExamCheckpoint],
    today: date,
) -> tuple[list[tuple[str, SubjectStats, Optional[int]]], int, Optional[ExamCheckpoint]]:
    """
    Stats blocks shown for one subject, plus "can miss till next exam".

    Blocks: one per checkpoint (with safe absences left), till today, overall.
    """
    allowances = checkpoint_allowances(subject, calendar, state.attendance, state.timetable, checkpoints)
    blocks: list[tuple[str, SubjectStats, Optional[int]]] = []
    for a in allowances:
        st = compute_stats(subject, calendar, state.attendance, state.timetable, until=a.checkpoint.date)
        blocks.append((f"Before {a.checkpoint.name}", st, a.can_miss))
    blocks.append(("Till today", compute_stats(subject, calendar, state.attendance, state.timetable, until=today), None))
    blocks.append(("Overall semester", compute_stats(subject, calendar, state.attendance, state.timetable), None))

    target = next_checkpoint(checkpoints, today)
    can_miss = 0
    for a in allowances:
        if a.checkpoint == target:
            can_miss = a.can_miss
    return blocks, can_miss, target


def print_subject_stats(
    console: Console,
    subject: Subject,
    calendar: Sequence[CalendarEntry],
    state: State,
    checkpoints: Sequence[ExamCheckpoint],
    today: date,
) -> None:
    blocks, can_miss, target = subject_overview(subject, calendar, state, checkpoints, today)

    table = Table(title=_subject_label(subject), box=box.SIMPLE)
    table.add_column("Window")
    table.add_column("Total", justify="right")
    table.add_column("Present", justify="right")
    table.add_column("Absent", justify="right")
    table.add_column("OD", justify="right")
    table.add_column("Cancelled", justify="right")
    table.add_column("%", justify="right")
    table.add_column("Safe left", justify="right")

    for label, st, safe in blocks:
        table.add_row(
            label,
            str(st.total),
            str(st.present),
            str(st.absent),
            str(st.od),
            str(st.cancelled),
            _pct(st.percentage),
            "" if safe is None else str(safe),
        )
    console.print(table)
    if target is not None:
        console.print(f"Can miss till {target.name} ({target.date.isoformat()}): [bold]{can_miss}[/]")


def print_summary(
    console: Console,
    calendar: Sequence[CalendarEntry],
    state: State,
    checkpoints: Sequence[ExamCheckpoint],
    today: date,
) -> None:
    """
    One row per subject with current attendance and classes left to miss.
    """
    if not state.subjects:
        console.print("No subjects yet. Add one with: myattendance subject add <name>")
        return

    target = next_checkpoint(checkpoints, today)
    target_name = target.name if target is not None else "-"

    table = Table(title="Attendance summary", box=box.SIMPLE)
    table.add_column("Subject")
    table.add_column("Total", justify="right")
    table.add_column("Present", justify="right")
    table.add_column("Absent", justify="right")
    table.add_column("%", justify="right")
    table.add_column(f"Can miss till {target_name}", justify="right")

    totals = {"total": 0, "present": 0, "absent": 0, "can_miss": 0}
    for sub in state.subjects:
        can_miss = can_miss_before_next(sub, calendar, state.attendance, state.timetable, checkpoints, today)
        st = compute_stats(sub, calendar, state.attendance, state.timetable, until=today)
        table.add_row(
            _subject_label(sub), str(st.total), str(st.present), str(st.absent), _pct(st.percentage), str(can_miss)
        )
        totals["total"] += st.total
        totals["present"] += st.present
        totals["absent"] += st.absent
        totals["can_miss"] += can_miss

    overall = percentage(totals["present"], totals["total"], places=1)
    table.add_row(
        "[bold]All subjects[/]",
        str(totals["total"]),
        str(totals["present"]),
        str(totals["absent"]),
        f"[{pct_style(overall)}]{overall:.1f}%[/]",
        str(totals["can_miss"]),
    )
    console.print(table)
    if target is not None:
        console.print(f"Next exam: {target.name} on {target.date.strftime('%d %b %Y')}")


def print_history(console: Console, subject: Subject, history: Sequence[HistoryItem]) -> None:
    if not history:
        console.print(f"No absences or ODs for {escape(subject.name)}.")
        return
    table = Table(title=f"History: {escape(subject.name)}", box=box.SIMPLE)
    table.add_column("Date")
    table.add_column("Day")
    table.add_column("Status")
    for item in history:
        style = "red" if item.status == "absent" else "cyan"
        table.add_row(item.date.isoformat(), item.date.strftime("%a"), f"[{style}]{item.status}[/]")
    console.print(table)


def print_allowances(console: Console, allowances: Sequence[CheckpointAllowance]) -> None:
    table = Table(title="Safe absences per exam window", box=box.SIMPLE)
    table.add_column("Checkpoint")
    table.add_column("Date")
    table.add_column("Window classes", justify="right")
    table.add_column("Window absent", justify="right")
    table.add_column("Can miss", justify="right")
    for a in allowances:
        table.add_row(
            a.checkpoint.name,
            a.checkpoint.date.isoformat(),
            str(a.window_total),
            str(a.window_absent),
            str(a.can_miss),
        )
    console.print(table)


def print_timetable(console: Console, state: State) -> None:
    table = Table(title="Weekly timetable", box=box.SIMPLE)
    table.add_column("Day")
    table.add_column("Subjects")
    for wd in Weekday:
        names = []
        for sid in state.timetable.get(int(wd), []):
            sub = state.subject_by_id(sid)
            # stale ids are shown as unknown, never dropped silently
            names.append(_subject_label(sub) if sub is not None else f"? {escape(sid)}")
        table.add_row(wd.label, ", ".join(names) if names else "-")
    console.print(table)


def print_calendar(
    console: Console,
    calendar: Sequence[CalendarEntry],
    state: State,
    month: Optional[str] = None,
) -> None:
    """
    List calendar days (optionally one month, "YYYY-MM") with their classes.
    """
    days = [e for e in calendar if month is None or e.date.isoformat().startswith(month)]
    if not days:
        console.print("No calendar days in that range.")
        return

    table = Table(title=f"Calendar {month}" if month else "Calendar", box=box.SIMPLE)
    table.add_column("Date")
    table.add_column("Day")
    table.add_column("Type")
    table.add_column("Title")
    table.add_column("Classes")

    for entry in days:
        classes = ""
        if entry.type == INSTRUCTIONAL:
            marks = state.attendance.get(entry.date.isoformat(), {})
            parts = []
            for sid in dict.fromkeys(subjects_on(state.timetable, effective_weekday(entry))):
                sub = state.subject_by_id(sid)
                if sub is None:
                    continue
                status = marks.get(sid)
                parts.append(f"{escape(sub.name)} ({status})" if status else escape(sub.name))
            classes = ", ".join(parts)
        table.add_row(entry.date.isoformat(), entry.day_name[:3], entry.type, entry.title, classes)
    console.print(table)
