"""
Attendance accounting.

Walks the academic calendar, figures out which subjects meet on each day and
aggregates the attendance ledger into per-subject statistics.

Rules:
- only instructional days count
- a missing ledger entry means "present"
- cancelled classes are left out of the total
- OD (on duty) counts as present, and is also tracked on its own
- labs weigh 2, theory weighs 1

All functions here are pure. Ill-formed input (unknown subject ids, ledger
entries on holidays, dates outside the calendar) simply contributes nothing.
"""

from __future__ import annotations

from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Iterator, Optional

from myattendance.ledger import get_status
from myattendance.model import (
    ABSENT,
    CANCELLED,
    OD,
    PRESENT,
    AttendanceLedger,
    CalendarEntry,
    HistoryItem,
    Subject,
    SubjectStats,
    Timetable,
    class_weight,
)


def effective_weekday(entry: CalendarEntry) -> int:
    """
    Return the weekday (1=Mon .. 7=Sun) whose timetable applies on this day.

    A declared day order wins over the calendar date.
    """
    if entry.day_order is not None:
        return int(entry.day_order)
    return entry.date.isoweekday()


def meets_on(subject_id: str, entry: CalendarEntry, timetable: Timetable) -> bool:
    return subject_id in timetable.get(effective_weekday(entry), [])


def _scheduled_days(
    subject: Subject,
    calendar: Iterable[CalendarEntry],
    timetable: Timetable,
    until: Optional[date],
    after: Optional[date] = None,
    start: Optional[date] = None,
) -> Iterator[CalendarEntry]:
    for entry in calendar:
        if not entry.is_instructional:
            continue
        if until is not None and entry.date > until:
            continue
        if after is not None and entry.date <= after:
            continue
        if start is not None and entry.date < start:
            continue
        if not meets_on(subject.id, entry, timetable):
            continue
        yield entry


def percentage(present: int, total: int, places: int = 2) -> float:
    """
    Attendance percentage, ties rounded half up (78.125 -> 78.13).
    """
    # Nothing scheduled yet -> nothing to worry about
    if total == 0:
        return 100.0
    raw = Decimal(present / total * 100)
    return float(raw.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP))


def compute_stats(
    subject: Subject,
    calendar: Iterable[CalendarEntry],
    ledger: AttendanceLedger,
    timetable: Timetable,
    until: Optional[date] = None,
    after: Optional[date] = None,
) -> SubjectStats:
    """
    Aggregate attendance for one subject.

    Args:
        until: only count days up to and including this date.
        after: only count days strictly after this date. Together with `until`
            this gives the stats of one window between two exam checkpoints.
    """
    stats = SubjectStats()
    weight = class_weight(subject)

    for entry in _scheduled_days(subject, calendar, timetable, until, after=after):
        status = get_status(ledger, entry.date, subject.id)

        if status == CANCELLED:
            stats.cancelled += weight
            continue

        stats.total += weight
        if status == PRESENT:
            stats.present += weight
        elif status == ABSENT:
            stats.absent += weight
        elif status == OD:
            stats.present += weight
            stats.od += weight

    stats.percentage = percentage(stats.present, stats.total)
    return stats


def attendance_history(
    subject: Subject,
    calendar: Iterable[CalendarEntry],
    ledger: AttendanceLedger,
    timetable: Timetable,
    until: Optional[date] = None,
    start: Optional[date] = None,
) -> list[HistoryItem]:
    """
    List the absences and ODs of a subject in calendar order.

    Both bounds are inclusive. Cancelled and present days are not listed.
    """
    history: list[HistoryItem] = []
    for entry in _scheduled_days(subject, calendar, timetable, until, start=start):
        status = ledger.get(entry.date.isoformat(), {}).get(subject.id)
        if status in (ABSENT, OD):
            history.append(HistoryItem(date=entry.date, status=status))
    return history
