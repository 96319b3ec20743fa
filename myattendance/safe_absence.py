"""
Safe absences before exam checkpoints.

The semester is split into windows by the exam checkpoints (CAT 1, CAT 2,
LAB FAT). In every window a student may miss up to 25 % of the classes.
Allowance that was not used before one checkpoint is carried into the next
window; overspending is not carried forward as debt.

Example (theory subject):

    window 1: total=20 absent=1 -> allowed 5, safe 4, unused 4
    window 2: total=20 absent=6 -> allowed 5, window safe -1 -> 0
              safe before checkpoint 2 = 4 + 0 = 4
"""

from __future__ import annotations

import math
from datetime import date
from typing import Iterable, Optional, Sequence

from myattendance.model import (
    AttendanceLedger,
    CalendarEntry,
    CheckpointAllowance,
    ExamCheckpoint,
    Subject,
    Timetable,
)
from myattendance.stats import compute_stats


MIN_ATTENDANCE = 0.75
ALLOWED_ABSENCE_RATIO = 1 - MIN_ATTENDANCE


def allowed_absences(total: int) -> int:
    return math.floor(total * ALLOWED_ABSENCE_RATIO)


def carry_forward(windows: Iterable[tuple[int, int]]) -> list[int]:
    """
    Compute the safe-absence figure at each checkpoint.

    Args:
        windows: (window_total, window_absent) per checkpoint, in order.

    Returns:
        Raw safe figure per checkpoint. Only the first one can be negative.
    """
    out: list[int] = []
    unused = 0
    for i, (total, absent) in enumerate(windows):
        window_safe = allowed_absences(total) - absent
        if i == 0:
            safe = window_safe
        else:
            safe = unused + max(window_safe, 0)
        unused = max(safe, 0)
        out.append(safe)
    return out


def checkpoint_allowances(
    subject: Subject,
    calendar: Sequence[CalendarEntry],
    ledger: AttendanceLedger,
    timetable: Timetable,
    checkpoints: Sequence[ExamCheckpoint],
) -> list[CheckpointAllowance]:
    """
    Safe-absence figures for every checkpoint of one subject.

    Window i covers the classes after checkpoint i-1 up to and including
    checkpoint i; the first window starts with the semester.
    """
    windows: list[tuple[int, int]] = []
    previous: Optional[date] = None
    for cp in checkpoints:
        st = compute_stats(subject, calendar, ledger, timetable, until=cp.date, after=previous)
        windows.append((st.total, st.absent))
        previous = cp.date

    out: list[CheckpointAllowance] = []
    for cp, (total, absent), safe in zip(checkpoints, windows, carry_forward(windows)):
        out.append(
            CheckpointAllowance(
                checkpoint=cp,
                window_total=total,
                window_absent=absent,
                window_safe=allowed_absences(total) - absent,
                safe=safe,
            )
        )
    return out


def next_checkpoint(checkpoints: Sequence[ExamCheckpoint], today: date) -> Optional[ExamCheckpoint]:
    """
    First checkpoint strictly after today; the last one once all have passed.
    """
    if not checkpoints:
        return None
    for cp in checkpoints:
        if cp.date > today:
            return cp
    return checkpoints[-1]


def can_miss_before_next(
    subject: Subject,
    calendar: Sequence[CalendarEntry],
    ledger: AttendanceLedger,
    timetable: Timetable,
    checkpoints: Sequence[ExamCheckpoint],
    today: date,
) -> int:
    """
    How many more classes the subject can be missed before the next exam.
    """
    target = next_checkpoint(checkpoints, today)
    if target is None:
        return 0
    for allowance in checkpoint_allowances(subject, calendar, ledger, timetable, checkpoints):
        if allowance.checkpoint == target:
            return allowance.can_miss
    return 0
