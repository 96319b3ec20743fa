"""
Attendance ledger operations.

The ledger is sparse: it only stores exceptions. A (date, subject) pair that
is not stored is present. All functions return a new ledger and leave the
input untouched.
"""

from __future__ import annotations

from datetime import date

from myattendance.model import PRESENT, STATUSES, AttendanceLedger


def get_status(ledger: AttendanceLedger, day: date, subject_id: str) -> str:
    return ledger.get(day.isoformat(), {}).get(subject_id, PRESENT)


def toggle_status(ledger: AttendanceLedger, day: date, subject_id: str, status: str) -> AttendanceLedger:
    """
    Set a status, or clear it again if it is already set.

    Marking a class "present" clears the entry, since present is the default.
    Raises ValueError for unknown statuses.
    """
    if status not in STATUSES:
        raise ValueError(f"Unknown status: {status!r} (expected one of {', '.join(STATUSES)})")

    key = day.isoformat()
    updated = {d: dict(entries) for d, entries in ledger.items()}
    current = updated.get(key, {}).get(subject_id)

    if status == PRESENT or current == status:
        day_entries = updated.get(key)
        if day_entries is not None:
            day_entries.pop(subject_id, None)
            if not day_entries:
                del updated[key]
    else:
        updated.setdefault(key, {})[subject_id] = status

    return updated


def prune_subject(ledger: AttendanceLedger, subject_id: str) -> AttendanceLedger:
    """
    Drop every entry of one subject (used when a subject is deleted).
    """
    out: AttendanceLedger = {}
    for d, entries in ledger.items():
        kept = {sid: st for sid, st in entries.items() if sid != subject_id}
        if kept:
            out[d] = kept
    return out
