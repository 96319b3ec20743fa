"""
Subject and weekly timetable editing.

These are the boundary operations behind the CLI: they validate their input
and raise ValueError, unlike the accounting functions which never raise.
A subject may appear several times on the same weekday (e.g. a double lab).
"""

from __future__ import annotations

import uuid

from myattendance.model import SUBJECT_TYPES, THEORY, Subject, Timetable, Weekday


def new_subject(name: str, type: str = THEORY) -> Subject:
    name = (name or "").strip()
    if not name:
        raise ValueError("Subject name must not be empty.")
    if type not in SUBJECT_TYPES:
        raise ValueError(f"Unknown subject type: {type!r}")
    return Subject(id=str(uuid.uuid4()), name=name, type=type)


def rename_subject(subjects: list[Subject], subject_id: str, name: str) -> list[Subject]:
    name = (name or "").strip()
    if not name:
        raise ValueError("Subject name must not be empty.")

    out: list[Subject] = []
    found = False
    for s in subjects:
        if s.id == subject_id:
            out.append(Subject(id=s.id, name=name, type=s.type))
            found = True
        else:
            out.append(s)
    if not found:
        raise ValueError(f"Unknown subject: {subject_id}")
    return out


def remove_subject(
    subjects: list[Subject], timetable: Timetable, subject_id: str
) -> tuple[list[Subject], Timetable]:
    """
    Remove a subject and every timetable slot that refers to it.
    """
    kept = [s for s in subjects if s.id != subject_id]
    if len(kept) == len(subjects):
        raise ValueError(f"Unknown subject: {subject_id}")
    slots = {day: [sid for sid in ids if sid != subject_id] for day, ids in timetable.items()}
    return kept, {day: ids for day, ids in slots.items() if ids}


def _weekday(value: int) -> Weekday:
    try:
        return Weekday(int(value))
    except ValueError:
        raise ValueError(f"Weekday must be 1 (Monday) to 5 (Friday), got {value!r}") from None


def assign(timetable: Timetable, weekday: int, subject_id: str) -> Timetable:
    day = int(_weekday(weekday))
    updated = {d: list(ids) for d, ids in timetable.items()}
    updated.setdefault(day, []).append(subject_id)
    return updated


def unassign(timetable: Timetable, weekday: int, subject_id: str) -> Timetable:
    """
    Remove one occurrence of a subject from a weekday.
    """
    day = int(_weekday(weekday))
    ids = list(timetable.get(day, []))
    if subject_id not in ids:
        raise ValueError(f"Subject is not scheduled on {Weekday(day).label}.")
    ids.remove(subject_id)

    updated = {d: list(v) for d, v in timetable.items() if d != day}
    if ids:
        updated[day] = ids
    return updated


def subjects_on(timetable: Timetable, weekday: int) -> list[str]:
    return list(timetable.get(int(weekday), []))
