"""
Central data model definitions used across the project.

This module defines the canonical structure of subjects, calendar entries and
statistics records so that:
- the engine, storage and CLI layers share the same field names
- the attendance ledger and timetable keep their plain-dict JSON shape
- the code stays readable and beginner-friendly

The timetable and the attendance ledger are intentionally plain dicts:

    timetable  = {1: ["sub-a", "sub-b"], 3: ["sub-a"]}
    attendance = {"2026-01-12": {"sub-a": "absent"}}

A (date, subject) pair missing from the ledger means "present".
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import IntEnum
from typing import Dict, List, Optional


# Subject types
THEORY = "theory"
LAB = "lab"
SUBJECT_TYPES = (THEORY, LAB)

# Attendance statuses
PRESENT = "present"
ABSENT = "absent"
OD = "od"
CANCELLED = "cancelled"
STATUSES = (PRESENT, ABSENT, OD, CANCELLED)

# Day classifications
INSTRUCTIONAL = "instructional"
HOLIDAY = "holiday"
EXAM = "exam"
VACATION = "vacation"
FESTIVAL = "festival"
NO_INSTRUCTION = "no_instruction"
ACADEMIC_PROCESS = "academic_process"
DAY_TYPES = (INSTRUCTIONAL, HOLIDAY, EXAM, VACATION, FESTIVAL, NO_INSTRUCTION, ACADEMIC_PROCESS)


Timetable = Dict[int, List[str]]
AttendanceLedger = Dict[str, Dict[str, str]]


class Weekday(IntEnum):
    """
    Teaching weekdays, numbered like date.isoweekday().
    """

    MONDAY = 1
    TUESDAY = 2
    WEDNESDAY = 3
    THURSDAY = 4
    FRIDAY = 5

    @property
    def label(self) -> str:
        return self.name.capitalize()


@dataclass
class Subject:
    """
    One subject the student attends. Labs count double.
    """

    id: str
    name: str
    type: str = THEORY

    @property
    def is_lab(self) -> bool:
        return self.type == LAB


def class_weight(subject: Subject) -> int:
    return 2 if subject.type == LAB else 1


@dataclass(frozen=True)
class CalendarEntry:
    """
    One day of the academic calendar.

    `day_order` is set when the institution declares that this date follows
    another weekday's timetable (e.g. "Thursday Day Order" on a Saturday).
    `title` is display text only and is never parsed.
    """

    date: date
    day_name: str
    type: str
    title: str
    day_order: Optional[Weekday] = None

    @property
    def is_instructional(self) -> bool:
        return self.type == INSTRUCTIONAL


@dataclass(frozen=True)
class ExamCheckpoint:
    name: str
    date: date


@dataclass
class SubjectStats:
    total: int = 0
    present: int = 0
    absent: int = 0
    od: int = 0
    cancelled: int = 0
    percentage: float = 100.0


@dataclass(frozen=True)
class HistoryItem:
    date: date
    status: str


@dataclass
class CheckpointAllowance:
    """
    Safe-absence figures for one exam checkpoint.

    window_* values cover only the classes since the previous checkpoint.
    `safe` may be negative for the first checkpoint; `can_miss` never is.
    """

    checkpoint: ExamCheckpoint
    window_total: int
    window_absent: int
    window_safe: int
    safe: int

    @property
    def can_miss(self) -> int:
        return max(self.safe, 0)


@dataclass
class State:
    """
    Everything a user owns: subjects, weekly timetable and attendance ledger.
    """

    subjects: List[Subject]
    timetable: Timetable
    attendance: AttendanceLedger

    @classmethod
    def empty(cls) -> "State":
        return cls(subjects=[], timetable={}, attendance={})

    def subject_by_id(self, subject_id: str) -> Optional[Subject]:
        for s in self.subjects:
            if s.id == subject_id:
                return s
        return None
