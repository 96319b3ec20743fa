"""
Academic calendar for one semester.

The calendar table is generated once from three static tables:

- RANGES: named date ranges (vacations, exam weeks, ...), first match wins
- DAY_ORDER_OVERRIDES: dates that follow another weekday's timetable
- SPECIAL_DAYS: single dates with their own classification

Every date that is neither special nor inside a range is instructional.

Source: VIT Vellore, Winter Semester 2025-26 academic calendar
(circular VIT/VLR/Acad/2025/015, issued 2025-11-21).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Mapping, Optional, Sequence

from myattendance.model import (
    DAY_TYPES,
    EXAM,
    FESTIVAL,
    HOLIDAY,
    INSTRUCTIONAL,
    NO_INSTRUCTION,
    VACATION,
    CalendarEntry,
    ExamCheckpoint,
    Weekday,
)


DAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")

META = {
    "university": "Vellore Institute of Technology",
    "campus": "VIT Vellore",
    "semester": "Winter Semester 2025-26",
    "circular_ref": "VIT/VLR/Acad/2025/015",
    "issued_on": "2025-11-21",
}

SEMESTER_START = date(2025, 12, 5)
SEMESTER_END = date(2026, 4, 20)


@dataclass(frozen=True)
class DateRange:
    """
    Inclusive date range with the classification it assigns.

    keep_day_order: whether declared day orders still apply inside the range.
    """

    start: date
    end: date
    type: str
    title: str
    keep_day_order: bool = False

    def __post_init__(self) -> None:
        if self.type not in DAY_TYPES:
            raise ValueError(f"Unknown day type: {self.type!r}")

    def __contains__(self, day: date) -> bool:
        return self.start <= day <= self.end


RANGES: tuple[DateRange, ...] = (
    DateRange(date(2025, 12, 21), date(2026, 1, 4), VACATION, "Winter Vacation"),
    DateRange(date(2026, 1, 15), date(2026, 1, 18), HOLIDAY, "Pongal Holidays"),
    DateRange(date(2026, 1, 27), date(2026, 2, 2), EXAM, "CAT - I"),
    DateRange(date(2026, 2, 16), date(2026, 2, 18), INSTRUCTIONAL, "Course Withdraw Option"),
    DateRange(date(2026, 2, 26), date(2026, 3, 1), NO_INSTRUCTION, "Riviera 2026"),
    DateRange(date(2026, 3, 15), date(2026, 3, 23), EXAM, "CAT - II"),
    DateRange(date(2026, 4, 11), date(2026, 4, 17), EXAM, "Final Assessment - Lab", keep_day_order=True),
)

# Free text as printed in the circular
DAY_ORDER_OVERRIDES: dict[date, str] = {
    date(2025, 12, 6): "Monday Day Order",
    date(2025, 12, 13): "Thursday Day Order",
    date(2025, 12, 20): "Wednesday Day Order",
    date(2026, 1, 10): "Thursday Day Order",
    date(2026, 1, 24): "Friday Day Order",
    date(2026, 2, 14): "Monday Day Order",
    date(2026, 4, 11): "Tuesday Day Order",
}

SPECIAL_DAYS: dict[date, tuple[str, str]] = {
    date(2025, 12, 5): (INSTRUCTIONAL, "First Instructional Day"),
    date(2026, 1, 26): (HOLIDAY, "Republic Day"),
    date(2026, 3, 4): (FESTIVAL, "Holi"),
    date(2026, 3, 19): (HOLIDAY, "Telugu New Year's Day"),
    date(2026, 3, 21): (HOLIDAY, "Ramzan"),
    date(2026, 4, 3): (NO_INSTRUCTION, "Good Friday"),
    date(2026, 4, 10): (INSTRUCTIONAL, "Last Instructional Day - Laboratory Classes"),
    date(2026, 4, 14): (HOLIDAY, "Tamil New Year / Dr. B.R. Ambedkar Birthday"),
    date(2026, 4, 17): (INSTRUCTIONAL, "Last Instructional Day - Theory Classes"),
}

EXAM_CHECKPOINTS: tuple[ExamCheckpoint, ...] = (
    ExamCheckpoint("CAT 1", date(2026, 1, 27)),
    ExamCheckpoint("CAT 2", date(2026, 3, 15)),
    ExamCheckpoint("LAB FAT", date(2026, 4, 11)),
)


def parse_day_order(text: Optional[str]) -> Optional[Weekday]:
    """
    Extract the weekday named in a free-text day order ("Thursday Day Order").

    Weekdays are checked Monday first; the first one found wins.
    """
    if not text:
        return None
    for wd in Weekday:
        if wd.label in text:
            return wd
    return None


def _dates(start: date, end: date):
    d = start
    while d <= end:
        yield d
        d += timedelta(days=1)


def build_calendar(
    start: date,
    end: date,
    ranges: Sequence[DateRange] = (),
    overrides: Optional[Mapping[date, str]] = None,
    special_days: Optional[Mapping[date, tuple[str, str]]] = None,
) -> list[CalendarEntry]:
    """
    Build one CalendarEntry per date from start to end (both inclusive).
    """
    overrides = overrides or {}
    special_days = special_days or {}

    calendar: list[CalendarEntry] = []
    for d in _dates(start, end):
        day_name = DAY_NAMES[d.weekday()]
        order_text = overrides.get(d)
        order = parse_day_order(order_text)

        if d in special_days:
            day_type, title = special_days[d]
            if day_type not in DAY_TYPES:
                raise ValueError(f"Unknown day type for {d}: {day_type!r}")
            calendar.append(CalendarEntry(d, day_name, day_type, title, order))
            continue

        rng = next((r for r in ranges if d in r), None)
        if rng is not None:
            calendar.append(
                CalendarEntry(d, day_name, rng.type, rng.title, order if rng.keep_day_order else None)
            )
            continue

        title = f"Instructional Day ({order_text})" if order_text else "Instructional Day"
        calendar.append(CalendarEntry(d, day_name, INSTRUCTIONAL, title, order))

    return calendar


SEMESTER_CALENDAR: list[CalendarEntry] = build_calendar(
    SEMESTER_START, SEMESTER_END, RANGES, DAY_ORDER_OVERRIDES, SPECIAL_DAYS
)
