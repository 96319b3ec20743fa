from __future__ import annotations

from datetime import date
from pathlib import Path
from typing import Callable, Optional

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from myattendance.ledger import toggle_status
from myattendance.model import ABSENT, CANCELLED, LAB, OD, THEORY, State, Subject, Weekday
from myattendance.remote import AutoSaver, RemoteStore, load_hybrid
from myattendance.report import print_calendar, print_history, print_subject_stats, print_summary, print_timetable
from myattendance.semester import EXAM_CHECKPOINTS, META, SEMESTER_CALENDAR
from myattendance.stats import attendance_history, effective_weekday
from myattendance.storage import save_state
from myattendance.timetable import assign, new_subject, subjects_on

console = Console()

AUTOSAVE_SECONDS = 30.0


class Session:
    """
    One interactive session: the loaded state, where to save it,
    and the auto-saver that pushes it to the remote store.
    """

    def __init__(self, state: State, state_path: Optional[Path], saver: Optional[AutoSaver]) -> None:
        self.state = state
        self.state_path = state_path
        self.saver = saver

    def commit(self) -> None:
        # Local file is written on every edit; the remote copy is batched
        save_state(self.state, self.state_path)
        if self.saver is not None:
            self.saver.mark_dirty()


def _println(msg: str = "") -> None:
    console.print(msg)


def run_interactive(
    state_path: Optional[Path] = None,
    remote: Optional[RemoteStore] = None,
    today: Optional[date] = None,
    prompt_fn: Optional[Callable[[str], str]] = None,
) -> None:
    """
    Interactive menu loop. Changes are saved locally right away; with a remote
    store they are also pushed in the background every AUTOSAVE_SECONDS.
    """
    prompt = prompt_fn or console.input
    today = today or date.today()

    state = load_hybrid(remote, state_path)
    saver: Optional[AutoSaver] = None
    if remote is not None:
        saver = AutoSaver(lambda: remote.save(session.state), interval=AUTOSAVE_SECONDS)
    session = Session(state, state_path, saver)

    if saver is not None:
        saver.start()
    try:
        _loop(session, today, prompt)
    finally:
        if saver is not None:
            saver.stop()


def _loop(session: Session, today: date, prompt: Callable[[str], str]) -> None:
    while True:
        _print_header(session.state, today)

        choice = prompt(
            "\n[1] Summary\n"
            "[2] Subject details\n"
            "[3] Mark attendance\n"
            "[4] Absence history\n"
            "[5] Timetable\n"
            "[6] Add subject\n"
            "[7] Assign subject to weekday\n"
            "[8] Calendar (choose month)\n"
            "[0] Exit\n"
            "Select: "
        ).strip()

        if choice == "0":
            _println("Bye.")
            return

        if choice == "1":
            print_summary(console, SEMESTER_CALENDAR, session.state, EXAM_CHECKPOINTS, today)
        elif choice == "2":
            sub = _choose_subject(session.state, prompt)
            if sub is not None:
                print_subject_stats(console, sub, SEMESTER_CALENDAR, session.state, EXAM_CHECKPOINTS, today)
        elif choice == "3":
            _flow_mark(session, today, prompt)
        elif choice == "4":
            sub = _choose_subject(session.state, prompt)
            if sub is not None:
                st = session.state
                history = attendance_history(sub, SEMESTER_CALENDAR, st.attendance, st.timetable)
                print_history(console, sub, history)
        elif choice == "5":
            print_timetable(console, session.state)
        elif choice == "6":
            _flow_add_subject(session, prompt)
        elif choice == "7":
            _flow_assign(session, prompt)
        elif choice == "8":
            month = prompt(f"Month (YYYY-MM) [{today.strftime('%Y-%m')}]: ").strip() or today.strftime("%Y-%m")
            print_calendar(console, SEMESTER_CALENDAR, session.state, month)
        else:
            _println("Invalid choice.")


def _print_header(state: State, today: date) -> None:
    _println("\n=== MyAttendance (interactive) ===")
    _println(f"{META['campus']} | {META['semester']} | today={today.isoformat()}")
    _println(f"Subjects: {len(state.subjects)} | Marked days: {len(state.attendance)}")


def _choose_subject(state: State, prompt: Callable[[str], str]) -> Optional[Subject]:
    if not state.subjects:
        _println("No subjects yet. Add one first.")
        return None

    table = Table(title="Subjects", box=box.SIMPLE)
    table.add_column("#", justify="right")
    table.add_column("Name")
    table.add_column("Type")
    for i, s in enumerate(state.subjects, start=1):
        table.add_row(str(i), escape(s.name), s.type)
    console.print(table)

    raw = prompt("Subject number (Enter to cancel): ").strip()
    if not raw:
        return None
    if not raw.isdigit() or not (1 <= int(raw) <= len(state.subjects)):
        _println("Invalid number.")
        return None
    return state.subjects[int(raw) - 1]


def _flow_mark(session: Session, today: date, prompt: Callable[[str], str]) -> None:
    raw = prompt(f"Date (YYYY-MM-DD) [{today.isoformat()}]: ").strip()
    try:
        day = date.fromisoformat(raw) if raw else today
    except ValueError:
        _println("Invalid date.")
        return

    entry = next((e for e in SEMESTER_CALENDAR if e.date == day), None)
    if entry is None or not entry.is_instructional:
        title = entry.title if entry is not None else "outside the semester"
        _println(f"{day} is not an instructional day ({title}).")
        return

    state = session.state
    subject_ids = list(dict.fromkeys(subjects_on(state.timetable, effective_weekday(entry))))
    subjects = [s for s in (state.subject_by_id(sid) for sid in subject_ids) if s is not None]
    if not subjects:
        _println(f"No classes on {day} ({entry.title}).")
        return

    marks = state.attendance.get(day.isoformat(), {})
    for i, s in enumerate(subjects, start=1):
        _println(f"[{i}] {escape(s.name)}: {marks.get(s.id, 'present')}")

    pick = prompt("Subject number (Enter to cancel): ").strip()
    if not pick.isdigit() or not (1 <= int(pick) <= len(subjects)):
        return
    sub = subjects[int(pick) - 1]

    status = prompt("Status (a=absent, o=od, c=cancelled): ").strip().lower()
    status_map = {"a": ABSENT, "o": OD, "c": CANCELLED}
    if status not in status_map:
        _println("Invalid status.")
        return

    state.attendance = toggle_status(state.attendance, day, sub.id, status_map[status])
    session.commit()
    _println(f"{day} {escape(sub.name)}: {state.attendance.get(day.isoformat(), {}).get(sub.id, 'present')}")


def _flow_add_subject(session: Session, prompt: Callable[[str], str]) -> None:
    name = prompt("Subject name: ").strip()
    kind = prompt("Type (t=theory, l=lab, default t): ").strip().lower()
    try:
        sub = new_subject(name, LAB if kind.startswith("l") else THEORY)
    except ValueError as exc:
        _println(str(exc))
        return
    session.state.subjects.append(sub)
    session.commit()
    _println(f"Added: {escape(sub.name)} ({sub.type})")


def _flow_assign(session: Session, prompt: Callable[[str], str]) -> None:
    sub = _choose_subject(session.state, prompt)
    if sub is None:
        return
    raw = prompt("Weekday (1=Mon .. 5=Fri): ").strip()
    try:
        session.state.timetable = assign(session.state.timetable, int(raw), sub.id)
    except ValueError:
        _println("Invalid weekday.")
        return
    session.commit()
    _println(f"Assigned: {escape(sub.name)} on {Weekday(int(raw)).label}")
