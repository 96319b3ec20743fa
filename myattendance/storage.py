"""
Persistent storage for the user's own data.

This module manages the file:

    data/state.json

It holds everything the user edits: subjects, the weekly timetable and the
attendance ledger. The academic calendar is static and never stored.

JSON schema:

    {
      "subjects": [{"id": "...", "name": "...", "type": "theory"}],
      "timetable": {"1": ["<subject id>", ...], ...},
      "attendance": {"2026-01-12": {"<subject id>": "absent"}}
    }
"""

from __future__ import annotations

import json
import logging
from datetime import date
from pathlib import Path
from typing import Any

from myattendance.model import PRESENT, STATUSES, SUBJECT_TYPES, THEORY, State, Subject, Weekday

log = logging.getLogger(__name__)


def _default_state_path() -> Path:
    """
    Return the default path of state.json inside the package.

    Using a function instead of a constant makes testing easier,
    because tests can override the path.
    """
    base_dir = Path(__file__).resolve().parent
    return base_dir / "data" / "state.json"


def _parse_subjects(raw: Any) -> list[Subject]:
    if not isinstance(raw, list):
        return []
    out: list[Subject] = []
    seen: set[str] = set()
    for item in raw:
        if not isinstance(item, dict):
            continue
        sid = str(item.get("id", "") or "").strip()
        name = str(item.get("name", "") or "").strip()
        if not sid or not name or sid in seen:
            log.debug("Skipping malformed subject record: %r", item)
            continue
        stype = item.get("type", THEORY)
        if stype not in SUBJECT_TYPES:
            stype = THEORY
        seen.add(sid)
        out.append(Subject(id=sid, name=name, type=stype))
    return out


def _parse_timetable(raw: Any) -> dict[int, list[str]]:
    if not isinstance(raw, dict):
        return {}
    out: dict[int, list[str]] = {}
    valid_days = {int(wd) for wd in Weekday}
    for key, ids in raw.items():
        try:
            day = int(key)
        except (TypeError, ValueError):
            continue
        if day not in valid_days or not isinstance(ids, list):
            continue
        slot = [str(x) for x in ids if isinstance(x, str) and x]
        if slot:
            out[day] = slot
    return out


def _parse_attendance(raw: Any) -> dict[str, dict[str, str]]:
    if not isinstance(raw, dict):
        return {}
    out: dict[str, dict[str, str]] = {}
    for key, entries in raw.items():
        try:
            day = date.fromisoformat(str(key)).isoformat()
        except ValueError:
            log.debug("Skipping attendance for invalid date: %r", key)
            continue
        if not isinstance(entries, dict):
            continue
        # present is the default and is never stored
        kept = {
            str(sid): st for sid, st in entries.items() if st in STATUSES and st != PRESENT
        }
        if kept:
            out.setdefault(day, {}).update(kept)
    return out


def state_from_dict(data: Any) -> State:
    """
    Build a State from a decoded JSON document, skipping anything malformed.
    """
    if not isinstance(data, dict):
        return State.empty()
    return State(
        subjects=_parse_subjects(data.get("subjects")),
        timetable=_parse_timetable(data.get("timetable")),
        attendance=_parse_attendance(data.get("attendance")),
    )


def state_to_dict(state: State) -> dict[str, Any]:
    return {
        "subjects": [{"id": s.id, "name": s.name, "type": s.type} for s in state.subjects],
        "timetable": {str(day): list(ids) for day, ids in sorted(state.timetable.items())},
        "attendance": {d: dict(entries) for d, entries in sorted(state.attendance.items())},
    }


def load_state(path: str | Path | None = None) -> State:
    """
    Load the user's state from state.json.

    Returns an empty state if the file does not exist or is invalid.
    This function never crashes the application on a missing or
    corrupted file.
    """
    state_path = Path(path) if path is not None else _default_state_path()

    # First run: nothing saved yet
    if not state_path.exists():
        return State.empty()

    try:
        data = json.loads(state_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError, UnicodeDecodeError) as exc:
        log.warning("Could not read %s (%s); starting with an empty state", state_path, exc)
        return State.empty()
    return state_from_dict(data)


def save_state(state: State, path: str | Path | None = None) -> None:
    """
    Save the user's state to state.json. Creates parent directories if needed.
    """
    state_path = Path(path) if path is not None else _default_state_path()
    state_path.parent.mkdir(parents=True, exist_ok=True)

    payload = state_to_dict(state)
    state_path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
