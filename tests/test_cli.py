"""
Tests for CLI entry points.

These tests focus on:
- Basic CLI argument validation
- Full add/assign/mark flow against a temporary state file
  (to avoid touching real user data during tests)
"""

import io
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from rich.console import Console

import myattendance.cli as cli
from myattendance.cli import main
from myattendance.storage import load_state


class TestCLI(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.state_path = Path(self._tmp.name) / "state.json"
        self.out = io.StringIO()
        patcher = mock.patch.object(cli, "console", Console(file=self.out, width=200, color_system=None))
        patcher.start()
        self.addCleanup(patcher.stop)
        self.addCleanup(self._tmp.cleanup)

    def run_cli(self, *argv: str) -> int:
        with self.assertRaises(SystemExit) as ctx:
            main(["--state", str(self.state_path), "--today", "2026-02-10", *argv])
        return ctx.exception.code

    def test_cli_mark_rejects_unknown_status(self) -> None:
        # argparse choices -> nonzero exit
        with mock.patch("sys.stderr", io.StringIO()):
            self.assertNotEqual(self.run_cli("mark", "2026-01-12", "OS", "late"), 0)

    def test_cli_unknown_subject(self) -> None:
        self.assertEqual(self.run_cli("stats", "Nope"), 1)
        self.assertIn("Unknown subject", self.out.getvalue())

    def test_cli_invalid_date(self) -> None:
        self.assertEqual(self.run_cli("subject", "add", "OS"), 0)
        self.assertEqual(self.run_cli("mark", "12.01.2026", "OS", "absent"), 1)
        self.assertIn("Invalid date", self.out.getvalue())

    def test_cli_full_flow(self) -> None:
        self.assertEqual(self.run_cli("subject", "add", "OS"), 0)
        self.assertEqual(self.run_cli("timetable", "assign", "1", "os"), 0)
        self.assertEqual(self.run_cli("timetable", "assign", "3", "OS"), 0)
        self.assertEqual(self.run_cli("mark", "2026-01-12", "OS", "absent"), 0)

        state = load_state(self.state_path)
        sub = state.subjects[0]
        self.assertEqual(state.timetable, {1: [sub.id], 3: [sub.id]})
        self.assertEqual(state.attendance, {"2026-01-12": {sub.id: "absent"}})

        self.assertEqual(self.run_cli("history", "OS"), 0)
        self.assertIn("2026-01-12", self.out.getvalue())

        self.assertEqual(self.run_cli("stats", "OS"), 0)
        self.assertIn("Before CAT 1", self.out.getvalue())
        self.assertIn("Can miss till CAT 2", self.out.getvalue())

        self.assertEqual(self.run_cli("summary"), 0)
        self.assertIn("All subjects", self.out.getvalue())

        # toggling again clears the absence
        self.assertEqual(self.run_cli("mark", "2026-01-12", "OS", "absent"), 0)
        self.assertEqual(load_state(self.state_path).attendance, {})

    def test_cli_mark_warns_on_holiday(self) -> None:
        self.run_cli("subject", "add", "OS")
        self.assertEqual(self.run_cli("mark", "2026-01-26", "OS", "absent"), 0)
        self.assertIn("not an instructional day", self.out.getvalue())

    def test_cli_remove_subject_prunes_attendance(self) -> None:
        self.run_cli("subject", "add", "OS")
        self.run_cli("subject", "add", "DBMS")
        self.run_cli("timetable", "assign", "1", "OS")
        self.run_cli("mark", "2026-01-12", "OS", "od")
        self.assertEqual(self.run_cli("subject", "remove", "OS"), 0)

        state = load_state(self.state_path)
        self.assertEqual([s.name for s in state.subjects], ["DBMS"])
        self.assertEqual(state.timetable, {})
        self.assertEqual(state.attendance, {})

    def test_cli_rename(self) -> None:
        self.run_cli("subject", "add", "OS", "--lab")
        self.assertEqual(self.run_cli("subject", "rename", "OS", "Operating Systems Lab"), 0)
        sub = load_state(self.state_path).subjects[0]
        self.assertEqual((sub.name, sub.type), ("Operating Systems Lab", "lab"))

    def test_cli_push_without_remote(self) -> None:
        with mock.patch.dict("os.environ", {cli.REMOTE_ENV: ""}):
            self.assertEqual(self.run_cli("push"), 1)
            self.assertEqual(self.run_cli("pull"), 1)

    def test_cli_calendar_month(self) -> None:
        self.assertEqual(self.run_cli("calendar", "--month", "2026-01"), 0)
        self.assertIn("Republic Day", self.out.getvalue())


if __name__ == "__main__":
    unittest.main()
