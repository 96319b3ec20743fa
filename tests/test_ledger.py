"""
Unit tests for ledger toggling.

Toggle contract:
- setting a status stores it
- setting the same status again clears it (back to present)
- "present" is never stored
- empty dates are pruned
"""

import unittest
from datetime import date

from myattendance.ledger import get_status, prune_subject, toggle_status


DAY = date(2026, 1, 12)


class TestLedger(unittest.TestCase):
    def test_missing_entry_is_present(self) -> None:
        self.assertEqual(get_status({}, DAY, "os"), "present")
        self.assertEqual(get_status({"2026-01-12": {"dbms": "absent"}}, DAY, "os"), "present")

    def test_toggle_sets_and_clears(self) -> None:
        ledger = toggle_status({}, DAY, "os", "absent")
        self.assertEqual(ledger, {"2026-01-12": {"os": "absent"}})

        ledger = toggle_status(ledger, DAY, "os", "absent")
        self.assertEqual(ledger, {})

    def test_switching_status_replaces(self) -> None:
        ledger = toggle_status({"2026-01-12": {"os": "absent"}}, DAY, "os", "od")
        self.assertEqual(ledger, {"2026-01-12": {"os": "od"}})

    def test_present_clears_entry(self) -> None:
        ledger = {"2026-01-12": {"os": "cancelled", "dbms": "absent"}}
        self.assertEqual(toggle_status(ledger, DAY, "os", "present"), {"2026-01-12": {"dbms": "absent"}})
        self.assertEqual(toggle_status({}, DAY, "os", "present"), {})

    def test_input_is_not_mutated(self) -> None:
        ledger = {"2026-01-12": {"os": "absent"}}
        toggle_status(ledger, DAY, "os", "absent")
        toggle_status(ledger, DAY, "dbms", "od")
        self.assertEqual(ledger, {"2026-01-12": {"os": "absent"}})

    def test_unknown_status_raises(self) -> None:
        with self.assertRaises(ValueError):
            toggle_status({}, DAY, "os", "late")

    def test_prune_subject(self) -> None:
        ledger = {"2026-01-12": {"os": "absent", "dbms": "od"}, "2026-01-14": {"os": "absent"}}
        self.assertEqual(prune_subject(ledger, "os"), {"2026-01-12": {"dbms": "od"}})


if __name__ == "__main__":
    unittest.main()
