"""
Unit tests for the remote document store and the auto-saver.

No network: requests.Session is replaced by a Mock.
"""

import tempfile
import threading
import time
import unittest
from pathlib import Path
from unittest import mock

import requests

from myattendance.model import State, Subject
from myattendance.remote import AutoSaver, RemoteStore, RemoteStoreError, load_hybrid
from myattendance.storage import load_state, save_state


DOC = {
    "subjects": [{"id": "a", "name": "OS", "type": "theory"}],
    "timetable": {"1": ["a"]},
    "attendance": {"2026-01-12": {"a": "absent"}},
}


def _response(status: int = 200, payload=None) -> mock.Mock:
    resp = mock.Mock()
    resp.status_code = status
    resp.json.return_value = payload
    if status >= 400:
        resp.raise_for_status.side_effect = requests.HTTPError(f"{status} error")
    return resp


class TestRemoteStore(unittest.TestCase):
    def test_empty_url_rejected(self) -> None:
        with self.assertRaises(ValueError):
            RemoteStore("  ")

    def test_load_document(self) -> None:
        session = mock.Mock()
        session.get.return_value = _response(payload=DOC)
        state = RemoteStore("https://example.test/doc", session=session).load()

        self.assertEqual(state.subjects, [Subject(id="a", name="OS")])
        self.assertEqual(state.timetable, {1: ["a"]})
        session.get.assert_called_once_with("https://example.test/doc", timeout=10)

    def test_load_wrapped_document(self) -> None:
        session = mock.Mock()
        session.get.return_value = _response(payload={"data": DOC})
        state = RemoteStore("https://example.test/doc", session=session).load()
        self.assertEqual(state.attendance, {"2026-01-12": {"a": "absent"}})

    def test_missing_document_is_none(self) -> None:
        session = mock.Mock()
        session.get.return_value = _response(status=404)
        self.assertIsNone(RemoteStore("https://example.test/doc", session=session).load())

    def test_http_error_is_wrapped(self) -> None:
        session = mock.Mock()
        session.get.return_value = _response(status=500)
        with self.assertRaises(RemoteStoreError):
            RemoteStore("https://example.test/doc", session=session).load()

    def test_connection_error_is_wrapped(self) -> None:
        session = mock.Mock()
        session.put.side_effect = requests.ConnectionError("offline")
        with self.assertRaises(RemoteStoreError):
            RemoteStore("https://example.test/doc", session=session).save(State.empty())

    def test_invalid_json_is_wrapped(self) -> None:
        session = mock.Mock()
        resp = _response()
        resp.json.side_effect = ValueError("no json")
        session.get.return_value = resp
        with self.assertRaises(RemoteStoreError):
            RemoteStore("https://example.test/doc", session=session).load()

    def test_save_puts_document(self) -> None:
        session = mock.Mock()
        session.put.return_value = _response()
        state = State(subjects=[Subject(id="a", name="OS")], timetable={1: ["a"]}, attendance={})
        RemoteStore("https://example.test/doc", session=session).save(state)

        _, kwargs = session.put.call_args
        self.assertEqual(kwargs["json"]["subjects"], [{"id": "a", "name": "OS", "type": "theory"}])
        self.assertEqual(kwargs["json"]["timetable"], {"1": ["a"]})


class TestLoadHybrid(unittest.TestCase):
    def test_remote_copy_wins_and_is_cached(self) -> None:
        session = mock.Mock()
        session.get.return_value = _response(payload=DOC)
        remote = RemoteStore("https://example.test/doc", session=session)

        with tempfile.TemporaryDirectory() as d:
            p = Path(d) / "state.json"
            save_state(State.empty(), p)
            state = load_hybrid(remote, p)
            self.assertEqual(len(state.subjects), 1)
            self.assertEqual(load_state(p), state)

    def test_falls_back_to_local(self) -> None:
        session = mock.Mock()
        session.get.side_effect = requests.ConnectionError("offline")
        remote = RemoteStore("https://example.test/doc", session=session)

        local = State(subjects=[Subject(id="z", name="Local")], timetable={}, attendance={})
        with tempfile.TemporaryDirectory() as d:
            p = Path(d) / "state.json"
            save_state(local, p)
            self.assertEqual(load_hybrid(remote, p), local)
            self.assertEqual(load_hybrid(None, p), local)


class TestAutoSaver(unittest.TestCase):
    def test_flush_only_when_dirty(self) -> None:
        flush = mock.Mock()
        saver = AutoSaver(flush, interval=60)
        self.assertFalse(saver.flush_now())
        flush.assert_not_called()

        saver.mark_dirty()
        self.assertTrue(saver.flush_now())
        flush.assert_called_once()
        self.assertFalse(saver.dirty)

    def test_failed_flush_stays_dirty(self) -> None:
        flush = mock.Mock(side_effect=RemoteStoreError("offline"))
        saver = AutoSaver(flush, interval=60)
        saver.mark_dirty()
        self.assertFalse(saver.flush_now())
        self.assertTrue(saver.dirty)

    def test_start_stop_lifecycle(self) -> None:
        flush = mock.Mock()
        saver = AutoSaver(flush, interval=3600)
        self.assertFalse(saver.running)

        saver.start()
        self.assertTrue(saver.running)
        saver.mark_dirty()
        saver.stop()

        self.assertFalse(saver.running)
        flush.assert_called_once()

    def test_invalid_interval(self) -> None:
        with self.assertRaises(ValueError):
            AutoSaver(mock.Mock(), interval=0)


class TestAutoSaverTimer(unittest.TestCase):
    """
    Timer-driven behaviour with a short interval.
    """

    def test_flushes_in_background_while_running(self) -> None:
        flushed = threading.Event()
        saver = AutoSaver(flushed.set, interval=0.01)
        saver.mark_dirty()
        saver.start()
        try:
            self.assertTrue(flushed.wait(2))
        finally:
            saver.stop()
        self.assertFalse(saver.dirty)

    def test_retries_after_failed_flush(self) -> None:
        calls = []
        succeeded = threading.Event()

        def flush() -> None:
            calls.append(1)
            if len(calls) == 1:
                raise RemoteStoreError("offline")
            succeeded.set()

        saver = AutoSaver(flush, interval=0.01)
        saver.mark_dirty()
        with self.assertLogs("myattendance.remote", level="WARNING"):
            saver.start()
            try:
                self.assertTrue(succeeded.wait(2))
            finally:
                saver.stop()
        self.assertEqual(len(calls), 2)
        self.assertFalse(saver.dirty)

    def test_no_flush_after_stop(self) -> None:
        flush = mock.Mock()
        saver = AutoSaver(flush, interval=0.01)
        saver.start()
        saver.stop()

        saver.mark_dirty()
        time.sleep(0.1)
        flush.assert_not_called()
        self.assertFalse(saver.running)

    def test_stop_waits_for_flush_in_progress(self) -> None:
        entered = threading.Event()
        release = threading.Event()
        in_flight = []

        def slow_flush() -> None:
            in_flight.append(1)
            entered.set()
            release.wait(2)
            in_flight.pop()

        saver = AutoSaver(slow_flush, interval=0.01)
        saver.mark_dirty()
        saver.start()
        self.assertTrue(entered.wait(2))

        stopper = threading.Thread(target=saver.stop)
        stopper.start()
        stopper.join(0.1)
        self.assertTrue(stopper.is_alive())

        release.set()
        stopper.join(2)
        self.assertFalse(stopper.is_alive())
        self.assertEqual(in_flight, [])
        self.assertFalse(saver.running)


if __name__ == "__main__":
    unittest.main()
