"""
Remote document store and auto-save.

The whole user state is kept as one JSON document at a URL (any HTTP
endpoint that answers GET and PUT, e.g. a Firestore/CouchDB/JSON-bin style
document). There is no merging: saving replaces the remote document, and
loading prefers the remote copy when there is one.

The local state.json file stays the working copy; the remote document is a
backup that can be pulled onto another machine.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Callable, Optional

import requests

from myattendance.model import State
from myattendance.storage import load_state, save_state, state_from_dict, state_to_dict

log = logging.getLogger(__name__)


class RemoteStoreError(RuntimeError):
    pass


class RemoteStore:
    def __init__(self, url: str, session: Optional[requests.Session] = None, timeout: float = 10) -> None:
        url = (url or "").strip()
        if not url:
            raise ValueError("Remote URL must not be empty.")
        self.url = url
        self.session = session or requests.Session()
        self.timeout = timeout

    def load(self) -> Optional[State]:
        """
        Fetch the remote document. Returns None if it does not exist yet.
        """
        try:
            resp = self.session.get(self.url, timeout=self.timeout)
            if resp.status_code == 404:
                return None
            resp.raise_for_status()
            data = resp.json()
        except requests.RequestException as exc:
            raise RemoteStoreError(f"Loading {self.url} failed: {exc}") from exc
        except ValueError as exc:
            raise RemoteStoreError(f"Remote document at {self.url} is not valid JSON") from exc

        # Some document stores wrap the payload: {"data": {...}}
        if isinstance(data, dict) and isinstance(data.get("data"), dict):
            data = data["data"]
        return state_from_dict(data)

    def save(self, state: State) -> None:
        try:
            resp = self.session.put(self.url, json=state_to_dict(state), timeout=self.timeout)
            resp.raise_for_status()
        except requests.RequestException as exc:
            raise RemoteStoreError(f"Saving to {self.url} failed: {exc}") from exc


def load_hybrid(remote: Optional[RemoteStore], path: str | Path | None = None) -> State:
    """
    Load state from the remote store when possible, else from the local file.

    A remote copy is written to the local file so it survives going offline.
    """
    if remote is not None:
        try:
            state = remote.load()
        except RemoteStoreError as exc:
            log.warning("%s; using local state", exc)
            state = None
        if state is not None:
            save_state(state, path)
            return state
    return load_state(path)


class AutoSaver:
    """
    Periodically flush unsaved changes.

    Call mark_dirty() after every edit. Between start() and stop(), a timer
    calls `flush` every `interval` seconds while there are unsaved changes.
    stop() cancels the timer, waits for a flush already in progress and then
    flushes one last time.
    """

    def __init__(self, flush: Callable[[], None], interval: float = 30.0) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self._flush = flush
        self.interval = interval
        self._dirty = False
        self._running = False
        self._timer: Optional[threading.Timer] = None
        self._lock = threading.Lock()

    @property
    def dirty(self) -> bool:
        return self._dirty

    @property
    def running(self) -> bool:
        return self._running

    def mark_dirty(self) -> None:
        with self._lock:
            self._dirty = True

    def flush_now(self) -> bool:
        """
        Flush if there are unsaved changes. Returns True if a flush succeeded.

        On failure the changes stay dirty so the next tick retries.
        """
        with self._lock:
            if not self._dirty:
                return False
            self._dirty = False
        try:
            self._flush()
        except RemoteStoreError as exc:
            log.warning("Auto-save failed: %s", exc)
            self.mark_dirty()
            return False
        return True

    def _schedule(self) -> None:
        # caller holds self._lock
        self._timer = threading.Timer(self.interval, self._tick)
        self._timer.daemon = True
        self._timer.start()

    def _tick(self) -> None:
        try:
            self.flush_now()
        finally:
            with self._lock:
                if self._running:
                    self._schedule()

    def start(self) -> None:
        with self._lock:
            if not self._running:
                self._running = True
                self._schedule()

    def stop(self) -> None:
        with self._lock:
            self._running = False
            timer, self._timer = self._timer, None
        if timer is not None:
            timer.cancel()
            if timer is not threading.current_thread():
                timer.join()
        self.flush_now()
