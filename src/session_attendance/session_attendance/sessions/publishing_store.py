from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Any, Mapping, Sequence

from ..core.exceptions import StoreUnavailableError
from .hub import SubscriptionHub
from .model import SessionSnapshot, StudentMark, session_path
from .repository import SessionStore

_LOCK_STRIPES = 64


class PublishingSessionStore(SessionStore):
    """Decorator that pushes the fresh snapshot to the hub after every successful write.

    Write, re-read and publish for one key run under that key's lock, so the
    last snapshot a subscriber receives is the one the store holds. Conditional
    writes that did not apply publish nothing. If the snapshot cannot be
    re-read the path's subscribers receive on_error instead.
    """

    def __init__(self, inner: SessionStore, hub: SubscriptionHub):
        self._inner = inner
        self._hub = hub
        self._locks = [threading.RLock() for _ in range(_LOCK_STRIPES)]

    @property
    def inner(self) -> SessionStore:
        return self._inner

    @contextmanager
    def _locked(self, key: str):
        with self._locks[hash(key) % _LOCK_STRIPES]:
            yield

    def _publish(self, key: str) -> None:
        path = session_path(key)
        if not self._hub.subscriber_count(path):
            return
        try:
            snapshot = self._inner.read(key)
        except StoreUnavailableError as exc:
            self._hub.fail(path, exc)
            return
        self._hub.publish(path, snapshot)

    def read(self, key: str) -> SessionSnapshot:
        return self._inner.read(key)

    def create_if_absent(self, key: str, fields: Mapping[str, Any]) -> bool:
        with self._locked(key):
            created = self._inner.create_if_absent(key, fields)
            if created:
                self._publish(key)
            return created

    def update(self, key: str, fields: Mapping[str, Any]) -> None:
        with self._locked(key):
            self._inner.update(key, fields)
            self._publish(key)

    def update_if(self, key: str, expected: Mapping[str, Any], fields: Mapping[str, Any]) -> bool:
        with self._locked(key):
            applied = self._inner.update_if(key, expected, fields)
            if applied:
                self._publish(key)
            return applied

    def put_mark(self, key: str, student_id: str, mark: StudentMark) -> None:
        with self._locked(key):
            self._inner.put_mark(key, student_id, mark)
            self._publish(key)

    def put_mark_if_absent(self, key: str, student_id: str, mark: StudentMark) -> bool:
        with self._locked(key):
            written = self._inner.put_mark_if_absent(key, student_id, mark)
            if written:
                self._publish(key)
            return written

    def scan_schedule(self, schedule_id: str) -> Sequence[SessionSnapshot]:
        return self._inner.scan_schedule(schedule_id)

    def list_held_sessions(self, schedule_id: str) -> Sequence[SessionSnapshot]:
        return self._inner.list_held_sessions(schedule_id)

    def list_unlocked(self) -> Sequence[SessionSnapshot]:
        return self._inner.list_unlocked()
