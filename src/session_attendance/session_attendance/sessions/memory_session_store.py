from __future__ import annotations

import copy
import threading
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .model import SESSION_FIELDS, SessionSnapshot, StudentMark, decode_session, split_session_key
from .repository import SessionStore


def check_session_fields(fields: Mapping[str, Any], *, allow_first_unlock: bool) -> None:
    """Reject unknown fields and any write that could move firstUnlockTime after it is set."""

    unknown = set(fields) - set(SESSION_FIELDS)
    if unknown:
        raise ValueError(f"Unknown session fields: {sorted(unknown)}")
    if "firstUnlockTime" in fields and not allow_first_unlock:
        raise ValueError("firstUnlockTime can only be set by a conditional write on its absence")


class InMemorySessionStore(SessionStore):
    """Thread-safe process-local store.

    Backs the `memory` SESSION_STORE setting and the test-suite. Every public
    method holds one lock, so each call is atomic with respect to the others.
    """

    def __init__(self, records: Optional[Mapping[str, Mapping[str, Any]]] = None):
        self._lock = threading.RLock()
        self._records: Dict[str, Dict[str, Any]] = {}
        self._held: Dict[str, Dict[str, None]] = {}
        for key, record in (records or {}).items():
            self._records[key] = copy.deepcopy(dict(record))
            self._index_if_held(key)

    def _index_if_held(self, key: str) -> None:
        record = self._records.get(key)
        if record is None or record.get("firstUnlockTime") is None:
            return
        schedule_id, _ = split_session_key(key)
        self._held.setdefault(schedule_id, {})[key] = None

    def _node(self, key: str) -> Dict[str, Any]:
        return self._records.setdefault(key, {"isLocked": True, "students": {}})

    @staticmethod
    def _merge(record: Dict[str, Any], fields: Mapping[str, Any]) -> None:
        for name, value in fields.items():
            if value is None:
                record.pop(name, None)
            else:
                record[name] = value

    def read(self, key: str) -> SessionSnapshot:
        with self._lock:
            return decode_session(key, self._records.get(key))

    def create_if_absent(self, key: str, fields: Mapping[str, Any]) -> bool:
        check_session_fields(fields, allow_first_unlock=True)
        with self._lock:
            if key in self._records:
                return False
            record: Dict[str, Any] = {"isLocked": True, "students": {}}
            self._merge(record, fields)
            self._records[key] = record
            self._index_if_held(key)
            return True

    def update(self, key: str, fields: Mapping[str, Any]) -> None:
        check_session_fields(fields, allow_first_unlock=False)
        with self._lock:
            self._merge(self._node(key), fields)

    def update_if(self, key: str, expected: Mapping[str, Any], fields: Mapping[str, Any]) -> bool:
        check_session_fields(expected, allow_first_unlock=True)
        check_session_fields(fields, allow_first_unlock="firstUnlockTime" in expected and expected["firstUnlockTime"] is None)
        with self._lock:
            record = self._records.get(key)
            if record is None:
                return False
            if any(record.get(name) != value for name, value in expected.items()):
                return False
            self._merge(record, fields)
            self._index_if_held(key)
            return True

    def put_mark(self, key: str, student_id: str, mark: StudentMark) -> None:
        with self._lock:
            self._node(key).setdefault("students", {})[str(student_id)] = mark.to_record()

    def put_mark_if_absent(self, key: str, student_id: str, mark: StudentMark) -> bool:
        with self._lock:
            students = self._node(key).setdefault("students", {})
            if str(student_id) in students:
                return False
            students[str(student_id)] = mark.to_record()
            return True

    def scan_schedule(self, schedule_id: str) -> Sequence[SessionSnapshot]:
        with self._lock:
            out: List[SessionSnapshot] = []
            for key, record in self._records.items():
                try:
                    owner, _ = split_session_key(key)
                except ValueError:
                    continue
                if owner == schedule_id:
                    out.append(decode_session(key, record))
            return out

    def list_held_sessions(self, schedule_id: str) -> Sequence[SessionSnapshot]:
        with self._lock:
            return [decode_session(key, self._records.get(key)) for key in self._held.get(schedule_id, {})]

    def list_unlocked(self) -> Sequence[SessionSnapshot]:
        with self._lock:
            snapshots = [decode_session(key, record) for key, record in self._records.items()]
        return [s for s in snapshots if not s.is_locked]
