"""Session records and the one place their defaults are applied.

Stores hand records around in the wire shape (camelCase keys, unix millis):

    {
        "isLocked": bool,
        "firstUnlockTime": int | absent,
        "students": {studentId: {"status": str, "checkInTime": int | absent}},
    }

`decode_session` turns such a record (or None for a missing node) into a
`SessionSnapshot`; nothing else in the package reads raw records.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple

from ..core.constants import SESSION_KEY_SEPARATOR, SESSIONS_PATH
from ..core.enums import MarkStatus

logger = logging.getLogger(__name__)

# Session-level fields writers may set through update()/update_if().
SESSION_FIELDS = (
    "isLocked",
    "firstUnlockTime",
    "lastUnlockTime",
    "autoLockTime",
    "lockTime",
    "autoLockedAt",
    "manualMarkSession",
)


def session_key(schedule_id: str, session_date: str) -> str:
    return f"{schedule_id}{SESSION_KEY_SEPARATOR}{session_date}"


def split_session_key(key: str) -> Tuple[str, str]:
    """Return (schedule_id, session_date); schedule ids may themselves contain '_'."""

    schedule_id, sep, session_date = key.rpartition(SESSION_KEY_SEPARATOR)
    if not sep or not schedule_id or not session_date:
        raise ValueError(f"Malformed session key: {key!r}")
    return schedule_id, session_date


def session_path(key: str) -> str:
    return f"{SESSIONS_PATH}/{key}"


@dataclass(frozen=True)
class StudentMark:
    status: MarkStatus
    check_in_time: Optional[int] = None
    marked_at: Optional[int] = None
    manually_marked: bool = False
    auto_marked: bool = False

    @property
    def is_present(self) -> bool:
        return self.status == MarkStatus.PRESENT

    def to_record(self) -> Dict[str, Any]:
        record: Dict[str, Any] = {"status": self.status.value}
        if self.check_in_time is not None:
            record["checkInTime"] = self.check_in_time
        if self.marked_at is not None:
            record["markedAt"] = self.marked_at
        if self.manually_marked:
            record["manuallyMarked"] = True
        if self.auto_marked:
            record["autoMarked"] = True
        return record


@dataclass(frozen=True)
class SessionSnapshot:
    """Immutable view of one session node with every default already applied."""

    session_key: str
    exists: bool = False
    is_locked: bool = True
    first_unlock_time: Optional[int] = None
    last_unlock_time: Optional[int] = None
    auto_lock_time: Optional[int] = None
    lock_time: Optional[int] = None
    auto_locked_at: Optional[int] = None
    manual_mark_session: bool = False
    students: Mapping[str, StudentMark] = field(default_factory=dict)

    @classmethod
    def missing(cls, key: str) -> "SessionSnapshot":
        return cls(session_key=key)

    @property
    def has_first_unlock(self) -> bool:
        return self.first_unlock_time is not None

    @property
    def schedule_id(self) -> str:
        return split_session_key(self.session_key)[0]

    @property
    def session_date(self) -> str:
        return split_session_key(self.session_key)[1]

    def mark_for(self, student_id: str) -> Optional[StudentMark]:
        return self.students.get(str(student_id))

    def to_record(self) -> Dict[str, Any]:
        record: Dict[str, Any] = {
            "isLocked": self.is_locked,
            "students": {sid: mark.to_record() for sid, mark in self.students.items()},
        }
        optional = {
            "firstUnlockTime": self.first_unlock_time,
            "lastUnlockTime": self.last_unlock_time,
            "autoLockTime": self.auto_lock_time,
            "lockTime": self.lock_time,
            "autoLockedAt": self.auto_locked_at,
        }
        record.update({k: v for k, v in optional.items() if v is not None})
        if self.manual_mark_session:
            record["manualMarkSession"] = True
        return record

    def to_dict(self) -> Dict[str, Any]:
        """JSON payload for HTTP/stream consumers."""

        schedule_id, session_date = split_session_key(self.session_key)
        return {
            "sessionKey": self.session_key,
            "scheduleId": schedule_id,
            "date": session_date,
            "exists": self.exists,
            **self.to_record(),
        }


def _optional_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def decode_mark(student_id: str, record: Any) -> Optional[StudentMark]:
    """Decode one student entry; unreadable entries count as "not marked"."""

    if not isinstance(record, Mapping):
        logger.warning("Ignoring malformed mark for student %s: %r", student_id, record)
        return None
    try:
        status = MarkStatus(str(record.get("status", "")).upper())
    except ValueError:
        logger.warning("Ignoring unknown mark status %r for student %s", record.get("status"), student_id)
        return None
    return StudentMark(
        status=status,
        check_in_time=_optional_int(record.get("checkInTime")),
        marked_at=_optional_int(record.get("markedAt")),
        manually_marked=bool(record.get("manuallyMarked", False)),
        auto_marked=bool(record.get("autoMarked", False)),
    )


def decode_session(key: str, record: Optional[Mapping[str, Any]]) -> SessionSnapshot:
    """Apply the documented defaults once: a missing node is locked, never unlocked, unmarked."""

    if record is None:
        return SessionSnapshot.missing(key)

    is_locked = record.get("isLocked")
    students: Dict[str, StudentMark] = {}
    for student_id, mark_record in (record.get("students") or {}).items():
        mark = decode_mark(str(student_id), mark_record)
        if mark is not None:
            students[str(student_id)] = mark

    return SessionSnapshot(
        session_key=key,
        exists=True,
        is_locked=True if is_locked is None else bool(is_locked),
        first_unlock_time=_optional_int(record.get("firstUnlockTime")),
        last_unlock_time=_optional_int(record.get("lastUnlockTime")),
        auto_lock_time=_optional_int(record.get("autoLockTime")),
        lock_time=_optional_int(record.get("lockTime")),
        auto_locked_at=_optional_int(record.get("autoLockedAt")),
        manual_mark_session=bool(record.get("manualMarkSession", False)),
        students=students,
    )
