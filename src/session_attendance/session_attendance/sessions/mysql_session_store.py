from __future__ import annotations

from typing import Any, Dict, List, Mapping, Sequence

import mysql.connector

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall
from .memory_session_store import check_session_fields
from .model import SessionSnapshot, StudentMark, decode_session, split_session_key
from .repository import SessionStore

# wire field -> column
_COLUMNS = {
    "isLocked": "is_locked",
    "firstUnlockTime": "first_unlock_time",
    "lastUnlockTime": "last_unlock_time",
    "autoLockTime": "auto_lock_time",
    "lockTime": "lock_time",
    "autoLockedAt": "auto_locked_at",
    "manualMarkSession": "manual_mark_session",
}
_BOOLEAN_COLUMNS = {"is_locked": 1, "manual_mark_session": 0}

_SESSION_SELECT = """
    SELECT s.session_key, s.is_locked, s.first_unlock_time, s.last_unlock_time,
           s.auto_lock_time, s.lock_time, s.auto_locked_at, s.manual_mark_session
    FROM attendance_sessions s
"""
_MARK_SELECT = """
    SELECT m.session_key, m.student_id, m.status, m.check_in_time, m.marked_at,
           m.manually_marked, m.auto_marked
    FROM session_marks m
    JOIN attendance_sessions s ON s.session_key = m.session_key
"""


def _column_value(column: str, value: Any) -> Any:
    if column in _BOOLEAN_COLUMNS:
        return _BOOLEAN_COLUMNS[column] if value is None else int(bool(value))
    return None if value is None else int(value)


def _row_to_record(row: Mapping[str, Any], marks: Mapping[str, Any]) -> Dict[str, Any]:
    record: Dict[str, Any] = {"students": dict(marks)}
    for field, column in _COLUMNS.items():
        value = row.get(column)
        if value is None:
            continue
        record[field] = bool(value) if column in _BOOLEAN_COLUMNS else int(value)
    return record


def _mark_to_record(row: Mapping[str, Any]) -> Dict[str, Any]:
    record: Dict[str, Any] = {"status": row["status"]}
    if row.get("check_in_time") is not None:
        record["checkInTime"] = int(row["check_in_time"])
    if row.get("marked_at") is not None:
        record["markedAt"] = int(row["marked_at"])
    record["manuallyMarked"] = bool(row.get("manually_marked"))
    record["autoMarked"] = bool(row.get("auto_marked"))
    return record


class MySQLSessionStore(SessionStore):
    """Session store on three tables: attendance_sessions, session_marks, held_sessions.

    held_sessions is the per-schedule index of sessions whose first_unlock_time
    is set; it is written in the same transaction as the stamp.
    """

    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _load(self, cur, where: str, params: tuple, *, join: str = "") -> List[SessionSnapshot]:
        cur.execute(f"{_SESSION_SELECT} {join} WHERE {where} ORDER BY s.session_date ASC, s.session_key ASC", params)
        rows = fetchall(cur)
        if not rows:
            return []

        cur.execute(f"{_MARK_SELECT} {join} WHERE {where}", params)
        marks: Dict[str, Dict[str, Any]] = {}
        for m in fetchall(cur):
            marks.setdefault(m["session_key"], {})[m["student_id"]] = _mark_to_record(m)

        return [decode_session(r["session_key"], _row_to_record(r, marks.get(r["session_key"], {}))) for r in rows]

    @staticmethod
    def _ensure_node(cur, key: str) -> None:
        schedule_id, session_date = split_session_key(key)
        cur.execute(
            """
            INSERT INTO attendance_sessions(session_key, schedule_id, session_date, is_locked)
            VALUES(%s,%s,%s,1)
            ON DUPLICATE KEY UPDATE session_key=session_key
            """,
            (key, schedule_id, session_date),
        )

    @staticmethod
    def _index_held(cur, key: str, first_unlock_time: Any) -> None:
        if first_unlock_time is None:
            return
        schedule_id, _ = split_session_key(key)
        cur.execute(
            """
            INSERT INTO held_sessions(schedule_id, session_key, first_unlock_time)
            VALUES(%s,%s,%s)
            ON DUPLICATE KEY UPDATE session_key=session_key
            """,
            (schedule_id, key, int(first_unlock_time)),
        )

    def read(self, key: str) -> SessionSnapshot:
        with db_cursor(self._conn_factory) as (_, cur):
            found = self._load(cur, "s.session_key=%s", (key,))
        return found[0] if found else SessionSnapshot.missing(key)

    def create_if_absent(self, key: str, fields: Mapping[str, Any]) -> bool:
        check_session_fields(fields, allow_first_unlock=True)
        schedule_id, session_date = split_session_key(key)
        columns = ["session_key", "schedule_id", "session_date"]
        values: List[Any] = [key, schedule_id, session_date]
        merged = {"isLocked": True, **fields}
        for field, value in merged.items():
            columns.append(_COLUMNS[field])
            values.append(_column_value(_COLUMNS[field], value))

        placeholders = ",".join(["%s"] * len(values))
        with db_cursor(self._conn_factory) as (_, cur):
            try:
                cur.execute(
                    f"INSERT INTO attendance_sessions({', '.join(columns)}) VALUES({placeholders})",
                    tuple(values),
                )
            except mysql.connector.IntegrityError:
                return False
            self._index_held(cur, key, fields.get("firstUnlockTime"))
            return True

    def update(self, key: str, fields: Mapping[str, Any]) -> None:
        check_session_fields(fields, allow_first_unlock=False)
        if not fields:
            return
        assignments = ", ".join(f"{_COLUMNS[f]}=%s" for f in fields)
        params = tuple(_column_value(_COLUMNS[f], v) for f, v in fields.items())
        with db_cursor(self._conn_factory) as (_, cur):
            self._ensure_node(cur, key)
            cur.execute(f"UPDATE attendance_sessions SET {assignments} WHERE session_key=%s", params + (key,))

    def update_if(self, key: str, expected: Mapping[str, Any], fields: Mapping[str, Any]) -> bool:
        check_session_fields(expected, allow_first_unlock=True)
        stamps_first_unlock = "firstUnlockTime" in expected and expected["firstUnlockTime"] is None
        check_session_fields(fields, allow_first_unlock=stamps_first_unlock)
        if not fields:
            return False

        assignments = ", ".join(f"{_COLUMNS[f]}=%s" for f in fields)
        conditions = " AND ".join(f"{_COLUMNS[f]} <=> %s" for f in expected)
        where = "session_key=%s" + (f" AND {conditions}" if conditions else "")
        params = (
            tuple(_column_value(_COLUMNS[f], v) for f, v in fields.items())
            + (key,)
            + tuple(None if v is None else _column_value(_COLUMNS[f], v) for f, v in expected.items())
        )

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"UPDATE attendance_sessions SET {assignments} WHERE {where}", params)
            # The connection reports matched rows (FOUND_ROWS), not only changed ones.
            if cur.rowcount != 1:
                return False
            if stamps_first_unlock:
                self._index_held(cur, key, fields.get("firstUnlockTime"))
            return True

    def put_mark(self, key: str, student_id: str, mark: StudentMark) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            self._ensure_node(cur, key)
            cur.execute(
                """
                INSERT INTO session_marks(session_key, student_id, status, check_in_time, marked_at, manually_marked, auto_marked)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    status=VALUES(status),
                    check_in_time=VALUES(check_in_time),
                    marked_at=VALUES(marked_at),
                    manually_marked=VALUES(manually_marked),
                    auto_marked=VALUES(auto_marked)
                """,
                self._mark_params(key, student_id, mark),
            )

    def put_mark_if_absent(self, key: str, student_id: str, mark: StudentMark) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            self._ensure_node(cur, key)
            try:
                cur.execute(
                    """
                    INSERT INTO session_marks(session_key, student_id, status, check_in_time, marked_at, manually_marked, auto_marked)
                    VALUES(%s,%s,%s,%s,%s,%s,%s)
                    """,
                    self._mark_params(key, student_id, mark),
                )
            except mysql.connector.IntegrityError:
                return False
            return True

    @staticmethod
    def _mark_params(key: str, student_id: str, mark: StudentMark) -> tuple:
        return (
            key,
            str(student_id),
            mark.status.value,
            mark.check_in_time,
            mark.marked_at,
            int(mark.manually_marked),
            int(mark.auto_marked),
        )

    def scan_schedule(self, schedule_id: str) -> Sequence[SessionSnapshot]:
        with db_cursor(self._conn_factory) as (_, cur):
            return self._load(cur, "s.schedule_id=%s", (schedule_id,))

    def list_held_sessions(self, schedule_id: str) -> Sequence[SessionSnapshot]:
        with db_cursor(self._conn_factory) as (_, cur):
            return self._load(
                cur,
                "h.schedule_id=%s",
                (schedule_id,),
                join="JOIN held_sessions h ON h.session_key = s.session_key",
            )

    def list_unlocked(self) -> Sequence[SessionSnapshot]:
        with db_cursor(self._conn_factory) as (_, cur):
            return self._load(cur, "s.is_locked=0", ())

