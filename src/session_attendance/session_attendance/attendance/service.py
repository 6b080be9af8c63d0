from __future__ import annotations

import logging
from typing import Callable, Dict, List

from ..common.datetime_utils import now_millis
from ..common.validators import require_mark_status, require_non_empty, require_session_date
from ..core.enums import MarkStatus
from ..core.exceptions import SessionLockedError
from ..schedules.service import ScheduleService
from ..sessions.model import SessionSnapshot, StudentMark, session_key
from ..sessions.repository import SessionStore
from .model import StudentAttendanceRow

logger = logging.getLogger(__name__)


class AttendanceService:
    """Per-student marks: self sign-in, teacher marking, absence marking, roster."""

    def __init__(
        self,
        store: SessionStore,
        schedules: ScheduleService,
        *,
        clock: Callable[[], int] = now_millis,
    ):
        self._store = store
        self._schedules = schedules
        self._clock = clock

    @staticmethod
    def _key(schedule_id: str, session_date: str) -> str:
        return session_key(require_non_empty(schedule_id, "schedule_id"), require_session_date(session_date))

    def sign_in(self, student_id: str, schedule_id: str, session_date: str) -> StudentMark:
        student_id = require_non_empty(student_id, "student_id")
        key = self._key(schedule_id, session_date)

        snapshot = self._store.read(key)
        if snapshot.is_locked:
            raise SessionLockedError("Sign-in is not open for this session")

        existing = snapshot.mark_for(student_id)
        if existing is not None and existing.is_present:
            return existing

        now = self._clock()
        mark = StudentMark(status=MarkStatus.PRESENT, check_in_time=now, marked_at=now)
        self._store.put_mark(key, student_id, mark)
        logger.info("Student %s signed in to %s", student_id, key)
        return mark

    def _stamp_manual_session(self, key: str, snapshot: SessionSnapshot, now: int) -> None:
        """A teacher-taken register counts as a held session even if it was never unlocked."""

        if snapshot.has_first_unlock:
            return
        stamp = {"firstUnlockTime": now, "manualMarkSession": True}
        if not snapshot.exists and self._store.create_if_absent(key, stamp):
            return
        # Losing either race just means someone else stamped it first.
        self._store.update_if(key, {"firstUnlockTime": None}, stamp)

    def mark_attendance(
        self,
        teacher_id: str,
        student_id: str,
        schedule_id: str,
        session_date: str,
        status: str | MarkStatus,
    ) -> StudentMark:
        teacher_id = require_non_empty(teacher_id, "teacher_id")
        student_id = require_non_empty(student_id, "student_id")
        status = require_mark_status(status)
        key = self._key(schedule_id, session_date)

        snapshot = self._store.read(key)
        now = self._clock()
        self._stamp_manual_session(key, snapshot, now)

        check_in_time = None
        if status == MarkStatus.PRESENT:
            existing = snapshot.mark_for(student_id)
            check_in_time = existing.check_in_time if existing and existing.check_in_time is not None else now

        mark = StudentMark(status=status, check_in_time=check_in_time, marked_at=now, manually_marked=True)
        self._store.put_mark(key, student_id, mark)
        logger.info("Teacher %s marked %s as %s in %s", teacher_id, student_id, status.value, key)
        return mark

    def mark_absentees(self, schedule_id: str, session_date: str) -> int:
        """Mark every enrolled student without a mark ABSENT; never overwrites an existing mark."""

        key = self._key(schedule_id, session_date)
        snapshot = self._store.read(key)
        if not snapshot.has_first_unlock:
            return 0

        now = self._clock()
        marked = 0
        for student in self._schedules.enrolled_students_for_schedule(schedule_id):
            if snapshot.mark_for(student.student_id) is not None:
                continue
            mark = StudentMark(status=MarkStatus.ABSENT, marked_at=now, auto_marked=True)
            if self._store.put_mark_if_absent(key, student.student_id, mark):
                marked += 1
        if marked:
            logger.info("Marked %s absentee(s) in %s", marked, key)
        return marked

    def has_student_signed_in(self, schedule_id: str, session_date: str, student_id: str) -> bool:
        student_id = require_non_empty(student_id, "student_id")
        mark = self._store.read(self._key(schedule_id, session_date)).mark_for(student_id)
        return mark is not None and mark.is_present

    def list_student_attendance(self, schedule_id: str, session_date: str) -> List[StudentAttendanceRow]:
        snapshot = self._store.read(self._key(schedule_id, session_date))

        rows: Dict[str, StudentAttendanceRow] = {}
        for student in self._schedules.enrolled_students_for_schedule(schedule_id):
            rows[student.student_id] = self._row(student.student_id, student.full_name, snapshot)
        for student_id in snapshot.students:
            if student_id not in rows:
                rows[student_id] = self._row(student_id, "Unknown Student", snapshot)
        return list(rows.values())

    @staticmethod
    def _row(student_id: str, name: str, snapshot: SessionSnapshot) -> StudentAttendanceRow:
        mark = snapshot.mark_for(student_id)
        return StudentAttendanceRow(
            student_id=student_id,
            student_name=name,
            has_attended=bool(mark and mark.is_present),
            status=mark.status if mark else None,
            check_in_time=mark.check_in_time if mark else None,
        )
