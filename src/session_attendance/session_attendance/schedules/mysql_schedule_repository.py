from __future__ import annotations

from typing import Any, Mapping, Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, normalize_mysql_time
from .model import Course, CourseSchedule, EnrolledStudent, parse_course_type, parse_day_of_week
from .repository import ScheduleRepository


def _hhmm(value: Any) -> str:
    t = normalize_mysql_time(value)
    return t.strftime("%H:%M") if t else "00:00"


def _to_course(r: Mapping[str, Any]) -> Course:
    return Course(
        course_id=str(r["course_id"]),
        code=r.get("code") or "",
        name=r.get("name") or "",
        semester=r.get("semester") or "",
        teacher_id=r.get("teacher_id"),
    )


def _to_schedule(r: Mapping[str, Any]) -> CourseSchedule:
    return CourseSchedule(
        schedule_id=str(r["schedule_id"]),
        course_id=str(r["course_id"]),
        day_of_week=parse_day_of_week(r.get("day_of_week")),
        start_time=_hhmm(r.get("start_time")),
        end_time=_hhmm(r.get("end_time")),
        room=r.get("room") or "",
        type=parse_course_type(r.get("type")),
    )


class MySQLScheduleRepository(ScheduleRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_course(self, course_id: str) -> Optional[Course]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT course_id, code, name, semester, teacher_id FROM courses WHERE course_id=%s",
                (course_id,),
            )
            r = fetchone(cur)
            return _to_course(r) if r else None

    def get_schedule(self, schedule_id: str) -> Optional[CourseSchedule]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT schedule_id, course_id, day_of_week, start_time, end_time, room, type
                FROM course_schedules
                WHERE schedule_id=%s
                """,
                (schedule_id,),
            )
            r = fetchone(cur)
            return _to_schedule(r) if r else None

    def list_schedules_for_course(self, course_id: str) -> Sequence[CourseSchedule]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT schedule_id, course_id, day_of_week, start_time, end_time, room, type
                FROM course_schedules
                WHERE course_id=%s
                ORDER BY seq ASC
                """,
                (course_id,),
            )
            return [_to_schedule(r) for r in fetchall(cur)]

    def list_courses_for_teacher(self, teacher_id: str) -> Sequence[Course]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT course_id, code, name, semester, teacher_id
                FROM courses
                WHERE teacher_id=%s
                ORDER BY code ASC
                """,
                (teacher_id,),
            )
            return [_to_course(r) for r in fetchall(cur)]

    def list_courses_for_student(self, student_id: str) -> Sequence[Course]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT c.course_id, c.code, c.name, c.semester, c.teacher_id
                FROM enrollments e
                JOIN courses c ON c.course_id = e.course_id
                WHERE e.student_id=%s
                ORDER BY c.code ASC
                """,
                (student_id,),
            )
            return [_to_course(r) for r in fetchall(cur)]

    def list_enrolled_students(self, course_id: str) -> Sequence[EnrolledStudent]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT student_id, full_name
                FROM enrollments
                WHERE course_id=%s
                ORDER BY full_name ASC, student_id ASC
                """,
                (course_id,),
            )
            return [
                EnrolledStudent(student_id=str(r["student_id"]), full_name=r.get("full_name") or "Unknown Student")
                for r in fetchall(cur)
            ]
