from __future__ import annotations

import logging
from datetime import date
from typing import Iterable, List, Sequence, Tuple, Union

from ..common.datetime_utils import resolve_day_of_week
from ..common.validators import require_non_empty
from ..core.enums import Role
from .model import Course, CourseSchedule, EnrolledStudent
from .repository import ScheduleRepository

logger = logging.getLogger(__name__)


def filter_schedules_for_day(schedules: Iterable[CourseSchedule], session_date: Union[str, date]) -> List[CourseSchedule]:
    """Keep the entries whose weekday matches session_date, preserving their order."""

    day = resolve_day_of_week(session_date)
    return [s for s in schedules if s.day_of_week == day]


class ScheduleService:
    def __init__(self, schedules: ScheduleRepository):
        self._schedules = schedules

    def schedules_for(self, course_id: str, session_date: Union[str, date]) -> List[CourseSchedule]:
        course_id = require_non_empty(course_id, "course_id")
        return filter_schedules_for_day(self._schedules.list_schedules_for_course(course_id), session_date)

    def courses_for(self, user_id: str, role: Role) -> Sequence[Course]:
        user_id = require_non_empty(user_id, "user_id")
        if role == Role.TEACHER:
            return self._schedules.list_courses_for_teacher(user_id)
        return self._schedules.list_courses_for_student(user_id)

    def todays_schedules(self, user_id: str, role: Role, session_date: Union[str, date]) -> List[Tuple[Course, CourseSchedule]]:
        out: List[Tuple[Course, CourseSchedule]] = []
        for course in self.courses_for(user_id, role):
            for schedule in self.schedules_for(course.course_id, session_date):
                out.append((course, schedule))
        return out

    def enrolled_students_for_schedule(self, schedule_id: str) -> Sequence[EnrolledStudent]:
        schedule = self._schedules.get_schedule(require_non_empty(schedule_id, "schedule_id"))
        if schedule is None:
            logger.warning("Unknown schedule %s, no enrolled students", schedule_id)
            return []
        return self._schedules.list_enrolled_students(schedule.course_id)
