from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

from ..core.enums import CourseType, DayOfWeek

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Course:
    course_id: str
    code: str
    name: str
    semester: str
    teacher_id: Optional[str] = None


@dataclass(frozen=True)
class CourseSchedule:
    """Weekly slot of a course. Reference data, never mutated here."""

    schedule_id: str
    course_id: str
    day_of_week: DayOfWeek
    start_time: str
    end_time: str
    room: str = ""
    type: CourseType = CourseType.LECTURE


@dataclass(frozen=True)
class EnrolledStudent:
    student_id: str
    full_name: str


def parse_day_of_week(value: Any) -> DayOfWeek:
    try:
        return DayOfWeek(str(value).strip().upper())
    except ValueError:
        logger.warning("Unknown day of week %r, using %s", value, DayOfWeek.MONDAY.value)
        return DayOfWeek.MONDAY


def parse_course_type(value: Any) -> CourseType:
    if value is None:
        return CourseType.LECTURE
    try:
        return CourseType(str(value).strip().upper())
    except ValueError:
        logger.warning("Unknown course type %r, using %s", value, CourseType.LECTURE.value)
        return CourseType.LECTURE
