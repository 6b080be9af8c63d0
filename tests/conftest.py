from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

import pytest

from src.session_attendance.session_attendance.core.constants import MILLIS_PER_MINUTE
from src.session_attendance.session_attendance.core.enums import CourseType, DayOfWeek
from src.session_attendance.session_attendance.schedules.model import Course, CourseSchedule, EnrolledStudent
from src.session_attendance.session_attendance.sessions.hub import SubscriptionHub
from src.session_attendance.session_attendance.sessions.memory_session_store import InMemorySessionStore

# 2024-09-02 09:00:00 UTC (a Monday)
START_MILLIS = 1_725_267_600_000


class ManualClock:
    def __init__(self, now: int = START_MILLIS):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, *, minutes: int = 0, millis: int = 0) -> int:
        self.now += minutes * MILLIS_PER_MINUTE + millis
        return self.now


@dataclass
class InMemorySchedules:
    courses: dict[str, Course] = field(default_factory=dict)
    schedules: list[CourseSchedule] = field(default_factory=list)
    enrolled: dict[str, list[EnrolledStudent]] = field(default_factory=dict)

    def get_course(self, course_id: str) -> Optional[Course]:
        return self.courses.get(course_id)

    def get_schedule(self, schedule_id: str) -> Optional[CourseSchedule]:
        return next((s for s in self.schedules if s.schedule_id == schedule_id), None)

    def list_schedules_for_course(self, course_id: str):
        return [s for s in self.schedules if s.course_id == course_id]

    def list_courses_for_teacher(self, teacher_id: str):
        return [c for c in self.courses.values() if c.teacher_id == teacher_id]

    def list_courses_for_student(self, student_id: str):
        return [
            self.courses[course_id]
            for course_id, students in self.enrolled.items()
            if any(s.student_id == student_id for s in students)
        ]

    def list_enrolled_students(self, course_id: str):
        return list(self.enrolled.get(course_id, []))


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def store() -> InMemorySessionStore:
    return InMemorySessionStore()


@pytest.fixture
def hub() -> SubscriptionHub:
    return SubscriptionHub()


@pytest.fixture
def schedules() -> InMemorySchedules:
    cs101 = Course(course_id="CS101", code="CS101", name="Programming", semester="2024-S1", teacher_id="t-1")
    ma201 = Course(course_id="MA201", code="MA201", name="Linear Algebra", semester="2024-S1", teacher_id="t-2")
    return InMemorySchedules(
        courses={"CS101": cs101, "MA201": ma201},
        schedules=[
            CourseSchedule("CS101_LEC", "CS101", DayOfWeek.MONDAY, "09:00", "11:00", "A101", CourseType.LECTURE),
            CourseSchedule("CS101_LAB", "CS101", DayOfWeek.WEDNESDAY, "14:00", "16:00", "LAB-2", CourseType.COMPUTING),
            CourseSchedule("CS101_TUT", "CS101", DayOfWeek.MONDAY, "13:00", "14:00", "B110", CourseType.TUTORIAL),
            CourseSchedule("MA201_LEC", "MA201", DayOfWeek.MONDAY, "15:00", "17:00", "B204", CourseType.LECTURE),
        ],
        enrolled={
            "CS101": [EnrolledStudent("s-1", "Alice"), EnrolledStudent("s-2", "Bao"), EnrolledStudent("s-3", "Chi")],
            "MA201": [EnrolledStudent("s-1", "Alice")],
        },
    )
