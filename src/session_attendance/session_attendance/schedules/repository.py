from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import Course, CourseSchedule, EnrolledStudent


class ScheduleRepository(Protocol):
    """Read-only access to courses, their weekly schedules and enrolments."""

    def get_course(self, course_id: str) -> Optional[Course]:
        raise NotImplementedError

    def get_schedule(self, schedule_id: str) -> Optional[CourseSchedule]:
        raise NotImplementedError

    def list_schedules_for_course(self, course_id: str) -> Sequence[CourseSchedule]:
        """Schedules in the order they were created."""

        raise NotImplementedError

    def list_courses_for_teacher(self, teacher_id: str) -> Sequence[Course]:
        raise NotImplementedError

    def list_courses_for_student(self, student_id: str) -> Sequence[Course]:
        raise NotImplementedError

    def list_enrolled_students(self, course_id: str) -> Sequence[EnrolledStudent]:
        raise NotImplementedError
