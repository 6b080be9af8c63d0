from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Who is looking at today's classes."""

    TEACHER = "teacher"
    STUDENT = "student"


class DayOfWeek(str, Enum):
    """Calendar day a schedule entry repeats on (declared Monday-first to match date.weekday())."""

    MONDAY = "MONDAY"
    TUESDAY = "TUESDAY"
    WEDNESDAY = "WEDNESDAY"
    THURSDAY = "THURSDAY"
    FRIDAY = "FRIDAY"
    SATURDAY = "SATURDAY"
    SUNDAY = "SUNDAY"

    @classmethod
    def from_weekday(cls, weekday: int) -> "DayOfWeek":
        return list(cls)[weekday]

    @property
    def display_name(self) -> str:
        return self.value.capitalize()


class CourseType(str, Enum):
    LECTURE = "LECTURE"
    TUTORIAL = "TUTORIAL"
    COMPUTING = "COMPUTING"
    LAB = "LAB"


class MarkStatus(str, Enum):
    """Per-student mark stored inside a session. No entry means "not marked"."""

    PRESENT = "PRESENT"
    ABSENT = "ABSENT"
    LATE = "LATE"
    EXCUSED = "EXCUSED"


class SignInStatus(str, Enum):
    """Icon state shown for today's class."""

    LOCKED = "LOCKED"
    UNLOCKED = "UNLOCKED"
    SIGNED = "SIGNED"
    CLOSED = "CLOSED"


class TodayClassStatus(str, Enum):
    """Lifecycle of a class meeting from the student's perspective."""

    UPCOMING = "UPCOMING"
    IN_PROGRESS = "IN_PROGRESS"
    ATTENDED = "ATTENDED"
    MISSED = "MISSED"
