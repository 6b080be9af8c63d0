"""Turn raw session facts into what a viewer sees.

This is the one decision table for attendance icons; teacher and student
surfaces both call it; presentation mappings key off its output.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import MarkStatus, SignInStatus, TodayClassStatus
from .model import SessionSnapshot, StudentMark


@dataclass(frozen=True)
class ResolvedSessionState:
    sign_in_status: SignInStatus
    today_status: TodayClassStatus
    has_student_signed: bool

    def to_dict(self) -> dict:
        return {
            "signInStatus": self.sign_in_status.value,
            "todayStatus": self.today_status.value,
            "hasStudentSigned": self.has_student_signed,
        }


SIGNED = ResolvedSessionState(SignInStatus.SIGNED, TodayClassStatus.ATTENDED, True)
MARKED_NOT_PRESENT = ResolvedSessionState(SignInStatus.CLOSED, TodayClassStatus.MISSED, False)
OPEN = ResolvedSessionState(SignInStatus.UNLOCKED, TodayClassStatus.IN_PROGRESS, False)
WINDOW_CLOSED = ResolvedSessionState(SignInStatus.CLOSED, TodayClassStatus.UPCOMING, False)
NEVER_OPENED = ResolvedSessionState(SignInStatus.LOCKED, TodayClassStatus.UPCOMING, False)

_NOT_PRESENT = frozenset({MarkStatus.ABSENT, MarkStatus.LATE, MarkStatus.EXCUSED})


def resolve_session_state(
    student_mark: Optional[StudentMark],
    is_locked: bool,
    has_first_unlock: bool,
) -> ResolvedSessionState:
    """First matching branch wins; explicit marks override lock-state inference."""

    status = student_mark.status if student_mark is not None else None

    if status == MarkStatus.PRESENT:
        return SIGNED
    if status in _NOT_PRESENT:
        return MARKED_NOT_PRESENT
    if not is_locked:
        return OPEN
    if has_first_unlock:
        # Window closed without a sign-in; stays here until someone marks the student.
        return WINDOW_CLOSED
    return NEVER_OPENED


def resolve_for_student(snapshot: SessionSnapshot, student_id: Optional[str]) -> ResolvedSessionState:
    """Resolve a snapshot for one student, or for "nobody" (teacher view) when student_id is None."""

    mark = snapshot.mark_for(student_id) if student_id is not None else None
    return resolve_session_state(mark, snapshot.is_locked, snapshot.has_first_unlock)
