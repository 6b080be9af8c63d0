from __future__ import annotations

import itertools

import pytest

from src.session_attendance.session_attendance.core.enums import MarkStatus, SignInStatus, TodayClassStatus
from src.session_attendance.session_attendance.sessions.model import StudentMark, decode_session
from src.session_attendance.session_attendance.sessions.resolver import (
    MARKED_NOT_PRESENT,
    NEVER_OPENED,
    OPEN,
    SIGNED,
    WINDOW_CLOSED,
    resolve_for_student,
    resolve_session_state,
)

OUTCOMES = {SIGNED, MARKED_NOT_PRESENT, OPEN, WINDOW_CLOSED, NEVER_OPENED}


def _mark(status):
    return StudentMark(status=status) if status is not None else None


def test_present_mark_is_signed():
    state = resolve_session_state(_mark(MarkStatus.PRESENT), is_locked=False, has_first_unlock=True)
    assert (state.sign_in_status, state.today_status, state.has_student_signed) == (
        SignInStatus.SIGNED,
        TodayClassStatus.ATTENDED,
        True,
    )


@pytest.mark.parametrize("status", [MarkStatus.ABSENT, MarkStatus.LATE, MarkStatus.EXCUSED])
def test_non_present_marks_are_missed(status):
    state = resolve_session_state(_mark(status), is_locked=False, has_first_unlock=True)
    assert state == MARKED_NOT_PRESENT
    assert state.today_status == TodayClassStatus.MISSED


def test_unlocked_without_mark_is_open():
    assert resolve_session_state(None, is_locked=False, has_first_unlock=True) == OPEN


def test_locked_after_unlock_is_window_closed():
    state = resolve_session_state(None, is_locked=True, has_first_unlock=True)
    assert state == WINDOW_CLOSED
    assert (state.sign_in_status, state.today_status) == (SignInStatus.CLOSED, TodayClassStatus.UPCOMING)


def test_never_opened_is_locked_upcoming():
    assert resolve_session_state(None, is_locked=True, has_first_unlock=False) == NEVER_OPENED


def test_explicit_mark_wins_over_lock_inference():
    state = resolve_session_state(_mark(MarkStatus.PRESENT), is_locked=True, has_first_unlock=True)
    assert state == SIGNED
    assert state != WINDOW_CLOSED


def test_every_input_maps_to_exactly_one_outcome():
    statuses = [None, *MarkStatus]
    for status, is_locked, has_first in itertools.product(statuses, [True, False], [True, False]):
        state = resolve_session_state(_mark(status), is_locked, has_first)
        assert state in OUTCOMES
        assert state.has_student_signed == (status == MarkStatus.PRESENT)


def test_resolve_for_student_on_missing_session_uses_defaults():
    snapshot = decode_session("CS101_LEC_2024-09-02", None)
    assert resolve_for_student(snapshot, "s-1") == NEVER_OPENED


def test_teacher_view_ignores_student_marks():
    snapshot = decode_session(
        "CS101_LEC_2024-09-02",
        {"isLocked": False, "firstUnlockTime": 1, "students": {"s-1": {"status": "PRESENT"}}},
    )
    assert resolve_for_student(snapshot, None) == OPEN
    assert resolve_for_student(snapshot, "s-1") == SIGNED


def test_to_dict_uses_wire_names():
    assert SIGNED.to_dict() == {"signInStatus": "SIGNED", "todayStatus": "ATTENDED", "hasStudentSigned": True}
