from __future__ import annotations

import pytest

from src.session_attendance.session_attendance.attendance.aggregator import AttendanceAggregator
from src.session_attendance.session_attendance.attendance.service import AttendanceService
from src.session_attendance.session_attendance.core.enums import MarkStatus
from src.session_attendance.session_attendance.core.exceptions import SessionLockedError, ValidationError
from src.session_attendance.session_attendance.schedules.service import ScheduleService
from src.session_attendance.session_attendance.sessions.lifecycle import SessionLifecycleController
from src.session_attendance.session_attendance.sessions.model import session_key

SCHEDULE = "CS101_LEC"
DAY = "2024-09-02"
KEY = session_key(SCHEDULE, DAY)


@pytest.fixture
def service(store, schedules, clock):
    return AttendanceService(store, ScheduleService(schedules), clock=clock)


@pytest.fixture
def lifecycle(store, clock, service):
    return SessionLifecycleController(store, clock=clock, absence_marker=service.mark_absentees)


def test_sign_in_requires_open_session(service, lifecycle):
    with pytest.raises(SessionLockedError):
        service.sign_in("s-1", SCHEDULE, DAY)

    lifecycle.unlock(SCHEDULE, DAY)
    lifecycle.lock(SCHEDULE, DAY)
    with pytest.raises(SessionLockedError):
        service.sign_in("s-1", SCHEDULE, DAY)


def test_sign_in_records_check_in_once(service, lifecycle, store, clock):
    lifecycle.unlock(SCHEDULE, DAY)
    first = service.sign_in("s-1", SCHEDULE, DAY)
    clock.advance(minutes=3)
    again = service.sign_in("s-1", SCHEDULE, DAY)

    assert first.status == MarkStatus.PRESENT
    assert again == first
    assert store.read(KEY).mark_for("s-1").check_in_time == first.check_in_time
    assert service.has_student_signed_in(SCHEDULE, DAY, "s-1") is True
    assert service.has_student_signed_in(SCHEDULE, DAY, "s-2") is False


def test_manual_mark_stamps_first_unlock_once(service, store, clock):
    stamped_at = clock.now
    service.mark_attendance("t-1", "s-1", SCHEDULE, DAY, "present")
    clock.advance(minutes=5)
    service.mark_attendance("t-1", "s-2", SCHEDULE, DAY, MarkStatus.LATE)

    snapshot = store.read(KEY)
    assert snapshot.first_unlock_time == stamped_at
    assert snapshot.manual_mark_session is True
    assert snapshot.is_locked is True
    assert snapshot.mark_for("s-1").manually_marked is True
    assert snapshot.mark_for("s-2").check_in_time is None
    assert [s.session_key for s in store.list_held_sessions(SCHEDULE)] == [KEY]


def test_manual_mark_keeps_unlock_stamp_and_check_in(service, lifecycle, store, clock):
    lifecycle.unlock(SCHEDULE, DAY)
    unlocked_at = clock.now
    signed = service.sign_in("s-1", SCHEDULE, DAY)
    clock.advance(minutes=10)

    mark = service.mark_attendance("t-1", "s-1", SCHEDULE, DAY, "PRESENT")

    snapshot = store.read(KEY)
    assert snapshot.first_unlock_time == unlocked_at
    assert snapshot.manual_mark_session is False
    assert mark.check_in_time == signed.check_in_time


def test_manual_mark_rejects_unknown_status(service):
    with pytest.raises(ValidationError):
        service.mark_attendance("t-1", "s-1", SCHEDULE, DAY, "ASLEEP")


def test_mark_absentees_skips_marked_and_unheld_sessions(service, lifecycle, store):
    assert service.mark_absentees(SCHEDULE, DAY) == 0

    lifecycle.unlock(SCHEDULE, DAY)
    service.sign_in("s-1", SCHEDULE, DAY)
    result = lifecycle.lock(SCHEDULE, DAY, mark_absentees=True)

    snapshot = store.read(KEY)
    assert result.absentees_marked == 2
    assert snapshot.mark_for("s-1").status == MarkStatus.PRESENT
    assert snapshot.mark_for("s-2").status == MarkStatus.ABSENT
    assert snapshot.mark_for("s-3").auto_marked is True
    assert service.mark_absentees(SCHEDULE, DAY) == 0


def test_absence_marks_count_in_stats(service, lifecycle, store):
    lifecycle.unlock(SCHEDULE, DAY)
    service.sign_in("s-1", SCHEDULE, DAY)
    lifecycle.lock(SCHEDULE, DAY, mark_absentees=True)

    aggregator = AttendanceAggregator(store)
    assert aggregator.compute_stats(SCHEDULE, "s-1").as_tuple() == (1, 1)
    assert aggregator.compute_stats(SCHEDULE, "s-2").as_tuple() == (0, 1)


def test_roster_joins_enrolment_with_marks(service, store):
    service.mark_attendance("t-1", "s-2", SCHEDULE, DAY, "PRESENT")
    service.mark_attendance("t-1", "x-9", SCHEDULE, DAY, "EXCUSED")

    rows = {r.student_id: r for r in service.list_student_attendance(SCHEDULE, DAY)}

    assert list(rows) == ["s-1", "s-2", "s-3", "x-9"]
    assert rows["s-1"].has_attended is False
    assert rows["s-1"].status is None
    assert rows["s-2"].has_attended is True
    assert rows["x-9"].student_name == "Unknown Student"
    assert rows["x-9"].to_dict()["status"] == "EXCUSED"
