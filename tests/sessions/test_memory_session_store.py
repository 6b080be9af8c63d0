from __future__ import annotations

import pytest

from src.session_attendance.session_attendance.core.enums import MarkStatus
from src.session_attendance.session_attendance.sessions.memory_session_store import InMemorySessionStore
from src.session_attendance.session_attendance.sessions.model import StudentMark

KEY = "CS101_LEC_2024-09-02"


def test_create_if_absent_only_once(store):
    assert store.create_if_absent(KEY, {"isLocked": False, "firstUnlockTime": 1}) is True
    assert store.create_if_absent(KEY, {"isLocked": True, "firstUnlockTime": 2}) is False
    assert store.read(KEY).first_unlock_time == 1


def test_plain_update_cannot_touch_first_unlock(store):
    with pytest.raises(ValueError):
        store.update(KEY, {"firstUnlockTime": 5})


def test_update_if_compares_fields_and_treats_none_as_absent(store):
    store.update(KEY, {"isLocked": True})

    assert store.update_if(KEY, {"firstUnlockTime": None}, {"firstUnlockTime": 7, "isLocked": False}) is True
    assert store.update_if(KEY, {"firstUnlockTime": None}, {"firstUnlockTime": 9}) is False
    assert store.read(KEY).first_unlock_time == 7


def test_update_if_on_missing_node_fails(store):
    assert store.update_if(KEY, {"isLocked": False}, {"isLocked": True}) is False
    assert store.read(KEY).exists is False


def test_update_with_none_removes_field(store):
    store.update(KEY, {"isLocked": False, "autoLockTime": 100})
    store.update(KEY, {"autoLockTime": None})
    assert store.read(KEY).auto_lock_time is None


def test_put_mark_if_absent_never_overwrites(store):
    store.put_mark(KEY, "s-1", StudentMark(MarkStatus.PRESENT, check_in_time=3))

    assert store.put_mark_if_absent(KEY, "s-1", StudentMark(MarkStatus.ABSENT, auto_marked=True)) is False
    assert store.put_mark_if_absent(KEY, "s-2", StudentMark(MarkStatus.ABSENT, auto_marked=True)) is True
    snapshot = store.read(KEY)
    assert snapshot.mark_for("s-1").status == MarkStatus.PRESENT
    assert snapshot.mark_for("s-2").auto_marked is True


def test_scan_matches_schedule_exactly():
    store = InMemorySessionStore(
        {
            "CS101_2024-09-02": {"isLocked": True, "firstUnlockTime": 1},
            "CS101_LEC_2024-09-02": {"isLocked": True, "firstUnlockTime": 1},
            "CS101_2024-09-09": {"isLocked": True},
        }
    )

    assert sorted(s.session_key for s in store.scan_schedule("CS101")) == ["CS101_2024-09-02", "CS101_2024-09-09"]
    assert [s.session_key for s in store.list_held_sessions("CS101")] == ["CS101_2024-09-02"]


def test_held_index_follows_conditional_stamp(store):
    store.update(KEY, {"isLocked": True})
    assert store.list_held_sessions("CS101_LEC") == []

    store.update_if(KEY, {"firstUnlockTime": None}, {"firstUnlockTime": 11})

    assert [s.first_unlock_time for s in store.list_held_sessions("CS101_LEC")] == [11]


def test_list_unlocked(store):
    store.update(KEY, {"isLocked": False})
    store.update("MA201_LEC_2024-09-02", {"isLocked": True})

    assert [s.session_key for s in store.list_unlocked()] == [KEY]
