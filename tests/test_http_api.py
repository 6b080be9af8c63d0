from __future__ import annotations

import pytest

from src.session_attendance.session_attendance.container import AppSettings, wire_container
from src.session_attendance.session_attendance.core.exceptions import StoreUnavailableError
from src.session_attendance.session_attendance.main import create_app
from src.session_attendance.session_attendance.sessions.memory_session_store import InMemorySessionStore

BASE = "/api/sessions/CS101_LEC/2024-09-02"


class OfflineStore(InMemorySessionStore):
    def read(self, key):
        raise StoreUnavailableError("offline")


class BuggyStore(InMemorySessionStore):
    def read(self, key):
        raise RuntimeError("bug")


def _client(monkeypatch, store, schedules, clock):
    monkeypatch.setenv("APP_ENV", "testing")
    container = wire_container(
        session_store=store,
        schedules_repo=schedules,
        settings=AppSettings(auto_lock_sweep_seconds=0, stream_keepalive_seconds=0.05),
        clock=clock,
    )
    app = create_app(container)
    return app.test_client(), container


@pytest.fixture
def client(monkeypatch, store, schedules, clock):
    return _client(monkeypatch, store, schedules, clock)[0]


def test_unlock_sign_in_lock_flow(client):
    resp = client.post(f"{BASE}/unlock", json={"teacher_id": "t-1"})
    assert resp.status_code == 200
    assert resp.get_json()["data"]["firstUnlock"] is True
    assert resp.get_json()["data"]["session"]["isLocked"] is False

    resp = client.post(f"{BASE}/sign-in", json={"student_id": "s-1"})
    assert resp.status_code == 200
    assert resp.get_json()["data"]["status"] == "PRESENT"

    resp = client.post(f"{BASE}/lock", json={"teacher_id": "t-1", "mark_absentees": True})
    data = resp.get_json()["data"]
    assert data["changed"] is True
    assert data["absenteesMarked"] == 2

    state = client.get(f"{BASE}/state/s-1").get_json()["data"]
    assert state == {"signInStatus": "SIGNED", "todayStatus": "ATTENDED", "hasStudentSigned": True}

    stats = client.get("/api/schedules/CS101_LEC/stats/s-2").get_json()["data"]
    assert (stats["attendedCount"], stats["totalCount"]) == (0, 1)
    assert client.get("/api/schedules/CS101_LEC/total-sessions").get_json()["data"] == {"totalSessions": 1}


def test_sign_in_on_locked_session_is_conflict(client):
    resp = client.post(f"{BASE}/sign-in", json={"student_id": "s-1"})
    assert resp.status_code == 409
    assert resp.get_json()["success"] is False


def test_missing_session_reads_as_locked_default(client):
    data = client.get(BASE).get_json()["data"]
    assert data["exists"] is False
    assert data["isLocked"] is True
    assert data["students"] == {}


def test_teacher_mark_and_roster(client):
    resp = client.put(f"{BASE}/students/s-2", json={"teacher_id": "t-1", "status": "late"})
    assert resp.status_code == 200

    rows = client.get(f"{BASE}/students").get_json()["data"]
    assert [r["studentId"] for r in rows] == ["s-1", "s-2", "s-3"]
    assert rows[1]["status"] == "LATE"


@pytest.mark.parametrize(
    "method,url,body",
    [
        ("put", f"{BASE}/students/s-2", {"teacher_id": "t-1", "status": "ASLEEP"}),
        ("put", f"{BASE}/students/s-2", {"status": "PRESENT"}),
        ("post", "/api/sessions/CS101_LEC/02-09-2024/unlock", {}),
        ("post", f"{BASE}/sign-in", {}),
        ("get", "/api/users/s-1/classes?role=admin", None),
    ],
)
def test_bad_input_is_400(client, method, url, body):
    resp = getattr(client, method)(url, json=body)
    assert resp.status_code == 400


def test_today_classes(client):
    client.post(f"{BASE}/unlock", json={"teacher_id": "t-1"})

    data = client.get("/api/users/s-1/classes?date=2024-09-02&role=student").get_json()["data"]

    assert [c["scheduleId"] for c in data["classes"]] == ["CS101_LEC", "CS101_TUT", "MA201_LEC"]
    assert data["classes"][0]["signInStatus"] == "UNLOCKED"
    assert data["stale"] is False


def test_store_outage_is_503_on_writes_but_not_on_display(monkeypatch, schedules, clock):
    client, _ = _client(monkeypatch, OfflineStore(), schedules, clock)

    assert client.post(f"{BASE}/unlock", json={"teacher_id": "t-1"}).status_code == 503
    assert client.get(BASE).status_code == 200
    assert client.get("/api/schedules/CS101_LEC/stats/s-1").get_json()["data"]["totalCount"] == 0


def test_unexpected_error_is_generic_500(monkeypatch, schedules, clock):
    client, _ = _client(monkeypatch, BuggyStore(), schedules, clock)

    resp = client.post(f"{BASE}/unlock", json={"teacher_id": "t-1"})

    assert resp.status_code == 500
    assert resp.get_json()["message"] == "Internal server error"


def test_session_stream_sends_current_snapshot(monkeypatch, store, schedules, clock):
    client, container = _client(monkeypatch, store, schedules, clock)

    resp = client.get(f"{BASE}/stream")
    assert resp.mimetype == "text/event-stream"

    chunk = next(iter(resp.response))
    text = chunk.decode() if isinstance(chunk, bytes) else chunk
    assert text.startswith("event: change")
    assert '"isLocked": true' in text
    resp.close()
    assert container.hub.subscriber_count("sessions/CS101_LEC_2024-09-02") == 0
