from __future__ import annotations

from src.session_attendance.session_attendance.core.exceptions import StoreUnavailableError
from src.session_attendance.session_attendance.sessions.hub import CompositeSubscription

PATH = "sessions/CS101_LEC_2024-09-02"


def test_publish_fans_out_to_every_subscriber(hub):
    teacher, student = [], []
    hub.subscribe(PATH, teacher.append)
    hub.subscribe(PATH, student.append)
    other = []
    hub.subscribe("sessions/other", other.append)

    assert hub.publish(PATH, "snapshot") == 2
    assert teacher == ["snapshot"]
    assert student == ["snapshot"]
    assert other == []


def test_cancel_is_idempotent_and_stops_delivery(hub):
    received = []
    sub = hub.subscribe(PATH, received.append)

    sub.cancel()
    sub.cancel()
    hub.publish(PATH, "late")

    assert received == []
    assert sub.active is False
    assert hub.subscriber_count(PATH) == 0


def test_context_manager_releases_subscription(hub):
    with hub.subscribe(PATH, lambda p: None):
        assert hub.subscriber_count(PATH) == 1
    assert hub.subscriber_count(PATH) == 0


def test_failing_listener_does_not_block_others(hub):
    received = []

    def boom(payload):
        raise RuntimeError("listener bug")

    hub.subscribe(PATH, boom)
    hub.subscribe(PATH, received.append)

    hub.publish(PATH, "snapshot")

    assert received == ["snapshot"]


def test_fail_terminates_and_notifies(hub):
    errors = []
    sub = hub.subscribe(PATH, lambda p: None, errors.append)
    error = StoreUnavailableError("dropped")

    hub.fail(PATH, error)

    assert errors == [error]
    assert sub.active is False
    assert hub.subscriber_count(PATH) == 0
    # cancel after the hub already terminated it is a no-op
    sub.cancel()


def test_composite_cancels_all(hub):
    a = hub.subscribe(PATH, lambda p: None)
    b = hub.subscribe("sessions/MA201_LEC_2024-09-02", lambda p: None)

    with CompositeSubscription([a, b]) as composite:
        assert composite.active is True

    assert composite.active is False
    assert hub.subscriber_count(PATH) == 0
