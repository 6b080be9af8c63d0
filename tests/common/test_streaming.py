from __future__ import annotations

import json

from src.session_attendance.session_attendance.common.streaming import event_stream, format_sse
from src.session_attendance.session_attendance.core.exceptions import StoreUnavailableError

PATH = "sessions/CS101_LEC_2024-09-02"


def _parse(chunk: str):
    lines = chunk.strip().splitlines()
    return lines[0].split(": ", 1)[1], json.loads(lines[1].split(": ", 1)[1])


def test_format_sse():
    assert format_sse("change", {"a": 1}) == 'event: change\ndata: {"a": 1}\n\n'


def test_stream_emits_changes_and_releases_on_close(hub):
    def subscribe(on_change, on_error):
        sub = hub.subscribe(PATH, on_change, on_error)
        on_change({"n": 0})
        return sub

    stream = event_stream(subscribe, lambda p: p, keepalive_seconds=0.01)

    assert _parse(next(stream)) == ("change", {"n": 0})
    hub.publish(PATH, {"n": 1})
    assert _parse(next(stream)) == ("change", {"n": 1})
    assert next(stream) == ": keepalive\n\n"

    stream.close()
    assert hub.subscriber_count(PATH) == 0


def test_stream_ends_after_error(hub):
    def subscribe(on_change, on_error):
        sub = hub.subscribe(PATH, on_change, on_error)
        on_change({"n": 0})
        return sub

    stream = event_stream(subscribe, lambda p: p, keepalive_seconds=0.01)
    next(stream)
    hub.fail(PATH, StoreUnavailableError("dropped"))

    chunks = list(stream)

    assert len(chunks) == 1
    assert _parse(chunks[0]) == ("error", {"message": "dropped"})
    assert hub.subscriber_count(PATH) == 0
