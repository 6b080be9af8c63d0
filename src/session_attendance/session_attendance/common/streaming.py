from __future__ import annotations

import json
from queue import Empty, Queue
from typing import Any, Callable, Iterator, Tuple


def format_sse(event: str, data: Any) -> str:
    return f"event: {event}\ndata: {json.dumps(data)}\n\n"


def event_stream(
    subscribe: Callable[[Callable[[Any], None], Callable[[Exception], None]], Any],
    encode: Callable[[Any], Any],
    *,
    keepalive_seconds: float,
) -> Iterator[str]:
    """Bridge a push subscription into a Server-Sent-Events generator.

    `subscribe(on_change, on_error)` must return a subscription usable as a
    context manager. The subscription is released when the generator is
    closed, which is what Werkzeug does when the client disconnects.
    """

    events: "Queue[Tuple[str, Any]]" = Queue()
    subscription = subscribe(
        lambda payload: events.put(("change", payload)),
        lambda error: events.put(("error", error)),
    )

    with subscription:
        while True:
            try:
                kind, payload = events.get(timeout=keepalive_seconds)
            except Empty:
                yield ": keepalive\n\n"
                continue

            if kind == "error":
                yield format_sse("error", {"message": str(payload)})
                return
            yield format_sse("change", encode(payload))
