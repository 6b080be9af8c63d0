from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Dict, Iterable, List, Optional

logger = logging.getLogger(__name__)

ChangeListener = Callable[[Any], None]
ErrorListener = Callable[[Exception], None]


class Subscription:
    """Handle returned by SubscriptionHub.subscribe.

    Use it as a context manager so the listener is released on every exit path.
    cancel() is idempotent and safe after the hub already terminated it.
    """

    def __init__(self, hub: "SubscriptionHub", path: str, on_change: ChangeListener, on_error: Optional[ErrorListener]):
        self._hub = hub
        self.path = path
        self.on_change = on_change
        self.on_error = on_error
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def _terminate(self) -> None:
        self._active = False

    def cancel(self) -> None:
        if not self._active:
            return
        self._active = False
        self._hub._remove(self)

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.cancel()


class CompositeSubscription:
    """Several subscriptions released together (e.g. one per session of today's schedule list)."""

    def __init__(self, subscriptions: Iterable[Any] = ()):
        self._subscriptions: List[Any] = list(subscriptions)

    def add(self, subscription: Any) -> None:
        self._subscriptions.append(subscription)

    @property
    def active(self) -> bool:
        return any(s.active for s in self._subscriptions)

    def cancel(self) -> None:
        for subscription in self._subscriptions:
            subscription.cancel()

    def __enter__(self) -> "CompositeSubscription":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.cancel()


class SubscriptionHub:
    """Fan-out of path-scoped change events to every registered observer.

    Listeners are invoked outside the hub lock, on the publishing thread. A
    failing listener is logged and does not prevent delivery to the others.
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._listeners: Dict[str, List[Subscription]] = {}

    def subscribe(self, path: str, on_change: ChangeListener, on_error: Optional[ErrorListener] = None) -> Subscription:
        subscription = Subscription(self, path, on_change, on_error)
        with self._lock:
            self._listeners.setdefault(path, []).append(subscription)
        logger.debug("Subscribed to %s", path)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        subscription.cancel()

    def _remove(self, subscription: Subscription) -> None:
        with self._lock:
            listeners = self._listeners.get(subscription.path)
            if not listeners:
                return
            if subscription in listeners:
                listeners.remove(subscription)
            if not listeners:
                del self._listeners[subscription.path]

    def subscriber_count(self, path: str) -> int:
        with self._lock:
            return len(self._listeners.get(path, ()))

    def publish(self, path: str, payload: Any) -> int:
        """Deliver payload to every live subscriber of path; returns how many were called."""

        with self._lock:
            targets = list(self._listeners.get(path, ()))

        delivered = 0
        for subscription in targets:
            if not subscription.active:
                continue
            try:
                subscription.on_change(payload)
            except Exception:
                logger.exception("Listener on %s failed", path)
            delivered += 1
        return delivered

    def fail(self, path: str, error: Exception) -> None:
        """Transport failure: terminate every subscription on path and notify it.

        Callers must re-subscribe explicitly; nothing reconnects automatically.
        """

        with self._lock:
            targets = self._listeners.pop(path, [])

        logger.warning("Terminating %s subscription(s) on %s: %s", len(targets), path, error)
        for subscription in targets:
            subscription._terminate()
            if subscription.on_error is None:
                continue
            try:
                subscription.on_error(error)
            except Exception:
                logger.exception("Error listener on %s failed", path)
