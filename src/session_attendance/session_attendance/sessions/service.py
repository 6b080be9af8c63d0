from __future__ import annotations

import logging
from typing import Callable, Optional

from ..common.validators import require_non_empty, require_session_date
from ..core.exceptions import StoreUnavailableError
from .hub import ErrorListener, Subscription, SubscriptionHub
from .model import SessionSnapshot, session_key, session_path
from .repository import SessionStore
from .resolver import ResolvedSessionState, resolve_for_student

logger = logging.getLogger(__name__)


class SessionService:
    """Read side of sessions: point reads and push subscriptions."""

    def __init__(self, store: SessionStore, hub: SubscriptionHub):
        self._store = store
        self._hub = hub

    @staticmethod
    def _key(schedule_id: str, session_date: str) -> str:
        return session_key(require_non_empty(schedule_id, "schedule_id"), require_session_date(session_date))

    def get_session(self, schedule_id: str, session_date: str) -> SessionSnapshot:
        return self._store.read(self._key(schedule_id, session_date))

    def read_for_display(self, schedule_id: str, session_date: str) -> SessionSnapshot:
        """Like get_session, but an unreachable store yields the locked default."""

        key = self._key(schedule_id, session_date)
        try:
            return self._store.read(key)
        except StoreUnavailableError as exc:
            logger.warning("Session %s unreadable, showing locked default: %s", key, exc)
            return SessionSnapshot.missing(key)

    def student_state(self, schedule_id: str, session_date: str, student_id: str) -> ResolvedSessionState:
        student_id = require_non_empty(student_id, "student_id")
        return resolve_for_student(self.read_for_display(schedule_id, session_date), student_id)

    def on_session_changed(
        self,
        schedule_id: str,
        session_date: str,
        on_change: Callable[[SessionSnapshot], None],
        on_error: Optional[ErrorListener] = None,
    ) -> Subscription:
        """Subscribe, then emit the current snapshot so the caller never waits for a first write."""

        key = self._key(schedule_id, session_date)
        subscription = self._hub.subscribe(session_path(key), on_change, on_error)
        on_change(self.read_for_display(schedule_id, session_date))
        return subscription

    def on_student_state_changed(
        self,
        schedule_id: str,
        session_date: str,
        student_id: str,
        on_change: Callable[[ResolvedSessionState], None],
        on_error: Optional[ErrorListener] = None,
    ) -> Subscription:
        student_id = require_non_empty(student_id, "student_id")
        return self.on_session_changed(
            schedule_id,
            session_date,
            lambda snapshot: on_change(resolve_for_student(snapshot, student_id)),
            on_error,
        )
