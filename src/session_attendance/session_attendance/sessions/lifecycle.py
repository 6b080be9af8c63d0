from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

from ..common.datetime_utils import now_millis
from ..common.validators import require_non_empty, require_session_date
from ..core.constants import DEFAULT_AUTO_LOCK_MINUTES, MILLIS_PER_MINUTE
from ..core.exceptions import StoreUnavailableError
from .model import SessionSnapshot, session_key
from .repository import SessionStore

logger = logging.getLogger(__name__)

# (schedule_id, session_date) -> number of students marked absent
AbsenceMarker = Callable[[str, str], int]


@dataclass(frozen=True)
class UnlockResult:
    session_key: str
    first_unlock: bool


@dataclass(frozen=True)
class LockResult:
    session_key: str
    changed: bool
    absentees_marked: int = 0


class SessionLifecycleController:
    """Teacher-facing mutator: opens and closes a session's sign-in window.

    Write failures surface as StoreUnavailableError; nothing here retries.
    """

    def __init__(
        self,
        store: SessionStore,
        *,
        clock: Callable[[], int] = now_millis,
        auto_lock_minutes: Optional[int] = DEFAULT_AUTO_LOCK_MINUTES,
        absence_marker: Optional[AbsenceMarker] = None,
        mark_absent_on_lock: bool = False,
    ):
        self._store = store
        self._clock = clock
        self._auto_lock_minutes = int(auto_lock_minutes or 0)
        self._absence_marker = absence_marker
        self._mark_absent_on_lock = bool(mark_absent_on_lock)

    def _auto_lock_at(self, now: int) -> Optional[int]:
        if self._auto_lock_minutes <= 0:
            return None
        return now + self._auto_lock_minutes * MILLIS_PER_MINUTE

    def unlock(self, schedule_id: str, session_date: str, *, teacher_id: Optional[str] = None) -> UnlockResult:
        schedule_id = require_non_empty(schedule_id, "schedule_id")
        session_date = require_session_date(session_date)
        key = session_key(schedule_id, session_date)

        now = self._clock()
        fields = {"isLocked": False, "lastUnlockTime": now, "autoLockTime": self._auto_lock_at(now)}

        snapshot = self._store.read(key)
        first_unlock = False
        if not snapshot.exists:
            first_unlock = self._store.create_if_absent(key, {**fields, "firstUnlockTime": now})
            if not first_unlock:
                # Another writer created the node between our read and our insert.
                snapshot = self._store.read(key)

        if not first_unlock and not snapshot.has_first_unlock:
            first_unlock = self._store.update_if(key, {"firstUnlockTime": None}, {**fields, "firstUnlockTime": now})

        if not first_unlock:
            self._store.update(key, fields)

        logger.info("Session %s unlocked by teacher %s (first unlock: %s)", key, teacher_id, first_unlock)
        return UnlockResult(session_key=key, first_unlock=first_unlock)

    def lock(
        self,
        schedule_id: str,
        session_date: str,
        *,
        teacher_id: Optional[str] = None,
        mark_absentees: Optional[bool] = None,
    ) -> LockResult:
        schedule_id = require_non_empty(schedule_id, "schedule_id")
        session_date = require_session_date(session_date)
        key = session_key(schedule_id, session_date)

        # Compare on the live flag; fails only when already locked or missing.
        changed = self._store.update_if(
            key,
            {"isLocked": False},
            {"isLocked": True, "lockTime": self._clock(), "autoLockTime": None},
        )

        absentees = 0
        if mark_absentees is None:
            mark_absentees = self._mark_absent_on_lock
        if mark_absentees:
            absentees = self._mark_absentees(schedule_id, session_date)

        logger.info("Session %s locked by teacher %s (changed: %s, absentees: %s)", key, teacher_id, changed, absentees)
        return LockResult(session_key=key, changed=changed, absentees_marked=absentees)

    def _mark_absentees(self, schedule_id: str, session_date: str) -> int:
        if self._absence_marker is None:
            logger.warning("Absence marking requested for %s but no marker is configured", schedule_id)
            return 0
        return self._absence_marker(schedule_id, session_date)

    def _auto_lock(self, snapshot: SessionSnapshot, now: int) -> bool:
        if snapshot.is_locked or snapshot.auto_lock_time is None or now < snapshot.auto_lock_time:
            return False

        # Only lock the unlock we looked at; a fresh unlock moves autoLockTime and wins.
        applied = self._store.update_if(
            snapshot.session_key,
            {"isLocked": False, "autoLockTime": snapshot.auto_lock_time},
            {"isLocked": True, "lockTime": now, "autoLockedAt": now, "autoLockTime": None},
        )
        if not applied:
            return False

        logger.info("Session %s auto-locked after %s minutes", snapshot.session_key, self._auto_lock_minutes)
        if self._mark_absent_on_lock:
            self._mark_absentees(snapshot.schedule_id, snapshot.session_date)
        return True

    def check_and_auto_lock(self, schedule_id: str, session_date: str) -> bool:
        key = session_key(require_non_empty(schedule_id, "schedule_id"), require_session_date(session_date))
        return self._auto_lock(self._store.read(key), self._clock())

    def auto_lock_expired(self) -> List[str]:
        """Lock every unlocked session whose auto-lock time has passed; returns the locked keys."""

        now = self._clock()
        locked: List[str] = []
        for snapshot in self._store.list_unlocked():
            try:
                if self._auto_lock(snapshot, now):
                    locked.append(snapshot.session_key)
            except StoreUnavailableError as exc:
                logger.warning("Auto-lock of %s failed: %s", snapshot.session_key, exc)
        return locked
