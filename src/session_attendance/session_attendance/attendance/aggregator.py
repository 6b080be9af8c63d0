from __future__ import annotations

import logging
from typing import Sequence

from ..core.exceptions import StoreUnavailableError
from ..sessions.model import SessionSnapshot
from ..sessions.repository import SessionStore
from .model import AttendanceStatistic

logger = logging.getLogger(__name__)


class AttendanceAggregator:
    """Turns a schedule's session history into attendance ratios.

    Only sessions that were ever unlocked (firstUnlockTime set) count, in both
    numerator and denominator. Any read failure yields (0, 0): a partial sum
    would show a misleadingly low ratio.
    """

    def __init__(self, store: SessionStore, *, use_index: bool = True):
        self._store = store
        self._use_index = bool(use_index)

    def _held_sessions(self, schedule_id: str) -> Sequence[SessionSnapshot]:
        if self._use_index:
            sessions = self._store.list_held_sessions(schedule_id)
        else:
            sessions = self._store.scan_schedule(schedule_id)
        return [s for s in sessions if s.has_first_unlock]

    def compute_stats(self, schedule_id: str, student_id: str) -> AttendanceStatistic:
        try:
            held = self._held_sessions(schedule_id)
        except (StoreUnavailableError, ValueError) as exc:
            logger.warning("Attendance stats for %s/%s unavailable: %s", schedule_id, student_id, exc)
            return AttendanceStatistic()

        attended = 0
        for snapshot in held:
            mark = snapshot.mark_for(student_id)
            if mark is not None and mark.is_present:
                attended += 1
        return AttendanceStatistic(attended_count=attended, total_count=len(held))

    def compute_total_sessions(self, schedule_id: str) -> int:
        try:
            return len(self._held_sessions(schedule_id))
        except (StoreUnavailableError, ValueError) as exc:
            logger.warning("Session total for %s unavailable: %s", schedule_id, exc)
            return 0
