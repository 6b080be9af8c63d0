"""Periodic auto-lock sweep.

Runs SessionLifecycleController.auto_lock_expired on a daemon threading.Timer
that re-arms itself after every run.
"""

from __future__ import annotations

import logging
import threading
from typing import List, Optional

from .lifecycle import SessionLifecycleController

logger = logging.getLogger(__name__)


class AutoLockScheduler:
    def __init__(self, lifecycle: SessionLifecycleController, *, interval_seconds: float):
        self._lifecycle = lifecycle
        self._interval = float(interval_seconds)
        self._timer: Optional[threading.Timer] = None
        self._lock = threading.Lock()
        self._stopped = True

    @property
    def running(self) -> bool:
        return not self._stopped

    def start(self) -> None:
        if self._interval <= 0:
            logger.info("Auto-lock sweep disabled (interval=%s)", self._interval)
            return
        with self._lock:
            if not self._stopped:
                return
            self._stopped = False
            self._arm()
        logger.info("Auto-lock sweep every %s seconds", self._interval)

    def _arm(self) -> None:
        timer = threading.Timer(self._interval, self._tick)
        timer.daemon = True
        self._timer = timer
        timer.start()

    def _tick(self) -> None:
        try:
            self.run_once()
        except Exception:
            logger.exception("Auto-lock sweep failed")
        with self._lock:
            if not self._stopped:
                self._arm()

    def run_once(self) -> List[str]:
        locked = self._lifecycle.auto_lock_expired()
        if locked:
            logger.info("Auto-locked %s session(s): %s", len(locked), ", ".join(locked))
        return locked

    def stop(self) -> None:
        with self._lock:
            self._stopped = True
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
