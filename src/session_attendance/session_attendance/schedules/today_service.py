from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import date
from typing import Callable, Dict, List, Optional, Tuple, Union

from ..attendance.aggregator import AttendanceAggregator
from ..common.datetime_utils import format_iso_date
from ..common.validators import require_non_empty, require_session_date
from ..core.enums import Role, SignInStatus
from ..core.exceptions import StoreUnavailableError
from ..sessions.hub import CompositeSubscription, ErrorListener, SubscriptionHub
from ..sessions.model import session_key, session_path
from ..sessions.resolver import ResolvedSessionState, resolve_for_student
from ..sessions.service import SessionService
from .model import Course, CourseSchedule
from .service import ScheduleService

logger = logging.getLogger(__name__)

# label, css class
SIGN_IN_BADGES: Dict[SignInStatus, Tuple[str, str]] = {
    SignInStatus.LOCKED: ("Not open yet", "bg-secondary"),
    SignInStatus.UNLOCKED: ("Sign in now", "bg-primary"),
    SignInStatus.SIGNED: ("Signed in", "bg-success"),
    SignInStatus.CLOSED: ("Closed", "bg-danger"),
}

FALLBACK_WARNING = "Live class data is unavailable; showing the last known list."


@dataclass(frozen=True)
class TodayClass:
    course: Course
    schedule: CourseSchedule
    session_date: str
    state: ResolvedSessionState
    attended_count: Optional[int] = None
    total_count: int = 0

    @property
    def session_key(self) -> str:
        return session_key(self.schedule.schedule_id, self.session_date)

    def to_dict(self) -> dict:
        label, css_class = SIGN_IN_BADGES[self.state.sign_in_status]
        data = {
            "sessionKey": self.session_key,
            "scheduleId": self.schedule.schedule_id,
            "courseId": self.course.course_id,
            "courseCode": self.course.code,
            "courseName": self.course.name,
            "dayOfWeek": self.schedule.day_of_week.value,
            "startTime": self.schedule.start_time,
            "endTime": self.schedule.end_time,
            "room": self.schedule.room,
            "type": self.schedule.type.value,
            "date": self.session_date,
            "badge": {"label": label, "cssClass": css_class},
            "totalCount": self.total_count,
            **self.state.to_dict(),
        }
        if self.attended_count is not None:
            data["attendedCount"] = self.attended_count
        return data


@dataclass(frozen=True)
class DailyClasses:
    classes: Tuple[TodayClass, ...] = ()
    stale: bool = False
    warning: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "classes": [c.to_dict() for c in self.classes],
            "stale": self.stale,
            "warning": self.warning,
        }


class TodayClassesService:
    """Today's classes for a teacher or a student, with live updates.

    If reference data cannot be read the last successfully built list for the
    same (user, role) is returned when it was built for the same date, flagged stale.
    """

    def __init__(
        self,
        schedules: ScheduleService,
        sessions: SessionService,
        aggregator: AttendanceAggregator,
        hub: SubscriptionHub,
    ):
        self._schedules = schedules
        self._sessions = sessions
        self._aggregator = aggregator
        self._hub = hub
        # (user_id, role) -> (date, classes); only the latest day is kept per viewer
        self._cache: Dict[Tuple[str, Role], Tuple[str, Tuple[TodayClass, ...]]] = {}
        self._cache_lock = threading.Lock()

    @staticmethod
    def _date_text(session_date: Union[str, date]) -> str:
        if isinstance(session_date, date):
            return format_iso_date(session_date)
        return require_session_date(session_date)

    def _build(self, course: Course, schedule: CourseSchedule, session_date: str, user_id: str, role: Role) -> TodayClass:
        snapshot = self._sessions.read_for_display(schedule.schedule_id, session_date)
        if role == Role.TEACHER:
            return TodayClass(
                course=course,
                schedule=schedule,
                session_date=session_date,
                state=resolve_for_student(snapshot, None),
                total_count=self._aggregator.compute_total_sessions(schedule.schedule_id),
            )

        stats = self._aggregator.compute_stats(schedule.schedule_id, user_id)
        return TodayClass(
            course=course,
            schedule=schedule,
            session_date=session_date,
            state=resolve_for_student(snapshot, user_id),
            attended_count=stats.attended_count,
            total_count=stats.total_count,
        )

    def for_user(self, user_id: str, role: Role, session_date: Union[str, date]) -> DailyClasses:
        user_id = require_non_empty(user_id, "user_id")
        day = self._date_text(session_date)
        cache_key = (user_id, role)

        try:
            entries = self._schedules.todays_schedules(user_id, role, day)
        except StoreUnavailableError as exc:
            logger.warning("Today's classes for %s %s unavailable, using cached list: %s", role.value, user_id, exc)
            with self._cache_lock:
                cached_day, cached = self._cache.get(cache_key, (day, ()))
            if cached_day != day:
                cached = ()
            return DailyClasses(classes=cached, stale=True, warning=FALLBACK_WARNING)

        classes = tuple(self._build(course, schedule, day, user_id, role) for course, schedule in entries)
        with self._cache_lock:
            self._cache[cache_key] = (day, classes)
        return DailyClasses(classes=classes)

    def for_student(self, student_id: str, session_date: Union[str, date]) -> DailyClasses:
        return self.for_user(student_id, Role.STUDENT, session_date)

    def for_teacher(self, teacher_id: str, session_date: Union[str, date]) -> DailyClasses:
        return self.for_user(teacher_id, Role.TEACHER, session_date)

    def on_schedule_list_changed(
        self,
        user_id: str,
        role: Role,
        session_date: Union[str, date],
        on_change: Callable[[DailyClasses], None],
        on_error: Optional[ErrorListener] = None,
    ) -> CompositeSubscription:
        """Watch every session of today's list; emits now and after each change.

        If one session path fails, on_error fires and the caller is expected to
        cancel and subscribe again.
        """

        user_id = require_non_empty(user_id, "user_id")
        day = self._date_text(session_date)
        composite = CompositeSubscription()

        try:
            entries: List[Tuple[Course, CourseSchedule]] = self._schedules.todays_schedules(user_id, role, day)
        except StoreUnavailableError as exc:
            on_change(self.for_user(user_id, role, day))
            if on_error is not None:
                on_error(exc)
            return composite

        def rebuild(_snapshot) -> None:
            on_change(self.for_user(user_id, role, day))

        for _, schedule in entries:
            path = session_path(session_key(schedule.schedule_id, day))
            composite.add(self._hub.subscribe(path, rebuild, on_error))

        rebuild(None)
        return composite
