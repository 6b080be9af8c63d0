from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional

from .attendance.aggregator import AttendanceAggregator
from .attendance.service import AttendanceService
from .common.datetime_utils import now_millis
from .core.constants import (
    DEFAULT_AUTO_LOCK_MINUTES,
    DEFAULT_AUTO_LOCK_SWEEP_SECONDS,
    DEFAULT_STREAM_KEEPALIVE_SECONDS,
)
from .database.connection import DBConfig, DatabaseConnection
from .schedules.mysql_schedule_repository import MySQLScheduleRepository
from .schedules.repository import ScheduleRepository
from .schedules.service import ScheduleService
from .schedules.today_service import TodayClassesService
from .sessions.auto_lock import AutoLockScheduler
from .sessions.hub import SubscriptionHub
from .sessions.lifecycle import SessionLifecycleController
from .sessions.memory_session_store import InMemorySessionStore
from .sessions.mysql_session_store import MySQLSessionStore
from .sessions.publishing_store import PublishingSessionStore
from .sessions.repository import SessionStore
from .sessions.service import SessionService


@dataclass(frozen=True)
class AppSettings:
    session_store: str = "mysql"
    auto_lock_minutes: int = DEFAULT_AUTO_LOCK_MINUTES
    auto_lock_sweep_seconds: float = DEFAULT_AUTO_LOCK_SWEEP_SECONDS
    mark_absent_on_lock: bool = False
    stats_use_index: bool = True
    stream_keepalive_seconds: float = DEFAULT_STREAM_KEEPALIVE_SECONDS

    @classmethod
    def from_module(cls, settings: Any) -> "AppSettings":
        return cls(
            session_store=str(getattr(settings, "SESSION_STORE", "mysql")).lower(),
            auto_lock_minutes=int(getattr(settings, "AUTO_LOCK_MINUTES", DEFAULT_AUTO_LOCK_MINUTES)),
            auto_lock_sweep_seconds=float(getattr(settings, "AUTO_LOCK_SWEEP_SECONDS", DEFAULT_AUTO_LOCK_SWEEP_SECONDS)),
            mark_absent_on_lock=bool(getattr(settings, "MARK_ABSENT_ON_LOCK", False)),
            stats_use_index=bool(getattr(settings, "STATS_USE_INDEX", True)),
            stream_keepalive_seconds=float(
                getattr(settings, "STREAM_KEEPALIVE_SECONDS", DEFAULT_STREAM_KEEPALIVE_SECONDS)
            ),
        )


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]
    settings: AppSettings

    hub: SubscriptionHub
    session_store: PublishingSessionStore
    schedules_repo: ScheduleRepository

    schedule_service: ScheduleService
    session_service: SessionService
    lifecycle: SessionLifecycleController
    aggregator: AttendanceAggregator
    attendance_service: AttendanceService
    today_service: TodayClassesService
    auto_lock: AutoLockScheduler


def wire_container(
    *,
    session_store: SessionStore,
    schedules_repo: ScheduleRepository,
    settings: Optional[AppSettings] = None,
    clock: Callable[[], int] = now_millis,
    conn: Optional[DatabaseConnection] = None,
) -> Container:
    settings = settings or AppSettings()
    hub = SubscriptionHub()
    store = PublishingSessionStore(session_store, hub)

    schedule_service = ScheduleService(schedules_repo)
    session_service = SessionService(store, hub)
    aggregator = AttendanceAggregator(store, use_index=settings.stats_use_index)
    attendance_service = AttendanceService(store, schedule_service, clock=clock)
    lifecycle = SessionLifecycleController(
        store,
        clock=clock,
        auto_lock_minutes=settings.auto_lock_minutes,
        absence_marker=attendance_service.mark_absentees,
        mark_absent_on_lock=settings.mark_absent_on_lock,
    )
    today_service = TodayClassesService(schedule_service, session_service, aggregator, hub)
    auto_lock = AutoLockScheduler(lifecycle, interval_seconds=settings.auto_lock_sweep_seconds)

    return Container(
        conn=conn,
        settings=settings,
        hub=hub,
        session_store=store,
        schedules_repo=schedules_repo,
        schedule_service=schedule_service,
        session_service=session_service,
        lifecycle=lifecycle,
        aggregator=aggregator,
        attendance_service=attendance_service,
        today_service=today_service,
        auto_lock=auto_lock,
    )


def build_container(*, db_config: dict, settings: Optional[AppSettings] = None) -> Container:
    settings = settings or AppSettings()
    conn = DatabaseConnection(DBConfig.from_mapping(db_config))

    if settings.session_store == "memory":
        session_store: SessionStore = InMemorySessionStore()
    else:
        session_store = MySQLSessionStore(conn)

    return wire_container(
        session_store=session_store,
        schedules_repo=MySQLScheduleRepository(conn),
        settings=settings,
        conn=conn,
    )
