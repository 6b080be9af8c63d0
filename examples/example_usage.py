"""Example: drive the service layer directly (no Flask).

Controllers are thin; every rule lives in the services wired by the container.
Run with SESSION_STORE=memory to try it without touching session tables.
"""

import importlib

from config import get_settings_module

from src.session_attendance.session_attendance.container import AppSettings, build_container


def main():
    settings = importlib.import_module(get_settings_module())
    container = build_container(db_config=settings.DB_CONFIG, settings=AppSettings.from_module(settings))

    schedule_id, day = "CS101_LEC_MON", "2024-09-02"
    container.lifecycle.unlock(schedule_id, day, teacher_id="t-001")
    container.attendance_service.sign_in("s-001", schedule_id, day)
    container.lifecycle.lock(schedule_id, day, teacher_id="t-001")

    print(container.session_service.student_state(schedule_id, day, "s-001").to_dict())
    print(container.aggregator.compute_stats(schedule_id, "s-001").to_dict())


if __name__ == "__main__":
    main()
