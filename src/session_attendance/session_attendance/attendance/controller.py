from __future__ import annotations

from flask import Flask

from ..common.http import error_response, json_body, ok
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/sessions/<schedule_id>/<session_date>/sign-in", methods=["POST"], endpoint="api_sign_in")
    def api_sign_in(schedule_id: str, session_date: str):
        try:
            data = json_body()
            mark = container.attendance_service.sign_in(data.get("student_id"), schedule_id, session_date)
            return ok(mark.to_record())
        except Exception as e:
            return error_response(e)

    @app.route(
        "/api/sessions/<schedule_id>/<session_date>/students/<student_id>",
        methods=["PUT"],
        endpoint="api_mark_student",
    )
    def api_mark_student(schedule_id: str, session_date: str, student_id: str):
        try:
            data = json_body()
            mark = container.attendance_service.mark_attendance(
                data.get("teacher_id"),
                student_id,
                schedule_id,
                session_date,
                data.get("status"),
            )
            return ok(mark.to_record())
        except Exception as e:
            return error_response(e)

    @app.route("/api/sessions/<schedule_id>/<session_date>/students", methods=["GET"], endpoint="api_session_roster")
    def api_session_roster(schedule_id: str, session_date: str):
        try:
            rows = container.attendance_service.list_student_attendance(schedule_id, session_date)
            return ok([r.to_dict() for r in rows])
        except Exception as e:
            return error_response(e)

    @app.route("/api/schedules/<schedule_id>/stats/<student_id>", methods=["GET"], endpoint="api_schedule_stats")
    def api_schedule_stats(schedule_id: str, student_id: str):
        try:
            return ok(container.aggregator.compute_stats(schedule_id, student_id).to_dict())
        except Exception as e:
            return error_response(e)

    @app.route("/api/schedules/<schedule_id>/total-sessions", methods=["GET"], endpoint="api_schedule_total_sessions")
    def api_schedule_total_sessions(schedule_id: str):
        try:
            return ok({"totalSessions": container.aggregator.compute_total_sessions(schedule_id)})
        except Exception as e:
            return error_response(e)
