from __future__ import annotations

from flask import Flask, Response, stream_with_context

from ..common.http import error_response, json_body, ok, parse_flag
from ..common.streaming import event_stream
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/sessions/<schedule_id>/<session_date>/unlock", methods=["POST"], endpoint="api_session_unlock")
    def api_session_unlock(schedule_id: str, session_date: str):
        try:
            data = json_body()
            result = container.lifecycle.unlock(schedule_id, session_date, teacher_id=data.get("teacher_id"))
            snapshot = container.session_service.get_session(schedule_id, session_date)
            return ok({"firstUnlock": result.first_unlock, "session": snapshot.to_dict()})
        except Exception as e:
            return error_response(e)

    @app.route("/api/sessions/<schedule_id>/<session_date>/lock", methods=["POST"], endpoint="api_session_lock")
    def api_session_lock(schedule_id: str, session_date: str):
        try:
            data = json_body()
            result = container.lifecycle.lock(
                schedule_id,
                session_date,
                teacher_id=data.get("teacher_id"),
                mark_absentees=parse_flag(data.get("mark_absentees")),
            )
            snapshot = container.session_service.get_session(schedule_id, session_date)
            return ok(
                {
                    "changed": result.changed,
                    "absenteesMarked": result.absentees_marked,
                    "session": snapshot.to_dict(),
                }
            )
        except Exception as e:
            return error_response(e)

    @app.route("/api/sessions/<schedule_id>/<session_date>", methods=["GET"], endpoint="api_session_get")
    def api_session_get(schedule_id: str, session_date: str):
        try:
            return ok(container.session_service.read_for_display(schedule_id, session_date).to_dict())
        except Exception as e:
            return error_response(e)

    @app.route(
        "/api/sessions/<schedule_id>/<session_date>/state/<student_id>",
        methods=["GET"],
        endpoint="api_session_student_state",
    )
    def api_session_student_state(schedule_id: str, session_date: str, student_id: str):
        try:
            return ok(container.session_service.student_state(schedule_id, session_date, student_id).to_dict())
        except Exception as e:
            return error_response(e)

    @app.route("/api/sessions/<schedule_id>/<session_date>/stream", methods=["GET"], endpoint="api_session_stream")
    def api_session_stream(schedule_id: str, session_date: str):
        try:
            # Validate ids up front so a bad request gets a JSON 400, not a broken stream.
            container.session_service.read_for_display(schedule_id, session_date)
        except Exception as e:
            return error_response(e)

        def subscribe(on_change, on_error):
            return container.session_service.on_session_changed(schedule_id, session_date, on_change, on_error)

        stream = event_stream(
            subscribe,
            lambda snapshot: snapshot.to_dict(),
            keepalive_seconds=container.settings.stream_keepalive_seconds,
        )
        return Response(stream_with_context(stream), mimetype="text/event-stream")
