from __future__ import annotations

from datetime import date

from flask import Flask, Response, request, stream_with_context

from ..common.datetime_utils import format_iso_date
from ..common.http import error_response, ok
from ..common.streaming import event_stream
from ..common.validators import require_session_date
from ..container import Container
from ..core.enums import Role
from ..core.exceptions import ValidationError


def register(app: Flask, container: Container) -> None:
    def _parse_request():
        session_date = require_session_date(request.args.get("date") or format_iso_date(date.today()))
        role_s = (request.args.get("role") or Role.STUDENT.value).strip().lower()
        try:
            role = Role(role_s)
        except ValueError as exc:
            raise ValidationError(f"Unknown role {role_s!r}") from exc
        return session_date, role

    @app.route("/api/users/<user_id>/classes", methods=["GET"], endpoint="api_user_classes")
    def api_user_classes(user_id: str):
        try:
            session_date, role = _parse_request()
            return ok(container.today_service.for_user(user_id, role, session_date).to_dict())
        except Exception as e:
            return error_response(e)

    @app.route("/api/users/<user_id>/classes/stream", methods=["GET"], endpoint="api_user_classes_stream")
    def api_user_classes_stream(user_id: str):
        try:
            session_date, role = _parse_request()
        except Exception as e:
            return error_response(e)

        def subscribe(on_change, on_error):
            return container.today_service.on_schedule_list_changed(user_id, role, session_date, on_change, on_error)

        stream = event_stream(
            subscribe,
            lambda daily: daily.to_dict(),
            keepalive_seconds=container.settings.stream_keepalive_seconds,
        )
        return Response(stream_with_context(stream), mimetype="text/event-stream")
