from __future__ import annotations

import logging
from typing import Any, Optional

from flask import jsonify, request

from ..core.exceptions import SessionLockedError, StoreUnavailableError, ValidationError

logger = logging.getLogger(__name__)


def json_body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def parse_flag(value: Any) -> Optional[bool]:
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in {"1", "true", "yes", "on"}


def ok(data: Any = None, status: int = 200):
    return jsonify({"success": True, "data": data}), status


def error_response(exc: Exception):
    if isinstance(exc, ValidationError):
        return jsonify({"success": False, "message": str(exc)}), 400
    if isinstance(exc, SessionLockedError):
        return jsonify({"success": False, "message": str(exc)}), 409
    if isinstance(exc, StoreUnavailableError):
        logger.warning("Store unavailable: %s", exc)
        return jsonify({"success": False, "message": "Attendance data is temporarily unavailable"}), 503
    logger.exception("Unhandled error in %s %s", request.method, request.path)
    return jsonify({"success": False, "message": "Internal server error"}), 500
