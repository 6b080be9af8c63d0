from __future__ import annotations

from typing import Any

from ..core.enums import MarkStatus
from ..core.exceptions import ValidationError
from .datetime_utils import format_iso_date, parse_iso_date


def require_non_empty(value: Any, field_name: str) -> str:
    if value is None or not str(value).strip():
        raise ValidationError(f"{field_name} is required")
    return str(value).strip()


def require_session_date(value: Any, field_name: str = "date") -> str:
    """Session dates are part of the session key; returned in canonical YYYY-MM-DD form."""

    text = require_non_empty(value, field_name)
    try:
        parsed = parse_iso_date(text)
    except ValueError as exc:
        raise ValidationError(f"{field_name} must be formatted YYYY-MM-DD") from exc
    return format_iso_date(parsed)


def require_mark_status(value: Any) -> MarkStatus:
    if isinstance(value, MarkStatus):
        return value
    text = require_non_empty(value, "status").upper()
    try:
        return MarkStatus(text)
    except ValueError as exc:
        allowed = ", ".join(s.value for s in MarkStatus)
        raise ValidationError(f"Invalid attendance status {value!r} (expected one of {allowed})") from exc
