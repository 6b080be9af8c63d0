from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import Optional, Union

from ..core.constants import SESSION_DATE_FORMAT
from ..core.enums import DayOfWeek

logger = logging.getLogger(__name__)


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, SESSION_DATE_FORMAT).date()


def format_iso_date(value: date) -> str:
    return value.strftime(SESSION_DATE_FORMAT)


def now_millis() -> int:
    """Current unix time in milliseconds.

    Note: Wrapped so services can take it as an injectable clock.
    """
    return int(datetime.now(timezone.utc).timestamp() * 1000)


def millis_to_iso(value: Optional[int]) -> Optional[str]:
    if value is None:
        return None
    return datetime.fromtimestamp(value / 1000, tz=timezone.utc).isoformat()


def resolve_day_of_week(value: Union[str, date]) -> DayOfWeek:
    """Map a calendar date (or its YYYY-MM-DD text) to its day-of-week label.

    Unparseable input degrades to MONDAY instead of failing.
    """
    if isinstance(value, date):
        return DayOfWeek.from_weekday(value.weekday())

    try:
        parsed = parse_iso_date(value)
    except (TypeError, ValueError):
        logger.warning("Unparseable session date %r, falling back to %s", value, DayOfWeek.MONDAY.value)
        return DayOfWeek.MONDAY
    return DayOfWeek.from_weekday(parsed.weekday())
