from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..common.datetime_utils import millis_to_iso
from ..core.enums import MarkStatus


@dataclass(frozen=True)
class AttendanceStatistic:
    """(attended, total) over the sessions of one schedule that were ever unlocked."""

    attended_count: int = 0
    total_count: int = 0

    @property
    def ratio(self) -> float:
        if self.total_count <= 0:
            return 0.0
        return self.attended_count / self.total_count

    @property
    def percentage(self) -> int:
        return int(round(self.ratio * 100))

    def as_tuple(self) -> tuple[int, int]:
        return self.attended_count, self.total_count

    def to_dict(self) -> dict:
        return {
            "attendedCount": self.attended_count,
            "totalCount": self.total_count,
            "percentage": self.percentage,
        }


@dataclass(frozen=True)
class StudentAttendanceRow:
    """Roster read-model: one enrolled (or marked) student and their mark for a session."""

    student_id: str
    student_name: str
    has_attended: bool
    status: Optional[MarkStatus] = None
    check_in_time: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            "studentId": self.student_id,
            "studentName": self.student_name,
            "hasAttended": self.has_attended,
            "status": self.status.value if self.status else None,
            "checkInTime": self.check_in_time,
            "checkInAt": millis_to_iso(self.check_in_time) if self.check_in_time is not None else None,
        }
