from __future__ import annotations

from typing import Any, Mapping, Protocol, Sequence

from .model import SessionSnapshot, StudentMark


class SessionStore(Protocol):
    """Authoritative per-session records keyed by `scheduleId_date`.

    Every method may raise StoreUnavailableError. Unconditional writes are
    last-writer-wins per path; `update_if` is the only atomic compare-and-set.
    """

    def read(self, key: str) -> SessionSnapshot:
        """Missing nodes come back as the default snapshot (exists=False)."""

        raise NotImplementedError

    def create_if_absent(self, key: str, fields: Mapping[str, Any]) -> bool:
        raise NotImplementedError

    def update(self, key: str, fields: Mapping[str, Any]) -> None:
        """Merge session-level fields, creating the node if needed.

        A None value removes the field.
        """

        raise NotImplementedError

    def update_if(self, key: str, expected: Mapping[str, Any], fields: Mapping[str, Any]) -> bool:
        """Apply `fields` only if every expected field currently equals its value.

        An expected value of None means "field absent". Returns False (and
        writes nothing) when the node is missing or any expectation fails.
        """

        raise NotImplementedError

    def put_mark(self, key: str, student_id: str, mark: StudentMark) -> None:
        raise NotImplementedError

    def put_mark_if_absent(self, key: str, student_id: str, mark: StudentMark) -> bool:
        raise NotImplementedError

    def scan_schedule(self, schedule_id: str) -> Sequence[SessionSnapshot]:
        """Full scan: every session node belonging to the schedule."""

        raise NotImplementedError

    def list_held_sessions(self, schedule_id: str) -> Sequence[SessionSnapshot]:
        """Index lookup: sessions of the schedule whose firstUnlockTime is set."""

        raise NotImplementedError

    def list_unlocked(self) -> Sequence[SessionSnapshot]:
        raise NotImplementedError
