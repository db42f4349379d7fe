from __future__ import annotations

from typing import Iterable, Optional, Protocol, Sequence

from .model import SessionRecord


class SessionRepository(Protocol):
    def get_by_id(self, session_id: str) -> Optional[SessionRecord]:
        raise NotImplementedError

    def create(self, record: SessionRecord) -> None:
        raise NotImplementedError

    def merge_sections(self, session_id: str, sections: Iterable[str]) -> None:
        """Add sections to an existing session (set union, never removes)."""

        raise NotImplementedError

    def list_all(self) -> Sequence[SessionRecord]:
        """All sessions, newest date first."""

        raise NotImplementedError
