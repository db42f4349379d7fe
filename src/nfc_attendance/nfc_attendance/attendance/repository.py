from __future__ import annotations

from typing import Dict, Optional, Protocol, Sequence, Set

from .model import AttendanceMarker, ScanHistoryEntry


class AttendanceRepository(Protocol):
    def get_marker(self, session_id: str, person_id: str) -> Optional[AttendanceMarker]:
        raise NotImplementedError

    def upsert_marker(self, *, session_id: str, person_id: str, time_str: str) -> None:
        """Write the marker keyed by (session, person); timestamp is server-assigned.

        A second write for the same pair overwrites rather than duplicates.
        """

        raise NotImplementedError

    def append_history(
        self,
        *,
        session_id: str,
        name: str,
        identifier: str,
        photo_url: Optional[str],
        time_str: str,
    ) -> None:
        raise NotImplementedError

    def recent_history(self, session_id: str, limit: int) -> Sequence[ScanHistoryEntry]:
        """Newest first."""

        raise NotImplementedError

    def sessions_attended_by(self, person_id: str, session_ids: Sequence[str]) -> Set[str]:
        """Ids among ``session_ids`` for which ``person_id`` has a marker."""

        raise NotImplementedError

    def markers_for(self, person_id: str, session_ids: Sequence[str]) -> Dict[str, AttendanceMarker]:
        """Markers of ``person_id`` among ``session_ids``, keyed by session id."""

        raise NotImplementedError

    def all_attended_session_ids(self, person_id: str) -> Set[str]:
        """Every session id with a marker for ``person_id``, across all sessions."""

        raise NotImplementedError
