from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping, Optional

from ..core.enums import MarkStatus
from ..core.exceptions import RecordDecodeError


@dataclass(frozen=True)
class AttendanceMarker:
    """Presence of one person in one session; absence of a marker means absent."""

    session_id: str
    person_id: str
    timestamp: Optional[datetime]
    time: str


@dataclass(frozen=True)
class ScanHistoryEntry:
    """Recent-activity log line; not authoritative for presence."""

    session_id: str
    name: str
    identifier: str
    photo_url: Optional[str]
    time: str
    timestamp: Optional[datetime]


@dataclass(frozen=True)
class MarkResult:
    status: MarkStatus
    person_id: str
    name: str
    time: str
    message: str

    @property
    def created(self) -> bool:
        return self.status == MarkStatus.RECORDED


def marker_from_row(row: Mapping[str, Any]) -> AttendanceMarker:
    if not row.get("session_id") or not row.get("person_id"):
        raise RecordDecodeError("Attendee row missing session_id/person_id")
    return AttendanceMarker(
        session_id=str(row["session_id"]),
        person_id=str(row["person_id"]),
        timestamp=row.get("recorded_at"),
        time=row.get("time_str") or "",
    )


def history_from_row(row: Mapping[str, Any]) -> ScanHistoryEntry:
    if not row.get("session_id"):
        raise RecordDecodeError("Scan history row missing session_id")
    return ScanHistoryEntry(
        session_id=str(row["session_id"]),
        name=row.get("name") or "",
        identifier=row.get("identifier") or "",
        photo_url=row.get("photo_url"),
        time=row.get("time_str") or "",
        timestamp=row.get("recorded_at"),
    )
