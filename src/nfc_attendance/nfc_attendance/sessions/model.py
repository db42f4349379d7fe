from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Any, Mapping, Optional, Sequence, Tuple

from ..common.datetime_utils import minutes_of_day, parse_hhmm
from ..core.enums import AttendanceType
from ..core.exceptions import RecordDecodeError
from ..database.mysql_base import normalize_mysql_time

DEFAULT_LABEL = "–"
DEFAULT_TIME = "00:00"


@dataclass(frozen=True)
class SessionRecord:
    """Domain entity: one attendance-tracked class meeting."""

    session_id: str
    date: date
    subject: str
    lecturer: str
    sections: Tuple[str, ...]
    attendance_type: Optional[AttendanceType]
    start: str
    end: str
    duration_hours: float


def duration_hours(start: str, end: str) -> float:
    """Hours between two ``HH:MM`` strings, never negative."""
    minutes = minutes_of_day(parse_hhmm(end)) - minutes_of_day(parse_hhmm(start))
    return max(minutes / 60, 0.0)


def _hhmm(value: Any) -> str:
    t = normalize_mysql_time(value)
    return t.strftime("%H:%M") if isinstance(t, time) else DEFAULT_TIME


def session_from_row(row: Mapping[str, Any], sections: Sequence[str] = ()) -> SessionRecord:
    """Single decoding boundary for session rows; all defaults applied here."""
    session_id = row.get("session_id")
    raw_date = row.get("session_date")
    if not session_id or raw_date is None:
        raise RecordDecodeError(f"Session row missing id/date: {session_id!r}")
    if isinstance(raw_date, datetime):
        raw_date = raw_date.date()

    raw_type = row.get("attendance_type")
    try:
        attendance_type = AttendanceType(raw_type) if raw_type else None
    except ValueError as e:
        raise RecordDecodeError(f"Unknown attendance type {raw_type!r} on {session_id}") from e

    start = _hhmm(row.get("start_time"))
    end = _hhmm(row.get("end_time"))
    stored = row.get("duration_hours")
    duration = float(stored) if stored is not None else duration_hours(start, end)

    return SessionRecord(
        session_id=str(session_id),
        date=raw_date,
        subject=(row.get("subject") or DEFAULT_LABEL).strip(),
        lecturer=(row.get("lecturer") or DEFAULT_LABEL).strip(),
        sections=tuple(sections),
        attendance_type=attendance_type,
        start=start,
        end=end,
        duration_hours=duration,
    )


def session_to_dict(record: SessionRecord) -> dict:
    return {
        "session_id": record.session_id,
        "date": record.date.strftime("%Y-%m-%d"),
        "subject": record.subject,
        "lecturer": record.lecturer,
        "sections": list(record.sections),
        "attendance_type": record.attendance_type.value if record.attendance_type else None,
        "start": record.start,
        "end": record.end,
        "duration_hours": record.duration_hours,
    }
