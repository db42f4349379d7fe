from __future__ import annotations

from typing import Dict, Optional, Sequence, Set

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, placeholders
from .model import AttendanceMarker, ScanHistoryEntry, history_from_row, marker_from_row
from .repository import AttendanceRepository


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_marker(self, session_id: str, person_id: str) -> Optional[AttendanceMarker]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT session_id, person_id, recorded_at, time_str
                FROM attendees
                WHERE session_id=%s AND person_id=%s
                """,
                (session_id, person_id),
            )
            r = fetchone(cur)
            return marker_from_row(r) if r else None

    def upsert_marker(self, *, session_id: str, person_id: str, time_str: str) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendees(session_id, person_id, recorded_at, time_str)
                VALUES(%s,%s,NOW(),%s)
                ON DUPLICATE KEY UPDATE recorded_at=VALUES(recorded_at), time_str=VALUES(time_str)
                """,
                (session_id, person_id, time_str),
            )

    def append_history(
        self,
        *,
        session_id: str,
        name: str,
        identifier: str,
        photo_url: Optional[str],
        time_str: str,
    ) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO scan_history(session_id, name, identifier, photo_url, time_str, recorded_at)
                VALUES(%s,%s,%s,%s,%s,NOW())
                """,
                (session_id, name, identifier, photo_url, time_str),
            )

    def recent_history(self, session_id: str, limit: int) -> Sequence[ScanHistoryEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT session_id, name, identifier, photo_url, time_str, recorded_at
                FROM scan_history
                WHERE session_id=%s
                ORDER BY recorded_at DESC, history_id DESC
                LIMIT %s
                """,
                (session_id, int(limit)),
            )
            return [history_from_row(r) for r in fetchall(cur)]

    def sessions_attended_by(self, person_id: str, session_ids: Sequence[str]) -> Set[str]:
        ids = list(dict.fromkeys(session_ids))
        if not ids:
            return set()
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT session_id FROM attendees
                WHERE person_id=%s AND session_id IN ({placeholders(ids)})
                """,
                (person_id, *ids),
            )
            return {r["session_id"] for r in fetchall(cur)}

    def markers_for(self, person_id: str, session_ids: Sequence[str]) -> Dict[str, AttendanceMarker]:
        ids = list(dict.fromkeys(session_ids))
        if not ids:
            return {}
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT session_id, person_id, recorded_at, time_str
                FROM attendees
                WHERE person_id=%s AND session_id IN ({placeholders(ids)})
                """,
                (person_id, *ids),
            )
            return {r["session_id"]: marker_from_row(r) for r in fetchall(cur)}

    def all_attended_session_ids(self, person_id: str) -> Set[str]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT session_id FROM attendees WHERE person_id=%s", (person_id,))
            return {r["session_id"] for r in fetchall(cur)}
