from __future__ import annotations

from collections import defaultdict
from typing import Iterable, Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import SessionRecord, session_from_row
from .repository import SessionRepository

_SESSION_COLUMNS = """
    session_id, session_date, subject, lecturer, attendance_type,
    start_time, end_time, duration_hours
"""


class MySQLSessionRepository(SessionRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, session_id: str) -> Optional[SessionRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_SESSION_COLUMNS} FROM attendance_sessions WHERE session_id=%s", (session_id,))
            r = fetchone(cur)
            if not r:
                return None
            cur.execute(
                "SELECT section FROM session_sections WHERE session_id=%s ORDER BY section ASC",
                (session_id,),
            )
            return session_from_row(r, [s["section"] for s in fetchall(cur)])

    def create(self, record: SessionRecord) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance_sessions(session_id, session_date, subject, lecturer, attendance_type,
                                                start_time, end_time, duration_hours)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    record.session_id,
                    record.date,
                    record.subject,
                    record.lecturer,
                    record.attendance_type.value if record.attendance_type else None,
                    record.start if record.attendance_type else None,
                    record.end if record.attendance_type else None,
                    record.duration_hours if record.attendance_type else None,
                ),
            )
            for section in record.sections:
                cur.execute(
                    "INSERT IGNORE INTO session_sections(session_id, section) VALUES(%s,%s)",
                    (record.session_id, section),
                )

    def merge_sections(self, session_id: str, sections: Iterable[str]) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            for section in sections:
                cur.execute(
                    "INSERT IGNORE INTO session_sections(session_id, section) VALUES(%s,%s)",
                    (session_id, section),
                )

    def list_all(self) -> Sequence[SessionRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_SESSION_COLUMNS} FROM attendance_sessions ORDER BY session_date DESC, session_id ASC")
            rows = fetchall(cur)
            cur.execute("SELECT session_id, section FROM session_sections ORDER BY section ASC")
            by_session: dict[str, list[str]] = defaultdict(list)
            for s in fetchall(cur):
                by_session[s["session_id"]].append(s["section"])
            return [session_from_row(r, by_session.get(r["session_id"], [])) for r in rows]
