from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import IdentifierField, Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import UserProfile, user_from_row
from .repository import UserRepository

_USER_COLUMNS = """
    person_id, name, email, role, ic, matric_no, staff_number,
    photo_url, password_hash, must_change_password
"""


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _load_warnings(self, cur, person_id: str) -> tuple[str, ...]:
        cur.execute(
            "SELECT warning FROM user_warnings WHERE person_id=%s ORDER BY warning_id ASC",
            (person_id,),
        )
        return tuple(r["warning"] for r in fetchall(cur))

    def _get_one(self, where: str, value: str) -> Optional[UserProfile]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_USER_COLUMNS} FROM users WHERE {where}=%s LIMIT 1", (value,))
            r = fetchone(cur)
            if not r:
                return None
            return user_from_row(r, self._load_warnings(cur, r["person_id"]))

    def get_by_id(self, person_id: str) -> Optional[UserProfile]:
        return self._get_one("person_id", person_id)

    def get_by_identifier(self, field: IdentifierField, value: str) -> Optional[UserProfile]:
        # Column name comes from the enum, never from user input.
        return self._get_one(IdentifierField(field).value, value)

    def get_by_email(self, email: str) -> Optional[UserProfile]:
        return self._get_one("email", email)

    def list_by_role(self, role: Role) -> Sequence[UserProfile]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_USER_COLUMNS} FROM users WHERE role=%s ORDER BY name ASC", (role.value,))
            return [user_from_row(r) for r in fetchall(cur)]

    def update_photo_url(self, person_id: str, photo_url: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE users SET photo_url=%s WHERE person_id=%s", (photo_url, person_id))
            return cur.rowcount > 0

    def set_password(self, person_id: str, *, password_hash: str, must_change_password: bool) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE users SET password_hash=%s, must_change_password=%s WHERE person_id=%s",
                (password_hash, int(must_change_password), person_id),
            )
            return cur.rowcount > 0

    def flag_password_change(self, person_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE users SET must_change_password=1 WHERE person_id=%s", (person_id,))
            return cur.rowcount > 0

    def append_warning(self, person_id: str, warning: str) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO user_warnings(person_id, warning) VALUES(%s,%s)",
                (person_id, warning),
            )

    def list_subjects(self, person_id: str) -> Sequence[str]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT DISTINCT subject FROM user_subjects WHERE person_id=%s ORDER BY subject ASC",
                (person_id,),
            )
            return [r["subject"].strip() for r in fetchall(cur)]

    def list_sections(self, person_id: str, subject: str) -> Sequence[str]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT section FROM user_subjects
                WHERE person_id=%s AND subject=%s AND section <> ''
                ORDER BY section ASC
                """,
                (person_id, subject),
            )
            return [r["section"] for r in fetchall(cur)]
