from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Iterable

import mysql.connector
from werkzeug.security import generate_password_hash

from .connection import DBConfig

logger = logging.getLogger(__name__)


def _connect(target: DBConfig, *, with_database: bool = True):
    kwargs = dict(host=target.host, port=target.port, user=target.user, password=target.password, use_pure=True)
    if with_database:
        kwargs["database"] = target.database
    return mysql.connector.connect(**kwargs)


def _strip_create_db_and_use(sql: str) -> str:
    # Keep schema.sql compatible regardless of DB name.
    sql = re.sub(r"(?im)^\s*CREATE\s+DATABASE\b.*?;\s*$", "", sql)
    sql = re.sub(r"(?im)^\s*USE\b.*?;\s*$", "", sql)
    return re.sub(r"(?m)^\s*--.*$", "", sql)


def _iter_sql_statements(sql: str) -> Iterable[str]:
    """Split on ';' outside quoted strings."""
    start = 0
    quote = None
    i = 0
    while i < len(sql):
        ch = sql[i]
        if quote:
            if ch == "\\":
                i += 1
            elif ch == quote:
                quote = None
        elif ch in ("'", '"'):
            quote = ch
        elif ch == ";":
            stmt = sql[start:i].strip()
            if stmt:
                yield stmt
            start = i + 1
        i += 1

    tail = sql[start:].strip()
    if tail:
        yield tail


def ensure_database_exists(db_config: dict) -> None:
    target = DBConfig.from_dict(db_config)
    conn = _connect(target, with_database=False)
    try:
        cur = conn.cursor()
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{target.database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci;"
        )
        conn.commit()
    finally:
        conn.close()


def apply_schema(db_config: dict, *, schema_path: str | Path) -> None:
    target = DBConfig.from_dict(db_config)
    ensure_database_exists(db_config)

    sql = _strip_create_db_and_use(Path(schema_path).read_text(encoding="utf-8"))

    conn = _connect(target)
    try:
        cur = conn.cursor()
        for stmt in _iter_sql_statements(sql):
            cur.execute(stmt)
        conn.commit()
    finally:
        conn.close()
    logger.info("Schema applied to %s", target.database)


def seed_users(db_config: dict, *, seed_path: str | Path) -> int:
    """Upsert person records from a ``{person_id: {...}}`` JSON file.

    ``subjects`` is either a list of enrolled subject names (students) or a
    mapping of subject -> sections (lecturers). ``password`` is hashed.
    """
    target = DBConfig.from_dict(db_config)
    people = json.loads(Path(seed_path).read_text(encoding="utf-8"))

    conn = _connect(target)
    try:
        cur = conn.cursor()
        for person_id, data in people.items():
            password = data.get("password")
            cur.execute(
                """
                INSERT INTO users(person_id, name, email, role, ic, matric_no, staff_number,
                                  password_hash, must_change_password)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    name=VALUES(name), email=VALUES(email), role=VALUES(role), ic=VALUES(ic),
                    matric_no=VALUES(matric_no), staff_number=VALUES(staff_number),
                    password_hash=COALESCE(VALUES(password_hash), password_hash),
                    must_change_password=VALUES(must_change_password)
                """,
                (
                    person_id,
                    data.get("name", ""),
                    data.get("email"),
                    data.get("role", "student"),
                    data.get("ic"),
                    data.get("matric_no"),
                    data.get("staff_number"),
                    generate_password_hash(password) if password else None,
                    int(bool(data.get("must_change_password", False))),
                ),
            )

            subjects = data.get("subjects") or []
            if isinstance(subjects, dict):
                pairs = [(subj, sec) for subj, sections in subjects.items() for sec in (sections or [""])]
            else:
                pairs = [(subj, "") for subj in subjects]
            for subject, section in pairs:
                cur.execute(
                    "INSERT IGNORE INTO user_subjects(person_id, subject, section) VALUES(%s,%s,%s)",
                    (person_id, subject, section),
                )
        conn.commit()
    finally:
        conn.close()

    logger.info("Seeded %d users into %s", len(people), target.database)
    return len(people)


def list_tables(db_config: dict) -> list[str]:
    conn = _connect(DBConfig.from_dict(db_config))
    try:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
    finally:
        conn.close()
