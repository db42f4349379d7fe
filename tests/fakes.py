from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Optional

import ndef

from src.nfc_attendance.nfc_attendance.attendance.model import AttendanceMarker, ScanHistoryEntry
from src.nfc_attendance.nfc_attendance.cards.reader import NfcTag
from src.nfc_attendance.nfc_attendance.core.enums import IdentifierField, Role
from src.nfc_attendance.nfc_attendance.sessions.model import SessionRecord
from src.nfc_attendance.nfc_attendance.users.model import UserProfile


class InMemoryUsers:
    def __init__(self, users=(), subjects: Optional[dict] = None):
        self.users: dict[str, UserProfile] = {u.person_id: u for u in users}
        # person_id -> {subject: [sections]}
        self.subjects: dict[str, dict[str, list[str]]] = subjects or {}

    def get_by_id(self, person_id):
        return self.users.get(person_id)

    def get_by_identifier(self, field: IdentifierField, value):
        for u in self.users.values():
            if u.identifier(field) == value:
                return u
        return None

    def get_by_email(self, email):
        for u in self.users.values():
            if u.email == email:
                return u
        return None

    def list_by_role(self, role: Role):
        return [u for u in self.users.values() if u.role == role]

    def update_photo_url(self, person_id, photo_url):
        if person_id not in self.users:
            return False
        self.users[person_id] = replace(self.users[person_id], photo_url=photo_url)
        return True

    def set_password(self, person_id, *, password_hash, must_change_password):
        if person_id not in self.users:
            return False
        self.users[person_id] = replace(
            self.users[person_id], password_hash=password_hash, must_change_password=must_change_password
        )
        return True

    def flag_password_change(self, person_id):
        if person_id not in self.users:
            return False
        self.users[person_id] = replace(self.users[person_id], must_change_password=True)
        return True

    def append_warning(self, person_id, warning):
        u = self.users[person_id]
        self.users[person_id] = replace(u, warnings=u.warnings + (warning,))

    def list_subjects(self, person_id):
        return list(self.subjects.get(person_id, {}))

    def list_sections(self, person_id, subject):
        return [s for s in self.subjects.get(person_id, {}).get(subject, []) if s]


class InMemorySessions:
    def __init__(self, sessions=()):
        self.sessions: dict[str, SessionRecord] = {s.session_id: s for s in sessions}

    def get_by_id(self, session_id):
        return self.sessions.get(session_id)

    def create(self, record: SessionRecord):
        self.sessions[record.session_id] = record

    def merge_sections(self, session_id, sections):
        s = self.sessions[session_id]
        merged = tuple(dict.fromkeys(list(s.sections) + list(sections)))
        self.sessions[session_id] = replace(s, sections=merged)

    def list_all(self):
        return sorted(self.sessions.values(), key=lambda s: s.date, reverse=True)


class InMemoryAttendance:
    def __init__(self, clock: Optional[datetime] = None):
        self.clock = clock or datetime(2025, 3, 3, 8, 30)
        self.markers: dict[tuple[str, str], AttendanceMarker] = {}
        self.history: list[ScanHistoryEntry] = []
        self.fail_marker_write = False
        self.fail_history_write = False
        self.fail_lookup = False
        self.queries: list[str] = []

    def get_marker(self, session_id, person_id):
        self.queries.append("marker")
        if self.fail_lookup:
            raise RuntimeError("lookup down")
        return self.markers.get((session_id, person_id))

    def upsert_marker(self, *, session_id, person_id, time_str):
        if self.fail_marker_write:
            raise RuntimeError("backend down")
        self.markers[(session_id, person_id)] = AttendanceMarker(
            session_id=session_id, person_id=person_id, timestamp=self.clock, time=time_str
        )

    def append_history(self, *, session_id, name, identifier, photo_url, time_str):
        if self.fail_history_write:
            raise RuntimeError("history down")
        self.history.append(
            ScanHistoryEntry(
                session_id=session_id,
                name=name,
                identifier=identifier,
                photo_url=photo_url,
                time=time_str,
                timestamp=self.clock,
            )
        )

    def recent_history(self, session_id, limit):
        items = [h for h in self.history if h.session_id == session_id]
        return list(reversed(items))[:limit]

    def sessions_attended_by(self, person_id, session_ids):
        self.queries.append("person")
        return {sid for (sid, pid) in self.markers if pid == person_id and sid in set(session_ids)}

    def markers_for(self, person_id, session_ids):
        self.queries.append("markers")
        wanted = set(session_ids)
        return {sid: m for (sid, pid), m in self.markers.items() if pid == person_id and sid in wanted}

    def all_attended_session_ids(self, person_id):
        self.queries.append("all")
        return {sid for (sid, pid) in self.markers if pid == person_id}


@dataclass
class FakeReader:
    tag: NfcTag = field(default_factory=lambda: NfcTag(id="04A1B2C3", ndef_available=True, ndef_writable=True))
    records: list[ndef.Record] = field(default_factory=list)
    poll_error: Optional[Exception] = None
    read_error: Optional[Exception] = None
    write_error: Optional[Exception] = None
    written: list[list[ndef.Record]] = field(default_factory=list)
    finished: list[dict] = field(default_factory=list)
    on_poll: Optional[object] = None

    def poll(self, timeout):
        if self.on_poll:
            self.on_poll()
        if self.poll_error:
            raise self.poll_error
        return self.tag

    def read_records(self, tag):
        if self.read_error:
            raise self.read_error
        return list(self.records)

    def write_records(self, tag, records):
        if self.write_error:
            raise self.write_error
        self.written.append(list(records))
        self.records = list(records)

    def finish(self, *, message=None, error=None):
        self.finished.append({"message": message, "error": error})


@dataclass
class FakeConnectivity:
    online: bool = True

    def is_online(self) -> bool:
        return self.online

