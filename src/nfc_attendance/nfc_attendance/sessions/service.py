from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import date
from typing import Iterable, List, Optional, Sequence

from ..common.datetime_utils import minutes_of_day, parse_hhmm
from ..common.validators import require_non_empty
from ..core.constants import ALL_FILTER, ALL_SUBJECTS_FILTER, SESSION_ID_DATE_FORMAT
from ..core.enums import AttendanceType, SortBy
from ..core.exceptions import ValidationError
from ..users.repository import UserRepository
from .model import SessionRecord
from .repository import SessionRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SubjectGroup:
    subject: str
    sessions: List[SessionRecord]

    @property
    def session_ids(self) -> List[str]:
        return [s.session_id for s in self.sessions]


def session_id_for(session_date: date, subject: str, attendance_type: AttendanceType) -> str:
    return f"{session_date.strftime(SESSION_ID_DATE_FORMAT)}_{subject}_{attendance_type.value}"


def adhoc_session_id_for(subject: str, lecturer: str) -> str:
    s = re.sub(r"\s+", "_", subject.strip()).upper()
    lect = re.sub(r"\s+", "_", lecturer.strip()).upper()
    return f"{s}_{lect}"


def is_no_filter(value: Optional[str]) -> bool:
    return value is None or value in (ALL_FILTER, ALL_SUBJECTS_FILTER)


class SessionService:
    def __init__(self, sessions: SessionRepository, users: UserRepository | None = None):
        self._sessions = sessions
        self._users = users

    def create_session(
        self,
        *,
        session_date: date,
        subject: str,
        attendance_type: AttendanceType | str,
        start: str,
        end: str,
        sections: Sequence[str],
        lecturer: str = "",
    ) -> SessionRecord:
        """Create the ``yyyyMMdd_subject_type`` session, or merge sections into it."""
        subject = require_non_empty(subject or "", "Subject")
        try:
            attendance_type = AttendanceType(attendance_type)
        except ValueError as e:
            raise ValidationError("Attendance type is invalid") from e

        sections = [s.strip() for s in sections if s and s.strip()]
        if not sections:
            raise ValidationError("Select at least one section")

        try:
            start_min = minutes_of_day(parse_hhmm(start))
            end_min = minutes_of_day(parse_hhmm(end))
        except (ValueError, AttributeError) as e:
            raise ValidationError("Start and end time are required (HH:MM)") from e
        if end_min <= start_min:
            raise ValidationError("End time must be after start")

        session_id = session_id_for(session_date, subject, attendance_type)
        existing = self._sessions.get_by_id(session_id)
        if existing:
            self._sessions.merge_sections(session_id, sections)
            logger.info("Merged sections %s into session %s", sections, session_id)
            return self._sessions.get_by_id(session_id) or existing

        record = SessionRecord(
            session_id=session_id,
            date=session_date,
            subject=subject,
            lecturer=lecturer.strip(),
            sections=tuple(dict.fromkeys(sections)),
            attendance_type=attendance_type,
            start=f"{start_min // 60:02d}:{start_min % 60:02d}",
            end=f"{end_min // 60:02d}:{end_min % 60:02d}",
            duration_hours=(end_min - start_min) / 60,
        )
        self._sessions.create(record)
        logger.info("Created session %s", session_id)
        return record

    def create_adhoc_session(self, *, subject: str, lecturer: str, session_date: date) -> SessionRecord:
        """Create a ``SUBJECT_LECTURER`` session; refuses duplicates."""
        subject = require_non_empty(subject or "", "Subject")
        lecturer = require_non_empty(lecturer or "", "Lecturer")

        session_id = adhoc_session_id_for(subject, lecturer)
        if self._sessions.get_by_id(session_id):
            raise ValidationError("This session already exists.")

        record = SessionRecord(
            session_id=session_id,
            date=session_date,
            subject=subject,
            lecturer=lecturer,
            sections=(),
            attendance_type=None,
            start="00:00",
            end="00:00",
            duration_hours=0.0,
        )
        self._sessions.create(record)
        logger.info("Created ad-hoc session %s", session_id)
        return record

    def get(self, session_id: str) -> Optional[SessionRecord]:
        return self._sessions.get_by_id(session_id)

    def list_sessions(self, *, subject: Optional[str] = None, lecturer: Optional[str] = None) -> List[SessionRecord]:
        rows = list(self._sessions.list_all())
        if not is_no_filter(subject):
            rows = [s for s in rows if s.subject == subject]
        if not is_no_filter(lecturer):
            rows = [s for s in rows if s.lecturer == lecturer]
        return rows

    @staticmethod
    def select_active(sessions: Sequence[SessionRecord], previous_id: Optional[str] = None) -> Optional[SessionRecord]:
        """Keep the previous selection if still listed, else the first session."""
        if not sessions:
            return None
        if previous_id:
            for s in sessions:
                if s.session_id == previous_id:
                    return s
        return sessions[0]

    def subjects_for_lecturer(self, person_id: str) -> List[str]:
        if not self._users:
            return []
        return list(self._users.list_subjects(person_id))

    def sections_for_subject(self, person_id: str, subject: str) -> List[str]:
        if not self._users:
            return []
        return list(self._users.list_sections(person_id, subject))

    @staticmethod
    def subjects_of(sessions: Iterable[SessionRecord]) -> List[str]:
        return sorted({s.subject for s in sessions if s.subject})

    @staticmethod
    def group_by_subject(sessions: Iterable[SessionRecord], sort_by: SortBy | str = SortBy.DATE) -> List[SubjectGroup]:
        by_subject: dict[str, List[SessionRecord]] = {}
        for s in sessions:
            by_subject.setdefault(s.subject or "—", []).append(s)

        try:
            sort_by = SortBy(sort_by)
        except ValueError:
            sort_by = SortBy.DATE

        subjects = list(by_subject)
        if sort_by == SortBy.SUBJECT:
            subjects.sort()
        elif sort_by == SortBy.LECTURER:
            subjects.sort(key=lambda subj: by_subject[subj][0].lecturer)
        else:
            subjects.sort(key=lambda subj: max(s.date for s in by_subject[subj]), reverse=True)

        return [SubjectGroup(subject=subj, sessions=by_subject[subj]) for subj in subjects]
