from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from ..attendance.reconciler import AttendanceReconciler, AttendanceStats, StudentStats, reconcile
from ..attendance.repository import AttendanceRepository
from ..core.constants import ALL_FILTER
from ..core.enums import Role, SortBy
from ..sessions.model import SessionRecord
from ..sessions.service import SessionService, SubjectGroup, is_no_filter
from ..users.repository import UserRepository


@dataclass(frozen=True)
class SubjectReport:
    group: SubjectGroup
    roster: List[StudentStats]


@dataclass(frozen=True)
class LecturerDashboard:
    subjects: List[str]
    lecturers: List[str]
    groups: List[SubjectReport]


@dataclass(frozen=True)
class StudentSessionRow:
    session: SessionRecord
    present: bool
    recorded_at: Optional[datetime]


@dataclass(frozen=True)
class StudentDashboard:
    person_id: str
    subjects: List[str]
    rows: List[StudentSessionRow]
    stats: AttendanceStats


def _sort_rows(rows: List[StudentSessionRow], sort_by: SortBy | str) -> List[StudentSessionRow]:
    try:
        sort_by = SortBy(sort_by)
    except ValueError:
        sort_by = SortBy.DATE
    if sort_by == SortBy.SUBJECT:
        return sorted(rows, key=lambda r: (r.session.subject, r.session.date))
    if sort_by == SortBy.LECTURER:
        return sorted(rows, key=lambda r: (r.session.lecturer, r.session.date))
    return sorted(rows, key=lambda r: (r.session.date, r.session.start), reverse=True)


class LecturerDashboardService:
    def __init__(self, sessions: SessionService, users: UserRepository, reconciler: AttendanceReconciler):
        self._sessions = sessions
        self._users = users
        self._reconciler = reconciler

    def build(
        self,
        *,
        filter_subject: str = ALL_FILTER,
        filter_lecturer: str = ALL_FILTER,
        sort_by: SortBy | str = SortBy.DATE,
    ) -> LecturerDashboard:
        everything = self._sessions.list_sessions()
        filtered = self._sessions.list_sessions(subject=filter_subject, lecturer=filter_lecturer)
        groups = SessionService.group_by_subject(filtered, sort_by)

        students = list(self._users.list_by_role(Role.STUDENT))
        reports = [
            SubjectReport(group=g, roster=self._reconciler.roster_stats(students, g.session_ids)) for g in groups
        ]
        return LecturerDashboard(
            subjects=SessionService.subjects_of(everything),
            lecturers=sorted({s.lecturer for s in everything if s.lecturer}),
            groups=reports,
        )


class StudentDashboardService:
    def __init__(self, sessions: SessionService, users: UserRepository, attendance: AttendanceRepository):
        self._sessions = sessions
        self._users = users
        self._attendance = attendance

    def build(
        self,
        person_id: str,
        *,
        filter_subject: str = ALL_FILTER,
        sort_by: SortBy | str = SortBy.DATE,
    ) -> StudentDashboard:
        enrolled = list(dict.fromkeys(self._users.list_subjects(person_id)))
        sessions = [s for s in self._sessions.list_sessions() if s.subject in enrolled]
        if not is_no_filter(filter_subject):
            sessions = [s for s in sessions if s.subject == filter_subject]

        markers = self._attendance.markers_for(person_id, [s.session_id for s in sessions])
        rows: List[StudentSessionRow] = []
        for s in sessions:
            marker = markers.get(s.session_id)
            rows.append(
                StudentSessionRow(session=s, present=marker is not None, recorded_at=marker.timestamp if marker else None)
            )

        stats = reconcile((r.session.session_id for r in rows if r.present), [r.session.session_id for r in rows])
        return StudentDashboard(person_id=person_id, subjects=enrolled, rows=_sort_rows(rows, sort_by), stats=stats)
