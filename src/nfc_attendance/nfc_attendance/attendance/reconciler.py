from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Sequence

from ..users.model import UserProfile
from .repository import AttendanceRepository

SCOPE_PERSON = "person"
SCOPE_ALL = "all"


@dataclass(frozen=True)
class AttendanceStats:
    present: int
    total: int

    @property
    def percent(self) -> int:
        if self.total <= 0:
            return 0
        # Round half up, in integers.
        return (self.present * 200 + self.total) // (2 * self.total)

    @property
    def is_perfect(self) -> bool:
        return self.percent == 100

    def label(self) -> str:
        return f"{self.percent}% ({self.present}/{self.total})"


@dataclass(frozen=True)
class StudentStats:
    person_id: str
    name: str
    stats: AttendanceStats


def reconcile(attended_session_ids: Iterable[str], session_ids: Sequence[str]) -> AttendanceStats:
    """Present/total for a person over ``session_ids``.

    Duplicate ids in ``session_ids`` are counted once.
    """
    wanted = set(session_ids)
    attended = set(attended_session_ids)
    return AttendanceStats(present=len(wanted & attended), total=len(wanted))


class AttendanceReconciler:
    """Read-and-compute; every call re-queries the repository."""

    def __init__(self, attendance: AttendanceRepository, *, scope: str = SCOPE_PERSON):
        if scope not in (SCOPE_PERSON, SCOPE_ALL):
            raise ValueError(f"Unknown reconcile scope: {scope!r}")
        self._attendance = attendance
        self._scope = scope

    def stats_for(self, person_id: str, session_ids: Sequence[str]) -> AttendanceStats:
        ids = list(dict.fromkeys(session_ids))
        if not ids:
            return AttendanceStats(present=0, total=0)
        if self._scope == SCOPE_ALL:
            attended = self._attendance.all_attended_session_ids(person_id)
        else:
            attended = self._attendance.sessions_attended_by(person_id, ids)
        return reconcile(attended, ids)

    def roster_stats(self, students: Iterable[UserProfile], session_ids: Sequence[str]) -> List[StudentStats]:
        return [
            StudentStats(person_id=s.person_id, name=s.name.strip() or "—", stats=self.stats_for(s.person_id, session_ids))
            for s in students
        ]
