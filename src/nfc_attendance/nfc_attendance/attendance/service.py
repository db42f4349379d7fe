from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import List, Optional

from ..cards.reader import NfcReader
from ..cards.service import CardService
from ..common.connectivity import ConnectivityCheck, ensure_online
from ..common.datetime_utils import format_hm, now_local
from ..core.constants import DEFAULT_HISTORY_LIMIT
from ..core.enums import IdentifierField, MarkStatus
from ..core.exceptions import BackendError, UnknownIdentifier, ValidationError
from ..users.repository import UserRepository
from .model import MarkResult, ScanHistoryEntry
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)

_IDENTIFIER_LABELS = {
    IdentifierField.MATRIC_NO: "Matric",
    IdentifierField.IC: "IC",
    IdentifierField.STAFF_NUMBER: "Staff No",
}


class AttendanceService:
    """Use case: record presence of a scanned person in a session.

    Idempotence is read-then-write: an existing marker short-circuits. The
    write itself merges by person, so two stations racing on the same pair
    leave one marker (last writer's time wins).
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        users: UserRepository,
        *,
        cards: Optional[CardService] = None,
        connectivity: Optional[ConnectivityCheck] = None,
        identifier_field: IdentifierField = IdentifierField.MATRIC_NO,
        history_limit: int = DEFAULT_HISTORY_LIMIT,
    ):
        self._attendance = attendance
        self._users = users
        self._cards = cards
        self._connectivity = connectivity
        self._field = IdentifierField(identifier_field)
        self._history_limit = int(history_limit)
        self._busy = threading.Lock()

    @property
    def is_scanning(self) -> bool:
        return self._busy.locked()

    def mark_attendance(self, session_id: Optional[str], identifier: str, *, now: datetime | None = None) -> MarkResult:
        if not session_id:
            raise ValidationError("Please select or create a session first.")
        now = now or now_local()

        try:
            user = self._users.get_by_identifier(self._field, identifier)
        except Exception as e:
            raise BackendError(f"Lookup failed: {e}") from e
        if not user:
            raise UnknownIdentifier(f"Unknown {_IDENTIFIER_LABELS[self._field]}: {identifier}")
        name = user.name or "Unknown"
        time_str = format_hm(now)

        try:
            existing = self._attendance.get_marker(session_id, user.person_id)
        except Exception as e:
            raise BackendError(f"Lookup failed: {e}") from e
        if existing:
            recorded = existing.time or time_str
            return MarkResult(
                status=MarkStatus.ALREADY_RECORDED,
                person_id=user.person_id,
                name=name,
                time=recorded,
                message=f"{name} already recorded at {recorded}",
            )

        try:
            self._attendance.upsert_marker(session_id=session_id, person_id=user.person_id, time_str=time_str)
        except Exception as e:
            logger.exception("Marker write failed for %s in %s", user.person_id, session_id)
            raise BackendError(f"Save failed: {e}") from e

        try:
            self._attendance.append_history(
                session_id=session_id,
                name=name,
                identifier=identifier,
                photo_url=user.photo_url,
                time_str=time_str,
            )
        except Exception as e:
            logger.warning("Scan history append failed for %s: %s", session_id, e)

        logger.info("Recorded %s in %s at %s", user.person_id, session_id, time_str)
        return MarkResult(
            status=MarkStatus.RECORDED,
            person_id=user.person_id,
            name=name,
            time=time_str,
            message=f"{name} recorded at {time_str}",
        )

    def scan_card(self, session_id: Optional[str], reader: NfcReader, *, now: datetime | None = None) -> MarkResult:
        """Poll a card, decode it and mark attendance; one scan at a time."""
        if not session_id:
            raise ValidationError("Please select or create a session first.")
        if self._cards is None:
            raise ValidationError("Card reading is not configured")
        ensure_online(self._connectivity)

        if not self._busy.acquire(blocking=False):
            raise ValidationError("Scan already in progress")
        try:
            card = self._cards.read_identifier(reader)
            return self.mark_attendance(session_id, card.identifier, now=now)
        finally:
            self._busy.release()

    def recent_history(self, session_id: Optional[str], *, limit: int | None = None) -> List[ScanHistoryEntry]:
        if not session_id:
            return []
        return list(self._attendance.recent_history(session_id, limit or self._history_limit))

    def did_attend(self, person_id: str, session_id: str) -> bool:
        return self._attendance.get_marker(session_id, person_id) is not None

    def attendance_timestamp(self, person_id: str, session_id: str) -> Optional[datetime]:
        marker = self._attendance.get_marker(session_id, person_id)
        return marker.timestamp if marker else None
