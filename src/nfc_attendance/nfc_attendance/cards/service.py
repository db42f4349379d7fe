from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from datetime import datetime
from typing import Deque, List, Optional

from ..common.connectivity import ConnectivityCheck, ensure_online
from ..common.datetime_utils import now_local
from ..common.validators import require_matric_format
from ..core.constants import (
    DEFAULT_NFC_TIMEOUT_SECONDS,
    DEFAULT_RECENT_WRITES,
    STUDENT_PHOTO_CATEGORY,
    WRITE_STAMP_FORMAT,
)
from ..core.enums import IdentifierField
from ..core.exceptions import BackendError, NfcError, TagNotWritable, UnknownIdentifier, ValidationError
from ..storage.photos import PhotoStorage
from ..users.repository import UserRepository
from .codec import PayloadCodec
from .ndef_records import record_text, text_record
from .reader import NfcReader, NfcTag

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CardRead:
    raw: str
    identifier: str
    tag_id: str


@dataclass(frozen=True)
class CardWrite:
    person_id: str
    name: str
    identifier: str
    photo_url: Optional[str]
    timestamp: datetime

    @property
    def message(self) -> str:
        return f"Wrote for {self.name} at {self.timestamp.strftime(WRITE_STAMP_FORMAT)}"


class CardService:
    """Use cases: read an identifier off a card, write an encrypted identifier to a card."""

    def __init__(
        self,
        users: UserRepository,
        codec: PayloadCodec,
        *,
        photos: Optional[PhotoStorage] = None,
        connectivity: Optional[ConnectivityCheck] = None,
        identifier_field: IdentifierField = IdentifierField.MATRIC_NO,
        poll_timeout: float = DEFAULT_NFC_TIMEOUT_SECONDS,
    ):
        self._users = users
        self._codec = codec
        self._photos = photos
        self._connectivity = connectivity
        self._field = IdentifierField(identifier_field)
        self._poll_timeout = float(poll_timeout)
        self._recent: Deque[CardWrite] = deque(maxlen=DEFAULT_RECENT_WRITES)

    @property
    def recent_writes(self) -> List[CardWrite]:
        """Newest first; in-memory only."""
        return list(self._recent)

    def _poll(self, reader: NfcReader) -> NfcTag:
        try:
            return reader.poll(self._poll_timeout)
        except Exception as e:
            reader.finish(error=str(e))
            # Subclasses such as NfcTimeout keep their type.
            error_cls = type(e) if isinstance(e, NfcError) else NfcError
            raise error_cls(f"NFC poll error: {e}") from e

    def read_identifier(self, reader: NfcReader) -> CardRead:
        tag = self._poll(reader)

        raw = ""
        try:
            if tag.ndef_available:
                records = reader.read_records(tag)
                if records:
                    raw = record_text(records[0]) or ""
            if not raw:
                raw = tag.id
        except Exception as e:
            reader.finish(error=str(e))
            raise NfcError(f"NFC read error: {e}") from e
        reader.finish(message="Read OK")

        identifier = self._codec.decode_or_raw(raw)
        logger.info("Read card %s", tag.id)
        return CardRead(raw=raw, identifier=identifier, tag_id=tag.id)

    def write_card(
        self,
        identifier: str,
        reader: NfcReader,
        *,
        photo: Optional[bytes] = None,
        now: Optional[datetime] = None,
    ) -> CardWrite:
        identifier = (identifier or "").strip()
        if not identifier:
            raise ValidationError("Please enter a matric number.")
        if self._field == IdentifierField.MATRIC_NO:
            require_matric_format(identifier)
        ensure_online(self._connectivity)

        try:
            user = self._users.get_by_identifier(self._field, identifier)
        except Exception as e:
            raise BackendError(f"Lookup failed: {e}") from e
        if not user:
            raise UnknownIdentifier(f"No user found for {identifier}")
        name = user.name or identifier
        logger.info("Writing card for %s (%s)", name, user.person_id)

        tag = self._poll(reader)
        if not tag.ndef_writable:
            reader.finish(error="Write failed")
            raise TagNotWritable("Card is not writable.")

        try:
            wire = self._codec.encode(identifier)
            reader.write_records(tag, [text_record(wire, "en")])
        except Exception as e:
            reader.finish(error="Write failed")
            raise NfcError(f"NFC write failed: {e}") from e
        reader.finish(message="Write successful")

        photo_url = self._store_photo(user.person_id, photo) if photo else None

        result = CardWrite(
            person_id=user.person_id,
            name=name,
            identifier=identifier,
            photo_url=photo_url,
            timestamp=now or now_local(),
        )
        self._recent.appendleft(result)
        return result

    def _store_photo(self, person_id: str, photo: bytes) -> Optional[str]:
        if not self._photos:
            return None
        try:
            photo_url = self._photos.put(STUDENT_PHOTO_CATEGORY, person_id, photo)
        except Exception as e:
            logger.warning("Photo upload failed for %s: %s", person_id, e)
            return None
        try:
            self._users.update_photo_url(person_id, photo_url)
        except Exception as e:
            logger.warning("Photo URL update failed for %s: %s", person_id, e)
        return photo_url
