from __future__ import annotations

import logging
from typing import List, Optional, Sequence

import ndef
from smartcard.CardRequest import CardRequest
from smartcard.CardType import AnyCardType
from smartcard.Exceptions import CardConnectionException, CardRequestTimeoutException, SmartcardException
from smartcard.System import readers
from smartcard.util import toHexString

from ..core.exceptions import NfcError, NfcTimeout, TagNotWritable
from .ndef_records import decode_message, encode_message, unwrap_tlv, wrap_tlv
from .reader import NfcTag

logger = logging.getLogger(__name__)

# PC/SC pseudo-APDUs (ACR122-style readers, Type 2 tags such as NTAG21x).
GET_UID = [0xFF, 0xCA, 0x00, 0x00, 0x00]
READ_BINARY = [0xFF, 0xB0, 0x00]
UPDATE_BINARY = [0xFF, 0xD6, 0x00]

PAGE_SIZE = 4
CC_PAGE = 3
DATA_START_PAGE = 4
CC_MAGIC = 0xE1
SW_OK = (0x90, 0x00)


class PcscNfcReader:
    """NfcReader over a PC/SC reader using pyscard."""

    def __init__(self, reader_index: int = 0):
        self._reader_index = int(reader_index)
        self._connection = None

    def _reader(self):
        available = readers()
        if len(available) <= self._reader_index:
            raise NfcError("No NFC reader available")
        return available[self._reader_index]

    def _transmit(self, apdu: List[int]) -> List[int]:
        if self._connection is None:
            raise NfcError("No tag session")
        try:
            data, sw1, sw2 = self._connection.transmit(apdu)
        except SmartcardException as e:
            raise NfcError(f"Tag communication failed: {e}") from e
        if (sw1, sw2) != SW_OK:
            raise NfcError(f"APDU {toHexString(apdu[:3])} failed: {sw1:02X}{sw2:02X}")
        return list(data)

    def _read_pages(self, page: int) -> bytes:
        # READ returns four pages (16 bytes) per command.
        return bytes(self._transmit(READ_BINARY + [page, 0x10]))

    def poll(self, timeout: float) -> NfcTag:
        request = CardRequest(timeout=timeout, cardType=AnyCardType(), readers=[self._reader()])
        try:
            service = request.waitforcard()
            service.connection.connect()
        except CardRequestTimeoutException as e:
            raise NfcTimeout("No card presented before timeout") from e
        except SmartcardException as e:
            raise NfcError(str(e)) from e

        self._connection = service.connection
        try:
            uid = toHexString(self._transmit(GET_UID)).replace(" ", "")
        except NfcError:
            self._release()
            raise

        try:
            cc = self._read_pages(CC_PAGE)[:PAGE_SIZE]
        except NfcError:
            logger.info("Tag %s has no readable capability container", uid)
            return NfcTag(id=uid, ndef_available=False, ndef_writable=False)

        has_ndef = cc[0] == CC_MAGIC
        capacity = cc[2] * 8 if has_ndef else 0
        writable = has_ndef and (cc[3] & 0x0F) == 0x00
        logger.debug("Polled tag %s (ndef=%s writable=%s capacity=%d)", uid, has_ndef, writable, capacity)
        return NfcTag(id=uid, ndef_available=has_ndef, ndef_writable=writable, capacity=capacity)

    def read_records(self, tag: NfcTag) -> Sequence[ndef.Record]:
        if not tag.ndef_available:
            return []

        data = bytearray()
        page = DATA_START_PAGE
        while len(data) < tag.capacity:
            chunk = self._read_pages(page)
            data += chunk
            page += len(chunk) // PAGE_SIZE
            if 0xFE in chunk:
                break

        message = unwrap_tlv(bytes(data[: tag.capacity]))
        try:
            return decode_message(message) if message else []
        except ValueError as e:
            raise NfcError(str(e)) from e

    def write_records(self, tag: NfcTag, records: Sequence[ndef.Record]) -> None:
        if not tag.ndef_writable:
            raise TagNotWritable("Card is not writable.")

        data = wrap_tlv(encode_message(records))
        if len(data) > tag.capacity:
            raise NfcError(f"Message needs {len(data)} bytes, tag holds {tag.capacity}")
        data += bytes(-len(data) % PAGE_SIZE)

        for offset in range(0, len(data), PAGE_SIZE):
            page = DATA_START_PAGE + offset // PAGE_SIZE
            self._transmit(UPDATE_BINARY + [page, PAGE_SIZE] + list(data[offset:offset + PAGE_SIZE]))

    def finish(self, *, message: Optional[str] = None, error: Optional[str] = None) -> None:
        if error:
            logger.warning("NFC session finished with error: %s", error)
        elif message:
            logger.info("NFC session finished: %s", message)

        self._release()

    def _release(self) -> None:
        if self._connection is None:
            return
        try:
            self._connection.disconnect()
        except CardConnectionException as e:
            logger.warning("NFC disconnect failed: %s", e)
        finally:
            self._connection = None
