"""NDEF helpers for the card flows.

Record encoding is ndeflib's; this module only adds the Type 2 tag TLV
wrapper around a message and a few narrow conversions.
"""

from __future__ import annotations

import struct
from typing import Iterable, List, Optional

import ndef

TLV_NULL = 0x00
TLV_NDEF = 0x03
TLV_TERMINATOR = 0xFE


def text_record(text: str, language: str = "en") -> ndef.Record:
    return ndef.TextRecord(text, language)


def record_text(record: ndef.Record) -> Optional[str]:
    """Text of a well-known "T" record, ``None`` for any other record."""
    if isinstance(record, ndef.TextRecord):
        return record.text
    return None


def encode_message(records: Iterable[ndef.Record]) -> bytes:
    try:
        return b"".join(ndef.message_encoder(list(records)))
    except ndef.EncodeError as e:
        raise ValueError(f"Cannot encode NDEF message: {e}") from e


def decode_message(data: bytes) -> List[ndef.Record]:
    try:
        return list(ndef.message_decoder(data))
    except ndef.DecodeError as e:
        raise ValueError(f"Malformed NDEF message: {e}") from e


def wrap_tlv(message: bytes) -> bytes:
    n = len(message)
    length = bytes([n]) if n < 0xFF else b"\xff" + struct.pack(">H", n)
    return bytes([TLV_NDEF]) + length + message + bytes([TLV_TERMINATOR])


def unwrap_tlv(data: bytes) -> bytes:
    """First NDEF TLV value in a Type 2 tag data area (``b""`` if none)."""
    pos = 0
    while pos < len(data):
        tag = data[pos]
        if tag == TLV_NULL:
            pos += 1
            continue
        if tag == TLV_TERMINATOR:
            break
        if pos + 1 >= len(data):
            break
        length = data[pos + 1]
        pos += 2
        if length == 0xFF:
            (length,) = struct.unpack(">H", data[pos:pos + 2])
            pos += 2
        if tag == TLV_NDEF:
            return bytes(data[pos:pos + length])
        pos += length
    return b""
