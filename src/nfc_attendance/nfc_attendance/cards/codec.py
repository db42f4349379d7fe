from __future__ import annotations

import base64
import binascii
import logging
import os

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from ..core.constants import LEGACY_CARD_KEY
from ..core.exceptions import PayloadDecryptError, PayloadFormatError

logger = logging.getLogger(__name__)

IV_LENGTH = 16
KEY_LENGTH = 32


class PayloadCodec:
    """Card payload codec: ``base64(iv) + ":" + base64(AES-256-CBC(plaintext))``.

    Cards written so far carry an all-zero IV, so that stays the default;
    ``random_iv=True`` draws a fresh IV per write. Decoding reads the IV from
    the wire string, so both kinds of card decode with the same key.

    There is no authentication tag: a tampered ciphertext either fails padding
    or decodes to garbage.
    """

    def __init__(self, key: str = LEGACY_CARD_KEY, *, random_iv: bool = False):
        key_bytes = key.encode("utf-8")
        if len(key_bytes) != KEY_LENGTH:
            raise ValueError(f"Card key must be {KEY_LENGTH} bytes, got {len(key_bytes)}")
        self._key = key_bytes
        self._random_iv = bool(random_iv)

    def _new_iv(self) -> bytes:
        return os.urandom(IV_LENGTH) if self._random_iv else bytes(IV_LENGTH)

    def encode(self, plaintext: str) -> str:
        if not plaintext:
            raise ValueError("Cannot encode an empty identifier")

        iv = self._new_iv()
        padder = padding.PKCS7(algorithms.AES.block_size).padder()
        padded = padder.update(plaintext.encode("utf-8")) + padder.finalize()

        encryptor = Cipher(algorithms.AES(self._key), modes.CBC(iv)).encryptor()
        ciphertext = encryptor.update(padded) + encryptor.finalize()

        return f"{base64.b64encode(iv).decode('ascii')}:{base64.b64encode(ciphertext).decode('ascii')}"

    def decode(self, wire: str) -> str:
        parts = wire.split(":")
        if len(parts) != 2 or not parts[0] or not parts[1]:
            raise PayloadFormatError("Invalid encrypted payload")

        try:
            iv = base64.b64decode(parts[0], validate=True)
            ciphertext = base64.b64decode(parts[1], validate=True)
        except (binascii.Error, ValueError) as e:
            raise PayloadDecryptError(f"Invalid base64 in payload: {e}") from e

        if len(iv) != IV_LENGTH or not ciphertext or len(ciphertext) % IV_LENGTH:
            raise PayloadDecryptError("Malformed IV or ciphertext length")

        try:
            decryptor = Cipher(algorithms.AES(self._key), modes.CBC(iv)).decryptor()
            padded = decryptor.update(ciphertext) + decryptor.finalize()
            unpadder = padding.PKCS7(algorithms.AES.block_size).unpadder()
            plain = unpadder.update(padded) + unpadder.finalize()
            return plain.decode("utf-8")
        except (ValueError, UnicodeDecodeError) as e:
            raise PayloadDecryptError(f"Cannot decrypt payload: {e}") from e

    def decode_or_raw(self, wire: str) -> str:
        """Decoded identifier, or ``wire`` unchanged when it is not a valid payload."""
        try:
            return self.decode(wire)
        except (PayloadFormatError, PayloadDecryptError) as e:
            logger.debug("Using raw tag payload (%s)", e)
            return wire
