from __future__ import annotations

from typing import Optional


class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class UnknownIdentifier(ValidationError):
    """Raised when no person matches a scanned or typed identifier."""


class AuthenticationError(DomainError):
    """Raised when sign-in fails; ``code`` mirrors the auth provider codes."""

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.code = code


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""


class ConnectivityError(DomainError):
    """Raised when the pre-flight connectivity check fails."""


class NfcError(DomainError):
    """Raised on NFC poll/read/write failures."""


class NfcTimeout(NfcError):
    """No tag was presented before the poll timeout elapsed."""


class TagNotWritable(NfcError):
    """The presented tag does not accept NDEF writes."""


class BackendError(DomainError):
    """Raised when a backend read or write fails."""


class RecordDecodeError(Exception):
    """Raised when a stored row cannot be turned into a typed record."""


class PayloadFormatError(ValueError):
    """Wire string is not ``iv:ciphertext``."""


class PayloadDecryptError(ValueError):
    """Wire string is well-formed but cannot be decrypted."""
