from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol, Sequence

import ndef


@dataclass(frozen=True)
class NfcTag:
    """A presented tag. ``id`` is the hardware serial as uppercase hex."""

    id: str
    ndef_available: bool
    ndef_writable: bool
    capacity: int = 0


class NfcReader(Protocol):
    """NFC boundary.

    ``finish`` releases the tag session and must be called on success and on
    failure, otherwise the reader stays locked.
    """

    def poll(self, timeout: float) -> NfcTag:
        raise NotImplementedError

    def read_records(self, tag: NfcTag) -> Sequence[ndef.Record]:
        raise NotImplementedError

    def write_records(self, tag: NfcTag, records: Sequence[ndef.Record]) -> None:
        raise NotImplementedError

    def finish(self, *, message: Optional[str] = None, error: Optional[str] = None) -> None:
        raise NotImplementedError
