from __future__ import annotations

import logging
import socket
from dataclasses import dataclass
from typing import Optional

from ..core.constants import DEFAULT_CONNECTIVITY_TIMEOUT_SECONDS
from ..core.exceptions import ConnectivityError

logger = logging.getLogger(__name__)


@dataclass
class ConnectivityCheck:
    """Pre-flight reachability check against the backend host."""

    host: str
    port: int
    timeout: float = DEFAULT_CONNECTIVITY_TIMEOUT_SECONDS

    def is_online(self) -> bool:
        try:
            with socket.create_connection((self.host, int(self.port)), timeout=self.timeout):
                return True
        except OSError as e:
            logger.info("Backend %s:%s unreachable: %s", self.host, self.port, e)
            return False


def ensure_online(connectivity: Optional[ConnectivityCheck]) -> None:
    if connectivity is not None and not connectivity.is_online():
        raise ConnectivityError("No internet connection")
