"""Three-step download handshake messages and token issuing."""

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field

from social_network.domain.errors import ProtocolViolation
from social_network.domain.sessions import DownloadTarget

HANDSHAKE_INIT = "HANDSHAKE_INIT"
SYN_ACK = "SYN_ACK"
TRANSFER_READY = "TRANSFER_READY"


@dataclass
class TokenIssuer:
    """Time-derived tokens, strictly increasing within one issuer."""

    clock: Callable[[], int] = time.time_ns
    _last: int = field(default=0, init=False, repr=False)
    _lock: threading.Lock = field(
        default_factory=threading.Lock, init=False, repr=False
    )

    def issue(self) -> str:
        with self._lock:
            self._last = max(self._last + 1, self.clock() // 1000)
            return str(self._last)


def parse_download_request(parameters: str) -> DownloadTarget:
    """Parse `<file>:<sourceId>`."""
    file_name, separator, source_id = parameters.partition(":")
    if not separator or not file_name.strip() or not source_id.strip():
        raise ProtocolViolation(
            "Invalid parameters format. Expected 'fileName:sourceClientID'"
        )
    return DownloadTarget(file_name=file_name.strip(), source_id=source_id.strip())


def parse_ack(parameters: str) -> tuple[str, DownloadTarget]:
    """Parse `<token>:<file>:<sourceId>`; the source id may not contain colons."""
    token, separator, rest = parameters.partition(":")
    file_name, _, source_id = rest.rpartition(":")
    if not separator or not token.strip() or not file_name or not source_id.strip():
        raise ProtocolViolation("Invalid ACK parameters")
    return token.strip(), DownloadTarget(
        file_name=file_name.strip(), source_id=source_id.strip()
    )
