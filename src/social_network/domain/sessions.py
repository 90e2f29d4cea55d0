"""Per-connection session state."""

from dataclasses import dataclass
from enum import Enum

from social_network.domain.errors import SequencingError


class SessionPhase(str, Enum):
    """Lifecycle of a connection."""

    UNAUTHENTICATED = "UNAUTHENTICATED"
    AUTHENTICATED = "AUTHENTICATED"
    CLOSED = "CLOSED"


@dataclass(frozen=True)
class DownloadTarget:
    """The file a download request asked for."""

    file_name: str
    source_id: str


@dataclass
class SessionState:
    """Mutable state owned by one session handler.

    All handshake transitions go through the methods below so that an ACK
    before a SYN, or an ACK naming another file, is rejected in one place.
    """

    identity: str | None = None
    phase: SessionPhase = SessionPhase.UNAUTHENTICATED
    language: str = "en"
    pending_download: DownloadTarget | None = None
    handshake_token: str | None = None

    @property
    def authenticated(self) -> bool:
        return self.phase is SessionPhase.AUTHENTICATED

    def authenticate(self, identity: str, language: str) -> None:
        """Move to the authenticated phase; there is no way back."""
        self.identity = identity
        self.language = language
        self.phase = SessionPhase.AUTHENTICATED

    def close(self) -> None:
        self.phase = SessionPhase.CLOSED
        self.pending_download = None
        self.handshake_token = None

    def request_download(self, target: DownloadTarget) -> None:
        """Record an authorized download; any earlier handshake is dropped."""
        self.pending_download = target
        self.handshake_token = None

    def open_handshake(self, token: str) -> None:
        """Record the token issued in reply to a SYN."""
        if self.pending_download is None:
            raise SequencingError("No download requested")
        self.handshake_token = token

    def complete_handshake(self, token: str, target: DownloadTarget) -> DownloadTarget:
        """Verify an ACK and consume the token and pending download."""
        expected_token = self.handshake_token
        # The token is single-use whatever the outcome.
        self.handshake_token = None
        if expected_token is None:
            raise SequencingError("No handshake in progress")
        if token != expected_token:
            raise SequencingError("Sequence number mismatch")
        if target != self.pending_download:
            raise SequencingError("File or source client mismatch")
        self.pending_download = None
        return target
