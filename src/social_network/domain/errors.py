"""Error kinds surfaced to connected clients."""


class SocialNetworkError(Exception):
    """Base class for errors reported on the connection without closing it."""

    kind = "error"

    def __init__(self, message: str, target: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.target = target


class ProtocolViolation(SocialNetworkError):
    """A malformed line or input that does not fit the current phase."""

    kind = "protocol_violation"


class AuthorizationDenied(SocialNetworkError):
    """The actor is not allowed to perform the operation."""

    kind = "authorization_denied"


class NotFound(SocialNetworkError):
    """An identity, file or pending request does not exist."""

    kind = "not_found"


class Conflict(SocialNetworkError):
    """The operation would duplicate existing state."""

    kind = "conflict"


class SequencingError(SocialNetworkError):
    """Handshake steps arrived out of order or did not match."""

    kind = "sequencing_error"


class TransferFailure(SocialNetworkError):
    """A chunked transfer was aborted."""

    kind = "transfer_failure"


class GraphInconsistency(SocialNetworkError):
    """Only one direction of a mutual follow could be created."""

    kind = "graph_inconsistency"
