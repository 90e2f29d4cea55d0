"""Identity registry and directed follow graph."""

import logging
import threading
from dataclasses import dataclass, field
from typing import Protocol

from social_network.domain.errors import GraphInconsistency

_logger = logging.getLogger(__name__)


class GraphRepository(Protocol):
    """Storage interface for identities and follow edges.

    Edges are stored as followed identity -> followers.
    """

    def has_identity(self, identity: str) -> bool:
        """Return True when the identity is registered."""

    def add_identity(self, identity: str) -> None:
        """Register an identity with no followers."""

    def list_identities(self) -> list[str]:
        """Return every registered identity."""

    def followers_of(self, identity: str) -> list[str]:
        """Return the followers of an identity in insertion order."""

    def add_follower(self, followed: str, follower: str) -> bool:
        """Insert an edge; return False when it already existed."""

    def remove_follower(self, followed: str, follower: str) -> bool:
        """Delete an edge; return False when it did not exist."""


@dataclass
class GraphService:
    """Serializes all graph access behind one re-entrant lock."""

    repository: GraphRepository
    _lock: threading.RLock = field(
        default_factory=threading.RLock, init=False, repr=False
    )

    def exists(self, identity: str) -> bool:
        with self._lock:
            return self.repository.has_identity(identity)

    def register(self, identity: str) -> bool:
        """Create the identity unless it exists; False means it was taken."""
        with self._lock:
            if self.repository.has_identity(identity):
                return False
            self.repository.add_identity(identity)
        _logger.info("Registered identity %s", identity)
        return True

    def is_following(self, follower: str, followed: str) -> bool:
        with self._lock:
            return follower in self.repository.followers_of(followed)

    def followers(self, identity: str) -> list[str]:
        """Snapshot of the current followers of an identity."""
        with self._lock:
            return list(self.repository.followers_of(identity))

    def following(self, identity: str) -> list[str]:
        """Identities that `identity` follows."""
        with self._lock:
            return [
                candidate
                for candidate in self.repository.list_identities()
                if identity in self.repository.followers_of(candidate)
            ]

    def create_edge(self, follower: str, followed: str) -> bool:
        """Make `follower` follow `followed`; idempotent.

        Returns False when either identity is unknown.
        """
        with self._lock:
            if not (
                self.repository.has_identity(follower)
                and self.repository.has_identity(followed)
            ):
                _logger.warning(
                    "Cannot create edge %s -> %s: unknown identity", follower, followed
                )
                return False
            if self.repository.add_follower(followed, follower):
                _logger.info("Created follow edge %s -> %s", follower, followed)
            return True

    def remove_edge(self, follower: str, followed: str) -> bool:
        """Remove the edge; False when there was nothing to remove."""
        with self._lock:
            removed = self.repository.remove_follower(followed, follower)
        if removed:
            _logger.info("Removed follow edge %s -> %s", follower, followed)
        else:
            _logger.warning("Follow edge not found: %s -> %s", follower, followed)
        return removed

    def follow_back(self, requester: str, accepter: str) -> None:
        """Create both edges of a mutual follow.

        When the second edge fails, the first is rolled back if it was new.
        """
        with self._lock:
            already_following = self.is_following(requester, accepter)
            if not self.create_edge(requester, accepter):
                raise GraphInconsistency(
                    f"Could not create follow relationship {requester} -> {accepter}",
                    target=requester,
                )
            if not self.create_edge(accepter, requester):
                if not already_following:
                    self.repository.remove_follower(accepter, requester)
                raise GraphInconsistency(
                    f"Could not create follow relationship {accepter} -> {requester}",
                    target=requester,
                )

    def counts(self) -> tuple[int, int]:
        """Return (identities, follow edges)."""
        with self._lock:
            identities = self.repository.list_identities()
            edges = sum(len(self.repository.followers_of(i)) for i in identities)
            return len(identities), edges
