"""Single-use download grants."""

import logging
import threading
from dataclasses import dataclass, field
from typing import Protocol

_logger = logging.getLogger(__name__)


class PermissionRepository(Protocol):
    """Storage interface for (owner, file) -> requesters grants."""

    def add(self, owner: str, file_name: str, requester: str) -> None:
        """Add a requester to the grant set of (owner, file)."""

    def contains(self, owner: str, file_name: str, requester: str) -> bool:
        """Return True when the requester holds a grant."""

    def discard(self, owner: str, file_name: str, requester: str) -> bool:
        """Remove a grant; return False when it was absent."""

    def count(self) -> int:
        """Return the number of outstanding grants."""


@dataclass
class PermissionService:
    """Grant operations serialized behind one lock."""

    repository: PermissionRepository
    _lock: threading.Lock = field(
        default_factory=threading.Lock, init=False, repr=False
    )

    def grant(self, owner: str, requester: str, file_name: str) -> None:
        with self._lock:
            self.repository.add(owner, file_name, requester)
        _logger.info("Granted %s access to %s/%s", requester, owner, file_name)

    def check(self, owner: str, requester: str, file_name: str) -> bool:
        with self._lock:
            return self.repository.contains(owner, file_name, requester)

    def consume(self, owner: str, requester: str, file_name: str) -> bool:
        with self._lock:
            return self.repository.discard(owner, file_name, requester)

    def check_and_consume(self, owner: str, requester: str, file_name: str) -> bool:
        """Atomically test and remove a grant.

        Of two sessions racing for the same grant exactly one gets True.
        """
        with self._lock:
            if not self.repository.contains(owner, file_name, requester):
                return False
            self.repository.discard(owner, file_name, requester)
        _logger.info("Consumed grant for %s on %s/%s", requester, owner, file_name)
        return True

    def count(self) -> int:
        with self._lock:
            return self.repository.count()
