"""Catalog of connected, authenticated clients."""

import logging
import threading
from dataclasses import dataclass, field
from typing import Protocol

from social_network.domain.models import ClientInfo

_logger = logging.getLogger(__name__)


class CatalogRepository(Protocol):
    """Storage interface for catalog entries."""

    def put(self, info: ClientInfo) -> None:
        """Insert or replace the entry for an identity."""

    def remove(self, identity: str, address: str, port: int) -> ClientInfo | None:
        """Drop the identity's entry if it belongs to this connection; return it."""

    def entries(self) -> list[ClientInfo]:
        """Return every entry."""


@dataclass
class CatalogService:
    """Liveness bookkeeping; never consulted for authorization."""

    repository: CatalogRepository
    _lock: threading.Lock = field(
        default_factory=threading.Lock, init=False, repr=False
    )

    def register(self, identity: str, address: str, port: int) -> ClientInfo:
        info = ClientInfo(identity=identity, address=address, port=port)
        with self._lock:
            self.repository.put(info)
        _logger.info("Client %s connected from %s:%d", identity, address, port)
        return info

    def unregister(self, identity: str, address: str, port: int) -> None:
        """Remove the entry unless a newer connection has replaced it."""
        with self._lock:
            removed = self.repository.remove(identity, address, port)
        if removed is None:
            _logger.info("Client %s disconnected; a newer session is listed", identity)
            return
        _logger.info("Client %s disconnected", identity)

    def snapshot(self) -> list[ClientInfo]:
        with self._lock:
            return sorted(self.repository.entries(), key=lambda info: info.identity)
