"""In-memory client catalog repository."""

from dataclasses import dataclass, field

from social_network.domain.models import ClientInfo
from social_network.services.catalog import CatalogRepository


@dataclass
class MemoryCatalogRepository(CatalogRepository):
    """Catalog entries keyed by identity."""

    clients: dict[str, ClientInfo] = field(default_factory=dict)

    def put(self, info: ClientInfo) -> None:
        """Store the entry, replacing an older connection's."""
        self.clients[info.identity] = info

    def remove(self, identity: str, address: str, port: int) -> ClientInfo | None:
        """Pop the entry only when it was registered from this address."""
        info = self.clients.get(identity)
        if info is None or (info.address, info.port) != (address, port):
            return None
        return self.clients.pop(identity)

    def entries(self) -> list[ClientInfo]:
        """Return every stored entry."""
        return list(self.clients.values())
