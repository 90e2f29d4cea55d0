"""Domain models for identities, photos and connected clients."""

from dataclasses import dataclass, field
from datetime import datetime

SUPPORTED_LANGUAGES = ("en", "gr")
DEFAULT_LANGUAGE = "en"


@dataclass(frozen=True)
class ClientInfo:
    """Catalog entry for an authenticated connection."""

    identity: str
    address: str
    port: int
    connected_at: datetime = field(default_factory=datetime.now)


@dataclass(frozen=True)
class PhotoRecord:
    """A stored photo and its per-language descriptions."""

    owner: str
    file_name: str
    data: bytes
    descriptions: dict[str, str] = field(default_factory=dict)

    @property
    def size(self) -> int:
        return len(self.data)

    def description_for(self, language: str) -> str | None:
        """Return the description in `language`, falling back to en then gr."""
        for candidate in (language, *SUPPORTED_LANGUAGES):
            text = self.descriptions.get(candidate)
            if text:
                return text
        return None


@dataclass(frozen=True)
class StoreStats:
    """Counts reported by the admin API."""

    identities: int
    follow_edges: int
    notifications: int
    grants: int
    connected_clients: int
