"""In-memory graph repository."""

from dataclasses import dataclass, field

from social_network.services.graph import GraphRepository


@dataclass
class MemoryGraphRepository(GraphRepository):
    """Adjacency lists keyed by followed identity; callers hold the lock."""

    followers: dict[str, list[str]] = field(default_factory=dict)

    def has_identity(self, identity: str) -> bool:
        """Return True when the identity is registered."""
        return identity in self.followers

    def add_identity(self, identity: str) -> None:
        """Create an empty follower list for the identity."""
        self.followers.setdefault(identity, [])

    def list_identities(self) -> list[str]:
        """Return identities in registration order."""
        return list(self.followers)

    def followers_of(self, identity: str) -> list[str]:
        """Return a copy of the identity's followers."""
        return list(self.followers.get(identity, []))

    def add_follower(self, followed: str, follower: str) -> bool:
        """Append the follower unless already present."""
        entries = self.followers.setdefault(followed, [])
        if follower in entries:
            return False
        entries.append(follower)
        return True

    def remove_follower(self, followed: str, follower: str) -> bool:
        """Remove the follower if present."""
        entries = self.followers.get(followed, [])
        if follower not in entries:
            return False
        entries.remove(follower)
        return True
