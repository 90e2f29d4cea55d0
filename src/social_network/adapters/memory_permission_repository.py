"""In-memory permission repository."""

from dataclasses import dataclass, field

from social_network.services.permissions import PermissionRepository


@dataclass
class MemoryPermissionRepository(PermissionRepository):
    """Grant sets keyed by (owner, file name)."""

    grants: dict[tuple[str, str], set[str]] = field(default_factory=dict)

    def add(self, owner: str, file_name: str, requester: str) -> None:
        """Add the requester to the grant set."""
        self.grants.setdefault((owner, file_name), set()).add(requester)

    def contains(self, owner: str, file_name: str, requester: str) -> bool:
        """Return True when the requester holds a grant."""
        return requester in self.grants.get((owner, file_name), set())

    def discard(self, owner: str, file_name: str, requester: str) -> bool:
        """Remove the grant; drop the key once its set is empty."""
        requesters = self.grants.get((owner, file_name))
        if not requesters or requester not in requesters:
            return False
        requesters.remove(requester)
        if not requesters:
            del self.grants[(owner, file_name)]
        return True

    def count(self) -> int:
        """Return the number of outstanding grants."""
        return sum(len(requesters) for requesters in self.grants.values())
