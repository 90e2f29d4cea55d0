"""In-memory profile feed repository."""

from dataclasses import dataclass, field

from social_network.services.profiles import Feed, ProfileRepository


@dataclass
class MemoryProfileRepository(ProfileRepository):
    """Feed lines keyed by (identity, feed)."""

    feeds: dict[tuple[str, Feed], list[str]] = field(default_factory=dict)

    def append(self, identity: str, feed: Feed, line: str) -> None:
        """Append a line to the feed."""
        self.feeds.setdefault((identity, feed), []).append(line)

    def lines(self, identity: str, feed: Feed) -> list[str]:
        """Return the feed lines, oldest first."""
        return self.feeds.get((identity, feed), [])
