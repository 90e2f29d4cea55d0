"""Profile timelines and repost feeds."""

import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Protocol

from social_network.domain.notifications import TIMESTAMP_FORMAT


class Feed(str, Enum):
    """The two feeds each identity owns."""

    PROFILE = "profile"
    OTHERS = "others"


class ProfileRepository(Protocol):
    """Storage interface for feed lines."""

    def append(self, identity: str, feed: Feed, line: str) -> None:
        """Append a line to a feed."""

    def lines(self, identity: str, feed: Feed) -> list[str]:
        """Return the feed lines, oldest first."""


@dataclass
class ProfileService:
    """Appends timestamped entries to profile feeds."""

    repository: ProfileRepository
    clock: Callable[[], datetime] = datetime.now
    _lock: threading.Lock = field(
        default_factory=threading.Lock, init=False, repr=False
    )

    def stamp(self, text: str) -> str:
        return f"[{self.clock().strftime(TIMESTAMP_FORMAT)}] {text}"

    def record(self, identity: str, text: str) -> str:
        """Append to the identity's own timeline and return the entry."""
        return self._append(identity, Feed.PROFILE, text)

    def record_other(self, identity: str, text: str) -> str:
        """Append to the feed of content reposted from others."""
        return self._append(identity, Feed.OTHERS, text)

    def timeline(self, identity: str) -> list[str]:
        with self._lock:
            return list(self.repository.lines(identity, Feed.PROFILE))

    def others(self, identity: str) -> list[str]:
        with self._lock:
            return list(self.repository.lines(identity, Feed.OTHERS))

    def _append(self, identity: str, feed: Feed, text: str) -> str:
        entry = self.stamp(text)
        with self._lock:
            self.repository.append(identity, feed, entry)
        return entry
