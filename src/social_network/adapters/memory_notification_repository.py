"""In-memory notification repository."""

from dataclasses import dataclass, field

from social_network.domain.notifications import Notification
from social_network.services.notifications import NotificationRepository


@dataclass
class MemoryNotificationRepository(NotificationRepository):
    """Mailboxes keyed by receiver."""

    mailboxes: dict[str, list[Notification]] = field(default_factory=dict)

    def append(self, notification: Notification) -> None:
        """Append to the receiver's mailbox."""
        self.mailboxes.setdefault(notification.receiver, []).append(notification)

    def mailbox(self, receiver: str) -> list[Notification]:
        """Return the live mailbox list for the receiver."""
        return self.mailboxes.get(receiver, [])

    def count(self) -> int:
        """Return the number of stored notifications."""
        return sum(len(entries) for entries in self.mailboxes.values())
