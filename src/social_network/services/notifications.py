"""Per-recipient notification mailboxes."""

import logging
import threading
from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from typing import Protocol
from uuid import UUID

from social_network.domain.errors import Conflict, NotFound
from social_network.domain.notifications import (
    Notification,
    NotificationStatus,
    NotificationType,
)

_logger = logging.getLogger(__name__)


class NotificationRepository(Protocol):
    """Storage interface for notifications."""

    def append(self, notification: Notification) -> None:
        """Append a notification to its receiver's mailbox."""

    def mailbox(self, receiver: str) -> list[Notification]:
        """Return the stored entries for a receiver, oldest first."""

    def count(self) -> int:
        """Return the number of stored notifications."""


@dataclass
class NotificationService:
    """Mailbox operations; every read-modify-write runs under one lock."""

    repository: NotificationRepository
    _lock: threading.Lock = field(
        default_factory=threading.Lock, init=False, repr=False
    )

    def notify(
        self,
        sender: str,
        receiver: str,
        notification_type: NotificationType,
        content: str,
        subject: str | None = None,
    ) -> Notification:
        """Deliver one notification."""
        notification = Notification(
            sender=sender,
            receiver=receiver,
            type=notification_type,
            content=content,
            subject=subject,
        )
        with self._lock:
            self.repository.append(notification)
        _logger.info(
            "Notification %s from %s to %s", notification_type.value, sender, receiver
        )
        return replace(notification)

    def send_request(
        self,
        sender: str,
        receiver: str,
        notification_type: NotificationType,
        content: str,
        subject: str | None = None,
    ) -> Notification:
        """Deliver a request unless an identical one is still pending."""
        notification = Notification(
            sender=sender,
            receiver=receiver,
            type=notification_type,
            content=content,
            subject=subject,
        )
        with self._lock:
            if self._find_pending(sender, receiver, notification_type, subject):
                raise Conflict(
                    f"A {notification_type.value.replace('_', ' ')} to {receiver} "
                    "is already pending",
                    target=receiver,
                )
            self.repository.append(notification)
        _logger.info(
            "Request %s from %s to %s", notification_type.value, sender, receiver
        )
        return replace(notification)

    def fan_out(self, sender: str, followers: Iterable[str], content: str) -> int:
        """Send one post notification to each follower in the snapshot."""
        delivered = 0
        for follower in dict.fromkeys(followers):
            if follower == sender:
                continue
            self.notify(sender, follower, NotificationType.POST, content)
            delivered += 1
        _logger.info("Fanned out post from %s to %d followers", sender, delivered)
        return delivered

    def active(self, receiver: str) -> list[Notification]:
        """Return unread entries plus every still-pending request."""
        with self._lock:
            return [
                replace(entry)
                for entry in self.repository.mailbox(receiver)
                if not entry.read or (entry.type.is_request and entry.is_pending)
            ]

    def mark_read(self, receiver: str, ids: Iterable[UUID]) -> int:
        """Mark the given entries read; pending requests still resurface."""
        wanted = set(ids)
        marked = 0
        with self._lock:
            for entry in self.repository.mailbox(receiver):
                if entry.id in wanted and not entry.read:
                    entry.read = True
                    marked += 1
        return marked

    def has_pending(
        self,
        sender: str,
        receiver: str,
        notification_type: NotificationType,
        subject: str | None = None,
    ) -> bool:
        with self._lock:
            entry = self._find_pending(sender, receiver, notification_type, subject)
        return entry is not None

    def resolve(
        self,
        sender: str,
        receiver: str,
        notification_type: NotificationType,
        status: NotificationStatus,
        subject: str | None = None,
    ) -> Notification:
        """Move the matching pending request to a final status.

        Raises NotFound when there is no pending match; resolved entries
        never change again.
        """
        if status not in (NotificationStatus.ACCEPTED, NotificationStatus.REJECTED):
            raise ValueError(f"Cannot resolve a request to {status.value}")
        with self._lock:
            entry = self._find_pending(sender, receiver, notification_type, subject)
            if entry is None:
                kind = notification_type.value.replace("_", " ")
                raise NotFound(
                    f"No pending {kind} from client {sender}", target=sender
                )
            entry.status = status
            resolved = replace(entry)
        _logger.info(
            "Resolved %s from %s to %s as %s",
            notification_type.value,
            sender,
            receiver,
            status.value,
        )
        return resolved

    def count(self) -> int:
        with self._lock:
            return self.repository.count()

    def _find_pending(
        self,
        sender: str,
        receiver: str,
        notification_type: NotificationType,
        subject: str | None,
    ) -> Notification | None:
        for entry in self.repository.mailbox(receiver):
            if entry.is_pending and entry.matches(
                sender, receiver, notification_type, subject
            ):
                return entry
        return None
