"""Domain models for mailbox notifications."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from uuid import UUID, uuid4

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


class NotificationType(str, Enum):
    """Kinds of notification delivered to a mailbox."""

    FOLLOW_REQUEST = "follow_request"
    PHOTO_REQUEST = "photo_request"
    COMMENT_REQUEST = "comment_request"
    COMMENT_RESPONSE = "comment_response"
    PHOTO_RESPONSE = "photo_response"
    POST = "post"
    SYSTEM = "system"

    @property
    def is_request(self) -> bool:
        """Return True for types that carry a resolvable status."""
        return self in _REQUEST_TYPES


_REQUEST_TYPES = frozenset(
    {NotificationType.FOLLOW_REQUEST, NotificationType.PHOTO_REQUEST}
)


class NotificationStatus(str, Enum):
    """Workflow status of a notification."""

    NONE = "none"
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


@dataclass
class Notification:
    """A mailbox entry; only `read` and `status` change after creation."""

    sender: str
    receiver: str
    type: NotificationType
    content: str
    subject: str | None = None
    timestamp: datetime = field(default_factory=datetime.now)
    id: UUID = field(default_factory=uuid4)
    read: bool = False
    status: NotificationStatus = NotificationStatus.NONE

    def __post_init__(self) -> None:
        if self.type.is_request and self.status is NotificationStatus.NONE:
            self.status = NotificationStatus.PENDING

    @property
    def is_pending(self) -> bool:
        return self.status is NotificationStatus.PENDING

    def matches(
        self,
        sender: str,
        receiver: str,
        notification_type: NotificationType,
        subject: str | None = None,
    ) -> bool:
        """Return True when the entry is for the given request key."""
        return (
            self.sender == sender
            and self.receiver == receiver
            and self.type is notification_type
            and self.subject == subject
        )

    def render(self) -> str:
        """Format the notification as a single protocol line."""
        stamp = self.timestamp.strftime(TIMESTAMP_FORMAT)
        if self.type.is_request:
            kind = "follow" if self.type is NotificationType.FOLLOW_REQUEST else "photo"
            if self.is_pending:
                return (
                    f"[{stamp}] You have a {kind} request from "
                    f"{self.sender}: {self.content}"
                )
            return (
                f"[{stamp}] {kind.capitalize()} request from {self.sender} "
                f"was {self.status.value}"
            )
        return f"[{stamp}] {self.content}"
