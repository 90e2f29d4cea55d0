"""Command grammar and the table of supported commands."""

from dataclasses import dataclass
from enum import Enum

from social_network.domain.errors import ProtocolViolation

PLAIN_ERROR = "Error: "
PROTOCOL_ERROR = "ERROR:"


@dataclass(frozen=True)
class CommandSpec:
    """Declarative command definition."""

    name: str
    description: str
    error_prefix: str = PLAIN_ERROR
    requires_auth: bool = True


class Command(Enum):
    """Enum of session commands (single source of truth)."""

    LOGIN = CommandSpec("login", "Log in as an existing identity", requires_auth=False)
    SIGNUP = CommandSpec("signup", "Register a new identity", requires_auth=False)
    EXIT = CommandSpec("exit", "Close the session", requires_auth=False)
    POST = CommandSpec("post", "Append a text post to your profile")
    FOLLOW_REQUEST = CommandSpec("follow_request", "Ask to follow an identity")
    FOLLOW_RESPONSE = CommandSpec(
        "follow_response", "Answer a follow request (1 follow back, 2 accept, 3 reject)"
    )
    UNFOLLOW = CommandSpec("unfollow", "Stop following an identity")
    ACCESS_PROFILE = CommandSpec(
        "access_profile", "Read a followed identity's profile", PROTOCOL_ERROR
    )
    SEARCH = CommandSpec(
        "search", "Find a photo among the identities you follow", PROTOCOL_ERROR
    )
    GET_NOTIFICATIONS = CommandSpec("get_notifications", "Read your notifications")
    UPLOAD = CommandSpec("upload", "Upload a photo with descriptions", PROTOCOL_ERROR)
    DOWNLOAD = CommandSpec("download", "Request a photo download", PROTOCOL_ERROR)
    DOWNLOAD_SYN = CommandSpec(
        "download_syn", "Open the download handshake", PROTOCOL_ERROR
    )
    DOWNLOAD_ACK = CommandSpec(
        "download_ack", "Confirm the handshake and start the transfer", PROTOCOL_ERROR
    )
    REPOST = CommandSpec("repost", "Repost someone's content", PROTOCOL_ERROR)
    COMMENT = CommandSpec("comment", "Comment on an identity's post")
    ASK_COMMENT = CommandSpec("ask_comment", "Ask an identity to approve a comment")
    APPROVE_COMMENT = CommandSpec("approve_comment", "Approve or reject a comment")
    ASK_PHOTO = CommandSpec(
        "ask_photo", "Ask an owner for download access", PROTOCOL_ERROR
    )
    PERMIT_PHOTO = CommandSpec(
        "permit_photo", "Grant or refuse a photo request", PROTOCOL_ERROR
    )
    PHOTO_DETAILS = CommandSpec(
        "photo_details", "Show size, languages and access for a photo", PROTOCOL_ERROR
    )
    SET_LANGUAGE = CommandSpec("set_language", "Set en or gr", PROTOCOL_ERROR)
    SYNC = CommandSpec("sync", "Confirm server-side data is in sync")

    @property
    def spec(self) -> CommandSpec:
        return self.value

    @classmethod
    def lookup(cls, name: str) -> "Command | None":
        return _BY_NAME.get(name)


_BY_NAME = {entry.value.name: entry for entry in Command}


@dataclass(frozen=True)
class CommandLine:
    """A parsed `command:parameters` record."""

    name: str
    parameters: str


def parse_command_line(line: str) -> CommandLine:
    """Split on the first colon; a bare `exit` is also accepted."""
    stripped = line.strip()
    if stripped == Command.EXIT.spec.name:
        return CommandLine(name=stripped, parameters="")
    name, separator, parameters = stripped.partition(":")
    if not separator:
        raise ProtocolViolation("Invalid command format")
    return CommandLine(name=name.strip(), parameters=parameters)


def split_parameters(
    parameters: str, count: int, usage: str, minimum: int | None = None
) -> list[str]:
    """Split into at most `count` fields; the last keeps any further colons.

    Missing optional fields (beyond `minimum`) come back as empty strings.
    """
    required = count if minimum is None else minimum
    parts = parameters.split(":", count - 1)
    if len(parts) < required or not all(part.strip() for part in parts[:required]):
        raise ProtocolViolation(f"Invalid parameters format. Expected '{usage}'")
    parts.extend([""] * (count - len(parts)))
    return [part.strip() for part in parts]


def command_help() -> list[dict[str, str]]:
    """Return the command table for diagnostics."""
    return [
        {"command": entry.value.name, "description": entry.value.description}
        for entry in Command
    ]
