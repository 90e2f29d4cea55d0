"""Thin line-protocol client for scripts and tests."""

import logging
import socket
from dataclasses import dataclass, field

from social_network.domain.errors import SequencingError, TransferFailure
from social_network.protocol.framing import LineChannel, SocketLineChannel
from social_network.protocol.handshake import HANDSHAKE_INIT, SYN_ACK, TRANSFER_READY
from social_network.protocol.transfer import ChunkReceiver, FaultPlan, ReceivedFile
from social_network.server.session import (
    CONTINUE_READING,
    END_OF_NOTIFICATIONS,
    NO_NOTIFICATIONS,
    PHOTO_DETAILS_END,
    PROFILE_END,
    PROFILE_START,
    READY_FOR_PHOTO,
    START_SENDING,
)

_logger = logging.getLogger(__name__)


@dataclass
class SocialNetworkClient:
    """Issues commands one at a time and reads their replies."""

    channel: LineChannel
    fault_plan: FaultPlan = field(default_factory=FaultPlan)
    read_timeout: float | None = None
    identity: str | None = None

    @classmethod
    def connect(
        cls, host: str, port: int, timeout: float = 10.0, **kwargs: object
    ) -> "SocialNetworkClient":
        sock = socket.create_connection((host, port), timeout=timeout)
        sock.settimeout(None)
        return cls(SocketLineChannel(sock), **kwargs)

    def close(self) -> None:
        self.channel.close()

    def send(self, command: str, parameters: str = "") -> None:
        self.channel.write_line(f"{command}:{parameters}")

    def read(self) -> str:
        return self.channel.read_line(timeout=self.read_timeout)

    def command(self, command: str, parameters: str = "") -> str:
        """Send a command and return its single reply line."""
        self.send(command, parameters)
        return self.read()

    def read_until(self, sentinel: str) -> list[str]:
        """Read lines up to and excluding `sentinel`."""
        lines = []
        while (line := self.read()) != sentinel:
            lines.append(line)
        return lines

    def signup(self, identity: str) -> str:
        reply = self.command("signup", identity)
        if reply.startswith("Welcome"):
            self.identity = identity
        return reply

    def login(self, identity: str) -> str:
        reply = self.command("login", identity)
        if reply.startswith("Welcome"):
            self.identity = identity
        return reply

    def exit(self) -> None:
        self.channel.write_line("exit")

    def get_notifications(self) -> list[str]:
        first = self.command("get_notifications")
        if first == NO_NOTIFICATIONS:
            return []
        self.channel.write_line(CONTINUE_READING)
        return [first, *self.read_until(END_OF_NOTIFICATIONS)]

    def access_profile(self, target: str) -> list[str]:
        """Return the profile lines, or the single denial/error line."""
        first = self.command("access_profile", target)
        if first != PROFILE_START:
            return [first]
        return self.read_until(PROFILE_END)

    def photo_details(self, file_name: str, owner: str) -> list[str]:
        first = self.command("photo_details", f"{file_name}:{owner}")
        if first.startswith("ERROR:"):
            return [first]
        return [first, *self.read_until(PHOTO_DETAILS_END)]

    def upload(
        self,
        file_name: str,
        data: bytes,
        description_en: str = "",
        description_gr: str = "",
    ) -> str:
        """Run the upload exchange and return the final reply."""
        reply = self.command("upload", f"{file_name}:{description_en}:{description_gr}")
        if reply != READY_FOR_PHOTO:
            return reply
        self.channel.write_line(str(len(data)))
        reply = self.read()
        if reply != START_SENDING:
            return reply
        self.channel.write_bytes(data)
        return self.read()

    def download(self, file_name: str, source_id: str) -> ReceivedFile:
        """Authorize, handshake and receive a file."""
        reply = self.command("download", f"{file_name}:{source_id}")
        if reply != HANDSHAKE_INIT:
            raise TransferFailure(reply.removeprefix("ERROR:"), source_id)
        token = self.syn()
        reply = self.command("download_ack", f"{token}:{file_name}:{source_id}")
        if reply != TRANSFER_READY:
            raise SequencingError(reply.removeprefix("ERROR:"), file_name)
        received = ChunkReceiver(
            self.channel, fault_plan=self.fault_plan, read_timeout=self.read_timeout
        ).receive()
        _logger.info(
            "Downloaded %s from %s (%d bytes)", file_name, source_id, len(received.data)
        )
        return received

    def syn(self) -> str:
        """Send the handshake SYN and return the issued token."""
        reply = self.command("download_syn", self.identity or "")
        prefix, _, token = reply.partition(":")
        if prefix != SYN_ACK or not token:
            raise SequencingError(reply.removeprefix("ERROR:"))
        return token
