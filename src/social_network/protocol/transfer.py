"""Stop-and-wait chunked file transfer over a line channel.

The sender announces the file, sends each base64 chunk and waits for its
acknowledgment, resending on timeout. The receiver side carries a fault
plan that withholds one acknowledgment and delays-then-duplicates another,
so every transfer exercises the sender's retry and duplicate handling.
"""

import base64
import binascii
import logging
import math
import time
from collections.abc import Callable
from dataclasses import dataclass, field

from social_network.domain.errors import ProtocolViolation, TransferFailure
from social_network.protocol.framing import ChannelTimeout, LineChannel

_logger = logging.getLogger(__name__)

FILE_INFO = "FILE_INFO"
FILE_INFO_ACK = "FILE_INFO_ACK"
CHUNK = "CHUNK"
CHUNK_ACK = "CHUNK_ACK"
DESCRIPTION = "DESCRIPTION"
DESCRIPTION_ACK = "DESCRIPTION_ACK"
DESCRIPTION_RECEIVED = "DESCRIPTION_RECEIVED"
NO_DESCRIPTION = "NO_DESCRIPTION"
NO_DESCRIPTION_ACK = "NO_DESCRIPTION_ACK"
TRANSFER_COMPLETE = "TRANSFER_COMPLETE"

DEFAULT_CHUNK_COUNT = 10
DEFAULT_ACK_TIMEOUT = 5.0
DEFAULT_MAX_ATTEMPTS = 3


def split_chunks(data: bytes, count: int = DEFAULT_CHUNK_COUNT) -> list[bytes]:
    """Split data into exactly `count` chunks of ceil(len/count) bytes.

    Trailing chunks are shorter, or empty when the data is small.
    """
    if count < 1:
        raise ValueError("count must be positive")
    size = math.ceil(len(data) / count)
    return [data[index * size : (index + 1) * size] for index in range(count)]


_TRANSFER_ACKS = frozenset(
    {
        CHUNK_ACK,
        FILE_INFO_ACK,
        DESCRIPTION_ACK,
        DESCRIPTION_RECEIVED,
        NO_DESCRIPTION_ACK,
    }
)


def is_transfer_ack(line: str) -> bool:
    """Return True for receiver acknowledgments, which are never commands."""
    return line.strip().partition(":")[0] in _TRANSFER_ACKS


def _parse_chunk_ack(line: str) -> int | None:
    prefix, _, raw_index = line.partition(":")
    if prefix != CHUNK_ACK or not raw_index.isdigit():
        return None
    return int(raw_index)


@dataclass
class ChunkSender:
    """Server side of a download."""

    channel: LineChannel
    chunk_count: int = DEFAULT_CHUNK_COUNT
    ack_timeout: float = DEFAULT_ACK_TIMEOUT
    max_attempts: int = DEFAULT_MAX_ATTEMPTS

    def send(self, data: bytes, description: str | None = None) -> None:
        """Run the whole transfer; raises on failure, leaving the channel open."""
        chunks = split_chunks(data, self.chunk_count)
        total = len(chunks)
        try:
            self.channel.write_line(f"{FILE_INFO}:{total}:{len(data)}")
            self._await(FILE_INFO_ACK, acked=0)

            for index, chunk in enumerate(chunks, start=1):
                self._send_chunk(index, total, chunk)

            if description:
                encoded = description.encode("utf-8")
                self.channel.write_line(f"{DESCRIPTION}:{len(encoded)}")
                self._await(DESCRIPTION_ACK, acked=total)
                self.channel.write_line(description)
                self._await(DESCRIPTION_RECEIVED, acked=total)
            else:
                self.channel.write_line(NO_DESCRIPTION)
                self._await(NO_DESCRIPTION_ACK, acked=total)
        except ChannelTimeout as exc:
            raise TransferFailure(f"File transfer aborted: {exc}") from exc

        self.channel.write_line(TRANSFER_COMPLETE)
        _logger.info("Transfer complete: %d bytes in %d chunks", len(data), total)

    def _send_chunk(self, index: int, total: int, chunk: bytes) -> None:
        payload = base64.b64encode(chunk).decode("ascii")
        for attempt in range(1, self.max_attempts + 1):
            self.channel.write_line(f"{CHUNK}:{index}:{total}:{len(payload)}")
            self.channel.write_line(payload)
            _logger.info(
                "Sent chunk %d/%d (%d bytes, attempt %d)",
                index,
                total,
                len(chunk),
                attempt,
            )
            try:
                self._await(f"{CHUNK_ACK}:{index}", acked=index - 1)
            except ChannelTimeout:
                _logger.warning(
                    "Server did not receive ACK for chunk %d (attempt %d/%d)",
                    index,
                    attempt,
                    self.max_attempts,
                )
                continue
            return
        raise TransferFailure(
            f"File transfer failed: no acknowledgment for chunk {index} "
            f"after {self.max_attempts} attempts"
        )

    def _await(self, expected: str, acked: int) -> None:
        """Wait for `expected`, skipping duplicate acks of chunks up to `acked`.

        Raises ChannelTimeout when the deadline passes.
        """
        deadline = time.monotonic() + self.ack_timeout
        while True:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise ChannelTimeout(f"Timed out waiting for {expected}")
            line = self.channel.read_line(timeout=remaining)
            if line == expected:
                return
            stale = _parse_chunk_ack(line)
            if stale is not None and 1 <= stale <= acked:
                _logger.info("Ignoring duplicate ACK for chunk %d", stale)
                continue
            raise ProtocolViolation(
                f"File transfer aborted: expected {expected}, got {line!r}"
            )


@dataclass(frozen=True)
class FaultPlan:
    """Deliberate receiver misbehaviour used for conformance runs."""

    withhold_first_ack: int | None = 3
    delayed_ack: int | None = 6
    delay_seconds: float = 3.0

    @classmethod
    def disabled(cls) -> "FaultPlan":
        return cls(withhold_first_ack=None, delayed_ack=None, delay_seconds=0.0)


@dataclass(frozen=True)
class ReceivedFile:
    """Reassembled transfer contents."""

    data: bytes
    description: str | None


@dataclass
class ChunkReceiver:
    """Requester side of a download."""

    channel: LineChannel
    fault_plan: FaultPlan = field(default_factory=FaultPlan)
    read_timeout: float | None = None
    sleep: Callable[[float], None] = time.sleep

    def receive(self) -> ReceivedFile:
        total, size = self._read_file_info()
        self.channel.write_line(FILE_INFO_ACK)

        received: dict[int, bytes] = {}
        withheld: set[int] = set()
        while len(received) < total:
            index, chunk = self._read_chunk(total)
            if index in received:
                _logger.info("Re-acknowledging chunk %d already held", index)
                self._ack(index)
                continue
            if index != len(received) + 1:
                raise ProtocolViolation(
                    f"Expected chunk {len(received) + 1}, got chunk {index}"
                )
            if index == self.fault_plan.withhold_first_ack and index not in withheld:
                withheld.add(index)
                _logger.info("Withholding ACK for chunk %d", index)
                continue
            received[index] = chunk
            if index == self.fault_plan.delayed_ack:
                self.sleep(self.fault_plan.delay_seconds)
                self._ack(index)
                _logger.info("Sending duplicate ACK for chunk %d", index)
            self._ack(index)

        data = b"".join(received[index] for index in range(1, total + 1))
        if len(data) != size:
            raise TransferFailure(
                f"Received {len(data)} bytes but {size} were announced"
            )
        description = self._read_description()
        self._expect(TRANSFER_COMPLETE)
        return ReceivedFile(data=data, description=description)

    def _read_file_info(self) -> tuple[int, int]:
        line = self._read()
        prefix, _, rest = line.partition(":")
        total, _, size = rest.partition(":")
        if prefix != FILE_INFO or not total.isdigit() or not size.isdigit():
            raise ProtocolViolation(f"Expected {FILE_INFO}, got {line!r}")
        if int(total) < 1:
            raise ProtocolViolation("Chunk count must be positive")
        return int(total), int(size)

    def _read_chunk(self, total: int) -> tuple[int, bytes]:
        header = self._read()
        parts = header.split(":")
        if (
            len(parts) != 4
            or parts[0] != CHUNK
            or not all(part.isdigit() for part in parts[1:])
        ):
            raise ProtocolViolation(f"Expected chunk header, got {header!r}")
        index, announced_total, length = (int(part) for part in parts[1:])
        if announced_total != total or not 1 <= index <= total:
            raise ProtocolViolation(f"Chunk {index}/{announced_total} out of range")
        payload = self._read()
        if len(payload) != length:
            raise ProtocolViolation(
                f"Chunk {index} payload is {len(payload)} characters, expected {length}"
            )
        try:
            return index, base64.b64decode(payload, validate=True)
        except binascii.Error as exc:
            raise ProtocolViolation(f"Chunk {index} is not valid base64") from exc

    def _read_description(self) -> str | None:
        line = self._read()
        if line == NO_DESCRIPTION:
            self.channel.write_line(NO_DESCRIPTION_ACK)
            return None
        prefix, _, raw_length = line.partition(":")
        if prefix != DESCRIPTION or not raw_length.isdigit():
            raise ProtocolViolation(f"Expected description header, got {line!r}")
        self.channel.write_line(DESCRIPTION_ACK)
        description = self._read()
        if len(description.encode("utf-8")) != int(raw_length):
            raise ProtocolViolation("Description length does not match its header")
        self.channel.write_line(DESCRIPTION_RECEIVED)
        return description

    def _ack(self, index: int) -> None:
        self.channel.write_line(f"{CHUNK_ACK}:{index}")

    def _expect(self, expected: str) -> None:
        line = self._read()
        if line != expected:
            raise ProtocolViolation(f"Expected {expected}, got {line!r}")

    def _read(self) -> str:
        line = self.channel.read_line(timeout=self.read_timeout)
        if line.startswith("ERROR:"):
            raise TransferFailure(line.removeprefix("ERROR:"))
        return line
