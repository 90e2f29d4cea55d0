"""Newline-delimited UTF-8 framing over a byte stream."""

import contextlib
import socket
import time
from typing import Protocol

DEFAULT_MAX_LINE_BYTES = 32 * 1024 * 1024
_RECV_SIZE = 4096


class ChannelTimeout(Exception):
    """No complete line arrived before the read deadline."""


class ConnectionClosed(ConnectionError):
    """The peer closed the connection."""


class LineChannel(Protocol):
    """What the session and transfer logic need from a connection."""

    def read_line(self, timeout: float | None = None) -> str:
        """Return the next line without its terminator.

        Raises ChannelTimeout when `timeout` elapses first and
        ConnectionClosed at end of stream.
        """

    def write_line(self, line: str) -> None:
        """Send one line followed by a newline."""

    def read_bytes(self, count: int) -> bytes:
        """Return exactly `count` raw bytes."""

    def write_bytes(self, data: bytes) -> None:
        """Send raw bytes with no framing."""

    def close(self) -> None:
        """Release the underlying connection."""


class SocketLineChannel:
    """LineChannel over a connected stream socket.

    Reads are buffered so raw byte reads and line reads can interleave.
    A timed read resets the socket to blocking mode afterwards whatever
    the outcome.
    """

    def __init__(
        self, sock: socket.socket, max_line_bytes: int = DEFAULT_MAX_LINE_BYTES
    ) -> None:
        self.sock = sock
        self.max_line_bytes = max_line_bytes
        self._buffer = bytearray()

    def read_line(self, timeout: float | None = None) -> str:
        deadline = None if timeout is None else time.monotonic() + timeout
        try:
            while (index := self._buffer.find(b"\n")) < 0:
                if len(self._buffer) > self.max_line_bytes:
                    raise ConnectionClosed("Line exceeds maximum length")
                self._fill(deadline)
        finally:
            if deadline is not None:
                self.sock.settimeout(None)
        raw = bytes(self._buffer[:index])
        del self._buffer[: index + 1]
        return raw.decode("utf-8", errors="replace").rstrip("\r")

    def write_line(self, line: str) -> None:
        self.sock.sendall(line.encode("utf-8") + b"\n")

    def read_bytes(self, count: int) -> bytes:
        while len(self._buffer) < count:
            self._fill(None)
        data = bytes(self._buffer[:count])
        del self._buffer[:count]
        return data

    def write_bytes(self, data: bytes) -> None:
        self.sock.sendall(data)

    def close(self) -> None:
        with contextlib.suppress(OSError):
            self.sock.shutdown(socket.SHUT_RDWR)
        self.sock.close()

    def _fill(self, deadline: float | None) -> None:
        if deadline is not None:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise ChannelTimeout("Timed out waiting for a line")
            self.sock.settimeout(remaining)
        try:
            chunk = self.sock.recv(_RECV_SIZE)
        except TimeoutError as exc:
            raise ChannelTimeout("Timed out waiting for a line") from exc
        if not chunk:
            raise ConnectionClosed("Socket closed while receiving data.")
        self._buffer.extend(chunk)
