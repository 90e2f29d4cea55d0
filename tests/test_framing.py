"""Tests for newline framing over sockets."""

import socket
from collections.abc import Iterator

import pytest

from social_network.protocol.framing import (
    ChannelTimeout,
    ConnectionClosed,
    SocketLineChannel,
)


@pytest.fixture
def channels() -> Iterator[tuple[SocketLineChannel, SocketLineChannel]]:
    left, right = socket.socketpair()
    left_channel, right_channel = SocketLineChannel(left), SocketLineChannel(right)
    yield left_channel, right_channel
    left_channel.close()
    right_channel.close()


def test_lines_split_from_one_segment(channels) -> None:
    sender, receiver = channels
    sender.write_bytes(b"login:alice\r\npost:hello\n")

    assert receiver.read_line() == "login:alice"
    assert receiver.read_line() == "post:hello"


def test_lines_are_utf8(channels) -> None:
    sender, receiver = channels
    sender.write_line("post:Καλημέρα")

    assert receiver.read_line() == "post:Καλημέρα"


def test_timed_read_restores_blocking_mode(channels) -> None:
    sender, receiver = channels

    with pytest.raises(ChannelTimeout):
        receiver.read_line(timeout=0.05)
    assert receiver.sock.gettimeout() is None

    sender.write_line("continue_reading")
    assert receiver.read_line(timeout=1.0) == "continue_reading"
    assert receiver.sock.gettimeout() is None


def test_raw_bytes_interleave_with_lines(channels) -> None:
    sender, receiver = channels
    sender.write_bytes(b"4\n\x00\xff\n\x01done\n")

    assert receiver.read_line() == "4"
    assert receiver.read_bytes(4) == b"\x00\xff\n\x01"
    assert receiver.read_line() == "done"


def test_peer_close_raises_connection_closed(channels) -> None:
    sender, receiver = channels
    sender.write_bytes(b"partial")
    sender.close()

    with pytest.raises(ConnectionClosed):
        receiver.read_line()
