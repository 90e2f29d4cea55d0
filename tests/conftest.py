"""Shared test fixtures."""

import itertools
import threading
import time
from collections.abc import Callable, Iterator

import pytest

from social_network.client import SocialNetworkClient
from social_network.config import Settings
from social_network.containers import AppContainer, build_container
from social_network.protocol.framing import ChannelTimeout, ConnectionClosed
from social_network.protocol.transfer import FaultPlan
from social_network.server.session import SessionHandler

FAST_FAULT_PLAN = FaultPlan(withhold_first_ack=3, delayed_ack=6, delay_seconds=0.05)


class MemoryChannel:
    """In-memory LineChannel; one end of a pair made by `memory_channel_pair`."""

    def __init__(self) -> None:
        self.peer: MemoryChannel | None = None
        self.sent: list[str] = []
        self._buffer = bytearray()
        self._closed = False
        self._condition = threading.Condition()

    def read_line(self, timeout: float | None = None) -> str:
        deadline = None if timeout is None else time.monotonic() + timeout
        with self._condition:
            while (index := self._buffer.find(b"\n")) < 0:
                self._wait(deadline)
            raw = bytes(self._buffer[:index])
            del self._buffer[: index + 1]
        return raw.decode("utf-8")

    def read_bytes(self, count: int) -> bytes:
        with self._condition:
            while len(self._buffer) < count:
                self._wait(None)
            data = bytes(self._buffer[:count])
            del self._buffer[:count]
        return data

    def write_line(self, line: str) -> None:
        self.sent.append(line)
        self._deliver(line.encode("utf-8") + b"\n")

    def write_bytes(self, data: bytes) -> None:
        self._deliver(data)

    def close(self) -> None:
        for end in (self, self.peer):
            if end is None:
                continue
            with end._condition:
                end._closed = True
                end._condition.notify_all()

    def _deliver(self, data: bytes) -> None:
        peer = self.peer
        if peer is None or self._closed:
            raise ConnectionClosed("Channel is closed")
        with peer._condition:
            peer._buffer.extend(data)
            peer._condition.notify_all()

    def _wait(self, deadline: float | None) -> None:
        if self._closed:
            raise ConnectionClosed("Channel is closed")
        if deadline is None:
            self._condition.wait()
            return
        remaining = deadline - time.monotonic()
        if remaining <= 0 or not self._condition.wait(remaining):
            raise ChannelTimeout("Timed out waiting for a line")


def memory_channel_pair() -> tuple[MemoryChannel, MemoryChannel]:
    left, right = MemoryChannel(), MemoryChannel()
    left.peer, right.peer = right, left
    return left, right


@pytest.fixture
def settings() -> Settings:
    return Settings(
        server_host="127.0.0.1",
        server_port=0,
        max_connections=4,
        ack_timeout_seconds=0.5,
        admin_token="admin-token",
        download_access="grant",
    )


@pytest.fixture
def container(settings: Settings) -> AppContainer:
    return build_container(settings)


@pytest.fixture
def follow_container(settings: Settings) -> AppContainer:
    return build_container(settings.model_copy(update={"download_access": "follow"}))


@pytest.fixture
def connect() -> Iterator[Callable[[AppContainer], SocialNetworkClient]]:
    """Start a session on a thread and return a client talking to it."""
    started: list[tuple[SocialNetworkClient, threading.Thread]] = []
    ports = itertools.count(50000)

    def _connect(container: AppContainer) -> SocialNetworkClient:
        client_end, server_end = memory_channel_pair()
        handler = SessionHandler(
            server_end, container, peer_address="127.0.0.1", peer_port=next(ports)
        )
        thread = threading.Thread(target=handler.run, daemon=True)
        thread.start()
        client = SocialNetworkClient(
            client_end, fault_plan=FAST_FAULT_PLAN, read_timeout=5.0
        )
        started.append((client, thread))
        return client

    yield _connect

    for client, thread in started:
        client.close()
        thread.join(timeout=5)
