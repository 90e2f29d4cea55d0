"""Tests for the stop-and-wait chunk transfer."""

import threading

import pytest

from social_network.domain.errors import ProtocolViolation, TransferFailure
from social_network.protocol.transfer import (
    FILE_INFO_ACK,
    ChunkReceiver,
    ChunkSender,
    FaultPlan,
    ReceivedFile,
    is_transfer_ack,
    split_chunks,
)
from tests.conftest import FAST_FAULT_PLAN, memory_channel_pair


def _transfer(data: bytes, description: str | None, fault_plan: FaultPlan):
    server, client = memory_channel_pair()
    sender = ChunkSender(server, chunk_count=10, ack_timeout=0.5, max_attempts=3)
    errors: list[Exception] = []

    def _send() -> None:
        try:
            sender.send(data, description)
        except Exception as exc:
            errors.append(exc)

    thread = threading.Thread(target=_send)
    thread.start()
    received = ChunkReceiver(client, fault_plan=fault_plan, read_timeout=5.0).receive()
    thread.join(timeout=5)
    assert errors == []
    return received, server, client


def test_split_chunks_always_yields_requested_count() -> None:
    chunks = split_chunks(b"abcdefghijk", 10)

    assert len(chunks) == 10
    assert chunks[0] == b"ab"
    assert chunks[-1] == b""
    assert b"".join(chunks) == b"abcdefghijk"
    assert split_chunks(b"", 10) == [b""] * 10


def test_faulty_receiver_still_gets_the_file() -> None:
    data = bytes(range(100))

    received, server, client = _transfer(data, "A cat", FAST_FAULT_PLAN)

    assert received == ReceivedFile(data=data, description="A cat")
    headers = [line for line in server.sent if line.startswith("CHUNK:")]
    assert headers.count("CHUNK:3:10:16") == 2
    assert headers.count("CHUNK:6:10:16") == 1
    assert headers.count("CHUNK:7:10:16") == 1
    assert client.sent.count("CHUNK_ACK:3") == 1
    assert client.sent.count("CHUNK_ACK:6") == 2
    assert server.sent[-1] == "TRANSFER_COMPLETE"


def test_empty_file_without_description() -> None:
    received, server, _ = _transfer(b"", None, FaultPlan.disabled())

    assert received == ReceivedFile(data=b"", description=None)
    assert "NO_DESCRIPTION" in server.sent


def test_greek_description_length_is_counted_in_bytes() -> None:
    received, server, _ = _transfer(b"photo", "Μια γάτα", FaultPlan.disabled())

    assert received.description == "Μια γάτα"
    assert f"DESCRIPTION:{len('Μια γάτα'.encode())}" in server.sent


def test_sender_gives_up_after_max_attempts() -> None:
    server, client = memory_channel_pair()
    client.write_line(FILE_INFO_ACK)
    sender = ChunkSender(server, chunk_count=2, ack_timeout=0.05, max_attempts=2)

    with pytest.raises(TransferFailure, match="no acknowledgment for chunk 1"):
        sender.send(b"data")

    assert [line for line in server.sent if line.startswith("CHUNK:1:")] == [
        "CHUNK:1:2:4",
        "CHUNK:1:2:4",
    ]


def test_sender_aborts_when_file_info_is_not_acknowledged() -> None:
    server, _ = memory_channel_pair()
    sender = ChunkSender(server, ack_timeout=0.05)

    with pytest.raises(TransferFailure, match="File transfer aborted"):
        sender.send(b"data")


def test_sender_rejects_unexpected_lines() -> None:
    server, client = memory_channel_pair()
    client.write_line(FILE_INFO_ACK)
    client.write_line("HELLO")
    sender = ChunkSender(server, chunk_count=1, ack_timeout=1.0)

    with pytest.raises(ProtocolViolation, match="expected CHUNK_ACK:1"):
        sender.send(b"data")


def test_receiver_surfaces_server_errors() -> None:
    server, client = memory_channel_pair()
    server.write_line("ERROR:File cat.jpg not found")

    with pytest.raises(TransferFailure, match="File cat.jpg not found"):
        ChunkReceiver(client, read_timeout=1.0).receive()


def test_transfer_acks_are_recognised() -> None:
    assert is_transfer_ack("CHUNK_ACK:4")
    assert is_transfer_ack("NO_DESCRIPTION_ACK")
    assert not is_transfer_ack("CHUNK:4:10:16")
    assert not is_transfer_ack("set_language:gr")
