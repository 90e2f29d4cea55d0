"""Tests for the command grammar and handshake parsing."""

import pytest

from social_network.domain.errors import ProtocolViolation
from social_network.domain.sessions import DownloadTarget
from social_network.protocol.commands import (
    PROTOCOL_ERROR,
    Command,
    command_help,
    parse_command_line,
    split_parameters,
)
from social_network.protocol.handshake import (
    TokenIssuer,
    parse_ack,
    parse_download_request,
)
from social_network.services.language import contains_greek, matches_language


def test_parse_splits_on_first_colon_only() -> None:
    parsed = parse_command_line("post:time is 10:30")

    assert parsed.name == "post"
    assert parsed.parameters == "time is 10:30"


def test_parse_accepts_bare_exit_and_rejects_missing_colon() -> None:
    assert parse_command_line("exit").name == "exit"
    with pytest.raises(ProtocolViolation, match="Invalid command format"):
        parse_command_line("login alice")


def test_split_parameters_keeps_trailing_colons() -> None:
    assert split_parameters("alice:hi: there", 2, "targetID:comment") == [
        "alice",
        "hi: there",
    ]
    assert split_parameters("cat.jpg", 3, "file:en:gr", minimum=1) == [
        "cat.jpg",
        "",
        "",
    ]
    with pytest.raises(ProtocolViolation, match="Expected 'targetID:comment'"):
        split_parameters("alice", 2, "targetID:comment")


def test_command_table_lookup() -> None:
    assert Command.lookup("download_ack") is Command.DOWNLOAD_ACK
    assert Command.lookup("teleport") is None
    assert Command.DOWNLOAD.spec.error_prefix == PROTOCOL_ERROR
    assert not Command.LOGIN.spec.requires_auth
    assert {"command": "sync", "description": Command.SYNC.spec.description} in (
        command_help()
    )


def test_handshake_parsing() -> None:
    assert parse_download_request("cat.jpg:alice") == DownloadTarget("cat.jpg", "alice")
    assert parse_ack("42:cat.jpg:alice") == ("42", DownloadTarget("cat.jpg", "alice"))
    with pytest.raises(ProtocolViolation):
        parse_download_request("cat.jpg")
    with pytest.raises(ProtocolViolation, match="Invalid ACK parameters"):
        parse_ack("42:cat.jpg")


def test_tokens_increase_even_when_clock_stalls() -> None:
    issuer = TokenIssuer(clock=lambda: 5_000_000)

    tokens = [int(issuer.issue()) for _ in range(3)]

    assert tokens == sorted(set(tokens))
    assert all(":" not in str(token) for token in tokens)


def test_script_heuristic() -> None:
    assert contains_greek("Καλημέρα")
    assert not contains_greek("Good morning")
    assert matches_language("Καλημέρα", "gr")
    assert not matches_language("Καλημέρα", "en")
    assert matches_language("Good morning", "en")
