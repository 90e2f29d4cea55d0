"""Tests for per-session handshake state."""

import pytest

from social_network.domain.errors import SequencingError
from social_network.domain.sessions import DownloadTarget, SessionPhase, SessionState

TARGET = DownloadTarget(file_name="cat.jpg", source_id="alice")


def test_authenticate_moves_to_authenticated() -> None:
    state = SessionState()
    assert not state.authenticated

    state.authenticate("bob", "gr")

    assert state.authenticated
    assert state.identity == "bob"
    assert state.language == "gr"


def test_syn_requires_a_pending_download() -> None:
    state = SessionState()
    with pytest.raises(SequencingError, match="No download requested"):
        state.open_handshake("1")


def test_ack_before_syn_is_rejected() -> None:
    state = SessionState()
    state.request_download(TARGET)

    with pytest.raises(SequencingError, match="No handshake in progress"):
        state.complete_handshake("1", TARGET)


def test_token_mismatch_clears_token_but_keeps_download() -> None:
    state = SessionState()
    state.request_download(TARGET)
    state.open_handshake("100")

    with pytest.raises(SequencingError, match="Sequence number mismatch"):
        state.complete_handshake("101", TARGET)

    assert state.handshake_token is None
    assert state.pending_download == TARGET


def test_file_mismatch_is_rejected() -> None:
    state = SessionState()
    state.request_download(TARGET)
    state.open_handshake("100")

    with pytest.raises(SequencingError, match="File or source client mismatch"):
        state.complete_handshake("100", DownloadTarget("dog.jpg", "alice"))


def test_successful_ack_consumes_token_and_download() -> None:
    state = SessionState()
    state.request_download(TARGET)
    state.open_handshake("100")

    assert state.complete_handshake("100", TARGET) == TARGET
    assert state.pending_download is None
    with pytest.raises(SequencingError):
        state.complete_handshake("100", TARGET)


def test_close_drops_handshake_state() -> None:
    state = SessionState()
    state.request_download(TARGET)
    state.open_handshake("100")

    state.close()

    assert state.phase is SessionPhase.CLOSED
    assert state.pending_download is None
    assert state.handshake_token is None
