"""Tests for single-use download grants."""

import threading

from social_network.adapters.memory_permission_repository import (
    MemoryPermissionRepository,
)
from social_network.services.permissions import PermissionService


def test_grant_check_and_consume() -> None:
    service = PermissionService(MemoryPermissionRepository())
    service.grant("alice", "bob", "cat.jpg")

    assert service.check("alice", "bob", "cat.jpg")
    assert not service.check("alice", "carol", "cat.jpg")
    assert service.consume("alice", "bob", "cat.jpg") is True
    assert service.consume("alice", "bob", "cat.jpg") is False
    assert service.count() == 0


def test_consumed_grant_cannot_be_reused() -> None:
    service = PermissionService(MemoryPermissionRepository())
    service.grant("alice", "bob", "cat.jpg")

    assert service.check_and_consume("alice", "bob", "cat.jpg") is True
    assert service.check_and_consume("alice", "bob", "cat.jpg") is False


def test_racing_sessions_consume_a_grant_once() -> None:
    service = PermissionService(MemoryPermissionRepository())
    service.grant("alice", "bob", "cat.jpg")
    barrier = threading.Barrier(8)
    results: list[bool] = []
    results_lock = threading.Lock()

    def contend() -> None:
        barrier.wait()
        outcome = service.check_and_consume("alice", "bob", "cat.jpg")
        with results_lock:
            results.append(outcome)

    threads = [threading.Thread(target=contend) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert results.count(True) == 1
    assert service.count() == 0
