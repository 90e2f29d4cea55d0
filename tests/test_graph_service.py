"""Tests for the follow graph service."""

import pytest

from social_network.adapters.memory_graph_repository import MemoryGraphRepository
from social_network.domain.errors import GraphInconsistency
from social_network.services.graph import GraphService


@pytest.fixture
def graph() -> GraphService:
    service = GraphService(MemoryGraphRepository())
    for identity in ("alice", "bob", "carol"):
        service.register(identity)
    return service


def test_register_rejects_existing_identity(graph: GraphService) -> None:
    assert graph.register("dave") is True
    assert graph.register("dave") is False
    assert graph.exists("dave")


def test_create_edge_is_idempotent(graph: GraphService) -> None:
    assert graph.create_edge("alice", "bob") is True
    assert graph.create_edge("alice", "bob") is True

    assert graph.followers("bob") == ["alice"]
    assert graph.is_following("alice", "bob")
    assert not graph.is_following("bob", "alice")


def test_create_edge_requires_known_identities(graph: GraphService) -> None:
    assert graph.create_edge("alice", "nobody") is False
    assert graph.followers("nobody") == []


def test_remove_missing_edge_reports_failure(graph: GraphService) -> None:
    graph.create_edge("alice", "bob")

    assert graph.remove_edge("alice", "bob") is True
    assert graph.remove_edge("alice", "bob") is False


def test_following_lists_followed_identities(graph: GraphService) -> None:
    graph.create_edge("alice", "bob")
    graph.create_edge("alice", "carol")

    assert sorted(graph.following("alice")) == ["bob", "carol"]
    assert graph.following("bob") == []


def test_follow_back_creates_both_edges(graph: GraphService) -> None:
    graph.follow_back("alice", "bob")

    assert graph.is_following("alice", "bob")
    assert graph.is_following("bob", "alice")
    assert graph.counts() == (3, 2)


def test_follow_back_rolls_back_half_created_edge() -> None:
    class FlakyRepository(MemoryGraphRepository):
        """Loses track of alice once she follows bob."""

        def has_identity(self, identity: str) -> bool:
            if identity == "alice" and "alice" in self.followers.get("bob", []):
                return False
            return super().has_identity(identity)

    service = GraphService(FlakyRepository())
    service.register("alice")
    service.register("bob")

    with pytest.raises(GraphInconsistency):
        service.follow_back("alice", "bob")

    assert not service.is_following("alice", "bob")
    assert not service.is_following("bob", "alice")
