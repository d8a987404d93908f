"""Unit tests for SelectiveProposalRouter."""

import pytest

from peer_routing.domain.semantics import SemanticDomain
from peer_routing.models.profile import NodeProfile
from peer_routing.models.proposal import AtomicTerm, Proposal
from peer_routing.services.expertise_router import ExpertiseRouter, RoutingTarget
from peer_routing.services.room_manager import GLOBAL_ROOM_ID, HierarchicalRoomManager
from peer_routing.services.selective_router import SelectiveProposalRouter

MATCHING = NodeProfile(semantic_domain=SemanticDomain.PERCEPTUAL, topic_ownership={2, 3})
UNRELATED = NodeProfile(semantic_domain=SemanticDomain.META, topic_ownership={541})


class DrainingExpertiseRouter(ExpertiseRouter):
    """Unregisters every node right after ranking, as a concurrent leave would."""

    def route(self, proposal: Proposal) -> list[RoutingTarget]:
        targets = super().route(proposal)
        for node_id in self.node_ids:
            self.unregister_node(node_id)
        return targets


@pytest.fixture
def populated_router(selective_router: SelectiveProposalRouter) -> SelectiveProposalRouter:
    """Two matching and two unrelated nodes, each in its domain room."""
    for node_id, profile in (
        ("node-a", MATCHING),
        ("node-b", UNRELATED),
        ("node-c", MATCHING),
        ("node-d", UNRELATED),
    ):
        selective_router.expertise_router.register_node(node_id, profile)
        selective_router.room_manager.assign_peer_to_room(
            node_id, {"semantic_domain": profile.semantic_domain}
        )
    return selective_router


class TestRoute:
    """Tests for route()."""

    def test_empty_network(self, selective_router: SelectiveProposalRouter) -> None:
        result = selective_router.route(Proposal(term=AtomicTerm(topic=2)))

        assert result.targets == []
        assert result.rooms == []
        assert result.efficiency == 0.0

    def test_targets_rooms_and_efficiency(
        self, populated_router: SelectiveProposalRouter
    ) -> None:
        result = populated_router.route(Proposal(term=AtomicTerm(topic=2)))

        assert result.targets == ["node-a", "node-c"]
        assert result.rooms == ["L1-perceptual"]
        assert result.scores == {"node-a": 1.0, "node-c": 1.0}
        assert result.efficiency == pytest.approx(0.5)

    def test_no_relevant_nodes(self, populated_router: SelectiveProposalRouter) -> None:
        result = populated_router.route(Proposal(term=AtomicTerm(topic=9973)))

        assert result.targets == []
        assert result.efficiency == 0.0

    def test_rooms_union_in_target_order(
        self, populated_router: SelectiveProposalRouter
    ) -> None:
        populated_router.room_manager.join_room("node-c", GLOBAL_ROOM_ID)

        result = populated_router.route(Proposal(term=AtomicTerm(topic=2)))

        assert result.rooms == ["L1-perceptual", GLOBAL_ROOM_ID]

    def test_target_without_room(self, selective_router: SelectiveProposalRouter) -> None:
        selective_router.expertise_router.register_node("loner", MATCHING)

        result = selective_router.route(Proposal(term=AtomicTerm(topic=2)))

        assert result.targets == ["loner"]
        assert result.rooms == []

    def test_registry_emptied_during_route(self, room_manager: HierarchicalRoomManager) -> None:
        expertise_router = DrainingExpertiseRouter()
        expertise_router.register_node("node-a", MATCHING)
        router = SelectiveProposalRouter(expertise_router, room_manager)

        result = router.route(Proposal(term=AtomicTerm(topic=2)))

        assert result.targets == ["node-a"]
        assert result.efficiency == 0.0
        assert router.stats().messages_saved == 0


class TestStats:
    """Tests for running counters."""

    def test_counters_accumulate(self, populated_router: SelectiveProposalRouter) -> None:
        populated_router.route(Proposal(term=AtomicTerm(topic=2)))
        populated_router.route(Proposal(term=AtomicTerm(topic=9973)))

        stats = populated_router.stats()

        assert stats.total_routed == 2
        assert stats.avg_target_count == pytest.approx(1.0)
        assert stats.messages_saved == 6
        assert stats.expertise_router.total_nodes == 4
        assert stats.room_manager.total_peers == 4

    def test_fresh_stats(self, selective_router: SelectiveProposalRouter) -> None:
        stats = selective_router.stats()

        assert stats.total_routed == 0
        assert stats.avg_target_count == 0.0
        assert stats.messages_saved == 0
