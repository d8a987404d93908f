"""Shared test fixtures for peer_routing.

This module provides pytest fixtures used across all tests.
"""

import pytest

from peer_routing.domain.semantics import TOPIC_UNIVERSE, SemanticDomain
from peer_routing.models.profile import NodeProfile
from peer_routing.models.proposal import (
    AtomicTerm,
    ChainTerm,
    CompoundTerm,
    FusionTerm,
    Proposal,
)
from peer_routing.services.expertise_router import ExpertiseRouter
from peer_routing.services.room_manager import HierarchicalRoomManager
from peer_routing.services.selective_router import SelectiveProposalRouter
from tests.mocks.recording_sink import RecordingSink
from tests.mocks.vectors import domain_vector

DOMAINS = list(SemanticDomain)


# Component fixtures
@pytest.fixture
def recording_sink() -> RecordingSink:
    """Create recording event sink."""
    return RecordingSink()


@pytest.fixture
def room_manager(recording_sink: RecordingSink) -> HierarchicalRoomManager:
    """Create room manager observed by the recording sink."""
    return HierarchicalRoomManager(event_sinks=[recording_sink])


@pytest.fixture
def expertise_router() -> ExpertiseRouter:
    """Create expertise router with default configuration."""
    return ExpertiseRouter()


@pytest.fixture
def selective_router(
    expertise_router: ExpertiseRouter,
    room_manager: HierarchicalRoomManager,
) -> SelectiveProposalRouter:
    """Create selective router over the router and room manager fixtures."""
    return SelectiveProposalRouter(expertise_router, room_manager)


# Sample data fixtures
@pytest.fixture
def nested_term() -> CompoundTerm:
    """Create compound term touching every term shape."""
    return CompoundTerm(
        function=AtomicTerm(topic=2),
        argument=CompoundTerm(
            left=FusionTerm(p=3, q=5, r=7),
            right=ChainTerm(head=11, modifiers=[13, 2]),
        ),
    )


@pytest.fixture
def cognitive_proposal() -> Proposal:
    """Create proposal with cognitive-domain topics and vector."""
    return Proposal(
        proposal_id="p-cognitive",
        term=ChainTerm(head=TOPIC_UNIVERSE[25], modifiers=list(TOPIC_UNIVERSE[26:30])),
        semantic_vector=domain_vector(SemanticDomain.COGNITIVE),
    )


@pytest.fixture
def nine_node_profiles() -> dict[str, NodeProfile]:
    """Nine nodes spread over the domains, jointly owning the whole universe."""
    size = len(TOPIC_UNIVERSE)
    profiles = {}
    for index in range(9):
        bucket = TOPIC_UNIVERSE[index * size // 9 : (index + 1) * size // 9]
        profiles[f"node-{index}"] = NodeProfile(
            semantic_domain=DOMAINS[index % len(DOMAINS)],
            topic_ownership=frozenset(bucket),
        )
    return profiles
