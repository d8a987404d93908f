"""Service layer for peer_routing.

This module exports the main service entry points.
"""

from peer_routing.services.expertise_router import ExpertiseRouter, RoutingTarget
from peer_routing.services.network_metrics import (
    network_semantic_coverage,
    network_specialization_index,
    routing_efficiency,
)
from peer_routing.services.partitioner import DomainPartitioner, extract_topics
from peer_routing.services.relevance import RelevanceEngine
from peer_routing.services.room_manager import HierarchicalRoomManager, TopologyInvariantError
from peer_routing.services.selective_router import SelectiveProposalRouter
from peer_routing.services.semantic_assignment import SemanticDomainAssignment
from peer_routing.services.specialization import NodeSpecializationManager

__all__ = [
    "DomainPartitioner",
    "ExpertiseRouter",
    "HierarchicalRoomManager",
    "NodeSpecializationManager",
    "RelevanceEngine",
    "RoutingTarget",
    "SelectiveProposalRouter",
    "SemanticDomainAssignment",
    "TopologyInvariantError",
    "extract_topics",
    "network_semantic_coverage",
    "network_specialization_index",
    "routing_efficiency",
]
