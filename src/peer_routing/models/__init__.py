"""Public DTO models for peer_routing.

This module exports all public data transfer objects.
"""

from peer_routing.models.profile import NodeProfile
from peer_routing.models.proposal import (
    AtomicTerm,
    ChainTerm,
    CompoundTerm,
    FusionTerm,
    Proposal,
    Term,
)
from peer_routing.models.routing import (
    ExpertiseRouterStatsDTO,
    RoutingResultDTO,
    SelectiveRoutingStatsDTO,
)
from peer_routing.models.specialization import (
    ExpertiseMetricsDTO,
    PartitionRangeDTO,
    PartitionStatsDTO,
    SemanticProfileDTO,
    SpecializationProfileDTO,
)
from peer_routing.models.topology import (
    LevelStatsDTO,
    RoomLevel,
    RoomSummaryDTO,
    TopologyEvent,
    TopologyEventType,
    TopologyStatsDTO,
)

__all__ = [
    "AtomicTerm",
    "ChainTerm",
    "CompoundTerm",
    "ExpertiseMetricsDTO",
    "ExpertiseRouterStatsDTO",
    "FusionTerm",
    "LevelStatsDTO",
    "NodeProfile",
    "PartitionRangeDTO",
    "PartitionStatsDTO",
    "Proposal",
    "RoomLevel",
    "RoomSummaryDTO",
    "RoutingResultDTO",
    "SelectiveRoutingStatsDTO",
    "SemanticProfileDTO",
    "SpecializationProfileDTO",
    "Term",
    "TopologyEvent",
    "TopologyEventType",
    "TopologyStatsDTO",
]
