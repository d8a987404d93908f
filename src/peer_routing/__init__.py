"""peer_routing - Selective routing layer for peer coordination networks.

This package provides tools for:
- Partitioning a topic universe among nodes and scoring topic expertise
- Assigning nodes to semantic domains
- Routing proposals only to the most relevant ~sqrt(N) nodes
- Organizing peers into a global -> domain -> work-group room hierarchy
- Tracking vote accuracy and routing efficiency

Example usage:
    from peer_routing import AtomicTerm, NodeProfile, Proposal, RoutingCoordinator

    coordinator = RoutingCoordinator()
    coordinator.join("node-a", NodeProfile(semantic_domain="cognitive", topic_ownership={2, 3}))
    result = coordinator.route(Proposal(term=AtomicTerm(topic=3)))
    print(result.targets, result.rooms)
"""

__version__ = "0.1.0"

# Configuration
from peer_routing.config import PeerRoutingConfig
from peer_routing.domain.semantics import SemanticDomain

# Interfaces
from peer_routing.interfaces.events import TopologyEventSink
from peer_routing.interfaces.relevance import RelevanceFactor

# Models
from peer_routing.models.profile import NodeProfile
from peer_routing.models.proposal import AtomicTerm, ChainTerm, CompoundTerm, FusionTerm, Proposal
from peer_routing.models.routing import RoutingResultDTO
from peer_routing.models.topology import RoomLevel, TopologyEvent, TopologyEventType

# Orchestrator
from peer_routing.orchestrator import JoinResult, RoutingCoordinator

# Services
from peer_routing.services.expertise_router import ExpertiseRouter
from peer_routing.services.partitioner import DomainPartitioner, extract_topics
from peer_routing.services.room_manager import HierarchicalRoomManager, TopologyInvariantError
from peer_routing.services.selective_router import SelectiveProposalRouter
from peer_routing.services.semantic_assignment import SemanticDomainAssignment
from peer_routing.services.specialization import NodeSpecializationManager

__all__ = [  # noqa: RUF022
    # Orchestrator
    "RoutingCoordinator",
    "JoinResult",
    "PeerRoutingConfig",
    # Services
    "DomainPartitioner",
    "SemanticDomainAssignment",
    "NodeSpecializationManager",
    "ExpertiseRouter",
    "HierarchicalRoomManager",
    "SelectiveProposalRouter",
    "TopologyInvariantError",
    "extract_topics",
    # Models
    "AtomicTerm",
    "ChainTerm",
    "CompoundTerm",
    "FusionTerm",
    "NodeProfile",
    "Proposal",
    "RoomLevel",
    "RoutingResultDTO",
    "SemanticDomain",
    "TopologyEvent",
    "TopologyEventType",
    # Interfaces
    "RelevanceFactor",
    "TopologyEventSink",
]
