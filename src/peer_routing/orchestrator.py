"""RoutingCoordinator for high-level selective routing operations.

This module provides the main entry point for the peer_routing package,
wiring node lifecycle events into both the expertise registry and the
room hierarchy, and routing proposals through them.
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from peer_routing.config import PeerRoutingConfig
from peer_routing.domain.semantics import SemanticDomain
from peer_routing.interfaces.events import TopologyEventSink
from peer_routing.logging import get_logger
from peer_routing.models.profile import NodeProfile
from peer_routing.models.proposal import Proposal
from peer_routing.models.routing import RoutingResultDTO, SelectiveRoutingStatsDTO
from peer_routing.services.expertise_router import ExpertiseRouter
from peer_routing.services.room_manager import HierarchicalRoomManager
from peer_routing.services.selective_router import SelectiveProposalRouter
from peer_routing.services.specialization import NodeSpecializationManager

__all__ = ["JoinResult", "RoutingCoordinator"]

logger = get_logger(__name__)


@dataclass
class JoinResult:
    """Outcome of a node joining the network."""

    node_id: str
    profile: NodeProfile
    room_id: str | None = None
    rooms: list[str] = field(default_factory=list)


class RoutingCoordinator:
    """Main orchestrator for selective proposal routing.

    Config is loaded from the environment (and .env) unless passed in.

    Example:
        coordinator = RoutingCoordinator()
        coordinator.join("node-a", NodeProfile(semantic_domain="temporal"))
        result = coordinator.route(proposal)
        coordinator.record_vote_outcome("node-a", was_correct=True)
        coordinator.leave("node-a")
    """

    def __init__(
        self,
        config: PeerRoutingConfig | None = None,
        *,
        event_sinks: Sequence[TopologyEventSink] = (),
    ) -> None:
        """Initialize and wire all components.

        Args:
            config: Settings (default: loaded from environment)
            event_sinks: Observers of room hierarchy events
        """
        self._config = config or PeerRoutingConfig()
        router_settings = self._config.router
        topology_settings = self._config.topology

        self._expertise_router = ExpertiseRouter(
            relevance_threshold=router_settings.relevance_threshold,
            max_target_nodes=router_settings.max_target_nodes,
            use_square_root_scaling=router_settings.use_square_root_scaling,
            min_target_nodes=router_settings.min_target_nodes,
            active_window_seconds=router_settings.active_window_seconds,
        )
        self._room_manager = HierarchicalRoomManager(
            levels=topology_settings.levels,
            branch_factor=topology_settings.branch_factor,
            max_peers_per_room=topology_settings.max_peers_per_room,
            default_domain=topology_settings.default_domain,
            event_sinks=event_sinks,
        )
        self._selective_router = SelectiveProposalRouter(
            self._expertise_router,
            self._room_manager,
        )
        logger.info(
            "routing_coordinator_ready",
            relevance_threshold=router_settings.relevance_threshold,
            max_peers_per_room=topology_settings.max_peers_per_room,
        )

    @property
    def config(self) -> PeerRoutingConfig:
        return self._config

    @property
    def expertise_router(self) -> ExpertiseRouter:
        return self._expertise_router

    @property
    def room_manager(self) -> HierarchicalRoomManager:
        return self._room_manager

    @property
    def selective_router(self) -> SelectiveProposalRouter:
        return self._selective_router

    # === NODE LIFECYCLE ===

    def join(
        self,
        node_id: str,
        profile: NodeProfile | None = None,
        metadata: Mapping[str, Any] | None = None,
    ) -> JoinResult:
        """Register a node's expertise and place it in the room hierarchy.

        The room is chosen from the profile's semantic domain. A re-join
        that changes the domain leaves the rooms of the previous domain.

        Args:
            node_id: Node identifier
            profile: Advertised expertise (default profile if omitted)
            metadata: Extra peer metadata forwarded to room observers

        Returns:
            JoinResult with the stored profile and assigned room
        """
        previous = self._expertise_router.get_profile(node_id)
        stored = self._expertise_router.register_node(node_id, profile)
        if previous is not None and previous.semantic_domain != stored.semantic_domain:
            self._leave_domain_rooms(node_id, keep=stored.semantic_domain)
        room_metadata = {**(metadata or {}), "semantic_domain": stored.semantic_domain}
        room = self._room_manager.assign_peer_to_room(node_id, room_metadata)

        logger.info(
            "node_joined",
            node_id=node_id,
            domain=stored.semantic_domain,
            room_id=room.id if room else None,
        )
        return JoinResult(
            node_id=node_id,
            profile=stored.to_dto(),
            room_id=room.id if room else None,
            rooms=self._room_manager.get_peer_rooms(node_id),
        )

    def leave(self, node_id: str) -> None:
        """Unregister a node and remove it from every room."""
        self._expertise_router.unregister_node(node_id)
        self._room_manager.remove_peer(node_id)
        logger.info("node_left", node_id=node_id)

    def _leave_domain_rooms(self, node_id: str, keep: SemanticDomain) -> None:
        # Rooms without a domain (L0-global) are kept.
        for room_id in self._room_manager.get_peer_rooms(node_id):
            room = self._room_manager.get_room(room_id)
            if room is not None and room.domain is not None and room.domain != keep:
                self._room_manager.leave_room(node_id, room_id)
                logger.info("node_domain_changed", node_id=node_id, left_room=room_id)

    def mark_active(self, node_id: str) -> None:
        self._expertise_router.mark_active(node_id)

    def specialist(self, node_id: str, node_index: int | None = None) -> NodeSpecializationManager:
        """Build a specialization manager for a node from the configured settings.

        Args:
            node_id: Node identifier
            node_index: Network position (default: the node's registration
                position, or the next free one if it is not registered)

        Returns:
            NodeSpecializationManager sized to the current registry
        """
        node_ids = self._expertise_router.node_ids
        if node_index is None:
            node_index = node_ids.index(node_id) if node_id in node_ids else len(node_ids)
        settings = self._config.specialization
        return NodeSpecializationManager(
            node_id,
            node_index=node_index,
            total_nodes=max(len(node_ids), node_index + 1),
            specialization_strength=settings.specialization_strength,
            max_history=settings.max_history,
            metrics_window=settings.metrics_window,
            handle_threshold=settings.handle_threshold,
        )

    # === ROUTING ===

    def route(self, proposal: Proposal) -> RoutingResultDTO:
        """Route a proposal to the relevant nodes and rooms."""
        return self._selective_router.route(proposal)

    def record_vote_outcome(self, node_id: str, was_correct: bool) -> None:
        self._expertise_router.record_vote_outcome(node_id, was_correct)

    def accuracy(self, node_id: str) -> float:
        return self._expertise_router.accuracy(node_id)

    def stats(self) -> SelectiveRoutingStatsDTO:
        """Get routing counters and component snapshots."""
        return self._selective_router.stats()
