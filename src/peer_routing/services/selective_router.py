"""Selective proposal routing service for peer_routing.

This module combines expertise ranking with room membership to decide
which peers and rooms receive a proposal, and tracks how many messages
that saves compared to a full broadcast.
"""

import threading

from peer_routing.logging import get_logger
from peer_routing.models.proposal import Proposal
from peer_routing.models.routing import RoutingResultDTO, SelectiveRoutingStatsDTO
from peer_routing.services.expertise_router import ExpertiseRouter
from peer_routing.services.room_manager import HierarchicalRoomManager

__all__ = [
    "SelectiveProposalRouter",
]

logger = get_logger(__name__)


class SelectiveProposalRouter:
    """Routes proposals to the relevant subset of the network.

    Formulas:
        saved = registered_nodes - target_nodes
        efficiency = saved / registered_nodes   (0 when nothing matched or no node is registered)

    Example:
        router = SelectiveProposalRouter(expertise_router, room_manager)
        result = router.route(proposal)
        for room_id in result.rooms:
            ...
    """

    def __init__(
        self,
        expertise_router: ExpertiseRouter,
        room_manager: HierarchicalRoomManager,
    ) -> None:
        """Initialize router with its components.

        Args:
            expertise_router: Source of ranked targets
            room_manager: Source of room memberships
        """
        self._expertise_router = expertise_router
        self._room_manager = room_manager
        self._lock = threading.RLock()
        self._total_routed = 0
        self._avg_target_count = 0.0
        self._messages_saved = 0

    @property
    def expertise_router(self) -> ExpertiseRouter:
        return self._expertise_router

    @property
    def room_manager(self) -> HierarchicalRoomManager:
        return self._room_manager

    def route(self, proposal: Proposal) -> RoutingResultDTO:
        """Compute target nodes and rooms for a proposal.

        Args:
            proposal: Proposal to route

        Returns:
            RoutingResultDTO with targets, rooms, scores and efficiency
        """
        ranked = self._expertise_router.route(proposal)
        full_broadcast = self._expertise_router.registry_size

        scores: dict[str, float] = {}
        for target in ranked:
            scores.setdefault(target.node_id, target.relevance)
        targets = list(scores)

        rooms: list[str] = []
        for node_id in targets:
            for room_id in self._room_manager.get_peer_rooms(node_id):
                if room_id not in rooms:
                    rooms.append(room_id)

        actual = len(targets)
        saved = max(0, full_broadcast - actual)

        with self._lock:
            self._total_routed += 1
            self._avg_target_count += (actual - self._avg_target_count) / self._total_routed
            self._messages_saved += saved

        efficiency = saved / full_broadcast if actual > 0 and full_broadcast > 0 else 0.0
        logger.debug(
            "selective_route",
            proposal_id=proposal.proposal_id,
            targets=actual,
            rooms=len(rooms),
            saved=saved,
        )
        return RoutingResultDTO(
            targets=targets,
            rooms=rooms,
            scores=scores,
            efficiency=efficiency,
        )

    def stats(self) -> SelectiveRoutingStatsDTO:
        """Get running counters merged with both component snapshots."""
        with self._lock:
            total_routed = self._total_routed
            avg_target_count = self._avg_target_count
            messages_saved = self._messages_saved

        return SelectiveRoutingStatsDTO(
            total_routed=total_routed,
            avg_target_count=avg_target_count,
            messages_saved=messages_saved,
            expertise_router=self._expertise_router.stats(),
            room_manager=self._room_manager.stats(),
        )
