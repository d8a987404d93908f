"""Expertise routing service for peer_routing.

This module keeps the registry of node expertise profiles and selects
the most relevant subset of nodes for each proposal.
"""

import math
import threading
import time
from dataclasses import dataclass

from peer_routing.domain.profile import ExpertiseProfile, VoteLedger
from peer_routing.logging import get_logger
from peer_routing.models.profile import NodeProfile
from peer_routing.models.proposal import Proposal
from peer_routing.models.routing import ExpertiseRouterStatsDTO
from peer_routing.services.partitioner import DomainPartitioner, extract_topics
from peer_routing.services.relevance import RelevanceEngine, router_engine

__all__ = [
    "ExpertiseRouter",
    "RoutingTarget",
]

logger = get_logger(__name__)


@dataclass
class RoutingTarget:
    """Ranked routing candidate."""

    node_id: str
    relevance: float
    profile: ExpertiseProfile


class ExpertiseRouter:
    """Registry of expertise profiles and relevance-ranked target selection.

    Scores every registered profile against a proposal using topic
    ownership (0.4), semantic axis alignment (0.3) and domain topic
    overlap (0.3), keeps nodes at or above the relevance threshold and
    truncates to the target count:
    - square-root scaling: max(min_target_nodes, ceil(sqrt(N)))
    - otherwise: max_target_nodes

    Ranking is stable: equal scores keep registration order.
    Unknown node ids are ignored and malformed proposals only drop the
    corresponding scoring factor.

    Example:
        router = ExpertiseRouter()
        router.register_node("node-a", NodeProfile(semantic_domain="cognitive"))
        targets = router.route(proposal)
    """

    def __init__(
        self,
        relevance_threshold: float = 0.3,
        max_target_nodes: int = 10,
        use_square_root_scaling: bool = True,
        min_target_nodes: int = 3,
        active_window_seconds: float = 60.0,
        engine: RelevanceEngine[ExpertiseProfile] | None = None,
    ) -> None:
        """Initialize router with its configuration.

        Args:
            relevance_threshold: Minimum relevance for a node to be targeted
            max_target_nodes: Target count when square-root scaling is off
            use_square_root_scaling: Scale target count with sqrt(registry size)
            min_target_nodes: Floor for the square-root target count
            active_window_seconds: Window for counting active nodes in stats()
            engine: Relevance engine (default: topic/axis/domain factors)
        """
        self._relevance_threshold = relevance_threshold
        self._max_target_nodes = max_target_nodes
        self._use_square_root_scaling = use_square_root_scaling
        self._min_target_nodes = min_target_nodes
        self._active_window_seconds = active_window_seconds
        self._engine = engine or router_engine()

        self._lock = threading.RLock()
        self._profiles: dict[str, ExpertiseProfile] = {}
        self._votes: dict[str, VoteLedger] = {}
        self._partitioner: DomainPartitioner | None = None

    # === REGISTRY ===

    def register_node(self, node_id: str, profile: NodeProfile | None = None) -> ExpertiseProfile:
        """Register or replace a node's expertise profile.

        Args:
            node_id: Node identifier
            profile: Advertised expertise (default: perceptual, axes 0-3, no topics)

        Returns:
            The stored profile
        """
        with self._lock:
            stored = ExpertiseProfile.from_dto(node_id, profile or NodeProfile())
            self._profiles[node_id] = stored
            self._repartition()
            size = len(self._profiles)

        logger.debug(
            "node_registered",
            node_id=node_id,
            domain=stored.semantic_domain,
            topics=len(stored.topic_ownership),
            registry_size=size,
        )
        return stored

    def unregister_node(self, node_id: str) -> None:
        """Remove a node's profile and vote ledger (no-op if unknown)."""
        with self._lock:
            if self._profiles.pop(node_id, None) is None:
                return
            self._votes.pop(node_id, None)
            self._repartition()
            size = len(self._profiles)

        logger.debug("node_unregistered", node_id=node_id, registry_size=size)

    def _repartition(self) -> None:
        # Fresh partition sized to the registry; prior state is discarded.
        self._partitioner = DomainPartitioner(len(self._profiles)) if self._profiles else None

    def mark_active(self, node_id: str, now: float | None = None) -> None:
        """Update a node's last-active timestamp (no-op if unknown)."""
        with self._lock:
            profile = self._profiles.get(node_id)
            if profile is not None:
                profile.touch(now)

    def get_profile(self, node_id: str) -> ExpertiseProfile | None:
        with self._lock:
            return self._profiles.get(node_id)

    def is_registered(self, node_id: str) -> bool:
        with self._lock:
            return node_id in self._profiles

    @property
    def node_ids(self) -> list[str]:
        """Registered node ids in registration order."""
        with self._lock:
            return list(self._profiles)

    @property
    def registry_size(self) -> int:
        with self._lock:
            return len(self._profiles)

    @property
    def partitioner(self) -> DomainPartitioner | None:
        return self._partitioner

    def partition_for(self, node_id: str) -> frozenset[int]:
        """Canonical topic bucket for a registered node.

        Buckets follow registration order over the current registry, so
        they change whenever the registry changes.

        Args:
            node_id: Node identifier

        Returns:
            Topic bucket (empty for unknown nodes)
        """
        with self._lock:
            if self._partitioner is None or node_id not in self._profiles:
                return frozenset()
            index = list(self._profiles).index(node_id)
            return self._partitioner.domain_of(index)

    # === ROUTING ===

    @property
    def relevance_threshold(self) -> float:
        return self._relevance_threshold

    @property
    def effective_max_targets(self) -> int:
        """Target count for the current registry size."""
        if self._use_square_root_scaling:
            return max(self._min_target_nodes, math.ceil(math.sqrt(self.registry_size)))
        return self._max_target_nodes

    def relevance(self, proposal: Proposal, profile: ExpertiseProfile) -> float:
        """Relevance of a proposal to one profile, in [0, 1]."""
        return self._engine.score(extract_topics(proposal.term), proposal.semantic_vector, profile)

    def route(self, proposal: Proposal) -> list[RoutingTarget]:
        """Select the most relevant registered nodes for a proposal.

        Args:
            proposal: Proposal to route

        Returns:
            RoutingTarget list sorted by relevance (highest first)
        """
        topics = extract_topics(proposal.term)
        vector = proposal.semantic_vector

        with self._lock:
            targets = []
            for node_id, profile in self._profiles.items():
                relevance = self._engine.score(topics, vector, profile)
                if relevance >= self._relevance_threshold:
                    targets.append(RoutingTarget(node_id, relevance, profile))
            limit = self.effective_max_targets

        targets.sort(key=lambda target: target.relevance, reverse=True)
        selected = targets[:limit]

        logger.debug(
            "proposal_routed",
            proposal_id=proposal.proposal_id,
            topics=len(topics),
            candidates=len(targets),
            selected=len(selected),
        )
        return selected

    # === FEEDBACK ===

    def record_vote_outcome(self, node_id: str, was_correct: bool) -> None:
        """Record whether a node's vote matched the outcome (ignored if unknown)."""
        with self._lock:
            if node_id not in self._profiles:
                logger.debug("vote_for_unknown_node", node_id=node_id)
                return
            self._votes.setdefault(node_id, VoteLedger()).record(was_correct)

    def accuracy(self, node_id: str) -> float:
        """Vote accuracy of a node; 0.5 until 5 votes are recorded."""
        with self._lock:
            ledger = self._votes.get(node_id)
            return ledger.accuracy() if ledger is not None else 0.5

    # === INTROSPECTION ===

    def stats(self, now: float | None = None) -> ExpertiseRouterStatsDTO:
        """Get registry and configuration snapshot.

        Args:
            now: Reference time for activity (default: now)
        """
        current = now if now is not None else time.time()
        with self._lock:
            active = sum(
                1
                for profile in self._profiles.values()
                if profile.is_active(self._active_window_seconds, current)
            )
            return ExpertiseRouterStatsDTO(
                total_nodes=len(self._profiles),
                active_nodes=active,
                relevance_threshold=self._relevance_threshold,
                use_square_root_scaling=self._use_square_root_scaling,
                max_target_nodes=self._max_target_nodes,
                effective_max_targets=self.effective_max_targets,
            )
