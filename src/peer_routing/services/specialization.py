"""Node specialization service for peer_routing.

This module combines semantic domain assignment and topic partitioning
into one per-node relevance function with a bounded learning log.
"""

from collections import deque
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from peer_routing.domain.expertise import ExpertiseRecord
from peer_routing.domain.semantics import SemanticDomain
from peer_routing.logging import get_logger
from peer_routing.models.profile import NodeProfile
from peer_routing.models.proposal import Proposal
from peer_routing.models.specialization import ExpertiseMetricsDTO, SpecializationProfileDTO
from peer_routing.services.partitioner import DomainPartitioner, extract_topics
from peer_routing.services.relevance import RelevanceEngine
from peer_routing.services.semantic_assignment import SemanticDomainAssignment

__all__ = [
    "NodeSpecializationManager",
    "PartitionExpertiseFactor",
    "SemanticDomainFactor",
]

logger = get_logger(__name__)

_EFFICIENCY_EPSILON = 0.001


@dataclass(frozen=True)
class SemanticDomainFactor:
    """Semantic-vector relevance of the node's domain assignment."""

    name: str = "semantic_domain"
    weight: float = 0.5

    def score(
        self,
        topics: frozenset[int],
        vector: Sequence[float] | None,
        subject: "NodeSpecializationManager",
    ) -> float | None:
        if vector is None:
            return None
        return subject.semantic_domain.relevance(vector)


@dataclass(frozen=True)
class PartitionExpertiseFactor:
    """Share of the proposal's topics in the node's partition bucket."""

    name: str = "partition_expertise"
    weight: float = 0.5

    def score(
        self,
        topics: frozenset[int],
        vector: Sequence[float] | None,
        subject: "NodeSpecializationManager",
    ) -> float | None:
        if not topics:
            return None
        return subject.partitioner.expertise_score(subject.node_index, topics)


class NodeSpecializationManager:
    """Per-node specialization facade.

    Combines the node's semantic domain and its topic bucket into one
    relevance score, and keeps a bounded history of expertise use so
    in-domain and out-of-domain accuracy can be compared.

    Example:
        manager = NodeSpecializationManager("a3f9...", node_index=2, total_nodes=8)
        if manager.should_handle(proposal):
            ...
            manager.record_use(extract_topics(proposal.term), success=True)
    """

    def __init__(
        self,
        node_id: str,
        node_index: int,
        total_nodes: int,
        domain: SemanticDomain | None = None,
        specialization_strength: float = 0.7,
        max_history: int = 100,
        metrics_window: int = 50,
        handle_threshold: float = 0.3,
    ) -> None:
        """Initialize the manager.

        Args:
            node_id: Node identifier
            node_index: Position of this node in the network (>= 0)
            total_nodes: Current network size
            domain: Explicit primary semantic domain (default: derived from id)
            specialization_strength: Domain bias strength (0..1)
            max_history: Maximum learning log entries (oldest evicted first)
            metrics_window: Number of most recent entries used by metrics()
            handle_threshold: Default relevance threshold for should_handle()
        """
        if node_index < 0:
            raise ValueError(f"node_index must be >= 0, got {node_index}")
        self.node_id = node_id
        self.node_index = node_index
        self.semantic_domain = SemanticDomainAssignment(
            node_id,
            domain=domain,
            specialization_strength=specialization_strength,
        )
        self.partitioner = DomainPartitioner(max(1, total_nodes))
        self._history: deque[ExpertiseRecord] = deque(maxlen=max_history)
        self._metrics_window = metrics_window
        self.handle_threshold = handle_threshold
        self._engine: RelevanceEngine[NodeSpecializationManager] = RelevanceEngine(
            [SemanticDomainFactor(), PartitionExpertiseFactor()]
        )

    def update_network_size(self, total_nodes: int) -> None:
        """Repartition topics after the network size changed."""
        self.partitioner.update_node_count(max(1, total_nodes))

    @property
    def owned_topics(self) -> frozenset[int]:
        return self.partitioner.domain_of(self.node_index)

    @property
    def history(self) -> list[ExpertiseRecord]:
        return list(self._history)

    def relevance(self, proposal: Proposal) -> float:
        """Composite relevance of a proposal to this node.

        Averages semantic-domain relevance and topic-bucket expertise
        with equal weight, each only when its input is present.

        Args:
            proposal: Proposal to score

        Returns:
            Relevance in [0, 1] (0.5 when neither input is present)
        """
        topics = extract_topics(proposal.term)
        return self._engine.score(topics, proposal.semantic_vector, self)

    def should_handle(self, proposal: Proposal, threshold: float | None = None) -> bool:
        limit = self.handle_threshold if threshold is None else threshold
        return self.relevance(proposal) >= limit

    def record_use(self, topics: Iterable[int], success: bool = True) -> None:
        """Append an entry to the learning log.

        Args:
            topics: Topics the node exercised
            success: Whether the outcome was correct
        """
        self._history.append(ExpertiseRecord(topics=frozenset(topics), success=success))

    def metrics(self) -> ExpertiseMetricsDTO:
        """Compute in-domain versus out-of-domain accuracy.

        Only the most recent ``metrics_window`` entries are considered.
        An idle node reads as perfectly specialized (1.0 in-domain) and
        neutrally general (0.5 out-of-domain).
        """
        owned = self.owned_topics
        recent = list(self._history)[-self._metrics_window :]

        in_success = in_total = out_success = out_total = 0
        for record in recent:
            if record.touches(owned):
                in_total += 1
                in_success += record.success
            else:
                out_total += 1
                out_success += record.success

        in_accuracy = in_success / in_total if in_total else 1.0
        out_accuracy = out_success / out_total if out_total else 0.5
        if in_total and out_total:
            efficiency = in_accuracy / (out_accuracy + _EFFICIENCY_EPSILON)
        else:
            efficiency = 1.0

        return ExpertiseMetricsDTO(
            in_domain_accuracy=in_accuracy,
            out_domain_accuracy=out_accuracy,
            total_exercises=len(recent),
            specialization_efficiency=efficiency,
        )

    def to_node_profile(self) -> NodeProfile:
        """Build the profile this node would register with an expertise router."""
        return NodeProfile(
            semantic_domain=self.semantic_domain.primary_domain,
            semantic_axes=self.semantic_domain.primary_axes,
            topic_ownership=self.owned_topics,
        )

    def profile(self) -> SpecializationProfileDTO:
        """Get the complete specialization profile."""
        return SpecializationProfileDTO(
            node_id=self.node_id,
            node_index=self.node_index,
            semantic=self.semantic_domain.profile(),
            owned_topics=sorted(self.owned_topics),
            partition=self.partitioner.stats(),
            expertise=self.metrics(),
        )
