"""Topic partitioning service for peer_routing.

This module divides the topic universe among node indices and extracts
topic identifiers from proposal payloads.
"""

import threading
from collections.abc import Iterable

from peer_routing.domain.semantics import TOPIC_UNIVERSE
from peer_routing.logging import get_logger
from peer_routing.models.proposal import AtomicTerm, ChainTerm, CompoundTerm, FusionTerm, Term
from peer_routing.models.specialization import PartitionRangeDTO, PartitionStatsDTO

__all__ = [
    "DomainPartitioner",
    "extract_topics",
]

logger = get_logger(__name__)


def extract_topics(term: Term | None) -> frozenset[int]:
    """Collect every topic identifier in a term tree.

    Walks atomic, fusion, chain and compound terms, recursing into
    compound sub-terms. The result is deduplicated and unordered.

    Args:
        term: Root term of a proposal payload (None yields no topics)

    Returns:
        Frozen set of topic identifiers
    """
    topics: set[int] = set()
    stack: list[Term] = [term] if term is not None else []

    while stack:
        current = stack.pop()
        if isinstance(current, AtomicTerm):
            topics.add(current.topic)
        elif isinstance(current, FusionTerm):
            topics.update((current.p, current.q, current.r))
        elif isinstance(current, ChainTerm):
            topics.add(current.head)
            topics.update(current.modifiers)
        elif isinstance(current, CompoundTerm):
            stack.extend(current.children)

    return frozenset(topics)


class DomainPartitioner:
    """Deterministic, rebalanceable topic-to-node partition.

    Node index i owns the contiguous slice
    ``TOPIC_UNIVERSE[i * U // N : (i + 1) * U // N]`` where U is the
    universe size and N the node count, so buckets are disjoint, cover
    the whole universe and differ in size by at most one topic.

    Lookups never raise: out-of-range indices own nothing and topics
    outside the universe fall back to ``topic % node_count``.

    Example:
        partitioner = DomainPartitioner(node_count=4)
        owner = partitioner.owner_of(97)
        best = partitioner.best_nodes_for([2, 3, 5], limit=3)
    """

    def __init__(self, node_count: int = 4) -> None:
        """Initialize the partition.

        Args:
            node_count: Number of nodes sharing the universe (>= 1)
        """
        if node_count < 1:
            raise ValueError(f"node_count must be >= 1, got {node_count}")
        self._lock = threading.RLock()
        self._node_count = node_count
        self._buckets = self.partition(node_count)
        self._owner_cache: dict[int, int] = {}

    @staticmethod
    def partition(node_count: int) -> list[frozenset[int]]:
        """Split the topic universe into ``node_count`` contiguous buckets.

        Pure function of ``node_count``.

        Args:
            node_count: Number of buckets (>= 1)

        Returns:
            List of disjoint topic sets, one per node index
        """
        size = len(TOPIC_UNIVERSE)
        return [
            frozenset(TOPIC_UNIVERSE[i * size // node_count : (i + 1) * size // node_count])
            for i in range(node_count)
        ]

    @property
    def node_count(self) -> int:
        return self._node_count

    def update_node_count(self, node_count: int) -> None:
        """Repartition for a new network size, clearing the owner cache.

        Args:
            node_count: New number of nodes (>= 1)
        """
        if node_count < 1:
            raise ValueError(f"node_count must be >= 1, got {node_count}")
        with self._lock:
            if node_count == self._node_count:
                return
            self._node_count = node_count
            self._buckets = self.partition(node_count)
            self._owner_cache.clear()
        logger.debug("topics_repartitioned", node_count=node_count)

    def domain_of(self, node_index: int) -> frozenset[int]:
        """Get the topic bucket owned by a node index (empty if out of range)."""
        with self._lock:
            if 0 <= node_index < len(self._buckets):
                return self._buckets[node_index]
            return frozenset()

    def owner_of(self, topic: int) -> int:
        """Get the node index responsible for a topic.

        Args:
            topic: Topic identifier

        Returns:
            Owning node index
        """
        with self._lock:
            cached = self._owner_cache.get(topic)
            if cached is not None:
                return cached

            owner = next(
                (index for index, bucket in enumerate(self._buckets) if topic in bucket),
                topic % self._node_count,
            )
            self._owner_cache[topic] = owner
            return owner

    def expertise_score(self, node_index: int, topics: Iterable[int]) -> float:
        """Fraction of ``topics`` owned by a node index.

        Args:
            node_index: Node index to score
            topics: Topic identifiers (duplicates count individually)

        Returns:
            Score in [0, 1]; 0 for no topics or an out-of-range index
        """
        topic_list = list(topics)
        if not topic_list:
            return 0.0
        bucket = self.domain_of(node_index)
        if not bucket:
            return 0.0
        owned = sum(1 for topic in topic_list if topic in bucket)
        return owned / len(topic_list)

    def best_nodes_for(self, topics: Iterable[int], limit: int = 3) -> list[tuple[int, float]]:
        """Rank node indices by expertise for a topic set.

        Ties keep index order.

        Args:
            topics: Topic identifiers
            limit: Maximum number of nodes to return

        Returns:
            List of (node_index, score) tuples, best first
        """
        topic_list = list(topics)
        scores = [
            (index, self.expertise_score(index, topic_list)) for index in range(self.node_count)
        ]
        scores.sort(key=lambda item: item[1], reverse=True)
        return scores[:limit]

    def stats(self) -> PartitionStatsDTO:
        """Get per-node partition statistics."""
        with self._lock:
            buckets = list(self._buckets)
            node_count = self._node_count

        return PartitionStatsDTO(
            node_count=node_count,
            topics_per_node=[len(bucket) for bucket in buckets],
            ranges=[
                PartitionRangeDTO(
                    node=index,
                    min=min(bucket) if bucket else None,
                    max=max(bucket) if bucket else None,
                    count=len(bucket),
                )
                for index, bucket in enumerate(buckets)
            ],
            total_topics=len(TOPIC_UNIVERSE),
        )
