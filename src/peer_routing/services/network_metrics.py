"""Network-level specialization and routing metrics for peer_routing.

These helpers summarize a whole network: how different the nodes'
semantic vectors are, how much of the semantic space they cover, and
how many messages selective routing avoids.
"""

import math
from collections.abc import Iterable, Sequence

import numpy as np

from peer_routing.domain.semantics import AXIS_COUNT
from peer_routing.models.proposal import Proposal
from peer_routing.services.selective_router import SelectiveProposalRouter

__all__ = [
    "COVERAGE_THRESHOLD",
    "network_semantic_coverage",
    "network_specialization_index",
    "routing_efficiency",
]

COVERAGE_THRESHOLD = 0.3

# Fixed distance normalizer shared by every network size.
_MAX_DISTANCE = math.sqrt(32)


def _as_matrix(vectors: Iterable[Sequence[float]]) -> np.ndarray:
    rows = []
    for vector in vectors:
        row = np.zeros(AXIS_COUNT)
        values = np.asarray(list(vector)[:AXIS_COUNT], dtype=float)
        row[: len(values)] = values
        rows.append(row)
    return np.array(rows).reshape(len(rows), AXIS_COUNT)


def network_specialization_index(vectors: Iterable[Sequence[float]]) -> float:
    """Mean pairwise distance between node vectors, normalized by sqrt(32).

    Higher means nodes are more specialized relative to each other.

    Args:
        vectors: One semantic vector per node

    Returns:
        Index >= 0 (0 for fewer than two vectors)
    """
    matrix = _as_matrix(vectors)
    count = len(matrix)
    if count < 2:
        return 0.0

    diffs = matrix[:, None, :] - matrix[None, :, :]
    distances = np.sqrt((diffs**2).sum(axis=-1))
    upper = distances[np.triu_indices(count, k=1)]
    return float(upper.mean() / _MAX_DISTANCE)


def network_semantic_coverage(
    vectors: Iterable[Sequence[float]],
    threshold: float = COVERAGE_THRESHOLD,
) -> float:
    """Fraction of semantic axes some node covers strongly.

    An axis is covered when the largest |component| across nodes
    exceeds ``threshold``.

    Args:
        vectors: One semantic vector per node
        threshold: Coverage threshold

    Returns:
        Coverage in [0, 1] (0 for no vectors)
    """
    matrix = _as_matrix(vectors)
    if len(matrix) == 0:
        return 0.0
    coverage = np.abs(matrix).max(axis=0)
    return float((coverage > threshold).sum() / AXIS_COUNT)


def routing_efficiency(
    router: SelectiveProposalRouter,
    proposals: Sequence[Proposal],
) -> float:
    """Fraction of full-broadcast messages avoided over a batch of proposals.

    Routes every proposal (updating the router's running counters).

    Args:
        router: Selective router to evaluate
        proposals: Test proposals

    Returns:
        Efficiency in [0, 1] (1.0 for an empty batch)
    """
    if not proposals:
        return 1.0

    total_saved = 0
    total_full = 0
    for proposal in proposals:
        result = router.route(proposal)
        full = router.expertise_router.registry_size
        total_saved += full - len(result.targets)
        total_full += full

    return total_saved / total_full if total_full > 0 else 0.0
