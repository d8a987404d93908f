"""Semantic domain assignment service for peer_routing.

This module gives each node a primary and secondary semantic domain,
derived from its identifier, and scores semantic vectors against them.
"""

from collections.abc import Sequence

import numpy as np

from peer_routing.domain.semantics import (
    AXIS_COUNT,
    DOMAIN_DESCRIPTIONS,
    SemanticDomain,
    axes_for,
    next_domain,
)
from peer_routing.models.proposal import Proposal
from peer_routing.models.specialization import SemanticProfileDTO
from peer_routing.services.relevance import NEUTRAL_RELEVANCE, axis_magnitudes
from peer_routing.utils.hashing import stable_index

__all__ = [
    "PRIMARY_WEIGHT",
    "SECONDARY_WEIGHT",
    "SemanticDomainAssignment",
]

PRIMARY_WEIGHT = 0.7
SECONDARY_WEIGHT = 0.3
_MIN_SIGNAL = 0.001

_DOMAIN_ORDER: tuple[SemanticDomain, ...] = tuple(SemanticDomain)


class SemanticDomainAssignment:
    """Per-node semantic specialty.

    The primary domain is a pure function of the node id; the secondary
    domain is the next one in cyclic order, so neighbouring domains
    overlap instead of partitioning the semantic space.

    Example:
        assignment = SemanticDomainAssignment("a3f9...")
        relevance = assignment.relevance(proposal.semantic_vector)
    """

    def __init__(
        self,
        node_id: str,
        domain: SemanticDomain | None = None,
        specialization_strength: float = 0.7,
    ) -> None:
        """Initialize the assignment.

        Args:
            node_id: Node identifier
            domain: Explicit primary domain (default: derived from node_id)
            specialization_strength: 0 = uniform, 1 = fully specialized
        """
        self.node_id = node_id
        self.primary_domain = domain or self.assign_domain(node_id)
        self.secondary_domain = next_domain(self.primary_domain)
        self.specialization_strength = specialization_strength

    @staticmethod
    def assign_domain(node_id: str) -> SemanticDomain:
        """Derive the primary domain from the node id prefix."""
        return _DOMAIN_ORDER[stable_index(node_id, len(_DOMAIN_ORDER))]

    @property
    def primary_axes(self) -> frozenset[int]:
        return axes_for(self.primary_domain)

    @property
    def secondary_axes(self) -> frozenset[int]:
        return axes_for(self.secondary_domain)

    def relevance(self, vector: Sequence[float] | None) -> float:
        """Share of a vector's weight that falls in this node's domains.

        Formula:
            relevance = (0.7 * primary + 0.3 * secondary) / total
        where each term sums |component| over the domain's axes.

        Args:
            vector: Semantic vector (None or near-zero yields 0.5)

        Returns:
            Relevance in [0, 1]
        """
        if vector is None:
            return NEUTRAL_RELEVANCE

        primary = 0.0
        secondary = 0.0
        magnitudes = axis_magnitudes(vector)
        for axis, value in enumerate(magnitudes):
            if axis in self.primary_axes:
                primary += value
            elif axis in self.secondary_axes:
                secondary += value

        total = sum(magnitudes)
        if total < _MIN_SIGNAL:
            return NEUTRAL_RELEVANCE
        return (PRIMARY_WEIGHT * primary + SECONDARY_WEIGHT * secondary) / total

    def should_handle(self, proposal: Proposal, threshold: float = 0.3) -> bool:
        """Check whether a proposal is relevant enough to handle.

        Proposals without a semantic vector are always handled.
        """
        if proposal.semantic_vector is None:
            return True
        return self.relevance(proposal.semantic_vector) >= threshold

    def specialized_vector(self, rng: np.random.Generator | None = None) -> list[float]:
        """Generate a unit semantic vector biased toward this node's domains.

        Primary axes draw from [0.5, 0.5 + 0.4s], secondary axes from
        [0.2, 0.2 + 0.3s] and the rest from [0, 0.2(1 - s)], where s is
        the specialization strength.

        Args:
            rng: Random generator (default: a fresh unseeded generator)

        Returns:
            L2-normalized vector of 16 components
        """
        generator = rng or np.random.default_rng()
        strength = self.specialization_strength
        draws = generator.random(AXIS_COUNT)

        vector = np.empty(AXIS_COUNT)
        for axis in range(AXIS_COUNT):
            if axis in self.primary_axes:
                vector[axis] = 0.5 + draws[axis] * 0.4 * strength
            elif axis in self.secondary_axes:
                vector[axis] = 0.2 + draws[axis] * 0.3 * strength
            else:
                vector[axis] = draws[axis] * 0.2 * (1 - strength)

        norm = np.linalg.norm(vector)
        if norm > 0:
            vector = vector / norm
        return vector.tolist()

    def profile(self) -> SemanticProfileDTO:
        """Get the semantic profile for network coordination."""
        return SemanticProfileDTO(
            node_id=self.node_id,
            primary_domain=self.primary_domain,
            secondary_domain=self.secondary_domain,
            description=DOMAIN_DESCRIPTIONS[self.primary_domain],
            primary_axes=sorted(self.primary_axes),
            secondary_axes=sorted(self.secondary_axes),
            specialization_strength=self.specialization_strength,
        )
