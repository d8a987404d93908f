"""Relevance factor interface for peer_routing.

This module defines the Protocol for pluggable inputs to the relevance engine.
"""

from collections.abc import Sequence
from typing import Protocol, TypeVar, runtime_checkable

__all__ = [
    "RelevanceFactor",
]

SubjectT_contra = TypeVar("SubjectT_contra", contravariant=True)


@runtime_checkable
class RelevanceFactor(Protocol[SubjectT_contra]):
    """Contract for one weighted relevance signal.

    A factor scores how well a subject (a registered profile, a local
    specialist) matches a proposal's topics and semantic vector.

    Attributes:
        name: Factor name used in score breakdowns
        weight: Contribution weight when the factor applies
    """

    name: str
    weight: float

    def score(
        self,
        topics: frozenset[int],
        vector: Sequence[float] | None,
        subject: SubjectT_contra,
    ) -> float | None:
        """Score the proposal against the subject.

        Args:
            topics: Topic identifiers extracted from the proposal
            vector: Proposal semantic vector, if any
            subject: Entity being scored

        Returns:
            Score in [0, 1], or None when the factor's input data is absent
        """
        ...
