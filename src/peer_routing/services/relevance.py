"""Relevance engine for peer_routing.

One weighted-factor engine serves both the expertise router (scoring
registered profiles) and the specialization manager (scoring the local
node). Each factor contributes its weight only when its input data is
present, and the result is normalized by the weights actually applied.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from peer_routing.domain.profile import ExpertiseProfile
from peer_routing.domain.semantics import AXIS_COUNT, topics_for_domain
from peer_routing.interfaces.relevance import RelevanceFactor

__all__ = [
    "NEUTRAL_RELEVANCE",
    "AxisAlignmentFactor",
    "DomainTopicFactor",
    "RelevanceEngine",
    "TopicOwnershipFactor",
    "axis_magnitudes",
    "router_engine",
]

NEUTRAL_RELEVANCE = 0.5

SubjectT = TypeVar("SubjectT")


def axis_magnitudes(vector: Sequence[float]) -> list[float]:
    """Absolute value of each semantic axis; missing axes read as 0."""
    return [abs(float(vector[axis])) if axis < len(vector) else 0.0 for axis in range(AXIS_COUNT)]


class RelevanceEngine(Generic[SubjectT]):
    """Weighted combination of pluggable relevance factors.

    Formula:
        relevance = sum(weight_i * score_i) / sum(weight_i)
        over factors whose score is not None; 0.5 if none apply.

    Example:
        engine = RelevanceEngine([TopicOwnershipFactor(), AxisAlignmentFactor()])
        relevance = engine.score(topics, vector, profile)
    """

    def __init__(self, factors: Sequence[RelevanceFactor[SubjectT]]) -> None:
        """Initialize engine with its factors.

        Args:
            factors: Factors in evaluation order
        """
        self._factors = list(factors)

    @property
    def factors(self) -> list[RelevanceFactor[SubjectT]]:
        return list(self._factors)

    def score(
        self,
        topics: frozenset[int],
        vector: Sequence[float] | None,
        subject: SubjectT,
    ) -> float:
        """Compute the combined relevance of a proposal to a subject.

        Args:
            topics: Topic identifiers extracted from the proposal
            vector: Proposal semantic vector, if any
            subject: Entity being scored

        Returns:
            Relevance in [0, 1]
        """
        total = 0.0
        applied = 0.0
        for factor in self._factors:
            value = factor.score(topics, vector, subject)
            if value is None:
                continue
            total += factor.weight * value
            applied += factor.weight
        return total / applied if applied > 0 else NEUTRAL_RELEVANCE

    def breakdown(
        self,
        topics: frozenset[int],
        vector: Sequence[float] | None,
        subject: SubjectT,
    ) -> dict[str, Any]:
        """Per-factor scores (None for factors that did not apply)."""
        return {factor.name: factor.score(topics, vector, subject) for factor in self._factors}


@dataclass(frozen=True)
class TopicOwnershipFactor:
    """Fraction of the proposal's topics the profile claims to own."""

    name: str = "topic_match"
    weight: float = 0.4

    def score(
        self,
        topics: frozenset[int],
        vector: Sequence[float] | None,
        subject: ExpertiseProfile,
    ) -> float | None:
        if not topics or not subject.topic_ownership:
            return None
        return len(topics & subject.topic_ownership) / len(topics)


@dataclass(frozen=True)
class AxisAlignmentFactor:
    """Share of the vector's magnitude on the profile's claimed axes."""

    name: str = "axis_alignment"
    weight: float = 0.3

    def score(
        self,
        topics: frozenset[int],
        vector: Sequence[float] | None,
        subject: ExpertiseProfile,
    ) -> float | None:
        if vector is None:
            return None
        magnitudes = axis_magnitudes(vector)
        total = sum(magnitudes)
        if total <= 0:
            return None
        axes = subject.semantic_axes
        claimed = sum(value for axis, value in enumerate(magnitudes) if axis in axes)
        return claimed / total


@dataclass(frozen=True)
class DomainTopicFactor:
    """Fraction of the proposal's topics in the profile domain's static slice."""

    name: str = "domain_overlap"
    weight: float = 0.3

    def score(
        self,
        topics: frozenset[int],
        vector: Sequence[float] | None,
        subject: ExpertiseProfile,
    ) -> float | None:
        if not topics:
            return None
        domain_topics = topics_for_domain(subject.semantic_domain)
        if not domain_topics:
            return None
        return len(topics & domain_topics) / len(topics)


def router_engine() -> RelevanceEngine[ExpertiseProfile]:
    """Build the engine used to score registered expertise profiles."""
    return RelevanceEngine([TopicOwnershipFactor(), AxisAlignmentFactor(), DomainTopicFactor()])
