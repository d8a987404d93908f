"""Internal expertise profile and vote ledger entities for peer_routing.

The expertise router keeps one mutable profile and one vote ledger per
registered node. Profiles are built from the caller's NodeProfile.
"""

import time
from dataclasses import dataclass, field

from peer_routing.domain.semantics import SemanticDomain
from peer_routing.models.profile import NodeProfile

__all__ = [
    "MIN_VOTES_FOR_ACCURACY",
    "ExpertiseProfile",
    "VoteLedger",
]

MIN_VOTES_FOR_ACCURACY = 5


@dataclass
class ExpertiseProfile:
    """Registered node profile held by the expertise router."""

    node_id: str
    semantic_domain: SemanticDomain
    semantic_axes: frozenset[int]
    topic_ownership: frozenset[int]
    registered_at: float = field(default_factory=time.time)
    last_active: float = field(default_factory=time.time)

    def touch(self, now: float | None = None) -> None:
        """Mark the node active."""
        self.last_active = now if now is not None else time.time()

    def is_active(self, window_seconds: float, now: float | None = None) -> bool:
        """Check whether the node was active within the window."""
        current = now if now is not None else time.time()
        return current - self.last_active < window_seconds

    def to_dto(self) -> NodeProfile:
        """Convert back to the public profile model."""
        return NodeProfile(
            semantic_domain=self.semantic_domain,
            semantic_axes=self.semantic_axes,
            topic_ownership=self.topic_ownership,
        )

    @classmethod
    def from_dto(
        cls, node_id: str, dto: NodeProfile, now: float | None = None
    ) -> "ExpertiseProfile":
        """Create from a public profile model."""
        registered = now if now is not None else time.time()
        return cls(
            node_id=node_id,
            semantic_domain=dto.semantic_domain,
            semantic_axes=dto.semantic_axes,
            topic_ownership=dto.topic_ownership,
            registered_at=registered,
            last_active=registered,
        )


@dataclass
class VoteLedger:
    """Running vote outcome counters for one node.

    Accuracy stays at the neutral 0.5 until enough votes are recorded.
    """

    correct: int = 0
    total: int = 0

    def record(self, was_correct: bool) -> None:
        self.total += 1
        if was_correct:
            self.correct += 1

    def accuracy(self, min_samples: int = MIN_VOTES_FOR_ACCURACY) -> float:
        if self.total < min_samples:
            return 0.5
        return self.correct / self.total
