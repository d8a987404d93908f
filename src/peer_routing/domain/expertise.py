"""Internal ExpertiseRecord entity for peer_routing.

Records are append-only entries in a node's bounded learning log.
"""

import time
from dataclasses import dataclass, field

__all__ = [
    "ExpertiseRecord",
]


@dataclass(frozen=True)
class ExpertiseRecord:
    """One exercise of a node's expertise.

    Note: This dataclass is frozen (immutable) to enforce append-only semantics.
    """

    topics: frozenset[int]
    success: bool
    timestamp: float = field(default_factory=time.time)

    def touches(self, owned: frozenset[int] | set[int]) -> bool:
        """Check whether any recorded topic is in the owned set."""
        return not self.topics.isdisjoint(owned)
