"""Node profile models for peer_routing.

These models describe the expertise a node advertises when it
registers with the expertise router.
"""

from pydantic import BaseModel, Field, field_validator

from peer_routing.domain.semantics import AXIS_COUNT, SemanticDomain, coerce_domain

__all__ = [
    "DEFAULT_AXES",
    "NodeProfile",
]

DEFAULT_AXES: frozenset[int] = frozenset({0, 1, 2, 3})


class NodeProfile(BaseModel, frozen=True):
    """Expertise profile advertised by a node.

    Attributes:
        semantic_domain: Node's semantic domain (unknown names fall back
            to ``perceptual``)
        semantic_axes: Axis indices the node claims expertise in
        topic_ownership: Topic identifiers the node claims
        schema_version: Schema version for forward compatibility
    """

    semantic_domain: SemanticDomain = SemanticDomain.PERCEPTUAL
    semantic_axes: frozenset[int] = Field(default=DEFAULT_AXES)
    topic_ownership: frozenset[int] = Field(default_factory=frozenset)
    schema_version: int = Field(default=1)

    @field_validator("semantic_domain", mode="before")
    @classmethod
    def _fallback_domain(cls, value: object) -> object:
        if isinstance(value, str) and coerce_domain(value) is None:
            return SemanticDomain.PERCEPTUAL
        return value

    @field_validator("semantic_axes")
    @classmethod
    def _check_axes(cls, value: frozenset[int]) -> frozenset[int]:
        out_of_range = sorted(axis for axis in value if not 0 <= axis < AXIS_COUNT)
        if out_of_range:
            raise ValueError(f"semantic axes out of range 0..{AXIS_COUNT - 1}: {out_of_range}")
        return value
