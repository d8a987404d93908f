"""Specialization models for peer_routing.

These models describe a node's specialty: its semantic domains, the
topic bucket it owns in the current partition, and its learning metrics.
"""

from pydantic import BaseModel, Field

from peer_routing.domain.semantics import SemanticDomain

__all__ = [
    "ExpertiseMetricsDTO",
    "PartitionRangeDTO",
    "PartitionStatsDTO",
    "SemanticProfileDTO",
    "SpecializationProfileDTO",
]


class SemanticProfileDTO(BaseModel, frozen=True):
    """Semantic domain assignment of a node."""

    node_id: str
    primary_domain: SemanticDomain
    secondary_domain: SemanticDomain
    description: str = ""
    primary_axes: list[int]
    secondary_axes: list[int]
    specialization_strength: float = Field(ge=0.0, le=1.0)


class PartitionRangeDTO(BaseModel, frozen=True):
    """Topic range owned by one node index (min/max absent for empty buckets)."""

    node: int = Field(ge=0)
    min: int | None = None
    max: int | None = None
    count: int = Field(ge=0)


class PartitionStatsDTO(BaseModel, frozen=True):
    """Snapshot of a topic partition."""

    node_count: int = Field(ge=1)
    topics_per_node: list[int]
    ranges: list[PartitionRangeDTO]
    total_topics: int


class ExpertiseMetricsDTO(BaseModel, frozen=True):
    """In-domain versus out-of-domain accuracy over the recent window.

    Attributes:
        in_domain_accuracy: Success rate on entries touching owned topics
        out_domain_accuracy: Success rate on all other entries
        total_exercises: Entries considered
        specialization_efficiency: Ratio of in-domain to out-of-domain accuracy
    """

    in_domain_accuracy: float = Field(ge=0.0, le=1.0)
    out_domain_accuracy: float = Field(ge=0.0, le=1.0)
    total_exercises: int = Field(ge=0)
    specialization_efficiency: float = Field(ge=0.0)


class SpecializationProfileDTO(BaseModel, frozen=True):
    """Complete specialization profile of a node."""

    node_id: str
    node_index: int
    semantic: SemanticProfileDTO
    owned_topics: list[int]
    partition: PartitionStatsDTO
    expertise: ExpertiseMetricsDTO
