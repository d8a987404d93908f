"""Routing models for peer_routing.

These models carry routing decisions and routing statistics out of
the routers. All of them serialize with ``model_dump()``.
"""

from pydantic import BaseModel, Field

from peer_routing.models.topology import TopologyStatsDTO

__all__ = [
    "ExpertiseRouterStatsDTO",
    "RoutingResultDTO",
    "SelectiveRoutingStatsDTO",
]


class RoutingResultDTO(BaseModel, frozen=True):
    """Final routing decision for one proposal.

    Attributes:
        targets: Node ids that should receive the proposal, ranked
        rooms: Rooms containing at least one target node
        scores: Relevance score per target node
        efficiency: Fraction of a full broadcast that was avoided
            (0 when no target was found)
    """

    targets: list[str] = Field(default_factory=list)
    rooms: list[str] = Field(default_factory=list)
    scores: dict[str, float] = Field(default_factory=dict)
    efficiency: float = Field(default=0.0, ge=0.0, le=1.0)


class ExpertiseRouterStatsDTO(BaseModel, frozen=True):
    """Snapshot of the expertise router registry and configuration."""

    total_nodes: int = Field(ge=0)
    active_nodes: int = Field(ge=0)
    relevance_threshold: float
    use_square_root_scaling: bool
    max_target_nodes: int
    effective_max_targets: int


class SelectiveRoutingStatsDTO(BaseModel, frozen=True):
    """Running counters of the selective router plus component snapshots.

    Attributes:
        total_routed: Number of proposals routed
        avg_target_count: Running mean of target-set size
        messages_saved: Total messages avoided versus full broadcast
        expertise_router: Expertise router snapshot
        room_manager: Room hierarchy snapshot
    """

    total_routed: int = Field(default=0, ge=0)
    avg_target_count: float = Field(default=0.0, ge=0.0)
    messages_saved: int = Field(default=0, ge=0)
    expertise_router: ExpertiseRouterStatsDTO
    room_manager: TopologyStatsDTO
