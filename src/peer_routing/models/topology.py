"""Topology models for peer_routing.

These models describe the hierarchical room tree as seen from outside
the room manager: level enumeration, observation events and stats
snapshots.
"""

from enum import IntEnum, StrEnum
from typing import Any

from pydantic import BaseModel, Field

__all__ = [
    "LevelStatsDTO",
    "RoomLevel",
    "RoomSummaryDTO",
    "TopologyEvent",
    "TopologyEventType",
    "TopologyStatsDTO",
]


class RoomLevel(IntEnum):
    """Depth of a room in the hierarchy."""

    GLOBAL = 0
    DOMAIN = 1
    WORK_GROUP = 2


class TopologyEventType(StrEnum):
    """Observations emitted by the room manager."""

    ROOM_CREATED = "room_created"
    ROOM_CLEANED = "room_cleaned"
    PEER_JOINED = "peer_joined"
    PEER_LEFT = "peer_left"
    BROADCAST = "broadcast"
    PROPAGATE_UP = "propagate_up"
    PROPAGATE_DOWN = "propagate_down"


class TopologyEvent(BaseModel, frozen=True):
    """Single topology observation.

    Attributes:
        type: What happened
        room_id: Room the event concerns
        peer_id: Peer the event concerns, if any
        targets: Computed target peers (broadcast and propagation events)
        payload: Extra event context (message, related room, metadata)
        timestamp: Event time in epoch seconds
    """

    type: TopologyEventType
    room_id: str
    peer_id: str | None = None
    targets: list[str] = Field(default_factory=list)
    payload: dict[str, Any] = Field(default_factory=dict)
    timestamp: float


class RoomSummaryDTO(BaseModel, frozen=True):
    """Per-room line of a topology snapshot."""

    id: str
    level: RoomLevel
    domain: str | None = None
    peers: int = Field(ge=0)
    children: int = Field(ge=0)


class LevelStatsDTO(BaseModel, frozen=True):
    """Room and peer counts for one hierarchy level."""

    rooms: int = Field(default=0, ge=0)
    peers: int = Field(default=0, ge=0)


class TopologyStatsDTO(BaseModel, frozen=True):
    """Snapshot of the room hierarchy.

    Attributes:
        total_rooms: Number of rooms at all levels
        total_peers: Number of peers with at least one membership
        levels: Per-level counts keyed by ``global``, ``domain``, ``work_group``
        rooms: Per-room summaries in creation order
    """

    total_rooms: int = Field(ge=0)
    total_peers: int = Field(ge=0)
    levels: dict[str, LevelStatsDTO]
    rooms: list[RoomSummaryDTO] = Field(default_factory=list)
