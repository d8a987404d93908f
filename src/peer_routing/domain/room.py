"""Internal Room entity for peer_routing.

Rooms are the nodes of the 3-level broadcast hierarchy. Peer and child
collections keep insertion order so broadcasts are reproducible.
"""

import time
from dataclasses import dataclass, field

from peer_routing.domain.semantics import SemanticDomain
from peer_routing.models.topology import RoomLevel, RoomSummaryDTO

__all__ = [
    "Room",
]


@dataclass
class Room:
    """Mutable room record owned by the room manager.

    ``peers`` maps peer id to join time. Level 0 and level 1 rooms are
    permanent; level 2 work-groups are deleted once empty.
    """

    id: str
    level: RoomLevel
    parent: str | None = None
    domain: SemanticDomain | None = None
    max_peers: int = 16
    peers: dict[str, float] = field(default_factory=dict)
    children: list[str] = field(default_factory=list)
    created_at: float = field(default_factory=time.time)
    last_activity: float = field(default_factory=time.time)

    @property
    def is_full(self) -> bool:
        return len(self.peers) >= self.max_peers

    @property
    def is_empty(self) -> bool:
        return not self.peers

    @property
    def is_permanent(self) -> bool:
        return self.level < RoomLevel.WORK_GROUP

    def add_peer(self, peer_id: str) -> None:
        now = time.time()
        self.peers.setdefault(peer_id, now)
        self.last_activity = now

    def remove_peer(self, peer_id: str) -> bool:
        existed = self.peers.pop(peer_id, None) is not None
        self.last_activity = time.time()
        return existed

    def add_child(self, room_id: str) -> None:
        if room_id not in self.children:
            self.children.append(room_id)

    def remove_child(self, room_id: str) -> None:
        if room_id in self.children:
            self.children.remove(room_id)

    def to_summary(self) -> RoomSummaryDTO:
        """Convert to the summary line used in topology stats."""
        return RoomSummaryDTO(
            id=self.id,
            level=self.level,
            domain=self.domain,
            peers=len(self.peers),
            children=len(self.children),
        )
