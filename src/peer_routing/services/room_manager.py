"""Hierarchical room management service for peer_routing.

This module owns the 3-level room tree (global -> domain -> work-group),
peer memberships, and the broadcast/propagation primitives used to scope
messages to part of the network.
"""

import threading
import time
from collections.abc import Callable, Iterator, Mapping, Sequence
from contextlib import contextmanager
from typing import Any

from peer_routing.domain.room import Room
from peer_routing.domain.semantics import SemanticDomain, coerce_domain
from peer_routing.interfaces.events import TopologyEventSink
from peer_routing.logging import get_logger
from peer_routing.models.topology import (
    LevelStatsDTO,
    RoomLevel,
    TopologyEvent,
    TopologyEventType,
    TopologyStatsDTO,
)

__all__ = [
    "GLOBAL_ROOM_ID",
    "HierarchicalRoomManager",
    "TopologyInvariantError",
]

logger = get_logger(__name__)

GLOBAL_ROOM_ID = "L0-global"

_LEVEL_KEYS: dict[RoomLevel, str] = {
    RoomLevel.GLOBAL: "global",
    RoomLevel.DOMAIN: "domain",
    RoomLevel.WORK_GROUP: "work_group",
}

RoomFilter = Callable[[str, Room], bool]


class TopologyInvariantError(RuntimeError):
    """Raised when the room tree or membership maps are inconsistent."""


class HierarchicalRoomManager:
    """Owner of the room hierarchy and peer memberships.

    Hierarchy:
    - Level 0: one global room (capacity = branch factor)
    - Level 1: one permanent room per semantic domain
    - Level 2: work-groups created when a domain room is full and
      deleted once empty

    Membership is tracked both ways (room -> peers, peer -> rooms) and
    both sides are updated under the same lock. Broadcast methods only
    compute target lists; delivery belongs to the transport layer.

    Example:
        manager = HierarchicalRoomManager(event_sinks=[sink])
        room = manager.assign_peer_to_room("peer-1", {"semantic_domain": "meta"})
        targets = manager.broadcast_to_room(room.id, {"type": "proposal"}, "peer-1")
    """

    def __init__(
        self,
        levels: int = 3,
        branch_factor: int = 4,
        max_peers_per_room: int = 16,
        default_domain: SemanticDomain = SemanticDomain.PERCEPTUAL,
        event_sinks: Sequence[TopologyEventSink] = (),
    ) -> None:
        """Initialize the manager and build levels 0 and 1.

        Args:
            levels: Hierarchy depth (2 disables work-groups)
            branch_factor: Capacity of the global room
            max_peers_per_room: Capacity of domain rooms and work-groups
            default_domain: Domain for peers whose metadata names none
            event_sinks: Observers notified of every topology event
        """
        self.levels = levels
        self.branch_factor = branch_factor
        self.max_peers_per_room = max_peers_per_room
        self.default_domain = default_domain

        self._lock = threading.RLock()
        self._local = threading.local()
        self._sinks = list(event_sinks)
        self._pending: list[TopologyEvent] = []
        self._rooms: dict[str, Room] = {}
        self._peer_rooms: dict[str, list[str]] = {}
        self._work_group_counters: dict[SemanticDomain, int] = {}

        self._initialize_hierarchy()

    def _initialize_hierarchy(self) -> None:
        self.create_room(
            GLOBAL_ROOM_ID,
            level=RoomLevel.GLOBAL,
            max_peers=self.branch_factor,
        )
        for domain in SemanticDomain:
            self.create_room(
                self.domain_room_id(domain),
                level=RoomLevel.DOMAIN,
                parent=GLOBAL_ROOM_ID,
                domain=domain,
                max_peers=self.max_peers_per_room,
            )

    @staticmethod
    def domain_room_id(domain: SemanticDomain) -> str:
        """Id of the permanent level 1 room for a domain."""
        return f"L1-{domain}"

    # === EVENTS ===

    @contextmanager
    def _locked(self) -> Iterator[None]:
        # Events queued while the lock is held are delivered once the
        # outermost locked call on this thread has released it.
        with self._lock:
            depth = getattr(self._local, "depth", 0)
            self._local.depth = depth + 1
            try:
                yield
            finally:
                self._local.depth = depth
        if depth == 0 and self._pending:
            self._deliver_pending()

    def _deliver_pending(self) -> None:
        with self._lock:
            events, self._pending = self._pending, []
        for event in events:
            for sink in self._sinks:
                try:
                    sink.handle(event)
                except Exception:
                    logger.exception(
                        "event_sink_failed", event_type=event.type, room_id=event.room_id
                    )

    def _emit(
        self,
        event_type: TopologyEventType,
        room_id: str,
        peer_id: str | None = None,
        targets: Sequence[str] = (),
        **payload: Any,
    ) -> None:
        if not self._sinks:
            return
        event = TopologyEvent(
            type=event_type,
            room_id=room_id,
            peer_id=peer_id,
            targets=list(targets),
            payload=payload,
            timestamp=time.time(),
        )
        with self._locked():
            self._pending.append(event)

    # === ROOMS ===

    def create_room(
        self,
        room_id: str,
        level: RoomLevel = RoomLevel.WORK_GROUP,
        parent: str | None = None,
        domain: SemanticDomain | None = None,
        max_peers: int | None = None,
    ) -> Room:
        """Insert a room and attach it to its parent (if the parent exists).

        Ids are never reused: if the id is taken, the existing room is
        returned unchanged and a warning is logged.

        Args:
            room_id: New room id
            level: Hierarchy level
            parent: Parent room id
            domain: Semantic domain of the room
            max_peers: Capacity (default: max_peers_per_room)

        Returns:
            The created Room, or the existing room holding the id
        """
        with self._locked():
            existing = self._rooms.get(room_id)
            if existing is not None:
                logger.warning("room_id_taken", room_id=room_id, level=int(existing.level))
                return existing
            room = Room(
                id=room_id,
                level=level,
                parent=parent,
                domain=domain,
                max_peers=max_peers if max_peers is not None else self.max_peers_per_room,
            )
            self._rooms[room_id] = room
            if parent is not None and parent in self._rooms:
                self._rooms[parent].add_child(room_id)

        logger.debug("room_created", room_id=room_id, level=int(level), parent=parent)
        self._emit(TopologyEventType.ROOM_CREATED, room_id, parent=parent, level=int(level))
        return room

    def get_room(self, room_id: str) -> Room | None:
        with self._locked():
            return self._rooms.get(room_id)

    def get_children(self, room_id: str) -> list[str]:
        with self._locked():
            room = self._rooms.get(room_id)
            return list(room.children) if room else []

    def get_room_peers(self, room_id: str) -> list[str]:
        with self._locked():
            room = self._rooms.get(room_id)
            return list(room.peers) if room else []

    def get_peer_rooms(self, peer_id: str) -> list[str]:
        with self._locked():
            return list(self._peer_rooms.get(peer_id, ()))

    @property
    def room_ids(self) -> list[str]:
        with self._locked():
            return list(self._rooms)

    @property
    def peer_ids(self) -> list[str]:
        with self._locked():
            return list(self._peer_rooms)

    # === MEMBERSHIP ===

    def _resolve_domain(self, metadata: Mapping[str, Any] | None) -> SemanticDomain:
        raw = (metadata or {}).get("semantic_domain")
        if raw is None:
            return self.default_domain
        domain = coerce_domain(raw)
        if domain is None:
            logger.warning("unknown_domain_fallback", domain=raw, fallback=self.default_domain)
            return self.default_domain
        return domain

    def assign_peer_to_room(
        self,
        peer_id: str,
        metadata: Mapping[str, Any] | None = None,
    ) -> Room | None:
        """Place a peer in its domain room, or a work-group if that is full.

        Args:
            peer_id: Peer identifier
            metadata: Peer metadata; ``semantic_domain`` selects the domain

        Returns:
            The room joined, or None if no room could take the peer
        """
        domain = self._resolve_domain(metadata)
        with self._locked():
            domain_room = self._rooms[self.domain_room_id(domain)]
            target_id: str | None = domain_room.id
            if domain_room.is_full and peer_id not in domain_room.peers:
                target_id = self.get_or_create_work_group(domain, peer_id)
            if target_id is None:
                logger.warning("room_capacity_exhausted", peer_id=peer_id, domain=domain)
                return None
            return self.join_room(peer_id, target_id, metadata)

    def get_or_create_work_group(self, domain: SemanticDomain, peer_id: str) -> str | None:
        """Find a work-group with space under a domain room, or create one.

        New work-groups are numbered from a per-domain counter that only
        ever increases, so ids are never reused.

        Args:
            domain: Semantic domain
            peer_id: Peer that needs a place (for logging)

        Returns:
            Work-group room id, or None when the hierarchy has no level 2
        """
        if self.levels < 3:
            return None

        parent_id = self.domain_room_id(domain)
        with self._locked():
            parent = self._rooms[parent_id]
            for child_id in parent.children:
                child = self._rooms.get(child_id)
                if child is not None and not child.is_full:
                    return child_id

            number = self._work_group_counters.get(domain, 0)
            self._work_group_counters[domain] = number + 1
            group_id = f"L2-{domain}-{number}"
            self.create_room(
                group_id,
                level=RoomLevel.WORK_GROUP,
                parent=parent_id,
                domain=domain,
                max_peers=self.max_peers_per_room,
            )

        logger.debug("work_group_created", room_id=group_id, peer_id=peer_id)
        return group_id

    def join_room(
        self,
        peer_id: str,
        room_id: str,
        metadata: Mapping[str, Any] | None = None,
    ) -> Room | None:
        """Add a peer to a room (capacity is not enforced here).

        Args:
            peer_id: Peer identifier
            room_id: Room to join
            metadata: Peer metadata forwarded to observers

        Returns:
            The joined Room, or None if the room does not exist
        """
        with self._locked():
            room = self._rooms.get(room_id)
            if room is None:
                return None
            room.add_peer(peer_id)
            memberships = self._peer_rooms.setdefault(peer_id, [])
            if room_id not in memberships:
                memberships.append(room_id)

        logger.debug("peer_joined", peer_id=peer_id, room_id=room_id)
        self._emit(
            TopologyEventType.PEER_JOINED,
            room_id,
            peer_id=peer_id,
            metadata=dict(metadata or {}),
        )
        return room

    def leave_room(self, peer_id: str, room_id: str) -> None:
        """Remove a peer from a room.

        An emptied work-group is cleaned up. A peer left with no rooms is
        dropped from the membership map.
        """
        with self._locked():
            room = self._rooms.get(room_id)
            if room is not None:
                room.remove_peer(peer_id)

            memberships = self._peer_rooms.get(peer_id)
            if memberships is not None:
                if room_id in memberships:
                    memberships.remove(room_id)
                if not memberships:
                    del self._peer_rooms[peer_id]

            needs_cleanup = room is not None and not room.is_permanent and room.is_empty

        logger.debug("peer_left", peer_id=peer_id, room_id=room_id)
        self._emit(TopologyEventType.PEER_LEFT, room_id, peer_id=peer_id)

        if needs_cleanup:
            self.cleanup_room(room_id)

    def remove_peer(self, peer_id: str) -> None:
        """Remove a peer from every room and drop its membership record."""
        with self._locked():
            for room_id in list(self._peer_rooms.get(peer_id, ())):
                self.leave_room(peer_id, room_id)
            self._peer_rooms.pop(peer_id, None)

    def cleanup_room(self, room_id: str) -> None:
        """Delete a work-group and detach it from its parent.

        Level 0 and level 1 rooms are never deleted.
        """
        with self._locked():
            room = self._rooms.get(room_id)
            if room is None or room.is_permanent:
                return
            parent = self._rooms.get(room.parent) if room.parent else None
            if parent is not None:
                parent.remove_child(room_id)
            # Any remaining members lose this room from their membership sets
            for peer_id in list(room.peers):
                memberships = self._peer_rooms.get(peer_id)
                if memberships is not None and room_id in memberships:
                    memberships.remove(room_id)
                    if not memberships:
                        del self._peer_rooms[peer_id]
            del self._rooms[room_id]

        logger.debug("room_cleaned", room_id=room_id)
        self._emit(TopologyEventType.ROOM_CLEANED, room_id)

    # === PROPAGATION ===

    def broadcast_to_room(
        self,
        room_id: str,
        message: Mapping[str, Any],
        exclude_peer_id: str | None = None,
    ) -> list[str]:
        """Compute the peers of a room that should receive a message.

        Args:
            room_id: Room to broadcast to
            message: Message being broadcast (not delivered here)
            exclude_peer_id: Peer to leave out, usually the sender

        Returns:
            Target peer ids in join order (empty for unknown rooms)
        """
        with self._locked():
            room = self._rooms.get(room_id)
            if room is None:
                return []
            room.last_activity = time.time()
            targets = [peer_id for peer_id in room.peers if peer_id != exclude_peer_id]

        self._emit(TopologyEventType.BROADCAST, room_id, targets=targets, message=dict(message))
        return targets

    def propagate_up(self, message: Mapping[str, Any], from_room: str) -> list[str]:
        """Broadcast an aggregation message to the parent room.

        Returns:
            Parent room targets (empty for the global room or unknown rooms)
        """
        with self._locked():
            room = self._rooms.get(from_room)
            parent_id = room.parent if room else None
            if parent_id is None:
                return []
            annotated = {**message, "aggregated_from": from_room, "direction": "up"}
            targets = self.broadcast_to_room(parent_id, annotated)

        self._emit(TopologyEventType.PROPAGATE_UP, from_room, targets=targets, to_room=parent_id)
        return targets

    def propagate_down(
        self,
        message: Mapping[str, Any],
        from_room: str,
        filter_fn: RoomFilter | None = None,
    ) -> list[str]:
        """Broadcast a distribution message to child rooms.

        Args:
            message: Message being distributed
            from_room: Room whose children receive the message
            filter_fn: Predicate ``(child_id, child_room) -> bool``; all
                children pass when omitted

        Returns:
            Concatenated targets of every selected child
        """
        with self._locked():
            children = self.get_children(from_room)
            annotated = {**message, "distributed_from": from_room, "direction": "down"}
            all_targets: list[str] = []
            for child_id in children:
                child = self._rooms.get(child_id)
                if child is None:
                    continue
                if filter_fn is None or filter_fn(child_id, child):
                    all_targets.extend(self.broadcast_to_room(child_id, annotated))

        self._emit(
            TopologyEventType.PROPAGATE_DOWN,
            from_room,
            targets=all_targets,
            children=children,
        )
        return all_targets

    def route_by_domain(
        self,
        message: Mapping[str, Any],
        domain: str | SemanticDomain,
    ) -> list[str]:
        """Broadcast to a domain room and all of its work-groups.

        Returns:
            Domain room targets followed by work-group targets (empty for
            unknown domains)
        """
        resolved = coerce_domain(domain)
        if resolved is None:
            return []
        room_id = self.domain_room_id(resolved)
        with self._locked():
            targets = self.broadcast_to_room(room_id, message)
            return targets + self.propagate_down(message, room_id)

    # === INTROSPECTION ===

    def stats(self) -> TopologyStatsDTO:
        """Get per-level counts and per-room summaries."""
        with self._locked():
            room_counts = dict.fromkeys(_LEVEL_KEYS.values(), 0)
            peer_counts = dict.fromkeys(_LEVEL_KEYS.values(), 0)
            for room in self._rooms.values():
                key = _LEVEL_KEYS[room.level]
                room_counts[key] += 1
                peer_counts[key] += len(room.peers)

            return TopologyStatsDTO(
                total_rooms=len(self._rooms),
                total_peers=len(self._peer_rooms),
                levels={
                    key: LevelStatsDTO(rooms=room_counts[key], peers=peer_counts[key])
                    for key in _LEVEL_KEYS.values()
                },
                rooms=[room.to_summary() for room in self._rooms.values()],
            )

    def check_invariants(self) -> None:
        """Verify the room tree and membership maps.

        Raises:
            TopologyInvariantError: If the global/domain rooms are not
                intact, the peer<->room maps disagree, or an empty
                work-group is still attached to its parent
        """
        with self._locked():
            global_rooms = [r for r in self._rooms.values() if r.level == RoomLevel.GLOBAL]
            if len(global_rooms) != 1 or global_rooms[0].id != GLOBAL_ROOM_ID:
                raise TopologyInvariantError("expected exactly one global room")

            for domain in SemanticDomain:
                room = self._rooms.get(self.domain_room_id(domain))
                if room is None or room.level != RoomLevel.DOMAIN:
                    raise TopologyInvariantError(f"missing domain room for {domain}")
            domain_rooms = sum(1 for r in self._rooms.values() if r.level == RoomLevel.DOMAIN)
            if domain_rooms != len(SemanticDomain):
                raise TopologyInvariantError(f"expected {len(SemanticDomain)} domain rooms")

            for peer_id, memberships in self._peer_rooms.items():
                for room_id in memberships:
                    room = self._rooms.get(room_id)
                    if room is None or peer_id not in room.peers:
                        raise TopologyInvariantError(f"{peer_id} lists {room_id} but is not in it")
            for room in self._rooms.values():
                for peer_id in room.peers:
                    if room.id not in self._peer_rooms.get(peer_id, ()):
                        raise TopologyInvariantError(f"{room.id} holds unlisted {peer_id}")
                if room.level == RoomLevel.WORK_GROUP and room.is_empty:
                    raise TopologyInvariantError(f"empty work-group {room.id} was not cleaned up")
                for child_id in room.children:
                    if child_id not in self._rooms:
                        raise TopologyInvariantError(f"{room.id} lists deleted child {child_id}")
