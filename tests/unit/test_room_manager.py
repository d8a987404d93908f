"""Unit tests for HierarchicalRoomManager."""

import random

import pytest

from peer_routing.domain.semantics import SemanticDomain
from peer_routing.models.topology import RoomLevel, TopologyEvent, TopologyEventType
from peer_routing.services.room_manager import (
    GLOBAL_ROOM_ID,
    HierarchicalRoomManager,
    TopologyInvariantError,
)
from tests.mocks.recording_sink import FailingSink, RecordingSink, ThreadedQuerySink

DOMAIN_ROOMS = ["L1-perceptual", "L1-cognitive", "L1-temporal", "L1-meta"]


def fill(manager: HierarchicalRoomManager, count: int, domain: str = "perceptual") -> list[str]:
    """Assign ``count`` peers to one domain and return their ids."""
    peer_ids = [f"peer-{index}" for index in range(count)]
    for peer_id in peer_ids:
        manager.assign_peer_to_room(peer_id, {"semantic_domain": domain})
    return peer_ids


class TestHierarchy:
    """Tests for the initial room tree."""

    def test_initial_rooms(self, room_manager: HierarchicalRoomManager) -> None:
        assert room_manager.room_ids == [GLOBAL_ROOM_ID, *DOMAIN_ROOMS]
        assert room_manager.get_children(GLOBAL_ROOM_ID) == DOMAIN_ROOMS
        assert room_manager.get_room(GLOBAL_ROOM_ID).max_peers == 4
        assert room_manager.get_room("L1-meta").max_peers == 16
        assert room_manager.get_room("L1-meta").parent == GLOBAL_ROOM_ID
        assert room_manager.peer_ids == []
        room_manager.check_invariants()

    def test_creation_events(
        self,
        room_manager: HierarchicalRoomManager,
        recording_sink: RecordingSink,
    ) -> None:
        created = recording_sink.of_type(TopologyEventType.ROOM_CREATED)
        assert [event.room_id for event in created] == [GLOBAL_ROOM_ID, *DOMAIN_ROOMS]

    def test_failing_sink_does_not_abort(self) -> None:
        failing = FailingSink()
        recording = RecordingSink()

        manager = HierarchicalRoomManager(event_sinks=[failing, recording])
        manager.assign_peer_to_room("peer-a")

        assert failing.calls == 6
        assert len(recording.events) == 6
        assert manager.get_peer_rooms("peer-a") == ["L1-perceptual"]

    def test_sink_can_query_manager_from_another_thread(self) -> None:
        sink = ThreadedQuerySink()
        manager = HierarchicalRoomManager(event_sinks=[sink])
        sink.manager = manager

        manager.assign_peer_to_room("peer-a")
        manager.assign_peer_to_room("peer-b")
        manager.broadcast_to_room("L1-perceptual", {"kind": "ping"}, exclude_peer_id="peer-a")

        assert len(sink.completed) == 3
        assert all(sink.completed)

    def test_events_follow_the_applied_change(self) -> None:
        seen: list[list[str]] = []

        class PeersSnapshotSink:
            def handle(self, event: TopologyEvent) -> None:
                if event.type == TopologyEventType.PEER_JOINED:
                    seen.append(manager.get_room_peers(event.room_id))

        manager = HierarchicalRoomManager(event_sinks=[PeersSnapshotSink()])
        manager.assign_peer_to_room("peer-a")

        assert seen == [["peer-a"]]

    def test_create_room_keeps_existing_id(
        self,
        room_manager: HierarchicalRoomManager,
        recording_sink: RecordingSink,
    ) -> None:
        room_manager.assign_peer_to_room("peer-a", {"semantic_domain": "meta"})
        existing = room_manager.get_room("L1-meta")
        created_before = len(recording_sink.of_type(TopologyEventType.ROOM_CREATED))

        room = room_manager.create_room("L1-meta", level=RoomLevel.WORK_GROUP)

        assert room is existing
        assert room.level == RoomLevel.DOMAIN
        assert room_manager.get_room_peers("L1-meta") == ["peer-a"]
        assert room_manager.get_children(GLOBAL_ROOM_ID) == DOMAIN_ROOMS
        assert len(recording_sink.of_type(TopologyEventType.ROOM_CREATED)) == created_before
        room_manager.check_invariants()


class TestAssignment:
    """Tests for domain-based room assignment."""

    def test_default_domain(self, room_manager: HierarchicalRoomManager) -> None:
        room = room_manager.assign_peer_to_room("peer-a")
        assert room.id == "L1-perceptual"

    def test_metadata_domain(self, room_manager: HierarchicalRoomManager) -> None:
        room = room_manager.assign_peer_to_room("peer-a", {"semantic_domain": "meta"})

        assert room.id == "L1-meta"
        assert room_manager.get_room_peers("L1-meta") == ["peer-a"]
        assert room_manager.get_peer_rooms("peer-a") == ["L1-meta"]

    def test_unknown_domain_falls_back(self, room_manager: HierarchicalRoomManager) -> None:
        room = room_manager.assign_peer_to_room("peer-a", {"semantic_domain": "astral"})
        assert room.id == "L1-perceptual"

    def test_configured_default_domain(self) -> None:
        manager = HierarchicalRoomManager(default_domain=SemanticDomain.META)
        assert manager.assign_peer_to_room("peer-a").id == "L1-meta"

    def test_overflow_into_work_groups(self, room_manager: HierarchicalRoomManager) -> None:
        fill(room_manager, 16)

        overflow = room_manager.assign_peer_to_room("peer-16")

        assert overflow.id == "L2-perceptual-0"
        assert overflow.level == RoomLevel.WORK_GROUP
        assert overflow.parent == "L1-perceptual"
        assert room_manager.get_children("L1-perceptual") == ["L2-perceptual-0"]
        assert len(room_manager.get_room_peers("L1-perceptual")) == 16

    def test_full_work_group_spawns_next(self, room_manager: HierarchicalRoomManager) -> None:
        fill(room_manager, 32)

        room = room_manager.assign_peer_to_room("peer-32")

        assert room.id == "L2-perceptual-1"
        assert room_manager.get_children("L1-perceptual") == [
            "L2-perceptual-0",
            "L2-perceptual-1",
        ]

    def test_existing_member_stays_in_full_domain_room(
        self, room_manager: HierarchicalRoomManager
    ) -> None:
        fill(room_manager, 16)

        room = room_manager.assign_peer_to_room("peer-0")

        assert room.id == "L1-perceptual"
        assert room_manager.get_children("L1-perceptual") == []

    def test_work_group_ids_not_reused(self, room_manager: HierarchicalRoomManager) -> None:
        fill(room_manager, 17)
        room_manager.leave_room("peer-16", "L2-perceptual-0")

        room = room_manager.assign_peer_to_room("peer-17")

        assert room.id == "L2-perceptual-1"

    def test_two_level_hierarchy_refuses_overflow(self) -> None:
        manager = HierarchicalRoomManager(levels=2, max_peers_per_room=1)

        assert manager.assign_peer_to_room("peer-a").id == "L1-perceptual"
        assert manager.assign_peer_to_room("peer-b") is None
        assert manager.get_or_create_work_group(SemanticDomain.PERCEPTUAL, "peer-b") is None
        assert manager.peer_ids == ["peer-a"]
        manager.check_invariants()


class TestMembership:
    """Tests for explicit joins, leaves and cleanup."""

    def test_join_unknown_room(self, room_manager: HierarchicalRoomManager) -> None:
        assert room_manager.join_room("peer-a", "L9-nowhere") is None
        assert room_manager.peer_ids == []

    def test_join_room_ignores_capacity(self, room_manager: HierarchicalRoomManager) -> None:
        for index in range(6):
            room_manager.join_room(f"peer-{index}", GLOBAL_ROOM_ID)

        assert len(room_manager.get_room_peers(GLOBAL_ROOM_ID)) == 6

    def test_join_is_idempotent(self, room_manager: HierarchicalRoomManager) -> None:
        room_manager.join_room("peer-a", "L1-meta")
        room_manager.join_room("peer-a", "L1-meta")

        assert room_manager.get_room_peers("L1-meta") == ["peer-a"]
        assert room_manager.get_peer_rooms("peer-a") == ["L1-meta"]

    def test_domain_room_survives_last_leave(
        self,
        room_manager: HierarchicalRoomManager,
        recording_sink: RecordingSink,
    ) -> None:
        room_manager.assign_peer_to_room("peer-a", {"semantic_domain": "meta"})

        room_manager.leave_room("peer-a", "L1-meta")

        assert room_manager.get_room("L1-meta") is not None
        assert room_manager.peer_ids == []
        assert recording_sink.of_type(TopologyEventType.ROOM_CLEANED) == []

    def test_emptied_work_group_is_cleaned(
        self,
        room_manager: HierarchicalRoomManager,
        recording_sink: RecordingSink,
    ) -> None:
        fill(room_manager, 17)

        room_manager.leave_room("peer-16", "L2-perceptual-0")

        assert room_manager.get_room("L2-perceptual-0") is None
        assert room_manager.get_children("L1-perceptual") == []
        cleaned = recording_sink.of_type(TopologyEventType.ROOM_CLEANED)
        assert [event.room_id for event in cleaned] == ["L2-perceptual-0"]
        room_manager.check_invariants()

    def test_remove_peer_everywhere(self, room_manager: HierarchicalRoomManager) -> None:
        room_manager.assign_peer_to_room("peer-a", {"semantic_domain": "meta"})
        room_manager.join_room("peer-a", GLOBAL_ROOM_ID)
        assert room_manager.get_peer_rooms("peer-a") == ["L1-meta", GLOBAL_ROOM_ID]

        room_manager.remove_peer("peer-a")

        assert room_manager.get_peer_rooms("peer-a") == []
        assert "peer-a" not in room_manager.peer_ids
        assert room_manager.get_room_peers("L1-meta") == []
        assert room_manager.get_room_peers(GLOBAL_ROOM_ID) == []

    def test_cleanup_ignores_permanent_rooms(self, room_manager: HierarchicalRoomManager) -> None:
        room_manager.cleanup_room(GLOBAL_ROOM_ID)
        room_manager.cleanup_room("L1-cognitive")
        room_manager.cleanup_room("L2-unknown-0")

        assert len(room_manager.room_ids) == 5

    def test_cleanup_of_occupied_work_group(self, room_manager: HierarchicalRoomManager) -> None:
        fill(room_manager, 17)

        room_manager.cleanup_room("L2-perceptual-0")

        assert room_manager.get_peer_rooms("peer-16") == []
        assert "peer-16" not in room_manager.peer_ids
        room_manager.check_invariants()


class TestPropagation:
    """Tests for broadcast target computation."""

    def test_broadcast_excludes_sender(
        self,
        room_manager: HierarchicalRoomManager,
        recording_sink: RecordingSink,
    ) -> None:
        for peer_id in ("peer-a", "peer-b", "peer-c"):
            room_manager.join_room(peer_id, "L1-temporal")
        room_manager.get_room("L1-temporal").last_activity = 0.0

        targets = room_manager.broadcast_to_room("L1-temporal", {"type": "proposal"}, "peer-b")

        assert targets == ["peer-a", "peer-c"]
        assert room_manager.get_room("L1-temporal").last_activity > 0.0
        event = recording_sink.of_type(TopologyEventType.BROADCAST)[-1]
        assert event.targets == targets
        assert event.payload["message"] == {"type": "proposal"}

    def test_broadcast_unknown_room(self, room_manager: HierarchicalRoomManager) -> None:
        assert room_manager.broadcast_to_room("L9-nowhere", {}) == []

    def test_propagate_up(
        self,
        room_manager: HierarchicalRoomManager,
        recording_sink: RecordingSink,
    ) -> None:
        room_manager.join_room("hub", GLOBAL_ROOM_ID)
        room_manager.assign_peer_to_room("peer-a", {"semantic_domain": "cognitive"})

        targets = room_manager.propagate_up({"type": "vote"}, "L1-cognitive")

        assert targets == ["hub"]
        message = recording_sink.of_type(TopologyEventType.BROADCAST)[-1].payload["message"]
        assert message == {"type": "vote", "aggregated_from": "L1-cognitive", "direction": "up"}
        assert recording_sink.of_type(TopologyEventType.PROPAGATE_UP)[-1].targets == ["hub"]

    def test_propagate_up_from_root_or_unknown(
        self, room_manager: HierarchicalRoomManager
    ) -> None:
        assert room_manager.propagate_up({}, GLOBAL_ROOM_ID) == []
        assert room_manager.propagate_up({}, "L9-nowhere") == []

    def test_propagate_down_with_filter(
        self,
        room_manager: HierarchicalRoomManager,
        recording_sink: RecordingSink,
    ) -> None:
        for peer_id, domain in (("p", "perceptual"), ("t", "temporal"), ("m", "meta")):
            room_manager.assign_peer_to_room(peer_id, {"semantic_domain": domain})

        everyone = room_manager.propagate_down({"type": "sync"}, GLOBAL_ROOM_ID)
        selected = room_manager.propagate_down(
            {"type": "sync"},
            GLOBAL_ROOM_ID,
            lambda child_id, child: child.domain in {SemanticDomain.TEMPORAL, SemanticDomain.META},
        )

        assert everyone == ["p", "t", "m"]
        assert selected == ["t", "m"]
        message = recording_sink.of_type(TopologyEventType.BROADCAST)[-1].payload["message"]
        assert message["distributed_from"] == GLOBAL_ROOM_ID
        assert message["direction"] == "down"

    def test_route_by_domain(self, room_manager: HierarchicalRoomManager) -> None:
        peer_ids = fill(room_manager, 17)

        assert room_manager.route_by_domain({"type": "proposal"}, "perceptual") == peer_ids
        assert room_manager.route_by_domain({"type": "proposal"}, SemanticDomain.META) == []
        assert room_manager.route_by_domain({"type": "proposal"}, "astral") == []


class TestIntrospection:
    """Tests for stats and invariant checks."""

    def test_stats(self, room_manager: HierarchicalRoomManager) -> None:
        fill(room_manager, 17)

        stats = room_manager.stats()

        assert stats.total_rooms == 6
        assert stats.total_peers == 17
        assert stats.levels["global"].rooms == 1
        assert stats.levels["domain"].rooms == 4
        assert stats.levels["domain"].peers == 16
        assert stats.levels["work_group"].rooms == 1
        assert stats.levels["work_group"].peers == 1
        summary = stats.rooms[1]
        assert (summary.id, summary.peers, summary.children) == ("L1-perceptual", 16, 1)

    def test_invariants_hold_under_churn(self) -> None:
        manager = HierarchicalRoomManager(max_peers_per_room=3)
        rng = random.Random(5)
        domains = [domain.value for domain in SemanticDomain]

        for step in range(400):
            action = rng.random()
            peer_ids = manager.peer_ids
            if action < 0.55 or not peer_ids:
                manager.assign_peer_to_room(
                    f"peer-{step}", {"semantic_domain": rng.choice(domains)}
                )
            elif action < 0.85:
                peer_id = rng.choice(peer_ids)
                manager.leave_room(peer_id, rng.choice(manager.get_peer_rooms(peer_id)))
            else:
                manager.remove_peer(rng.choice(peer_ids))
            manager.check_invariants()

        assert len(manager.room_ids) >= 5

    def test_detects_desynchronized_membership(
        self, room_manager: HierarchicalRoomManager
    ) -> None:
        room_manager._peer_rooms["ghost"] = ["L1-meta"]

        with pytest.raises(TopologyInvariantError):
            room_manager.check_invariants()
