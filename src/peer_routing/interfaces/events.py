"""Topology event sink interface for peer_routing.

This module defines the Protocol for observers of room hierarchy changes.
"""

from typing import Protocol, runtime_checkable

from peer_routing.models.topology import TopologyEvent

__all__ = [
    "TopologyEventSink",
]


@runtime_checkable
class TopologyEventSink(Protocol):
    """Contract for topology observers.

    Sinks are passed to the room manager at construction and receive
    every room/peer change and every computed broadcast. Events are
    delivered after the change is applied and with no manager lock held,
    so a sink may query the manager (from any thread) while handling one.
    """

    def handle(self, event: TopologyEvent) -> None:
        """Receive one topology event.

        Args:
            event: Observation emitted by the room manager
        """
        ...
