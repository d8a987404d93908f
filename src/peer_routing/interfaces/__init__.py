"""Interface contracts for peer_routing.

This module exports all Protocol-based interfaces for dependency injection.
"""

from peer_routing.interfaces.events import TopologyEventSink
from peer_routing.interfaces.relevance import RelevanceFactor

__all__ = [
    "RelevanceFactor",
    "TopologyEventSink",
]
