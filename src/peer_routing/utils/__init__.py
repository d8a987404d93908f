"""Utility functions for peer_routing.

This module contains internal utility functions.
"""

from peer_routing.utils.hashing import hash_text, prefix_value, stable_index

__all__ = [
    "hash_text",
    "prefix_value",
    "stable_index",
]
