"""Hashing utilities for peer_routing.

This module provides deterministic hash functions for deriving stable
indices from opaque node identifiers.
"""

import hashlib
import string

__all__ = [
    "hash_text",
    "prefix_value",
    "stable_index",
]

PREFIX_LENGTH = 2


def hash_text(text: str) -> str:
    """Generate SHA256 hash of text.

    Args:
        text: Input text to hash

    Returns:
        Hexadecimal SHA256 hash string
    """
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def prefix_value(identifier: str, length: int = PREFIX_LENGTH) -> int:
    """Convert a fixed-length identifier prefix into an integer.

    Node ids are usually hex digests, in which case the prefix is read
    as hexadecimal. Any other prefix is hashed so the result is still
    a pure function of the identifier.

    Args:
        identifier: Opaque node identifier
        length: Number of leading characters to use

    Returns:
        Non-negative integer derived from the prefix
    """
    prefix = identifier[:length]
    if prefix and all(char in string.hexdigits for char in prefix):
        return int(prefix, 16)
    return int(hash_text(prefix)[:8], 16)


def stable_index(identifier: str, modulo: int, length: int = PREFIX_LENGTH) -> int:
    """Map an identifier to a stable index in ``range(modulo)``.

    Args:
        identifier: Opaque node identifier
        modulo: Number of buckets
        length: Number of leading characters to use

    Returns:
        Bucket index
    """
    return prefix_value(identifier, length) % modulo
