"""Semantic taxonomy and topic universe for peer_routing.

This module holds the immutable configuration every component shares:
the 100-element topic universe, the 16 semantic axes, and the grouping
of those axes into 4 cyclically ordered semantic domains.
"""

from enum import StrEnum

__all__ = [
    "AXIS_COUNT",
    "AXIS_NAMES",
    "DOMAIN_AXES",
    "DOMAIN_DESCRIPTIONS",
    "TOPIC_UNIVERSE",
    "SemanticDomain",
    "axes_for",
    "coerce_domain",
    "next_domain",
    "topics_for_domain",
]

# First 100 primes. Only distinctness and ordering matter for routing.
TOPIC_UNIVERSE: tuple[int, ...] = (
    2, 3, 5, 7, 11, 13, 17, 19, 23, 29,
    31, 37, 41, 43, 47, 53, 59, 61, 67, 71,
    73, 79, 83, 89, 97, 101, 103, 107, 109, 113,
    127, 131, 137, 139, 149, 151, 157, 163, 167, 173,
    179, 181, 191, 193, 197, 199, 211, 223, 227, 229,
    233, 239, 241, 251, 257, 263, 269, 271, 277, 281,
    283, 293, 307, 311, 313, 317, 331, 337, 347, 349,
    353, 359, 367, 373, 379, 383, 389, 397, 401, 409,
    419, 421, 431, 433, 439, 443, 449, 457, 461, 463,
    467, 479, 487, 491, 499, 503, 509, 521, 523, 541,
)  # fmt: skip

AXIS_NAMES: tuple[str, ...] = (
    "coherence", "identity", "duality", "structure",
    "change", "life", "harmony", "wisdom",
    "infinity", "creation", "truth", "love",
    "power", "time", "space", "consciousness",
)  # fmt: skip

AXIS_COUNT = len(AXIS_NAMES)


class SemanticDomain(StrEnum):
    """Semantic domains, in their fixed cyclic order.

    Each domain groups 4 consecutive semantic axes.
    """

    PERCEPTUAL = "perceptual"
    COGNITIVE = "cognitive"
    TEMPORAL = "temporal"
    META = "meta"


DOMAIN_AXES: dict[SemanticDomain, frozenset[int]] = {
    SemanticDomain.PERCEPTUAL: frozenset({0, 1, 2, 3}),
    SemanticDomain.COGNITIVE: frozenset({4, 5, 6, 7}),
    SemanticDomain.TEMPORAL: frozenset({8, 9, 10, 11}),
    SemanticDomain.META: frozenset({12, 13, 14, 15}),
}

DOMAIN_DESCRIPTIONS: dict[SemanticDomain, str] = {
    SemanticDomain.PERCEPTUAL: "Coherence, identity, duality, structure",
    SemanticDomain.COGNITIVE: "Change, life, harmony, wisdom",
    SemanticDomain.TEMPORAL: "Infinity, creation, truth, love",
    SemanticDomain.META: "Power, time, space, consciousness",
}

_DOMAIN_ORDER: tuple[SemanticDomain, ...] = tuple(SemanticDomain)


def axes_for(domain: SemanticDomain) -> frozenset[int]:
    """Return the axis indices grouped under a domain."""
    return DOMAIN_AXES[domain]


def next_domain(domain: SemanticDomain) -> SemanticDomain:
    """Return the domain after ``domain`` in cyclic order (wraps around)."""
    index = _DOMAIN_ORDER.index(domain)
    return _DOMAIN_ORDER[(index + 1) % len(_DOMAIN_ORDER)]


def topics_for_domain(domain: SemanticDomain) -> frozenset[int]:
    """Return the contiguous topic-universe slice statically owned by a domain.

    The universe is split into one equal slice per domain, independent of
    how many nodes are in the network.

    Args:
        domain: Semantic domain

    Returns:
        Frozen set of topic identifiers
    """
    index = _DOMAIN_ORDER.index(domain)
    chunk = -(-len(TOPIC_UNIVERSE) // len(_DOMAIN_ORDER))
    return frozenset(TOPIC_UNIVERSE[index * chunk : (index + 1) * chunk])


def coerce_domain(value: str | SemanticDomain | None) -> SemanticDomain | None:
    """Convert a raw domain name to a SemanticDomain.

    Args:
        value: Domain name as supplied by a caller

    Returns:
        Matching SemanticDomain, or None if absent or unknown
    """
    if value is None:
        return None
    try:
        return SemanticDomain(value)
    except ValueError:
        return None
