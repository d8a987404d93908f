"""Proposal models for peer_routing.

A proposal payload is a tree of terms. Each term shape carries topic
identifiers; compound terms nest further terms under named fields.
"""

from typing import Annotated, Literal

from pydantic import BaseModel, Field

__all__ = [
    "AtomicTerm",
    "ChainTerm",
    "CompoundTerm",
    "FusionTerm",
    "Proposal",
    "Term",
]


class AtomicTerm(BaseModel, frozen=True):
    """Single topic identifier."""

    kind: Literal["atomic"] = "atomic"
    topic: int


class FusionTerm(BaseModel, frozen=True):
    """Fusion of three topic identifiers (p + q + r)."""

    kind: Literal["fusion"] = "fusion"
    p: int
    q: int
    r: int


class ChainTerm(BaseModel, frozen=True):
    """Head topic qualified by a list of modifier topics."""

    kind: Literal["chain"] = "chain"
    head: int
    modifiers: list[int] = Field(default_factory=list)


class CompoundTerm(BaseModel, frozen=True):
    """Composite term with nested sub-terms.

    Application-style compounds use ``function``/``argument``; binary
    compounds use ``left``/``right``. Any subset may be present.
    """

    kind: Literal["compound"] = "compound"
    function: "Term | None" = None
    argument: "Term | None" = None
    left: "Term | None" = None
    right: "Term | None" = None

    @property
    def children(self) -> list["Term"]:
        """Present sub-terms in field order."""
        return [
            term
            for term in (self.function, self.argument, self.left, self.right)
            if term is not None
        ]


Term = Annotated[
    AtomicTerm | FusionTerm | ChainTerm | CompoundTerm,
    Field(discriminator="kind"),
]

CompoundTerm.model_rebuild()


class Proposal(BaseModel, frozen=True):
    """Unit of work to be selectively routed.

    Attributes:
        proposal_id: Optional caller-supplied identifier (for logging)
        term: Topic-bearing payload (absent means no topic information)
        semantic_vector: Position along the 16 semantic axes, each finite and roughly
            in [-1, 1]. Missing axes read as 0; extra components are ignored.
        schema_version: Schema version for forward compatibility
    """

    proposal_id: str | None = None
    term: Term | None = None
    semantic_vector: list[Annotated[float, Field(allow_inf_nan=False)]] | None = None
    schema_version: int = Field(default=1)
