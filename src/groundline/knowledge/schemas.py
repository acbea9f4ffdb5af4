"""Value types crossing the knowledge-store boundary."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class VectorRecord:
    """One embedding row, keyed by the chunk it belongs to."""

    chunk_id: str
    scope_id: str
    model: str
    dim: int
    vector: list[float]


@dataclass(frozen=True)
class VectorHit:
    """A nearest-neighbour hit; ``similarity`` is cosine in [-1, 1]."""

    chunk_id: str
    similarity: float


@dataclass(frozen=True)
class SearchResult:
    """A fused hybrid-search hit."""

    chunk_id: str
    source_type: str
    source_id: str
    text: str
    chunk_index: int
    score: float
    vector_score: float = 0.0
    lexical_score: float = 0.0
