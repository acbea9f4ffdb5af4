"""Pydantic models for the embedding data flow."""

from pydantic import BaseModel


class EmbeddingOptions(BaseModel):
    """Per-call overrides; ``None`` falls back to Settings."""

    model: str | None = None
    chunk_size: int | None = None
    overlap: int | None = None
    normalize_whitespace: bool | None = None


class ChunkEmbedding(BaseModel):
    """A chunk together with the vector produced for it."""

    content: str
    chunk_index: int
    hash: str
    embedding: list[float]
    model: str
    dim: int


class IndexReport(BaseModel):
    """Outcome of indexing one source into the Knowledge Store."""

    total_chunks: int = 0
    skipped: int = 0
    written: int = 0
