"""Pydantic models for the chunking data flow."""

from pydantic import BaseModel

from groundline.constants import (
    DEFAULT_CHUNK_OVERLAP,
    DEFAULT_CHUNK_SIZE,
    EntityKind,
)


class ChunkOptions(BaseModel):
    """Chunking parameters. Sizes are in characters."""

    chunk_size: int = DEFAULT_CHUNK_SIZE
    overlap: int = DEFAULT_CHUNK_OVERLAP
    normalize_whitespace: bool = True


class TextChunk(BaseModel):
    """One bounded slice of a source's normalized text."""

    content: str
    chunk_index: int
    hash: str
    source_type: EntityKind
    source_id: str
