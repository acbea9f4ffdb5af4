"""Content ingestion: normalize, chunk and fingerprint source text."""

from groundline.ingestion.chunker import build_chunks, chunk_text
from groundline.ingestion.schemas import ChunkOptions, TextChunk
from groundline.ingestion.text import (
    extract_block_text,
    fnv1a32,
    normalize_text,
)

__all__ = [
    "ChunkOptions",
    "TextChunk",
    "build_chunks",
    "chunk_text",
    "extract_block_text",
    "fnv1a32",
    "normalize_text",
]
