"""Embedding pipeline: chunks to vectors, indexed by content hash."""

from groundline.embedding.embedder import (
    embed_chunks,
    embed_query,
    generate_embeddings,
    index_derived_points,
    index_source,
)
from groundline.embedding.schemas import (
    ChunkEmbedding,
    EmbeddingOptions,
    IndexReport,
)

__all__ = [
    "ChunkEmbedding",
    "EmbeddingOptions",
    "IndexReport",
    "embed_chunks",
    "embed_query",
    "generate_embeddings",
    "index_derived_points",
    "index_source",
]
