"""Knowledge Store: persisted text + vector index with hybrid search."""

from groundline.knowledge.schemas import (
    SearchResult,
    VectorHit,
    VectorRecord,
)
from groundline.knowledge.store import KnowledgeStore, open_knowledge_store

__all__ = [
    "KnowledgeStore",
    "SearchResult",
    "VectorHit",
    "VectorRecord",
    "open_knowledge_store",
]
