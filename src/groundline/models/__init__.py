"""SQLAlchemy ORM models."""

from groundline.models.base import Base
from groundline.models.knowledge import KnowledgeChunk

__all__ = [
    "Base",
    "KnowledgeChunk",
]
