"""Protocol-based repository interfaces.

SQL and LanceDB implementations satisfy these protocols structurally
(no inheritance). Test doubles can be plain classes matching the same
signature.
"""

from typing import Protocol

from groundline.knowledge.schemas import VectorHit, VectorRecord
from groundline.models.knowledge import KnowledgeChunk


class KnowledgeChunkRepository(Protocol):
    async def get_by_hash(
        self, scope_id: str, chunk_hash: str
    ) -> KnowledgeChunk | None: ...
    async def exists_by_hash(
        self, scope_id: str, chunk_hash: str
    ) -> bool: ...
    async def upsert(self, chunk: KnowledgeChunk) -> KnowledgeChunk: ...
    async def get_many(
        self, chunk_ids: list[str]
    ) -> list[KnowledgeChunk]: ...
    async def search_text(
        self,
        scope_id: str,
        keywords: list[str],
        limit: int,
        source_types: list[str] | None = None,
    ) -> list[KnowledgeChunk]: ...
    async def delete_by_source(
        self, source_type: str, source_id: str
    ) -> list[str]: ...


class VectorIndex(Protocol):
    async def add(self, records: list[VectorRecord]) -> None: ...
    async def search(
        self,
        scope_id: str,
        vector: list[float],
        model: str,
        limit: int,
    ) -> list[VectorHit]: ...
    async def delete(self, chunk_ids: list[str]) -> None: ...
