"""In-memory fake repositories for testing.

Dict-backed implementations of the chunk repository and vector index
protocols. No SQLAlchemy, no LanceDB, no I/O.
"""

from __future__ import annotations

import math
import uuid
from datetime import UTC, datetime

from groundline.knowledge.schemas import VectorHit, VectorRecord
from groundline.models.knowledge import KnowledgeChunk


class FakeKnowledgeChunkRepository:
    """Dict-backed KnowledgeChunkRepository for testing."""

    def __init__(self) -> None:
        self._store: dict[str, KnowledgeChunk] = {}

    async def get_by_hash(
        self, scope_id: str, chunk_hash: str
    ) -> KnowledgeChunk | None:
        for chunk in self._store.values():
            if chunk.scope_id == scope_id and chunk.hash == chunk_hash:
                return chunk
        return None

    async def exists_by_hash(
        self, scope_id: str, chunk_hash: str
    ) -> bool:
        return await self.get_by_hash(scope_id, chunk_hash) is not None

    async def upsert(self, chunk: KnowledgeChunk) -> KnowledgeChunk:
        existing = await self.get_by_hash(chunk.scope_id, chunk.hash)
        if existing is not None:
            existing.source_type = chunk.source_type
            existing.source_id = chunk.source_id
            existing.chunk_index = chunk.chunk_index
            existing.updated_at = datetime.now(UTC)
            return existing
        if not chunk.id:
            chunk.id = str(uuid.uuid4())
        now = datetime.now(UTC)
        chunk.created_at = now
        chunk.updated_at = now
        self._store[chunk.id] = chunk
        return chunk

    async def get_many(
        self, chunk_ids: list[str]
    ) -> list[KnowledgeChunk]:
        return [self._store[i] for i in chunk_ids if i in self._store]

    async def search_text(
        self,
        scope_id: str,
        keywords: list[str],
        limit: int,
        source_types: list[str] | None = None,
    ) -> list[KnowledgeChunk]:
        lowered = [kw.lower() for kw in keywords]
        results = [
            c
            for c in self._store.values()
            if c.scope_id == scope_id
            and (not source_types or c.source_type in source_types)
            and any(kw in c.text.lower() for kw in lowered)
        ]
        return results[:limit]

    async def delete_by_source(
        self, source_type: str, source_id: str
    ) -> list[str]:
        doomed = [
            cid
            for cid, c in self._store.items()
            if c.source_type == source_type and c.source_id == source_id
        ]
        for cid in doomed:
            del self._store[cid]
        return doomed

    @property
    def chunks(self) -> list[KnowledgeChunk]:
        return list(self._store.values())


class FakeVectorIndex:
    """List-backed VectorIndex with brute-force cosine search."""

    def __init__(self) -> None:
        self.records: list[VectorRecord] = []

    async def add(self, records: list[VectorRecord]) -> None:
        self.records.extend(records)

    async def search(
        self,
        scope_id: str,
        vector: list[float],
        model: str,
        limit: int,
    ) -> list[VectorHit]:
        hits = [
            VectorHit(
                chunk_id=r.chunk_id,
                similarity=_cosine(vector, r.vector),
            )
            for r in self.records
            if r.scope_id == scope_id
            and r.model == model
            and r.dim == len(vector)
        ]
        hits.sort(key=lambda h: h.similarity, reverse=True)
        return hits[:limit]

    async def delete(self, chunk_ids: list[str]) -> None:
        doomed = set(chunk_ids)
        self.records = [
            r for r in self.records if r.chunk_id not in doomed
        ]


def _cosine(a: list[float], b: list[float]) -> float:
    dot = sum(x * y for x, y in zip(a, b, strict=True))
    norm = math.sqrt(sum(x * x for x in a)) * math.sqrt(
        sum(y * y for y in b)
    )
    return dot / norm if norm else 0.0
