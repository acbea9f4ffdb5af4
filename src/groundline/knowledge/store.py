"""Knowledge Store: hashed text chunks plus their vectors.

Combines a chunk repository (text, hash, source metadata) with a
vector index. Both are injected so tests can swap in the in-memory
fakes from ``groundline.repositories.fakes``.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from groundline.config import (
    Settings,
    create_app_engine,
    create_session_factory,
)
from groundline.constants import SEARCH_MIN_CANDIDATES
from groundline.knowledge.schemas import SearchResult, VectorRecord
from groundline.knowledge.search import extract_keywords, fuse_results
from groundline.knowledge.vector_index import LanceVectorIndex
from groundline.models.base import Base
from groundline.models.knowledge import KnowledgeChunk
from groundline.repositories.chunk_repo import SqlKnowledgeChunkRepository
from groundline.repositories.protocols import (
    KnowledgeChunkRepository,
    VectorIndex,
)

logger = logging.getLogger(__name__)


class KnowledgeStore:
    """Text + vector index scoped per content tree and per source type."""

    def __init__(
        self,
        chunks: KnowledgeChunkRepository,
        vectors: VectorIndex,
        settings: Settings | None = None,
    ) -> None:
        self._chunks = chunks
        self._vectors = vectors
        self._settings = settings or Settings()

    async def exists_by_hash(self, scope_id: str, chunk_hash: str) -> bool:
        return await self._chunks.exists_by_hash(scope_id, chunk_hash)

    async def upsert(
        self,
        scope_id: str,
        source_type: str,
        source_id: str,
        content: str,
        chunk_index: int,
        chunk_hash: str,
        vector: list[float],
        model: str,
        dim: int,
    ) -> KnowledgeChunk:
        """Insert a chunk and its vector, or refresh an existing chunk.

        A ``(scope_id, hash)`` already present only has its source
        metadata and index updated; its stored vector is kept.
        """
        existing = await self._chunks.get_by_hash(scope_id, chunk_hash)
        if existing is not None:
            existing.source_type = source_type
            existing.source_id = source_id
            existing.chunk_index = chunk_index
            return await self._chunks.upsert(existing)

        chunk_id = str(uuid.uuid4())
        await self._vectors.add(
            [
                VectorRecord(
                    chunk_id=chunk_id,
                    scope_id=scope_id,
                    model=model,
                    dim=dim,
                    vector=vector,
                )
            ]
        )
        chunk = KnowledgeChunk(
            id=chunk_id,
            scope_id=scope_id,
            source_type=source_type,
            source_id=source_id,
            text=content,
            chunk_index=chunk_index,
            hash=chunk_hash,
        )
        stored = await self._chunks.upsert(chunk)
        logger.debug(
            "event=chunk_stored scope=%s source=%s/%s index=%d hash=%s",
            scope_id,
            source_type,
            source_id,
            chunk_index,
            chunk_hash,
        )
        return stored

    async def search(
        self,
        scope_id: str,
        query: str,
        query_vector: list[float] | None,
        model: str,
        limit: int | None = None,
        source_types: list[str] | None = None,
        min_score: float | None = None,
    ) -> list[SearchResult]:
        """Hybrid search inside one scope.

        Vector hits below ``min_score`` (raw cosine) are discarded
        before fusion. Without a query vector the search is keyword-only.
        """
        cfg = self._settings
        limit = limit or cfg.search_default_limit
        min_score = cfg.search_min_score if min_score is None else min_score
        candidates = max(limit, SEARCH_MIN_CANDIDATES)

        vector_hits: list[tuple[KnowledgeChunk, float]] = []
        if query_vector:
            hits = await self._vectors.search(
                scope_id, query_vector, model, candidates
            )
            hits = [h for h in hits if h.similarity >= min_score]
            rows = await self._chunks.get_many([h.chunk_id for h in hits])
            by_id = {row.id: row for row in rows}
            for hit in hits:
                row = by_id.get(hit.chunk_id)
                if row is None:
                    continue
                if source_types and row.source_type not in source_types:
                    continue
                vector_hits.append((row, hit.similarity))

        lexical_hits = await self._chunks.search_text(
            scope_id, extract_keywords(query), candidates, source_types
        )

        results = fuse_results(
            query,
            vector_hits,
            lexical_hits,
            limit,
            cfg.search_vector_weight,
            cfg.search_lexical_weight,
        )
        logger.info(
            "event=knowledge_search scope=%s vector_hits=%d "
            "lexical_hits=%d results=%d",
            scope_id,
            len(vector_hits),
            len(lexical_hits),
            len(results),
        )
        return results

    async def remove_source(self, source_type: str, source_id: str) -> int:
        """Delete every chunk and vector of one source."""
        chunk_ids = await self._chunks.delete_by_source(
            source_type, source_id
        )
        await self._vectors.delete(chunk_ids)
        return len(chunk_ids)


@asynccontextmanager
async def open_knowledge_store(
    settings: Settings | None = None,
) -> AsyncIterator[KnowledgeStore]:
    """SQL-backed chunks plus LanceDB vectors, tables created on entry."""
    cfg = settings or Settings()
    cfg.data_dir.mkdir(parents=True, exist_ok=True)
    engine = create_app_engine(cfg.database_url)
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        yield KnowledgeStore(
            SqlKnowledgeChunkRepository(create_session_factory(engine)),
            LanceVectorIndex(cfg),
            cfg,
        )
    finally:
        await engine.dispose()
