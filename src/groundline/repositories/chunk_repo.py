"""SQL implementation of KnowledgeChunkRepository."""

from datetime import UTC, datetime

from sqlalchemy import delete as sa_delete
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from groundline.models.knowledge import KnowledgeChunk


class SqlKnowledgeChunkRepository:
    """Chunk repo that owns its own sessions.

    Chunks are written from the embedding pipeline rather than a
    request handler, so the repo takes a session factory and opens a
    short-lived session per operation.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
    ) -> None:
        self._session_factory = session_factory

    async def get_by_hash(
        self, scope_id: str, chunk_hash: str
    ) -> KnowledgeChunk | None:
        async with self._session_factory() as session:
            result = await session.execute(
                select(KnowledgeChunk).where(
                    KnowledgeChunk.scope_id == scope_id,
                    KnowledgeChunk.hash == chunk_hash,
                )
            )
            return result.scalar_one_or_none()

    async def exists_by_hash(
        self, scope_id: str, chunk_hash: str
    ) -> bool:
        return await self.get_by_hash(scope_id, chunk_hash) is not None

    async def upsert(self, chunk: KnowledgeChunk) -> KnowledgeChunk:
        async with self._session_factory() as session, session.begin():
            result = await session.execute(
                select(KnowledgeChunk).where(
                    KnowledgeChunk.scope_id == chunk.scope_id,
                    KnowledgeChunk.hash == chunk.hash,
                )
            )
            existing = result.scalar_one_or_none()
            if existing is not None:
                existing.source_type = chunk.source_type
                existing.source_id = chunk.source_id
                existing.chunk_index = chunk.chunk_index
                existing.updated_at = datetime.now(UTC)
                await session.flush()
                return existing
            session.add(chunk)
            await session.flush()
            return chunk

    async def get_many(
        self, chunk_ids: list[str]
    ) -> list[KnowledgeChunk]:
        if not chunk_ids:
            return []
        async with self._session_factory() as session:
            result = await session.execute(
                select(KnowledgeChunk).where(
                    KnowledgeChunk.id.in_(chunk_ids)
                )
            )
            return list(result.scalars().all())

    async def search_text(
        self,
        scope_id: str,
        keywords: list[str],
        limit: int,
        source_types: list[str] | None = None,
    ) -> list[KnowledgeChunk]:
        if not keywords:
            return []
        stmt = select(KnowledgeChunk).where(
            KnowledgeChunk.scope_id == scope_id,
            or_(*(KnowledgeChunk.text.ilike(f"%{kw}%") for kw in keywords)),
        )
        if source_types:
            stmt = stmt.where(KnowledgeChunk.source_type.in_(source_types))
        stmt = stmt.order_by(
            KnowledgeChunk.source_id, KnowledgeChunk.chunk_index
        ).limit(limit)
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def delete_by_source(
        self, source_type: str, source_id: str
    ) -> list[str]:
        """Delete every chunk of one source; return the deleted ids."""
        async with self._session_factory() as session, session.begin():
            result = await session.execute(
                select(KnowledgeChunk.id).where(
                    KnowledgeChunk.source_type == source_type,
                    KnowledgeChunk.source_id == source_id,
                )
            )
            chunk_ids = list(result.scalars().all())
            if chunk_ids:
                await session.execute(
                    sa_delete(KnowledgeChunk).where(
                        KnowledgeChunk.id.in_(chunk_ids)
                    )
                )
            return chunk_ids
