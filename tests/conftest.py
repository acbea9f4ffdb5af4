"""Shared test fixtures: file-backed SQLite, session factory, fakes."""

import os

# Demo API keys only. Set unconditionally at import time so real keys
# in the shell environment never reach a provider from the test suite.
os.environ["OPENAI_API_KEY"] = "for-demo-purposes-only"
os.environ["GROUNDLINE_OPENAI_API_KEY"] = "for-demo-purposes-only"

from pathlib import Path

import pytest
import pytest_asyncio
from circuitbreaker import CircuitBreakerMonitor
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
)

from groundline.config import (
    Settings,
    create_app_engine,
    create_session_factory,
)
from groundline.knowledge.store import KnowledgeStore
from groundline.models.base import Base
from groundline.registry import (
    ContainerNode,
    DocumentNode,
    EntityTree,
    IdMapping,
    ItemNode,
    SubItemNode,
    build_id_mapping,
)
from groundline.repositories.chunk_repo import SqlKnowledgeChunkRepository
from groundline.repositories.fakes import (
    FakeKnowledgeChunkRepository,
    FakeVectorIndex,
)


@pytest.fixture(autouse=True)
def _reset_breakers() -> None:
    """Reset circuit breakers between tests."""
    for cb in CircuitBreakerMonitor.get_circuits():
        cb.reset()  # type: ignore[union-attr]


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings pointing every store at the test's tmp dir."""
    return Settings(
        database_url=f"sqlite:///{tmp_path / 'groundline.db'}",
        data_dir=tmp_path,
        lancedb_uri=str(tmp_path / "lancedb"),
        litellm_embedding_model="openai/text-embedding-3-small",
        embedding_dimensions={"openai/text-embedding-3-small": 3},
    )


@pytest_asyncio.fixture
async def engine(settings: Settings):
    """Function-scoped file DB; the session factory opens several
    connections, which an in-memory database would not share."""
    engine = create_app_engine(settings.database_url)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(
    engine: AsyncEngine,
) -> async_sessionmaker[AsyncSession]:
    return create_session_factory(engine)


@pytest.fixture
def chunk_repo(
    session_factory: async_sessionmaker[AsyncSession],
) -> SqlKnowledgeChunkRepository:
    return SqlKnowledgeChunkRepository(session_factory)


@pytest.fixture
def fake_chunks() -> FakeKnowledgeChunkRepository:
    return FakeKnowledgeChunkRepository()


@pytest.fixture
def fake_vectors() -> FakeVectorIndex:
    return FakeVectorIndex()


@pytest.fixture
def store(
    fake_chunks: FakeKnowledgeChunkRepository,
    fake_vectors: FakeVectorIndex,
    settings: Settings,
) -> KnowledgeStore:
    """Knowledge store over the in-memory fakes."""
    return KnowledgeStore(fake_chunks, fake_vectors, settings)


@pytest.fixture
def sample_tree() -> EntityTree:
    """Two pages, two projects; the first project has bullets/branches."""
    return EntityTree(
        documents=[
            DocumentNode(id="page_intro", text="About me"),
            DocumentNode(id="page_audio", text="Standup recording"),
        ],
        containers=[
            ContainerNode(
                id="proj_abc",
                text="Search platform",
                items=[
                    ItemNode(
                        id="bp_1",
                        text="Built the ingestion service",
                        subitems=[
                            SubItemNode(id="br_1", text="Kafka consumers"),
                            SubItemNode(id="br_2", text="Backfill jobs"),
                        ],
                    ),
                    ItemNode(id="bp_2", text="Cut p99 latency in half"),
                ],
            ),
            ContainerNode(
                id="proj_def",
                text="Billing",
                items=[ItemNode(id="bp_3", text="Migrated invoices")],
            ),
        ],
    )


@pytest.fixture
def sample_mapping(sample_tree: EntityTree) -> IdMapping:
    return build_id_mapping(sample_tree)
