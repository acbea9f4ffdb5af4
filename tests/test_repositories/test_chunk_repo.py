"""CRUD tests for SqlKnowledgeChunkRepository."""

from groundline.models.knowledge import KnowledgeChunk
from groundline.repositories.chunk_repo import SqlKnowledgeChunkRepository


def _chunk(
    text: str,
    chunk_hash: str,
    *,
    scope_id: str = "resume_1",
    source_type: str = "item",
    source_id: str = "bp_1",
    chunk_index: int = 0,
) -> KnowledgeChunk:
    return KnowledgeChunk(
        scope_id=scope_id,
        source_type=source_type,
        source_id=source_id,
        text=text,
        chunk_index=chunk_index,
        hash=chunk_hash,
    )


async def test_upsert_creates_and_finds_by_hash(
    chunk_repo: SqlKnowledgeChunkRepository,
) -> None:
    stored = await chunk_repo.upsert(_chunk("Built X", "00000001"))
    assert stored.id
    found = await chunk_repo.get_by_hash("resume_1", "00000001")
    assert found is not None
    assert found.id == stored.id
    assert found.text == "Built X"
    assert await chunk_repo.exists_by_hash("resume_1", "00000001")
    assert not await chunk_repo.exists_by_hash("resume_2", "00000001")


async def test_upsert_same_hash_updates_metadata(
    chunk_repo: SqlKnowledgeChunkRepository,
) -> None:
    first = await chunk_repo.upsert(_chunk("Built X", "00000002"))
    second = await chunk_repo.upsert(
        _chunk("Built X", "00000002", source_id="bp_7", chunk_index=3)
    )
    assert second.id == first.id
    found = await chunk_repo.get_by_hash("resume_1", "00000002")
    assert found is not None
    assert found.source_id == "bp_7"
    assert found.chunk_index == 3


async def test_same_hash_in_two_scopes(
    chunk_repo: SqlKnowledgeChunkRepository,
) -> None:
    a = await chunk_repo.upsert(_chunk("Shared", "00000003"))
    b = await chunk_repo.upsert(
        _chunk("Shared", "00000003", scope_id="resume_2")
    )
    assert a.id != b.id


async def test_get_many(chunk_repo: SqlKnowledgeChunkRepository) -> None:
    a = await chunk_repo.upsert(_chunk("one", "00000004"))
    b = await chunk_repo.upsert(_chunk("two", "00000005"))
    assert await chunk_repo.get_many([]) == []
    rows = await chunk_repo.get_many([a.id, b.id, "missing"])
    assert {r.id for r in rows} == {a.id, b.id}


async def test_search_text_matches_any_keyword(
    chunk_repo: SqlKnowledgeChunkRepository,
) -> None:
    await chunk_repo.upsert(_chunk("Wrote KAFKA consumers", "00000006"))
    await chunk_repo.upsert(
        _chunk("Stripe billing", "00000007", source_id="bp_2")
    )
    await chunk_repo.upsert(
        _chunk("Kafka elsewhere", "00000008", scope_id="resume_2")
    )
    rows = await chunk_repo.search_text("resume_1", ["kafka", "stripe"], 10)
    assert sorted(r.text for r in rows) == [
        "Stripe billing",
        "Wrote KAFKA consumers",
    ]
    assert await chunk_repo.search_text("resume_1", [], 10) == []


async def test_search_text_filters_source_types(
    chunk_repo: SqlKnowledgeChunkRepository,
) -> None:
    await chunk_repo.upsert(_chunk("Kafka bullet", "00000009"))
    await chunk_repo.upsert(
        _chunk(
            "Kafka page",
            "00000010",
            source_type="document",
            source_id="page_1",
        )
    )
    rows = await chunk_repo.search_text(
        "resume_1", ["kafka"], 10, source_types=["document"]
    )
    assert [r.text for r in rows] == ["Kafka page"]


async def test_delete_by_source(
    chunk_repo: SqlKnowledgeChunkRepository,
) -> None:
    a = await chunk_repo.upsert(_chunk("one", "00000011"))
    b = await chunk_repo.upsert(_chunk("two", "00000012", chunk_index=1))
    await chunk_repo.upsert(_chunk("other", "00000013", source_id="bp_2"))
    deleted = await chunk_repo.delete_by_source("item", "bp_1")
    assert set(deleted) == {a.id, b.id}
    assert await chunk_repo.get_by_hash("resume_1", "00000011") is None
    assert await chunk_repo.exists_by_hash("resume_1", "00000013")
    assert await chunk_repo.delete_by_source("item", "bp_1") == []
