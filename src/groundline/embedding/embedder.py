"""Embed text chunks through LiteLLM and index them by content hash."""

from __future__ import annotations

import logging
from collections.abc import Callable, Coroutine
from typing import TYPE_CHECKING, Any

import litellm
from circuitbreaker import (
    CircuitBreakerError,
    circuit,  # pyright: ignore[reportUnknownVariableType]
)

from groundline.config import Settings
from groundline.constants import (
    CB_EMBED_FAILURE_THRESHOLD,
    CB_EMBED_RECOVERY_TIMEOUT,
    ERROR_TRUNCATION_CHARS,
    MAX_TOKENS_PER_BATCH,
    MIN_EMBED_CHUNK_SIZE,
    EntityKind,
    estimate_tokens,
)
from groundline.embedding.schemas import (
    ChunkEmbedding,
    EmbeddingOptions,
    IndexReport,
)
from groundline.ingestion.chunker import build_chunks, chunk_text
from groundline.ingestion.schemas import ChunkOptions, TextChunk
from groundline.ingestion.text import fnv1a32, normalize_text
from groundline.knowledge.store import KnowledgeStore
from groundline.resilience.errors import (
    EmbeddingCountMismatchError,
    EmbeddingDimensionError,
    classify_error,
)

logger = logging.getLogger(__name__)

# litellm stubs have partially unknown types; typed alias
if TYPE_CHECKING:
    _aembedding: Callable[..., Coroutine[Any, Any, Any]]
else:
    _aembedding = litellm.aembedding


@circuit(  # pyright: ignore[reportUntypedFunctionDecorator]
    failure_threshold=CB_EMBED_FAILURE_THRESHOLD,
    recovery_timeout=CB_EMBED_RECOVERY_TIMEOUT,
    expected_exception=Exception,
)
async def _guarded_embed(
    model: str, texts: list[str], api_key: str = ""
) -> Any:
    """Circuit-breaker-protected embedding call."""
    if api_key:
        return await _aembedding(model=model, input=texts, api_key=api_key)
    return await _aembedding(model=model, input=texts)


def _batch_texts(
    texts: list[str],
    max_batch_tokens: int = MAX_TOKENS_PER_BATCH,
) -> list[list[tuple[int, str]]]:
    """Split texts into sub-batches that fit within API token limits."""
    batches: list[list[tuple[int, str]]] = []
    current: list[tuple[int, str]] = []
    current_tokens = 0
    for i, text in enumerate(texts):
        est = estimate_tokens(text)
        if current and current_tokens + est > max_batch_tokens:
            batches.append(current)
            current = []
            current_tokens = 0
        current.append((i, text))
        current_tokens += est
    if current:
        batches.append(current)
    return batches


def _chunk_options(
    options: EmbeddingOptions | None, cfg: Settings
) -> ChunkOptions:
    opts = options or EmbeddingOptions()
    chunk_size = (
        opts.chunk_size if opts.chunk_size is not None else cfg.chunk_size
    )
    overlap = (
        opts.overlap if opts.overlap is not None else cfg.chunk_overlap
    )
    normalize = (
        opts.normalize_whitespace
        if opts.normalize_whitespace is not None
        else cfg.normalize_whitespace
    )
    return ChunkOptions(
        chunk_size=max(MIN_EMBED_CHUNK_SIZE, chunk_size),
        overlap=overlap,
        normalize_whitespace=normalize,
    )


def _model_for(options: EmbeddingOptions | None, cfg: Settings) -> str:
    if options is not None and options.model:
        return options.model
    return cfg.litellm_embedding_model


def _check_dimensions(
    vectors: list[list[float]], model: str, cfg: Settings
) -> int:
    """Return the common vector width or raise on any violation."""
    dim = len(vectors[0])
    if dim == 0:
        raise EmbeddingDimensionError(model, 0)
    for vec in vectors[1:]:
        if len(vec) != dim:
            raise EmbeddingDimensionError(model, len(vec), expected=dim)
    declared = cfg.declared_dimension(model)
    if declared is not None and declared != dim:
        raise EmbeddingDimensionError(model, dim, expected=declared)
    return dim


async def embed_chunks(
    texts: list[str],
    model: str | None = None,
    settings: Settings | None = None,
) -> list[list[float]]:
    """Embed texts in order; ``result[i]`` is the vector of ``texts[i]``.

    Raises ``EmbeddingCountMismatchError`` or ``EmbeddingDimensionError``
    when the provider breaks the contract. Provider failures are logged
    with their error class and re-raised. Nothing is retried.
    """
    cfg = settings or Settings()
    model = model or cfg.litellm_embedding_model
    if not texts:
        return []

    vectors: list[list[float]] = [[] for _ in texts]
    for batch in _batch_texts(texts):
        batch_texts = [text for _, text in batch]
        try:
            response: Any = await _guarded_embed(
                model, batch_texts, cfg.openai_api_key
            )
        except CircuitBreakerError:
            logger.warning(
                "event=circuit_open component=embedding action=fail"
            )
            raise
        except Exception as exc:
            logger.error(
                "event=embedding_api_failed model=%s class=%s error=%s",
                model,
                classify_error(exc).value,
                str(exc)[:ERROR_TRUNCATION_CHARS],
            )
            raise

        if len(response.data) != len(batch_texts):
            logger.error(
                "event=embedding_count_mismatch vectors=%d chunks=%d",
                len(response.data),
                len(batch_texts),
            )
            raise EmbeddingCountMismatchError(
                expected=len(batch_texts), received=len(response.data)
            )

        for (orig_idx, _), item in zip(batch, response.data, strict=True):
            vectors[orig_idx] = list(item["embedding"])

    _check_dimensions(vectors, model, cfg)
    return vectors


async def generate_embeddings(
    text: str,
    options: EmbeddingOptions | None = None,
    settings: Settings | None = None,
) -> list[ChunkEmbedding]:
    """Chunk ``text`` and embed every chunk, preserving order.

    Empty or whitespace-only text yields ``[]`` without calling the
    provider. The chunk size is never smaller than 256 characters.
    """
    cfg = settings or Settings()
    model = _model_for(options, cfg)
    chunks = chunk_text(text, _chunk_options(options, cfg))
    if not chunks:
        return []

    vectors = await embed_chunks(chunks, model, cfg)
    dim = len(vectors[0])
    return [
        ChunkEmbedding(
            content=content,
            chunk_index=index,
            hash=fnv1a32(content),
            embedding=vector,
            model=model,
            dim=dim,
        )
        for index, (content, vector) in enumerate(
            zip(chunks, vectors, strict=True)
        )
    ]


async def embed_query(
    text: str,
    options: EmbeddingOptions | None = None,
    settings: Settings | None = None,
) -> list[float]:
    """Vector for a search query (first chunk); ``[]`` for empty text."""
    records = await generate_embeddings(text, options, settings)
    return records[0].embedding if records else []


async def index_source(
    store: KnowledgeStore,
    scope_id: str,
    source_type: EntityKind,
    source_id: str,
    text: str,
    options: EmbeddingOptions | None = None,
    settings: Settings | None = None,
) -> IndexReport:
    """Chunk one source and store the chunks the store does not have.

    Every new vector is obtained before anything is written, so a
    provider failure leaves the store untouched.
    """
    cfg = settings or Settings()
    model = _model_for(options, cfg)
    chunks = build_chunks(
        text, source_type, source_id, _chunk_options(options, cfg)
    )
    return await _index_chunks(store, scope_id, chunks, model, cfg)


async def index_derived_points(
    store: KnowledgeStore,
    scope_id: str,
    source_id: str,
    points: list[str],
    options: EmbeddingOptions | None = None,
    settings: Settings | None = None,
) -> IndexReport:
    """Index each derived point as its own chunk.

    ``chunk_index`` is the point's position in ``points``, so a point
    keeps its number even when earlier points are blank.
    """
    cfg = settings or Settings()
    model = _model_for(options, cfg)
    normalize = (
        cfg.normalize_whitespace
        if options is None or options.normalize_whitespace is None
        else options.normalize_whitespace
    )
    chunks: list[TextChunk] = []
    for position, point in enumerate(points):
        content = normalize_text(point, normalize)
        if not content:
            continue
        chunks.append(
            TextChunk(
                content=content,
                chunk_index=position,
                hash=fnv1a32(content),
                source_type=EntityKind.DERIVED_POINT,
                source_id=source_id,
            )
        )
    return await _index_chunks(store, scope_id, chunks, model, cfg)


async def _index_chunks(
    store: KnowledgeStore,
    scope_id: str,
    chunks: list[TextChunk],
    model: str,
    cfg: Settings,
) -> IndexReport:
    if not chunks:
        return IndexReport()

    fresh: list[TextChunk] = []
    seen: set[str] = set()
    for chunk in chunks:
        if chunk.hash in seen:
            continue
        seen.add(chunk.hash)
        if await store.exists_by_hash(scope_id, chunk.hash):
            continue
        fresh.append(chunk)

    skipped = len(chunks) - len(fresh)
    if not fresh:
        logger.info(
            "event=index_unchanged scope=%s source=%s/%s chunks=%d",
            scope_id,
            chunks[0].source_type,
            chunks[0].source_id,
            len(chunks),
        )
        return IndexReport(total_chunks=len(chunks), skipped=skipped)

    vectors = await embed_chunks([c.content for c in fresh], model, cfg)
    dim = len(vectors[0])
    for chunk, vector in zip(fresh, vectors, strict=True):
        await store.upsert(
            scope_id=scope_id,
            source_type=chunk.source_type,
            source_id=chunk.source_id,
            content=chunk.content,
            chunk_index=chunk.chunk_index,
            chunk_hash=chunk.hash,
            vector=vector,
            model=model,
            dim=dim,
        )

    logger.info(
        "event=index_complete scope=%s source=%s/%s chunks=%d "
        "skipped=%d written=%d",
        scope_id,
        fresh[0].source_type,
        fresh[0].source_id,
        len(chunks),
        skipped,
        len(fresh),
    )
    return IndexReport(
        total_chunks=len(chunks), skipped=skipped, written=len(fresh)
    )
