"""Hybrid scoring: cosine vector hits fused with lexical token overlap."""

from __future__ import annotations

import re

from groundline.knowledge.schemas import SearchResult
from groundline.models.knowledge import KnowledgeChunk

_NON_ALNUM_RE = re.compile(r"[^a-z0-9\s]")

_STOP_WORDS = frozenset(
    {
        "the",
        "a",
        "an",
        "is",
        "are",
        "was",
        "were",
        "in",
        "on",
        "at",
        "to",
        "for",
        "of",
        "and",
        "or",
        "not",
        "with",
        "this",
        "that",
        "from",
        "by",
        "it",
        "what",
        "how",
        "did",
        "does",
        "do",
        "can",
        "where",
        "which",
        "who",
        "when",
    }
)


def tokenize(text: str) -> list[str]:
    """Lowercase alphanumeric tokens; punctuation acts as a separator."""
    return _NON_ALNUM_RE.sub(" ", text.lower()).split()


def extract_keywords(query: str) -> list[str]:
    """Keywords for the SQL text search (>2 chars, no stop words)."""
    seen: set[str] = set()
    keywords: list[str] = []
    for token in tokenize(query):
        if len(token) > 2 and token not in _STOP_WORDS and token not in seen:
            seen.add(token)
            keywords.append(token)
    return keywords


def normalize_cosine(similarity: float) -> float:
    """Map a cosine similarity from [-1, 1] onto [0, 1]."""
    clamped = max(-1.0, min(1.0, similarity))
    return (clamped + 1.0) / 2.0


def lexical_overlap(query: str, text: str) -> float:
    """Fraction of query tokens that occur in ``text`` (0..1)."""
    query_tokens = tokenize(query)
    if not query_tokens:
        return 0.0
    text_tokens = set(tokenize(text))
    hits = sum(1 for tok in query_tokens if tok in text_tokens)
    return min(1.0, hits / len(query_tokens))


def fuse_results(
    query: str,
    vector_hits: list[tuple[KnowledgeChunk, float]],
    lexical_hits: list[KnowledgeChunk],
    limit: int,
    vector_weight: float,
    lexical_weight: float,
) -> list[SearchResult]:
    """Weighted fusion of vector and keyword candidates.

    ``vector_hits`` pairs each chunk with its raw cosine similarity.
    A chunk found by both paths keeps its vector score and takes the
    better lexical score. Results are ordered by fused score, highest
    first, and cut to ``limit``.
    """
    scores: dict[str, list[float]] = {}
    chunks: dict[str, KnowledgeChunk] = {}

    for chunk, similarity in vector_hits:
        chunks[chunk.id] = chunk
        scores[chunk.id] = [normalize_cosine(similarity), 0.0]

    for chunk in lexical_hits:
        lex = lexical_overlap(query, chunk.text)
        if chunk.id in scores:
            scores[chunk.id][1] = max(scores[chunk.id][1], lex)
        else:
            chunks[chunk.id] = chunk
            scores[chunk.id] = [0.0, lex]

    fused: list[SearchResult] = []
    for chunk_id, (vec, lex) in scores.items():
        chunk = chunks[chunk_id]
        fused.append(
            SearchResult(
                chunk_id=chunk_id,
                source_type=chunk.source_type,
                source_id=chunk.source_id,
                text=chunk.text,
                chunk_index=chunk.chunk_index,
                score=vector_weight * vec + lexical_weight * lex,
                vector_score=vec,
                lexical_score=lex,
            )
        )
    fused.sort(key=lambda r: r.score, reverse=True)
    return fused[:limit]
