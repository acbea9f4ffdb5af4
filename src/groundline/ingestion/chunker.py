"""Paragraph-aware, overlapping text chunking."""

from __future__ import annotations

import logging
import re

from groundline.constants import EntityKind
from groundline.ingestion.schemas import ChunkOptions, TextChunk
from groundline.ingestion.text import fnv1a32, normalize_text

logger = logging.getLogger(__name__)

_BLANK_LINE = re.compile(r"\n\s*\n")


def chunk_text(
    text: str,
    options: ChunkOptions | None = None,
) -> list[str]:
    """Split text into ordered chunks of at most ``chunk_size`` chars.

    * Paragraphs (blank-line separated) that fit become one chunk.
    * Longer paragraphs are cut with a sliding window that advances by
      ``chunk_size - overlap``; the last window ends at the paragraph end.
    * ``overlap >= chunk_size`` is clamped to ``chunk_size - 1``.

    Same input and options always give the same chunks.
    """
    opts = options or ChunkOptions()
    chunk_size, overlap = _resolve_window(opts)

    normalized = normalize_text(text or "", opts.normalize_whitespace)
    if not normalized:
        return []

    chunks: list[str] = []
    for paragraph in _split_paragraphs(normalized):
        if len(paragraph) <= chunk_size:
            chunks.append(paragraph)
        else:
            chunks.extend(_window_split(paragraph, chunk_size, overlap))
    return chunks


def build_chunks(
    text: str,
    source_type: EntityKind,
    source_id: str,
    options: ChunkOptions | None = None,
) -> list[TextChunk]:
    """Chunk ``text`` and attach index, fingerprint and source."""
    return [
        TextChunk(
            content=content,
            chunk_index=index,
            hash=fnv1a32(content),
            source_type=source_type,
            source_id=source_id,
        )
        for index, content in enumerate(chunk_text(text, options))
    ]


def _resolve_window(opts: ChunkOptions) -> tuple[int, int]:
    if opts.chunk_size < 1:
        msg = f"chunk_size must be at least 1, got {opts.chunk_size}"
        raise ValueError(msg)
    overlap = max(0, opts.overlap)
    if overlap >= opts.chunk_size:
        logger.warning(
            "event=chunk_overlap_clamped overlap=%d chunk_size=%d",
            overlap,
            opts.chunk_size,
        )
        overlap = opts.chunk_size - 1
    return opts.chunk_size, overlap


def _split_paragraphs(text: str) -> list[str]:
    return [p.strip() for p in _BLANK_LINE.split(text) if p.strip()]


def _window_split(
    paragraph: str, chunk_size: int, overlap: int
) -> list[str]:
    """Hard-split an oversized paragraph with overlapping windows."""
    windows: list[str] = []
    start = 0
    while start < len(paragraph):
        end = min(start + chunk_size, len(paragraph))
        windows.append(paragraph[start:end])
        if end == len(paragraph):
            break
        start = end - overlap
    return windows
