"""Extract citations from assistant text and replace them by placeholders.

One tokenizer pass collects candidate spans for each grammar in
priority order (legacy, compact, bare derived point). A candidate is
kept when it classifies to a citation type and does not overlap a span
already kept; anything else stays in the text verbatim. The kept spans
are then rewritten left to right, so ``{{citation:N}}`` always points
at ``citations[N]``. Placeholder-shaped text already in the input is
escaped as ``{{citation\\:N}}`` so it never takes a citation index.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass

from groundline.citations.grammar import (
    BARE_POINT_RE,
    COMPACT_RE,
    LEGACY_RE,
    LEGACY_TYPES,
    MEDIA_ID_RE,
    PARTIAL_TAIL_RE,
    POINT_RE,
    RESERVED_TYPES,
    SECONDS_RE,
    derived_point_match,
    is_tool_marker,
    type_from_id,
)
from groundline.citations.models import (
    CITATION_CLASSES,
    Citation,
    DerivedPointCitation,
    MediaCitation,
    ParseResult,
)
from groundline.constants import (
    LITERAL_PLACEHOLDER_PATTERN,
    MAX_PENDING_FRAGMENT_CHARS,
    PLACEHOLDER_TEMPLATE,
    CitationType,
)
from groundline.registry.schemas import IdMapping

logger = logging.getLogger(__name__)

_Classifier = Callable[[re.Match[str], IdMapping | None], Citation | None]

_LITERAL_PLACEHOLDER_RE = re.compile(LITERAL_PLACEHOLDER_PATTERN)


@dataclass(frozen=True)
class _Span:
    start: int
    end: int
    citation: Citation


def parse_citations(
    text: str,
    id_mapping: IdMapping | None = None,
    *,
    partial: bool = False,
) -> ParseResult:
    """Parse citations out of ``text``.

    Never raises for citation-shaped input. Unknown short ids keep the
    short id as ``persistent_id`` with ``resolved=False``. With
    ``partial=True`` a trailing unfinished citation is held back in
    ``ParseResult.pending`` so a streaming caller can re-parse the
    growing text on every delta.
    """
    if not text:
        return ParseResult(normalized_text="")

    body, pending = _split_pending(text) if partial else (text, "")
    spans = _tokenize(body, id_mapping)

    parts: list[str] = []
    citations: list[Citation] = []
    last = 0
    for span in spans:
        parts.append(_escape_literals(body[last : span.start]))
        parts.append(PLACEHOLDER_TEMPLATE.format(index=len(citations)))
        citations.append(span.citation)
        last = span.end
    parts.append(_escape_literals(body[last:]))

    logger.debug(
        "event=citations_parsed count=%d unresolved=%d pending_chars=%d",
        len(citations),
        sum(1 for c in citations if not c.resolved),
        len(pending),
    )
    return ParseResult(
        normalized_text="".join(parts),
        citations=citations,
        pending=pending,
    )


def _tokenize(text: str, id_mapping: IdMapping | None) -> list[_Span]:
    grammars: tuple[tuple[re.Pattern[str], _Classifier], ...] = (
        (LEGACY_RE, _classify_legacy),
        (COMPACT_RE, _classify_compact),
        (BARE_POINT_RE, _classify_bare),
    )
    kept: list[_Span] = []
    for pattern, classify in grammars:
        kept.extend(_scan(text, pattern, classify, id_mapping, kept))
    kept.sort(key=lambda s: s.start)
    return kept


def _scan(
    text: str,
    pattern: re.Pattern[str],
    classify: _Classifier,
    id_mapping: IdMapping | None,
    taken: list[_Span],
) -> list[_Span]:
    """Collect non-overlapping spans of one grammar.

    A rejected candidate only advances the scan by one character, so a
    valid citation nested after a stray bracket is still found.
    """
    found: list[_Span] = []
    pos = 0
    while (match := pattern.search(text, pos)) is not None:
        start, end = match.span()
        citation = None
        if not any(s.start < end and start < s.end for s in taken):
            citation = classify(match, id_mapping)
        if citation is None:
            pos = start + 1
            continue
        found.append(_Span(start, end, citation))
        pos = end
    return found


def _classify_legacy(
    match: re.Match[str], id_mapping: IdMapping | None
) -> Citation | None:
    label = match.group(1).strip().lower()
    if label not in LEGACY_TYPES:
        return None
    display = match.group(2)
    short_id = match.group(3).strip()
    citation_type = LEGACY_TYPES[label]
    if citation_type is None:
        citation_type = type_from_id(short_id)
        if citation_type is None:
            return None
    return _build(citation_type, display, short_id, id_mapping)


def _classify_compact(
    match: re.Match[str], id_mapping: IdMapping | None
) -> Citation | None:
    display = match.group(1)
    short_id = match.group(2).strip()
    if is_tool_marker(display):
        return None
    point = derived_point_match(display)
    if point is not None:
        return _build(
            CitationType.DERIVED_POINT,
            f"Echo P{point.group(1)}",
            short_id,
            id_mapping,
        )
    citation_type = type_from_id(short_id)
    if citation_type is None:
        return None
    return _build(citation_type, display, short_id, id_mapping)


def _classify_bare(
    match: re.Match[str], _id_mapping: IdMapping | None
) -> Citation | None:
    point = derived_point_match(match.group(1))
    if point is None:
        return None
    return DerivedPointCitation(
        display_text=f"Echo P{point.group(1)}",
        short_id="",
        persistent_id="",
        resolved=False,
        point_index=int(point.group(1)),
    )


def _build(
    citation_type: CitationType,
    display: str,
    short_id: str,
    id_mapping: IdMapping | None,
) -> Citation:
    if citation_type is CitationType.MEDIA:
        media = MEDIA_ID_RE.match(short_id)
        doc_id = media.group(1) if media else short_id
        persistent_id, resolved = _resolve(doc_id, id_mapping)
        seconds = SECONDS_RE.search(display)
        return MediaCitation(
            display_text=display,
            short_id=short_id,
            persistent_id=persistent_id,
            resolved=resolved,
            media_file_ref=media.group(2) if media else None,
            seconds=int(seconds.group(1)) if seconds else None,
        )

    if citation_type is CitationType.DERIVED_POINT:
        doc_id = short_id.split(":", 1)[0]
        persistent_id, resolved = _resolve(doc_id, id_mapping)
        point = POINT_RE.search(display)
        return DerivedPointCitation(
            display_text=display,
            short_id=short_id,
            persistent_id=persistent_id,
            resolved=resolved,
            point_index=int(point.group(1)) if point else None,
        )

    if citation_type in RESERVED_TYPES:
        persistent_id, resolved = short_id or citation_type.value, True
    else:
        persistent_id, resolved = _resolve(short_id, id_mapping)
    return CITATION_CLASSES[citation_type](
        display_text=display,
        short_id=short_id,
        persistent_id=persistent_id,
        resolved=resolved,
    )


def _resolve(
    short_id: str, id_mapping: IdMapping | None
) -> tuple[str, bool]:
    """Look a short id up; fall back to the short id itself."""
    if id_mapping is not None and short_id:
        persistent_id = id_mapping.persistent_id_for(short_id)
        if persistent_id is not None:
            return persistent_id, True
    return short_id, False


def _split_pending(text: str) -> tuple[str, str]:
    """Separate a trailing, still-growing citation fragment."""
    cut = max(text.rfind("["), text.rfind("【"))
    if cut < 0:
        return text, ""
    tail = text[cut:]
    if len(tail) > MAX_PENDING_FRAGMENT_CHARS:
        return text, ""
    if PARTIAL_TAIL_RE.fullmatch(tail) is None:
        return text, ""
    return text[:cut], tail


def _escape_literals(text: str) -> str:
    """Add one backslash before the colon of placeholder-shaped text."""
    return _LITERAL_PLACEHOLDER_RE.sub(
        lambda m: m.group(0).replace(":", "\\:", 1), text
    )
