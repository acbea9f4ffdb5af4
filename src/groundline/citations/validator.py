"""Structural validation of compact citations in streamed text.

Checks only shape: non-empty display text and an id matching one of
the known id patterns. When a mapping is supplied, ids that need one
are also checked against it. Unmapped ids are reported but never
removed, since the id may be valid outside the current turn.
"""

from __future__ import annotations

import logging
import re

from groundline.citations.grammar import (
    CITATION_SPAN_RE,
    MAPPED_ID_RE,
    MEDIA_ID_RE,
    VALID_ID_PATTERNS,
)
from groundline.citations.models import CitationIssue
from groundline.constants import IssueKind
from groundline.registry.schemas import IdMapping

logger = logging.getLogger(__name__)

_SINGLE_CITATION_RE = re.compile(r"^\[([^\]]+)\]\{([^}]+)\}$")

_MISSING_BRACKETS_RE = re.compile(r"^([^\[]+)\{([^}]+)\}$")
_SPACED_RE = re.compile(r"^\[([^\]]+)\]\s+\{([^}]+)\}$")
_PARENTHESES_RE = re.compile(r"^\(([^)]+)\)\{([^}]+)\}$")
_LEGACY_FORM_RE = re.compile(r'^\[(\w+):\s*"([^"]+)"\]\{([^}]+)\}$')

# Kinds that make a span unusable; missing mappings are kept.
_STRUCTURAL = frozenset({IssueKind.EMPTY_TEXT, IssueKind.INVALID_ID})


def is_valid_citation_id(citation_id: str) -> bool:
    """True when the id matches one of the known id shapes."""
    return any(p.match(citation_id) for p in VALID_ID_PATTERNS)


def is_valid_citation(citation: str) -> bool:
    """True for a single well-formed ``[text]{id}`` citation."""
    match = _SINGLE_CITATION_RE.match(citation)
    if match is None:
        return False
    text, citation_id = match.groups()
    if not text.strip():
        logger.debug("event=citation_invalid reason=empty_text")
        return False
    if not is_valid_citation_id(citation_id):
        logger.debug(
            "event=citation_invalid reason=invalid_id id=%r", citation_id
        )
        return False
    return True


def validate_all_citations(
    text: str,
    id_mapping: IdMapping | None = None,
) -> list[CitationIssue]:
    """Report every citation span in ``text`` that has a problem.

    Each span yields at most one issue, checked in order: empty display
    text, unknown id shape, then (only with a mapping) an id that needs
    the mapping but is not in it.
    """
    issues: list[CitationIssue] = []
    for match in CITATION_SPAN_RE.finditer(text):
        display, citation_id = match.groups()
        kind: IssueKind | None = None
        if not display.strip():
            kind = IssueKind.EMPTY_TEXT
        elif not is_valid_citation_id(citation_id):
            kind = IssueKind.INVALID_ID
        elif id_mapping is not None and not _is_mapped(
            citation_id, id_mapping
        ):
            kind = IssueKind.MISSING_MAPPING
        if kind is not None:
            issues.append(
                CitationIssue(
                    kind=kind,
                    span=match.group(0),
                    citation_id=citation_id,
                    start=match.start(),
                    end=match.end(),
                )
            )
    return issues


def validate_and_clean_citations(
    text: str,
    id_mapping: IdMapping | None = None,
    *,
    log_errors: bool = True,
) -> str:
    """Remove structurally invalid citation spans from ``text``."""
    issues = validate_all_citations(text, id_mapping)
    if not issues:
        return text
    if log_errors:
        logger.warning(
            "event=citation_validation_failed issues=%d kinds=%s",
            len(issues),
            ",".join(sorted({i.kind.value for i in issues})),
        )

    parts: list[str] = []
    last = 0
    for issue in issues:
        if issue.kind not in _STRUCTURAL:
            continue
        parts.append(text[last : issue.start])
        last = issue.end
    parts.append(text[last:])
    return "".join(parts)


def suggest_citation_fix(invalid_citation: str) -> str | None:
    """Suggest a compact ``[text]{id}`` form for a common mistake.

    Handles missing brackets, a space before the brace, parentheses
    instead of brackets, and the legacy ``[Type: "text"]{id}`` form.
    Returns None when no fix applies.
    """
    for pattern in (_MISSING_BRACKETS_RE, _SPACED_RE, _PARENTHESES_RE):
        match = pattern.match(invalid_citation)
        if match is not None:
            text, citation_id = match.groups()
            return f"[{text}]{{{citation_id}}}"

    legacy = _LEGACY_FORM_RE.match(invalid_citation)
    if legacy is not None:
        return f"[{legacy.group(2)}]{{{legacy.group(3)}}}"
    return None


def _is_mapped(citation_id: str, id_mapping: IdMapping) -> bool:
    media = MEDIA_ID_RE.match(citation_id)
    if media is not None:
        return media.group(1) in id_mapping
    if MAPPED_ID_RE.match(citation_id):
        return citation_id in id_mapping
    return True
