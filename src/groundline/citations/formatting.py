"""Rendering helpers and response post-processing.

``render_segments`` turns parser output back into an ordered list of
plain text and citation objects for a client renderer. The remaining
helpers clean up artifacts the model leaves in its answer.
"""

from __future__ import annotations

import re

from groundline.citations.models import (
    Citation,
    DerivedPointCitation,
    MediaCitation,
)
from groundline.constants import (
    ESCAPED_PLACEHOLDER_PATTERN,
    PLACEHOLDER_PATTERN,
)

_PLACEHOLDER_RE = re.compile(PLACEHOLDER_PATTERN)
_ESCAPED_PLACEHOLDER_RE = re.compile(ESCAPED_PLACEHOLDER_PATTERN)
_TOOL_MARKER_RE = re.compile(r"\[web_search\]|\[tool_[^\]]+\]")
_ANSWER_MARKER_RE = re.compile(r"------\s*AS:\s*([\s\S]*)$")
_TRAILING_NOTE_RE = re.compile(
    r"-----\s*No space or new lines\s*$", re.IGNORECASE
)
_BULLET_RE = re.compile(r"^[-*]\s+", re.MULTILINE)
_EXCESS_NEWLINES_RE = re.compile(r"\n{3,}")

DEFAULT_MAX_WORDS = 180


def render_segments(
    normalized_text: str,
    citations: list[Citation],
) -> list[str | Citation]:
    """Split placeholder text into text and citation segments.

    A placeholder whose index has no citation is dropped. Escaped
    placeholder-shaped text comes back as it appeared in the input.
    """
    segments: list[str | Citation] = []
    last = 0
    for match in _PLACEHOLDER_RE.finditer(normalized_text):
        if match.start() > last:
            segments.append(_unescape(normalized_text[last : match.start()]))
        index = int(match.group(1))
        if index < len(citations):
            segments.append(citations[index])
        last = match.end()
    if last < len(normalized_text):
        segments.append(_unescape(normalized_text[last:]))
    return segments


def _unescape(text: str) -> str:
    return _ESCAPED_PLACEHOLDER_RE.sub(
        lambda m: m.group(0).replace("\\:", ":", 1), text
    )


def strip_tool_markers(text: str) -> str:
    """Remove ``[web_search]`` and ``[tool_...]`` markers."""
    return _TOOL_MARKER_RE.sub("", text)


def post_process_response(text: str) -> str:
    """Minimal clean-up that keeps the model's own formatting."""
    processed = strip_tool_markers(text)
    processed = _ANSWER_MARKER_RE.sub(
        lambda m: m.group(1).strip(), processed
    )
    return _TRAILING_NOTE_RE.sub("", processed)


def format_response(text: str) -> str:
    """Normalize bullets and blank lines, then strip tool markers."""
    formatted = _BULLET_RE.sub("• ", text)
    formatted = strip_tool_markers(formatted)
    formatted = re.sub(r"•\s*", "• ", formatted)
    formatted = _EXCESS_NEWLINES_RE.sub("\n\n", formatted)
    return formatted.strip()


def enforce_response_length(
    text: str, max_words: int = DEFAULT_MAX_WORDS
) -> str:
    """Cut ``text`` to ``max_words`` without splitting a citation.

    Prefers ending at the last sentence or bullet; a citation cut at
    the word limit is completed when it closes within 20 characters.
    """
    words = text.split()
    if len(words) <= max_words:
        return text

    truncated = " ".join(words[:max_words])
    if truncated.count("[") > truncated.count("]") or truncated.count(
        "{"
    ) > truncated.count("}"):
        remaining = text[len(truncated) :]
        closing = remaining.find("}")
        if 0 <= closing < 20:
            return truncated + remaining[: closing + 1]

    cut = max(truncated.rfind("."), truncated.rfind("•"))
    if cut > 0:
        final = truncated[: cut + 1]
        if final.count("[") > final.count("]"):
            return final[: final.rfind("[")].strip()
        return final
    return truncated + "..."


def format_citation(citation: Citation) -> str:
    """Format a single citation as a readable string.

    Example: ``Built X [P1] (container, proj_abc)``
    """
    extras: list[str] = [citation.type.value]
    if isinstance(citation, MediaCitation):
        if citation.media_file_ref:
            extras.append(citation.media_file_ref)
        if citation.seconds is not None:
            extras.append(f"at {citation.seconds}s")
    elif (
        isinstance(citation, DerivedPointCitation)
        and citation.point_index is not None
    ):
        extras.append(f"point {citation.point_index}")
    extras.append(
        citation.persistent_id if citation.resolved else "unresolved"
    )
    short_id = citation.short_id or "-"
    return f"{citation.display_text} [{short_id}] ({', '.join(extras)})"


def format_citations_block(citations: list[Citation]) -> str:
    """Format multiple citations as a markdown block.

    Returns empty string if no citations.
    """
    if not citations:
        return ""
    lines = ["**Sources:**"]
    for i, citation in enumerate(citations, 1):
        lines.append(f"{i}. {format_citation(citation)}")
    return "\n".join(lines)
