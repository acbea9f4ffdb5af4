"""Citation wire grammar: patterns, id shapes and type tables.

Legacy form::

    [Project: "Built the ingestion service"]{P1}
    【Audio: "Standup T95s"】 {PG2:standup.mp3}

Compact form::

    [Built the ingestion service]{P1}

Both accept ASCII ``[ ]`` or CJK ``【 】`` brackets. Short ids are a
kind prefix plus a 1-based counter (``P``, ``B``, ``BR``, ``PG``),
``PG<n>:<file>`` for media, or the reserved literals ``web``,
``portfolio`` and ``github...``.
"""

from __future__ import annotations

import re

from groundline.constants import (
    GITHUB_ID_PREFIX,
    PORTFOLIO_ID,
    WEB_ID,
    CitationType,
)

# The closing quote may be missing; whitespace may precede the brace;
# the id may be empty.
LEGACY_RE = re.compile(
    r'[\[【]([^:]+):\s*"([^"\]】]+)"?\s*[\]】]\s*\{([^}]*)\}'
)

# A stray opening bracket before the display text stays prose
COMPACT_RE = re.compile(r"[\[【]([^\[\]【】]+)[\]】]\{([^}]+)\}")

# ``[Echo P3]`` with no id; classified only when it names a point.
BARE_POINT_RE = re.compile(r"[\[【]([^\[\]【】{}]+)[\]】](?!\s*\{)")

# Recognition pattern shared by the validator and the monitor.
CITATION_SPAN_RE = re.compile(r"\[([^\]]+)\]\{([^}]+)\}")

POINT_RE = re.compile(r"P(\d+)")
SECONDS_RE = re.compile(r"T(\d+)s")
TOOL_MARKER_RE = re.compile(r"^[A-Za-z0-9]+(?:_[A-Za-z0-9]+)+$")

# A trailing fragment that may still grow into a citation: an open
# bracket with no close, or a closed bracket with an unfinished brace.
PARTIAL_TAIL_RE = re.compile(r"[\[【][^\]】]*(?:[\]】]\s*(?:\{[^}]*)?)?")

_PREFIX_TABLE: tuple[tuple[re.Pattern[str], CitationType], ...] = (
    (re.compile(r"^P\d+$"), CitationType.CONTAINER),
    (re.compile(r"^B\d+$"), CitationType.ITEM),
    (re.compile(r"^BR\d+$"), CitationType.SUBITEM),
    (re.compile(r"^PG\d+$"), CitationType.DOCUMENT),
)

MEDIA_ID_RE = re.compile(r"^(PG\d+):(.+)$")

# Ids that must be present in the mapping to resolve.
MAPPED_ID_RE = re.compile(r"^(?:P|B|BR|PG)\d+$")

VALID_ID_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"^P\d+$"),
    re.compile(r"^B\d+$"),
    re.compile(r"^BR\d+$"),
    re.compile(r"^PG\d+$"),
    re.compile(r"^PG\d+:.+$"),
    re.compile(r"^portfolio$"),
    re.compile(r"^github.*$"),
    re.compile(r"^web$"),
)

RESERVED_TYPES = frozenset(
    {CitationType.WEB, CitationType.GITHUB, CitationType.PORTFOLIO}
)

# Legacy ``Type:`` labels, lowercased. ``None`` means infer from the id.
LEGACY_TYPES: dict[str, CitationType | None] = {
    "project": CitationType.CONTAINER,
    "bullet": CitationType.ITEM,
    "branch": CitationType.SUBITEM,
    "page": CitationType.DOCUMENT,
    "web": CitationType.WEB,
    "github": CitationType.GITHUB,
    "portfolio": CitationType.PORTFOLIO,
    "audio": CitationType.MEDIA,
    "echo": CitationType.DERIVED_POINT,
    "audio summary": CitationType.DERIVED_POINT,
    "resume": None,
    "resume title": None,
}


def type_from_id(short_id: str) -> CitationType | None:
    """Infer a citation type from the shape of a short id."""
    if MEDIA_ID_RE.match(short_id):
        return CitationType.MEDIA
    for pattern, citation_type in _PREFIX_TABLE:
        if pattern.match(short_id):
            return citation_type
    if short_id == WEB_ID:
        return CitationType.WEB
    if short_id == PORTFOLIO_ID:
        return CitationType.PORTFOLIO
    if short_id.startswith(GITHUB_ID_PREFIX):
        return CitationType.GITHUB
    return None


def is_tool_marker(text: str) -> bool:
    """``web_search``, ``tool_lookup`` and similar are not citations."""
    return bool(TOOL_MARKER_RE.match(text.strip()))


def derived_point_match(text: str) -> re.Match[str] | None:
    """The ``P<n>`` match when ``text`` names an echo / summary point."""
    lowered = text.lower()
    if "echo" not in lowered and "audio summary" not in lowered:
        return None
    return POINT_RE.search(text)
