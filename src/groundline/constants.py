"""Shared constants: single source of truth for cross-module values.

All magic strings and numbers that appear in 2+ files belong here.
StrEnum members are str-compatible, so downstream code (JSON, SQL,
LanceDB filters) works unchanged.
"""

from __future__ import annotations

from enum import StrEnum

# ── String Enums ─────────────────────────────────────────


class EntityKind(StrEnum):
    """Kinds of content entity supplied by the entity source.

    Also used as the ``source_type`` of knowledge chunks.
    """

    CONTAINER = "container"
    ITEM = "item"
    SUBITEM = "subitem"
    DOCUMENT = "document"
    DERIVED_POINT = "derived_point"


class CitationType(StrEnum):
    """Closed set of citation types a parsed marker can resolve to."""

    CONTAINER = "container"
    ITEM = "item"
    SUBITEM = "subitem"
    DOCUMENT = "document"
    WEB = "web"
    GITHUB = "github"
    PORTFOLIO = "portfolio"
    DERIVED_POINT = "derived_point"
    MEDIA = "media"


class IssueKind(StrEnum):
    """Failure buckets reported by the citation validator and monitor."""

    EMPTY_TEXT = "empty_text"
    INVALID_ID = "invalid_id"
    MISSING_MAPPING = "missing_mapping"


# ── Short ID Prefixes ────────────────────────────────────

SHORT_ID_PREFIXES: dict[EntityKind, str] = {
    EntityKind.CONTAINER: "P",
    EntityKind.ITEM: "B",
    EntityKind.SUBITEM: "BR",
    EntityKind.DOCUMENT: "PG",
}

# Reserved literal ids that never go through the registry
WEB_ID = "web"
PORTFOLIO_ID = "portfolio"
GITHUB_ID_PREFIX = "github"

# ── Citation Rendering ───────────────────────────────────

PLACEHOLDER_TEMPLATE = "{{{{citation:{index}}}}}"
PLACEHOLDER_PATTERN = r"\{\{citation:(\d+)\}\}"

# Placeholder-shaped input text is kept literal by adding a backslash
# before its colon; rendering removes one again
LITERAL_PLACEHOLDER_PATTERN = r"\{\{citation\\*:\d+\}\}"
ESCAPED_PLACEHOLDER_PATTERN = r"\{\{citation\\+:\d+\}\}"

# Longest trailing fragment held back in partial (streaming) mode
MAX_PENDING_FRAGMENT_CHARS = 300

# ── Chunking ─────────────────────────────────────────────

DEFAULT_CHUNK_SIZE = 2400  # ~1-1.5k tokens for most English
DEFAULT_CHUNK_OVERLAP = 300
MIN_EMBED_CHUNK_SIZE = 256

# ── Embedding Limits ─────────────────────────────────────

MAX_TOKENS_PER_BATCH = 250_000  # OpenAI batch limit is ~300K

DEFAULT_EMBEDDING_DIMENSIONS: dict[str, int] = {
    "openai/text-embedding-3-small": 1536,
    "openai/text-embedding-3-large": 3072,
    "openai/text-embedding-ada-002": 1536,
}

# ── Circuit Breaker Configuration ────────────────────────

CB_EMBED_FAILURE_THRESHOLD = 3
CB_EMBED_RECOVERY_TIMEOUT = 30
CB_VECTOR_FAILURE_THRESHOLD = 3
CB_VECTOR_RECOVERY_TIMEOUT = 60

# ── Knowledge Search ─────────────────────────────────────

KNOWLEDGE_TABLE = "knowledge_vectors"
SEARCH_VECTOR_WEIGHT = 0.7
SEARCH_LEXICAL_WEIGHT = 0.3
SEARCH_MIN_CANDIDATES = 25
SEARCH_DEFAULT_LIMIT = 10
SEARCH_DEFAULT_MIN_SCORE = 0.1

# ── Misc ─────────────────────────────────────────────────

ERROR_TRUNCATION_CHARS = 200

# ── Token Estimation ────────────────────────────────────

CHARS_PER_TOKEN_ESTIMATE = 4


def estimate_tokens(text: str) -> int:
    """Rough token estimate using chars-per-token ratio."""
    return len(text) // CHARS_PER_TOKEN_ESTIMATE
