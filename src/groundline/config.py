"""Environment-based configuration."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Annotated, Any

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from groundline.constants import (
    DEFAULT_CHUNK_OVERLAP,
    DEFAULT_CHUNK_SIZE,
    DEFAULT_EMBEDDING_DIMENSIONS,
    KNOWLEDGE_TABLE,
    SEARCH_DEFAULT_LIMIT,
    SEARCH_DEFAULT_MIN_SCORE,
    SEARCH_LEXICAL_WEIGHT,
    SEARCH_VECTOR_WEIGHT,
)

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Reads from .env file and environment variables."""

    # LLM Provider
    openai_api_key: str = ""

    # Embeddings
    litellm_embedding_model: str = "openai/text-embedding-3-small"
    embedding_dimensions: Annotated[dict[str, int], NoDecode] = dict(
        DEFAULT_EMBEDDING_DIMENSIONS
    )

    # Chunking
    chunk_size: int = DEFAULT_CHUNK_SIZE
    chunk_overlap: int = DEFAULT_CHUNK_OVERLAP
    normalize_whitespace: bool = True

    # Database
    database_url: str = "sqlite:///data/groundline.db"
    data_dir: Path = Path("data")

    # LanceDB
    lancedb_uri: str = "data/lancedb"
    knowledge_table: str = KNOWLEDGE_TABLE

    # Search
    search_vector_weight: float = SEARCH_VECTOR_WEIGHT
    search_lexical_weight: float = SEARCH_LEXICAL_WEIGHT
    search_default_limit: int = SEARCH_DEFAULT_LIMIT
    search_min_score: float = SEARCH_DEFAULT_MIN_SCORE

    # Logging
    log_level: str = "INFO"

    @field_validator("chunk_size")
    @classmethod
    def _validate_chunk_size(cls, v: int) -> int:
        if v < 1:
            raise ValueError("chunk_size must be at least 1")
        return v

    @field_validator("chunk_overlap")
    @classmethod
    def _validate_overlap(cls, v: int) -> int:
        if v < 0:
            raise ValueError("chunk_overlap must not be negative")
        return v

    @field_validator("embedding_dimensions", mode="before")
    @classmethod
    def _parse_dimensions(cls, v: Any) -> Any:
        """Accept a JSON object, ``model=dim`` pairs, or a mapping."""
        if isinstance(v, str) and v.strip().startswith("{"):
            return json.loads(v)
        if isinstance(v, str):
            pairs: dict[str, int] = {}
            for part in v.split(","):
                if not part.strip():
                    continue
                model, _, dim = part.partition("=")
                pairs[model.strip()] = int(dim)
            return pairs
        return v

    def declared_dimension(self, model: str) -> int | None:
        """Return the configured output size for ``model``, if known."""
        return self.embedding_dimensions.get(model)

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_prefix": "GROUNDLINE_",
        "extra": "ignore",
    }


def create_app_engine(
    url: str, *, echo: bool = False
) -> AsyncEngine:
    """Create async SQLite engine with WAL journal mode.

    Handles URL conversion (sqlite:/// → sqlite+aiosqlite:///)
    and sets WAL mode via a pool-connect event listener so it
    fires once per raw DBAPI connection, not per ORM session.
    """
    if url.startswith("sqlite:///"):
        db_url = "sqlite+aiosqlite:///" + url[len("sqlite:///"):]
    else:
        db_url = url
    engine = create_async_engine(db_url, echo=echo)

    @event.listens_for(engine.sync_engine, "connect")
    def _set_wal_mode(
        dbapi_conn: object,
        _connection_record: object,
    ) -> None:
        cursor = dbapi_conn.cursor()  # type: ignore[attr-defined]
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    return engine


def create_session_factory(
    engine: AsyncEngine,
) -> async_sessionmaker[AsyncSession]:
    """Session factory used by repositories that own their sessions."""
    return async_sessionmaker(engine, expire_on_commit=False)
