"""LanceDB-backed vector index for knowledge chunks.

One table per embedding dimension (``<table>_<dim>``) since a LanceDB
vector column has a fixed width. Rows carry ``scope_id`` and ``model``
so searches stay inside one content tree and one embedding space.
"""

from __future__ import annotations

import logging
from typing import Any

import lancedb
from circuitbreaker import (
    CircuitBreakerError,
    circuit,  # pyright: ignore[reportUnknownVariableType]
)

from groundline.config import Settings
from groundline.constants import (
    CB_VECTOR_FAILURE_THRESHOLD,
    CB_VECTOR_RECOVERY_TIMEOUT,
)
from groundline.knowledge.schemas import VectorHit, VectorRecord

logger = logging.getLogger(__name__)


def _quote(value: str) -> str:
    """Quote a string literal for a LanceDB SQL filter."""
    return "'" + value.replace("'", "''") + "'"


class LanceVectorIndex:
    def __init__(self, settings: Settings | None = None) -> None:
        cfg = settings or Settings()
        self._uri = cfg.lancedb_uri
        self._table_prefix = cfg.knowledge_table

    def table_name(self, dim: int) -> str:
        return f"{self._table_prefix}_{dim}"

    async def add(self, records: list[VectorRecord]) -> None:
        """Append vectors, creating per-dimension tables as needed."""
        if not records:
            return
        by_dim: dict[int, list[dict[str, Any]]] = {}
        for record in records:
            by_dim.setdefault(record.dim, []).append(
                {
                    "vector": record.vector,
                    "chunk_id": record.chunk_id,
                    "scope_id": record.scope_id,
                    "model": record.model,
                    "dim": record.dim,
                }
            )

        db = await lancedb.connect_async(self._uri)
        table_list = await db.list_tables()
        for dim, rows in by_dim.items():
            name = self.table_name(dim)
            if name in table_list.tables:
                table = await db.open_table(name)
                await table.add(rows)  # type: ignore[arg-type]
            else:
                await db.create_table(name, rows)  # type: ignore[arg-type]

    async def search(
        self,
        scope_id: str,
        vector: list[float],
        model: str,
        limit: int,
    ) -> list[VectorHit]:
        """Cosine nearest neighbours; empty list when unavailable."""
        try:
            raw = await self._guarded_query(scope_id, vector, model, limit)
        except CircuitBreakerError:
            logger.warning(
                "event=circuit_open component=vector_search action=skip"
            )
            return []
        except Exception:
            logger.warning(
                "event=vector_search_failed action=keyword_fallback",
                exc_info=True,
            )
            return []

        hits: list[VectorHit] = []
        for row in raw:
            try:
                hits.append(
                    VectorHit(
                        chunk_id=str(row["chunk_id"]),
                        similarity=1.0 - float(row.get("_distance", 1.0)),
                    )
                )
            except (KeyError, ValueError, TypeError):
                logger.warning(
                    "event=vector_hit_coercion_failed keys=%r",
                    sorted(row),
                )
        return hits

    async def delete(self, chunk_ids: list[str]) -> None:
        if not chunk_ids:
            return
        db = await lancedb.connect_async(self._uri)
        table_list = await db.list_tables()
        predicate = "chunk_id IN ({})".format(
            ", ".join(_quote(cid) for cid in chunk_ids)
        )
        for name in table_list.tables:
            if name.startswith(f"{self._table_prefix}_"):
                table = await db.open_table(name)
                await table.delete(predicate)

    @circuit(  # pyright: ignore[reportUntypedFunctionDecorator]
        failure_threshold=CB_VECTOR_FAILURE_THRESHOLD,
        recovery_timeout=CB_VECTOR_RECOVERY_TIMEOUT,
        expected_exception=Exception,
    )
    async def _guarded_query(
        self,
        scope_id: str,
        vector: list[float],
        model: str,
        limit: int,
    ) -> list[dict[str, Any]]:
        """Circuit-breaker-protected LanceDB vector search."""
        db = await lancedb.connect_async(self._uri)
        table_list = await db.list_tables()
        name = self.table_name(len(vector))
        if name not in table_list.tables:
            return []
        table = await db.open_table(name)
        query_builder: Any = await table.search(  # pyright: ignore[reportUnknownMemberType]
            vector
        )
        raw: list[dict[str, Any]] = (
            await query_builder.distance_type("cosine")
            .where(
                f"scope_id = {_quote(scope_id)} AND model = {_quote(model)}"
            )
            .limit(limit)
            .to_list()
        )
        return raw
