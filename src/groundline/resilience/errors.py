"""Error taxonomy for the embedding pipeline.

Two concerns live here:
- Contract violations by the embedding provider (count or dimension
  mismatch). These are fatal and never retried.
- Classification of provider exceptions by category, so the pipeline
  can log whether a failure was transient, server-side, or a client
  misconfiguration before propagating it.
"""

from __future__ import annotations

import asyncio
from enum import Enum


class EmbeddingContractError(RuntimeError):
    """The embedding provider broke the batch-embedding contract."""


class EmbeddingCountMismatchError(EmbeddingContractError):
    """Provider returned a different number of vectors than inputs."""

    def __init__(self, expected: int, received: int) -> None:
        super().__init__(
            f"Embedding count mismatch: got {received}, "
            f"expected {expected}"
        )
        self.expected = expected
        self.received = received


class EmbeddingDimensionError(EmbeddingContractError):
    """Provider returned an empty or wrongly sized vector."""

    def __init__(
        self, model: str, dimension: int, expected: int | None = None
    ) -> None:
        if dimension == 0:
            msg = (
                f"Embedding dimension is 0 for {model}; "
                "check model configuration."
            )
        else:
            msg = (
                f"Embedding dimension {dimension} for {model} "
                f"does not match expected {expected}"
            )
        super().__init__(msg)
        self.model = model
        self.dimension = dimension
        self.expected = expected


class ErrorClass(Enum):
    TRANSIENT = "transient"  # 429, network errors
    SERVER = "server"  # 500, 502, 503
    TIMEOUT = "timeout"  # deadline exceeded
    CLIENT = "client"  # 400, 401, 403
    CONTRACT = "contract"  # provider broke the response contract
    UNKNOWN = "unknown"


def classify_error(error: Exception) -> ErrorClass:
    """Classify an error to determine handling strategy.

    Checks structured attributes first (status_code), falls back
    to string matching for untyped exceptions.
    """
    if isinstance(error, EmbeddingContractError):
        return ErrorClass.CONTRACT

    # 1. Structured status_code attribute (httpx, openai, litellm)
    status_code = getattr(error, "status_code", None)
    if isinstance(status_code, int):
        if status_code == 429:
            return ErrorClass.TRANSIENT
        if 400 <= status_code < 500:
            return ErrorClass.CLIENT
        if 500 <= status_code < 600:
            return ErrorClass.SERVER

    # 2. Timeout types
    if isinstance(error, (TimeoutError, asyncio.TimeoutError)):
        return ErrorClass.TIMEOUT

    # 3. String matching for untyped exceptions
    msg = str(error).lower()

    if "timeout" in msg or "timed out" in msg:
        return ErrorClass.TIMEOUT
    if "429" in msg or "rate limit" in msg or "rate_limit" in msg:
        return ErrorClass.TRANSIENT
    if any(code in msg for code in ("500", "502", "503", "504")):
        return ErrorClass.SERVER
    if "econnrefused" in msg or "connection" in msg:
        return ErrorClass.TRANSIENT
    if any(code in msg for code in ("400", "401", "403", "404")):
        return ErrorClass.CLIENT

    return ErrorClass.UNKNOWN
