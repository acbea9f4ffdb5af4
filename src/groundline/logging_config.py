"""Process-wide logging setup for the groundline CLI.

Runs in two steps because litellm installs its own handlers when it is
imported:

1. ``setup_logging()`` before anything imports the embedding pipeline.
   Pins ``LITELLM_LOG`` and configures the root logger.
2. ``cleanup_third_party_handlers()`` once all imports are done.
   Drops litellm's handlers so its records reach root exactly once.

Each step runs at most once per process.
"""

import logging
import os

LOG_FORMAT = "%(asctime)s - %(levelname)s - [%(name)s] - %(message)s"
LOG_DATEFMT = "%Y-%m-%dT%H:%M:%S"

# Chatty dependencies held at WARNING whatever the app level is.
_SUPPRESSED_LOGGERS = (
    "LiteLLM",
    "LiteLLM Router",
    "openai._base_client",
    "httpx",
    "aiosqlite",
    "lancedb",
)

_LITELLM_LOGGERS = ("LiteLLM", "LiteLLM Router")

_phase1_done = False
_phase2_done = False


def _resolve_level(level: str) -> int:
    """Map a level name to its number; unknown names mean INFO."""
    value = logging.getLevelName(level.strip().upper())
    return value if isinstance(value, int) else logging.INFO


def setup_logging(level: str = "INFO") -> None:
    """Configure the root logger. Later calls are ignored."""
    global _phase1_done  # noqa: PLW0603
    if _phase1_done:
        return
    _phase1_done = True

    # read by litellm._logging at import time
    os.environ.setdefault("LITELLM_LOG", "WARNING")

    logging.basicConfig(
        level=_resolve_level(level),
        format=LOG_FORMAT,
        datefmt=LOG_DATEFMT,
    )
    for name in _SUPPRESSED_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def cleanup_third_party_handlers() -> None:
    """Strip litellm's own handlers and let its loggers propagate."""
    global _phase2_done  # noqa: PLW0603
    if _phase2_done:
        return
    _phase2_done = True

    for name in _LITELLM_LOGGERS:
        lg = logging.getLogger(name)
        lg.handlers.clear()
        lg.propagate = True
