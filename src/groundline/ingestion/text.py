"""Text normalization and fingerprinting shared by chunking and indexing."""

from __future__ import annotations

import re
from typing import Any

_WHITESPACE_RUN = re.compile(r"\s+")

_FNV_OFFSET_BASIS = 0x811C9DC5
_FNV_PRIME = 0x01000193
_UINT32_MASK = 0xFFFFFFFF


def normalize_text(text: str, normalize_whitespace: bool = True) -> str:
    """Trim, unify line endings and optionally collapse whitespace runs."""
    trimmed = text.strip().replace("\r\n", "\n")
    if not normalize_whitespace:
        return trimmed
    return _WHITESPACE_RUN.sub(" ", trimmed)


def fnv1a32(text: str) -> str:
    """32-bit FNV-1a fingerprint as 8 lowercase hex chars.

    Hashes UTF-16 code units so fingerprints match the ones stored by
    earlier JavaScript writers. Change detection only, not security.
    """
    h = _FNV_OFFSET_BASIS
    data = text.encode("utf-16-le", "surrogatepass")
    for i in range(0, len(data), 2):
        h ^= data[i] | (data[i + 1] << 8)
        h = (h * _FNV_PRIME) & _UINT32_MASK
    return f"{h:08x}"


def extract_block_text(content: Any) -> str:
    """Flatten rich-editor block content into plain text.

    Accepts a plain string, or a list of blocks whose ``content`` is a
    list of strings or ``{"text": ...}`` inline items. Blocks with no
    text are dropped; the rest are joined with newlines.
    """
    if not content:
        return ""
    if isinstance(content, str):
        return content
    if not isinstance(content, list):
        return ""

    lines: list[str] = []
    for block in content:
        inline = block.get("content") if isinstance(block, dict) else None
        if not isinstance(inline, list):
            continue
        parts: list[str] = []
        for item in inline:
            if isinstance(item, str):
                parts.append(item)
            elif isinstance(item, dict) and item.get("text"):
                parts.append(str(item["text"]))
        line = "".join(parts)
        if line:
            lines.append(line)
    return "\n".join(lines)
