"""
open-tasks — hashing utilities

File: src/open_tasks/utils/hashing.py

Purpose
- Deterministic SHA-256 helpers for text and the per-finding context hash.

Functional requirements
- The context hash depends on the file path, the tag and the stripped lines
  surrounding the finding, never on the line number itself, so a task that
  only moves up or down keeps its hash.

Non-functional requirements
- Standard library only; behavior is cross-platform deterministic.
"""

from __future__ import annotations

import hashlib
from collections.abc import Sequence

from open_tasks.constants import CONTEXT_HASH_RADIUS

__all__ = ["context_hash", "sha256_bytes", "sha256_text"]


def sha256_bytes(data: bytes) -> str:
    """Return SHA-256 hex digest for raw bytes."""

    return hashlib.sha256(data).hexdigest()


def sha256_text(text: str, *, encoding: str = "utf-8") -> str:
    """Return SHA-256 hex digest for text encoded with ``encoding``."""

    return sha256_bytes(text.encode(encoding))


def context_hash(
    path: str,
    tag: str,
    lines: Sequence[str],
    line: int,
    *,
    radius: int = CONTEXT_HASH_RADIUS,
) -> str:
    """Hash ``path``, ``tag`` and the ``radius`` lines on either side of 1-based ``line``.

    Surrounding whitespace is stripped from every line so re-indentation does
    not turn an existing task into a new one.
    """

    if radius < 0:
        raise ValueError("radius must be >= 0")
    start = max(line - 1 - radius, 0)
    end = min(line + radius, len(lines))
    neighbourhood = (text.strip() for text in lines[start:end])
    return sha256_text("\x00".join((path, tag, *neighbourhood)))
