"""Utility exports for filesystem, hashing, and concurrency helpers."""

from open_tasks.utils.concurrency import (
    BoundedSemaphore,
    WorkerPool,
    run_blocking_pool,
)
from open_tasks.utils.fs import atomic_write
from open_tasks.utils.hashing import context_hash, sha256_bytes, sha256_text

__all__ = [
    "BoundedSemaphore",
    "WorkerPool",
    "atomic_write",
    "context_hash",
    "run_blocking_pool",
    "sha256_bytes",
    "sha256_text",
]
