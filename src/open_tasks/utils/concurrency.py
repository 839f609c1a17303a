"""Bounded asyncio worker pool for running blocking per-file work on threads."""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager, suppress
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Generic, TypeVar

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable, Iterable, Sequence

T = TypeVar("T")
R = TypeVar("R")


class BoundedSemaphore:
    """``asyncio.Semaphore`` that tracks how many permits are held."""

    def __init__(self, limit: int) -> None:
        if limit <= 0:
            raise ValueError("limit must be > 0")
        self._limit = limit
        self._semaphore = asyncio.Semaphore(limit)
        self._in_use = 0
        self._peak = 0

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def in_use(self) -> int:
        return self._in_use

    @property
    def peak(self) -> int:
        """Highest number of permits held at the same time."""

        return self._peak

    @asynccontextmanager
    async def permit(self) -> AsyncIterator[None]:
        await self._semaphore.acquire()
        self._in_use += 1
        self._peak = max(self._peak, self._in_use)
        try:
            yield
        finally:
            self._in_use -= 1
            self._semaphore.release()


@dataclass(slots=True)
class WorkerPool(Generic[T, R]):
    """Apply a blocking function to items on worker threads, ``max_concurrency`` at a time.

    Results come back in input order. The first failure cancels the work that
    has not finished yet and is re-raised unchanged.
    """

    max_concurrency: int
    _semaphore: BoundedSemaphore = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if self.max_concurrency <= 0:
            raise ValueError("max_concurrency must be > 0")
        self._semaphore = BoundedSemaphore(self.max_concurrency)

    @property
    def peak_concurrency(self) -> int:
        return self._semaphore.peak

    async def map_blocking(self, func: Callable[[T], R], items: Iterable[T]) -> list[R]:
        indexed = list(enumerate(items))
        results: dict[int, R] = {}
        tasks: set[asyncio.Task[tuple[int, R]]] = {
            asyncio.create_task(self._run_one(func, index, item)) for index, item in indexed
        }

        try:
            while tasks:
                done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
                tasks = set(pending)
                for task in done:
                    if task.cancelled():
                        raise asyncio.CancelledError("worker task cancelled")
                    exc = task.exception()
                    if exc is not None:
                        await self._cancel_all(tasks)
                        raise exc
                    index, value = task.result()
                    results[index] = value
        except asyncio.CancelledError:
            await self._cancel_all(tasks)
            raise

        return [results[index] for index, _ in indexed]

    async def _run_one(self, func: Callable[[T], R], index: int, item: T) -> tuple[int, R]:
        async with self._semaphore.permit():
            return index, await asyncio.to_thread(func, item)

    async def _cancel_all(self, tasks: set[asyncio.Task[tuple[int, R]]]) -> None:
        for task in tasks:
            task.cancel()
        if tasks:
            with suppress(Exception):
                await asyncio.gather(*tasks, return_exceptions=True)


def run_blocking_pool(
    func: Callable[[T], R],
    items: Sequence[T],
    *,
    max_concurrency: int,
) -> list[R]:
    """Synchronous entry point: run ``WorkerPool.map_blocking`` in a fresh event loop."""

    async def _drive() -> list[R]:
        pool: WorkerPool[T, R] = WorkerPool(max_concurrency=max_concurrency)
        return await pool.map_blocking(func, items)

    return asyncio.run(_drive())


__all__ = [
    "BoundedSemaphore",
    "WorkerPool",
    "run_blocking_pool",
]
