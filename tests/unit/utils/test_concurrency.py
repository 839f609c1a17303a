"""Unit tests for the bounded worker pool."""

from __future__ import annotations

import threading
import time

import pytest

from open_tasks.utils.concurrency import (
    BoundedSemaphore,
    WorkerPool,
    run_blocking_pool,
)


def _square_slowly(value: int) -> int:
    time.sleep(0.005 * (5 - value % 5))
    return value * value


async def test_map_blocking_preserves_input_order() -> None:
    pool: WorkerPool[int, int] = WorkerPool(max_concurrency=4)

    results = await pool.map_blocking(_square_slowly, range(10))

    assert results == [value * value for value in range(10)]


async def test_concurrency_never_exceeds_the_limit() -> None:
    lock = threading.Lock()
    active = 0
    peak = 0

    def track(_: int) -> None:
        nonlocal active, peak
        with lock:
            active += 1
            peak = max(peak, active)
        time.sleep(0.01)
        with lock:
            active -= 1

    pool: WorkerPool[int, None] = WorkerPool(max_concurrency=2)
    await pool.map_blocking(track, range(8))

    assert peak <= 2
    assert 1 <= pool.peak_concurrency <= 2


async def test_first_failure_is_reraised() -> None:
    def explode(value: int) -> int:
        if value == 3:
            raise OSError("disk gone")
        return value

    pool: WorkerPool[int, int] = WorkerPool(max_concurrency=3)

    with pytest.raises(OSError, match="disk gone"):
        await pool.map_blocking(explode, range(6))


async def test_empty_input_returns_empty_list() -> None:
    pool: WorkerPool[int, int] = WorkerPool(max_concurrency=2)

    assert await pool.map_blocking(_square_slowly, []) == []


async def test_bounded_semaphore_tracks_usage() -> None:
    semaphore = BoundedSemaphore(2)

    async with semaphore.permit():
        assert semaphore.in_use == 1
        async with semaphore.permit():
            assert semaphore.in_use == 2

    assert semaphore.in_use == 0
    assert semaphore.peak == 2
    assert semaphore.limit == 2


@pytest.mark.unit
@pytest.mark.parametrize("limit", [0, -1])
def test_limits_must_be_positive(limit: int) -> None:
    with pytest.raises(ValueError):
        BoundedSemaphore(limit)
    with pytest.raises(ValueError):
        WorkerPool(max_concurrency=limit)


@pytest.mark.unit
def test_run_blocking_pool_from_synchronous_code() -> None:
    assert run_blocking_pool(_square_slowly, [1, 2, 3], max_concurrency=2) == [1, 4, 9]
