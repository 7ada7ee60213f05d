from __future__ import annotations

import asyncio

import pytest

from playlens.utils.concurrency import SlotPool, run_in_batches


@pytest.mark.asyncio
async def test_slot_pool_bounds_in_flight() -> None:
    pool = SlotPool(2)
    observed: list[int] = []

    async def _work() -> None:
        async with pool.acquire():
            observed.append(pool.in_flight)
            await asyncio.sleep(0.01)

    await asyncio.gather(*(_work() for _ in range(8)))

    assert pool.limit == 2
    assert max(observed) == 2
    assert pool.in_flight == 0


@pytest.mark.asyncio
async def test_slot_pool_releases_on_error() -> None:
    pool = SlotPool(1)

    with pytest.raises(RuntimeError):
        async with pool.acquire():
            raise RuntimeError("boom")

    assert pool.in_flight == 0
    async with pool.acquire():
        assert pool.in_flight == 1


@pytest.mark.asyncio
async def test_run_in_batches_preserves_order_and_collects_errors() -> None:
    started: list[int] = []
    finished: list[int] = []

    def _factory(index: int):
        async def _run() -> int:
            started.append(index)
            await asyncio.sleep(0.001 * (5 - index % 5))
            finished.append(index)
            if index == 3:
                raise ValueError("bad track")
            return index * 10

        return _run

    results = await run_in_batches([_factory(i) for i in range(7)], batch_size=3)

    assert [r for r in results if not isinstance(r, BaseException)] == [0, 10, 20, 40, 50, 60]
    assert isinstance(results[3], ValueError)
    # A batch never starts before the previous one settled.
    assert set(started[:3]) == {0, 1, 2}
    assert set(finished[:3]) == {0, 1, 2}
    assert set(started[3:6]) == {3, 4, 5}


@pytest.mark.asyncio
async def test_run_in_batches_handles_empty_input() -> None:
    assert await run_in_batches([], batch_size=5) == []
