"""Concurrency primitives shared across Playlens services."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Awaitable, Callable, Sequence
from contextlib import asynccontextmanager
from typing import TypeVar

__all__ = ["SlotPool", "run_in_batches"]

T = TypeVar("T")


class SlotPool:
    """Counting semaphore that also reports how many slots are in use."""

    def __init__(self, limit: int) -> None:
        self._limit = max(1, int(limit))
        self._semaphore = asyncio.Semaphore(self._limit)
        self._in_flight = 0

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def in_flight(self) -> int:
        return self._in_flight

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[None]:
        async with self._semaphore:
            self._in_flight += 1
            try:
                yield
            finally:
                self._in_flight -= 1


async def run_in_batches(
    factories: Sequence[Callable[[], Awaitable[T]]],
    *,
    batch_size: int,
) -> list[T | BaseException]:
    """Run coroutine factories in consecutive batches and settle every one.

    A batch starts only after the previous batch fully settled. Results keep
    submission order; failures are returned in place instead of raised so one
    task never aborts its batch-mates.
    """

    size = max(1, int(batch_size))
    results: list[T | BaseException] = []
    for start in range(0, len(factories), size):
        batch = factories[start : start + size]
        settled = await asyncio.gather(
            *(factory() for factory in batch), return_exceptions=True
        )
        results.extend(settled)
    return results
