"""In-memory caches for enrichment results."""

from __future__ import annotations

import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable, Generic, Hashable, TypeVar

from playlens.logging import get_logger

logger = get_logger(__name__)

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")

TimeProvider = Callable[[], float]


@dataclass(slots=True)
class _Entry:
    value: object
    expires_at: float | None


class MemoryCache(Generic[K, V]):
    """Process-lifetime cache with optional LRU and TTL bounds.

    ``max_items=0`` and ``ttl=0`` (the defaults) keep every entry for the life
    of the process. No method awaits, so a lookup followed by an insert is
    atomic for coroutines sharing one event loop.
    """

    def __init__(
        self,
        *,
        name: str,
        max_items: int = 0,
        ttl: float = 0.0,
        time_func: TimeProvider | None = None,
    ) -> None:
        if max_items < 0:
            raise ValueError("max_items must be non-negative")
        if ttl < 0:
            raise ValueError("ttl must be non-negative")
        self._name = name
        self._max_items = max_items
        self._ttl = ttl
        self._now: TimeProvider = time_func or time.monotonic
        self._entries: "OrderedDict[K, _Entry]" = OrderedDict()
        self.hits = 0
        self.misses = 0

    @property
    def name(self) -> str:
        return self._name

    def get(self, key: K) -> V | None:
        entry = self._entries.get(key)
        if entry is None:
            self.misses += 1
            return None
        if entry.expires_at is not None and self._now() >= entry.expires_at:
            self._entries.pop(key, None)
            self.misses += 1
            logger.debug("Cache %s entry expired", self._name)
            return None
        if self._max_items:
            self._entries.move_to_end(key)
        self.hits += 1
        return entry.value  # type: ignore[return-value]

    def set(self, key: K, value: V) -> None:
        expires_at = self._now() + self._ttl if self._ttl else None
        self._entries.pop(key, None)
        self._entries[key] = _Entry(value=value, expires_at=expires_at)
        self._enforce_limit()

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, key: object) -> bool:
        entry = self._entries.get(key)  # type: ignore[arg-type]
        if entry is None:
            return False
        return entry.expires_at is None or self._now() < entry.expires_at

    def __len__(self) -> int:
        return len(self._entries)

    def _enforce_limit(self) -> None:
        if not self._max_items:
            return
        while len(self._entries) > self._max_items:
            self._entries.popitem(last=False)
            logger.debug("Cache %s evicted least recently used entry", self._name)


__all__ = ["MemoryCache"]
