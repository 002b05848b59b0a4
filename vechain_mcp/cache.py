"""In-memory TTL cache with per-key coalescing of in-flight fetches (per-process)."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Generic, Optional, TypeVar

from vechain_mcp.metrics import MetricsRecorder, default_metrics

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Distinguishes "never stored / expired" from a cached None.
MISSING: Any = object()


@dataclass(slots=True)
class _Entry(Generic[T]):
    value: T
    stored_at: float


class TTLCache(Generic[T]):
    """
    Key/value store whose entries become logically absent ``ttl`` seconds after
    they were written.

    Expired entries are not swept; they stay in storage until overwritten but
    are never returned. ``get_or_fetch`` lets concurrent misses for the same key
    share one underlying fetch.
    """

    def __init__(
        self,
        ttl: float,
        *,
        name: str = "cache",
        clock: Callable[[], float] = time.monotonic,
        metrics: MetricsRecorder | None = None,
    ) -> None:
        self.ttl = ttl
        self.name = name
        self._clock = clock
        self._metrics = metrics or default_metrics
        self._entries: Dict[str, _Entry[T]] = {}
        self._inflight: Dict[str, asyncio.Task] = {}

    def __contains__(self, key: str) -> bool:
        return self.get(key, MISSING) is not MISSING

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: str, default: Any = None) -> Any:
        entry = self._entries.get(key)
        if entry is None:
            return default
        if self._clock() - entry.stored_at >= self.ttl:
            return default
        return entry.value

    def set(self, key: str, value: T) -> None:
        self._entries[key] = _Entry(value=value, stored_at=self._clock())

    def clear(self) -> None:
        self._entries.clear()

    async def get_or_fetch(
        self,
        key: str,
        fetch: Callable[[], Awaitable[T]],
        *,
        timeout: Optional[float] = None,
    ) -> T:
        """
        Return the cached value for ``key`` or await ``fetch()`` to produce it.

        Only successful results are stored. While a fetch is running, other
        callers for the same key await that same task instead of starting
        their own. ``timeout`` bounds this caller's wait only; the shared task
        is shielded so one caller timing out or being cancelled does not abort
        the fetch for everyone else.
        """
        cached = self.get(key, MISSING)
        if cached is not MISSING:
            self._metrics.record_cache(self.name, hit=True)
            logger.debug("cache=%s outcome=hit key=%s", self.name, key)
            return cached

        self._metrics.record_cache(self.name, hit=False)
        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(self._fetch_and_store(key, fetch))
            self._inflight[key] = task
            task.add_done_callback(lambda done, k=key: self._forget(k, done))
        else:
            self._metrics.incr_coalesced(self.name)
            logger.debug("cache=%s outcome=coalesced key=%s", self.name, key)

        shielded = asyncio.shield(task)
        if timeout is None:
            return await shielded
        return await asyncio.wait_for(shielded, timeout)

    async def _fetch_and_store(self, key: str, fetch: Callable[[], Awaitable[T]]) -> T:
        try:
            value = await fetch()
            self.set(key, value)
            return value
        finally:
            # Cleared before the task completes; _forget only covers a task
            # cancelled before it started.
            if self._inflight.get(key) is asyncio.current_task():
                del self._inflight[key]

    def _forget(self, key: str, task: asyncio.Task) -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]
        # Mark the exception as retrieved when every waiter has gone away.
        if not task.cancelled():
            task.exception()
