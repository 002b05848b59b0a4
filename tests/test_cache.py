import asyncio

import pytest

from vechain_mcp.cache import MISSING, TTLCache
from vechain_mcp.metrics import MetricsRecorder


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


def test_get_returns_value_within_ttl():
    clock = FakeClock()
    cache = TTLCache(60, clock=clock)
    cache.set("vet-usd", 0.02)
    clock.now += 59.9
    assert cache.get("vet-usd") == 0.02
    assert "vet-usd" in cache


def test_expired_entry_is_absent_but_still_stored():
    clock = FakeClock()
    cache = TTLCache(60, clock=clock)
    cache.set("vet-usd", 0.02)
    clock.now += 60
    assert cache.get("vet-usd") is None
    assert "vet-usd" not in cache
    assert len(cache) == 1  # no sweep on read


def test_cached_none_is_distinct_from_missing():
    cache = TTLCache(60, clock=FakeClock())
    cache.set("0xabc", None)
    assert cache.get("0xabc", MISSING) is None
    assert cache.get("0xother", MISSING) is MISSING


def test_set_overwrites_and_restamps():
    clock = FakeClock()
    cache = TTLCache(60, clock=clock)
    cache.set("k", 1)
    clock.now += 50
    cache.set("k", 2)
    clock.now += 50
    assert cache.get("k") == 2


def test_clear_drops_everything():
    cache = TTLCache(60, clock=FakeClock())
    cache.set("a", 1)
    cache.set("b", 2)
    cache.clear()
    assert len(cache) == 0
    assert cache.get("a") is None


@pytest.mark.asyncio
async def test_get_or_fetch_caches_success():
    metrics = MetricsRecorder()
    cache = TTLCache(60, name="prices", clock=FakeClock(), metrics=metrics)
    calls = []

    async def fetch():
        calls.append(1)
        return 1.5

    assert await cache.get_or_fetch("k", fetch) == 1.5
    assert await cache.get_or_fetch("k", fetch) == 1.5
    assert len(calls) == 1
    snapshot = metrics.snapshot()
    assert snapshot["cache_hits"] == {"prices": 1}
    assert snapshot["cache_misses"] == {"prices": 1}


@pytest.mark.asyncio
async def test_get_or_fetch_refetches_after_expiry():
    clock = FakeClock()
    cache = TTLCache(60, clock=clock, metrics=MetricsRecorder())
    values = iter([1.0, 2.0])

    async def fetch():
        return next(values)

    assert await cache.get_or_fetch("k", fetch) == 1.0
    clock.now += 61
    assert await cache.get_or_fetch("k", fetch) == 2.0


@pytest.mark.asyncio
async def test_get_or_fetch_does_not_cache_failures():
    cache = TTLCache(60, clock=FakeClock(), metrics=MetricsRecorder())
    attempts = []

    async def failing():
        attempts.append(1)
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        await cache.get_or_fetch("k", failing)
    with pytest.raises(RuntimeError):
        await cache.get_or_fetch("k", failing)
    assert len(attempts) == 2
    assert len(cache) == 0


@pytest.mark.asyncio
async def test_concurrent_misses_share_one_fetch():
    metrics = MetricsRecorder()
    cache = TTLCache(60, name="prices", clock=FakeClock(), metrics=metrics)
    release = asyncio.Event()
    calls = []

    async def fetch():
        calls.append(1)
        await release.wait()
        return 42

    waiters = [asyncio.create_task(cache.get_or_fetch("k", fetch)) for _ in range(5)]
    await asyncio.sleep(0)
    release.set()
    results = await asyncio.gather(*waiters)

    assert results == [42] * 5
    assert len(calls) == 1
    assert metrics.snapshot()["coalesced"] == {"prices": 4}


@pytest.mark.asyncio
async def test_concurrent_waiters_all_see_failure():
    cache = TTLCache(60, clock=FakeClock(), metrics=MetricsRecorder())
    release = asyncio.Event()

    async def fetch():
        await release.wait()
        raise ValueError("bad feed")

    waiters = [asyncio.create_task(cache.get_or_fetch("k", fetch)) for _ in range(3)]
    await asyncio.sleep(0)
    release.set()
    results = await asyncio.gather(*waiters, return_exceptions=True)
    assert all(isinstance(result, ValueError) for result in results)


@pytest.mark.asyncio
async def test_timeout_does_not_cancel_shared_fetch():
    cache = TTLCache(60, clock=FakeClock(), metrics=MetricsRecorder())
    release = asyncio.Event()

    async def slow():
        await release.wait()
        return "done"

    with pytest.raises(asyncio.TimeoutError):
        await cache.get_or_fetch("k", slow, timeout=0.01)

    patient = asyncio.create_task(cache.get_or_fetch("k", slow))
    await asyncio.sleep(0)
    release.set()
    assert await patient == "done"
    assert cache.get("k") == "done"


@pytest.mark.asyncio
async def test_failed_fetch_clears_inflight_inside_task(monkeypatch):
    cache = TTLCache(60, clock=FakeClock(), metrics=MetricsRecorder())
    # Only the fetch task itself may release the key.
    monkeypatch.setattr(cache, "_forget", lambda key, task: None)
    attempts = []

    async def failing():
        attempts.append(1)
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        await cache.get_or_fetch("k", failing)
    assert "k" not in cache._inflight

    async def succeeding():
        attempts.append(1)
        return "fresh"

    assert await cache.get_or_fetch("k", succeeding) == "fresh"
    assert len(attempts) == 2
