import asyncio

import pytest

from core_cache import CacheCoordinator


def _cache(clock, **kw):
    kw.setdefault("ttl_sec", 10)
    kw.setdefault("max_entries", 3)
    return CacheCoordinator(clock=clock, **kw)


def test_lookup_respects_ttl(clock):
    cache = _cache(clock)
    cache.store("k", "v")
    clock.advance(10)          # now - timestamp == TTL is still fresh
    assert cache.lookup("k") == "v"
    clock.advance(0.001)
    assert cache.lookup("k") is None
    assert len(cache) == 0     # purged lazily on access
    assert cache.stats.expirations == 1


def test_capacity_evicts_oldest_inserted(clock):
    cache = _cache(clock, max_entries=2)
    cache.store("a", 1)
    cache.store("b", 2)
    cache.store("c", 3)
    assert cache.keys() == ["b", "c"]
    assert cache.stats.evictions == 1


def test_refresh_moves_key_to_end(clock):
    cache = _cache(clock, max_entries=2)
    cache.store("a", 1)
    cache.store("b", 2)
    cache.store("a", 10)
    cache.store("c", 3)
    assert cache.keys() == ["a", "c"]
    assert cache.lookup("a") == 10


def test_ttl_for_value(clock):
    cache = _cache(clock, ttl_for=lambda v: 1 if v == "short" else 100)
    cache.store("s", "short")
    cache.store("l", "long")
    clock.advance(2)
    assert cache.lookup("s") is None
    assert cache.lookup("l") == "long"


def test_rejects_zero_capacity(clock):
    with pytest.raises(ValueError):
        _cache(clock, max_entries=0)


@pytest.mark.asyncio
async def test_concurrent_identical_keys_coalesce(clock):
    cache = _cache(clock)
    gate = asyncio.Event()
    calls = 0

    async def producer():
        nonlocal calls
        calls += 1
        await gate.wait()
        return {"value": calls}

    waiters = [asyncio.ensure_future(cache.get_or_resolve("k", producer)) for _ in range(5)]
    await asyncio.sleep(0)
    assert cache.inflight_count == 1
    gate.set()
    results = await asyncio.gather(*waiters)

    assert calls == 1
    values = [v for v, _ in results]
    assert all(v is values[0] for v in values)
    assert all(hit is False for _, hit in results)
    assert cache.inflight_count == 0
    assert cache.stats.joins == 4

    value, hit = await cache.get_or_resolve("k", producer)
    assert hit is True
    assert value is values[0]
    assert calls == 1


@pytest.mark.asyncio
async def test_producer_failure_reaches_all_waiters_and_clears_marker(clock):
    cache = _cache(clock)
    gate = asyncio.Event()

    async def producer():
        await gate.wait()
        raise RuntimeError("boom")

    waiters = [asyncio.ensure_future(cache.resolve_or_join("k", producer)) for _ in range(3)]
    await asyncio.sleep(0)
    gate.set()
    results = await asyncio.gather(*waiters, return_exceptions=True)

    assert all(isinstance(r, RuntimeError) for r in results)
    assert cache.inflight_count == 0
    assert cache.lookup("k") is None


@pytest.mark.asyncio
async def test_cancelled_waiter_does_not_cancel_shared_fetch(clock):
    cache = _cache(clock)
    gate = asyncio.Event()
    calls = 0

    async def producer():
        nonlocal calls
        calls += 1
        await gate.wait()
        return "done"

    first = asyncio.ensure_future(cache.resolve_or_join("k", producer))
    second = asyncio.ensure_future(cache.resolve_or_join("k", producer))
    await asyncio.sleep(0)

    first.cancel()
    with pytest.raises(asyncio.CancelledError):
        await first

    gate.set()
    assert await second == "done"
    assert calls == 1
    assert cache.lookup("k") == "done"


@pytest.mark.asyncio
async def test_fetch_completes_even_if_every_waiter_leaves(clock):
    cache = _cache(clock)
    gate = asyncio.Event()

    async def producer():
        await gate.wait()
        return "stored"

    only = asyncio.ensure_future(cache.resolve_or_join("k", producer))
    await asyncio.sleep(0)
    only.cancel()
    gate.set()
    for _ in range(5):
        await asyncio.sleep(0)
    assert cache.lookup("k") == "stored"
    assert cache.inflight_count == 0


@pytest.mark.asyncio
async def test_distinct_keys_fetch_independently(clock):
    cache = _cache(clock)
    seen = []

    def producer_for(key):
        async def producer():
            seen.append(key)
            return key
        return producer

    out = await asyncio.gather(
        cache.resolve_or_join("a", producer_for("a")),
        cache.resolve_or_join("b", producer_for("b")),
    )
    assert out == ["a", "b"]
    assert sorted(seen) == ["a", "b"]
