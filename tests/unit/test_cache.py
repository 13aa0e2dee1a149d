"""Tests for the coalescing path cache."""
import asyncio
import os

import pytest

from template_views.cache import PathCache, normalize_key

class Counter:
    """Coroutine factory counting its invocations."""

    def __init__(self, result=None, error=None):
        self.calls = 0
        self.result = result if result is not None else object()
        self.error = error

    async def __call__(self):
        self.calls += 1
        await asyncio.sleep(0)
        if self.error is not None:
            raise self.error
        return self.result

def test_normalize_key_is_absolute():
    assert normalize_key("a/../b") == os.path.join(os.getcwd(), "b")

@pytest.mark.asyncio
async def test_concurrent_requests_share_one_computation():
    cache = PathCache()
    compute = Counter()

    first, second = await asyncio.gather(
        cache.get("views/home.html", compute, True),
        cache.get("views/home.html", compute, True),
    )

    assert first is second
    assert compute.calls == 1

@pytest.mark.asyncio
async def test_relative_and_absolute_keys_coalesce():
    cache = PathCache()
    compute = Counter()

    await cache.get("views/../views/home.html", compute, True)
    await cache.get(os.path.abspath("views/home.html"), compute, True)

    assert compute.calls == 1
    assert len(cache) == 1

@pytest.mark.asyncio
async def test_completed_entry_is_reused():
    cache = PathCache()
    compute = Counter(result=["a.html"])

    assert await cache.get("dir", compute, True) == ["a.html"]
    assert await cache.get("dir", compute, True) == ["a.html"]
    assert compute.calls == 1
    assert "dir" in cache

@pytest.mark.asyncio
async def test_failure_reaches_every_waiter_and_evicts():
    cache = PathCache()
    error = OSError("boom")
    compute = Counter(error=error)

    results = await asyncio.gather(
        cache.get("missing", compute, True),
        cache.get("missing", compute, True),
        return_exceptions=True,
    )

    assert results[0] is error
    assert results[1] is error
    assert compute.calls == 1
    assert "missing" not in cache

@pytest.mark.asyncio
async def test_request_after_failure_recomputes():
    cache = PathCache()
    failing = Counter(error=OSError("boom"))

    with pytest.raises(OSError):
        await cache.get("file", failing, True)

    succeeding = Counter(result="text")
    assert await cache.get("file", succeeding, True) == "text"
    assert succeeding.calls == 1

@pytest.mark.asyncio
async def test_disabled_cache_always_computes_and_never_stores():
    cache = PathCache()
    cached = Counter(result="cached")
    await cache.get("file", cached, True)

    fresh = Counter(result="fresh")
    assert await cache.get("file", fresh, False) == "fresh"
    assert await cache.get("file", fresh, False) == "fresh"

    assert fresh.calls == 2
    assert len(cache) == 1
    assert await cache.get("file", fresh, True) == "cached"

@pytest.mark.asyncio
async def test_failure_does_not_evict_newer_entry():
    cache = PathCache()
    gate = asyncio.Event()

    async def slow_failure():
        await gate.wait()
        raise OSError("late")

    pending = asyncio.ensure_future(cache.get("file", slow_failure, True))
    await asyncio.sleep(0)

    assert cache.invalidate("file")
    replacement = Counter(result="new")
    await cache.get("file", replacement, True)

    gate.set()
    with pytest.raises(OSError):
        await pending

    assert "file" in cache
    assert await cache.get("file", replacement, True) == "new"

@pytest.mark.asyncio
async def test_clear_drops_entries():
    cache = PathCache()
    await cache.get("a", Counter(), True)
    await cache.get("b", Counter(), True)

    cache.clear()

    assert len(cache) == 0
    assert cache.keys() == []
