import asyncio

from shopdesk.landing_service.app.cache import LandingCache


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def _counting_loader():
    calls = {"count": 0}

    async def loader() -> str:
        calls["count"] += 1
        return f"value-{calls['count']}"

    return loader, calls


def test_reads_within_ttl_hit_the_store_once() -> None:
    clock = FakeClock()
    cache: LandingCache[str] = LandingCache(300, clock=clock)
    loader, calls = _counting_loader()

    async def body() -> None:
        assert await cache.get_or_load(loader) == "value-1"
        clock.now = 299.0
        assert await cache.get_or_load(loader) == "value-1"
        assert calls["count"] == 1

        clock.now = 300.0
        assert await cache.get_or_load(loader) == "value-2"
        assert calls["count"] == 2

    asyncio.run(body())


def test_invalidate_forces_reload() -> None:
    clock = FakeClock()
    cache: LandingCache[str] = LandingCache(300, clock=clock)
    loader, calls = _counting_loader()

    async def body() -> None:
        await cache.get_or_load(loader)
        cache.invalidate()
        assert cache.peek() is None
        assert await cache.get_or_load(loader) == "value-2"
        assert calls["count"] == 2

    asyncio.run(body())


def test_zero_ttl_disables_caching() -> None:
    cache: LandingCache[str] = LandingCache(0)
    loader, calls = _counting_loader()

    async def body() -> None:
        await cache.get_or_load(loader)
        await cache.get_or_load(loader)
        assert calls["count"] == 2
        assert cache.peek() is None

    asyncio.run(body())


def test_concurrent_misses_load_once() -> None:
    cache: LandingCache[str] = LandingCache(60)
    calls = {"count": 0}

    async def slow_loader() -> str:
        calls["count"] += 1
        await asyncio.sleep(0.01)
        return "shared"

    async def body() -> None:
        results = await asyncio.gather(*(cache.get_or_load(slow_loader) for _ in range(5)))
        assert results == ["shared"] * 5
        assert calls["count"] == 1

    asyncio.run(body())
