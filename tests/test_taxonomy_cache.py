"""Tests for the remote taxonomy cache: TTL, retry, coalescing, invalidation."""

from __future__ import annotations

import asyncio

from minscore.errors import TaxonomyFetchError
from minscore.schemas.taxonomy import ResourceKind
from minscore.services.taxonomy_cache import RemoteTaxonomyCache, get_taxonomy_cache
from tests.fakes import FakeClock, FakeSource, make_cache
from tests.test_constants import TEST_API_KEY, TEST_PROJECT_ID, dim


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


class TestDisabled:
    async def test_empty_api_key_makes_no_request(self) -> None:
        source = FakeSource()
        cache = make_cache(source)
        result = await cache.fetch_dimensions(TEST_PROJECT_ID, "")
        assert result.disabled is True
        assert result.items == ()
        assert result.ok
        assert cache.created == []
        assert source.dimension_calls == 0

    async def test_empty_project_id_makes_no_request(self) -> None:
        source = FakeSource()
        cache = make_cache(source)
        result = await cache.fetch_traits("", TEST_API_KEY)
        assert result.disabled is True
        assert source.trait_calls == 0


class TestFreshness:
    async def test_returns_items_in_source_order(self) -> None:
        source = FakeSource(dimensions=[dim("b", "SIG"), dim("a", "ENR")])
        cache = make_cache(source)
        result = await cache.fetch_dimensions(TEST_PROJECT_ID, TEST_API_KEY)
        assert [d.dim for d in result.items] == ["b", "a"]
        assert result.is_stale is False
        assert result.error is None

    async def test_second_call_within_ttl_hits_cache(self) -> None:
        source = FakeSource()
        clock = FakeClock()
        cache = make_cache(source, clock)
        await cache.fetch_dimensions(TEST_PROJECT_ID, TEST_API_KEY)
        clock.now += 299
        result = await cache.fetch_dimensions(TEST_PROJECT_ID, TEST_API_KEY)
        assert source.dimension_calls == 1
        assert [d.dim for d in result.items] == ["d1"]

    async def test_refetches_after_ttl(self) -> None:
        source = FakeSource()
        clock = FakeClock()
        cache = make_cache(source, clock)
        await cache.fetch_dimensions(TEST_PROJECT_ID, TEST_API_KEY)
        clock.now += 300
        await cache.fetch_dimensions(TEST_PROJECT_ID, TEST_API_KEY)
        assert source.dimension_calls == 2

    async def test_keys_are_separate_per_kind_and_project(self) -> None:
        source = FakeSource()
        cache = make_cache(source)
        await cache.fetch_dimensions(TEST_PROJECT_ID, TEST_API_KEY)
        await cache.fetch_traits(TEST_PROJECT_ID, TEST_API_KEY)
        await cache.fetch_dimensions("other-project", TEST_API_KEY)
        assert source.dimension_calls == 2
        assert source.trait_calls == 1
        assert cache.get_entry(ResourceKind.TRAITS, TEST_PROJECT_ID) is not None


class TestCoalescing:
    async def test_concurrent_calls_share_one_request(self) -> None:
        gate = asyncio.Event()
        source = FakeSource(gate=gate)
        cache = make_cache(source)

        first = asyncio.create_task(cache.fetch_dimensions(TEST_PROJECT_ID, TEST_API_KEY))
        second = asyncio.create_task(cache.fetch_dimensions(TEST_PROJECT_ID, TEST_API_KEY))
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        gate.set()
        r1, r2 = await asyncio.gather(first, second)

        assert source.dimension_calls == 1
        assert r1.items == r2.items
        assert cache.get_entry(ResourceKind.DIMENSIONS, TEST_PROJECT_ID).in_flight is None

    async def test_gathered_calls_share_one_request(self) -> None:
        source = FakeSource()
        cache = make_cache(source)
        results = await asyncio.gather(
            *(cache.fetch_dimensions(TEST_PROJECT_ID, TEST_API_KEY) for _ in range(5))
        )
        assert source.dimension_calls == 1
        assert len({r.items for r in results}) == 1

    async def test_cancelled_caller_does_not_cancel_shared_request(self) -> None:
        gate = asyncio.Event()
        source = FakeSource(gate=gate)
        cache = make_cache(source)

        first = asyncio.create_task(cache.fetch_dimensions(TEST_PROJECT_ID, TEST_API_KEY))
        second = asyncio.create_task(cache.fetch_dimensions(TEST_PROJECT_ID, TEST_API_KEY))
        await asyncio.sleep(0)
        first.cancel()
        gate.set()
        result = await second

        assert [d.dim for d in result.items] == ["d1"]
        assert source.dimension_calls == 1


class TestRetry:
    async def test_retries_then_succeeds(self) -> None:
        sleeps: list[float] = []
        source = FakeSource(fail_times=2)
        cache = make_cache(source, sleeps=sleeps)
        result = await cache.fetch_dimensions(TEST_PROJECT_ID, TEST_API_KEY)
        assert source.dimension_calls == 3
        assert result.ok
        assert [d.dim for d in result.items] == ["d1"]
        assert sleeps == [0.5, 1.0]

    async def test_gives_up_after_two_retries(self) -> None:
        source = FakeSource(fail_times=10)
        cache = make_cache(source)
        result = await cache.fetch_dimensions(TEST_PROJECT_ID, TEST_API_KEY)
        assert source.dimension_calls == 3
        assert isinstance(result.error, TaxonomyFetchError)
        assert result.items == ()
        assert result.is_stale is False
        entry = cache.get_entry(ResourceKind.DIMENSIONS, TEST_PROJECT_ID)
        assert entry.in_flight is None
        assert entry.last_error is result.error

    async def test_failure_keeps_previous_value_as_stale(self) -> None:
        source = FakeSource()
        clock = FakeClock()
        cache = make_cache(source, clock)
        await cache.fetch_dimensions(TEST_PROJECT_ID, TEST_API_KEY)

        source.fail_times = 100
        clock.now += 301
        result = await cache.fetch_dimensions(TEST_PROJECT_ID, TEST_API_KEY)
        assert result.is_stale is True
        assert result.error is not None
        assert [d.dim for d in result.items] == ["d1"]

    async def test_expired_after_failure_retries_on_next_call(self) -> None:
        source = FakeSource(fail_times=3)
        cache = make_cache(source)
        failed = await cache.fetch_dimensions(TEST_PROJECT_ID, TEST_API_KEY)
        assert not failed.ok
        recovered = await cache.fetch_dimensions(TEST_PROJECT_ID, TEST_API_KEY)
        assert recovered.ok
        assert source.dimension_calls == 4

    async def test_unexpected_exception_is_reported_not_raised(self) -> None:
        async def broken():
            raise RuntimeError("unexpected")

        cache = make_cache(FakeSource(), max_retries=0)
        result = await cache.get_or_fetch(ResourceKind.TRAITS, TEST_PROJECT_ID, broken)
        assert isinstance(result.error, RuntimeError)


class TestInvalidate:
    async def test_invalidate_forces_refetch(self) -> None:
        source = FakeSource()
        cache = make_cache(source)
        await cache.fetch_dimensions(TEST_PROJECT_ID, TEST_API_KEY)
        cache.invalidate(TEST_PROJECT_ID)
        await cache.fetch_dimensions(TEST_PROJECT_ID, TEST_API_KEY)
        assert source.dimension_calls == 2

    async def test_invalidate_other_project_keeps_entry(self) -> None:
        source = FakeSource()
        cache = make_cache(source)
        await cache.fetch_dimensions(TEST_PROJECT_ID, TEST_API_KEY)
        cache.invalidate("other-project")
        await cache.fetch_dimensions(TEST_PROJECT_ID, TEST_API_KEY)
        assert source.dimension_calls == 1

    async def test_in_flight_result_discarded_after_invalidate(self) -> None:
        gate = asyncio.Event()
        source = FakeSource(gate=gate)
        cache = make_cache(source)

        pending = asyncio.create_task(cache.fetch_dimensions(TEST_PROJECT_ID, TEST_API_KEY))
        await asyncio.sleep(0)
        cache.invalidate(TEST_PROJECT_ID)
        gate.set()
        await pending

        entry = cache.get_entry(ResourceKind.DIMENSIONS, TEST_PROJECT_ID)
        assert entry.value is None
        assert entry.fetched_at is None

    async def test_caller_after_invalidate_waits_then_refetches(self) -> None:
        gate = asyncio.Event()
        source = FakeSource(gate=gate)
        cache = make_cache(source)

        stale = asyncio.create_task(cache.fetch_dimensions(TEST_PROJECT_ID, TEST_API_KEY))
        await asyncio.sleep(0)
        cache.invalidate(TEST_PROJECT_ID)
        fresh = asyncio.create_task(cache.fetch_dimensions(TEST_PROJECT_ID, TEST_API_KEY))
        await asyncio.sleep(0)
        assert source.dimension_calls <= 1
        gate.set()
        await asyncio.gather(stale, fresh)

        assert source.dimension_calls == 2
        entry = cache.get_entry(ResourceKind.DIMENSIONS, TEST_PROJECT_ID)
        assert entry.value is not None


def test_get_taxonomy_cache_is_singleton() -> None:
    assert get_taxonomy_cache() is get_taxonomy_cache()


def test_cache_defaults_from_settings(monkeypatch) -> None:
    from minscore.config import get_settings

    monkeypatch.setenv("TAXONOMY_CACHE_TTL", "60")
    monkeypatch.setenv("TAXONOMY_MAX_RETRIES", "4")
    get_settings.cache_clear()
    cache = RemoteTaxonomyCache()
    assert cache.ttl == 60.0
    assert cache.max_retries == 4
