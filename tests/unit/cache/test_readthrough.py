"""Tests for the fail-open read-through and invalidation helpers."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from carecache.api.pagination import PaginationParams, paginated
from carecache.cache.keys import listing_key
from carecache.cache.readthrough import cached, invalidate
from carecache.cache.store import CacheStore
from tests.fakes import FakeRedis

CLIENTS = [
    {"id": "c1", "name": "Acme Care"},
    {"id": "c2", "name": "Bright Health"},
    {"id": "c3", "name": "Cedar Clinic"},
]


class FakeClientSource:
    """Stands in for the relational store behind a listing route."""

    def __init__(self, rows: list[dict[str, str]]) -> None:
        self.rows = list(rows)
        self.fetches = 0

    async def fetch_page(self, params: PaginationParams) -> dict:
        self.fetches += 1
        page = self.rows[params.offset : params.offset + params.limit]
        return paginated(page, len(self.rows), params)


class TestCached:
    @pytest.mark.asyncio
    async def test_miss_loads_and_stores(self, store: CacheStore) -> None:
        loader = AsyncMock(return_value={"id": 1})

        result = await cached(store, "client:1", loader, tags=["clients"])

        assert result == {"id": 1}
        loader.assert_awaited_once()
        assert await store.get("client:1") == {"id": 1}

    @pytest.mark.asyncio
    async def test_hit_skips_loader(self, store: CacheStore) -> None:
        await store.set("client:1", {"id": 1})
        loader = AsyncMock()

        assert await cached(store, "client:1", loader) == {"id": 1}
        loader.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_backend_down_falls_back_to_loader(
        self, store: CacheStore, fake_redis: FakeRedis
    ) -> None:
        """A cache outage looks like a miss to the caller."""
        fake_redis.fail_on.update({"get", "set"})
        loader = AsyncMock(return_value=[1, 2, 3])

        assert await cached(store, "k", loader) == [1, 2, 3]
        loader.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_corrupt_entry_falls_back_to_loader(
        self, store: CacheStore, fake_redis: FakeRedis
    ) -> None:
        fake_redis.strings["version:v1:k"] = "corrupt"
        loader = AsyncMock(return_value="fresh")

        assert await cached(store, "k", loader) == "fresh"
        assert await store.get("k") == "fresh"

    @pytest.mark.asyncio
    async def test_loader_errors_propagate(self, store: CacheStore) -> None:
        loader = AsyncMock(side_effect=LookupError("no such client"))

        with pytest.raises(LookupError):
            await cached(store, "k", loader)


class TestInvalidate:
    @pytest.mark.asyncio
    async def test_invalidates_keys_prefixes_and_tags(self, store: CacheStore) -> None:
        await store.set("provider:1", 1)
        await store.set("providers:1:10", 2)
        await store.set("contracts:1", 3, tags=["contracts"])
        await store.set("industries", 4)

        ok = await invalidate(
            store, keys=["provider:1"], prefixes=["providers:"], tags=["contracts"]
        )

        assert ok is True
        assert await store.get("provider:1") is None
        assert await store.get("providers:1:10") is None
        assert await store.get("contracts:1") is None
        assert await store.get("industries") == 4

    @pytest.mark.asyncio
    async def test_continues_after_failure(self, store: CacheStore, fake_redis: FakeRedis) -> None:
        """A failed step is logged and later steps still run."""
        await store.set("contracts:1", 3, tags=["contracts"])
        fake_redis.fail_on.add("scan")

        ok = await invalidate(store, prefixes=["clients:"], tags=["contracts"])

        assert ok is False
        assert await store.get("contracts:1") is None


class TestListingScenarios:
    """End-to-end listing cache behaviour as seen by a route handler."""

    @pytest.mark.asyncio
    async def test_paginated_listing_is_served_from_cache(self, store: CacheStore) -> None:
        source = FakeClientSource(CLIENTS)
        params = PaginationParams.from_query(1, 10)
        key = listing_key("clients", params.page, params.limit, *[None] * 7)
        assert key == "clients:1:10:::::::"

        assert await store.get(key) is None

        first = await cached(store, key, lambda: source.fetch_page(params))
        second = await cached(store, key, lambda: source.fetch_page(params))

        assert first == {
            "data": CLIENTS,
            "metadata": {"total": 3, "page": 1, "limit": 10, "totalPages": 1},
        }
        assert second == first
        assert source.fetches == 1

    @pytest.mark.asyncio
    async def test_create_invalidates_listing(self, store: CacheStore) -> None:
        source = FakeClientSource(CLIENTS)
        params = PaginationParams.from_query(1, 10)
        key = listing_key("clients", 1, 10, *[None] * 7)
        await cached(store, key, lambda: source.fetch_page(params))

        # POST /clients commits a new row, then purges listings
        source.rows.append({"id": "c4", "name": "Delta Dental"})
        await invalidate(store, prefixes=["clients:"])

        assert await store.get(key) is None
        refreshed = await cached(store, key, lambda: source.fetch_page(params))
        assert refreshed["metadata"]["total"] == 4
        assert source.fetches == 2
