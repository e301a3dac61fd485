"""Tests for the stored cache entry model."""

import orjson
import pytest

from carecache.cache.entry import CacheEntry, CacheMetadata


class TestCacheEntry:
    """Tests for CacheEntry."""

    def test_create_sets_expiry(self) -> None:
        """expiresAt is createdAt + ttl * 1000."""
        entry = CacheEntry.create("k", {"a": 1}, version="v1", ttl_seconds=60, now_ms=1000)

        assert entry.metadata.created_at == 1000
        assert entry.metadata.expires_at == 61_000
        assert entry.metadata.tags == []

    def test_is_expired(self) -> None:
        entry = CacheEntry.create("k", 1, version="v1", ttl_seconds=1, now_ms=0)

        assert not entry.is_expired(999)
        assert entry.is_expired(1000)

    def test_wire_format(self) -> None:
        """Serialized entry uses camelCase metadata fields."""
        entry = CacheEntry.create(
            "clients:1", [1, 2], version="v1", ttl_seconds=10, now_ms=5, tags=["clients"]
        )

        parsed = orjson.loads(entry.to_bytes())

        assert parsed == {
            "key": "clients:1",
            "data": [1, 2],
            "metadata": {
                "version": "v1",
                "tags": ["clients"],
                "createdAt": 5,
                "expiresAt": 10_005,
            },
        }

    def test_from_bytes_restores_entry(self) -> None:
        original = CacheEntry.create(
            "k", {"nested": {"x": [1, None]}}, version="v2", ttl_seconds=5, now_ms=0, tags=["t"]
        )

        restored = CacheEntry.from_bytes(original.to_bytes())

        assert restored == original

    def test_from_str(self) -> None:
        """Decoded (str) responses are accepted."""
        raw = CacheEntry.create("k", "v", version="v1", ttl_seconds=5, now_ms=0).to_bytes()
        assert CacheEntry.from_bytes(raw.decode()).data == "v"

    @pytest.mark.parametrize(
        "raw",
        [
            b"not json",
            b"[]",
            b'{"key": "k", "data": 1}',
            b'{"key": "k", "data": 1, "metadata": {"version": "v1"}}',
            b'{"key": "k", "metadata": {"version": "v1", "createdAt": "x", "expiresAt": 1}}',
        ],
    )
    def test_malformed_entries_raise_value_error(self, raw: bytes) -> None:
        with pytest.raises(ValueError):
            CacheEntry.from_bytes(raw)

    def test_unserializable_value_raises_type_error(self) -> None:
        entry = CacheEntry.create("k", object(), version="v1", ttl_seconds=5, now_ms=0)
        with pytest.raises(TypeError):
            entry.to_bytes()


class TestCacheMetadata:
    def test_tags_must_be_list(self) -> None:
        with pytest.raises(ValueError):
            CacheMetadata.from_dict(
                {"version": "v1", "tags": "clients", "createdAt": 0, "expiresAt": 1}
            )
