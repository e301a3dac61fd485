"""Tag- and version-aware response cache over Redis.

Entries live under versioned keys (``version:{version}:{key}``) with a
backend-native TTL and a redundant ``expiresAt`` that readers check lazily.
Each tag owns a Redis set of the versioned keys written under it, so
"invalidate everything tagged X" resolves to a key list without a keyspace
scan.

Every operation is one or more independent round trips. There is no
cross-key atomicity: ``set`` writes the entry and then each tag membership
as separate commands, and a failure part-way is not rolled back. A ``set``
racing an ``invalidate_by_tags`` on the same tag may leave the new entry
live.

Example:
    store = CacheStore(create_redis(settings))

    page = await store.get("clients:1:10:::::::")
    if page is None:
        page = await load_clients_page()
        await store.set("clients:1:10:::::::", page, tags=["clients"])

    # after a client is created
    await store.delete_by_prefix("clients:")
"""

from __future__ import annotations

import logging
import math
import time
from collections.abc import Iterable, Iterator, Sequence
from contextlib import contextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable

from redis.exceptions import RedisError

from carecache.cache.entry import CacheEntry
from carecache.cache.errors import CacheEntryCorrupt, CacheUnavailable
from carecache.cache.keys import CacheKeys
from carecache.observability.metrics import MetricsRegistry, get_metrics

if TYPE_CHECKING:
    from redis.asyncio import Redis

logger = logging.getLogger(__name__)

# Default TTL (1 hour)
DEFAULT_TTL = 3600
DEFAULT_VERSION = "v1"


def _now_ms() -> int:
    return int(time.time() * 1000)


def _as_str(value: bytes | str) -> str:
    return value.decode() if isinstance(value, bytes) else value


def _chunks(items: Sequence[str], size: int) -> Iterator[Sequence[str]]:
    for start in range(0, len(items), size):
        yield items[start : start + size]


@dataclass(frozen=True)
class CacheStats:
    """Diagnostic snapshot of the backend."""

    total_keys: int
    total_tags: int
    memory_usage: int = 0  # not exposed by the backend tier

    def to_dict(self) -> dict[str, int]:
        return {
            "totalKeys": self.total_keys,
            "totalTags": self.total_tags,
            "memoryUsage": self.memory_usage,
        }


class CacheStore:
    """Read-through cache with key, prefix, tag and version invalidation."""

    def __init__(
        self,
        client: Redis,
        *,
        default_ttl: int = DEFAULT_TTL,
        default_version: str = DEFAULT_VERSION,
        keys: CacheKeys | None = None,
        scan_count: int = 100,
        delete_batch_size: int = 500,
        clock: Callable[[], int] = _now_ms,
        metrics: MetricsRegistry | None = None,
    ):
        if default_ttl <= 0:
            raise ValueError("default_ttl must be positive")
        self.client = client
        self.default_ttl = default_ttl
        self.default_version = default_version
        self.keys = keys or CacheKeys()
        self.scan_count = scan_count
        self.delete_batch_size = delete_batch_size
        self.clock = clock
        self.metrics = metrics if metrics is not None else get_metrics()

    # -------------------------------------------------------------------------
    # Reads and writes
    # -------------------------------------------------------------------------

    async def get(self, key: str, *, version: str | None = None) -> Any | None:
        """Get the cached value for a logical key.

        Returns None on a miss or when the entry has expired; an expired
        entry is deleted on the way out.

        Raises:
            CacheUnavailable: The backend failed or the entry is undecodable.
        """
        full_key = self.keys.versioned(key, self.resolve_version(version))

        with self._backend("get", full_key):
            raw = await self.client.get(full_key)

        if raw is None:
            self._count_miss()
            logger.debug(f"Cache miss: {full_key}")
            return None

        try:
            entry = CacheEntry.from_bytes(raw)
        except ValueError as exc:
            self._count_error("get")
            raise CacheEntryCorrupt(full_key, str(exc)) from exc

        if entry.is_expired(self.clock()):
            with self._backend("delete", full_key):
                await self.client.delete(full_key)
            self._count_miss()
            logger.debug(f"Cache entry expired: {full_key}")
            return None

        if self.metrics.cache_hits_total:
            self.metrics.cache_hits_total.inc()
        logger.debug(f"Cache hit: {full_key}")
        return entry.data

    async def set(
        self,
        key: str,
        value: Any,
        *,
        ttl: int | None = None,
        tags: Iterable[str] | None = None,
        version: str | None = None,
    ) -> None:
        """Store a value under a logical key.

        Args:
            key: Logical key built by the caller
            value: JSON-serializable payload
            ttl: Lifetime in seconds (defaults to ``default_ttl``)
            tags: Invalidation groups for this entry
            version: Cache epoch (defaults to ``default_version``)

        Raises:
            ValueError: If ``ttl`` is not positive
            TypeError: If ``value`` is not JSON-serializable
            CacheUnavailable: If a backend write failed. Writes already made
                (entry, earlier tag memberships) are not rolled back.
        """
        ttl_seconds = self.default_ttl if ttl is None else ttl
        if ttl_seconds <= 0:
            raise ValueError("ttl must be a positive number of seconds")

        epoch = self.resolve_version(version)
        full_key = self.keys.versioned(key, epoch)
        new_tags = list(dict.fromkeys(tags or ()))

        entry = CacheEntry.create(
            key,
            value,
            version=epoch,
            ttl_seconds=ttl_seconds,
            now_ms=self.clock(),
            tags=new_tags,
        )
        payload = entry.to_bytes()
        previous_tags = await self._previous_tags(full_key)

        # Index changes run entry, then additions, then removals: a failure
        # part-way leaves extra memberships, never a live entry missing one.
        with self._backend("set", full_key):
            await self.client.set(full_key, payload, ex=math.ceil(ttl_seconds))

        for tag in new_tags:
            tag_key = self.keys.tag(tag)
            with self._backend("sadd", tag_key):
                await self.client.sadd(tag_key, full_key)

        for old_tag in previous_tags:
            if old_tag not in new_tags:
                tag_key = self.keys.tag(old_tag)
                with self._backend("srem", tag_key):
                    await self.client.srem(tag_key, full_key)

        logger.debug(f"Cached {full_key} (ttl={ttl_seconds}s, tags={new_tags})")

    async def delete(self, key: str, *, version: str | None = None) -> None:
        """Delete one entry. Deleting a missing key is not an error."""
        full_key = self.keys.versioned(key, self.resolve_version(version))
        with self._backend("delete", full_key):
            removed = await self.client.delete(full_key)
        self._count_invalidated("key", removed)

    # -------------------------------------------------------------------------
    # Bulk invalidation
    # -------------------------------------------------------------------------

    async def delete_by_prefix(self, prefix: str, *, version: str | None = None) -> int:
        """Delete every entry whose logical key starts with ``prefix``.

        Returns the number of entries deleted.
        """
        pattern = self.keys.prefix_pattern(prefix, self.resolve_version(version))
        removed = await self._delete_matching("delete_by_prefix", pattern)
        self._count_invalidated("prefix", removed)
        logger.debug(f"Deleted {removed} entries matching {pattern}")
        return removed

    async def invalidate_by_tags(
        self, tags: Iterable[str], *, version: str | None = None
    ) -> int:
        """Delete every entry of one version carrying any of ``tags``.

        Tag sets are pruned afterwards: a set left with no members from other
        versions is deleted outright, otherwise only the purged members are
        removed from it.

        Returns the number of entries deleted.
        """
        namespace = self.keys.version_namespace(self.resolve_version(version))
        unique_tags = list(dict.fromkeys(tags))
        tag_keys = [self.keys.tag(tag) for tag in unique_tags]
        if not tag_keys:
            return 0

        members_by_tag: dict[str, set[str]] = {}
        for tag_key in tag_keys:
            with self._backend("smembers", tag_key):
                members = await self.client.smembers(tag_key)
            members_by_tag[tag_key] = {_as_str(member) for member in members}

        targets = sorted(
            {
                member
                for members in members_by_tag.values()
                for member in members
                if member.startswith(namespace)
            }
        )

        removed = 0
        for batch in _chunks(targets, self.delete_batch_size):
            with self._backend("delete", batch[0]):
                removed += await self.client.delete(*batch)

        purged = set(targets)
        for tag_key, members in members_by_tag.items():
            with self._backend("prune_tag", tag_key):
                if members - purged:
                    stale = members & purged
                    if stale:
                        await self.client.srem(tag_key, *stale)
                else:
                    await self.client.delete(tag_key)

        self._count_invalidated("tags", removed)
        logger.debug(f"Invalidated {removed} entries for tags {unique_tags}")
        return removed

    async def invalidate_by_version(self, version: str) -> int:
        """Delete every entry written under one cache epoch.

        Other epochs are untouched, so old and new code can run side by side
        during a rolling deploy.
        """
        pattern = self.keys.version_pattern(version)
        removed = await self._delete_matching("invalidate_by_version", pattern)
        self._count_invalidated("version", removed)
        logger.info(f"Invalidated {removed} entries of cache version {version}")
        return removed

    async def clear(self) -> None:
        """Delete every key in the backend database (admin/test use only)."""
        with self._backend("clear"):
            await self.client.flushdb()
        logger.warning("Cache backend flushed")

    # -------------------------------------------------------------------------
    # Diagnostics
    # -------------------------------------------------------------------------

    async def get_stats(self) -> CacheStats:
        """Count backend keys and tag index sets."""
        with self._backend("stats"):
            total_keys = int(await self.client.dbsize())
            total_tags = 0
            async for _ in self.client.scan_iter(
                match=self.keys.tag_pattern(), count=self.scan_count
            ):
                total_tags += 1
        return CacheStats(total_keys=total_keys, total_tags=total_tags)

    async def list_keys(self, prefix: str = "", *, version: str | None = None) -> list[str]:
        """Logical keys of one version starting with ``prefix``, sorted."""
        epoch = self.resolve_version(version)
        namespace = self.keys.version_namespace(epoch)
        pattern = self.keys.prefix_pattern(prefix, epoch)
        found: set[str] = set()
        with self._backend("list_keys", pattern):
            async for key in self.client.scan_iter(match=pattern, count=self.scan_count):
                found.add(_as_str(key)[len(namespace) :])
        return sorted(found)

    async def health_check(self) -> bool:
        """Check Redis connectivity."""
        try:
            await self.client.ping()
            return True
        except Exception:
            return False

    def resolve_version(self, version: str | None) -> str:
        """Cache epoch an operation uses; None or "" means the default."""
        return version or self.default_version

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    async def _previous_tags(self, full_key: str) -> list[str]:
        """Tags of the entry currently stored at ``full_key``, if readable."""
        with self._backend("get", full_key):
            raw = await self.client.get(full_key)
        if raw is None:
            return []
        try:
            return CacheEntry.from_bytes(raw).metadata.tags
        except ValueError:
            logger.debug(f"Ignoring undecodable previous entry at {full_key}")
            return []

    async def _delete_matching(self, operation: str, pattern: str) -> int:
        """SCAN for ``pattern`` and delete matches in batches."""
        removed = 0
        batch: list[str] = []
        with self._backend(operation, pattern):
            async for key in self.client.scan_iter(match=pattern, count=self.scan_count):
                batch.append(_as_str(key))
                if len(batch) >= self.delete_batch_size:
                    removed += await self.client.delete(*batch)
                    batch = []
            if batch:
                removed += await self.client.delete(*batch)
        return removed

    @contextmanager
    def _backend(self, operation: str, key: str | None = None) -> Iterator[None]:
        """Time a backend call and map redis errors to CacheUnavailable."""
        start = time.perf_counter()
        try:
            yield
        except RedisError as exc:
            self._count_error(operation)
            raise CacheUnavailable(operation, key, str(exc)) from exc
        finally:
            if self.metrics.cache_operation_duration_seconds:
                self.metrics.cache_operation_duration_seconds.labels(
                    operation=operation
                ).observe(time.perf_counter() - start)

    def _count_miss(self) -> None:
        if self.metrics.cache_misses_total:
            self.metrics.cache_misses_total.inc()

    def _count_error(self, operation: str) -> None:
        if self.metrics.cache_errors_total:
            self.metrics.cache_errors_total.labels(operation=operation).inc()

    def _count_invalidated(self, mode: str, count: int) -> None:
        if count and self.metrics.cache_invalidated_keys_total:
            self.metrics.cache_invalidated_keys_total.labels(mode=mode).inc(count)
