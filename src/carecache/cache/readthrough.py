"""Fail-open helpers for route handlers.

Reads fall back to the source of truth whenever the cache misbehaves, and
writes never fail because an invalidation was lost. A cache outage is
therefore indistinguishable from a miss apart from latency.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Iterable
from typing import TYPE_CHECKING, TypeVar

from carecache.cache.errors import CacheUnavailable

if TYPE_CHECKING:
    from carecache.cache.store import CacheStore

T = TypeVar("T")

logger = logging.getLogger(__name__)


async def cached(
    store: CacheStore,
    key: str,
    loader: Callable[[], Awaitable[T]],
    *,
    ttl: int | None = None,
    tags: Iterable[str] | None = None,
    version: str | None = None,
) -> T:
    """Return the cached value for ``key`` or compute and cache it.

    ``loader`` is awaited only on a miss or when the cache is unavailable.
    Errors raised by ``loader`` propagate unchanged.
    """
    try:
        hit = await store.get(key, version=version)
    except CacheUnavailable as e:
        logger.warning(f"Cache read failed, loading from source: {e}")
        hit = None

    if hit is not None:
        return hit  # type: ignore[no-any-return]

    value = await loader()

    try:
        await store.set(key, value, ttl=ttl, tags=tags, version=version)
    except CacheUnavailable as e:
        logger.warning(f"Cache write failed, serving uncached value: {e}")

    return value


async def invalidate(
    store: CacheStore,
    *,
    keys: Iterable[str] = (),
    prefixes: Iterable[str] = (),
    tags: Iterable[str] = (),
    version: str | None = None,
) -> bool:
    """Purge cache entries after a committed mutation.

    Every step is attempted even if an earlier one failed.

    Returns:
        False if any invalidation step could not reach the cache.
    """
    ok = True

    for key in keys:
        try:
            await store.delete(key, version=version)
        except CacheUnavailable as e:
            logger.error(f"Cache invalidation of key {key!r} failed: {e}")
            ok = False

    for prefix in prefixes:
        try:
            await store.delete_by_prefix(prefix, version=version)
        except CacheUnavailable as e:
            logger.error(f"Cache invalidation of prefix {prefix!r} failed: {e}")
            ok = False

    tag_list = list(tags)
    if tag_list:
        try:
            await store.invalidate_by_tags(tag_list, version=version)
        except CacheUnavailable as e:
            logger.error(f"Cache invalidation of tags {tag_list} failed: {e}")
            ok = False

    return ok
