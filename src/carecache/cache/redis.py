"""Redis client construction for the cache.

Uses the redis-py async client for connection pooling. The client is built
once at process startup and handed to the CacheStore; there is no
module-level client.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import redis.asyncio as redis

from carecache.cache.keys import CacheKeys

if TYPE_CHECKING:
    from redis.asyncio import Redis

    from carecache.cache.store import CacheStore
    from carecache.config import Settings

logger = logging.getLogger(__name__)


def create_redis(settings: Settings) -> Redis:
    """Create a pooled Redis client from settings.

    Socket timeouts bound every round trip, so a stalled backend surfaces as
    a TimeoutError (mapped to CacheUnavailable) instead of hanging callers.
    """
    client = redis.from_url(  # type: ignore[no-untyped-call]
        settings.redis_url,
        password=settings.redis_token,
        encoding="utf-8",
        decode_responses=True,
        socket_timeout=settings.redis_socket_timeout,
        socket_connect_timeout=settings.redis_connect_timeout,
    )
    logger.info(f"Created Redis client for {_redact(settings.redis_url)}")
    return client


async def close_redis(client: Redis) -> None:
    """Close Redis connections."""
    await client.aclose()
    logger.info("Closed Redis client")


def create_cache_store(settings: Settings, client: Redis | None = None) -> CacheStore:
    """Build a CacheStore wired to settings, creating the client if needed."""
    from carecache.cache.store import CacheStore

    return CacheStore(
        client if client is not None else create_redis(settings),
        default_ttl=settings.cache_default_ttl,
        default_version=settings.cache_default_version,
        keys=CacheKeys(
            version_prefix=settings.cache_version_prefix,
            tag_prefix=settings.cache_tag_prefix,
        ),
        scan_count=settings.cache_scan_count,
        delete_batch_size=settings.cache_delete_batch_size,
    )


def _redact(url: str) -> str:
    """Hide credentials embedded in a connection URL."""
    scheme, sep, rest = url.partition("://")
    if not sep or "@" not in rest:
        return url
    return f"{scheme}://***@{rest.rsplit('@', 1)[1]}"
