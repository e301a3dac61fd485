"""Response cache layer.

Provides a Redis-backed read-through cache:
- Versioned keys so a whole epoch can be retired at once
- Tag index sets for group invalidation after writes
- Prefix invalidation for families of paginated listings
- Lazy TTL expiry on read backed by native Redis expiry
"""

from carecache.cache.entry import CacheEntry, CacheMetadata
from carecache.cache.errors import CacheEntryCorrupt, CacheError, CacheUnavailable
from carecache.cache.keys import CacheKeys, escape_glob, listing_key
from carecache.cache.readthrough import cached, invalidate
from carecache.cache.redis import close_redis, create_cache_store, create_redis
from carecache.cache.store import CacheStats, CacheStore

__all__ = [
    # Core cache
    "CacheStore",
    "CacheStats",
    "CacheEntry",
    "CacheMetadata",
    "CacheKeys",
    "escape_glob",
    "listing_key",
    # Errors
    "CacheError",
    "CacheUnavailable",
    "CacheEntryCorrupt",
    # Read-through helpers
    "cached",
    "invalidate",
    # Client lifecycle
    "create_redis",
    "close_redis",
    "create_cache_store",
]
