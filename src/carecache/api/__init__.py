"""HTTP surface of the cache service."""
