"""Cache error taxonomy.

Callers treat every ``CacheUnavailable`` as "fall through to the source of
truth", never as "the data does not exist".
"""

from __future__ import annotations


class CacheError(Exception):
    """Base class for cache errors."""


class CacheUnavailable(CacheError):
    """The backend could not be reached or answered with a protocol error."""

    def __init__(self, operation: str, key: str | None = None, message: str | None = None):
        self.operation = operation
        self.key = key
        detail = message or "cache backend unavailable"
        if key is not None:
            text = f"{operation} {key!r}: {detail}"
        else:
            text = f"{operation}: {detail}"
        super().__init__(text)


class CacheEntryCorrupt(CacheUnavailable):
    """A stored entry could not be decoded."""

    def __init__(self, key: str, message: str | None = None):
        super().__init__("get", key, message or "stored entry is not a valid cache entry")
