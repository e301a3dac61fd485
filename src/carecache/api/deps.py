"""Shared FastAPI dependencies.

The CacheStore is built once by the application lifespan and kept on
``app.state``; handlers receive it through ``CacheDep``. Tests swap it with
``app.dependency_overrides[get_cache]``.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request

from carecache.cache.store import CacheStore


def get_cache(request: Request) -> CacheStore:
    """FastAPI dependency returning the application's CacheStore."""
    store: CacheStore | None = getattr(request.app.state, "cache", None)
    if store is None:
        raise RuntimeError("CacheStore not initialized; is the application lifespan running?")
    return store


CacheDep = Annotated[CacheStore, Depends(get_cache)]
