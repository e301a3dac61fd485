"""Cache administration endpoints.

Provides:
- Backend statistics
- Key browsing and entry inspection
- Invalidation by key, prefix, tag set and version
- Full flush
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter, Query, Request, Response
from pydantic import BaseModel

from carecache.api.deps import CacheDep
from carecache.api.errors import BadRequestError, NotFoundError
from carecache.api.http_cache import cached_json_response, not_modified
from carecache.api.pagination import PaginationDep, paginated

router = APIRouter(prefix="/cache", tags=["Cache"])


class CacheStatsResponse(BaseModel):
    """Backend statistics."""

    totalKeys: int
    totalTags: int
    memoryUsage: int


class InvalidationResult(BaseModel):
    """Result of an invalidation operation."""

    target: str
    version: str
    deleted_count: int | None = None
    timestamp: datetime


def _result(target: str, version: str, deleted: int | None = None) -> InvalidationResult:
    return InvalidationResult(
        target=target,
        version=version,
        deleted_count=deleted,
        timestamp=datetime.now(UTC),
    )


@router.get("/stats", response_model=CacheStatsResponse)
async def get_cache_stats(cache: CacheDep) -> CacheStatsResponse:
    """Total backend keys and tag index sets."""
    stats = await cache.get_stats()
    return CacheStatsResponse(**stats.to_dict())


@router.get("/keys")
async def list_cache_keys(
    cache: CacheDep,
    pagination: PaginationDep,
    prefix: str = Query(default="", description="Logical key prefix, e.g. 'clients:'"),
    version: str | None = Query(default=None, description="Cache version (default: current)"),
) -> dict[str, Any]:
    """Page through logical keys of one version."""
    keys = await cache.list_keys(prefix, version=version)
    page = keys[pagination.offset : pagination.offset + pagination.limit]
    return paginated(page, len(keys), pagination)


@router.get("/entries/{key:path}", response_class=Response)
async def get_cache_entry(
    key: str,
    request: Request,
    cache: CacheDep,
    version: str | None = Query(default=None),
) -> Response:
    """Return the live value cached under a logical key.

    Carries Cache-Control and an ETag; a matching If-None-Match gets a 304.
    """
    value = await cache.get(key, version=version)
    if value is None:
        raise NotFoundError(key)
    body = {"key": key, "version": cache.resolve_version(version), "data": value}
    return not_modified(request, body) or cached_json_response(body)


@router.delete("/entries/{key:path}", response_model=InvalidationResult)
async def delete_cache_entry(
    key: str,
    cache: CacheDep,
    version: str | None = Query(default=None),
) -> InvalidationResult:
    """Delete one entry (idempotent)."""
    await cache.delete(key, version=version)
    return _result(key, cache.resolve_version(version))


@router.delete("/prefix", response_model=InvalidationResult)
async def delete_cache_prefix(
    cache: CacheDep,
    prefix: str = Query(..., description="Logical key prefix, e.g. 'clients:'"),
    version: str | None = Query(default=None),
) -> InvalidationResult:
    """Delete every entry whose logical key starts with ``prefix``."""
    if not prefix:
        raise BadRequestError("Prefix must not be empty; use /cache/versions to drop an epoch")
    deleted = await cache.delete_by_prefix(prefix, version=version)
    return _result(prefix, cache.resolve_version(version), deleted)


@router.delete("/tags", response_model=InvalidationResult)
async def invalidate_cache_tags(
    cache: CacheDep,
    tag: list[str] = Query(..., description="Tag to invalidate (repeatable)"),
    version: str | None = Query(default=None),
) -> InvalidationResult:
    """Delete every entry carrying any of the given tags."""
    deleted = await cache.invalidate_by_tags(tag, version=version)
    return _result(",".join(tag), cache.resolve_version(version), deleted)


@router.delete("/versions/{version}", response_model=InvalidationResult)
async def invalidate_cache_version(version: str, cache: CacheDep) -> InvalidationResult:
    """Delete every entry of one cache version."""
    deleted = await cache.invalidate_by_version(version)
    return _result("*", version, deleted)


@router.delete("/flush", response_model=InvalidationResult)
async def flush_cache(cache: CacheDep) -> InvalidationResult:
    """Delete every key in the backend.

    WARNING: This clears all versions and tag indexes.
    """
    await cache.clear()
    return _result("*", "*")
