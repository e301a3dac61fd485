"""HTTP caching headers for cached JSON responses.

Complements the server-side cache: responses carry Cache-Control with
stale-while-revalidate and a content ETag, and conditional requests whose
If-None-Match matches the current ETag get a 304.
"""

from __future__ import annotations

import base64
import hashlib
from dataclasses import dataclass
from typing import Any

import orjson
from fastapi import Request, Response

from carecache.config import Settings, settings


@dataclass(frozen=True)
class CacheOptions:
    """Cache-Control policy for a response."""

    max_age: int = 10
    stale_while_revalidate: int = 59
    private: bool = False

    @classmethod
    def from_settings(cls, cfg: Settings) -> "CacheOptions":
        return cls(
            max_age=cfg.http_cache_max_age,
            stale_while_revalidate=cfg.http_cache_stale_while_revalidate,
        )


def cache_control_headers(options: CacheOptions | None = None) -> dict[str, str]:
    """Build the Cache-Control header; defaults come from settings."""
    opts = options or CacheOptions.from_settings(settings)
    directives = [
        "private" if opts.private else "public",
        f"max-age={opts.max_age}",
        f"s-maxage={opts.max_age}",
        f"stale-while-revalidate={opts.stale_while_revalidate}",
    ]
    return {"Cache-Control": ", ".join(directives)}


def _content_bytes(data: Any) -> bytes:
    if isinstance(data, bytes):
        return data
    if isinstance(data, str):
        return data.encode("utf-8")
    return orjson.dumps(data)


def generate_etag(data: Any) -> str:
    """Base64 SHA-256 of a string, bytes, or the JSON encoding of ``data``."""
    digest = hashlib.sha256(_content_bytes(data)).digest()
    return base64.b64encode(digest).decode("ascii")


def cached_json_response(
    data: Any,
    status_code: int = 200,
    options: CacheOptions | None = None,
    extra_headers: dict[str, str] | None = None,
) -> Response:
    """JSON response with Cache-Control and the ETag ``not_modified`` compares."""
    content = orjson.dumps(data)
    headers = {
        **cache_control_headers(options),
        "ETag": f'"{generate_etag(data)}"',
        **(extra_headers or {}),
    }
    return Response(
        content=content,
        status_code=status_code,
        media_type="application/json",
        headers=headers,
    )


def not_modified(request: Request, data: Any) -> Response | None:
    """Return 304 if If-None-Match equals the current ETag of ``data``.

    Returns:
        304 Response if ETags match, None otherwise
    """
    if_none_match = request.headers.get("if-none-match")
    if if_none_match and if_none_match == f'"{generate_etag(data)}"':
        return Response(status_code=304)
    return None
