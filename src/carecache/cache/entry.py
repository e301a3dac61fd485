"""Stored cache entry model.

Wire format (orjson):

    {
        "key": "clients:1:10:::::::",
        "data": {...},
        "metadata": {
            "version": "v1",
            "tags": ["clients"],
            "createdAt": 1760000000000,
            "expiresAt": 1760003600000
        }
    }
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import orjson


@dataclass(frozen=True)
class CacheMetadata:
    """Bookkeeping stored next to the payload."""

    version: str
    created_at: int  # epoch ms
    expires_at: int  # epoch ms
    tags: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "tags": list(self.tags),
            "createdAt": self.created_at,
            "expiresAt": self.expires_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CacheMetadata":
        tags = data.get("tags") or []
        if not isinstance(tags, list):
            raise ValueError("metadata.tags must be a list")
        return cls(
            version=str(data["version"]),
            created_at=int(data["createdAt"]),
            expires_at=int(data["expiresAt"]),
            tags=[str(tag) for tag in tags],
        )


@dataclass(frozen=True)
class CacheEntry:
    """One cached value with its version, tags and expiry."""

    key: str
    data: Any
    metadata: CacheMetadata

    @classmethod
    def create(
        cls,
        key: str,
        data: Any,
        *,
        version: str,
        ttl_seconds: int,
        now_ms: int,
        tags: list[str] | None = None,
    ) -> "CacheEntry":
        """Build an entry expiring ``ttl_seconds`` after ``now_ms``."""
        return cls(
            key=key,
            data=data,
            metadata=CacheMetadata(
                version=version,
                created_at=now_ms,
                expires_at=now_ms + int(ttl_seconds * 1000),
                tags=list(tags or []),
            ),
        )

    def is_expired(self, now_ms: int) -> bool:
        return self.metadata.expires_at <= now_ms

    def to_bytes(self) -> bytes:
        """Serialize to JSON bytes.

        Raises:
            TypeError: If ``data`` is not JSON-serializable.
        """
        return orjson.dumps(
            {
                "key": self.key,
                "data": self.data,
                "metadata": self.metadata.to_dict(),
            }
        )

    @classmethod
    def from_bytes(cls, raw: bytes | str) -> "CacheEntry":
        """Deserialize from JSON bytes.

        Raises:
            ValueError: If the payload is not a well-formed entry.
        """
        try:
            parsed = orjson.loads(raw)
        except orjson.JSONDecodeError as exc:
            raise ValueError(f"invalid JSON: {exc}") from exc

        if not isinstance(parsed, dict) or not isinstance(parsed.get("metadata"), dict):
            raise ValueError("cache entry must be an object with a metadata object")

        try:
            metadata = CacheMetadata.from_dict(parsed["metadata"])
            key = str(parsed["key"])
        except (KeyError, TypeError) as exc:
            raise ValueError(f"missing entry field: {exc}") from exc

        return cls(key=key, data=parsed.get("data"), metadata=metadata)
