"""Cache key schema.

Entry key format:  {version_prefix}{version}:{logical_key}
Tag index format:  {tag_prefix}{tag}

Where:
- version_prefix: "version:" (namespace for cache epochs)
- version: the epoch active at write time, e.g. "v1"
- logical_key: caller-built key, colon-delimited by convention
  ("clients:1:10:search:status")
- tag_prefix: "tag:" (namespace for tag index sets)

Glob patterns handed to SCAN escape the caller-supplied parts, so a logical
prefix containing ``*``, ``?``, ``[`` or ``]`` matches literally.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

_GLOB_SPECIAL = frozenset("*?[]\\")


def escape_glob(text: str) -> str:
    """Escape Redis glob metacharacters so ``text`` matches literally."""
    return "".join(f"\\{ch}" if ch in _GLOB_SPECIAL else ch for ch in text)


@dataclass(frozen=True)
class CacheKeys:
    """Cache key generator following a consistent naming convention."""

    version_prefix: str = "version:"
    tag_prefix: str = "tag:"

    def version_namespace(self, version: str) -> str:
        """Prefix shared by every entry written under ``version``."""
        return f"{self.version_prefix}{version}:"

    def versioned(self, key: str, version: str) -> str:
        """Full backend key for a logical key."""
        return f"{self.version_namespace(version)}{key}"

    def tag(self, tag: str) -> str:
        """Key of the set indexing entries carrying ``tag``."""
        return f"{self.tag_prefix}{tag}"

    def prefix_pattern(self, prefix: str, version: str) -> str:
        """SCAN pattern for all entries whose logical key starts with ``prefix``."""
        return f"{escape_glob(self.version_namespace(version))}{escape_glob(prefix)}*"

    def version_pattern(self, version: str) -> str:
        """SCAN pattern for every entry of one epoch."""
        return f"{escape_glob(self.version_namespace(version))}*"

    def tag_pattern(self) -> str:
        """SCAN pattern for every tag index set."""
        return f"{escape_glob(self.tag_prefix)}*"


def listing_key(entity: str, page: int, limit: int, *filters: Any) -> str:
    """Key for one page of a filtered listing.

    ``None`` filters render as empty segments, so an unfiltered first page of
    clients with seven filter slots is ``"clients:1:10:::::::"``.
    """
    parts = [entity, str(page), str(limit)]
    parts.extend("" if value is None else _segment(value) for value in filters)
    return ":".join(parts)


def _segment(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)
