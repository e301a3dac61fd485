"""Offset pagination for cached listings.

Listing handlers cache one envelope per (page, limit, filters) combination:

    {
        "data": [...],
        "metadata": {"total": 3, "page": 1, "limit": 10, "totalPages": 1}
    }
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Annotated, Any, Sequence

from fastapi import Depends, Query

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 100


@dataclass(frozen=True)
class PaginationParams:
    """Normalized page/limit pair."""

    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    @classmethod
    def from_query(cls, page: int | str | None = None, limit: int | str | None = None) -> "PaginationParams":
        """Clamp raw query values; unparsable values fall back to defaults."""
        return cls(
            page=max(1, _to_int(page, DEFAULT_PAGE)),
            limit=min(MAX_LIMIT, max(1, _to_int(limit, DEFAULT_LIMIT))),
        )


def _to_int(value: int | str | None, default: int) -> int:
    if value is None or value == "":
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def paginated(items: Sequence[Any], total: int, params: PaginationParams) -> dict[str, Any]:
    """Build the paginated response envelope."""
    return {
        "data": list(items),
        "metadata": {
            "total": total,
            "page": params.page,
            "limit": params.limit,
            "totalPages": math.ceil(total / params.limit),
        },
    }


def pagination_params(
    page: Annotated[str | None, Query(description="1-based page number")] = None,
    limit: Annotated[str | None, Query(description="Page size (1-100)")] = None,
) -> PaginationParams:
    """FastAPI dependency parsing page/limit query parameters."""
    return PaginationParams.from_query(page, limit)


PaginationDep = Annotated[PaginationParams, Depends(pagination_params)]
