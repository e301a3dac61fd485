"""Health check endpoints.

Provides Kubernetes-compatible liveness and readiness probes:
- /health/live  - Liveness probe (always OK while the process runs)
- /health/ready - Readiness probe (checks cache backend connectivity)

An unreachable cache makes the service "degraded", not unhealthy: callers
fall back to the source of truth, so traffic can still be served.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from carecache.api.deps import CacheDep
from carecache.cache.store import CacheStore

router = APIRouter(tags=["health"])

CHECK_TIMEOUT = 5.0  # seconds


class HealthStatus(str, Enum):
    """Health check status."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


@dataclass
class ComponentHealth:
    """Health status of a single component."""

    name: str
    status: HealthStatus
    latency_ms: float
    message: str | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "name": self.name,
            "status": self.status.value,
            "latency_ms": round(self.latency_ms, 2),
        }
        if self.message:
            result["message"] = self.message
        return result


async def check_cache(store: CacheStore) -> ComponentHealth:
    """Check cache backend connectivity."""
    start = time.monotonic()
    try:
        healthy = await asyncio.wait_for(store.health_check(), timeout=CHECK_TIMEOUT)
        message = None if healthy else "Cache ping failed"
    except asyncio.TimeoutError:
        healthy = False
        message = "Cache ping timed out"
    latency = (time.monotonic() - start) * 1000
    return ComponentHealth(
        name="cache",
        status=HealthStatus.HEALTHY if healthy else HealthStatus.DEGRADED,
        latency_ms=latency,
        message=message,
    )


@router.get("/health/live")
async def live() -> dict[str, str]:
    """Liveness probe."""
    return {"status": "ok"}


@router.get("/health/ready")
async def ready(cache: CacheDep) -> JSONResponse:
    """Readiness probe.

    Always 200 since a cache outage only slows requests down; the body
    reports "degraded" when the backend is unreachable.
    """
    component = await check_cache(cache)
    return JSONResponse(
        content={"status": component.status.value, "checks": [component.to_dict()]},
        status_code=200,
    )
