"""Integration test fixtures using Docker.

Starts a throwaway Redis container for the session; every test gets a
CacheStore over a real client and a flushed database.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import AsyncIterator, Iterator
from typing import Any
from urllib.parse import urlparse

import pytest
import pytest_asyncio
import redis.asyncio as redis
from prometheus_client import CollectorRegistry

from carecache.cache.redis import create_cache_store
from carecache.cache.store import CacheStore
from carecache.config import Settings
from carecache.observability.metrics import MetricsRegistry

REDIS_IMAGE = "redis:7-alpine"


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        if "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)


@pytest.fixture(scope="session")
def docker_client() -> Iterator[Any]:
    """Create a Docker client or skip if Docker is unavailable."""
    docker = pytest.importorskip("docker")
    try:
        client = docker.from_env()
        client.ping()
    except Exception as exc:
        pytest.skip(f"Docker not available: {exc}")
    yield client
    client.close()


def _docker_host(client: Any) -> str:
    """Host on which published container ports are reachable."""
    base_url = client.api.base_url
    if base_url.startswith(("unix://", "npipe://", "http+docker://")):
        return "localhost"
    return urlparse(base_url).hostname or "localhost"


@pytest.fixture(scope="session")
def redis_url(docker_client: Any) -> Iterator[str]:
    """Start Redis for the test session and return its URL."""
    container = docker_client.containers.run(
        REDIS_IMAGE, detach=True, ports={"6379/tcp": None}
    )
    try:
        container.reload()
        port = int(container.attrs["NetworkSettings"]["Ports"]["6379/tcp"][0]["HostPort"])
        yield f"redis://{_docker_host(docker_client)}:{port}/0"
    finally:
        container.remove(force=True, v=True)


@pytest_asyncio.fixture
async def store(redis_url: str) -> AsyncIterator[CacheStore]:
    """CacheStore over a real Redis client with a private metrics registry."""
    metrics = MetricsRegistry(_registry=CollectorRegistry())
    metrics.initialize()

    cfg = Settings(_env_file=None, redis_url=redis_url)  # type: ignore[call-arg]
    client = redis.from_url(redis_url, decode_responses=True)
    await _wait_for_redis(client)
    await client.flushdb()

    cache = create_cache_store(cfg, client=client)
    cache.metrics = metrics
    yield cache

    await client.flushdb()
    await client.aclose()


async def _wait_for_redis(client: redis.Redis, timeout: float = 30.0) -> None:
    """Wait for Redis to accept connections."""
    deadline = time.monotonic() + timeout
    while True:
        try:
            await client.ping()
            return
        except Exception:
            if time.monotonic() >= deadline:
                raise
            await asyncio.sleep(0.5)
