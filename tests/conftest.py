"""Global pytest configuration and fixtures.

Wires CacheStore to the in-memory Redis double from ``tests.fakes`` with a
controllable clock and a private metrics registry.
"""

from __future__ import annotations

import pytest
from prometheus_client import CollectorRegistry

from carecache.cache.store import CacheStore
from carecache.observability.metrics import MetricsRegistry
from tests.fakes import FakeClock, FakeRedis


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fake_redis(clock: FakeClock) -> FakeRedis:
    return FakeRedis(clock)


@pytest.fixture
def metrics() -> MetricsRegistry:
    """Metrics bound to a private registry so tests can read counters."""
    registry = MetricsRegistry(_registry=CollectorRegistry())
    registry.initialize()
    return registry


@pytest.fixture
def store(fake_redis: FakeRedis, clock: FakeClock, metrics: MetricsRegistry) -> CacheStore:
    return CacheStore(
        fake_redis,  # type: ignore[arg-type]
        default_ttl=3600,
        default_version="v1",
        clock=clock,
        metrics=metrics,
        delete_batch_size=2,
    )
