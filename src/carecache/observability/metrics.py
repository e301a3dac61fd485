"""Prometheus metrics for the response cache.

Provides:
- Hit/miss counters for reads
- Backend error counters by operation
- Invalidated key counters by invalidation mode
- Operation latency histogram

Usage:
    from carecache.observability.metrics import get_metrics

    metrics = get_metrics()
    if metrics.cache_hits_total:
        metrics.cache_hits_total.inc()
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from carecache.config import settings

logger = logging.getLogger(__name__)


@dataclass
class MetricsRegistry:
    """Registry for Prometheus metrics.

    Metric attributes stay None when metrics are disabled; callers guard
    with ``if metrics.cache_hits_total:``.
    """

    cache_hits_total: Any = None
    cache_misses_total: Any = None
    cache_errors_total: Any = None
    cache_invalidated_keys_total: Any = None
    cache_operation_duration_seconds: Any = None

    enabled: bool = True

    # Internal state
    _initialized: bool = field(default=False, repr=False)
    _registry: Any = field(default=None, repr=False)

    def initialize(self) -> None:
        """Initialize Prometheus metrics."""
        if self._initialized:
            return

        if not self.enabled:
            logger.info("Metrics are disabled")
            self._initialized = True
            return

        from prometheus_client import REGISTRY, Counter, Histogram

        if self._registry is None:
            self._registry = REGISTRY

        self.cache_hits_total = Counter(
            "carecache_cache_hits_total",
            "Cache reads served from the backend",
            registry=self._registry,
        )

        self.cache_misses_total = Counter(
            "carecache_cache_misses_total",
            "Cache reads that found no live entry",
            registry=self._registry,
        )

        self.cache_errors_total = Counter(
            "carecache_cache_errors_total",
            "Cache operations that failed against the backend",
            ["operation"],
            registry=self._registry,
        )

        self.cache_invalidated_keys_total = Counter(
            "carecache_cache_invalidated_keys_total",
            "Entries removed by explicit invalidation",
            ["mode"],
            registry=self._registry,
        )

        self.cache_operation_duration_seconds = Histogram(
            "carecache_cache_operation_duration_seconds",
            "Cache operation latency in seconds",
            ["operation"],
            buckets=(0.0005, 0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0),
            registry=self._registry,
        )

        self._initialized = True
        logger.info("Prometheus metrics initialized")

    def generate_latest(self) -> bytes:
        """Generate Prometheus metrics in exposition format."""
        if not self.enabled or self._registry is None:
            return b"# Metrics disabled\n"

        from prometheus_client import generate_latest

        return generate_latest(self._registry)


# Global metrics registry
metrics_registry = MetricsRegistry(enabled=settings.enable_metrics)


def get_metrics() -> MetricsRegistry:
    """Get the global metrics registry.

    Initializes metrics on first access.
    """
    if not metrics_registry._initialized:
        metrics_registry.initialize()
    return metrics_registry
