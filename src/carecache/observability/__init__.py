"""Observability for the cache service.

Provides structured logging and Prometheus metrics:
- JSON/console log formatting with correlation IDs
- Cache hit, miss, error and invalidation counters
"""

from carecache.observability.logging import (
    LogContext,
    configure_logging,
    correlation_id_var,
    request_id_var,
)
from carecache.observability.metrics import (
    MetricsRegistry,
    get_metrics,
    metrics_registry,
)

__all__ = [
    # Logging
    "configure_logging",
    "LogContext",
    "request_id_var",
    "correlation_id_var",
    # Metrics
    "MetricsRegistry",
    "metrics_registry",
    "get_metrics",
]
