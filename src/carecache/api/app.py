"""FastAPI application factory for the cache service.

Creates the application with:
- Cache administration, health and metrics routers
- Lifecycle management for the Redis client and CacheStore
- Correlation IDs for structured logging
- Consistent error envelopes (CacheUnavailable -> 503)
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, cast

from fastapi import FastAPI
from starlette.types import ExceptionHandler

from carecache import __version__
from carecache.api.errors import (
    ApiError,
    api_exception_handler,
    cache_unavailable_handler,
    generic_exception_handler,
)
from carecache.api.middleware import CorrelationMiddleware
from carecache.api.routers import cache_admin, health
from carecache.api.routers import metrics as metrics_router
from carecache.cache.errors import CacheUnavailable
from carecache.cache.redis import close_redis, create_cache_store
from carecache.config import Settings, settings as default_settings
from carecache.observability import configure_logging, get_metrics

logger = logging.getLogger(__name__)


def create_app(app_settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    The lifespan builds a single Redis client and CacheStore and exposes it
    as ``app.state.cache`` for the ``get_cache`` dependency.
    """
    cfg = app_settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        configure_logging(json_format=cfg.env != "dev", level=cfg.log_level)
        get_metrics()

        logger.info(f"Starting {cfg.app_name} ({cfg.env})")
        store = create_cache_store(cfg)
        app.state.cache = store
        if not await store.health_check():
            logger.warning("Cache backend not reachable at startup; serving uncached")
        logger.info("Startup complete")

        yield

        logger.info(f"Shutting down {cfg.app_name}")
        await close_redis(store.client)
        app.state.cache = None

    app = FastAPI(
        title="carecache",
        description="Tag- and version-aware response cache administration",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(CorrelationMiddleware)

    app.add_exception_handler(ApiError, cast(ExceptionHandler, api_exception_handler))
    app.add_exception_handler(
        CacheUnavailable, cast(ExceptionHandler, cache_unavailable_handler)
    )
    app.add_exception_handler(Exception, cast(ExceptionHandler, generic_exception_handler))

    app.include_router(health.router)
    app.include_router(cache_admin.router)
    if cfg.enable_metrics:
        app.include_router(metrics_router.router)

    return app
