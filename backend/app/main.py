"""
Concert Platform Backend - Main FastAPI Application

Wires the application cache layer: one RedisService, CacheMetrics and
CacheStore per process, shared by the cache-aside wrappers and the warming
scheduler, plus the cache monitoring API.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api.endpoints.cache_monitoring import router as cache_monitoring_router
from .constants import APP_NAME, APP_VERSION, get_current_timestamp
from .core.config import get_settings
from .domain.content.repository_interfaces import ContentSource
from .infrastructure.redis.redis_service import RedisService
from .services.cache.cache_store import CacheStore
from .services.cache.metrics import CacheMetrics
from .services.cache.warming import CacheWarmingService, build_content_loaders

logger = structlog.get_logger()
settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start and stop the cache layer's connections and background tasks."""
    logger.info(
        "Starting Concert Platform API",
        service=settings.PROJECT_NAME,
        environment=settings.ENVIRONMENT,
    )

    redis_service: RedisService = app.state.redis_service
    metrics: CacheMetrics = app.state.cache_metrics
    warming: CacheWarmingService = app.state.cache_warming

    # A down Redis only degrades the cache; bad configuration still aborts startup
    await redis_service.initialize()
    if not redis_service.is_ready:
        logger.warning("Redis unavailable at startup, cache running in degraded mode")

    if settings.CACHE_METRICS_LOG_INTERVAL_MINUTES:
        await metrics.start_periodic_logging(settings.CACHE_METRICS_LOG_INTERVAL_MINUTES)

    if warming.loaders:
        if settings.CACHE_WARMING_ENABLED:
            await warming.warmup_on_startup()
        if settings.CACHE_PERIODIC_WARMING_ENABLED:
            await warming.start_periodic_warming()
    else:
        logger.info("No content source configured, cache warming disabled")

    logger.info(
        "Concert Platform API started",
        version=APP_VERSION,
        redis_ready=redis_service.is_ready,
        warming_state=warming.state.value,
    )

    yield

    logger.info("Shutting down Concert Platform API")

    await warming.stop_periodic_warming()
    await metrics.stop_periodic_logging()
    metrics.log_summary()
    await redis_service.close()

    logger.info("Concert Platform API shutdown completed")


def create_app(
    content_source: Optional[ContentSource] = None,
    redis_service: Optional[RedisService] = None,
) -> FastAPI:
    """
    Build the application.

    Args:
        content_source: Authoritative data source used by cache warming
        redis_service: Remote store; built from settings when omitted
    """
    logging.basicConfig(level=settings.LOG_LEVEL)

    app = FastAPI(
        title=f"{APP_NAME} API",
        version=APP_VERSION,
        debug=settings.DEBUG,
        lifespan=lifespan,
        # Interactive docs are not served in production
        docs_url=None if settings.is_production else "/docs",
        redoc_url=None if settings.is_production else "/redoc",
        openapi_url=None if settings.is_production else "/openapi.json",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    redis_service = redis_service or RedisService()
    metrics = CacheMetrics(window_size=settings.CACHE_METRICS_WINDOW_SIZE)
    store = CacheStore(
        redis_service, metrics, scan_batch_size=settings.CACHE_SCAN_BATCH_SIZE
    )
    loaders = build_content_loaders(content_source) if content_source else {}

    app.state.redis_service = redis_service
    app.state.cache_metrics = metrics
    app.state.cache_store = store
    app.state.cache_warming = CacheWarmingService(
        store, loaders, content_source=content_source
    )

    app.include_router(cache_monitoring_router)

    @app.get("/health")
    async def health():
        """Liveness probe; cache state never makes the service unhealthy."""
        return {
            "status": "healthy",
            "service": APP_NAME,
            "version": APP_VERSION,
            "cache_available": store.is_available,
            "timestamp": get_current_timestamp().isoformat(),
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.API_HOST, port=settings.API_PORT)
