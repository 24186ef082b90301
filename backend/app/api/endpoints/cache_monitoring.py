"""
Cache Monitoring API Endpoints

Operational surface of the cache layer: effectiveness metrics, metric
resets, Prometheus export, store health and on-demand warming.
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, Path, Request
from fastapi.responses import PlainTextResponse
from prometheus_client import CONTENT_TYPE_LATEST
from pydantic import BaseModel

import structlog

from ...constants import get_current_timestamp
from ...infrastructure.redis.redis_service import RedisService
from ...services.cache.cache_store import CacheStore
from ...services.cache.metrics import (
    CacheMetrics,
    CacheMetricsSnapshot,
    DetailedCacheMetricsSnapshot,
)
from ...services.cache.warming import CacheWarmingService

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/monitoring/cache", tags=["cache-monitoring"])


class CacheHealthStatus(BaseModel):
    """Cache health status model."""

    status: str
    timestamp: str
    store_available: bool
    redis: Dict[str, Any]


class MetricsResetResponse(BaseModel):
    """Metrics reset acknowledgement."""

    reset: bool
    timestamp: str


class WarmingResponse(BaseModel):
    """Manual warming result."""

    target: str
    warmed: bool


# Dependencies


def get_cache_metrics(request: Request) -> CacheMetrics:
    return request.app.state.cache_metrics


def get_cache_store(request: Request) -> CacheStore:
    return request.app.state.cache_store


def get_redis_service(request: Request) -> RedisService:
    return request.app.state.redis_service


def get_cache_warming(request: Request) -> CacheWarmingService:
    return request.app.state.cache_warming


# Metrics endpoints
@router.get("/metrics", response_model=CacheMetricsSnapshot)
async def get_metrics(metrics: CacheMetrics = Depends(get_cache_metrics)):
    """Get cache counters and hit rate."""
    return metrics.get_metrics()


@router.get("/metrics/detailed", response_model=DetailedCacheMetricsSnapshot)
async def get_detailed_metrics(metrics: CacheMetrics = Depends(get_cache_metrics)):
    """
    Get cache counters with hit/miss latency analysis.

    Includes per-path response time statistics, the improvement rate of
    hits over misses, and the length of the current metrics window.
    """
    return metrics.get_detailed_metrics()


@router.post("/metrics/reset", response_model=MetricsResetResponse)
async def reset_metrics(metrics: CacheMetrics = Depends(get_cache_metrics)):
    """Reset counters and latency windows and start a new metrics window."""
    metrics.reset()
    return MetricsResetResponse(
        reset=True, timestamp=metrics.last_reset_time.isoformat()
    )


@router.get("/metrics/prometheus", response_class=PlainTextResponse)
async def get_prometheus_metrics(metrics: CacheMetrics = Depends(get_cache_metrics)):
    """Get cache metrics in Prometheus exposition format."""
    return PlainTextResponse(
        content=metrics.prometheus_metrics(), media_type=CONTENT_TYPE_LATEST
    )


# Health endpoint
@router.get("/health", response_model=CacheHealthStatus)
async def get_cache_health(
    store: CacheStore = Depends(get_cache_store),
    redis_service: RedisService = Depends(get_redis_service),
):
    """
    Get cache store health.

    The cache is an optimization layer, so an unhealthy store is reported
    as ``degraded`` rather than failing the request.
    """
    redis_health = await redis_service.health_check()
    healthy = redis_health.get("status") == "healthy"

    return CacheHealthStatus(
        status="healthy" if healthy else "degraded",
        timestamp=get_current_timestamp().isoformat(),
        store_available=store.is_available,
        redis=redis_health,
    )


# Warming endpoint
@router.post("/warming/{target_type}", response_model=WarmingResponse)
async def warm_target(
    target_type: str = Path(..., description="Warming type, e.g. popularArticles"),
    warming: CacheWarmingService = Depends(get_cache_warming),
):
    """Warm one configured target on demand."""
    known = {t.type for t in warming.startup_targets + warming.periodic_targets}
    if target_type not in known:
        raise HTTPException(
            status_code=404, detail=f"Unknown warming target: {target_type}"
        )

    try:
        warmed = await warming.manual_warmup(target_type)
    except Exception as e:
        logger.error("Manual cache warming failed", target=target_type, error=str(e))
        raise HTTPException(status_code=502, detail=f"Warming failed: {e}")

    return WarmingResponse(target=target_type, warmed=warmed)
