"""
Cache Metrics

In-process counters and bounded latency windows recorded by CacheStore.
Hit rate, average latency and the hit-versus-miss improvement rate are
derived on demand. Nothing here is persisted; a restart starts from zero.
"""

import asyncio
from collections import deque
from typing import Deque, Iterable, Optional

import structlog
from prometheus_client import CollectorRegistry, Gauge, generate_latest
from pydantic import BaseModel, Field

from ...constants import get_current_timestamp

logger = structlog.get_logger(__name__)

DEFAULT_WINDOW_SIZE = 1000


def _round2(value: float) -> float:
    return round(value, 2)


class ResponseTimeStats(BaseModel):
    """Response time statistics over one latency window."""

    count: int = 0
    total: float = 0.0
    min: float = 0.0
    max: float = 0.0
    avg: float = 0.0


class ResponseTimeBreakdown(BaseModel):
    """Hit path versus miss path latency."""

    cache_hit: ResponseTimeStats
    cache_miss: ResponseTimeStats
    improvement_rate: float = Field(
        ..., description="Percent by which hits are faster than misses"
    )


class MetricsUptime(BaseModel):
    """Process start, window start and window length."""

    start_time: str
    last_reset_time: str
    duration_ms: int


class CacheMetricsSnapshot(BaseModel):
    """Point-in-time cache counters."""

    hits: int
    misses: int
    sets: int
    deletes: int
    errors: int
    total_requests: int
    hit_rate: float = Field(..., description="Hit percentage, 2 decimals")
    avg_response_time_ms: float
    timestamp: str


class DetailedCacheMetricsSnapshot(CacheMetricsSnapshot):
    """Counters plus per-path latency analysis."""

    response_time: ResponseTimeBreakdown
    uptime: MetricsUptime


class CacheMetrics:
    """
    Record-only metrics sink for cache operations.

    Two independent FIFO windows keep the most recent response times for
    hits and for misses. Counters only move forward until ``reset()``.
    """

    def __init__(self, window_size: int = DEFAULT_WINDOW_SIZE):
        self.window_size = window_size

        self.hits = 0
        self.misses = 0
        self.sets = 0
        self.deletes = 0
        self.errors = 0

        self._hit_response_times: Deque[float] = deque(maxlen=window_size)
        self._miss_response_times: Deque[float] = deque(maxlen=window_size)

        self.start_time = get_current_timestamp()
        self.last_reset_time = self.start_time

        self._logging_task: Optional[asyncio.Task] = None

        self._setup_prometheus_metrics()

    def _setup_prometheus_metrics(self) -> None:
        """Setup Prometheus gauges in a private registry."""
        self.registry = CollectorRegistry()

        self.prom_cache_operations = Gauge(
            "cache_operations",
            "Cache operations since the last metrics reset",
            ["operation"],
            registry=self.registry,
        )
        self.prom_cache_hit_rate = Gauge(
            "cache_hit_rate_percent",
            "Cache hit rate (0-100)",
            registry=self.registry,
        )
        self.prom_cache_response_time = Gauge(
            "cache_response_time_avg_ms",
            "Average cache lookup time in milliseconds",
            ["path"],
            registry=self.registry,
        )
        self.prom_cache_improvement_rate = Gauge(
            "cache_improvement_rate_percent",
            "Latency improvement of hits over misses (0-100)",
            registry=self.registry,
        )

    # Recording

    def record_hit(self, response_time_ms: Optional[float] = None) -> None:
        self.hits += 1
        if response_time_ms is not None:
            self._hit_response_times.append(response_time_ms)

    def record_miss(self, response_time_ms: Optional[float] = None) -> None:
        self.misses += 1
        if response_time_ms is not None:
            self._miss_response_times.append(response_time_ms)

    def record_set(self) -> None:
        self.sets += 1

    def record_delete(self, count: int = 1) -> None:
        self.deletes += count

    def record_error(self) -> None:
        self.errors += 1

    # Derived values

    @staticmethod
    def _calculate_response_time_stats(times: Iterable[float]) -> ResponseTimeStats:
        samples = list(times)
        if not samples:
            return ResponseTimeStats()

        total = sum(samples)
        return ResponseTimeStats(
            count=len(samples),
            total=_round2(total),
            min=_round2(min(samples)),
            max=_round2(max(samples)),
            avg=_round2(total / len(samples)),
        )

    def get_metrics(self) -> CacheMetricsSnapshot:
        """Current counters with hit rate and overall average latency."""
        total_requests = self.hits + self.misses
        hit_rate = (self.hits / total_requests) * 100 if total_requests > 0 else 0.0

        all_times = list(self._hit_response_times) + list(self._miss_response_times)
        avg_response_time = sum(all_times) / len(all_times) if all_times else 0.0

        return CacheMetricsSnapshot(
            hits=self.hits,
            misses=self.misses,
            sets=self.sets,
            deletes=self.deletes,
            errors=self.errors,
            total_requests=total_requests,
            hit_rate=_round2(hit_rate),
            avg_response_time_ms=_round2(avg_response_time),
            timestamp=get_current_timestamp().isoformat(),
        )

    def get_detailed_metrics(self) -> DetailedCacheMetricsSnapshot:
        """Counters plus hit/miss latency statistics and uptime."""
        basic = self.get_metrics()

        hit_stats = self._calculate_response_time_stats(self._hit_response_times)
        miss_stats = self._calculate_response_time_stats(self._miss_response_times)

        # No misses sampled means there is nothing to compare against
        if miss_stats.avg > 0:
            improvement_rate = (miss_stats.avg - hit_stats.avg) / miss_stats.avg * 100
        else:
            improvement_rate = 0.0

        now = get_current_timestamp()
        return DetailedCacheMetricsSnapshot(
            **basic.model_dump(),
            response_time=ResponseTimeBreakdown(
                cache_hit=hit_stats,
                cache_miss=miss_stats,
                improvement_rate=_round2(improvement_rate),
            ),
            uptime=MetricsUptime(
                start_time=self.start_time.isoformat(),
                last_reset_time=self.last_reset_time.isoformat(),
                duration_ms=int((now - self.last_reset_time).total_seconds() * 1000),
            ),
        )

    def reset(self) -> None:
        """Zero counters and latency windows and start a new window."""
        self.hits = 0
        self.misses = 0
        self.sets = 0
        self.deletes = 0
        self.errors = 0
        self._hit_response_times.clear()
        self._miss_response_times.clear()
        self.last_reset_time = get_current_timestamp()

        logger.info("Cache metrics reset")

    # Reporting

    def prometheus_metrics(self) -> bytes:
        """Render the current snapshot in Prometheus text exposition format."""
        detailed = self.get_detailed_metrics()

        for operation in ("hits", "misses", "sets", "deletes", "errors"):
            self.prom_cache_operations.labels(operation=operation).set(
                getattr(detailed, operation)
            )
        self.prom_cache_hit_rate.set(detailed.hit_rate)
        self.prom_cache_response_time.labels(path="hit").set(
            detailed.response_time.cache_hit.avg
        )
        self.prom_cache_response_time.labels(path="miss").set(
            detailed.response_time.cache_miss.avg
        )
        self.prom_cache_improvement_rate.set(detailed.response_time.improvement_rate)

        return generate_latest(self.registry)

    def log_summary(self) -> None:
        """Log a one-line effectiveness summary."""
        metrics = self.get_detailed_metrics()
        logger.info(
            "Cache metrics summary",
            hit_rate=f"{metrics.hit_rate}%",
            total_requests=metrics.total_requests,
            hits=metrics.hits,
            misses=metrics.misses,
            errors=metrics.errors,
            cache_hit_avg_ms=metrics.response_time.cache_hit.avg,
            cache_miss_avg_ms=metrics.response_time.cache_miss.avg,
            improvement_rate=f"{metrics.response_time.improvement_rate}%",
        )

    async def start_periodic_logging(self, interval_minutes: float = 5) -> None:
        """Start logging a summary every ``interval_minutes``."""
        if self._logging_task is None:
            self._logging_task = asyncio.create_task(
                self._logging_loop(interval_minutes * 60)
            )
            logger.info(
                "Cache metrics periodic logging started",
                interval_minutes=interval_minutes,
            )

    async def stop_periodic_logging(self) -> None:
        """Stop periodic summary logging."""
        if self._logging_task:
            self._logging_task.cancel()
            try:
                await self._logging_task
            except asyncio.CancelledError:
                pass
            self._logging_task = None
            logger.info("Cache metrics periodic logging stopped")

    async def _logging_loop(self, interval_seconds: float) -> None:
        while True:
            try:
                await asyncio.sleep(interval_seconds)
                self.log_summary()
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error("Cache metrics summary failed", error=str(e))
