"""
Redis Service - Remote Cache Store Connection Management

Owns the shared redis.asyncio client and its connection pool, and keeps a
synchronously queryable readiness flag up to date through a background
ping loop. The cache facade consults ``is_ready`` before every command.
"""

import asyncio
import logging
import time
from typing import Any, Dict, Optional
from dataclasses import dataclass

from redis.asyncio import ConnectionPool, Redis
from redis.exceptions import RedisError

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

from ...core.config import settings
from .exceptions import CacheConfigurationException, CacheStoreUnavailableException

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


@dataclass
class RedisServiceConfig:
    """Configuration for Redis service."""

    url: str = "redis://localhost:6379/0"

    # Connection settings
    max_connections: int = 10
    connection_timeout: float = 5.0
    operation_timeout: float = 5.0

    # Health check settings
    health_check_interval: float = 30.0

    @classmethod
    def from_settings(cls) -> "RedisServiceConfig":
        """Build service configuration from application settings."""
        return cls(
            url=settings.REDIS_URL,
            max_connections=settings.REDIS_MAX_CONNECTIONS,
            connection_timeout=settings.REDIS_CONNECTION_TIMEOUT,
            operation_timeout=settings.REDIS_OPERATION_TIMEOUT,
            health_check_interval=settings.REDIS_HEALTH_CHECK_INTERVAL,
        )


class RedisService:
    """
    Redis client holder with readiness tracking.

    Initialization never fails because the server is down: the service
    starts not-ready and the health loop flips it once a ping succeeds.
    Only an unusable configuration raises.
    """

    def __init__(self, config: Optional[RedisServiceConfig] = None):
        self.config = config or RedisServiceConfig.from_settings()
        self._pool: Optional[ConnectionPool] = None
        self._client: Optional[Redis] = None
        self._ready = False
        self._initialized = False
        self._health_check_task: Optional[asyncio.Task] = None
        self._last_health_check: Optional[Dict[str, Any]] = None
        self._lock = asyncio.Lock()

    async def initialize(self) -> None:
        """Create the connection pool, probe the server and start health monitoring."""
        if self._initialized:
            return

        async with self._lock:
            if self._initialized:
                return

            try:
                self._pool = ConnectionPool.from_url(
                    self.config.url,
                    encoding="utf-8",
                    decode_responses=True,
                    socket_connect_timeout=self.config.connection_timeout,
                    socket_timeout=self.config.operation_timeout,
                    max_connections=self.config.max_connections,
                )
            except ValueError as e:
                raise CacheConfigurationException(
                    message=f"Invalid Redis URL: {e}",
                    config_key="REDIS_URL",
                    config_value=self.config.url,
                    original_error=e,
                )

            self._client = Redis(connection_pool=self._pool)
            self._initialized = True

            await self.ping()
            self._health_check_task = asyncio.create_task(self._health_check_loop())

            logger.info(
                "Redis service initialized",
                extra={
                    "ready": self._ready,
                    "max_connections": self.config.max_connections,
                },
            )

    @property
    def client(self) -> Redis:
        """Shared Redis client."""
        if self._client is None:
            raise CacheStoreUnavailableException(operation="client")
        return self._client

    @property
    def is_ready(self) -> bool:
        """Whether the last probe or command observed a reachable server."""
        return self._initialized and self._ready

    def mark_unready(self, error: Optional[Exception] = None) -> None:
        """Flag the server as unreachable until the next successful ping."""
        if self._ready:
            logger.warning(
                "Redis marked not ready",
                extra={"error": str(error) if error else None},
            )
        self._ready = False

    async def ping(self) -> bool:
        """Probe the server and update readiness."""
        if self._client is None:
            return False

        with tracer.start_as_current_span("redis.ping") as span:
            try:
                await self._client.ping()
            except (RedisError, OSError) as e:
                span.set_status(Status(StatusCode.ERROR, str(e)))
                self.mark_unready(e)
                return False

            if not self._ready:
                logger.info("Redis is reachable")
            self._ready = True
            span.set_status(Status(StatusCode.OK))
            return True

    async def health_check(self) -> Dict[str, Any]:
        """
        Perform a health check.

        Returns:
            Health status with ping latency and basic server information
        """
        with tracer.start_as_current_span("redis.health_check") as span:
            start_time = time.time()
            reachable = await self.ping()
            ping_ms = round((time.time() - start_time) * 1000, 2)

            health_status: Dict[str, Any] = {
                "status": "healthy" if reachable else "unhealthy",
                "timestamp": time.time(),
                "service": "redis",
                "initialized": self._initialized,
                "ping_ms": ping_ms,
            }

            if reachable:
                try:
                    info = await self.client.info(section="server")
                    health_status["redis_info"] = {
                        "version": info.get("redis_version"),
                        "uptime_seconds": info.get("uptime_in_seconds"),
                    }
                except (RedisError, OSError) as e:
                    logger.warning(f"Failed to get Redis info: {e}")
                    health_status["status"] = "degraded"

            span.set_attribute("redis.health.status", health_status["status"])
            self._last_health_check = health_status
            return health_status

    async def _health_check_loop(self) -> None:
        """Background readiness loop."""
        while True:
            try:
                await asyncio.sleep(self.config.health_check_interval)
                was_ready = self._ready
                now_ready = await self.ping()

                if was_ready != now_ready:
                    logger.info(
                        f"Redis readiness changed: {was_ready} -> {now_ready}",
                    )

            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Health check loop error: {e}")

    async def close(self) -> None:
        """Close Redis service and cleanup resources."""
        async with self._lock:
            if self._health_check_task:
                self._health_check_task.cancel()
                try:
                    await self._health_check_task
                except asyncio.CancelledError:
                    pass
                self._health_check_task = None

            if self._client is not None:
                await self._client.aclose()
                self._client = None
            if self._pool is not None:
                await self._pool.disconnect()
                self._pool = None

            self._ready = False
            self._initialized = False

            logger.info("Redis service closed")

    def get_metrics(self) -> Dict[str, Any]:
        """Get Redis service state."""
        return {
            "initialized": self._initialized,
            "ready": self.is_ready,
            "config": {
                "max_connections": self.config.max_connections,
                "connection_timeout": self.config.connection_timeout,
                "health_check_interval": self.config.health_check_interval,
            },
            "last_health_check": self._last_health_check,
        }
