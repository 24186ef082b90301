"""
Cache Store

Failure-isolating facade over the remote Redis store. Every operation
degrades to a miss (reads) or a no-op (writes) when the store is
unreachable or returns something unusable; nothing is raised to callers.
Every call is observed by CacheMetrics.
"""

import json
import logging
import time
from typing import Any, Optional

from fastapi.encoders import jsonable_encoder
from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

from ...infrastructure.redis.exceptions import (
    CacheScanException,
    CacheSerializationException,
    CacheStoreUnavailableException,
)
from ...infrastructure.redis.redis_service import RedisService
from .metrics import CacheMetrics

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

DEFAULT_SCAN_BATCH_SIZE = 100


class CacheStore:
    """
    Fail-open get / set / delete / pattern-delete over Redis.

    Keeps a process-local availability flag. The flag goes false when the
    store reports not ready or a command fails, and goes true again on the
    first call that finds the store ready. Each transition is logged once.
    """

    def __init__(
        self,
        redis_service: RedisService,
        metrics: CacheMetrics,
        scan_batch_size: int = DEFAULT_SCAN_BATCH_SIZE,
    ):
        self._redis = redis_service
        self.metrics = metrics
        self.scan_batch_size = scan_batch_size
        self._available = True

    @property
    def is_available(self) -> bool:
        return self._available

    def _check_availability(self) -> bool:
        """Consult store readiness and log availability transitions."""
        if not self._redis.is_ready:
            if self._available:
                logger.warning(
                    "Cache store is not ready; cache operations will be skipped"
                )
                self._available = False
            return False

        if not self._available:
            logger.info("Cache store connection restored")
            self._available = True
        return True

    def _handle_store_failure(
        self, operation: str, key: str, error: Exception, span: trace.Span
    ) -> None:
        failure = CacheStoreUnavailableException(
            operation=operation, key=key, original_error=error
        )
        span.set_status(Status(StatusCode.ERROR, str(error)))

        if self._available:
            logger.error(failure.message, extra=failure.details)
        else:
            logger.debug(failure.message, extra=failure.details)

        self._available = False
        self._redis.mark_unready(error)

    async def get(self, key: str) -> Optional[Any]:
        """
        Get a cached value.

        Args:
            key: Cache key

        Returns:
            Decoded value, or None on miss, outage or undecodable payload
        """
        with tracer.start_as_current_span("cache_store.get") as span:
            span.set_attribute("cache.key", key)

            if not self._check_availability():
                span.set_attribute("cache.skipped", True)
                self.metrics.record_miss()
                return None

            start_time = time.perf_counter()
            try:
                raw = await self._redis.client.get(key)
            except Exception as e:
                self.metrics.record_miss()
                self.metrics.record_error()
                self._handle_store_failure("get", key, e, span)
                return None

            response_time_ms = (time.perf_counter() - start_time) * 1000

            if raw is None:
                self.metrics.record_miss(response_time_ms)
                span.set_attribute("cache.hit", False)
                logger.debug(f"Cache MISS for key: {key}")
                return None

            try:
                value = json.loads(raw)
            except (TypeError, ValueError) as e:
                error = CacheSerializationException(
                    key=key, direction="decode", original_error=e
                )
                logger.error(error.message, extra=error.details)
                span.set_status(Status(StatusCode.ERROR, error.message))
                self.metrics.record_miss(response_time_ms)
                self.metrics.record_error()
                return None

            self.metrics.record_hit(response_time_ms)
            span.set_attribute("cache.hit", True)
            logger.debug(f"Cache HIT for key: {key}")
            return value

    async def set(self, key: str, value: Any, ttl: int) -> bool:
        """
        Store a value with an expiry.

        Args:
            key: Cache key
            value: JSON-serializable value, never None (pydantic models are encoded)
            ttl: Time to live in seconds, must be positive

        Returns:
            True if the value was written
        """
        with tracer.start_as_current_span("cache_store.set") as span:
            span.set_attribute("cache.key", key)
            span.set_attribute("cache.ttl", ttl)

            # Entries never outlive their TTL; permanent writes are refused
            if ttl <= 0:
                logger.error(
                    f"Refusing to cache key {key} without a positive TTL",
                    extra={"key": key, "ttl": ttl},
                )
                self.metrics.record_error()
                return False

            # None is how get reports a miss, so it cannot be a cached value
            if value is None:
                logger.error(
                    f"Refusing to cache None for key {key}", extra={"key": key}
                )
                self.metrics.record_error()
                return False

            if not self._check_availability():
                span.set_attribute("cache.skipped", True)
                return False

            try:
                payload = json.dumps(jsonable_encoder(value))
            except (TypeError, ValueError) as e:
                error = CacheSerializationException(
                    key=key, direction="encode", original_error=e
                )
                logger.error(error.message, extra=error.details)
                span.set_status(Status(StatusCode.ERROR, error.message))
                self.metrics.record_error()
                return False

            try:
                await self._redis.client.set(key, payload, ex=ttl)
            except Exception as e:
                self.metrics.record_error()
                self._handle_store_failure("set", key, e, span)
                return False

            self.metrics.record_set()
            logger.debug(f"Cache SET for key: {key} with TTL: {ttl}s")
            return True

    async def delete(self, key: str) -> int:
        """
        Delete a single key.

        Returns:
            Number of keys removed (0 or 1)
        """
        with tracer.start_as_current_span("cache_store.delete") as span:
            span.set_attribute("cache.key", key)

            if not self._check_availability():
                span.set_attribute("cache.skipped", True)
                return 0

            try:
                removed = await self._redis.client.delete(key)
            except Exception as e:
                self.metrics.record_error()
                self._handle_store_failure("delete", key, e, span)
                return 0

            if removed:
                self.metrics.record_delete(removed)
            logger.debug(f"Cache DELETED for key: {key}")
            return removed

    async def delete_by_pattern(self, pattern: str) -> int:
        """
        Delete every key matching a glob pattern.

        Walks the keyspace with cursor-based SCAN in bounded batches and
        unlinks each batch as it is found, so large keyspaces never block
        the server. Not atomic: a key written by a concurrent caller between
        batches can survive.

        Args:
            pattern: Glob-style pattern, e.g. ``articles:list:*``

        Returns:
            Number of keys removed
        """
        with tracer.start_as_current_span("cache_store.delete_by_pattern") as span:
            span.set_attribute("cache.pattern", pattern)

            if not self._check_availability():
                span.set_attribute("cache.skipped", True)
                return 0

            client = self._redis.client
            deleted = 0
            cursor = 0

            try:
                while True:
                    cursor, keys = await client.scan(
                        cursor=cursor, match=pattern, count=self.scan_batch_size
                    )
                    if keys:
                        removed = await client.unlink(*keys)
                        deleted += removed
                        self.metrics.record_delete(removed)
                    if cursor == 0:
                        break

            except Exception as e:
                error = CacheScanException(
                    pattern=pattern, deleted_so_far=deleted, original_error=e
                )
                logger.error(error.message, extra=error.details)
                self.metrics.record_error()
                self._handle_store_failure("delete_by_pattern", pattern, e, span)
                return deleted

            span.set_attribute("cache.deleted", deleted)
            logger.info(
                f"Cache DELETED {deleted} keys for pattern: {pattern}",
                extra={"pattern": pattern, "count": deleted},
            )
            return deleted
