"""
Main pytest configuration for all backend tests.

Fixtures, configuration, and in-memory Redis doubles for unit tests.
"""

import os
from fnmatch import fnmatchcase
from typing import Any, Dict, List, Optional

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

# Set test environment variables before importing app modules
os.environ["ENVIRONMENT"] = "test"
os.environ["REDIS_URL"] = "redis://localhost:6379/15"
os.environ["LOG_LEVEL"] = "DEBUG"
os.environ["CACHE_METRICS_LOG_INTERVAL_MINUTES"] = "0"

from app.domain.content.repository_interfaces import ContentSource
from app.services.cache.cache_store import CacheStore
from app.services.cache.metrics import CacheMetrics


class FakeRedis:
    """
    In-memory stand-in for the redis.asyncio commands the cache layer uses.

    SCAN walks keys in first-insertion order, ``count`` slots per call, so
    the cursor stays stable while keys are deleted mid-scan.
    """

    def __init__(self):
        self.data: Dict[str, str] = {}
        self.ttls: Dict[str, Optional[int]] = {}
        self._order: List[str] = []
        self.fail = False
        self.fail_scan_after: Optional[int] = None
        self.scan_calls = 0

    def _check(self) -> None:
        if self.fail:
            raise RedisConnectionError("Connection refused")

    async def get(self, key: str) -> Optional[str]:
        self._check()
        return self.data.get(key)

    async def set(self, key: str, value: str, ex: Optional[int] = None) -> bool:
        self._check()
        if key not in self.data and key not in self._order:
            self._order.append(key)
        self.data[key] = value
        self.ttls[key] = ex
        return True

    async def delete(self, *keys: str) -> int:
        self._check()
        removed = 0
        for key in keys:
            if key in self.data:
                del self.data[key]
                self.ttls.pop(key, None)
                removed += 1
        return removed

    async def unlink(self, *keys: str) -> int:
        return await self.delete(*keys)

    async def scan(self, cursor: int = 0, match: Optional[str] = None, count: int = 10):
        self._check()
        self.scan_calls += 1
        if self.fail_scan_after is not None and self.scan_calls > self.fail_scan_after:
            raise RedisConnectionError("Connection lost during scan")

        window = self._order[cursor : cursor + count]
        keys = [
            key
            for key in window
            if key in self.data and (match is None or fnmatchcase(key, match))
        ]
        next_cursor = cursor + count
        if next_cursor >= len(self._order):
            next_cursor = 0
        return next_cursor, keys

    async def ping(self) -> bool:
        self._check()
        return True


class FakeRedisService:
    """RedisService double exposing a controllable readiness flag."""

    def __init__(self, client: FakeRedis):
        self.client = client
        self.ready = True
        self.unready_calls = 0

    @property
    def is_ready(self) -> bool:
        return self.ready

    def mark_unready(self, error: Optional[Exception] = None) -> None:
        self.ready = False
        self.unready_calls += 1

    async def initialize(self) -> None:
        pass

    async def close(self) -> None:
        pass

    async def health_check(self):
        return {"status": "healthy" if self.ready else "unhealthy", "service": "redis"}


class StubContentSource(ContentSource):
    """Content source serving canned payloads and recording calls."""

    def __init__(self):
        self.calls: List[str] = []
        self.failing: set = set()
        self.categories: Any = [{"id": "cat1", "name": "rock"}]
        self.tags: Any = [{"id": "t1", "name": "live"}]
        self.articles: Any = {"items": [{"id": "a1"}], "total": 1}
        self.upcoming: Any = {"items": [{"id": "c1"}], "total": 1}
        self.popular: Any = {"items": [{"id": "c2"}], "total": 1}
        self.profiles: Dict[str, Any] = {"u1": {"id": "u1", "nickname": "kim"}}

    def _serve(self, name: str, value: Any) -> Any:
        self.calls.append(name)
        if name in self.failing:
            raise RuntimeError(f"{name} unavailable")
        return value

    async def list_categories(self):
        return self._serve("list_categories", self.categories)

    async def popular_tags(self, limit):
        return self._serve("popular_tags", self.tags)

    async def popular_articles(self, page, limit, days):
        return self._serve("popular_articles", self.articles)

    async def upcoming_concerts(self, page, limit):
        return self._serve("upcoming_concerts", self.upcoming)

    async def popular_concerts(self, page, limit):
        return self._serve("popular_concerts", self.popular)

    async def get_user_profile(self, user_id):
        return self._serve("get_user_profile", self.profiles.get(user_id))

    async def get_user_stats(self, user_id):
        return self._serve("get_user_stats", {"likes": 3, "bookmarks": 1})


@pytest.fixture
def fake_redis():
    """In-memory Redis client."""
    return FakeRedis()


@pytest.fixture
def redis_service(fake_redis):
    """Ready RedisService double backed by ``fake_redis``."""
    return FakeRedisService(fake_redis)


@pytest.fixture
def cache_metrics():
    """Fresh metrics instance."""
    return CacheMetrics()


@pytest.fixture
def cache_store(redis_service, cache_metrics):
    """Cache store over the in-memory Redis."""
    return CacheStore(redis_service, cache_metrics)


@pytest.fixture
def content_source():
    """Canned content source."""
    return StubContentSource()


# Test markers and configuration
def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line("markers", "redis: marks tests as Redis-related")
    config.addinivalue_line("markers", "integration: marks tests as integration tests")


def pytest_collection_modifyitems(config, items):
    """Add markers based on test file location."""
    for item in items:
        if "redis" in item.nodeid:
            item.add_marker(pytest.mark.redis)
        if "integration" in item.nodeid:
            item.add_marker(pytest.mark.integration)
