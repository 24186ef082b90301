"""
Application Cache Layer

Store-agnostic caching facade with metrics, cache-aside wrappers and a
warming scheduler.

This module provides:
- CacheStore: fail-open get/set/delete/pattern-delete over Redis
- CacheKeyBuilder: canonical key construction
- CacheMetrics: hit rate and latency statistics
- cacheable / cache_evict / cache_put: cache-aside wrappers
- CacheWarmingService: startup and periodic warming
"""

from .cache_config import (
    CacheTTL,
    CachePrefix,
    CacheInvalidationPatterns,
    CacheWarmingTargets,
    WarmingTarget,
    PeriodicWarmingTarget,
)
from .key_builder import CacheKeyBuilder
from .metrics import (
    CacheMetrics,
    CacheMetricsSnapshot,
    DetailedCacheMetricsSnapshot,
    ResponseTimeStats,
)
from .cache_store import CacheStore
from .decorators import cacheable, cache_evict, cache_put
from .helpers import CacheHelper, CacheItem
from .warming import (
    CacheWarmingService,
    WarmingLoader,
    WarmingState,
    build_content_loaders,
)

__all__ = [
    # Configuration
    "CacheTTL",
    "CachePrefix",
    "CacheInvalidationPatterns",
    "CacheWarmingTargets",
    "WarmingTarget",
    "PeriodicWarmingTarget",
    # Keys
    "CacheKeyBuilder",
    # Metrics
    "CacheMetrics",
    "CacheMetricsSnapshot",
    "DetailedCacheMetricsSnapshot",
    "ResponseTimeStats",
    # Store and wrappers
    "CacheStore",
    "cacheable",
    "cache_evict",
    "cache_put",
    "CacheHelper",
    "CacheItem",
    # Warming
    "CacheWarmingService",
    "WarmingLoader",
    "WarmingState",
    "build_content_loaders",
]
