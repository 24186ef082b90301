"""
Redis Infrastructure Module

Remote cache store connection management and the cache error taxonomy.

This module provides:
- RedisService: shared client with readiness tracking
- Cache exceptions converted to fail-open outcomes by the cache facade
"""

from .redis_service import RedisService, RedisServiceConfig
from .exceptions import (
    CacheException,
    CacheStoreUnavailableException,
    CacheSerializationException,
    CacheScanException,
    CacheConfigurationException,
)

__all__ = [
    # Main service
    "RedisService",
    "RedisServiceConfig",
    # Exceptions
    "CacheException",
    "CacheStoreUnavailableException",
    "CacheSerializationException",
    "CacheScanException",
    "CacheConfigurationException",
]
