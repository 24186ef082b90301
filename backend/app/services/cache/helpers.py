"""
Cache Helpers

Bulk conveniences on top of CacheStore. Like the store itself they never
raise on cache failure.
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional

from .cache_store import CacheStore


@dataclass(frozen=True)
class CacheItem:
    """A value to write and its TTL."""

    key: str
    value: Any
    ttl: int


class CacheHelper:
    """Concurrent multi-key operations."""

    def __init__(self, store: CacheStore):
        self.store = store

    async def get_many(self, keys: Iterable[str]) -> List[Optional[Any]]:
        """Fetch several keys; the result lines up with ``keys``."""
        return list(await asyncio.gather(*(self.store.get(key) for key in keys)))

    async def set_many(self, items: Iterable[CacheItem]) -> int:
        """Write several entries; returns how many were written."""
        results = await asyncio.gather(
            *(self.store.set(item.key, item.value, item.ttl) for item in items)
        )
        return sum(1 for written in results if written)

    async def delete_patterns(self, patterns: Iterable[str]) -> int:
        """Evict several patterns; returns the total number of keys removed."""
        counts = await asyncio.gather(
            *(self.store.delete_by_pattern(pattern) for pattern in patterns)
        )
        return sum(counts)

    async def exists(self, key: str) -> bool:
        return await self.store.get(key) is not None

    async def extend(self, key: str, ttl: int) -> bool:
        """Rewrite an existing entry with a fresh TTL, keeping its value."""
        value = await self.store.get(key)
        if value is None:
            return False
        return await self.store.set(key, value, ttl)
