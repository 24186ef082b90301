"""
Cache Warming Service

Pre-populates hot query results at startup and on fixed intervals so the
first requests after a deploy or an expiry do not all miss. Warming always
writes straight through CacheStore.set; it never reads first.
"""

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence

import structlog

from ...domain.content.repository_interfaces import ContentSource
from .cache_config import (
    CacheTTL,
    CacheWarmingTargets,
    PeriodicWarmingTarget,
    WarmingTarget,
)
from .cache_store import CacheStore
from .key_builder import CacheKeyBuilder

logger = structlog.get_logger(__name__)

WARMING_PAGE = 1
WARMING_LIMIT = 20
POPULAR_ARTICLE_DAYS = 7


class WarmingState(str, Enum):
    """Scheduler lifecycle states."""

    IDLE = "idle"
    WARMING = "warming"
    PERIODIC = "periodic"


@dataclass(frozen=True)
class WarmingLoader:
    """The canonical key of a warming type and the call that produces its value."""

    key: str
    load: Callable[[], Awaitable[Any]]


def build_content_loaders(source: ContentSource) -> Dict[str, WarmingLoader]:
    """Map every warming type to its loader over ``source``."""
    return {
        "categories": WarmingLoader(
            key=CacheKeyBuilder.categories(),
            load=source.list_categories,
        ),
        "popularTags": WarmingLoader(
            key=CacheKeyBuilder.tags_popular(limit=WARMING_LIMIT),
            load=lambda: source.popular_tags(limit=WARMING_LIMIT),
        ),
        "popularArticles": WarmingLoader(
            key=CacheKeyBuilder.articles_popular(
                page=WARMING_PAGE, limit=WARMING_LIMIT, days=POPULAR_ARTICLE_DAYS
            ),
            load=lambda: source.popular_articles(
                page=WARMING_PAGE, limit=WARMING_LIMIT, days=POPULAR_ARTICLE_DAYS
            ),
        ),
        "upcomingConcerts": WarmingLoader(
            key=CacheKeyBuilder.concerts_upcoming(
                page=WARMING_PAGE, limit=WARMING_LIMIT
            ),
            load=lambda: source.upcoming_concerts(
                page=WARMING_PAGE, limit=WARMING_LIMIT
            ),
        ),
        "popularConcerts": WarmingLoader(
            key=CacheKeyBuilder.concerts_popular(
                page=WARMING_PAGE, limit=WARMING_LIMIT
            ),
            load=lambda: source.popular_concerts(
                page=WARMING_PAGE, limit=WARMING_LIMIT
            ),
        ),
    }


def _item_count(value: Any) -> Optional[int]:
    if isinstance(value, list):
        return len(value)
    if isinstance(value, dict):
        for field in ("items", "articles", "concerts"):
            if isinstance(value.get(field), list):
                return len(value[field])
    return None


class CacheWarmingService:
    """
    Startup and periodic cache warming.

    ``start_periodic_warming`` runs one task per periodic target, each on
    its own interval, and is idempotent. ``stop_periodic_warming`` must be
    called on shutdown so no task outlives the application.
    """

    def __init__(
        self,
        store: CacheStore,
        loaders: Dict[str, WarmingLoader],
        startup_targets: Sequence[WarmingTarget] = CacheWarmingTargets.STARTUP,
        periodic_targets: Sequence[
            PeriodicWarmingTarget
        ] = CacheWarmingTargets.PERIODIC,
        content_source: Optional[ContentSource] = None,
    ):
        self.store = store
        self.loaders = loaders
        self.startup_targets = tuple(startup_targets)
        self.periodic_targets = tuple(periodic_targets)
        self.content_source = content_source
        self._state = WarmingState.IDLE
        self._periodic_tasks: List[asyncio.Task] = []

    @property
    def state(self) -> WarmingState:
        return self._state

    async def warmup_on_startup(self) -> None:
        """Warm every startup target concurrently; failures are logged, never raised."""
        logger.info("Starting cache warming on startup", targets=len(self.startup_targets))

        entered = self._state is WarmingState.IDLE
        if entered:
            self._state = WarmingState.WARMING

        try:
            results = await asyncio.gather(
                *(
                    self.warmup_by_type(target.type, target.ttl)
                    for target in self.startup_targets
                ),
                return_exceptions=True,
            )
        finally:
            if entered and self._state is WarmingState.WARMING:
                self._state = WarmingState.IDLE

        failed = 0
        for target, result in zip(self.startup_targets, results):
            if isinstance(result, BaseException):
                failed += 1
                logger.error(
                    "Cache warming failed", target=target.type, error=str(result)
                )

        logger.info(
            "Cache warming completed on startup",
            succeeded=len(self.startup_targets) - failed,
            failed=failed,
        )

    async def start_periodic_warming(self) -> None:
        """Start one refresh task per periodic target."""
        if self._state is WarmingState.PERIODIC:
            logger.debug("Periodic cache warming already running")
            return

        for target in self.periodic_targets:
            self._periodic_tasks.append(
                asyncio.create_task(
                    self._periodic_loop(target), name=f"cache-warming:{target.type}"
                )
            )
        self._state = WarmingState.PERIODIC

        logger.info(
            "Periodic cache warming started", targets=len(self.periodic_targets)
        )

    async def stop_periodic_warming(self) -> None:
        """Cancel every refresh task and return to idle."""
        if self._state is not WarmingState.PERIODIC and not self._periodic_tasks:
            return

        for task in self._periodic_tasks:
            task.cancel()
        await asyncio.gather(*self._periodic_tasks, return_exceptions=True)
        self._periodic_tasks = []
        self._state = WarmingState.IDLE

        logger.info("Periodic cache warming stopped")

    async def _periodic_loop(self, target: PeriodicWarmingTarget) -> None:
        while True:
            try:
                await asyncio.sleep(target.interval_seconds)
                await self.warmup_by_type(target.type, target.ttl)
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(
                    "Periodic cache warming failed", target=target.type, error=str(e)
                )

    async def warmup_by_type(self, warming_type: str, ttl: int) -> bool:
        """
        Load one warming type and write it under its canonical key.

        Args:
            warming_type: Warming type name, e.g. ``popularArticles``
            ttl: Time to live in seconds

        Returns:
            True if a value was written

        Raises:
            Whatever the loader raises
        """
        loader = self.loaders.get(warming_type)
        if loader is None:
            logger.warning("Unknown warming type", target=warming_type)
            return False

        value = await loader.load()
        if value is None:
            logger.info("Warming loader returned nothing", target=warming_type)
            return False

        written = await self.store.set(loader.key, value, ttl)
        logger.info(
            "Warmed cache",
            target=warming_type,
            key=loader.key,
            items=_item_count(value),
            written=written,
        )
        return written

    async def warmup_user_data(self, user_id: str) -> None:
        """Warm a user's profile and stats entries."""
        if self.content_source is None:
            logger.warning("No content source configured for user warming")
            return

        try:
            profile = await self.content_source.get_user_profile(user_id)
            if profile is not None:
                await self.store.set(
                    CacheKeyBuilder.user(user_id), profile, CacheTTL.USER_PROFILE
                )

            stats = await self.content_source.get_user_stats(user_id)
            if stats is not None:
                await self.store.set(
                    CacheKeyBuilder.user_stats(user_id), stats, CacheTTL.USER_PROFILE
                )

            logger.info("Warmed user data", user_id=user_id)

        except Exception as e:
            logger.error("User cache warming failed", user_id=user_id, error=str(e))

    async def manual_warmup(self, warming_type: str) -> bool:
        """Warm a single configured target on demand."""
        logger.info("Manual cache warming", target=warming_type)

        for target in self.startup_targets + self.periodic_targets:
            if target.type == warming_type:
                return await self.warmup_by_type(target.type, target.ttl)

        logger.warning("Unknown warming type", target=warming_type)
        return False

    async def warmup_all(self) -> None:
        """Re-run the full startup warming set."""
        await self.warmup_on_startup()
