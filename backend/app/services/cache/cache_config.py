"""
Cache Configuration

Static TTL table, key prefixes, invalidation patterns and warming targets.
All values here are read-only configuration consumed by the cache wrappers
and the warming scheduler.
"""

from dataclasses import dataclass
from typing import Tuple


class CacheTTL:
    """TTL presets in seconds, grouped by data category."""

    # Generic
    SHORT = 60
    MEDIUM = 300
    LONG = 3600

    # Users
    USER_PROFILE = 3600
    USER_SESSION = 1800

    # Articles
    ARTICLE_LIST = 300
    ARTICLE_DETAIL = 600
    ARTICLE_POPULAR = 600

    # Concerts
    CONCERT_LIST = 1800
    CONCERT_DETAIL = 3600
    CONCERT_POPULAR = 1800

    # Categories and tags rarely change
    CATEGORIES = 86400
    TAGS = 86400
    TAG_POPULAR = 3600

    # Aggregated counters
    STATS_LIKES = 300
    STATS_BOOKMARKS = 300
    STATS_VIEWS = 180

    SEARCH_RESULTS = 600

    NOTIFICATIONS = 60


class CachePrefix:
    """Top-level key namespaces."""

    USER = "user"
    ARTICLE = "articles"
    CONCERT = "concerts"
    CATEGORY = "categories"
    TAG = "tags"
    STATS = "stats"
    SEARCH = "search"
    NOTIFICATION = "notifications"


class CacheInvalidationPatterns:
    """Glob patterns handed to ``CacheStore.delete_by_pattern``."""

    @staticmethod
    def user_all(user_id: str) -> str:
        return f"{CachePrefix.USER}:{user_id}*"

    @staticmethod
    def user_profile(user_id: str) -> str:
        return f"{CachePrefix.USER}:{user_id}"

    @staticmethod
    def article_all() -> str:
        return f"{CachePrefix.ARTICLE}:*"

    @staticmethod
    def article_by_id(article_id: str) -> str:
        return f"{CachePrefix.ARTICLE}:{article_id}*"

    @staticmethod
    def article_by_author(author_id: str) -> str:
        return f"{CachePrefix.ARTICLE}:author:{author_id}*"

    @staticmethod
    def article_list() -> str:
        return f"{CachePrefix.ARTICLE}:list:*"

    @staticmethod
    def concert_all() -> str:
        return f"{CachePrefix.CONCERT}:*"

    @staticmethod
    def concert_by_id(concert_id: str) -> str:
        return f"{CachePrefix.CONCERT}:{concert_id}*"

    @staticmethod
    def concert_list() -> str:
        return f"{CachePrefix.CONCERT}:list:*"

    @staticmethod
    def stats_all() -> str:
        return f"{CachePrefix.STATS}:*"

    @staticmethod
    def stats_article(article_id: str) -> str:
        return f"{CachePrefix.STATS}:article:{article_id}*"

    @staticmethod
    def stats_concert(concert_id: str) -> str:
        return f"{CachePrefix.STATS}:concert:{concert_id}*"


@dataclass(frozen=True)
class WarmingTarget:
    """A warming type and the TTL its entry is written with."""

    type: str
    ttl: int

    def __post_init__(self) -> None:
        if self.ttl <= 0:
            raise ValueError("Warming target TTL must be positive")


@dataclass(frozen=True)
class PeriodicWarmingTarget(WarmingTarget):
    """A warming target refreshed every ``interval_seconds``."""

    interval_seconds: float = 0.0

    def __post_init__(self) -> None:
        super().__post_init__()
        if self.interval_seconds <= 0:
            raise ValueError("Periodic warming interval must be positive")


class CacheWarmingTargets:
    """Startup and periodic warming tables."""

    STARTUP: Tuple[WarmingTarget, ...] = (
        WarmingTarget(type="categories", ttl=CacheTTL.CATEGORIES),
        WarmingTarget(type="popularTags", ttl=CacheTTL.TAG_POPULAR),
        WarmingTarget(type="popularArticles", ttl=CacheTTL.ARTICLE_POPULAR),
        WarmingTarget(type="upcomingConcerts", ttl=CacheTTL.CONCERT_LIST),
    )

    PERIODIC: Tuple[PeriodicWarmingTarget, ...] = (
        PeriodicWarmingTarget(
            type="popularArticles",
            ttl=CacheTTL.ARTICLE_POPULAR,
            interval_seconds=CacheTTL.ARTICLE_POPULAR,
        ),
        PeriodicWarmingTarget(
            type="popularConcerts",
            ttl=CacheTTL.CONCERT_POPULAR,
            interval_seconds=CacheTTL.CONCERT_POPULAR,
        ),
    )
