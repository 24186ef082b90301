"""
Cache Key Builder

Deterministic cache key construction. Every key the platform caches under
is produced here so that call sites cannot build colliding or malformed
keys, and so that parameter bags that are equal as sets always map to the
same key regardless of argument order.
"""

from typing import Any, Iterable, Mapping, Optional

from .cache_config import CachePrefix

KeyParams = Mapping[str, Any]


def _escape(text: str) -> str:
    # Key separators inside a value must not read as a new parameter
    return text.replace("%", "%25").replace(":", "%3A").replace("=", "%3D")


def _format_value(value: Any) -> str:
    """
    Render a parameter value the same way for every call site.

    Mappings are rendered with sorted keys, so equal mappings give equal
    keys. Lists and tuples keep the caller's order, since order can be
    part of the query (sort fields). Sets have no order and are sorted.
    """
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Mapping):
        items = ",".join(
            f"{_escape(str(name))}={_format_value(value[name])}"
            for name in sorted(value, key=str)
            if value[name] is not None
        )
        return "{" + items + "}"
    if isinstance(value, (list, tuple)):
        return ",".join(_format_value(item) for item in value)
    if isinstance(value, (set, frozenset)):
        return ",".join(sorted(_format_value(item) for item in value))
    return _escape(str(value))


class CacheKeyBuilder:
    """
    Named constructors for every cached query shape.

    Keys look like ``prefix[:param=value...]``: parameters whose value is
    ``None`` are dropped and the rest are sorted by name.
    """

    @staticmethod
    def build_key(prefix: str, params: Optional[KeyParams] = None) -> str:
        """Build a canonical key from a prefix and an optional parameter bag."""
        if not params:
            return prefix

        parts = [
            f"{name}={_format_value(params[name])}"
            for name in sorted(params)
            if params[name] is not None
        ]
        return f"{prefix}:{':'.join(parts)}" if parts else prefix

    # Users

    @classmethod
    def user(cls, user_id: str) -> str:
        return f"{CachePrefix.USER}:{user_id}"

    @classmethod
    def user_stats(cls, user_id: str) -> str:
        return f"{CachePrefix.USER}:{user_id}:stats"

    # Articles

    @classmethod
    def article_list(
        cls,
        *,
        page: Optional[int] = None,
        limit: Optional[int] = None,
        category_id: Optional[str] = None,
        tag_id: Optional[str] = None,
        search: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> str:
        return cls.build_key(
            f"{CachePrefix.ARTICLE}:list",
            {
                "page": page,
                "limit": limit,
                "category_id": category_id,
                "tag_id": tag_id,
                "search": search,
                "userId": user_id,
            },
        )

    @classmethod
    def article_detail(cls, article_id: str, *, user_id: Optional[str] = None) -> str:
        return cls.build_key(
            f"{CachePrefix.ARTICLE}:{article_id}", {"userId": user_id}
        )

    @classmethod
    def articles_by_author(
        cls,
        author_id: str,
        *,
        page: Optional[int] = None,
        limit: Optional[int] = None,
        include_unpublished: Optional[bool] = None,
        user_id: Optional[str] = None,
    ) -> str:
        return cls.build_key(
            f"{CachePrefix.ARTICLE}:author:{author_id}",
            {
                "page": page,
                "limit": limit,
                "includeUnpublished": include_unpublished,
                "userId": user_id,
            },
        )

    @classmethod
    def articles_popular(
        cls,
        *,
        page: Optional[int] = None,
        limit: Optional[int] = None,
        days: Optional[int] = None,
        user_id: Optional[str] = None,
    ) -> str:
        return cls.build_key(
            f"{CachePrefix.ARTICLE}:popular",
            {"page": page, "limit": limit, "days": days, "userId": user_id},
        )

    @classmethod
    def articles_liked(
        cls,
        user_id: str,
        *,
        page: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> str:
        return cls.build_key(
            f"{CachePrefix.ARTICLE}:liked:{user_id}", {"page": page, "limit": limit}
        )

    @classmethod
    def articles_bookmarked(
        cls,
        user_id: str,
        *,
        page: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> str:
        return cls.build_key(
            f"{CachePrefix.ARTICLE}:bookmarked:{user_id}",
            {"page": page, "limit": limit},
        )

    # Concerts

    @classmethod
    def concert_list(
        cls,
        *,
        page: Optional[int] = None,
        limit: Optional[int] = None,
        category: Optional[str] = None,
        location: Optional[str] = None,
        date_from: Optional[str] = None,
        date_to: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> str:
        return cls.build_key(
            f"{CachePrefix.CONCERT}:list",
            {
                "page": page,
                "limit": limit,
                "category": category,
                "location": location,
                "dateFrom": date_from,
                "dateTo": date_to,
                "userId": user_id,
            },
        )

    @classmethod
    def concert_detail(cls, concert_id: str, *, user_id: Optional[str] = None) -> str:
        return cls.build_key(
            f"{CachePrefix.CONCERT}:{concert_id}", {"userId": user_id}
        )

    @classmethod
    def concerts_upcoming(
        cls,
        *,
        page: Optional[int] = None,
        limit: Optional[int] = None,
        user_id: Optional[str] = None,
    ) -> str:
        return cls.build_key(
            f"{CachePrefix.CONCERT}:upcoming",
            {"page": page, "limit": limit, "userId": user_id},
        )

    @classmethod
    def concerts_popular(
        cls,
        *,
        page: Optional[int] = None,
        limit: Optional[int] = None,
        days: Optional[int] = None,
        user_id: Optional[str] = None,
    ) -> str:
        return cls.build_key(
            f"{CachePrefix.CONCERT}:popular",
            {"page": page, "limit": limit, "days": days, "userId": user_id},
        )

    @classmethod
    def concerts_liked(
        cls,
        user_id: str,
        *,
        page: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> str:
        return cls.build_key(
            f"{CachePrefix.CONCERT}:liked:{user_id}", {"page": page, "limit": limit}
        )

    # Categories and tags

    @classmethod
    def categories(cls) -> str:
        return f"{CachePrefix.CATEGORY}:all"

    @classmethod
    def category_by_id(cls, category_id: str) -> str:
        return f"{CachePrefix.CATEGORY}:{category_id}"

    @classmethod
    def category_by_name(cls, category_name: str) -> str:
        return f"{CachePrefix.CATEGORY}:name:{category_name}"

    @classmethod
    def tags(cls) -> str:
        return f"{CachePrefix.TAG}:all"

    @classmethod
    def tag_by_id(cls, tag_id: str) -> str:
        return f"{CachePrefix.TAG}:{tag_id}"

    @classmethod
    def tag_by_name(cls, tag_name: str) -> str:
        return f"{CachePrefix.TAG}:name:{tag_name}"

    @classmethod
    def tags_popular(cls, *, limit: Optional[int] = None) -> str:
        return cls.build_key(f"{CachePrefix.TAG}:popular", {"limit": limit})

    @classmethod
    def tags_by_article(cls, article_id: str) -> str:
        return f"{CachePrefix.TAG}:article:{article_id}"

    # Aggregated stats

    @classmethod
    def stats_article_likes(cls, article_id: str) -> str:
        return f"{CachePrefix.STATS}:article:{article_id}:likes"

    @classmethod
    def stats_article_bookmarks(cls, article_id: str) -> str:
        return f"{CachePrefix.STATS}:article:{article_id}:bookmarks"

    @classmethod
    def stats_article_views(cls, article_id: str) -> str:
        return f"{CachePrefix.STATS}:article:{article_id}:views"

    @classmethod
    def stats_concert_likes(cls, concert_id: str) -> str:
        return f"{CachePrefix.STATS}:concert:{concert_id}:likes"

    @classmethod
    def stats_concert_interest(cls, concert_id: str) -> str:
        return f"{CachePrefix.STATS}:concert:{concert_id}:interest"

    # Search

    @classmethod
    def search_articles(
        cls,
        *,
        query: Optional[str] = None,
        category_id: Optional[str] = None,
        tag_names: Optional[Iterable[str]] = None,
        author_id: Optional[str] = None,
        page: Optional[int] = None,
        limit: Optional[int] = None,
        sort_by: Optional[str] = None,
    ) -> str:
        # Tag order must not change the key; the caller's sequence is left untouched.
        tags = sorted(tag_names) if tag_names else None
        return cls.build_key(
            f"{CachePrefix.SEARCH}:articles",
            {
                "query": query,
                "category_id": category_id,
                "tag_names": tags,
                "author_id": author_id,
                "page": page,
                "limit": limit,
                "sortBy": sort_by,
            },
        )

    @classmethod
    def search_concerts(
        cls,
        *,
        query: Optional[str] = None,
        location: Optional[str] = None,
        date_from: Optional[str] = None,
        date_to: Optional[str] = None,
        page: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> str:
        return cls.build_key(
            f"{CachePrefix.SEARCH}:concerts",
            {
                "query": query,
                "location": location,
                "dateFrom": date_from,
                "dateTo": date_to,
                "page": page,
                "limit": limit,
            },
        )

    # Notifications

    @classmethod
    def notifications(cls, user_id: str, *, unread_only: Optional[bool] = None) -> str:
        return cls.build_key(
            f"{CachePrefix.NOTIFICATION}:{user_id}", {"unreadOnly": unread_only}
        )

    @classmethod
    def notification_count(cls, user_id: str) -> str:
        return f"{CachePrefix.NOTIFICATION}:{user_id}:count"
