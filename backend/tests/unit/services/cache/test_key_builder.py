"""
Unit tests for CacheKeyBuilder.

Covers canonical ordering, None filtering and the named key constructors.
"""

from fnmatch import fnmatchcase

import pytest

from app.services.cache.cache_config import CacheInvalidationPatterns
from app.services.cache.key_builder import CacheKeyBuilder


class TestBuildKey:
    """Test canonical key construction."""

    def test_prefix_only(self):
        assert CacheKeyBuilder.build_key("articles:list") == "articles:list"
        assert CacheKeyBuilder.build_key("articles:list", {}) == "articles:list"

    def test_parameter_order_does_not_matter(self):
        """Set-equal parameter bags produce the same key."""
        first = CacheKeyBuilder.build_key("concerts:list", {"b": 2, "a": 1})
        second = CacheKeyBuilder.build_key("concerts:list", {"a": 1, "b": 2})

        assert first == second == "concerts:list:a=1:b=2"

    @pytest.mark.parametrize(
        "params",
        [
            {"page": 1, "limit": 20, "category": "rock", "location": "seoul"},
            {"location": "seoul", "category": "rock", "limit": 20, "page": 1},
            {"limit": 20, "location": "seoul", "page": 1, "category": "rock"},
        ],
    )
    def test_permutations_are_identical(self, params):
        key = CacheKeyBuilder.build_key("concerts:list", params)
        assert key == "concerts:list:category=rock:limit=20:location=seoul:page=1"

    def test_none_values_are_dropped(self):
        key = CacheKeyBuilder.build_key("articles:list", {"page": 1, "search": None})
        assert key == "articles:list:page=1"

    def test_all_none_values_yield_prefix(self):
        key = CacheKeyBuilder.build_key("articles:list", {"page": None})
        assert key == "articles:list"

    def test_falsy_values_are_kept(self):
        key = CacheKeyBuilder.build_key("p", {"page": 0, "search": ""})
        assert key == "p:page=0:search="

    def test_booleans_render_lowercase(self):
        key = CacheKeyBuilder.build_key("p", {"flag": True, "other": False})
        assert key == "p:flag=true:other=false"

    def test_nested_mapping_order_does_not_matter(self):
        first = CacheKeyBuilder.build_key(
            "concerts:list", {"filters": {"genre": "rock", "city": "seoul"}}
        )
        second = CacheKeyBuilder.build_key(
            "concerts:list", {"filters": {"city": "seoul", "genre": "rock"}}
        )

        assert first == second == "concerts:list:filters={city=seoul,genre=rock}"

    def test_list_order_is_kept(self):
        by_date = CacheKeyBuilder.build_key("concerts:list", {"sort": ["datetime", "likes"]})
        by_likes = CacheKeyBuilder.build_key("concerts:list", {"sort": ["likes", "datetime"]})

        assert by_date == "concerts:list:sort=datetime,likes"
        assert by_likes == "concerts:list:sort=likes,datetime"

    def test_set_values_are_sorted(self):
        key = CacheKeyBuilder.build_key("p", {"ids": {"c", "a", "b"}})
        assert key == "p:ids=a,b,c"

    def test_separators_in_values_are_escaped(self):
        forged = CacheKeyBuilder.search_articles(query="rock:sortBy=date")
        real = CacheKeyBuilder.search_articles(query="rock", sort_by="date")

        assert forged != real
        assert forged == "search:articles:query=rock%3AsortBy%3Ddate"
        assert real == "search:articles:query=rock:sortBy=date"

    def test_percent_is_escaped(self):
        assert CacheKeyBuilder.build_key("p", {"q": "50%3A"}) == "p:q=50%253A"


class TestNamedKeys:
    """Test the per-query key constructors."""

    def test_user_keys(self):
        assert CacheKeyBuilder.user("u1") == "user:u1"
        assert CacheKeyBuilder.user_stats("u1") == "user:u1:stats"

    def test_article_list(self):
        key = CacheKeyBuilder.article_list(limit=10, page=2, category_id="c1")
        assert key == "articles:list:category_id=c1:limit=10:page=2"

    def test_article_detail_with_user(self):
        assert CacheKeyBuilder.article_detail("a1") == "articles:a1"
        assert (
            CacheKeyBuilder.article_detail("a1", user_id="u1") == "articles:a1:userId=u1"
        )

    def test_articles_by_author(self):
        key = CacheKeyBuilder.articles_by_author(
            "au1", page=1, include_unpublished=True
        )
        assert key == "articles:author:au1:includeUnpublished=true:page=1"

    def test_popular_variants(self):
        assert (
            CacheKeyBuilder.articles_popular(page=1, limit=20, days=7)
            == "articles:popular:days=7:limit=20:page=1"
        )
        assert (
            CacheKeyBuilder.concerts_popular(page=1, limit=20)
            == "concerts:popular:limit=20:page=1"
        )
        assert CacheKeyBuilder.tags_popular(limit=20) == "tags:popular:limit=20"

    def test_concert_keys(self):
        assert (
            CacheKeyBuilder.concert_list(date_from="2025-01-01", page=1)
            == "concerts:list:dateFrom=2025-01-01:page=1"
        )
        assert CacheKeyBuilder.concert_detail("c9") == "concerts:c9"
        assert (
            CacheKeyBuilder.concerts_upcoming(page=1, limit=20)
            == "concerts:upcoming:limit=20:page=1"
        )
        assert (
            CacheKeyBuilder.concerts_liked("u1", page=3) == "concerts:liked:u1:page=3"
        )

    def test_category_and_tag_keys(self):
        assert CacheKeyBuilder.categories() == "categories:all"
        assert CacheKeyBuilder.category_by_name("jazz") == "categories:name:jazz"
        assert CacheKeyBuilder.tags() == "tags:all"
        assert CacheKeyBuilder.tags_by_article("a1") == "tags:article:a1"

    def test_stats_keys(self):
        assert CacheKeyBuilder.stats_article_views("a1") == "stats:article:a1:views"
        assert (
            CacheKeyBuilder.stats_concert_interest("c1") == "stats:concert:c1:interest"
        )

    def test_search_articles_sorts_tags_without_mutating(self):
        tags = ["rock", "indie", "jazz"]
        first = CacheKeyBuilder.search_articles(query="live", tag_names=tags)
        second = CacheKeyBuilder.search_articles(
            tag_names=["jazz", "rock", "indie"], query="live"
        )

        assert first == second == "search:articles:query=live:tag_names=indie,jazz,rock"
        assert tags == ["rock", "indie", "jazz"]

    def test_search_articles_empty_tags_dropped(self):
        assert CacheKeyBuilder.search_articles(tag_names=[]) == "search:articles"

    def test_notification_keys(self):
        assert (
            CacheKeyBuilder.notifications("u1", unread_only=True)
            == "notifications:u1:unreadOnly=true"
        )
        assert CacheKeyBuilder.notification_count("u1") == "notifications:u1:count"

    def test_named_keys_reject_unknown_parameters(self):
        with pytest.raises(TypeError):
            CacheKeyBuilder.article_list(unknown=1)


class TestInvalidationPatterns:
    """Test that invalidation patterns cover the keys they target."""

    def test_article_patterns(self):
        detail = CacheKeyBuilder.article_detail("a1", user_id="u1")
        listing = CacheKeyBuilder.article_list(page=1)

        assert fnmatchcase(detail, CacheInvalidationPatterns.article_by_id("a1"))
        assert fnmatchcase(listing, CacheInvalidationPatterns.article_list())
        assert not fnmatchcase(listing, CacheInvalidationPatterns.article_by_id("a1"))

    def test_author_pattern_matches_author_keys(self):
        key = CacheKeyBuilder.articles_by_author("au1", page=2)

        assert fnmatchcase(key, CacheInvalidationPatterns.article_by_author("au1"))
        assert not fnmatchcase(key, CacheInvalidationPatterns.article_by_author("au2"))

    def test_user_patterns(self):
        assert fnmatchcase(
            CacheKeyBuilder.user_stats("u1"), CacheInvalidationPatterns.user_all("u1")
        )
        assert CacheInvalidationPatterns.user_profile("u1") == CacheKeyBuilder.user("u1")

    def test_stats_patterns(self):
        assert fnmatchcase(
            CacheKeyBuilder.stats_article_views("a1"),
            CacheInvalidationPatterns.stats_article("a1"),
        )
        assert fnmatchcase(
            CacheKeyBuilder.stats_concert_interest("c1"),
            CacheInvalidationPatterns.stats_concert("c1"),
        )
