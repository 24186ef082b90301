"""
Unit tests for CacheHelper bulk operations.
"""

import pytest

from app.services.cache.helpers import CacheHelper, CacheItem


@pytest.fixture
def helper(cache_store):
    return CacheHelper(cache_store)


@pytest.mark.asyncio
async def test_set_many_and_get_many(helper):
    written = await helper.set_many(
        [
            CacheItem(key="tags:t1", value={"name": "rock"}, ttl=60),
            CacheItem(key="tags:t2", value={"name": "jazz"}, ttl=60),
        ]
    )

    assert written == 2
    assert await helper.get_many(["tags:t2", "tags:missing", "tags:t1"]) == [
        {"name": "jazz"},
        None,
        {"name": "rock"},
    ]


@pytest.mark.asyncio
async def test_set_many_counts_refused_writes(helper):
    written = await helper.set_many(
        [
            CacheItem(key="a", value=1, ttl=60),
            CacheItem(key="b", value=2, ttl=0),
        ]
    )

    assert written == 1


@pytest.mark.asyncio
async def test_delete_patterns_sums_counts(helper, cache_store, fake_redis):
    for key in ("articles:a1", "articles:a2", "concerts:c1", "tags:t1"):
        await cache_store.set(key, 1, 60)

    removed = await helper.delete_patterns(["articles:*", "concerts:*"])

    assert removed == 3
    assert set(fake_redis.data) == {"tags:t1"}


@pytest.mark.asyncio
async def test_exists(helper, cache_store):
    await cache_store.set("user:u1", {"id": "u1"}, 60)

    assert await helper.exists("user:u1") is True
    assert await helper.exists("user:u2") is False


@pytest.mark.asyncio
async def test_extend_rewrites_ttl(helper, cache_store, fake_redis):
    await cache_store.set("user:u1", {"id": "u1"}, 60)

    assert await helper.extend("user:u1", 3600) is True
    assert fake_redis.ttls["user:u1"] == 3600
    assert await helper.extend("user:missing", 3600) is False


@pytest.mark.asyncio
async def test_helpers_fail_open(helper, fake_redis):
    fake_redis.fail = True

    assert await helper.get_many(["a", "b"]) == [None, None]
    assert await helper.set_many([CacheItem(key="a", value=1, ttl=60)]) == 0
    assert await helper.delete_patterns(["a*"]) == 0
