"""
Cache Decorators

Higher-order wrappers that attach cache-aside behavior to async domain
operations without the operation knowing about caching. They take the
CacheStore explicitly and are applied when a service is constructed::

    class ArticleService:
        def __init__(self, repository, cache_store):
            self.get_article = cacheable(
                cache_store,
                key_generator=lambda article_id: CacheKeyBuilder.article_detail(article_id),
                ttl=CacheTTL.ARTICLE_DETAIL,
            )(repository.find_by_id)

Cache-side failures never reach the caller; only the wrapped operation's
own exceptions do.
"""

import asyncio
import functools
import inspect
import logging
from typing import Any, Awaitable, Callable, List, Optional, TypeVar

from .cache_store import CacheStore

logger = logging.getLogger(__name__)

T = TypeVar("T")
AsyncOperation = Callable[..., Awaitable[T]]

KeyGenerator = Callable[..., str]
SkipCondition = Callable[..., bool]
PatternsGenerator = Callable[..., List[str]]
ValueTransformer = Callable[[Any], Any]


def _require_coroutine_function(func: Callable[..., Any]) -> None:
    if not inspect.iscoroutinefunction(func):
        raise TypeError(f"{func!r} must be an async function to be cache-wrapped")


def cacheable(
    store: CacheStore,
    key_generator: KeyGenerator,
    ttl: int,
    skip_if: Optional[SkipCondition] = None,
) -> Callable[[AsyncOperation], AsyncOperation]:
    """
    Read-through wrapper.

    On hit the cached value is returned without calling the operation. On
    miss the operation runs and a non-None result is stored under the
    generated key for ``ttl`` seconds.

    Args:
        store: Cache store
        key_generator: Builds the cache key from the call arguments
        ttl: Time to live in seconds
        skip_if: When it returns True for the call arguments, bypass the cache
    """

    def decorator(func: AsyncOperation) -> AsyncOperation:
        _require_coroutine_function(func)
        name = getattr(func, "__qualname__", repr(func))

        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            if skip_if is not None and skip_if(*args, **kwargs):
                return await func(*args, **kwargs)

            try:
                cache_key = key_generator(*args, **kwargs)
                cached = await store.get(cache_key)
            except Exception as e:
                logger.error(
                    f"Cache error in {name}, falling back to original method: {e}"
                )
                return await func(*args, **kwargs)

            if cached is not None:
                return cached

            result = await func(*args, **kwargs)

            if result is not None:
                try:
                    await store.set(cache_key, result, ttl)
                except Exception as e:
                    logger.error(f"Failed to cache result of {name}: {e}")

            return result

        return wrapper

    return decorator


def cache_evict(
    store: CacheStore,
    key_patterns: PatternsGenerator,
    before_invocation: bool = False,
) -> Callable[[AsyncOperation], AsyncOperation]:
    """
    Write-invalidate wrapper.

    Deletes every key matching the generated patterns, either before the
    operation runs or after it finishes. In after mode eviction also runs
    when the operation raises; the exception is then re-raised.

    Args:
        store: Cache store
        key_patterns: Builds the glob patterns to evict from the call arguments
        before_invocation: Evict before calling the operation
    """

    def decorator(func: AsyncOperation) -> AsyncOperation:
        _require_coroutine_function(func)
        name = getattr(func, "__qualname__", repr(func))

        async def evict(args: tuple, kwargs: dict) -> None:
            try:
                patterns = key_patterns(*args, **kwargs)
                await asyncio.gather(
                    *(store.delete_by_pattern(pattern) for pattern in patterns)
                )
            except Exception as e:
                logger.error(f"Cache eviction failed in {name}: {e}")

        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            if before_invocation:
                await evict(args, kwargs)
                return await func(*args, **kwargs)

            try:
                return await func(*args, **kwargs)
            finally:
                await evict(args, kwargs)

        return wrapper

    return decorator


def cache_put(
    store: CacheStore,
    key_generator: KeyGenerator,
    ttl: int,
    value_transformer: Optional[ValueTransformer] = None,
) -> Callable[[AsyncOperation], AsyncOperation]:
    """
    Write-through wrapper.

    Always calls the operation and, when the result is not None, stores it
    (or its transformed form) under the generated key. The cache is never
    read first.

    Args:
        store: Cache store
        key_generator: Builds the cache key from the call arguments
        ttl: Time to live in seconds
        value_transformer: Maps the result to the value that gets cached
    """

    def decorator(func: AsyncOperation) -> AsyncOperation:
        _require_coroutine_function(func)
        name = getattr(func, "__qualname__", repr(func))

        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            result = await func(*args, **kwargs)

            if result is not None:
                try:
                    cache_key = key_generator(*args, **kwargs)
                    value = result
                    if value_transformer is not None:
                        transformed = value_transformer(result)
                        if transformed is not None:
                            value = transformed
                    await store.set(cache_key, value, ttl)
                except Exception as e:
                    logger.error(f"Failed to write-through cache in {name}: {e}")

            return result

        return wrapper

    return decorator
