"""
Read-through caching for catalog queries that every visitor hits.
"""
import hashlib
import json
from functools import wraps
from typing import Callable, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from app.cache.redis_client import cache
from app.core.config import settings
from app.core.logging import logger


def cached(key_prefix: str, expire: Optional[int] = None):
    """
    Cache the JSON-serializable result of an async repository function
    under ``<key_prefix>:<digest of the non-session arguments>``.

    A Redis outage degrades to a cache miss. Writers drop stale entries
    with ``invalidate(key_prefix)``.

    Usage:
        @cached("categories:list")
        async def list_categories(db):
            ...
    """
    ttl = expire or settings.CATEGORY_CACHE_SECONDS

    def decorator(func: Callable) -> Callable:
        @wraps(func)
        async def wrapper(*args, **kwargs):
            key = f"{key_prefix}:{_argument_digest(args, kwargs)}"
            hit = await cache.get(key)
            if hit is not None:
                logger.debug(f"Cache hit for {key}")
                return hit

            result = await func(*args, **kwargs)
            await cache.set(key, result, expire=ttl)
            return result
        return wrapper
    return decorator


async def invalidate(key_prefix: str) -> int:
    """Drop every entry cached under ``key_prefix``."""
    removed = await cache.delete_pattern(f"{key_prefix}:*")
    if removed:
        logger.debug(f"Invalidated {removed} cache entries under {key_prefix}")
    return removed


def _argument_digest(args: tuple, kwargs: dict) -> str:
    material = {
        "args": [str(a) for a in args if not isinstance(a, AsyncSession)],
        "kwargs": {k: str(v) for k, v in kwargs.items() if not isinstance(v, AsyncSession)},
    }
    return hashlib.md5(json.dumps(material, sort_keys=True).encode()).hexdigest()
