"""Redis store for caching read-models.

Handles:
- Caching with TTL policies
- Invalidation when stores or reviews change

Cached read-models:
- Tag histogram (tag -> count across all stores)
- Top-rated stores listing

Redis is optional: when it is not initialized every helper raises
RuntimeError, which callers treat as a cache miss.
"""

import json
import logging
from typing import Any

import redis.asyncio as redis

from storefinder.settings import get_settings

# Cache keys
KEY_TAGS = "stores:tags"
KEY_TOP_STORES = "stores:top"

# Redis client (initialized on startup)
_redis: redis.Redis | None = None
logger = logging.getLogger("uvicorn.error")


async def init_redis() -> None:
    """Initialize Redis connection."""
    global _redis
    settings = get_settings()
    _redis = redis.from_url(
        settings.redis_url,
        encoding="utf-8",
        decode_responses=True,
        socket_connect_timeout=5,
        socket_timeout=5,
    )
    await _redis.ping()
    logger.info("Redis connected")


async def close_redis() -> None:
    """Close Redis connection."""
    global _redis
    if _redis:
        await _redis.aclose()
        _redis = None


def _get_redis() -> redis.Redis:
    """Get Redis client instance."""
    if _redis is None:
        raise RuntimeError("Redis not initialized. Call init_redis() first.")
    return _redis


# ============================================================
# Generic cache operations
# ============================================================


async def cache_get(key: str) -> str | None:
    """Get value from cache.

    Args:
        key: Cache key.

    Returns:
        Cached value or None if not found.
    """
    return await _get_redis().get(key)


async def cache_set(key: str, value: str, ttl: int) -> None:
    """Set value in cache with TTL.

    Args:
        key: Cache key.
        value: Value to cache.
        ttl: Time-to-live in seconds.
    """
    await _get_redis().setex(key, ttl, value)


async def cache_delete(*keys: str) -> None:
    """Delete values from cache."""
    await _get_redis().delete(*keys)


async def cache_get_json(key: str) -> Any | None:
    """Get JSON value from cache.

    Returns:
        Parsed JSON value or None if not found.
    """
    value = await cache_get(key)
    if value:
        return json.loads(value)
    return None


async def cache_set_json(key: str, value: Any, ttl: int) -> None:
    """Set JSON value in cache."""
    await cache_set(key, json.dumps(value), ttl)


# ============================================================
# Read-model cache
# ============================================================


async def get_tags_cache() -> list[dict[str, Any]] | None:
    """Get cached tag histogram."""
    return await cache_get_json(KEY_TAGS)


async def set_tags_cache(tags: list[dict[str, Any]]) -> None:
    """Cache tag histogram."""
    await cache_set_json(KEY_TAGS, tags, get_settings().cache_ttl_seconds)


async def get_top_stores_cache() -> list[dict[str, Any]] | None:
    """Get cached top-stores listing."""
    return await cache_get_json(KEY_TOP_STORES)


async def set_top_stores_cache(stores: list[dict[str, Any]]) -> None:
    """Cache top-stores listing."""
    await cache_set_json(KEY_TOP_STORES, stores, get_settings().cache_ttl_seconds)


async def invalidate_read_models() -> None:
    """Drop every cached read-model (after a store or review write)."""
    await cache_delete(KEY_TAGS, KEY_TOP_STORES)
