"""Store listing and lookup service.

Operations:
- Paginated listing, newest first (page size 4)
- Lookup by slug (with author and reviews)
- Listing by tag, with the global tag histogram
- The requesting user's hearted stores

Independent queries (page + total count, histogram + tagged stores) run
concurrently, each on its own session.

Reviews are always loaded with the stores they belong to, so every payload
carries them.
"""

import asyncio
import logging
import math
from collections.abc import Awaitable, Callable
from typing import Any

from redis.exceptions import RedisError
from sqlalchemy import ColumnElement, Select, any_, func, select
from sqlalchemy.orm import selectinload

from storefinder.models import Store, user_hearts
from storefinder.schemas import StoreDetail, StoreOut, StorePage, TagCount, TagsResponse
from storefinder.settings import get_settings
from storefinder.stores.postgres import get_session
from storefinder.stores.redis import get_tags_cache, invalidate_read_models, set_tags_cache

logger = logging.getLogger("uvicorn.error")


def page_offset(page: int, size: int) -> int:
    """Rows to skip for a 1-based page."""
    return (page - 1) * size


def page_count(count: int, size: int) -> int:
    """Number of pages needed for `count` stores."""
    return math.ceil(count / size)


# ============================================================
# Query builders
# ============================================================


def store_window_query(skip: int, limit: int) -> Select:
    """One page of stores, newest first."""
    return (
        select(Store)
        .options(selectinload(Store.reviews))
        .order_by(Store.created.desc(), Store.id.desc())
        .offset(skip)
        .limit(limit)
    )


def tag_filter(tag: str | None) -> ColumnElement[bool]:
    """Stores carrying `tag`, or any tag at all when no tag is given."""
    if tag:
        return tag == any_(Store.tags)
    return func.cardinality(Store.tags) > 0


def tags_histogram_query() -> Select:
    """Tag -> number of stores carrying it, most used first."""
    tags = select(func.unnest(Store.tags).label("tag")).subquery("store_tags")
    count = func.count().label("count")
    return (
        select(tags.c.tag, count)
        .group_by(tags.c.tag)
        .order_by(count.desc(), tags.c.tag)
    )


def hearted_stores_query(user_id: int) -> Select:
    """Stores in a user's hearts, most recently hearted first."""
    return (
        select(Store)
        .join(user_hearts, user_hearts.c.store_id == Store.id)
        .where(user_hearts.c.user_id == user_id)
        .options(selectinload(Store.reviews))
        .order_by(user_hearts.c.created_at.desc(), Store.id.desc())
    )


# ============================================================
# Read-model cache (Redis is optional)
# ============================================================


async def try_cache_get(getter: Callable[[], Awaitable[Any]]) -> Any | None:
    try:
        return await getter()
    except (RuntimeError, RedisError):
        return None


async def try_cache_set(setter: Callable[[Any], Awaitable[None]], value: Any) -> None:
    try:
        await setter(value)
    except (RuntimeError, RedisError):
        # Redis may be unavailable in tests/local minimal env.
        return


async def forget_read_models() -> None:
    """Invalidate cached tag histogram and top stores after a write."""
    try:
        await invalidate_read_models()
    except (RuntimeError, RedisError):
        return


# ============================================================
# Operations
# ============================================================


async def _fetch_store_window(skip: int, limit: int) -> list[Store]:
    async with get_session() as session:
        result = await session.execute(store_window_query(skip, limit))
        return list(result.scalars().all())


async def count_stores() -> int:
    """Total number of stores."""
    async with get_session() as session:
        result = await session.execute(select(func.count()).select_from(Store))
        return result.scalar_one()


async def list_stores(page: int = 1) -> StorePage:
    """Get one page of stores, newest first.

    Args:
        page: 1-based page number.

    Returns:
        StorePage with the page's stores (may be empty when `page` is past the
        end), total count and number of pages.
    """
    size = get_settings().page_size
    stores, count = await asyncio.gather(
        _fetch_store_window(page_offset(page, size), size),
        count_stores(),
    )
    return StorePage(
        stores=[StoreOut.model_validate(s) for s in stores],
        page=page,
        pages=page_count(count, size),
        count=count,
    )


async def get_store_by_slug(slug: str) -> StoreDetail | None:
    """Get a store by exact slug, with author and reviews.

    Returns:
        StoreDetail, or None if no store has this slug.
    """
    async with get_session() as session:
        result = await session.execute(
            select(Store)
            .where(Store.slug == slug)
            .options(selectinload(Store.author), selectinload(Store.reviews))
        )
        store = result.scalars().first()
        if store is None:
            return None
        return StoreDetail.model_validate(store)


async def get_tags_list() -> list[TagCount]:
    """Global tag histogram, most used tag first (cached)."""
    cached = await try_cache_get(get_tags_cache)
    if cached is not None:
        return [TagCount.model_validate(t) for t in cached]

    logger.info("Tag histogram cache miss, aggregating")
    async with get_session() as session:
        rows = (await session.execute(tags_histogram_query())).all()
    tags = [TagCount(tag=row.tag, count=row.count) for row in rows]

    await try_cache_set(set_tags_cache, [t.model_dump() for t in tags])
    return tags


async def _fetch_tagged_stores(tag: str | None) -> list[Store]:
    async with get_session() as session:
        result = await session.execute(
            select(Store)
            .where(tag_filter(tag))
            .options(selectinload(Store.reviews))
            .order_by(Store.created.desc(), Store.id.desc())
        )
        return list(result.scalars().all())


async def list_stores_by_tag(tag: str | None = None) -> TagsResponse:
    """Stores carrying `tag` (or any tag), plus the tag histogram for navigation."""
    tags, stores = await asyncio.gather(get_tags_list(), _fetch_tagged_stores(tag))
    return TagsResponse(
        tag=tag,
        tags=tags,
        stores=[StoreOut.model_validate(s) for s in stores],
    )


async def get_hearted_stores(user_id: int) -> list[StoreOut]:
    """Stores the user has hearted."""
    async with get_session() as session:
        result = await session.execute(hearted_stores_query(user_id))
        return [StoreOut.model_validate(s) for s in result.scalars().all()]
