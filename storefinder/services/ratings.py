"""Review and rating service.

Top-rated stores:
1. Join each store to its reviews
2. Keep stores with at least 2 reviews
3. Average the ratings
4. Sort by average, highest first
5. Keep the top 10

The listing is cached in Redis when available and dropped whenever a
review or store is written.
"""

import logging

from sqlalchemy import Select, func, select
from sqlalchemy.orm import selectinload

from storefinder.models import Review, Store, User
from storefinder.schemas import ReviewIn, ReviewOut, TopStore
from storefinder.services.listing import forget_read_models, try_cache_get, try_cache_set
from storefinder.settings import get_settings
from storefinder.stores.postgres import get_session
from storefinder.stores.redis import get_top_stores_cache, set_top_stores_cache

logger = logging.getLogger("uvicorn.error")


def top_stores_query(min_reviews: int, limit: int) -> Select:
    """Stores with >= `min_reviews` reviews and their average rating, best first."""
    review_stats = (
        select(
            Review.store_id.label("store_id"),
            func.avg(Review.rating).label("average_rating"),
        )
        .group_by(Review.store_id)
        .having(func.count(Review.id) >= min_reviews)
        .subquery("review_stats")
    )
    return (
        select(Store, review_stats.c.average_rating)
        .join(review_stats, review_stats.c.store_id == Store.id)
        .options(selectinload(Store.reviews))
        .order_by(review_stats.c.average_rating.desc(), Store.id)
        .limit(limit)
    )


async def get_top_stores() -> list[TopStore]:
    """Top-rated stores (cached)."""
    cached = await try_cache_get(get_top_stores_cache)
    if cached is not None:
        return [TopStore.model_validate(s) for s in cached]

    logger.info("Top stores cache miss, aggregating")
    settings = get_settings()
    async with get_session() as session:
        result = await session.execute(
            top_stores_query(settings.top_stores_min_reviews, settings.top_stores_limit)
        )
        top = [
            TopStore(
                id=store.id,
                name=store.name,
                slug=store.slug,
                photo=store.photo,
                reviews=[ReviewOut.model_validate(r) for r in store.reviews],
                # avg() over integers comes back as Decimal
                average_rating=float(average),
            )
            for store, average in result.all()
        ]

    await try_cache_set(
        set_top_stores_cache,
        [t.model_dump(mode="json", by_alias=True) for t in top],
    )
    return top


async def add_review(store_id: int, author: User, data: ReviewIn) -> ReviewOut | None:
    """Create a review on a store.

    Returns:
        The created review, or None if the store does not exist.
    """
    async with get_session() as session:
        exists = await session.execute(select(Store.id).where(Store.id == store_id))
        if exists.scalar_one_or_none() is None:
            return None

        review = Review(store_id=store_id, author_id=author.id, text=data.text, rating=data.rating)
        session.add(review)
        await session.flush()
        await session.refresh(review)
        created = ReviewOut.model_validate(review)

    logger.info(f"Review id={created.id} store={store_id} rating={created.rating}")
    await forget_read_models()
    return created
