"""Hearts (favourite stores) service.

Toggle semantics: a hearted store is un-hearted, anything else is hearted.
Both directions are single atomic statements on user_hearts (DELETE ...
RETURNING, then INSERT ... ON CONFLICT DO NOTHING when nothing was removed),
so concurrent toggles never lose updates or create duplicates.
"""

import logging

from sqlalchemy import Delete, Insert, Select, delete, select
from sqlalchemy.dialects.postgresql import insert as pg_insert

from storefinder.models import Store, user_hearts
from storefinder.stores.postgres import get_session

logger = logging.getLogger("uvicorn.error")


def unheart_statement(user_id: int, store_id: int) -> Delete:
    return (
        delete(user_hearts)
        .where(user_hearts.c.user_id == user_id, user_hearts.c.store_id == store_id)
        .returning(user_hearts.c.store_id)
    )


def heart_statement(user_id: int, store_id: int) -> Insert:
    return (
        pg_insert(user_hearts)
        .values(user_id=user_id, store_id=store_id)
        .on_conflict_do_nothing(index_elements=["user_id", "store_id"])
    )


def heart_ids_query(user_id: int) -> Select:
    return (
        select(user_hearts.c.store_id)
        .where(user_hearts.c.user_id == user_id)
        .order_by(user_hearts.c.store_id)
    )


async def toggle_heart(user_id: int, store_id: int) -> list[int] | None:
    """Heart or un-heart a store for a user.

    Returns:
        The user's hearted store ids after the toggle, or None if the store
        does not exist.
    """
    async with get_session() as session:
        exists = await session.execute(select(Store.id).where(Store.id == store_id))
        if exists.scalar_one_or_none() is None:
            return None

        removed = await session.execute(unheart_statement(user_id, store_id))
        if removed.first() is None:
            await session.execute(heart_statement(user_id, store_id))
            action = "hearted"
        else:
            action = "unhearted"

        hearts = await session.execute(heart_ids_query(user_id))
        heart_ids = list(hearts.scalars().all())

    logger.info(f"User {user_id} {action} store {store_id}")
    return heart_ids

