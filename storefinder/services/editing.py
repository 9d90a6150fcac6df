"""Store create/update service.

- Create: slug assigned before insert, author is the requesting user
- Update: owner only; a changed name gets a fresh slug; the photo is kept
  unless a new one was uploaded

Writes invalidate the cached read-models (tags, top stores).
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from storefinder.models import Store, User
from storefinder.schemas import StoreIn, StoreOut
from storefinder.services.listing import forget_read_models
from storefinder.services.slugs import assign_slug
from storefinder.stores.postgres import get_session

logger = logging.getLogger("uvicorn.error")


class NotStoreOwnerError(PermissionError):
    """Requesting user is not the store's author."""


def confirm_owner(store: Store, user: User) -> None:
    """Raise NotStoreOwnerError unless `user` authored `store`."""
    if store.author_id != user.id:
        raise NotStoreOwnerError("You must own a store in order to edit it!")


async def _load_store(session: AsyncSession, store_id: int) -> Store | None:
    result = await session.execute(
        select(Store)
        .where(Store.id == store_id)
        .options(selectinload(Store.reviews))
        .execution_options(populate_existing=True)
    )
    return result.scalars().first()


async def get_store(store_id: int) -> Store | None:
    """Get a store by id (with reviews), or None."""
    async with get_session() as session:
        return await _load_store(session, store_id)


async def create_store(data: StoreIn, author: User) -> StoreOut:
    """Persist a new store.

    Args:
        data: Validated store fields (photo already attached if uploaded).
        author: Requesting user.

    Returns:
        The created store.
    """
    async with get_session() as session:
        store = Store(
            name=data.name,
            description=data.description,
            tags=data.tags,
            location_type="Point",
            lng=data.lng,
            lat=data.lat,
            address=data.address,
            photo=data.photo,
            author_id=author.id,
        )
        await assign_slug(session, store)
        session.add(store)
        await session.flush()
        # Reload for server-side defaults (created) and the reviews collection
        store = await _load_store(session, store.id)

    logger.info(f"Created store id={store.id} slug={store.slug} author={author.id}")
    await forget_read_models()
    return StoreOut.model_validate(store)


async def update_store(store_id: int, data: StoreIn) -> StoreOut | None:
    """Apply submitted fields to a store. Ownership must be checked by the caller.

    Returns:
        The updated store, or None if it no longer exists.
    """
    async with get_session() as session:
        store = await _load_store(session, store_id)
        if store is None:
            return None

        renamed = store.name != data.name
        store.name = data.name
        store.description = data.description
        store.tags = data.tags
        store.location_type = "Point"
        store.lng = data.lng
        store.lat = data.lat
        store.address = data.address
        if data.photo:
            store.photo = data.photo
        if renamed:
            await assign_slug(session, store)

        await session.flush()
        store = await _load_store(session, store_id)

    logger.info(f"Updated store id={store.id} slug={store.slug} renamed={renamed}")
    await forget_read_models()
    return StoreOut.model_validate(store)
