"""Slug assignment for stores.

A store's slug is derived from its name whenever the name is set or changed:
- slugify the name (ASCII, lowercase, runs of other characters -> "-")
- count existing stores whose slug is the base slug, optionally followed by
  "-<number>" (case-insensitive)
- if any exist, append "-<count + 1>"

So the Nth store called "The Coffee Shop" gets "the-coffee-shop-N" (N >= 2).
Count-based suffixes can still collide under concurrent writes or after
renames leave gaps; there is no unique constraint behind them.
"""

import re
import unicodedata

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from storefinder.models import Store

DEFAULT_SLUG = "store"

_NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")


def slugify(name: str) -> str:
    """Make a URL-safe slug from a store name.

    Example:
        >>> slugify("Café Milano!")
        "cafe-milano"
    """
    ascii_name = unicodedata.normalize("NFKD", name).encode("ascii", "ignore").decode("ascii")
    slug = _NON_ALNUM_RE.sub("-", ascii_name.lower()).strip("-")
    return slug or DEFAULT_SLUG


def slug_pattern(base: str) -> str:
    """Regex matching `base` and `base-<number>`.

    `base` comes from slugify(), so it only holds [a-z0-9-] and needs no escaping.
    """
    return f"^({base})((-[0-9]*$)?)$"


def suffixed_slug(base: str, existing: int) -> str:
    """Slug for a store when `existing` stores already use `base`."""
    if existing:
        return f"{base}-{existing + 1}"
    return base


def count_slug_query(base: str, exclude_id: int | None = None) -> Select:
    """Count stores whose slug matches `base` or `base-<number>`."""
    stmt = (
        select(func.count())
        .select_from(Store)
        .where(Store.slug.op("~*")(slug_pattern(base)))
    )
    if exclude_id is not None:
        stmt = stmt.where(Store.id != exclude_id)
    return stmt


async def assign_slug(session: AsyncSession, store: Store) -> str:
    """Set `store.slug` from its name. Call before persisting a new or renamed store.

    Args:
        session: Open session (the count runs in the caller's transaction).
        store: Store with its final name set.

    Returns:
        The assigned slug.
    """
    base = slugify(store.name)
    result = await session.execute(count_slug_query(base, exclude_id=store.id))
    store.slug = suffixed_slug(base, result.scalar_one())
    return store.slug
