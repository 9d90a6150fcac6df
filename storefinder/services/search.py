"""Store search service.

Full-text search:
- Matches stores containing ANY word of the query (English stemming)
- Ranked by Postgres ts_rank over name + description, best first
- At most 5 results

Proximity search:
- Stores within 10 km of a (lng, lat) point, nearest first, at most 10
- Lat/lng bounding box pre-filter, then exact great-circle distance
- Returns a light projection (slug, name, description, location, photo)
"""

import re

from sqlalchemy import ColumnElement, Select, func, select
from sqlalchemy.orm import load_only, selectinload

from storefinder.models import Store
from storefinder.schemas import NearbyStore, SearchResult, StoreOut
from storefinder.services.geo import EARTH_RADIUS_M, bounding_box
from storefinder.settings import get_settings
from storefinder.stores.postgres import get_session

TEXT_SEARCH_CONFIG = "english"

_WORD_RE = re.compile(r"\w+")


def tsquery_terms(q: str) -> str | None:
    """Turn free text into an OR-ed to_tsquery() expression.

    Only word characters survive, so the result is always valid tsquery syntax.

    Example:
        >>> tsquery_terms("coffee & cake!")
        "coffee | cake"
    """
    words = _WORD_RE.findall(q)
    if not words:
        return None
    return " | ".join(words)


def text_search_query(terms: str, limit: int) -> Select:
    """Stores matching `terms`, with their relevance score, best first."""
    tsquery = func.to_tsquery(TEXT_SEARCH_CONFIG, terms)
    score = func.ts_rank(Store.search_vector, tsquery).label("score")
    return (
        select(Store, score)
        .where(Store.search_vector.op("@@")(tsquery))
        .options(selectinload(Store.reviews))
        .order_by(score.desc(), Store.id)
        .limit(limit)
    )


def distance_expr(lng: float, lat: float) -> ColumnElement[float]:
    """Haversine distance in metres from (lng, lat) to each store."""
    dlat = func.radians(Store.lat - lat)
    dlng = func.radians(Store.lng - lng)
    a = func.power(func.sin(dlat / 2), 2) + func.cos(func.radians(lat)) * func.cos(
        func.radians(Store.lat)
    ) * func.power(func.sin(dlng / 2), 2)
    # least() keeps float noise from pushing asin() out of its domain
    return 2 * EARTH_RADIUS_M * func.asin(func.sqrt(func.least(1.0, a)))


def near_query(lng: float, lat: float, max_distance_m: float, limit: int) -> Select:
    """Stores within `max_distance_m` of (lng, lat), nearest first."""
    distance = distance_expr(lng, lat)
    box = bounding_box(lng, lat, max_distance_m)

    stmt = (
        select(Store)
        .options(
            load_only(
                Store.slug,
                Store.name,
                Store.description,
                Store.location_type,
                Store.lng,
                Store.lat,
                Store.address,
                Store.photo,
            )
        )
        .where(Store.lat.between(box.min_lat, box.max_lat))
    )
    if not box.wraps:
        stmt = stmt.where(Store.lng.between(box.min_lng, box.max_lng))
    return stmt.where(distance <= max_distance_m).order_by(distance).limit(limit)


async def search_stores(q: str) -> list[SearchResult]:
    """Full-text search over store names and descriptions.

    Args:
        q: Free-text query.

    Returns:
        Up to `search_limit` results, highest score first. Empty when the
        query holds no searchable words.
    """
    terms = tsquery_terms(q)
    if terms is None:
        return []

    async with get_session() as session:
        result = await session.execute(text_search_query(terms, get_settings().search_limit))
        return [
            SearchResult(**StoreOut.model_validate(store).model_dump(), score=float(score))
            for store, score in result.all()
        ]


async def find_stores_near(lng: float, lat: float) -> list[NearbyStore]:
    """Stores around a point, nearest first.

    Args:
        lng: Longitude of the search centre.
        lat: Latitude of the search centre.
    """
    settings = get_settings()
    async with get_session() as session:
        result = await session.execute(
            near_query(lng, lat, settings.near_max_distance_m, settings.near_limit)
        )
        return [NearbyStore.model_validate(s) for s in result.scalars().all()]
