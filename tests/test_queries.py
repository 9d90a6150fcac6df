"""Query-building and service tests that run without a database.

Statements are compiled with the PostgreSQL dialect; services get a small
in-memory session stand-in.
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
import re
import warnings

import pytest
from sqlalchemy.dialects import postgresql

from storefinder.schemas import StoreOut, TagCount
from storefinder.services import hearts as hearts_service
from storefinder.services import listing
from storefinder.services.hearts import toggle_heart
from storefinder.services.listing import (
    get_tags_list,
    list_stores,
    page_count,
    page_offset,
    tag_filter,
    tags_histogram_query,
    try_cache_get,
)
from storefinder.services.ratings import top_stores_query
from storefinder.services.search import near_query, search_stores, text_search_query, tsquery_terms
from storefinder.stores.redis import get_tags_cache


def compile_sql(stmt) -> str:
    return str(stmt.compile(dialect=postgresql.dialect()))


# ============================================================
# Pagination
# ============================================================


def test_page_offset():
    assert page_offset(1, 4) == 0
    assert page_offset(3, 4) == 8


def test_page_count():
    assert page_count(0, 4) == 0
    assert page_count(4, 4) == 1
    assert page_count(5, 4) == 2


@pytest.mark.asyncio
async def test_list_stores_counts_pages(monkeypatch: pytest.MonkeyPatch):
    windows: list[tuple[int, int]] = []

    async def fake_fetch_store_window(skip: int, limit: int):
        windows.append((skip, limit))
        return []

    async def fake_count_stores() -> int:
        return 9

    monkeypatch.setattr(listing, "_fetch_store_window", fake_fetch_store_window)
    monkeypatch.setattr(listing, "count_stores", fake_count_stores)

    page = await list_stores(page=3)
    assert windows == [(8, 4)]
    assert page.pages == 3
    assert page.count == 9
    assert page.stores == []


# ============================================================
# Tags
# ============================================================


def test_tags_histogram_query():
    sql = compile_sql(tags_histogram_query())
    assert "unnest(stores.tags)" in sql
    assert "GROUP BY store_tags.tag" in sql
    assert "ORDER BY count DESC, store_tags.tag" in sql


def test_tag_filter():
    with warnings.catch_warnings():
        warnings.simplefilter("error")
        clause = tag_filter("Wifi")
    assert "= ANY (stores.tags)" in str(clause.compile(dialect=postgresql.dialect()))
    assert "cardinality(stores.tags) >" in str(tag_filter(None).compile(dialect=postgresql.dialect()))


@pytest.mark.asyncio
async def test_cache_miss_without_redis():
    assert await try_cache_get(get_tags_cache) is None


@pytest.mark.asyncio
async def test_tags_list_served_from_cache(monkeypatch: pytest.MonkeyPatch):
    async def fake_get_tags_cache():
        return [{"tag": "Wifi", "count": 3}, {"tag": "Licensed", "count": 1}]

    monkeypatch.setattr(listing, "get_tags_cache", fake_get_tags_cache)

    assert await get_tags_list() == [TagCount(tag="Wifi", count=3), TagCount(tag="Licensed", count=1)]


# ============================================================
# Search
# ============================================================


def test_tsquery_terms():
    assert tsquery_terms("coffee") == "coffee"
    assert tsquery_terms("coffee & cake!") == "coffee | cake"
    assert tsquery_terms("  !!! ") is None


def test_text_search_query():
    sql = compile_sql(text_search_query("coffee | cake", 5))
    assert "to_tsquery" in sql
    assert "stores.search_vector @@" in sql
    assert "ts_rank(stores.search_vector" in sql
    assert "ORDER BY score DESC" in sql
    assert "LIMIT" in sql


@pytest.mark.asyncio
async def test_search_without_words_returns_nothing():
    assert await search_stores("?!") == []


def test_near_query_uses_bounding_box():
    sql = compile_sql(near_query(-0.09, 51.5, 10_000, 10))
    assert "stores.lat BETWEEN" in sql
    assert "stores.lng BETWEEN" in sql
    assert "asin(sqrt(least(" in sql
    assert "LIMIT" in sql


def test_near_query_skips_longitude_bounds_across_antimeridian():
    sql = compile_sql(near_query(179.99, 0.0, 10_000, 10))
    assert "stores.lat BETWEEN" in sql
    assert "stores.lng BETWEEN" not in sql


# ============================================================
# Ratings
# ============================================================


def test_top_stores_query():
    sql = compile_sql(top_stores_query(min_reviews=2, limit=10))
    assert "avg(reviews.rating)" in sql
    assert "HAVING count(reviews.id) >=" in sql
    assert "ORDER BY review_stats.average_rating DESC" in sql


# ============================================================
# Hearts
# ============================================================


def _params(stmt) -> dict:
    """Bound parameters keyed by column name (numeric suffixes dropped)."""
    compiled = stmt.compile(dialect=postgresql.dialect())
    return {re.sub(r"_\d+$", "", k): v for k, v in compiled.params.items()}


class _Result:
    def __init__(self, rows: list[tuple]):
        self._rows = rows

    def first(self):
        return self._rows[0] if self._rows else None

    def scalar_one_or_none(self):
        return self._rows[0][0] if self._rows else None

    def scalars(self):
        return self

    def all(self):
        return [row[0] for row in self._rows]


class _HeartsSession:
    """In-memory user_hearts table answering the statements toggle_heart issues."""

    def __init__(self, store_ids: set[int]):
        self.store_ids = store_ids
        self.hearts: set[tuple[int, int]] = set()

    async def execute(self, stmt):
        params = _params(stmt)
        if stmt.is_delete:
            key = (params["user_id"], params["store_id"])
            if key in self.hearts:
                self.hearts.remove(key)
                return _Result([(key[1],)])
            return _Result([])
        if stmt.is_insert:
            self.hearts.add((params["user_id"], params["store_id"]))
            return _Result([])
        if stmt.selected_columns[0].table.name == "stores":
            store_id = params["id"]
            return _Result([(store_id,)] if store_id in self.store_ids else [])
        user_id = params["user_id"]
        return _Result(sorted((s,) for u, s in self.hearts if u == user_id))


@pytest.fixture
def hearts_session(monkeypatch: pytest.MonkeyPatch) -> _HeartsSession:
    session = _HeartsSession(store_ids={1, 2, 3})

    @asynccontextmanager
    async def fake_get_session():
        yield session

    monkeypatch.setattr(hearts_service, "get_session", fake_get_session)
    return session


@pytest.mark.asyncio
async def test_toggle_heart_adds_then_removes(hearts_session: _HeartsSession):
    assert await toggle_heart(user_id=1, store_id=2) == [2]
    assert await toggle_heart(user_id=1, store_id=3) == [2, 3]
    assert await toggle_heart(user_id=1, store_id=2) == [3]


@pytest.mark.asyncio
async def test_toggle_heart_twice_restores_hearts(hearts_session: _HeartsSession):
    await toggle_heart(user_id=1, store_id=1)
    before = set(hearts_session.hearts)
    await toggle_heart(user_id=1, store_id=3)
    await toggle_heart(user_id=1, store_id=3)
    assert hearts_session.hearts == before


@pytest.mark.asyncio
async def test_toggle_heart_is_per_user(hearts_session: _HeartsSession):
    await toggle_heart(user_id=1, store_id=1)
    assert await toggle_heart(user_id=2, store_id=1) == [1]
    assert await toggle_heart(user_id=2, store_id=1) == []
    assert hearts_session.hearts == {(1, 1)}


@pytest.mark.asyncio
async def test_toggle_heart_missing_store(hearts_session: _HeartsSession):
    assert await toggle_heart(user_id=1, store_id=99) is None
    assert hearts_session.hearts == set()


def test_heart_statement_ignores_duplicates():
    sql = compile_sql(hearts_service.heart_statement(1, 2))
    assert "ON CONFLICT (user_id, store_id) DO NOTHING" in sql


def test_store_out_from_row_dict():
    store = StoreOut(
        id=1,
        name="Cafe Milano",
        slug="cafe-milano",
        created=datetime(2026, 1, 1, tzinfo=timezone.utc),
        location={"coordinates": [-0.13, 51.51], "address": "1 Old Compton St"},
        authorId=4,
    )
    assert store.author_id == 4
    assert store.model_dump(by_alias=True)["authorId"] == 4
