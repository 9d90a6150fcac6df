from contextlib import asynccontextmanager
from datetime import datetime, timezone

import pytest
from pydantic import ValidationError
from sqlalchemy.orm.attributes import set_committed_value

from storefinder.models import Store, User
from storefinder.schemas import StoreIn
from storefinder.services import editing
from storefinder.services.editing import NotStoreOwnerError, confirm_owner, update_store


class _CountResult:
    def __init__(self, count: int):
        self._count = count

    def scalar_one(self) -> int:
        return self._count


class _EditSession:
    """Session stand-in: answers slug counts, records flushes."""

    def __init__(self, slug_count: int = 0):
        self.slug_count = slug_count
        self.executed = 0
        self.flushed = 0

    async def execute(self, stmt):
        self.executed += 1
        return _CountResult(self.slug_count)

    async def flush(self) -> None:
        self.flushed += 1


def _stored(photo: str | None = "old.jpeg") -> Store:
    store = Store(
        id=5,
        name="Cafe Milano",
        slug="cafe-milano",
        description="Pasta at lunch",
        tags=["Licensed"],
        location_type="Point",
        lng=-0.13,
        lat=51.51,
        address="1 Old Compton St",
        photo=photo,
        author_id=1,
        created=datetime(2026, 1, 1, tzinfo=timezone.utc),
    )
    set_committed_value(store, "reviews", [])
    return store


def _form(name: str = "Cafe Milano", photo: str | None = None) -> StoreIn:
    return StoreIn(
        name=name,
        description="Fresh pasta every day",
        tags=["Licensed", "Family Friendly"],
        address="1 Old Compton St",
        lng=-0.13,
        lat=51.51,
        photo=photo,
    )


@pytest.fixture
def edit_session(monkeypatch: pytest.MonkeyPatch):
    """Patch editing to work on one in-memory store."""
    state = {"store": _stored(), "session": _EditSession()}

    @asynccontextmanager
    async def fake_get_session():
        yield state["session"]

    async def fake_load_store(session, store_id: int):
        store = state["store"]
        return store if store is not None and store.id == store_id else None

    monkeypatch.setattr(editing, "get_session", fake_get_session)
    monkeypatch.setattr(editing, "_load_store", fake_load_store)
    return state


@pytest.mark.asyncio
async def test_update_same_name_keeps_slug(edit_session):
    updated = await update_store(5, _form())
    assert updated.slug == "cafe-milano"
    assert updated.description == "Fresh pasta every day"
    assert updated.tags == ["Licensed", "Family Friendly"]
    # No slug count query for an unchanged name
    assert edit_session["session"].executed == 0


@pytest.mark.asyncio
async def test_update_rename_reslugs(edit_session):
    updated = await update_store(5, _form(name="Trattoria Milano"))
    assert updated.name == "Trattoria Milano"
    assert updated.slug == "trattoria-milano"
    assert edit_session["session"].executed == 1


@pytest.mark.asyncio
async def test_update_rename_onto_taken_name_gets_suffix(edit_session):
    edit_session["session"].slug_count = 2
    updated = await update_store(5, _form(name="The Coffee Shop"))
    assert updated.slug == "the-coffee-shop-3"


@pytest.mark.asyncio
async def test_update_without_upload_keeps_photo(edit_session):
    updated = await update_store(5, _form(photo=None))
    assert updated.photo == "old.jpeg"


@pytest.mark.asyncio
async def test_update_with_upload_replaces_photo(edit_session):
    updated = await update_store(5, _form(photo="new.png"))
    assert updated.photo == "new.png"


@pytest.mark.asyncio
async def test_update_missing_store(edit_session):
    edit_session["store"] = None
    assert await update_store(5, _form()) is None


def test_confirm_owner():
    store = _stored()
    confirm_owner(store, User(id=1, email="wes@example.com", name="Wes"))
    with pytest.raises(NotStoreOwnerError, match="You must own a store in order to edit it!"):
        confirm_owner(store, User(id=2, email="debbie@example.com", name="Debbie"))


def test_store_form_limits_follow_columns():
    columns = Store.__table__.c
    limits = {
        "name": columns.name.type.length,
        "address": columns.address.type.length,
    }
    for field, limit in limits.items():
        fields = {"name": "Cafe Milano", "address": "1 Old Compton St", "lng": 0, "lat": 0}
        assert StoreIn(**{**fields, field: "x" * limit}).model_dump()[field] == "x" * limit
        with pytest.raises(ValidationError):
            StoreIn(**{**fields, field: "x" * (limit + 1)})

    tag_limit = columns.tags.type.item_type.length
    with pytest.raises(ValidationError):
        StoreIn(name="Cafe Milano", address="1 Old Compton St", lng=0, lat=0, tags=["t" * (tag_limit + 1)])
