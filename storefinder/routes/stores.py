"""Store endpoints.

GET  /v1/stores                 - First page of stores
GET  /v1/stores/page/{page}     - Page N (redirects to the last page when past the end)
POST /v1/stores                 - Create a store (multipart form, optional photo)
GET  /v1/stores/near            - Stores within 10 km of a point
GET  /v1/stores/{id}/edit       - Edit-form data (owner only)
POST /v1/stores/{id}            - Update a store (owner only)
GET  /v1/store/{slug}           - Store page (author + reviews)
GET  /v1/search                 - Full-text search
GET  /v1/top                    - Top-rated stores

Routers are thin: call services for business logic.
"""

from fastapi import APIRouter, Depends, File, Path, Query, Request, UploadFile, status
from fastapi.responses import RedirectResponse

from storefinder.models import User
from storefinder.schemas import (
    NearbyStore,
    SearchResult,
    StoreDetail,
    StoreIn,
    StoreOut,
    StorePage,
    TopStore,
)
from storefinder.routes.deps import require_user, store_form, store_not_found
from storefinder.services.editing import confirm_owner, create_store, get_store, update_store
from storefinder.services.listing import get_store_by_slug, list_stores, page_offset
from storefinder.services.photos import save_photo
from storefinder.services.ratings import get_top_stores
from storefinder.services.search import find_stores_near, search_stores
from storefinder.settings import get_settings

router = APIRouter()

NOTICE_HEADER = "X-Notice"

# Keeps the OFFSET well inside bigint range
MAX_PAGE = 1_000_000


@router.get("/stores", response_model=StorePage)
async def get_stores() -> StorePage:
    """Get the first page of stores, newest first."""
    return await list_stores(page=1)


@router.get("/stores/page/{page}", response_model=StorePage)
async def get_stores_page(
    request: Request,
    page: int = Path(ge=1, le=MAX_PAGE, description="1-based page number"),
):
    """Get a page of stores.

    Asking for a page past the end redirects to the last page with a notice
    instead of returning an empty page.
    """
    result = await list_stores(page=page)
    skip = page_offset(page, get_settings().page_size)
    if not result.stores and skip:
        last_page = max(result.pages, 1)
        return RedirectResponse(
            url=request.app.url_path_for("get_stores_page", page=str(last_page)),
            status_code=status.HTTP_302_FOUND,
            headers={
                NOTICE_HEADER: (
                    f"Hey! You asked for page {page}. But that doesn't exist. "
                    f"So I put you on page {last_page}"
                )
            },
        )
    return result


@router.post("/stores", response_model=StoreOut, status_code=status.HTTP_201_CREATED)
async def add_store(
    data: StoreIn = Depends(store_form),
    photo: UploadFile | None = File(None),
    user: User = Depends(require_user),
) -> StoreOut:
    """Create a store authored by the requesting user."""
    data.photo = await save_photo(photo)
    return await create_store(data, author=user)


@router.get("/stores/near", response_model=list[NearbyStore])
async def get_stores_near(
    lng: float = Query(ge=-180, le=180, description="Longitude"),
    lat: float = Query(ge=-90, le=90, description="Latitude"),
) -> list[NearbyStore]:
    """Stores within 10 km, nearest first (at most 10)."""
    return await find_stores_near(lng=lng, lat=lat)


@router.get("/stores/{store_id}/edit", response_model=StoreOut)
async def edit_store(store_id: int, user: User = Depends(require_user)) -> StoreOut:
    """Get a store for its edit form. Only the author may edit."""
    store = await get_store(store_id)
    if store is None:
        raise store_not_found(store_id=store_id)
    confirm_owner(store, user)
    return StoreOut.model_validate(store)


@router.post("/stores/{store_id}", response_model=StoreOut)
async def edit_store_submit(
    store_id: int,
    data: StoreIn = Depends(store_form),
    photo: UploadFile | None = File(None),
    user: User = Depends(require_user),
) -> StoreOut:
    """Update a store. Only the author may edit."""
    store = await get_store(store_id)
    if store is None:
        raise store_not_found(store_id=store_id)
    confirm_owner(store, user)

    data.photo = await save_photo(photo)
    updated = await update_store(store_id, data)
    if updated is None:
        raise store_not_found(store_id=store_id)
    return updated


@router.get("/store/{slug}", response_model=StoreDetail)
async def get_store_page(slug: str) -> StoreDetail:
    """Get a store by slug with its author and reviews."""
    store = await get_store_by_slug(slug)
    if store is None:
        raise store_not_found(slug=slug)
    return store


@router.get("/search", response_model=list[SearchResult])
async def search(
    q: str = Query(min_length=1, max_length=200, description="Free-text query"),
) -> list[SearchResult]:
    """Full-text search, best matches first (at most 5)."""
    return await search_stores(q)


@router.get("/top", response_model=list[TopStore])
async def top_stores() -> list[TopStore]:
    """Top-rated stores (at least 2 reviews), best average first."""
    return await get_top_stores()
