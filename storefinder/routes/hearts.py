"""Hearts (favourite stores) endpoints.

POST /v1/stores/{id}/heart  - Toggle a heart, returns the user's hearts
GET  /v1/hearts             - The user's hearted stores
"""

from fastapi import APIRouter, Depends

from storefinder.models import User
from storefinder.routes.deps import require_user, store_not_found
from storefinder.schemas import HeartsResponse, StoreOut
from storefinder.services.hearts import toggle_heart
from storefinder.services.listing import get_hearted_stores

router = APIRouter()


@router.post("/stores/{store_id}/heart", response_model=HeartsResponse)
async def heart_store(store_id: int, user: User = Depends(require_user)) -> HeartsResponse:
    """Heart the store, or un-heart it if already hearted."""
    hearts = await toggle_heart(user_id=user.id, store_id=store_id)
    if hearts is None:
        raise store_not_found(store_id=store_id)
    return HeartsResponse(hearts=hearts)


@router.get("/hearts", response_model=list[StoreOut])
async def get_hearts(user: User = Depends(require_user)) -> list[StoreOut]:
    """Stores the requesting user has hearted."""
    return await get_hearted_stores(user.id)
