"""Review endpoints.

POST /v1/reviews/{store_id} - Leave a review on a store
"""

from fastapi import APIRouter, Depends, status

from storefinder.models import User
from storefinder.routes.deps import require_user, store_not_found
from storefinder.schemas import ReviewIn, ReviewOut
from storefinder.services.ratings import add_review

router = APIRouter()


@router.post("/{store_id}", response_model=ReviewOut, status_code=status.HTTP_201_CREATED)
async def review_store(
    store_id: int,
    review: ReviewIn,
    user: User = Depends(require_user),
) -> ReviewOut:
    """Add a review (text + 1-5 rating) to a store."""
    created = await add_review(store_id=store_id, author=user, data=review)
    if created is None:
        raise store_not_found(store_id=store_id)
    return created
