"""Tag browsing endpoints.

GET /v1/tags        - Every tagged store + tag histogram
GET /v1/tags/{tag}  - Stores carrying {tag} + tag histogram
"""

from fastapi import APIRouter

from storefinder.schemas import TagsResponse
from storefinder.services.listing import list_stores_by_tag

router = APIRouter()


@router.get("", response_model=TagsResponse)
async def get_tagged_stores() -> TagsResponse:
    """Stores with at least one tag."""
    return await list_stores_by_tag(tag=None)


@router.get("/{tag}", response_model=TagsResponse)
async def get_stores_by_tag(tag: str) -> TagsResponse:
    """Stores carrying exactly this tag."""
    return await list_stores_by_tag(tag=tag)
