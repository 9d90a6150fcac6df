"""Pydantic schemas for API request/response validation."""

from storefinder.schemas.common import ErrorDetail, ErrorResponse
from storefinder.schemas.review import ReviewIn, ReviewOut
from storefinder.schemas.store import (
    AuthorOut,
    HeartsResponse,
    Location,
    NearbyStore,
    SearchResult,
    StoreDetail,
    StoreIn,
    StoreOut,
    StorePage,
    TagCount,
    TagsResponse,
    TopStore,
)

__all__ = [
    "ErrorDetail",
    "ErrorResponse",
    "ReviewIn",
    "ReviewOut",
    "AuthorOut",
    "HeartsResponse",
    "Location",
    "NearbyStore",
    "SearchResult",
    "StoreDetail",
    "StoreIn",
    "StoreOut",
    "StorePage",
    "TagCount",
    "TagsResponse",
    "TopStore",
]
