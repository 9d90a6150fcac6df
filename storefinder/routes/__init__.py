"""API routes."""

from fastapi import APIRouter

from storefinder.routes import hearts, reviews, stores, tags

api_router = APIRouter()

# Store listing, lookup, search, create/edit
api_router.include_router(stores.router, prefix="/v1", tags=["stores"])

# Tag browsing
api_router.include_router(tags.router, prefix="/v1/tags", tags=["tags"])

# Favourites
api_router.include_router(hearts.router, prefix="/v1", tags=["hearts"])

# Reviews
api_router.include_router(reviews.router, prefix="/v1/reviews", tags=["reviews"])
