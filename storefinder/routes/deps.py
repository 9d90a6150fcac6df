"""Shared route dependencies: current user, store form parsing, error helpers."""

from fastapi import Depends, Form, HTTPException, status
from fastapi.exceptions import RequestValidationError
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import ValidationError

from storefinder.models import User
from storefinder.schemas import ErrorResponse, StoreIn
from storefinder.services.auth import get_user_by_id, user_id_from_token

security = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> User | None:
    """Get the current authenticated user (optional)."""
    if credentials is None:
        return None

    user_id = user_id_from_token(credentials.credentials)
    if user_id is None:
        return None
    return await get_user_by_id(user_id)


async def require_user(user: User | None = Depends(get_current_user)) -> User:
    """Require authentication - raises 401 if not authenticated."""
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=ErrorResponse.of("NOT_AUTHENTICATED", "You must be logged in to do that!"),
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


def store_not_found(**detail: object) -> HTTPException:
    """404 for a store lookup miss."""
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=ErrorResponse.of("STORE_NOT_FOUND", "Store not found", detail),
    )


async def store_form(
    name: str | None = Form(None),
    description: str | None = Form(None),
    tags: list[str] = Form([]),
    address: str | None = Form(None),
    lng: float | None = Form(None),
    lat: float | None = Form(None),
) -> StoreIn:
    """Parse the store add/edit form into StoreIn.

    Store validation errors are re-raised as request validation errors so
    they surface as 422 like any other bad input.
    """
    try:
        return StoreIn(
            name=name,
            description=description,
            tags=tags,
            address=address,
            lng=lng,
            lat=lat,
        )
    except ValidationError as e:
        raise RequestValidationError(e.errors(include_url=False))
