"""Bearer token handling.

Tokens are issued by the identity provider as HS256 JWTs whose `sub` claim
is the user id. We only verify them and load the user; minting is kept for
the seed script and tests.
"""

from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from storefinder.models import User
from storefinder.settings import get_settings
from storefinder.stores.postgres import get_session


def create_access_token(user_id: int, expires_delta: timedelta | None = None) -> str:
    """Create a JWT access token for a user."""
    settings = get_settings()
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.access_token_expire_minutes)
    payload = {
        "sub": str(user_id),
        "exp": datetime.now(timezone.utc) + expires_delta,
    }
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> dict | None:
    """Decode and validate a JWT token (signature and expiry)."""
    settings = get_settings()
    try:
        return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None


def user_id_from_token(token: str) -> int | None:
    """User id carried by a valid token, or None."""
    payload = decode_token(token)
    if payload is None:
        return None

    # sub is stored as a string in the JWT
    try:
        return int(payload.get("sub"))
    except (ValueError, TypeError):
        return None


async def get_user_by_id(user_id: int) -> User | None:
    """Get a user by ID."""
    async with get_session() as session:
        return await session.get(User, user_id)
