"""SQLAlchemy ORM models.

Models represent database tables:
- users: Identities issued by the auth provider
- user_hearts: Each user's favourite stores
- stores: Store listings
- reviews: Ratings left on stores
"""

from storefinder.models.user import User, user_hearts
from storefinder.models.store import Store
from storefinder.models.review import Review

__all__ = ["User", "Store", "Review", "user_hearts"]
