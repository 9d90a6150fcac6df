"""Store model.

A store listing: name, slug, description, tags, a GeoJSON-style point
location, an optional photo filename and its author.

Reviews are a read-time back-reference (every review whose store_id points
here); the store row never owns them.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import Computed, DateTime, ForeignKey, Index, String, Text, func
from sqlalchemy.dialects.postgresql import ARRAY, TSVECTOR
from sqlalchemy.orm import Mapped, mapped_column, relationship

from storefinder.stores.postgres import Base

if TYPE_CHECKING:
    from storefinder.models.review import Review
    from storefinder.models.user import User


# English stemming, name and description weighted equally
SEARCH_VECTOR_SQL = "to_tsvector('english', coalesce(name, '') || ' ' || coalesce(description, ''))"


class Store(Base):
    """Store listing."""

    __tablename__ = "stores"

    id: Mapped[int] = mapped_column(primary_key=True)

    name: Mapped[str] = mapped_column(String(200))
    # Derived from name, see services.slugs
    slug: Mapped[str] = mapped_column(String(220), index=True)
    description: Mapped[str | None] = mapped_column(Text)
    tags: Mapped[list[str]] = mapped_column(
        ARRAY(String(100)),
        default=list,
        server_default="{}",
    )

    # Location (GeoJSON Point, coordinates stored as [lng, lat])
    location_type: Mapped[str] = mapped_column(String(20), default="Point")
    lng: Mapped[float] = mapped_column()
    lat: Mapped[float] = mapped_column()
    address: Mapped[str] = mapped_column(String(500))

    photo: Mapped[str | None] = mapped_column(String(200))

    author_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True)

    # Full-text search document, maintained by Postgres
    search_vector: Mapped[str | None] = mapped_column(
        TSVECTOR,
        Computed(SEARCH_VECTOR_SQL, persisted=True),
        deferred=True,
    )

    created: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        index=True,
    )

    author: Mapped[User] = relationship(lazy="raise")
    reviews: Mapped[list[Review]] = relationship(
        viewonly=True,
        lazy="raise",
        order_by="Review.created.desc()",
    )

    __table_args__ = (
        Index("ix_stores_tags", "tags", postgresql_using="gin"),
        Index("ix_stores_search_vector", "search_vector", postgresql_using="gin"),
        Index("ix_stores_lat_lng", "lat", "lng"),
    )

    @property
    def location(self) -> dict[str, Any]:
        return {
            "type": self.location_type,
            "coordinates": [self.lng, self.lat],
            "address": self.address,
        }

    def __repr__(self) -> str:
        return f"<Store {self.slug}>"
