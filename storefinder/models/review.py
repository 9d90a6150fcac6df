"""Review model.

A rating (1-5) plus text left by a user on a store. Reviews feed the
top-rated aggregation and are shown on the store page.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from storefinder.stores.postgres import Base


class Review(Base):
    """Store review."""

    __tablename__ = "reviews"

    id: Mapped[int] = mapped_column(primary_key=True)

    store_id: Mapped[int] = mapped_column(ForeignKey("stores.id"), index=True)
    author_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True)

    text: Mapped[str] = mapped_column(Text)
    rating: Mapped[int] = mapped_column()

    created: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )

    __table_args__ = (
        CheckConstraint("rating BETWEEN 1 AND 5", name="ck_reviews_rating_range"),
    )

    def __repr__(self) -> str:
        return f"<Review store={self.store_id} rating={self.rating}>"
