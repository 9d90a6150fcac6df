"""Review schemas."""

from datetime import datetime

from pydantic import BaseModel, Field


class ReviewIn(BaseModel):
    """Submitted review."""

    text: str = Field(min_length=1, max_length=5000)
    rating: int = Field(ge=1, le=5)


class ReviewOut(BaseModel):
    """A review as shown on the store page."""

    id: int
    store_id: int = Field(alias="storeId")
    author_id: int = Field(alias="authorId")
    text: str
    rating: int
    created: datetime

    model_config = {"populate_by_name": True, "from_attributes": True}
