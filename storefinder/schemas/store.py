"""Schemas for store listing, lookup and search endpoints."""

from datetime import datetime
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, field_validator
from pydantic_core import PydanticCustomError

from storefinder.schemas.review import ReviewOut


class Location(BaseModel):
    """GeoJSON point with a postal address."""

    type: str = "Point"
    coordinates: list[float] = Field(min_length=2, max_length=2)  # [lng, lat]
    address: str


class AuthorOut(BaseModel):
    """Public view of a store's author."""

    id: int
    name: str

    model_config = {"from_attributes": True}


class StoreIn(BaseModel):
    """Submitted store fields (create and update).

    Fields are optional at the type level so that a missing value produces the
    store-specific message instead of a generic "field required".
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    # Lengths follow the stores table columns
    name: str | None = Field(default=None, max_length=200, validate_default=True)
    description: str | None = None
    tags: list[Annotated[str, StringConstraints(max_length=100)]] = Field(default_factory=list)
    address: str | None = Field(default=None, max_length=500, validate_default=True)
    lng: float | None = Field(default=None, ge=-180, le=180, validate_default=True)
    lat: float | None = Field(default=None, ge=-90, le=90, validate_default=True)
    photo: str | None = None

    @field_validator("name")
    @classmethod
    def _require_name(cls, v: str | None) -> str:
        if not v:
            raise PydanticCustomError("store_name", "Please enter a store name!")
        return v

    @field_validator("address")
    @classmethod
    def _require_address(cls, v: str | None) -> str:
        if not v:
            raise PydanticCustomError("store_address", "You must supply an address!")
        return v

    @field_validator("lng", "lat")
    @classmethod
    def _require_coordinates(cls, v: float | None) -> float:
        if v is None:
            raise PydanticCustomError("store_coordinates", "You must supply coordinates!")
        return v

    @field_validator("description")
    @classmethod
    def _empty_description_is_none(cls, v: str | None) -> str | None:
        return v or None

    @field_validator("tags")
    @classmethod
    def _dedupe_tags(cls, v: list[str]) -> list[str]:
        # Set-like: drop blanks and repeats, keep first-seen order
        return list(dict.fromkeys(t for t in v if t))


class StoreOut(BaseModel):
    """A store with its reviews."""

    id: int
    name: str
    slug: str
    description: str | None = None
    tags: list[str] = Field(default_factory=list)
    created: datetime
    location: Location
    photo: str | None = None
    author_id: int = Field(alias="authorId")
    reviews: list[ReviewOut] = Field(default_factory=list)

    model_config = {"populate_by_name": True, "from_attributes": True}


class StoreDetail(StoreOut):
    """Store page payload: store, author and reviews."""

    author: AuthorOut


class StorePage(BaseModel):
    """One page of the store listing."""

    stores: list[StoreOut]
    page: int = Field(ge=1)
    pages: int = Field(ge=0)
    count: int = Field(ge=0)


class TagCount(BaseModel):
    """Number of stores carrying a tag."""

    tag: str
    count: int = Field(ge=1)


class TagsResponse(BaseModel):
    """Stores filtered by tag, plus the global tag histogram."""

    tag: str | None = None
    tags: list[TagCount]
    stores: list[StoreOut]


class SearchResult(StoreOut):
    """Full-text search hit with its relevance score."""

    score: float


class NearbyStore(BaseModel):
    """Projection returned by the geo search."""

    id: int
    slug: str
    name: str
    description: str | None = None
    location: Location
    photo: str | None = None

    model_config = {"from_attributes": True}


class TopStore(BaseModel):
    """Entry of the top-rated listing."""

    id: int
    name: str
    slug: str
    photo: str | None = None
    reviews: list[ReviewOut] = Field(default_factory=list)
    average_rating: float = Field(alias="averageRating")

    model_config = {"populate_by_name": True, "from_attributes": True}


class HeartsResponse(BaseModel):
    """The requesting user's hearted store ids."""

    hearts: list[int]
