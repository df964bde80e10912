"""Tour-related Pydantic schemas."""

import re
from datetime import datetime
from enum import Enum
from typing import Any, Iterable
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator, model_validator
from pydantic.alias_generators import to_camel

_LETTERS = re.compile(r"^[A-Za-z]+$")


class Difficulty(str, Enum):
    """Tour difficulty enumeration."""
    EASY = "easy"
    MEDIUM = "medium"
    DIFFICULT = "difficult"


class CreateTourRequest(BaseModel):
    """
    Request schema for creating a tour.

    Also used to re-validate the merged document on partial updates, so every
    field rule holds on every write.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    name: str = Field(..., min_length=10, max_length=40, description="Unique tour name")
    ratings_average: float = Field(4.5, ge=1, le=5, description="Average rating")
    ratings_quantity: int = Field(0, description="Number of ratings")
    price: float = Field(..., description="Regular price")
    price_discount: float | None = Field(None, description="Discounted price, below the regular price")
    duration: int = Field(..., description="Duration in days")
    max_group_size: int = Field(..., description="Maximum group size")
    difficulty: Difficulty = Field(..., description="Tour difficulty")
    summary: str = Field(..., min_length=1, description="Short summary")
    description: str | None = Field(None, description="Long description")
    image_cover: str = Field(..., min_length=1, description="Cover image file name")
    images: list[str] = Field(default_factory=list, description="Image file names")
    start_dates: list[datetime] = Field(default_factory=list, description="Scheduled start dates")
    secret_tour: bool = Field(False, description="Hidden from every read when true")

    @field_validator("name")
    @classmethod
    def validate_name_letters(cls, v: str) -> str:
        """Names may only contain letters once whitespace is removed."""
        if not _LETTERS.match(re.sub(r"\s", "", v)):
            raise ValueError("Tour name must only contain letters (a-z).")
        return v

    @model_validator(mode="after")
    def validate_price_discount(self) -> "CreateTourRequest":
        if self.price_discount is not None and self.price_discount >= self.price:
            raise ValueError(
                f"Discount price ({self.price_discount}) should be below regular price ({self.price})"
            )
        return self


class Tour(BaseModel):
    """Tour response schema."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

    id: UUID = Field(..., description="Unique tour ID")
    name: str
    slug: str
    duration: int
    duration_weeks: int | None = Field(None, description="Duration rounded up to whole weeks")
    max_group_size: int
    difficulty: Difficulty
    ratings_average: float
    ratings_quantity: int
    price: float
    price_discount: float | None = None
    summary: str
    description: str | None = None
    image_cover: str
    images: list[str]
    start_dates: list[datetime]
    secret_tour: bool


class TourStats(BaseModel):
    """Aggregate figures for one difficulty level."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    difficulty: str
    num_tours: int
    num_ratings: int
    avg_rating: float
    avg_price: float
    min_price: float
    max_price: float


class MonthlyPlanEntry(BaseModel):
    """Tours starting in one month of a year."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    month: int = Field(..., ge=1, le=12)
    num_tour_starts: int
    tours: list[str]


# Per-attribute adapters so projected values render exactly like the full document
_FIELD_ADAPTERS = {
    name: TypeAdapter(field.annotation) for name, field in Tour.model_fields.items()
}
_FIELD_ADAPTERS["created_at"] = TypeAdapter(datetime | None)


def _dump_field(attr: str, value: Any) -> Any:
    adapter = _FIELD_ADAPTERS[attr]
    return adapter.dump_python(adapter.validate_python(value), mode="json")


def serialize_tour(tour: Any, fields: Iterable[str] | None = None) -> dict[str, Any]:
    """
    Turn a stored tour into its JSON document.

    With ``fields`` (API attribute names) only those attributes are read, so
    columns deferred by a projection are never touched. ``id`` is always
    present and ``durationWeeks`` follows ``duration``.
    """
    if fields is None:
        return Tour.model_validate(tour).model_dump(mode="json", by_alias=True)

    document: dict[str, Any] = {"id": str(tour.id)}
    for name in fields:
        attr = FIELD_ATTRIBUTES[name]
        if attr == "id":
            continue
        document[name] = _dump_field(attr, getattr(tour, attr))
        if attr == "duration":
            document["durationWeeks"] = tour.duration_weeks
    return document


# API attribute name -> model attribute name
FIELD_ATTRIBUTES = {
    to_camel(name): name
    for name in (
        "id", "name", "slug", "duration", "max_group_size", "difficulty", "summary",
        "description", "ratings_average", "ratings_quantity", "price", "price_discount",
        "image_cover", "images", "start_dates", "secret_tour", "created_at",
    )
}

# Attributes returned when the request does not project fields
DEFAULT_FIELDS = [name for name in FIELD_ATTRIBUTES if name != "createdAt"]
