"""Explicit steps run around storage calls for tours.

Slug derivation happens before a tour is written and secret-tour exclusion
is applied to every statement that reads, updates or deletes tours.
"""

import re
from typing import Any, Mapping

from sqlalchemy import Select

from ..models.tour import Tour
from ..schemas.tour import FIELD_ATTRIBUTES, CreateTourRequest

_WHITESPACE = re.compile(r"\s+")

# model attribute name -> API attribute name
_API_NAMES = {attr: name for name, attr in FIELD_ATTRIBUTES.items()}

# Attributes a client may write; the rest are server-assigned
WRITABLE_ATTRIBUTES = tuple(CreateTourRequest.model_fields)


def derive_slug(name: str) -> str:
    """Lower-case the name and hyphenate whitespace: 'The Sea Explorer' -> 'the-sea-explorer'."""
    return _WHITESPACE.sub("-", name.strip()).lower()


def exclude_secret_tours(statement: Select) -> Select:
    """Restrict a statement to tours that are not flagged secret."""
    return statement.where(Tour.secret_tour.is_not(True))


def apply_tour_data(tour: Tour, data: CreateTourRequest) -> Tour:
    """Copy validated data onto a tour and refresh its derived slug."""
    tour.name = data.name
    tour.slug = derive_slug(data.name)
    tour.ratings_average = data.ratings_average
    tour.ratings_quantity = data.ratings_quantity
    tour.price = data.price
    tour.price_discount = data.price_discount
    tour.duration = data.duration
    tour.max_group_size = data.max_group_size
    tour.difficulty = data.difficulty.value
    tour.summary = data.summary
    tour.description = data.description
    tour.image_cover = data.image_cover
    tour.images = list(data.images)
    tour.start_dates = [start.isoformat() for start in data.start_dates]
    tour.secret_tour = data.secret_tour
    return tour


def build_tour(data: CreateTourRequest) -> Tour:
    """Create a new, unsaved tour from validated data."""
    return apply_tour_data(Tour(), data)


def normalize_payload(payload: Mapping[str, Any]) -> dict[str, Any]:
    """Key a client payload by API names, accepting snake_case spellings too."""
    return {_API_NAMES.get(key, key): value for key, value in payload.items()}


def merge_changes(tour: Tour, payload: Mapping[str, Any]) -> dict[str, Any]:
    """
    Overlay a partial update on the tour's current writable values.

    The result is keyed by API names and is re-validated as a whole, so rules
    spanning several fields (discount below price) see the final document.
    """
    current = {_API_NAMES[attr]: getattr(tour, attr) for attr in WRITABLE_ATTRIBUTES}
    current.update(normalize_payload(payload))
    return current
