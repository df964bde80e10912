"""Unit tests for tour validation and pipeline steps."""

from uuid import uuid4

import pytest
from pydantic import ValidationError
from sqlalchemy import select

from tourapi.models import Tour
from tourapi.schemas.tour import CreateTourRequest, serialize_tour
from tourapi.services.tour_pipeline import build_tour, derive_slug, exclude_secret_tours, normalize_payload


def test_valid_payload_gets_defaults(sample_tour_data):
    data = dict(sample_tour_data)
    del data["ratingsAverage"], data["ratingsQuantity"]

    request = CreateTourRequest.model_validate(data)

    assert request.ratings_average == 4.5
    assert request.ratings_quantity == 0
    assert request.secret_tour is False


@pytest.mark.parametrize("name", ["Too Short", "A" * 41, "The Forest Hiker 2", "The Forest-Hiker"])
def test_invalid_names(make_tour_data, name):
    with pytest.raises(ValidationError):
        CreateTourRequest.model_validate(make_tour_data(name=name))


def test_name_is_trimmed_before_length_check(make_tour_data):
    request = CreateTourRequest.model_validate(make_tour_data(name="   The Sea Explorer   "))
    assert request.name == "The Sea Explorer"


@pytest.mark.parametrize("discount", [397, 500])
def test_discount_must_be_below_price(make_tour_data, discount):
    with pytest.raises(ValidationError, match="Discount price"):
        CreateTourRequest.model_validate(make_tour_data(price=397, priceDiscount=discount))


def test_discount_below_price_is_accepted(make_tour_data):
    request = CreateTourRequest.model_validate(make_tour_data(price=397, priceDiscount=300))
    assert request.price_discount == 300


@pytest.mark.parametrize("rating", [0.5, 5.1])
def test_rating_bounds(make_tour_data, rating):
    with pytest.raises(ValidationError):
        CreateTourRequest.model_validate(make_tour_data(ratingsAverage=rating))


def test_difficulty_enum(make_tour_data):
    with pytest.raises(ValidationError):
        CreateTourRequest.model_validate(make_tour_data(difficulty="extreme"))


@pytest.mark.parametrize("field", ["name", "price", "duration", "maxGroupSize", "summary", "imageCover", "difficulty"])
def test_required_fields(sample_tour_data, field):
    data = dict(sample_tour_data)
    del data[field]
    with pytest.raises(ValidationError):
        CreateTourRequest.model_validate(data)


def test_derive_slug():
    assert derive_slug("The Forest Hiker") == "the-forest-hiker"
    assert derive_slug("  The   Sea Explorer ") == "the-sea-explorer"


def test_normalize_payload_accepts_snake_case():
    assert normalize_payload({"max_group_size": 10, "priceDiscount": 5, "extra": 1}) == {
        "maxGroupSize": 10,
        "priceDiscount": 5,
        "extra": 1,
    }


def test_build_tour_derives_slug_and_ignores_client_slug(make_tour_data):
    request = CreateTourRequest.model_validate(make_tour_data(slug="client-chosen"))
    tour = build_tour(request)
    assert tour.slug == "the-forest-hiker"
    assert tour.start_dates[0].startswith("2021-04-25T09:00:00")


def test_duration_weeks_rounds_up():
    assert Tour(duration=7).duration_weeks == 1
    assert Tour(duration=8).duration_weeks == 2
    assert Tour(duration=1).duration_weeks == 1


def test_projected_serialization(make_tour_data):
    tour = build_tour(CreateTourRequest.model_validate(make_tour_data(duration=10)))
    tour.id = uuid4()

    document = serialize_tour(tour, ["name", "duration"])

    assert set(document) == {"id", "name", "duration", "durationWeeks"}
    assert document["durationWeeks"] == 2


def test_projected_values_match_full_document(make_tour_data):
    """Start dates and enums render the same with and without a projection."""
    tour = build_tour(CreateTourRequest.model_validate(make_tour_data()))
    tour.id = uuid4()

    full = serialize_tour(tour)
    projected = serialize_tour(tour, ["startDates", "difficulty"])

    assert projected["startDates"] == full["startDates"]
    assert projected["startDates"][0] == "2021-04-25T09:00:00Z"
    assert projected["difficulty"] == full["difficulty"] == "easy"


def test_secret_exclusion_is_added_to_statements():
    sql = str(exclude_secret_tours(select(Tour)).compile())
    assert "tours.secret_tour IS NOT" in sql
