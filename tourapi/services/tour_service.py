"""Tour service for business logic operations."""

import time
from collections import defaultdict
from datetime import datetime
from typing import Any, Mapping, NamedTuple, Optional, Sequence
from uuid import UUID

from pydantic import ValidationError
from sqlalchemy import func, select

from ..core.exceptions import InvalidIdentifierError, TourValidationError
from ..core.observability import get_logger, metrics_collector
from ..models.tour import Tour
from ..repositories.tour_repository import TourRepository
from ..schemas.tour import CreateTourRequest, MonthlyPlanEntry, TourStats
from .api_features import APIFeatures
from .tour_pipeline import apply_tour_data, build_tour, exclude_secret_tours, merge_changes, normalize_payload

logger = get_logger(__name__)

# Tours rated at least this high feed the difficulty statistics
STATS_MIN_RATING = 4.5
MONTHLY_PLAN_LIMIT = 12


class TourListing(NamedTuple):
    """Tours matched by a list query and the projection they were loaded with."""
    tours: Sequence[Tour]
    projection: Optional[list[str]]


def parse_tour_id(tour_id: str) -> UUID:
    try:
        return UUID(tour_id)
    except ValueError:
        raise InvalidIdentifierError(tour_id) from None


class TourService:
    """Service for tour-related operations."""

    def __init__(self, repository: TourRepository):
        self.repository = repository

    async def list_tours(self, query_params: Mapping[str, str]) -> TourListing:
        """
        Run a list query described by URL query parameters.

        Args:
            query_params: Raw query string parameters

        Returns:
            Matching tours and the requested projection

        Raises:
            InvalidQueryError: If a parameter cannot be translated
        """
        features = (
            APIFeatures(exclude_secret_tours(select(Tour)), query_params)
            .filter()
            .sort()
            .limit_fields()
            .paginate()
        )

        started = time.perf_counter()
        tours = await self.repository.fetch_all(features.query)
        elapsed = time.perf_counter() - started

        metrics_collector.observe_query_duration(elapsed)
        logger.debug(
            "Tour query executed",
            results=len(tours),
            page=features.page,
            limit=features.limit,
            duration_ms=round(elapsed * 1000, 2),
        )
        return TourListing(tours, features.projection)

    async def get_tour(self, tour_id: str) -> Optional[Tour]:
        """
        Get a visible tour by ID.

        Returns:
            Tour if found and not secret, None otherwise

        Raises:
            InvalidIdentifierError: If the id is not a UUID
        """
        statement = exclude_secret_tours(select(Tour).where(Tour.id == parse_tour_id(tour_id)))
        return await self.repository.fetch_one(statement)

    async def create_tour(self, payload: Mapping[str, Any]) -> Tour:
        """
        Validate a payload, derive its slug and store it as a new tour.

        Raises:
            TourValidationError: If the payload breaks a field rule
            DuplicateTourError: If the name is already taken
        """
        try:
            data = CreateTourRequest.model_validate(normalize_payload(payload))
        except ValidationError as e:
            raise TourValidationError.from_pydantic(e) from e

        tour = await self.repository.add(build_tour(data))
        metrics_collector.record_tour_created()
        logger.info("Tour created", tour_id=str(tour.id), slug=tour.slug)
        return tour

    async def update_tour(self, tour_id: str, payload: Mapping[str, Any]) -> Optional[Tour]:
        """
        Apply a partial update and re-validate the resulting document.

        Returns:
            The updated tour, or None when no visible tour has this id
        """
        log = logger.with_context(tour_id=tour_id)
        tour = await self.get_tour(tour_id)
        if tour is None:
            log.info("Tour update skipped, tour not found")
            return None

        try:
            data = CreateTourRequest.model_validate(merge_changes(tour, payload))
        except ValidationError as e:
            raise TourValidationError.from_pydantic(e) from e

        tour = await self.repository.save(apply_tour_data(tour, data))
        metrics_collector.record_tour_updated()
        log.info("Tour updated", fields=sorted(payload))
        return tour

    async def delete_tour(self, tour_id: str) -> bool:
        """
        Physically delete a visible tour.

        Returns:
            True if a tour was deleted, False if none matched
        """
        tour = await self.get_tour(tour_id)
        if tour is None:
            return False

        await self.repository.delete(tour)
        metrics_collector.record_tour_deleted()
        logger.info("Tour deleted", tour_id=tour_id)
        return True

    async def tour_stats(self) -> list[TourStats]:
        """Aggregate well-rated tours per difficulty, cheapest average first."""
        difficulty = func.upper(Tour.difficulty)
        avg_price = func.avg(Tour.price).label("avg_price")
        statement = exclude_secret_tours(
            select(
                difficulty.label("difficulty"),
                func.count(Tour.id).label("num_tours"),
                func.sum(Tour.ratings_quantity).label("num_ratings"),
                func.avg(Tour.ratings_average).label("avg_rating"),
                avg_price,
                func.min(Tour.price).label("min_price"),
                func.max(Tour.price).label("max_price"),
            )
            .where(Tour.ratings_average >= STATS_MIN_RATING)
            .group_by(difficulty)
            .order_by(avg_price)
        )

        rows = await self.repository.fetch_rows(statement)
        return [TourStats.model_validate(dict(row._mapping)) for row in rows]

    async def monthly_plan(self, year: int) -> list[MonthlyPlanEntry]:
        """Count tour starts per month of ``year``, busiest month first."""
        statement = exclude_secret_tours(select(Tour.name, Tour.start_dates))
        rows = await self.repository.fetch_rows(statement)

        tours_by_month: dict[int, list[str]] = defaultdict(list)
        for name, start_dates in rows:
            for raw in start_dates or []:
                start = datetime.fromisoformat(raw)
                if start.year == year:
                    tours_by_month[start.month].append(name)

        plan = [
            MonthlyPlanEntry(month=month, num_tour_starts=len(names), tours=names)
            for month, names in tours_by_month.items()
        ]
        plan.sort(key=lambda entry: (-entry.num_tour_starts, entry.month))
        return plan[:MONTHLY_PLAN_LIMIT]
