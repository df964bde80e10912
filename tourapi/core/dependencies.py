"""FastAPI dependencies wiring sessions, repositories and services."""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..repositories.tour_repository import SQLAlchemyTourRepository, TourRepository
from ..services.tour_service import TourService
from .database import get_db


def get_tour_repository(db: AsyncSession = Depends(get_db)) -> TourRepository:
    """
    Provide the storage collaborator for one request.

    Args:
        db: The request's database session

    Returns:
        TourRepository: Repository bound to the session
    """
    return SQLAlchemyTourRepository(db)


def get_tour_service(
    repository: TourRepository = Depends(get_tour_repository),
) -> TourService:
    """Build the tour service around the injected repository."""
    return TourService(repository)

