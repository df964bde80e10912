"""Storage collaborators the service layer is built on."""

from .tour_repository import SQLAlchemyTourRepository, TourRepository

__all__ = [
    "SQLAlchemyTourRepository",
    "TourRepository",
]
