"""Service layer package."""

from .api_features import APIFeatures
from .tour_service import TourListing, TourService

__all__ = [
    "APIFeatures",
    "TourListing",
    "TourService",
]
