"""Tour router exposing CRUD, alias and aggregate endpoints."""

import logging
from typing import Any, Dict, Mapping

from fastapi import APIRouter, Body, Depends, Request, Response, status
from fastapi.responses import JSONResponse

from ..core.config import settings
from ..core.dependencies import get_tour_service
from ..core.exceptions import (
    DuplicateTourError,
    InvalidDataError,
    RequestFailedError,
    TourAPIError,
    TourValidationError,
)
from ..schemas.common import ERROR_RESPONSES, SuccessEnvelope
from ..schemas.tour import serialize_tour
from ..services.tour_service import TourService

logger = logging.getLogger(__name__)

router = APIRouter(prefix=f"{settings.api_prefix}/tours", tags=["tours"], responses=ERROR_RESPONSES)

# Query preset served by the top-5-cheap alias
TOP_FIVE_CHEAP_QUERY = {
    "limit": "5",
    "sort": "-ratingsAverage,price",
    "fields": "name,price,ratingsAverage,summary,difficulty",
}


def _success(data: Dict[str, Any], **extra: Any) -> JSONResponse:
    return JSONResponse(
        status_code=200,
        content={"status": "success", **extra, "data": data},
    )


def _failure_message(error: Exception, fallback: str) -> str:
    """Client-facing text for an error; storage internals are never echoed."""
    if isinstance(error, TourAPIError):
        return error.message
    return fallback


async def _list_tours(service: TourService, query_params: Mapping[str, str]) -> JSONResponse:
    try:
        listing = await service.list_tours(query_params)
    except Exception as e:
        logger.warning(
            "Tour listing failed",
            extra={"query": dict(query_params), "error": str(e)},
            exc_info=not isinstance(e, TourAPIError),
        )
        raise RequestFailedError(_failure_message(e, "Tours could not be retrieved"))

    tours = [serialize_tour(tour, listing.projection) for tour in listing.tours]
    return _success({"tours": tours}, results=len(tours))


@router.get("", response_model=SuccessEnvelope, summary="List tours")
async def get_all_tours(
    request: Request,
    service: TourService = Depends(get_tour_service),
) -> JSONResponse:
    """
    List tours.

    Supports filtering (`duration[gte]=5`, `difficulty=easy`), `sort`,
    `fields`, `page` and `limit` query parameters.
    """
    return await _list_tours(service, dict(request.query_params))


@router.get("/top-5-cheap", response_model=SuccessEnvelope, summary="Top five cheap tours")
async def alias_top_tours(service: TourService = Depends(get_tour_service)) -> JSONResponse:
    """Best rated, then cheapest, five tours with a compact set of fields."""
    return await _list_tours(service, dict(TOP_FIVE_CHEAP_QUERY))


@router.get("/tour-stats", response_model=SuccessEnvelope, summary="Statistics per difficulty")
async def get_tour_stats(service: TourService = Depends(get_tour_service)) -> JSONResponse:
    try:
        stats = await service.tour_stats()
    except Exception as e:
        logger.error("Tour statistics failed", extra={"error": str(e)}, exc_info=True)
        raise RequestFailedError("Tour statistics could not be computed")

    return _success({"stats": [entry.model_dump(by_alias=True) for entry in stats]})


@router.get("/monthly-plan/{year}", response_model=SuccessEnvelope, summary="Tour starts per month")
async def get_monthly_plan(
    year: int,
    service: TourService = Depends(get_tour_service),
) -> JSONResponse:
    try:
        plan = await service.monthly_plan(year)
    except Exception as e:
        logger.error("Monthly plan failed", extra={"year": year, "error": str(e)}, exc_info=True)
        raise RequestFailedError("Monthly plan could not be computed")

    return _success({"plan": [entry.model_dump(by_alias=True) for entry in plan]})


@router.get("/{tour_id}", response_model=SuccessEnvelope, summary="Get a tour")
async def get_tour(
    tour_id: str,
    service: TourService = Depends(get_tour_service),
) -> JSONResponse:
    """
    Get one tour by ID.

    The document is keyed `tours`, as existing clients read it. A well-formed
    id that matches nothing yields a null document, not an error.
    """
    try:
        tour = await service.get_tour(tour_id)
    except Exception as e:
        logger.warning(
            "Tour lookup failed",
            extra={"tour_id": tour_id, "error": str(e)},
            exc_info=not isinstance(e, TourAPIError),
        )
        raise RequestFailedError(_failure_message(e, "Tour could not be retrieved"))

    return _success({"tours": serialize_tour(tour) if tour else None})


@router.post("", response_model=SuccessEnvelope, summary="Create a tour")
async def create_tour(
    payload: Dict[str, Any] = Body(...),
    service: TourService = Depends(get_tour_service),
) -> JSONResponse:
    """Create a new tour; its slug is derived from the name."""
    try:
        tour = await service.create_tour(payload)
    except TourValidationError as e:
        logger.info("Tour creation rejected", extra={"violations": e.violations})
        raise InvalidDataError(e.violations)
    except DuplicateTourError as e:
        raise InvalidDataError([{"path": "name", "message": e.message}])
    except Exception as e:
        logger.error("Unexpected error in tour creation", extra={"error": str(e)}, exc_info=True)
        raise InvalidDataError()

    logger.info("Tour created successfully", extra={"tour_id": str(tour.id), "slug": tour.slug})
    return _success({"tour": serialize_tour(tour)})


@router.patch("/{tour_id}", response_model=SuccessEnvelope, summary="Update a tour")
async def update_tour(
    tour_id: str,
    payload: Dict[str, Any] = Body(...),
    service: TourService = Depends(get_tour_service),
) -> JSONResponse:
    """Partially update a tour; the whole document is re-validated."""
    try:
        tour = await service.update_tour(tour_id, payload)
    except TourValidationError as e:
        raise RequestFailedError(e.message, e.violations)
    except Exception as e:
        logger.warning(
            "Tour update failed",
            extra={"tour_id": tour_id, "error": str(e)},
            exc_info=not isinstance(e, TourAPIError),
        )
        raise RequestFailedError(_failure_message(e, "Tour could not be updated"))

    return _success({"tour": serialize_tour(tour) if tour else None})


@router.delete("/{tour_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a tour")
async def delete_tour(
    tour_id: str,
    service: TourService = Depends(get_tour_service),
) -> Response:
    try:
        deleted = await service.delete_tour(tour_id)
    except Exception as e:
        logger.warning(
            "Tour deletion failed",
            extra={"tour_id": tour_id, "error": str(e)},
            exc_info=not isinstance(e, TourAPIError),
        )
        raise RequestFailedError(_failure_message(e, "Tour could not be deleted"))

    logger.info("Tour delete handled", extra={"tour_id": tour_id, "deleted": deleted})
    return Response(status_code=status.HTTP_204_NO_CONTENT)
