"""Domain errors and the JSON envelope exceptions rendered to clients."""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError

logger = logging.getLogger(__name__)


# Domain errors raised below the HTTP layer

class TourAPIError(Exception):
    """Base class for errors raised by the tour query and service layers."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidQueryError(TourAPIError):
    """A query string parameter could not be translated into a query."""


class InvalidIdentifierError(TourAPIError):
    """A path identifier is not a well-formed tour id."""

    def __init__(self, value: str):
        super().__init__(f"Invalid tour id: {value!r}")
        self.value = value


class TourValidationError(TourAPIError):
    """Tour data violates one or more field rules."""

    def __init__(self, violations: List[Dict[str, str]], message: str = "Tour data failed validation"):
        super().__init__(message)
        self.violations = violations

    @classmethod
    def from_pydantic(cls, exc: ValidationError) -> "TourValidationError":
        return cls(violations_from_errors(exc.errors()))


class DuplicateTourError(TourAPIError):
    """A tour with the same unique name already exists."""

    def __init__(self, name: Optional[str] = None):
        detail = "A tour with this name already exists"
        if name:
            detail = f"A tour named '{name}' already exists"
        super().__init__(detail)
        self.name = name


def violations_from_errors(errors: List[Dict[str, Any]]) -> List[Dict[str, str]]:
    """Flatten pydantic error dicts into ``{path, message}`` pairs."""
    violations = []
    for error in errors:
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "path", "query")]
        violations.append({
            "path": ".".join(loc) or "body",
            "message": error.get("msg", "Invalid value"),
        })
    return violations


# Envelope exceptions

class EnvelopeException(HTTPException):
    """
    Base HTTP exception rendered as the API's JSON envelope.

    The body always has the shape ``{"status": <label>, "message": <text>}``
    plus any extensions, and never embeds raw exception objects.
    """

    def __init__(
        self,
        status_code: int,
        status_label: str,
        message: str,
        extensions: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        self.status_label = status_label
        self.message = message
        self.envelope: Dict[str, Any] = {"status": status_label, "message": message}
        if extensions:
            self.envelope.update(extensions)

        super().__init__(status_code=status_code, detail=self.envelope, headers=headers)


class InvalidDataError(EnvelopeException):
    """Create request carried data that could not be stored."""

    def __init__(self, violations: Optional[List[Dict[str, str]]] = None):
        extensions = {}
        if violations:
            extensions["errors"] = violations
        super().__init__(
            status_code=400,
            status_label="failed",
            message="Invalid data sent",
            extensions=extensions,
        )


class RequestFailedError(EnvelopeException):
    """A read, update or delete request could not be fulfilled."""

    def __init__(self, message: str, violations: Optional[List[Dict[str, str]]] = None):
        extensions = {}
        if violations:
            extensions["errors"] = violations
        super().__init__(
            status_code=404,
            status_label="failure",
            message=message,
            extensions=extensions,
        )


async def envelope_exception_handler(request: Request, exc: EnvelopeException) -> JSONResponse:
    """Render an envelope exception as its JSON body."""
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.envelope,
        headers=exc.headers,
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render FastAPI request validation failures as the invalid-data envelope."""
    error = InvalidDataError(violations_from_errors(list(exc.errors())))
    return await envelope_exception_handler(request, error)


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Convert unhandled exceptions into an error envelope.

    Args:
        request: FastAPI request object
        exc: Unhandled exception

    Returns:
        JSONResponse: 500 envelope with a correlation id
    """
    error_id = str(uuid.uuid4())
    logger.error(
        "Unhandled exception",
        extra={"error_id": error_id, "path": request.url.path},
        exc_info=exc,
    )

    return JSONResponse(
        status_code=500,
        content={
            "status": "error",
            "message": "An unexpected error occurred while processing the request",
            "error_id": error_id,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    )
