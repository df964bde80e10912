"""Common Pydantic schemas for response envelopes."""

from typing import Any, List, Literal, Optional

from pydantic import BaseModel, Field


class Violation(BaseModel):
    """Validation error violation."""

    path: str = Field(..., description="Dotted path to the invalid field")
    message: str = Field(..., description="Validation error message")


class SuccessEnvelope(BaseModel):
    """Envelope wrapping every successful response."""

    status: Literal["success"] = "success"
    results: Optional[int] = Field(None, description="Number of documents in data, for list responses")
    data: Optional[dict[str, Any]] = Field(None, description="Response payload")


class ErrorEnvelope(BaseModel):
    """Envelope returned when a request fails."""

    status: Literal["failure", "failed", "error"] = Field(..., description="Failure label")
    message: str = Field(..., description="Human-readable explanation")
    errors: Optional[List[Violation]] = Field(None, description="Field-level validation errors")


ERROR_RESPONSES = {
    400: {"model": ErrorEnvelope, "description": "Invalid data sent"},
    404: {"model": ErrorEnvelope, "description": "Request could not be fulfilled"},
}
