"""
WordShelf Backend: API Response Schemas
========================================

What:  Response bodies of the HTTP surface.
How:   List and detail pages are rendered from the view state controller,
       so their bodies carry the controller state name next to the data.

Error Format:
    Every error handler in `main.py` returns ErrorResponse:
        {
            "error": "store_unavailable",
            "message": "Could not load words. Please try again.",
            "details": null,
            "request_id": "550e8400-e29b-41d4-a716-446655440000"
        }
"""

from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, Field

R = TypeVar("R")


class ListView(BaseModel, Generic[R]):
    """A list page in its Ready state."""

    state: str = Field(default="ready", description="View state name")
    items: List[R] = Field(description="Records, newest first")
    count: int = Field(description="Number of records returned")


class DetailView(BaseModel, Generic[R]):
    """A detail page in its Ready state."""

    state: str = Field(default="ready", description="View state name")
    item: R


class MutationResponse(BaseModel):
    """Result of a create or update submission."""

    ok: bool = True
    id: str = Field(description="Identifier of the created or updated record")
    message: str = Field(description="Notice shown to the user, e.g. 'Word added successfully!'")


class DeleteResponse(BaseModel):
    """Result of a delete request; `deleted` is False when it was not confirmed."""

    deleted: bool
    message: str


class ErrorResponse(BaseModel):
    """Standardized error body for all API errors."""

    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """
    What:  Health check response showing service and store status.
    Who:   Returned by GET /health for container health checks.
    """

    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    store: str = Field(description="Record store reachability: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
