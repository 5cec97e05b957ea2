"""
Solo Parent Backend: Shared Schemas
====================================

Envelopes used across every router: the error body produced by the
exception handlers, the plain success message and the health report.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Body of every error answered by the registered exception handlers."""

    error: str = Field(description="Machine-readable error code, e.g. not_found")
    message: str = Field(description="Human-readable description")
    details: Optional[Dict[str, Any]] = Field(default=None, description="Extra context")
    request_id: Optional[str] = Field(default=None, description="X-Request-ID of the failed request")


class MessageResponse(BaseModel):
    success: bool = True
    message: str


class MarkReadRequest(BaseModel):
    type: str = Field(description="Inbox type, e.g. application_accepted")


class HealthResponse(BaseModel):
    status: str = Field(description="healthy or unhealthy")
    version: str
    database: str = Field(description="connected or disconnected")
    uptime_seconds: float


ERROR_RESPONSES: Dict[int, Dict[str, Any]] = {
    400: {"description": "Business rule violated", "model": ErrorResponse},
    404: {"description": "Resource not found", "model": ErrorResponse},
    500: {"description": "Server error", "model": ErrorResponse},
}
