"""
Forum Backend — Shared Response Schemas
========================================

Error and health payloads used by every router.
"""

from typing import Optional

from pydantic import BaseModel, Field


class MessageResponse(BaseModel):
    """Plain acknowledgement, e.g. after a delete or a password change."""
    message: str = Field(description="Human-readable result")


class ErrorResponse(BaseModel):
    """
    What:  Error body returned for every failed request.
    Why:   Clients parse one shape instead of guessing between keys.

    Example:
        {
            "error": "not_found",
            "message": "question with ID 'q_1_1700000000000_ab12cd' was not found",
            "details": {"resource": "question", "resource_id": "q_1_1700000000000_ab12cd"},
            "request_id": "1f0c9a2e"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    status: str = Field(description="Overall service status: healthy or unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
