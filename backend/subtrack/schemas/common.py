"""
SubTrack Backend: Shared Response Schemas
==========================================

What:  Envelope pieces reused by every router: the camelCase base model,
       error responses, plain message responses and the health payload.

Error format (every non-2xx JSON response):
    {
        "success": false,
        "message": "Validation failed",
        "errors": [{"field": "cost", "message": "...", "location": "body"}],
        "request_id": "a1b2c3d4"
    }
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from subtrack.middleware.request_id import request_id_var


class CamelModel(BaseModel):
    """Base for API models: snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class ErrorDetail(BaseModel):
    field: Optional[str] = Field(default=None, description="Request field that failed (camelCase)")
    message: str = Field(description="Human-readable reason")
    location: str = Field(default="body", description="body, path, query or header")


class ErrorResponse(BaseModel):
    """Standardized error response format for all API errors."""
    success: bool = Field(default=False)
    message: str = Field(description="Human-readable error description")
    errors: Optional[List[ErrorDetail]] = Field(default=None, description="Field-level validation errors")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


def error_content(message: str, errors: Optional[List[dict]] = None) -> dict:
    """JSON body for an error response, tagged with the current request id."""
    body = ErrorResponse(
        message=message,
        errors=errors,
        request_id=request_id_var.get("") or None,
    )
    return body.model_dump(exclude_none=True)


class MessageResponse(BaseModel):
    success: bool = True
    message: str


class HealthResponse(BaseModel):
    """Returned by GET /health for load balancers and container health checks."""
    status: str = Field(description="Overall service status: healthy or unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
