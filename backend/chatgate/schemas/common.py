"""
ChatGate Backend — Shared Response Schemas
============================================

What:  Error and health payloads used by every router.
Why:   Clients parse one error shape regardless of which endpoint failed.
"""

from typing import Optional

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """
    Standardized error response format for all API errors.

    Example:
        {
            "error": "entitlement_denied",
            "message": "You have used all of your chat credits. Please upgrade your plan.",
            "details": {"deny_reason": "no_credits"},
            "request_id": "1f2e3d4c"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    status: str = Field(description="Overall service status: healthy, degraded, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Profile store connectivity: connected, disconnected")
    gemini: str = Field(description="Gemini configuration: configured, not_configured")
    entitlement_policy: str = Field(description="Active entitlement model: metered or premium")
    uptime_seconds: float = Field(description="Seconds since service started")
