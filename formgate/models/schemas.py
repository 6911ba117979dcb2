"""Response models for the formgate service."""

from pydantic import BaseModel


class HealthResponse(BaseModel):
    """Response model for GET /health."""

    service: str
    version: str
    status: str
    uptime_seconds: float
