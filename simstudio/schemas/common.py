"""Small response envelopes shared across routes."""

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class SuccessResponse(BaseModel):
    success: bool = True
    message: str
    data: Optional[Dict[str, Any]] = None


class DeleteResponse(BaseModel):
    success: bool = True
    message: str = "Deleted"


class HealthCheckResponse(BaseModel):
    status: str = Field(description="'healthy' or 'degraded'")
    service: str
    version: str
    environment: str
    database: str
