"""
Pydantic schemas for API request/response validation.
Policy applications and claim reports are accepted as-is from app.schemas.
"""

from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field

from app.models.claim import ClaimStatus
from app.models.policy import PolicyStatus
from app.schemas.application import CoverageRequest


class CoverageRevisionRequest(BaseModel):
    """Replacement coverage set for an unbound policy."""
    coverages: List[CoverageRequest] = Field(..., min_length=1)


class PolicyStatusRequest(BaseModel):
    status: PolicyStatus


class ClaimStatusRequest(BaseModel):
    status: ClaimStatus


class ErrorResponse(BaseModel):
    """Error response body."""
    success: bool = False
    error: str
    detail: Optional[str] = None
    retryable: bool = False
    missing_coverages: Optional[List[str]] = None

    class Config:
        json_schema_extra = {
            "example": {
                "success": False,
                "error": "MissingRequiredCoverage",
                "detail": "Required coverages missing: PD",
                "retryable": False,
                "missing_coverages": ["PD"],
            }
        }


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    version: str
    database_connected: bool
    timestamp: datetime
