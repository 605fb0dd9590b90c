from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from carecompanion.utils.timeutils import utcnow


class ErrorResponse(BaseModel):
    """Standard error response schema"""

    error: str = Field(..., description="Error type")
    message: str = Field(..., description="Human-readable error message")
    correlation_id: Optional[str] = Field(None, description="Request correlation ID")
    details: Optional[Dict[str, Any]] = Field(None, description="Additional error details")
    timestamp: datetime = Field(default_factory=utcnow, description="Error timestamp")


class SuccessResponse(BaseModel):
    """Standard success response schema"""

    message: str = Field(..., description="Success message")
    correlation_id: Optional[str] = Field(None, description="Request correlation ID")
    timestamp: datetime = Field(default_factory=utcnow, description="Response timestamp")
    data: Optional[Dict[str, Any]] = Field(None, description="Additional response data")


__all__ = [
    "ErrorResponse",
    "SuccessResponse",
]
