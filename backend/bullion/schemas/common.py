"""Common response schemas used across the API."""

from datetime import UTC, datetime

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Standard error response format for API errors.

    Attributes:
        error: Error code (e.g., 'NotFound', 'InsufficientInventory')
        message: Human-readable error message
        details: Machine-readable extras (e.g., shortfall, blocking sell ids)
        timestamp: When the error occurred
        path: Request path that caused the error
    """

    error: str = Field(..., description="Error code (e.g., 'NotFound', 'InsufficientInventory')")
    message: str = Field(..., description="Human-readable error message")
    details: dict | None = Field(None, description="Additional error details")
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    path: str | None = Field(None, description="Request path that caused the error")
