"""
Common response models.

Error payload returned by every failing request.

Dependencies: pydantic
System role: Common API response structures
"""

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Error response schema."""

    success: bool = False
    error: str = Field(description="Error message")
    code: str = Field(description="Machine-readable error code")
    details: dict | None = Field(default=None, description="Additional error context")
