"""
Error response models.

Every failed request gets the same body shape, differing only in status
code and message.
"""

from pydantic import BaseModel
from typing import Optional


class ErrorResponse(BaseModel):
    """Standard error response format."""

    success: bool = False
    message: str
    error: Optional[str] = None
