"""Upload API request/response schemas"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Optional


class UploadResponse(BaseModel):
    """Response for an accepted upload"""
    message: str = Field(..., description="Human-readable confirmation")
    filename: str = Field(..., description="Final name of the stored file")
    size_bytes: int = Field(..., description="Stored file size in bytes")

    model_config = ConfigDict(from_attributes=True)


class UploadErrorResponse(BaseModel):
    """Error response for a rejected upload"""
    error: str = Field(..., description="Error code (e.g., invalid_type, too_large)")
    message: str = Field(..., description="Human-readable error message")
    max_size_bytes: Optional[int] = Field(None, description="Maximum allowed file size (for too_large errors)")
