"""
Video-related data models for vidlink.

This module contains the Pydantic models for the platform enum, the
normalized video response and the error response.
"""

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator


class Platform(str, Enum):
    """Supported source platforms."""

    YOUTUBE = "youtube"
    INSTAGRAM = "instagram"


class VideoRequest(BaseModel):
    """A URL paired with the platform it is expected to belong to."""

    url: str = Field(..., min_length=1, max_length=2048, description="Video URL")
    platform: Platform = Field(..., description="Source platform")

    @field_validator("url")
    @classmethod
    def validate_url(cls, v):
        """Strip whitespace around the URL."""
        v = v.strip()
        if not v:
            raise ValueError("URL cannot be empty")
        return v


class VideoResponse(BaseModel):
    """Platform-normalized video response."""

    success: bool = Field(True, description="Whether the request was successful")
    platform: Platform = Field(..., description="Source platform")
    title: Optional[str] = Field(None, description="Video title (YouTube)")
    thumbnail: Optional[str] = Field(None, description="Thumbnail URL (YouTube)")
    duration: Optional[str] = Field(None, description="Duration in seconds (YouTube)")
    author: Optional[str] = Field(None, description="Channel or uploader name (YouTube)")
    download_url: str = Field(..., min_length=1, description="Direct media URL")
    type: Optional[str] = Field(None, description="Media kind, e.g. video or image (Instagram)")

    @field_validator("duration", mode="before")
    @classmethod
    def validate_duration(cls, v):
        """Durations are reported as a string of whole seconds."""
        if v is None or isinstance(v, str):
            return v
        return str(int(v))

    def to_payload(self) -> Dict[str, Any]:
        """JSON-ready body with absent optional fields dropped."""
        return self.model_dump(mode="json", exclude_none=True)


class ErrorResponse(BaseModel):
    """Error response model."""

    success: bool = Field(False, description="Always false for errors")
    error: str = Field(..., description="Human-readable error message")
    code: Optional[str] = Field(None, description="Stable error code")
    message: Optional[str] = Field(None, description="Additional detail")
