"""
Data models package for vidlink.

This package contains the Pydantic models shared by the API layer and the
extractor adapters.
"""

from .video import Platform, VideoRequest, VideoResponse, ErrorResponse

__all__ = [
    'Platform',
    'VideoRequest',
    'VideoResponse',
    'ErrorResponse',
]
