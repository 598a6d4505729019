"""
Error taxonomy for the vidlink service.

Every failure that can reach a client is raised as a ``VidLinkException``
subclass carrying its HTTP status and a stable error code. The error handling
middleware turns these into ``{"success": false, "error": ...}`` bodies.
"""

from typing import Any, Dict, Optional
from enum import Enum


# Upstream error fragments that mean the video sits behind an age gate
AGE_RESTRICTION_SIGNATURES = (
    "confirm your age",
    "age-restricted",
    "age restricted",
    "inappropriate for some users",
)

GENERIC_EXTRACTION_MESSAGE = "Failed to extract video information"


class ErrorCode(str, Enum):
    """Standardized error codes for consistent error handling."""

    # Request errors
    MISSING_PARAM = "missing_param"
    VALIDATION_ERROR = "validation_error"
    INVALID_URL = "invalid_url"
    UNSUPPORTED_PLATFORM = "unsupported_platform"

    # Extraction errors
    NO_DOWNLOADABLE_URL = "no_downloadable_url"
    NO_SUITABLE_FORMAT = "no_suitable_format"
    AGE_RESTRICTED = "age_restricted"
    EXTRACTION_FAILED = "extraction_failed"
    PROCESSING_TIMEOUT = "processing_timeout"

    # System errors
    RATE_LIMIT_EXCEEDED = "rate_limit_exceeded"
    NOT_FOUND = "not_found"
    METHOD_NOT_ALLOWED = "method_not_allowed"
    INTERNAL_ERROR = "internal_error"


class VidLinkException(Exception):
    """
    Base exception class for all vidlink errors.

    Args:
        message: Human-readable error, returned as the ``error`` field
        error_code: Standardized error code
        status_code: HTTP status code
        detail: Optional extra explanation, returned as ``message``
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode,
        status_code: int = 400,
        detail: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.detail = detail

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        body = {
            "success": False,
            "error": self.message,
            "code": self.error_code.value,
        }
        if self.detail:
            body["message"] = self.detail
        return body


# Request errors
class MissingParamError(VidLinkException):
    """Raised when a required query parameter is absent or empty."""

    def __init__(self, param: str):
        super().__init__(
            message=f"{param.upper()} is required",
            error_code=ErrorCode.MISSING_PARAM,
            status_code=400,
        )
        self.param = param


class RequestValidationFailed(VidLinkException):
    """Raised when query parameters have the wrong shape."""

    def __init__(self, detail: Optional[str] = None):
        super().__init__(
            message="Invalid request parameters",
            error_code=ErrorCode.VALIDATION_ERROR,
            status_code=400,
            detail=detail,
        )


class UnsupportedPlatformError(VidLinkException):
    """Raised when the URL does not belong to a supported platform."""

    def __init__(self):
        super().__init__(
            message="Unsupported platform. Please provide a valid YouTube or Instagram URL",
            error_code=ErrorCode.UNSUPPORTED_PLATFORM,
            status_code=400,
        )


class InvalidURLError(VidLinkException):
    """Raised when a platform-specific validator rejects the URL."""

    def __init__(self, platform: str, detail: Optional[str] = None):
        super().__init__(
            message=f"Invalid {platform} URL",
            error_code=ErrorCode.INVALID_URL,
            status_code=400,
            detail=detail,
        )
        self.platform = platform


# Extraction errors
class NoDownloadableURLError(VidLinkException):
    """Raised when the extractor resolves an empty set of media URLs."""

    def __init__(self):
        super().__init__(
            message="No downloadable URL found",
            error_code=ErrorCode.NO_DOWNLOADABLE_URL,
            status_code=400,
        )


class NoSuitableFormatError(VidLinkException):
    """Raised when no format carries both audio and video."""

    def __init__(self):
        super().__init__(
            message="No format with both audio and video is available",
            error_code=ErrorCode.NO_SUITABLE_FORMAT,
            status_code=400,
        )


class AgeRestrictedError(VidLinkException):
    """Raised when the upstream site requires age verification."""

    def __init__(self):
        super().__init__(
            message="This video is age-restricted and cannot be downloaded",
            error_code=ErrorCode.AGE_RESTRICTED,
            status_code=403,
        )


class ExtractionError(VidLinkException):
    """Raised when the extraction library fails; carries the upstream text."""

    def __init__(self, reason: Optional[str] = None):
        super().__init__(
            message=reason or GENERIC_EXTRACTION_MESSAGE,
            error_code=ErrorCode.EXTRACTION_FAILED,
            status_code=500,
        )
        self.reason = reason

    def redacted(self) -> "ExtractionError":
        """Copy of this error without upstream details, for production clients."""
        return ExtractionError()


class ProcessingTimeoutError(VidLinkException):
    """Raised when extraction takes longer than the configured timeout."""

    def __init__(self, timeout_seconds: float):
        super().__init__(
            message=f"Processing timed out after {timeout_seconds:g} seconds",
            error_code=ErrorCode.PROCESSING_TIMEOUT,
            status_code=408,
        )
        self.timeout_seconds = timeout_seconds


# System errors
class RateLimitExceededError(VidLinkException):
    """Raised when a client exceeds its request window."""

    def __init__(self, retry_after: Optional[int] = None):
        super().__init__(
            message="Too many requests from this IP, please try again after an hour",
            error_code=ErrorCode.RATE_LIMIT_EXCEEDED,
            status_code=429,
        )
        self.retry_after = retry_after


class NotFoundError(VidLinkException):
    """Raised for unmatched routes."""

    def __init__(self):
        super().__init__(
            message="Not Found",
            error_code=ErrorCode.NOT_FOUND,
            status_code=404,
            detail="The requested resource does not exist",
        )


class InternalError(VidLinkException):
    """Raised for unexpected internal errors."""

    def __init__(self, reason: Optional[str] = None):
        super().__init__(
            message="Internal Server Error",
            error_code=ErrorCode.INTERNAL_ERROR,
            status_code=500,
            detail=reason,
        )


def is_age_restriction(error_msg: str) -> bool:
    error_lower = error_msg.lower()
    return any(signature in error_lower for signature in AGE_RESTRICTION_SIGNATURES)


def classify_extraction_error(error_msg: str) -> VidLinkException:
    """
    Classify extraction library errors into vidlink exceptions.

    Args:
        error_msg: Error message from the extraction library

    Returns:
        AgeRestrictedError for age-gated videos, ExtractionError otherwise
    """
    if is_age_restriction(error_msg):
        return AgeRestrictedError()
    return ExtractionError(reason=error_msg)
