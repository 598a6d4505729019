"""
Middleware package for vidlink.

This package contains middleware components for rate limiting, error
handling and security headers.
"""

from .rate_limiter import RateLimiter, RateLimitConfig, rate_limit_middleware
from .error_handler import (
    ErrorHandlingMiddleware,
    SecurityHeadersMiddleware,
    http_exception_handler,
    validation_exception_handler,
)

__all__ = [
    'RateLimiter',
    'RateLimitConfig',
    'rate_limit_middleware',
    'ErrorHandlingMiddleware',
    'SecurityHeadersMiddleware',
    'http_exception_handler',
    'validation_exception_handler',
]
