"""
Error handling middleware for vidlink.

This module turns every failure in the request lifecycle into a JSON body of
the shape ``{"success": false, "error": ...}`` and adds the security headers
carried by every response.
"""

import time
import logging
import traceback
from fastapi import Request
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from vidlink.core.exceptions import (
    VidLinkException, ExtractionError, InternalError, NotFoundError,
    RequestValidationFailed, ErrorCode
)


logger = logging.getLogger(__name__)

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "X-XSS-Protection": "1; mode=block",
}


def _is_production(request: Request) -> bool:
    app_settings = getattr(request.app.state, "settings", None)
    return bool(app_settings and app_settings.is_production)


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """
    Middleware for handling all application errors with consistent formatting.

    Known vidlink exceptions keep their status code; anything else becomes a
    500. Upstream extraction messages and internal exception text are only
    shown to clients outside production.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        """
        Process request and handle any errors that occur.

        Args:
            request: FastAPI request object
            call_next: Next middleware/endpoint in the chain

        Returns:
            Response object with error handling applied
        """
        start_time = time.time()

        try:
            return await call_next(request)

        except VidLinkException as e:
            return self._handle_vidlink_exception(request, e, start_time)

        except Exception as e:
            return self._handle_unexpected_exception(request, e, start_time)

    def _handle_vidlink_exception(
        self,
        request: Request,
        exc: VidLinkException,
        start_time: float
    ) -> JSONResponse:
        """Handle vidlink custom exceptions."""
        response_time = (time.time() - start_time) * 1000

        log_data = {
            "error_code": exc.error_code.value,
            "path": request.url.path,
            "method": request.method,
            "response_time_ms": round(response_time, 2)
        }

        if exc.status_code >= 500:
            logger.error(f"Request failed: {exc.message}", extra=log_data)
        else:
            logger.warning(f"Request rejected: {exc.message}", extra=log_data)

        if isinstance(exc, ExtractionError) and _is_production(request):
            exc = exc.redacted()

        return JSONResponse(
            status_code=exc.status_code,
            content=exc.to_dict()
        )

    def _handle_unexpected_exception(
        self,
        request: Request,
        exc: Exception,
        start_time: float
    ) -> JSONResponse:
        """Handle unexpected exceptions."""
        response_time = (time.time() - start_time) * 1000

        logger.error(
            f"Unexpected error: {str(exc)}",
            extra={
                "path": request.url.path,
                "method": request.method,
                "response_time_ms": round(response_time, 2),
                "traceback": traceback.format_exc()
            }
        )

        reason = None if _is_production(request) else str(exc)
        internal_error = InternalError(reason=reason)

        return JSONResponse(
            status_code=internal_error.status_code,
            content=internal_error.to_dict()
        )


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Adds content-sniffing and XSS protection headers to every response."""

    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)
        for header, value in SECURITY_HEADERS.items():
            response.headers.setdefault(header, value)
        return response


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render framework HTTP errors (unmatched routes, wrong methods) as JSON."""
    if exc.status_code == 404:
        body = NotFoundError().to_dict()
    else:
        code = ErrorCode.METHOD_NOT_ALLOWED if exc.status_code == 405 else ErrorCode.INTERNAL_ERROR
        body = {"success": False, "error": str(exc.detail), "code": code.value}

    logger.warning(
        f"HTTP exception: {exc.detail}",
        extra={"status_code": exc.status_code, "path": request.url.path, "method": request.method}
    )
    return JSONResponse(status_code=exc.status_code, content=body, headers=getattr(exc, "headers", None))


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle query parameter validation errors as 400s."""
    error_detail = exc.errors()[0] if exc.errors() else {}
    field_name = error_detail.get('loc', ['unknown'])[-1] if error_detail.get('loc') else 'unknown'
    error_msg = error_detail.get('msg', 'Validation error')

    logger.warning(
        f"Validation error: {error_msg}",
        extra={"field": field_name, "path": request.url.path, "method": request.method}
    )

    error = RequestValidationFailed(detail=f"Invalid {field_name}: {error_msg}")
    return JSONResponse(status_code=error.status_code, content=error.to_dict())
