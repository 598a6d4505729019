from contextlib import asynccontextmanager
from typing import Dict, Optional
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging

from vidlink import __version__
from vidlink.api.video import router as video_router
from vidlink.core.config import Settings, settings as default_settings
from vidlink.middleware.rate_limiter import RateLimiter, RateLimitConfig, rate_limit_middleware
from vidlink.middleware.error_handler import (
    ErrorHandlingMiddleware, SecurityHeadersMiddleware,
    http_exception_handler, validation_exception_handler
)
from vidlink.models.video import Platform
from vidlink.services.cache_manager import CacheManager
from vidlink.services.extractors import VideoExtractor, build_extractors
from vidlink.services.keep_alive import KeepAlivePinger
from vidlink.services.platform_detector import PlatformDetector

logger = logging.getLogger(__name__)

SERVICE_NAME = "Video Downloader API"


def configure_logging(app_settings: Settings):
    logging.basicConfig(
        level=getattr(logging, app_settings.log_level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start and stop background services with the application."""
    app_settings: Settings = app.state.settings
    logger.info(f"Starting {SERVICE_NAME} in {app_settings.environment} mode")

    pinger: Optional[KeepAlivePinger] = app.state.keep_alive
    if pinger is not None:
        pinger.start()

    yield

    logger.info(f"Shutting down {SERVICE_NAME}")
    if pinger is not None:
        await pinger.stop()


def create_app(
    app_settings: Optional[Settings] = None,
    cache: Optional[CacheManager] = None,
    rate_limiter: Optional[RateLimiter] = None,
    extractors: Optional[Dict[Platform, VideoExtractor]] = None,
    keep_alive: Optional[KeepAlivePinger] = None,
) -> FastAPI:
    """
    Build the application with its collaborators.

    Every collaborator can be injected; anything left out is built from the
    settings. The keep-alive pinger is only created for production
    deployments with a public URL.
    """
    app_settings = app_settings if app_settings is not None else default_settings

    app = FastAPI(
        title=SERVICE_NAME,
        description="API for downloading videos from YouTube and Instagram",
        version=__version__,
        docs_url="/api-docs",
        redoc_url=None,
        lifespan=lifespan
    )

    app.state.settings = app_settings
    app.state.cache = cache if cache is not None else CacheManager(
        ttl=app_settings.cache_ttl,
        max_entries=app_settings.cache_max_entries
    )
    app.state.rate_limiter = (
        rate_limiter if rate_limiter is not None else RateLimiter(RateLimitConfig.from_settings(app_settings))
    )
    app.state.extractors = extractors if extractors is not None else build_extractors(
        timeout=app_settings.extraction_timeout,
        user_agent=app_settings.user_agent
    )
    if keep_alive is None and app_settings.keep_alive_enabled:
        keep_alive = KeepAlivePinger(app_settings.public_url, interval=app_settings.keep_alive_interval)
    app.state.keep_alive = keep_alive

    # Innermost first: rate limiting sits behind error handling, headers and CORS
    app.middleware("http")(rate_limit_middleware)
    app.add_middleware(ErrorHandlingMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)

    if app_settings.is_production:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=app_settings.cors_origins,
            allow_methods=["GET", "POST"],
            allow_headers=["Content-Type"],
        )
    else:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_methods=["GET", "POST"],
            allow_headers=["Content-Type"],
        )

    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    app.include_router(video_router)

    @app.get("/")
    async def root():
        """Describe the service and its endpoints."""
        return {
            "success": True,
            "name": SERVICE_NAME,
            "version": __version__,
            "description": "API for downloading videos from YouTube and Instagram",
            "supported_platforms": {
                name: PlatformDetector.get_platform_domains(Platform(name))
                for name in PlatformDetector.get_supported_platforms()
            },
            "endpoints": {
                "documentation": "/api-docs",
                "video": "/api/video?url=VIDEO_URL",
                "ping": "/ping"
            }
        }

    @app.get("/ping", response_class=PlainTextResponse)
    async def ping():
        return "pong"

    return app
