"""
Video resolution API endpoint for vidlink.

This module provides the GET /api/video endpoint: parameter validation,
cache lookup, platform detection and dispatch to the matching extractor.
"""

import time
import logging
from typing import Optional
from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse

from vidlink.models.video import ErrorResponse, VideoRequest, VideoResponse
from vidlink.services.platform_detector import PlatformDetector
from vidlink.core.exceptions import (
    MissingParamError, UnsupportedPlatformError, InvalidURLError
)


# Configure logging
logger = logging.getLogger(__name__)

# Create API router
router = APIRouter(prefix="/api", tags=["video"])


def resolve_video_request(url: str, platform: Optional[str]) -> VideoRequest:
    """
    Work out which platform a request targets.

    Without an explicit ``platform`` the URL host decides. An explicit value
    must name a supported platform and agree with the URL host.
    """
    if platform:
        declared = PlatformDetector.parse_platform(platform)
        if declared is None:
            raise UnsupportedPlatformError()
        if PlatformDetector.detect_platform(url) is None:
            raise UnsupportedPlatformError()
        if not PlatformDetector.host_matches_platform(url, declared):
            raise InvalidURLError(
                platform=declared.value,
                detail=f"URL host does not belong to {declared.value}"
            )
        return VideoRequest(url=url, platform=declared)

    detected = PlatformDetector.detect_platform(url)
    if detected is None:
        raise UnsupportedPlatformError()
    return VideoRequest(url=url, platform=detected)


@router.get(
    "/video",
    response_model=VideoResponse,
    response_model_exclude_none=True,
    responses={
        400: {"model": ErrorResponse, "description": "Missing parameter, unsupported platform or invalid URL"},
        403: {"model": ErrorResponse, "description": "Age-restricted video"},
        408: {"model": ErrorResponse, "description": "Extraction timed out"},
        429: {"model": ErrorResponse, "description": "Rate limit exceeded"},
        500: {"model": ErrorResponse, "description": "Extraction failed"}
    },
    summary="Get video information and download URL",
    description="Resolve a YouTube or Instagram URL into a direct download URL. Results are cached per URL."
)
async def get_video(
    request: Request,
    url: Optional[str] = Query(None, description="Video URL (YouTube or Instagram)"),
    platform: Optional[str] = Query(None, description="youtube or instagram; detected from the URL when omitted"),
) -> JSONResponse:
    """
    Resolve a video URL with caching.

    This endpoint:
    - Requires the ``url`` query parameter
    - Serves repeated URLs from the in-memory cache, keyed by the ``url`` value
      with surrounding whitespace stripped and no other normalization
    - Detects (or validates) the platform and calls its extractor
    - Caches successful results only
    """
    start_time = time.time()
    url = url.strip() if url else url
    if not url:
        raise MissingParamError("url")

    cache = request.app.state.cache
    cached = await cache.get(url)
    if cached is not None:
        response_time = (time.time() - start_time) * 1000
        logger.info(f"Cache hit for {url}, response time: {response_time:.2f}ms")
        return JSONResponse(status_code=200, content=cached)

    video_request = resolve_video_request(url, platform)
    extractor = request.app.state.extractors[video_request.platform]

    logger.info(f"Cache miss for {url}, extracting with {video_request.platform.value} adapter")
    result = await extractor.extract(video_request.url)

    payload = result.to_payload()
    await cache.set(url, payload)

    response_time = (time.time() - start_time) * 1000
    logger.info(f"Resolved {url}, response time: {response_time:.2f}ms")

    return JSONResponse(status_code=200, content=payload)
