"""
Pytest configuration and fixtures for the vidlink test suite.

This module provides shared fixtures and configuration for all tests.
"""

import pytest
from unittest.mock import AsyncMock, Mock
from fastapi.testclient import TestClient

from vidlink.core.config import Settings
from vidlink.main import create_app
from vidlink.middleware.rate_limiter import RateLimiter, RateLimitConfig
from vidlink.models.video import Platform, VideoResponse
from vidlink.services.cache_manager import CacheManager


YOUTUBE_URL = 'https://www.youtube.com/watch?v=dQw4w9WgXcQ'
INSTAGRAM_URL = 'https://www.instagram.com/reel/C1a2B3c4D5e/'


class FakeClock:
    """Manually advanced clock for TTL and window tests."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


@pytest.fixture
def settings():
    """Development settings independent of the process environment."""
    return Settings(
        environment='development',
        cache_ttl=3600,
        cache_max_entries=1000,
        rate_limit_window=3600,
        rate_limit_max_requests=100,
        extraction_timeout=5,
        public_url=None,
    )


@pytest.fixture
def production_settings():
    return Settings(
        environment='production',
        cors_origins=['https://frontend.example.com'],
        public_url=None,
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def youtube_response():
    return VideoResponse(
        platform=Platform.YOUTUBE,
        title='Test Video',
        thumbnail='https://i.ytimg.com/vi/dQw4w9WgXcQ/maxresdefault.jpg',
        duration=212,
        author='Test Channel',
        download_url='https://rr1---sn-test.googlevideo.com/videoplayback?itag=22',
    )


@pytest.fixture
def instagram_response():
    return VideoResponse(
        platform=Platform.INSTAGRAM,
        download_url='https://scontent.cdninstagram.com/v/t50/video.mp4',
        type='video',
    )


@pytest.fixture
def mock_youtube_extractor(youtube_response):
    """YouTube adapter double that counts calls."""
    mock = Mock()
    mock.platform = Platform.YOUTUBE
    mock.extract = AsyncMock(return_value=youtube_response)
    return mock


@pytest.fixture
def mock_instagram_extractor(instagram_response):
    """Instagram adapter double that counts calls."""
    mock = Mock()
    mock.platform = Platform.INSTAGRAM
    mock.extract = AsyncMock(return_value=instagram_response)
    return mock


@pytest.fixture
def extractors(mock_youtube_extractor, mock_instagram_extractor):
    return {
        Platform.YOUTUBE: mock_youtube_extractor,
        Platform.INSTAGRAM: mock_instagram_extractor,
    }


@pytest.fixture
def cache(clock):
    return CacheManager(ttl=3600, max_entries=1000, clock=clock)


@pytest.fixture
def rate_limiter(clock):
    return RateLimiter(RateLimitConfig(max_requests=100, window_seconds=3600), clock=clock)


@pytest.fixture
def app(settings, cache, rate_limiter, extractors):
    return create_app(
        settings,
        cache=cache,
        rate_limiter=rate_limiter,
        extractors=extractors,
    )


@pytest.fixture
def client(app):
    """Create test client."""
    return TestClient(app)
