"""
Services package for vidlink.

This package contains the platform detector, the extractor adapters, the
response cache and the keep-alive pinger.
"""

from .platform_detector import PlatformDetector, detect_platform

from .extractors import (
    VideoExtractor,
    YouTubeExtractor,
    InstagramExtractor,
    build_extractors,
)

from .cache_manager import CacheManager
from .keep_alive import KeepAlivePinger

__all__ = [
    # Platform detection
    'PlatformDetector',
    'detect_platform',
    # Extraction
    'VideoExtractor',
    'YouTubeExtractor',
    'InstagramExtractor',
    'build_extractors',
    # Cache
    'CacheManager',
    # Keep-alive
    'KeepAlivePinger',
]
