"""
Platform detection for vidlink.

Classifies a URL as YouTube, Instagram or unsupported by looking at its
hostname, and checks that an explicitly declared platform agrees with it.
"""

from typing import Dict, List, Optional, Tuple
from urllib.parse import urlparse

from vidlink.models.video import Platform


class PlatformDetector:
    """Hostname-based platform detection."""

    PLATFORM_DOMAINS: Dict[Platform, Tuple[str, ...]] = {
        Platform.YOUTUBE: ('youtube.com', 'youtu.be'),
        Platform.INSTAGRAM: ('instagram.com',),
    }

    @classmethod
    def _hostname(cls, url: str) -> Optional[str]:
        if not url or not isinstance(url, str):
            return None
        try:
            parsed = urlparse(url.strip())
            hostname = parsed.hostname
        except ValueError:
            return None
        # Only absolute URLs with a scheme and host count as parseable
        if not parsed.scheme or not hostname:
            return None
        return hostname.lower()

    @classmethod
    def detect_platform(cls, url: str) -> Optional[Platform]:
        """
        Detect the platform from a given URL.

        Args:
            url: The video URL to analyze

        Returns:
            Platform if the hostname belongs to a supported platform, None otherwise
        """
        hostname = cls._hostname(url)
        if hostname is None:
            return None

        for platform, domains in cls.PLATFORM_DOMAINS.items():
            if any(domain in hostname for domain in domains):
                return platform

        return None

    @classmethod
    def host_matches_platform(cls, url: str, platform: Platform) -> bool:
        """Check that the URL's host is one of the platform's known domains."""
        return cls.detect_platform(url) is platform

    @classmethod
    def parse_platform(cls, value: Optional[str]) -> Optional[Platform]:
        """Turn a user-supplied platform name into a Platform, or None if unknown."""
        if not value:
            return None
        try:
            return Platform(value.strip().lower())
        except ValueError:
            return None

    @classmethod
    def get_supported_platforms(cls) -> List[str]:
        """Get list of all supported platforms."""
        return [platform.value for platform in cls.PLATFORM_DOMAINS]

    @classmethod
    def get_platform_domains(cls, platform: Platform) -> List[str]:
        """Get list of domains for a specific platform."""
        return list(cls.PLATFORM_DOMAINS.get(platform, ()))


# Convenience function
def detect_platform(url: str) -> Optional[Platform]:
    """Detect platform from URL."""
    return PlatformDetector.detect_platform(url)
