"""
Configuration management for the vidlink service.
"""
import os
from typing import List, Optional


DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
)


def _split_list(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings:
    """Application settings with environment variable support."""

    def __init__(self, **overrides):
        """
        Initialize settings from environment variables.

        Keyword arguments override the matching attribute after the
        environment has been read, which keeps tests independent of the
        process environment.
        """
        # Server
        self.host: str = os.getenv("HOST", "0.0.0.0")
        self.port: int = int(os.getenv("PORT", "3000"))
        self.environment: str = os.getenv("ENVIRONMENT", os.getenv("NODE_ENV", "development")).lower()
        self.log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()

        # CORS (only enforced in production)
        self.cors_origins: List[str] = _split_list(
            os.getenv("CORS_ORIGINS", "https://your-frontend-domain.com")
        )

        # Cache settings (in seconds)
        self.cache_ttl: int = int(os.getenv("CACHE_TTL", "3600"))  # 1 hour
        self.cache_max_entries: int = int(os.getenv("CACHE_MAX_ENTRIES", "1000"))

        # Rate limiting
        self.rate_limit_window: int = int(os.getenv("RATE_LIMIT_WINDOW", "3600"))  # 1 hour
        self.rate_limit_max_requests: int = int(os.getenv("RATE_LIMIT_MAX_REQUESTS", "100"))

        # Extraction
        self.extraction_timeout: float = float(os.getenv("EXTRACTION_TIMEOUT", "30"))
        self.user_agent: str = os.getenv("USER_AGENT", DEFAULT_USER_AGENT)

        # Keep-alive pinger
        self.keep_alive_interval: float = float(os.getenv("KEEP_ALIVE_INTERVAL", "840"))  # 14 minutes
        self.public_url: Optional[str] = os.getenv("PUBLIC_URL") or os.getenv("RENDER_EXTERNAL_URL")

        for name, value in overrides.items():
            if not hasattr(self, name):
                raise AttributeError(f"Unknown setting: {name}")
            setattr(self, name, value)

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def keep_alive_enabled(self) -> bool:
        """The pinger only runs for a live deployment with a reachable address."""
        return self.is_production and bool(self.public_url)


# Global settings instance
settings = Settings()
