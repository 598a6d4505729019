"""
Rate limiting middleware for vidlink.

Bounds the number of video resolution requests each client address can make
inside a sliding window. Only the paths in ``RATE_LIMITED_PATHS`` are counted;
liveness, service descriptor and documentation routes pass straight through.
"""

import time
import logging
from typing import Any, Callable, Deque, Dict, Optional, Tuple
from collections import defaultdict, deque
from dataclasses import dataclass
from fastapi import Request, Response
from fastapi.responses import JSONResponse

from vidlink.core.config import settings
from vidlink.core.exceptions import RateLimitExceededError


logger = logging.getLogger(__name__)

RATE_LIMITED_PATHS = ('/api/video',)


@dataclass
class RateLimitConfig:
    """Rate limit configuration."""
    max_requests: int = 100
    window_seconds: int = 3600

    @classmethod
    def from_settings(cls, app_settings=None) -> "RateLimitConfig":
        app_settings = app_settings or settings
        return cls(
            max_requests=app_settings.rate_limit_max_requests,
            window_seconds=app_settings.rate_limit_window
        )


class RateLimiter:
    """
    In-memory per-client rate limiter with a sliding window.

    Each client keeps a deque of accepted request timestamps. Rejected
    requests are not recorded, so a client regains capacity as soon as its
    oldest accepted request leaves the window.
    """

    def __init__(self, config: Optional[RateLimitConfig] = None, clock: Callable[[], float] = time.time):
        self.config = config or RateLimitConfig()
        self._clock = clock
        self.memory_store: Dict[str, Deque[float]] = defaultdict(deque)
        self._last_sweep = self._clock()

        self.metrics = {
            'total_requests': 0,
            'rate_limited_requests': 0,
        }

        logger.info(f"Rate limiter initialized with config: {self.config}")

    def get_client_id(self, request: Request) -> str:
        """
        Get client identifier for rate limiting.

        Args:
            request: FastAPI request object

        Returns:
            str: Client identifier (IP address or forwarded IP)
        """
        # Check for forwarded IP (behind proxy/CDN)
        forwarded_for = request.headers.get('X-Forwarded-For')
        if forwarded_for:
            return forwarded_for.split(',')[0].strip()

        # Check for real IP (behind proxy)
        real_ip = request.headers.get('X-Real-IP')
        if real_ip:
            return real_ip

        # Fall back to direct client IP
        return request.client.host if request.client else 'unknown'

    def check(self, client_id: str) -> Tuple[bool, Dict[str, Any]]:
        """
        Check and record a request for a client.

        Args:
            client_id: Client identifier

        Returns:
            tuple: (is_limited, rate_limit_info)
        """
        current_time = self._clock()
        window_start = current_time - self.config.window_seconds

        if current_time - self._last_sweep >= self.config.window_seconds:
            self._sweep_idle_clients(window_start)
            self._last_sweep = current_time

        requests = self.memory_store[client_id]

        # Remove requests that left the window
        while requests and requests[0] <= window_start:
            requests.popleft()

        self.metrics['total_requests'] += 1
        is_limited = len(requests) >= self.config.max_requests

        if is_limited:
            self.metrics['rate_limited_requests'] += 1
        else:
            requests.append(current_time)

        reset_time = (requests[0] if requests else current_time) + self.config.window_seconds
        rate_limit_info = {
            'limit': self.config.max_requests,
            'remaining': max(0, self.config.max_requests - len(requests)),
            'reset_time': int(reset_time),
            'retry_after': max(1, int(reset_time - current_time))
        }

        return is_limited, rate_limit_info

    def _sweep_idle_clients(self, window_start: float):
        """Drop clients whose newest request already left the window."""
        idle = [client for client, requests in self.memory_store.items() if not requests or requests[-1] <= window_start]
        for client in idle:
            del self.memory_store[client]

    def reset(self, client_id: Optional[str] = None):
        """Forget recorded requests for one client, or for everyone."""
        if client_id is None:
            self.memory_store.clear()
        else:
            self.memory_store.pop(client_id, None)

    def get_metrics(self) -> Dict[str, Any]:
        """Get current rate limiter metrics."""
        return {
            **self.metrics,
            'tracked_clients': len(self.memory_store),
            'config': {
                'max_requests': self.config.max_requests,
                'window_seconds': self.config.window_seconds
            }
        }


def _rate_limit_headers(rate_info: Dict[str, Any]) -> Dict[str, str]:
    return {
        "X-RateLimit-Limit": str(rate_info['limit']),
        "X-RateLimit-Remaining": str(rate_info['remaining']),
        "X-RateLimit-Reset": str(rate_info['reset_time']),
    }


async def rate_limit_middleware(request: Request, call_next: Callable) -> Response:
    """
    Rate limiting middleware for FastAPI.

    The limiter is taken from ``request.app.state.rate_limiter``.

    Args:
        request: FastAPI request
        call_next: Next middleware/endpoint

    Returns:
        Response with rate limiting applied
    """
    if request.url.path.rstrip('/') not in RATE_LIMITED_PATHS:
        return await call_next(request)

    rate_limiter: RateLimiter = request.app.state.rate_limiter
    client_id = rate_limiter.get_client_id(request)
    is_limited, rate_info = rate_limiter.check(client_id)

    if is_limited:
        logger.warning(
            f"Rate limit exceeded for {client_id}",
            extra={"client_id": client_id, "path": request.url.path}
        )
        error = RateLimitExceededError(retry_after=rate_info['retry_after'])
        return JSONResponse(
            status_code=error.status_code,
            content=error.to_dict(),
            headers={
                **_rate_limit_headers(rate_info),
                "Retry-After": str(rate_info['retry_after'])
            }
        )

    response = await call_next(request)
    response.headers.update(_rate_limit_headers(rate_info))
    return response
