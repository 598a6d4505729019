"""
Keep-alive pinger for vidlink.

Hosts that put idle services to sleep are kept awake by periodically
requesting the service's own ``/ping`` route over its public address.
"""

import asyncio
import logging
from typing import Callable, Optional

import httpx


logger = logging.getLogger(__name__)


class KeepAlivePinger:
    """
    Background task that GETs ``<base_url>/ping`` every ``interval`` seconds.

    Failures are logged and swallowed; the task only ends when ``stop()`` is
    called.
    """

    def __init__(
        self,
        base_url: str,
        interval: float = 14 * 60,
        timeout: float = 10.0,
        client_factory: Optional[Callable[[], httpx.AsyncClient]] = None,
    ):
        self.ping_url = f"{base_url.rstrip('/')}/ping"
        self.interval = interval
        self.timeout = timeout
        self._client_factory = client_factory or (lambda: httpx.AsyncClient(timeout=self.timeout))
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def ping(self) -> bool:
        """
        Issue a single ping.

        Returns:
            True if the service answered with a 2xx status
        """
        try:
            async with self._client_factory() as client:
                response = await client.get(self.ping_url)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning(f"Keep-alive ping to {self.ping_url} failed: {e}")
            return False
        except Exception as e:
            logger.error(f"Keep-alive ping to {self.ping_url} raised unexpectedly: {e}", exc_info=True)
            return False

        logger.info(f"Keep-alive ping succeeded ({response.status_code})")
        return True

    async def _run(self):
        while True:
            await asyncio.sleep(self.interval)
            await self.ping()

    def start(self):
        """Schedule the ping loop on the running event loop."""
        if self.running:
            return
        logger.info(f"Starting keep-alive pinger for {self.ping_url} every {self.interval:g}s")
        self._task = asyncio.create_task(self._run())

    async def stop(self):
        """Cancel the ping loop and wait for it to finish."""
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Keep-alive pinger stopped")
