"""
Process entry point for vidlink.

Runs the application under uvicorn inside a small supervisor. Errors from
background tasks are logged and the service keeps running; an exception that
escapes the server itself is logged and ends the process with exit code 1.
"""

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

import uvicorn

from vidlink.core.config import Settings
from vidlink.main import configure_logging, create_app


logger = logging.getLogger(__name__)


def handle_loop_exception(loop: asyncio.AbstractEventLoop, context: dict):
    """Log exceptions nobody awaited (failed background tasks, callbacks)."""
    message = context.get("message", "Unhandled exception in event loop")
    logger.error(f"Unhandled background error: {message}", exc_info=context.get("exception"))


async def supervise(server: uvicorn.Server):
    loop = asyncio.get_running_loop()
    loop.set_exception_handler(handle_loop_exception)
    await server.serve()


def build_server(app_settings: Settings) -> uvicorn.Server:
    config = uvicorn.Config(
        create_app(app_settings),
        host=app_settings.host,
        port=app_settings.port,
        log_config=None,
        proxy_headers=True,
        forwarded_allow_ips="*",
    )
    return uvicorn.Server(config)


def main(argv: Optional[List[str]] = None):
    parser = argparse.ArgumentParser(description="Video Downloader API server")
    parser.add_argument("--host", help="Interface to bind (default: HOST or 0.0.0.0)")
    parser.add_argument("--port", type=int, help="Port to listen on (default: PORT or 3000)")
    args = parser.parse_args(argv)

    app_settings = Settings()
    if args.host:
        app_settings.host = args.host
    if args.port:
        app_settings.port = args.port

    configure_logging(app_settings)
    server = build_server(app_settings)
    logger.info(f"API Server running on port {app_settings.port}")

    try:
        asyncio.run(supervise(server))
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
    except Exception:
        logger.critical("Server crashed, shutting down", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
