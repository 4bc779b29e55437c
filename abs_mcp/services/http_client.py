"""
Shared httpx client for talking to the ABS API.

One pooled AsyncClient (HTTP/2, keep-alive) is created lazily per event loop
and reused by every ABSApiClient that was not handed its own client. The
manager never retries; each request is one attempt bounded by the
configured timeout.

Usage:
    >>> client = await HTTPClientManager.get_client()
    >>> await HTTPClientManager.close()  # on shutdown
"""
import asyncio
import logging
from typing import Optional

import httpx

from .. import __version__
from ..config import get_settings

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {
    "Accept": "application/xml",
    "User-Agent": f"abs-mcp/{__version__}",
}


class HTTPClientManager:
    """Process-wide holder of the pooled client and the lock guarding its creation."""

    _client: Optional[httpx.AsyncClient] = None
    _lock: Optional[asyncio.Lock] = None
    _loop_id: Optional[int] = None

    @classmethod
    def _get_lock(cls) -> asyncio.Lock:
        """Lock bound to the running event loop, recreated when the loop changes."""
        try:
            current_loop_id = id(asyncio.get_running_loop())
        except RuntimeError:
            current_loop_id = None

        # Create new lock if none exists or if event loop changed
        if cls._lock is None or cls._loop_id != current_loop_id:
            cls._lock = asyncio.Lock()
            cls._loop_id = current_loop_id

        return cls._lock

    @classmethod
    async def get_client(cls) -> httpx.AsyncClient:
        """Return the pooled client, building it on first use in this loop."""
        # A client bound to a previous event loop cannot be reused
        if cls._client is not None and cls._loop_id != id(asyncio.get_running_loop()):
            await cls._discard_client()

        if cls._client is None:
            lock = cls._get_lock()
            async with lock:
                # Double-check pattern
                if cls._client is None:
                    settings = get_settings()
                    cls._client = httpx.AsyncClient(
                        timeout=httpx.Timeout(
                            settings.http_timeout,
                            connect=settings.connect_timeout
                        ),
                        limits=httpx.Limits(
                            max_connections=settings.max_connections,
                            max_keepalive_connections=settings.max_keepalive_connections
                        ),
                        headers=DEFAULT_HEADERS,
                        follow_redirects=True,
                        http2=True
                    )
                    cls._loop_id = id(asyncio.get_running_loop())
                    logger.info("Shared ABS HTTP client created")
        return cls._client

    @classmethod
    async def _discard_client(cls) -> None:
        client, cls._client = cls._client, None
        if client is None:
            return
        try:
            await client.aclose()
        except (httpx.HTTPError, RuntimeError) as e:
            logger.warning(f"Error closing HTTP client: {e}")

    @classmethod
    async def close(cls) -> None:
        """Close the shared HTTP client and release resources."""
        lock = cls._get_lock()
        async with lock:
            if cls._client is not None:
                await cls._discard_client()
                logger.info("HTTP client closed")

    @classmethod
    def is_initialized(cls) -> bool:
        """Check if client is initialized."""
        return cls._client is not None
