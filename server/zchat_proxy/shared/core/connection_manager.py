"""
Connection management.
"""
from typing import Optional

import httpx
from loguru import logger

from .config import Settings


class ConnectionManager:
    """
    Owns the pooled HTTP client used for upstream calls.
    This is initialized once in app lifespan and passed via app.state.

    Only connections are shared; no per-request state lives here.
    """

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self._http: Optional[httpx.AsyncClient] = None

    async def initialize(self) -> None:
        """Create the HTTP client pool at startup."""
        if self._http is not None:
            logger.warning("ConnectionManager already initialized, skipping")
            return

        self._http = httpx.AsyncClient(
            timeout=httpx.Timeout(self.settings.upstream_timeout),
            limits=httpx.Limits(
                max_connections=self.settings.http_max_connections,
                max_keepalive_connections=self.settings.http_keepalive_connections
            ),
            follow_redirects=True,
        )
        logger.info(f"HTTP client initialized (max_connections={self.settings.http_max_connections})")

    async def get_http_client(self) -> httpx.AsyncClient:
        """Get shared HTTP client."""
        if self._http is None:
            raise RuntimeError("ConnectionManager not initialized. Call initialize() first.")
        return self._http

    async def close(self) -> None:
        """Cleanup connections gracefully."""
        if self._http is not None:
            try:
                await self._http.aclose()
                logger.info("HTTP client closed")
            except Exception as e:
                logger.error(f"Error closing HTTP client: {e}")
            self._http = None
