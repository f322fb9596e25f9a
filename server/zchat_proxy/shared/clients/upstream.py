"""
Upstream Client - the single HTTP exchange seam to chat.z.ai.

Every network call the proxy makes goes through this wrapper around an
``httpx.AsyncClient``; tests swap the transport for ``httpx.MockTransport``.
"""

from typing import Any, Dict, Optional

import httpx
from loguru import logger

from ..core.exceptions import UpstreamUnavailableError


class UpstreamClient:
    """Thin async wrapper for exchanges with the upstream chat service."""

    def __init__(self, http_client: httpx.AsyncClient, base_url: str):
        """
        Args:
            http_client: Shared (pooled) async client
            base_url: Upstream origin, e.g. https://chat.z.ai
        """
        self._client = http_client
        self.base_url = base_url.rstrip("/")

    def url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    def browser_headers(self) -> Dict[str, str]:
        """Headers the upstream expects from its own web frontend."""
        return {
            "Origin": self.base_url,
            "Referer": f"{self.base_url}/",
            "Content-Type": "application/json",
        }

    async def get(self, path: str, headers: Optional[Dict[str, str]] = None) -> httpx.Response:
        try:
            return await self._client.get(self.url(path), headers=headers)
        except httpx.TransportError as e:
            logger.warning(f"GET {path} failed: {e!r}")
            raise UpstreamUnavailableError(f"Cannot reach upstream ({path}): {e}") from e

    async def post_json(
        self,
        path: str,
        body: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None
    ) -> httpx.Response:
        try:
            return await self._client.post(self.url(path), json=body, headers=headers)
        except httpx.TransportError as e:
            logger.warning(f"POST {path} failed: {e!r}")
            raise UpstreamUnavailableError(f"Cannot reach upstream ({path}): {e}") from e

    async def open_stream(
        self,
        path: str,
        body: Dict[str, Any],
        headers: Optional[Dict[str, str]] = None
    ) -> httpx.Response:
        """
        Send a POST and return once headers arrive, leaving the body unread.

        The caller owns the response and must ``aclose()`` it.
        """
        request = self._client.build_request("POST", self.url(path), json=body, headers=headers)
        try:
            return await self._client.send(request, stream=True)
        except httpx.TransportError as e:
            logger.warning(f"Streaming POST {path.split('?')[0]} failed: {e!r}")
            raise UpstreamUnavailableError(f"Cannot reach upstream chat endpoint: {e}") from e
