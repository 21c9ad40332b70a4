"""
Plain HTTP renderer.

Returns the server-sent HTML as-is. Suitable for listings that are
rendered server-side; `wait_for` is ignored since nothing executes.
"""

from typing import Optional

import httpx

from reports_scraper.core.exceptions import RenderError
from reports_scraper.core.http_client import HttpClient

from .base import PageRenderer


class HttpRenderer(PageRenderer):
    """Renderer backed by the shared async HTTP client."""

    def __init__(
        self,
        http_client: Optional[HttpClient] = None,
        requests_per_second: float = 2.0,
        timeout: float = 30.0,
    ):
        """
        Initialize renderer.

        Args:
            http_client: Shared, already entered HTTP client (creates own if not provided)
            requests_per_second: Politeness limit for an owned client
            timeout: Request timeout for an owned client
        """
        super().__init__()
        self.http_client = http_client
        self.requests_per_second = requests_per_second
        self.timeout = timeout
        self._owns_client = http_client is None

    async def __aenter__(self) -> "HttpRenderer":
        """Enter async context."""
        if self._owns_client:
            self.http_client = HttpClient(
                requests_per_second=self.requests_per_second,
                timeout=self.timeout,
            )
            await self.http_client.__aenter__()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Exit async context."""
        if self._owns_client and self.http_client:
            await self.http_client.__aexit__(exc_type, exc_val, exc_tb)
            self.http_client = None

    async def render(self, url: str, wait_for: Optional[str] = None) -> str:
        if not self.http_client:
            raise RuntimeError("Renderer not initialized. Use 'async with' context.")

        try:
            return await self.http_client.get_text(url)
        except httpx.HTTPError as e:
            self.logger.warning("render_failed", url=url, error=str(e))
            raise RenderError(url, str(e)) from e
