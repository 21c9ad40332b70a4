"""
Polite async HTTP client for listing pages.

Wraps httpx.AsyncClient and adds:
- A minimum delay between requests to the same host
- Browser-like headers with a rotating user agent

Failed requests are not retried: a page that cannot be fetched is
skipped for the current pass.
"""

import asyncio
import itertools
import time
from dataclasses import dataclass, field
from typing import Optional
from urllib.parse import urlsplit

import httpx
import structlog

logger = structlog.get_logger(__name__)


# Desktop browser identities, used round-robin
USER_AGENTS = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/17.0 Safari/605.1.15",
)

DEFAULT_HEADERS = {
    "Accept": "text/html,application/xhtml+xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
}


@dataclass
class DomainThrottle:
    """Spacing of requests to one host."""
    min_interval: float
    next_slot: float = 0.0
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)

    async def wait_turn(self) -> None:
        async with self.lock:
            delay = self.next_slot - time.monotonic()
            if delay > 0:
                await asyncio.sleep(delay)
            self.next_slot = time.monotonic() + self.min_interval


class HttpClient:
    """
    Async HTTP client with per-host politeness delay.

    Usage:
        async with HttpClient(requests_per_second=1.0) as client:
            markup = await client.get_text("https://www.chainabuse.com/reports?page=0")
    """

    def __init__(
        self,
        requests_per_second: float = 2.0,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize HTTP client.

        Args:
            requests_per_second: Politeness limit per host
            timeout: Request timeout in seconds
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        if requests_per_second <= 0:
            raise ValueError("requests_per_second must be > 0")

        self.min_interval = 1.0 / requests_per_second
        self.timeout = timeout
        self.transport = transport

        self._client: Optional[httpx.AsyncClient] = None
        self._throttles: dict[str, DomainThrottle] = {}
        self._agents = itertools.cycle(USER_AGENTS)

    async def __aenter__(self) -> "HttpClient":
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout),
            follow_redirects=True,
            headers=DEFAULT_HEADERS,
            transport=self.transport,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    def _throttle_for(self, url: str) -> DomainThrottle:
        host = urlsplit(url).netloc
        throttle = self._throttles.get(host)
        if throttle is None:
            throttle = self._throttles[host] = DomainThrottle(min_interval=self.min_interval)
        return throttle

    async def get(self, url: str) -> httpx.Response:
        """
        Fetch a URL once.

        Raises:
            httpx.HTTPError: On transport errors or a non-2xx status
        """
        if not self._client:
            raise RuntimeError("Client not initialized. Use 'async with' context.")

        await self._throttle_for(url).wait_turn()

        response = await self._client.get(url, headers={"User-Agent": next(self._agents)})
        response.raise_for_status()

        logger.debug(
            "http_fetched",
            url=url,
            status=response.status_code,
            size=len(response.content),
        )
        return response

    async def get_text(self, url: str) -> str:
        """Fetch a URL and return the decoded body."""
        response = await self.get(url)
        return response.text
