"""
Base class for page renderers.

Renderers are the fetch collaborator of the pipeline: given a URL they
return the page's rendered markup. The scheduler and parser never know
whether a headless browser or a plain HTTP fetch produced it.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import structlog

from reports_scraper.core.selectors import CARD_SELECTOR, RESULTS_COUNT_SELECTOR

logger = structlog.get_logger(__name__)


@dataclass
class ListingConfig:
    """Configuration of the paginated report listing."""

    listing_url: str = "https://www.chainabuse.com/reports"
    page_param: str = "page"
    page_size: int = 15

    # Selectors the renderer waits for
    card_selector: str = CARD_SELECTOR
    count_selector: str = RESULTS_COUNT_SELECTOR

    # Optional safety limit for pagination
    max_pages: Optional[int] = None

    def page_url(self, index: int) -> str:
        """URL of the zero-based listing page `index`."""
        parts = urlsplit(self.listing_url)
        query = [(k, v) for k, v in parse_qsl(parts.query) if k != self.page_param]
        query.append((self.page_param, str(index)))
        return urlunsplit(parts._replace(query=urlencode(query)))

    @classmethod
    def from_dict(cls, data: dict) -> "ListingConfig":
        """Create from dictionary (e.g., from YAML)."""
        defaults = cls()
        max_pages = data.get("max_pages")
        return cls(
            listing_url=data.get("listing_url", defaults.listing_url),
            page_param=data.get("page_param", defaults.page_param),
            page_size=int(data.get("page_size", defaults.page_size)),
            card_selector=data.get("card_selector", defaults.card_selector),
            count_selector=data.get("count_selector", defaults.count_selector),
            max_pages=int(max_pages) if max_pages not in (None, "") else None,
        )


class PageRenderer(ABC):
    """
    Abstract base class for page renderers.

    Renderers are async context managers; resources (HTTP pools,
    browsers) live between __aenter__ and __aexit__.
    """

    def __init__(self):
        self.logger = logger.bind(renderer=self.__class__.__name__)

    async def __aenter__(self) -> "PageRenderer":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        return None

    @abstractmethod
    async def render(self, url: str, wait_for: Optional[str] = None) -> str:
        """
        Fetch a page and return its rendered markup.

        Args:
            url: Page URL
            wait_for: CSS selector that must be present before capture

        Returns:
            Markup string

        Raises:
            RenderError: If the page cannot be fetched or rendered
        """

    async def discover_count_markup(self, listing: ListingConfig) -> str:
        """Render the listing summary that carries the total result count."""
        return await self.render(listing.listing_url, wait_for=listing.count_selector)

    async def render_page(self, listing: ListingConfig, index: int) -> str:
        """Render the zero-based listing page `index`."""
        return await self.render(listing.page_url(index), wait_for=listing.card_selector)

    def get_strategy_name(self) -> str:
        """Return human-readable strategy name."""
        return self.__class__.__name__
