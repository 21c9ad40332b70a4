"""
Ingestion scheduler for the report listing.

Coordinates:
- Total count discovery and page planning
- Page rendering
- Card extraction
- Deduplication and persistence

Passes run strictly one after another, separated by a fixed interval.
"""

import asyncio
import time
from dataclasses import asdict, dataclass
from datetime import datetime
from enum import Enum
from typing import Callable, Optional

import structlog

from .core.deduplicator import DedupGate
from .core.exceptions import CountDiscoveryError, RenderError
from .parsers.report_card import ReportCardParser
from .renderers.base import ListingConfig, PageRenderer

logger = structlog.get_logger(__name__)


class SchedulerState(str, Enum):
    """Scheduler lifecycle state."""
    IDLE = "idle"  # Waiting for the next interval
    RUNNING = "running"  # A pass is in progress


@dataclass
class PassStats:
    """Outcome of one ingestion pass."""
    total_count: Optional[int] = None
    pages: int = 0
    pages_failed: int = 0
    candidates: int = 0
    inserted: int = 0
    skipped: int = 0
    dropped: int = 0
    aborted: bool = False
    error: Optional[str] = None
    duration_seconds: float = 0.0

    def to_dict(self) -> dict:
        return asdict(self)


def pages_for(total_count: int, page_size: int) -> int:
    """
    Number of listing pages to visit for a result count.

    Always `total_count // page_size + 1`: an empty listing still gets
    one page, and an exact multiple of the page size visits one extra
    (possibly empty) page. Pagination is not corrected adaptively.
    """
    if page_size < 1:
        raise ValueError("page_size must be >= 1")

    return total_count // page_size + 1


class IngestionScheduler:
    """
    Periodic scraper for the paginated report listing.

    The scheduler is the only writer of reports. A failure to discover
    the total count ends the current pass early; a failed content page
    is skipped; a failed candidate is dropped. None of these stop the
    loop.
    """

    def __init__(
        self,
        renderer: PageRenderer,
        parser: ReportCardParser,
        gate: DedupGate,
        listing: Optional[ListingConfig] = None,
        interval_seconds: float = 3600.0,
        now: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize scheduler.

        Args:
            renderer: Entered page renderer
            parser: Card parser (fixes the name policy)
            gate: Dedup gate over the report store
            listing: Listing configuration
            interval_seconds: Sleep between the end of one pass and the next
            now: Reference clock for relative times (defaults to local now)
        """
        self.renderer = renderer
        self.parser = parser
        self.gate = gate
        self.listing = listing or ListingConfig()
        self.interval_seconds = interval_seconds
        self._now = now or (lambda: datetime.now().astimezone())

        self.state = SchedulerState.IDLE
        self.passes_completed = 0
        self.last_stats: Optional[PassStats] = None

    async def run_forever(self) -> None:
        """
        Run passes until cancelled.

        Unexpected errors inside a pass are logged and the loop goes
        back to waiting for the next interval.
        """
        logger.info(
            "scheduler_started",
            interval_seconds=self.interval_seconds,
            renderer=self.renderer.get_strategy_name(),
            listing=self.listing.listing_url,
        )

        while True:
            try:
                await self.run_pass()
            except Exception as e:
                logger.exception("pass_failed", error=str(e))

            logger.info("scheduler_idle", next_pass_in=self.interval_seconds)
            await asyncio.sleep(self.interval_seconds)

    async def run_pass(self) -> PassStats:
        """
        Run one full crawl of the listing.

        Returns:
            PassStats for the pass

        Raises:
            RuntimeError: If a pass is already running
        """
        if self.state is SchedulerState.RUNNING:
            raise RuntimeError("An ingestion pass is already running")

        self.state = SchedulerState.RUNNING
        self.gate.reset_stats()
        started = time.monotonic()
        stats = PassStats()

        logger.info("pass_started", pass_number=self.passes_completed + 1)

        try:
            await self._crawl(stats)
        finally:
            stats.inserted = self.gate.stats["inserted"]
            stats.skipped = self.gate.stats["skipped"]
            stats.dropped = self.gate.stats["dropped"]
            stats.duration_seconds = round(time.monotonic() - started, 3)

            self.last_stats = stats
            self.passes_completed += 1
            self.state = SchedulerState.IDLE

        logger.info("pass_complete", **stats.to_dict())
        return stats

    async def discover_total_count(self) -> int:
        """
        Render the listing summary and read the total result count.

        Raises:
            RenderError: If the summary page cannot be rendered
            CountDiscoveryError: If the count cannot be read
        """
        markup = await self.renderer.discover_count_markup(self.listing)
        return await asyncio.to_thread(self.parser.parse_total_count, markup)

    async def _crawl(self, stats: PassStats) -> None:
        """Discover the page count, then scrape every page in order."""
        try:
            total_count = await self.discover_total_count()
        except (RenderError, CountDiscoveryError) as e:
            logger.error("count_discovery_failed", error=str(e))
            stats.aborted = True
            stats.error = str(e)
            return

        pages = pages_for(total_count, self.listing.page_size)
        if self.listing.max_pages and pages > self.listing.max_pages:
            logger.warning(
                "pagination_capped",
                pages=pages,
                max_pages=self.listing.max_pages,
            )
            pages = self.listing.max_pages

        stats.total_count = total_count
        stats.pages = pages

        logger.info("pagination_planned", total_count=total_count, pages=pages)

        for index in range(pages):
            stats.candidates += await self._scrape_page(index, stats)

    async def _scrape_page(self, index: int, stats: PassStats) -> int:
        """
        Scrape one listing page and feed its cards through the gate.

        Returns:
            Number of candidates extracted from the page
        """
        url = self.listing.page_url(index)

        try:
            markup = await self.renderer.render_page(self.listing, index)
        except RenderError as e:
            logger.warning("page_skipped", page=index, url=url, error=str(e))
            stats.pages_failed += 1
            return 0

        try:
            candidates = await asyncio.to_thread(self.parser.parse, markup, self._now())
        except Exception as e:
            logger.exception("page_parse_failed", page=index, url=url, error=str(e))
            stats.pages_failed += 1
            return 0

        # Cards go through the gate in document order
        for report in candidates:
            await self.gate.persist(report)

        logger.info(
            "page_scraped",
            page=index + 1,
            total=stats.pages,
            url=url,
            candidates=len(candidates),
        )

        return len(candidates)
