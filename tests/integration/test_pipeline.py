"""Integration tests for the full ingestion pipeline."""

import asyncio
import pytest
from datetime import datetime, timedelta, timezone

from reports_scraper.core.deduplicator import DedupGate
from reports_scraper.core.exceptions import RenderError
from reports_scraper.orchestrator import (
    IngestionScheduler,
    SchedulerState,
    pages_for,
)
from reports_scraper.parsers.report_card import ReportCardParser
from reports_scraper.renderers.base import ListingConfig, PageRenderer
from reports_scraper.storage.memory import MemoryReportStore


LISTING_URL = "https://reports.example/reports"
NOW = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


def page(index: int) -> str:
    return f"{LISTING_URL}?page={index}"


class FakeRenderer(PageRenderer):
    """Renderer serving canned markup per URL."""

    def __init__(self, pages: dict, release: asyncio.Event = None):
        super().__init__()
        self.pages = pages
        self.release = release
        self.requested = []

    async def render(self, url, wait_for=None):
        self.requested.append(url)
        if self.release is not None:
            await self.release.wait()

        outcome = self.pages.get(url)
        if outcome is None:
            raise RenderError(url, "404 Not Found")
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def build_scheduler(renderer, store, now=None, **listing_overrides) -> IngestionScheduler:
    return IngestionScheduler(
        renderer=renderer,
        parser=ReportCardParser(),
        gate=DedupGate(store),
        listing=ListingConfig(listing_url=LISTING_URL, **listing_overrides),
        interval_seconds=0.01,
        now=now or (lambda: NOW),
    )


class TestPagesFor:
    """Tests for the page count policy."""

    def test_empty_listing_visits_one_page(self):
        """Test zero results still visit one page."""
        assert pages_for(0, 15) == 1

    def test_exact_multiple_visits_extra_page(self):
        """Test an exact multiple visits one extra page."""
        assert pages_for(15, 15) == 2
        assert pages_for(30, 15) == 3

    def test_partial_page(self):
        """Test partial last page."""
        assert pages_for(14, 15) == 1
        assert pages_for(16, 15) == 2

    def test_invalid_page_size(self):
        """Test page size must be positive."""
        with pytest.raises(ValueError):
            pages_for(10, 0)


class TestIngestionPass:
    """Tests for IngestionScheduler.run_pass."""

    @pytest.mark.asyncio
    async def test_two_passes_deduplicate(self, make_card, make_listing):
        """Test re-scraping the same cards later stores each report once."""
        cards = [make_card(address=f"addr-{i}") for i in range(3)]
        renderer = FakeRenderer({
            LISTING_URL: make_listing(count=3),
            page(0): make_listing(cards, count=3),
        })
        store = MemoryReportStore()
        times = iter([NOW, NOW + timedelta(hours=1)])
        scheduler = build_scheduler(renderer, store, now=lambda: next(times))

        first = await scheduler.run_pass()
        second = await scheduler.run_pass()

        assert first.inserted == 3
        assert second.inserted == 0
        assert second.skipped == 3
        reports = await store.select_all()
        assert [r.address for r in reports] == ["addr-0", "addr-1", "addr-2"]
        assert all(r.time_of_day == "11:55:00" for r in reports)
        assert scheduler.passes_completed == 2

    @pytest.mark.asyncio
    async def test_visits_every_page_in_order(self, make_card, make_listing):
        """Test pages are rendered in increasing order."""
        renderer = FakeRenderer({
            LISTING_URL: make_listing(count=15),
            page(0): make_listing([make_card(address="first")], count=15),
            page(1): make_listing([make_card(address="second")], count=15),
        })
        store = MemoryReportStore()

        stats = await build_scheduler(renderer, store).run_pass()

        assert renderer.requested == [LISTING_URL, page(0), page(1)]
        assert stats.total_count == 15
        assert stats.pages == 2
        assert stats.candidates == 2
        assert [r.address for r in await store.select_all()] == ["first", "second"]

    @pytest.mark.asyncio
    async def test_failed_page_is_skipped(self, make_card, make_listing):
        """Test a page render failure skips only that page."""
        renderer = FakeRenderer({
            LISTING_URL: make_listing(count=20),
            page(1): make_listing([make_card(address="a"), make_card(address="b")]),
        })
        store = MemoryReportStore()

        stats = await build_scheduler(renderer, store).run_pass()

        assert stats.aborted is False
        assert stats.pages == 2
        assert stats.pages_failed == 1
        assert stats.inserted == 2
        assert len(store) == 2

    @pytest.mark.asyncio
    async def test_count_render_failure_aborts(self, make_listing):
        """Test an unrenderable summary aborts the pass."""
        renderer = FakeRenderer({page(0): make_listing()})
        store = MemoryReportStore()
        scheduler = build_scheduler(renderer, store)

        stats = await scheduler.run_pass()

        assert stats.aborted is True
        assert stats.pages == 0
        assert renderer.requested == [LISTING_URL]
        assert scheduler.state is SchedulerState.IDLE

    @pytest.mark.asyncio
    async def test_missing_count_aborts(self, make_card, make_listing):
        """Test a summary without a count aborts the pass."""
        renderer = FakeRenderer({LISTING_URL: make_listing([make_card()])})

        stats = await build_scheduler(renderer, MemoryReportStore()).run_pass()

        assert stats.aborted is True
        assert stats.error

    @pytest.mark.asyncio
    async def test_max_pages_cap(self, make_listing):
        """Test the optional page cap limits rendering."""
        renderer = FakeRenderer({
            LISTING_URL: make_listing(count=100),
            page(0): make_listing(),
            page(1): make_listing(),
        })

        stats = await build_scheduler(renderer, MemoryReportStore(), max_pages=2).run_pass()

        assert stats.pages == 2
        assert renderer.requested == [LISTING_URL, page(0), page(1)]

    @pytest.mark.asyncio
    async def test_bad_cards_do_not_stop_page(self, make_card, make_listing):
        """Test unresolvable cards are skipped within a page."""
        renderer = FakeRenderer({
            LISTING_URL: make_listing(count=2),
            page(0): make_listing([
                make_card(address="ok"),
                make_card(address="bad", submitted="recently"),
            ]),
        })
        store = MemoryReportStore()

        stats = await build_scheduler(renderer, store).run_pass()

        assert stats.candidates == 1
        assert [r.address for r in await store.select_all()] == ["ok"]

    @pytest.mark.asyncio
    async def test_concurrent_pass_rejected(self, make_listing):
        """Test a second pass cannot start while one is running."""
        release = asyncio.Event()
        renderer = FakeRenderer({LISTING_URL: make_listing(count=0), page(0): make_listing()}, release)
        scheduler = build_scheduler(renderer, MemoryReportStore())

        running = asyncio.create_task(scheduler.run_pass())
        while scheduler.state is not SchedulerState.RUNNING:
            await asyncio.sleep(0)

        with pytest.raises(RuntimeError):
            await scheduler.run_pass()

        release.set()
        stats = await running
        assert stats.aborted is False
        assert scheduler.state is SchedulerState.IDLE


class TestRunForever:
    """Tests for IngestionScheduler.run_forever."""

    @pytest.mark.asyncio
    async def test_survives_unexpected_errors(self):
        """Test the loop keeps going after a pass blows up."""
        renderer = FakeRenderer({LISTING_URL: ValueError("unexpected markup")})
        scheduler = build_scheduler(renderer, MemoryReportStore())

        task = asyncio.create_task(scheduler.run_forever())

        async def two_passes():
            while scheduler.passes_completed < 2:
                await asyncio.sleep(0.01)

        await asyncio.wait_for(two_passes(), timeout=5)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert scheduler.state is SchedulerState.IDLE
