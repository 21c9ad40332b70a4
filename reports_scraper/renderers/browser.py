"""
Headless browser renderer (Playwright Chromium).

The report listing builds its cards client-side, so the default
renderer navigates with a real browser, waits for the requested
selector to become visible and captures the resulting DOM.
"""

from typing import Optional

from playwright.async_api import Browser, Page, Playwright, async_playwright
from playwright.async_api import Error as PlaywrightError

from reports_scraper.core.exceptions import RenderError

from .base import PageRenderer


BROWSER_ARGS = [
    "--disable-blink-features=AutomationControlled",
    "--disable-dev-shm-usage",  # Overcome limited resource problems
    "--disable-gpu",
    "--no-sandbox",
    "--disable-setuid-sandbox",
]


class BrowserRenderer(PageRenderer):
    """
    Renderer that drives headless Chromium.

    One browser is shared between renders and relaunched if it
    disconnects. Every render gets a fresh page that is closed afterwards.
    """

    def __init__(self, timeout: float = 30.0, headless: bool = True):
        """
        Initialize renderer.

        Args:
            timeout: Navigation and selector wait timeout in seconds
            headless: Run Chromium without a window
        """
        super().__init__()
        self.timeout_ms = int(timeout * 1000)
        self.headless = headless

        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None

    async def __aenter__(self) -> "BrowserRenderer":
        """Start Playwright and launch Chromium."""
        self._playwright = await async_playwright().start()
        self._browser = await self._launch()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Close the browser and stop Playwright."""
        if self._browser:
            await self._browser.close()
            self._browser = None
        if self._playwright:
            await self._playwright.stop()
            self._playwright = None

    async def _launch(self) -> Browser:
        browser = await self._playwright.chromium.launch(
            headless=self.headless,
            args=BROWSER_ARGS,
        )
        self.logger.info("browser_launched", headless=self.headless)
        return browser

    async def _connected_browser(self) -> Browser:
        """Shared browser, relaunched if Chromium has gone away."""
        if self._browser is None or not self._browser.is_connected():
            self.logger.warning("browser_disconnected")
            self._browser = await self._launch()
        return self._browser

    async def _close_page(self, page: Page, url: str) -> None:
        try:
            await page.close()
        except PlaywrightError as e:
            # Page died with its browser; nothing left to release
            self.logger.warning("page_close_failed", url=url, error=str(e))

    async def render(self, url: str, wait_for: Optional[str] = None) -> str:
        if not self._playwright:
            raise RuntimeError("Renderer not initialized. Use 'async with' context.")

        page: Optional[Page] = None
        try:
            browser = await self._connected_browser()
            page = await browser.new_page()
            await page.goto(url, wait_until="domcontentloaded", timeout=self.timeout_ms)
            if wait_for:
                await page.wait_for_selector(wait_for, state="visible", timeout=self.timeout_ms)
            return await page.content()
        except PlaywrightError as e:
            self.logger.warning("render_failed", url=url, wait_for=wait_for, error=str(e))
            raise RenderError(url, str(e)) from e
        finally:
            if page is not None:
                await self._close_page(page, url)
