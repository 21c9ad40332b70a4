"""
Page renderers (the fetch collaborator).

Strategies:
- BrowserRenderer: headless Chromium, for client-side rendered listings
- HttpRenderer: plain HTTP GET, for server-side rendered listings
"""

from .base import ListingConfig, PageRenderer
from .browser import BrowserRenderer
from .http import HttpRenderer

RENDERERS = {
    "browser": BrowserRenderer,
    "http": HttpRenderer,
}


def create_renderer(
    kind: str,
    timeout: float = 30.0,
    requests_per_second: float = 2.0,
    headless: bool = True,
) -> PageRenderer:
    """
    Create the renderer selected by configuration.

    Args:
        kind: "browser" or "http"
        timeout: Page timeout in seconds
        requests_per_second: Politeness limit (http renderer)
        headless: Run without a window (browser renderer)

    Returns:
        Unentered PageRenderer
    """
    if kind not in RENDERERS:
        raise ValueError(f"Unknown renderer: {kind} (expected one of {sorted(RENDERERS)})")

    if kind == "browser":
        return BrowserRenderer(timeout=timeout, headless=headless)

    return HttpRenderer(requests_per_second=requests_per_second, timeout=timeout)


__all__ = [
    "ListingConfig",
    "PageRenderer",
    "BrowserRenderer",
    "HttpRenderer",
    "RENDERERS",
    "create_renderer",
]
