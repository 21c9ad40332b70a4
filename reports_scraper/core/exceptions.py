"""Exception hierarchy for the scraping pipeline and API."""


class ReportsScraperError(Exception):
    """Base class for all reports scraper errors."""


class RenderError(ReportsScraperError):
    """A page could not be fetched or rendered."""

    def __init__(self, url: str, message: str):
        self.url = url
        super().__init__(f"{url}: {message}")


class CountDiscoveryError(ReportsScraperError):
    """The total result count could not be read from the listing."""


class ExtractionError(ReportsScraperError):
    """A single report card could not be turned into a Report."""


class StorageError(ReportsScraperError):
    """A storage query or write failed."""
