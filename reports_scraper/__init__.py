"""
Reports Scraper - periodic harvester for a paginated report listing.

Architecture:
- core/: Stable foundation (models, normalizers, dedup gate, rate limiter)
- renderers/: Page fetch strategies (headless browser, plain HTTP)
- parsers/: Report card extraction from rendered markup
- storage/: Report persistence (SQL, in-memory)
- api/: Read-only HTTP API
- config/: YAML-driven settings
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
