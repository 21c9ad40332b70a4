"""
Core layer - stable foundation for the scraping system.

Components:
- models: Report dataclass and identity tuple
- normalizer: relative time, display name, length capping
- selectors: CSS selection over rendered listing pages
- deduplicator: storage-backed dedup gate
- rate_limiter: per-client token buckets for the read API
- http_client: polite async HTTP client
"""

from .models import Report, IdentityTuple
from .normalizer import (
    resolve_relative_time,
    split_timestamp,
    sanitize_display_name,
    cap_length,
    parse_results_count,
)
from .deduplicator import DedupGate, DeduplicationResult
from .rate_limiter import RateLimiterRegistry, client_id
from .exceptions import (
    ReportsScraperError,
    RenderError,
    CountDiscoveryError,
    ExtractionError,
    StorageError,
)

__all__ = [
    "Report",
    "IdentityTuple",
    "resolve_relative_time",
    "split_timestamp",
    "sanitize_display_name",
    "cap_length",
    "parse_results_count",
    "DedupGate",
    "DeduplicationResult",
    "RateLimiterRegistry",
    "client_id",
    "ReportsScraperError",
    "RenderError",
    "CountDiscoveryError",
    "ExtractionError",
    "StorageError",
]
