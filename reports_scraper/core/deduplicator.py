"""
Report deduplication against persistent storage.

A candidate is written only when no stored row carries the same
identity tuple. Resolved submission times are not part of the identity,
so re-scraping the same remote report later is recognized as a duplicate.
"""

from dataclasses import dataclass
from typing import Optional

import structlog

from .exceptions import StorageError
from .models import IdentityTuple, Report

logger = structlog.get_logger(__name__)


@dataclass
class DeduplicationResult:
    """Result of running one candidate through the gate."""
    is_duplicate: bool
    action: str = "insert"  # insert, skip, drop
    error: Optional[str] = None


class DedupGate:
    """
    Storage-backed deduplication gate.

    The check-then-insert sequence is not atomic; it relies on the
    scheduler running a single pass at a time.
    """

    def __init__(self, store):
        """
        Initialize gate.

        Args:
            store: ReportStore used for existence checks and inserts
        """
        self.store = store
        self.stats = {
            "inserted": 0,
            "skipped": 0,
            "dropped": 0,
        }

    async def exists(
        self,
        category: str,
        name: str,
        address: str,
        type: str,
        domain: str,
    ) -> bool:
        """
        Check whether a report with this identity is already stored.

        Matching is exact and case-sensitive on all five fields.

        Raises:
            StorageError: If the store query fails
        """
        identity = IdentityTuple(
            category=category,
            name=name,
            address=address,
            type=type,
            domain=domain,
        )
        return await self.store.exists(identity)

    async def persist(self, report: Report) -> DeduplicationResult:
        """
        Insert a candidate unless an identical report is already stored.

        A failed existence check never counts as "not found": the
        candidate is dropped for this pass instead of risking a duplicate.

        Args:
            report: Candidate report

        Returns:
            DeduplicationResult with the action taken
        """
        try:
            duplicate = await self.exists(*report.identity)
        except StorageError as e:
            logger.error(
                "dedup_check_failed",
                id=str(report.id),
                category=report.category,
                address=report.address,
                error=str(e),
            )
            self.stats["dropped"] += 1
            return DeduplicationResult(is_duplicate=False, action="drop", error=str(e))

        if duplicate:
            logger.debug(
                "report_skipped_duplicate",
                category=report.category,
                address=report.address,
            )
            self.stats["skipped"] += 1
            return DeduplicationResult(is_duplicate=True, action="skip")

        try:
            await self.store.insert(report)
        except StorageError as e:
            logger.error(
                "report_insert_failed",
                id=str(report.id),
                error=str(e),
            )
            self.stats["dropped"] += 1
            return DeduplicationResult(is_duplicate=False, action="drop", error=str(e))

        logger.info(
            "report_inserted",
            id=str(report.id),
            category=report.category,
            address=report.address[:50],
        )
        self.stats["inserted"] += 1
        return DeduplicationResult(is_duplicate=False, action="insert")

    def reset_stats(self) -> None:
        """Zero the counters (called at the start of each pass)."""
        for key in self.stats:
            self.stats[key] = 0
