"""In-process report store for development runs and tests."""

import uuid
from typing import Optional

import structlog

from reports_scraper.core.models import IdentityTuple, Report

from .base import ReportStore

logger = structlog.get_logger(__name__)


class MemoryReportStore(ReportStore):
    """Report store backed by a dict; contents are lost on exit."""

    def __init__(self):
        self._reports: dict[uuid.UUID, Report] = {}
        self._identities: set[IdentityTuple] = set()

    async def exists(self, identity: IdentityTuple) -> bool:
        return identity in self._identities

    async def insert(self, report: Report) -> None:
        self._reports[report.id] = report
        self._identities.add(report.identity)
        logger.debug("report_stored", id=str(report.id))

    async def select_all(self) -> list[Report]:
        return list(self._reports.values())

    async def select_by_id(self, report_id: uuid.UUID) -> Optional[Report]:
        return self._reports.get(report_id)

    def __len__(self) -> int:
        return len(self._reports)
