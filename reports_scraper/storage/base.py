"""
Base class for report stores.

A store is the only persistence collaborator of the pipeline and API:
existence checks on the identity tuple, inserts, and two read queries.
"""

import uuid
from abc import ABC, abstractmethod
from typing import Optional

from reports_scraper.core.models import IdentityTuple, Report


class ReportStore(ABC):
    """
    Abstract report store.

    Implementations raise StorageError for any query or write failure.
    """

    async def initialize(self) -> None:
        """Prepare the store (create schema, open pools)."""

    async def close(self) -> None:
        """Release resources held by the store."""

    @abstractmethod
    async def exists(self, identity: IdentityTuple) -> bool:
        """
        Check for a stored report with exactly this identity tuple.

        Args:
            identity: (category, name, address, type, domain)

        Returns:
            True if a matching row exists
        """

    @abstractmethod
    async def insert(self, report: Report) -> None:
        """
        Persist a new report.

        Args:
            report: Report to insert
        """

    @abstractmethod
    async def select_all(self) -> list[Report]:
        """Return every stored report."""

    @abstractmethod
    async def select_by_id(self, report_id: uuid.UUID) -> Optional[Report]:
        """
        Look up a report by id.

        Returns:
            Report, or None if no row has this id
        """
