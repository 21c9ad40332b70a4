"""
Data models for the reports scraper.
"""

import uuid
from dataclasses import dataclass, field
from typing import NamedTuple


class IdentityTuple(NamedTuple):
    """Fields that identify the same remote report across passes."""
    category: str
    name: str
    address: str
    type: str
    domain: str


@dataclass(frozen=True)
class Report:
    """
    A single harvested report.

    Created by the card parser; the id is fresh per extraction attempt,
    so equality across passes is decided by `identity`, never by id.
    """

    category: str
    name: str
    address: str
    type: str
    domain: str
    time_of_day: str  # HH:MM:SS
    date: str  # YYYY-MM-DD
    id: uuid.UUID = field(default_factory=uuid.uuid4)

    @property
    def identity(self) -> IdentityTuple:
        return IdentityTuple(
            category=self.category,
            name=self.name,
            address=self.address,
            type=self.type,
            domain=self.domain,
        )

    def to_dict(self) -> dict:
        """Convert to the JSON shape served by the API."""
        return {
            "id": str(self.id),
            "category": self.category,
            "name": self.name,
            "address": self.address,
            "type": self.type,
            "domain": self.domain,
            "timestamp": self.time_of_day,
            "date": self.date,
        }
