"""Tests for data models."""

import dataclasses
import uuid
import pytest

from reports_scraper.core.models import IdentityTuple, Report


@pytest.fixture
def report():
    return Report(
        category="Phishing Scam",
        name="walletdrainer",
        address="0xabc",
        type="ETH",
        domain="wallet-support.example",
        time_of_day="11:55:00",
        date="2024-05-01",
    )


class TestReport:
    """Tests for Report dataclass."""

    def test_generates_uuid4(self, report):
        """Test a fresh v4 UUID is assigned."""
        assert isinstance(report.id, uuid.UUID)
        assert report.id.version == 4

    def test_ids_unique(self, report):
        """Test two reports never share an id."""
        other = dataclasses.replace(report, id=uuid.uuid4())
        assert other.id != report.id

    def test_identity(self, report):
        """Test identity excludes id and time fields."""
        assert report.identity == IdentityTuple(
            "Phishing Scam", "walletdrainer", "0xabc", "ETH", "wallet-support.example"
        )

    def test_immutable(self, report):
        """Test reports cannot be modified."""
        with pytest.raises(dataclasses.FrozenInstanceError):
            report.name = "changed"

    def test_to_dict(self, report):
        """Test JSON shape."""
        data = report.to_dict()

        assert data == {
            "id": str(report.id),
            "category": "Phishing Scam",
            "name": "walletdrainer",
            "address": "0xabc",
            "type": "ETH",
            "domain": "wallet-support.example",
            "timestamp": "11:55:00",
            "date": "2024-05-01",
        }
