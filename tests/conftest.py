"""Shared fixtures: listing markup builders and a manual clock."""

import pytest


CARD_TEMPLATE = """
<div class="create-ScamReportCard">
    <div class="create-ScamReportCard__category-section"><p>{category}</p></div>
    <div class="create-ScamReportCard__preview-description-wrapper">{description}</div>
    <div class="create-ReportedSection">
        <div class="create-ReportedSection__address-section">
            {image}
            <div class="create-ResponsiveAddress"><span class="create-ResponsiveAddress__text">{address}</span></div>
        </div>
        {domain}
    </div>
    <div class="create-ScamReportCard__submitted-info">
        <span>Submitted by</span><span>anonymous</span><span>{submitted}</span>
    </div>
</div>
"""


class ManualClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    """Manual clock starting at t=1000s."""
    return ManualClock()


@pytest.fixture
def make_card():
    """Factory for one report card's markup."""
    def _make(
        category="Phishing Scam",
        description="Drainer posing as support @walletdrainer",
        address="0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed",
        domain="wallet-support.example",
        submitted="5 minutes",
        image_alt="ETH logo",
    ):
        image = f'<img alt="{image_alt}" src="/chains/eth.svg">' if image_alt is not None else ""
        domain_html = (
            f'<div class="create-ReportedSection__domain">{domain}</div>'
            if domain is not None else ""
        )
        return CARD_TEMPLATE.format(
            category=category,
            description=description,
            image=image,
            address=address,
            domain=domain_html,
            submitted=submitted,
        )
    return _make


@pytest.fixture
def make_listing():
    """Factory for a listing page with an optional results title."""
    def _make(cards=(), count=None):
        title = (
            f'<h2 class="create-ResultsSection__results-title">{count} results</h2>'
            if count is not None else ""
        )
        return f"<html><body><main>{title}{''.join(cards)}</main></body></html>"
    return _make
