"""Tests for selector utilities."""

import pytest

from reports_scraper.core.selectors import Selector, first_word


@pytest.fixture
def sample_html():
    """Sample HTML for testing."""
    return """
    <html>
    <body>
        <div class="card">
            <p class="tag">Phishing</p>
            <p class="tag">Impersonation</p>
            <img src="/a.svg">
            <img alt="BTC logo" src="/btc.svg">
            <span>one</span><span>two</span><span>three</span>
        </div>
        <div class="card">
            <p class="tag">Rug pull</p>
        </div>
    </body>
    </html>
    """


@pytest.fixture
def page(sample_html):
    """Selector over the parsed sample document."""
    return Selector.from_markup(sample_html)


class TestSelector:
    """Tests for Selector class."""

    def test_css_selector(self, page):
        """Test CSS selector returns all matches in order."""
        result = page.css(".tag")

        assert result.found is True
        assert result.value == "Phishing"
        assert result.values == ["Phishing", "Impersonation", "Rug pull"]

    def test_css_one_selector(self, page):
        """Test CSS selector for the first match."""
        result = page.css_one(".card .tag")

        assert result.found is True
        assert result.value == "Phishing"

    def test_not_found(self, page):
        """Test missing elements produce an empty result."""
        result = page.css_one(".missing")

        assert result.found is False
        assert result.value is None

    def test_text_joins_matches(self, page):
        """Test text() concatenates matches without a separator."""
        assert page.each(".card")[0].text(".tag") == "PhishingImpersonation"

    def test_text_inline_children(self):
        """Test inline child nodes are concatenated as-is."""
        page = Selector.from_markup("<p> Phishing<b>Scam</b> </p><span>0xabc<i>def</i></span>")

        assert page.text("p") == " PhishingScam "
        assert page.text("span") == "0xabcdef"

    def test_text_missing(self, page):
        """Test text() of a missing element is empty."""
        assert page.text(".missing") == ""

    def test_nth_child(self, page):
        """Test structural pseudo-classes are supported."""
        assert page.text(".card > span:nth-child(7)") == "three"

    def test_attr_first_with_attribute(self, page):
        """Test attr() skips matches without the attribute."""
        assert page.attr(".card img", "alt") == "BTC logo"

    def test_attr_missing(self, page):
        """Test attr() returns empty string when nothing carries it."""
        assert page.attr(".card p", "alt") == ""

    def test_each_scopes_selection(self, page):
        """Test each() wraps matches as scoped selectors."""
        cards = page.each(".card")

        assert len(cards) == 2
        assert cards[1].text(".tag") == "Rug pull"
        assert cards[1].attr("img", "alt") == ""


class TestFirstWord:
    """Tests for first_word function."""

    def test_first_word(self):
        """Test first whitespace-delimited word."""
        assert first_word("ETH logo") == "ETH"

    def test_empty(self):
        """Test empty text."""
        assert first_word("") == ""
        assert first_word("   ") == ""
