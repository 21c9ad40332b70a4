"""
CSS selector interface for report listing pages.

Provides a consistent API for pulling text and attributes out of
rendered listing markup.
"""

from dataclasses import dataclass, field
from typing import Optional, Union

from bs4 import BeautifulSoup, Tag


# Listing-level selectors
CARD_SELECTOR = ".create-ScamReportCard"
RESULTS_COUNT_SELECTOR = ".create-ResultsSection__results-title"

# Card-level selectors (relative to one card)
CATEGORY_SELECTOR = ".create-ScamReportCard__category-section p"
DESCRIPTION_SELECTOR = ".create-ScamReportCard__preview-description-wrapper"
ADDRESS_SELECTOR = ".create-ReportedSection__address-section .create-ResponsiveAddress__text"
DOMAIN_SELECTOR = ".create-ReportedSection__domain"
SUBMITTED_TIME_SELECTOR = ".create-ScamReportCard__submitted-info > span:nth-child(3)"
ADDRESS_IMAGE_SELECTOR = ".create-ReportedSection__address-section img[alt]"


@dataclass
class SelectorResult:
    """Result from selector extraction."""
    value: Optional[str] = None
    values: list[str] = field(default_factory=list)
    element: Optional[Tag] = None
    elements: list[Tag] = field(default_factory=list)
    found: bool = False


class Selector:
    """
    CSS selector over a parsed document or a single element.

    Missing elements never raise; they produce an empty, not-found result.
    """

    def __init__(self, root: Union[BeautifulSoup, Tag]):
        """
        Initialize selector.

        Args:
            root: Parsed document or element to select within
        """
        self.root = root

    @classmethod
    def from_markup(cls, markup: str) -> "Selector":
        """Parse markup with lxml and wrap the document."""
        return cls(BeautifulSoup(markup, "lxml"))

    def css(self, selector: str) -> SelectorResult:
        """
        Select all elements matching a CSS selector.

        Args:
            selector: CSS selector string

        Returns:
            SelectorResult with matched elements
        """
        elements = self.root.select(selector)
        if not elements:
            return SelectorResult(found=False)

        return SelectorResult(
            value=elements[0].get_text(),
            values=[e.get_text() for e in elements],
            element=elements[0],
            elements=list(elements),
            found=True,
        )

    def css_one(self, selector: str) -> SelectorResult:
        """
        Select the first element matching a CSS selector.

        Args:
            selector: CSS selector string

        Returns:
            SelectorResult with first match
        """
        element = self.root.select_one(selector)
        if not element:
            return SelectorResult(found=False)

        return SelectorResult(
            value=element.get_text(),
            element=element,
            found=True,
        )

    def text(self, selector: str) -> str:
        """
        Raw text of every match concatenated in document order.

        Text nodes are joined with nothing in between and whitespace is
        kept; callers trim.

        Returns:
            Joined text, or "" when nothing matches
        """
        result = self.css(selector)
        return "".join(result.values)

    def attr(self, selector: str, attribute: str) -> str:
        """
        Attribute value of the first match carrying it.

        Returns:
            Attribute value, or "" when no match has it
        """
        for element in self.root.select(selector):
            value = element.get(attribute)
            if value is not None:
                return value if isinstance(value, str) else " ".join(value)
        return ""

    def each(self, selector: str) -> list["Selector"]:
        """Wrap every match in its own Selector (document order)."""
        return [Selector(e) for e in self.root.select(selector)]


def first_word(text: str) -> str:
    """First whitespace-delimited word of text, or ""."""
    words = text.split() if text else []
    return words[0] if words else ""
