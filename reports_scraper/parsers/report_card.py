"""
Report card parser.

Turns one rendered listing page into candidate Report objects and
reads the total result count from the listing summary.
"""

from datetime import datetime
from typing import Optional

import structlog

from reports_scraper.core.exceptions import CountDiscoveryError, ExtractionError
from reports_scraper.core.models import Report
from reports_scraper.core.normalizer import (
    DEFAULT_NAME_POLICY,
    MAX_FIELD_LENGTH,
    NAME_POLICIES,
    cap_length,
    clean_text,
    parse_results_count,
    resolve_relative_time,
    sanitize_display_name,
    split_timestamp,
)
from reports_scraper.core.selectors import (
    ADDRESS_IMAGE_SELECTOR,
    ADDRESS_SELECTOR,
    CARD_SELECTOR,
    CATEGORY_SELECTOR,
    DESCRIPTION_SELECTOR,
    DOMAIN_SELECTOR,
    RESULTS_COUNT_SELECTOR,
    SUBMITTED_TIME_SELECTOR,
    Selector,
    first_word,
)

logger = structlog.get_logger(__name__)


class ReportCardParser:
    """
    Extracts candidate reports from listing markup.

    One parser instance applies exactly one name policy, which keeps the
    identity tuple stable across passes.
    """

    def __init__(
        self,
        name_policy: str = DEFAULT_NAME_POLICY,
        max_length: int = MAX_FIELD_LENGTH,
        card_selector: str = CARD_SELECTOR,
        count_selector: str = RESULTS_COUNT_SELECTOR,
    ):
        """
        Initialize parser.

        Args:
            name_policy: Key of NAME_POLICIES used for every card
            max_length: Per-field character cap
            card_selector: CSS selector of one report card
            count_selector: CSS selector of the results-count title
        """
        if name_policy not in NAME_POLICIES:
            raise ValueError(f"Unknown name policy: {name_policy}")

        self.name_policy = name_policy
        self.max_length = max_length
        self.card_selector = card_selector
        self.count_selector = count_selector
        self.logger = logger.bind(parser=self.__class__.__name__)

    def parse(self, markup: str, now: Optional[datetime] = None) -> list[Report]:
        """
        Extract all report cards from a page.

        Cards that fail extraction are logged and skipped; the rest of
        the page is still returned in document order.

        Args:
            markup: Rendered page markup
            now: Reference instant for relative times (defaults to local now)

        Returns:
            Candidate reports
        """
        reference = now or datetime.now().astimezone()
        page = Selector.from_markup(markup)

        reports: list[Report] = []
        cards = page.each(self.card_selector)

        for index, card in enumerate(cards):
            try:
                reports.append(self.parse_card(card, reference))
            except ExtractionError as e:
                self.logger.warning(
                    "card_skipped",
                    index=index,
                    error=str(e),
                )

        self.logger.debug(
            "page_parsed",
            cards_seen=len(cards),
            cards_skipped=len(cards) - len(reports),
        )

        return reports

    def parse_card(self, card: Selector, reference: datetime) -> Report:
        """
        Build one Report from a card element.

        Args:
            card: Selector scoped to the card
            reference: Reference instant for the submitted-time phrase

        Returns:
            Report with a fresh id

        Raises:
            ExtractionError: If the submitted time cannot be resolved
        """
        category = clean_text(card.text(CATEGORY_SELECTOR))
        description = clean_text(card.text(DESCRIPTION_SELECTOR))
        address = clean_text(card.text(ADDRESS_SELECTOR))
        domain = clean_text(card.text(DOMAIN_SELECTOR))
        submitted = clean_text(card.text(SUBMITTED_TIME_SELECTOR))
        report_type = first_word(card.attr(ADDRESS_IMAGE_SELECTOR, "alt"))

        moment = resolve_relative_time(submitted, reference)
        if moment is None:
            raise ExtractionError(f"Unresolvable submitted time: {submitted!r}")

        date, time_of_day = split_timestamp(moment)
        name = sanitize_display_name(description, self.name_policy)

        return Report(
            category=cap_length(category, self.max_length),
            name=cap_length(name, self.max_length),
            address=cap_length(address, self.max_length),
            type=cap_length(report_type, self.max_length),
            domain=cap_length(domain, self.max_length),
            time_of_day=time_of_day,
            date=date,
        )

    def parse_total_count(self, markup: str) -> int:
        """
        Read the total number of reports from the listing summary.

        Args:
            markup: Rendered count-discovery page

        Returns:
            Total result count

        Raises:
            CountDiscoveryError: If the count node is missing or not numeric
        """
        result = Selector.from_markup(markup).css_one(self.count_selector)
        if not result.found:
            raise CountDiscoveryError(f"Results count not found ({self.count_selector})")

        count = parse_results_count(result.value or "")
        if count is None:
            raise CountDiscoveryError(f"Results count is not numeric: {result.value!r}")

        return count
