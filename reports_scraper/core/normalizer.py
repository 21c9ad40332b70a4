"""
Normalization utilities for report card fields.

Handles:
- Relative submission times ("5 minutes", "2 hours ago")
- Display name sanitization (two policies, one chosen per deployment)
- Text cleanup and length capping
- Result counts ("1,234 results")
"""

import re
from datetime import datetime, timedelta
from typing import Callable, Optional

import structlog

logger = structlog.get_logger(__name__)


MAX_FIELD_LENGTH = 1024

# Unit keywords are matched as substrings of the second token, in this order
RELATIVE_UNITS = [
    ("minute", timedelta(minutes=1)),
    ("hour", timedelta(hours=1)),
    ("second", timedelta(seconds=1)),
]

DATE_FORMAT = "%Y-%m-%d"
TIME_FORMAT = "%H:%M:%S"


def resolve_relative_time(phrase: str, reference_now: datetime) -> Optional[datetime]:
    """
    Resolve an elapsed-time phrase against a reference instant.

    Supported formats:
    - "5 minutes" / "1 minute ago"
    - "2 hours"
    - "30 seconds"

    Units are matched as case-sensitive substrings, so "3 Hours" matches
    nothing. A unit that matches none of the known keywords resolves to a
    zero offset, i.e. `reference_now` itself.

    Args:
        phrase: "<amount> <unit>" text taken from a report card
        reference_now: Instant the phrase is relative to

    Returns:
        Absolute datetime, or None if the phrase cannot be resolved
    """
    if not phrase:
        return None

    tokens = phrase.split()
    if len(tokens) < 2:
        return None

    amount_text, unit_text = tokens[0], tokens[1]
    if not re.fullmatch(r"[0-9]+", amount_text):
        logger.debug("invalid_relative_amount", phrase=phrase)
        return None

    amount = int(amount_text)

    for keyword, unit in RELATIVE_UNITS:
        if keyword in unit_text:
            return reference_now - amount * unit

    return reference_now


def split_timestamp(moment: datetime) -> tuple[str, str]:
    """
    Split an absolute timestamp into its stored date and time-of-day parts.

    Returns:
        (date, time_of_day) as ("YYYY-MM-DD", "HH:MM:SS")
    """
    return moment.strftime(DATE_FORMAT), moment.strftime(TIME_FORMAT)


def sanitize_letters_and_spaces(raw: str) -> str:
    """
    Keep only alphabetic and whitespace characters.

    "Scam by John99!" -> "Scam by John"
    """
    if not raw:
        return ""

    return "".join(ch for ch in raw.strip() if ch.isalpha() or ch.isspace())


def sanitize_single_token(raw: str) -> str:
    """
    Reduce a description to a single handle-like token.

    - "Report by @scammer123 now" -> "scammer123"
    - "wallet-drainer" -> "" (two tokens)
    - "drainer" -> "drainer"
    """
    if not raw:
        return ""

    text = raw.strip()

    if "@" in text:
        handle_part = text.split("@", 1)[1].split()
        return handle_part[0] if handle_part else ""

    # Letters and digits only; underscores and punctuation separate tokens
    tokens = re.findall(r"[^\W_]+", text)
    if len(tokens) == 1:
        return tokens[0]

    return ""


NAME_POLICIES: dict[str, Callable[[str], str]] = {
    "letters_and_spaces": sanitize_letters_and_spaces,
    "single_token": sanitize_single_token,
}

DEFAULT_NAME_POLICY = "single_token"


def sanitize_display_name(raw: str, policy: str = DEFAULT_NAME_POLICY) -> str:
    """
    Normalize a raw description into the stored report name.

    The policy takes part in the identity tuple used for deduplication,
    so a deployment must keep the same policy for its whole history.

    Args:
        raw: Raw description text
        policy: Key of NAME_POLICIES

    Returns:
        Normalized name (possibly empty)

    Raises:
        ValueError: If the policy is unknown
    """
    try:
        sanitizer = NAME_POLICIES[policy]
    except KeyError:
        raise ValueError(f"Unknown name policy: {policy}") from None

    return sanitizer(raw)


def cap_length(text: str, max_length: int = MAX_FIELD_LENGTH) -> str:
    """Truncate text to at most `max_length` characters."""
    if not text:
        return ""

    return text[:max_length]


def clean_text(text: Optional[str]) -> str:
    """Strip surrounding whitespace from raw field text."""
    if not text:
        return ""

    return text.strip()


def parse_results_count(text: str) -> Optional[int]:
    """
    Parse the leading integer of a results-count title.

    Supported formats:
    - "42 results" -> 42
    - "1,234 Results" -> 1234
    - "12 345 reports" -> 12345

    Args:
        text: Results title text

    Returns:
        Integer count or None if the text does not start with a number
    """
    if not text:
        return None

    cleaned = text.replace("\u00a0", " ").strip()  # Non-breaking space
    match = re.match(r"(\d{1,3}(?:[,. ]\d{3})+|\d+)", cleaned)
    if not match:
        return None

    return int(re.sub(r"\D", "", match.group(1)))
