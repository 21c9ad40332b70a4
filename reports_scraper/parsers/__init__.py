"""
Parsers for rendered listing pages.

Parsers handle the extraction phase - turning rendered markup into
candidate Report objects.
"""

from .report_card import ReportCardParser

__all__ = ["ReportCardParser"]
