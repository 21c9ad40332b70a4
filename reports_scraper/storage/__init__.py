"""
Report storage.

Stores:
- SqlReportStore: SQLAlchemy async engine (PostgreSQL, SQLite)
- MemoryReportStore: in-process dict, selected with the "memory://" URL
"""

from .base import ReportStore
from .memory import MemoryReportStore
from .sql import SqlReportStore

MEMORY_URL = "memory://"


def create_store(database_url: str, echo: bool = False) -> ReportStore:
    """
    Create the store configured by a database URL.

    Args:
        database_url: SQLAlchemy async URL or "memory://"
        echo: Log SQL statements

    Returns:
        Uninitialized ReportStore
    """
    if database_url == MEMORY_URL:
        return MemoryReportStore()

    return SqlReportStore.from_url(database_url, echo=echo)


__all__ = [
    "ReportStore",
    "MemoryReportStore",
    "SqlReportStore",
    "MEMORY_URL",
    "create_store",
]
