"""
SQL report store built on SQLAlchemy's async engine.

PostgreSQL (asyncpg) in production; any async SQLAlchemy dialect works,
SQLite (aiosqlite) is used by the tests.
"""

import uuid
from typing import Optional

import structlog
from sqlalchemy import String, Uuid, exists, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from reports_scraper.core.exceptions import StorageError
from reports_scraper.core.models import IdentityTuple, Report
from reports_scraper.core.normalizer import MAX_FIELD_LENGTH

from .base import ReportStore

logger = structlog.get_logger(__name__)


class Base(DeclarativeBase):
    pass


class ReportRow(Base):
    """Table row for one report."""

    __tablename__ = "reports"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True)
    category: Mapped[str] = mapped_column(String(MAX_FIELD_LENGTH), nullable=False)
    name: Mapped[str] = mapped_column(String(MAX_FIELD_LENGTH), nullable=False)
    address: Mapped[str] = mapped_column(String(MAX_FIELD_LENGTH), nullable=False)
    type: Mapped[str] = mapped_column(String(MAX_FIELD_LENGTH), nullable=False)
    domain: Mapped[str] = mapped_column(String(MAX_FIELD_LENGTH), nullable=False)
    timestamp: Mapped[str] = mapped_column(String(50), nullable=False)
    date: Mapped[str] = mapped_column(String(50), nullable=False)

    @classmethod
    def from_report(cls, report: Report) -> "ReportRow":
        return cls(
            id=report.id,
            category=report.category,
            name=report.name,
            address=report.address,
            type=report.type,
            domain=report.domain,
            timestamp=report.time_of_day,
            date=report.date,
        )

    def to_report(self) -> Report:
        return Report(
            id=self.id,
            category=self.category,
            name=self.name,
            address=self.address,
            type=self.type,
            domain=self.domain,
            time_of_day=self.timestamp,
            date=self.date,
        )


class SqlReportStore(ReportStore):
    """
    Report store over an async SQLAlchemy engine.

    Each operation runs in its own short session, so the scheduler and
    API handlers can share one store and its connection pool.
    """

    def __init__(self, engine: AsyncEngine):
        """
        Initialize store.

        Args:
            engine: Async engine (owned by the store, disposed on close)
        """
        self.engine = engine
        self._session_maker = async_sessionmaker(engine, expire_on_commit=False)

    @classmethod
    def from_url(cls, database_url: str, echo: bool = False) -> "SqlReportStore":
        """Create a store with its own engine."""
        return cls(create_async_engine(database_url, echo=echo, pool_pre_ping=True))

    @retry(
        stop=stop_after_attempt(5),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        retry=retry_if_exception_type((SQLAlchemyError, OSError)),
        reraise=True,
    )
    async def _create_schema(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def initialize(self) -> None:
        """Create the reports table if missing, retrying while the database comes up."""
        try:
            await self._create_schema()
        except (SQLAlchemyError, OSError) as e:
            raise StorageError(f"Schema initialization failed: {e}") from e

        logger.info("schema_ready", table=ReportRow.__tablename__)

    async def close(self) -> None:
        await self.engine.dispose()

    async def exists(self, identity: IdentityTuple) -> bool:
        stmt = select(
            exists().where(
                ReportRow.category == identity.category,
                ReportRow.name == identity.name,
                ReportRow.address == identity.address,
                ReportRow.type == identity.type,
                ReportRow.domain == identity.domain,
            )
        )
        try:
            async with self._session_maker() as session:
                result = await session.execute(stmt)
                return bool(result.scalar())
        except (SQLAlchemyError, OSError) as e:
            raise StorageError(f"Existence check failed: {e}") from e

    async def insert(self, report: Report) -> None:
        try:
            async with self._session_maker() as session:
                session.add(ReportRow.from_report(report))
                await session.commit()
        except (SQLAlchemyError, OSError) as e:
            raise StorageError(f"Insert failed for {report.id}: {e}") from e

    async def select_all(self) -> list[Report]:
        stmt = select(ReportRow).order_by(ReportRow.date, ReportRow.timestamp)
        try:
            async with self._session_maker() as session:
                result = await session.execute(stmt)
                return [row.to_report() for row in result.scalars()]
        except (SQLAlchemyError, OSError) as e:
            raise StorageError(f"Listing reports failed: {e}") from e

    async def select_by_id(self, report_id: uuid.UUID) -> Optional[Report]:
        stmt = select(ReportRow).where(ReportRow.id == report_id)
        try:
            async with self._session_maker() as session:
                result = await session.execute(stmt)
                row = result.scalar_one_or_none()
        except (SQLAlchemyError, OSError) as e:
            raise StorageError(f"Lookup failed for {report_id}: {e}") from e

        return row.to_report() if row else None
