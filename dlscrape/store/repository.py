"""LicenseStore - database operations for stored license records."""

from __future__ import annotations

import asyncio
import logging
import time
from contextlib import asynccontextmanager
from pathlib import Path
from typing import TYPE_CHECKING

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker
from typing_extensions import Self

from dlscrape.common.data_models import LicenseRecord, PersonalInfo
from dlscrape.common.exceptions import RecordValidationError
from dlscrape.store.database import init_database
from dlscrape.store.models import LicenseDocument, utc_timestamp

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

logger = logging.getLogger(__name__)


class LicenseStore:
    """Upsert, list and delete license records.

    Example::

        async with LicenseStore.open(db_path) as store:
            doc, created = await store.upsert(record)
            total = await store.count()
    """

    def __init__(
        self,
        engine: AsyncEngine,
        session_factory: async_sessionmaker,
    ) -> None:
        """Initialize with an engine and session factory.

        Args:
            engine: An async SQLAlchemy engine.
            session_factory: An async session factory bound to the engine.
        """
        self._engine = engine
        self._session_factory = session_factory
        self._lock = asyncio.Lock()

    @classmethod
    @asynccontextmanager
    async def open(cls, db_path: Path) -> AsyncIterator[Self]:
        """Open a database and create a LicenseStore.

        Args:
            db_path: Path to the SQLite database file.

        Yields:
            LicenseStore instance.
        """
        engine, session_factory = await init_database(db_path)
        try:
            yield cls(engine, session_factory)
        finally:
            await engine.dispose()

    @property
    def engine(self) -> AsyncEngine:
        """Get the underlying async engine."""
        return self._engine

    async def upsert(
        self, record: LicenseRecord
    ) -> tuple[LicenseDocument, bool]:
        """Store a record, updating the row with the same reference number.

        Args:
            record: The record to store.

        Returns:
            Tuple of (stored document, created). ``created`` is False when
            an existing row was updated in place.

        Raises:
            RecordValidationError: If the record has no reference number.
        """
        if not record.reference_no.strip():
            raise RecordValidationError(["referenceNo is required"])

        async with self._lock, self._session_factory() as session:
            result = await session.execute(
                select(LicenseDocument).where(
                    LicenseDocument.reference_no == record.reference_no
                )
            )
            doc = result.scalar_one_or_none()
            created = doc is None
            if doc is None:
                logger.info(f"Creating new license {record.reference_no}")
                doc = LicenseDocument.from_record(record)
                session.add(doc)
            else:
                logger.info(f"Updating existing license {record.reference_no}")
                doc.apply(record)
                doc.updated_at = utc_timestamp()
            await session.commit()
            await session.refresh(doc)
            return doc, created

    async def get(self, reference_no: str) -> LicenseDocument | None:
        async with self._session_factory() as session:
            result = await session.execute(
                select(LicenseDocument).where(
                    LicenseDocument.reference_no == reference_no
                )
            )
            return result.scalar_one_or_none()

    async def list_all(self) -> list[LicenseDocument]:
        """All stored documents, oldest first."""
        async with self._session_factory() as session:
            result = await session.execute(
                select(LicenseDocument).order_by(LicenseDocument.id)
            )
            return list(result.scalars().all())

    async def count(self) -> int:
        async with self._session_factory() as session:
            result = await session.execute(
                select(func.count()).select_from(LicenseDocument)
            )
            return result.scalar() or 0

    async def delete(self, reference_no: str) -> LicenseDocument | None:
        """Delete by reference number.

        Returns:
            The deleted document, or None if there was none.
        """
        async with self._lock, self._session_factory() as session:
            result = await session.execute(
                select(LicenseDocument).where(
                    LicenseDocument.reference_no == reference_no
                )
            )
            doc = result.scalar_one_or_none()
            if doc is None:
                return None
            await session.delete(doc)
            await session.commit()
            return doc

    async def self_test(self) -> int:
        """Write and delete a throwaway document.

        Returns:
            The document count after the round trip.
        """
        probe = LicenseRecord(
            reference_no=f"test-{time.time_ns()}",
            personal_info=PersonalInfo(name="Test User"),
        )
        await self.upsert(probe)
        await self.delete(probe.reference_no)
        return await self.count()
