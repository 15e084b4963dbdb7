"""SQLite engine setup for the license store.

One aiosqlite connection is shared by the whole process (StaticPool), so
the API's request handlers and the self-test all see the same database.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

from dlscrape.store.models import LicenseDocument

logger = logging.getLogger(__name__)

# Milliseconds SQLite waits on a locked database before failing a write
BUSY_TIMEOUT_MS = 5000


def _license_tables() -> list:
    return [LicenseDocument.__table__]


async def open_engine(db_path: Path, echo: bool = False) -> AsyncEngine:
    """Open the license database, creating the file and table if needed.

    Args:
        db_path: SQLite file. Parent directories are created.
        echo: Log every SQL statement.

    Returns:
        An AsyncEngine with the ``licenses`` table in place.
    """
    db_path = Path(db_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{db_path}",
        echo=echo,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_conn: Any, connection_record: Any) -> None:
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute(f"PRAGMA busy_timeout={BUSY_TIMEOUT_MS}")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(
            SQLModel.metadata.create_all, tables=_license_tables()
        )

    logger.debug(f"Opened license database {db_path}")
    return engine


async def init_database(
    db_path: Path,
    echo: bool = False,
) -> tuple[AsyncEngine, async_sessionmaker]:
    """Open the database and build a session factory for it.

    Sessions keep their objects loaded after commit, so documents returned
    by the store stay readable once the session is closed.

    Returns:
        Tuple of (engine, session_factory).
    """
    engine = await open_engine(db_path, echo=echo)
    return engine, async_sessionmaker(engine, expire_on_commit=False)
