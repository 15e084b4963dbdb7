"""FastAPI application for the license API.

This module provides the main FastAPI application with:
- Lifespan context manager that opens the license store and extractor
- AppContext holding the shared store, extractor and settings
- Exception handlers mapping failures onto the common response shape
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING

from fastapi import FastAPI

from dlscrape import __version__
from dlscrape.config import Settings, get_settings
from dlscrape.driver.extractor import LicenseExtractor
from dlscrape.store.repository import LicenseStore

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    """Shared objects for request handlers.

    Attributes:
        settings: Active settings.
        store: License document store.
        extractor: Portal extractor (owns the record cache).
    """

    settings: Settings
    store: LicenseStore
    extractor: LicenseExtractor


_context: AppContext | None = None


def get_context() -> AppContext:
    """Get the global application context.

    Returns:
        The AppContext instance.

    Raises:
        RuntimeError: If the application has not started.
    """
    if _context is None:
        raise RuntimeError("Application context not initialized")
    return _context


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Open the license store on startup, dispose it on shutdown."""
    global _context

    settings: Settings = app.state.settings
    extractor = app.state.extractor or LicenseExtractor(settings)

    async with LicenseStore.open(settings.DATABASE_PATH) as store:
        count = await store.count()
        logger.info(
            f"License store ready at {settings.DATABASE_PATH} "
            f"({count} documents)"
        )
        _context = AppContext(
            settings=settings, store=store, extractor=extractor
        )
        try:
            yield
        finally:
            _context = None


def create_app(
    settings: Settings | None = None,
    extractor: LicenseExtractor | None = None,
) -> FastAPI:
    """Create a new FastAPI application.

    Args:
        settings: Settings to use. Defaults to get_settings().
        extractor: Extractor to use. Defaults to one built from settings.

    Returns:
        Configured FastAPI application.
    """
    from dlscrape.web.errors import register_exception_handlers
    from dlscrape.web.routes import (
        health_router,
        licenses_router,
        scrape_router,
    )

    app = FastAPI(
        title="dlscrape",
        description="Driving-license record lookup API",
        version=__version__,
        lifespan=lifespan,
    )

    # Store config in app state for lifespan access
    app.state.settings = settings or get_settings()
    app.state.extractor = extractor

    register_exception_handlers(app)

    app.include_router(scrape_router)
    app.include_router(licenses_router)
    app.include_router(health_router)

    return app
