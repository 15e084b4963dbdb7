"""Shared fixtures for dlscrape tests."""

import asyncio
import threading
from collections.abc import Generator
from pathlib import Path

import pytest
from aiohttp import web

from dlscrape.config import Settings, get_settings
from dlscrape.driver.cache import RecordCache
from dlscrape.driver.extractor import LicenseExtractor
from tests.mock_portal import create_app
from tests.utils import FakeBrowserFactory, readings


@pytest.fixture(autouse=True)
def _fresh_settings() -> Generator[None, None, None]:
    """Forget settings cached by get_settings() between tests."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings pointing every file into a temporary directory."""
    return Settings(
        _env_file=None,
        PORTAL_URL="http://portal.test/license?",
        CACHE_PATH=tmp_path / "cache.json",
        DATABASE_PATH=tmp_path / "licenses.db",
        MAX_CONCURRENT_EXTRACTIONS=2,
    )


@pytest.fixture
def cache(settings: Settings) -> RecordCache:
    return RecordCache(settings.CACHE_PATH)


@pytest.fixture
def john_doe_readings() -> dict:
    """Page readings for reference 12345: reference and name only."""
    return readings(registerno="12345", name="John Doe")


@pytest.fixture
def browser_factory(john_doe_readings: dict) -> FakeBrowserFactory:
    return FakeBrowserFactory(page_kwargs={"result": john_doe_readings})


@pytest.fixture
def extractor(
    settings: Settings, cache: RecordCache, browser_factory: FakeBrowserFactory
) -> LicenseExtractor:
    return LicenseExtractor(settings, cache=cache, browser_factory=browser_factory)


# =============================================================================
# Mock portal server
# =============================================================================


class PortalServer:
    """Runs the mock portal on its own event loop in a daemon thread.

    The browser under test lives on the test's event loop, so the portal
    must answer from a different one.
    """

    host = "127.0.0.1"

    def __init__(self, app: web.Application) -> None:
        self.app = app
        self.port = 0
        self._ready = threading.Event()
        self._loop = asyncio.new_event_loop()
        self._runner = web.AppRunner(app)
        self._thread = threading.Thread(target=self._serve, daemon=True)

    @property
    def url(self) -> str:
        return f"http://{self.host}:{self.port}"

    @property
    def static_hits(self) -> list[str]:
        """Static assets the portal has been asked for."""
        return self.app["static_hits"]

    def start(self, timeout: float = 5.0) -> None:
        self._thread.start()
        if not self._ready.wait(timeout):
            raise RuntimeError("mock portal did not start")

    def _serve(self) -> None:
        asyncio.set_event_loop(self._loop)
        self._loop.run_until_complete(self._bind())
        self._ready.set()
        self._loop.run_forever()
        self._loop.run_until_complete(self._runner.cleanup())
        self._loop.close()

    async def _bind(self) -> None:
        await self._runner.setup()
        # Port 0: let the OS pick, then read back what it chose
        await web.TCPSite(self._runner, self.host, 0).start()
        self.port = self._runner.addresses[0][1]

    def stop(self) -> None:
        self._loop.call_soon_threadsafe(self._loop.stop)
        self._thread.join(timeout=5.0)


@pytest.fixture
def portal_server() -> Generator[PortalServer, None, None]:
    """The mock portal, listening on a free port for one test."""
    server = PortalServer(create_app())
    server.start()
    yield server
    server.stop()
