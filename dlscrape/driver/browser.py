"""Headless Chromium provisioning.

A local run launches Playwright's bundled Chromium. A managed run either
connects to an existing browser over CDP or launches a Chromium binary at a
configured path (the usual arrangement on serverless hosts).
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Iterable
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from playwright.async_api import Browser, Route, async_playwright

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from dlscrape.config import Settings

logger = logging.getLogger(__name__)

# Constrained hosts (containers, lambdas) have no user namespaces and a
# tiny /dev/shm
LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
]


@asynccontextmanager
async def launch_browser(settings: Settings) -> AsyncIterator[Browser]:
    """Provision a headless Chromium for one extraction.

    Args:
        settings: Provides IS_LOCAL, CHROMIUM_EXECUTABLE_PATH and
            BROWSER_WS_ENDPOINT.

    Yields:
        A connected Browser. It is closed and Playwright stopped on exit.

    Example:
        async with launch_browser(get_settings()) as browser:
            page = await browser.new_page()
    """
    playwright = await async_playwright().start()
    try:
        if not settings.IS_LOCAL and settings.BROWSER_WS_ENDPOINT:
            logger.debug(
                f"Connecting to managed browser at {settings.BROWSER_WS_ENDPOINT}"
            )
            browser = await playwright.chromium.connect_over_cdp(
                settings.BROWSER_WS_ENDPOINT
            )
        else:
            executable_path = (
                None if settings.IS_LOCAL else settings.CHROMIUM_EXECUTABLE_PATH
            )
            browser = await playwright.chromium.launch(
                headless=True,
                args=LAUNCH_ARGS,
                executable_path=executable_path,
            )

        try:
            yield browser
        finally:
            await browser.close()

    finally:
        await playwright.stop()


def resource_blocker(
    blocked_types: Iterable[str],
) -> Callable[[Route], Awaitable[None]]:
    """Build a route handler that aborts the given resource types.

    Everything else is continued untouched. Blocking only saves bandwidth;
    the extracted values do not depend on it.

    Args:
        blocked_types: Playwright resource types, e.g. ``"image"``.

    Returns:
        Handler for ``page.route("**/*", handler)``.
    """
    blocked = frozenset(blocked_types)

    async def handle(route: Route) -> None:
        if route.request.resource_type in blocked:
            await route.abort()
        else:
            await route.continue_()

    return handle
