"""License record extractor.

Looks a reference number up in the record cache and, on a miss, drives a
headless browser to the portal page:

1. Navigate and wait for the network to go idle
2. Wait for the readiness anchor (the element carrying the reference number)
3. Read every mapped element: input value first, trimmed text second
4. Reject an all-empty record
5. Memoize the record in the cache file

The browser is released on every exit path. Concurrent lookups for the same
reference number share one browser session, and the number of browser
sessions alive at once is capped.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Callable
from contextlib import AbstractAsyncContextManager, AsyncExitStack
from functools import partial

from playwright.async_api import Browser
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from dlscrape.common.data_models import LicenseRecord
from dlscrape.common.exceptions import (
    EmptyResultError,
    ExtractionError,
    NavigationError,
    RecordNotFoundError,
)
from dlscrape.common.field_map import (
    READ_ELEMENTS_SCRIPT,
    READY_ANCHOR_ID,
    build_record,
    script_arguments,
)
from dlscrape.config import Settings
from dlscrape.driver.browser import launch_browser, resource_blocker
from dlscrape.driver.cache import RecordCache

logger = logging.getLogger(__name__)

BrowserFactory = Callable[[], AbstractAsyncContextManager[Browser]]


class LicenseExtractor:
    """Extracts license records from the portal, memoized on disk.

    Args:
        settings: Portal URL, timeouts, viewport and browser options.
        cache: Record cache. Defaults to one at settings.CACHE_PATH.
        browser_factory: Zero-argument callable returning an async context
            manager that yields a Browser. Defaults to launch_browser().

    Example:
        extractor = LicenseExtractor(get_settings())
        record = await extractor.extract("12345")
    """

    def __init__(
        self,
        settings: Settings,
        cache: RecordCache | None = None,
        browser_factory: BrowserFactory | None = None,
    ) -> None:
        self.settings = settings
        self.cache = cache or RecordCache(settings.CACHE_PATH)
        self._browser_factory = browser_factory or partial(
            launch_browser, settings
        )
        self._browser_slots = asyncio.Semaphore(
            settings.MAX_CONCURRENT_EXTRACTIONS
        )
        self._in_flight: dict[str, asyncio.Task[LicenseRecord]] = {}

    async def extract(self, reference_no: str) -> LicenseRecord:
        """Return the license record for ``reference_no``.

        A cached record is returned without touching the browser.

        Args:
            reference_no: Portal reference number. Any string is accepted;
                rejecting blank input is the caller's job.

        Returns:
            The extracted (or cached) record.

        Raises:
            ExtractionError: Navigation failed, the record never rendered,
                or the page yielded no data.
        """
        cached = self.cache.load().get(reference_no)
        if cached is not None:
            logger.info(
                f"Data for reference number {reference_no} found in cache."
            )
            return cached

        task = self._in_flight.get(reference_no)
        if task is None:
            task = asyncio.create_task(self._extract_uncached(reference_no))
            self._in_flight[reference_no] = task
            task.add_done_callback(partial(self._forget, reference_no))
        else:
            logger.info(f"Joining in-flight extraction for {reference_no}")

        # A cancelled caller must not cancel the lookup other callers await
        return await asyncio.shield(task)

    async def invalidate(self, reference_no: str) -> bool:
        """Drop a cached record so the next extract() re-scrapes it."""
        removed = await self.cache.remove(reference_no)
        if removed:
            logger.info(f"Removed {reference_no} from cache")
        return removed

    def _forget(self, reference_no: str, task: asyncio.Task) -> None:
        if self._in_flight.get(reference_no) is task:
            del self._in_flight[reference_no]
        # Failures are logged in _extract_uncached; collect the exception so
        # a lookup whose callers were all cancelled is not reported as unread
        if not task.cancelled():
            task.exception()

    async def _extract_uncached(self, reference_no: str) -> LicenseRecord:
        async with self._browser_slots:
            try:
                record = await self._scrape(reference_no)
            except ExtractionError as e:
                logger.error(
                    f"Scraping failed for reference number {reference_no}: "
                    f"{e.message} (cause: {e.cause})",
                    exc_info=True,
                )
                raise
            except Exception as e:
                logger.error(
                    f"Unexpected scraping error for reference number "
                    f"{reference_no}: {e}",
                    exc_info=True,
                )
                raise ExtractionError(str(e), reference_no, cause=repr(e)) from e

        if not record.has_data():
            logger.error(f"No data found on page for {reference_no}")
            raise EmptyResultError(reference_no)

        await self.cache.put(reference_no, record)
        logger.debug(
            "Scraped data: "
            + json.dumps(record.to_json_dict(), indent=2, ensure_ascii=False)
        )
        return record

    async def _scrape(self, reference_no: str) -> LicenseRecord:
        """Run one browser session against the portal page.

        Everything opened here is closed before this returns or raises.
        """
        url = self.settings.portal_url_for(reference_no)
        logger.info(f"Starting scrape for reference number {reference_no}")

        async with AsyncExitStack() as stack:
            try:
                browser = await stack.enter_async_context(
                    self._browser_factory()
                )
            except Exception as e:
                raise NavigationError(
                    "Browser could not be launched", reference_no, str(e)
                ) from e

            page = await browser.new_page(viewport=self.settings.viewport)
            stack.push_async_callback(page.close)
            await page.route(
                "**/*", resource_blocker(self.settings.BLOCKED_RESOURCE_TYPES)
            )

            timeout_ms = self.settings.NAVIGATION_TIMEOUT_MS
            try:
                await page.goto(url, wait_until="networkidle", timeout=timeout_ms)
            except PlaywrightTimeoutError as e:
                raise NavigationError(
                    f"Page did not become idle within {timeout_ms}ms",
                    reference_no,
                    str(e),
                ) from e
            except PlaywrightError as e:
                raise NavigationError(
                    f"Navigation to {url} failed", reference_no, str(e)
                ) from e

            selector = f"#{READY_ANCHOR_ID}"
            ready_ms = self.settings.READY_TIMEOUT_MS
            try:
                await page.wait_for_selector(
                    selector, state="attached", timeout=ready_ms
                )
            except PlaywrightTimeoutError as e:
                raise RecordNotFoundError(
                    reference_no, selector, ready_ms, str(e)
                ) from e

            readings = await page.evaluate(
                READ_ELEMENTS_SCRIPT, script_arguments()
            )

        return build_record(
            readings.get("elements") or {}, readings.get("photo")
        )
