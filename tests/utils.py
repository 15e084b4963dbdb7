"""Stand-ins for Playwright objects used by the extractor tests.

FakeBrowserFactory plays the role of launch_browser(): calling it returns
an async context manager yielding a FakeBrowser whose pages report canned
element readings.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import Any

from dlscrape.common.field_map import LICENSE_FIELDS


def readings(
    photo: str = "", **by_id: str | tuple[str, str] | None
) -> dict[str, Any]:
    """Build what READ_ELEMENTS_SCRIPT would return.

    Keyword arguments are element ids. A string is an input value, a
    ``(value, text)`` tuple sets both, and None marks the element absent.
    Ids not mentioned are absent.
    """
    elements: dict[str, dict[str, str] | None] = {
        spec.element_id: None for spec in LICENSE_FIELDS
    }
    for element_id, reading in by_id.items():
        if reading is None:
            elements[element_id] = None
        elif isinstance(reading, tuple):
            elements[element_id] = {"value": reading[0], "text": reading[1]}
        else:
            elements[element_id] = {"value": reading, "text": ""}
    return {"elements": elements, "photo": photo}


class FakePage:
    def __init__(
        self,
        result: dict[str, Any] | None = None,
        goto_error: Exception | None = None,
        wait_error: Exception | None = None,
        evaluate_error: Exception | None = None,
        delay: float = 0.0,
    ) -> None:
        self.result = result if result is not None else readings()
        self.goto_error = goto_error
        self.wait_error = wait_error
        self.evaluate_error = evaluate_error
        self.delay = delay
        self.routes: list[tuple[str, Any]] = []
        self.goto_calls: list[dict[str, Any]] = []
        self.wait_calls: list[dict[str, Any]] = []
        self.evaluate_args: list[Any] = []
        self.closed = False

    async def route(self, pattern: str, handler: Any) -> None:
        self.routes.append((pattern, handler))

    async def goto(self, url: str, **kwargs: Any) -> None:
        self.goto_calls.append({"url": url, **kwargs})
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.goto_error:
            raise self.goto_error

    async def wait_for_selector(self, selector: str, **kwargs: Any) -> None:
        self.wait_calls.append({"selector": selector, **kwargs})
        if self.wait_error:
            raise self.wait_error

    async def evaluate(self, script: str, arg: Any = None) -> Any:
        self.evaluate_args.append(arg)
        if self.evaluate_error:
            raise self.evaluate_error
        return self.result

    async def close(self) -> None:
        self.closed = True


class FakeBrowser:
    def __init__(self, page: FakePage) -> None:
        self.page = page
        self.viewports: list[dict[str, int] | None] = []
        self.closed = False

    async def new_page(self, viewport: dict[str, int] | None = None) -> FakePage:
        self.viewports.append(viewport)
        return self.page


class FakeBrowserFactory:
    """Counts browser sessions and tracks how many are open at once."""

    def __init__(
        self,
        page_kwargs: dict[str, Any] | None = None,
        launch_error: Exception | None = None,
    ) -> None:
        self.page_kwargs = page_kwargs or {}
        self.launch_error = launch_error
        self.browsers: list[FakeBrowser] = []
        self.open_now = 0
        self.max_open = 0

    @property
    def launches(self) -> int:
        return len(self.browsers)

    @property
    def last_page(self) -> FakePage:
        return self.browsers[-1].page

    def __call__(self):
        return self._session()

    @asynccontextmanager
    async def _session(self):
        if self.launch_error:
            raise self.launch_error
        browser = FakeBrowser(FakePage(**self.page_kwargs))
        self.browsers.append(browser)
        self.open_now += 1
        self.max_open = max(self.max_open, self.open_now)
        try:
            yield browser
        finally:
            self.open_now -= 1
            browser.closed = True
