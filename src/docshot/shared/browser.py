"""Playwright browser manager and the viewport controller built on it."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Mapping
from contextlib import asynccontextmanager
from types import TracebackType
from typing import Any

from playwright.async_api import Browser, Error as PlaywrightError, Page, Playwright, async_playwright

from docshot.shared.errors import RemoteError
from docshot.shared.viewport import ViewportController

logger = logging.getLogger(__name__)

# Zero-width scrollbars so they never show up inside a tile
_HIDE_SCROLLBARS_CSS = "::-webkit-scrollbar { width: 0px; height: 0px; }"

_METRICS_JS = """(normalize) => {
    if (normalize) {
        document.body.style.overflow = 'hidden';
        // reset height in case the viewport changed since the last run
        document.body.style.height = 'auto';
        document.body.style.height = document.documentElement.scrollHeight + 'px';
        window.scrollTo(0, 0);
    }
    return {
        screenWidth: Math.max(document.documentElement.clientWidth, window.innerWidth || 0),
        screenHeight: Math.max(document.documentElement.clientHeight, window.innerHeight || 0),
        documentWidth: document.documentElement.scrollWidth,
        documentHeight: document.documentElement.scrollHeight,
        devicePixelRatio: window.devicePixelRatio,
    };
}"""

# A transform is not clamped to the maximum scroll offset, so the trailing
# row and column show blank overscan instead of repeating content.
_SCROLL_JS = """([x, y]) => {
    document.body.style.transform = 'translate(-' + x + 'px, -' + y + 'px)';
}"""


class PlaywrightViewport(ViewportController):
    """``ViewportController`` over a single Playwright page."""

    def __init__(self, page: Page) -> None:
        self._page = page
        self._scrollbars_hidden = False

    async def query_metrics(self, normalize: bool) -> Mapping[str, Any]:
        try:
            if normalize and not self._scrollbars_hidden:
                await self._page.add_style_tag(content=_HIDE_SCROLLBARS_CSS)
                self._scrollbars_hidden = True
            return await self._page.evaluate(_METRICS_JS, normalize)
        except PlaywrightError as exc:
            raise RemoteError(f"Could not read page metrics: {exc}") from exc

    async def scroll_to(self, x: int, y: int) -> None:
        try:
            await self._page.evaluate(_SCROLL_JS, [x, y])
        except PlaywrightError as exc:
            raise RemoteError(f"Scroll to ({x}, {y}) failed: {exc}") from exc

    async def capture_viewport(self) -> bytes:
        try:
            return await self._page.screenshot(type="png", full_page=False)
        except PlaywrightError as exc:
            raise RemoteError(f"Viewport screenshot failed: {exc}") from exc

    async def settle(self, ms: float) -> None:
        try:
            await self._page.wait_for_timeout(ms)
        except PlaywrightError as exc:
            raise RemoteError(f"Pause failed: {exc}") from exc


class BrowserManager:
    """Manages a Playwright Chromium instance.

    Usage::

        async with BrowserManager() as bm:
            async with bm.open_viewport("https://example.com") as viewport:
                await capture_document(viewport, "page.png")
    """

    def __init__(self, *, headless: bool = True) -> None:
        self._headless = headless
        self._pw: Playwright | None = None
        self._browser: Browser | None = None

    async def __aenter__(self) -> "BrowserManager":
        try:
            self._pw = await async_playwright().start()
            self._browser = await self._pw.chromium.launch(headless=self._headless)
        except PlaywrightError as exc:
            if self._pw:
                await self._pw.stop()
            raise RemoteError(f"Could not launch browser: {exc}") from exc
        logger.info("Browser launched")
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        if self._browser:
            await self._browser.close()
        if self._pw:
            await self._pw.stop()
        logger.info("Browser closed")

    @asynccontextmanager
    async def open_viewport(
        self,
        url: str,
        *,
        width: int = 1024,
        height: int = 768,
        device_scale_factor: float = 1.0,
        wait_until: str = "load",
        timeout_ms: int = 30_000,
    ) -> AsyncIterator[PlaywrightViewport]:
        """Open ``url`` in a fresh context sized ``width`` x ``height``."""
        assert self._browser is not None, "BrowserManager not entered"
        context = await self._browser.new_context(
            viewport={"width": width, "height": height},
            device_scale_factor=device_scale_factor,
        )
        try:
            page = await context.new_page()
            try:
                await page.goto(url, wait_until=wait_until, timeout=timeout_ms)
            except PlaywrightError as exc:
                raise RemoteError(f"Could not load {url}: {exc}") from exc
            logger.info("Loaded %s at %dx%d (scale %s)", url, width, height, device_scale_factor)
            yield PlaywrightViewport(page)
        finally:
            await context.close()
