"""Playwright implementation of the BrowsingSession contract.

Each worker drives one PlaywrightSession, which wraps a single page inside
a browser context of its own. Extractors never receive live browser
references: evaluate() serializes the rendered DOM, parses it with lxml and
hands the snapshot to the extractor.

Key behaviors:
- Playwright timeouts become RequestTimeoutException
- Other Playwright errors become NavigationException
- One browser process per worker, so page loads run in parallel
- Browser lifecycle is scoped with async context managers
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from typing import TypeVar

from playwright.async_api import (
    BrowserContext,
    Page,
    async_playwright,
)
from playwright.async_api import (
    Error as PlaywrightError,
)
from playwright.async_api import (
    TimeoutError as PlaywrightTimeoutError,
)

from entidades.common.checked_html import CheckedHtmlElement
from entidades.common.config import ScrapeConfig
from entidades.common.exceptions import (
    NavigationException,
    RequestTimeoutException,
)
from entidades.driver.session import SessionFactory

logger = logging.getLogger(__name__)

T = TypeVar("T")


class PlaywrightSession:
    """Browsing session backed by one Playwright page.

    Args:
        context: Browser context owned by this session.
        page: The page all navigations happen in.
        worker_id: Id of the worker owning the session (for logging).
    """

    def __init__(
        self, context: BrowserContext, page: Page, worker_id: int
    ) -> None:
        self._context = context
        self._page = page
        self.worker_id = worker_id
        self._closed = False

    @property
    def url(self) -> str:
        return self._page.url

    async def navigate(self, url: str, timeout: int) -> None:
        try:
            await self._page.goto(url, timeout=timeout)
        except PlaywrightTimeoutError as e:
            raise RequestTimeoutException(url, timeout) from e
        except PlaywrightError as e:
            raise NavigationException(url, e.message) from e

    async def await_network_idle(self, timeout: int) -> None:
        try:
            await self._page.wait_for_load_state("networkidle", timeout=timeout)
        except PlaywrightTimeoutError as e:
            raise RequestTimeoutException(self._page.url, timeout) from e
        except PlaywrightError as e:
            raise NavigationException(self._page.url, e.message) from e

    async def await_selector(self, selector: str, timeout: int) -> bool:
        try:
            await self._page.wait_for_selector(selector, timeout=timeout)
        except PlaywrightTimeoutError:
            return False
        except PlaywrightError as e:
            raise NavigationException(self._page.url, e.message) from e
        return True

    async def click(self, selector: str) -> None:
        try:
            await self._page.click(selector)
        except PlaywrightError as e:
            raise NavigationException(self._page.url, e.message) from e

    async def evaluate(self, extractor: Callable[[CheckedHtmlElement], T]) -> T:
        try:
            content = await self._page.content()
        except PlaywrightError as e:
            raise NavigationException(self._page.url, e.message) from e
        root = CheckedHtmlElement.from_html(content, self._page.url)
        return extractor(root)

    async def close(self) -> None:
        """Close the page and its context. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        await self._context.close()
        logger.debug(f"Worker {self.worker_id}: browser context closed")


@asynccontextmanager
async def playwright_sessions(
    config: ScrapeConfig,
) -> AsyncIterator[SessionFactory]:
    """Start Playwright and yield a factory of per-worker sessions.

    Playwright itself is started once; every call to the factory launches a
    dedicated browser so that no cookies, contexts or pages are shared
    between workers.

    Args:
        config: Run configuration (browser type, headless mode, timeouts).

    Yields:
        SessionFactory usable as ``async with factory(worker_id) as session``.

    Example:
        async with playwright_sessions(config) as factory:
            orchestrator = Orchestrator(config, factory, sink)
            await orchestrator.run()
    """
    playwright = await async_playwright().start()
    try:
        launcher = getattr(playwright, config.browser_type)

        @asynccontextmanager
        async def open_session(
            worker_id: int,
        ) -> AsyncIterator[PlaywrightSession]:
            browser = await launcher.launch(headless=config.headless)
            logger.debug(
                f"Worker {worker_id}: launched {config.browser_type} "
                f"(headless={config.headless})"
            )
            try:
                context = await browser.new_context()
                page = await context.new_page()
                page.set_default_timeout(config.ready_timeout)
                page.set_default_navigation_timeout(config.navigation_timeout)

                session = PlaywrightSession(context, page, worker_id)
                try:
                    yield session
                finally:
                    await session.close()
            finally:
                await browser.close()

        yield open_session

    finally:
        await playwright.stop()
