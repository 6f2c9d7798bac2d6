"""The single shared automation resource: one live patchright browser.

Rules:
  - At most one browser per process; concurrent acquire() calls share it.
  - Every page lives in its own browser context (isolated cookies/storage).
  - An unexpected disconnect marks the resource unacquired so the next
    acquire() relaunches.
"""

import asyncio
import logging
from collections.abc import Callable
from types import TracebackType
from typing import Any

from patchright.async_api import Browser, BrowserContext, Page, Playwright, async_playwright

from autoapply.core.config import BrowserConfig
from autoapply.core.errors import ResourceUnavailable

logger = logging.getLogger(__name__)


class AutomationResource:
    """Owns the browser engine for the whole process.

    Usage::

        resource = AutomationResource(config)
        async with resource:
            page = await resource.new_isolated_page()
            ...
    """

    def __init__(
        self,
        config: BrowserConfig,
        *,
        playwright_factory: Callable[[], Any] = async_playwright,
    ) -> None:
        self._config = config
        self._playwright_factory = playwright_factory
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._contexts: list[BrowserContext] = []
        self._lock = asyncio.Lock()

    @property
    def is_acquired(self) -> bool:
        return self._browser is not None

    async def acquire(self) -> Browser:
        """Return the live browser, launching it on first use.

        Raises:
            ResourceUnavailable: If the engine fails to start.
        """
        async with self._lock:
            if self._browser is not None:
                return self._browser
            try:
                if self._playwright is None:
                    self._playwright = await self._playwright_factory().start()
                browser = await self._playwright.chromium.launch(headless=self._config.headless)
            except Exception as e:
                msg = f"Failed to launch browser: {e}"
                raise ResourceUnavailable(msg) from e

            browser.on("disconnected", self._on_disconnected)
            self._browser = browser
            logger.info("Browser launched (headless=%s)", self._config.headless)
            return browser

    async def new_isolated_page(self, cookies: list[Any] | None = None) -> Page:
        """Open a page in a fresh context, optionally seeded with cookies."""
        browser = await self.acquire()
        context = await browser.new_context(user_agent=self._config.user_agent)
        context.set_default_timeout(self._config.timeout_ms)
        if cookies:
            await context.add_cookies(cookies)
        self._contexts.append(context)
        return await context.new_page()

    async def close_page(self, page: Page) -> None:
        """Close a page together with the context it was isolated in."""
        context = page.context
        try:
            await context.close()
        except Exception:
            logger.debug("Context already closed", exc_info=True)
        if context in self._contexts:
            self._contexts.remove(context)

    async def release(self) -> None:
        """Tear everything down. Safe to call when nothing is open."""
        async with self._lock:
            for context in self._contexts:
                try:
                    await context.close()
                except Exception:
                    logger.debug("Error closing context", exc_info=True)
            self._contexts.clear()

            if self._browser is not None:
                try:
                    await self._browser.close()
                except Exception:
                    logger.debug("Error closing browser", exc_info=True)
                self._browser = None

            if self._playwright is not None:
                try:
                    await self._playwright.stop()
                except Exception:
                    logger.debug("Error stopping playwright", exc_info=True)
                self._playwright = None
                logger.info("Browser released")

    def _on_disconnected(self, browser: Any = None) -> None:
        if self._browser is None or (browser is not None and browser is not self._browser):
            return
        logger.warning("Browser disconnected unexpectedly; will relaunch on next acquire")
        self._browser = None
        self._contexts.clear()

    async def __aenter__(self) -> "AutomationResource":
        await self.acquire()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.release()
