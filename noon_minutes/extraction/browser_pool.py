"""Shared headless browser for the rendered-DOM fallbacks."""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from playwright.async_api import async_playwright, Browser, BrowserContext, Playwright

logger = logging.getLogger(__name__)

_LAUNCH_ARGS = [
    "--disable-blink-features=AutomationControlled",
    "--no-sandbox",
    "--disable-dev-shm-usage",
]


class BrowserPool:
    """
    Singleton pool around one Chromium process.

    Renders are rare (only when static extraction fails), so the browser is
    launched lazily on first use and every render gets its own isolated
    context (separate cookies and storage) on the shared process.
    """

    _instance: BrowserPool | None = None
    _lock = asyncio.Lock()

    def __init__(self):
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._launch_lock = asyncio.Lock()

    @classmethod
    async def get_instance(cls) -> BrowserPool:
        """Get or create the singleton browser pool instance."""
        if cls._instance is None:
            async with cls._lock:
                if cls._instance is None:
                    cls._instance = cls()
        return cls._instance

    async def _ensure_browser(self) -> Browser:
        async with self._launch_lock:
            if self._browser is not None and self._browser.is_connected():
                return self._browser

            if self._playwright is None:
                self._playwright = await async_playwright().start()

            logger.info("Launching headless Chromium for rendered extraction")
            self._browser = await self._playwright.chromium.launch(headless=True, args=_LAUNCH_ARGS)
            return self._browser

    @asynccontextmanager
    async def get_context(
        self,
        *,
        user_agent: str | None = None,
        locale: str | None = "en-US",
    ) -> AsyncIterator[BrowserContext]:
        """Get a fresh, isolated browser context from the pool."""
        browser = await self._ensure_browser()
        context_kwargs: dict[str, object] = {}
        if user_agent:
            context_kwargs["user_agent"] = user_agent
        if locale:
            context_kwargs["locale"] = locale

        context = await browser.new_context(**context_kwargs)
        try:
            yield context
        finally:
            await context.close()

    async def close(self) -> None:
        """Close the browser and stop Playwright."""
        if self._browser is not None:
            try:
                await self._browser.close()
            except Exception as exc:
                logger.warning(f"Error closing browser: {exc}")
            self._browser = None
        if self._playwright is not None:
            await self._playwright.stop()
            self._playwright = None

    @classmethod
    async def shutdown(cls) -> None:
        """Shutdown the singleton instance, if one was ever created."""
        if cls._instance is not None:
            await cls._instance.close()
            cls._instance = None


@asynccontextmanager
async def get_browser_context(
    *,
    user_agent: str | None = None,
    locale: str | None = "en-US",
) -> AsyncIterator[BrowserContext]:
    """Get a browser context from the shared pool."""
    pool = await BrowserPool.get_instance()
    async with pool.get_context(user_agent=user_agent, locale=locale) as context:
        yield context
