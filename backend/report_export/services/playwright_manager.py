"""Headless Chromium lifecycle for snapshot capture."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime

import structlog
from playwright.async_api import Browser, Page, Playwright, async_playwright

logger = structlog.get_logger()

_LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
    "--font-render-hinting=none",
]


class PlaywrightManager:
    """Owns one browser process; restarts it when it crashes."""

    def __init__(self, health_check_interval: float = 30.0) -> None:
        self._browser: Browser | None = None
        self._playwright: Playwright | None = None
        self._health_check_task: asyncio.Task[None] | None = None
        self._last_health_check: datetime | None = None
        self._restart_lock: asyncio.Lock | None = None
        self._health_check_interval = health_check_interval

    async def initialize(self) -> None:
        """Start Playwright and launch the browser. Called during app startup."""
        try:
            logger.info("Initializing Playwright browser")
            self._restart_lock = asyncio.Lock()
            self._playwright = await async_playwright().start()
            self._browser = await self._launch()
            logger.info("Playwright browser launched", version=self._browser.version)
            self._health_check_task = asyncio.create_task(self._health_check_loop())
        except Exception as e:
            logger.error("Failed to initialize Playwright", error=str(e))
            raise

    async def shutdown(self) -> None:
        """Close the browser and stop Playwright. Safe to call twice."""
        try:
            if self._health_check_task:
                self._health_check_task.cancel()
                try:
                    await self._health_check_task
                except asyncio.CancelledError:
                    pass
                self._health_check_task = None

            if self._browser:
                logger.info("Closing Playwright browser")
                await self._browser.close()
                self._browser = None

            if self._playwright:
                await self._playwright.stop()
                self._playwright = None

            logger.info("Playwright shutdown complete")
        except Exception as e:
            logger.error("Error during Playwright shutdown", error=str(e))

    async def create_page(
        self,
        viewport_width: int = 1920,
        viewport_height: int = 1080,
        device_scale_factor: float = 2.0,
    ) -> Page:
        """Open a page whose screenshots are taken at ``device_scale_factor``."""
        page_kwargs = {
            "viewport": {"width": viewport_width, "height": viewport_height},
            "device_scale_factor": device_scale_factor,
        }
        if not self._browser:
            async with self._lock():
                if not self._browser:
                    logger.warning("Browser not initialized, restarting")
                    await self._restart_browser()

        try:
            assert self._browser is not None
            return await self._browser.new_page(**page_kwargs)
        except Exception as e:
            logger.error("Failed to create page", error=str(e))
            async with self._lock():
                logger.info("Attempting browser restart after page failure")
                await self._restart_browser()
                assert self._browser is not None
                return await self._browser.new_page(**page_kwargs)

    @asynccontextmanager
    async def page(
        self,
        viewport_width: int = 1920,
        viewport_height: int = 1080,
        device_scale_factor: float = 2.0,
    ) -> AsyncIterator[Page]:
        """``create_page`` scoped to a block; the page is always closed."""
        page = await self.create_page(viewport_width, viewport_height, device_scale_factor)
        try:
            yield page
        finally:
            await page.close()

    def _lock(self) -> asyncio.Lock:
        if not self._restart_lock:
            self._restart_lock = asyncio.Lock()
        return self._restart_lock

    async def _launch(self) -> Browser:
        assert self._playwright is not None
        return await self._playwright.chromium.launch(headless=True, args=_LAUNCH_ARGS)

    async def _restart_browser(self) -> None:
        try:
            logger.warning("Restarting Playwright browser")
            if self._browser:
                try:
                    await self._browser.close()
                except Exception as e:
                    logger.debug("Ignoring error while closing crashed browser", error=str(e))
                self._browser = None

            if self._playwright is None:
                self._playwright = await async_playwright().start()
            self._browser = await self._launch()
            logger.info("Browser restarted", version=self._browser.version)
        except Exception as e:
            logger.error("Failed to restart browser", error=str(e))
            raise

    async def _health_check_loop(self) -> None:
        while True:
            try:
                await asyncio.sleep(self._health_check_interval)
                if self._browser:
                    try:
                        check_page = await self._browser.new_page()
                        await check_page.close()
                        self._last_health_check = datetime.now()
                        logger.debug("Browser health check passed")
                    except Exception as e:
                        logger.error("Browser health check failed", error=str(e))
                        async with self._lock():
                            await self._restart_browser()
            except asyncio.CancelledError:
                logger.info("Health check loop cancelled")
                break
            except Exception as e:
                logger.error("Error in health check loop", error=str(e))

    @property
    def is_initialized(self) -> bool:
        return self._browser is not None

    @property
    def last_health_check(self) -> datetime | None:
        return self._last_health_check


playwright_manager = PlaywrightManager()
