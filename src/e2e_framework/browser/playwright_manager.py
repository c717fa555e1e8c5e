"""Playwright browser lifecycle for test runs.

This module provides the PlaywrightManager class which owns the Playwright
driver and every browser, context and page created for tests. Contexts are
created per test; browsers are shared per engine.

CRITICAL: Proper cleanup is essential to avoid orphaned browser processes.
"""

from playwright.async_api import (
    async_playwright,
    Browser,
    BrowserContext,
    ConsoleMessage,
    Page,
    Playwright,
)
from pathlib import Path
from typing import Optional, Dict, Any
import logging

from e2e_framework.models.browser_models import BrowserType, Viewport
from e2e_framework.utils.logger import TestLogger

logger = logging.getLogger(__name__)


class PlaywrightManager:
    """Manage Playwright browser instances, contexts and pages.

    PATTERN: Reuse browser instances per engine, but create an isolated
    context for each test to prevent interference.

    CRITICAL: Always call cleanup() or use as async context manager.
    """

    def __init__(self, action_timeout: int = 30000, navigation_timeout: int = 60000):
        """Initialize the Playwright manager.

        Args:
            action_timeout: Default timeout for page actions (ms)
            navigation_timeout: Default timeout for navigations (ms)
        """
        self.playwright: Optional[Playwright] = None
        self.browsers: Dict[str, Browser] = {}
        self.contexts: Dict[str, BrowserContext] = {}
        self.pages: Dict[str, Page] = {}
        self.action_timeout = action_timeout
        self.navigation_timeout = navigation_timeout
        self._initialized = False

    async def __aenter__(self):
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.cleanup()

    @property
    def devices(self) -> Dict[str, Dict[str, Any]]:
        """Playwright device descriptors (requires initialize())."""
        if not self.playwright:
            raise RuntimeError("Playwright is not initialized")
        return self.playwright.devices

    async def initialize(self) -> None:
        """Start the Playwright driver.

        Raises:
            RuntimeError: If initialization fails
        """
        if self._initialized:
            return

        try:
            self.playwright = await async_playwright().start()
            self._initialized = True
            logger.info("Playwright initialized successfully")
        except Exception as e:
            logger.error(f"Failed to initialize Playwright: {e}")
            raise RuntimeError(f"Playwright initialization failed: {e}")

    async def launch_browser(
        self,
        browser_type: BrowserType = BrowserType.CHROMIUM,
        headless: bool = True,
        slow_mo: int = 0,
        devtools: bool = False,
        channel: Optional[str] = None,
        **options: Any,
    ) -> Browser:
        """Launch a browser, or return the one already running for this engine.

        Args:
            browser_type: Browser engine to launch
            headless: Whether to run in headless mode
            slow_mo: Delay inserted between operations (ms)
            devtools: Open devtools (chromium only)
            channel: Branded browser channel such as "chrome" or "msedge"
            **options: Additional launch options

        Returns:
            Browser instance

        Raises:
            RuntimeError: If the browser fails to launch
        """
        if not self._initialized:
            await self.initialize()

        browser_key = f"{browser_type.value}:{channel}" if channel else browser_type.value
        if browser_key in self.browsers:
            logger.debug(f"Reusing existing {browser_key} browser")
            return self.browsers[browser_key]

        launch_options: Dict[str, Any] = {"headless": headless}
        if slow_mo:
            launch_options["slow_mo"] = slow_mo
        if channel:
            launch_options["channel"] = channel
        if devtools and browser_type == BrowserType.CHROMIUM:
            launch_options["args"] = ["--auto-open-devtools-for-tabs"]
        launch_options.update(options)

        try:
            browser_launcher = getattr(self.playwright, browser_type.value)
            browser = await browser_launcher.launch(**launch_options)

            self.browsers[browser_key] = browser
            logger.info(f"Launched {browser_key} browser (headless={headless})")

            return browser
        except Exception as e:
            logger.error(f"Failed to launch {browser_key} browser: {e}")
            raise RuntimeError(f"Browser launch failed: {e}")

    async def create_context(
        self,
        browser: Browser,
        viewport: Optional[Viewport] = None,
        device: Optional[Dict[str, Any]] = None,
        record_video_dir: Optional[Path] = None,
        record_har_path: Optional[Path] = None,
        **options: Any,
    ) -> BrowserContext:
        """Create an isolated browser context.

        Device descriptor options are applied first; an explicit viewport and
        keyword options override them.

        Args:
            browser: Browser instance to create the context in
            viewport: Viewport configuration
            device: Playwright device descriptor
            record_video_dir: Directory for per-page video recordings
            record_har_path: File receiving the network HAR
            **options: Additional context options (base_url, user_agent, ...)

        Returns:
            Browser context

        Raises:
            RuntimeError: If context creation fails
        """
        try:
            context_options: Dict[str, Any] = dict(device or {})

            if viewport:
                context_options["viewport"] = {
                    "width": viewport.width,
                    "height": viewport.height,
                }
                context_options["device_scale_factor"] = viewport.device_scale_factor
                context_options["is_mobile"] = viewport.is_mobile
                context_options["has_touch"] = viewport.has_touch

            if record_video_dir:
                context_options["record_video_dir"] = str(record_video_dir)
                size = context_options.get("viewport")
                if size:
                    context_options["record_video_size"] = size

            if record_har_path:
                context_options["record_har_path"] = str(record_har_path)

            context_options.update(options)

            context = await browser.new_context(**context_options)
            context.set_default_timeout(self.action_timeout)
            context.set_default_navigation_timeout(self.navigation_timeout)

            context_id = f"context_{id(context)}"
            self.contexts[context_id] = context

            logger.debug(f"Created browser context: {context_id}")
            return context
        except Exception as e:
            logger.error(f"Failed to create browser context: {e}")
            raise RuntimeError(f"Context creation failed: {e}")

    async def create_page(
        self, context: BrowserContext, test_logger: Optional[TestLogger] = None
    ) -> Page:
        """Create a page with default timeouts and error listeners.

        Console errors and uncaught page errors are forwarded to
        ``test_logger`` when given.

        Raises:
            RuntimeError: If page creation fails
        """
        try:
            page = await context.new_page()
            page.set_default_timeout(self.action_timeout)
            page.set_default_navigation_timeout(self.navigation_timeout)

            if test_logger is not None:
                attach_error_listeners(page, test_logger)

            page_id = f"page_{id(page)}"
            self.pages[page_id] = page

            logger.debug(f"Created page: {page_id}")
            return page
        except Exception as e:
            logger.error(f"Failed to create page: {e}")
            raise RuntimeError(f"Page creation failed: {e}")

    async def close_context(self, context: BrowserContext) -> None:
        """Close a context and forget its pages."""
        context_id = f"context_{id(context)}"
        for page_id, page in list(self.pages.items()):
            if page.context is context:
                del self.pages[page_id]
        try:
            await context.close()
            logger.debug(f"Closed context: {context_id}")
        finally:
            self.contexts.pop(context_id, None)

    async def cleanup(self) -> None:
        """Close all pages, contexts and browsers, then stop Playwright.

        Raises:
            RuntimeError: If any resource failed to close
        """
        errors = []

        for page_id, page in list(self.pages.items()):
            try:
                await page.close()
                logger.debug(f"Closed page: {page_id}")
            except Exception as e:
                errors.append(f"Failed to close page {page_id}: {e}")
        self.pages.clear()

        for context_id, context in list(self.contexts.items()):
            try:
                await context.close()
                logger.debug(f"Closed context: {context_id}")
            except Exception as e:
                errors.append(f"Failed to close context {context_id}: {e}")
        self.contexts.clear()

        for browser_key, browser in list(self.browsers.items()):
            try:
                await browser.close()
                logger.debug(f"Closed browser: {browser_key}")
            except Exception as e:
                errors.append(f"Failed to close browser {browser_key}: {e}")
        self.browsers.clear()

        if self.playwright:
            try:
                await self.playwright.stop()
                logger.info("Playwright stopped successfully")
            except Exception as e:
                errors.append(f"Failed to stop Playwright: {e}")
            self.playwright = None

        self._initialized = False

        if errors:
            error_msg = "; ".join(errors)
            logger.warning(f"Cleanup completed with errors: {error_msg}")
            raise RuntimeError(f"Cleanup errors: {error_msg}")

        logger.info("Cleanup completed successfully")


def attach_error_listeners(page: Page, test_logger: TestLogger) -> None:
    """Log browser console errors and uncaught page exceptions."""

    def on_console(message: ConsoleMessage) -> None:
        if message.type == "error":
            test_logger.error(f"Browser console error: {message.text}")

    def on_page_error(error: Any) -> None:
        test_logger.error(f"Page error: {error}")

    page.on("console", on_console)
    page.on("pageerror", on_page_error)
