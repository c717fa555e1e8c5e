"""Base class for page objects.

Page objects wrap a Playwright ``Page`` and expose intention-revealing
operations. Subclasses define their locators in ``__init__`` and implement
``goto`` and ``wait_for_page_load``.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Optional

from playwright.async_api import Locator, Page

from e2e_framework.utils.logger import TestLogger

SCREENSHOT_DIR = Path("test-results/screenshots")


class BasePage(ABC):
    """Abstract page object with navigation, wait and retry helpers.

    Example:
        class LoginPage(BasePage):
            def __init__(self, page, logger=None):
                super().__init__(page, logger, "https://app.example.com")
                self.username = page.locator("#username")

            async def goto(self, path: str = "/login") -> None:
                await self.page.goto(f"{self.base_url}{path}")

            async def wait_for_page_load(self) -> None:
                await self.username.wait_for(state="visible")
    """

    RETRY_DELAY_MS = 1000

    def __init__(
        self,
        page: Page,
        logger: Optional[TestLogger] = None,
        base_url: Optional[str] = None,
    ):
        self.page = page
        self.logger = logger or TestLogger(self.__class__.__name__)
        self.base_url = base_url or "https://example.com"

    @abstractmethod
    async def goto(self, *args, **kwargs) -> None:
        """Navigate to the page."""

    @abstractmethod
    async def wait_for_page_load(self) -> None:
        """Wait until the page is ready for interaction."""

    async def get_title(self) -> str:
        return await self.page.title()

    async def get_current_url(self) -> str:
        return self.page.url

    async def wait_for_element(self, locator: Locator, timeout: int = 30000) -> None:
        await locator.wait_for(state="visible", timeout=timeout)

    async def wait_for_element_to_be_hidden(
        self, locator: Locator, timeout: int = 30000
    ) -> None:
        await locator.wait_for(state="hidden", timeout=timeout)

    async def scroll_into_view(self, locator: Locator) -> None:
        await locator.scroll_into_view_if_needed()

    async def take_screenshot(self, name: str) -> bytes:
        """Save a full-page screenshot to ``test-results/screenshots/{name}.png``."""
        self.logger.info(f"Taking screenshot: {name}")
        SCREENSHOT_DIR.mkdir(parents=True, exist_ok=True)
        return await self.page.screenshot(
            path=str(SCREENSHOT_DIR / f"{name}.png"), full_page=True
        )

    async def wait_for_network_idle(self, timeout: int = 30000) -> None:
        await self.page.wait_for_load_state("networkidle", timeout=timeout)

    async def get_all_links(self) -> List[str]:
        """Return hrefs of all links, skipping ``javascript:`` and fragment links."""
        hrefs = []
        for link in await self.page.locator("a[href]").all():
            href = await link.get_attribute("href")
            if href and not href.startswith("javascript:") and not href.startswith("#"):
                hrefs.append(href)
        return hrefs

    async def get_all_images(self) -> List[Dict[str, str]]:
        """Return ``{"src", "alt"}`` for every image that has a src."""
        images = []
        for img in await self.page.locator("img").all():
            src = await img.get_attribute("src")
            alt = await img.get_attribute("alt") or ""
            if src:
                images.append({"src": src, "alt": alt})
        return images

    async def is_element_present(self, locator: Locator) -> bool:
        try:
            await locator.wait_for(state="attached", timeout=5000)
            return True
        except Exception:
            return False

    async def is_element_visible(self, locator: Locator) -> bool:
        try:
            await locator.wait_for(state="visible", timeout=5000)
            return True
        except Exception:
            return False

    async def get_element_text(self, locator: Locator) -> str:
        await self.wait_for_element(locator)
        return await locator.text_content() or ""

    async def click_element(self, locator: Locator, retries: int = 3) -> None:
        """Click once the element is visible, retrying on failure.

        The error from the final attempt is re-raised.
        """
        for attempt in range(retries):
            try:
                await self.wait_for_element(locator)
                await locator.click()
                return
            except Exception:
                if attempt == retries - 1:
                    raise
                self.logger.warn(f"Click attempt {attempt + 1} failed, retrying...")
                await self.page.wait_for_timeout(self.RETRY_DELAY_MS)

    async def fill_input(self, locator: Locator, value: str, retries: int = 3) -> None:
        """Clear and fill an input, retrying on failure."""
        for attempt in range(retries):
            try:
                await self.wait_for_element(locator)
                await locator.clear()
                await locator.fill(value)
                return
            except Exception:
                if attempt == retries - 1:
                    raise
                self.logger.warn(f"Fill attempt {attempt + 1} failed, retrying...")
                await self.page.wait_for_timeout(self.RETRY_DELAY_MS)

    async def press_key(self, key: str) -> None:
        await self.page.keyboard.press(key)

    async def wait_for_navigation(self, timeout: int = 30000) -> None:
        await self.page.wait_for_load_state("domcontentloaded", timeout=timeout)

    async def refresh(self) -> None:
        await self.page.reload()
        await self.wait_for_page_load()

    async def go_back(self) -> None:
        await self.page.go_back()
        await self.wait_for_page_load()

    async def go_forward(self) -> None:
        await self.page.go_forward()
        await self.wait_for_page_load()
