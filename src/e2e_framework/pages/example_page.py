"""Page object for https://example.com."""

from typing import Any, Dict, List, Optional

from playwright.async_api import Page

from e2e_framework.pages.base_page import BasePage
from e2e_framework.utils.logger import TestLogger


class ExamplePage(BasePage):
    """The example.com landing page: a heading, a paragraph and one link."""

    URL = "https://example.com"

    def __init__(self, page: Page, logger: Optional[TestLogger] = None):
        super().__init__(page, logger or TestLogger("ExamplePage"), self.URL)
        self.page_heading = page.locator("h1")
        # First paragraph only; the page has more than one
        self.page_description = page.locator("p").first
        self.more_info_link = page.locator('a[href*="iana.org"]')

    async def goto(self) -> None:
        self.logger.info("Navigating to example.com")
        await self.page.goto(self.URL)

    async def wait_for_page_load(self) -> None:
        await self.page.wait_for_load_state("networkidle")
        await self.page_heading.wait_for(state="visible")

    async def get_heading(self) -> str:
        self.logger.info("Getting page heading")
        return await self.page_heading.text_content() or ""

    async def get_description(self) -> str:
        self.logger.info("Getting page description")
        return await self.page_description.text_content() or ""

    async def has_expected_content(self) -> bool:
        """Whether the heading says "Example Domain" and the text mentions a domain."""
        try:
            heading = await self.get_heading()
            description = await self.get_description()

            has_correct_heading = "Example Domain" in heading
            has_correct_description = "domain" in description or "example" in description

            self.logger.info(f"Heading check: {has_correct_heading}")
            self.logger.info(f"Description check: {has_correct_description}")

            return has_correct_heading and has_correct_description
        except Exception as e:
            self.logger.error(f"Error checking page content: {e}")
            return False

    async def click_more_info_link(self) -> None:
        self.logger.info("Clicking more information link")
        await self.more_info_link.click()

    async def is_more_info_link_visible(self) -> bool:
        try:
            return await self.more_info_link.is_visible()
        except Exception as e:
            self.logger.error(f"Error checking more info link visibility: {e}")
            return False

    async def get_all_links(self) -> List[str]:
        """Return every anchor href on the page, fragments included."""
        self.logger.info("Getting all links on the page")
        link_urls = []
        for link in await self.page.locator("a").all():
            try:
                href = await link.get_attribute("href")
                if href:
                    link_urls.append(href)
            except Exception as e:
                self.logger.warn(f"Error getting link href: {e}")

        self.logger.info(f"Found {len(link_urls)} links")
        return link_urls

    async def validate_page_structure(self) -> Dict[str, Any]:
        self.logger.info("Validating page structure")

        has_heading = await self.page_heading.is_visible()
        has_description = await self.page_description.is_visible()
        links = await self.get_all_links()

        result = {
            "has_heading": has_heading,
            "has_description": has_description,
            "has_links": len(links) > 0,
            "link_count": len(links),
        }

        self.logger.info("Page structure validation", data=result)
        return result
