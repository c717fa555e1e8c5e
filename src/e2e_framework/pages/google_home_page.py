"""Page object for the Google search home page."""

import asyncio
from typing import Dict, List, Optional
from urllib.parse import parse_qs, urlparse

from playwright.async_api import Page

from e2e_framework.pages.base_page import BasePage
from e2e_framework.utils.logger import TestLogger


class GoogleHomePage(BasePage):
    """Google home page: search box, buttons, logo and footer links."""

    SUGGESTIONS_SELECTOR = '[role="listbox"] [role="option"]'

    def __init__(
        self,
        page: Page,
        logger: Optional[TestLogger] = None,
        base_url: str = "https://www.google.com",
    ):
        super().__init__(page, logger or TestLogger("GoogleHomePage"), base_url)

        self.search_box = page.locator('[name="q"]')
        self.search_button = page.locator('[name="btnK"]').first
        self.feeling_lucky_button = page.locator('[name="btnI"]').first
        self.google_logo = page.locator('#hplogo, [alt="Google"]').first
        self.google_apps_button = page.locator('[aria-label="Google apps"]')
        self.sign_in_button = page.locator("text=Sign in")
        self.language_links = page.locator("#SIvCob a")
        self.footer_links = page.locator("#fsl a")

    async def goto(self, path: str = "") -> None:
        self.logger.info("Navigating to Google home page")
        await self.page.goto(f"{self.base_url}{path}")
        await self.wait_for_page_load()

    async def navigate(self, path: str = "") -> None:
        await self.goto(path)

    async def wait_for_page_load(self) -> None:
        self.logger.info("Waiting for Google home page to load")
        await asyncio.gather(
            self.wait_for_element(self.search_box),
            self.wait_for_element(self.google_logo),
            self.page.wait_for_load_state("networkidle"),
        )

    async def search(self, query: str) -> None:
        """Type the query and submit with Enter."""
        self.logger.info(f"Searching for: {query}")
        await self.fill_input(self.search_box, query)
        await self.press_key("Enter")
        await self.wait_for_navigation()

    async def search_with_button(self, query: str) -> None:
        self.logger.info(f"Searching for: {query} using search button")
        await self.fill_input(self.search_box, query)
        await self.click_element(self.search_button)
        await self.wait_for_navigation()

    async def click_feeling_lucky(self, query: str = "") -> None:
        self.logger.info(f"Clicking \"I'm Feeling Lucky\" with query: {query}")
        if query:
            await self.fill_input(self.search_box, query)
        await self.click_element(self.feeling_lucky_button)
        await self.wait_for_navigation()

    async def get_search_suggestions(self, query: str) -> List[str]:
        self.logger.info(f"Getting search suggestions for: {query}")
        await self.fill_input(self.search_box, query)
        await self.page.wait_for_timeout(1000)
        return await self.page.locator(self.SUGGESTIONS_SELECTOR).all_text_contents()

    async def is_google_logo_visible(self) -> bool:
        return await self.is_element_visible(self.google_logo)

    async def is_search_box_visible(self) -> bool:
        return await self.is_element_visible(self.search_box)

    async def get_language_links(self) -> List[str]:
        links = await self.language_links.all_text_contents()
        return [link for link in links if link.strip()]

    async def get_footer_links(self) -> List[Dict[str, str]]:
        links = []
        for link in await self.footer_links.all():
            text = await link.text_content() or ""
            href = await link.get_attribute("href") or ""
            if text.strip() and href:
                links.append({"text": text.strip(), "href": href})
        return links

    async def click_language_link(self, language: str) -> None:
        self.logger.info(f"Clicking language link: {language}")
        language_link = self.page.locator(f'#SIvCob a:has-text("{language}")')
        await self.click_element(language_link)
        await self.wait_for_navigation()

    async def clear_search_box(self) -> None:
        self.logger.info("Clearing search box")
        await self.search_box.clear()

    async def get_search_box_placeholder(self) -> str:
        return await self.search_box.get_attribute("placeholder") or ""

    async def is_sign_in_button_visible(self) -> bool:
        return await self.is_element_visible(self.sign_in_button)

    async def click_sign_in(self) -> None:
        self.logger.info("Clicking sign-in button")
        await self.click_element(self.sign_in_button)
        await self.wait_for_navigation()

    async def get_current_search_query(self) -> str:
        """The ``q`` URL parameter, or the search box value when absent."""
        url = await self.get_current_url()
        values = parse_qs(urlparse(url).query).get("q")
        if values and values[0]:
            return values[0]
        return await self.search_box.input_value()

    async def validate_page_elements(self) -> Dict[str, bool]:
        results = {
            "search_box": await self.is_element_visible(self.search_box),
            "search_button": await self.is_element_visible(self.search_button),
            "feeling_lucky_button": await self.is_element_visible(
                self.feeling_lucky_button
            ),
            "google_logo": await self.is_element_visible(self.google_logo),
            "sign_in_button": await self.is_element_visible(self.sign_in_button),
        }

        self.logger.info("Page elements validation", data=results)
        return results
