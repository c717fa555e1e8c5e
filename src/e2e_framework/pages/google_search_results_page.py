"""Page object for the Google search results page."""

import asyncio
from typing import Dict, List, Optional
from urllib.parse import parse_qs, quote_plus, urlparse

from playwright.async_api import Locator, Page

from e2e_framework.pages.base_page import BasePage
from e2e_framework.utils.logger import TestLogger

RESULT_CONTAINERS = ("#search .g", "#search .hlcw0c")
TITLE_SELECTORS = ("h3", ".LC20lb", "[data-attrid] h3", ".r h3")
URL_SELECTORS = ("h3 a", ".LC20lb a", ".r a")


def _scoped(selector: str) -> str:
    return ", ".join(f"{container} {selector}" for container in RESULT_CONTAINERS)


class GoogleSearchResultsPage(BasePage):
    """Google results listing with pagination, tabs and related searches."""

    def __init__(
        self,
        page: Page,
        logger: Optional[TestLogger] = None,
        base_url: str = "https://www.google.com",
    ):
        super().__init__(page, logger or TestLogger("GoogleSearchResultsPage"), base_url)

        self.search_box = page.locator('[name="q"]')
        self.search_results = page.locator(", ".join(RESULT_CONTAINERS))
        self.result_stats = page.locator("#result-stats")
        self.next_button = page.locator("#pnnext")
        self.previous_button = page.locator("#pnprev")
        self.pagination_numbers = page.locator('#nav [role="navigation"] a')
        self.images_tab = page.locator('[data-hveid] a:has-text("Images")')
        self.videos_tab = page.locator('[data-hveid] a:has-text("Videos")')
        self.news_tab = page.locator('[data-hveid] a:has-text("News")')
        self.tools_button = page.locator("#hdtb-tls")
        self.related_searches = page.locator("#brs a")
        self.results_container = page.locator("#search")

    async def goto(self, query: str = "") -> None:
        if query:
            search_url = f"{self.base_url}/search?q={quote_plus(query)}"
        else:
            search_url = f"{self.base_url}/search"
        self.logger.info(f"Navigating to search results page: {search_url}")
        await self.page.goto(search_url)
        await self.wait_for_page_load()

    async def wait_for_page_load(self) -> None:
        self.logger.info("Waiting for search results page to load")
        await asyncio.gather(
            self.wait_for_element(self.search_box),
            self.wait_for_element(self.results_container),
            self.page.wait_for_load_state("networkidle"),
        )

    async def get_result_count(self) -> int:
        await self.wait_for_element(self.search_results.first)
        results = await self.search_results.all()
        self.logger.info(f"Found {len(results)} search results")
        return len(results)

    async def get_result_stats(self) -> str:
        """Text of the "About N results" line, or "" when missing."""
        try:
            await self.wait_for_element(self.result_stats)
            stats = await self.get_element_text(self.result_stats)
            self.logger.info(f"Result stats: {stats}")
            return stats
        except Exception:
            self.logger.warn("Result stats not found")
            return ""

    async def get_search_result_titles(self) -> List[str]:
        titles = []
        for selector in TITLE_SELECTORS:
            for element in await self.page.locator(_scoped(selector)).all():
                title = await element.text_content()
                if title and title.strip():
                    titles.append(title.strip())

        self.logger.info(f"Found {len(titles)} result titles")
        return titles

    async def get_search_result_urls(self) -> List[str]:
        """Result hrefs, excluding links back into Google search."""
        urls = []
        for selector in URL_SELECTORS:
            for element in await self.page.locator(_scoped(selector)).all():
                href = await element.get_attribute("href")
                if href and not href.startswith("/search") and "google.com/search" not in href:
                    urls.append(href)

        self.logger.info(f"Found {len(urls)} result URLs")
        return urls

    async def click_search_result(self, index: int) -> None:
        """Open the result at ``index``.

        Raises:
            IndexError: If fewer than ``index + 1`` results are shown
        """
        self.logger.info(f"Clicking search result at index: {index}")
        results = await self.search_results.all()

        if index < 0 or index >= len(results):
            raise IndexError(
                f"Result index {index} is out of bounds. Found {len(results)} results."
            )

        result_link = results[index].locator("h3 a, .LC20lb a").first
        await self.click_element(result_link)
        await self.wait_for_navigation()

    async def search_new_query(self, query: str) -> None:
        self.logger.info(f"Searching for new query: {query}")
        await self.search_box.clear()
        await self.fill_input(self.search_box, query)
        await self.press_key("Enter")
        await self.wait_for_navigation()

    async def _click_if_visible(self, locator: Locator, unavailable: str) -> None:
        if not await self.is_element_visible(locator):
            raise RuntimeError(unavailable)
        await self.click_element(locator)
        await self.wait_for_navigation()

    async def go_to_next_page(self) -> None:
        self.logger.info("Going to next page of results")
        await self._click_if_visible(self.next_button, "Next button is not available")

    async def go_to_previous_page(self) -> None:
        self.logger.info("Going to previous page of results")
        await self._click_if_visible(
            self.previous_button, "Previous button is not available"
        )

    async def go_to_page(self, page_number: int) -> None:
        self.logger.info(f"Going to page: {page_number}")
        page_link = self.page.locator(f'#nav a[aria-label="Page {page_number}"]')
        await self._click_if_visible(page_link, f"Page {page_number} is not available")

    async def get_current_page_number(self) -> int:
        """Page number derived from the ``start`` URL parameter (10 results per page)."""
        try:
            url = await self.get_current_url()
            start = parse_qs(urlparse(url).query).get("start")
            return int(start[0]) // 10 + 1 if start else 1
        except (ValueError, IndexError):
            return 1

    async def is_next_page_available(self) -> bool:
        return await self.is_element_visible(self.next_button)

    async def is_previous_page_available(self) -> bool:
        return await self.is_element_visible(self.previous_button)

    async def click_images_tab(self) -> None:
        self.logger.info("Clicking Images tab")
        await self.click_element(self.images_tab)
        await self.wait_for_navigation()

    async def click_videos_tab(self) -> None:
        self.logger.info("Clicking Videos tab")
        await self.click_element(self.videos_tab)
        await self.wait_for_navigation()

    async def click_news_tab(self) -> None:
        self.logger.info("Clicking News tab")
        await self.click_element(self.news_tab)
        await self.wait_for_navigation()

    async def get_related_searches(self) -> List[str]:
        try:
            searches = await self.related_searches.all_text_contents()
        except Exception:
            self.logger.info("No related searches found")
            return []
        filtered = [search for search in searches if search.strip()]
        self.logger.info(f"Found {len(filtered)} related searches")
        return filtered

    async def has_results(self) -> bool:
        return await self.get_result_count() > 0

    async def get_current_search_query(self) -> str:
        url = await self.get_current_url()
        values = parse_qs(urlparse(url).query).get("q")
        if values and values[0]:
            return values[0]
        return await self.search_box.input_value()

    async def validate_page_elements(self) -> Dict[str, bool]:
        results = {
            "search_box": await self.is_element_visible(self.search_box),
            "search_results": await self.get_result_count() > 0,
            "result_stats": await self.is_element_visible(self.result_stats),
            "results_container": await self.is_element_visible(self.results_container),
        }

        self.logger.info("Search results page elements validation", data=results)
        return results

    async def get_structured_results(self) -> List[Dict[str, str]]:
        """Title, URL and snippet of each result; unparseable results are skipped."""
        structured = []
        for result in await self.search_results.all():
            try:
                title = await result.locator("h3, .LC20lb").first.text_content() or ""
                url = await result.locator("a").first.get_attribute("href") or ""
                snippet = (
                    await result.locator(".VwiC3b, .s3v9rd, .IsZvec").first.text_content()
                    or ""
                )
            except Exception as e:
                self.logger.debug(f"Skipping unparseable result: {e}")
                continue

            if title and url:
                structured.append(
                    {"title": title.strip(), "url": url, "snippet": snippet.strip()}
                )

        self.logger.info(f"Extracted {len(structured)} structured results")
        return structured
