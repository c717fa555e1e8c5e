"""Tests for the Google home and search results page objects."""

import pytest
from unittest.mock import AsyncMock
from playwright.async_api import Locator, Page

from e2e_framework.pages.google_home_page import GoogleHomePage
from e2e_framework.pages.google_search_results_page import GoogleSearchResultsPage


def make_locator():
    locator = AsyncMock(spec=Locator)
    locator.first = locator
    locator.locator.side_effect = lambda selector: locator
    return locator


@pytest.fixture
def mock_page():
    """Mock Page whose locator() returns one cached mock per selector."""
    page = AsyncMock(spec=Page)
    locators = {}
    page.locator.side_effect = lambda selector: locators.setdefault(selector, make_locator())
    page.keyboard = AsyncMock()
    page.url = "https://www.google.com/"
    return page


@pytest.fixture
def home_page(mock_page):
    """Create a GoogleHomePage for testing."""
    return GoogleHomePage(mock_page)


@pytest.fixture
def results_page(mock_page):
    """Create a GoogleSearchResultsPage for testing."""
    return GoogleSearchResultsPage(mock_page)


class TestGoogleHomePage:
    """Tests for GoogleHomePage."""

    @pytest.mark.asyncio
    async def test_goto_waits_for_load(self, home_page, mock_page):
        """goto navigates and waits for search box, logo and network idle."""
        await home_page.goto("/?hl=en")

        mock_page.goto.assert_called_once_with("https://www.google.com/?hl=en")
        home_page.search_box.wait_for.assert_called()
        home_page.google_logo.wait_for.assert_called()
        mock_page.wait_for_load_state.assert_any_call("networkidle")

    @pytest.mark.asyncio
    async def test_search_submits_with_enter(self, home_page, mock_page):
        """search fills the query and presses Enter."""
        await home_page.search("playwright testing")

        home_page.search_box.fill.assert_called_once_with("playwright testing")
        mock_page.keyboard.press.assert_called_once_with("Enter")
        mock_page.wait_for_load_state.assert_called_with(
            "domcontentloaded", timeout=30000
        )

    @pytest.mark.asyncio
    async def test_search_with_button(self, home_page):
        """search_with_button clicks the search button."""
        await home_page.search_with_button("python automation")

        home_page.search_button.click.assert_called_once()

    @pytest.mark.asyncio
    async def test_current_query_from_url(self, home_page, mock_page):
        """The q parameter wins over the search box."""
        mock_page.url = "https://www.google.com/search?q=python+automation&hl=en"

        assert await home_page.get_current_search_query() == "python automation"

    @pytest.mark.asyncio
    async def test_current_query_from_search_box(self, home_page):
        """Without a q parameter the search box value is used."""
        home_page.search_box.input_value = AsyncMock(return_value="typed")

        assert await home_page.get_current_search_query() == "typed"

    @pytest.mark.asyncio
    async def test_language_links_skip_blank(self, home_page):
        """Blank language links are dropped."""
        home_page.language_links.all_text_contents = AsyncMock(
            return_value=["Deutsch", " ", "Français"]
        )

        assert await home_page.get_language_links() == ["Deutsch", "Français"]

    @pytest.mark.asyncio
    async def test_footer_links(self, home_page):
        """Footer links need both text and href."""
        about = AsyncMock(spec=Locator)
        about.text_content = AsyncMock(return_value=" About ")
        about.get_attribute = AsyncMock(return_value="https://about.google")
        empty = AsyncMock(spec=Locator)
        empty.text_content = AsyncMock(return_value="Ads")
        empty.get_attribute = AsyncMock(return_value=None)
        home_page.footer_links.all = AsyncMock(return_value=[about, empty])

        assert await home_page.get_footer_links() == [
            {"text": "About", "href": "https://about.google"}
        ]

    @pytest.mark.asyncio
    async def test_validate_page_elements(self, home_page):
        """Every key element is reported."""
        results = await home_page.validate_page_elements()

        assert set(results) == {
            "search_box",
            "search_button",
            "feeling_lucky_button",
            "google_logo",
            "sign_in_button",
        }
        assert all(results.values())


class TestGoogleSearchResultsPage:
    """Tests for GoogleSearchResultsPage."""

    @pytest.mark.asyncio
    async def test_goto_encodes_query(self, results_page, mock_page):
        """Queries are URL-encoded into the search URL."""
        await results_page.goto("playwright & python")

        mock_page.goto.assert_called_once_with(
            "https://www.google.com/search?q=playwright+%26+python"
        )

    @pytest.mark.asyncio
    async def test_result_count(self, results_page):
        """Result count is the number of result containers."""
        results_page.search_results.all = AsyncMock(return_value=[object()] * 3)

        assert await results_page.get_result_count() == 3
        assert await results_page.has_results() is True

    @pytest.mark.asyncio
    async def test_click_result_out_of_bounds(self, results_page):
        """Clicking a missing result raises IndexError."""
        results_page.search_results.all = AsyncMock(return_value=[make_locator()])

        with pytest.raises(IndexError, match="out of bounds. Found 1 results"):
            await results_page.click_search_result(1)

    @pytest.mark.asyncio
    async def test_click_result(self, results_page):
        """The result's title link is clicked."""
        result = make_locator()
        results_page.search_results.all = AsyncMock(return_value=[result])

        await results_page.click_search_result(0)

        result.click.assert_called_once()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "url,expected",
        [
            ("https://www.google.com/search?q=x", 1),
            ("https://www.google.com/search?q=x&start=10", 2),
            ("https://www.google.com/search?q=x&start=20", 3),
            ("https://www.google.com/search?q=x&start=abc", 1),
        ],
    )
    async def test_current_page_number(self, results_page, mock_page, url, expected):
        """Page number is derived from the start parameter."""
        mock_page.url = url

        assert await results_page.get_current_page_number() == expected

    @pytest.mark.asyncio
    async def test_next_page_unavailable(self, results_page):
        """Missing pagination raises RuntimeError."""
        results_page.next_button.wait_for = AsyncMock(side_effect=Exception("timeout"))

        with pytest.raises(RuntimeError, match="Next button is not available"):
            await results_page.go_to_next_page()

    @pytest.mark.asyncio
    async def test_result_stats_missing(self, results_page):
        """Missing stats give an empty string."""
        results_page.result_stats.wait_for = AsyncMock(side_effect=Exception("timeout"))

        assert await results_page.get_result_stats() == ""

    @pytest.mark.asyncio
    async def test_result_urls_skip_google_links(self, results_page, mock_page):
        """Links back into Google search are not results."""
        links = []
        for href in ("https://playwright.dev", "/search?q=more", "https://www.google.com/search?q=x"):
            link = AsyncMock(spec=Locator)
            link.get_attribute = AsyncMock(return_value=href)
            links.append(link)
        mock_page.locator.side_effect = None
        scoped = make_locator()
        scoped.all = AsyncMock(side_effect=[links, [], []])
        mock_page.locator.return_value = scoped

        assert await results_page.get_search_result_urls() == ["https://playwright.dev"]

    @pytest.mark.asyncio
    async def test_related_searches(self, results_page):
        """Blank related searches are dropped."""
        results_page.related_searches.all_text_contents = AsyncMock(
            return_value=["playwright python", ""]
        )

        assert await results_page.get_related_searches() == ["playwright python"]

    @pytest.mark.asyncio
    async def test_structured_results(self, results_page):
        """Results without title or URL are skipped."""
        good = make_locator()
        good.text_content = AsyncMock(side_effect=[" Playwright ", " Fast and reliable "])
        good.get_attribute = AsyncMock(return_value="https://playwright.dev")
        untitled = make_locator()
        untitled.text_content = AsyncMock(side_effect=["", "snippet"])
        untitled.get_attribute = AsyncMock(return_value="https://example.com")
        results_page.search_results.all = AsyncMock(return_value=[good, untitled])

        assert await results_page.get_structured_results() == [
            {
                "title": "Playwright",
                "url": "https://playwright.dev",
                "snippet": "Fast and reliable",
            }
        ]
