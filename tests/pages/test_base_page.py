"""Tests for the BasePage navigation, wait and retry helpers."""

import pytest
from unittest.mock import AsyncMock, MagicMock
from playwright.async_api import Locator, Page

from e2e_framework.pages.base_page import BasePage


class StubPage(BasePage):
    """Minimal concrete page object."""

    def __init__(self, page, logger=None):
        super().__init__(page, logger)
        self.loaded = 0

    async def goto(self) -> None:
        await self.page.goto(self.base_url)

    async def wait_for_page_load(self) -> None:
        self.loaded += 1


def make_locator():
    locator = AsyncMock(spec=Locator)
    locator.first = locator
    return locator


def make_link(href):
    link = AsyncMock(spec=Locator)
    link.get_attribute = AsyncMock(return_value=href)
    return link


@pytest.fixture
def mock_page():
    """Mock Page whose locator() returns one cached mock per selector."""
    page = AsyncMock(spec=Page)
    locators = {}
    page.locator.side_effect = lambda selector: locators.setdefault(selector, make_locator())
    page.keyboard = AsyncMock()
    page.url = "https://example.com/path"
    return page


@pytest.fixture
def base_page(mock_page):
    """Create a concrete BasePage for testing."""
    return StubPage(mock_page)


class TestBasics:
    """Tests for simple accessors."""

    def test_defaults(self, base_page):
        """Base URL and logger context default sensibly."""
        assert base_page.base_url == "https://example.com"
        assert base_page.logger.context == "StubPage"

    def test_cannot_instantiate_abstract(self, mock_page):
        """BasePage itself is abstract."""
        with pytest.raises(TypeError):
            BasePage(mock_page)

    @pytest.mark.asyncio
    async def test_title_and_url(self, base_page, mock_page):
        """Title and URL come from the page."""
        mock_page.title = AsyncMock(return_value="Example Domain")

        assert await base_page.get_title() == "Example Domain"
        assert await base_page.get_current_url() == "https://example.com/path"


class TestWaits:
    """Tests for wait and visibility helpers."""

    @pytest.mark.asyncio
    async def test_wait_for_element(self, base_page):
        """Elements are awaited in the visible state."""
        locator = make_locator()

        await base_page.wait_for_element(locator, timeout=100)

        locator.wait_for.assert_called_once_with(state="visible", timeout=100)

    @pytest.mark.asyncio
    async def test_is_element_visible_false_on_timeout(self, base_page):
        """A wait failure means the element is not visible."""
        locator = make_locator()
        locator.wait_for = AsyncMock(side_effect=Exception("Timeout 5000ms exceeded"))

        assert await base_page.is_element_visible(locator) is False
        assert await base_page.is_element_present(locator) is False

    @pytest.mark.asyncio
    async def test_get_element_text(self, base_page):
        """Missing text content becomes an empty string."""
        locator = make_locator()
        locator.text_content = AsyncMock(return_value=None)

        assert await base_page.get_element_text(locator) == ""

    @pytest.mark.asyncio
    async def test_network_idle(self, base_page, mock_page):
        """Network idle waits on the load state."""
        await base_page.wait_for_network_idle(timeout=500)

        mock_page.wait_for_load_state.assert_called_once_with("networkidle", timeout=500)


class TestRetries:
    """Tests for click and fill retries."""

    @pytest.mark.asyncio
    async def test_click_retries_then_succeeds(self, base_page, mock_page):
        """A failed click is retried after a delay."""
        locator = make_locator()
        locator.click = AsyncMock(side_effect=[Exception("detached"), None])

        await base_page.click_element(locator)

        assert locator.click.call_count == 2
        mock_page.wait_for_timeout.assert_called_once_with(BasePage.RETRY_DELAY_MS)

    @pytest.mark.asyncio
    async def test_click_raises_last_error(self, base_page):
        """The final attempt's error is re-raised."""
        locator = make_locator()
        locator.click = AsyncMock(side_effect=Exception("still detached"))

        with pytest.raises(Exception, match="still detached"):
            await base_page.click_element(locator, retries=2)

        assert locator.click.call_count == 2

    @pytest.mark.asyncio
    async def test_fill_clears_first(self, base_page):
        """fill_input clears the field before filling."""
        locator = make_locator()
        calls = MagicMock()
        locator.clear = AsyncMock(side_effect=lambda: calls("clear"))
        locator.fill = AsyncMock(side_effect=lambda value: calls("fill", value))

        await base_page.fill_input(locator, "playwright")

        assert [c.args for c in calls.call_args_list] == [("clear",), ("fill", "playwright")]


class TestCollections:
    """Tests for link and image collection."""

    @pytest.mark.asyncio
    async def test_get_all_links_filters(self, base_page, mock_page):
        """javascript: and fragment links are skipped."""
        links = [
            make_link("https://iana.org"),
            make_link("javascript:void(0)"),
            make_link("#top"),
            make_link("/about"),
        ]
        mock_page.locator("a[href]").all = AsyncMock(return_value=links)

        assert await base_page.get_all_links() == ["https://iana.org", "/about"]

    @pytest.mark.asyncio
    async def test_get_all_images(self, base_page, mock_page):
        """Images without src are skipped and a missing alt becomes ''."""
        with_alt = AsyncMock(spec=Locator)
        with_alt.get_attribute = AsyncMock(side_effect=["/logo.png", "Logo"])
        no_alt = AsyncMock(spec=Locator)
        no_alt.get_attribute = AsyncMock(side_effect=["/hero.png", None])
        no_src = AsyncMock(spec=Locator)
        no_src.get_attribute = AsyncMock(side_effect=[None, "x"])
        mock_page.locator("img").all = AsyncMock(return_value=[with_alt, no_alt, no_src])

        images = await base_page.get_all_images()

        assert images == [
            {"src": "/logo.png", "alt": "Logo"},
            {"src": "/hero.png", "alt": ""},
        ]


class TestNavigation:
    """Tests for history navigation and screenshots."""

    @pytest.mark.asyncio
    async def test_refresh_waits_for_load(self, base_page, mock_page):
        """History navigation waits for the page to load each time."""
        await base_page.refresh()
        await base_page.go_back()
        await base_page.go_forward()

        mock_page.reload.assert_called_once()
        mock_page.go_back.assert_called_once()
        mock_page.go_forward.assert_called_once()
        assert base_page.loaded == 3

    @pytest.mark.asyncio
    async def test_press_key(self, base_page, mock_page):
        """Keys go through the page keyboard."""
        await base_page.press_key("Enter")

        mock_page.keyboard.press.assert_called_once_with("Enter")

    @pytest.mark.asyncio
    async def test_take_screenshot(self, base_page, mock_page, tmp_path, monkeypatch):
        """Screenshots are full page and named after the step."""
        monkeypatch.chdir(tmp_path)
        mock_page.screenshot = AsyncMock(return_value=b"png")

        data = await base_page.take_screenshot("home")

        assert data == b"png"
        mock_page.screenshot.assert_called_once_with(
            path="test-results/screenshots/home.png", full_page=True
        )
        assert (tmp_path / "test-results" / "screenshots").is_dir()
