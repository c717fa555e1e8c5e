"""Tests for screenshot capture and housekeeping."""

import os
import time

import pytest
from unittest.mock import AsyncMock, MagicMock
from playwright.async_api import Locator, Page

from e2e_framework.helpers.screenshot_helper import (
    MOBILE_VIEWPORTS,
    ScreenshotHelper,
    remove_files_older_than,
    sanitize_name,
)
from e2e_framework.reporters.attachments import AttachmentRecorder


@pytest.fixture
def mock_page():
    """Create a mock Page instance."""
    return AsyncMock(spec=Page)


@pytest.fixture
def helper(mock_page, tmp_path):
    """ScreenshotHelper writing below tmp_path."""
    return ScreenshotHelper(mock_page, "search: works!", output_dir=tmp_path)


def test_sanitize_name():
    """Every non-alphanumeric character becomes an underscore."""
    assert sanitize_name("search: works!") == "search__works_"
    assert sanitize_name("abc123") == "abc123"


class TestCapture:
    """Tests for the screenshot variants."""

    def test_creates_directory(self, helper, tmp_path):
        """The screenshots directory exists after construction."""
        assert helper.screenshot_dir == tmp_path / "screenshots"
        assert helper.screenshot_dir.is_dir()

    @pytest.mark.asyncio
    async def test_full_page_file_name(self, helper, mock_page):
        """Files are named {test}-{name}-{timestamp}.png."""
        path = await helper.take_full_page_screenshot("home")

        assert path.name.startswith("search__works_-home-")
        assert path.suffix == ".png"
        mock_page.screenshot.assert_called_once_with(
            path=str(path), full_page=True, type="png"
        )

    @pytest.mark.asyncio
    async def test_viewport_screenshot(self, helper, mock_page):
        """Viewport screenshots are not full page."""
        await helper.take_viewport_screenshot("fold")

        assert mock_page.screenshot.call_args.kwargs["full_page"] is False

    @pytest.mark.asyncio
    async def test_jpeg_with_quality(self, helper, mock_page):
        """Giving a quality switches to JPEG."""
        path = await helper.take_screenshot("compressed", quality=70)

        assert path.suffix == ".jpg"
        mock_page.screenshot.assert_called_once_with(
            path=str(path), full_page=True, type="jpeg", quality=70
        )

    @pytest.mark.asyncio
    async def test_element_screenshot(self, helper, mock_page):
        """Element screenshots go through the locator."""
        locator = AsyncMock(spec=Locator)
        mock_page.locator.return_value = locator

        path = await helper.take_element_screenshot("#logo", "logo")

        mock_page.locator.assert_called_once_with("#logo")
        locator.screenshot.assert_called_once_with(path=str(path), type="png")

    @pytest.mark.asyncio
    async def test_failure_screenshot_attached(self, mock_page, tmp_path):
        """Failure screenshots are attached to the report."""
        node = MagicMock(user_properties=[])
        helper = ScreenshotHelper(
            mock_page, "checkout", output_dir=tmp_path, attachments=AttachmentRecorder(node)
        )

        path = await helper.take_failure_screenshot()

        assert "failure-checkout" in path.name
        assert node.user_properties == [
            (
                "attachment",
                {"name": "failure-screenshot", "path": str(path), "content_type": "image/png"},
            )
        ]

    @pytest.mark.asyncio
    async def test_final_screenshot_attached(self, helper, mock_page):
        path = await helper.take_final_screenshot()

        assert path.name.startswith("search__works_-final-")
        assert helper.attachments.attachments[0]["name"] == "screenshot"

    @pytest.mark.asyncio
    async def test_mobile_screenshots(self, helper, mock_page):
        """One capture per mobile viewport."""
        paths = await helper.take_mobile_screenshots("responsive")

        assert len(paths) == len(MOBILE_VIEWPORTS)
        mock_page.set_viewport_size.assert_any_call({"width": 375, "height": 667})
        assert "responsive-tablet-landscape" in paths[-1].name

    @pytest.mark.asyncio
    async def test_before_after(self, helper, mock_page):
        """The action runs between the two captures."""
        action = AsyncMock()

        shots = await helper.take_before_after_screenshots("toggle", action)

        action.assert_awaited_once()
        assert "toggle-before" in shots["before"].name
        assert "toggle-after" in shots["after"].name
        assert mock_page.screenshot.call_count == 2

    @pytest.mark.asyncio
    async def test_annotated_screenshot(self, helper, mock_page):
        """The overlay is added and then removed."""
        annotations = [{"x": 10, "y": 20, "text": "Search box"}]

        path = await helper.take_annotated_screenshot("annotated", annotations)

        assert "annotated-annotated" in path.name
        assert mock_page.evaluate.call_count == 2
        assert mock_page.evaluate.call_args_list[0].args[1] == annotations


class TestHousekeeping:
    """Tests for listing and cleaning screenshots."""

    def test_get_test_screenshots(self, helper):
        """Only this test's PNG files are listed."""
        mine = helper.screenshot_dir / "search__works_-a-1.png"
        other = helper.screenshot_dir / "other-a-1.png"
        mine.write_bytes(b"")
        other.write_bytes(b"")

        assert helper.get_test_screenshots() == [mine]

    def test_cleanup_old_screenshots(self, helper):
        """Files older than the cutoff are deleted."""
        old = helper.screenshot_dir / "old.png"
        new = helper.screenshot_dir / "new.png"
        old.write_bytes(b"")
        new.write_bytes(b"")
        ten_days_ago = time.time() - 10 * 24 * 60 * 60
        os.utime(old, (ten_days_ago, ten_days_ago))

        assert helper.cleanup_old_screenshots(days_old=7) == 1
        assert not old.exists()
        assert new.exists()

    def test_remove_missing_directory(self, tmp_path):
        """A missing directory removes nothing."""
        assert remove_files_older_than(tmp_path / "missing", 1) == 0
