"""Tests for saving per-test videos."""

import pytest
from unittest.mock import AsyncMock, MagicMock
from playwright.async_api import Page, Video

from e2e_framework.helpers.video_helper import VideoHelper
from e2e_framework.reporters.attachments import AttachmentRecorder


@pytest.fixture
def raw_video(tmp_path):
    """A finished recording on disk."""
    path = tmp_path / "raw" / "abc.webm"
    path.parent.mkdir()
    path.write_bytes(b"webm-data")
    return path


@pytest.fixture
def mock_page(raw_video):
    """Open page whose video points at raw_video."""
    page = AsyncMock(spec=Page)
    page.is_closed.return_value = False
    page.video = AsyncMock(spec=Video)
    page.video.path = AsyncMock(return_value=str(raw_video))
    return page


@pytest.fixture
def node():
    """pytest item stand-in collecting user properties."""
    return MagicMock(user_properties=[])


@pytest.fixture
def helper(mock_page, tmp_path, node):
    """VideoHelper with recording enabled."""
    return VideoHelper(
        mock_page,
        "video test",
        output_dir=tmp_path / "results",
        record_video=True,
        attachments=AttachmentRecorder(node),
    )


class TestVideoHelper:
    """Tests for VideoHelper."""

    @pytest.mark.asyncio
    async def test_disabled_is_noop(self, mock_page, tmp_path):
        """With recording disabled nothing is saved."""
        helper = VideoHelper(mock_page, "t", output_dir=tmp_path, record_video=False)

        assert await helper.stop_recording() is None
        assert await helper.save_failure_video() is None
        assert helper.is_recording_enabled() is False
        mock_page.video.path.assert_not_called()

    @pytest.mark.asyncio
    async def test_stop_recording_copies_open_page(self, helper, node):
        """An open page's recording is copied and attached."""
        await helper.start_recording()

        saved = await helper.stop_recording()

        assert saved.parent == helper.get_video_directory()
        assert saved.name.startswith("video_test-")
        assert saved.read_bytes() == b"webm-data"
        assert node.user_properties[0][1]["name"] == "video"
        assert node.user_properties[0][1]["content_type"] == "video/webm"

    @pytest.mark.asyncio
    async def test_closed_page_uses_save_as(self, helper, mock_page):
        """A closed page's recording is saved through Playwright."""
        mock_page.is_closed.return_value = True

        saved = await helper.save_failure_video()

        assert saved.name.startswith("failure-video_test-")
        mock_page.video.save_as.assert_called_once_with(str(saved))

    @pytest.mark.asyncio
    async def test_no_video(self, helper, mock_page, node):
        """A page without video yields None."""
        mock_page.video = None

        assert await helper.stop_recording() is None
        assert node.user_properties == []

    @pytest.mark.asyncio
    async def test_missing_file(self, helper, raw_video):
        """A recording missing on disk yields None."""
        raw_video.unlink()

        assert await helper.stop_recording() is None

    @pytest.mark.asyncio
    async def test_errors_are_swallowed(self, helper, mock_page):
        """Save errors are logged, not raised."""
        mock_page.video.path = AsyncMock(side_effect=Exception("context closed"))

        assert await helper.save_failure_video() is None

    @pytest.mark.asyncio
    async def test_cleanup_stops_active_recording(self, helper):
        """cleanup saves a recording that was started but not stopped."""
        await helper.start_recording()

        await helper.cleanup()

        assert len(helper.get_test_videos()) == 1

    def test_video_size(self, helper, raw_video, tmp_path):
        """Size of an existing file, 0 otherwise."""
        assert helper.get_video_size(raw_video) == len(b"webm-data")
        assert helper.get_video_size(tmp_path / "none.webm") == 0
