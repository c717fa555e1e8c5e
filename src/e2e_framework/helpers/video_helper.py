"""Video artifacts for tests.

Playwright records video at the browser context level; this helper copies the
recording to ``{output_dir}/videos`` under a test-specific name and attaches
it to the report.
"""

import shutil
from pathlib import Path
from typing import List, Optional, Union

from playwright.async_api import Page

from e2e_framework.helpers.screenshot_helper import (
    file_timestamp,
    remove_files_older_than,
    sanitize_name,
)
from e2e_framework.reporters.attachments import AttachmentRecorder
from e2e_framework.utils.logger import TestLogger


class VideoHelper:
    """Save and manage the video recorded for one test.

    All operations are no-ops returning ``None`` when recording is disabled.
    """

    def __init__(
        self,
        page: Page,
        test_title: str,
        output_dir: Union[str, Path] = "test-results",
        record_video: bool = False,
        attachments: Optional[AttachmentRecorder] = None,
    ):
        self.page = page
        self.test_title = test_title
        self.record_video = record_video
        self.logger = TestLogger("VideoHelper")
        self.attachments = attachments or AttachmentRecorder()
        self.video_dir = Path(output_dir) / "videos"
        self.video_dir.mkdir(parents=True, exist_ok=True)
        self._recording = False

    async def _persist(self, destination: Path) -> Optional[Path]:
        video = self.page.video
        if video is None:
            self.logger.warn("No video path available")
            return None

        if self.page.is_closed():
            # save_as waits until the recording is finalized
            await video.save_as(str(destination))
            return destination

        source = Path(await video.path())
        # Give the recorder a moment to flush
        await self.page.wait_for_timeout(1000)
        if not source.exists():
            self.logger.warn(f"Video file not found: {source}")
            return None
        shutil.copyfile(source, destination)
        return destination

    async def start_recording(self) -> None:
        if not self.record_video:
            self.logger.info("Video recording is disabled")
            return
        self._recording = True
        self.logger.success("Video recording started")

    async def stop_recording(self) -> Optional[Path]:
        """Copy the recording to the videos directory and attach it."""
        if not self.record_video:
            self.logger.info("Video recording is disabled")
            return None

        self.logger.info("Stopping video recording")
        self._recording = False
        destination = self.video_dir / (
            f"{sanitize_name(self.test_title)}-{file_timestamp()}.webm"
        )
        try:
            saved = await self._persist(destination)
        except Exception as e:
            self.logger.error(f"Failed to stop video recording: {e}")
            return None

        if saved:
            self.attachments.attach("video", saved, "video/webm")
            self.logger.success(f"Video recording saved: {saved}")
        return saved

    async def save_failure_video(self) -> Optional[Path]:
        if not self.record_video:
            return None

        self.logger.info("Saving failure video")
        destination = self.video_dir / (
            f"failure-{sanitize_name(self.test_title)}-{file_timestamp()}.webm"
        )
        try:
            saved = await self._persist(destination)
        except Exception as e:
            self.logger.error(f"Failed to save failure video: {e}")
            return None

        if saved:
            self.attachments.attach("failure-video", saved, "video/webm")
            self.logger.success(f"Failure video saved: {saved}")
        return saved

    def get_test_videos(self) -> List[Path]:
        if not self.video_dir.exists():
            return []
        test_name = sanitize_name(self.test_title)
        return sorted(
            path
            for path in self.video_dir.iterdir()
            if test_name in path.name and path.suffix == ".webm"
        )

    def cleanup_old_videos(self, days_old: int = 7) -> int:
        return remove_files_older_than(self.video_dir, days_old, self.logger)

    def get_video_size(self, video_path: Union[str, Path]) -> int:
        path = Path(video_path)
        return path.stat().st_size if path.exists() else 0

    async def cleanup(self) -> None:
        self.logger.info("Cleaning up video helper resources")
        if self.record_video and self._recording:
            await self.stop_recording()

    def is_recording_enabled(self) -> bool:
        return self.record_video

    def get_video_directory(self) -> Path:
        return self.video_dir
