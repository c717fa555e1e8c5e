"""Screenshot capture and housekeeping for tests.

Every file is written to ``{output_dir}/screenshots`` and named
``{test}-{name}-{timestamp}.png`` where ``{test}`` is the test title with
every non-alphanumeric character replaced by ``_``.
"""

import re
import time
from datetime import datetime
from pathlib import Path
from typing import Awaitable, Callable, Dict, List, Optional, Union

from playwright.async_api import Page

from e2e_framework.reporters.attachments import AttachmentRecorder
from e2e_framework.utils.logger import TestLogger

MOBILE_VIEWPORTS = [
    {"name": "mobile-portrait", "width": 375, "height": 667},
    {"name": "mobile-landscape", "width": 667, "height": 375},
    {"name": "tablet-portrait", "width": 768, "height": 1024},
    {"name": "tablet-landscape", "width": 1024, "height": 768},
]


def sanitize_name(value: str) -> str:
    """Replace every non-alphanumeric character with an underscore."""
    return re.sub(r"[^a-zA-Z0-9]", "_", value)


def file_timestamp() -> str:
    return datetime.now().isoformat().replace(":", "-").replace(".", "-")


class ScreenshotHelper:
    """Take and manage screenshots for one test."""

    def __init__(
        self,
        page: Page,
        test_title: str,
        output_dir: Union[str, Path] = "test-results",
        attachments: Optional[AttachmentRecorder] = None,
    ):
        self.page = page
        self.test_title = test_title
        self.logger = TestLogger("ScreenshotHelper")
        self.attachments = attachments or AttachmentRecorder()
        self.screenshot_dir = Path(output_dir) / "screenshots"
        self.screenshot_dir.mkdir(parents=True, exist_ok=True)

    def _file_name(self, name: str) -> Path:
        return self.screenshot_dir / (
            f"{sanitize_name(self.test_title)}-{name}-{file_timestamp()}.png"
        )

    async def _capture(self, name: str, full_page: bool = True) -> Path:
        path = self._file_name(name)
        await self.page.screenshot(path=str(path), full_page=full_page, type="png")
        return path

    async def take_full_page_screenshot(self, name: Optional[str] = None) -> Path:
        name = name or f"fullpage-{int(time.time() * 1000)}"
        path = await self._capture(name, full_page=True)
        self.logger.success(f"Full page screenshot saved: {path}")
        return path

    async def take_viewport_screenshot(self, name: Optional[str] = None) -> Path:
        name = name or f"viewport-{int(time.time() * 1000)}"
        path = await self._capture(name, full_page=False)
        self.logger.success(f"Viewport screenshot saved: {path}")
        return path

    async def take_element_screenshot(
        self, selector: str, name: Optional[str] = None
    ) -> Path:
        self.logger.info(f"Taking element screenshot for selector: {selector}")
        path = self._file_name(name or f"element-{int(time.time() * 1000)}")
        await self.page.locator(selector).screenshot(path=str(path), type="png")
        self.logger.success(f"Element screenshot saved: {path}")
        return path

    async def take_screenshot(
        self, name: str, full_page: bool = True, quality: Optional[int] = None
    ) -> Path:
        """Take a PNG, or a JPEG when ``quality`` is given."""
        if quality is None:
            return await self._capture(name, full_page=full_page)

        path = self._file_name(name).with_suffix(".jpg")
        await self.page.screenshot(
            path=str(path), full_page=full_page, type="jpeg", quality=quality
        )
        return path

    async def take_failure_screenshot(self) -> Path:
        """Capture the full page and attach it to the test report."""
        path = await self._capture(f"failure-{sanitize_name(self.test_title)}")
        self.attachments.attach("failure-screenshot", path, "image/png")
        self.logger.success(f"Failure screenshot saved and attached: {path}")
        return path

    async def take_final_screenshot(self) -> Path:
        """Capture the page as the test left it and attach it."""
        path = await self._capture("final")
        self.attachments.attach("screenshot", path, "image/png")
        self.logger.success(f"Screenshot saved and attached: {path}")
        return path

    async def take_comparison_screenshot(self, name: str) -> Path:
        """Save a screenshot for manual comparison.

        Pixel comparison against a baseline is done by ``VisualHelper``.
        """
        path = await self._capture(f"comparison-{name}")
        self.logger.info(f"Comparison screenshot saved for: {name}")
        return path

    async def take_mobile_screenshots(self, name: Optional[str] = None) -> List[Path]:
        """Resize through phone and tablet viewports, capturing each."""
        name = name or f"mobile-{int(time.time() * 1000)}"
        screenshots = []

        for device in MOBILE_VIEWPORTS:
            await self.page.set_viewport_size(
                {"width": device["width"], "height": device["height"]}
            )
            # Let the layout reflow
            await self.page.wait_for_timeout(1000)

            path = await self._capture(f"{name}-{device['name']}")
            screenshots.append(path)
            self.logger.info(
                f"Mobile screenshot saved: {path} ({device['width']}x{device['height']})"
            )

        return screenshots

    async def take_before_after_screenshots(
        self, name: str, action: Callable[[], Awaitable[None]]
    ) -> Dict[str, Path]:
        before = await self._capture(f"{name}-before")
        self.logger.info(f"Taking before screenshot: {before}")

        await action()

        after = await self._capture(f"{name}-after")
        self.logger.info(f"Taking after screenshot: {after}")
        return {"before": before, "after": after}

    async def take_timed_screenshots(
        self, name: str, interval_ms: int, duration_ms: int
    ) -> List[Path]:
        self.logger.info(f"Starting timed screenshots: {name} for {duration_ms}ms")
        screenshots = []
        start = time.monotonic()
        index = 0

        while (time.monotonic() - start) * 1000 < duration_ms:
            screenshots.append(await self._capture(f"{name}-{index}"))
            index += 1
            await self.page.wait_for_timeout(interval_ms)

        self.logger.success(
            f"Completed timed screenshots: {len(screenshots)} screenshots taken"
        )
        return screenshots

    async def take_annotated_screenshot(
        self, name: str, annotations: List[Dict[str, object]]
    ) -> Path:
        """Overlay ``{x, y, text}`` labels, capture, then remove the overlay.

        A plain screenshot is saved first so the unannotated state is kept.
        """
        await self._capture(name)

        await self.page.evaluate(
            """
            (annotations) => {
                annotations.forEach((annotation, index) => {
                    const div = document.createElement('div');
                    div.textContent = annotation.text;
                    div.style.position = 'absolute';
                    div.style.left = `${annotation.x}px`;
                    div.style.top = `${annotation.y}px`;
                    div.style.backgroundColor = 'yellow';
                    div.style.border = '2px solid red';
                    div.style.padding = '5px';
                    div.style.zIndex = '9999';
                    div.style.fontSize = '12px';
                    div.id = `annotation-${index}`;
                    document.body.appendChild(div);
                });
            }
            """,
            annotations,
        )

        path = await self._capture(f"{name}-annotated")

        await self.page.evaluate(
            """
            () => {
                document.querySelectorAll('[id^="annotation-"]').forEach(el => el.remove());
            }
            """
        )

        self.logger.success(f"Annotated screenshot saved: {path}")
        return path

    def get_test_screenshots(self) -> List[Path]:
        if not self.screenshot_dir.exists():
            return []
        test_name = sanitize_name(self.test_title)
        return sorted(
            path
            for path in self.screenshot_dir.iterdir()
            if test_name in path.name and path.suffix == ".png"
        )

    def cleanup_old_screenshots(self, days_old: int = 7) -> int:
        """Delete screenshots older than ``days_old`` days.

        Returns:
            Number of files removed
        """
        return remove_files_older_than(self.screenshot_dir, days_old, self.logger)


def remove_files_older_than(
    directory: Path, days_old: float, logger: Optional[TestLogger] = None
) -> int:
    """Delete regular files in ``directory`` last modified before the cutoff."""
    if not directory.exists():
        return 0

    cutoff = time.time() - days_old * 24 * 60 * 60
    removed = 0
    for path in directory.iterdir():
        if path.is_file() and path.stat().st_mtime < cutoff:
            path.unlink()
            removed += 1
            if logger:
                logger.info(f"Cleaned up old file: {path.name}")
    return removed
