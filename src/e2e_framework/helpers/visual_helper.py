"""Visual regression testing.

Screenshots are captured with Playwright and compared against stored
baselines using PIL/Pillow and numpy. A pixel counts as different when any
colour channel moves by more than ``threshold`` (0-1 of the channel range).
"""

import logging
import os
import shutil
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

import numpy as np
from PIL import Image, ImageDraw
from playwright.async_api import Locator, Page

from e2e_framework.helpers.screenshot_helper import sanitize_name
from e2e_framework.models.browser_models import VisualTestResult, Viewport
from e2e_framework.reporters.attachments import AttachmentRecorder

logger = logging.getLogger(__name__)

Region = Dict[str, int]

DISABLE_ANIMATIONS_CSS = """
*, *::before, *::after {
    animation-duration: 0s !important;
    animation-delay: 0s !important;
    transition-duration: 0s !important;
    transition-delay: 0s !important;
    caret-color: transparent !important;
}
"""


class VisualHelper:
    """Compare page screenshots with baselines stored in ``snapshot_dir``.

    Attributes:
        threshold: Per-pixel colour tolerance (0.0-1.0)
        max_diff_pixels: Number of differing pixels allowed
        max_diff_pixel_ratio: Share of differing pixels allowed (0.0-1.0)
        update_snapshots: Overwrite baselines instead of comparing
    """

    def __init__(
        self,
        snapshot_dir: Union[str, Path] = "tests/__snapshots__",
        output_dir: Union[str, Path] = "test-results",
        threshold: float = 0.2,
        max_diff_pixels: Optional[int] = None,
        max_diff_pixel_ratio: Optional[float] = None,
        update_snapshots: Optional[bool] = None,
        suffix: Optional[str] = None,
        attachments: Optional[AttachmentRecorder] = None,
    ):
        if not 0.0 <= threshold <= 1.0:
            raise ValueError("Threshold must be between 0.0 and 1.0")

        self.snapshot_dir = Path(snapshot_dir)
        self.output_dir = Path(output_dir) / "visual"
        self.threshold = threshold
        self.max_diff_pixels = max_diff_pixels
        self.max_diff_pixel_ratio = max_diff_pixel_ratio
        if update_snapshots is None:
            update_snapshots = os.getenv("UPDATE_SNAPSHOTS", "false").lower() == "true"
        self.update_snapshots = update_snapshots
        self.suffix = suffix
        self.attachments = attachments or AttachmentRecorder()

        self.snapshot_dir.mkdir(parents=True, exist_ok=True)
        self.output_dir.mkdir(parents=True, exist_ok=True)

        logger.info(f"VisualHelper initialized with threshold={threshold}")

    def baseline_path(self, name: str) -> Path:
        stem = sanitize_name(name)
        if self.suffix:
            stem = f"{stem}-{sanitize_name(self.suffix)}"
        return self.snapshot_dir / f"{stem}.png"

    async def assert_screenshot(
        self,
        target: Union[Page, Locator],
        name: str,
        full_page: bool = False,
        mask: Optional[List[Locator]] = None,
        ignore_regions: Optional[List[Region]] = None,
        threshold: Optional[float] = None,
        max_diff_pixels: Optional[int] = None,
    ) -> VisualTestResult:
        """Capture ``target`` and compare it with the baseline ``name``.

        A missing baseline is created from the capture and the assertion
        passes. With ``update_snapshots`` set the baseline is overwritten.

        Raises:
            AssertionError: If the capture does not match the baseline
        """
        baseline = self.baseline_path(name)
        actual = self.output_dir / f"{baseline.stem}-actual.png"

        options = {"path": str(actual), "animations": "disabled"}
        if mask:
            options["mask"] = mask
        if isinstance(target, Page):
            options["full_page"] = full_page
            page_url = target.url
        else:
            page_url = target.page.url

        logger.info(f"Capturing screenshot: {name} (full_page={full_page})")
        await target.screenshot(**options)

        if self.update_snapshots or not baseline.exists():
            action = "Updating" if baseline.exists() else "Creating"
            logger.info(f"{action} baseline: {baseline}")
            self.update_baseline(actual, baseline)
            with Image.open(baseline) as img:
                width, height = img.size
            return VisualTestResult(
                test_id=baseline.stem,
                page_url=page_url,
                baseline_path=str(baseline),
                actual_path=str(actual),
                match_percentage=100.0,
                pixel_difference=0,
                is_match=True,
                threshold=self.threshold if threshold is None else threshold,
                ignore_regions=ignore_regions or [],
                viewport=Viewport(width=width, height=height),
            )

        result = self.compare_images(
            baseline,
            actual,
            ignore_regions=ignore_regions,
            test_id=baseline.stem,
            page_url=page_url,
            threshold=threshold,
            max_diff_pixels=max_diff_pixels,
        )

        if not result.is_match:
            self.attachments.attach(f"{baseline.stem}-actual", actual, "image/png")
            if result.diff_path:
                self.attachments.attach(f"{baseline.stem}-diff", result.diff_path, "image/png")
            raise AssertionError(
                f"Screenshot '{name}' does not match baseline: "
                f"{result.pixel_difference} pixels differ "
                f"({100 - result.match_percentage:.2f}%). Diff: {result.diff_path}"
            )

        return result

    def compare_images(
        self,
        baseline_path: Union[str, Path],
        actual_path: Union[str, Path],
        ignore_regions: Optional[List[Region]] = None,
        test_id: str = "visual_test",
        page_url: str = "",
        threshold: Optional[float] = None,
        max_diff_pixels: Optional[int] = None,
    ) -> VisualTestResult:
        """Compare two images and generate a visual test result.

        Images of different sizes are padded to a common canvas so the
        extra area counts as changed whatever its colour.

        Raises:
            FileNotFoundError: If baseline or actual image doesn't exist
        """
        threshold = self.threshold if threshold is None else threshold
        if max_diff_pixels is None:
            max_diff_pixels = self.max_diff_pixels

        logger.info(f"Comparing images: baseline={baseline_path}, actual={actual_path}")

        with Image.open(baseline_path) as img:
            baseline_img = img.convert("RGB")
        with Image.open(actual_path) as img:
            actual_img = img.convert("RGB")

        if baseline_img.size != actual_img.size:
            logger.warning(
                f"Image size mismatch: baseline={baseline_img.size}, "
                f"actual={actual_img.size}"
            )

        if ignore_regions:
            logger.info(f"Applying {len(ignore_regions)} ignore regions")
            baseline_img = self._apply_ignore_regions(baseline_img, ignore_regions)
            actual_img = self._apply_ignore_regions(actual_img, ignore_regions)

        baseline_array, actual_array = self._to_common_canvas(baseline_img, actual_img)

        delta = np.abs(baseline_array.astype(np.int16) - actual_array.astype(np.int16))
        diff_mask = np.any(delta > threshold * 255, axis=2)
        shared_width = min(baseline_img.width, actual_img.width)
        shared_height = min(baseline_img.height, actual_img.height)
        diff_mask[shared_height:, :] = True
        diff_mask[:, shared_width:] = True
        pixel_difference = int(np.sum(diff_mask))
        total_pixels = diff_mask.size

        match_percentage = ((total_pixels - pixel_difference) / total_pixels) * 100
        is_match = self._within_budget(pixel_difference, total_pixels, max_diff_pixels)

        logger.info(
            f"Comparison result: match={is_match}, "
            f"match_percentage={match_percentage:.2f}%, "
            f"pixel_difference={pixel_difference}"
        )

        diff_path = None
        diff_regions: List[Region] = []
        if pixel_difference > 0:
            diff_path = self._generate_diff_image(
                baseline_array, actual_array, diff_mask, test_id
            )
            diff_regions = self._find_diff_regions(diff_mask)

        height, width = diff_mask.shape
        return VisualTestResult(
            test_id=test_id,
            page_url=page_url,
            baseline_path=str(baseline_path),
            actual_path=str(actual_path),
            diff_path=diff_path,
            match_percentage=match_percentage,
            pixel_difference=pixel_difference,
            is_match=is_match,
            diff_regions=diff_regions,
            threshold=threshold,
            max_diff_pixels=max_diff_pixels,
            ignore_regions=ignore_regions or [],
            viewport=Viewport(width=width, height=height),
        )

    def _within_budget(
        self, pixel_difference: int, total_pixels: int, max_diff_pixels: Optional[int]
    ) -> bool:
        if max_diff_pixels is None and self.max_diff_pixel_ratio is None:
            return pixel_difference == 0
        if max_diff_pixels is not None and pixel_difference > max_diff_pixels:
            return False
        if (
            self.max_diff_pixel_ratio is not None
            and pixel_difference / total_pixels > self.max_diff_pixel_ratio
        ):
            return False
        return True

    def _to_common_canvas(
        self, baseline: Image.Image, actual: Image.Image
    ) -> Tuple[np.ndarray, np.ndarray]:
        width = max(baseline.width, actual.width)
        height = max(baseline.height, actual.height)
        arrays = []
        for img in (baseline, actual):
            canvas = np.zeros((height, width, 3), dtype=np.uint8)
            canvas[: img.height, : img.width] = np.array(img)
            arrays.append(canvas)
        return arrays[0], arrays[1]

    def _apply_ignore_regions(
        self, img: Image.Image, regions: List[Region]
    ) -> Image.Image:
        """Mask ignore regions with a neutral gray on a copy of ``img``."""
        img_copy = img.copy()
        draw = ImageDraw.Draw(img_copy)

        for region in regions:
            x = region.get("x", 0)
            y = region.get("y", 0)
            width = region.get("width", 0)
            height = region.get("height", 0)
            draw.rectangle([x, y, x + width, y + height], fill=(128, 128, 128))
            logger.debug(f"Masked ignore region: x={x}, y={y}, w={width}, h={height}")

        return img_copy

    def _generate_diff_image(
        self,
        baseline: np.ndarray,
        actual: np.ndarray,
        diff_mask: np.ndarray,
        test_id: str,
    ) -> Optional[str]:
        """Save ``baseline | actual | diff`` side by side, diff pixels in red."""
        try:
            height, width = baseline.shape[:2]

            diff_visual = actual.copy()
            diff_visual[diff_mask] = [255, 0, 0]

            combined = np.zeros((height, width * 3, 3), dtype=np.uint8)
            combined[:, :width] = baseline
            combined[:, width : width * 2] = actual
            combined[:, width * 2 :] = diff_visual

            diff_path = self.output_dir / f"{test_id}-diff.png"
            Image.fromarray(combined).save(diff_path)

            logger.info(f"Diff image saved: {diff_path}")
            return str(diff_path)

        except Exception as e:
            logger.error(f"Failed to generate diff image: {e}")
            return None

    def _find_diff_regions(
        self, diff_mask: np.ndarray, min_region_size: int = 10
    ) -> List[Region]:
        """Bounding box of all differing pixels."""
        rows = np.where(np.any(diff_mask, axis=1))[0]
        cols = np.where(np.any(diff_mask, axis=0))[0]
        if len(rows) == 0 or len(cols) == 0:
            return []

        y_min, y_max = rows[0], rows[-1]
        x_min, x_max = cols[0], cols[-1]
        width = x_max - x_min + 1
        height = y_max - y_min + 1

        if width * height < min_region_size:
            return []
        return [{"x": int(x_min), "y": int(y_min), "width": int(width), "height": int(height)}]

    def update_baseline(
        self, actual_path: Union[str, Path], baseline_path: Union[str, Path]
    ) -> Path:
        """Copy an actual capture over the baseline."""
        baseline_path = Path(baseline_path)
        baseline_path.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(actual_path, baseline_path)
        logger.info(f"Baseline updated: {baseline_path}")
        return baseline_path

    async def hide_dynamic_content(self, page: Page, selectors: List[str]) -> None:
        """Hide elements such as clocks or ads before capturing."""
        if not selectors:
            return
        css = "\n".join(f"{selector} {{ visibility: hidden !important; }}" for selector in selectors)
        await page.add_style_tag(content=css)
        logger.debug(f"Hid dynamic content: {', '.join(selectors)}")

    async def disable_animations(self, page: Page) -> None:
        await page.add_style_tag(content=DISABLE_ANIMATIONS_CSS)
        logger.debug("Disabled CSS animations and transitions")
