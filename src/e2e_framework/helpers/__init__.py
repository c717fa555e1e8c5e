"""Test helpers for screenshots, video, performance, accessibility, visual
comparison and files.
"""

from e2e_framework.helpers.accessibility_helper import AccessibilityHelper
from e2e_framework.helpers.file_helper import FileHelper
from e2e_framework.helpers.performance_helper import PerformanceHelper
from e2e_framework.helpers.screenshot_helper import ScreenshotHelper
from e2e_framework.helpers.video_helper import VideoHelper
from e2e_framework.helpers.visual_helper import VisualHelper

__all__ = [
    "AccessibilityHelper",
    "FileHelper",
    "PerformanceHelper",
    "ScreenshotHelper",
    "VideoHelper",
    "VisualHelper",
]
