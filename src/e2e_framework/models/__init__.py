"""Models package for the test framework."""

from .test_data import (
    ApiResponse,
    Environment,
    SearchQuery,
    TestData,
    UrlData,
    User,
)
from .browser_models import (
    BrowserType,
    Viewport,
    PerformanceMetrics,
    AccessibilityResult,
    AccessibilityReport,
    ThresholdResult,
    VisualTestResult,
)
from .report_models import (
    TestStatus,
    TestResultRecord,
    RunSummary,
)

__all__ = [
    "ApiResponse",
    "Environment",
    "SearchQuery",
    "TestData",
    "UrlData",
    "User",
    "BrowserType",
    "Viewport",
    "PerformanceMetrics",
    "AccessibilityResult",
    "AccessibilityReport",
    "ThresholdResult",
    "VisualTestResult",
    "TestStatus",
    "TestResultRecord",
    "RunSummary",
]
