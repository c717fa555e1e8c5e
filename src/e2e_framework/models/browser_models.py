"""Browser automation data models.

This module defines the Pydantic models produced by the browser helpers:
browser and viewport configuration, performance measurements, accessibility
scan results and visual comparison results.
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Dict, List, Optional, Literal, Union
from enum import Enum
from datetime import datetime

Impact = Literal["minor", "moderate", "serious", "critical"]


class BrowserType(str, Enum):
    """Supported browser engines."""

    CHROMIUM = "chromium"
    FIREFOX = "firefox"
    WEBKIT = "webkit"


class Viewport(BaseModel):
    """Browser viewport configuration."""

    width: int = Field(default=1920, description="Viewport width")
    height: int = Field(default=1080, description="Viewport height")
    device_scale_factor: float = Field(default=1.0, description="Device pixel ratio")
    is_mobile: bool = Field(default=False, description="Mobile viewport")
    has_touch: bool = Field(default=False, description="Touch support")


# Performance


class PerformanceMetrics(BaseModel):
    """Core Web Vitals and load timings of a page."""

    url: str = Field(default="", description="Page URL")
    load_time: float = Field(default=0.0, description="Load event end (ms)")
    dom_content_loaded: float = Field(default=0.0, description="DOMContentLoaded (ms)")
    first_contentful_paint: float = Field(default=0.0, description="FCP (ms)")
    largest_contentful_paint: float = Field(default=0.0, description="LCP (ms)")
    cumulative_layout_shift: float = Field(default=0.0, description="CLS")
    first_input_delay: float = Field(default=0.0, description="FID (ms)")
    time_to_first_byte: float = Field(default=0.0, description="TTFB (ms)")
    total_blocking_time: float = Field(default=0.0, description="TBT (ms)")
    timestamp: datetime = Field(default_factory=datetime.now)


class PageLoadMetrics(BaseModel):
    """Navigation timing breakdown."""

    dom_content_loaded: float = 0.0
    load_complete: float = 0.0
    first_paint: float = 0.0
    first_contentful_paint: float = 0.0
    dns_lookup: float = 0.0
    tcp_connect: float = 0.0
    request: float = 0.0
    response: float = 0.0
    dom_processing: float = 0.0


class ResourceTiming(BaseModel):
    """Timing entry of a single network resource."""

    name: str = Field(description="Resource URL")
    initiator_type: str = Field(default="other", description="Initiator type")
    duration: float = Field(default=0.0, description="Duration (ms)")
    transfer_size: int = Field(default=0, description="Transfer size (bytes)")
    start_time: float = Field(default=0.0, description="Start time (ms)")
    response_end: float = Field(default=0.0, description="Response end (ms)")


class NetworkPerformance(BaseModel):
    """Aggregate network statistics."""

    total_requests: int = 0
    total_size: int = Field(default=0, description="Bytes transferred")
    average_response_time: float = 0.0
    slowest_request: Optional[ResourceTiming] = None


class ResourceBreakdown(BaseModel):
    """Resource counts and sizes grouped by type."""

    total_resources: int = 0
    counts: Dict[str, int] = Field(default_factory=dict)
    sizes: Dict[str, int] = Field(default_factory=dict)


class ScriptMetrics(BaseModel):
    """JavaScript resource timings."""

    total_scripts: int = 0
    total_script_time: float = 0.0
    average_script_time: float = 0.0


class StylesheetMetrics(BaseModel):
    """CSS resource timings."""

    total_stylesheets: int = 0
    total_css_time: float = 0.0
    average_css_time: float = 0.0


class MemoryUsage(BaseModel):
    """JS heap usage (Chromium only)."""

    used_js_heap_size: int = 0
    total_js_heap_size: int = 0
    js_heap_size_limit: int = 0


class ThresholdResult(BaseModel):
    """Outcome of a threshold validation."""

    passed: bool = Field(description="Whether every check passed")
    failures: List[str] = Field(default_factory=list, description="Failure messages")


class PerformanceReport(BaseModel):
    """Combined performance report for a page."""

    url: str
    core_web_vitals: PerformanceMetrics
    page_load_metrics: PageLoadMetrics
    network_performance: NetworkPerformance
    resource_metrics: ResourceBreakdown
    memory_usage: MemoryUsage
    timestamp: datetime = Field(default_factory=datetime.now)


# Accessibility


class AccessibilityNode(BaseModel):
    """Element matched by an axe-core rule."""

    model_config = ConfigDict(populate_by_name=True)

    html: str = Field(default="", description="Element HTML")
    target: List[Union[str, List[str]]] = Field(
        default_factory=list, description="Element selectors (lists for frames or shadow DOM)"
    )
    failure_summary: Optional[str] = Field(
        default=None, alias="failureSummary", description="Failure summary"
    )


class AccessibilityViolation(BaseModel):
    """Failed axe-core rule."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(description="Rule ID")
    impact: Optional[Impact] = Field(default=None, description="Impact level")
    description: str = Field(default="", description="Rule description")
    help: str = Field(default="", description="Short help text")
    help_url: str = Field(default="", alias="helpUrl", description="Rule documentation")
    tags: List[str] = Field(default_factory=list, description="Rule tags")
    nodes: List[AccessibilityNode] = Field(default_factory=list)


class AccessibilityPass(BaseModel):
    """Passed axe-core rule."""

    id: str
    description: str = ""
    nodes: List[AccessibilityNode] = Field(default_factory=list)


class AccessibilityIncomplete(BaseModel):
    """Rule axe-core could not decide."""

    id: str
    description: str = ""
    nodes: List[AccessibilityNode] = Field(default_factory=list)


class AccessibilityInapplicable(BaseModel):
    """Rule that did not apply to the page."""

    id: str
    description: str = ""


class AccessibilityResult(BaseModel):
    """Full axe-core scan result."""

    violations: List[AccessibilityViolation] = Field(default_factory=list)
    passes: List[AccessibilityPass] = Field(default_factory=list)
    incomplete: List[AccessibilityIncomplete] = Field(default_factory=list)
    inapplicable: List[AccessibilityInapplicable] = Field(default_factory=list)


class AccessibilityIssue(BaseModel):
    """A single violating element with a suggested fix."""

    id: str = Field(description="Issue identifier")
    impact: Impact = Field(description="Issue severity")
    rule_id: str = Field(description="axe-core rule ID")
    description: str = Field(description="Issue description")
    help_text: str = Field(description="How to fix")
    selector: str = Field(description="Element selector")
    html: str = Field(description="Element HTML")
    wcag_criteria: List[str] = Field(default_factory=list, description="WCAG criteria")
    wcag_level: Literal["A", "AA", "AAA"] = Field(description="WCAG level")
    fix_suggestion: Optional[str] = Field(default=None, description="Suggested fix")


class CheckResult(BaseModel):
    """Result of one of the built-in accessibility checks."""

    passed: bool = Field(description="Whether the check passed")
    issues: List[str] = Field(default_factory=list, description="Problems found")


class KeyboardNavigationResult(CheckResult):
    focusable_elements: int = 0


class ColorContrastResult(CheckResult):
    checked_elements: int = 0
    threshold: float = 4.5


class ImageAltTextResult(CheckResult):
    total_images: int = 0
    images_without_alt: int = 0
    images_with_empty_alt: int = 0


class FormAccessibilityResult(CheckResult):
    total_inputs: int = 0
    inputs_without_labels: int = 0


class HeadingStructureResult(CheckResult):
    headings: List[Dict[str, object]] = Field(default_factory=list)


class LandmarksResult(CheckResult):
    landmarks: List[str] = Field(default_factory=list)


class AccessibilityReport(BaseModel):
    """Aggregate of the axe scan and the built-in checks."""

    axe_results: AccessibilityResult
    keyboard_navigation: KeyboardNavigationResult
    color_contrast: ColorContrastResult
    image_alt_text: ImageAltTextResult
    form_accessibility: FormAccessibilityResult
    heading_structure: HeadingStructureResult
    aria_landmarks: LandmarksResult
    overall_score: float = Field(description="Percentage of checks passed")
    timestamp: datetime = Field(default_factory=datetime.now)


# Visual


class VisualTestResult(BaseModel):
    """Visual regression test result."""

    test_id: str = Field(description="Test identifier")
    page_url: str = Field(default="", description="Page URL tested")

    # Image paths
    baseline_path: str = Field(description="Baseline screenshot path")
    actual_path: str = Field(description="Actual screenshot path")
    diff_path: Optional[str] = Field(default=None, description="Diff image path")

    # Comparison metrics
    match_percentage: float = Field(description="Similarity percentage")
    pixel_difference: int = Field(description="Number of different pixels")
    is_match: bool = Field(description="Whether images match within tolerance")

    # Diff regions
    diff_regions: List[Dict[str, int]] = Field(
        default_factory=list, description="Regions with differences"
    )

    # Configuration
    threshold: float = Field(default=0.2, description="Per-pixel colour threshold")
    max_diff_pixels: Optional[int] = Field(
        default=None, description="Allowed number of differing pixels"
    )
    ignore_regions: List[Dict[str, int]] = Field(
        default_factory=list, description="Regions excluded from comparison"
    )
    viewport: Optional[Viewport] = Field(default=None, description="Viewport settings")
    timestamp: datetime = Field(default_factory=datetime.now)
