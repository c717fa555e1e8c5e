"""Web performance measurement for pages under test.

This module provides the PerformanceHelper class for collecting Core Web
Vitals, navigation timing, resource timing, network statistics and memory
usage from a page, and for validating them against thresholds.
"""

import logging
import time
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple, TypeVar

from playwright.async_api import Page

from e2e_framework.models.browser_models import (
    MemoryUsage,
    NetworkPerformance,
    PageLoadMetrics,
    PerformanceMetrics,
    PerformanceReport,
    ResourceBreakdown,
    ResourceTiming,
    ScriptMetrics,
    StylesheetMetrics,
    ThresholdResult,
)
from e2e_framework.utils.logger import TestLogger

logger = logging.getLogger(__name__)

T = TypeVar("T")

WEB_VITALS_SCRIPT = """
(settleMs) => {
    return new Promise((resolve) => {
        const metrics = {
            first_contentful_paint: 0,
            largest_contentful_paint: 0,
            cumulative_layout_shift: 0,
            first_input_delay: 0,
            total_blocking_time: 0,
        };
        const observers = [];
        const observe = (type, callback) => {
            try {
                const observer = new PerformanceObserver((list) => list.getEntries().forEach(callback));
                observer.observe({ type, buffered: true });
                observers.push(observer);
            } catch (e) {
                // Entry type not supported by this browser
            }
        };

        observe('paint', (entry) => {
            if (entry.name === 'first-contentful-paint') {
                metrics.first_contentful_paint = entry.startTime;
            }
        });
        observe('largest-contentful-paint', (entry) => {
            metrics.largest_contentful_paint = entry.renderTime || entry.loadTime || entry.startTime;
        });
        observe('layout-shift', (entry) => {
            if (!entry.hadRecentInput) {
                metrics.cumulative_layout_shift += entry.value;
            }
        });
        observe('first-input', (entry) => {
            if (!metrics.first_input_delay) {
                metrics.first_input_delay = entry.processingStart - entry.startTime;
            }
        });
        observe('longtask', (entry) => {
            metrics.total_blocking_time += Math.max(0, entry.duration - 50);
        });

        setTimeout(() => {
            observers.forEach((observer) => observer.disconnect());
            const nav = performance.getEntriesByType('navigation')[0];
            if (nav) {
                metrics.load_time = Math.max(0, nav.loadEventEnd - nav.fetchStart);
                metrics.dom_content_loaded = Math.max(0, nav.domContentLoadedEventEnd - nav.fetchStart);
                metrics.time_to_first_byte = Math.max(0, nav.responseStart - nav.requestStart);
            }
            resolve(metrics);
        }, settleMs);
    });
}
"""

PAGE_LOAD_SCRIPT = """
() => {
    const nav = performance.getEntriesByType('navigation')[0];
    const result = {
        first_paint: 0,
        first_contentful_paint: 0,
    };
    performance.getEntriesByType('paint').forEach((entry) => {
        if (entry.name === 'first-paint') result.first_paint = entry.startTime;
        if (entry.name === 'first-contentful-paint') result.first_contentful_paint = entry.startTime;
    });
    if (nav) {
        result.dom_content_loaded = nav.domContentLoadedEventEnd - nav.fetchStart;
        result.load_complete = nav.loadEventEnd - nav.fetchStart;
        result.dns_lookup = nav.domainLookupEnd - nav.domainLookupStart;
        result.tcp_connect = nav.connectEnd - nav.connectStart;
        result.request = nav.responseStart - nav.requestStart;
        result.response = nav.responseEnd - nav.responseStart;
        result.dom_processing = nav.domComplete - nav.responseEnd;
    }
    return result;
}
"""

RESOURCE_TIMING_SCRIPT = """
() => performance.getEntriesByType('resource').map((entry) => ({
    name: entry.name,
    initiator_type: entry.initiatorType,
    duration: entry.duration,
    transfer_size: entry.transferSize || 0,
    start_time: entry.startTime,
    response_end: entry.responseEnd,
}))
"""

MEMORY_SCRIPT = """
() => {
    // performance.memory is only available in Chromium-based browsers
    const memory = performance.memory;
    if (!memory) {
        return { used_js_heap_size: 0, total_js_heap_size: 0, js_heap_size_limit: 0 };
    }
    return {
        used_js_heap_size: memory.usedJSHeapSize,
        total_js_heap_size: memory.totalJSHeapSize,
        js_heap_size_limit: memory.jsHeapSizeLimit,
    };
}
"""

RESOURCE_TYPES = {
    "img": "images",
    "image": "images",
    "script": "scripts",
    "css": "stylesheets",
    "link": "stylesheets",
    "font": "fonts",
}


class PerformanceHelper:
    """Collect and validate web performance metrics for a page.

    PATTERN: Use the Performance Observer API via page.evaluate() so metrics
    reflect what the browser actually measured.
    """

    # Core Web Vitals thresholds (good performance)
    LCP_THRESHOLD = 2500  # 2.5 seconds
    FID_THRESHOLD = 100  # 100 milliseconds
    CLS_THRESHOLD = 0.1  # Cumulative Layout Shift

    THRESHOLD_LABELS = {
        "load_time": ("Load time", "ms"),
        "dom_content_loaded": ("DOM content loaded", "ms"),
        "first_contentful_paint": ("FCP", "ms"),
        "largest_contentful_paint": ("LCP", "ms"),
        "cumulative_layout_shift": ("CLS", ""),
        "first_input_delay": ("FID", "ms"),
        "time_to_first_byte": ("TTFB", "ms"),
        "total_blocking_time": ("TBT", "ms"),
    }

    def __init__(self, page: Page, settle_ms: int = 1000):
        """Initialize the performance helper.

        Args:
            page: Playwright page instance
            settle_ms: How long observers collect entries before resolving
        """
        self.page = page
        self.settle_ms = settle_ms
        self.test_logger = TestLogger("PerformanceHelper")
        self._start_time: Optional[float] = None

    def start_measurement(self) -> None:
        self._start_time = time.perf_counter()
        self.test_logger.info("Performance measurement started")

    def stop_measurement(self) -> int:
        """Milliseconds since start_measurement().

        Raises:
            RuntimeError: If start_measurement() was not called
        """
        if self._start_time is None:
            raise RuntimeError("start_measurement() must be called first")
        duration = int((time.perf_counter() - self._start_time) * 1000)
        self._start_time = None
        self.test_logger.info(f"Performance measurement stopped: {duration}ms")
        return duration

    async def start_monitoring(self) -> None:
        """Mark the start of a monitored interaction in the page timeline."""
        self.start_measurement()
        try:
            await self.page.evaluate("() => performance.mark('e2e-monitoring-start')")
        except Exception as e:
            logger.warning(f"Failed to set performance mark: {e}")

    async def get_core_web_vitals(self) -> PerformanceMetrics:
        """Collect LCP, FID, CLS, FCP, TTFB and TBT along with load timings.

        Metrics the browser does not support are reported as 0.
        """
        self.test_logger.info("Collecting Core Web Vitals")
        try:
            data = await self.page.evaluate(WEB_VITALS_SCRIPT, self.settle_ms)
        except Exception as e:
            logger.warning(f"Failed to collect web vitals: {e}")
            data = {}

        metrics = PerformanceMetrics(url=self.page.url, **data)
        self.test_logger.info(
            f"Core Web Vitals collected - LCP: {metrics.largest_contentful_paint:.2f}ms, "
            f"FID: {metrics.first_input_delay:.2f}ms, "
            f"CLS: {metrics.cumulative_layout_shift:.3f}"
        )
        return metrics

    async def get_metrics(self) -> PerformanceMetrics:
        return await self.get_core_web_vitals()

    def passes_core_web_vitals(self, metrics: PerformanceMetrics) -> bool:
        """Whether LCP, FID and CLS all meet the "good" thresholds."""
        return (
            metrics.largest_contentful_paint <= self.LCP_THRESHOLD
            and metrics.first_input_delay <= self.FID_THRESHOLD
            and metrics.cumulative_layout_shift <= self.CLS_THRESHOLD
        )

    async def get_page_load_metrics(self) -> PageLoadMetrics:
        self.test_logger.info("Collecting page load metrics")
        try:
            data = await self.page.evaluate(PAGE_LOAD_SCRIPT)
        except Exception as e:
            logger.warning(f"Failed to collect navigation timing: {e}")
            data = {}
        return PageLoadMetrics(**data)

    async def get_resource_timing(self) -> List[ResourceTiming]:
        self.test_logger.info("Collecting resource timing")
        try:
            entries = await self.page.evaluate(RESOURCE_TIMING_SCRIPT)
        except Exception as e:
            logger.warning(f"Failed to collect resource timing: {e}")
            entries = []

        resources = [ResourceTiming(**entry) for entry in entries]
        self.test_logger.info(f"Resource timing collected: {len(resources)} resources")
        return resources

    async def measure_network_performance(self) -> NetworkPerformance:
        resources = await self.get_resource_timing()
        if not resources:
            return NetworkPerformance()

        result = NetworkPerformance(
            total_requests=len(resources),
            total_size=sum(resource.transfer_size for resource in resources),
            average_response_time=sum(r.duration for r in resources) / len(resources),
            slowest_request=max(resources, key=lambda resource: resource.duration),
        )
        self.test_logger.info(
            f"Network performance measured: {result.total_requests} requests, "
            f"{result.total_size} bytes, avg {result.average_response_time:.2f}ms"
        )
        return result

    async def get_resource_metrics(self) -> ResourceBreakdown:
        """Count and size resources by type (images, scripts, stylesheets, fonts, other)."""
        resources = await self.get_resource_timing()
        counts = {"images": 0, "scripts": 0, "stylesheets": 0, "fonts": 0, "other": 0}
        sizes = dict(counts)

        for resource in resources:
            kind = RESOURCE_TYPES.get(resource.initiator_type, "other")
            if kind == "other" and resource.name.split("?")[0].endswith(".css"):
                kind = "stylesheets"
            counts[kind] += 1
            sizes[kind] += resource.transfer_size

        return ResourceBreakdown(total_resources=len(resources), counts=counts, sizes=sizes)

    async def measure_javascript_execution(self) -> ScriptMetrics:
        resources = await self.get_resource_timing()
        scripts = [r for r in resources if r.initiator_type == "script"]
        total = sum(script.duration for script in scripts)
        return ScriptMetrics(
            total_scripts=len(scripts),
            total_script_time=total,
            average_script_time=total / len(scripts) if scripts else 0.0,
        )

    async def measure_css_performance(self) -> StylesheetMetrics:
        resources = await self.get_resource_timing()
        stylesheets = [
            r for r in resources if r.initiator_type == "link" or ".css" in r.name
        ]
        total = sum(css.duration for css in stylesheets)
        return StylesheetMetrics(
            total_stylesheets=len(stylesheets),
            total_css_time=total,
            average_css_time=total / len(stylesheets) if stylesheets else 0.0,
        )

    async def get_memory_usage(self) -> MemoryUsage:
        try:
            data = await self.page.evaluate(MEMORY_SCRIPT)
        except Exception as e:
            logger.warning(f"Failed to collect memory metrics: {e}")
            data = {}
        return MemoryUsage(**data)

    def validate_performance_thresholds(
        self, metrics: PerformanceMetrics, thresholds: Dict[str, float]
    ) -> ThresholdResult:
        """Check metrics against upper bounds.

        Only thresholds present in ``thresholds`` are checked; a metric fails
        when it is strictly greater than its bound.

        Args:
            metrics: Collected metrics
            thresholds: Metric field name to maximum allowed value

        Raises:
            KeyError: If a threshold names an unknown metric
        """
        failures = []
        for field, limit in thresholds.items():
            if limit is None:
                continue
            if field not in self.THRESHOLD_LABELS:
                raise KeyError(f"Unknown performance metric: {field}")
            value = getattr(metrics, field)
            label, unit = self.THRESHOLD_LABELS[field]
            if value > limit:
                failures.append(f"{label} {value}{unit} exceeds threshold {limit}{unit}")

        result = ThresholdResult(passed=not failures, failures=failures)
        if result.passed:
            self.test_logger.success("All performance thresholds passed")
        else:
            self.test_logger.error("Performance threshold failures", data=failures)
        return result

    async def generate_performance_report(self) -> PerformanceReport:
        self.test_logger.info("Generating comprehensive performance report")
        report = PerformanceReport(
            url=self.page.url,
            core_web_vitals=await self.get_core_web_vitals(),
            page_load_metrics=await self.get_page_load_metrics(),
            network_performance=await self.measure_network_performance(),
            resource_metrics=await self.get_resource_metrics(),
            memory_usage=await self.get_memory_usage(),
            timestamp=datetime.now(),
        )
        self.test_logger.success("Performance report generated")
        return report

    async def monitor_performance_during_action(
        self, action: Callable[[], Awaitable[T]], action_name: str
    ) -> Tuple[T, Dict[str, Any]]:
        """Run ``action`` and report its duration and JS heap delta.

        Returns:
            Tuple of the action's result and the performance data
        """
        self.test_logger.info(f"Monitoring performance during: {action_name}")

        before = await self.get_memory_usage()
        start = time.perf_counter()
        result = await action()
        duration = int((time.perf_counter() - start) * 1000)
        after = await self.get_memory_usage()

        performance_data = {
            "action_name": action_name,
            "duration": duration,
            "memory_before": before.model_dump(),
            "memory_after": after.model_dump(),
            "memory_delta": {
                "used_js_heap_size": after.used_js_heap_size - before.used_js_heap_size,
                "total_js_heap_size": after.total_js_heap_size - before.total_js_heap_size,
            },
        }
        self.test_logger.info(
            f"Performance monitoring completed for {action_name}", data=performance_data
        )
        return result, performance_data

    def get_performance_summary(self, metrics: PerformanceMetrics) -> Dict[str, Any]:
        """Human-readable summary of collected metrics."""
        return {
            "url": metrics.url,
            "core_web_vitals": {
                "lcp": f"{metrics.largest_contentful_paint:.2f}ms",
                "fid": f"{metrics.first_input_delay:.2f}ms",
                "cls": f"{metrics.cumulative_layout_shift:.3f}",
                "passes": self.passes_core_web_vitals(metrics),
            },
            "load_metrics": {
                "ttfb": f"{metrics.time_to_first_byte:.2f}ms",
                "fcp": f"{metrics.first_contentful_paint:.2f}ms",
                "dom_content_loaded": f"{metrics.dom_content_loaded:.2f}ms",
                "load_time": f"{metrics.load_time:.2f}ms",
                "tbt": f"{metrics.total_blocking_time:.2f}ms",
            },
            "timestamp": metrics.timestamp.isoformat(),
        }
