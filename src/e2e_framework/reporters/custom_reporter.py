"""Custom run reporter.

Collects one record per test from pytest's report stream and, at the end of
the session, writes ``report.json``, ``report.html``, ``report.csv`` and
``metrics.json`` to ``test-results/custom-reports``.

Bucketing: ``timedOut`` counts as failed, expected failures count as
skipped and unexpected passes count as passed.
"""

import csv
import html
import json
import logging
import os
import platform
import sys
import time
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import pytest

from e2e_framework.config.settings import FrameworkSettings
from e2e_framework.models.report_models import (
    ExecutionMetrics,
    ProjectStats,
    RunSummary,
    TestResultRecord,
    TestStatus,
)
from e2e_framework.reporters.attachments import attachments_from_properties
from e2e_framework.reporters.notifications import NotificationService
from e2e_framework.utils.logger import TestLogger

logger = logging.getLogger(__name__)

REPORT_DIR = Path("test-results") / "custom-reports"
PROJECT_PROPERTY = "project"
TAGS_PROPERTY = "tags"
STATUS_PROPERTY = "status"


def _error_message(report: pytest.TestReport) -> Optional[str]:
    if not report.longrepr:
        return None
    crash = getattr(report.longrepr, "reprcrash", None)
    if crash is not None:
        return crash.message
    lines = str(report.longrepr).strip().splitlines()
    return lines[-1] if lines else None


def _property(report: pytest.TestReport, key: str, default: Any = None) -> Any:
    for name, value in report.user_properties:
        if name == key:
            return value
    return default


class CustomReporter:
    """pytest plugin producing JSON, HTML, CSV and metrics reports."""

    def __init__(
        self,
        settings: Optional[FrameworkSettings] = None,
        report_dir: Union[str, Path] = REPORT_DIR,
        notifier: Optional[NotificationService] = None,
    ):
        self.settings = settings or FrameworkSettings()
        self.report_dir = Path(report_dir)
        self.notifier = notifier
        self.logger = TestLogger("CustomReporter")

        self.start_time = 0.0
        self.total_tests = 0
        self.passed_tests = 0
        self.failed_tests = 0
        self.skipped_tests = 0
        self.results: List[TestResultRecord] = []
        self._pending: Dict[str, Dict[str, Any]] = {}

    # Lifecycle, independent of pytest objects

    def on_begin(self, total_tests: int) -> None:
        self.start_time = time.time()
        self.total_tests = total_tests
        self.logger.info(f"Starting test execution with {total_tests} tests")
        self.report_dir.mkdir(parents=True, exist_ok=True)

    def on_test_begin(self, title: str) -> None:
        self.logger.step(f"Starting test: {title}")

    def on_test_end(self, record: TestResultRecord) -> None:
        self.results.append(record)

        if record.status == TestStatus.PASSED:
            self.passed_tests += 1
            self.logger.success(f"✓ {record.title} ({record.duration}ms)")
        elif record.status == TestStatus.FAILED:
            self.failed_tests += 1
            self.logger.error(f"✗ {record.title} ({record.duration}ms)", data=record.error)
        elif record.status == TestStatus.TIMED_OUT:
            self.failed_tests += 1
            self.logger.error(f"⏰ {record.title} (timed out after {record.duration}ms)")
        else:
            self.skipped_tests += 1
            self.logger.warn(f"- {record.title} (skipped)")

    def on_end(self) -> RunSummary:
        summary = self.build_summary()

        self.logger.info("=" * 60)
        self.logger.info("TEST EXECUTION SUMMARY")
        self.logger.info("=" * 60)
        self.logger.info(f"Total Tests: {summary.total}")
        self.logger.success(f"Passed: {summary.passed}")
        self.logger.error(f"Failed: {summary.failed}")
        self.logger.warn(f"Skipped: {summary.skipped}")
        self.logger.info(f"Success Rate: {summary.success_rate:.2f}%")
        self.logger.info(f"Total Duration: {summary.duration / 1000:.2f}s")
        self.logger.info("=" * 60)

        self.report_dir.mkdir(parents=True, exist_ok=True)
        for generate in (
            self.generate_json_report,
            self.generate_html_report,
            self.generate_csv_report,
            self.generate_metrics_report,
        ):
            try:
                generate(summary)
            except OSError as e:
                logger.error(f"Failed to write report ({generate.__name__}): {e}")

        if self.settings.enable_notifications:
            notifier = self.notifier or NotificationService(self.settings)
            try:
                notifier.send_all(summary)
            except Exception as e:
                logger.error(f"Failed to send notifications: {e}")

        return summary

    def build_summary(self) -> RunSummary:
        success_rate = (
            self.passed_tests / self.total_tests * 100 if self.total_tests > 0 else 0.0
        )
        return RunSummary(
            total=self.total_tests,
            passed=self.passed_tests,
            failed=self.failed_tests,
            skipped=self.skipped_tests,
            success_rate=success_rate,
            duration=int((time.time() - self.start_time) * 1000),
        )

    # Report writers

    def generate_json_report(self, summary: RunSummary) -> Path:
        report = {
            "summary": summary.model_dump(mode="json"),
            "results": [r.model_dump(mode="json") for r in self.results],
            "environment": {
                "python_version": platform.python_version(),
                "platform": sys.platform,
                "arch": platform.machine(),
                "ci": bool(os.getenv("CI")),
            },
        }
        report_path = self.report_dir / "report.json"
        with open(report_path, "w", encoding="utf-8") as f:
            json.dump(report, f, indent=2, ensure_ascii=False)
        self.logger.info(f"JSON report generated: {report_path}")
        return report_path

    def generate_html_report(self, summary: RunSummary) -> Path:
        report_path = self.report_dir / "report.html"
        with open(report_path, "w", encoding="utf-8") as f:
            f.write(self._build_html(summary))
        self.logger.info(f"HTML report generated: {report_path}")
        return report_path

    def _build_html(self, summary: RunSummary) -> str:
        rows = "".join(
            f"""
                <tr>
                    <td>{html.escape(r.title)}</td>
                    <td class="status-{r.status.value}">{r.status.value.upper()}</td>
                    <td>{r.duration}ms</td>
                    <td>{html.escape(r.project_name)}</td>
                    <td>{html.escape(r.error or "-")}</td>
                </tr>"""
            for r in self.results
        )

        return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>Test Execution Report</title>
    {self._get_styles()}
</head>
<body>
    <div class="container">
        <div class="header">
            <h1>Test Execution Report</h1>
            <p>Generated on {datetime.now().isoformat()}</p>
        </div>

        <div class="summary">
            <div class="metric"><h3>Total Tests</h3><div class="value total">{summary.total}</div></div>
            <div class="metric"><h3>Passed</h3><div class="value passed">{summary.passed}</div></div>
            <div class="metric"><h3>Failed</h3><div class="value failed">{summary.failed}</div></div>
            <div class="metric"><h3>Skipped</h3><div class="value skipped">{summary.skipped}</div></div>
            <div class="metric">
                <h3>Success Rate</h3>
                <div class="value">{summary.success_rate:.1f}%</div>
                <div class="progress-bar"><div class="progress-fill" style="width: {summary.success_rate:.1f}%"></div></div>
            </div>
            <div class="metric"><h3>Duration</h3><div class="value">{summary.duration / 1000:.1f}s</div></div>
        </div>

        <table class="results-table">
            <thead>
                <tr>
                    <th>Test Name</th>
                    <th>Status</th>
                    <th>Duration</th>
                    <th>Project</th>
                    <th>Error</th>
                </tr>
            </thead>
            <tbody>{rows}
            </tbody>
        </table>
    </div>
</body>
</html>"""

    def _get_styles(self) -> str:
        return """<style>
        body { font-family: Arial, sans-serif; margin: 20px; background-color: #f5f5f5; }
        .container { max-width: 1200px; margin: 0 auto; background: white; padding: 20px; border-radius: 8px; box-shadow: 0 2px 4px rgba(0,0,0,0.1); }
        .header { text-align: center; margin-bottom: 30px; }
        .summary { display: grid; grid-template-columns: repeat(auto-fit, minmax(200px, 1fr)); gap: 20px; margin-bottom: 30px; }
        .metric { background: #f8f9fa; padding: 20px; border-radius: 8px; text-align: center; }
        .metric h3 { margin: 0 0 10px 0; color: #333; }
        .metric .value { font-size: 2em; font-weight: bold; }
        .passed { color: #28a745; }
        .failed { color: #dc3545; }
        .skipped { color: #ffc107; }
        .total { color: #007bff; }
        .results-table { width: 100%; border-collapse: collapse; margin-top: 20px; }
        .results-table th, .results-table td { border: 1px solid #ddd; padding: 12px; text-align: left; }
        .results-table th { background-color: #f8f9fa; font-weight: bold; }
        .status-passed { background-color: #d4edda; color: #155724; }
        .status-failed, .status-timedOut { background-color: #f8d7da; color: #721c24; }
        .status-skipped { background-color: #fff3cd; color: #856404; }
        .progress-bar { width: 100%; height: 20px; background-color: #e9ecef; border-radius: 10px; overflow: hidden; margin: 10px 0; }
        .progress-fill { height: 100%; background-color: #28a745; }
    </style>"""

    def generate_csv_report(self, summary: RunSummary) -> Path:
        report_path = self.report_dir / "report.csv"
        with open(report_path, "w", encoding="utf-8", newline="") as f:
            writer = csv.writer(f, quoting=csv.QUOTE_ALL)
            writer.writerow(["Test Name", "Status", "Duration (ms)", "Project", "Error"])
            for r in self.results:
                writer.writerow(
                    [r.title, r.status.value, r.duration, r.project_name, r.error or ""]
                )
        self.logger.info(f"CSV report generated: {report_path}")
        return report_path

    def calculate_metrics(self, summary: RunSummary) -> ExecutionMetrics:
        metrics = ExecutionMetrics(total_duration=summary.duration)
        if not self.results:
            return metrics

        durations = [r.duration for r in self.results]
        slowest = max(self.results, key=lambda r: r.duration)
        fastest = min(self.results, key=lambda r: r.duration)
        metrics.average_test_duration = round(sum(durations) / len(durations))
        metrics.slowest_test = slowest.title
        metrics.slowest_test_duration = slowest.duration
        metrics.fastest_test = fastest.title
        metrics.fastest_test_duration = fastest.duration
        return metrics

    def calculate_project_stats(self) -> Dict[str, ProjectStats]:
        stats: Dict[str, ProjectStats] = {}
        for r in self.results:
            project = stats.setdefault(r.project_name, ProjectStats())
            project.total += 1
            if r.status == TestStatus.PASSED:
                project.passed += 1
            elif r.status in (TestStatus.FAILED, TestStatus.TIMED_OUT):
                project.failed += 1
        return stats

    def generate_metrics_report(self, summary: RunSummary) -> Path:
        metrics = {
            "execution": self.calculate_metrics(summary).model_dump(),
            "summary": {
                "total": summary.total,
                "passed": summary.passed,
                "failed": summary.failed,
                "skipped": summary.skipped,
                "success_rate": round(summary.success_rate, 2),
            },
            "projects": {
                name: stats.model_dump() for name, stats in self.calculate_project_stats().items()
            },
            "timestamp": datetime.now().isoformat(),
        }
        report_path = self.report_dir / "metrics.json"
        with open(report_path, "w", encoding="utf-8") as f:
            json.dump(metrics, f, indent=2)
        self.logger.info(f"Metrics report generated: {report_path}")
        return report_path

    # pytest hooks

    def pytest_sessionstart(self, session: pytest.Session) -> None:
        # Under pytest-xdist the controller never collects, so start the clock here.
        self.start_time = time.time()

    def pytest_collection_finish(self, session: pytest.Session) -> None:
        self.on_begin(len(session.items))

    def pytest_runtest_logstart(self, nodeid: str, location: Any) -> None:
        self.on_test_begin(location[2] if location else nodeid)

    def pytest_runtest_logreport(self, report: pytest.TestReport) -> None:
        state = self._pending.setdefault(
            report.nodeid, {"duration": 0.0, "status": None, "error": None}
        )
        state["duration"] += report.duration

        if report.when == "setup":
            if report.skipped:
                state["status"] = TestStatus.SKIPPED
            elif report.failed:
                state["status"] = TestStatus.FAILED
                state["error"] = _error_message(report)
        elif report.when == "call":
            state["status"] = self._call_status(report)
            if report.failed:
                state["error"] = _error_message(report)
        elif report.when == "teardown":
            if report.failed and state["status"] != TestStatus.FAILED:
                state["status"] = TestStatus.FAILED
                state["error"] = state["error"] or _error_message(report)
            self._finish(report, self._pending.pop(report.nodeid))

    def _call_status(self, report: pytest.TestReport) -> TestStatus:
        if hasattr(report, "wasxfail"):
            return TestStatus.PASSED if report.passed else TestStatus.SKIPPED
        if report.passed:
            return TestStatus.PASSED
        if report.skipped:
            return TestStatus.SKIPPED
        if _property(report, STATUS_PROPERTY) == TestStatus.TIMED_OUT.value:
            return TestStatus.TIMED_OUT
        return TestStatus.FAILED

    def _finish(self, report: pytest.TestReport, state: Dict[str, Any]) -> None:
        title = report.head_line or report.nodeid.split("::")[-1]
        self.on_test_end(
            TestResultRecord(
                title=title,
                nodeid=report.nodeid,
                status=state["status"] or TestStatus.PASSED,
                duration=int(state["duration"] * 1000),
                error=state["error"],
                project_name=_property(report, PROJECT_PROPERTY, "unknown"),
                tags=_property(report, TAGS_PROPERTY, []),
                attachments=attachments_from_properties(report.user_properties),
            )
        )

    @pytest.hookimpl(tryfirst=True)
    def pytest_sessionfinish(self, session: pytest.Session, exitstatus: int) -> None:
        self.on_end()
