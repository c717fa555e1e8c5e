"""pytest plugin wiring the framework into a test run.

Registered from the repository ``conftest.py``. Adds command line options
and markers, applies sharding and ``only`` focusing, records per-phase
reports on items for failure handling, and runs the global setup and
teardown around the session.
"""

import asyncio
import logging
from typing import List, Optional, Tuple

import pytest
from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from playwright.async_api import expect

from e2e_framework.config.projects import DEFAULT_PROJECT, ProjectConfig, get_project
from e2e_framework.config.settings import FrameworkSettings, load_settings
from e2e_framework.lifecycle import global_setup, global_teardown
from e2e_framework.models.report_models import TestStatus
from e2e_framework.reporters.custom_reporter import (
    PROJECT_PROPERTY,
    REPORT_DIR,
    STATUS_PROPERTY,
    TAGS_PROPERTY,
    CustomReporter,
)
from e2e_framework.utils.logger import configure_logging

logger = logging.getLogger(__name__)

settings_key = pytest.StashKey[FrameworkSettings]()
project_key = pytest.StashKey[ProjectConfig]()

MARKERS = [
    "e2e: drives a real browser or network service",
    "smoke: quick checks of critical paths",
    "regression: full regression suite",
    "api: HTTP API tests",
    "ui: user interface tests",
    "visual: visual regression tests",
    "accessibility: accessibility audits",
    "performance: performance measurements",
    "mobile: mobile viewport tests",
    "cross_browser: behaviour compared across engines",
    "page_object: page object tests",
    "demo: demonstration tests",
    "only: focus the run on marked tests (forbidden on CI)",
    "expected_fail(reason): test is expected to fail and is reported as skipped",
]

TIMEOUT_ERRORS = (PlaywrightTimeoutError, asyncio.TimeoutError)


def pytest_addoption(parser: pytest.Parser) -> None:
    group = parser.getgroup("e2e", "end-to-end test framework")
    group.addoption(
        "--project",
        default=DEFAULT_PROJECT,
        help=f"browser/device project to run against (default: {DEFAULT_PROJECT})",
    )
    group.addoption("--test-env", default=None, help="target environment (overrides TEST_ENV)")
    group.addoption("--headed", action="store_true", help="run browsers with a visible window")
    group.addoption("--shard", default=None, help="run shard i of n, e.g. --shard=2/4")
    group.addoption(
        "--report-dir",
        default=str(REPORT_DIR),
        help=f"directory for the custom reports (default: {REPORT_DIR})",
    )
    group.addoption(
        "--no-custom-report",
        action="store_true",
        help="do not write the custom JSON/HTML/CSV reports",
    )


def parse_shard(value: str) -> Tuple[int, int]:
    """Parse ``"i/n"`` into (i, n) with 1 <= i <= n.

    Raises:
        ValueError: If the value is malformed or out of range
    """
    try:
        index, total = (int(part) for part in value.split("/"))
    except ValueError:
        raise ValueError(f"Invalid shard '{value}', expected i/n")
    if total < 1 or not 1 <= index <= total:
        raise ValueError(f"Invalid shard '{value}', expected 1 <= i <= n")
    return index, total


def select_shard(items: List, index: int, total: int) -> Tuple[List, List]:
    """Split items into (selected, deselected) for shard ``index`` of ``total``."""
    selected, deselected = [], []
    for position, item in enumerate(items):
        (selected if position % total == index - 1 else deselected).append(item)
    return selected, deselected


def is_xdist_worker(config: pytest.Config) -> bool:
    """Workers leave setup, reports and archiving to the pytest-xdist controller."""
    return hasattr(config, "workerinput")


def pytest_configure(config: pytest.Config) -> None:
    configure_logging(verbose=config.getoption("verbose", 0) > 1)

    for marker in MARKERS:
        config.addinivalue_line("markers", marker)

    settings = load_settings()
    test_env = config.getoption("--test-env", None)
    if test_env:
        settings.environment = test_env
    if config.getoption("--headed", False):
        settings.browser_config.headless = False
    config.stash[settings_key] = settings

    try:
        config.stash[project_key] = get_project(config.getoption("--project", None))
    except KeyError as e:
        raise pytest.UsageError(str(e))

    expect.set_options(timeout=settings.expect_timeout)

    if is_xdist_worker(config):
        return
    global_setup(settings)
    if not config.getoption("--no-custom-report", False):
        reporter = CustomReporter(settings, report_dir=config.getoption("--report-dir", REPORT_DIR))
        config.pluginmanager.register(reporter, "e2e-custom-reporter")


def pytest_collection_modifyitems(
    session: pytest.Session, config: pytest.Config, items: List[pytest.Item]
) -> None:
    settings = config.stash[settings_key]
    project = config.stash[project_key]

    focused = [item for item in items if item.get_closest_marker("only")]
    if focused and settings.forbid_only:
        names = ", ".join(item.nodeid for item in focused)
        raise pytest.UsageError(f"Tests marked 'only' are not allowed on CI: {names}")

    deselected: List[pytest.Item] = []
    if focused:
        deselected.extend(item for item in items if item not in focused)
        items[:] = focused

    if project.markers:
        keep = [
            item
            for item in items
            if any(item.get_closest_marker(name) for name in project.markers)
        ]
        deselected.extend(item for item in items if item not in keep)
        items[:] = keep

    shard = config.getoption("--shard", None)
    if shard:
        try:
            index, total = parse_shard(shard)
        except ValueError as e:
            raise pytest.UsageError(str(e))
        selected, dropped = select_shard(items, index, total)
        deselected.extend(dropped)
        items[:] = selected

    if deselected:
        config.hook.pytest_deselected(items=deselected)

    for item in items:
        expected = item.get_closest_marker("expected_fail")
        if expected:
            reason = expected.kwargs.get("reason") or (
                expected.args[0] if expected.args else "expected to fail"
            )
            item.add_marker(pytest.mark.xfail(reason=reason, strict=False))

        tags = sorted({marker.name for marker in item.iter_markers()})
        item.user_properties.append((PROJECT_PROPERTY, project.name))
        item.user_properties.append((TAGS_PROPERTY, tags))


def is_timeout(excinfo: Optional[pytest.ExceptionInfo]) -> bool:
    return excinfo is not None and isinstance(excinfo.value, TIMEOUT_ERRORS)


@pytest.hookimpl(hookwrapper=True)
def pytest_runtest_makereport(item: pytest.Item, call: pytest.CallInfo):
    outcome = yield
    report = outcome.get_result()
    setattr(item, f"rep_{report.when}", report)

    if report.when == "call" and report.failed and is_timeout(call.excinfo):
        record = (STATUS_PROPERTY, TestStatus.TIMED_OUT.value)
        item.user_properties.append(record)
        report.user_properties.append(record)


@pytest.hookimpl(trylast=True)
def pytest_sessionfinish(session: pytest.Session, exitstatus: int) -> None:
    if is_xdist_worker(session.config):
        return
    global_teardown(session.config.stash[settings_key])


def item_failed(item: pytest.Item) -> bool:
    """Whether setup or call of ``item`` failed (for fixture teardown)."""
    return any(
        getattr(getattr(item, f"rep_{when}", None), "failed", False)
        for when in ("setup", "call")
    )
