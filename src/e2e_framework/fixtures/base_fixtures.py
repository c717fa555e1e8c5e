"""Core fixtures: settings, logging, data, API and browser lifecycle.

Browser objects are function scoped so every test owns its event loop,
browser and context.
"""

import logging
from typing import AsyncIterator

import pytest
import pytest_asyncio
from playwright.async_api import Browser, BrowserContext, Page

from e2e_framework.api.client import ApiClient
from e2e_framework.browser.playwright_manager import PlaywrightManager
from e2e_framework.config.projects import ProjectConfig
from e2e_framework.config.settings import BrowserConfig, FrameworkSettings
from e2e_framework.data.test_data_manager import TestDataManager
from e2e_framework.helpers.accessibility_helper import AccessibilityHelper
from e2e_framework.helpers.file_helper import FileHelper
from e2e_framework.helpers.performance_helper import PerformanceHelper
from e2e_framework.helpers.screenshot_helper import ScreenshotHelper, sanitize_name
from e2e_framework.helpers.video_helper import VideoHelper
from e2e_framework.helpers.visual_helper import VisualHelper
from e2e_framework.models.browser_models import Viewport
from e2e_framework.plugin import item_failed, project_key, settings_key
from e2e_framework.reporters.attachments import AttachmentRecorder
from e2e_framework.utils.logger import TestLogger

logger = logging.getLogger(__name__)


@pytest.fixture(scope="session")
def settings(pytestconfig: pytest.Config) -> FrameworkSettings:
    return pytestconfig.stash[settings_key]


@pytest.fixture(scope="session")
def project(pytestconfig: pytest.Config) -> ProjectConfig:
    return pytestconfig.stash[project_key]


@pytest.fixture(scope="session")
def environment(settings: FrameworkSettings) -> str:
    return settings.environment


@pytest.fixture(scope="session")
def api_base_url(settings: FrameworkSettings) -> str:
    return settings.api_base_url


@pytest.fixture(scope="session")
def browser_config(settings: FrameworkSettings) -> BrowserConfig:
    return settings.browser_config


@pytest.fixture(name="logger")
def test_logger(request: pytest.FixtureRequest) -> TestLogger:
    """Logger whose context is the running test's name."""
    return TestLogger(request.node.name)


@pytest.fixture
def attachments(request: pytest.FixtureRequest) -> AttachmentRecorder:
    return AttachmentRecorder(request.node)


@pytest_asyncio.fixture
async def test_data_manager(environment: str) -> AsyncIterator[TestDataManager]:
    manager = TestDataManager(environment)
    await manager.initialize()
    yield manager
    await manager.cleanup()


@pytest_asyncio.fixture
async def api_client(
    api_base_url: str, settings: FrameworkSettings
) -> AsyncIterator[ApiClient]:
    config = settings.api_config
    client = ApiClient(
        api_base_url,
        timeout=config.timeout,
        retries=config.retries,
        headers=config.headers,
    )
    yield client
    await client.cleanup()


@pytest_asyncio.fixture
async def playwright_manager(
    settings: FrameworkSettings,
) -> AsyncIterator[PlaywrightManager]:
    manager = PlaywrightManager(
        action_timeout=settings.action_timeout,
        navigation_timeout=settings.navigation_timeout,
    )
    await manager.initialize()
    yield manager
    await manager.cleanup()


@pytest_asyncio.fixture
async def browser(
    playwright_manager: PlaywrightManager,
    settings: FrameworkSettings,
    project: ProjectConfig,
) -> Browser:
    if not project.requires_browser:
        pytest.skip(f"Project '{project.name}' does not launch a browser")

    config = settings.browser_config
    return await playwright_manager.launch_browser(
        browser_type=project.browser_type,
        headless=config.headless,
        slow_mo=config.slow_mo,
        devtools=config.devtools,
        channel=project.channel,
    )


@pytest_asyncio.fixture
async def context(
    request: pytest.FixtureRequest,
    browser: Browser,
    playwright_manager: PlaywrightManager,
    settings: FrameworkSettings,
    project: ProjectConfig,
    attachments: AttachmentRecorder,
) -> AsyncIterator[BrowserContext]:
    """Isolated context with the project's device, recording and tracing."""
    results_dir = settings.results_dir
    test_name = sanitize_name(request.node.name)

    device = project.context_options(playwright_manager.devices)
    viewport = None
    if not device:
        viewport = Viewport(width=settings.viewport_width, height=settings.viewport_height)

    options = {
        "base_url": project.base_url or settings.base_url,
        "ignore_https_errors": settings.ignore_https_errors,
        "accept_downloads": settings.accept_downloads,
    }
    if not device:
        options["user_agent"] = settings.user_agent

    config = settings.browser_config
    record_video = config.record_video and settings.video != "off"

    browser_context = await playwright_manager.create_context(
        browser,
        viewport=viewport,
        device=device,
        record_video_dir=results_dir / "videos" / "raw" if record_video else None,
        record_har_path=results_dir / "har" / f"{test_name}.har" if config.record_har else None,
        **options,
    )

    if settings.trace != "off":
        await browser_context.tracing.start(screenshots=True, snapshots=True, sources=True)

    yield browser_context

    if settings.trace != "off":
        keep = settings.trace == "on" or item_failed(request.node)
        if keep:
            trace_path = results_dir / "traces" / f"{test_name}.zip"
            await browser_context.tracing.stop(path=str(trace_path))
            attachments.attach("trace", trace_path, "application/zip")
        else:
            await browser_context.tracing.stop()

    await playwright_manager.close_context(browser_context)


@pytest_asyncio.fixture
async def page(
    request: pytest.FixtureRequest,
    context: BrowserContext,
    playwright_manager: PlaywrightManager,
    settings: FrameworkSettings,
    logger: TestLogger,
    attachments: AttachmentRecorder,
) -> AsyncIterator[Page]:
    """Page with default timeouts; failure artifacts are kept on teardown."""
    page = await playwright_manager.create_page(context, logger)
    if settings.browser_config.slow_mo:
        await page.wait_for_timeout(settings.browser_config.slow_mo)

    yield page

    failed = item_failed(request.node)
    wants_screenshot = settings.screenshot == "on" or (failed and settings.screenshot != "off")
    if wants_screenshot and not page.is_closed():
        helper = ScreenshotHelper(page, request.node.name, settings.output_dir, attachments)
        try:
            if failed:
                await helper.take_failure_screenshot()
            else:
                await helper.take_final_screenshot()
        except Exception as e:
            logger.warn(f"Could not capture screenshot: {e}")

    if not page.is_closed():
        await page.close()

    if page.video is not None:
        video = VideoHelper(page, request.node.name, settings.output_dir, True, attachments)
        if failed:
            await video.save_failure_video()
        elif settings.video == "on":
            await video.stop_recording()
        else:
            await page.video.delete()


@pytest.fixture
def screenshot_helper(
    request: pytest.FixtureRequest,
    page: Page,
    settings: FrameworkSettings,
    attachments: AttachmentRecorder,
) -> ScreenshotHelper:
    return ScreenshotHelper(page, request.node.name, settings.output_dir, attachments)


@pytest_asyncio.fixture
async def video_helper(
    request: pytest.FixtureRequest,
    page: Page,
    settings: FrameworkSettings,
    attachments: AttachmentRecorder,
) -> AsyncIterator[VideoHelper]:
    helper = VideoHelper(
        page,
        request.node.name,
        settings.output_dir,
        settings.browser_config.record_video,
        attachments,
    )
    yield helper
    await helper.cleanup()


@pytest.fixture
def visual_helper(
    settings: FrameworkSettings,
    project: ProjectConfig,
    attachments: AttachmentRecorder,
) -> VisualHelper:
    if not settings.enable_visual_testing:
        pytest.skip("Visual testing is disabled")
    return VisualHelper(
        snapshot_dir=settings.snapshot_dir,
        output_dir=settings.output_dir,
        threshold=settings.screenshot_threshold,
        update_snapshots=settings.update_snapshots,
        suffix=project.name,
        attachments=attachments,
    )


@pytest.fixture
def file_helper(page: Page, settings: FrameworkSettings) -> FileHelper:
    return FileHelper(page, download_dir=settings.results_dir / "downloads")


@pytest.fixture
def performance_helper(page: Page, settings: FrameworkSettings) -> PerformanceHelper:
    if not settings.enable_performance_testing:
        pytest.skip("Performance testing is disabled")
    return PerformanceHelper(page)


@pytest.fixture
def accessibility_helper(page: Page, settings: FrameworkSettings) -> AccessibilityHelper:
    if not settings.enable_accessibility_testing:
        pytest.skip("Accessibility testing is disabled")
    return AccessibilityHelper(page)
