"""Page object fixtures."""

import pytest
from playwright.async_api import Page

from e2e_framework.config.projects import ProjectConfig
from e2e_framework.config.settings import FrameworkSettings
from e2e_framework.pages.example_page import ExamplePage
from e2e_framework.pages.google_home_page import GoogleHomePage
from e2e_framework.pages.google_search_results_page import GoogleSearchResultsPage
from e2e_framework.utils.logger import TestLogger


@pytest.fixture
def example_page(page: Page, logger: TestLogger) -> ExamplePage:
    return ExamplePage(page, logger)


@pytest.fixture
def google_home_page(
    page: Page, logger: TestLogger, settings: FrameworkSettings, project: ProjectConfig
) -> GoogleHomePage:
    return GoogleHomePage(page, logger, project.base_url or settings.base_url)


@pytest.fixture
def google_search_results_page(
    page: Page, logger: TestLogger, settings: FrameworkSettings, project: ProjectConfig
) -> GoogleSearchResultsPage:
    return GoogleSearchResultsPage(page, logger, project.base_url or settings.base_url)
