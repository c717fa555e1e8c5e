"""Google search flows driven by the packaged search queries."""

from urllib.parse import quote_plus

import pytest
import pytest_asyncio

pytestmark = [pytest.mark.e2e, pytest.mark.ui, pytest.mark.asyncio]


@pytest_asyncio.fixture
async def home(google_home_page):
    await google_home_page.goto()
    return google_home_page


@pytest.mark.smoke
async def test_valid_search(home, google_search_results_page, test_data_manager, logger, screenshot_helper):
    search_query = test_data_manager.get_search_query_by_id("valid-search-1")
    assert search_query is not None
    logger.step(f'Searching for "{search_query.query}"')

    await screenshot_helper.take_full_page_screenshot("before-search")
    await home.search(search_query.query)
    await google_search_results_page.wait_for_page_load()
    await screenshot_helper.take_full_page_screenshot("after-search")

    url = await google_search_results_page.get_current_url()
    assert "google.com/search" in url
    assert quote_plus(search_query.query) in url

    assert await google_search_results_page.has_results()
    result_count = await google_search_results_page.get_result_count()
    assert result_count >= search_query.expected_results
    assert await google_search_results_page.get_result_stats()

    titles = await google_search_results_page.get_search_result_titles()
    terms = search_query.query.lower().split()
    relevant = [t for t in titles if any(term in t.lower() for term in terms)]
    assert relevant
    logger.success(f"Found {result_count} results for '{search_query.query}'")


async def test_special_characters(home, google_search_results_page, test_data_manager):
    search_query = test_data_manager.get_search_query_by_id("special-chars-search")

    await home.search(search_query.query)
    await google_search_results_page.wait_for_page_load()

    url = await google_search_results_page.get_current_url()
    assert "google.com/search" in url
    assert "q=" in url


@pytest.mark.expected_fail(reason="Extremely long queries do not return normal results")
async def test_extremely_long_query(home, google_search_results_page, test_data_manager):
    search_query = test_data_manager.get_search_query_by_id("long-query-search")
    assert search_query.expected_behavior == "fail"

    await home.search(search_query.query)
    await google_search_results_page.wait_for_page_load()

    assert await google_search_results_page.get_result_count() > 0


@pytest.mark.expected_fail(reason="Demo: pagination needs more results than one page shows")
async def test_pagination_demo(home, google_search_results_page, test_data_manager):
    search_query = test_data_manager.get_search_query_by_id("pagination-test")

    await home.search(search_query.query)
    await google_search_results_page.wait_for_page_load()
    first_page = await google_search_results_page.get_result_count()

    assert await google_search_results_page.is_next_page_available()
    await google_search_results_page.go_to_next_page()
    assert await google_search_results_page.get_current_page_number() == 2
    assert first_page >= search_query.expected_results * 10


async def test_search_suggestions(home, logger):
    suggestions = await home.get_search_suggestions("playwright")
    logger.info("Suggestions", data=suggestions)

    assert suggestions
    assert any("playwright" in s.lower() for s in suggestions)


async def test_home_page_elements(home):
    elements = await home.validate_page_elements()

    assert elements["search_box"] is True
