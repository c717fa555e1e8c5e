"""ExamplePage page object against example.com."""

import pytest
import pytest_asyncio

pytestmark = [pytest.mark.e2e, pytest.mark.page_object, pytest.mark.smoke, pytest.mark.asyncio]


@pytest_asyncio.fixture
async def loaded_example_page(example_page):
    await example_page.goto()
    await example_page.wait_for_page_load()
    return example_page


async def test_content(loaded_example_page):
    assert "Example Domain" in await loaded_example_page.get_heading()
    assert await loaded_example_page.get_description()
    assert await loaded_example_page.has_expected_content() is True


async def test_more_info_link(loaded_example_page):
    assert await loaded_example_page.is_more_info_link_visible() is True

    links = await loaded_example_page.get_all_links()

    assert links
    assert "iana.org" in links[0]


async def test_page_structure(loaded_example_page):
    structure = await loaded_example_page.validate_page_structure()

    assert structure["has_heading"] is True
    assert structure["has_description"] is True
    assert structure["has_links"] is True
    assert structure["link_count"] > 0
