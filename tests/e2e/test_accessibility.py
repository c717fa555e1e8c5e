"""Accessibility audits with axe-core and the built-in checks."""

import pytest
import pytest_asyncio

pytestmark = [pytest.mark.e2e, pytest.mark.accessibility, pytest.mark.asyncio]


@pytest_asyncio.fixture
async def example_audit(page, accessibility_helper):
    await page.goto("https://example.com")
    return accessibility_helper


@pytest.mark.smoke
async def test_wcag_aa_scan(example_audit, logger):
    issues = await example_audit.run_audit(wcag_level="AA")
    logger.info("Issues by rule", data={k: len(v) for k, v in example_audit.group_by_rule(issues).items()})

    critical = example_audit.filter_by_impact(issues, min_impact="critical")
    assert len(critical) <= 2


async def test_keyboard_navigation(example_audit, page):
    result = await example_audit.check_keyboard_navigation()

    assert result.focusable_elements > 0
    await page.keyboard.press("Tab")
    focused = await page.evaluate("() => document.activeElement && document.activeElement.tagName")
    assert focused == "A"


async def test_screen_reader_basics(example_audit, page):
    headings = await example_audit.check_heading_structure()
    images = await example_audit.check_image_alt_text()

    assert await page.title()
    assert headings.passed
    assert images.images_without_alt == 0


async def test_color_contrast(example_audit):
    result = await example_audit.check_color_contrast()

    assert result.checked_elements > 0
    assert len(result.issues) <= 3


async def test_search_form_accessibility(page, google_home_page, accessibility_helper):
    await google_home_page.goto()

    forms = await accessibility_helper.check_form_accessibility()

    assert forms.total_inputs > 0


async def test_report_meets_standards(example_audit):
    report = await example_audit.generate_accessibility_report()

    result = example_audit.validate_accessibility_standards(report, minimum_score=50)

    assert result.passed, result.failures
