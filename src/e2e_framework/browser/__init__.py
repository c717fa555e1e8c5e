"""Browser lifecycle management for Playwright test runs.

This package provides:
- PlaywrightManager: driver, browser, context and page creation with cleanup
"""

from e2e_framework.browser.playwright_manager import PlaywrightManager

__all__ = [
    "PlaywrightManager",
]
