"""Playwright end-to-end test automation framework.

Page objects, test helpers, an HTTP client, test data loading and a pytest
plugin with fixtures and custom reporting.
"""

__version__ = "1.0.0"
