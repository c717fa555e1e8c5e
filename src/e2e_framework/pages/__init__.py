"""Page objects."""

from e2e_framework.pages.base_page import BasePage
from e2e_framework.pages.example_page import ExamplePage
from e2e_framework.pages.google_home_page import GoogleHomePage
from e2e_framework.pages.google_search_results_page import GoogleSearchResultsPage

__all__ = ["BasePage", "ExamplePage", "GoogleHomePage", "GoogleSearchResultsPage"]
