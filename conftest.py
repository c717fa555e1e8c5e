pytest_plugins = [
    "pytester",
    "e2e_framework.plugin",
    "e2e_framework.fixtures.base_fixtures",
    "e2e_framework.fixtures.page_fixtures",
]
