"""HTTP API testing support."""

from e2e_framework.api.client import ApiClient

__all__ = ["ApiClient"]
