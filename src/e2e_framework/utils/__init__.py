"""Logging utilities."""

from e2e_framework.utils.logger import TestLogger, configure_logging

__all__ = ["TestLogger", "configure_logging"]
