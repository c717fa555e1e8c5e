"""Test data loading."""

from e2e_framework.data.test_data_manager import TestDataManager

__all__ = ["TestDataManager"]
