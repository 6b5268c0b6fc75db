"""Fixtures for security tests."""

import pytest


def pytest_configure(config: pytest.Config) -> None:
    """Register security test markers."""
    config.addinivalue_line("markers", "security: security and input validation tests")
