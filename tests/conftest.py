"""
Pytest configuration for adminbus tests.

Async tests are marked with @pytest.mark.asyncio (pytest-asyncio).
"""

import pytest

from adminbus.logging import LoggingConfig


def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line(
        "markers", "asyncio: mark test as async"
    )


@pytest.fixture(autouse=True)
def quiet_logging():
    config = LoggingConfig()
    config.update(log_level="critical")
    yield
    config.update(log_level="info")
