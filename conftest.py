"""
Root pytest configuration.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Generator

import pytest


def get_test_timeout(base: float, max_multiplier: float = 5.0) -> float:
    """Apply CI timeout multiplier to a base timeout value.

    Environment:
        CI_TIMEOUT_MULTIPLIER: Multiplier for CI environments (default: 1.0)

    Note:
        Reads env var on each call to support per-test monkeypatching.
    """
    raw = os.getenv("CI_TIMEOUT_MULTIPLIER", "1.0")
    try:
        multiplier = float(raw) if raw else 1.0
        multiplier = min(multiplier, max_multiplier)
    except ValueError:
        multiplier = 1.0
    return base * multiplier


# Register ansilog testing fixtures for all tests
pytest_plugins = ("ansilog.testing.fixtures",)


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers for test categorization."""
    config.addinivalue_line(
        "markers",
        "critical: Tests that must never fail - core functionality",
    )
    config.addinivalue_line(
        "markers",
        "integration: Tests requiring external dependencies",
    )
    config.addinivalue_line(
        "markers",
        "slow: Tests that take >1 second",
    )
    config.addinivalue_line(
        "markers",
        "postgres: Tests requiring PostgreSQL",
    )
    config.addinivalue_line(
        "markers",
        "property: Property-based tests (may be slow)",
    )


@pytest.fixture(autouse=True)
def reset_diagnostics_rate_limits() -> Generator[None, None, None]:
    """Clear diagnostic rate-limit state so tests never inherit it."""
    from ansilog.core import diagnostics

    diagnostics._reset_rate_limits()
    yield
    diagnostics._reset_rate_limits()


@pytest.fixture
def isolated_logger() -> Generator[logging.Logger, None, None]:
    """A uniquely named stdlib logger with its handlers removed afterwards."""
    logger = logging.getLogger(f"test-{os.urandom(4).hex()}")
    yield logger
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
