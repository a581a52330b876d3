"""
Shared fixtures for statement provider tests.

Key fixtures:
- render: renders a provider for a driver and returns (sql, parameters).
- driver_context: a minimal stand-in for the execution coordinator, which
  providers only ask for its driver_type.
"""

from types import SimpleNamespace

import pytest

from sql.driver import DriverType


@pytest.fixture
def render():
    """Render a provider and return (sql, parameters list)."""
    def _render(provider, driver):
        statement = provider.render(driver)
        return statement.sql, list(statement.parameters)
    return _render


@pytest.fixture
def driver_context():
    """Factory for objects exposing only driver_type, like Query does."""
    def _context(driver=DriverType.POSTGRESQL):
        return SimpleNamespace(driver_type=driver)
    return _context
