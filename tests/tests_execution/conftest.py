"""
Shared fakes and fixtures for execution coordinator tests.

Key fixtures:
- fake_connection: a recording stand-in for a SQLAlchemy Connection.
- fake_adapter: factory returning an adapter around a fake connection.
- sqlite_adapter: a real DatabaseAdapter on an in-memory SQLite database.
"""

import pytest
from sqlalchemy.exc import OperationalError

from sql.driver import DriverType


class FakeResult:
    """Mock SQLAlchemy CursorResult."""

    def __init__(self, rows=None, columns=None, rowcount=1):
        self.rows = list(rows or [])
        self.columns = list(columns or [])
        self.rowcount = rowcount
        self.closed = False

    def keys(self):
        return self.columns

    def __iter__(self):
        return iter(self.rows)

    def close(self):
        self.closed = True


class FakeConnection:
    """Mock SQLAlchemy connection recording every exec_driver_sql() call.

    Attributes:
        calls: (sql, parameters, execution_options) per call
        fail_on: SQL strings that raise an OperationalError
        results: SQL string -> FakeResult returned for it
    """

    def __init__(self):
        self.calls = []
        self.fail_on = set()
        self.results = {}
        self.commits = 0
        self.rollbacks = 0
        self.options = {}

    def exec_driver_sql(self, sql, parameters=None, execution_options=None):
        self.calls.append((sql, parameters, execution_options))
        if sql in self.fail_on:
            raise OperationalError(sql, parameters, Exception("simulated failure"))
        if sql in self.results:
            return self.results[sql]
        rowcount = len(parameters) if isinstance(parameters, list) else 1
        return FakeResult(rowcount=rowcount)

    def execution_options(self, **options):
        self.options.update(options)
        return self

    def commit(self):
        self.commits += 1

    def rollback(self):
        self.rollbacks += 1

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        return False


class FakeAdapter:
    """Mock DatabaseAdapter handing out one FakeConnection."""

    def __init__(self, driver_type=DriverType.POSTGRESQL, connection=None, is_connected=True, paramstyle='qmark'):
        self.driver_type = driver_type
        self.connection = connection or FakeConnection()
        self.is_connected = is_connected
        self.paramstyle = paramstyle
        self.checkouts = 0

    def connected(self):
        return self.is_connected

    def get_connection(self):
        self.checkouts += 1
        return self.connection


@pytest.fixture
def fake_result():
    """Factory for FakeResult instances."""
    return FakeResult


@pytest.fixture
def fake_connection():
    return FakeConnection()


@pytest.fixture
def fake_adapter():
    """Factory for FakeAdapter instances."""
    def _adapter(driver_type=DriverType.POSTGRESQL, **kwargs):
        return FakeAdapter(driver_type, **kwargs)
    return _adapter


@pytest.fixture
def sqlite_adapter():
    """A connected in-memory SQLite adapter, disconnected after the test."""
    from execution.adapter import DatabaseAdapter

    adapter = DatabaseAdapter.Builder().driver_type(DriverType.SQLITE).build().connect()
    yield adapter
    adapter.disconnect()
