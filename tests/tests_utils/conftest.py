"""
Shared fixtures for utils tests.

Key fixtures:
- mock_config: patches utils.database_utils.config with a PostgreSQL-flavoured fake.
- sqlite_engine: in-memory SQLite engine holding an 'items' table with two rows.
"""

from types import SimpleNamespace
from unittest.mock import patch

import pytest
from sqlalchemy import text

from sql.driver import DriverType
from utils.database_utils import create_sqlalchemy_engine


@pytest.fixture
def mock_config():
    """Provide mock configuration; tests may change attributes in place."""
    fake = SimpleNamespace(
        db_driver='postgresql',
        db_host='localhost',
        db_port=5432,
        db_user='postgres',
        db_password='secret123',
        db_name='postgres',
        db=SimpleNamespace(sqlite_file=':memory:', pool_size=5, max_overflow=10),
    )
    with patch('utils.database_utils.config', fake):
        yield fake


@pytest.fixture
def sqlite_engine():
    engine = create_sqlalchemy_engine(DriverType.SQLITE, sqlite_file=':memory:')
    with engine.begin() as conn:
        conn.execute(text("CREATE TABLE items (id INTEGER PRIMARY KEY, label VARCHAR(20) NOT NULL)"))
        conn.execute(text("INSERT INTO items (id, label) VALUES (1, 'a'), (2, 'b')"))
    yield engine
    engine.dispose()
