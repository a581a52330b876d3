"""
========================================================
Comprehensive pytest suite for utils/database_utils.py
========================================================

Sections:
---------
1. Unit tests - URL building and engine creation
2. Unit tests - Availability checks and retry logic
3. Integration tests - Catalog helpers on SQLite
4. Edge case tests - Unknown drivers, failing counts

Available markers:
------------------
unit, integration, edge_case

Test Coverage:
--------------
- build_connection_url: Driver-specific URLs with config fallbacks
- create_sqlalchemy_engine: Pool settings per driver
- check_database_available: SELECT 1 health check
- wait_for_database: Retry logic and timeout handling
- detect_driver_type / quote_identifier: Dialect helpers
- list_tables / list_columns / get_table_row_count: Catalog metadata
- verify_connection: Connection testing with status messages

How to Execute:
---------------
All tests:          pytest tests/tests_utils/test_database_utils.py -v
By category:        pytest tests/tests_utils/test_database_utils.py -m unit
With coverage:      pytest tests/tests_utils/test_database_utils.py --cov=utils.database_utils
"""

from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.pool import StaticPool

from sql.driver import DriverType
from utils.database_utils import (
    DatabaseConnectionError,
    build_connection_url,
    check_database_available,
    create_sqlalchemy_engine,
    describe_target,
    detect_driver_type,
    get_database_connection_info,
    get_table_row_count,
    list_columns,
    list_tables,
    quote_identifier,
    verify_connection,
    wait_for_database,
)

# ====================
# Mock Helper Classes
# ====================


class FakeSQLAlchemyConnection:
    """Mock SQLAlchemy connection for testing."""

    def __init__(self, error=None):
        self.error = error
        self.executed_statements = []

    def execute(self, statement, params=None):
        if self.error is not None:
            raise self.error
        self.executed_statements.append(str(statement))

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        return False


class FakeEngine:
    """Mock SQLAlchemy engine."""

    def __init__(self, connection=None):
        self.connection_obj = connection or FakeSQLAlchemyConnection()
        self.disposed = False

    def connect(self):
        return self.connection_obj

    def dispose(self):
        self.disposed = True


# ===============
# 1. UNIT TESTS
# ===============

@pytest.mark.unit
def test_build_connection_url_defaults(mock_config):
    """
    Test URL generation with default parameters.

    Verifies that build_connection_url uses config defaults when no
    parameters are provided.
    """
    url = build_connection_url(DriverType.POSTGRESQL)

    assert url.drivername == 'postgresql+psycopg2'
    assert (url.username, url.password, url.host, url.port, url.database) == \
        ('postgres', 'secret123', 'localhost', 5432, 'postgres')


@pytest.mark.unit
def test_build_connection_url_custom_params(mock_config):
    url = build_connection_url('mysql', host='db.example.com', port=3307, user='admin', password='p@ss', database='shop')

    assert url.drivername == 'mysql+pymysql'
    assert url.host == 'db.example.com'
    assert url.port == 3307
    assert url.password == 'p@ss'
    assert url.database == 'shop'


@pytest.mark.unit
def test_build_connection_url_sqlite(mock_config):
    memory = build_connection_url(DriverType.SQLITE)
    assert (memory.drivername, memory.database) == ('sqlite', ':memory:')

    file_url = build_connection_url(DriverType.SQLITE, sqlite_file='app.db')
    assert (file_url.drivername, file_url.database) == ('sqlite', 'app.db')


@pytest.mark.unit
def test_create_engine_server_pool_settings(mock_config):
    """
    Test SQLAlchemy engine creation for a server driver.

    Verifies custom pool_size, max_overflow and connect timeout are applied.
    """
    with patch('utils.database_utils.create_engine') as mock_create_engine:
        create_sqlalchemy_engine(DriverType.POSTGRESQL, pool_size=10, max_overflow=20, echo=True, connect_timeout=3)

        call_kwargs = mock_create_engine.call_args[1]
        assert call_kwargs['pool_size'] == 10
        assert call_kwargs['max_overflow'] == 20
        assert call_kwargs['echo'] is True
        assert call_kwargs['pool_pre_ping'] is True
        assert call_kwargs['connect_args'] == {'connect_timeout': 3}


@pytest.mark.unit
def test_create_engine_server_uses_config_pool(mock_config):
    with patch('utils.database_utils.create_engine') as mock_create_engine:
        create_sqlalchemy_engine(DriverType.MYSQL)

        call_kwargs = mock_create_engine.call_args[1]
        assert call_kwargs['pool_size'] == 5
        assert call_kwargs['max_overflow'] == 10


@pytest.mark.unit
def test_create_engine_sqlite_memory_uses_static_pool(mock_config):
    with patch('utils.database_utils.create_engine') as mock_create_engine:
        create_sqlalchemy_engine(DriverType.SQLITE, sqlite_file=':memory:')

        call_kwargs = mock_create_engine.call_args[1]
        assert call_kwargs['poolclass'] is StaticPool
        assert call_kwargs['connect_args'] == {'check_same_thread': False}


# ===========================
# 2. AVAILABILITY UNIT TESTS
# ===========================

@pytest.mark.unit
def test_check_database_available_success(mock_config):
    engine = FakeEngine()
    with patch('utils.database_utils.create_sqlalchemy_engine', return_value=engine):
        assert check_database_available(DriverType.POSTGRESQL) is True

    assert engine.connection_obj.executed_statements == ['SELECT 1']
    assert engine.disposed is True


@pytest.mark.unit
def test_check_database_available_failure(mock_config):
    engine = FakeEngine(FakeSQLAlchemyConnection(OperationalError("SELECT 1", None, Exception("refused"))))
    with patch('utils.database_utils.create_sqlalchemy_engine', return_value=engine):
        assert check_database_available(DriverType.POSTGRESQL) is False

    assert engine.disposed is True


@pytest.mark.unit
def test_wait_for_database_success_after_retries(mock_config):
    """
    Test wait_for_database succeeds after multiple retries.

    Verifies retry logic works and function succeeds eventually.
    """
    with patch('utils.database_utils.check_database_available', side_effect=[False, False, True]), \
         patch('utils.database_utils.time.sleep') as mock_sleep:

        assert wait_for_database(DriverType.POSTGRESQL, max_retries=5, retry_delay=1) is True
        assert mock_sleep.call_count == 2


@pytest.mark.unit
def test_wait_for_database_max_retries_exhausted(mock_config):
    with patch('utils.database_utils.check_database_available', return_value=False), \
         patch('utils.database_utils.time.sleep') as mock_sleep:

        with pytest.raises(DatabaseConnectionError) as exc_info:
            wait_for_database(DriverType.POSTGRESQL, max_retries=3, retry_delay=1)

        assert "3 attempts" in str(exc_info.value)
        assert mock_sleep.call_count == 2


@pytest.mark.unit
def test_describe_target(mock_config):
    assert describe_target(DriverType.POSTGRESQL) == 'localhost:5432/postgres'
    assert describe_target(DriverType.MYSQL, host='h', port=1, database='d') == 'h:1/d'
    assert describe_target(DriverType.SQLITE, sqlite_file='app.db') == 'app.db'


@pytest.mark.unit
def test_get_database_connection_info(mock_config):
    info = get_database_connection_info()

    assert info['driver'] == 'postgresql'
    assert info['target'] == 'localhost:5432/postgres'
    assert 'password' not in info


@pytest.mark.unit
def test_verify_connection_unavailable(mock_config):
    with patch('utils.database_utils.check_database_available', return_value=False):
        success, message = verify_connection()

    assert success is False
    assert 'not available' in message


@pytest.mark.unit
def test_verify_connection_success(mock_config):
    with patch('utils.database_utils.check_database_available', return_value=True), \
         patch('utils.database_utils.create_sqlalchemy_engine', return_value=MagicMock()), \
         patch('utils.database_utils.list_tables', return_value=['a', 'b']):
        success, message = verify_connection()

    assert success is True
    assert '2 tables found' in message


@pytest.mark.unit
@pytest.mark.parametrize("name, driver, expected", [
    ('order', DriverType.MYSQL, '`order`'),
    ('we`ird', DriverType.MARIADB, '`we``ird`'),
    ('order', DriverType.POSTGRESQL, '"order"'),
    ('a"b', DriverType.SQLITE, '"a""b"'),
])
def test_quote_identifier(name, driver, expected):
    assert quote_identifier(name, driver) == expected


@pytest.mark.unit
@pytest.mark.parametrize("dialect, expected", [
    (SimpleNamespace(name='mysql', is_mariadb=False), DriverType.MYSQL),
    (SimpleNamespace(name='mysql', is_mariadb=True), DriverType.MARIADB),
    (SimpleNamespace(name='postgresql'), DriverType.POSTGRESQL),
    (SimpleNamespace(name='sqlite'), DriverType.SQLITE),
])
def test_detect_driver_type(dialect, expected):
    assert detect_driver_type(SimpleNamespace(dialect=dialect)) is expected


# ===================================
# 3. INTEGRATION TESTS (SQLite)
# ===================================

@pytest.mark.integration
def test_catalog_helpers(sqlite_engine):
    assert list_tables(sqlite_engine) == ['items']

    columns = list_columns(sqlite_engine, 'items')
    assert [column['name'] for column in columns] == ['id', 'label']
    assert columns[1]['nullable'] is False
    assert columns[1]['type'].startswith('VARCHAR')

    assert get_table_row_count(sqlite_engine, 'items') == 2


@pytest.mark.integration
def test_row_count_on_connection(sqlite_engine):
    with sqlite_engine.connect() as conn:
        assert get_table_row_count(conn, 'items') == 2


# ===================
# 4. EDGE CASE TESTS
# ===================

@pytest.mark.edge_case
def test_unknown_dialect():
    with pytest.raises(ValueError, match="Unsupported"):
        detect_driver_type(SimpleNamespace(dialect=SimpleNamespace(name='oracle')))


@pytest.mark.edge_case
def test_row_count_of_missing_table(sqlite_engine):
    with pytest.raises(DatabaseConnectionError):
        get_table_row_count(sqlite_engine, 'missing')


@pytest.mark.edge_case
def test_verify_connection_unknown_driver(mock_config):
    mock_config.db_driver = 'oracle'
    success, message = verify_connection()

    assert success is False
    assert 'Unknown driver type' in message
