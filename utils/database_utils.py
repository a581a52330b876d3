"""
==================================================
Database connectivity utilities for all drivers.
==================================================

Provides reusable engine construction, health checks and catalog metadata
helpers for MySQL, MariaDB, PostgreSQL and SQLite.

This module keeps SQLAlchemy engine and inspector handling out of the
statement providers and the execution coordinator, so both can stay
focused on SQL text and dispatch.

Key Features:
    - Connection URL building from config
    - Database availability checking
    - Connection pooling setup
    - Timeout and retry logic
    - Catalog metadata (schemas, tables, columns, row counts)

Example:
    >>> from utils.database_utils import (
    ...     check_database_available,
    ...     create_sqlalchemy_engine,
    ...     list_tables,
    ...     wait_for_database
    ... )
    >>> from sql.driver import DriverType
    >>>
    >>> # Wait for the configured server with retries
    >>> wait_for_database(max_retries=5)
    >>>
    >>> # Inspect an SQLite file
    >>> engine = create_sqlalchemy_engine(DriverType.SQLITE, sqlite_file='app.db')
    >>> print(list_tables(engine))
"""

import logging
import time
from typing import Any, Dict, List, Optional, Tuple, Union

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.engine import URL, Connection, Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool

from core.config import config
from sql.driver import DriverType

logger = logging.getLogger(__name__)

SQLITE_MEMORY = ':memory:'


class DatabaseConnectionError(Exception):
    """Exception raised when database connection fails."""
    pass


def _resolve_driver(driver: Union[DriverType, str, None]) -> DriverType:
    if driver is None:
        return DriverType.from_name(config.db_driver)
    if isinstance(driver, DriverType):
        return driver
    return DriverType.from_name(driver)


def build_connection_url(
    driver: Union[DriverType, str, None] = None,
    host: str = None,
    port: int = None,
    user: str = None,
    password: str = None,
    database: str = None,
    sqlite_file: str = None
) -> URL:
    """
    Build a SQLAlchemy URL for the given driver.

    Server settings default to the values in config. For SQLite only the
    file is used; ':memory:' (or an empty file name) selects an in-memory
    database.

    Args:
        driver: DriverType or driver name (defaults to config.db_driver)
        host: Database hostname (defaults to config.db_host)
        port: Database port (defaults to config.db_port, then the driver default)
        user: Database user (defaults to config.db_user)
        password: Database password (defaults to config.db_password)
        database: Database name (defaults to config.db_name)
        sqlite_file: SQLite database file (defaults to config.db.sqlite_file)

    Returns:
        SQLAlchemy URL

    Example:
        >>> str(build_connection_url(DriverType.SQLITE, sqlite_file=':memory:'))
        'sqlite:///:memory:'
    """
    driver = _resolve_driver(driver)

    if driver is DriverType.SQLITE:
        sqlite_file = sqlite_file if sqlite_file is not None else config.db.sqlite_file
        return URL.create(drivername=driver.sqlalchemy_name, database=sqlite_file or SQLITE_MEMORY)

    return URL.create(
        drivername=driver.sqlalchemy_name,
        username=user if user is not None else config.db_user,
        password=password if password is not None else config.db_password,
        host=host or config.db_host,
        port=port or config.db_port or driver.default_port,
        database=database or config.db_name
    )


def create_sqlalchemy_engine(
    driver: Union[DriverType, str, None] = None,
    host: str = None,
    port: int = None,
    user: str = None,
    password: str = None,
    database: str = None,
    sqlite_file: str = None,
    echo: bool = False,
    pool_size: int = None,
    max_overflow: int = None,
    connect_timeout: Optional[int] = None
) -> Engine:
    """
    Create SQLAlchemy engine with connection pooling.

    Server drivers get a QueuePool sized from the arguments or config. An
    in-memory SQLite database is bound to a single shared connection
    (StaticPool) so every checkout, including those of worker threads, sees
    the same data.

    Args:
        driver: DriverType or driver name (defaults to config.db_driver)
        host: Database hostname
        port: Database port
        user: Database user
        password: Database password
        database: Database name
        sqlite_file: SQLite database file
        echo: Enable SQL statement logging
        pool_size: Connection pool size (defaults to config.db.pool_size)
        max_overflow: Maximum overflow connections (defaults to config.db.max_overflow)
        connect_timeout: Seconds to wait when opening a connection

    Returns:
        Configured SQLAlchemy Engine

    Example:
        >>> engine = create_sqlalchemy_engine(DriverType.SQLITE, sqlite_file=':memory:')
        >>> with engine.connect() as conn:
        ...     result = conn.execute(text("SELECT 1"))
    """
    driver = _resolve_driver(driver)
    url = build_connection_url(driver, host, port, user, password, database, sqlite_file)

    if driver is DriverType.SQLITE:
        connect_args: Dict[str, Any] = {'check_same_thread': False}
        if connect_timeout is not None:
            connect_args['timeout'] = connect_timeout
        if url.database == SQLITE_MEMORY:
            return create_engine(url, echo=echo, connect_args=connect_args, poolclass=StaticPool)
        return create_engine(url, echo=echo, connect_args=connect_args, pool_pre_ping=True)

    connect_args = {}
    if connect_timeout is not None:
        connect_args['connect_timeout'] = connect_timeout

    return create_engine(
        url,
        echo=echo,
        pool_size=pool_size or config.db.pool_size,
        max_overflow=max_overflow if max_overflow is not None else config.db.max_overflow,
        connect_args=connect_args,
        pool_pre_ping=True  # Verify connections before using
    )


def check_database_available(
    driver: Union[DriverType, str, None] = None,
    host: str = None,
    port: int = None,
    user: str = None,
    password: str = None,
    database: str = None,
    sqlite_file: str = None,
    timeout: int = 5
) -> bool:
    """
    Check if the database is available by running 'SELECT 1'.

    Args:
        driver: DriverType or driver name (defaults to config.db_driver)
        host: Database hostname (defaults to config)
        port: Database port (defaults to config)
        user: Database user (defaults to config)
        password: Database password (defaults to config)
        database: Database name (defaults to config.db_name)
        sqlite_file: SQLite database file (defaults to config)
        timeout: Connection timeout in seconds

    Returns:
        True if database is available, False otherwise

    Example:
        >>> if check_database_available():
        ...     print("Database is ready")
    """
    engine = create_sqlalchemy_engine(
        driver, host, port, user, password, database, sqlite_file, connect_timeout=timeout
    )
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError as e:
        logger.debug(f"Database not available: {e}")
        return False
    finally:
        engine.dispose()


def wait_for_database(
    driver: Union[DriverType, str, None] = None,
    host: str = None,
    port: int = None,
    user: str = None,
    password: str = None,
    database: str = None,
    sqlite_file: str = None,
    max_retries: int = 10,
    retry_delay: int = 2,
    timeout: int = 5
) -> bool:
    """
    Wait for the database to become available with retries.

    Args:
        driver: DriverType or driver name (defaults to config.db_driver)
        host: Database hostname (defaults to config)
        port: Database port (defaults to config)
        user: Database user (defaults to config)
        password: Database password (defaults to config)
        database: Database name (defaults to config.db_name)
        sqlite_file: SQLite database file (defaults to config)
        max_retries: Maximum number of retry attempts
        retry_delay: Delay between retries in seconds
        timeout: Connection timeout per attempt in seconds

    Returns:
        True once the database is available

    Raises:
        DatabaseConnectionError: If database never becomes available

    Example:
        >>> wait_for_database(max_retries=5, retry_delay=3)
        >>> # Waits up to 15 seconds for database
    """
    driver = _resolve_driver(driver)
    target = describe_target(driver, host, port, database, sqlite_file)

    logger.info(f"Waiting for {driver} at {target}...")

    for attempt in range(1, max_retries + 1):
        if check_database_available(driver, host, port, user, password, database, sqlite_file, timeout):
            logger.info(f"✅ {driver} is available (attempt {attempt}/{max_retries})")
            return True

        if attempt < max_retries:
            logger.warning(
                f"⏳ {driver} not available yet (attempt {attempt}/{max_retries}), "
                f"retrying in {retry_delay}s..."
            )
            time.sleep(retry_delay)

    error_msg = f"{driver} at {target} did not become available after {max_retries} attempts"
    logger.error(f"❌ {error_msg}")
    raise DatabaseConnectionError(error_msg)


def describe_target(
    driver: Union[DriverType, str, None] = None,
    host: str = None,
    port: int = None,
    database: str = None,
    sqlite_file: str = None
) -> str:
    """Return 'host:port/database', or the SQLite file, for log messages."""
    driver = _resolve_driver(driver)
    if driver is DriverType.SQLITE:
        sqlite_file = sqlite_file if sqlite_file is not None else config.db.sqlite_file
        return sqlite_file or SQLITE_MEMORY
    host = host or config.db_host
    port = port or config.db_port or driver.default_port
    database = database or config.db_name
    return f"{host}:{port}/{database}"


def detect_driver_type(bind: Union[Engine, Connection]) -> DriverType:
    """
    Detect the DriverType of an engine or connection from its dialect.

    Raises:
        ValueError: If the dialect is not one of the supported engines
    """
    dialect = bind.dialect
    if dialect.name == 'mariadb' or getattr(dialect, 'is_mariadb', False):
        return DriverType.MARIADB
    if dialect.name == 'mysql':
        return DriverType.MYSQL
    if dialect.name == 'postgresql':
        return DriverType.POSTGRESQL
    if dialect.name == 'sqlite':
        return DriverType.SQLITE
    raise ValueError(f"Unsupported SQLAlchemy dialect: {dialect.name}")


def quote_identifier(name: str, driver: DriverType) -> str:
    """
    Quote a table or column name for the given driver.

    PostgreSQL and SQLite use double quotes, MySQL and MariaDB backticks.
    Embedded quote characters are doubled.

    Example:
        >>> quote_identifier('order', DriverType.MYSQL)
        '`order`'
    """
    if driver.is_mysql_family:
        return '`' + name.replace('`', '``') + '`'
    return '"' + name.replace('"', '""') + '"'


def list_schemas(bind: Union[Engine, Connection]) -> List[str]:
    """List schema names (databases on MySQL/MariaDB) visible to the connection."""
    return inspect(bind).get_schema_names()


def list_tables(bind: Union[Engine, Connection], schema: Optional[str] = None) -> List[str]:
    """List table names in a schema (the default schema when None)."""
    return inspect(bind).get_table_names(schema=schema)


def list_columns(
    bind: Union[Engine, Connection],
    table: str,
    schema: Optional[str] = None
) -> List[Dict[str, Any]]:
    """
    Describe the columns of a table.

    Args:
        bind: Engine or connection to inspect
        table: Table name
        schema: Schema name (the default schema when None)

    Returns:
        One dict per column with keys name, type (SQL type text), nullable
        and default, in table order
    """
    return [
        {
            'name': column['name'],
            'type': str(column['type']),
            'nullable': column.get('nullable', True),
            'default': column.get('default')
        }
        for column in inspect(bind).get_columns(table, schema=schema)
    ]


def get_table_row_count(bind: Union[Engine, Connection], table: str, schema: Optional[str] = None) -> int:
    """
    Count the rows of a table.

    Raises:
        DatabaseConnectionError: If the count query fails
    """
    driver = detect_driver_type(bind)
    name = quote_identifier(table, driver)
    if schema:
        name = f"{quote_identifier(schema, driver)}.{name}"

    try:
        if isinstance(bind, Engine):
            with bind.connect() as conn:
                return conn.execute(text(f"SELECT COUNT(*) FROM {name}")).scalar_one()
        return bind.execute(text(f"SELECT COUNT(*) FROM {name}")).scalar_one()
    except SQLAlchemyError as e:
        logger.error(f"Failed to count rows of {table}: {e}")
        raise DatabaseConnectionError(f"Failed to count rows of {table}: {e}") from e


def get_database_connection_info() -> dict:
    """
    Get current database connection configuration.

    Returns:
        Dictionary with connection parameters (password omitted)

    Example:
        >>> info = get_database_connection_info()
        >>> print(f"Connecting to {info['driver']} at {info['target']}")
    """
    return {
        'driver': config.db_driver,
        'host': config.db_host,
        'port': config.db_port,
        'user': config.db_user,
        'database': config.db_name,
        'sqlite_file': config.db.sqlite_file,
        'target': describe_target()
    }


def verify_connection() -> Tuple[bool, Optional[str]]:
    """
    Verify the configured database connection and return status with details.

    Returns:
        Tuple of (success: bool, message: str)

    Example:
        >>> success, message = verify_connection()
        >>> if success:
        ...     print(f"✅ {message}")
        ... else:
        ...     print(f"❌ {message}")
    """
    try:
        driver = _resolve_driver(None)
    except ValueError as e:
        return False, str(e)

    target = describe_target(driver)
    if not check_database_available(driver):
        return False, f"{driver} server not available at {target}"

    engine = create_sqlalchemy_engine(driver)
    try:
        table_count = len(list_tables(engine))
    except SQLAlchemyError as e:
        return False, f"Connection test failed: {e}"
    finally:
        engine.dispose()

    return True, f"Connected to {driver} at {target}. {table_count} tables found."
