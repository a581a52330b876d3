"""
=================================================
Configuration management for the statement engine.
=================================================

Loads all configuration from environment variables (.env file) and provides
a centralized Config singleton for application-wide access.

The configuration system ensures:
- Single source of truth for connection and execution settings
- Type conversion of numeric and boolean variables
- Driver-aware defaults (port per database engine)

Environment variables:
    DB_DRIVER: mysql | mariadb | postgresql | sqlite (default: postgresql)
    DB_HOST, DB_PORT, DB_NAME, DB_USER, DB_PASSWORD: server connection
    SQLITE_FILE: database file used when DB_DRIVER=sqlite
    DB_POOL_SIZE, DB_MAX_OVERFLOW: SQLAlchemy pool sizing
    QUERY_USE_TRANSACTION: wrap executions in a transaction (default: true)
    QUERY_PRESERVE_QUERIES: keep statements queued after execution (default: false)
    QUERY_ASYNC_WORKERS: worker threads for asynchronous execution (default: 4)
    LOG_LEVEL: default log level (default: INFO)

Example:
    >>> from core.config import config
    >>>
    >>> # Database connection
    >>> print(f"Driver: {config.db_driver}, Host: {config.db_host}:{config.db_port}")
    >>>
    >>> # Execution defaults
    >>> print(config.execution.use_transaction)
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load environment variables from .env file
env_path = Path(__file__).parent.parent / '.env'
load_dotenv(dotenv_path=env_path)

DEFAULT_PORTS = {
    'mysql': 3306,
    'mariadb': 3306,
    'postgresql': 5432,
}

_TRUE_VALUES = ('1', 'true', 'yes', 'on')


def _env_bool(name: str, default: bool) -> bool:
    """Read a boolean environment variable."""
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in _TRUE_VALUES


@dataclass
class DatabaseConfig:
    """Database connection settings.

    Attributes:
        driver: Lower-case driver name (mysql, mariadb, postgresql, sqlite)
        host: Database server hostname or IP address
        port: Database server port number
        user: Database username
        password: Database password
        database: Database name to connect to
        sqlite_file: Path of the SQLite database file
        pool_size: Connection pool size
        max_overflow: Maximum overflow connections beyond pool_size
    """

    driver: str
    host: str
    port: Optional[int]
    user: str
    password: str
    database: str
    sqlite_file: Optional[str] = None
    pool_size: int = 5
    max_overflow: int = 10

    def get_connection_params(self) -> dict:
        """Get connection parameters as dictionary.

        Returns:
            Dictionary with keys: driver, host, port, user, password, database, sqlite_file
        """
        return {
            'driver': self.driver,
            'host': self.host,
            'port': self.port,
            'user': self.user,
            'password': self.password,
            'database': self.database,
            'sqlite_file': self.sqlite_file
        }


@dataclass
class ExecutionConfig:
    """Defaults applied to every new execution coordinator.

    Attributes:
        use_transaction: Disable auto-commit and commit/rollback explicitly
        preserve_queries: Keep queued statements after execution
        async_workers: Thread pool size for asynchronous execution
    """

    use_transaction: bool = True
    preserve_queries: bool = False
    async_workers: int = 4


class Config:
    """Centralized configuration manager.

    Attributes:
        db: DatabaseConfig instance with connection settings
        execution: ExecutionConfig instance with coordinator defaults
        log_level: Default log level name
        project_root: Absolute path to project root directory

    Example:
        >>> config = Config()
        >>> params = config.get_connection_params()
        >>> print(f"Connecting to {config.db_host}:{config.db_port}")
    """

    def __init__(self):
        """Initialize configuration from environment variables."""
        driver = os.getenv('DB_DRIVER', 'postgresql').strip().lower()
        port = os.getenv('DB_PORT')

        self.db = DatabaseConfig(
            driver=driver,
            host=os.getenv('DB_HOST', 'localhost'),
            port=int(port) if port else DEFAULT_PORTS.get(driver),
            user=os.getenv('DB_USER', 'postgres' if driver == 'postgresql' else 'root'),
            password=os.getenv('DB_PASSWORD', ''),
            database=os.getenv('DB_NAME', 'postgres' if driver == 'postgresql' else 'testing'),
            sqlite_file=os.getenv('SQLITE_FILE', 'database.db'),
            pool_size=int(os.getenv('DB_POOL_SIZE', '5')),
            max_overflow=int(os.getenv('DB_MAX_OVERFLOW', '10'))
        )

        self.execution = ExecutionConfig(
            use_transaction=_env_bool('QUERY_USE_TRANSACTION', True),
            preserve_queries=_env_bool('QUERY_PRESERVE_QUERIES', False),
            async_workers=int(os.getenv('QUERY_ASYNC_WORKERS', '4'))
        )

        self.log_level = os.getenv('LOG_LEVEL', 'INFO').upper()
        self.project_root = Path(__file__).parent.parent

    @property
    def db_driver(self) -> str:
        """Get configured driver name."""
        return self.db.driver

    @property
    def db_host(self) -> str:
        """Get database server hostname."""
        return self.db.host

    @property
    def db_port(self) -> Optional[int]:
        """Get database server port number."""
        return self.db.port

    @property
    def db_user(self) -> str:
        """Get database username."""
        return self.db.user

    @property
    def db_password(self) -> str:
        """Get database password."""
        return self.db.password

    @property
    def db_name(self) -> str:
        """Get database name."""
        return self.db.database

    def get_connection_params(self) -> dict:
        """Get database connection parameters.

        Returns:
            Dictionary with keys: driver, host, port, user, password, database, sqlite_file
        """
        return self.db.get_connection_params()


# Global configuration instance
config = Config()
