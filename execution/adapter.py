"""
=================================================
Connection source consumed by the execution layer.
=================================================

DatabaseAdapter owns the SQLAlchemy engine (and therefore the connection
pool) for one database. The execution coordinator only needs three things
from it: whether it is connected, a way to check out a connection, and the
driver type used to render statements.

Example:
    >>> from execution.adapter import DatabaseAdapter
    >>> from sql.driver import DriverType
    >>>
    >>> adapter = (
    ...     DatabaseAdapter.Builder()
    ...     .driver_type(DriverType.POSTGRESQL)
    ...     .host('localhost')
    ...     .database('shop')
    ...     .user('postgres')
    ...     .password('secret')
    ...     .build()
    ...     .connect()
    ... )
    >>> adapter.connected()
    True
"""

import importlib
import logging
from typing import Optional

from sqlalchemy import text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

from core.config import Config, config
from core.exceptions import DatabaseNotConnectedError, DriverNotLoadedError
from sql.driver import DriverType, require_value
from utils.database_utils import create_sqlalchemy_engine, describe_target

logger = logging.getLogger(__name__)


class DatabaseAdapter:
    """SQLAlchemy engine holder for one database.

    Attributes:
        driver_type: Engine the adapter connects to
        host: Server hostname (unused for SQLite)
        port: Server port, the driver default when not given
        database: Database name (unused for SQLite)
        user: Database user
        password: Database password
        sqlite_file: SQLite database file, ':memory:' for an in-memory database
        pool_size: Connection pool size
        max_overflow: Maximum overflow connections
        echo: Log every SQL statement through SQLAlchemy
    """

    class Builder:
        """Fluent builder; build() validates the settings the driver needs."""

        def __init__(self):
            self._driver_type: Optional[DriverType] = None
            self._host: Optional[str] = None
            self._port: Optional[int] = None
            self._database: Optional[str] = None
            self._user: Optional[str] = None
            self._password: Optional[str] = None
            self._sqlite_file: Optional[str] = None
            self._pool_size: Optional[int] = None
            self._max_overflow: Optional[int] = None
            self._echo = False

        def driver_type(self, driver_type: DriverType) -> 'DatabaseAdapter.Builder':
            self._driver_type = driver_type
            return self

        def host(self, host: str) -> 'DatabaseAdapter.Builder':
            self._host = host
            return self

        def port(self, port: int) -> 'DatabaseAdapter.Builder':
            self._port = port
            return self

        def database(self, database: str) -> 'DatabaseAdapter.Builder':
            self._database = database
            return self

        def user(self, user: str) -> 'DatabaseAdapter.Builder':
            self._user = user
            return self

        def password(self, password: str) -> 'DatabaseAdapter.Builder':
            self._password = password
            return self

        def sqlite_file(self, sqlite_file: str) -> 'DatabaseAdapter.Builder':
            self._sqlite_file = sqlite_file
            return self

        def pool_size(self, pool_size: int) -> 'DatabaseAdapter.Builder':
            self._pool_size = pool_size
            return self

        def max_overflow(self, max_overflow: int) -> 'DatabaseAdapter.Builder':
            self._max_overflow = max_overflow
            return self

        def echo(self, echo: bool = True) -> 'DatabaseAdapter.Builder':
            self._echo = echo
            return self

        def build(self) -> 'DatabaseAdapter':
            """Create the adapter.

            Raises:
                MissingValueError: If the driver type is missing, or a server
                    driver lacks host, database or user
            """
            driver = require_value(self._driver_type, "driver type")
            if driver is not DriverType.SQLITE:
                require_value(self._host, "host")
                require_value(self._database, "database")
                require_value(self._user, "user")

            return DatabaseAdapter(
                driver_type=driver,
                host=self._host,
                port=self._port or driver.default_port,
                database=self._database,
                user=self._user,
                password=self._password or '',
                sqlite_file=self._sqlite_file if self._sqlite_file is not None else ':memory:',
                pool_size=self._pool_size or config.db.pool_size,
                max_overflow=self._max_overflow if self._max_overflow is not None else config.db.max_overflow,
                echo=self._echo
            )

    def __init__(
        self,
        driver_type: DriverType,
        host: Optional[str] = None,
        port: Optional[int] = None,
        database: Optional[str] = None,
        user: Optional[str] = None,
        password: str = '',
        sqlite_file: str = ':memory:',
        pool_size: int = 5,
        max_overflow: int = 10,
        echo: bool = False
    ):
        self.driver_type = driver_type
        self.host = host
        self.port = port
        self.database = database
        self.user = user
        self.password = password
        self.sqlite_file = sqlite_file
        self.pool_size = pool_size
        self.max_overflow = max_overflow
        self.echo = echo
        self._engine: Optional[Engine] = None

    @classmethod
    def from_config(cls, cfg: Optional[Config] = None) -> 'DatabaseAdapter':
        """Build an adapter from the DB_* environment settings."""
        db = (cfg or config).db
        return cls(
            driver_type=DriverType.from_name(db.driver),
            host=db.host,
            port=db.port,
            database=db.database,
            user=db.user,
            password=db.password,
            sqlite_file=db.sqlite_file,
            pool_size=db.pool_size,
            max_overflow=db.max_overflow
        )

    @property
    def target(self) -> str:
        return describe_target(self.driver_type, self.host, self.port, self.database, self.sqlite_file)

    def connect(self) -> 'DatabaseAdapter':
        """Load the DBAPI module, create the engine and verify one connection.

        Returns:
            self, for chaining

        Raises:
            DriverNotLoadedError: If the driver's DBAPI module is not installed
            DatabaseNotConnectedError: If the database cannot be reached
        """
        self.disconnect()

        try:
            importlib.import_module(self.driver_type.dbapi_module)
        except ImportError as e:
            logger.error(f"❌ DBAPI module '{self.driver_type.dbapi_module}' for {self.driver_type} is not installed")
            raise DriverNotLoadedError(
                f"Failed to load driver module '{self.driver_type.dbapi_module}': {e}"
            ) from e

        engine = create_sqlalchemy_engine(
            self.driver_type,
            host=self.host,
            port=self.port,
            user=self.user,
            password=self.password,
            database=self.database,
            sqlite_file=self.sqlite_file,
            echo=self.echo,
            pool_size=self.pool_size,
            max_overflow=self.max_overflow
        )

        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            engine.dispose()
            logger.error(f"❌ Failed to connect to {self.driver_type} at {self.target}: {e}")
            raise DatabaseNotConnectedError(f"Failed to connect to {self.driver_type} at {self.target}: {e}") from e

        self._engine = engine
        logger.info(f"✅ Connected to {self.driver_type} at {self.target}")
        return self

    def connected(self) -> bool:
        return self._engine is not None

    def data_source(self) -> Engine:
        """The SQLAlchemy engine.

        Raises:
            DatabaseNotConnectedError: If connect() has not been called
        """
        if self._engine is None:
            raise DatabaseNotConnectedError()
        return self._engine

    def get_connection(self) -> Connection:
        """Check out a connection from the pool; use it as a context manager."""
        return self.data_source().connect()

    @property
    def paramstyle(self) -> Optional[str]:
        """DBAPI paramstyle of the live dialect, None while disconnected."""
        if self._engine is None:
            return None
        return self._engine.dialect.paramstyle

    def disconnect(self) -> None:
        """Dispose the engine and its pooled connections."""
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
            logger.info(f"Disconnected from {self.driver_type} at {self.target}")

    def __enter__(self) -> 'DatabaseAdapter':
        if not self.connected():
            self.connect()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.disconnect()
        return False

    def __repr__(self) -> str:
        return f"DatabaseAdapter({self.driver_type.name}, {self.target!r}, connected={self.connected()})"
