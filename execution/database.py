"""
=============================================
Database and table convenience wrappers.
=============================================

Database bundles an adapter with a database name and offers the common
whole-database operations as QueuedAction objects, which run either on the
calling thread (complete()) or on the shared worker pool (queue()).

On SQLite every connection has exactly one database, so the name is always
'main' and CREATE/DROP DATABASE are not available.

Example:
    >>> from execution.database import Database
    >>>
    >>> shop = Database(adapter, 'shop')
    >>> shop.create(if_not_exists=True).complete()
    True
    >>> tables = shop.load_tables().queue().result()
    >>> shop.get_table('users').row_count()
    42
"""

import logging
from concurrent.futures import Future
from typing import Any, Callable, Dict, Generic, List, Optional, Set, TypeVar

from core.exceptions import SqlBuilderError
from execution.query import Query, get_executor
from execution.result import SimpleResultSet
from sql.ddl import CreateMethode, DeleteMethode
from sql.driver import DriverType, require_value
from sql.schema import CharacterSet
from utils.database_utils import get_table_row_count, list_columns, list_tables

logger = logging.getLogger(__name__)

T = TypeVar('T')

SQLITE_DATABASE = 'main'


class QueuedAction(Generic[T]):
    """A deferred unit of work.

    complete() runs it on the calling thread; queue() submits it to the
    shared execution pool and returns the Future.
    """

    def __init__(self, action: Callable[[], T]):
        self.action = action

    def complete(self) -> T:
        return self.action()

    def queue(self) -> 'Future[T]':
        return get_executor().submit(self.action)


class Database:
    """A named database reached through a DatabaseAdapter.

    Attributes:
        adapter: Connection source
        name: Database name ('main' on SQLite)
        tables: Table names from the last load_tables()
    """

    def __init__(self, adapter: Any, name: Optional[str] = None, create_if_missing: bool = False,
                 character_set: Optional[CharacterSet] = None):
        self.adapter = adapter
        if adapter.driver_type is DriverType.SQLITE:
            self.name = SQLITE_DATABASE
        else:
            self.name = require_value(name, "database name")
        self.tables: Set[str] = set()

        if create_if_missing and adapter.driver_type is not DriverType.SQLITE:
            self.create(True, character_set).complete()

    @property
    def is_sqlite(self) -> bool:
        return self.adapter.driver_type is DriverType.SQLITE

    @property
    def schema(self) -> Optional[str]:
        """Schema argument for catalog lookups; only MySQL/MariaDB name the database there."""
        return self.name if self.adapter.driver_type.is_mysql_family else None

    def create(self, if_not_exists: bool = True, character_set: Optional[CharacterSet] = None) -> QueuedAction[bool]:
        """CREATE DATABASE; the action returns whether it succeeded.

        PostgreSQL has no CREATE DATABASE IF NOT EXISTS, so the catalog is
        checked first and an existing database counts as success.
        """
        def action() -> bool:
            methode = CreateMethode.IF_NOT_EXISTS if if_not_exists else CreateMethode.DEFAULT
            if if_not_exists and self.adapter.driver_type is DriverType.POSTGRESQL:
                if self.exists():
                    logger.info(f"Database {self.name} already exists")
                    return True
                methode = CreateMethode.DEFAULT

            provider = Query.database_create().database(self.name).create_methode(methode)
            if character_set is not None:
                provider.character_set(character_set)
            return self._run(provider, autocommit=True)

        return QueuedAction(action)

    def drop(self, if_exists: bool = False) -> QueuedAction[bool]:
        """DROP DATABASE; the action returns whether it succeeded."""
        def action() -> bool:
            provider = (
                Query.database_drop()
                .database(self.name)
                .delete_methode(DeleteMethode.IF_EXISTS if if_exists else DeleteMethode.DEFAULT)
            )
            return self._run(provider, autocommit=True)

        return QueuedAction(action)

    def exists(self) -> bool:
        """Whether the server has a database of this name; always True on SQLite."""
        if self.is_sqlite:
            return True

        found: List[Any] = []
        if self.adapter.driver_type is DriverType.POSTGRESQL:
            sql = "SELECT 1 FROM pg_database WHERE datname = ?;"
        else:
            sql = "SELECT 1 FROM information_schema.schemata WHERE schema_name = ?;"
        provider = Query.custom(sql, self.name).result_action_after_query(
            lambda rs: rs.next(lambda row: found.append(row.get(0)))
        )
        Query(self.adapter).execute_query(provider)
        return bool(found)

    def load_tables(self) -> QueuedAction[Set[str]]:
        """Reload the table names of this database into self.tables."""
        def action() -> Set[str]:
            found: Set[str] = set()

            def collect(result_set: SimpleResultSet) -> None:
                result_set.for_each(lambda rs: found.add(rs.get(0)))

            provider = Query.custom(self._table_listing_sql()).result_action_after_query(collect)
            Query(self.adapter).execute_query(provider)
            self.tables = found
            logger.debug(f"Loaded {len(found)} tables from {self.name}")
            return found

        return QueuedAction(action)

    def _table_listing_sql(self) -> str:
        driver = self.adapter.driver_type
        if driver is DriverType.SQLITE:
            return "SELECT name FROM sqlite_master WHERE type = 'table' AND name NOT LIKE 'sqlite_%';"
        if driver is DriverType.POSTGRESQL:
            return (
                "SELECT table_name FROM information_schema.tables "
                "WHERE table_schema = current_schema() AND table_type = 'BASE TABLE';"
            )
        return f"SHOW TABLES FROM {self.name};"

    def get_table(self, name: str) -> 'Table':
        return Table(self, name)

    def _run(self, provider, autocommit: bool = False) -> bool:
        # CREATE/DROP DATABASE cannot run inside a transaction block on PostgreSQL
        try:
            return Query(self.adapter, use_transaction=not autocommit).execute_query(provider).succeeded
        except SqlBuilderError as e:
            logger.error(f"❌ {type(provider).__name__} on {self.name} failed: {e}")
            return False

    def __repr__(self) -> str:
        return f"Database({self.name!r}, driver={self.adapter.driver_type.name})"


class Table:
    """A table of a Database, with catalog lookups through the SQLAlchemy inspector."""

    def __init__(self, parent: Database, name: str):
        self.parent = parent
        self.name = require_value(name, "table name")

    def exists(self) -> bool:
        engine = self.parent.adapter.data_source()
        return self.name in list_tables(engine, schema=self.parent.schema)

    def columns(self) -> List[Dict[str, Any]]:
        """Column descriptions (name, type, nullable, default) in table order."""
        engine = self.parent.adapter.data_source()
        return list_columns(engine, self.name, schema=self.parent.schema)

    def row_count(self) -> int:
        engine = self.parent.adapter.data_source()
        return get_table_row_count(engine, self.name, schema=self.parent.schema)

    def drop(self, if_exists: bool = True) -> QueuedAction[bool]:
        """DROP TABLE; the action returns whether it succeeded."""
        def action() -> bool:
            provider = (
                Query.table_drop()
                .table(self.name)
                .delete_methode(DeleteMethode.IF_EXISTS if if_exists else DeleteMethode.DEFAULT)
            )
            succeeded = self.parent._run(provider)
            if succeeded:
                self.parent.tables.discard(self.name)
            return succeeded

        return QueuedAction(action)

    def __repr__(self) -> str:
        return f"Table({self.parent.name!r}.{self.name!r})"
