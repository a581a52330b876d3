"""
=================================================
Statement execution against a live database.
=================================================

This package connects the statement providers of the sql package to a
database through SQLAlchemy.

Modules:
    adapter: DatabaseAdapter owning the engine and connection pool
    query: Query, the execution coordinator (batching, transactions, async)
    result: SimpleResultSet handed to SELECT callbacks
    database: Database/Table wrappers and QueuedAction

Example:
    >>> from execution import DatabaseAdapter, Query
    >>> from sql.driver import DriverType
    >>>
    >>> adapter = DatabaseAdapter.Builder().driver_type(DriverType.SQLITE).build().connect()
    >>> Query(adapter).execute_query(Query.custom("CREATE TABLE t (id INTEGER);")).succeeded
    True
"""

__version__ = "1.0.0"
__all__ = [
    'DatabaseAdapter',
    'Query',
    'SimpleResultSet',
    'Database',
    'Table',
    'QueuedAction',
    'get_executor',
    'shutdown_executor'
]

from .adapter import DatabaseAdapter
from .database import Database, QueuedAction, Table
from .query import Query, get_executor, shutdown_executor
from .result import SimpleResultSet
