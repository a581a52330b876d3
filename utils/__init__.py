"""
==========================
Utility Functions Package.
==========================

Reusable helpers for engine construction, database health checks and
catalog metadata shared by the execution package and the CLI.

Modules:
    database_utils: SQLAlchemy connectivity, health checks and inspection
"""

__version__ = "1.0.0"
__all__ = [
    'DatabaseConnectionError',
    'build_connection_url',
    'create_sqlalchemy_engine',
    'check_database_available',
    'wait_for_database',
    'detect_driver_type',
    'quote_identifier',
    'list_schemas',
    'list_tables',
    'list_columns',
    'get_table_row_count',
    'get_database_connection_info',
    'verify_connection'
]

from .database_utils import (
    DatabaseConnectionError,
    build_connection_url,
    check_database_available,
    create_sqlalchemy_engine,
    detect_driver_type,
    get_database_connection_info,
    get_table_row_count,
    list_columns,
    list_schemas,
    list_tables,
    quote_identifier,
    verify_connection,
    wait_for_database,
)
