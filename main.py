"""
=========================================================
Command-line entry point for the SQL statement engine.
=========================================================

A thin CLI over the execution package for quick checks against the
database configured in .env (DB_DRIVER, DB_HOST, ...).

Usage:
    # Check that the configured database answers
    python main.py --check

    # List the tables of the configured database
    python main.py --tables

    # Run a statement; rows of a SELECT are printed as a table
    python main.py --execute "SELECT * FROM users;"

    # Any of the above with debug output
    python main.py --tables --log-level DEBUG

Exit Codes:
    0: Success
    1: Error
    130: User interrupt (Ctrl+C)
"""

import argparse
import sys
from typing import List, Optional

from core.config import config
from core.exceptions import SqlBuilderError
from core.logger import get_logger, setup_logging
from execution.adapter import DatabaseAdapter
from execution.database import Database
from execution.query import Query
from execution.result import SimpleResultSet
from utils.database_utils import get_database_connection_info, verify_connection

logger = get_logger(__name__)


def run_check() -> int:
    """Verify the configured connection."""
    info = get_database_connection_info()
    logger.info(f"Checking {info['driver']} at {info['target']}...")
    success, message = verify_connection()
    if success:
        logger.info(f"✅ {message}")
        return 0
    logger.error(f"❌ {message}")
    return 1


def run_tables(adapter: DatabaseAdapter) -> int:
    """Print the table names of the configured database."""
    database = Database(adapter, config.db_name)
    tables = sorted(database.load_tables().complete())
    if not tables:
        print(f"No tables in {database.name}")
        return 0
    for table in tables:
        print(table)
    return 0


def run_execute(adapter: DatabaseAdapter, sql: str) -> int:
    """Execute one statement and print its rows, if any."""
    printed = []

    def print_rows(result_set: SimpleResultSet) -> None:
        frame = result_set.to_dataframe()
        print("(no rows)" if frame.empty else frame.to_string(index=False))
        printed.append(len(frame))

    provider = Query.custom(sql)
    if sql.lstrip().upper().startswith(('SELECT', 'WITH', 'SHOW', 'PRAGMA', 'EXPLAIN')):
        provider.result_action_after_query(print_rows)

    query = Query(adapter).execute_query(provider)
    if not query.succeeded:
        logger.error("❌ Statement did not succeed")
        return 1
    if not printed:
        logger.info(f"✅ Statement executed ({query.metrics.get('execution_time', 0.0):.4f}s)")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """
    Command-line interface.

    Args:
        argv: Arguments without the program name (defaults to sys.argv[1:])

    Returns:
        Process exit code
    """
    parser = argparse.ArgumentParser(
        description="SQL statement engine - database checks and ad-hoc statements",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py --check
  python main.py --tables
  python main.py --execute "SELECT COUNT(*) FROM users;"

Connection settings come from the DB_* variables in .env.
        """
    )
    parser.add_argument(
        '--check',
        action='store_true',
        help='Check that the configured database is reachable'
    )
    parser.add_argument(
        '--tables',
        action='store_true',
        help='List the tables of the configured database'
    )
    parser.add_argument(
        '--execute',
        metavar='SQL',
        type=str,
        help='Execute a single SQL statement and print its rows'
    )
    parser.add_argument(
        '--log-level',
        type=str.upper,
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
        default=config.log_level,
        help='Console log level (default: LOG_LEVEL or INFO)'
    )

    args = parser.parse_args(argv)
    setup_logging(log_level=args.log_level)

    if not (args.check or args.tables or args.execute):
        parser.print_help()
        logger.warning("⚠️  No operation specified. Use --check, --tables or --execute.")
        return 1

    try:
        if args.check:
            return run_check()

        adapter = DatabaseAdapter.from_config().connect()
        try:
            if args.tables:
                return run_tables(adapter)
            return run_execute(adapter, args.execute)
        finally:
            adapter.disconnect()

    except SqlBuilderError as e:
        logger.error(f"❌ {e}")
        return 1
    except KeyboardInterrupt:
        logger.warning("⚠️  Operation interrupted by user")
        return 130
    except Exception as e:
        logger.error(f"❌ Unexpected error: {e}", exc_info=True)
        return 1


if __name__ == '__main__':
    sys.exit(main())
