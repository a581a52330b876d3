"""
==========================================================
Execution coordinator: render, batch, execute, commit.
==========================================================

A Query collects statement providers and executes them on one connection
checked out from a DatabaseAdapter.

Dispatch rules:
    - A single statement is checked for compatibility, rendered and executed;
      any failure rolls back and surfaces as RequestNotExecutableError
    - Several statements are split into row-producing statements and write
      statements. Write statements with identical rendered SQL share one
      executemany() call; buckets run in first-seen order and the SELECTs
      run afterwards, so they observe the writes of the same execution
    - Incompatible or empty statements in a batch are skipped and reported
      through their own callback; they do not fail their siblings
    - With use_transaction (default) the whole dispatch is one transaction,
      committed only if every executed statement succeeded

Asynchronous execution hands the dispatch to a shared thread pool;
Query.future and Query.wait() expose its completion.

Example:
    >>> from execution.adapter import DatabaseAdapter
    >>> from execution.query import Query
    >>>
    >>> adapter = DatabaseAdapter.from_config().connect()
    >>> query = Query(adapter)
    >>> for user_id, name in [(1, 'Ann'), (2, 'Bob')]:
    ...     query.queue(Query.insert().table('users').entry('id', user_id).entry('name', name))
    >>> query.execute().succeeded
    True
"""

import logging
import threading
from collections import OrderedDict
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError

from core.config import config
from core.exceptions import (
    DatabaseNotConnectedError,
    FeatureNotSupportedError,
    MissingValueError,
    RequestNotExecutableError,
    UnsupportedOperationError,
)
from core.performance import ExecutionMonitor
from execution.result import SimpleResultSet
from sql.base import CompiledStatement, QueryProvider, ResultQueryProvider, UpdatingQueryProvider
from sql.ddl import (
    CreateIndexQueryProvider,
    DatabaseCreateQueryProvider,
    DatabaseDropQueryProvider,
    DropIndexQueryProvider,
    TableAlterAddAttributeQueryProvider,
    TableAlterAddColumnQueryProvider,
    TableAlterColumnDefaultValueQueryProvider,
    TableAlterDropColumnQueryProvider,
    TableAlterForeignKeyQueryProvider,
    TableAlterModifyTypeQueryProvider,
    TableAlterRenameQueryProvider,
    TableCreateQueryProvider,
    TableDropQueryProvider,
    TruncateQueryProvider,
)
from sql.dml import CustomQueryProvider, DeleteQueryProvider, InsertQueryProvider, UpdateQueryProvider
from sql.driver import DriverType, bind_parameters, convert_placeholders
from sql.query_builder import SelectQueryProvider

logger = logging.getLogger(__name__)

_executor: Optional[ThreadPoolExecutor] = None
_executor_lock = threading.Lock()


def get_executor() -> ThreadPoolExecutor:
    """Shared worker pool for asynchronous executions, created on first use."""
    global _executor
    with _executor_lock:
        if _executor is None:
            _executor = ThreadPoolExecutor(
                max_workers=config.execution.async_workers,
                thread_name_prefix='query'
            )
        return _executor


def shutdown_executor(wait: bool = True) -> None:
    """Stop the shared worker pool; a later async execute() starts a new one."""
    global _executor
    with _executor_lock:
        if _executor is not None:
            _executor.shutdown(wait=wait)
            _executor = None


_UNSET = object()

Bucket = List[Tuple[QueryProvider, CompiledStatement]]


class Query:
    """Execution coordinator for statement providers.

    Attributes:
        database_adapter: Connection source (anything offering connected(),
            get_connection(), driver_type and paramstyle)
        queries: Statements waiting for the next execute()
        executed: True once the last dispatch finished (successfully or not)
        succeeded: True if every statement of the last dispatch succeeded
        future: Future of the last asynchronous dispatch
        metrics: Execution metrics of the last dispatch
        log: Logger receiving rendered SQL, batch sizes and failures
    """

    def __init__(
        self,
        database_adapter: Any,
        use_transaction: Optional[bool] = None,
        preserve_queries_after_execution: Optional[bool] = None,
        asynchronous: bool = False,
        log: Optional[logging.Logger] = None
    ):
        self.database_adapter = database_adapter
        self.queries: List[QueryProvider] = []
        self._use_transaction = (
            config.execution.use_transaction if use_transaction is None else use_transaction
        )
        self._preserve_queries = (
            config.execution.preserve_queries
            if preserve_queries_after_execution is None else preserve_queries_after_execution
        )
        self._async = asynchronous
        self.executed = False
        self.succeeded = False
        self.future: Optional[Future] = None
        self.metrics: Dict[str, float] = {}
        self.log = log or logger

    # ------------------------------------------------------------------
    # Flags: called without an argument they return the current value
    # ------------------------------------------------------------------

    def use_transaction(self, use: Any = _UNSET):
        if use is _UNSET:
            return self._use_transaction
        self._use_transaction = bool(use)
        return self

    def preserve_queries_after_execution(self, preserve: Any = _UNSET):
        if preserve is _UNSET:
            return self._preserve_queries
        self._preserve_queries = bool(preserve)
        return self

    def asynchronous(self, enabled: Any = _UNSET):
        if enabled is _UNSET:
            return self._async
        self._async = bool(enabled)
        return self

    def logger(self, log: logging.Logger) -> 'Query':
        self.log = log
        return self

    @property
    def driver_type(self) -> Optional[DriverType]:
        """Driver used to render statements queued on this coordinator."""
        if self.database_adapter is None:
            return None
        return self.database_adapter.driver_type

    # ------------------------------------------------------------------
    # Queue
    # ------------------------------------------------------------------

    def queue(self, *providers: QueryProvider) -> 'Query':
        """Append statements to the queue."""
        self.queries.extend(providers)
        return self

    def query(self, provider: QueryProvider) -> 'Query':
        self.queries.append(provider)
        return self

    def clear(self) -> 'Query':
        self.queries.clear()
        return self

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def execute(self) -> 'Query':
        """Execute the queued statements.

        Synchronous mode returns once the dispatch is complete. Asynchronous
        mode submits the dispatch to the shared pool and returns at once;
        use wait() or future to observe completion.

        Returns:
            self

        Raises:
            MissingValueError: If the coordinator has no database adapter
            DatabaseNotConnectedError: If the adapter is not connected
            RequestNotExecutableError: If the dispatch failed (synchronous mode)
        """
        if self.database_adapter is None:
            raise MissingValueError("database adapter", "Object 'database adapter' is null")

        self.executed = False
        self.succeeded = False
        providers = list(self.queries)
        if not self._preserve_queries:
            self.queries.clear()

        if self._async:
            self.future = get_executor().submit(self._run, providers)
        else:
            self.future = None
            self._run(providers)
        return self

    def execute_query(self, *providers: QueryProvider) -> 'Query':
        """Queue the given statements and execute.

        Raises:
            MissingValueError: If no statement is given
        """
        if not providers:
            raise MissingValueError("query", "Collection 'query' is empty")
        self.queries.extend(providers)
        return self.execute()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the last asynchronous dispatch is done and return succeeded.

        Raises:
            RequestNotExecutableError: If the dispatch failed
            concurrent.futures.TimeoutError: If it did not finish in time
        """
        if self.future is not None:
            self.future.result(timeout)
        return self.succeeded

    def _run(self, providers: List[QueryProvider]) -> None:
        try:
            if not providers:
                return

            if not self.database_adapter.connected():
                raise DatabaseNotConnectedError()

            monitor = ExecutionMonitor(f"Execution of {len(providers)} statement(s)", log=self.log)
            try:
                with monitor:
                    self._dispatch(providers)
            finally:
                self.metrics = dict(monitor.metrics)
        finally:
            self.executed = True

    def _dispatch(self, providers: List[QueryProvider]) -> None:
        try:
            with self.database_adapter.get_connection() as connection:
                if not self._use_transaction:
                    connection = connection.execution_options(isolation_level="AUTOCOMMIT")
                try:
                    if len(providers) == 1:
                        self._execute_single(connection, providers[0])
                    else:
                        self._execute_batch(connection, providers)

                    if self._use_transaction:
                        if self.succeeded:
                            connection.commit()
                        else:
                            connection.rollback()
                except Exception:
                    self.succeeded = False
                    if self._use_transaction:
                        connection.rollback()
                    raise
        except Exception as e:
            self.succeeded = False
            self.log.error(f"❌ Request could not be executed: {e}")
            raise RequestNotExecutableError(e) from e

    def _execute_single(self, connection: Any, provider: QueryProvider) -> None:
        driver = self.driver_type
        try:
            if not provider.compatibility(driver):
                raise UnsupportedOperationError()

            statement = provider.render(self)
            if not statement.sql:
                self.log.error(f"{provider!r} generated no SQL. Canceling request")
                provider.notify(False)
                return

            self._execute_statement(connection, provider, statement)
            self._execute_deferred(connection, provider)
        except Exception:
            provider.notify(False)
            raise

        self.succeeded = True
        provider.notify(True)

    def _execute_batch(self, connection: Any, providers: List[QueryProvider]) -> None:
        driver = self.driver_type
        buckets: 'OrderedDict[str, Bucket]' = OrderedDict()
        selects: Bucket = []

        for provider in providers:
            try:
                if not provider.compatibility(driver):
                    raise UnsupportedOperationError()
                statement = provider.render(self)
            except (UnsupportedOperationError, FeatureNotSupportedError) as e:
                self.log.error(f"Skipping {provider!r}: {e}")
                provider.notify(False)
                continue

            if not statement.sql:
                self.log.warning(f"{provider!r} generated no SQL. Ignoring request")
                provider.notify(False)
                continue

            if provider.returns_rows:
                selects.append((provider, statement))
            else:
                buckets.setdefault(statement.sql, []).append((provider, statement))

        all_ok = True

        for sql, bucket in buckets.items():
            if not self._execute_bucket(connection, sql, bucket):
                all_ok = False

        for provider, statement in selects:
            try:
                self._execute_statement(connection, provider, statement)
            except SQLAlchemyError as e:
                self.log.error(f"Failed to execute query: {statement.sql} ({e})")
                all_ok = False
                provider.notify(False)
                continue
            provider.notify(True)

        self.succeeded = all_ok

    def _execute_bucket(self, connection: Any, sql: str, bucket: Bucket) -> bool:
        self.log.debug(f"Executing batch for SQL: {sql} with size {len(bucket)}")
        paramstyle = self._paramstyle()

        try:
            if len(bucket) == 1:
                provider, statement = bucket[0]
                self._execute_statement(connection, provider, statement)
            elif bucket[0][1].parameters:
                rows = [bind_parameters(statement.parameters, paramstyle) for _, statement in bucket]
                result = connection.exec_driver_sql(convert_placeholders(sql, paramstyle), rows)
                self.log.debug(f"Batch affected {result.rowcount} rows")
                for provider, _ in bucket:
                    if isinstance(provider, UpdatingQueryProvider):
                        # per-statement counts are not reported by executemany
                        provider.affected_rows = -1
            else:
                for provider, statement in bucket:
                    self._execute_statement(connection, provider, statement)
        except SQLAlchemyError as e:
            self.log.error(f"Failed to execute batch: {sql} ({e})")
            for provider, _ in bucket:
                provider.notify(False)
            return False

        all_ok = True
        for provider, _ in bucket:
            try:
                self._execute_deferred(connection, provider)
            except (SQLAlchemyError, FeatureNotSupportedError) as e:
                self.log.error(f"Follow-up statement of {provider!r} failed: {e}")
                all_ok = False
                provider.notify(False)
                continue
            provider.notify(True)
        return all_ok

    def _execute_statement(self, connection: Any, provider: QueryProvider, statement: CompiledStatement) -> None:
        self.log.debug(f"Executing query: {statement.sql} {list(statement.parameters)}")

        if statement.parameters:
            paramstyle = self._paramstyle()
            result = connection.exec_driver_sql(
                convert_placeholders(statement.sql, paramstyle),
                bind_parameters(statement.parameters, paramstyle)
            )
        else:
            result = connection.exec_driver_sql(statement.sql, execution_options={'no_parameters': True})

        if isinstance(provider, UpdatingQueryProvider):
            provider.affected_rows = result.rowcount

        if provider.returns_rows:
            result_set = SimpleResultSet(result)
            try:
                if isinstance(provider, ResultQueryProvider) and provider.result_action is not None:
                    provider.result_action(result_set)
            finally:
                result_set.close()

    def _execute_deferred(self, connection: Any, provider: QueryProvider) -> None:
        for follow_up in provider.deferred_statements():
            statement = follow_up.render(self)
            self._execute_statement(connection, follow_up, statement)

    def _paramstyle(self) -> str:
        return getattr(self.database_adapter, 'paramstyle', None) or 'qmark'

    # ------------------------------------------------------------------
    # Provider factories
    # ------------------------------------------------------------------

    @staticmethod
    def database_create() -> DatabaseCreateQueryProvider:
        return DatabaseCreateQueryProvider()

    @staticmethod
    def database_drop() -> DatabaseDropQueryProvider:
        return DatabaseDropQueryProvider()

    @staticmethod
    def table_create() -> TableCreateQueryProvider:
        return TableCreateQueryProvider()

    @staticmethod
    def table_drop() -> TableDropQueryProvider:
        return TableDropQueryProvider()

    @staticmethod
    def truncate() -> TruncateQueryProvider:
        return TruncateQueryProvider()

    @staticmethod
    def table_alter_add_column() -> TableAlterAddColumnQueryProvider:
        return TableAlterAddColumnQueryProvider()

    @staticmethod
    def table_alter_add_attribute() -> TableAlterAddAttributeQueryProvider:
        return TableAlterAddAttributeQueryProvider()

    @staticmethod
    def table_alter_drop_column() -> TableAlterDropColumnQueryProvider:
        return TableAlterDropColumnQueryProvider()

    @staticmethod
    def table_alter_modify_type() -> TableAlterModifyTypeQueryProvider:
        return TableAlterModifyTypeQueryProvider()

    @staticmethod
    def table_alter_column_default_value() -> TableAlterColumnDefaultValueQueryProvider:
        return TableAlterColumnDefaultValueQueryProvider()

    @staticmethod
    def table_alter_rename() -> TableAlterRenameQueryProvider:
        return TableAlterRenameQueryProvider()

    @staticmethod
    def table_alter_foreign_key() -> TableAlterForeignKeyQueryProvider:
        return TableAlterForeignKeyQueryProvider()

    @staticmethod
    def create_index() -> CreateIndexQueryProvider:
        return CreateIndexQueryProvider()

    @staticmethod
    def drop_index() -> DropIndexQueryProvider:
        return DropIndexQueryProvider()

    @staticmethod
    def insert() -> InsertQueryProvider:
        return InsertQueryProvider()

    @staticmethod
    def update() -> UpdateQueryProvider:
        return UpdateQueryProvider()

    @staticmethod
    def delete() -> DeleteQueryProvider:
        return DeleteQueryProvider()

    @staticmethod
    def select() -> SelectQueryProvider:
        return SelectQueryProvider()

    @staticmethod
    def custom(sql: Optional[str] = None, *parameters: Any) -> CustomQueryProvider:
        return CustomQueryProvider(sql, *parameters)

    def __repr__(self) -> str:
        return (
            f"Query(queued={len(self.queries)}, use_transaction={self._use_transaction}, "
            f"async={self._async}, executed={self.executed}, succeeded={self.succeeded})"
        )
