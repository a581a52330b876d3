"""
=================================================
Comprehensive pytest suite for execution/query.py
=================================================

Sections:
---------
1. Unit tests - Single statement dispatch
2. Unit tests - Batch dispatch and grouping
3. Unit tests - Flags, queue handling, factories
4. Edge case tests - Missing adapter, disconnected adapter, empty SQL
5. Integration tests - In-memory SQLite round trips

Available markers:
------------------
unit, edge_case, integration

How to Execute:
---------------
All tests:          pytest tests/tests_execution/test_query.py -v
By category:        pytest tests/tests_execution/test_query.py -m unit
With coverage:      pytest tests/tests_execution/test_query.py --cov=execution.query
"""

import logging

import pytest

from core.exceptions import (
    DatabaseNotConnectedError,
    MissingValueError,
    RequestNotExecutableError,
    UnsupportedOperationError,
)
from execution.query import Query
from sql.base import QueryResult
from sql.conditions import Operator
from sql.ddl import DatabaseCreateQueryProvider, TableCreateQueryProvider
from sql.dml import CustomQueryProvider, InsertQueryProvider, UpdateQueryProvider
from sql.driver import DriverType
from sql.query_builder import SelectQueryProvider
from sql.schema import ColumnType, DataType

INSERT_SQL = "INSERT INTO users (id, name) VALUES (?, ?);"
UPDATE_SQL = "UPDATE users SET name = ? WHERE id = ?;"
SELECT_SQL = "SELECT * FROM users;"


def _insert(user_id, name):
    return Query.insert().table('users').entry('id', user_id).entry('name', name)


def _update(user_id, name):
    return Query.update().table('users').entry('name', name).condition('id', user_id)


class Recorder:
    """Collects QueryResult callbacks."""

    def __init__(self):
        self.results = []

    def __call__(self, result):
        self.results.append(result)

    @property
    def outcomes(self):
        return [result.success for result in self.results]


# ==========================
# 1. SINGLE STATEMENT TESTS
# ==========================

@pytest.mark.unit
def test_single_statement_commits(fake_adapter):
    """
    Test the single-statement path.

    Test Strategy:
        - Render once, execute with bound parameters
        - Commit exactly once, never roll back
        - Report success through the callback and the flags
    """
    adapter = fake_adapter()
    recorder = Recorder()
    provider = _insert(1, 'Bob').action_after_query(recorder)

    query = Query(adapter).execute_query(provider)

    assert adapter.connection.calls == [(INSERT_SQL, (1, 'Bob'), None)]
    assert adapter.connection.commits == 1
    assert adapter.connection.rollbacks == 0
    assert query.executed and query.succeeded
    assert recorder.results == [QueryResult(provider, True)]
    assert provider.affected_rows == 1


@pytest.mark.unit
def test_single_statement_failure_rolls_back_once(fake_adapter):
    """A failing statement rolls back exactly once and never commits."""
    adapter = fake_adapter()
    adapter.connection.fail_on.add(INSERT_SQL)
    recorder = Recorder()
    query = Query(adapter)

    with pytest.raises(RequestNotExecutableError) as exc_info:
        query.execute_query(_insert(1, 'Bob').action_after_query(recorder))

    assert exc_info.value.cause is exc_info.value.__cause__
    assert adapter.connection.commits == 0
    assert adapter.connection.rollbacks == 1
    assert query.executed is True
    assert query.succeeded is False
    assert recorder.outcomes == [False]


@pytest.mark.unit
def test_single_incompatible_statement(fake_adapter):
    adapter = fake_adapter(DriverType.SQLITE)
    recorder = Recorder()
    query = Query(adapter)

    with pytest.raises(RequestNotExecutableError) as exc_info:
        query.execute_query(Query.truncate().table('logs').action_after_query(recorder))

    assert isinstance(exc_info.value.cause, UnsupportedOperationError)
    assert adapter.connection.calls == []
    assert recorder.outcomes == [False]


@pytest.mark.unit
def test_statement_without_parameters_disables_parameter_parsing(fake_adapter):
    """DDL text is sent with no_parameters so '%' is never interpreted."""
    adapter = fake_adapter(DriverType.MYSQL, paramstyle='format')
    provider = Query.custom("SELECT '100%';")

    Query(adapter).execute_query(provider)

    assert adapter.connection.calls == [("SELECT '100%';", None, {'no_parameters': True})]


@pytest.mark.unit
def test_placeholders_follow_adapter_paramstyle(fake_adapter):
    adapter = fake_adapter(DriverType.POSTGRESQL, paramstyle='pyformat')

    Query(adapter).execute_query(_insert(1, 'Bob'))

    assert adapter.connection.calls == [("INSERT INTO users (id, name) VALUES (%s, %s);", (1, 'Bob'), None)]


@pytest.mark.unit
def test_deferred_statements_run_on_same_connection(fake_adapter):
    adapter = fake_adapter(DriverType.POSTGRESQL)
    provider = (
        TableCreateQueryProvider()
        .table('people')
        .column('id', DataType.INTEGER, column_type=ColumnType.PRIMARY_KEY)
        .index(['id'])
    )

    Query(adapter).execute_query(provider)

    executed = [sql for sql, _, _ in adapter.connection.calls]
    assert executed == [
        "CREATE TABLE people (id INTEGER, PRIMARY KEY (id));",
        "CREATE INDEX IF NOT EXISTS idx_people_id ON people (id);",
    ]
    assert adapter.checkouts == 1


@pytest.mark.unit
def test_select_result_reaches_callback(fake_adapter, fake_result):
    adapter = fake_adapter()
    result = fake_result(rows=[(1, 'Ann'), (2, 'Bob')], columns=['id', 'name'])
    adapter.connection.results[SELECT_SQL] = result
    names = []

    provider = Query.select().table('users').result_action_after_query(
        lambda rs: rs.for_each(lambda row: names.append(row.get('name')))
    )
    Query(adapter).execute_query(provider)

    assert names == ['Ann', 'Bob']
    assert result.closed is True


# ==========================
# 2. BATCH DISPATCH TESTS
# ==========================

@pytest.mark.unit
def test_identical_statements_are_batched_and_selects_run_after(fake_adapter):
    """
    Test grouping of a mixed batch.

    Test Strategy:
        - Two UPDATEs with identical SQL share one executemany() call
        - The SELECT queued between them runs afterwards, on its own
        - One commit for the whole execution
    """
    adapter = fake_adapter()
    recorder = Recorder()
    first = _update(1, 'Ann').action_after_query(recorder)
    select = Query.select().table('users').action_after_query(recorder)
    second = _update(2, 'Bob').action_after_query(recorder)

    query = Query(adapter).queue(first, select, second).execute()

    assert adapter.connection.calls == [
        (UPDATE_SQL, [('Ann', 1), ('Bob', 2)], None),
        (SELECT_SQL, None, {'no_parameters': True}),
    ]
    assert adapter.connection.commits == 1
    assert query.succeeded
    assert [r.provider for r in recorder.results] == [first, second, select]
    assert all(recorder.outcomes)
    assert first.affected_rows == second.affected_rows == -1


@pytest.mark.unit
def test_different_statements_keep_first_seen_order(fake_adapter):
    adapter = fake_adapter()

    Query(adapter).queue(
        _insert(1, 'Ann'),
        _update(1, 'Anna'),
        _insert(2, 'Bob'),
    ).execute()

    assert [call[0] for call in adapter.connection.calls] == [INSERT_SQL, UPDATE_SQL]
    assert adapter.connection.calls[0][1] == [(1, 'Ann'), (2, 'Bob')]


@pytest.mark.unit
def test_failed_bucket_rolls_back_whole_execution(fake_adapter):
    """A failing bucket fails the execution; the transaction is rolled back once."""
    adapter = fake_adapter()
    adapter.connection.fail_on.add(INSERT_SQL)
    recorder = Recorder()

    query = Query(adapter).queue(
        _insert(1, 'Ann').action_after_query(recorder),
        _insert(2, 'Bob').action_after_query(recorder),
        _update(3, 'Cid').action_after_query(recorder),
    ).execute()

    assert query.executed is True
    assert query.succeeded is False
    assert adapter.connection.commits == 0
    assert adapter.connection.rollbacks == 1
    assert recorder.outcomes == [False, False, True]


@pytest.mark.unit
def test_incompatible_statement_is_skipped_in_batch(fake_adapter):
    adapter = fake_adapter(DriverType.SQLITE)
    recorder = Recorder()
    truncate = Query.truncate().table('logs').action_after_query(recorder)
    insert = _insert(1, 'Ann').action_after_query(recorder)

    query = Query(adapter).queue(truncate, insert).execute()

    assert [call[0] for call in adapter.connection.calls] == [INSERT_SQL]
    assert query.succeeded is True
    assert recorder.results == [QueryResult(truncate, False), QueryResult(insert, True)]


@pytest.mark.unit
def test_failed_select_fails_execution(fake_adapter):
    adapter = fake_adapter()
    adapter.connection.fail_on.add(SELECT_SQL)

    query = Query(adapter).queue(_insert(1, 'Ann'), Query.select().table('users')).execute()

    assert query.succeeded is False
    assert adapter.connection.rollbacks == 1


@pytest.mark.unit
def test_without_transaction_uses_autocommit(fake_adapter):
    adapter = fake_adapter()

    Query(adapter, use_transaction=False).queue(_insert(1, 'Ann'), _insert(2, 'Bob')).execute()

    assert adapter.connection.options == {'isolation_level': 'AUTOCOMMIT'}
    assert adapter.connection.commits == 0
    assert adapter.connection.rollbacks == 0


# ==========================
# 3. FLAGS AND QUEUE TESTS
# ==========================

@pytest.mark.unit
def test_flag_accessors(fake_adapter):
    query = Query(fake_adapter(), use_transaction=True, preserve_queries_after_execution=False)

    assert query.use_transaction() is True
    assert query.use_transaction(False) is query
    assert query.use_transaction() is False
    assert query.preserve_queries_after_execution(True).preserve_queries_after_execution() is True
    assert query.asynchronous() is False


@pytest.mark.unit
def test_queue_is_cleared_unless_preserved(fake_adapter):
    adapter = fake_adapter()

    query = Query(adapter, preserve_queries_after_execution=False).queue(_insert(1, 'Ann')).execute()
    assert query.queries == []

    query = Query(adapter, preserve_queries_after_execution=True).queue(_insert(1, 'Ann')).execute()
    assert len(query.queries) == 1


@pytest.mark.unit
def test_driver_type_comes_from_adapter(fake_adapter):
    assert Query(fake_adapter(DriverType.MARIADB)).driver_type is DriverType.MARIADB
    assert Query(None).driver_type is None


@pytest.mark.unit
def test_metrics_are_recorded(fake_adapter):
    query = Query(fake_adapter()).execute_query(_insert(1, 'Ann'))
    assert query.metrics['execution_time'] >= 0


@pytest.mark.unit
def test_custom_logger_receives_sql(fake_adapter, caplog):
    log = logging.getLogger('tests.query')
    with caplog.at_level(logging.DEBUG, logger='tests.query'):
        Query(fake_adapter(), log=log).execute_query(_insert(1, 'Ann'))

    assert any(INSERT_SQL in record.getMessage() for record in caplog.records)


@pytest.mark.unit
@pytest.mark.parametrize("factory, provider_type", [
    (Query.insert, InsertQueryProvider),
    (Query.update, UpdateQueryProvider),
    (Query.select, SelectQueryProvider),
    (Query.table_create, TableCreateQueryProvider),
    (Query.database_create, DatabaseCreateQueryProvider),
    (Query.custom, CustomQueryProvider),
])
def test_factories(factory, provider_type):
    assert isinstance(factory(), provider_type)


@pytest.mark.unit
def test_asynchronous_execution_completes(fake_adapter):
    adapter = fake_adapter()
    query = Query(adapter, asynchronous=True)

    query.execute_query(_insert(1, 'Ann'))

    assert query.future is not None
    assert query.wait(timeout=5) is True
    assert query.executed is True
    assert adapter.connection.commits == 1


@pytest.mark.unit
def test_asynchronous_failure_surfaces_on_wait(fake_adapter):
    adapter = fake_adapter()
    adapter.connection.fail_on.add(INSERT_SQL)
    query = Query(adapter).asynchronous(True)

    query.execute_query(_insert(1, 'Ann'))

    with pytest.raises(RequestNotExecutableError):
        query.wait(timeout=5)
    assert query.executed is True
    assert query.succeeded is False


# ===================
# 4. EDGE CASE TESTS
# ===================

@pytest.mark.edge_case
def test_missing_adapter():
    with pytest.raises(MissingValueError):
        Query(None).execute_query(_insert(1, 'Ann'))


@pytest.mark.edge_case
def test_execute_query_requires_statements(fake_adapter):
    with pytest.raises(MissingValueError):
        Query(fake_adapter()).execute_query()


@pytest.mark.edge_case
def test_disconnected_adapter(fake_adapter):
    adapter = fake_adapter(is_connected=False)
    query = Query(adapter)

    with pytest.raises(DatabaseNotConnectedError):
        query.execute_query(_insert(1, 'Ann'))

    assert query.executed is True
    assert adapter.checkouts == 0


@pytest.mark.edge_case
def test_empty_queue_is_a_no_op(fake_adapter):
    adapter = fake_adapter()
    query = Query(adapter).execute()

    assert query.executed is True
    assert query.succeeded is False
    assert adapter.checkouts == 0


@pytest.mark.edge_case
def test_single_statement_without_sql(fake_adapter):
    """An empty statement is reported as failed without raising."""
    adapter = fake_adapter()
    recorder = Recorder()

    query = Query(adapter).execute_query(CustomQueryProvider().action_after_query(recorder))

    assert query.succeeded is False
    assert adapter.connection.calls == []
    assert adapter.connection.rollbacks == 1
    assert recorder.outcomes == [False]


@pytest.mark.edge_case
def test_empty_statement_in_batch_does_not_fail_siblings(fake_adapter):
    adapter = fake_adapter()
    recorder = Recorder()

    query = Query(adapter).queue(
        CustomQueryProvider().action_after_query(recorder),
        _insert(1, 'Ann').action_after_query(recorder),
    ).execute()

    assert query.succeeded is True
    assert recorder.outcomes == [False, True]


# ===================================
# 5. INTEGRATION TESTS (SQLite)
# ===================================

def _create_users():
    return (
        Query.table_create()
        .table('users')
        .column('id', DataType.INTEGER, column_type=ColumnType.PRIMARY_KEY)
        .column('name', DataType.VARCHAR, 64, not_null=True)
    )


@pytest.mark.integration
def test_sqlite_insert_then_select_in_one_execution(sqlite_adapter):
    """SELECTs of a batch observe the writes of the same execution."""
    Query(sqlite_adapter).execute_query(_create_users())
    rows = []

    select = (
        Query.select()
        .table('users')
        .columns('id', 'name')
        .condition('id', Operator.GREATER_THAN, 0)
        .result_action_after_query(lambda rs: rows.extend(rs.fetch_all()))
    )
    query = Query(sqlite_adapter).queue(_insert(1, 'Ann'), select, _insert(2, 'Bob')).execute()

    assert query.succeeded
    assert [tuple(row) for row in rows] == [(1, 'Ann'), (2, 'Bob')]


@pytest.mark.integration
def test_sqlite_failed_batch_leaves_no_rows(sqlite_adapter):
    """
    Test the transaction property on a real database.

    Test Strategy:
        - A duplicate primary key fails the INSERT batch
        - The whole execution is rolled back
        - A later count sees no rows
    """
    Query(sqlite_adapter).execute_query(_create_users())

    query = Query(sqlite_adapter).queue(_insert(1, 'Ann'), _insert(1, 'Dup'), _update(1, 'X')).execute()
    counts = []
    Query(sqlite_adapter).execute_query(
        Query.custom("SELECT COUNT(*) FROM users;").result_action_after_query(
            lambda rs: rs.next(lambda row: counts.append(row.get(0)))
        )
    )

    assert query.succeeded is False
    assert counts == [0]


@pytest.mark.integration
def test_sqlite_update_reports_affected_rows(sqlite_adapter):
    Query(sqlite_adapter).queue(_create_users()).execute()
    Query(sqlite_adapter).queue(_insert(1, 'Ann'), _insert(2, 'Bob')).execute()

    update = Query.update().table('users').entry('name', 'Z').condition('id', Operator.IN, [1, 2])
    Query(sqlite_adapter).execute_query(update)

    assert update.affected_rows == 2
