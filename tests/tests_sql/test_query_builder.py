"""
=====================================================
Comprehensive pytest suite for sql/query_builder.py
=====================================================

Sections:
---------
1. Unit tests - SELECT clauses and their order
2. Unit tests - Joins, grouping and locking
3. Edge case tests - Functions, offsets, dialect gating

Available markers:
------------------
unit, edge_case
"""

import pytest

from core.exceptions import DriverNotSetError, FeatureNotSupportedError, MissingValueError
from sql.conditions import Direction, Operator
from sql.driver import DriverType
from sql.query_builder import (
    Join,
    JoinType,
    LockMode,
    SelectFunction,
    SelectQueryProvider,
)
from sql.values import raw


# ===============
# 1. UNIT TESTS
# ===============

@pytest.mark.unit
@pytest.mark.parametrize("driver", [DriverType.MYSQL, DriverType.POSTGRESQL, DriverType.SQLITE])
def test_select_with_condition_and_limit(render, driver):
    provider = SelectQueryProvider().table('users').condition('age', Operator.GREATER_THAN, 18).limit(10)
    sql, params = render(provider, driver)

    assert sql == "SELECT * FROM users WHERE age > ? LIMIT 10;"
    assert params == [18]
    assert provider.parameters() == [18]


@pytest.mark.unit
def test_select_columns_distinct_order_offset(render):
    provider = (
        SelectQueryProvider()
        .table('users')
        .columns('id', 'name')
        .distinct()
        .order('name')
        .order('id', Direction.DESCENDING)
        .limit(20, 40)
    )
    assert render(provider, DriverType.POSTGRESQL)[0] == \
        "SELECT DISTINCT id, name FROM users ORDER BY name ASC, id DESC LIMIT 20 OFFSET 40;"


@pytest.mark.unit
def test_select_function(render):
    provider = SelectQueryProvider().table('users').column('id').function(SelectFunction.COUNT)
    assert render(provider, DriverType.SQLITE)[0] == "SELECT COUNT(id) FROM users;"


@pytest.mark.unit
def test_select_returns_rows():
    assert SelectQueryProvider().returns_rows


# ===========================
# 2. JOIN/GROUP/LOCK TESTS
# ===========================

@pytest.mark.unit
def test_join_with_alias(render):
    """
    Test JOIN rendering and parameter order.

    Test Strategy:
        - ON values are bound before WHERE values
        - raw() compares against another column instead of binding
    """
    provider = (
        SelectQueryProvider()
        .table('users')
        .alias('u')
        .columns('u.id', 'o.total')
        .join(Join(JoinType.LEFT, 'orders', 'o').on('o.user_id', raw('u.id')).on('o.status', 'paid'))
        .condition('u.age', Operator.GREATER_THAN, 18)
    )
    sql, params = render(provider, DriverType.POSTGRESQL)

    assert sql == (
        "SELECT u.id, o.total FROM users AS u LEFT JOIN orders AS o "
        "ON o.user_id = u.id AND o.status = ? WHERE u.age > ?;"
    )
    assert params == ['paid', 18]


@pytest.mark.unit
def test_group_by_having(render):
    provider = (
        SelectQueryProvider()
        .table('orders')
        .columns('user_id')
        .group_by('user_id')
        .having('user_id', Operator.GREATER_THAN, 10)
        .condition('status', 'paid')
    )
    sql, params = render(provider, DriverType.MYSQL)

    assert sql == "SELECT user_id FROM orders WHERE status = ? GROUP BY user_id HAVING user_id > ?;"
    assert params == ['paid', 10]


@pytest.mark.unit
def test_lock_clauses(render):
    provider = SelectQueryProvider().table('jobs').limit(1).lock(LockMode.FOR_UPDATE).skip_locked()
    assert render(provider, DriverType.POSTGRESQL)[0] == "SELECT * FROM jobs LIMIT 1 FOR UPDATE SKIP LOCKED;"

    provider = SelectQueryProvider().table('jobs').lock(LockMode.FOR_SHARE).no_wait()
    assert render(provider, DriverType.MYSQL)[0] == "SELECT * FROM jobs FOR SHARE NOWAIT;"

    provider = SelectQueryProvider().table('jobs').lock(LockMode.FOR_KEY_SHARE)
    assert render(provider, DriverType.POSTGRESQL)[0] == "SELECT * FROM jobs FOR KEY SHARE;"


@pytest.mark.unit
def test_zero_limit_is_omitted(render):
    provider = SelectQueryProvider().table('users').limit(0)
    assert render(provider, DriverType.SQLITE)[0] == "SELECT * FROM users;"


# ===================
# 3. EDGE CASE TESTS
# ===================

@pytest.mark.edge_case
def test_offset_without_limit_rejected(render):
    provider = SelectQueryProvider().table('users').limit(0, 10)
    with pytest.raises(ValueError, match="OFFSET"):
        render(provider, DriverType.POSTGRESQL)


@pytest.mark.edge_case
@pytest.mark.parametrize("columns", [(), ('a', 'b'), ('*',)])
def test_function_needs_single_named_column(render, columns):
    provider = SelectQueryProvider().table('t').columns(*columns).function(SelectFunction.MAX)
    with pytest.raises(ValueError):
        render(provider, DriverType.SQLITE)


@pytest.mark.edge_case
@pytest.mark.parametrize("join_type, driver", [
    (JoinType.RIGHT, DriverType.SQLITE),
    (JoinType.FULL, DriverType.MYSQL),
    (JoinType.FULL, DriverType.SQLITE),
])
def test_join_gating(render, join_type, driver):
    provider = SelectQueryProvider().table('a').join(Join(join_type, 'b').on('b.a_id', raw('a.id')))
    with pytest.raises(FeatureNotSupportedError):
        render(provider, driver)


@pytest.mark.edge_case
def test_join_without_on_rejected(render):
    provider = SelectQueryProvider().table('a').join(Join(JoinType.INNER, 'b'))
    with pytest.raises(ValueError, match="ON"):
        render(provider, DriverType.POSTGRESQL)


@pytest.mark.edge_case
def test_lock_gating(render):
    with pytest.raises(FeatureNotSupportedError):
        render(SelectQueryProvider().table('t').lock(LockMode.FOR_UPDATE), DriverType.SQLITE)
    with pytest.raises(FeatureNotSupportedError):
        render(SelectQueryProvider().table('t').lock(LockMode.FOR_NO_KEY_UPDATE), DriverType.MARIADB)


@pytest.mark.edge_case
def test_lock_modifiers_validated(render):
    with pytest.raises(ValueError):
        render(SelectQueryProvider().table('t').skip_locked(), DriverType.POSTGRESQL)
    with pytest.raises(ValueError):
        render(
            SelectQueryProvider().table('t').lock(LockMode.FOR_UPDATE).skip_locked().no_wait(),
            DriverType.POSTGRESQL,
        )


@pytest.mark.edge_case
def test_select_requires_table_and_driver(render):
    with pytest.raises(MissingValueError):
        render(SelectQueryProvider(), DriverType.SQLITE)
    with pytest.raises(DriverNotSetError):
        render(SelectQueryProvider().table('t'), None)


@pytest.mark.edge_case
def test_render_accepts_driver_context(driver_context):
    provider = SelectQueryProvider().table('t').join(Join(JoinType.FULL, 'u').on('u.id', raw('t.id')))
    sql = provider.generate_sql_string(driver_context(DriverType.POSTGRESQL))
    assert sql == "SELECT * FROM t FULL OUTER JOIN u ON u.id = t.id;"
