"""
============================
SELECT statement provider.
============================

Builds SELECT statements with joins, WHERE conditions, grouping, ordering,
pagination and row locking. The rendered statement is executed separately
from write batches by the execution coordinator and its rows are handed to
the result callback as a SimpleResultSet.

Classes:
    SelectFunction: Optional function applied to the selected column
    SelectType: NORMAL or DISTINCT
    JoinType: INNER, LEFT, RIGHT (not SQLite) or FULL (PostgreSQL)
    LockMode: Row locking clause
    Join: A joined table with its ON conditions
    SelectQueryProvider: The SELECT builder

Usage:
    from sql.conditions import Operator
    from sql.driver import DriverType
    from sql.query_builder import Join, JoinType, SelectQueryProvider
    from sql.values import raw

    select = (
        SelectQueryProvider()
        .table('users')
        .alias('u')
        .columns('u.id', 'o.total')
        .join(Join(JoinType.LEFT, 'orders', 'o').on('o.user_id', raw('u.id')))
        .condition('u.age', Operator.GREATER_THAN, 18)
        .limit(10)
    )
    select.generate_sql_string(DriverType.POSTGRESQL)
    # SELECT u.id, o.total FROM users AS u LEFT JOIN orders AS o ON o.user_id = u.id
    #     WHERE u.age > ? LIMIT 10;
"""

from enum import Enum
from typing import Any, List, Optional

from core.exceptions import FeatureNotSupportedError
from sql.base import ResultQueryProvider
from sql.conditions import (
    Condition,
    ConditionBuilderMixin,
    Direction,
    Group,
    Limit,
    Order,
    build_condition,
    render_conditions,
)
from sql.driver import DriverType, missing_driver, require_driver, require_value


class SelectFunction(Enum):
    """Function wrapped around the single selected column."""

    NORMAL = ''
    COUNT = 'COUNT'
    AVG = 'AVG'
    SUM = 'SUM'
    MIN = 'MIN'
    MAX = 'MAX'
    LOWER = 'LOWER'
    UPPER = 'UPPER'


class SelectType(Enum):
    NORMAL = 'NORMAL'
    DISTINCT = 'DISTINCT'


class JoinType(Enum):
    INNER = 'INNER JOIN'
    LEFT = 'LEFT JOIN'
    RIGHT = 'RIGHT JOIN'
    FULL = 'FULL OUTER JOIN'


class LockMode(Enum):
    """Row locking clauses; NO KEY UPDATE and KEY SHARE are PostgreSQL only."""

    FOR_UPDATE = 'FOR UPDATE'
    FOR_SHARE = 'FOR SHARE'
    FOR_NO_KEY_UPDATE = 'FOR NO KEY UPDATE'
    FOR_KEY_SHARE = 'FOR KEY SHARE'


class Join:
    """A joined table with its ON conditions."""

    def __init__(self, type: JoinType, table: str, alias: Optional[str] = None):
        self.type = type
        self.table = table
        self.alias = alias
        self.on_conditions: List[Condition] = []

    def on(self, key: Any, *args: Any) -> 'Join':
        """Add an ON condition; same call forms as build_condition()."""
        self.on_conditions.append(build_condition(key, *args))
        return self

    def to_sql(self, driver: DriverType, params: List[Any]) -> str:
        require_value(self.table, "join table")
        if self.type is JoinType.RIGHT and driver is DriverType.SQLITE:
            raise FeatureNotSupportedError(driver, "RIGHT JOIN")
        if self.type is JoinType.FULL:
            require_driver(driver, DriverType.POSTGRESQL, feature="FULL OUTER JOIN")
        if not self.on_conditions:
            raise ValueError("JOIN requires ON conditions")

        sql = f" {self.type.value} {self.table}"
        if self.alias:
            sql += f" AS {self.alias}"
        return sql + f" ON {render_conditions(self.on_conditions, params)}"

    def __repr__(self) -> str:
        return f"Join({self.type.name}, {self.table!r}, {self.alias!r})"


class SelectQueryProvider(ConditionBuilderMixin, ResultQueryProvider):
    """Builder for SELECT statements.

    Clause order: SELECT [DISTINCT] cols FROM t [AS a] [JOIN ...] [WHERE ...]
    [GROUP BY ...] [HAVING ...] [ORDER BY ...] [LIMIT n [OFFSET m]] [lock].
    An empty column list selects '*'.
    """

    def __init__(self):
        super().__init__()
        self._init_conditions()
        self.table_name: Optional[str] = None
        self.table_alias: Optional[str] = None
        self.column_keys: List[str] = []
        self.select_function: SelectFunction = SelectFunction.NORMAL
        self.type: SelectType = SelectType.NORMAL
        self.joins: List[Join] = []
        self.grouping: Optional[Group] = None
        self.order_by: Optional[Order] = None
        self.row_limit: Optional[Limit] = None
        self.lock_mode: Optional[LockMode] = None
        self.lock_skip_locked: bool = False
        self.lock_no_wait: bool = False

    def table(self, table: str) -> 'SelectQueryProvider':
        self.table_name = table
        return self

    def alias(self, alias: Optional[str]) -> 'SelectQueryProvider':
        self.table_alias = alias
        return self

    def column(self, key: str) -> 'SelectQueryProvider':
        self.column_keys.append(key)
        return self

    def columns(self, *keys: str) -> 'SelectQueryProvider':
        self.column_keys.extend(keys)
        return self

    def function(self, function: SelectFunction) -> 'SelectQueryProvider':
        self.select_function = function or SelectFunction.NORMAL
        return self

    def select_type(self, select_type: SelectType) -> 'SelectQueryProvider':
        self.type = select_type or SelectType.NORMAL
        return self

    def distinct(self) -> 'SelectQueryProvider':
        return self.select_type(SelectType.DISTINCT)

    def join(self, join: Join) -> 'SelectQueryProvider':
        self.joins.append(join)
        return self

    def group(self, group: Group) -> 'SelectQueryProvider':
        self.grouping = group
        return self

    def group_by(self, *keys: str) -> 'SelectQueryProvider':
        if self.grouping is None:
            self.grouping = Group()
        self.grouping.key(*keys)
        return self

    def having(self, key: Any, *args: Any) -> 'SelectQueryProvider':
        if self.grouping is None:
            self.grouping = Group()
        self.grouping.conditions.append(build_condition(key, *args))
        return self

    def order(self, key_or_order: Any, direction: Direction = Direction.ASCENDING) -> 'SelectQueryProvider':
        """Add an ORDER BY rule, or merge a whole Order object."""
        if self.order_by is None:
            self.order_by = Order()
        if isinstance(key_or_order, Order):
            self.order_by.merge(key_or_order)
        else:
            self.order_by.rule(key_or_order, direction)
        return self

    def limit(self, limit: int, offset: int = 0) -> 'SelectQueryProvider':
        self.row_limit = Limit(limit, offset)
        return self

    def lock(self, mode: Optional[LockMode]) -> 'SelectQueryProvider':
        self.lock_mode = mode
        return self

    def skip_locked(self, skip: bool = True) -> 'SelectQueryProvider':
        self.lock_skip_locked = skip
        return self

    def no_wait(self, no_wait: bool = True) -> 'SelectQueryProvider':
        self.lock_no_wait = no_wait
        return self

    def _select_list(self) -> str:
        keys = self.column_keys or ["*"]
        if self.select_function is SelectFunction.NORMAL:
            return ', '.join(keys)
        if len(keys) != 1 or keys[0] == "*":
            raise ValueError(
                f"{self.select_function.name} can only be applied to a single named column"
            )
        return f"{self.select_function.value}({keys[0]})"

    def _limit_clause(self) -> str:
        if self.row_limit is None:
            return ""
        if self.row_limit.limit <= 0:
            if self.row_limit.offset > 0:
                raise ValueError("OFFSET requires a LIMIT")
            return ""
        sql = f" LIMIT {self.row_limit.limit}"
        if self.row_limit.offset > 0:
            sql += f" OFFSET {self.row_limit.offset}"
        return sql

    def _lock_clause(self, driver: DriverType) -> str:
        if self.lock_mode is None:
            if self.lock_skip_locked or self.lock_no_wait:
                raise ValueError("SKIP LOCKED and NOWAIT require a lock mode")
            return ""
        if driver is DriverType.SQLITE:
            raise FeatureNotSupportedError(driver, "row locking")
        if self.lock_skip_locked and self.lock_no_wait:
            raise ValueError("SKIP LOCKED and NOWAIT cannot be combined")
        if driver.is_mysql_family and self.lock_mode in (LockMode.FOR_NO_KEY_UPDATE, LockMode.FOR_KEY_SHARE):
            raise FeatureNotSupportedError(driver, self.lock_mode.value)

        sql = f" {self.lock_mode.value}"
        if self.lock_skip_locked:
            sql += " SKIP LOCKED"
        if self.lock_no_wait:
            sql += " NOWAIT"
        return sql

    def _build(self, driver: Optional[DriverType], params: List[Any]) -> str:
        require_value(self.table_name, "table name")
        missing_driver(driver)

        # Build the SELECT clause
        sql = "SELECT "
        if self.type is SelectType.DISTINCT:
            sql += "DISTINCT "
        sql += f"{self._select_list()} FROM {self.table_name}"
        if self.table_alias:
            sql += f" AS {self.table_alias}"

        # Add JOINs
        for join in self.joins:
            sql += join.to_sql(driver, params)

        if self.conditions:
            sql += f" WHERE {render_conditions(self.conditions, params)}"

        # Add GROUP BY / HAVING
        if self.grouping is not None:
            sql += self.grouping.to_sql(params)

        if self.order_by is not None:
            sql += self.order_by.to_sql()

        sql += self._limit_clause()
        sql += self._lock_clause(driver)
        return sql + ";"

    def __repr__(self) -> str:
        return f"SelectQueryProvider(table={self.table_name!r}, columns={self.column_keys!r})"
