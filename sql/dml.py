"""
==================================================================
Data Manipulation Language (DML) providers for INSERT/UPDATE/DELETE.
==================================================================

Fluent builders for the write statements and for caller-supplied SQL.
Values are always bound through '?' placeholders; QueryEntry objects
flagged as raw are emitted verbatim.

Classes:
    InsertMethode: INSERT, INSERT_OR_UPDATE (upsert) or INSERT_IGNORE
    UpdatePriority: NORMAL or LOW (MySQL/MariaDB LOW_PRIORITY)
    InsertQueryProvider: INSERT with upsert and ignore variants
    UpdateQueryProvider: UPDATE with WHERE/ORDER BY/LIMIT
    DeleteQueryProvider: DELETE with WHERE/ORDER BY/LIMIT
    CustomQueryProvider: Verbatim SQL with optional parameters

Dialect notes:
    - INSERT_IGNORE: MySQL/MariaDB 'INSERT IGNORE', SQLite 'INSERT OR IGNORE',
      PostgreSQL 'ON CONFLICT DO NOTHING'
    - INSERT_OR_UPDATE: MySQL/MariaDB 'ON DUPLICATE KEY UPDATE c = VALUES(c)',
      PostgreSQL/SQLite 'ON CONFLICT (k) DO UPDATE SET c = EXCLUDED.c'
    - LOW_PRIORITY, IGNORE, ORDER BY and LIMIT on UPDATE/DELETE are
      MySQL/MariaDB only

Example:
    >>> from sql.dml import InsertMethode, InsertQueryProvider
    >>> from sql.driver import DriverType
    >>>
    >>> upsert = (
    ...     InsertQueryProvider()
    ...     .table('users')
    ...     .entry('id', 1)
    ...     .entry('name', 'Bob')
    ...     .insert_methode(InsertMethode.INSERT_OR_UPDATE)
    ...     .conflict_columns(['id'])
    ... )
    >>> upsert.generate_sql_string(DriverType.POSTGRESQL)
    'INSERT INTO users (id, name) VALUES (?, ?) ON CONFLICT (id) DO UPDATE SET name = EXCLUDED.name;'
"""

from enum import Enum
from typing import Any, Iterable, List, Optional

from sql.base import QueryEntry, ResultQueryProvider, UpdatingQueryProvider
from sql.conditions import ConditionBuilderMixin, Direction, Limit, Order, render_conditions
from sql.driver import DriverType, missing_driver, require_driver, require_value
from sql.values import bind_value


class InsertMethode(Enum):
    """How INSERT treats existing rows."""

    INSERT = 'INSERT'
    INSERT_OR_UPDATE = 'INSERT_OR_UPDATE'
    INSERT_IGNORE = 'INSERT_IGNORE'


class UpdatePriority(Enum):
    """UPDATE priority (LOW renders LOW_PRIORITY on MySQL/MariaDB)."""

    NORMAL = 'NORMAL'
    LOW = 'LOW'


class InsertQueryProvider(UpdatingQueryProvider):
    """Builder for INSERT statements."""

    def __init__(self):
        super().__init__()
        self.table_name: Optional[str] = None
        self.entries: List[QueryEntry] = []
        self.methode: InsertMethode = InsertMethode.INSERT
        self.conflict_keys: List[str] = []

    def table(self, table: str) -> 'InsertQueryProvider':
        self.table_name = table
        return self

    def entry(self, column: str, value: Any = None, raw_value: bool = False) -> 'InsertQueryProvider':
        self.entries.append(QueryEntry(column, value, raw_value))
        return self

    def entries_from(self, values: dict) -> 'InsertQueryProvider':
        """Add one entry per mapping item, in mapping order."""
        for column, value in values.items():
            self.entry(column, value)
        return self

    def insert_methode(self, methode: InsertMethode) -> 'InsertQueryProvider':
        self.methode = methode or InsertMethode.INSERT
        return self

    def conflict_columns(self, columns: Iterable[str]) -> 'InsertQueryProvider':
        self.conflict_keys = list(columns)
        return self

    def _build(self, driver: Optional[DriverType], params: List[Any]) -> str:
        require_value(self.table_name, "table name")
        require_value(self.entries, "entries")

        sql_parts = ["INSERT"]
        if self.methode is InsertMethode.INSERT_IGNORE:
            missing_driver(driver)
            if driver.is_mysql_family:
                sql_parts.append("IGNORE")
            elif driver is DriverType.SQLITE:
                sql_parts.append("OR IGNORE")

        columns = ', '.join(entry.column for entry in self.entries)
        values = ', '.join(entry.placeholder(params) for entry in self.entries)
        sql_parts.append(f"INTO {self.table_name} ({columns}) VALUES ({values})")

        if self.methode is InsertMethode.INSERT_IGNORE and driver is DriverType.POSTGRESQL:
            sql_parts.append("ON CONFLICT DO NOTHING")
        elif self.methode is InsertMethode.INSERT_OR_UPDATE:
            sql_parts.append(self._upsert_clause(missing_driver(driver)))

        return " ".join(sql_parts) + ";"

    def _upsert_clause(self, driver: DriverType) -> str:
        update_columns = [entry.column for entry in self.entries if entry.column not in self.conflict_keys]

        if driver.is_mysql_family:
            if not update_columns:
                update_columns = [entry.column for entry in self.entries]
            assignments = ', '.join(f"{column} = VALUES({column})" for column in update_columns)
            return f"ON DUPLICATE KEY UPDATE {assignments}"

        require_value(self.conflict_keys, "conflict columns")
        target = f"ON CONFLICT ({', '.join(self.conflict_keys)})"
        if not update_columns:
            return f"{target} DO NOTHING"
        assignments = ', '.join(f"{column} = EXCLUDED.{column}" for column in update_columns)
        return f"{target} DO UPDATE SET {assignments}"

    def __repr__(self) -> str:
        return f"InsertQueryProvider(table={self.table_name!r}, entries={len(self.entries)})"


class _FilteredWriteProvider(ConditionBuilderMixin, UpdatingQueryProvider):
    """Shared WHERE/ORDER BY/LIMIT handling of UPDATE and DELETE."""

    def __init__(self):
        super().__init__()
        self._init_conditions()
        self.table_name: Optional[str] = None
        self.order_by: Optional[Order] = None
        self.row_limit: Optional[Limit] = None

    def table(self, table: str):
        self.table_name = table
        return self

    def order(self, key_or_order: Any, direction: Direction = Direction.ASCENDING):
        """Add an ORDER BY rule, or merge a whole Order object."""
        if self.order_by is None:
            self.order_by = Order()
        if isinstance(key_or_order, Order):
            self.order_by.merge(key_or_order)
        else:
            self.order_by.rule(key_or_order, direction)
        return self

    def limit(self, limit: int, offset: int = 0):
        self.row_limit = Limit(limit, offset)
        return self

    def _render_tail(self, driver: Optional[DriverType], params: List[Any]) -> str:
        sql = ""
        if self.conditions:
            sql += f" WHERE {render_conditions(self.conditions, params)}"

        has_order = self.order_by is not None and not self.order_by.is_empty()
        if has_order:
            require_driver(driver, DriverType.MYSQL, DriverType.MARIADB, feature="ORDER BY")
            sql += self.order_by.to_sql()

        if self.row_limit is not None:
            require_driver(driver, DriverType.MYSQL, DriverType.MARIADB, feature="LIMIT")
            if self.row_limit.offset > 0:
                if not has_order:
                    raise ValueError("LIMIT with offset requires an ORDER BY clause")
                sql += f" LIMIT {self.row_limit.offset}, {self.row_limit.limit}"
            else:
                sql += f" LIMIT {self.row_limit.limit}"
        return sql


class UpdateQueryProvider(_FilteredWriteProvider):
    """Builder for UPDATE statements."""

    def __init__(self):
        super().__init__()
        self.entries: List[QueryEntry] = []
        self.priority: UpdatePriority = UpdatePriority.NORMAL
        self.ignore: bool = False

    def entry(self, column: str, value: Any = None, raw_value: bool = False) -> 'UpdateQueryProvider':
        self.entries.append(QueryEntry(column, value, raw_value))
        return self

    def update_priority(self, priority: UpdatePriority) -> 'UpdateQueryProvider':
        self.priority = priority or UpdatePriority.NORMAL
        return self

    def update_ignore(self, ignore: bool = True) -> 'UpdateQueryProvider':
        self.ignore = ignore
        return self

    def _build(self, driver: Optional[DriverType], params: List[Any]) -> str:
        require_value(self.table_name, "table name")
        require_value(self.entries, "entries")

        sql_parts = ["UPDATE"]
        if self.priority is UpdatePriority.LOW:
            require_driver(driver, DriverType.MYSQL, DriverType.MARIADB, feature="LOW_PRIORITY")
            sql_parts.append("LOW_PRIORITY")
        if self.ignore:
            require_driver(driver, DriverType.MYSQL, DriverType.MARIADB, feature="UPDATE IGNORE")
            sql_parts.append("IGNORE")

        assignments = ', '.join(f"{entry.column} = {entry.placeholder(params)}" for entry in self.entries)
        sql_parts.append(f"{self.table_name} SET {assignments}")

        return " ".join(sql_parts) + self._render_tail(driver, params) + ";"

    def __repr__(self) -> str:
        return f"UpdateQueryProvider(table={self.table_name!r}, entries={len(self.entries)})"


class DeleteQueryProvider(_FilteredWriteProvider):
    """Builder for DELETE statements."""

    def _build(self, driver: Optional[DriverType], params: List[Any]) -> str:
        require_value(self.table_name, "table name")
        return f"DELETE FROM {self.table_name}" + self._render_tail(driver, params) + ";"

    def __repr__(self) -> str:
        return f"DeleteQueryProvider(table={self.table_name!r})"


class CustomQueryProvider(ResultQueryProvider):
    """Verbatim SQL supplied by the caller.

    Always compatible. Parameters are only bound when given through bind().
    The statement is treated as row-producing only when a result callback
    is set.
    """

    def __init__(self, sql: Optional[str] = None, *parameters: Any):
        super().__init__()
        self.statement: Optional[str] = sql
        self.bound: List[Any] = list(parameters)

    @property
    def returns_rows(self) -> bool:
        return self.result_action is not None

    def sql(self, sql: str) -> 'CustomQueryProvider':
        self.statement = sql
        return self

    def bind(self, *parameters: Any) -> 'CustomQueryProvider':
        self.bound = list(parameters)
        return self

    def _build(self, driver: Optional[DriverType], params: List[Any]) -> Optional[str]:
        params.extend(bind_value(value) for value in self.bound)
        return self.statement

    def __repr__(self) -> str:
        return f"CustomQueryProvider({self.statement!r})"
