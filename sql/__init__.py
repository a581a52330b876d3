"""
=====================================================
SQL statement providers for four database dialects.
=====================================================

This package turns fluent builder calls into dialect-correct SQL text plus
an ordered parameter list. Nothing in here opens a connection; execution
lives in the execution package.

The package follows a clear organization:
    - driver.py: DriverType and the dialect guard helpers
    - values.py: Tagged SQL values and literal formatting
    - conditions.py: WHERE/HAVING/ON conditions, ORDER BY, LIMIT, GROUP BY
    - schema.py: Column definitions and table constraints
    - base.py: Common provider contract (render, parameters, callbacks)
    - ddl.py: DATABASE/TABLE/ALTER/INDEX providers
    - dml.py: INSERT/UPDATE/DELETE and custom SQL providers
    - query_builder.py: SELECT provider

Architecture:
    - Every provider renders '?' placeholders; the coordinator converts them
      to the paramstyle of the live DBAPI driver
    - Features a dialect lacks raise FeatureNotSupportedError at render time
    - compatibility(driver) answers whether a statement can run at all

Example:
    >>> from sql import DriverType, SelectQueryProvider, Operator
    >>>
    >>> select = SelectQueryProvider().table('users').condition('age', Operator.GREATER_THAN, 18).limit(10)
    >>> select.generate_sql_string(DriverType.MYSQL)
    'SELECT * FROM users WHERE age > ? LIMIT 10;'
    >>> select.parameters()
    [18]
"""

__version__ = "1.0.0"
__all__ = [
    # Driver and values
    'DriverType', 'SqlValue', 'ValueKind', 'null', 'raw', 'sql_value', 'format_literal',
    # Conditions and modifiers
    'Condition', 'ConditionType', 'Operator', 'Direction', 'Order', 'Limit', 'Group',
    # Schema
    'Column', 'ColumnType', 'DataType', 'CharacterSet', 'ReferentialAction',
    'PrimaryKeyConstraint', 'UniqueConstraint', 'CheckConstraint',
    'ForeignKeyConstraint', 'IndexConstraint',
    # Provider contract
    'QueryProvider', 'UpdatingQueryProvider', 'ResultQueryProvider',
    'CompiledStatement', 'QueryEntry', 'QueryResult',
    # DDL providers
    'DatabaseCreateQueryProvider', 'DatabaseDropQueryProvider',
    'TableCreateQueryProvider', 'TableDropQueryProvider', 'TruncateQueryProvider',
    'TableAlterAddColumnQueryProvider', 'TableAlterAddAttributeQueryProvider',
    'TableAlterDropColumnQueryProvider', 'TableAlterModifyTypeQueryProvider',
    'TableAlterColumnDefaultValueQueryProvider', 'TableAlterRenameQueryProvider',
    'TableAlterForeignKeyQueryProvider',
    'CreateIndexQueryProvider', 'DropIndexQueryProvider', 'IndexColumn',
    'CreateMethode', 'DeleteMethode', 'DropBehaviour', 'IdentityBehaviour',
    'ColumnPosition', 'AttributeType', 'DropType', 'ActionType',
    'DeferrableType', 'InitiallyDeferrable', 'IndexType', 'IndexMethod',
    # DML providers
    'InsertQueryProvider', 'UpdateQueryProvider', 'DeleteQueryProvider',
    'CustomQueryProvider', 'InsertMethode', 'UpdatePriority',
    # SELECT
    'SelectQueryProvider', 'SelectFunction', 'SelectType', 'Join', 'JoinType', 'LockMode',
]

from .base import (
    CompiledStatement,
    QueryEntry,
    QueryProvider,
    QueryResult,
    ResultQueryProvider,
    UpdatingQueryProvider,
)
from .conditions import Condition, ConditionType, Direction, Group, Limit, Operator, Order
from .ddl import (
    ActionType,
    AttributeType,
    ColumnPosition,
    CreateIndexQueryProvider,
    CreateMethode,
    DatabaseCreateQueryProvider,
    DatabaseDropQueryProvider,
    DeferrableType,
    DeleteMethode,
    DropBehaviour,
    DropIndexQueryProvider,
    DropType,
    IdentityBehaviour,
    IndexColumn,
    IndexMethod,
    IndexType,
    InitiallyDeferrable,
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
from .dml import (
    CustomQueryProvider,
    DeleteQueryProvider,
    InsertMethode,
    InsertQueryProvider,
    UpdatePriority,
    UpdateQueryProvider,
)
from .driver import DriverType
from .query_builder import Join, JoinType, LockMode, SelectFunction, SelectQueryProvider, SelectType
from .schema import (
    CharacterSet,
    CheckConstraint,
    Column,
    ColumnType,
    DataType,
    ForeignKeyConstraint,
    IndexConstraint,
    PrimaryKeyConstraint,
    ReferentialAction,
    UniqueConstraint,
)
from .values import SqlValue, ValueKind, format_literal, null, raw, sql_value
