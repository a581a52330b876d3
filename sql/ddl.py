"""
=======================================================================
Data Definition Language (DDL) providers for databases, tables, indexes.
=======================================================================

Fluent builders for every schema-changing statement. Each provider checks
its required fields, branches on the resolved driver and either renders a
complete statement or raises FeatureNotSupportedError for a feature the
dialect does not have. Nothing here touches a connection.

Key Features:
    - CREATE/DROP DATABASE with MySQL character sets and PostgreSQL encodings
    - CREATE TABLE with composite primary keys, named constraints and
      MySQL table options; index constraints become follow-up CREATE INDEX
      statements outside MySQL/MariaDB
    - ALTER TABLE family (add/drop/modify columns, defaults, attributes,
      foreign keys, rename)
    - DROP TABLE / TRUNCATE with PostgreSQL identity and cascade behaviour
    - CREATE/DROP INDEX with types, methods, partial indexes and INCLUDE

Classes:
    DatabaseCreateQueryProvider, DatabaseDropQueryProvider
    TableCreateQueryProvider, TableDropQueryProvider, TruncateQueryProvider
    TableAlterQueryProvider and its subclasses
    CreateIndexQueryProvider, DropIndexQueryProvider

Example:
    >>> from sql.ddl import TableCreateQueryProvider
    >>> from sql.driver import DriverType
    >>> from sql.schema import ColumnType, DataType
    >>>
    >>> create = (
    ...     TableCreateQueryProvider()
    ...     .table('users')
    ...     .column('id', DataType.INTEGER, column_type=ColumnType.PRIMARY_KEY)
    ...     .column('name', DataType.VARCHAR)
    ... )
    >>> create.generate_sql_string(DriverType.MYSQL)
    'CREATE TABLE users (id INTEGER, name VARCHAR(255), PRIMARY KEY (id));'
"""

import copy
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, List, Optional, Sequence

from core.exceptions import FeatureNotSupportedError
from sql.base import QueryProvider
from sql.conditions import Condition, Direction, build_condition, render_conditions_inline
from sql.driver import DriverType, missing_driver, require_driver, require_value, unsupported_driver
from sql.schema import (
    CharacterSet,
    CheckConstraint,
    Column,
    ColumnType,
    DataType,
    ForeignKeyConstraint,
    IndexConstraint,
    PrimaryKeyConstraint,
    ReferentialAction,
    TableConstraint,
    UniqueConstraint,
)
from sql.values import escape_sql, format_literal

logger = logging.getLogger(__name__)


class CreateMethode(Enum):
    DEFAULT = 'DEFAULT'
    IF_NOT_EXISTS = 'IF_NOT_EXISTS'


class DeleteMethode(Enum):
    DEFAULT = 'DEFAULT'
    IF_EXISTS = 'IF_EXISTS'


class DropBehaviour(Enum):
    """Trailing CASCADE/RESTRICT of DROP and TRUNCATE (PostgreSQL)."""

    NONE = 'NONE'
    CASCADE = 'CASCADE'
    RESTRICT = 'RESTRICT'


class IdentityBehaviour(Enum):
    """Identity handling of TRUNCATE (PostgreSQL)."""

    NONE = 'NONE'
    RESTART = 'RESTART'
    CONTINUE = 'CONTINUE'


class ColumnPosition(Enum):
    """Placement of an added column (MySQL/MariaDB)."""

    DEFAULT = 'DEFAULT'
    FIRST = 'FIRST'
    AFTER = 'AFTER'


class AttributeType(Enum):
    UNIQUE = 'UNIQUE'
    PRIMARY_KEY = 'PRIMARY KEY'


class DropType(Enum):
    COLUMN = 'COLUMN'
    INDEX = 'INDEX'
    PRIMARY_KEY = 'PRIMARY_KEY'


class ActionType(Enum):
    ADD = 'ADD'
    DROP = 'DROP'


class DeferrableType(Enum):
    NO = 'NO'
    DEFERRABLE = 'DEFERRABLE'
    NOT_DEFERRABLE = 'NOT DEFERRABLE'


class InitiallyDeferrable(Enum):
    NO = 'NO'
    INITIALLY_DEFERRED = 'INITIALLY DEFERRED'
    INITIALLY_IMMEDIATE = 'INITIALLY IMMEDIATE'


class IndexType(Enum):
    """Index kind; FULLTEXT and SPATIAL exist on MySQL/MariaDB only."""

    NORMAL = 'NORMAL'
    UNIQUE = 'UNIQUE'
    FULLTEXT = 'FULLTEXT'
    SPATIAL = 'SPATIAL'


class IndexMethod(Enum):
    """Index access method; GIN, GIST and BRIN are PostgreSQL only."""

    BTREE = 'BTREE'
    HASH = 'HASH'
    GIN = 'GIN'
    GIST = 'GIST'
    BRIN = 'BRIN'


# =============================================================================
# DATABASE
# =============================================================================

class DatabaseCreateQueryProvider(QueryProvider):
    """CREATE DATABASE.

    MySQL/MariaDB take a character set and collation. PostgreSQL takes an
    encoding (explicit or mapped from the character set) plus LC_COLLATE and
    LC_CTYPE. SQLite has a single database per file and is rejected.
    """

    def __init__(self):
        super().__init__()
        self.database_name: Optional[str] = None
        self.methode: CreateMethode = CreateMethode.DEFAULT
        self.charset: Optional[CharacterSet] = None
        self.collation: Optional[str] = None
        self.pg_encoding: Optional[str] = None
        self.pg_lc_collate: Optional[str] = None
        self.pg_lc_ctype: Optional[str] = None

    def compatibility(self, driver: Optional[DriverType]) -> bool:
        return driver is not DriverType.SQLITE

    def database(self, name: str) -> 'DatabaseCreateQueryProvider':
        self.database_name = name
        return self

    def create_methode(self, methode: CreateMethode) -> 'DatabaseCreateQueryProvider':
        self.methode = methode or CreateMethode.DEFAULT
        return self

    def character_set(self, character_set: Optional[CharacterSet]) -> 'DatabaseCreateQueryProvider':
        self.charset = character_set
        return self

    def collate(self, collation: Optional[str]) -> 'DatabaseCreateQueryProvider':
        self.collation = collation
        return self

    def encoding(self, encoding: Optional[str]) -> 'DatabaseCreateQueryProvider':
        self.pg_encoding = encoding
        return self

    def lc_collate(self, lc_collate: Optional[str]) -> 'DatabaseCreateQueryProvider':
        self.pg_lc_collate = lc_collate
        return self

    def lc_ctype(self, lc_ctype: Optional[str]) -> 'DatabaseCreateQueryProvider':
        self.pg_lc_ctype = lc_ctype
        return self

    def _build(self, driver: Optional[DriverType], params: List[Any]) -> str:
        require_value(self.database_name, "database name")
        unsupported_driver(driver, DriverType.SQLITE, feature="CREATE DATABASE")

        sql_parts = ["CREATE DATABASE"]

        if driver.is_mysql_family:
            if self.methode is CreateMethode.IF_NOT_EXISTS:
                sql_parts.append("IF NOT EXISTS")
            sql_parts.append(self.database_name)
            if self.charset is not None:
                sql_parts.append(f"CHARACTER SET {self.charset.to_mysql_charset()}")
            if self.collation:
                sql_parts.append(f"COLLATE {self.collation}")
            if self.pg_encoding or self.pg_lc_collate or self.pg_lc_ctype:
                raise FeatureNotSupportedError(driver, "ENCODING/LC_COLLATE/LC_CTYPE")
            return " ".join(sql_parts) + ";"

        # PostgreSQL
        if self.methode is CreateMethode.IF_NOT_EXISTS:
            raise FeatureNotSupportedError(driver, "CREATE DATABASE IF NOT EXISTS")
        if self.collation:
            raise FeatureNotSupportedError(driver, "COLLATE")
        sql_parts.append(self.database_name)

        options = []
        encoding = self.pg_encoding
        if encoding is None and self.charset is not None:
            encoding = self.charset.to_postgres_encoding()
        if encoding:
            options.append(f"ENCODING '{escape_sql(encoding)}'")
        if self.pg_lc_collate:
            options.append(f"LC_COLLATE '{escape_sql(self.pg_lc_collate)}'")
        if self.pg_lc_ctype:
            options.append(f"LC_CTYPE '{escape_sql(self.pg_lc_ctype)}'")
        if options:
            sql_parts.append("WITH " + " ".join(options))

        return " ".join(sql_parts) + ";"

    def __repr__(self) -> str:
        return f"DatabaseCreateQueryProvider(database={self.database_name!r})"


class DatabaseDropQueryProvider(QueryProvider):
    """DROP DATABASE [IF EXISTS] name; not available on SQLite."""

    def __init__(self):
        super().__init__()
        self.database_name: Optional[str] = None
        self.methode: DeleteMethode = DeleteMethode.DEFAULT

    def compatibility(self, driver: Optional[DriverType]) -> bool:
        return driver is not DriverType.SQLITE

    def database(self, name: str) -> 'DatabaseDropQueryProvider':
        self.database_name = name
        return self

    def delete_methode(self, methode: DeleteMethode) -> 'DatabaseDropQueryProvider':
        self.methode = methode or DeleteMethode.DEFAULT
        return self

    def _build(self, driver: Optional[DriverType], params: List[Any]) -> str:
        require_value(self.database_name, "database name")
        unsupported_driver(driver, DriverType.SQLITE, feature="DROP DATABASE")
        if_exists = "IF EXISTS " if self.methode is DeleteMethode.IF_EXISTS else ""
        return f"DROP DATABASE {if_exists}{self.database_name};"

    def __repr__(self) -> str:
        return f"DatabaseDropQueryProvider(database={self.database_name!r})"


# =============================================================================
# TABLE
# =============================================================================

class TableCreateQueryProvider(QueryProvider):
    """CREATE [TEMPORARY] TABLE [IF NOT EXISTS] name (columns, constraints) [options].

    Columns added through column(..., column_type=ColumnType.PRIMARY_KEY)
    are collected into one PRIMARY KEY (...) clause after the column list.
    When more than one column carries a primary key role the inline roles
    are dropped in favour of a single composite key.
    """

    def __init__(self):
        super().__init__()
        self.table_name: Optional[str] = None
        self.columns: List[Column] = []
        self.constraints: List[TableConstraint] = []
        self.primary_keys: List[str] = []
        self.methode: CreateMethode = CreateMethode.DEFAULT
        self.is_temporary: bool = False
        self.table_engine: Optional[str] = None
        self.table_comment: Optional[str] = None
        self.raw_table_options: Optional[str] = None
        self._deferred: List[QueryProvider] = []

    def table(self, table: str) -> 'TableCreateQueryProvider':
        self.table_name = table
        return self

    def create_methode(self, methode: CreateMethode) -> 'TableCreateQueryProvider':
        self.methode = methode or CreateMethode.DEFAULT
        return self

    def temporary(self, temporary: bool = True) -> 'TableCreateQueryProvider':
        self.is_temporary = temporary
        return self

    def engine(self, engine: Optional[str]) -> 'TableCreateQueryProvider':
        self.table_engine = engine
        return self

    def comment(self, comment: Optional[str]) -> 'TableCreateQueryProvider':
        self.table_comment = comment
        return self

    def table_options(self, options: Optional[str]) -> 'TableCreateQueryProvider':
        """Raw trailing table options; replaces engine() and comment()."""
        self.raw_table_options = options
        return self

    def column(
        self,
        key: Any,
        data_type: Optional[DataType] = None,
        parameter: Any = None,
        column_type: ColumnType = ColumnType.DEFAULT,
        not_null: bool = False,
        unsigned: bool = False,
        default_value: Any = None
    ) -> 'TableCreateQueryProvider':
        """Add a Column object or build one from the arguments."""
        if isinstance(key, Column):
            self.columns.append(key)
            return self
        require_value(data_type, "data type")
        if column_type is ColumnType.PRIMARY_KEY:
            self.primary_keys.append(key)
            column_type = ColumnType.DEFAULT
        self.columns.append(Column(key, data_type, parameter, column_type, default_value, not_null, unsigned))
        return self

    def primary_key(self, columns: Sequence[str], name: Optional[str] = None) -> 'TableCreateQueryProvider':
        self.constraints.append(PrimaryKeyConstraint(columns, name))
        return self

    def unique(self, columns: Sequence[str], name: Optional[str] = None) -> 'TableCreateQueryProvider':
        self.constraints.append(UniqueConstraint(columns, name))
        return self

    def check(self, expression: str, name: Optional[str] = None) -> 'TableCreateQueryProvider':
        self.constraints.append(CheckConstraint(expression, name))
        return self

    def foreign_key(
        self,
        columns: Sequence[str],
        referenced_table: str,
        referenced_columns: Sequence[str],
        on_delete: Optional[ReferentialAction] = None,
        on_update: Optional[ReferentialAction] = None,
        name: Optional[str] = None
    ) -> 'TableCreateQueryProvider':
        self.constraints.append(
            ForeignKeyConstraint(columns, referenced_table, referenced_columns, on_delete, on_update, name)
        )
        return self

    def index(self, columns: Sequence[str], unique: bool = False, name: Optional[str] = None) -> 'TableCreateQueryProvider':
        self.constraints.append(IndexConstraint(columns, unique, name))
        return self

    def constraint(self, constraint: TableConstraint) -> 'TableCreateQueryProvider':
        self.constraints.append(constraint)
        return self

    def deferred_statements(self) -> List[QueryProvider]:
        """CREATE INDEX statements for index constraints of the last render."""
        return list(self._deferred)

    def _column_definitions(self, driver: Optional[DriverType]) -> List[str]:
        inline_keys = [column.key for column in self.columns if column.column_type.is_primary_key]
        composite = bool(self.primary_keys) or len(inline_keys) > 1

        definitions = []
        for column in self.columns:
            if composite and column.column_type.is_primary_key:
                if column.column_type is ColumnType.PRIMARY_KEY_AUTOINCREMENT:
                    logger.warning(
                        f"Column '{column.key}' loses AUTOINCREMENT inside the composite "
                        f"primary key of table '{self.table_name}'"
                    )
                column = copy.copy(column)
                column.column_type = ColumnType.DEFAULT
            definitions.append(column.to_sql(driver))

        if composite:
            # table column order, then explicit keys that name no column
            keys = [
                column.key for column in self.columns
                if column.column_type.is_primary_key or column.key in self.primary_keys
            ]
            keys.extend(key for key in self.primary_keys if key not in keys)
            definitions.append(f"PRIMARY KEY ({', '.join(keys)})")
        return definitions

    def _table_options(self, driver: Optional[DriverType]) -> Optional[str]:
        if self.raw_table_options and self.raw_table_options.strip():
            return self.raw_table_options.strip()

        options = []
        if self.table_engine and self.table_engine.strip():
            require_driver(driver, DriverType.MYSQL, DriverType.MARIADB, feature="ENGINE")
            options.append(f"ENGINE={self.table_engine.strip()}")
        if self.table_comment and self.table_comment.strip():
            require_driver(driver, DriverType.MYSQL, DriverType.MARIADB, feature="COMMENT")
            options.append(f"COMMENT='{escape_sql(self.table_comment)}'")
        return " ".join(options) if options else None

    def _build(self, driver: Optional[DriverType], params: List[Any]) -> str:
        require_value(self.table_name, "table name")
        require_value(self.columns, "columns")
        self._deferred = []

        sql_parts = ["CREATE"]
        if self.is_temporary:
            missing_driver(driver)
            sql_parts.append("TEMPORARY")
        sql_parts.append("TABLE")
        if self.methode is CreateMethode.IF_NOT_EXISTS:
            sql_parts.append("IF NOT EXISTS")
        sql_parts.append(self.table_name)

        definitions = self._column_definitions(driver)
        for constraint in self.constraints:
            if isinstance(constraint, IndexConstraint):
                missing_driver(driver)
                if driver.is_mysql_family:
                    definitions.append(constraint.inline_sql(self.table_name))
                else:
                    self._deferred.append(self._deferred_index(constraint))
                continue
            definitions.append(constraint.to_sql(driver))

        sql = " ".join(sql_parts) + f" ({', '.join(definitions)})"

        options = self._table_options(driver)
        if options:
            sql += f" {options}"
        return sql + ";"

    def _deferred_index(self, constraint: IndexConstraint) -> 'CreateIndexQueryProvider':
        provider = (
            CreateIndexQueryProvider()
            .table(self.table_name)
            .index_name(constraint.index_name(self.table_name))
            .index_type(IndexType.UNIQUE if constraint.unique else IndexType.NORMAL)
            .if_not_exists(True)
        )
        for column in require_value(constraint.columns, "index columns"):
            provider.column(column)
        return provider

    def __repr__(self) -> str:
        return f"TableCreateQueryProvider(table={self.table_name!r}, columns={len(self.columns)})"


class TableDropQueryProvider(QueryProvider):
    """DROP [TEMPORARY] TABLE [IF EXISTS] t1[, t2] [CASCADE|RESTRICT]."""

    def __init__(self):
        super().__init__()
        self.tables: List[str] = []
        self.methode: DeleteMethode = DeleteMethode.DEFAULT
        self.is_temporary: bool = False
        self.behaviour: DropBehaviour = DropBehaviour.NONE

    def compatibility(self, driver: Optional[DriverType]) -> bool:
        return not (driver is DriverType.SQLITE and len(self.tables) > 1)

    def table(self, *tables: str) -> 'TableDropQueryProvider':
        self.tables.extend(tables)
        return self

    def delete_methode(self, methode: DeleteMethode) -> 'TableDropQueryProvider':
        self.methode = methode or DeleteMethode.DEFAULT
        return self

    def temporary(self, temporary: bool = True) -> 'TableDropQueryProvider':
        self.is_temporary = temporary
        return self

    def drop_behaviour(self, behaviour: DropBehaviour) -> 'TableDropQueryProvider':
        self.behaviour = behaviour or DropBehaviour.NONE
        return self

    def _build(self, driver: Optional[DriverType], params: List[Any]) -> str:
        require_value(self.tables, "tables")
        for table in self.tables:
            require_value(table, "table")

        sql_parts = ["DROP"]
        if self.is_temporary:
            require_driver(driver, DriverType.MYSQL, DriverType.MARIADB, feature="DROP TEMPORARY TABLE")
            sql_parts.append("TEMPORARY")
        sql_parts.append("TABLE")
        if self.methode is DeleteMethode.IF_EXISTS:
            sql_parts.append("IF EXISTS")
        if len(self.tables) > 1:
            unsupported_driver(driver, DriverType.SQLITE, feature="dropping multiple tables")
        sql_parts.append(", ".join(self.tables))
        if self.behaviour is not DropBehaviour.NONE:
            require_driver(driver, DriverType.POSTGRESQL, feature=self.behaviour.value)
            sql_parts.append(self.behaviour.value)
        return " ".join(sql_parts) + ";"

    def __repr__(self) -> str:
        return f"TableDropQueryProvider(tables={self.tables!r})"


class TruncateQueryProvider(QueryProvider):
    """TRUNCATE TABLE t [RESTART|CONTINUE IDENTITY] [CASCADE|RESTRICT]; not on SQLite."""

    def __init__(self):
        super().__init__()
        self.table_name: Optional[str] = None
        self.identity: IdentityBehaviour = IdentityBehaviour.NONE
        self.behaviour: DropBehaviour = DropBehaviour.NONE

    def compatibility(self, driver: Optional[DriverType]) -> bool:
        return driver is not DriverType.SQLITE

    def table(self, table: str) -> 'TruncateQueryProvider':
        self.table_name = table
        return self

    def identity_behaviour(self, identity: IdentityBehaviour) -> 'TruncateQueryProvider':
        self.identity = identity or IdentityBehaviour.NONE
        return self

    def drop_behaviour(self, behaviour: DropBehaviour) -> 'TruncateQueryProvider':
        self.behaviour = behaviour or DropBehaviour.NONE
        return self

    def _build(self, driver: Optional[DriverType], params: List[Any]) -> str:
        require_value(self.table_name, "table name")
        unsupported_driver(driver, DriverType.SQLITE, feature="TRUNCATE")

        sql_parts = ["TRUNCATE TABLE", self.table_name]
        if driver.is_mysql_family:
            if self.identity is not IdentityBehaviour.NONE or self.behaviour is not DropBehaviour.NONE:
                raise FeatureNotSupportedError(driver, "TRUNCATE identity or cascade options")
        else:
            if self.identity is not IdentityBehaviour.NONE:
                sql_parts.append(f"{self.identity.value} IDENTITY")
            if self.behaviour is not DropBehaviour.NONE:
                sql_parts.append(self.behaviour.value)
        return " ".join(sql_parts) + ";"

    def __repr__(self) -> str:
        return f"TruncateQueryProvider(table={self.table_name!r})"


# =============================================================================
# ALTER TABLE
# =============================================================================

class TableAlterQueryProvider(QueryProvider):
    """Shared 'ALTER TABLE <table> <action>;' wrapper.

    Subclasses implement _alter_action(driver, params).
    """

    def __init__(self):
        super().__init__()
        self.table_name: Optional[str] = None

    def table(self, table: str):
        self.table_name = table
        return self

    def _alter_action(self, driver: Optional[DriverType], params: List[Any]) -> str:
        raise NotImplementedError

    def _build(self, driver: Optional[DriverType], params: List[Any]) -> str:
        require_value(self.table_name, "table name")
        return f"ALTER TABLE {self.table_name} {self._alter_action(driver, params)};"

    def __repr__(self) -> str:
        return f"{type(self).__name__}(table={self.table_name!r})"


class TableAlterAddColumnQueryProvider(TableAlterQueryProvider):
    """ADD COLUMN [IF NOT EXISTS] <definition> [FIRST|AFTER col]."""

    def __init__(self):
        super().__init__()
        self.new_column: Optional[Column] = None
        self.methode: CreateMethode = CreateMethode.DEFAULT
        self.column_position: ColumnPosition = ColumnPosition.DEFAULT
        self.after_column_name: Optional[str] = None

    def column(
        self,
        key: Any,
        data_type: Optional[DataType] = None,
        parameter: Any = None,
        column_type: ColumnType = ColumnType.DEFAULT,
        not_null: bool = False,
        unsigned: bool = False,
        default_value: Any = None
    ) -> 'TableAlterAddColumnQueryProvider':
        if isinstance(key, Column):
            self.new_column = key
        else:
            self.new_column = Column(key, data_type, parameter, column_type, default_value, not_null, unsigned)
        return self

    def create_methode(self, methode: CreateMethode) -> 'TableAlterAddColumnQueryProvider':
        self.methode = methode or CreateMethode.DEFAULT
        return self

    def position(self, position: ColumnPosition, after_column: Optional[str] = None) -> 'TableAlterAddColumnQueryProvider':
        self.column_position = position or ColumnPosition.DEFAULT
        if after_column is not None:
            self.after_column_name = after_column
        return self

    def after_column(self, column: str) -> 'TableAlterAddColumnQueryProvider':
        return self.position(ColumnPosition.AFTER, column)

    def _alter_action(self, driver: Optional[DriverType], params: List[Any]) -> str:
        require_value(self.new_column, "column")
        missing_driver(driver)

        sql = "ADD COLUMN "
        if self.methode is CreateMethode.IF_NOT_EXISTS:
            require_driver(driver, DriverType.MARIADB, DriverType.POSTGRESQL, feature="ADD COLUMN IF NOT EXISTS")
            sql += "IF NOT EXISTS "
        sql += self.new_column.to_sql(driver)

        if self.column_position is ColumnPosition.FIRST:
            require_driver(driver, DriverType.MYSQL, DriverType.MARIADB, feature="FIRST")
            sql += " FIRST"
        elif self.column_position is ColumnPosition.AFTER:
            require_value(self.after_column_name, "after column name")
            require_driver(driver, DriverType.MYSQL, DriverType.MARIADB, feature="AFTER")
            sql += f" AFTER {self.after_column_name}"
        return sql


class TableAlterAddAttributeQueryProvider(TableAlterQueryProvider):
    """ADD [CONSTRAINT name] UNIQUE|PRIMARY KEY (cols); not on SQLite."""

    def __init__(self):
        super().__init__()
        self.column_names: List[str] = []
        self.attribute: Optional[AttributeType] = None
        self.constraint: Optional[str] = None

    def compatibility(self, driver: Optional[DriverType]) -> bool:
        return driver is not DriverType.SQLITE

    def column_name(self, *columns: str) -> 'TableAlterAddAttributeQueryProvider':
        self.column_names.extend(columns)
        return self

    def attribute_type(self, attribute: AttributeType) -> 'TableAlterAddAttributeQueryProvider':
        self.attribute = attribute
        return self

    def constraint_name(self, name: Optional[str]) -> 'TableAlterAddAttributeQueryProvider':
        self.constraint = name
        return self

    def _alter_action(self, driver: Optional[DriverType], params: List[Any]) -> str:
        require_value(self.column_names, "column name")
        require_value(self.attribute, "attribute type")
        unsupported_driver(driver, DriverType.SQLITE, feature="ALTER TABLE ADD constraint")

        sql = "ADD "
        if self.constraint:
            require_driver(driver, DriverType.POSTGRESQL, feature="named constraint")
            sql += f"CONSTRAINT {self.constraint} "
        return sql + f"{self.attribute.value} ({', '.join(self.column_names)})"


class TableAlterDropColumnQueryProvider(TableAlterQueryProvider):
    """DROP COLUMN name | DROP INDEX name | DROP PRIMARY KEY; not on SQLite."""

    def __init__(self):
        super().__init__()
        self.type: Optional[DropType] = None
        self.object_name: Optional[str] = None

    def compatibility(self, driver: Optional[DriverType]) -> bool:
        return driver is not DriverType.SQLITE

    def drop_type(self, drop_type: DropType) -> 'TableAlterDropColumnQueryProvider':
        self.type = drop_type
        return self

    def drop_object_name(self, name: str) -> 'TableAlterDropColumnQueryProvider':
        self.object_name = name
        return self

    def _alter_action(self, driver: Optional[DriverType], params: List[Any]) -> str:
        require_value(self.type, "drop type")
        unsupported_driver(driver, DriverType.SQLITE, feature="ALTER TABLE DROP")

        if self.type is DropType.PRIMARY_KEY:
            require_driver(driver, DriverType.MYSQL, DriverType.MARIADB, feature="DROP PRIMARY KEY")
            return "DROP PRIMARY KEY"

        require_value(self.object_name, "drop object name")
        if self.type is DropType.INDEX:
            require_driver(driver, DriverType.MYSQL, DriverType.MARIADB, feature="ALTER TABLE DROP INDEX")
            return f"DROP INDEX {self.object_name}"
        return f"DROP COLUMN {self.object_name}"


class TableAlterModifyTypeQueryProvider(TableAlterQueryProvider):
    """Change a column type.

    MySQL/MariaDB: MODIFY COLUMN c TYPE. PostgreSQL: ALTER COLUMN c TYPE t
    [USING expr]. SQLite cannot change column types.
    """

    def __init__(self):
        super().__init__()
        self.column: Optional[str] = None
        self.data_type: Optional[DataType] = None
        self.data_type_parameter: Any = None
        self.is_unsigned: bool = False
        self.using_expression: Optional[str] = None

    def compatibility(self, driver: Optional[DriverType]) -> bool:
        return driver is not DriverType.SQLITE

    def column_name(self, column: str) -> 'TableAlterModifyTypeQueryProvider':
        self.column = column
        return self

    def type(self, data_type: DataType, parameter: Any = None) -> 'TableAlterModifyTypeQueryProvider':
        self.data_type = data_type
        self.data_type_parameter = parameter
        return self

    def unsigned(self, unsigned: bool = True) -> 'TableAlterModifyTypeQueryProvider':
        self.is_unsigned = unsigned
        return self

    def using(self, expression: Optional[str]) -> 'TableAlterModifyTypeQueryProvider':
        """PostgreSQL USING expression converting existing values."""
        self.using_expression = expression
        return self

    def _alter_action(self, driver: Optional[DriverType], params: List[Any]) -> str:
        require_value(self.column, "column name")
        require_value(self.data_type, "data type")
        unsupported_driver(driver, DriverType.SQLITE, feature="changing a column type")

        type_sql = self.data_type.to_sql(self.data_type_parameter, self.is_unsigned, driver)
        if driver.is_mysql_family:
            if self.using_expression:
                raise FeatureNotSupportedError(driver, "USING")
            return f"MODIFY COLUMN {self.column} {type_sql}"

        sql = f"ALTER COLUMN {self.column} TYPE {type_sql}"
        if self.using_expression and self.using_expression.strip():
            sql += f" USING {self.using_expression}"
        return sql


class TableAlterColumnDefaultValueQueryProvider(TableAlterQueryProvider):
    """ALTER COLUMN c SET DEFAULT <literal> | ALTER COLUMN c DROP DEFAULT."""

    def __init__(self):
        super().__init__()
        self.column: Optional[str] = None
        self.action: Optional[ActionType] = None
        self.value: Any = None

    def compatibility(self, driver: Optional[DriverType]) -> bool:
        return driver is not DriverType.SQLITE

    def column_name(self, column: str) -> 'TableAlterColumnDefaultValueQueryProvider':
        self.column = column
        return self

    def action_type(self, action: ActionType) -> 'TableAlterColumnDefaultValueQueryProvider':
        self.action = action
        return self

    def default_value(self, value: Any) -> 'TableAlterColumnDefaultValueQueryProvider':
        """Set the DEFAULT; use sql.values.null() for NULL and raw() for expressions."""
        self.value = value
        return self

    def _alter_action(self, driver: Optional[DriverType], params: List[Any]) -> str:
        require_value(self.column, "column name")
        require_value(self.action, "action")
        unsupported_driver(driver, DriverType.SQLITE, feature="ALTER COLUMN DEFAULT")

        if self.action is ActionType.DROP:
            return f"ALTER COLUMN {self.column} DROP DEFAULT"
        require_value(self.value, "default value")
        return f"ALTER COLUMN {self.column} SET DEFAULT {format_literal(self.value)}"


class TableAlterRenameQueryProvider(TableAlterQueryProvider):
    """RENAME TO new_name."""

    def __init__(self):
        super().__init__()
        self.new_name: Optional[str] = None

    def new_table_name(self, name: str) -> 'TableAlterRenameQueryProvider':
        self.new_name = name
        return self

    def _alter_action(self, driver: Optional[DriverType], params: List[Any]) -> str:
        require_value(self.new_name, "new table name")
        return f"RENAME TO {self.new_name}"


class TableAlterForeignKeyQueryProvider(TableAlterQueryProvider):
    """ADD or DROP a foreign key constraint; not on SQLite.

    DEFERRABLE and INITIALLY clauses are PostgreSQL only.
    """

    def __init__(self):
        super().__init__()
        self.action: Optional[ActionType] = None
        self.constraint: Optional[str] = None
        self.columns: List[str] = []
        self.referenced: Optional[str] = None
        self.referenced_column_names: List[str] = []
        self.delete_action: Optional[ReferentialAction] = None
        self.update_action: Optional[ReferentialAction] = None
        self.deferrable_type: Optional[DeferrableType] = None
        self.initially: Optional[InitiallyDeferrable] = None

    def compatibility(self, driver: Optional[DriverType]) -> bool:
        return driver is not DriverType.SQLITE

    def action_type(self, action: ActionType) -> 'TableAlterForeignKeyQueryProvider':
        self.action = action
        return self

    def constraint_name(self, name: str) -> 'TableAlterForeignKeyQueryProvider':
        self.constraint = name
        return self

    def column(self, *columns: str) -> 'TableAlterForeignKeyQueryProvider':
        self.columns.extend(columns)
        return self

    def referenced_table(self, table: str) -> 'TableAlterForeignKeyQueryProvider':
        self.referenced = table
        return self

    def referenced_column(self, *columns: str) -> 'TableAlterForeignKeyQueryProvider':
        self.referenced_column_names.extend(columns)
        return self

    def on_delete(self, action: ReferentialAction) -> 'TableAlterForeignKeyQueryProvider':
        self.delete_action = action
        return self

    def on_update(self, action: ReferentialAction) -> 'TableAlterForeignKeyQueryProvider':
        self.update_action = action
        return self

    def deferrable(self, deferrable: DeferrableType) -> 'TableAlterForeignKeyQueryProvider':
        self.deferrable_type = deferrable
        return self

    def initially_deferred(self, initially: InitiallyDeferrable) -> 'TableAlterForeignKeyQueryProvider':
        self.initially = initially
        return self

    def _alter_action(self, driver: Optional[DriverType], params: List[Any]) -> str:
        require_value(self.action, "action")
        unsupported_driver(driver, DriverType.SQLITE, feature="ALTER TABLE foreign key")

        if self.action is ActionType.DROP:
            require_value(self.constraint, "constraint name")
            if driver.is_mysql_family:
                return f"DROP FOREIGN KEY {self.constraint}"
            return f"DROP CONSTRAINT {self.constraint}"

        foreign_key = ForeignKeyConstraint(
            self.columns, self.referenced, self.referenced_column_names,
            self.delete_action, self.update_action, self.constraint
        )
        sql = f"ADD {foreign_key.to_sql(driver)}"

        deferrable = self.deferrable_type not in (None, DeferrableType.NO)
        initially = self.initially not in (None, InitiallyDeferrable.NO)
        if deferrable or initially:
            require_driver(driver, DriverType.POSTGRESQL, feature="DEFERRABLE")
        if deferrable:
            sql += f" {self.deferrable_type.value}"
        if initially:
            sql += f" {self.initially.value}"
        return sql


# =============================================================================
# INDEX
# =============================================================================

@dataclass
class IndexColumn:
    """One indexed column or expression.

    Attributes:
        expression: Column name or expression
        direction: Optional sort direction
        length: Optional prefix length (MySQL/MariaDB only)
    """

    expression: str
    direction: Optional[Direction] = None
    length: Optional[int] = None

    def to_sql(self, driver: DriverType) -> str:
        sql = require_value(self.expression, "index column")
        if self.length is not None:
            require_driver(driver, DriverType.MYSQL, DriverType.MARIADB, feature="index prefix length")
            sql += f"({self.length})"
        if self.direction is not None:
            sql += f" {self.direction.value}"
        return sql


class CreateIndexQueryProvider(QueryProvider):
    """CREATE [UNIQUE|FULLTEXT|SPATIAL] INDEX [CONCURRENTLY] [IF NOT EXISTS] name ON table ...

    The index name defaults to idx_<table>_<columns>. A partial index WHERE
    clause is rendered with literal values because index predicates cannot
    take parameters.
    """

    def __init__(self):
        super().__init__()
        self.table_name: Optional[str] = None
        self.name: Optional[str] = None
        self.table_schema: Optional[str] = None
        self.type: IndexType = IndexType.NORMAL
        self.index_method: Optional[IndexMethod] = None
        self.columns: List[IndexColumn] = []
        self.include: List[str] = []
        self.where_conditions: List[Condition] = []
        self.is_concurrent: bool = False
        self.create_if_not_exists: bool = False

    def table(self, table: str) -> 'CreateIndexQueryProvider':
        self.table_name = table
        return self

    def schema(self, schema: Optional[str]) -> 'CreateIndexQueryProvider':
        self.table_schema = schema
        return self

    def index_name(self, name: str) -> 'CreateIndexQueryProvider':
        self.name = name
        return self

    def index_type(self, index_type: IndexType) -> 'CreateIndexQueryProvider':
        self.type = index_type or IndexType.NORMAL
        return self

    def method(self, method: Optional[IndexMethod]) -> 'CreateIndexQueryProvider':
        self.index_method = method
        return self

    def column(
        self,
        expression: Any,
        direction: Optional[Direction] = None,
        length: Optional[int] = None
    ) -> 'CreateIndexQueryProvider':
        if isinstance(expression, IndexColumn):
            self.columns.append(expression)
        else:
            self.columns.append(IndexColumn(expression, direction, length))
        return self

    def include_columns(self, columns: Iterable[str]) -> 'CreateIndexQueryProvider':
        self.include = list(columns)
        return self

    def where(self, key: Any, *args: Any) -> 'CreateIndexQueryProvider':
        """Add a partial-index condition; same call forms as build_condition()."""
        self.where_conditions.append(build_condition(key, *args))
        return self

    def concurrently(self, concurrently: bool = True) -> 'CreateIndexQueryProvider':
        self.is_concurrent = concurrently
        return self

    def if_not_exists(self, if_not_exists: bool = True) -> 'CreateIndexQueryProvider':
        self.create_if_not_exists = if_not_exists
        return self

    def _default_name(self) -> str:
        return f"idx_{self.table_name}_{'_'.join(column.expression for column in self.columns)}"

    def _build(self, driver: Optional[DriverType], params: List[Any]) -> str:
        require_value(self.table_name, "table")
        require_value(self.columns, "columns")
        missing_driver(driver)

        sql_parts = ["CREATE"]
        if self.type is IndexType.UNIQUE:
            sql_parts.append("UNIQUE")
        elif self.type in (IndexType.FULLTEXT, IndexType.SPATIAL):
            require_driver(driver, DriverType.MYSQL, DriverType.MARIADB, feature=f"{self.type.value} index")
            sql_parts.append(self.type.value)
        sql_parts.append("INDEX")

        if self.is_concurrent:
            require_driver(driver, DriverType.POSTGRESQL, feature="CONCURRENTLY")
            sql_parts.append("CONCURRENTLY")
        if self.create_if_not_exists:
            if driver is DriverType.MYSQL:
                raise FeatureNotSupportedError(driver, "CREATE INDEX IF NOT EXISTS")
            sql_parts.append("IF NOT EXISTS")

        name = self.name or self._default_name()
        if self.table_schema and driver is DriverType.SQLITE:
            sql_parts.append(f"{self.table_schema}.{name} ON {self.table_name}")
        elif self.table_schema:
            sql_parts.append(f"{name} ON {self.table_schema}.{self.table_name}")
        else:
            sql_parts.append(f"{name} ON {self.table_name}")

        using = None
        if self.index_method is not None:
            if driver is DriverType.POSTGRESQL:
                sql_parts.append(f"USING {self.index_method.value.lower()}")
            elif driver.is_mysql_family and self.index_method in (IndexMethod.BTREE, IndexMethod.HASH):
                using = f"USING {self.index_method.value}"
            else:
                raise FeatureNotSupportedError(driver, f"index method {self.index_method.value}")

        sql_parts.append(f"({', '.join(column.to_sql(driver) for column in self.columns)})")
        if using:
            sql_parts.append(using)

        if self.include:
            require_driver(driver, DriverType.POSTGRESQL, feature="INCLUDE")
            sql_parts.append(f"INCLUDE ({', '.join(self.include)})")

        if self.where_conditions:
            require_driver(driver, DriverType.POSTGRESQL, DriverType.SQLITE, feature="partial index")
            sql_parts.append(f"WHERE {render_conditions_inline(self.where_conditions)}")

        return " ".join(sql_parts) + ";"

    def __repr__(self) -> str:
        return f"CreateIndexQueryProvider(table={self.table_name!r}, name={self.name!r})"


class DropIndexQueryProvider(QueryProvider):
    """DROP INDEX.

    MySQL/MariaDB need the table and drop one index per statement. SQLite
    drops one index per statement. PostgreSQL drops several at once and
    supports CONCURRENTLY and CASCADE/RESTRICT.
    """

    def __init__(self):
        super().__init__()
        self.index_names: List[str] = []
        self.table_name: Optional[str] = None
        self.index_schema: Optional[str] = None
        self.drop_if_exists: bool = False
        self.is_concurrent: bool = False
        self.behaviour: DropBehaviour = DropBehaviour.NONE

    def index(self, *names: str) -> 'DropIndexQueryProvider':
        self.index_names.extend(names)
        return self

    def table(self, table: str) -> 'DropIndexQueryProvider':
        self.table_name = table
        return self

    def schema(self, schema: Optional[str]) -> 'DropIndexQueryProvider':
        self.index_schema = schema
        return self

    def if_exists(self, if_exists: bool = True) -> 'DropIndexQueryProvider':
        self.drop_if_exists = if_exists
        return self

    def concurrently(self, concurrently: bool = True) -> 'DropIndexQueryProvider':
        self.is_concurrent = concurrently
        return self

    def cascade(self, behaviour: DropBehaviour = DropBehaviour.CASCADE) -> 'DropIndexQueryProvider':
        self.behaviour = behaviour or DropBehaviour.NONE
        return self

    def _qualified(self, name: str) -> str:
        return f"{self.index_schema}.{name}" if self.index_schema else name

    def _build(self, driver: Optional[DriverType], params: List[Any]) -> str:
        require_value(self.index_names, "index names")
        missing_driver(driver)

        if self.is_concurrent:
            require_driver(driver, DriverType.POSTGRESQL, feature="CONCURRENTLY")
        if self.behaviour is not DropBehaviour.NONE:
            require_driver(driver, DriverType.POSTGRESQL, feature=self.behaviour.value)

        sql_parts = ["DROP INDEX"]
        if driver is DriverType.POSTGRESQL:
            if self.is_concurrent:
                sql_parts.append("CONCURRENTLY")
            if self.drop_if_exists:
                sql_parts.append("IF EXISTS")
            sql_parts.append(", ".join(self._qualified(name) for name in self.index_names))
            if self.behaviour is not DropBehaviour.NONE:
                sql_parts.append(self.behaviour.value)
            return " ".join(sql_parts) + ";"

        if len(self.index_names) != 1:
            raise ValueError(f"{driver.readable_name} can drop one index per statement")
        if self.drop_if_exists:
            if driver is DriverType.MYSQL:
                raise FeatureNotSupportedError(driver, "DROP INDEX IF EXISTS")
            sql_parts.append("IF EXISTS")

        if driver.is_mysql_family:
            require_value(self.table_name, "table")
            sql_parts.append(f"{self.index_names[0]} ON {self.table_name}")
        else:
            sql_parts.append(self._qualified(self.index_names[0]))
        return " ".join(sql_parts) + ";"

    def __repr__(self) -> str:
        return f"DropIndexQueryProvider(indexes={self.index_names!r})"
