"""
=====================================================
Column and table constraint model for DDL rendering.
=====================================================

Describes column definitions (name, data type, nullability, default, key
role) and table-level constraints (primary key, unique, foreign key,
check, index). Each object renders itself as a dialect-correct DDL
fragment for the driver passed in.

Classes:
    DataType: Column data types and their optional size parameter
    ColumnType: Key role of a column
    Column: A single column definition
    ReferentialAction: ON DELETE / ON UPDATE actions
    TableConstraint: Base class of all table constraints
    PrimaryKeyConstraint, UniqueConstraint, CheckConstraint,
    ForeignKeyConstraint, IndexConstraint: Constraint variants
    CharacterSet: MySQL character sets with PostgreSQL encoding mapping

Example:
    >>> from sql.driver import DriverType
    >>> from sql.schema import Column, ColumnType, DataType
    >>>
    >>> Column('id', DataType.INTEGER, column_type=ColumnType.PRIMARY_KEY_AUTOINCREMENT).to_sql(DriverType.MYSQL)
    'id INTEGER PRIMARY KEY AUTO_INCREMENT'
    >>> Column('name', DataType.VARCHAR, 64, not_null=True).to_sql(DriverType.SQLITE)
    'name VARCHAR(64) NOT NULL'
"""

import logging
from enum import Enum
from typing import Any, Optional, Sequence

from core.exceptions import FeatureNotSupportedError
from sql.driver import DriverType, missing_driver, require_value
from sql.values import format_literal

logger = logging.getLogger(__name__)

DEFAULT_VARCHAR_LENGTH = 255


class DataType(Enum):
    """Column data types.

    Each member is (sql name, can take a size parameter, requires one).
    """

    CHAR = ('CHAR', True, False)
    VARCHAR = ('VARCHAR', True, True)
    TEXT = ('TEXT', False, False)
    TINYTEXT = ('TINYTEXT', False, False)
    MEDIUMTEXT = ('MEDIUMTEXT', False, False)
    LONGTEXT = ('LONGTEXT', False, False)
    BOOLEAN = ('BOOLEAN', False, False)
    TINYINT = ('TINYINT', True, False)
    SMALLINT = ('SMALLINT', True, False)
    INTEGER = ('INTEGER', True, False)
    BIGINT = ('BIGINT', True, False)
    FLOAT = ('FLOAT', True, False)
    DOUBLE = ('DOUBLE', False, False)
    DECIMAL = ('DECIMAL', True, False)
    DATE = ('DATE', False, False)
    DATETIME = ('DATETIME', False, False)
    TIMESTAMP = ('TIMESTAMP', False, False)
    TIME = ('TIME', False, False)

    def __init__(self, sql_name: str, can_have_parameter: bool, requires_parameter: bool):
        self.sql_name = sql_name
        self.can_have_parameter = can_have_parameter
        self.requires_parameter = requires_parameter

    @property
    def is_integer(self) -> bool:
        return self in (DataType.TINYINT, DataType.SMALLINT, DataType.INTEGER, DataType.BIGINT)

    def to_sql(self, parameter: Any = None, unsigned: bool = False, driver: Optional[DriverType] = None) -> str:
        """Render the type, e.g. 'VARCHAR(64)' or 'INTEGER UNSIGNED'.

        VARCHAR without a parameter falls back to DEFAULT_VARCHAR_LENGTH.
        UNSIGNED is only accepted for MySQL and MariaDB. PostgreSQL gets its
        own spelling for the MySQL-only type names and ignores integer
        display widths.
        """
        if parameter is None and self.requires_parameter:
            parameter = DEFAULT_VARCHAR_LENGTH
        sql = self.sql_name
        if driver is DriverType.POSTGRESQL:
            sql = _POSTGRES_TYPE_NAMES.get(self, sql)
            if self.is_integer:
                parameter = None
        if self.can_have_parameter and parameter is not None:
            sql += f"({parameter})"
        if unsigned:
            if driver is not None and not driver.is_mysql_family:
                raise FeatureNotSupportedError(driver, "UNSIGNED")
            sql += " UNSIGNED"
        return sql


_POSTGRES_TYPE_NAMES = {
    DataType.TINYTEXT: 'TEXT',
    DataType.MEDIUMTEXT: 'TEXT',
    DataType.LONGTEXT: 'TEXT',
    DataType.TINYINT: 'SMALLINT',
    DataType.DOUBLE: 'DOUBLE PRECISION',
    DataType.DATETIME: 'TIMESTAMP',
}


class ColumnType(Enum):
    """Key role of a column inside CREATE TABLE."""

    DEFAULT = 'DEFAULT'
    PRIMARY_KEY = 'PRIMARY_KEY'
    PRIMARY_KEY_AUTOINCREMENT = 'PRIMARY_KEY_AUTOINCREMENT'
    UNIQUE = 'UNIQUE'

    @property
    def is_primary_key(self) -> bool:
        return self in (ColumnType.PRIMARY_KEY, ColumnType.PRIMARY_KEY_AUTOINCREMENT)

    def to_sql(self, driver: Optional[DriverType]) -> str:
        if self is ColumnType.PRIMARY_KEY_AUTOINCREMENT:
            if driver is not None and driver.is_mysql_family:
                return "PRIMARY KEY AUTO_INCREMENT"
            if driver is DriverType.SQLITE:
                return "PRIMARY KEY AUTOINCREMENT"
            if driver is DriverType.POSTGRESQL:
                return "GENERATED BY DEFAULT AS IDENTITY PRIMARY KEY"
        return self.value.replace('_', ' ')


class Column:
    """A column definition.

    Attributes:
        key: Column name
        data_type: DataType of the column
        parameter: Optional size parameter (e.g. VARCHAR length, '10,2' for DECIMAL)
        column_type: Key role (DEFAULT, PRIMARY_KEY, PRIMARY_KEY_AUTOINCREMENT, UNIQUE)
        default_value: Optional DEFAULT literal; use sql.values.raw() for expressions
        not_null: Render NOT NULL
        unsigned: Render UNSIGNED (MySQL/MariaDB only)
    """

    def __init__(
        self,
        key: str,
        data_type: DataType,
        parameter: Any = None,
        column_type: ColumnType = ColumnType.DEFAULT,
        default_value: Any = None,
        not_null: bool = False,
        unsigned: bool = False
    ):
        self.key = key
        self.data_type = data_type
        self.parameter = parameter
        self.column_type = column_type or ColumnType.DEFAULT
        self.default_value = default_value
        self.not_null = not_null
        self.unsigned = unsigned

    def _effective_column_type(self, driver: Optional[DriverType]) -> ColumnType:
        if self.column_type is not ColumnType.PRIMARY_KEY_AUTOINCREMENT or driver is None:
            return self.column_type
        if driver is DriverType.SQLITE:
            allowed = self.data_type is DataType.INTEGER
        else:
            allowed = self.data_type.is_integer
        if not allowed:
            logger.error(
                f"Cannot set autoincrement on non-integer column '{self.key}' "
                f"({self.data_type.sql_name}); using plain PRIMARY KEY"
            )
            return ColumnType.PRIMARY_KEY
        return self.column_type

    def to_sql(self, driver: Optional[DriverType]) -> str:
        """Render `key TYPE[ NOT NULL][ key role][ DEFAULT literal]`."""
        require_value(self.key, "column key")
        require_value(self.data_type, "data type")

        sql = f"{self.key} {self.data_type.to_sql(self.parameter, self.unsigned, driver)}"
        if self.not_null:
            sql += " NOT NULL"

        column_type = self._effective_column_type(driver)
        if column_type is not ColumnType.DEFAULT:
            sql += f" {column_type.to_sql(driver)}"

        if self.default_value is not None:
            sql += f" DEFAULT {format_literal(self.default_value)}"
        return sql

    def __repr__(self) -> str:
        return f"Column({self.key!r}, {self.data_type.name}, {self.parameter!r}, {self.column_type.name})"


class ReferentialAction(Enum):
    """ON DELETE / ON UPDATE actions."""

    CASCADE = 'CASCADE'
    RESTRICT = 'RESTRICT'
    SET_NULL = 'SET NULL'
    SET_DEFAULT = 'SET DEFAULT'
    NO_ACTION = 'NO ACTION'


class TableConstraint:
    """Base class for table-level constraints.

    Subclasses implement body(driver); to_sql() adds the optional
    'CONSTRAINT name' prefix.
    """

    def __init__(self, name: Optional[str] = None):
        self.name = name

    def body(self, driver: Optional[DriverType]) -> str:
        raise NotImplementedError

    def to_sql(self, driver: Optional[DriverType]) -> str:
        if self.name:
            return f"CONSTRAINT {self.name} {self.body(driver)}"
        return self.body(driver)


class PrimaryKeyConstraint(TableConstraint):

    def __init__(self, columns: Sequence[str], name: Optional[str] = None):
        super().__init__(name)
        self.columns = list(columns)

    def body(self, driver: Optional[DriverType]) -> str:
        require_value(self.columns, "primary key columns")
        return f"PRIMARY KEY ({', '.join(self.columns)})"


class UniqueConstraint(TableConstraint):

    def __init__(self, columns: Sequence[str], name: Optional[str] = None):
        super().__init__(name)
        self.columns = list(columns)

    def body(self, driver: Optional[DriverType]) -> str:
        require_value(self.columns, "unique columns")
        return f"UNIQUE ({', '.join(self.columns)})"


class CheckConstraint(TableConstraint):

    def __init__(self, expression: str, name: Optional[str] = None):
        super().__init__(name)
        self.expression = expression

    def body(self, driver: Optional[DriverType]) -> str:
        require_value(self.expression, "check expression")
        return f"CHECK ({self.expression})"


class ForeignKeyConstraint(TableConstraint):
    """FOREIGN KEY (cols) REFERENCES table (cols) [ON DELETE a] [ON UPDATE b]."""

    def __init__(
        self,
        columns: Sequence[str],
        referenced_table: str,
        referenced_columns: Sequence[str],
        on_delete: Optional[ReferentialAction] = None,
        on_update: Optional[ReferentialAction] = None,
        name: Optional[str] = None
    ):
        super().__init__(name)
        self.columns = list(columns)
        self.referenced_table = referenced_table
        self.referenced_columns = list(referenced_columns)
        self.on_delete = on_delete
        self.on_update = on_update

    def body(self, driver: Optional[DriverType]) -> str:
        require_value(self.columns, "foreign key columns")
        require_value(self.referenced_table, "referenced table")
        require_value(self.referenced_columns, "referenced columns")
        if len(self.columns) != len(self.referenced_columns):
            raise ValueError("Foreign key column count must match referenced column count")
        sql = (
            f"FOREIGN KEY ({', '.join(self.columns)}) "
            f"REFERENCES {self.referenced_table} ({', '.join(self.referenced_columns)})"
        )
        if self.on_delete:
            sql += f" ON DELETE {self.on_delete.value}"
        if self.on_update:
            sql += f" ON UPDATE {self.on_update.value}"
        return sql


class IndexConstraint(TableConstraint):
    """An index declared together with the table.

    MySQL and MariaDB accept it inline as '[UNIQUE ]KEY name (cols)'. Other
    dialects need a separate CREATE INDEX, which TableCreateQueryProvider
    schedules after the table has been created.
    """

    def __init__(self, columns: Sequence[str], unique: bool = False, name: Optional[str] = None):
        super().__init__(name)
        self.columns = list(columns)
        self.unique = unique

    def index_name(self, table: str) -> str:
        return self.name or f"idx_{table}_{'_'.join(self.columns)}"

    def inline_sql(self, table: str) -> str:
        require_value(self.columns, "index columns")
        prefix = "UNIQUE KEY" if self.unique else "KEY"
        return f"{prefix} {self.index_name(table)} ({', '.join(self.columns)})"

    def body(self, driver: Optional[DriverType]) -> str:
        raise FeatureNotSupportedError(missing_driver(driver), "inline index outside CREATE TABLE")

    def to_sql(self, driver: Optional[DriverType]) -> str:
        return self.body(driver)


class CharacterSet(Enum):
    """MySQL character sets; the value is the MySQL spelling."""

    ARMSCII8 = 'armscii8'
    ASCII = 'ascii'
    BIG5 = 'big5'
    BINARY = 'binary'
    CP850 = 'cp850'
    CP852 = 'cp852'
    CP866 = 'cp866'
    CP932 = 'cp932'
    CP1250 = 'cp1250'
    CP1251 = 'cp1251'
    CP1256 = 'cp1256'
    CP1257 = 'cp1257'
    DEC8 = 'dec8'
    EUCJPMS = 'eucjpms'
    EUCKR = 'euckr'
    GB2312 = 'gb2312'
    GBK = 'gbk'
    GEOSTD8 = 'geostd8'
    GREEK = 'greek'
    HEBREW = 'hebrew'
    HP8 = 'hp8'
    KEYBCS2 = 'keybcs2'
    KOI8R = 'koi8r'
    KOI8U = 'koi8u'
    LATIN1 = 'latin1'
    LATIN2 = 'latin2'
    LATIN5 = 'latin5'
    LATIN7 = 'latin7'
    MACCE = 'macce'
    MACROMAN = 'macroman'
    SJIS = 'sjis'
    SWE7 = 'swe7'
    TIS620 = 'tis620'
    UCS2 = 'ucs2'
    UJIS = 'ujis'
    UTF8MB3 = 'utf8mb3'
    UTF8MB4 = 'utf8mb4'
    UTF16 = 'utf16'
    UTF16LE = 'utf16le'
    UTF32 = 'utf32'

    def to_mysql_charset(self) -> str:
        return self.value

    def to_postgres_encoding(self) -> str:
        """Return the PostgreSQL encoding name.

        Raises:
            FeatureNotSupportedError: When PostgreSQL has no equivalent encoding
        """
        if self not in _POSTGRES_ENCODINGS:
            raise FeatureNotSupportedError(DriverType.POSTGRESQL, f"character set {self.name}")
        return _POSTGRES_ENCODINGS[self]


_POSTGRES_ENCODINGS = {
    CharacterSet.UTF8MB4: 'UTF8',
    CharacterSet.UTF8MB3: 'UTF8',
    CharacterSet.LATIN1: 'LATIN1',
    CharacterSet.LATIN2: 'LATIN2',
    CharacterSet.LATIN5: 'LATIN5',
    CharacterSet.LATIN7: 'ISO_8859_13',
    CharacterSet.KOI8R: 'KOI8R',
    CharacterSet.KOI8U: 'KOI8U',
    CharacterSet.SJIS: 'SJIS',
    CharacterSet.EUCJPMS: 'EUC_JP',
    CharacterSet.UJIS: 'EUC_JP',
    CharacterSet.EUCKR: 'EUC_KR',
    CharacterSet.GB2312: 'EUC_CN',
    CharacterSet.GBK: 'GBK',
    CharacterSet.BIG5: 'BIG5',
    CharacterSet.ASCII: 'SQL_ASCII',
    CharacterSet.TIS620: 'TIS620',
}

