"""
============================================
SQL value model and literal formatting.
============================================

Statement providers bind values as parameters wherever the grammar allows
it. A few places (column DEFAULT clauses, table comments, verbatim
expressions) need a literal instead; those go through the closed value
type defined here so that every literal is produced by one formatting
function per kind.

Value kinds:
    NULL, BOOL, INT, FLOAT, TEXT, RAW, DATE

Functions:
    sql_value: Classify a Python object as a SqlValue
    raw: Mark a string as an already SQL-safe expression
    null: The NULL value
    format_literal: Render a SqlValue as SQL text
    format_date: Stateless date/time formatting
    escape_sql: Double single quotes inside a string literal
    bind_value: Validate a value before handing it to the DBAPI driver

Example:
    >>> from sql.values import format_literal, raw, sql_value
    >>>
    >>> format_literal(sql_value("O'Brien"))
    "'O''Brien'"
    >>> format_literal(sql_value(True))
    "'1'"
    >>> format_literal(raw("CURRENT_TIMESTAMP"))
    'CURRENT_TIMESTAMP'
"""

import datetime
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any

from core.exceptions import UnsupportedValueError

DEFAULT_DATE_FORMAT = '%Y-%m-%d'
DEFAULT_DATETIME_FORMAT = '%Y-%m-%d %H:%M:%S'
DEFAULT_TIME_FORMAT = '%H:%M:%S'


class ValueKind(Enum):
    """Closed set of literal kinds."""

    NULL = 'null'
    BOOL = 'bool'
    INT = 'int'
    FLOAT = 'float'
    TEXT = 'text'
    RAW = 'raw'
    DATE = 'date'


@dataclass(frozen=True)
class SqlValue:
    """A tagged SQL value.

    Attributes:
        kind: The ValueKind deciding how the value is formatted
        value: The underlying Python value (None for NULL)
    """

    kind: ValueKind
    value: Any = None

    @property
    def is_raw(self) -> bool:
        return self.kind is ValueKind.RAW

    def __str__(self) -> str:
        return format_literal(self)


def null() -> SqlValue:
    """Return the SQL NULL value."""
    return SqlValue(ValueKind.NULL)


def raw(expression: str) -> SqlValue:
    """Mark `expression` as verbatim SQL (e.g. CURRENT_TIMESTAMP, NOW()).

    Raw values are never quoted or bound; only use them for text that is
    already SQL-safe.
    """
    if not isinstance(expression, str):
        raise UnsupportedValueError(f"Raw SQL must be a string, got {type(expression).__name__}")
    return SqlValue(ValueKind.RAW, expression)


def sql_value(obj: Any) -> SqlValue:
    """Classify a Python object as a SqlValue.

    Args:
        obj: None, bool, int, float, Decimal, str, date, datetime, time or SqlValue

    Returns:
        The matching SqlValue

    Raises:
        UnsupportedValueError: For any other type
    """
    if isinstance(obj, SqlValue):
        return obj
    if obj is None:
        return null()
    # bool before int: bool is an int subclass
    if isinstance(obj, bool):
        return SqlValue(ValueKind.BOOL, obj)
    if isinstance(obj, int):
        return SqlValue(ValueKind.INT, obj)
    if isinstance(obj, (float, Decimal)):
        return SqlValue(ValueKind.FLOAT, obj)
    if isinstance(obj, str):
        return SqlValue(ValueKind.TEXT, obj)
    if isinstance(obj, (datetime.date, datetime.time)):
        return SqlValue(ValueKind.DATE, obj)
    raise UnsupportedValueError(
        f"Cannot convert value of type {type(obj).__name__} to SQL; "
        f"use raw() for verbatim SQL expressions"
    )


def escape_sql(text: str) -> str:
    """Escape a string for use inside a single-quoted SQL literal."""
    if text is None:
        return None
    return text.replace("'", "''")


def format_date(
    value: Any,
    date_format: str = DEFAULT_DATE_FORMAT,
    datetime_format: str = DEFAULT_DATETIME_FORMAT,
    time_format: str = DEFAULT_TIME_FORMAT
) -> str:
    """Format a date, datetime or time with explicit formats."""
    if isinstance(value, datetime.datetime):
        return value.strftime(datetime_format)
    if isinstance(value, datetime.date):
        return value.strftime(date_format)
    if isinstance(value, datetime.time):
        return value.strftime(time_format)
    raise UnsupportedValueError(f"Not a date or time value: {type(value).__name__}")


def format_literal(
    value: SqlValue,
    date_format: str = DEFAULT_DATE_FORMAT,
    datetime_format: str = DEFAULT_DATETIME_FORMAT,
    time_format: str = DEFAULT_TIME_FORMAT
) -> str:
    """Render a SqlValue as literal SQL text.

    Args:
        value: The value to render (plain Python objects are classified first)
        date_format: strftime format for date values
        datetime_format: strftime format for datetime values
        time_format: strftime format for time values

    Returns:
        SQL literal text
    """
    value = sql_value(value)
    kind = value.kind

    if kind is ValueKind.NULL:
        return "NULL"
    if kind is ValueKind.BOOL:
        return "'1'" if value.value else "'0'"
    if kind in (ValueKind.INT, ValueKind.FLOAT):
        return str(value.value)
    if kind is ValueKind.TEXT:
        return f"'{escape_sql(value.value)}'"
    if kind is ValueKind.RAW:
        return value.value
    if kind is ValueKind.DATE:
        return f"'{format_date(value.value, date_format, datetime_format, time_format)}'"
    raise UnsupportedValueError(f"Unknown value kind: {kind}")


def bind_value(obj: Any) -> Any:
    """Validate a value that is about to be bound as a statement parameter.

    Plain supported values pass through unchanged, SqlValue wrappers are
    unwrapped. RAW values cannot be bound because they are SQL text, not data.

    Raises:
        UnsupportedValueError: For RAW values and unsupported types
    """
    if isinstance(obj, (bytes, bytearray, memoryview)):
        return obj
    value = sql_value(obj)
    if value.is_raw:
        raise UnsupportedValueError("Raw SQL values cannot be bound as parameters")
    return value.value
