"""
==========================================================
Dialect descriptor and validation helpers for SQL drivers.
==========================================================

Enumerates the supported database engines and provides the guard helpers
that statement providers use to reject features the resolved dialect does
not offer.

Functions:
    require_driver: Fail unless the driver is one of the allowed drivers
    unsupported_driver: Fail when the driver is one of the disallowed drivers
    missing_driver: Fail when no driver is configured
    require_value: Fail when a required builder field is missing or empty
    convert_placeholders: Translate '?' placeholders to a DBAPI paramstyle
    bind_parameters: Shape a parameter list for a DBAPI paramstyle

Example:
    >>> from sql.driver import DriverType, convert_placeholders, require_driver
    >>>
    >>> require_driver(DriverType.POSTGRESQL, DriverType.POSTGRESQL)
    >>> DriverType.MYSQL.readable_name
    'MySQL'
    >>> convert_placeholders("SELECT * FROM t WHERE a = ?;", 'format')
    'SELECT * FROM t WHERE a = %s;'
"""

from enum import Enum
from typing import Any, Optional

from core.exceptions import DriverNotSetError, FeatureNotSupportedError, MissingValueError


class DriverType(Enum):
    """Supported database engines.

    Each member carries its readable name, the SQLAlchemy dialect+DBAPI
    name used for engine URLs, the DBAPI module that must be importable
    and the default server port.
    """

    MYSQL = ('MySQL', 'mysql+pymysql', 'pymysql', 3306)
    MARIADB = ('MariaDB', 'mariadb+pymysql', 'pymysql', 3306)
    POSTGRESQL = ('PostgreSQL', 'postgresql+psycopg2', 'psycopg2', 5432)
    SQLITE = ('SQLite', 'sqlite', 'sqlite3', None)

    def __init__(self, readable_name: str, sqlalchemy_name: str, dbapi_module: str, default_port: Optional[int]):
        self.readable_name = readable_name
        self.sqlalchemy_name = sqlalchemy_name
        self.dbapi_module = dbapi_module
        self.default_port = default_port

    @property
    def is_mysql_family(self) -> bool:
        """True for MySQL and MariaDB, which share most of their grammar."""
        return self in (DriverType.MYSQL, DriverType.MARIADB)

    @classmethod
    def from_name(cls, name: str) -> 'DriverType':
        """Parse a driver name case-insensitively.

        Accepts member names ('POSTGRESQL'), readable names ('PostgreSQL') and
        the common aliases 'postgres' and 'pg'.

        Raises:
            ValueError: If the name does not match any driver
        """
        normalized = name.strip().lower()
        aliases = {'postgres': cls.POSTGRESQL, 'pg': cls.POSTGRESQL, 'sqlite3': cls.SQLITE}
        if normalized in aliases:
            return aliases[normalized]
        for driver in cls:
            if normalized in (driver.name.lower(), driver.readable_name.lower()):
                return driver
        raise ValueError(f"Unknown driver type: {name}")

    def __str__(self) -> str:
        return self.readable_name


def missing_driver(driver: Optional[DriverType]) -> DriverType:
    """Ensure a driver is configured and return it."""
    if driver is None:
        raise DriverNotSetError()
    return driver


def require_driver(driver: Optional[DriverType], *allowed: DriverType, feature: Optional[str] = None) -> None:
    """Raise FeatureNotSupportedError unless `driver` is one of `allowed`."""
    missing_driver(driver)
    if driver not in allowed:
        raise FeatureNotSupportedError(driver, feature)


def unsupported_driver(driver: Optional[DriverType], *disallowed: DriverType, feature: Optional[str] = None) -> None:
    """Raise FeatureNotSupportedError when `driver` is one of `disallowed`."""
    missing_driver(driver)
    if driver in disallowed:
        raise FeatureNotSupportedError(driver, feature)


def require_value(value: Any, name: str) -> Any:
    """Return `value` or raise MissingValueError when it is None, blank or an empty collection."""
    if value is None:
        raise MissingValueError(name, f"Object '{name}' is null")
    if isinstance(value, str) and not value.strip():
        raise MissingValueError(name, f"String '{name}' is empty")
    if isinstance(value, (list, tuple, set, frozenset, dict)) and len(value) == 0:
        raise MissingValueError(name, f"Collection '{name}' is empty")
    return value


def convert_placeholders(sql: str, paramstyle: str) -> str:
    """Translate '?' placeholders into the given DBAPI paramstyle.

    Placeholders inside single-quoted literals, double-quoted or
    backtick-quoted identifiers are left alone. For the 'format' and
    'pyformat' styles every literal '%' is doubled so the driver does not
    treat it as a conversion.

    Args:
        sql: Statement rendered with '?' placeholders
        paramstyle: DBAPI paramstyle (qmark, format, pyformat, numeric, named)

    Returns:
        Statement text ready for cursor.execute() with positional parameters
    """
    if paramstyle == 'qmark':
        return sql

    percent_styles = paramstyle in ('format', 'pyformat')
    parts = []
    quote = None
    index = 0

    for char in sql:
        if quote:
            if char == quote:
                quote = None
            parts.append('%%' if percent_styles and char == '%' else char)
            continue

        if char in ("'", '"', '`'):
            quote = char
            parts.append(char)
        elif char == '?':
            index += 1
            if percent_styles:
                parts.append('%s')
            elif paramstyle == 'numeric':
                parts.append(f":{index}")
            elif paramstyle == 'named':
                parts.append(f":p{index}")
            else:
                raise ValueError(f"Unsupported paramstyle: {paramstyle}")
        elif char == '%' and percent_styles:
            parts.append('%%')
        else:
            parts.append(char)

    return ''.join(parts)


def bind_parameters(parameters: Any, paramstyle: str) -> Any:
    """Shape an ordered parameter list for the given DBAPI paramstyle.

    Returns a tuple for positional styles and a {'p1': ..., 'pN': ...}
    mapping for the 'named' style used by convert_placeholders().
    """
    if paramstyle == 'named':
        return {f"p{position}": value for position, value in enumerate(parameters, start=1)}
    return tuple(parameters)
