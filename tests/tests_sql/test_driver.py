"""
===============================================
Comprehensive pytest suite for sql/driver.py
===============================================

Sections:
---------
1. Unit tests - DriverType descriptor and guard helpers
2. Edge case tests - Placeholder conversion around quotes and percent signs

Available markers:
------------------
unit, edge_case

How to Execute:
---------------
All tests:          pytest tests/tests_sql/test_driver.py -v
By category:        pytest tests/tests_sql/test_driver.py -m unit
"""

import pytest

from core.exceptions import DriverNotSetError, FeatureNotSupportedError, MissingValueError
from sql.driver import (
    DriverType,
    bind_parameters,
    convert_placeholders,
    missing_driver,
    require_driver,
    require_value,
    unsupported_driver,
)


# ===============
# 1. UNIT TESTS
# ===============

@pytest.mark.unit
def test_driver_type_descriptors():
    """Each driver carries its SQLAlchemy name, DBAPI module and default port."""
    assert DriverType.MYSQL.sqlalchemy_name == 'mysql+pymysql'
    assert DriverType.MARIADB.dbapi_module == 'pymysql'
    assert DriverType.POSTGRESQL.default_port == 5432
    assert DriverType.SQLITE.default_port is None
    assert str(DriverType.POSTGRESQL) == 'PostgreSQL'


@pytest.mark.unit
def test_mysql_family():
    """Only MySQL and MariaDB belong to the MySQL family."""
    assert DriverType.MYSQL.is_mysql_family
    assert DriverType.MARIADB.is_mysql_family
    assert not DriverType.POSTGRESQL.is_mysql_family
    assert not DriverType.SQLITE.is_mysql_family


@pytest.mark.unit
@pytest.mark.parametrize("name, expected", [
    ('mysql', DriverType.MYSQL),
    ('MariaDB', DriverType.MARIADB),
    ('POSTGRESQL', DriverType.POSTGRESQL),
    ('postgres', DriverType.POSTGRESQL),
    ('pg', DriverType.POSTGRESQL),
    (' sqlite ', DriverType.SQLITE),
    ('sqlite3', DriverType.SQLITE),
])
def test_from_name(name, expected):
    """Driver names parse case-insensitively, including common aliases."""
    assert DriverType.from_name(name) is expected


@pytest.mark.unit
def test_from_name_unknown():
    with pytest.raises(ValueError, match="Unknown driver type"):
        DriverType.from_name('oracle')


@pytest.mark.unit
def test_missing_driver_raises():
    with pytest.raises(DriverNotSetError):
        missing_driver(None)
    assert missing_driver(DriverType.SQLITE) is DriverType.SQLITE


@pytest.mark.unit
def test_require_driver():
    """
    Test require_driver guard.

    Test Strategy:
        - An allowed driver passes silently
        - A different driver raises FeatureNotSupportedError naming the feature
        - A missing driver raises DriverNotSetError
    """
    require_driver(DriverType.POSTGRESQL, DriverType.POSTGRESQL)

    with pytest.raises(FeatureNotSupportedError) as exc_info:
        require_driver(DriverType.MYSQL, DriverType.POSTGRESQL, feature="CONCURRENTLY")
    assert exc_info.value.driver is DriverType.MYSQL
    assert "CONCURRENTLY" in str(exc_info.value)

    with pytest.raises(DriverNotSetError):
        require_driver(None, DriverType.POSTGRESQL)


@pytest.mark.unit
def test_unsupported_driver():
    unsupported_driver(DriverType.MYSQL, DriverType.SQLITE)
    with pytest.raises(FeatureNotSupportedError):
        unsupported_driver(DriverType.SQLITE, DriverType.SQLITE)


@pytest.mark.unit
@pytest.mark.parametrize("value", [None, "", "   ", [], (), {}])
def test_require_value_rejects_empty(value):
    with pytest.raises(MissingValueError):
        require_value(value, "field")


@pytest.mark.unit
def test_require_value_returns_value():
    assert require_value("users", "table") == "users"
    assert require_value(0, "count") == 0


@pytest.mark.unit
def test_missing_value_error_is_value_error():
    """MissingValueError can be caught as a plain ValueError."""
    with pytest.raises(ValueError):
        require_value(None, "field")


@pytest.mark.unit
@pytest.mark.parametrize("paramstyle, expected", [
    ('qmark', "UPDATE t SET a = ? WHERE b = ?;"),
    ('format', "UPDATE t SET a = %s WHERE b = %s;"),
    ('pyformat', "UPDATE t SET a = %s WHERE b = %s;"),
    ('numeric', "UPDATE t SET a = :1 WHERE b = :2;"),
    ('named', "UPDATE t SET a = :p1 WHERE b = :p2;"),
])
def test_convert_placeholders(paramstyle, expected):
    assert convert_placeholders("UPDATE t SET a = ? WHERE b = ?;", paramstyle) == expected


@pytest.mark.unit
def test_bind_parameters():
    assert bind_parameters([1, 'a'], 'qmark') == (1, 'a')
    assert bind_parameters([1, 'a'], 'format') == (1, 'a')
    assert bind_parameters([1, 'a'], 'named') == {'p1': 1, 'p2': 'a'}


# ===================
# 2. EDGE CASE TESTS
# ===================

@pytest.mark.edge_case
def test_convert_placeholders_ignores_quoted_question_marks():
    """Question marks inside literals and quoted identifiers are not placeholders."""
    sql = "SELECT \"a?\", `b?` FROM t WHERE c = '?' AND d = ?;"
    assert convert_placeholders(sql, 'format') == "SELECT \"a?\", `b?` FROM t WHERE c = '?' AND d = %s;"


@pytest.mark.edge_case
def test_convert_placeholders_doubles_percent_for_format_styles():
    """Literal percent signs are escaped for the format styles only."""
    sql = "SELECT * FROM t WHERE name LIKE '50%' AND id = ?;"
    assert convert_placeholders(sql, 'pyformat') == "SELECT * FROM t WHERE name LIKE '50%%' AND id = %s;"
    assert convert_placeholders(sql, 'qmark') == sql


@pytest.mark.edge_case
def test_convert_placeholders_unknown_style():
    with pytest.raises(ValueError, match="Unsupported paramstyle"):
        convert_placeholders("SELECT ?;", 'weird')
