"""
==========================================
Exception hierarchy for statement building.
==========================================

All errors raised by the statement providers and the execution coordinator
derive from SqlBuilderError so callers can catch the whole family at once.

Error categories:
    - Configuration errors: MissingValueError, DriverNotSetError
    - Compatibility errors: FeatureNotSupportedError, UnsupportedOperationError
    - Value errors: UnsupportedValueError
    - Connection errors: DatabaseNotConnectedError, DriverNotLoadedError
    - Fatal execution errors: RequestNotExecutableError

Example:
    >>> from core.exceptions import FeatureNotSupportedError
    >>> from sql.driver import DriverType
    >>>
    >>> try:
    ...     raise FeatureNotSupportedError(DriverType.SQLITE)
    ... except FeatureNotSupportedError as e:
    ...     print(e)
    This feature is not available with your current driver (SQLite).
"""

from typing import Any, Optional


class SqlBuilderError(Exception):
    """Base exception for all statement building and execution errors."""
    pass


class MissingValueError(SqlBuilderError, ValueError):
    """Raised when a required builder field is missing or empty."""

    def __init__(self, name: str, message: Optional[str] = None):
        self.name = name
        super().__init__(message or f"Object '{name}' is null or empty")


class DriverNotSetError(SqlBuilderError):
    """Raised when a statement needs a dialect but no driver is configured."""

    def __init__(self, message: str = "Driver is not set."):
        super().__init__(message)


class FeatureNotSupportedError(SqlBuilderError):
    """Raised when a configured feature is not available for the resolved driver.

    Attributes:
        driver: The DriverType that lacks the feature
        feature: Optional short description of the rejected feature
    """

    def __init__(self, driver: Any, feature: Optional[str] = None):
        self.driver = driver
        self.feature = feature
        driver_name = getattr(driver, 'readable_name', driver)
        if feature:
            message = f"The feature '{feature}' is not available with your current driver ({driver_name})."
        else:
            message = f"This feature is not available with your current driver ({driver_name})."
        super().__init__(message)


class UnsupportedOperationError(SqlBuilderError):
    """Raised when a whole statement is incompatible with the resolved driver."""

    def __init__(self, message: Optional[str] = None):
        super().__init__(
            message or
            "The current request is not supported by the database driver. Failing request. "
            "Please check the documentation for supported database operations and try again "
            "with a compatible request."
        )


class UnsupportedValueError(SqlBuilderError, TypeError):
    """Raised when a value cannot be represented as a SQL literal or parameter."""
    pass


class DatabaseNotConnectedError(SqlBuilderError):
    """Raised when executing against an adapter without an established connection."""

    def __init__(self, message: str = "The connection to the database was not established"):
        super().__init__(message)


class DriverNotLoadedError(SqlBuilderError):
    """Raised when the DBAPI module for the selected driver cannot be loaded."""
    pass


class RequestNotExecutableError(SqlBuilderError):
    """Raised when the execution coordinator fails for an unexpected reason.

    The original exception is chained as __cause__ and kept on `cause`.
    """

    def __init__(self, cause: Optional[BaseException] = None, message: str = "The request could not be executed."):
        self.cause = cause
        if cause is not None:
            message = f"{message} {type(cause).__name__}: {cause}"
        super().__init__(message)
