"""
==============================================
Common contract of all statement providers.
==============================================

A statement provider is a fluent builder that renders exactly one SQL
statement plus its ordered parameter list. Providers never open
connections; the execution coordinator (execution.query.Query) renders
them, binds the parameters and reports the outcome back through the
provider's after-query callback.

Classes:
    CompiledStatement: Immutable (sql, parameters) snapshot of one render
    QueryResult: Outcome handed to after-query callbacks
    QueryEntry: A column/value pair for INSERT and UPDATE
    QueryProvider: Base class of all providers
    UpdatingQueryProvider: Base class of providers reporting affected rows
    ResultQueryProvider: Base class of providers whose statement returns rows

Functions:
    resolve_driver: Find the DriverType of a rendering context

Example:
    >>> from sql.dml import InsertQueryProvider
    >>> from sql.driver import DriverType
    >>>
    >>> insert = InsertQueryProvider().table('users').entry('id', 1).entry('name', 'Bob')
    >>> statement = insert.render(DriverType.SQLITE)
    >>> statement.sql
    'INSERT INTO users (id, name) VALUES (?, ?);'
    >>> statement.parameters
    (1, 'Bob')
"""

from dataclasses import dataclass
from typing import Any, Callable, List, NamedTuple, Optional, Tuple

from sql.driver import DriverType
from sql.values import SqlValue, bind_value


class CompiledStatement(NamedTuple):
    """Rendered SQL text and the values bound to its '?' placeholders."""

    sql: Optional[str]
    parameters: Tuple[Any, ...] = ()


class QueryResult(NamedTuple):
    """Outcome of one provider after execution.

    Attributes:
        provider: The provider that was executed
        success: True if the statement (or its batch) completed
    """

    provider: 'QueryProvider'
    success: bool


@dataclass
class QueryEntry:
    """A column/value pair for INSERT and UPDATE.

    Attributes:
        column: Column name
        value: Value bound as a parameter
        raw_value: Emit `value` verbatim instead of binding it
    """

    column: str
    value: Any = None
    raw_value: bool = False

    @property
    def is_raw(self) -> bool:
        return self.raw_value or (isinstance(self.value, SqlValue) and self.value.is_raw)

    def placeholder(self, params: List[Any]) -> str:
        """Return '?' and append the bound value, or the raw SQL text."""
        if self.is_raw:
            text = self.value.value if isinstance(self.value, SqlValue) else self.value
            return "NULL" if text is None else str(text)
        params.append(bind_value(self.value))
        return "?"


def resolve_driver(context: Any) -> Optional[DriverType]:
    """Return the DriverType of a rendering context.

    The context is normally the execution coordinator (anything with a
    `driver_type` attribute); a DriverType or None is accepted as well.
    """
    if context is None or isinstance(context, DriverType):
        return context
    return getattr(context, 'driver_type', None)


class QueryProvider:
    """Base class for statement providers.

    Subclasses implement _build(driver, params) and, when a statement only
    works on some engines, compatibility(driver).
    """

    def __init__(self):
        self.after_query_action: Optional[Callable[[QueryResult], Any]] = None
        self._compiled: Optional[CompiledStatement] = None

    def compatibility(self, driver: Optional[DriverType]) -> bool:
        """Whether this statement can run on `driver` at all."""
        return True

    @property
    def returns_rows(self) -> bool:
        return False

    def _build(self, driver: Optional[DriverType], params: List[Any]) -> Optional[str]:
        raise NotImplementedError

    def render(self, context: Any = None) -> CompiledStatement:
        """Render the statement for the driver of `context`.

        Returns:
            A fresh CompiledStatement; repeated renders of an unchanged
            provider are identical
        """
        params: List[Any] = []
        sql = self._build(resolve_driver(context), params)
        self._compiled = CompiledStatement(sql, tuple(params))
        return self._compiled

    def generate_sql_string(self, context: Any = None) -> Optional[str]:
        """Render and return only the SQL text."""
        return self.render(context).sql

    def parameters(self) -> List[Any]:
        """Parameters of the most recent render, in placeholder order."""
        return list(self._compiled.parameters) if self._compiled else []

    def action_after_query(self, callback: Optional[Callable[[QueryResult], Any]]) -> 'QueryProvider':
        """Set the callback invoked with a QueryResult after execution."""
        self.after_query_action = callback
        return self

    def deferred_statements(self) -> List['QueryProvider']:
        """Statements to run on the same connection once this one succeeded."""
        return []

    def notify(self, success: bool) -> None:
        """Invoke the after-query callback, if any."""
        if self.after_query_action is not None:
            self.after_query_action(QueryResult(self, success))

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class UpdatingQueryProvider(QueryProvider):
    """Provider whose execution reports a number of affected rows."""

    def __init__(self):
        super().__init__()
        self.affected_rows: int = 0


class ResultQueryProvider(QueryProvider):
    """Provider whose statement can produce rows.

    The coordinator executes such statements separately from write batches
    and hands the rows to the result callback as a SimpleResultSet.
    """

    def __init__(self):
        super().__init__()
        self.result_action: Optional[Callable[[Any], Any]] = None

    @property
    def returns_rows(self) -> bool:
        return True

    def result_action_after_query(self, callback: Optional[Callable[[Any], Any]]) -> 'ResultQueryProvider':
        """Set the callback receiving the SimpleResultSet of the statement."""
        self.result_action = callback
        return self
