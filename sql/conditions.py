"""
=====================================================
Condition and modifier model for WHERE/HAVING/ON SQL.
=====================================================

Represents predicates (column, operator, value, AND/OR/NOT composition)
and the ORDER BY, LIMIT and GROUP BY modifiers shared by the SELECT,
UPDATE and DELETE providers. Rendering always produces '?' placeholders
and appends the bound values to a caller-supplied parameter list in the
same order the placeholders appear.

Classes:
    Operator: Comparison operators and their SQL spelling
    ConditionType: AND / OR joiner between sibling conditions
    Condition: A single predicate or a parenthesized group
    Limit: Row limit with optional offset
    Order: Ordered column -> Direction rules
    Group: GROUP BY keys with optional HAVING conditions
    ConditionBuilderMixin: Fluent condition setters for statement providers

Functions:
    render_conditions: Render conditions into one fragment plus parameters
    render_conditions_inline: Render conditions with literal values instead of placeholders
    build_condition: Create a Condition from the short builder call forms

Example:
    >>> from sql.conditions import Condition, ConditionType, Operator, render_conditions
    >>>
    >>> params = []
    >>> render_conditions([
    ...     Condition('age', 18, Operator.GREATER_THAN),
    ...     Condition('name', None, Operator.IS_NULL, ConditionType.OR),
    ... ], params)
    'age > ? OR name IS NULL'
    >>> params
    [18]
"""

from collections import OrderedDict
from enum import Enum
from typing import Any, Iterable, List, Optional

from sql.driver import require_value
from sql.values import SqlValue, bind_value, format_literal


class Operator(Enum):
    """Comparison operators."""

    EQUALS = '='
    NOT_EQUALS = '<>'
    GREATER_THAN = '>'
    GREATER_EQUALS = '>='
    LESS_THAN = '<'
    LESS_EQUALS = '<='
    IN = 'IN'
    NOT_IN = 'NOT IN'
    BETWEEN = 'BETWEEN'
    LIKE = 'LIKE'
    IS_NULL = 'IS NULL'
    IS_NOT_NULL = 'IS NOT NULL'

    @property
    def binds_value(self) -> bool:
        return self not in (Operator.IS_NULL, Operator.IS_NOT_NULL)

    def to_sql(self) -> str:
        """Return the SQL operator text for value-binding operators.

        Raises:
            RuntimeError: For IS_NULL / IS_NOT_NULL, which are rendered
                without an operand and must never reach this mapping
        """
        if not self.binds_value:
            raise RuntimeError("NULL handled separately")
        return self.value


class ConditionType(Enum):
    """Joiner placed before a condition that follows a sibling."""

    AND = 'AND'
    OR = 'OR'


class Condition:
    """A WHERE/HAVING/ON predicate or a group of predicates.

    Attributes:
        key: Column name (or expression) on the left-hand side
        value: Bound value; a list for IN/NOT_IN, a pair for BETWEEN,
            a raw() SqlValue to emit SQL text instead of a placeholder
        operator: Comparison operator (default EQUALS)
        type: How this condition joins its predecessor (default AND)
        not_: Prefix the predicate with NOT
        children: Nested conditions when this condition is a group
    """

    def __init__(
        self,
        key: Optional[str] = None,
        value: Any = None,
        operator: Operator = Operator.EQUALS,
        type: ConditionType = ConditionType.AND,
        not_: bool = False,
        children: Optional[List['Condition']] = None
    ):
        self.key = key
        self.value = value
        self.operator = operator
        self.type = type
        self.not_ = not_
        self.children = list(children) if children is not None else None

    @classmethod
    def group(cls, type: ConditionType, not_: bool, children: Iterable['Condition']) -> 'Condition':
        """Build a parenthesized group of conditions."""
        children = list(children)
        require_value(children, "condition group")
        return cls(type=type, not_=not_, children=children)

    @property
    def is_group(self) -> bool:
        return self.children is not None

    def __repr__(self) -> str:
        if self.is_group:
            return f"Condition.group({self.type.name}, not_={self.not_}, {self.children!r})"
        return f"Condition({self.key!r}, {self.value!r}, {self.operator.name}, {self.type.name}, not_={self.not_})"


def _append_condition(parts: List[str], condition: Condition, params: List[Any]) -> None:
    if condition.not_:
        parts.append("NOT ")

    if condition.is_group:
        parts.append("(")
        parts.append(render_conditions(condition.children, params))
        parts.append(")")
        return

    column = require_value(condition.key, "condition key")
    operator = condition.operator
    value = condition.value

    if operator is Operator.IS_NULL:
        parts.append(f"{column} IS NULL")
        return
    if operator is Operator.IS_NOT_NULL:
        parts.append(f"{column} IS NOT NULL")
        return

    if isinstance(value, SqlValue) and value.is_raw:
        parts.append(f"{column} {operator.to_sql()} {value.value}")
        return

    if operator in (Operator.IN, Operator.NOT_IN):
        if not isinstance(value, (list, tuple, set, frozenset)) or not value:
            raise ValueError(f"{operator.name} requires a non-empty collection")
        placeholders = []
        for item in value:
            placeholders.append("?")
            params.append(bind_value(item))
        parts.append(f"{column} {operator.to_sql()} ({', '.join(placeholders)})")
        return

    if operator is Operator.BETWEEN:
        if not isinstance(value, (list, tuple)) or len(value) != 2:
            raise ValueError("BETWEEN requires a list of size 2")
        parts.append(f"{column} BETWEEN ? AND ?")
        params.append(bind_value(value[0]))
        params.append(bind_value(value[1]))
        return

    if value is None:
        if operator is Operator.LIKE:
            raise ValueError("LIKE requires a non-null value")
        raise ValueError(
            f"Condition on '{column}' has no value; use IS_NULL / IS_NOT_NULL to compare with NULL"
        )

    parts.append(f"{column} {operator.to_sql()} ?")
    params.append(bind_value(value))


def render_conditions(conditions: Iterable[Condition], params: List[Any]) -> str:
    """Render conditions into a single SQL fragment.

    The joiner before each condition after the first is that condition's
    own type; the first condition's type is never emitted.

    Args:
        conditions: Conditions in rendering order
        params: Output list receiving bound values in placeholder order

    Returns:
        SQL fragment without a leading WHERE/HAVING/ON keyword
    """
    parts: List[str] = []
    first = True
    for condition in conditions:
        if not first:
            parts.append(f" {condition.type.value} ")
        _append_condition(parts, condition, params)
        first = False
    return ''.join(parts)


def render_conditions_inline(conditions: Iterable[Condition]) -> str:
    """Render conditions with every bound value inlined as a SQL literal.

    Used where the grammar forbids parameters, such as the WHERE clause of
    a partial index.
    """
    params: List[Any] = []
    sql = render_conditions(conditions, params)
    values = iter(params)
    parts = []
    quote = None
    for char in sql:
        if quote:
            if char == quote:
                quote = None
            parts.append(char)
        elif char in ("'", '"', '`'):
            quote = char
            parts.append(char)
        elif char == '?':
            parts.append(format_literal(next(values)))
        else:
            parts.append(char)
    return ''.join(parts)


class Limit:
    """Row limit with an optional offset."""

    def __init__(self, limit: int = 0, offset: int = 0):
        if limit < 0 or offset < 0:
            raise ValueError("Limit and offset must not be negative")
        self.limit = limit
        self.offset = offset

    def __repr__(self) -> str:
        return f"Limit({self.limit}, {self.offset})"


class Direction(Enum):
    """Sort direction for ORDER BY rules."""

    ASCENDING = 'ASC'
    DESCENDING = 'DESC'


class Order:
    """Ordered ORDER BY rules (column -> Direction)."""

    def __init__(self):
        self.order_rules: 'OrderedDict[str, Direction]' = OrderedDict()

    def rule(self, key: str, direction: Direction = Direction.ASCENDING) -> 'Order':
        self.order_rules[require_value(key, "order key")] = direction
        return self

    def merge(self, other: 'Order') -> 'Order':
        self.order_rules.update(other.order_rules)
        return self

    def is_empty(self) -> bool:
        return not self.order_rules

    def to_sql(self) -> str:
        """Render ' ORDER BY a ASC, b DESC' or an empty string."""
        if not self.order_rules:
            return ""
        rules = ', '.join(f"{key} {direction.value}" for key, direction in self.order_rules.items())
        return f" ORDER BY {rules}"


class Group:
    """GROUP BY keys plus optional HAVING conditions."""

    def __init__(self, keys: Optional[Iterable[str]] = None, conditions: Optional[Iterable[Condition]] = None):
        self.keys: List[str] = list(keys) if keys else []
        self.conditions: List[Condition] = list(conditions) if conditions else []

    def key(self, *keys: str) -> 'Group':
        self.keys.extend(keys)
        return self

    def condition(self, key_or_condition, value: Any = None, operator: Operator = Operator.EQUALS) -> 'Group':
        if isinstance(key_or_condition, Condition):
            self.conditions.append(key_or_condition)
        else:
            self.conditions.append(Condition(key_or_condition, value, operator))
        return self

    def to_sql(self, params: List[Any]) -> str:
        """Render ' GROUP BY a, b[ HAVING ...]'; HAVING values are appended to params."""
        sql = ""
        if self.keys:
            sql += f" GROUP BY {', '.join(self.keys)}"
        if self.conditions:
            sql += f" HAVING {render_conditions(self.conditions, params)}"
        return sql


_UNSET = object()


def build_condition(key: Any, operator_or_value: Any = _UNSET, value: Any = _UNSET) -> Condition:
    """Create a Condition from the short call forms used by the builders.

    Accepted forms:
        build_condition(condition)
        build_condition('age', 18)                         # EQUALS
        build_condition('age', Operator.GREATER_THAN, 18)
        build_condition('deleted_at', Operator.IS_NULL)
    """
    if isinstance(key, Condition):
        return key
    if isinstance(operator_or_value, Operator):
        return Condition(key, None if value is _UNSET else value, operator_or_value)
    if value is not _UNSET:
        raise TypeError("The second argument must be an Operator when a value is given")
    return Condition(key, None if operator_or_value is _UNSET else operator_or_value)


class ConditionBuilderMixin:
    """Fluent WHERE-condition setters shared by SELECT, UPDATE and DELETE."""

    def _init_conditions(self) -> None:
        self.conditions: List[Condition] = []

    def condition(self, key: Any, operator_or_value: Any = _UNSET, value: Any = _UNSET):
        """Add a WHERE condition; see build_condition() for the call forms."""
        self.conditions.append(build_condition(key, operator_or_value, value))
        return self

    def condition_group(self, type: ConditionType, *conditions: Condition, not_: bool = False):
        """Add a parenthesized group of conditions joined by their own types."""
        self.conditions.append(Condition.group(type, not_, conditions))
        return self
