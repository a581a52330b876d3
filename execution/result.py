"""
=====================================================
Forward-only result wrapper handed to SELECT callbacks.
=====================================================

SimpleResultSet wraps a SQLAlchemy CursorResult (or any iterable of rows)
and exposes a cursor that starts before the first row. Rows are pulled
lazily into a buffer, so is_empty() and to_beginning() can move the logical
cursor without losing rows that the underlying forward-only cursor has
already produced.

Consumers receive the SimpleResultSet itself, positioned on the current
row, and read values through get() or row.

Example:
    >>> def on_rows(rs):
    ...     rs.for_each(
    ...         lambda row: print(row.get('name')),
    ...         empty_consumer=lambda: print("no users")
    ...     )
    >>>
    >>> select = Query.select().table('users').result_action_after_query(on_rows)
"""

import logging
from typing import Any, Callable, Iterable, List, Optional

import pandas as pd

logger = logging.getLogger(__name__)

RowConsumer = Callable[['SimpleResultSet'], Any]
EmptyConsumer = Callable[[], Any]
ExceptionConsumer = Callable[[BaseException], Any]


class SimpleResultSet:
    """Cursor over the rows of one SELECT.

    Attributes:
        result: The wrapped result object
        position: Index of the current row; -1 before the first row,
            len(rows) once iteration moved past the last row
    """

    def __init__(self, result: Any, columns: Optional[Iterable[str]] = None):
        self.result = result
        self.position = -1
        self._rows: List[Any] = []
        self._source = iter(result) if result is not None else iter(())
        self._exhausted = result is None
        if columns is not None:
            self._columns = list(columns)
        elif result is not None and hasattr(result, 'keys'):
            self._columns = list(result.keys())
        else:
            self._columns = []

    def _fill(self, index: int) -> bool:
        """Buffer rows until `index` is available; False if the cursor ran out first."""
        while len(self._rows) <= index and not self._exhausted:
            try:
                self._rows.append(next(self._source))
            except StopIteration:
                self._exhausted = True
        return index < len(self._rows)

    def _advance(self) -> bool:
        if self._fill(self.position + 1):
            self.position += 1
            return True
        self.position = len(self._rows)
        return False

    @property
    def row(self) -> Any:
        """The current row, or None when the cursor is not on a row."""
        if 0 <= self.position < len(self._rows):
            return self._rows[self.position]
        return None

    def get(self, column: Any) -> Any:
        """Value of `column` (name or zero-based index) in the current row.

        Raises:
            IndexError: If the cursor is not positioned on a row
        """
        current = self.row
        if current is None:
            raise IndexError("The cursor is not positioned on a row")
        if isinstance(column, int):
            return current[column]
        mapping = getattr(current, '_mapping', None)
        if mapping is not None:
            return mapping[column]
        return current[self._columns.index(column)]

    def columns(self) -> List[str]:
        return list(self._columns)

    def next(
        self,
        consumer: RowConsumer,
        empty_consumer: Optional[EmptyConsumer] = None,
        exception_consumer: Optional[ExceptionConsumer] = None
    ) -> 'SimpleResultSet':
        """Advance one row and hand it to `consumer`.

        Args:
            consumer: Called with this result set when a row exists
            empty_consumer: Called when no further row exists
            exception_consumer: Receives exceptions raised by the consumers;
                without one they propagate

        Returns:
            self, for chaining
        """
        try:
            if self._advance():
                consumer(self)
            elif empty_consumer is not None:
                empty_consumer()
        except Exception as e:
            if exception_consumer is None:
                raise
            exception_consumer(e)
        return self

    def for_each(
        self,
        consumer: RowConsumer,
        empty_consumer: Optional[EmptyConsumer] = None,
        exception_consumer: Optional[ExceptionConsumer] = None
    ) -> 'SimpleResultSet':
        """Hand every remaining row to `consumer`.

        A failing consumer does not stop the iteration: the exception goes
        to `exception_consumer`, or is logged when none is given.
        `empty_consumer` fires only if no row was seen at all.

        Returns:
            self, for chaining
        """
        count = 0
        while self._advance():
            try:
                consumer(self)
            except Exception as e:
                if exception_consumer is None:
                    logger.error(f"Row consumer failed on row {self.position}: {e}", exc_info=True)
                else:
                    exception_consumer(e)
            count += 1

        if count == 0 and empty_consumer is not None:
            empty_consumer()
        return self

    def is_empty(self) -> bool:
        """Whether the result has no rows; the cursor position is left unchanged."""
        return not self._fill(0)

    def to_beginning(self) -> 'SimpleResultSet':
        """Move the cursor back before the first row."""
        self.position = -1
        return self

    def fetch_all(self) -> List[Any]:
        """All rows of the result, from the first, regardless of the cursor."""
        while self._fill(len(self._rows)):
            pass
        return list(self._rows)

    def to_dataframe(self) -> pd.DataFrame:
        """All rows as a pandas DataFrame with the result's column names."""
        rows = [tuple(row) for row in self.fetch_all()]
        return pd.DataFrame.from_records(rows, columns=self._columns or None)

    def close(self) -> None:
        close = getattr(self.result, 'close', None)
        if close is not None:
            close()

    def __iter__(self):
        while self._advance():
            yield self.row

    def __repr__(self) -> str:
        return f"SimpleResultSet(columns={self._columns!r}, position={self.position})"
