"""Row streaming.

This module defines RowStream, the lazy single-pass sequence returned by
execute_reader(), and Record, the view of the current row handed to the
mapping function.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable, Generic, Iterator, Optional, TypeVar, Union

from sqlalchemy.exc import SQLAlchemyError

from txsql.exceptions import ExecutionError, InvalidStateError, MappingError

if TYPE_CHECKING:
    from sqlalchemy.engine import CursorResult, Row

    from txsql.core.command import BoundCommand

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Record:
    """One row, readable by ordinal or by column name.

    Examples:
        >>> record[0]
        1
        >>> record["N"]
        1
        >>> record.get("missing", 0)
        0
    """

    __slots__ = ("_row",)

    def __init__(self, row: Row):
        self._row = row

    def __getitem__(self, key: Union[int, str]) -> Any:
        if isinstance(key, int):
            return self._row[key]
        return self._row._mapping[key]

    def get(self, key: Union[int, str], default: Any = None) -> Any:
        """Value for key, or default when the column does not exist."""
        try:
            return self[key]
        except (IndexError, KeyError):
            return default

    def keys(self) -> list[str]:
        """Column names in select order."""
        return list(self._row._mapping.keys())

    def as_dict(self) -> dict[str, Any]:
        """Column name to value."""
        return dict(self._row._mapping)

    def as_tuple(self) -> tuple[Any, ...]:
        """Values in select order."""
        return tuple(self._row)

    def __len__(self) -> int:
        return len(self._row)

    def __repr__(self) -> str:
        return f"Record({self.as_dict()!r})"


class RowStream(Generic[T]):
    """Lazy, single-pass sequence of mapped rows.

    Each row is fetched from the cursor and mapped only when the consumer
    asks for it. The stream releases its cursor and its command when
    iteration reaches the end, when close() is called, when the mapping
    function fails, or when the owning transaction ends. After that:

    - a stream that was read to the end behaves like an exhausted iterator
    - a stream released before the end raises InvalidStateError

    Iterating the stream a second time does not restart it. Leaving a
    ``for`` loop early does not release the stream; use ``with`` or close().

    Examples:
        >>> with query(new_cmd("SELECT id FROM t"), [], lambda r: r[0], tx) as rows:
        ...     first = next(rows)
        >>> rows.is_closed
        True
    """

    def __init__(
        self,
        result: CursorResult,
        map_record: Callable[[Record], T],
        command: BoundCommand,
        owns_command: bool = False,
    ):
        """Wrap an open cursor. Use execute_reader() rather than calling this directly."""
        self._result: Optional[CursorResult] = result
        self._map_record = map_record
        self._command = command
        self._owns_command = owns_command
        self._exhausted = False
        self._closed = False
        self._rows_read = 0

        command._attach_stream(self)
        command.transaction._register_stream(self)

    @property
    def is_closed(self) -> bool:
        """Whether the cursor has been released."""
        return self._closed

    @property
    def is_exhausted(self) -> bool:
        """Whether every row has been read."""
        return self._exhausted

    @property
    def rows_read(self) -> int:
        """Number of rows handed out so far."""
        return self._rows_read

    def __iter__(self) -> Iterator[T]:
        return self

    def __next__(self) -> T:
        if self._closed:
            if self._exhausted:
                raise StopIteration
            raise InvalidStateError("Row stream was closed before it was read to the end")

        try:
            row = self._result.fetchone() if self._result.returns_rows else None
        except SQLAlchemyError as e:
            self.close()
            raise ExecutionError(f"Failed to fetch row: {e}") from e

        if row is None:
            self._exhausted = True
            self.close()
            raise StopIteration

        try:
            value = self._map_record(Record(row))
        except Exception as e:
            self.close()
            raise MappingError(f"Record mapping failed at row {self._rows_read}: {e}") from e

        self._rows_read += 1
        return value

    def to_list(self) -> list[T]:
        """Read the remaining rows into a list."""
        return list(self)

    def close(self) -> None:
        """Release the cursor, and the command if the stream owns it. Idempotent."""
        if self._closed:
            return
        self._closed = True

        result, self._result = self._result, None
        if result is not None:
            try:
                result.close()
            except SQLAlchemyError as e:
                logger.warning("Error while closing cursor: %s", e)

        self._command.transaction._unregister_stream(self)
        self._command._attach_stream(None)
        if self._owns_command:
            self._command.close()
        logger.debug("Row stream released after %d rows", self._rows_read)

    def __enter__(self) -> RowStream[T]:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return f"RowStream({state}, rows_read={self._rows_read})"

