"""Base RowSource abstract class.

This module defines the pull-based RowSource interface the bulk loader
reads from.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Union


class RowSource(ABC):
    """Abstract base class for tabular row sources.

    A row source is read forward only, one row at a time, like a database
    cursor:

    1. read() - Advance to the next row, False when there are no more
    2. get_value() - Read a column of the current row by ordinal or name
    3. close() - Release files or buffers held by the source

    A source is consumed by reading it; it cannot be rewound.

    Examples:
        >>> source = CsvSource(Path("orders.csv"))
        >>> try:
        ...     while source.read():
        ...         print(source.get_value("order_id"))
        ... finally:
        ...     source.close()
    """

    def __init__(self) -> None:
        self._rows_read = 0
        self._closed = False

    @property
    @abstractmethod
    def field_names(self) -> list[str]:
        """Column names in ordinal order.

        Returns:
            List of column names
        """
        pass

    @abstractmethod
    def _advance(self) -> bool:
        """Move to the next row.

        Returns:
            True if a row is available, False at the end
        """
        pass

    @abstractmethod
    def _current_value(self, ordinal: int) -> Any:
        """Value of the current row at a column ordinal."""
        pass

    def read(self) -> bool:
        """Advance to the next row.

        Returns:
            True if a row is available, False when the source is exhausted
            or closed
        """
        if self._closed:
            return False
        if self._advance():
            self._rows_read += 1
            return True
        return False

    def get_value(self, key: Union[int, str]) -> Any:
        """Read a column of the current row.

        Args:
            key: Column ordinal or name

        Raises:
            KeyError: If the column name is unknown
            IndexError: If the ordinal is out of range
        """
        return self._current_value(self.ordinal(key))

    def ordinal(self, key: Union[int, str]) -> int:
        """Resolve a column name or ordinal to an ordinal.

        Raises:
            KeyError: If the column name is unknown
            IndexError: If the ordinal is out of range
        """
        names = self.field_names
        if isinstance(key, int):
            if not 0 <= key < len(names):
                raise IndexError(f"Column ordinal {key} out of range (0..{len(names) - 1})")
            return key
        try:
            return names.index(key)
        except ValueError:
            raise KeyError(f"Unknown column {key!r}. Available columns: {names}") from None

    def close(self) -> None:
        """Release resources. Idempotent."""
        self._closed = True

    @property
    def rows_read(self) -> int:
        """Number of rows read so far."""
        return self._rows_read

    @property
    def is_closed(self) -> bool:
        return self._closed

    def __enter__(self) -> RowSource:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
