"""In-memory row source.

This module provides a row source over Python records, for tests and
for data already held in memory.
"""

from __future__ import annotations

from typing import Any, Iterable, Iterator, Mapping, Optional, Sequence, Union

from txsql.core.row_source import RowSource


class RecordSource(RowSource):
    """Row source over dicts or sequences.

    Records are pulled from the iterable one at a time, so a generator
    is consumed lazily. Dict records are read by field name, missing keys
    read as None; sequence records are read by position.

    Examples:
        >>> source = RecordSource([{"id": 1, "name": "Alice"}, {"id": 2, "name": "Bob"}])
        >>> source.field_names
        ['id', 'name']

        >>> source = RecordSource([(1, "Alice")], field_names=["id", "name"])
    """

    def __init__(
        self,
        records: Iterable[Union[Mapping[str, Any], Sequence[Any]]],
        field_names: Optional[Sequence[str]] = None,
    ):
        """Initialize record source.

        Args:
            records: Dicts or sequences, one per row
            field_names: Column names; taken from the first dict when omitted

        Raises:
            ValueError: If field names are omitted and the first record is not a dict
        """
        super().__init__()
        self._records: Iterator[Any] = iter(records)
        self._current: Any = None
        self._pending: list[Any] = []

        if field_names is None:
            first = next(self._records, None)
            if first is None:
                field_names = []
            elif isinstance(first, Mapping):
                field_names = list(first.keys())
                self._pending.append(first)
            else:
                raise ValueError("field_names is required for sequence records")
        self._field_names = list(field_names)

    @property
    def field_names(self) -> list[str]:
        return self._field_names

    def _advance(self) -> bool:
        if self._pending:
            self._current = self._pending.pop()
            return True
        self._current = next(self._records, None)
        return self._current is not None

    def _current_value(self, ordinal: int) -> Any:
        if isinstance(self._current, Mapping):
            return self._current.get(self._field_names[ordinal])
        return self._current[ordinal]

    def close(self) -> None:
        super().close()
        self._current = None
        self._pending.clear()
