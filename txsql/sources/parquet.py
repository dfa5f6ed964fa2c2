"""Parquet row source.

This module provides a row source that reads a Parquet file batch by
batch through PyArrow, keeping value types intact.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Iterator, Optional

import pyarrow as pa
import pyarrow.parquet as pq

from txsql.core.row_source import RowSource


class ParquetSource(RowSource):
    """Row source over a Parquet file.

    Only one record batch is held in memory at a time. Values come back
    as Python objects (int stays int, datetime stays datetime).

    Examples:
        >>> with ParquetSource(Path("orders.parquet"), batch_size=50_000) as source:
        ...     while source.read():
        ...         print(source.get_value("order_id"))
    """

    def __init__(self, location: Path, batch_size: int = 10000, columns: Optional[list[str]] = None):
        """Open a Parquet file.

        Args:
            location: Path of the Parquet file
            batch_size: Rows per record batch read from the file
            columns: Subset of columns to read, all when omitted
        """
        super().__init__()
        self.location = Path(location)
        self._file: Optional[pq.ParquetFile] = pq.ParquetFile(self.location)
        schema = self._file.schema_arrow
        self._field_names = list(columns) if columns else list(schema.names)
        self._batches: Iterator[pa.RecordBatch] = self._file.iter_batches(
            batch_size=batch_size, columns=self._field_names
        )
        self._batch: list[list[Any]] = []
        self._batch_length = 0
        self._position = 0

    @property
    def field_names(self) -> list[str]:
        return self._field_names

    def _advance(self) -> bool:
        self._position += 1
        while self._position >= self._batch_length:
            batch = next(self._batches, None)
            if batch is None:
                return False
            self._batch = [column.to_pylist() for column in batch.columns]
            self._batch_length = batch.num_rows
            self._position = 0
        return True

    def _current_value(self, ordinal: int) -> Any:
        return self._batch[ordinal][self._position]

    def close(self) -> None:
        super().close()
        self._batch = []
        if self._file is not None:
            self._file.close()
            self._file = None
