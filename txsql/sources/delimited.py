"""CSV row source."""

from __future__ import annotations

import csv
from pathlib import Path
from typing import IO, Any, Optional

from txsql.core.row_source import RowSource


class CsvSource(RowSource):
    """Row source over a delimited text file with a header row.

    Values are read as strings; empty fields read as None so that
    nullable destination columns receive NULL. Blank lines are skipped,
    except in a single-column file, where they are rows holding NULL.

    Examples:
        >>> with CsvSource(Path("orders.csv")) as source:
        ...     while source.read():
        ...         print(source.get_value(0))
    """

    def __init__(
        self,
        location: Path,
        delimiter: str = ",",
        encoding: str = "utf-8",
        null_string: Optional[str] = "",
    ):
        """Open a CSV file and read its header.

        Args:
            location: Path of the CSV file
            delimiter: Field delimiter
            encoding: File encoding
            null_string: Field value read as None (None disables the conversion)
        """
        super().__init__()
        self.location = Path(location)
        self.null_string = null_string
        self._file: Optional[IO[str]] = open(self.location, newline="", encoding=encoding)
        self._reader = csv.reader(self._file, delimiter=delimiter)
        self._field_names = next(self._reader, [])
        self._current: list[str] = []

    @property
    def field_names(self) -> list[str]:
        return self._field_names

    def _advance(self) -> bool:
        # A blank line is a NULL value when the file has a single column
        single_column = len(self._field_names) == 1
        for row in self._reader:
            if row or single_column:
                self._current = row
                return True
        return False

    def _current_value(self, ordinal: int) -> Any:
        if ordinal >= len(self._current):
            return None
        value = self._current[ordinal]
        if self.null_string is not None and value == self.null_string:
            return None
        return value

    def close(self) -> None:
        super().close()
        if self._file is not None:
            self._file.close()
            self._file = None
