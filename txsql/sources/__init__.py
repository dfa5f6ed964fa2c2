"""Row source implementations for the bulk loader."""

from txsql.sources.delimited import CsvSource
from txsql.sources.memory import RecordSource
from txsql.sources.parquet import ParquetSource

__all__ = ["CsvSource", "ParquetSource", "RecordSource"]
