"""Bulk loader.

Streams rows from a RowSource into a destination table with batched
executemany INSERTs, outside row-by-row statement execution.

Two explicit modes:
- bulk_insert(): inside the caller's transaction; the caller decides
  whether the copy persists
- bulk_insert_on_connection(): in a transaction of its own on a bare
  connection, committed on success and rolled back on failure

A copy is all-or-nothing within its governing transaction.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING, Any, Iterable, Iterator, Optional, Union

from sqlalchemy import column, table

from txsql.core.config import config
from txsql.core.transaction import begin_transaction
from txsql.exceptions import BulkLoadError, InvalidStateError
from txsql.models.bulk import (
    CONNECTION_COPY_OPTIONS,
    TRANSACTION_COPY_OPTIONS,
    BulkCopyOptions,
    ColumnMapping,
)
from txsql.models.results import BulkLoadResult

if TYPE_CHECKING:
    from txsql.core.connection import Connection
    from txsql.core.row_source import RowSource
    from txsql.core.transaction import Transaction

logger = logging.getLogger(__name__)

MappingSpec = Union[ColumnMapping, tuple[Union[int, str], str]]


class BulkCopy:
    """A bulk copy channel into one table within one transaction.

    Examples:
        >>> bulk_copy = create_bulk_copy("orders", tx)
        >>> apply_column_mappings([("OrderId", "order_id"), ("Total", "total")], bulk_copy)
        >>> result = bulk_copy.write_to_server(CsvSource(Path("orders.csv")))
        >>> result.rows_copied
        3
    """

    def __init__(
        self,
        transaction: Transaction,
        destination_table: str,
        options: BulkCopyOptions = TRANSACTION_COPY_OPTIONS,
        batch_size: Optional[int] = None,
    ):
        """Create a bulk copy channel.

        Args:
            transaction: Governing transaction
            destination_table: Destination table, optionally schema-qualified
            options: Copy policy
            batch_size: Rows per executemany, defaults to config.bulk_batch_size

        Raises:
            InvalidStateError: If the transaction is not active
            ValueError: If the table name is empty
        """
        if not transaction.is_active:
            raise InvalidStateError(f"Cannot bulk copy in a {transaction.state.value} transaction")
        if not destination_table or not destination_table.strip():
            raise ValueError("destination_table must not be empty")

        self.transaction = transaction
        self.destination_table = destination_table.strip()
        self.options = options
        self.batch_size = batch_size or config.bulk_batch_size
        self.column_mappings: list[ColumnMapping] = []

    def add_column_mapping(self, source: Union[int, str], destination: str) -> None:
        """Append a source to destination column mapping."""
        self.column_mappings.append(ColumnMapping(source=source, destination=destination))

    def write_to_server(self, source: RowSource) -> BulkLoadResult:
        """Stream every row of source into the destination table.

        The source is read to the end and closed, whatever the outcome.

        Args:
            source: Row source to copy from

        Returns:
            BulkLoadResult with metrics

        Raises:
            BulkLoadError: If the copy is rejected or interrupted
        """
        started_at = datetime.now()
        rows_copied = 0
        batches = 0

        try:
            mappings = self._resolve_mappings(source)
            support = self.transaction.connection.dialect_support
            sa_connection = self.transaction.sa_connection

            schema, _, name = self.destination_table.rpartition(".")
            target = table(name, *[column(m.destination) for m in mappings], schema=schema or None)
            statement = support.bulk_insert_statement(target, self.options)
            ordinals = [(source.ordinal(m.source), m.destination) for m in mappings]

            support.before_bulk_copy(sa_connection, self.destination_table, self.options)
            try:
                for batch in self._read_batches(source, ordinals):
                    sa_connection.execute(statement, batch)
                    rows_copied += len(batch)
                    batches += 1
            finally:
                support.after_bulk_copy(sa_connection, self.destination_table, self.options)

        except BulkLoadError:
            raise
        except Exception as e:
            mapping_text = ", ".join(str(m) for m in self.column_mappings) or "by name"
            raise BulkLoadError(
                f"Bulk copy into {self.destination_table} failed after {rows_copied} rows "
                f"(mappings: {mapping_text}): {e}"
            ) from e
        finally:
            self._drain(source)

        completed_at = datetime.now()
        duration = (completed_at - started_at).total_seconds()
        logger.info("Copied %d rows into %s in %.2fs", rows_copied, self.destination_table, duration)

        return BulkLoadResult(
            destination_table=self.destination_table,
            column_mappings=list(self.column_mappings),
            rows_copied=rows_copied,
            batches=batches,
            duration_seconds=duration,
            started_at=started_at,
            completed_at=completed_at,
        )

    def _resolve_mappings(self, source: RowSource) -> list[ColumnMapping]:
        """Explicit mappings, or every source field mapped onto itself."""
        if self.column_mappings:
            return self.column_mappings
        if not source.field_names:
            raise BulkLoadError("Row source has no columns and no column mappings were given")
        return [ColumnMapping(source=name, destination=name) for name in source.field_names]

    def _read_batches(
        self, source: RowSource, ordinals: list[tuple[int, str]]
    ) -> Iterator[list[dict[str, Any]]]:
        batch: list[dict[str, Any]] = []
        while source.read():
            batch.append({dest: source.get_value(ordinal) for ordinal, dest in ordinals})
            if len(batch) >= self.batch_size:
                yield batch
                batch = []
        if batch:
            yield batch

    @staticmethod
    def _drain(source: RowSource) -> None:
        """Exhaust and close the source so it cannot be reused."""
        try:
            while source.read():
                pass
        except Exception as e:
            logger.warning("Could not drain row source: %s", e)
        finally:
            source.close()


def create_bulk_copy(
    destination_table: str,
    transaction: Transaction,
    options: BulkCopyOptions = TRANSACTION_COPY_OPTIONS,
) -> BulkCopy:
    """Create a BulkCopy into a table within a transaction."""
    return BulkCopy(transaction, destination_table, options)


def apply_column_mappings(column_mappings: Iterable[MappingSpec], bulk_copy: BulkCopy) -> BulkCopy:
    """Add (source, destination) column mappings to a BulkCopy, in order."""
    for mapping in column_mappings:
        if isinstance(mapping, ColumnMapping):
            bulk_copy.column_mappings.append(mapping)
        else:
            source, destination = mapping
            bulk_copy.add_column_mapping(source, destination)
    return bulk_copy


def bulk_insert(
    destination_table: str,
    column_mappings: Iterable[MappingSpec],
    source: RowSource,
    transaction: Transaction,
) -> BulkLoadResult:
    """Copy a row source into a table inside the caller's transaction.

    Args:
        destination_table: Destination table
        column_mappings: (source, destination) pairs; empty maps columns by name
        source: Row source, consumed by the copy
        transaction: Governing transaction, left active

    Returns:
        BulkLoadResult with metrics

    Raises:
        InvalidStateError: If the transaction is not active
        BulkLoadError: If the copy fails
    """
    bulk_copy = create_bulk_copy(destination_table, transaction, TRANSACTION_COPY_OPTIONS)
    apply_column_mappings(column_mappings, bulk_copy)
    return bulk_copy.write_to_server(source)


def bulk_insert_on_connection(
    destination_table: str,
    column_mappings: Iterable[MappingSpec],
    source: RowSource,
    connection: Connection,
) -> BulkLoadResult:
    """Copy a row source into a table in a transaction of its own.

    The transaction is committed when the copy succeeds and rolled back
    when it fails, so either every row lands or none does.

    Args:
        destination_table: Destination table
        column_mappings: (source, destination) pairs; empty maps columns by name
        source: Row source, consumed by the copy
        connection: Open connection without an active transaction

    Returns:
        BulkLoadResult with metrics

    Raises:
        InvalidStateError: If the connection is closed or already in a transaction
        BulkLoadError: If the copy or its commit fails
    """
    transaction = begin_transaction(connection)
    try:
        bulk_copy = create_bulk_copy(destination_table, transaction, CONNECTION_COPY_OPTIONS)
        apply_column_mappings(column_mappings, bulk_copy)
        result = bulk_copy.write_to_server(source)
    except Exception:
        if transaction.is_active:
            transaction.rollback()
        raise

    try:
        transaction.commit()
    except Exception as e:
        raise BulkLoadError(f"Bulk copy into {destination_table} could not be committed: {e}") from e
    return result
