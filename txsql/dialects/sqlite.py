"""SQLite dialect support."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy import event
from sqlalchemy.engine import URL

from txsql.dialects.base import DialectSupport

if TYPE_CHECKING:
    from sqlalchemy.engine import Connection as SAConnection
    from sqlalchemy.engine import Engine

    from txsql.models.bulk import BulkCopyOptions
    from txsql.models.descriptor import SecurityMode


class SQLiteSupport(DialectSupport):
    """SQLite rules.

    SQLite-specific behavior:
    - The data source is the database file path, catalog and credentials
      are not used
    - pysqlite's implicit transaction handling is replaced with explicit
      BEGIN so that savepoints behave as on server backends
    - CHECK constraints can be switched off for the duration of a bulk copy
    """

    name = "sqlite"

    def build_url(
        self,
        drivername: str,
        data_source: str,
        catalog: str,
        security: SecurityMode,
    ) -> URL:
        """Build a SQLite URL with the data source as database file."""
        return URL.create(drivername, database=data_source or None)

    def connect_args(self, timeout: int) -> dict[str, Any]:
        """Use the connection timeout as the busy timeout."""
        return {"timeout": timeout}

    def prepare_engine(self, engine: Engine) -> None:
        """Take over transaction control from pysqlite.

        pysqlite begins transactions lazily and commits around SAVEPOINT,
        so the driver is put in autocommit mode and BEGIN is emitted
        whenever SQLAlchemy starts a transaction.
        """

        @event.listens_for(engine, "connect")
        def _disable_driver_transactions(dbapi_connection, connection_record):
            dbapi_connection.isolation_level = None

        @event.listens_for(engine, "begin")
        def _emit_begin(conn):
            conn.exec_driver_sql("BEGIN")

    def before_bulk_copy(
        self,
        connection: SAConnection,
        table_name: str,
        options: BulkCopyOptions,
    ) -> None:
        """Disable CHECK constraints when the copy asks for it."""
        if not options.check_constraints:
            connection.exec_driver_sql("PRAGMA ignore_check_constraints = ON")

    def after_bulk_copy(
        self,
        connection: SAConnection,
        table_name: str,
        options: BulkCopyOptions,
    ) -> None:
        """Restore CHECK constraint enforcement."""
        if not options.check_constraints:
            connection.exec_driver_sql("PRAGMA ignore_check_constraints = OFF")
