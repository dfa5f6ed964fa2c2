"""PostgreSQL and MySQL dialect support."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Sequence

from txsql.dialects.base import DialectSupport

if TYPE_CHECKING:
    from sqlalchemy.engine import Connection as SAConnection
    from sqlalchemy.sql.compiler import IdentifierPreparer

    from txsql.models.bulk import BulkCopyOptions


class CallProcedureSupport(DialectSupport):
    """Backends that invoke procedures with ``CALL name(...)``."""

    supports_procedures = True

    def render_procedure_call(
        self,
        name: str,
        parameter_names: Sequence[str],
        preparer: IdentifierPreparer,
    ) -> str:
        """Render ``CALL name(:a, :b)`` with positional arguments."""
        arguments = ", ".join(f":{p}" for p in parameter_names)
        return f"CALL {self.quote_name(name, preparer)}({arguments})"


class PostgresSupport(CallProcedureSupport):
    """PostgreSQL rules.

    Table locks for bulk copies are taken with LOCK TABLE, which holds
    until the governing transaction ends.
    """

    name = "postgresql"

    def connect_args(self, timeout: int) -> dict[str, Any]:
        """libpq connect timeout."""
        return {"connect_timeout": timeout}

    def before_bulk_copy(
        self,
        connection: SAConnection,
        table_name: str,
        options: BulkCopyOptions,
    ) -> None:
        """Lock the destination table when requested."""
        if options.table_lock:
            quoted = self.quote_name(table_name, connection.dialect.identifier_preparer)
            connection.exec_driver_sql(f"LOCK TABLE {quoted} IN EXCLUSIVE MODE")


class MySQLSupport(CallProcedureSupport):
    """MySQL and MariaDB rules."""

    name = "mysql"

    def connect_args(self, timeout: int) -> dict[str, Any]:
        """Driver connect timeout."""
        return {"connect_timeout": timeout}
