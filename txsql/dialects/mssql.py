"""SQL Server dialect support."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Sequence

from txsql.core.config import config
from txsql.dialects.base import DialectSupport

if TYPE_CHECKING:
    from sqlalchemy.engine import Connection as SAConnection
    from sqlalchemy.sql import Insert, TableClause
    from sqlalchemy.sql.compiler import IdentifierPreparer

    from txsql.models.bulk import BulkCopyOptions
    from txsql.models.descriptor import SecurityMode


class MSSQLSupport(DialectSupport):
    """SQL Server rules.

    SQL Server-specific behavior:
    - pyodbc URLs carry the ODBC driver name and, for integrated
      security, the trusted_connection flag
    - Stored procedures are invoked with EXEC and named arguments
    - Bulk copies can take a TABLOCK hint and keep identity values with
      IDENTITY_INSERT
    """

    name = "mssql"
    supports_procedures = True

    def url_query(self, drivername: str, security: SecurityMode) -> dict[str, str]:
        """Add ODBC driver and trusted_connection arguments."""
        query: dict[str, str] = {}
        if "pyodbc" in drivername:
            query["driver"] = config.odbc_driver
        if security.mode == "integrated":
            query["trusted_connection"] = "yes" if security.enabled else "no"
        return query

    def connect_args(self, timeout: int) -> dict[str, Any]:
        """pyodbc login timeout."""
        return {"timeout": timeout}

    def render_procedure_call(
        self,
        name: str,
        parameter_names: Sequence[str],
        preparer: IdentifierPreparer,
    ) -> str:
        """Render ``EXEC name @a = :a, @b = :b``."""
        sql = f"EXEC {self.quote_name(name, preparer)}"
        if parameter_names:
            arguments = ", ".join(f"@{p} = :{p}" for p in parameter_names)
            sql = f"{sql} {arguments}"
        return sql

    def bulk_insert_statement(self, table: TableClause, options: BulkCopyOptions) -> Insert:
        """Add the TABLOCK hint when a table lock is requested."""
        statement = super().bulk_insert_statement(table, options)
        if options.table_lock:
            statement = statement.with_hint("WITH (TABLOCK)", dialect_name="mssql")
        return statement

    def before_bulk_copy(
        self,
        connection: SAConnection,
        table_name: str,
        options: BulkCopyOptions,
    ) -> None:
        """Allow explicit identity values when keep_identity is set."""
        if options.keep_identity:
            connection.exec_driver_sql(self._identity_insert_sql(connection, table_name, "ON"))

    def after_bulk_copy(
        self,
        connection: SAConnection,
        table_name: str,
        options: BulkCopyOptions,
    ) -> None:
        """Switch IDENTITY_INSERT back off."""
        if options.keep_identity:
            connection.exec_driver_sql(self._identity_insert_sql(connection, table_name, "OFF"))

    def _identity_insert_sql(self, connection: SAConnection, table_name: str, switch: str) -> str:
        """IDENTITY_INSERT toggle, guarded for tables without an identity column."""
        quoted = self.quote_name(table_name, connection.dialect.identifier_preparer)
        literal = table_name.replace("'", "''")
        return (
            f"IF OBJECTPROPERTY(OBJECT_ID(N'{literal}'), 'TableHasIdentity') = 1 "
            f"SET IDENTITY_INSERT {quoted} {switch}"
        )
