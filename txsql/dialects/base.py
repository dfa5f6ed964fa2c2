"""Base dialect support class.

This module defines the per-backend rules txsql needs on top of
SQLAlchemy: how a connection descriptor maps onto a URL, how a stored
procedure call is spelled, and which hints a bulk copy needs.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional, Sequence

from sqlalchemy import insert
from sqlalchemy.engine import URL

from txsql.exceptions import ExecutionError

if TYPE_CHECKING:
    from sqlalchemy.engine import Connection as SAConnection
    from sqlalchemy.engine import Engine
    from sqlalchemy.sql import Insert, TableClause
    from sqlalchemy.sql.compiler import IdentifierPreparer

    from txsql.models.bulk import BulkCopyOptions
    from txsql.models.descriptor import SecurityMode


class DialectSupport:
    """Generic rules for a SQLAlchemy backend.

    Server backends (PostgreSQL, MySQL, ...) are served by this class
    directly. Backends with different conventions subclass it and
    override the relevant hooks.

    Examples:
        >>> support = get_dialect_support("postgresql")
        >>> support.build_url("postgresql+psycopg2", "db.local:5432", "sales", security)
    """

    #: Backend name as reported by ``URL.get_backend_name()``
    name: str = "default"

    #: Whether the backend can run stored procedures
    supports_procedures: bool = False

    def build_url(
        self,
        drivername: str,
        data_source: str,
        catalog: str,
        security: SecurityMode,
    ) -> URL:
        """Build a SQLAlchemy URL from descriptor parts.

        Args:
            drivername: SQLAlchemy driver (e.g., "postgresql+psycopg2")
            data_source: Server address as "host", "host:port" or "host,port"
            catalog: Database name
            security: Integrated or credentialed security mode

        Returns:
            SQLAlchemy URL
        """
        host, port = self._split_data_source(data_source)
        username, password = self._credentials(security)
        return URL.create(
            drivername,
            username=username,
            password=password,
            host=host,
            port=port,
            database=catalog or None,
            query=self.url_query(drivername, security),
        )

    def url_query(self, drivername: str, security: SecurityMode) -> dict[str, str]:
        """Extra URL query arguments for this backend."""
        return {}

    def connect_args(self, timeout: int) -> dict[str, Any]:
        """DBAPI connect() arguments derived from configuration."""
        return {}

    def prepare_engine(self, engine: Engine) -> None:
        """Install engine event hooks needed by this backend."""
        pass

    def render_procedure_call(
        self,
        name: str,
        parameter_names: Sequence[str],
        preparer: IdentifierPreparer,
    ) -> str:
        """Render the SQL that invokes a stored procedure.

        Args:
            name: Procedure name, optionally schema-qualified
            parameter_names: Bound parameter names in call order
            preparer: Dialect identifier preparer used for quoting

        Returns:
            SQL text with ``:name`` bind placeholders

        Raises:
            ExecutionError: If the backend has no stored procedures
        """
        raise ExecutionError(f"{self.name} does not support stored procedures: {name}")

    def bulk_insert_statement(self, table: TableClause, options: BulkCopyOptions) -> Insert:
        """Build the INSERT used for each bulk copy batch."""
        return insert(table)

    def before_bulk_copy(
        self,
        connection: SAConnection,
        table_name: str,
        options: BulkCopyOptions,
    ) -> None:
        """Run session statements needed before a bulk copy."""
        pass

    def after_bulk_copy(
        self,
        connection: SAConnection,
        table_name: str,
        options: BulkCopyOptions,
    ) -> None:
        """Undo session statements issued by before_bulk_copy()."""
        pass

    def quote_name(self, name: str, preparer: IdentifierPreparer) -> str:
        """Quote a possibly schema-qualified name part by part."""
        return ".".join(preparer.quote(part) for part in name.split("."))

    def _credentials(self, security: SecurityMode) -> tuple[Optional[str], Optional[str]]:
        """Return (username, password) for credentialed security, else (None, None)."""
        if security.mode == "credentials":
            return security.user_id, security.password.get_secret_value()
        return None, None

    def _split_data_source(self, data_source: str) -> tuple[Optional[str], Optional[int]]:
        """Split "host:port" or "host,port" into its parts."""
        for separator in (",", ":"):
            host, sep, port = data_source.rpartition(separator)
            if sep and host and port.strip().isdigit():
                return host.strip(), int(port)
        return data_source or None, None
