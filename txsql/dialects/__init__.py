"""Dialect support for txsql.

Each backend gets a DialectSupport object describing the rules the core
needs beyond what SQLAlchemy provides. Unknown backends fall back to the
generic rules.
"""

from txsql.dialects.base import DialectSupport
from txsql.dialects.mssql import MSSQLSupport
from txsql.dialects.postgresql import MySQLSupport, PostgresSupport
from txsql.dialects.sqlite import SQLiteSupport

# Backend name (URL.get_backend_name()) -> support instance
_REGISTRY: dict[str, DialectSupport] = {
    "mssql": MSSQLSupport(),
    "postgresql": PostgresSupport(),
    "mysql": MySQLSupport(),
    "mariadb": MySQLSupport(),
    "sqlite": SQLiteSupport(),
}

_DEFAULT = DialectSupport()


def get_dialect_support(backend_name: str) -> DialectSupport:
    """Get the support object for a backend.

    Args:
        backend_name: Backend name, with or without driver (e.g., "mssql+pyodbc")

    Returns:
        Registered DialectSupport, or the generic one for unknown backends
    """
    return _REGISTRY.get(backend_name.split("+", 1)[0], _DEFAULT)


__all__ = [
    "DialectSupport",
    "MSSQLSupport",
    "MySQLSupport",
    "PostgresSupport",
    "SQLiteSupport",
    "get_dialect_support",
]
