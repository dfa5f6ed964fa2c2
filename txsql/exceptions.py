"""txsql exception hierarchy."""

from __future__ import annotations


class TxSQLError(Exception):
    """Base exception for all txsql errors."""

    pass


class ConfigurationError(TxSQLError):
    """Raised when configuration or a connection string is invalid."""

    pass


class ConnectivityError(TxSQLError):
    """Raised when a session with the database cannot be established."""

    pass


class InvalidStateError(TxSQLError):
    """Raised when a connection, transaction or command is in the wrong lifecycle state."""

    pass


class TransactionStateError(InvalidStateError):
    """Raised on commit or rollback of a transaction that already ended."""

    pass


class ExecutionError(TxSQLError):
    """Raised when the server rejects a statement."""

    pass


class BulkLoadError(TxSQLError):
    """Raised when a bulk copy is rejected or interrupted."""

    pass


class MappingError(TxSQLError):
    """Raised when a user-supplied scalar or record mapping fails."""

    pass
