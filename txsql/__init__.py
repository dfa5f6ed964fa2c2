"""txsql - Transactional SQL access layer."""

__version__ = "0.1.0"

# Re-export the execution pipeline (core first, models import core.config)
from txsql.core import (
    BoundCommand,
    BulkCopy,
    Connection,
    ConnectionState,
    Err,
    Ok,
    Record,
    Result,
    RowSource,
    RowStream,
    Transaction,
    TransactionState,
    apply_column_mappings,
    begin_transaction,
    bind,
    bind_with_parameters,
    bulk_insert,
    bulk_insert_on_connection,
    close_connection,
    commit,
    commit_or_rollback,
    connect,
    create_bulk_copy,
    create_connection,
    create_open_connection,
    execute,
    execute_non_query,
    execute_reader,
    execute_scalar,
    open_connection,
    pass_through,
    query,
    railway,
    release,
    rollback,
    save,
    scalar,
    try_catch,
    try_run,
    undo,
    with_parameters,
)

# Re-export models for convenience
from txsql.models import (
    BulkCopyOptions,
    BulkLoadResult,
    ColumnMapping,
    CommandKind,
    CommandText,
    ConnectionDescriptor,
    IntegratedSecurity,
    StoredProcedure,
    UserIdAndPassword,
    build_connection_string,
    new_cmd,
    new_sproc,
)

# Re-export row sources
from txsql.sources import CsvSource, ParquetSource, RecordSource

__all__ = [
    # Version
    "__version__",
    # Models
    "ConnectionDescriptor",
    "IntegratedSecurity",
    "UserIdAndPassword",
    "build_connection_string",
    "CommandKind",
    "CommandText",
    "StoredProcedure",
    "new_cmd",
    "new_sproc",
    "BulkCopyOptions",
    "ColumnMapping",
    "BulkLoadResult",
    # Connections and transactions
    "Connection",
    "ConnectionState",
    "create_connection",
    "open_connection",
    "close_connection",
    "create_open_connection",
    "connect",
    "Transaction",
    "TransactionState",
    "begin_transaction",
    "commit",
    "rollback",
    "save",
    "undo",
    "release",
    "commit_or_rollback",
    # Commands and execution
    "BoundCommand",
    "bind",
    "with_parameters",
    "bind_with_parameters",
    "execute_non_query",
    "execute_scalar",
    "execute_reader",
    "execute",
    "scalar",
    "query",
    "Record",
    "RowStream",
    # Bulk loading
    "RowSource",
    "BulkCopy",
    "create_bulk_copy",
    "apply_column_mappings",
    "bulk_insert",
    "bulk_insert_on_connection",
    "CsvSource",
    "ParquetSource",
    "RecordSource",
    # Railway
    "Ok",
    "Err",
    "Result",
    "try_run",
    "try_catch",
    "railway",
    "pass_through",
]
