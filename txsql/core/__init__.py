"""txsql core package.

This package contains the execution pipeline: connections, transactions,
bound commands, the execution engine, the bulk loader and the railway
adapters that tie failures to commit/rollback decisions.
"""

from txsql.core.bulk_copy import (
    BulkCopy,
    apply_column_mappings,
    bulk_insert,
    bulk_insert_on_connection,
    create_bulk_copy,
)
from txsql.core.command import BoundCommand, bind, bind_with_parameters, with_parameters
from txsql.core.config import TxSQLConfig, config, load_config
from txsql.core.connection import (
    Connection,
    ConnectionState,
    close_connection,
    connect,
    create_connection,
    create_open_connection,
    open_connection,
)
from txsql.core.execution import (
    execute,
    execute_non_query,
    execute_reader,
    execute_scalar,
    query,
    scalar,
)
from txsql.core.railway import Err, Ok, Result, pass_through, railway, try_catch, try_run
from txsql.core.reader import Record, RowStream
from txsql.core.row_source import RowSource
from txsql.core.transaction import (
    Transaction,
    TransactionState,
    begin_transaction,
    commit,
    commit_or_rollback,
    release,
    rollback,
    save,
    undo,
)

__all__ = [
    # Configuration
    "TxSQLConfig",
    "config",
    "load_config",
    # Connections
    "Connection",
    "ConnectionState",
    "create_connection",
    "open_connection",
    "close_connection",
    "create_open_connection",
    "connect",
    # Transactions
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
    # Railway
    "Ok",
    "Err",
    "Result",
    "try_run",
    "try_catch",
    "railway",
    "pass_through",
]
