"""txsql models package.

This package contains the Pydantic models that represent user-facing
values: connection descriptors, statements, bulk copy options and results.
"""

from txsql.models.bulk import (
    CONNECTION_COPY_OPTIONS,
    TRANSACTION_COPY_OPTIONS,
    BulkCopyOptions,
    ColumnMapping,
)
from txsql.models.descriptor import (
    ConnectionDescriptor,
    IntegratedSecurity,
    SecurityMode,
    UserIdAndPassword,
    build_connection_string,
)
from txsql.models.results import BulkLoadResult
from txsql.models.statement import (
    CommandKind,
    CommandText,
    Statement,
    StoredProcedure,
    new_cmd,
    new_sproc,
)

__all__ = [
    # Descriptor models
    "ConnectionDescriptor",
    "IntegratedSecurity",
    "UserIdAndPassword",
    "SecurityMode",
    "build_connection_string",
    # Statement models
    "CommandKind",
    "CommandText",
    "StoredProcedure",
    "Statement",
    "new_cmd",
    "new_sproc",
    # Bulk copy models
    "BulkCopyOptions",
    "ColumnMapping",
    "TRANSACTION_COPY_OPTIONS",
    "CONNECTION_COPY_OPTIONS",
    # Result models
    "BulkLoadResult",
]
