"""Execution engine.

Runs bound commands in one of three modes:
- execute_non_query(): run and discard the affected row count
- execute_scalar(): first column of the first row, mapped
- execute_reader(): lazy stream of mapped rows

The helpers execute(), scalar() and query() bind, parameterize, run and
release a command in one call and are the usual entry points.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable, TypeVar, Union

from sqlalchemy.exc import SQLAlchemyError

from txsql.core.command import BoundCommand, Parameters, bind_with_parameters
from txsql.core.config import config
from txsql.core.reader import Record, RowStream
from txsql.exceptions import ExecutionError, InvalidStateError, MappingError

if TYPE_CHECKING:
    from sqlalchemy.engine import CursorResult

    from txsql.core.transaction import Transaction
    from txsql.models.statement import CommandText, StoredProcedure

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _run(command: BoundCommand, stream: bool = False) -> CursorResult:
    """Execute a command on its transaction's connection.

    Raises:
        InvalidStateError: If the command is closed or its transaction ended
        ExecutionError: If the server rejects the statement
    """
    if not command.transaction.is_active:
        raise InvalidStateError(
            f"Cannot execute on a {command.transaction.state.value} transaction"
        )

    executable = command.realize()
    sa_connection = command.transaction.sa_connection
    if stream and config.stream_results:
        executable = executable.execution_options(stream_results=True)

    logger.debug(
        "Executing %s %r with parameters %s",
        command.kind.value,
        command.text,
        list(command.parameters),
    )
    command._mark_executed()

    try:
        return sa_connection.execute(executable, command.parameters)
    except SQLAlchemyError as e:
        raise ExecutionError(f"Failed to execute {command.kind.value} {command.text!r}: {e}") from e


def execute_non_query(command: BoundCommand) -> None:
    """Run a command, ignoring the number of affected rows.

    Raises:
        ExecutionError: If the server rejects the statement
    """
    result = _run(command)
    result.close()


def execute_scalar(command: BoundCommand, map_scalar: Callable[[Any], T]) -> T:
    """Run a command and map the first column of its first row.

    When the statement returns no rows, map_scalar receives None, so it
    must handle that case.

    Raises:
        ExecutionError: If the server rejects the statement
        MappingError: If map_scalar raises
    """
    result = _run(command)
    try:
        value = result.scalar() if result.returns_rows else None
    except SQLAlchemyError as e:
        raise ExecutionError(f"Failed to read scalar of {command.text!r}: {e}") from e
    finally:
        result.close()

    try:
        return map_scalar(value)
    except Exception as e:
        raise MappingError(f"Scalar mapping failed for value {value!r}: {e}") from e


def execute_reader(
    command: BoundCommand,
    map_record: Callable[[Record], T],
    owns_command: bool = True,
) -> RowStream[T]:
    """Run a command and stream its rows through map_record.

    The statement runs immediately; rows are fetched and mapped only as
    the stream is consumed. The stream releases the command when it is
    released itself, unless owns_command is False.

    Args:
        command: Bound command
        map_record: Maps a Record to a value
        owns_command: Close the command together with the stream; pass
            False to keep the command open after the stream ends

    Returns:
        Lazy single-pass RowStream

    Raises:
        ExecutionError: If the server rejects the statement
    """
    try:
        result = _run(command, stream=True)
    except Exception:
        if owns_command:
            command.close()
        raise
    return RowStream(result, map_record, command, owns_command=owns_command)


def execute(
    statement: Union[CommandText, StoredProcedure],
    parameters: Parameters,
    transaction: Transaction,
) -> None:
    """Bind, parameterize and run a statement without results."""
    with bind_with_parameters(statement, parameters, transaction) as command:
        execute_non_query(command)


def scalar(
    statement: Union[CommandText, StoredProcedure],
    parameters: Parameters,
    map_scalar: Callable[[Any], T],
    transaction: Transaction,
) -> T:
    """Bind, parameterize and run a statement, returning its mapped scalar."""
    with bind_with_parameters(statement, parameters, transaction) as command:
        return execute_scalar(command, map_scalar)


def query(
    statement: Union[CommandText, StoredProcedure],
    parameters: Parameters,
    map_record: Callable[[Record], T],
    transaction: Transaction,
) -> RowStream[T]:
    """Bind, parameterize and run a statement, streaming its mapped rows.

    The command is released together with the returned stream. A loop
    left early with ``break`` does not release the stream; read it inside
    ``with`` or call close(), otherwise the cursor stays open until the
    transaction ends.

    Examples:
        >>> rows = query(new_cmd("select 1 as N union all select 2"), [], lambda r: int(r[0]), tx)
        >>> list(rows)
        [1, 2]
    """
    command = bind_with_parameters(statement, parameters, transaction)
    return execute_reader(command, map_record)
