"""Statement binding.

A BoundCommand is a Statement attached to an active Transaction, with
its parameters. It is realised into a SQLAlchemy executable only when it
runs, so parameters can be attached in any order before that.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Any, Iterable, Mapping, Optional, Union

from sqlalchemy import text

from txsql.exceptions import InvalidStateError
from txsql.models.statement import CommandKind, CommandText, StoredProcedure

if TYPE_CHECKING:
    from sqlalchemy.sql.elements import TextClause

    from txsql.core.reader import RowStream
    from txsql.core.transaction import Transaction

logger = logging.getLogger(__name__)

Parameters = Union[Mapping[str, Any], Iterable[tuple[str, Any]]]

# Same token rule as sqlalchemy.text(): ":name", not "::" and not "\:"
_BIND_TOKEN = re.compile(r"(?<![:\w\\]):(\w+)(?!:)", re.UNICODE)


def escape_unbound_tokens(sql: str, names: Iterable[str]) -> str:
    """Escape ``:name`` tokens that are not registered parameters.

    text() treats every ``:name`` as a bind parameter, including ones in
    string literals and comments. Tokens whose name is not registered are
    escaped so the text reaches the driver as written.
    """
    registered = set(names)

    def _escape(match: re.Match) -> str:
        if match.group(1) in registered:
            return match.group(0)
        return "\\" + match.group(0)

    return _BIND_TOKEN.sub(_escape, sql)


def normalize_parameter_name(name: str) -> str:
    """Strip a leading ``@`` or ``:`` from a parameter name.

    Raises:
        ValueError: If nothing is left of the name
    """
    normalized = name.lstrip("@:").strip()
    if not normalized:
        raise ValueError(f"Invalid parameter name: {name!r}")
    return normalized


class BoundCommand:
    """A statement bound to a transaction, ready to execute.

    Parameters are kept in insertion order. Registering a name that is
    already present replaces its value (last write wins) and keeps its
    original position. Once the command has executed, its parameters are
    frozen.

    A command is a resource: close it, or use it as a context manager,
    when done. Closing also closes a row stream still reading from it.
    """

    def __init__(
        self,
        statement: Union[CommandText, StoredProcedure],
        kind: CommandKind,
        transaction: Transaction,
    ):
        """Create a bound command. Use bind() rather than calling this directly."""
        self.statement = statement
        self.kind = kind
        self.transaction = transaction
        self._parameters: dict[str, Any] = {}
        self._executed = False
        self._closed = False
        self._stream: Optional[RowStream] = None

    @property
    def parameters(self) -> dict[str, Any]:
        """Copy of the registered parameters."""
        return dict(self._parameters)

    @property
    def text(self) -> str:
        """The SQL text or procedure name."""
        if isinstance(self.statement, CommandText):
            return self.statement.sql
        return self.statement.name

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def has_executed(self) -> bool:
        return self._executed

    def add_parameter(self, name: str, value: Any) -> None:
        """Register one parameter.

        Raises:
            InvalidStateError: If the command has executed or is closed
            ValueError: If the name is empty
        """
        if self._closed:
            raise InvalidStateError("Cannot add parameters to a closed command")
        if self._executed:
            raise InvalidStateError("Cannot add parameters after the command has executed")
        self._parameters[normalize_parameter_name(name)] = value

    def realize(self) -> TextClause:
        """Build the SQLAlchemy executable for this command.

        Raises:
            InvalidStateError: If the command is closed or its transaction ended
            ExecutionError: If the backend cannot run stored procedures
        """
        if self._closed:
            raise InvalidStateError("Command is closed")
        sa_connection = self.transaction.sa_connection

        if self.kind is CommandKind.STORED_PROCEDURE:
            support = self.transaction.connection.dialect_support
            sql = support.render_procedure_call(
                self.text,
                list(self._parameters),
                sa_connection.dialect.identifier_preparer,
            )
        else:
            sql = escape_unbound_tokens(self.text, self._parameters)
        return text(sql)

    def _mark_executed(self) -> None:
        self._executed = True

    def _attach_stream(self, stream: RowStream) -> None:
        self._stream = stream

    def close(self) -> None:
        """Release the command. Idempotent."""
        if self._closed:
            return
        self._closed = True
        stream, self._stream = self._stream, None
        if stream is not None:
            stream.close()

    def __enter__(self) -> BoundCommand:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    def __repr__(self) -> str:
        return (
            f"BoundCommand(kind={self.kind.value}, text={self.text!r}, "
            f"parameters={list(self._parameters)})"
        )


def bind(statement: Union[CommandText, StoredProcedure], transaction: Transaction) -> BoundCommand:
    """Bind a statement to an active transaction.

    Raises:
        InvalidStateError: If the transaction is not active
    """
    if not transaction.is_active:
        raise InvalidStateError(f"Cannot bind a statement to a {transaction.state.value} transaction")

    if isinstance(statement, CommandText):
        kind = CommandKind.TEXT
    elif isinstance(statement, StoredProcedure):
        kind = CommandKind.STORED_PROCEDURE
    else:
        raise TypeError(f"Not a statement: {statement!r}")

    return BoundCommand(statement, kind, transaction)


def with_parameters(command: BoundCommand, parameters: Parameters) -> BoundCommand:
    """Register name/value parameters on a command.

    Args:
        command: Bound command
        parameters: Mapping or iterable of (name, value) pairs; a repeated
            name replaces the earlier value

    Returns:
        The same command

    Raises:
        InvalidStateError: If the command has executed or is closed
    """
    pairs = parameters.items() if isinstance(parameters, Mapping) else parameters
    for name, value in pairs:
        command.add_parameter(name, value)
    return command


def bind_with_parameters(
    statement: Union[CommandText, StoredProcedure],
    parameters: Parameters,
    transaction: Transaction,
) -> BoundCommand:
    """Bind a statement and register its parameters in one call."""
    return with_parameters(bind(statement, transaction), parameters)
