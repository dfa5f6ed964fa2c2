"""Transaction controller.

This module defines the Transaction handle and the functions that begin,
commit, roll back and savepoint it, plus commit_or_rollback(), the one
place where the outcome of a unit of work decides whether it persists.

State machine:
    ACTIVE --commit--> COMMITTED (terminal)
    ACTIVE --rollback--> ROLLED_BACK (terminal)
    ACTIVE --undo(name)--> ACTIVE
    ACTIVE --save(name)--> ACTIVE
"""

from __future__ import annotations

import logging
import re
from enum import Enum
from typing import TYPE_CHECKING, Any, Optional

from sqlalchemy.exc import SQLAlchemyError

from txsql.core.railway import Err, Ok, Result, describe_exception
from txsql.exceptions import ExecutionError, InvalidStateError, TransactionStateError

if TYPE_CHECKING:
    from sqlalchemy.engine import Connection as SAConnection
    from sqlalchemy.engine import RootTransaction

    from txsql.core.connection import Connection
    from txsql.core.reader import RowStream

logger = logging.getLogger(__name__)

_SAVEPOINT_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class TransactionState(str, Enum):
    """Lifecycle state of a Transaction."""

    ACTIVE = "active"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


class Transaction:
    """A transaction bound to one open Connection.

    Commit and full rollback are one-shot: after either, the transaction
    is terminal and a second attempt raises TransactionStateError.
    Savepoints give partial rollback that keeps the transaction active.

    Used as a context manager, a transaction that is still active on exit
    is committed, or rolled back if the block raised.

    Examples:
        >>> with begin_transaction(conn) as tx:
        ...     execute(new_cmd("DELETE FROM staging"), [], tx)

        >>> tx = begin_transaction(conn)
        >>> result = try_run(execute, new_cmd(sql), params, tx)
        >>> commit_or_rollback(tx, result)
    """

    def __init__(self, connection: Connection, sa_transaction: RootTransaction):
        """Wrap a begun SQLAlchemy transaction.

        Use begin_transaction() rather than calling this directly.
        """
        self.connection = connection
        self._sa_transaction = sa_transaction
        self._state = TransactionState.ACTIVE
        self._savepoints: list[str] = []
        self._streams: list[RowStream] = []

    @property
    def state(self) -> TransactionState:
        """Current lifecycle state."""
        return self._state

    @property
    def is_active(self) -> bool:
        """Whether the transaction can still run statements."""
        return self._state is TransactionState.ACTIVE

    @property
    def savepoints(self) -> list[str]:
        """Names of the savepoints currently set, oldest first."""
        return list(self._savepoints)

    @property
    def sa_connection(self) -> SAConnection:
        """The SQLAlchemy connection statements run on.

        Raises:
            InvalidStateError: If the transaction is not active
        """
        self._require_active(InvalidStateError)
        return self.connection.sa_connection

    def commit(self) -> None:
        """Commit the transaction.

        Open row streams are released first. If the server rejects the
        commit, the transaction is rolled back and ends ROLLED_BACK.

        Raises:
            TransactionStateError: If the transaction already ended
            ExecutionError: If the server rejects the commit
        """
        self._require_active(TransactionStateError)
        self._release_streams()

        try:
            self._sa_transaction.commit()
        except SQLAlchemyError as e:
            self._rollback_after_failed_commit()
            self._finish(TransactionState.ROLLED_BACK)
            raise ExecutionError(f"Commit rejected: {e}") from e

        self._finish(TransactionState.COMMITTED)
        logger.info("Committed transaction on %s", self.connection.safe_url)

    def rollback(self) -> None:
        """Roll back the whole transaction.

        Raises:
            TransactionStateError: If the transaction already ended
            ExecutionError: If the server rejects the rollback
        """
        self._require_active(TransactionStateError)
        self._release_streams()

        try:
            self._sa_transaction.rollback()
        except SQLAlchemyError as e:
            self._finish(TransactionState.ROLLED_BACK)
            raise ExecutionError(f"Rollback failed: {e}") from e

        self._finish(TransactionState.ROLLED_BACK)
        logger.info("Rolled back transaction on %s", self.connection.safe_url)

    def save(self, name: str) -> None:
        """Set a named savepoint.

        Args:
            name: Savepoint name, a plain SQL identifier

        Raises:
            ValueError: If name is not a plain identifier
            TransactionStateError: If the transaction already ended
            ExecutionError: If the server rejects the savepoint
        """
        self._require_active(TransactionStateError)
        self._validate_savepoint_name(name)
        sa_connection = self.connection.sa_connection

        try:
            sa_connection.dialect.do_savepoint(sa_connection, name)
        except SQLAlchemyError as e:
            raise ExecutionError(f"Failed to set savepoint {name}: {e}") from e

        if name in self._savepoints:
            self._savepoints.remove(name)
        self._savepoints.append(name)
        logger.debug("Set savepoint %s", name)

    def undo(self, name: str) -> None:
        """Roll back to a named savepoint, keeping the transaction active.

        Savepoints set after the named one are discarded; the named one
        stays and can be rolled back to again.

        Raises:
            TransactionStateError: If the transaction already ended
            InvalidStateError: If no savepoint with that name is set
            ExecutionError: If the server rejects the rollback
        """
        self._require_active(TransactionStateError)
        self._require_savepoint(name)
        sa_connection = self.connection.sa_connection

        try:
            sa_connection.dialect.do_rollback_to_savepoint(sa_connection, name)
        except SQLAlchemyError as e:
            raise ExecutionError(f"Failed to roll back to savepoint {name}: {e}") from e

        del self._savepoints[self._savepoints.index(name) + 1 :]
        logger.debug("Rolled back to savepoint %s", name)

    def release(self, name: str) -> None:
        """Release a named savepoint, keeping its work.

        The named savepoint and every savepoint set after it are gone
        afterwards.

        Raises:
            TransactionStateError: If the transaction already ended
            InvalidStateError: If no savepoint with that name is set
            ExecutionError: If the server rejects the release
        """
        self._require_active(TransactionStateError)
        self._require_savepoint(name)
        sa_connection = self.connection.sa_connection

        try:
            sa_connection.dialect.do_release_savepoint(sa_connection, name)
        except SQLAlchemyError as e:
            raise ExecutionError(f"Failed to release savepoint {name}: {e}") from e

        del self._savepoints[self._savepoints.index(name) :]
        logger.debug("Released savepoint %s", name)

    def _register_stream(self, stream: RowStream) -> None:
        self._streams.append(stream)

    def _unregister_stream(self, stream: RowStream) -> None:
        if stream in self._streams:
            self._streams.remove(stream)

    def _release_streams(self) -> None:
        """Close row streams the caller left open."""
        for stream in list(self._streams):
            logger.warning("Releasing unfinished row stream before the transaction ends")
            stream.close()
        self._streams.clear()

    def _abandon(self) -> None:
        """Mark the transaction rolled back because its connection is closing."""
        if self.is_active:
            self._release_streams()
            self._state = TransactionState.ROLLED_BACK
            self._savepoints.clear()
            logger.warning("Connection closed with an active transaction; it was rolled back")

    def _rollback_after_failed_commit(self) -> None:
        try:
            self._sa_transaction.rollback()
        except SQLAlchemyError as e:
            logger.warning("Rollback after failed commit also failed: %s", e)

    def _finish(self, state: TransactionState) -> None:
        self._state = state
        self._savepoints.clear()
        self.connection._detach(self)

    def _require_active(self, error: type[InvalidStateError]) -> None:
        if self._state is not TransactionState.ACTIVE:
            raise error(f"Transaction is {self._state.value}")

    def _require_savepoint(self, name: str) -> None:
        if name not in self._savepoints:
            raise InvalidStateError(f"No savepoint named {name!r} in this transaction")

    @staticmethod
    def _validate_savepoint_name(name: str) -> None:
        if not _SAVEPOINT_NAME.match(name or ""):
            raise ValueError(f"Invalid savepoint name: {name!r}")

    def __enter__(self) -> Transaction:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Commit or roll back a transaction that is still active.

        A failed rollback after an error in the block is logged, and the
        block's own exception propagates.
        """
        if not self.is_active:
            return
        if exc_val is None:
            commit_or_rollback(self, Ok(None))
            return
        try:
            commit_or_rollback(self, Err(describe_exception(exc_val)))
        except ExecutionError as e:
            logger.error("Rollback after a failed block also failed: %s", e)

    def __repr__(self) -> str:
        return f"Transaction(state={self._state.value}, savepoints={self._savepoints})"


def begin_transaction(connection: Connection) -> Transaction:
    """Begin a transaction on an open Connection.

    Raises:
        InvalidStateError: If the connection is not open or already has an
            active transaction
        ExecutionError: If the server refuses to begin
    """
    if not connection.is_open:
        raise InvalidStateError(f"Cannot begin a transaction: connection to {connection.safe_url} is closed")
    if connection.transaction is not None:
        raise InvalidStateError("Connection already has an active transaction")

    sa_connection = connection.sa_connection
    if sa_connection.in_transaction():
        raise InvalidStateError("Connection is already inside a transaction")

    try:
        sa_transaction = sa_connection.begin()
    except SQLAlchemyError as e:
        raise ExecutionError(f"Failed to begin transaction: {e}") from e

    transaction = Transaction(connection, sa_transaction)
    connection._attach(transaction)
    logger.debug("Began transaction on %s", connection.safe_url)
    return transaction


def commit(transaction: Transaction) -> None:
    """Commit a Transaction."""
    transaction.commit()


def rollback(transaction: Transaction, savepoint: Optional[str] = None) -> None:
    """Roll back a Transaction, fully or to a named savepoint.

    Without a savepoint the transaction ends ROLLED_BACK; with one it stays
    ACTIVE, as with undo().
    """
    if savepoint is None:
        transaction.rollback()
    else:
        transaction.undo(savepoint)


def save(name: str, transaction: Transaction) -> None:
    """Set a named savepoint on a Transaction."""
    transaction.save(name)


def undo(name: str, transaction: Transaction) -> None:
    """Roll a Transaction back to a named savepoint."""
    transaction.undo(name)


def release(name: str, transaction: Transaction) -> None:
    """Release a named savepoint on a Transaction."""
    transaction.release(name)


def commit_or_rollback(transaction: Transaction, result: Result[Any, Any]) -> Result[Any, Any]:
    """Commit on Ok, roll back on Err.

    This is the single policy point tying the outcome of a unit of work
    to its persistence.

    Args:
        transaction: Active transaction
        result: Outcome of the unit of work

    Returns:
        The same result, so the call composes in a pipeline

    Raises:
        TransactionStateError: If the transaction already ended
        ExecutionError: If the commit or rollback is rejected
    """
    if isinstance(result, Ok):
        transaction.commit()
    else:
        transaction.rollback()
    return result
