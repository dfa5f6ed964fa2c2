"""Connection lifecycle.

This module defines the Connection handle and the functions that create,
open and close it. A Connection owns one SQLAlchemy engine (without a
pool) and at most one live SQLAlchemy connection.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING, Any, Optional, Union

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import ArgumentError, SQLAlchemyError
from sqlalchemy.pool import NullPool

from txsql.core.config import config
from txsql.dialects import DialectSupport, get_dialect_support
from txsql.exceptions import ConfigurationError, ConnectivityError, InvalidStateError
from txsql.models.descriptor import ConnectionDescriptor, IntegratedSecurity, UserIdAndPassword

if TYPE_CHECKING:
    from sqlalchemy.engine import Connection as SAConnection

    from txsql.core.transaction import Transaction

logger = logging.getLogger(__name__)


class ConnectionState(str, Enum):
    """Lifecycle state of a Connection."""

    CLOSED = "closed"
    OPEN = "open"


class Connection:
    """Handle to a database session.

    A Connection starts CLOSED. open() and close() are idempotent, so
    calling either in the state it leads to is a no-op. The caller owns
    the handle and is responsible for closing it; using it as a context
    manager does that on every exit path.

    Examples:
        >>> with create_connection("sqlite:///orders.db") as conn:
        ...     tx = begin_transaction(conn)
        ...     ...

        >>> conn = create_open_connection("sqlite:///orders.db")
        >>> try:
        ...     ...
        ... finally:
        ...     close_connection(conn)
    """

    def __init__(self, connection_string: str, echo: Optional[bool] = None):
        """Create a closed connection handle.

        Args:
            connection_string: SQLAlchemy URL
            echo: Echo SQL through SQLAlchemy's logger, defaults to config.echo

        Raises:
            ConfigurationError: If the URL cannot be parsed or its driver is unknown
        """
        try:
            url = make_url(connection_string)
        except ArgumentError as e:
            raise ConfigurationError(f"Invalid connection string: {e}") from e

        self.url = url
        self.dialect_support: DialectSupport = get_dialect_support(url.get_backend_name())

        try:
            self.engine: Engine = create_engine(
                url,
                poolclass=NullPool,  # one physical session per Connection
                echo=config.echo if echo is None else echo,
                connect_args=self.dialect_support.connect_args(config.connection_timeout),
            )
        except (ArgumentError, ImportError) as e:
            raise ConfigurationError(f"Cannot create engine for {self.safe_url}: {e}") from e

        self.dialect_support.prepare_engine(self.engine)
        self._connection: Optional[SAConnection] = None
        self._transaction: Optional[Transaction] = None

    @property
    def state(self) -> ConnectionState:
        """Current lifecycle state."""
        return ConnectionState.OPEN if self._connection is not None else ConnectionState.CLOSED

    @property
    def is_open(self) -> bool:
        """Whether the connection is open."""
        return self.state is ConnectionState.OPEN

    @property
    def safe_url(self) -> str:
        """The URL with its password masked, for messages and logs."""
        return self.url.render_as_string(hide_password=True)

    @property
    def sa_connection(self) -> SAConnection:
        """The live SQLAlchemy connection.

        Raises:
            InvalidStateError: If the connection is closed
        """
        if self._connection is None:
            raise InvalidStateError(f"Connection to {self.safe_url} is closed")
        return self._connection

    @property
    def transaction(self) -> Optional[Transaction]:
        """The active transaction, if any."""
        return self._transaction

    def open(self) -> Connection:
        """Open the session if it is not already open.

        Returns:
            Self

        Raises:
            ConnectivityError: If the session cannot be established
        """
        if self._connection is not None:
            return self

        try:
            self._connection = self.engine.connect()
        except SQLAlchemyError as e:
            raise ConnectivityError(f"Failed to connect to {self.safe_url}: {e}") from e

        logger.debug("Opened connection to %s", self.safe_url)
        return self

    def close(self) -> None:
        """Close the session if it is not already closed.

        Never raises: failures while releasing the session are logged and
        dropped. An active transaction is rolled back by the server and
        marked rolled back here.
        """
        if self._connection is None:
            return

        if self._transaction is not None:
            self._transaction._abandon()
            self._transaction = None

        connection, self._connection = self._connection, None
        try:
            connection.close()
        except Exception as e:
            logger.warning("Error while closing connection to %s: %s", self.safe_url, e)

        try:
            self.engine.dispose()
        except Exception as e:
            logger.warning("Error while disposing engine for %s: %s", self.safe_url, e)

        logger.debug("Closed connection to %s", self.safe_url)

    def _attach(self, transaction: Transaction) -> None:
        self._transaction = transaction

    def _detach(self, transaction: Transaction) -> None:
        if self._transaction is transaction:
            self._transaction = None

    def __enter__(self) -> Connection:
        """Context manager entry: open the connection.

        Returns:
            Self
        """
        return self.open()

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Context manager exit: close the connection."""
        self.close()

    def __repr__(self) -> str:
        return f"Connection({self.safe_url!r}, state={self.state.value})"


def create_connection(connection_string: str) -> Connection:
    """Create a new closed Connection from a connection string."""
    return Connection(connection_string)


def open_connection(connection: Connection) -> None:
    """Open a Connection if it is not already open."""
    connection.open()


def close_connection(connection: Connection) -> None:
    """Close a Connection if it is not already closed."""
    connection.close()


def create_open_connection(connection_string: str) -> Connection:
    """Create a new open Connection from a connection string.

    Raises:
        ConfigurationError: If the connection string is invalid
        ConnectivityError: If the session cannot be established
    """
    return create_connection(connection_string).open()


def connect(
    data_source: str,
    catalog: str,
    security: Union[IntegratedSecurity, UserIdAndPassword],
    driver: Optional[str] = None,
) -> Connection:
    """Build a connection string from its parts and open a Connection on it.

    Args:
        data_source: Server address or database file
        catalog: Initial catalog
        security: Security mode
        driver: SQLAlchemy driver name, defaults to config.default_driver

    Returns:
        Open Connection
    """
    descriptor = ConnectionDescriptor(data_source=data_source, catalog=catalog, security=security)
    return create_open_connection(descriptor.build(driver))
