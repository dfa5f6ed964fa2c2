"""Tests for connection lifecycle."""

import pytest

from txsql.core.connection import (
    Connection,
    ConnectionState,
    close_connection,
    connect,
    create_connection,
    create_open_connection,
    open_connection,
)
from txsql.core.execution import execute
from txsql.core.transaction import TransactionState, begin_transaction
from txsql.exceptions import ConfigurationError, ConnectivityError, InvalidStateError
from txsql.models.descriptor import IntegratedSecurity
from txsql.models.statement import new_cmd


class TestConnectionLifecycle:
    """Test opening and closing connections."""

    def test_created_closed(self, db_url):
        """Test a new connection starts closed."""
        conn = create_connection(db_url)
        assert conn.state is ConnectionState.CLOSED
        assert not conn.is_open

    def test_open_is_idempotent(self, db_url):
        """Test opening twice keeps the same session."""
        conn = create_connection(db_url)
        open_connection(conn)
        session = conn.sa_connection
        open_connection(conn)
        assert conn.is_open
        assert conn.sa_connection is session
        close_connection(conn)

    def test_close_is_idempotent(self, db_url):
        """Test closing twice is a no-op."""
        conn = create_open_connection(db_url)
        close_connection(conn)
        close_connection(conn)
        assert conn.state is ConnectionState.CLOSED

    def test_close_never_opened(self, db_url):
        """Test closing a connection that was never opened."""
        conn = create_connection(db_url)
        conn.close()
        assert conn.state is ConnectionState.CLOSED

    def test_context_manager(self, db_url):
        """Test the context manager opens and closes."""
        with create_connection(db_url) as conn:
            assert conn.is_open
        assert not conn.is_open

    def test_sa_connection_when_closed(self, db_url):
        """Test the live session is unavailable while closed."""
        conn = create_connection(db_url)
        with pytest.raises(InvalidStateError):
            conn.sa_connection

    def test_connect_from_parts(self, temp_db):
        """Test connect() builds the URL and opens it."""
        conn = connect(temp_db, "", IntegratedSecurity(), driver="sqlite")
        try:
            assert isinstance(conn, Connection)
            assert conn.is_open
        finally:
            conn.close()


class TestConnectionErrors:
    """Test connection error handling."""

    def test_invalid_url(self):
        """Test an unparsable connection string."""
        with pytest.raises(ConfigurationError):
            create_connection("not a url")

    def test_unknown_dialect(self):
        """Test a URL naming an unknown backend."""
        with pytest.raises(ConfigurationError):
            create_connection("nosuchdb://host/db")

    def test_unreachable_database(self, tmp_path):
        """Test a database that cannot be opened."""
        url = f"sqlite:///{tmp_path / 'missing' / 'nested' / 'db.sqlite'}"
        conn = create_connection(url)
        with pytest.raises(ConnectivityError):
            conn.open()
        assert conn.state is ConnectionState.CLOSED


class TestCloseWithActiveTransaction:
    """Test closing a connection that still has a transaction."""

    def test_transaction_abandoned(self, connection, count_rows):
        """Test the active transaction is rolled back on close."""
        tx = begin_transaction(connection)
        execute(new_cmd("INSERT INTO people (id, name) VALUES (1, 'Alice')"), [], tx)

        connection.close()

        assert tx.state is TransactionState.ROLLED_BACK
        assert connection.transaction is None
        assert count_rows("people") == 0
