"""Shared fixtures for txsql tests."""

import tempfile
from pathlib import Path

import pytest

from txsql.core.connection import create_open_connection
from txsql.core.execution import execute, query, scalar
from txsql.core.transaction import begin_transaction
from txsql.models.statement import new_cmd


@pytest.fixture
def temp_db():
    """Create a temporary SQLite database."""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = f.name
    yield db_path
    # Cleanup
    Path(db_path).unlink(missing_ok=True)


@pytest.fixture
def db_url(temp_db):
    """SQLAlchemy URL of the temporary database."""
    return f"sqlite:///{temp_db}"


@pytest.fixture
def people_table(db_url):
    """Create a people table with a CHECK constraint."""
    with create_open_connection(db_url) as conn:
        with begin_transaction(conn) as tx:
            execute(
                new_cmd(
                    "CREATE TABLE people ("
                    "  id INTEGER PRIMARY KEY,"
                    "  name TEXT NOT NULL,"
                    "  age INTEGER CHECK (age >= 0)"
                    ")"
                ),
                [],
                tx,
            )
    return "people"


@pytest.fixture
def connection(db_url, people_table):
    """Open connection to the temporary database."""
    conn = create_open_connection(db_url)
    yield conn
    conn.close()


@pytest.fixture
def count_rows(db_url):
    """Count committed rows of a table through a separate connection."""

    def _count(table_name: str) -> int:
        with create_open_connection(db_url) as conn:
            with begin_transaction(conn) as tx:
                return scalar(new_cmd(f"SELECT COUNT(*) FROM {table_name}"), [], int, tx)

    return _count


@pytest.fixture
def fetch_names(db_url):
    """Read committed people names in id order through a separate connection."""

    def _fetch() -> list:
        with create_open_connection(db_url) as conn:
            with begin_transaction(conn) as tx:
                return query(new_cmd("SELECT name FROM people ORDER BY id"), [], lambda r: r["name"], tx).to_list()

    return _fetch
