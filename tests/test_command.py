"""Tests for statements and bound commands."""

import pytest
from pydantic import ValidationError

from txsql.core.command import (
    bind,
    bind_with_parameters,
    escape_unbound_tokens,
    normalize_parameter_name,
    with_parameters,
)
from txsql.core.execution import execute, execute_non_query, scalar
from txsql.core.railway import pass_through
from txsql.core.transaction import begin_transaction
from txsql.exceptions import ExecutionError, InvalidStateError
from txsql.models.statement import CommandKind, CommandText, StoredProcedure, new_cmd, new_sproc


class TestStatements:
    """Test statement models."""

    def test_new_cmd(self):
        """Test new_cmd builds SQL text."""
        statement = new_cmd("SELECT 1")
        assert isinstance(statement, CommandText)
        assert statement.sql == "SELECT 1"

    def test_new_sproc(self):
        """Test new_sproc builds a procedure and trims its name."""
        statement = new_sproc("  dbo.archive_orders ")
        assert isinstance(statement, StoredProcedure)
        assert statement.name == "dbo.archive_orders"

    def test_blank_sql_rejected(self):
        """Test blank SQL is rejected."""
        with pytest.raises(ValidationError):
            new_cmd("   ")

    def test_blank_procedure_rejected(self):
        """Test blank procedure names are rejected."""
        with pytest.raises(ValidationError):
            new_sproc("")


class TestParameterNames:
    """Test parameter name normalization."""

    @pytest.mark.parametrize("name", ["id", "@id", ":id"])
    def test_prefixes_stripped(self, name):
        """Test @ and : prefixes name the same parameter."""
        assert normalize_parameter_name(name) == "id"

    def test_empty_name(self):
        """Test a name with nothing left after stripping."""
        with pytest.raises(ValueError):
            normalize_parameter_name("@")


class TestBind:
    """Test binding statements to transactions."""

    def test_kind_from_statement(self, connection):
        """Test the command kind follows the statement type."""
        tx = begin_transaction(connection)
        assert bind(new_cmd("SELECT 1"), tx).kind is CommandKind.TEXT
        assert bind(new_sproc("usp_refresh"), tx).kind is CommandKind.STORED_PROCEDURE
        tx.rollback()

    def test_bind_to_ended_transaction(self, connection):
        """Test binding requires an active transaction."""
        tx = begin_transaction(connection)
        tx.commit()
        with pytest.raises(InvalidStateError):
            bind(new_cmd("SELECT 1"), tx)

    def test_bind_rejects_non_statement(self, connection):
        """Test only statements can be bound."""
        tx = begin_transaction(connection)
        with pytest.raises(TypeError):
            bind("SELECT 1", tx)
        tx.rollback()


class TestParameters:
    """Test attaching parameters."""

    def test_parameters_in_order(self, connection):
        """Test parameters keep insertion order."""
        tx = begin_transaction(connection)
        command = bind_with_parameters(new_cmd("SELECT :b, :a"), [("b", 2), ("a", 1)], tx)
        assert list(command.parameters) == ["b", "a"]
        tx.rollback()

    def test_last_write_wins(self, connection):
        """Test a repeated name replaces the earlier value."""
        tx = begin_transaction(connection)
        command = bind(new_cmd("SELECT :id"), tx)
        with_parameters(command, [("id", 1), ("@id", 2)])
        assert command.parameters == {"id": 2}
        tx.rollback()

    def test_mapping_parameters(self, connection):
        """Test parameters can be given as a mapping."""
        tx = begin_transaction(connection)
        command = bind_with_parameters(new_cmd("SELECT :id"), {"id": 7}, tx)
        assert command.parameters == {"id": 7}
        tx.rollback()

    def test_parameters_frozen_after_execution(self, connection):
        """Test parameters cannot change once the command ran."""
        tx = begin_transaction(connection)
        command = bind_with_parameters(
            new_cmd("INSERT INTO people (id, name) VALUES (:id, :name)"),
            [("id", 1), ("name", "Alice")],
            tx,
        )
        execute_non_query(command)
        with pytest.raises(InvalidStateError):
            command.add_parameter("id", 2)
        tx.rollback()

    def test_closed_command(self, connection):
        """Test a closed command rejects parameters."""
        tx = begin_transaction(connection)
        with bind(new_cmd("SELECT :id"), tx) as command:
            pass
        assert command.is_closed
        with pytest.raises(InvalidStateError):
            command.add_parameter("id", 1)
        tx.rollback()

    def test_pass_through_builder(self, connection):
        """Test pass_through composes parameter steps."""
        tx = begin_transaction(connection)
        add_id = pass_through(lambda cmd: cmd.add_parameter("id", 1))
        add_name = pass_through(lambda cmd: cmd.add_parameter("name", "Alice"))
        command = add_name(add_id(bind(new_cmd("SELECT :id, :name"), tx)))
        assert command.parameters == {"id": 1, "name": "Alice"}
        tx.rollback()


class TestStoredProcedures:
    """Test stored procedure execution on a backend without procedures."""

    def test_unsupported_backend(self, connection):
        """Test SQLite reports stored procedures as unsupported."""
        tx = begin_transaction(connection)
        with pytest.raises(ExecutionError):
            execute(new_sproc("usp_refresh"), [], tx)
        assert tx.is_active
        tx.rollback()


class TestPlainText:
    """Test SQL text reaches the driver as written."""

    def test_colon_word_in_literal(self, connection):
        """Test a :word inside a string literal is not a parameter."""
        with begin_transaction(connection) as tx:
            assert scalar(new_cmd("SELECT 'note :x'"), [], str, tx) == "note :x"

    def test_registered_and_literal_tokens(self, connection):
        """Test registered names bind while other tokens stay literal."""
        with begin_transaction(connection) as tx:
            value = scalar(new_cmd("SELECT :id || ' at 10:30 :later'"), [("id", "a")], str, tx)
        assert value == "a at 10:30 :later"

    def test_escape_unbound_tokens(self):
        """Test only unregistered tokens are escaped."""
        sql = "SELECT :id, ':x', a::int"
        assert escape_unbound_tokens(sql, ["id"]) == "SELECT :id, '\\:x', a::int"
