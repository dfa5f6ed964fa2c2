"""Tests for the railway adapters."""

import pytest

from txsql.core.command import bind_with_parameters
from txsql.core.execution import execute, execute_non_query, scalar
from txsql.core.railway import (
    Err,
    Ok,
    describe_exception,
    pass_through,
    railway,
    try_catch,
    try_run,
)
from txsql.core.transaction import TransactionState, begin_transaction, commit_or_rollback
from txsql.models.statement import new_cmd


class TestResult:
    """Test Ok and Err values."""

    def test_ok(self):
        """Test Ok carries its value."""
        result = Ok(3)
        assert result.is_ok
        assert not result.is_err
        assert result.unwrap() == 3
        assert result.unwrap_or(0) == 3
        assert result.map(lambda v: v * 2) == Ok(6)

    def test_err(self):
        """Test Err carries its error."""
        result = Err("boom")
        assert result.is_err
        assert not result.is_ok
        assert result.unwrap_or(0) == 0
        assert result.map(lambda v: v * 2) == result
        with pytest.raises(ValueError, match="boom"):
            result.unwrap()

    def test_results_are_frozen(self):
        """Test results cannot be modified."""
        result = Ok(1)
        with pytest.raises(AttributeError):
            result.value = 2


class TestTryRun:
    """Test converting exceptions into results."""

    def test_success(self):
        """Test a successful operation gives Ok."""
        assert try_run(int, "42") == Ok(42)

    def test_failure(self):
        """Test a failing operation gives Err with its description."""
        result = try_run(int, "forty-two")
        assert isinstance(result, Err)
        assert "forty-two" in result.error

    def test_keyword_arguments(self):
        """Test keyword arguments are passed through."""
        assert try_run(int, "ff", base=16) == Ok(255)

    def test_custom_description(self):
        """Test the error description can be replaced."""
        result = try_run(int, "x", describe=lambda e: type(e).__name__)
        assert result == Err("ValueError")

    def test_empty_message_uses_class_name(self):
        """Test exceptions without a message are described by class name."""
        assert describe_exception(KeyboardInterrupt()) == "KeyboardInterrupt"
        assert describe_exception(RuntimeError("")) == "RuntimeError"

    def test_try_catch(self):
        """Test the explicit handler form."""
        result = try_catch(lambda: 1 / 0, lambda e: f"handled: {e}")
        assert result == Err("handled: division by zero")

    def test_railway_decorator(self):
        """Test the decorator wraps the function in try_run."""

        @railway
        def parse(value):
            return int(value)

        assert parse("7") == Ok(7)
        assert parse("seven").is_err
        assert parse.__name__ == "parse"

    def test_pass_through(self):
        """Test a dead-end function returns its input."""
        seen = []
        step = pass_through(seen.append)
        assert step("value") == "value"
        assert seen == ["value"]


class TestRailwayTransactions:
    """Test results deciding commit or rollback."""

    def test_successful_unit_commits(self, connection, count_rows):
        """Test an Ok unit of work is committed."""
        tx = begin_transaction(connection)
        result = try_run(
            execute,
            new_cmd("INSERT INTO people (id, name) VALUES (:id, :name)"),
            [("id", 1), ("name", "Alice")],
            tx,
        )
        assert commit_or_rollback(tx, result) == Ok(None)
        assert tx.state is TransactionState.COMMITTED
        assert count_rows("people") == 1

    def test_constraint_violation_rolls_back(self, connection, count_rows):
        """Test a constraint violation turns into Err and a rollback."""
        tx = begin_transaction(connection)
        execute(new_cmd("INSERT INTO people (id, name) VALUES (1, 'Alice')"), [], tx)

        command = bind_with_parameters(
            new_cmd("INSERT INTO people (id, name, age) VALUES (:id, :name, :age)"),
            [("id", 2), ("name", "Bob"), ("age", -1)],
            tx,
        )
        result = try_run(execute_non_query, command)
        command.close()

        assert isinstance(result, Err)
        assert "CHECK constraint" in result.error
        assert commit_or_rollback(tx, result) is result
        assert tx.state is TransactionState.ROLLED_BACK
        assert count_rows("people") == 0

    def test_mapping_failure_as_err(self, connection):
        """Test mapper failures can be captured like server errors."""
        tx = begin_transaction(connection)
        result = try_run(scalar, new_cmd("SELECT 'abc'"), [], int, tx)
        assert result.is_err
        commit_or_rollback(tx, result)
        assert tx.state is TransactionState.ROLLED_BACK
