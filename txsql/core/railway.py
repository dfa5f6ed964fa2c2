"""Railway adapters.

Turn fallible operations into Result values so that failures can be
passed along and matched on instead of unwinding the stack. Combined
with commit_or_rollback() this ties a unit of work to its transaction:

    >>> result = try_run(execute, new_cmd("UPDATE t SET x = 1"), [], tx)
    >>> commit_or_rollback(tx, result)
"""

from __future__ import annotations

import functools
from dataclasses import dataclass
from typing import Any, Callable, Generic, TypeVar, Union

T = TypeVar("T")
E = TypeVar("E")
U = TypeVar("U")


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful outcome carrying a value."""

    value: T

    @property
    def is_ok(self) -> bool:
        return True

    @property
    def is_err(self) -> bool:
        return False

    def unwrap(self) -> T:
        """Return the value."""
        return self.value

    def unwrap_or(self, default: Any) -> T:
        """Return the value."""
        return self.value

    def map(self, fn: Callable[[T], U]) -> Ok[U]:
        """Apply fn to the value."""
        return Ok(fn(self.value))


@dataclass(frozen=True)
class Err(Generic[E]):
    """Failed outcome carrying an error description."""

    error: E

    @property
    def is_ok(self) -> bool:
        return False

    @property
    def is_err(self) -> bool:
        return True

    def unwrap(self) -> Any:
        """Raise, since there is no value.

        Raises:
            ValueError: Always, with the error as message
        """
        raise ValueError(f"Called unwrap() on Err: {self.error}")

    def unwrap_or(self, default: U) -> U:
        """Return default."""
        return default

    def map(self, fn: Callable[[Any], Any]) -> Err[E]:
        """Return self unchanged."""
        return self


Result = Union[Ok[T], Err[E]]


def describe_exception(exc: BaseException) -> str:
    """Human-readable description of an exception.

    Uses the exception message, or the exception class name when the
    message is empty.
    """
    message = str(exc)
    return message if message else type(exc).__name__


def try_catch(operation: Callable[[], T], exc_handler: Callable[[Exception], E]) -> Result[T, E]:
    """Run operation, routing any exception through exc_handler into Err.

    Args:
        operation: Zero-argument callable
        exc_handler: Turns the raised exception into the error value

    Returns:
        Ok(return value) or Err(exc_handler(exception))
    """
    try:
        return Ok(operation())
    except Exception as e:
        return Err(exc_handler(e))


def try_run(
    operation: Callable[..., T],
    *args: Any,
    describe: Callable[[Exception], Any] = describe_exception,
    **kwargs: Any,
) -> Result[T, Any]:
    """Run operation(*args, **kwargs) and capture its outcome.

    Never raises for Exception subclasses.

    Args:
        operation: Callable to run
        *args: Positional arguments for operation
        describe: Turns a raised exception into the error value
        **kwargs: Keyword arguments for operation

    Returns:
        Ok(return value), or Err(description) if operation raised

    Examples:
        >>> try_run(int, "42")
        Ok(value=42)
        >>> try_run(int, "forty-two")
        Err(error="invalid literal for int() with base 10: 'forty-two'")
    """
    return try_catch(lambda: operation(*args, **kwargs), describe)


def railway(fn: Callable[..., T]) -> Callable[..., Result[T, str]]:
    """Decorator form of try_run().

    Examples:
        >>> @railway
        ... def load_totals(tx):
        ...     return scalar(new_cmd("SELECT SUM(total) FROM orders"), [], float, tx)
        >>> load_totals(tx)
        Ok(value=1234.5)
    """

    @functools.wraps(fn)
    def wrapper(*args: Any, **kwargs: Any) -> Result[T, str]:
        return try_run(fn, *args, **kwargs)

    return wrapper


def pass_through(fn: Callable[[T], Any]) -> Callable[[T], T]:
    """Convert a dead-end function into one that returns its input.

    Examples:
        >>> add_params = pass_through(lambda cmd: with_parameters(cmd, [("id", 1)]))
        >>> command = add_params(bind(new_cmd(sql), tx))
    """

    def wrapper(value: T) -> T:
        fn(value)
        return value

    return wrapper
