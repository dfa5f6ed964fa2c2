"""txsql configuration management.

This module centralizes all configuration loading from environment variables
and provides sensible defaults. All modules should import configuration
values from here rather than reading environment variables directly.

Environment Variables:
    TXSQL_DEFAULT_DRIVER: SQLAlchemy driver used when a connection string is
                          built without an explicit driver
                          Default: mssql+pyodbc

    TXSQL_ODBC_DRIVER: ODBC driver name added to pyodbc connection strings
                       Default: ODBC Driver 18 for SQL Server

    TXSQL_LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
                     Default: INFO

    TXSQL_LOG_FORMAT: Log output format (text, json)
                      Default: text

    TXSQL_ECHO: Echo every SQL statement through SQLAlchemy's engine logger
                Default: false

    TXSQL_CONNECTION_TIMEOUT: Connection timeout in seconds, handed to the
                              driver where it accepts one
                              Default: 30

    TXSQL_BULK_BATCH_SIZE: Rows sent per executemany round trip during a
                           bulk copy
                           Default: 1000

    TXSQL_STREAM_RESULTS: Ask the driver for server-side cursors when
                          streaming rows
                          Default: false
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field


def _get_bool(key: str, default: bool) -> bool:
    """Get boolean from environment variable."""
    value = os.environ.get(key, "").lower()
    if not value:
        return default
    return value in ("true", "1", "yes", "on")


def _get_int(key: str, default: int) -> int:
    """Get integer from environment variable."""
    value = os.environ.get(key, "")
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _get_str(key: str, default: str) -> str:
    """Get string from environment variable."""
    return os.environ.get(key, default)


@dataclass
class TxSQLConfig:
    """txsql configuration container.

    All configuration values are loaded from environment variables
    with sensible defaults.

    Usage:
        from txsql.core.config import config

        driver = config.default_driver
        batch_size = config.bulk_batch_size
    """

    # Connection Configuration
    default_driver: str = field(default_factory=lambda: _get_str("TXSQL_DEFAULT_DRIVER", "mssql+pyodbc"))
    odbc_driver: str = field(
        default_factory=lambda: _get_str("TXSQL_ODBC_DRIVER", "ODBC Driver 18 for SQL Server")
    )
    connection_timeout: int = field(default_factory=lambda: _get_int("TXSQL_CONNECTION_TIMEOUT", 30))
    echo: bool = field(default_factory=lambda: _get_bool("TXSQL_ECHO", False))

    # Logging Configuration
    log_level: str = field(default_factory=lambda: _get_str("TXSQL_LOG_LEVEL", "INFO").upper())
    log_format: str = field(default_factory=lambda: _get_str("TXSQL_LOG_FORMAT", "text"))

    # Execution Configuration
    bulk_batch_size: int = field(default_factory=lambda: _get_int("TXSQL_BULK_BATCH_SIZE", 1000))
    stream_results: bool = field(default_factory=lambda: _get_bool("TXSQL_STREAM_RESULTS", False))

    def __post_init__(self):
        """Validate configuration after initialization."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if self.log_level not in valid_levels:
            raise ValueError(
                f"Invalid TXSQL_LOG_LEVEL: {self.log_level}. "
                f"Must be one of: {valid_levels}"
            )

        valid_formats = {"text", "json"}
        if self.log_format not in valid_formats:
            raise ValueError(
                f"Invalid TXSQL_LOG_FORMAT: {self.log_format}. "
                f"Must be one of: {valid_formats}"
            )

        if not self.default_driver:
            raise ValueError("TXSQL_DEFAULT_DRIVER must not be empty")

        if self.connection_timeout < 1:
            raise ValueError(f"TXSQL_CONNECTION_TIMEOUT must be >= 1, got {self.connection_timeout}")

        if self.bulk_batch_size < 1:
            raise ValueError(f"TXSQL_BULK_BATCH_SIZE must be >= 1, got {self.bulk_batch_size}")

    def as_dict(self) -> dict:
        """Export configuration as dictionary.

        Returns:
            Dictionary of all configuration values
        """
        return {
            "default_driver": self.default_driver,
            "odbc_driver": self.odbc_driver,
            "connection_timeout": self.connection_timeout,
            "echo": self.echo,
            "log_level": self.log_level,
            "log_format": self.log_format,
            "bulk_batch_size": self.bulk_batch_size,
            "stream_results": self.stream_results,
        }


def load_config() -> TxSQLConfig:
    """Load configuration from environment.

    Returns:
        New TxSQLConfig instance
    """
    return TxSQLConfig()


# Global configuration instance - loaded once at import time
# Use load_config() to refresh if needed
config = load_config()
