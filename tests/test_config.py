"""Tests for environment configuration."""

import pytest

from txsql.core.config import TxSQLConfig, load_config


class TestConfig:
    """Test configuration loading."""

    def test_defaults(self, monkeypatch):
        """Test defaults without environment overrides."""
        for key in (
            "TXSQL_DEFAULT_DRIVER",
            "TXSQL_ODBC_DRIVER",
            "TXSQL_LOG_LEVEL",
            "TXSQL_LOG_FORMAT",
            "TXSQL_ECHO",
            "TXSQL_CONNECTION_TIMEOUT",
            "TXSQL_BULK_BATCH_SIZE",
            "TXSQL_STREAM_RESULTS",
        ):
            monkeypatch.delenv(key, raising=False)

        config = load_config()
        assert config.default_driver == "mssql+pyodbc"
        assert config.odbc_driver == "ODBC Driver 18 for SQL Server"
        assert config.log_level == "INFO"
        assert config.log_format == "text"
        assert config.echo is False
        assert config.connection_timeout == 30
        assert config.bulk_batch_size == 1000
        assert config.stream_results is False

    def test_environment_overrides(self, monkeypatch):
        """Test values are read from the environment."""
        monkeypatch.setenv("TXSQL_DEFAULT_DRIVER", "postgresql+psycopg2")
        monkeypatch.setenv("TXSQL_LOG_LEVEL", "debug")
        monkeypatch.setenv("TXSQL_ECHO", "yes")
        monkeypatch.setenv("TXSQL_BULK_BATCH_SIZE", "250")

        config = load_config()
        assert config.default_driver == "postgresql+psycopg2"
        assert config.log_level == "DEBUG"
        assert config.echo is True
        assert config.bulk_batch_size == 250

    def test_unparsable_int_uses_default(self, monkeypatch):
        """Test a non-numeric integer falls back to the default."""
        monkeypatch.setenv("TXSQL_CONNECTION_TIMEOUT", "soon")
        assert load_config().connection_timeout == 30

    @pytest.mark.parametrize(
        "key,value",
        [
            ("TXSQL_LOG_LEVEL", "LOUD"),
            ("TXSQL_LOG_FORMAT", "xml"),
            ("TXSQL_BULK_BATCH_SIZE", "0"),
            ("TXSQL_CONNECTION_TIMEOUT", "-1"),
        ],
    )
    def test_invalid_values(self, monkeypatch, key, value):
        """Test invalid values are rejected."""
        monkeypatch.setenv(key, value)
        with pytest.raises(ValueError):
            load_config()

    def test_as_dict(self):
        """Test exporting configuration."""
        config = TxSQLConfig(default_driver="sqlite", log_level="INFO", log_format="json")
        exported = config.as_dict()
        assert exported["default_driver"] == "sqlite"
        assert exported["log_format"] == "json"
        assert set(exported) == {
            "default_driver",
            "odbc_driver",
            "connection_timeout",
            "echo",
            "log_level",
            "log_format",
            "bulk_batch_size",
            "stream_results",
        }
