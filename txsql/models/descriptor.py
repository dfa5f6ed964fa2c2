"""Connection descriptor models.

This module defines the ConnectionDescriptor model and the security
modes it carries, and formats them into a SQLAlchemy connection string.
"""

from __future__ import annotations

from typing import Literal, Optional, Union

from pydantic import BaseModel, Field as PydanticField, SecretStr
from typing_extensions import Annotated

from txsql.core.config import config
from txsql.dialects import get_dialect_support


class IntegratedSecurity(BaseModel):
    """Authenticate with the identity of the calling process.

    Examples:
        >>> IntegratedSecurity(enabled=True)
    """

    mode: Literal["integrated"] = "integrated"
    enabled: bool = PydanticField(
        True,
        description="Whether integrated (trusted) authentication is used",
    )

    model_config = {"extra": "forbid", "frozen": True}


class UserIdAndPassword(BaseModel):
    """Authenticate with a user id and password.

    Examples:
        >>> UserIdAndPassword(user_id="loader", password="s3cret")
    """

    mode: Literal["credentials"] = "credentials"
    user_id: str = PydanticField(
        ...,
        description="Login name",
    )
    password: SecretStr = PydanticField(
        ...,
        description="Login password",
    )

    model_config = {"extra": "forbid", "frozen": True}


SecurityMode = Annotated[
    Union[IntegratedSecurity, UserIdAndPassword],
    PydanticField(discriminator="mode"),
]


class ConnectionDescriptor(BaseModel):
    """Where and how to connect.

    An immutable value that formats into a SQLAlchemy URL. The meaning of
    data_source and catalog depends on the backend: for server backends
    they are the host and database, for SQLite the data source is the
    database file.

    Examples:
        >>> descriptor = ConnectionDescriptor(
        ...     data_source="sql01,1433",
        ...     catalog="Sales",
        ...     security=IntegratedSecurity(enabled=True),
        ... )
        >>> descriptor.build()
        'mssql+pyodbc://sql01:1433/Sales?driver=ODBC+Driver+18+for+SQL+Server&trusted_connection=yes'
    """

    data_source: str = PydanticField(
        ...,
        description="Server address or database file",
    )
    catalog: str = PydanticField(
        "",
        description="Initial catalog (database name)",
    )
    security: SecurityMode = PydanticField(
        default_factory=IntegratedSecurity,
        description="Integrated or credentialed security",
    )

    model_config = {"extra": "forbid", "frozen": True}

    def build(self, driver: Optional[str] = None) -> str:
        """Format the descriptor as a connection string.

        Args:
            driver: SQLAlchemy driver name, defaults to config.default_driver

        Returns:
            SQLAlchemy URL string with the password in clear text
        """
        drivername = driver or config.default_driver
        support = get_dialect_support(drivername)
        url = support.build_url(drivername, self.data_source, self.catalog, self.security)
        return url.render_as_string(hide_password=False)


def build_connection_string(
    data_source: str,
    catalog: str,
    security: Union[IntegratedSecurity, UserIdAndPassword],
    driver: Optional[str] = None,
) -> str:
    """Build a connection string from its parts.

    Pure and deterministic: the same inputs always give the same string.

    Args:
        data_source: Server address ("host", "host:port", "host,port") or database file
        catalog: Initial catalog
        security: Security mode
        driver: SQLAlchemy driver name, defaults to config.default_driver

    Returns:
        SQLAlchemy URL string
    """
    descriptor = ConnectionDescriptor(data_source=data_source, catalog=catalog, security=security)
    return descriptor.build(driver)
