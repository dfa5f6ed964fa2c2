"""txsql utilities package.

This package contains cross-cutting helpers such as logging setup.
"""

from txsql.utils.logging import configure_logging

__all__ = ["configure_logging"]
