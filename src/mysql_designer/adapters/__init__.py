"""Database adapters package.

Provides the ``DatabaseClient`` Protocol and the async MySQL adapter.

Usage:
    from mysql_designer.adapters import DatabaseClient, AsyncMySQLAdapter
"""

from mysql_designer.adapters.base import DatabaseClient
from mysql_designer.adapters.mysql import AsyncMySQLAdapter

__all__ = [
    "DatabaseClient",
    "AsyncMySQLAdapter",
]
