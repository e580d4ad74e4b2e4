"""Database client protocol definition.

Defines the ``DatabaseClient`` Protocol the designer talks to.  All methods
are ``async def`` -- the library is async-first.

Usage:
    from mysql_designer.adapters.base import DatabaseClient

    async def do_work(client: DatabaseClient) -> None:
        rows = await client.fetch_all(
            "SELECT TABLE_NAME AS name FROM information_schema.TABLES "
            "WHERE TABLE_SCHEMA = :schema",
            {"schema": "app"},
        )
        await client.execute("ALTER TABLE `app`.`users` ADD COLUMN `email` varchar(255) NULL")
        await client.close()
"""

from typing import Any, Protocol


class DatabaseClient(Protocol):
    """Execution service interface that all adapters must implement.

    All methods are async -- callers must ``await`` every operation.
    """

    async def execute(self, sql: str) -> None:
        """Execute one raw SQL statement (DDL).

        The statement is sent as-is: no bind-parameter parsing, so ``:`` and
        ``%`` inside string literals (comments, defaults) are safe.

        Args:
            sql: Complete SQL statement.

        Raises:
            DatabaseError: If the server rejects the statement.  The message
                is the server's message.
            DatabaseConnectionError: If no connection can be acquired.

        Example:
            await client.execute(
                "ALTER TABLE `app`.`users` MODIFY COLUMN `name` varchar(64) NOT NULL"
            )
        """
        ...

    async def fetch_all(self, sql: str, params: dict[str, Any] | None = None) -> list[dict]:
        """Run a read-only query and return every row.

        Args:
            sql: Query text with ``:name`` placeholders.
            params: Optional dict of named parameters.

        Returns:
            List of dicts, one per row.  Empty list if no rows.

        Raises:
            DatabaseError: If the server rejects the query.
            DatabaseConnectionError: If no connection can be acquired.
        """
        ...

    async def test_connection(self) -> bool:
        """Return ``True`` if a trivial query succeeds."""
        ...

    async def close(self) -> None:
        """Close database connections and clean up resources.

        Call this when done with the adapter, especially in long-running
        processes.
        """
        ...
