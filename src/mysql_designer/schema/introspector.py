"""MySQL schema introspection via information_schema.

This module queries the live database to build a table ``Snapshot``:
- Columns (type, nullability, key role, default, extra, generation, charset)
- Indexes (one row per index column, kind and method)
- Foreign keys (referenced table/column, update/delete rules)
- Table options (engine, charset, collation, comment, row format, counter)

plus the read-only picker queries the editor needs (databases, tables,
columns, charsets, collations, triggers).

Row mapping is done by pure functions so it can be tested without a server.

Usage:
    from mysql_designer.schema.introspector import SchemaIntrospector

    introspector = SchemaIntrospector(client)
    snapshot = await introspector.load_snapshot("app", "users")
    tables = await introspector.list_tables("app")
"""

import asyncio
import logging
import re
from typing import TYPE_CHECKING, Any

from mysql_designer.errors import SchemaNotFoundError
from mysql_designer.schema.models import (
    PRIMARY_KEY_NAME,
    ColumnDefinition,
    ForeignKeyDefinition,
    IndexDefinition,
    Snapshot,
    TableOptions,
    TriggerDefinition,
)

if TYPE_CHECKING:
    from mysql_designer.adapters.base import DatabaseClient

logger = logging.getLogger(__name__)

_KEY_ROLES = {"PRI": "primary", "UNI": "unique", "MUL": "index"}

# Flags MySQL adds to EXTRA that are not part of a column definition
_REPORTED_ONLY = re.compile(
    r"\b(DEFAULT_GENERATED|VIRTUAL GENERATED|STORED GENERATED)\b", re.IGNORECASE
)


# ------------------------------------------------------------------
# Queries
# ------------------------------------------------------------------

COLUMNS_QUERY = """
    SELECT
        COLUMN_NAME AS column_name,
        COLUMN_TYPE AS column_type,
        IS_NULLABLE AS is_nullable,
        COLUMN_KEY AS column_key,
        COLUMN_DEFAULT AS column_default,
        EXTRA AS extra,
        GENERATION_EXPRESSION AS generation_expression,
        COLUMN_COMMENT AS column_comment,
        CHARACTER_SET_NAME AS character_set_name,
        COLLATION_NAME AS collation_name
    FROM information_schema.COLUMNS
    WHERE TABLE_SCHEMA = :schema
      AND TABLE_NAME = :table
    ORDER BY ORDINAL_POSITION
"""

INDEXES_QUERY = """
    SELECT
        INDEX_NAME AS index_name,
        COLUMN_NAME AS column_name,
        NON_UNIQUE AS non_unique,
        SEQ_IN_INDEX AS seq_in_index,
        INDEX_TYPE AS index_type,
        INDEX_COMMENT AS index_comment
    FROM information_schema.STATISTICS
    WHERE TABLE_SCHEMA = :schema
      AND TABLE_NAME = :table
    ORDER BY INDEX_NAME = 'PRIMARY' DESC, INDEX_NAME, SEQ_IN_INDEX
"""

OPTIONS_QUERY = """
    SELECT
        t.ENGINE AS engine,
        c.CHARACTER_SET_NAME AS charset,
        t.TABLE_COLLATION AS collation,
        t.TABLE_COMMENT AS table_comment,
        t.ROW_FORMAT AS row_format,
        t.AUTO_INCREMENT AS auto_increment
    FROM information_schema.TABLES t
    LEFT JOIN information_schema.COLLATION_CHARACTER_SET_APPLICABILITY c
        ON c.COLLATION_NAME = t.TABLE_COLLATION
    WHERE t.TABLE_SCHEMA = :schema
      AND t.TABLE_NAME = :table
"""

FOREIGN_KEYS_QUERY = """
    SELECT
        k.CONSTRAINT_NAME AS constraint_name,
        k.COLUMN_NAME AS column_name,
        k.REFERENCED_TABLE_NAME AS referenced_table_name,
        k.REFERENCED_COLUMN_NAME AS referenced_column_name,
        r.UPDATE_RULE AS update_rule,
        r.DELETE_RULE AS delete_rule
    FROM information_schema.KEY_COLUMN_USAGE k
    JOIN information_schema.REFERENTIAL_CONSTRAINTS r
        ON r.CONSTRAINT_SCHEMA = k.CONSTRAINT_SCHEMA
        AND r.CONSTRAINT_NAME = k.CONSTRAINT_NAME
    WHERE k.TABLE_SCHEMA = :schema
      AND k.TABLE_NAME = :table
      AND k.REFERENCED_TABLE_NAME IS NOT NULL
    ORDER BY k.CONSTRAINT_NAME, k.ORDINAL_POSITION
"""


# ------------------------------------------------------------------
# Row mappers
# ------------------------------------------------------------------


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def column_from_row(row: dict[str, Any]) -> ColumnDefinition:
    """Map an ``information_schema.COLUMNS`` row to a ``ColumnDefinition``.

    Reported-only EXTRA flags (``DEFAULT_GENERATED``, ``VIRTUAL GENERATED``,
    ``STORED GENERATED``) are removed so the loaded column renders back to a
    definition MySQL accepts.  ``DEFAULT_GENERATED`` marks the default as an
    expression (``uuid()``), which must not be re-rendered as a string literal.

    Example:
        >>> col = column_from_row({
        ...     "column_name": "id", "column_type": "int(11)",
        ...     "is_nullable": "NO", "column_key": "PRI",
        ...     "column_default": None, "extra": "auto_increment",
        ... })
        >>> col.key, col.nullable, col.original_name
        ('primary', False, 'id')
    """
    raw_extra = _text(row.get("extra"))
    upper_extra = raw_extra.upper()
    if "VIRTUAL GENERATED" in upper_extra:
        generated = "VIRTUAL"
    elif "STORED GENERATED" in upper_extra:
        generated = "STORED"
    else:
        generated = ""

    extra = " ".join(_REPORTED_ONLY.sub("", raw_extra).split())
    name = row["column_name"]
    default = None if generated else row.get("column_default")

    return ColumnDefinition(
        name=name,
        type=row["column_type"],
        nullable=row.get("is_nullable") == "YES",
        key=_KEY_ROLES.get(_text(row.get("column_key")), "none"),
        default=default,
        default_expression=default is not None and "DEFAULT_GENERATED" in upper_extra,
        extra=extra,
        generated=generated,
        generation_expression=_text(row.get("generation_expression")) if generated else "",
        comment=_text(row.get("column_comment")),
        charset=_text(row.get("character_set_name")),
        collation=_text(row.get("collation_name")),
        original_name=name,
    )


def index_from_row(row: dict[str, Any]) -> IndexDefinition:
    """Map an ``information_schema.STATISTICS`` row to an ``IndexDefinition``."""
    key_name = row["index_name"]
    index_type = _text(row.get("index_type")).upper()

    if key_name == PRIMARY_KEY_NAME:
        kind = "PRIMARY"
    elif index_type == "FULLTEXT":
        kind = "FULLTEXT"
    elif int(row.get("non_unique") or 0) == 0:
        kind = "UNIQUE"
    else:
        kind = "NORMAL"

    if index_type not in ("BTREE", "HASH", "FULLTEXT"):
        logger.warning(
            "Index '%s' has unsupported type %s, loading it as BTREE", key_name, index_type
        )

    return IndexDefinition(
        key_name=key_name,
        column_name=row["column_name"],
        kind=kind,
        method="HASH" if index_type == "HASH" else "BTREE",
        seq_in_index=int(row.get("seq_in_index") or 1),
        comment=_text(row.get("index_comment")),
    )


def foreign_key_from_row(row: dict[str, Any]) -> ForeignKeyDefinition:
    """Map a ``KEY_COLUMN_USAGE`` + ``REFERENTIAL_CONSTRAINTS`` row."""
    name = row["constraint_name"]
    return ForeignKeyDefinition(
        name=name,
        column=row["column_name"],
        referenced_table=row["referenced_table_name"],
        referenced_column=_text(row.get("referenced_column_name")),
        on_update=row.get("update_rule") or "RESTRICT",
        on_delete=row.get("delete_rule") or "RESTRICT",
        original_name=name,
    )


def options_from_row(row: dict[str, Any]) -> TableOptions:
    """Map an ``information_schema.TABLES`` row to ``TableOptions``."""
    auto_increment = row.get("auto_increment")
    return TableOptions(
        engine=_text(row.get("engine")),
        charset=_text(row.get("charset")),
        collation=_text(row.get("collation")),
        comment=_text(row.get("table_comment")),
        row_format=_text(row.get("row_format")),
        auto_increment=int(auto_increment) if auto_increment else None,
    )


def _foreign_keys_from_rows(rows: list[dict[str, Any]]) -> list[ForeignKeyDefinition]:
    """Collapse constraint rows, keeping the first column of composite keys."""
    foreign_keys: dict[str, ForeignKeyDefinition] = {}
    for row in rows:
        name = row["constraint_name"]
        if name in foreign_keys:
            logger.warning(
                "Foreign key '%s' spans several columns; only '%s' is editable",
                name,
                foreign_keys[name].column,
            )
            continue
        foreign_keys[name] = foreign_key_from_row(row)
    return list(foreign_keys.values())


# ------------------------------------------------------------------
# Introspector
# ------------------------------------------------------------------


class SchemaIntrospector:
    """Loads table snapshots and picker lists through a ``DatabaseClient``.

    Usage:
        introspector = SchemaIntrospector(adapter)
        snapshot = await introspector.load_snapshot("app", "users")
    """

    def __init__(self, client: "DatabaseClient") -> None:
        self._client = client

    async def load_snapshot(self, database: str, table: str) -> Snapshot:
        """Load columns, indexes, foreign keys and options of one table.

        The four queries run concurrently and are joined into a single
        snapshot.

        Args:
            database: Schema name.
            table: Table name.

        Returns:
            ``Snapshot`` with every record tagged as loaded (not new).

        Raises:
            SchemaNotFoundError: If the table does not exist.
            DatabaseConnectionError: If the server cannot be reached.
        """
        params = {"schema": database, "table": table}
        column_rows, index_rows, option_rows, fk_rows = await asyncio.gather(
            self._client.fetch_all(COLUMNS_QUERY, params),
            self._client.fetch_all(INDEXES_QUERY, params),
            self._client.fetch_all(OPTIONS_QUERY, params),
            self._client.fetch_all(FOREIGN_KEYS_QUERY, params),
        )

        if not option_rows or not column_rows:
            raise SchemaNotFoundError(f"Table '{database}.{table}' not found")

        indexes = []
        for row in index_rows:
            if row.get("column_name") is None:
                logger.warning(
                    "Skipping functional index part of '%s' on %s.%s",
                    row.get("index_name"),
                    database,
                    table,
                )
                continue
            indexes.append(index_from_row(row))

        snapshot = Snapshot(
            columns=[column_from_row(row) for row in column_rows],
            indexes=indexes,
            foreign_keys=_foreign_keys_from_rows(fk_rows),
            options=options_from_row(option_rows[0]),
        )
        logger.debug(
            "Loaded %s.%s: %d columns, %d index rows, %d foreign keys",
            database,
            table,
            len(snapshot.columns),
            len(snapshot.indexes),
            len(snapshot.foreign_keys),
        )
        return snapshot

    # ------------------------------------------------------------------
    # Picker queries
    # ------------------------------------------------------------------

    async def list_databases(self) -> list[str]:
        """Get all schema names visible to the connected user."""
        rows = await self._client.fetch_all(
            "SELECT SCHEMA_NAME AS name FROM information_schema.SCHEMATA ORDER BY SCHEMA_NAME"
        )
        return [row["name"] for row in rows]

    async def list_tables(self, database: str) -> list[str]:
        """Get base table names in a schema (views excluded)."""
        rows = await self._client.fetch_all(
            """
            SELECT TABLE_NAME AS name
            FROM information_schema.TABLES
            WHERE TABLE_SCHEMA = :schema
              AND TABLE_TYPE = 'BASE TABLE'
            ORDER BY TABLE_NAME
            """,
            {"schema": database},
        )
        return [row["name"] for row in rows]

    async def list_columns(self, database: str, table: str) -> list[str]:
        """Get column names of a table in ordinal order."""
        rows = await self._client.fetch_all(
            """
            SELECT COLUMN_NAME AS name
            FROM information_schema.COLUMNS
            WHERE TABLE_SCHEMA = :schema
              AND TABLE_NAME = :table
            ORDER BY ORDINAL_POSITION
            """,
            {"schema": database, "table": table},
        )
        return [row["name"] for row in rows]

    async def list_charsets(self) -> list[str]:
        rows = await self._client.fetch_all(
            "SELECT CHARACTER_SET_NAME AS name FROM information_schema.CHARACTER_SETS "
            "ORDER BY CHARACTER_SET_NAME"
        )
        return [row["name"] for row in rows]

    async def list_collations(self, charset: str) -> list[str]:
        rows = await self._client.fetch_all(
            """
            SELECT COLLATION_NAME AS name
            FROM information_schema.COLLATIONS
            WHERE CHARACTER_SET_NAME = :charset
            ORDER BY COLLATION_NAME
            """,
            {"charset": charset},
        )
        return [row["name"] for row in rows]

    async def list_triggers(self, database: str, table: str) -> list[TriggerDefinition]:
        """Get triggers defined on a table."""
        rows = await self._client.fetch_all(
            """
            SELECT
                TRIGGER_NAME AS name,
                ACTION_TIMING AS timing,
                EVENT_MANIPULATION AS event,
                ACTION_STATEMENT AS statement
            FROM information_schema.TRIGGERS
            WHERE EVENT_OBJECT_SCHEMA = :schema
              AND EVENT_OBJECT_TABLE = :table
            ORDER BY ACTION_ORDER
            """,
            {"schema": database, "table": table},
        )
        return [
            TriggerDefinition(
                name=row["name"],
                timing=row["timing"],
                event=row["event"],
                statement=row["statement"],
            )
            for row in rows
        ]
