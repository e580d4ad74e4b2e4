"""Definition renderers for MySQL DDL.

Pure functions: the same record always renders to the same string.  The
synthesizer builds whole statements out of these pieces.

Usage:
    from mysql_designer.schema.ddl import build_column_def, build_index_def

    build_column_def(ColumnDefinition(name="id", type="int(11)",
                                      nullable=False, extra="auto_increment"))
    # '`id` int(11) NOT NULL auto_increment'

    build_index_def("PRIMARY", [IndexDefinition(key_name="PRIMARY",
                                                column_name="id", kind="PRIMARY")])
    # 'PRIMARY KEY (`id`)'
"""

import re
from collections.abc import Iterable, Sequence

from mysql_designer.schema.models import (
    PRIMARY_KEY_NAME,
    ColumnDefinition,
    ForeignKeyDefinition,
    IndexDefinition,
    TableOptions,
    TriggerDefinition,
)

DEFAULT_ENGINE = "InnoDB"
DEFAULT_CHARSET = "utf8mb4"
DEFAULT_COLLATION = "utf8mb4_general_ci"

CREATE_DEFAULTS = TableOptions(
    engine=DEFAULT_ENGINE,
    charset=DEFAULT_CHARSET,
    collation=DEFAULT_COLLATION,
)

# Picker placeholder meaning "inherit from the table"
_INHERIT = "Default"

_CURRENT_TIMESTAMP = re.compile(r"^current_timestamp(\(\d*\))?$", re.IGNORECASE)


# ------------------------------------------------------------------
# Quoting
# ------------------------------------------------------------------


def quote_identifier(name: str) -> str:
    """Backtick-quote an identifier, doubling embedded backticks."""
    return "`" + name.replace("`", "``") + "`"


def quote_string(value: str) -> str:
    """Single-quote a string literal.

    Backslashes are doubled and ``'`` becomes ``''``.

    Examples:
        >>> quote_string("O'Brien")
        "'O''Brien'"
        >>> quote_string("C:\\\\temp")
        "'C:\\\\\\\\temp'"
    """
    return "'" + value.replace("\\", "\\\\").replace("'", "''") + "'"


def qualified_name(database: str, table: str) -> str:
    return f"{quote_identifier(database)}.{quote_identifier(table)}"


# ------------------------------------------------------------------
# Columns
# ------------------------------------------------------------------


def _render_default(col: ColumnDefinition) -> str | None:
    default = col.default
    if default:
        if _CURRENT_TIMESTAMP.match(default) or default == "NULL":
            return f"DEFAULT {default}"
        if col.default_expression:
            return f"DEFAULT ({default})"
        return f"DEFAULT {quote_string(default)}"
    if col.nullable:
        return "DEFAULT NULL"
    return None


def build_column_def(col: ColumnDefinition) -> str:
    """Render a column definition.

    Grammar::

        `name` type [CHARACTER SET cs] [COLLATE co] {NOT NULL|NULL}
        [DEFAULT value] [extra] [COMMENT 'text']

    ``type`` already carries ``unsigned``/``zerofill``.  Generated columns
    render ``GENERATED ALWAYS AS (expr) VIRTUAL|STORED`` in place of the
    charset and default parts, since MySQL rejects a DEFAULT on them.
    """
    parts = [quote_identifier(col.name), col.type]

    if col.generated:
        parts.append(f"GENERATED ALWAYS AS ({col.generation_expression}) {col.generated}")
        parts.append("NULL" if col.nullable else "NOT NULL")
        if col.comment:
            parts.append(f"COMMENT {quote_string(col.comment)}")
        return " ".join(parts)

    if col.charset and col.charset != _INHERIT:
        parts.append(f"CHARACTER SET {col.charset}")
    if col.collation and col.collation != _INHERIT:
        parts.append(f"COLLATE {col.collation}")

    parts.append("NULL" if col.nullable else "NOT NULL")

    default = _render_default(col)
    if default:
        parts.append(default)

    if col.extra:
        parts.append(col.extra)
    if col.comment:
        parts.append(f"COMMENT {quote_string(col.comment)}")

    return " ".join(parts)


def build_position(previous: str | None) -> str:
    """Render a column placement suffix: ``FIRST`` or ``AFTER `prev```."""
    if previous is None:
        return "FIRST"
    return f"AFTER {quote_identifier(previous)}"


# ------------------------------------------------------------------
# Indexes
# ------------------------------------------------------------------


def group_indexes(
    indexes: Iterable[IndexDefinition],
) -> dict[str, list[IndexDefinition]]:
    """Group index-column rows by key name.

    Groups keep first-appearance order; rows inside a group are sorted by
    ``seq_in_index``.
    """
    groups: dict[str, list[IndexDefinition]] = {}
    for idx in indexes:
        groups.setdefault(idx.key_name, []).append(idx)
    for rows in groups.values():
        rows.sort(key=lambda row: row.seq_in_index)
    return groups


def build_index_def(key_name: str, rows: Sequence[IndexDefinition]) -> str:
    """Render one index from its rows.

    ``PRIMARY KEY (cols)`` | ``UNIQUE KEY `name` (cols)`` |
    ``FULLTEXT KEY `name` (cols)`` | ``KEY `name` (cols) USING method``,
    followed by ``COMMENT '...'`` when the index has a comment.
    """
    ordered = sorted(rows, key=lambda row: row.seq_in_index)
    cols = ", ".join(quote_identifier(row.column_name) for row in ordered)
    first = ordered[0]

    if key_name == PRIMARY_KEY_NAME:
        definition = f"PRIMARY KEY ({cols})"
    elif first.kind == "UNIQUE":
        definition = f"UNIQUE KEY {quote_identifier(key_name)} ({cols})"
    elif first.kind == "FULLTEXT":
        definition = f"FULLTEXT KEY {quote_identifier(key_name)} ({cols})"
    else:
        definition = f"KEY {quote_identifier(key_name)} ({cols}) USING {first.method}"

    if first.comment:
        definition += f" COMMENT {quote_string(first.comment)}"
    return definition


def build_drop_index(key_name: str) -> str:
    if key_name == PRIMARY_KEY_NAME:
        return "DROP PRIMARY KEY"
    return f"DROP INDEX {quote_identifier(key_name)}"


# ------------------------------------------------------------------
# Foreign keys
# ------------------------------------------------------------------


def build_fk_def(fk: ForeignKeyDefinition) -> str:
    """Render a foreign key constraint definition."""
    return (
        f"CONSTRAINT {quote_identifier(fk.name)} "
        f"FOREIGN KEY ({quote_identifier(fk.column)}) "
        f"REFERENCES {quote_identifier(fk.referenced_table)} "
        f"({quote_identifier(fk.referenced_column)}) "
        f"ON UPDATE {fk.on_update or 'RESTRICT'} "
        f"ON DELETE {fk.on_delete or 'RESTRICT'}"
    )


def build_drop_fk(name: str) -> str:
    return f"DROP FOREIGN KEY {quote_identifier(name)}"


# ------------------------------------------------------------------
# Table options
# ------------------------------------------------------------------

OPTION_FIELDS: tuple[str, ...] = (
    "engine",
    "charset",
    "collation",
    "comment",
    "auto_increment",
    "row_format",
)


def build_option(field: str, value: str | int | None, keep_empty: bool = False) -> str | None:
    """Render one table option, or None when there is nothing to state.

    Args:
        field: A ``TableOptions`` field name from ``OPTION_FIELDS``.
        value: The option value.
        keep_empty: Render an empty comment as ``COMMENT=''`` (used when a
            comment is being cleared).
    """
    if field == "comment":
        if value or keep_empty:
            return f"COMMENT={quote_string(str(value or ''))}"
        return None
    if field == "auto_increment":
        return f"AUTO_INCREMENT={value}" if value else None
    if field == "row_format" and value == _INHERIT:
        return None
    if not value:
        return None

    keyword = {
        "engine": "ENGINE",
        "charset": "DEFAULT CHARSET",
        "collation": "COLLATE",
        "row_format": "ROW_FORMAT",
    }[field]
    return f"{keyword}={value}"


def build_options_clause(options: TableOptions, defaults: TableOptions | None = None) -> str:
    """Render every non-empty table option as one space-joined clause.

    Args:
        options: Table options to render.
        defaults: Fallbacks for an empty engine, charset or collation
            (``CREATE TABLE`` passes ``CREATE_DEFAULTS``).

    Returns:
        e.g. ``ENGINE=InnoDB DEFAULT CHARSET=utf8mb4 COLLATE=utf8mb4_general_ci``,
        or an empty string when no option is set.
    """
    if defaults is not None:
        options = options.model_copy(
            update={
                field: getattr(options, field) or getattr(defaults, field)
                for field in ("engine", "charset", "collation")
            }
        )
    rendered = (build_option(field, getattr(options, field)) for field in OPTION_FIELDS)
    return " ".join(part for part in rendered if part)


# ------------------------------------------------------------------
# Triggers
# ------------------------------------------------------------------


def build_trigger_def(database: str, table: str, trigger: TriggerDefinition) -> str:
    """Render ``CREATE TRIGGER`` for a table."""
    return (
        f"CREATE TRIGGER {quote_identifier(trigger.name)} "
        f"{trigger.timing} {trigger.event} ON {qualified_name(database, table)} "
        f"FOR EACH ROW {trigger.statement}"
    )


def build_drop_trigger(database: str, name: str) -> str:
    return f"DROP TRIGGER {qualified_name(database, name)}"
