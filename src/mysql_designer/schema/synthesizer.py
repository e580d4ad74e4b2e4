"""Schema diff and DDL synthesis.

Given the snapshot a table was loaded with and the snapshot the user edited
it into, produce exactly one ``CREATE TABLE`` or ``ALTER TABLE`` statement.
Pure logic -- no I/O; the editor hands the statement to a ``DatabaseClient``.

Usage:
    from mysql_designer.schema.synthesizer import synthesize

    # New table
    stmt = synthesize("app", "users", None, current, is_new_table=True)

    # Existing table, only touching what changed
    stmt = synthesize(
        "app", "users", original, current, is_new_table=False,
        policy=SynthesisPolicy(column_strategy="changed", index_strategy="changed"),
    )
    await client.execute(stmt.sql)

ALTER clause order:
    1. ADD COLUMN            new columns
    2. CHANGE/MODIFY COLUMN  columns claimed from the original
    3. DROP COLUMN           original columns nobody claims
    4. DROP PRIMARY KEY / DROP INDEX
    5. ADD <index>
    6. DROP FOREIGN KEY      deleted constraints
    7. ADD CONSTRAINT        new constraints
    8. DROP + ADD            modified constraints, always adjacent
    9. table options
   10. RENAME TO
"""

import logging
from collections import Counter

from mysql_designer.errors import ValidationError
from mysql_designer.schema.ddl import (
    CREATE_DEFAULTS,
    OPTION_FIELDS,
    build_column_def,
    build_drop_fk,
    build_drop_index,
    build_fk_def,
    build_index_def,
    build_option,
    build_options_clause,
    build_position,
    group_indexes,
    qualified_name,
    quote_identifier,
)
from mysql_designer.schema.models import (
    PRIMARY_KEY_NAME,
    ColumnDefinition,
    DdlStatement,
    IndexDefinition,
    Snapshot,
    SynthesisPolicy,
    TableOptions,
)

logger = logging.getLogger(__name__)

NO_CHANGES_MESSAGE = "No changes to save"


# ------------------------------------------------------------------
# Validation
# ------------------------------------------------------------------


def validate_snapshot(current: Snapshot, table_name: str) -> None:
    """Check a snapshot can be rendered into valid DDL.

    Args:
        current: The edited snapshot.
        table_name: Name the table will have after the statement runs.

    Raises:
        ValidationError: On the first problem found.
    """
    if not table_name.strip():
        raise ValidationError("Table name is required")
    if not current.columns:
        raise ValidationError("No columns defined")

    names = current.column_names()
    if any(not name.strip() for name in names):
        raise ValidationError("Column name is required")
    duplicates = sorted(name for name, count in Counter(names).items() if count > 1)
    if duplicates:
        raise ValidationError(f"Duplicate column name '{duplicates[0]}'")

    indexed = {idx.column_name for idx in current.indexes}
    auto_columns = [col.name for col in current.columns if col.auto_increment]
    if len(auto_columns) > 1:
        raise ValidationError(
            f"Only one auto_increment column is allowed, found: {', '.join(auto_columns)}"
        )
    if auto_columns and auto_columns[0] not in indexed:
        raise ValidationError(
            f"Auto-increment column '{auto_columns[0]}' must be part of a key"
        )

    column_set = set(names)
    for idx in current.indexes:
        if not idx.key_name.strip():
            raise ValidationError(f"Index on column '{idx.column_name}' has no key name")
        if (idx.kind == "PRIMARY") != (idx.key_name == PRIMARY_KEY_NAME):
            raise ValidationError(
                f"Index '{idx.key_name}': only the PRIMARY key may be named "
                f"'{PRIMARY_KEY_NAME}' and it must have kind PRIMARY"
            )
        if idx.column_name not in column_set:
            raise ValidationError(
                f"Index '{idx.key_name}' references unknown column '{idx.column_name}'"
            )

    for fk in current.foreign_keys:
        if fk.is_deleted:
            continue
        if not fk.name.strip():
            raise ValidationError(f"Foreign key on column '{fk.column}' has no name")
        if fk.column not in column_set:
            raise ValidationError(
                f"Foreign key '{fk.name}' references unknown column '{fk.column}'"
            )
        if not fk.referenced_table or not fk.referenced_column:
            raise ValidationError(f"Foreign key '{fk.name}' has no referenced column")


def _validate_claims(original: Snapshot, current: Snapshot) -> None:
    original_names = set(original.column_names())
    claims = Counter(
        col.original_name
        for col in current.columns
        if not col.is_new and col.original_name in original_names
    )
    for name, count in claims.items():
        if count > 1:
            raise ValidationError(f"Column '{name}' is claimed by more than one column")


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------


def _ordered_groups(indexes: tuple[IndexDefinition, ...]) -> dict[str, list[IndexDefinition]]:
    """Group index rows with PRIMARY first, others in first-appearance order."""
    groups = group_indexes(indexes)
    if PRIMARY_KEY_NAME in groups:
        primary = groups.pop(PRIMARY_KEY_NAME)
        groups = {PRIMARY_KEY_NAME: primary, **groups}
    return groups


def _is_claimed(col: ColumnDefinition, original_names: set[str]) -> bool:
    return not col.is_new and col.original_name in original_names


def _anchored_columns(original: Snapshot, current: Snapshot) -> set[str]:
    """Return current names of claimed columns that keep their position.

    The anchors are a longest run of claimed columns whose original order is
    preserved in ``current``.  Every other column needs an explicit placement
    for the resulting table to match the edited order.
    """
    original_index = {name: i for i, name in enumerate(original.column_names())}
    original_names = set(original_index)
    claimed = [
        (col.name, original_index[col.original_name])
        for col in current.columns
        if _is_claimed(col, original_names)
    ]
    if not claimed:
        return set()

    # Longest increasing subsequence over original positions
    lengths = [1] * len(claimed)
    parents = [-1] * len(claimed)
    for i in range(len(claimed)):
        for j in range(i):
            if claimed[j][1] < claimed[i][1] and lengths[j] + 1 > lengths[i]:
                lengths[i] = lengths[j] + 1
                parents[i] = j

    best = max(range(len(claimed)), key=lambda i: lengths[i])
    anchors: set[str] = set()
    while best != -1:
        anchors.add(claimed[best][0])
        best = parents[best]
    return anchors


def _placements(original: Snapshot, current: Snapshot) -> dict[str, str]:
    """Compute ``FIRST`` / ``AFTER `prev``` suffixes for columns that need one.

    MySQL applies positioned clauses in statement order, inserting each after
    a column already present.  A column is therefore placed after its nearest
    predecessor (in edited order) that is either an anchor or was emitted
    earlier in the statement: new columns before claimed ones, each group in
    edited order.  New columns trailing the table need no placement.
    """
    original_names = set(original.column_names())
    anchors = _anchored_columns(original, current)
    columns = list(current.columns)

    trailing: set[str] = set()
    for col in reversed(columns):
        if _is_claimed(col, original_names):
            break
        trailing.add(col.name)

    emission = [c for c in columns if not _is_claimed(c, original_names)] + [
        c for c in columns if _is_claimed(c, original_names)
    ]
    position = {col.name: i for i, col in enumerate(columns)}

    present = set(anchors)
    placements: dict[str, str] = {}
    for col in emission:
        if col.name in anchors:
            continue
        if col.name in trailing:
            present.add(col.name)
            continue
        previous = None
        for candidate in reversed(columns[: position[col.name]]):
            if candidate.name in present:
                previous = candidate.name
                break
        placements[col.name] = build_position(previous)
        present.add(col.name)
    return placements


# ------------------------------------------------------------------
# Case A: CREATE TABLE
# ------------------------------------------------------------------


def _synthesize_create(
    database: str, table_name: str, current: Snapshot, defaults: TableOptions
) -> DdlStatement:
    clauses: list[str] = [build_column_def(col) for col in current.columns]
    clauses.extend(
        build_index_def(key_name, rows)
        for key_name, rows in _ordered_groups(current.indexes).items()
    )
    clauses.extend(build_fk_def(fk) for fk in current.foreign_keys if not fk.is_deleted)

    body = ",\n  ".join(clauses)
    sql = f"CREATE TABLE {qualified_name(database, table_name)} (\n  {body}\n)"
    options = build_options_clause(current.options, defaults=defaults)
    if options:
        sql += f" {options}"

    return DdlStatement(
        kind="CREATE",
        database=database,
        table=table_name,
        clauses=tuple(clauses),
        sql=sql,
    )


# ------------------------------------------------------------------
# Case B: ALTER TABLE
# ------------------------------------------------------------------


def _column_clauses(
    original: Snapshot, current: Snapshot, policy: SynthesisPolicy
) -> list[str]:
    original_names = set(original.column_names())
    placements = _placements(original, current)
    clauses: list[str] = []

    for col in current.columns:
        if _is_claimed(col, original_names):
            continue
        clause = f"ADD COLUMN {build_column_def(col)}"
        if col.name in placements:
            clause += f" {placements[col.name]}"
        clauses.append(clause)

    claimed: set[str] = set()
    for col in current.columns:
        if not _is_claimed(col, original_names):
            continue
        claimed.add(col.original_name)
        definition = build_column_def(col)
        placement = placements.get(col.name)
        renamed = col.name != col.original_name

        if policy.column_strategy == "changed" and not renamed and placement is None:
            before = original.find_column(col.original_name)
            if before is not None and build_column_def(before) == definition:
                continue

        if renamed:
            clause = f"CHANGE COLUMN {quote_identifier(col.original_name)} {definition}"
        else:
            clause = f"MODIFY COLUMN {definition}"
        if placement:
            clause += f" {placement}"
        clauses.append(clause)

    # An original column survives while any current column claims it or bears its name
    current_names = set(current.column_names())
    for col in original.columns:
        if col.name not in claimed and col.name not in current_names:
            clauses.append(f"DROP COLUMN {quote_identifier(col.name)}")

    return clauses


def _index_clauses(
    original: Snapshot, current: Snapshot, policy: SynthesisPolicy
) -> list[str]:
    before = {
        key_name: build_index_def(key_name, rows)
        for key_name, rows in _ordered_groups(original.indexes).items()
    }
    after = {
        key_name: build_index_def(key_name, rows)
        for key_name, rows in _ordered_groups(current.indexes).items()
    }

    if policy.index_strategy == "recreate":
        drops = list(before)
        adds = list(after)
    else:
        drops = [name for name in before if after.get(name) != before[name]]
        adds = [name for name in after if before.get(name) != after[name]]

    clauses = [build_drop_index(name) for name in drops]
    clauses.extend(f"ADD {after[name]}" for name in adds)
    return clauses


def _foreign_key_clauses(original: Snapshot, current: Snapshot) -> list[str]:
    originals = {fk.name: fk for fk in original.foreign_keys}
    drops: list[str] = []
    adds: list[str] = []
    modifies: list[str] = []
    claimed: set[str] = set()

    for fk in current.foreign_keys:
        if fk.original_name in originals and not fk.is_new:
            claimed.add(fk.original_name)
        if fk.is_deleted:
            if not fk.is_new and fk.original_name in originals:
                drops.append(build_drop_fk(fk.original_name))
            continue
        before = None if fk.is_new else originals.get(fk.original_name)
        if before is None:
            adds.append(f"ADD {build_fk_def(fk)}")
        elif not fk.same_definition(before):
            modifies.append(build_drop_fk(fk.original_name))
            modifies.append(f"ADD {build_fk_def(fk)}")

    # Constraints dropped from the model entirely, rather than marked deleted
    for name in originals:
        if name not in claimed:
            drops.append(build_drop_fk(name))

    return drops + adds + modifies


def _options_clause(original: Snapshot, current: Snapshot, policy: SynthesisPolicy) -> str:
    if policy.options_strategy == "always":
        return build_options_clause(current.options)

    parts = []
    for field in OPTION_FIELDS:
        value = getattr(current.options, field)
        if value == getattr(original.options, field):
            continue
        rendered = build_option(field, value, keep_empty=True)
        if rendered:
            parts.append(rendered)
    return " ".join(parts)


def _synthesize_alter(
    database: str,
    table_name: str,
    original: Snapshot,
    current: Snapshot,
    new_table_name: str | None,
    policy: SynthesisPolicy,
) -> DdlStatement:
    rename = bool(new_table_name) and new_table_name != table_name
    _validate_claims(original, current)

    clauses = _column_clauses(original, current, policy)
    clauses.extend(_index_clauses(original, current, policy))
    clauses.extend(_foreign_key_clauses(original, current))

    options = _options_clause(original, current, policy)
    if options:
        clauses.append(options)
    if rename:
        clauses.append(f"RENAME TO {qualified_name(database, new_table_name)}")

    if not clauses:
        raise ValidationError(NO_CHANGES_MESSAGE)

    body = ",\n  ".join(clauses)
    sql = f"ALTER TABLE {qualified_name(database, table_name)}\n  {body}"
    return DdlStatement(
        kind="ALTER",
        database=database,
        table=table_name,
        clauses=tuple(clauses),
        sql=sql,
    )


# ------------------------------------------------------------------
# Public API
# ------------------------------------------------------------------


def synthesize(
    database: str,
    table_name: str,
    original: Snapshot | None,
    current: Snapshot,
    is_new_table: bool,
    *,
    new_table_name: str | None = None,
    policy: SynthesisPolicy | None = None,
    create_defaults: TableOptions | None = None,
) -> DdlStatement:
    """Build the single DDL statement that turns ``original`` into ``current``.

    Args:
        database: Schema the table lives in.
        table_name: Current name of the table (for a new table, its name).
        original: Snapshot as loaded. ``None`` for a new table.
        current: Snapshot as edited.
        is_new_table: True to emit ``CREATE TABLE``, False for ``ALTER TABLE``.
        new_table_name: Rename target for an existing table.
        policy: How much unchanged structure to restate. Defaults to
            restating everything.
        create_defaults: Engine, charset and collation a new table falls back
            to when its options leave them empty.

    Returns:
        ``DdlStatement`` with the rendered clauses and full SQL.

    Raises:
        ValidationError: If the snapshot is invalid or nothing changed.
            No statement is produced.

    Example:
        >>> stmt = synthesize("app", "t", None, Snapshot(columns=[
        ...     ColumnDefinition(name="name", type="varchar(64)")]), True)
        >>> stmt.sql.splitlines()[0]
        'CREATE TABLE `app`.`t` ('
    """
    policy = policy or SynthesisPolicy()

    if is_new_table:
        name = new_table_name or table_name
        validate_snapshot(current, name)
        statement = _synthesize_create(
            database, name, current, create_defaults or CREATE_DEFAULTS
        )
    else:
        if original is None:
            raise ValidationError("Cannot alter a table without its loaded snapshot")
        if current == original and (not new_table_name or new_table_name == table_name):
            raise ValidationError(NO_CHANGES_MESSAGE)
        validate_snapshot(current, new_table_name or table_name)
        statement = _synthesize_alter(
            database, table_name, original, current, new_table_name, policy
        )

    logger.debug(
        "Synthesized %s for %s.%s (%d clauses)",
        statement.kind,
        database,
        statement.table,
        len(statement.clauses),
    )
    return statement
