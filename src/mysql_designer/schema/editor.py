"""Table structure editor: the state owner of one editing session.

Holds the ``original`` snapshot (as loaded, never mutated) and the
``current`` snapshot (replaced on every edit), guards every operation with
an explicit state machine, and delegates to the synthesizer on save.

States::

    CLOSED -> LOADING -> READY <-> DIRTY -> SAVING -> READY
                                              \\-> ERROR -> DIRTY

Usage:
    from mysql_designer.schema.editor import TableStructureEditor

    editor = TableStructureEditor(adapter, "app", "users")
    await editor.open()
    editor.add_column("email", "varchar(255)", after="name")
    editor.update_column("name", length="128", nullable=False)
    print(editor.preview().sql)
    await editor.save()
    editor.close()
"""

import logging
from enum import Enum
from typing import TYPE_CHECKING, Any

from mysql_designer.errors import EditorStateError, UnsavedChangesError, ValidationError
from mysql_designer.schema.ddl import CREATE_DEFAULTS, build_drop_trigger, build_trigger_def
from mysql_designer.schema.introspector import SchemaIntrospector
from mysql_designer.schema.models import (
    PRIMARY_KEY_NAME,
    ColumnDefinition,
    DdlStatement,
    ForeignKeyDefinition,
    IndexDefinition,
    Snapshot,
    SynthesisPolicy,
    TableOptions,
    TriggerDefinition,
)
from mysql_designer.schema.synthesizer import synthesize
from mysql_designer.schema.types import compose_type

if TYPE_CHECKING:
    from mysql_designer.adapters.base import DatabaseClient

logger = logging.getLogger(__name__)

# Set only by creation / deletion, never through update_*()
_BOOKKEEPING_FIELDS = frozenset({"is_new", "is_deleted", "original_name"})
_TYPE_PARTS = ("base_type", "length", "unsigned", "zerofill")


class EditorState(str, Enum):
    CLOSED = "closed"
    LOADING = "loading"
    READY = "ready"
    DIRTY = "dirty"
    SAVING = "saving"
    ERROR = "error"


_EDITABLE = (EditorState.READY, EditorState.DIRTY, EditorState.ERROR)


def new_table_snapshot(options: TableOptions | None = None) -> Snapshot:
    """Starting snapshot for a table that does not exist yet.

    One ``id int(11) NOT NULL auto_increment`` column carrying the primary
    key, with the given (or built-in) engine/charset/collation.
    """
    return Snapshot(
        columns=(
            ColumnDefinition(
                name="id",
                type="int(11)",
                nullable=False,
                key="primary",
                extra="auto_increment",
                is_new=True,
            ),
        ),
        indexes=(IndexDefinition(key_name=PRIMARY_KEY_NAME, column_name="id", kind="PRIMARY"),),
        options=options or CREATE_DEFAULTS,
    )


def committed_snapshot(snapshot: Snapshot) -> Snapshot:
    """Return ``snapshot`` as it looks once saved: no new or deleted tags."""
    return snapshot.model_copy(
        update={
            "columns": tuple(
                col.model_copy(update={"is_new": False, "original_name": col.name})
                for col in snapshot.columns
            ),
            "foreign_keys": tuple(
                fk.model_copy(update={"is_new": False, "original_name": fk.name})
                for fk in snapshot.foreign_keys
                if not fk.is_deleted
            ),
        }
    )


def _unique_name(base: str, taken: set[str]) -> str:
    if base not in taken:
        return base
    suffix = 1
    while f"{base}_{suffix}" in taken:
        suffix += 1
    return f"{base}_{suffix}"


def _reject_bookkeeping(changes: dict[str, Any]) -> None:
    forbidden = _BOOKKEEPING_FIELDS & changes.keys()
    if forbidden:
        raise ValueError(f"Cannot edit bookkeeping fields: {', '.join(sorted(forbidden))}")


def _toggle_auto_increment(extra: str, enabled: bool) -> str:
    tokens = [token for token in extra.split() if token.lower() != "auto_increment"]
    if enabled:
        tokens.insert(0, "auto_increment")
    return " ".join(tokens)


class TableStructureEditor:
    """Editing session for one table.

    Mutations never touch ``original``; each replaces ``current`` with a new
    frozen snapshot.  Only creation sets ``is_new``, only deletion sets
    ``is_deleted`` and nothing edits ``original_name``, so the synthesizer can
    tell renames from additions and drops.

    Args:
        client: Execution service used for loading and saving.
        database: Schema the table lives in.
        table_name: Table to edit. For a new table, may be set later with
            ``rename_table()``.
        is_new_table: Start from ``new_table_snapshot()`` instead of loading.
        policy: Synthesis policy used by ``preview()``/``save()``.
        default_options: Options of a new table.
        introspector: Loader to use instead of one built on ``client``.
    """

    def __init__(
        self,
        client: "DatabaseClient",
        database: str,
        table_name: str = "",
        *,
        is_new_table: bool = False,
        policy: SynthesisPolicy | None = None,
        default_options: TableOptions | None = None,
        introspector: SchemaIntrospector | None = None,
    ) -> None:
        self._client = client
        self._introspector = introspector or SchemaIntrospector(client)
        self.database = database
        self.table_name = table_name
        self.is_new_table = is_new_table
        self.new_table_name: str | None = None
        self.policy = policy or SynthesisPolicy()
        self.default_options = default_options or CREATE_DEFAULTS

        self.state = EditorState.CLOSED
        self.original: Snapshot | None = None
        self.current: Snapshot | None = None
        self.triggers: list[TriggerDefinition] = []
        self.last_error: str | None = None

    # ------------------------------------------------------------------
    # State machine
    # ------------------------------------------------------------------

    @property
    def is_dirty(self) -> bool:
        return self.state in (EditorState.DIRTY, EditorState.ERROR)

    def _transition(self, state: EditorState) -> None:
        logger.debug(
            "Editor %s.%s: %s -> %s",
            self.database,
            self.table_name or "<new>",
            self.state.value,
            state.value,
        )
        self.state = state

    def _require(self, *states: EditorState) -> None:
        if self.state not in states:
            raise EditorStateError(f"Operation not allowed while editor is {self.state.value}")

    def _replace(self, **parts: Any) -> None:
        self._require(*_EDITABLE)
        self.current = self.current.model_copy(update=parts)
        if self.state is not EditorState.DIRTY:
            self._transition(EditorState.DIRTY)

    async def _load(self) -> None:
        if self.is_new_table:
            self.original = None
            self.current = new_table_snapshot(self.default_options)
            self.triggers = []
            return
        snapshot = await self._introspector.load_snapshot(self.database, self.table_name)
        self.triggers = await self._introspector.list_triggers(self.database, self.table_name)
        self.original = snapshot
        self.current = snapshot

    async def open(self) -> None:
        """Load the table (or build the new-table default) and enter READY.

        Raises:
            EditorStateError: If the editor is already open.
            SchemaNotFoundError: If the table does not exist.
            DatabaseConnectionError: If the server cannot be reached.
        """
        self._require(EditorState.CLOSED)
        self._transition(EditorState.LOADING)
        try:
            await self._load()
        except Exception:
            self.original = self.current = None
            self._transition(EditorState.CLOSED)
            raise
        self.last_error = None
        self._transition(EditorState.READY)

    def close(self, discard: bool = False) -> None:
        """End the session, dropping both snapshots.

        Args:
            discard: Close even if there are unsaved edits.

        Raises:
            UnsavedChangesError: If there are unsaved edits and ``discard``
                is False.
            EditorStateError: While loading or saving.
        """
        if self.state in (EditorState.LOADING, EditorState.SAVING):
            raise EditorStateError(f"Cannot close while editor is {self.state.value}")
        if self.is_dirty and not discard:
            raise UnsavedChangesError(
                f"Table '{self.table_name or '<new>'}' has unsaved changes"
            )
        self.original = self.current = None
        self.triggers = []
        self._transition(EditorState.CLOSED)

    # ------------------------------------------------------------------
    # Synthesis
    # ------------------------------------------------------------------

    def _synthesize(self) -> DdlStatement:
        if self.is_new_table:
            return synthesize(
                self.database,
                self.new_table_name or self.table_name,
                None,
                self.current,
                True,
                policy=self.policy,
                create_defaults=self.default_options,
            )
        return synthesize(
            self.database,
            self.table_name,
            self.original,
            self.current,
            False,
            new_table_name=self.new_table_name,
            policy=self.policy,
        )

    def preview(self) -> DdlStatement:
        """Return the statement ``save()`` would execute, without executing it.

        Raises:
            ValidationError: If the edits cannot be saved.
        """
        self._require(*_EDITABLE)
        return self._synthesize()

    async def save(self, reload: bool = True) -> DdlStatement:
        """Synthesize and execute the pending edits.

        On success the table is reloaded (or, with ``reload=False``, the
        edited snapshot becomes the new original) and the editor is READY.

        Args:
            reload: Re-read the table from the server after saving.

        Returns:
            The executed statement.

        Raises:
            ValidationError: Nothing was sent; the editor keeps its state.
            DatabaseError: The server rejected the statement; the editor is
                DIRTY with ``last_error`` set and the edits preserved.  Any
                other failure while executing leaves the editor DIRTY too.
        """
        self._require(*_EDITABLE)
        previous = self.state
        self._transition(EditorState.SAVING)

        try:
            statement = self._synthesize()
        except ValidationError:
            self._transition(previous)
            raise

        try:
            await self._client.execute(statement.sql)
        except BaseException as e:
            # Any failure, cancellation included, leaves the edits pending
            self.last_error = str(e) or type(e).__name__
            logger.warning("Save of %s.%s failed: %s", self.database, statement.table, e)
            self._transition(EditorState.ERROR)
            self._transition(EditorState.DIRTY)
            raise

        self.last_error = None
        if self.is_new_table:
            self.table_name = statement.table
        elif self.new_table_name:
            self.table_name = self.new_table_name
        self.is_new_table = False
        self.new_table_name = None

        if reload:
            self._transition(EditorState.LOADING)
            try:
                await self._load()
            except Exception:
                self.original = self.current = None
                self._transition(EditorState.CLOSED)
                raise
        else:
            self.original = self.current = committed_snapshot(self.current)

        self._transition(EditorState.READY)
        return statement

    # ------------------------------------------------------------------
    # Table
    # ------------------------------------------------------------------

    def rename_table(self, name: str) -> None:
        """Set the table name (new table) or the rename target (existing)."""
        self._require(*_EDITABLE)
        if self.is_new_table:
            self.table_name = name
        else:
            self.new_table_name = None if name == self.table_name else name
        self._replace()

    def replace_snapshot(self, snapshot: Snapshot) -> None:
        """Replace the whole edited snapshot, e.g. with a design read from a file.

        The records keep whatever bookkeeping tags they carry; a design
        exported from this table keeps its ``original_name`` claims.
        """
        self._replace(
            columns=snapshot.columns,
            indexes=snapshot.indexes,
            foreign_keys=snapshot.foreign_keys,
            options=snapshot.options,
        )

    def update_options(self, **changes: Any) -> TableOptions:
        """Edit table options.  Changing the charset resets the collation."""
        self._require(*_EDITABLE)
        if "charset" in changes and "collation" not in changes:
            changes["collation"] = ""
        options = TableOptions.model_validate(
            {**self.current.options.model_dump(), **changes}
        )
        self._replace(options=options)
        return options

    # ------------------------------------------------------------------
    # Columns
    # ------------------------------------------------------------------

    def _column_position(self, name: str) -> int:
        for i, col in enumerate(self.current.columns):
            if col.name == name:
                return i
        raise KeyError(f"Column '{name}' not found")

    def add_column(
        self,
        name: str | None = None,
        type: str = "varchar(255)",
        *,
        after: str | None = None,
        **attrs: Any,
    ) -> ColumnDefinition:
        """Append a new column (or insert it after ``after``).

        Defaults to a nullable ``new_column varchar(255)``.
        """
        self._require(*_EDITABLE)
        _reject_bookkeeping(attrs)
        if "auto_increment" in attrs:
            attrs["extra"] = _toggle_auto_increment(
                attrs.get("extra", ""), attrs.pop("auto_increment")
            )
        taken = set(self.current.column_names())
        col = ColumnDefinition(
            name=name or _unique_name("new_column", taken),
            type=type,
            is_new=True,
            **attrs,
        )

        columns = list(self.current.columns)
        position = len(columns) if after is None else self._column_position(after) + 1
        columns.insert(position, col)
        self._replace(columns=tuple(columns))
        return col

    def update_column(self, name: str, /, **changes: Any) -> ColumnDefinition:
        """Edit a column's attributes.

        Besides the ``ColumnDefinition`` fields, accepts the type parts
        ``base_type``/``length``/``unsigned``/``zerofill`` (recomposed into
        ``type``) and ``auto_increment`` (toggles the token in ``extra``).
        A new ``default`` is a literal unless ``default_expression=True``.
        Renaming a column carries its index rows and foreign keys along.

        Raises:
            KeyError: If the column does not exist.
            ValueError: On an attempt to edit bookkeeping fields.
        """
        self._require(*_EDITABLE)
        _reject_bookkeeping(changes)
        position = self._column_position(name)
        col = self.current.columns[position]

        if any(part in changes for part in _TYPE_PARTS):
            descriptor = col.descriptor._replace(
                **{part: changes.pop(part) for part in _TYPE_PARTS if part in changes}
            )
            changes["type"] = compose_type(*descriptor)
        if "auto_increment" in changes:
            changes["extra"] = _toggle_auto_increment(
                changes.get("extra", col.extra), changes.pop("auto_increment")
            )
        if "default" in changes:
            changes.setdefault("default_expression", False)

        updated = ColumnDefinition.model_validate({**col.model_dump(), **changes})
        columns = list(self.current.columns)
        columns[position] = updated
        parts: dict[str, Any] = {"columns": tuple(columns)}

        if updated.name != name:
            parts["indexes"] = tuple(
                idx.model_copy(update={"column_name": updated.name})
                if idx.column_name == name
                else idx
                for idx in self.current.indexes
            )
            parts["foreign_keys"] = tuple(
                fk.model_copy(update={"column": updated.name}) if fk.column == name else fk
                for fk in self.current.foreign_keys
            )

        self._replace(**parts)
        return updated

    def delete_column(self, name: str) -> None:
        """Remove a column with its index rows; its foreign keys are deleted."""
        self._require(*_EDITABLE)
        position = self._column_position(name)
        columns = list(self.current.columns)
        del columns[position]

        foreign_keys = []
        for fk in self.current.foreign_keys:
            if fk.column != name:
                foreign_keys.append(fk)
            elif not fk.is_new:
                foreign_keys.append(fk.model_copy(update={"is_deleted": True}))

        self._replace(
            columns=tuple(columns),
            indexes=tuple(idx for idx in self.current.indexes if idx.column_name != name),
            foreign_keys=tuple(foreign_keys),
        )

    def move_column(self, name: str, position: int) -> None:
        """Move a column to ``position`` (0-based) in the column list."""
        self._require(*_EDITABLE)
        columns = list(self.current.columns)
        col = columns.pop(self._column_position(name))
        if not 0 <= position <= len(columns):
            raise IndexError(f"Position {position} out of range")
        columns.insert(position, col)
        self._replace(columns=tuple(columns))

    # ------------------------------------------------------------------
    # Indexes
    # ------------------------------------------------------------------

    def add_index(
        self,
        column_name: str | None = None,
        key_name: str | None = None,
        kind: str = "NORMAL",
        method: str = "BTREE",
        comment: str = "",
    ) -> IndexDefinition:
        """Add a single-column index (default ``new_index`` on the first column)."""
        self._require(*_EDITABLE)
        taken = {idx.key_name for idx in self.current.indexes}
        if kind == "PRIMARY":
            key_name = PRIMARY_KEY_NAME
        elif not key_name:
            key_name = _unique_name("new_index", taken)

        if column_name is None:
            column_name = self.current.columns[0].name if self.current.columns else ""

        idx = IndexDefinition(
            key_name=key_name,
            column_name=column_name,
            kind=kind,
            method=method,
            comment=comment,
        )
        self._replace(indexes=self.current.indexes + (idx,))
        return idx

    def update_index(self, key_name: str, **changes: Any) -> list[IndexDefinition]:
        """Edit every row of an index.  Kind PRIMARY forces the name ``PRIMARY``.

        Raises:
            KeyError: If no index has ``key_name``.
        """
        self._require(*_EDITABLE)
        rows = [idx for idx in self.current.indexes if idx.key_name == key_name]
        if not rows:
            raise KeyError(f"Index '{key_name}' not found")
        if "column_name" in changes and len(rows) > 1:
            raise ValueError(f"Index '{key_name}' spans several columns")

        if changes.get("kind") == "PRIMARY":
            changes["key_name"] = PRIMARY_KEY_NAME
        elif "kind" in changes and key_name == PRIMARY_KEY_NAME and "key_name" not in changes:
            taken = {idx.key_name for idx in self.current.indexes}
            changes["key_name"] = _unique_name("new_index", taken)

        indexes = []
        updated = []
        for idx in self.current.indexes:
            if idx.key_name == key_name:
                idx = IndexDefinition.model_validate({**idx.model_dump(), **changes})
                updated.append(idx)
            indexes.append(idx)
        self._replace(indexes=tuple(indexes))
        return updated

    def delete_index(self, key_name: str) -> None:
        self._require(*_EDITABLE)
        indexes = tuple(idx for idx in self.current.indexes if idx.key_name != key_name)
        if len(indexes) == len(self.current.indexes):
            raise KeyError(f"Index '{key_name}' not found")
        self._replace(indexes=indexes)

    # ------------------------------------------------------------------
    # Foreign keys
    # ------------------------------------------------------------------

    def _fk_position(self, name: str) -> int:
        for i, fk in enumerate(self.current.foreign_keys):
            if fk.name == name and not fk.is_deleted:
                return i
        raise KeyError(f"Foreign key '{name}' not found")

    def add_foreign_key(
        self,
        column: str | None = None,
        referenced_table: str = "",
        referenced_column: str = "",
        name: str | None = None,
        on_update: str = "RESTRICT",
        on_delete: str = "RESTRICT",
    ) -> ForeignKeyDefinition:
        """Add a new foreign key (default name ``fk_<table>_<column>``)."""
        self._require(*_EDITABLE)
        if column is None:
            column = self.current.columns[0].name if self.current.columns else ""
        if not name:
            taken = {fk.name for fk in self.current.foreign_keys}
            table = self.new_table_name or self.table_name
            name = _unique_name(f"fk_{table}_{column}", taken)

        fk = ForeignKeyDefinition(
            name=name,
            column=column,
            referenced_table=referenced_table,
            referenced_column=referenced_column,
            on_update=on_update,
            on_delete=on_delete,
            is_new=True,
        )
        self._replace(foreign_keys=self.current.foreign_keys + (fk,))
        return fk

    def update_foreign_key(self, name: str, **changes: Any) -> ForeignKeyDefinition:
        """Edit a foreign key.  Changing the referenced table resets the column."""
        self._require(*_EDITABLE)
        _reject_bookkeeping(changes)
        position = self._fk_position(name)
        fk = self.current.foreign_keys[position]
        if "referenced_table" in changes and "referenced_column" not in changes:
            if changes["referenced_table"] != fk.referenced_table:
                changes["referenced_column"] = ""

        updated = ForeignKeyDefinition.model_validate({**fk.model_dump(), **changes})
        foreign_keys = list(self.current.foreign_keys)
        foreign_keys[position] = updated
        self._replace(foreign_keys=tuple(foreign_keys))
        return updated

    def delete_foreign_key(self, name: str) -> None:
        """Remove a new foreign key, or mark an existing one deleted."""
        self._require(*_EDITABLE)
        position = self._fk_position(name)
        foreign_keys = list(self.current.foreign_keys)
        fk = foreign_keys[position]
        if fk.is_new:
            del foreign_keys[position]
        else:
            foreign_keys[position] = fk.model_copy(update={"is_deleted": True})
        self._replace(foreign_keys=tuple(foreign_keys))

    # ------------------------------------------------------------------
    # Pickers
    # ------------------------------------------------------------------

    async def available_tables(self) -> list[str]:
        """Tables a foreign key of this table can reference."""
        return await self._introspector.list_tables(self.database)

    async def referenced_columns(self, table: str) -> list[str]:
        """Columns of ``table`` a foreign key can reference."""
        return await self._introspector.list_columns(self.database, table)

    async def available_charsets(self) -> list[str]:
        return await self._introspector.list_charsets()

    async def available_collations(self, charset: str) -> list[str]:
        return await self._introspector.list_collations(charset)

    # ------------------------------------------------------------------
    # Triggers
    # ------------------------------------------------------------------

    async def create_trigger(self, trigger: TriggerDefinition) -> None:
        """Create a trigger on the saved table right away.

        Triggers are not part of the snapshot; this does not change the
        editor state.

        Raises:
            ValidationError: On a table that has not been saved yet, or a
                trigger without name or statement.
            DatabaseError: If the server rejects the trigger.
        """
        self._require(*_EDITABLE)
        if self.is_new_table:
            raise ValidationError("Save the table before adding triggers")
        if not trigger.name.strip() or not trigger.statement.strip():
            raise ValidationError("Trigger name and statement are required")
        await self._client.execute(build_trigger_def(self.database, self.table_name, trigger))
        self.triggers = await self._introspector.list_triggers(self.database, self.table_name)

    async def drop_trigger(self, name: str) -> None:
        """Drop a trigger of the table right away."""
        self._require(*_EDITABLE)
        if self.is_new_table:
            raise ValidationError("Table has no triggers before it is saved")
        await self._client.execute(build_drop_trigger(self.database, name))
        self.triggers = await self._introspector.list_triggers(self.database, self.table_name)
