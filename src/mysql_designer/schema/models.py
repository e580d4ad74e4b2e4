"""Pydantic models for table structure editing.

This module contains schema-domain models:
- Definition records: ColumnDefinition, IndexDefinition,
  ForeignKeyDefinition, TableOptions, TriggerDefinition
- Snapshot: the immutable four-part bundle the synthesizer diffs
- Synthesis: SynthesisPolicy, DdlStatement
- Connection result: ConnectionResult

All definition records are frozen.  Editors produce new records with
``model_copy(update=...)`` instead of mutating in place, so an ``original``
snapshot can never be changed by accident.

Configuration models (DatabaseProfile, DatabaseConfig) live in
mysql_designer.config.models.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from mysql_designer.schema.types import TypeDescriptor, parse_type

KeyRole = Literal["none", "primary", "unique", "index"]
GeneratedKind = Literal["", "VIRTUAL", "STORED"]
IndexKind = Literal["PRIMARY", "UNIQUE", "FULLTEXT", "NORMAL"]
IndexMethod = Literal["BTREE", "HASH"]
ForeignKeyRule = Literal["RESTRICT", "CASCADE", "SET NULL", "NO ACTION", "SET DEFAULT"]
TriggerTiming = Literal["BEFORE", "AFTER"]
TriggerEvent = Literal["INSERT", "UPDATE", "DELETE"]

PRIMARY_KEY_NAME = "PRIMARY"

FOREIGN_KEY_RULES: tuple[str, ...] = (
    "RESTRICT",
    "CASCADE",
    "SET NULL",
    "NO ACTION",
    "SET DEFAULT",
)


# ============================================================================
# Definition Records
# ============================================================================


class ColumnDefinition(BaseModel):
    """One table column.

    ``type`` is the raw type string (``int(10) unsigned``); the parsed parts
    are exposed as read-only properties so they can never disagree with it.

    Lifecycle tags:
    - ``is_new``: created in this edit session, no backing column yet.
    - ``original_name``: name at load time, empty for new columns.  Used to
      tell a rename apart from an add plus a drop.

    Example:
        >>> col = ColumnDefinition(name="id", type="int(11) unsigned", nullable=False)
        >>> col.base_type, col.length, col.unsigned
        ('int', '11', True)
    """

    model_config = ConfigDict(frozen=True)

    name: str
    type: str
    nullable: bool = True
    key: KeyRole = "none"
    default: str | None = None  # "NULL" and "CURRENT_TIMESTAMP" render as keywords
    default_expression: bool = False  # default is an expression: DEFAULT (expr)
    extra: str = ""  # auto_increment, on update CURRENT_TIMESTAMP
    generated: GeneratedKind = ""
    generation_expression: str = ""
    comment: str = ""
    charset: str = ""
    collation: str = ""
    is_new: bool = False
    original_name: str = ""

    @property
    def descriptor(self) -> TypeDescriptor:
        return parse_type(self.type)

    @property
    def base_type(self) -> str:
        return self.descriptor.base_type

    @property
    def length(self) -> str:
        return self.descriptor.length

    @property
    def unsigned(self) -> bool:
        return self.descriptor.unsigned

    @property
    def zerofill(self) -> bool:
        return self.descriptor.zerofill

    @property
    def auto_increment(self) -> bool:
        """True if ``extra`` carries the ``auto_increment`` flag."""
        return "auto_increment" in self.extra.lower().split()


class IndexDefinition(BaseModel):
    """One index-column row.

    Rows sharing ``key_name`` form a single index; ``seq_in_index`` orders
    the columns inside it.  The editor only ever produces single-column rows.
    """

    model_config = ConfigDict(frozen=True)

    key_name: str
    column_name: str
    kind: IndexKind = "NORMAL"
    method: IndexMethod = "BTREE"
    seq_in_index: int = 1
    comment: str = ""


class ForeignKeyDefinition(BaseModel):
    """One foreign key constraint (single column)."""

    model_config = ConfigDict(frozen=True)

    name: str
    column: str
    referenced_table: str
    referenced_column: str = ""
    on_update: ForeignKeyRule = "RESTRICT"
    on_delete: ForeignKeyRule = "RESTRICT"
    is_new: bool = False
    is_deleted: bool = False
    original_name: str = ""

    def same_definition(self, other: "ForeignKeyDefinition") -> bool:
        """Compare everything that ends up in the rendered constraint."""
        return (
            self.name == other.name
            and self.column == other.column
            and self.referenced_table == other.referenced_table
            and self.referenced_column == other.referenced_column
            and self.on_update == other.on_update
            and self.on_delete == other.on_delete
        )


class TableOptions(BaseModel):
    """Table-level storage metadata."""

    model_config = ConfigDict(frozen=True)

    engine: str = ""
    charset: str = ""
    collation: str = ""
    comment: str = ""
    row_format: str = ""
    auto_increment: int | None = None


class TriggerDefinition(BaseModel):
    """A table trigger.  Not part of a snapshot; created and dropped directly."""

    model_config = ConfigDict(frozen=True)

    name: str
    timing: TriggerTiming = "BEFORE"
    event: TriggerEvent = "INSERT"
    statement: str


# ============================================================================
# Snapshot
# ============================================================================


class Snapshot(BaseModel):
    """Schema state of one table at one instant.

    Example:
        >>> snap = Snapshot(columns=[ColumnDefinition(name="id", type="int")])
        >>> snap.column_names()
        ['id']
    """

    model_config = ConfigDict(frozen=True)

    columns: tuple[ColumnDefinition, ...] = ()
    indexes: tuple[IndexDefinition, ...] = ()
    foreign_keys: tuple[ForeignKeyDefinition, ...] = ()
    options: TableOptions = Field(default_factory=TableOptions)

    def column_names(self) -> list[str]:
        return [col.name for col in self.columns]

    def find_column(self, name: str) -> ColumnDefinition | None:
        for col in self.columns:
            if col.name == name:
                return col
        return None

    def find_foreign_key(self, name: str) -> ForeignKeyDefinition | None:
        for fk in self.foreign_keys:
            if fk.name == name:
                return fk
        return None


# ============================================================================
# Synthesis
# ============================================================================


class SynthesisPolicy(BaseModel):
    """How much of an existing table the synthesizer restates on save.

    The defaults restate everything: every surviving column is MODIFYed,
    every index is dropped and re-added, every table option is repeated.
    The ``changed`` strategies only touch what differs from the original
    snapshot.
    """

    model_config = ConfigDict(frozen=True)

    column_strategy: Literal["always", "changed"] = "always"
    index_strategy: Literal["recreate", "changed"] = "recreate"
    options_strategy: Literal["always", "changed"] = "always"


class DdlStatement(BaseModel):
    """One synthesized DDL statement.

    ``clauses`` holds the column/index/key definitions for CREATE and the
    comma-joined units for ALTER, in emission order.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["CREATE", "ALTER"]
    database: str
    table: str
    clauses: tuple[str, ...] = ()
    sql: str

    def __str__(self) -> str:
        return self.sql


# ============================================================================
# Connection Result
# ============================================================================


class ConnectionResult(BaseModel):
    """Result of connect_and_validate().

    Example:
        >>> result = ConnectionResult(success=True, profile_name="local")
        >>> result.success
        True
    """

    success: bool
    profile_name: str | None = None
    server_version: str | None = None
    error: str | None = None
