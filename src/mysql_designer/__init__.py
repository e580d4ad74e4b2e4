"""mysql-designer: Async MySQL table structure designer.

Loads a table's columns, indexes, foreign keys and options as an immutable
snapshot, lets an editing session change it, and synthesizes the single
``CREATE TABLE`` / ``ALTER TABLE`` statement that applies the edits.
Multi-profile configuration and a CLI come along.

Usage:
    from mysql_designer import AsyncMySQLAdapter, DatabaseClient, get_adapter
    from mysql_designer import TableStructureEditor, synthesize
    from mysql_designer import load_db_config, DatabaseProfile, DatabaseConfig
"""

__version__ = "0.1.0"

# Adapters
from mysql_designer.adapters.base import DatabaseClient
from mysql_designer.adapters.mysql import AsyncMySQLAdapter

# Config
from mysql_designer.config.loader import load_db_config
from mysql_designer.config.models import DatabaseConfig, DatabaseProfile, DesignerSettings

# Errors
from mysql_designer.errors import (
    DatabaseConnectionError,
    DatabaseError,
    DesignerError,
    EditorStateError,
    SchemaNotFoundError,
    UnsavedChangesError,
    ValidationError,
)

# Factory
from mysql_designer.factory import (
    ProfileNotFoundError,
    connect_and_validate,
    get_adapter,
    resolve_url,
)

# Schema
from mysql_designer.schema.editor import EditorState, TableStructureEditor
from mysql_designer.schema.introspector import SchemaIntrospector
from mysql_designer.schema.models import (
    ColumnDefinition,
    DdlStatement,
    ForeignKeyDefinition,
    IndexDefinition,
    Snapshot,
    SynthesisPolicy,
    TableOptions,
)
from mysql_designer.schema.synthesizer import synthesize

__all__ = [
    # Adapters
    "DatabaseClient",
    "AsyncMySQLAdapter",
    # Config
    "load_db_config",
    "DatabaseProfile",
    "DatabaseConfig",
    "DesignerSettings",
    # Errors
    "DesignerError",
    "ValidationError",
    "DatabaseError",
    "DatabaseConnectionError",
    "SchemaNotFoundError",
    "EditorStateError",
    "UnsavedChangesError",
    # Factory
    "get_adapter",
    "connect_and_validate",
    "ProfileNotFoundError",
    "resolve_url",
    # Schema
    "SchemaIntrospector",
    "TableStructureEditor",
    "EditorState",
    "synthesize",
    "ColumnDefinition",
    "IndexDefinition",
    "ForeignKeyDefinition",
    "TableOptions",
    "Snapshot",
    "SynthesisPolicy",
    "DdlStatement",
]
