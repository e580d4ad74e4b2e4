"""Table structure editing: snapshots, introspection, diffing and DDL synthesis.

Provides the snapshot records, the type descriptor parser, live snapshot
loading (``SchemaIntrospector``), the diff-and-DDL synthesizer
(``synthesize``) and the editing session that ties them together
(``TableStructureEditor``).

Usage:
    from mysql_designer.schema import SchemaIntrospector, TableStructureEditor
    from mysql_designer.schema import synthesize, parse_type, compose_type
"""

from mysql_designer.schema.editor import EditorState, TableStructureEditor, new_table_snapshot
from mysql_designer.schema.introspector import SchemaIntrospector
from mysql_designer.schema.models import (
    ColumnDefinition,
    ConnectionResult,
    DdlStatement,
    ForeignKeyDefinition,
    IndexDefinition,
    Snapshot,
    SynthesisPolicy,
    TableOptions,
    TriggerDefinition,
)
from mysql_designer.schema.synthesizer import synthesize, validate_snapshot
from mysql_designer.schema.types import TypeDescriptor, compose_type, parse_type

__all__ = [
    "ColumnDefinition",
    "IndexDefinition",
    "ForeignKeyDefinition",
    "TableOptions",
    "TriggerDefinition",
    "Snapshot",
    "SynthesisPolicy",
    "DdlStatement",
    "ConnectionResult",
    "TypeDescriptor",
    "parse_type",
    "compose_type",
    "SchemaIntrospector",
    "synthesize",
    "validate_snapshot",
    "TableStructureEditor",
    "EditorState",
    "new_table_snapshot",
]
