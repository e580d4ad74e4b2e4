"""Error taxonomy for schema editing.

Every error raised by the designer core derives from ``DesignerError`` so
callers can surface messages without knowing which layer failed.

- ``ValidationError``: the synthesizer refused to build a statement.
  Nothing was sent to the database.
- ``DatabaseError``: the server rejected a statement.  The message is the
  server's message, unchanged.
- ``DatabaseConnectionError`` / ``SchemaNotFoundError``: the snapshot could
  not be loaded.  Fatal to the editing session.
- ``EditorStateError`` / ``UnsavedChangesError``: editor state-machine guards.
"""


class DesignerError(Exception):
    """Base class for all designer errors."""


class ValidationError(DesignerError):
    """Raised before any statement is sent (empty table, no-op save, bad model)."""


class DatabaseError(DesignerError):
    """Raised when the execution service rejects a statement."""


class DatabaseConnectionError(DesignerError):
    """Raised when a connection to the server cannot be established."""


class SchemaNotFoundError(DesignerError):
    """Raised when the requested database or table does not exist."""


class EditorStateError(DesignerError):
    """Raised when an editor operation is not allowed in the current state."""


class UnsavedChangesError(DesignerError):
    """Raised when closing an editor that still holds unsaved edits."""
