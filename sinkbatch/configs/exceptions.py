"""
Custom exceptions for the sink batching layer.

Hierarchy:
    SinkError
    ├── ConfigurationError         Bad batch size, empty target mappings, bad SinkConfig.
    ├── MalformedPayloadError      Record payload absent or not a field map; traversal aborts.
    ├── UnsupportedOperationError  Mutation attempted on a running traversal.
    ├── StatementError             A statement template could not be built.
    └── BatchExecutionError        executemany / commit failed at the database level.

Skipped records (unmapped origin, empty extraction) are not errors and never
raise; they are reported as diagnostics instead.
"""


class SinkError(Exception):
    """Base class for all sink errors."""


class ConfigurationError(SinkError):
    """
    Raised at construction time when a setting is invalid.

    Args:
        message: Human-readable description of the problem.
        setting: Name of the offending setting, if there is one.
        value:   The rejected value.
    """

    def __init__(self, message: str, setting: str | None = None, value: object = None) -> None:
        super().__init__(message)
        self.setting = setting
        self.value = value

    def __str__(self) -> str:
        base = super().__str__()
        if self.setting:
            return f"{base} | {self.setting}={self.value!r}"
        return base


class MalformedPayloadError(SinkError):
    """
    Raised when a record's payload is absent or is not a structured field map.

    This is fatal for the whole traversal: callers must stop iterating and
    start a new traversal over corrected input.

    Args:
        message:   Human-readable description.
        origin:    Origin identifier (e.g. topic) of the record.
        partition: Partition of the record, for diagnostics.
        offset:    Offset of the record, for diagnostics.
    """

    def __init__(
        self,
        message: str,
        origin: str | None = None,
        partition: int | None = None,
        offset: int | None = None,
    ) -> None:
        super().__init__(message)
        self.origin = origin
        self.partition = partition
        self.offset = offset

    def __str__(self) -> str:
        base = super().__str__()
        parts = []
        if self.origin is not None:
            parts.append(f"origin={self.origin}")
        if self.partition is not None:
            parts.append(f"partition={self.partition}")
        if self.offset is not None:
            parts.append(f"offset={self.offset}")
        if parts:
            return f"{base} | {' '.join(parts)}"
        return base


class UnsupportedOperationError(SinkError):
    """Raised when a caller tries to modify a traversal while it is running."""


class StatementError(SinkError):
    """
    Raised when a statement template cannot be generated.

    Args:
        message:    Human-readable description.
        table_name: Target table, if known.
    """

    def __init__(self, message: str, table_name: str | None = None) -> None:
        super().__init__(message)
        self.table_name = table_name

    def __str__(self) -> str:
        base = super().__str__()
        if self.table_name:
            return f"{base} | table={self.table_name}"
        return base


class BatchExecutionError(SinkError):
    """
    Raised when a batch fails as a whole at the database level.

    Row-level failures reported through ``getbatcherrors()`` do not raise;
    they are logged and counted in ``BatchResult``.

    Args:
        message:    Human-readable description.
        table_name: Target table of the failed batch.
        row_count:  Number of rows that were in the batch.
    """

    def __init__(self, message: str, table_name: str | None = None, row_count: int | None = None) -> None:
        super().__init__(message)
        self.table_name = table_name
        self.row_count = row_count

    def __str__(self) -> str:
        base = super().__str__()
        parts = []
        if self.table_name:
            parts.append(f"table={self.table_name}")
        if self.row_count is not None:
            parts.append(f"rows={self.row_count}")
        if parts:
            return f"{base} | {' '.join(parts)}"
        return base
