"""
Per-table column usage tracking.

Every row that reaches a group is recorded here so a downstream schema step
can tell which columns have been seen for each table. The mapping only ever
grows: columns are never removed.

Snapshots are copied on read. A snapshot attached to an earlier batch keeps
its contents even after later rows add columns.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Iterable

from sinkbatch.models.models import Binding, UsageSnapshot


class ColumnUsageTracker:
    """Table name → set of column names observed during one traversal."""

    def __init__(self) -> None:
        self._columns: dict[str, set[str]] = {}

    def track_usage(self, table_name: str, bindings: Iterable[Binding]) -> None:
        """Union the field names of ``bindings`` into the columns of ``table_name``."""
        columns = self._columns.setdefault(table_name, set())
        columns.update(b.field_name for b in bindings)

    def columns_for(self, table_name: str) -> frozenset[str]:
        """Return the columns seen so far for ``table_name`` (empty if none)."""
        return frozenset(self._columns.get(table_name, ()))

    def snapshot(self) -> UsageSnapshot:
        """Return an immutable copy of the current state."""
        return MappingProxyType(
            {table: frozenset(columns) for table, columns in self._columns.items()}
        )

    def __len__(self) -> int:
        return len(self._columns)
