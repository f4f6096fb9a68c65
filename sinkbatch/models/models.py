"""
Core data models for the sink batching layer.

SourceItem        — one incoming record: origin, position, payload.
Binding           — one field of one row: column name, value, key role.
TargetMapping     — per-origin pairing of an extractor and a statement builder.
BatchGroup        — rows accumulating under one group key + their frozen template.
StatementContext  — what the iterator hands back: template, rows, usage snapshot.

Named bind strategy
-------------------
Statement templates use Oracle named binds, one per column:

    INSERT INTO SCHEMA.TABLE (COL_A, COL_B) VALUES (:COL_A, :COL_B)

A row's bind dict is built from its bindings' ``field_name`` values, so the
column names produced by the extractor must be the names used in the template.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Protocol, Sequence


# Read-only view of table name -> columns observed so far.
UsageSnapshot = Mapping[str, frozenset[str]]


@dataclass(frozen=True, slots=True)
class Binding:
    """
    A single field value for a single row.

    Attributes:
        field_name: Column name (already a safe Oracle identifier).
        value:      Python value to bind.
        is_key:     True if the column is part of the row's key.
    """

    field_name: str
    value: Any
    is_key: bool = False

    @property
    def bind_name(self) -> str:
        """The Oracle named bind placeholder, e.g. ``:LAST_NAME``."""
        return f":{self.field_name}"


@dataclass(frozen=True, slots=True)
class SourceItem:
    """
    One record from the incoming stream.

    Attributes:
        origin:    Where the record came from (e.g. a topic). Selects the target mapping.
        payload:   ``None``, a malformed value, or a ``Mapping`` of field name → value.
        partition: Partition number, for diagnostics only.
        offset:    Offset within the partition, for diagnostics only.
    """

    origin: str
    payload: Any
    partition: int | None = None
    offset: int | None = None


class Extractor(Protocol):
    """Turns one payload into the ordered bindings of one row."""

    table_name: str

    def extract(self, payload: Mapping[str, Any], item: SourceItem) -> list[Binding]:
        """Return the row's bindings; an empty list means the record is a no-op."""
        ...


class StatementBuilder(Protocol):
    """Builds the parameterized statement shared by every row of a group."""

    def build(
        self,
        table_name: str,
        non_key_columns: Sequence[str],
        key_columns: Sequence[str],
    ) -> str:
        ...


@dataclass(frozen=True, slots=True)
class TargetMapping:
    """
    Configuration for one origin.

    Attributes:
        extractor:         Produces bindings (and the table name) for each record.
        statement_builder: Produces the template for each new column shape.
    """

    extractor: Extractor
    statement_builder: StatementBuilder


@dataclass(slots=True)
class BatchGroup:
    """
    Rows sharing one group key.

    Attributes:
        table_name: Target table.
        template:   Statement template, computed once when the group is created.
        rows:       One ordered binding list per row, in arrival order.
    """

    table_name: str
    template: str
    rows: list[list[Binding]] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.rows)


@dataclass(frozen=True, slots=True)
class StatementContext:
    """
    One batch ready for execution.

    Attributes:
        template:   Statement template shared by every row.
        rows:       Ordered rows; each row is its ordered bindings.
        usage:      Snapshot of table → columns observed up to the moment of emission.
        table_name: Target table of the batch.
        group_key:  Key the rows were grouped under.
    """

    template: str
    rows: list[list[Binding]]
    usage: UsageSnapshot
    table_name: str = ""
    group_key: str = ""

    def bind_rows(self) -> list[dict[str, Any]]:
        """Return one ``{column: value}`` dict per row, ready for ``executemany``."""
        return [{b.field_name: b.value for b in row} for row in self.rows]
