"""
Group key derivation.

Two rows can share one parameterized statement only when they target the same
table with exactly the same non-key columns and key columns, in the same
order. The group key encodes that:

    CONTACTS|NAME,EMAIL|ID

``|`` and ``,`` never appear in sanitized identifiers, so distinct column
lists cannot collide (``AB`` + ``C`` vs ``A`` + ``BC``), and moving a column
between the non-key and key sides always changes the key.
"""

from __future__ import annotations

from typing import Sequence

from sinkbatch.models.models import Binding

_PART_SEP = "|"
_COLUMN_SEP = ","


def partition_columns(bindings: Sequence[Binding]) -> tuple[list[str], list[str]]:
    """
    Split ``bindings`` into non-key and key column names, keeping their order.

    Returns:
        ``(non_key_columns, key_columns)``
    """
    non_key_columns: list[str] = []
    key_columns: list[str] = []
    for b in bindings:
        if b.is_key:
            key_columns.append(b.field_name)
        else:
            non_key_columns.append(b.field_name)
    return non_key_columns, key_columns


def build_group_key(table_name: str, bindings: Sequence[Binding]) -> str:
    """
    Derive the grouping key for one row.

    Args:
        table_name: Target table of the row.
        bindings:   The row's bindings, in extractor order.

    Returns:
        Key string: table, then non-key column names, then key column names.

    Raises:
        ValueError: If ``bindings`` is empty. Callers skip empty rows before
            getting here.
    """
    if not bindings:
        raise ValueError(f"Cannot build a group key for {table_name!r}: bindings are empty.")

    non_key_columns, key_columns = partition_columns(bindings)
    return _PART_SEP.join(
        (table_name, _COLUMN_SEP.join(non_key_columns), _COLUMN_SEP.join(key_columns))
    )
