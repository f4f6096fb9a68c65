"""
Oracle DML template generation.

All builders are **pure** — they accept names and return SQL strings.  No
database connection is required.  The grouping iterator calls ``build`` once
per distinct column shape; the result is shared by every row in that group.

Responsibilities:
  - ``InsertStatementBuilder`` — plain named-bind INSERT
  - ``MergeStatementBuilder``  — MERGE upsert keyed on the key columns
  - ``builder_for_mode``       — pick one of the above from ``SinkConfig.insert_mode``

Rules enforced here:
  - Every identifier must already be sanitized (``utils.sanitizer.is_sanitized``);
    anything else raises ``StatementError``.
  - Bind names equal column names: column ``LAST_NAME`` binds as ``:LAST_NAME``.
  - Column order is non-key columns followed by key columns.
  - MERGE needs at least one key column.
"""

from __future__ import annotations

from typing import Sequence

from sinkbatch.configs.exceptions import StatementError
from sinkbatch.utils.sanitizer import is_sanitized


def qualified_name(table_name: str, schema_name: str = "") -> str:
    """``SCHEMA.TABLE`` when a schema is set, else ``TABLE``."""
    return f"{schema_name}.{table_name}" if schema_name else table_name


def _require_identifiers(table_name: str, schema_name: str, columns: Sequence[str]) -> None:
    """Raise ``StatementError`` for any name that is not a sanitized identifier."""
    for name in (table_name, *columns):
        if not is_sanitized(name):
            raise StatementError(
                f"{name!r} is not a sanitized Oracle identifier.",
                table_name=table_name,
            )
    if schema_name and not is_sanitized(schema_name):
        raise StatementError(
            f"Schema {schema_name!r} is not a sanitized Oracle identifier.",
            table_name=table_name,
        )
    if len(set(columns)) != len(columns):
        raise StatementError(
            f"Duplicate column names in {list(columns)}.",
            table_name=table_name,
        )


class InsertStatementBuilder:
    """
    Named-bind INSERT for every column of the row.

    Example::

        INSERT INTO SALES.CONTACTS (NAME, ID)
        VALUES (:NAME, :ID)
    """

    def __init__(self, schema_name: str = "") -> None:
        self.schema_name = schema_name

    def build(
        self,
        table_name: str,
        non_key_columns: Sequence[str],
        key_columns: Sequence[str],
    ) -> str:
        """
        Raises:
            StatementError: If there are no columns or a name is unsafe.
        """
        columns = [*non_key_columns, *key_columns]
        if not columns:
            raise StatementError(
                "Cannot generate INSERT: no columns given.",
                table_name=table_name,
            )
        _require_identifiers(table_name, self.schema_name, columns)

        col_list = ", ".join(columns)
        bind_list = ", ".join(f":{c}" for c in columns)
        return (
            f"INSERT INTO {qualified_name(table_name, self.schema_name)} ({col_list})\n"
            f"VALUES ({bind_list})"
        )


class MergeStatementBuilder:
    """
    Oracle upsert: update non-key columns of a matching row, insert otherwise.

    Example::

        MERGE INTO SALES.CONTACTS target
        USING (SELECT :NAME NAME, :ID ID FROM dual) incoming
        ON (target.ID = incoming.ID)
        WHEN MATCHED THEN UPDATE SET target.NAME = incoming.NAME
        WHEN NOT MATCHED THEN INSERT (target.NAME, target.ID) VALUES (incoming.NAME, incoming.ID)

    The ``WHEN MATCHED`` clause is left out when every column is a key column.
    """

    def __init__(self, schema_name: str = "") -> None:
        self.schema_name = schema_name

    def build(
        self,
        table_name: str,
        non_key_columns: Sequence[str],
        key_columns: Sequence[str],
    ) -> str:
        """
        Raises:
            StatementError: If there are no key columns or a name is unsafe.
        """
        if not key_columns:
            raise StatementError(
                "Cannot generate MERGE without key columns; use insert mode for keyless rows.",
                table_name=table_name,
            )
        columns = [*non_key_columns, *key_columns]
        _require_identifiers(table_name, self.schema_name, columns)

        select_list = ", ".join(f":{c} {c}" for c in columns)
        on_clause = " AND ".join(f"target.{c} = incoming.{c}" for c in key_columns)
        insert_cols = ", ".join(f"target.{c}" for c in columns)
        insert_vals = ", ".join(f"incoming.{c}" for c in columns)

        lines = [
            f"MERGE INTO {qualified_name(table_name, self.schema_name)} target",
            f"USING (SELECT {select_list} FROM dual) incoming",
            f"ON ({on_clause})",
        ]
        if non_key_columns:
            set_list = ", ".join(f"target.{c} = incoming.{c}" for c in non_key_columns)
            lines.append(f"WHEN MATCHED THEN UPDATE SET {set_list}")
        lines.append(f"WHEN NOT MATCHED THEN INSERT ({insert_cols}) VALUES ({insert_vals})")
        return "\n".join(lines)


def builder_for_mode(mode: str, schema_name: str = ""):
    """
    Return the statement builder for an insert mode.

    Args:
        mode:        ``"insert"`` or ``"upsert"`` (case-insensitive).
        schema_name: Sanitized schema prefix, or empty.

    Raises:
        StatementError: If ``mode`` is unknown.
    """
    builders = {"insert": InsertStatementBuilder, "upsert": MergeStatementBuilder}
    try:
        return builders[mode.lower()](schema_name)
    except KeyError:
        raise StatementError(
            f"Unknown insert mode {mode!r}. Valid modes: {list(builders)}"
        ) from None
