"""
Payload → bindings extraction.

``FieldsExtractor`` is the stock extractor for flat field-map payloads.  It
turns one payload into one row of ``Binding`` objects, ready for grouping.

Key properties:
  - **Order-preserving** — bindings follow the payload's own field order, so
    two payloads with the same fields in a different order land in different
    groups (their statements bind columns in a different order).
  - **Named-bind output** — ``field_name`` is the sanitized Oracle column
    name, matching the bind placeholders the statement builders emit.
  - **Tombstone-aware** — an empty payload yields no bindings; the grouping
    iterator skips it.
  - **Strict keys** — a non-empty payload missing a configured key field is
    rejected with ``MalformedPayloadError``.
  - **Distinct columns** — payload fields that sanitize to the same column
    (``lastName`` and ``last_name``) are rejected with ``MalformedPayloadError``.

Usage::

    extractor = FieldsExtractor("contacts", key_fields=["id"])
    extractor.extract({"id": 1, "lastName": "Doe"}, item)
    # [Binding("ID", 1, is_key=True), Binding("LAST_NAME", "Doe")]
"""

from __future__ import annotations

import re
from typing import Any, Iterable, Mapping

from sinkbatch.configs.config import ORACLE_MAX_IDENTIFIER_LEN_LEGACY
from sinkbatch.models.models import Binding, SourceItem
from sinkbatch.utils.identifiers import to_column_name, to_table_name
from sinkbatch.utils.validation import validate_key_fields_present, validate_unique_columns

_NULL_BYTE_RE = re.compile(r"\x00")


class FieldsExtractor:
    """
    Extract bindings from flat ``Mapping`` payloads.

    Args:
        table_name:         Raw target table name; sanitized on construction.
        key_fields:         Payload field names that form the row key.
        include:            If given, only these payload fields are extracted
                            (key fields are always extracted).
        max_identifier_len: Oracle identifier length limit for table and columns.

    Raises:
        ValueError: If ``table_name`` or a key field cannot be sanitized.
    """

    def __init__(
        self,
        table_name: str,
        key_fields: Iterable[str] = (),
        include: Iterable[str] | None = None,
        max_identifier_len: int = ORACLE_MAX_IDENTIFIER_LEN_LEGACY,
    ) -> None:
        self.table_name = to_table_name(table_name, max_identifier_len)
        self.key_fields = frozenset(key_fields)
        self.include = frozenset(include) | self.key_fields if include is not None else None
        self._max_len = max_identifier_len
        self._column_names: dict[str, str] = {
            k: to_column_name(k, max_identifier_len) for k in self.key_fields
        }

    def extract(self, payload: Mapping[str, Any], item: SourceItem) -> list[Binding]:
        """
        Build the row's bindings from ``payload``.

        Args:
            payload: Field map of the record (already validated as a mapping).
            item:    The record itself; used for error positions.

        Returns:
            Ordered bindings, or ``[]`` for an empty payload.

        Raises:
            MalformedPayloadError: If a key field is missing from a non-empty payload,
                or two payload fields sanitize to the same column name.
        """
        if not payload:
            return []

        validate_key_fields_present(payload, self.key_fields, item)

        selected = [
            (name, self._column_name(name), value)
            for name, value in payload.items()
            if self.include is None or name in self.include
        ]
        validate_unique_columns([(name, column) for name, column, _ in selected], item)

        return [
            Binding(
                field_name=column,
                value=_clean_value(value),
                is_key=name in self.key_fields,
            )
            for name, column, value in selected
        ]

    def _column_name(self, field_name: str) -> str:
        column = self._column_names.get(field_name)
        if column is None:
            column = to_column_name(field_name, self._max_len)
            self._column_names[field_name] = column
        return column

    def __repr__(self) -> str:
        return f"<FieldsExtractor table={self.table_name} keys={sorted(self.key_fields)}>"


def _clean_value(value: Any) -> Any:
    """Strip null bytes from strings; every other value passes through."""
    if isinstance(value, str):
        return _NULL_BYTE_RE.sub("", value)
    return value
