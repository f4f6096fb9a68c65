"""
Validation helpers for incoming record structure.

These functions are called by the grouping iterator for every record it pulls,
before any extractor sees the payload.

All functions raise the appropriate exception on failure rather than returning
a boolean — callers are expected to let exceptions propagate and abort the
traversal.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Sequence

from sinkbatch.configs.exceptions import MalformedPayloadError
from sinkbatch.models.models import SourceItem


def validate_payload(item: SourceItem) -> Mapping[str, Any]:
    """
    Assert that a record carries a structured field map and return it.

    Args:
        item: The record pulled from the source.

    Returns:
        The payload, typed as a mapping.

    Raises:
        MalformedPayloadError: If the payload is ``None`` or not a ``Mapping``.
    """
    payload = item.payload
    if payload is None or not isinstance(payload, Mapping):
        kind = "absent" if payload is None else type(payload).__name__
        raise MalformedPayloadError(
            f"On origin {item.origin} partition {item.partition} and offset {item.offset} "
            f"the payload is not a structured record (got {kind}).",
            origin=item.origin,
            partition=item.partition,
            offset=item.offset,
        )
    return payload


def validate_key_fields_present(
    payload: Mapping[str, Any],
    key_fields: frozenset[str],
    item: SourceItem,
) -> None:
    """
    Assert that every configured key field is present in a non-empty payload.

    Raises:
        MalformedPayloadError: If one or more key fields are missing.
    """
    missing = sorted(k for k in key_fields if k not in payload)
    if missing:
        raise MalformedPayloadError(
            f"Payload is missing key field(s) {missing}.",
            origin=item.origin,
            partition=item.partition,
            offset=item.offset,
        )


def validate_unique_columns(
    columns: Sequence[tuple[str, str]],
    item: SourceItem,
) -> None:
    """
    Assert that no two payload fields sanitize to the same column name.

    Args:
        columns: ``(payload field, column name)`` pairs in payload order.
        item:    The record, for error positions.

    Raises:
        MalformedPayloadError: Naming every column claimed by more than one field.
    """
    fields_by_column: dict[str, list[str]] = {}
    for field_name, column in columns:
        fields_by_column.setdefault(column, []).append(field_name)
    clashes = {column: names for column, names in fields_by_column.items() if len(names) > 1}
    if clashes:
        detail = "; ".join(f"{column} <- {names}" for column, names in clashes.items())
        raise MalformedPayloadError(
            f"Payload fields collide after column name sanitization: {detail}.",
            origin=item.origin,
            partition=item.partition,
            offset=item.offset,
        )
