"""
Identifier helpers for the sink.

Thin wrappers around ``sanitizer.sanitize_identifier`` that apply the
configured Oracle identifier length and make call sites more readable.

Usage:
    from sinkbatch.utils.identifiers import to_column_name, to_table_name

    col   = to_column_name("lastName", 30)       # → "LAST_NAME"
    table = to_table_name("crm.contacts", 30)    # → "CRM_CONTACTS"
"""

from __future__ import annotations

from sinkbatch.configs.config import ORACLE_MAX_IDENTIFIER_LEN_LEGACY
from sinkbatch.utils.sanitizer import sanitize_identifier


def to_column_name(raw: str, max_len: int = ORACLE_MAX_IDENTIFIER_LEN_LEGACY) -> str:
    """
    Sanitize a payload field name into an Oracle column name.

    Raises:
        ValueError: If ``raw`` is empty or unsanitizable.
    """
    return sanitize_identifier(raw, max_len=max_len)


def to_table_name(raw: str, max_len: int = ORACLE_MAX_IDENTIFIER_LEN_LEGACY) -> str:
    """
    Sanitize a raw string (configured name, origin, topic) into an Oracle table name.

    Raises:
        ValueError: If ``raw`` is empty or unsanitizable.
    """
    return sanitize_identifier(raw, max_len=max_len)


def to_schema_name(raw: str, max_len: int = ORACLE_MAX_IDENTIFIER_LEN_LEGACY) -> str:
    """
    Sanitize a raw string into an Oracle schema/owner name.

    An empty ``raw`` means "no schema" and is returned unchanged.

    Raises:
        ValueError: If a non-empty ``raw`` is unsanitizable.
    """
    if not raw:
        return ""
    return sanitize_identifier(raw, max_len=max_len)
