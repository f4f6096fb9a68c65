"""
Identifier cleaning for generated statement text.

Record payloads carry free-form field names (``lastName``, ``order-id``,
``2nd line``) and target mappings carry configured table names.  Both end up
spliced into the INSERT / UPDATE / MERGE templates, so each one goes through
``sanitize_identifier`` on its way in:

  - ``FieldsExtractor`` maps payload field names through
    ``utils.identifiers.to_column_name`` and its table name through
    ``to_table_name``.  ``pipeline.target_mapping`` builds one per origin.
  - The builders in ``statements.oracle`` check every table and column with
    ``is_sanitized`` and raise ``StatementError`` for anything else.

Two payload fields may clean to the same column (``lastName`` and
``last_name`` both give ``LAST_NAME``).  This module does not detect that;
``utils.validation.validate_unique_columns`` rejects such a record.

Usage::

    sanitize_identifier("lastName")          # "LAST_NAME"
    sanitize_identifier("order-id")          # "ORDER_ID"
    sanitize_identifier("2nd line")          # "_2ND_LINE"
    sanitize_identifier("date")              # "DATE_COL"
    is_sanitized("LAST_NAME")                # True
"""

from __future__ import annotations

import re

from sinkbatch.configs.config import ORACLE_MAX_IDENTIFIER_LEN_LEGACY

# ---------------------------------------------------------------------------
# Reserved words that turn up as payload field names; a match gets ``_COL``.
# ---------------------------------------------------------------------------
_RESERVED_WORDS: frozenset[str] = frozenset(
    {
        "ACCESS", "ADD", "ALL", "ALTER", "AND", "ANY", "AS", "ASC",
        "AUDIT", "BETWEEN", "BY", "CHAR", "CHECK", "CLUSTER", "COLUMN",
        "COMMENT", "COMPRESS", "CONNECT", "CREATE", "CURRENT", "DATE",
        "DECIMAL", "DEFAULT", "DELETE", "DESC", "DISTINCT", "DROP",
        "ELSE", "EXCLUSIVE", "EXISTS", "FILE", "FLOAT", "FOR", "FROM",
        "GRANT", "GROUP", "HAVING", "IDENTIFIED", "IMMEDIATE", "IN",
        "INCREMENT", "INDEX", "INITIAL", "INSERT", "INTEGER", "INTERSECT",
        "INTO", "IS", "LEVEL", "LIKE", "LOCK", "LONG", "MAXEXTENTS",
        "MERGE", "MINUS", "MLSLABEL", "MODE", "MODIFY", "NOAUDIT",
        "NOCOMPRESS", "NOT", "NOWAIT", "NULL", "NUMBER", "OF", "OFFLINE",
        "ON", "ONLINE", "OPTION", "OR", "ORDER", "PCTFREE", "PRIOR",
        "PRIVILEGES", "PUBLIC", "RAW", "RENAME", "RESOURCE", "REVOKE",
        "ROW", "ROWID", "ROWNUM", "ROWS", "SELECT", "SESSION", "SET",
        "SHARE", "SIZE", "SMALLINT", "START", "SUCCESSFUL", "SYNONYM",
        "SYSDATE", "TABLE", "THEN", "TO", "TRIGGER", "UID", "UNION",
        "UNIQUE", "UPDATE", "USER", "USING", "VALIDATE", "VALUES",
        "VARCHAR", "VARCHAR2", "VIEW", "WHEN", "WHENEVER", "WHERE", "WITH",
    }
)

_CAMEL_BOUNDARY_RE = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")
_INVALID_CHARS_RE = re.compile(r"[^A-Z0-9_]")
_LEADING_DIGIT_RE = re.compile(r"^[0-9]")
_MULTI_UNDERSCORE_RE = re.compile(r"_{2,}")
_SANITIZED_RE = re.compile(r"^[A-Z_][A-Z0-9_]*$")


def sanitize_identifier(
    raw: str,
    max_len: int = ORACLE_MAX_IDENTIFIER_LEN_LEGACY,
) -> str:
    """
    Turn a payload field or table name into an identifier safe for statement text.

    The name is split on camelCase, uppercased, and every run of characters
    outside A-Z/0-9 becomes one underscore.  A leading digit gets a ``_``
    prefix, a reserved word gets a ``_COL`` suffix, and the result is cut to
    ``max_len`` with the suffix kept.

    Args:
        raw:     Field or table name as it arrived (``"lastName"``).
        max_len: Identifier length limit; ``ORACLE_MAX_IDENTIFIER_LEN_EXTENDED``
                 for 12.2+ databases.

    Returns:
        The uppercase identifier.

    Raises:
        ValueError: If ``max_len`` is below 1, or ``raw`` is blank or cleans to nothing.
    """
    if max_len < 1:
        raise ValueError(f"max_len must be >= 1, got {max_len}")
    if not isinstance(raw, str) or not raw.strip():
        raise ValueError(f"Cannot sanitize empty or non-string identifier: {raw!r}")

    cleaned = _clean(raw)
    if not cleaned:
        raise ValueError(f"Identifier {raw!r} reduced to empty string after sanitization.")

    identifier = _fit(cleaned, max_len)
    if not identifier or identifier == "_COL":
        raise ValueError(f"Identifier {raw!r} is empty after truncation to max_len={max_len}.")
    return identifier


def _clean(raw: str) -> str:
    words = _CAMEL_BOUNDARY_RE.sub("_", raw.strip()).upper()
    cleaned = _MULTI_UNDERSCORE_RE.sub("_", _INVALID_CHARS_RE.sub("_", words)).strip("_")
    # The digit prefix goes on after stripping, or the strip would remove it.
    if _LEADING_DIGIT_RE.match(cleaned):
        cleaned = "_" + cleaned
    return cleaned


def _fit(cleaned: str, max_len: int) -> str:
    if cleaned not in _RESERVED_WORDS:
        return cleaned[:max_len]
    if len(cleaned) + 4 <= max_len:
        return cleaned + "_COL"
    return cleaned[: max_len - 4].rstrip("_") + "_COL"


def is_reserved(name: str) -> bool:
    """Return True if ``name`` (uppercased) is an Oracle reserved word."""
    return name.upper() in _RESERVED_WORDS


def is_sanitized(name: str, max_len: int = 128) -> bool:
    """
    Return True if ``name`` can be placed in SQL text as-is.

    A sanitized name is uppercase A-Z/0-9/_, does not start with a digit,
    is not a reserved word and fits in ``max_len``.
    """
    return (
        isinstance(name, str)
        and 0 < len(name) <= max_len
        and _SANITIZED_RE.match(name) is not None
        and name not in _RESERVED_WORDS
    )
