"""
Named bind type mapping for Oracle ``cursor.setinputsizes()``.

Rows arrive as Python values, not typed columns, so the bind type for each
column is inferred from the first non-``None`` value seen for it in a batch.

``oracledb`` is imported lazily inside ``oracle_type_for`` — grouping and
statement generation work without touching the driver.

Mapping rules:
  - ``str``                      → VARCHAR2  → ``oracledb.DB_TYPE_VARCHAR``
  - ``int`` / ``float`` / ``Decimal`` / ``bool`` → NUMBER → ``oracledb.DB_TYPE_NUMBER``
  - ``datetime.datetime``        → TIMESTAMP → ``oracledb.DB_TYPE_TIMESTAMP``
  - ``datetime.date``            → DATE      → ``oracledb.DB_TYPE_DATE``
  - ``bytes`` / ``bytearray``    → RAW       → ``oracledb.DB_TYPE_RAW``
  - anything else / all ``None`` → UNKNOWN   → ``oracledb.DB_TYPE_VARCHAR`` (safe fallback)
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Iterable, Literal

from sinkbatch.models.models import Binding

OracleDataType = Literal["VARCHAR2", "NUMBER", "DATE", "TIMESTAMP", "RAW", "UNKNOWN"]


def infer_data_type(value: Any) -> OracleDataType:
    """Return the Oracle data type label for a Python value."""
    # datetime before date: datetime is a date subclass.
    if isinstance(value, datetime):
        return "TIMESTAMP"
    if isinstance(value, date):
        return "DATE"
    if isinstance(value, (bool, int, float, Decimal)):
        return "NUMBER"
    if isinstance(value, str):
        return "VARCHAR2"
    if isinstance(value, (bytes, bytearray)):
        return "RAW"
    return "UNKNOWN"


def oracle_type_for(data_type: OracleDataType) -> object:
    """
    Return the ``oracledb`` DB type constant for a given Oracle data type label.

    Raises:
        KeyError: If ``data_type`` is not in the type map.
    """
    import oracledb  # lazy: only needed when executing batches

    type_map: dict[OracleDataType, object] = {
        "VARCHAR2":  oracledb.DB_TYPE_VARCHAR,
        "NUMBER":    oracledb.DB_TYPE_NUMBER,
        "DATE":      oracledb.DB_TYPE_DATE,
        "TIMESTAMP": oracledb.DB_TYPE_TIMESTAMP,
        "RAW":       oracledb.DB_TYPE_RAW,
        "UNKNOWN":   oracledb.DB_TYPE_VARCHAR,
    }

    if data_type not in type_map:
        raise KeyError(
            f"No Oracle bind type mapping for data_type '{data_type}'. "
            f"Valid types: {list(type_map)}"
        )
    return type_map[data_type]


def infer_column_types(rows: Iterable[Iterable[Binding]]) -> dict[str, OracleDataType]:
    """
    Infer one data type per column across a batch.

    The first non-``None`` value decides; columns that are ``None`` in every
    row are ``UNKNOWN``.  Column order follows first appearance.
    """
    types: dict[str, OracleDataType] = {}
    for row in rows:
        for b in row:
            if types.get(b.field_name, "UNKNOWN") == "UNKNOWN":
                types[b.field_name] = "UNKNOWN" if b.value is None else infer_data_type(b.value)
    return types


def build_input_sizes(rows: Iterable[Iterable[Binding]]) -> dict[str, object]:
    """
    Build the ``**kwargs`` dict for ``cursor.setinputsizes()``.

    Keys are column (bind) names; values are ``oracledb`` DB type constants.
    """
    return {
        name: oracle_type_for(data_type)
        for name, data_type in infer_column_types(rows).items()
    }
