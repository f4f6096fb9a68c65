"""
Batch error logging for the sink.

Row-level errors from ``cursor.getbatcherrors()`` are appended to one
``.log`` file in ``error_dir``.  Each line names the failing row by its
position in the batch and by its key column values, so a row can be traced
back to its record without keeping the batch around.

Log format (one line per error)::

    2024-01-15T09:30:00 | table=CONTACTS | row_offset=42 | row_key=ID=1042 | ora_code=ORA-12899 | msg=value too large ...

``row_key`` is ``-`` for keyless rows.  The file is named
``sinkbatch_batch_errors.log`` and is only ever appended to.

Usage::

    from sinkbatch.loaders.error_logging import log_batch_errors

    errors = cursor.getbatcherrors()
    if errors:
        log_batch_errors(errors, context, error_dir=config.error_dir)
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from pathlib import Path

from sinkbatch.models.models import StatementContext

LOG_FILENAME = "sinkbatch_batch_errors.log"

_ORA_CODE_RE = re.compile(r"ORA-\d+")
_NO_KEY = "-"


def log_batch_errors(
    batch_errors: list,
    context: StatementContext,
    error_dir: Path | str,
) -> Path:
    """
    Append ``batch_errors`` for the batch in ``context`` to the log file.

    Args:
        batch_errors: Error objects returned by ``cursor.getbatcherrors()``;
                      each has ``.offset`` (int) and ``.message`` (str).
        context:      The batch that was executed.  Offsets index its rows.
        error_dir:    Directory where the log file lives.  Created if absent.

    Returns:
        Path to the log file that was written.
    """
    error_dir = Path(error_dir)
    error_dir.mkdir(parents=True, exist_ok=True)

    log_path = error_dir / LOG_FILENAME
    timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S")

    with open(log_path, "a", encoding="utf-8") as f:
        for err in batch_errors:
            f.write(format_error_line(timestamp, context, err) + "\n")

    return log_path


def format_error_line(timestamp: str, context: StatementContext, err) -> str:
    """Render one batch error as a single ``|``-separated log line."""
    message = str(err.message).strip()
    return " | ".join(
        (
            timestamp,
            f"table={context.table_name}",
            f"row_offset={err.offset}",
            f"row_key={row_key(context, err.offset)}",
            f"ora_code={extract_ora_code(message)}",
            f"msg={message}",
        )
    )


def row_key(context: StatementContext, offset: int) -> str:
    """
    Key column values of row ``offset`` as ``COL=value`` pairs.

    Returns ``-`` when the row has no key columns or ``offset`` is outside the batch.
    """
    if not 0 <= offset < len(context.rows):
        return _NO_KEY
    pairs = [f"{b.field_name}={b.value}" for b in context.rows[offset] if b.is_key]
    return ",".join(pairs) or _NO_KEY


def extract_ora_code(message: str) -> str:
    """
    Extract the ORA-XXXXX code from an Oracle error message string.

    Returns ``'ORA-UNKNOWN'`` if no code is found.
    """
    match = _ORA_CODE_RE.search(message)
    return match.group(0) if match else "ORA-UNKNOWN"


def count_errors_in_log(error_dir: Path | str) -> int:
    """Number of error lines in the log file; 0 if it does not exist."""
    log_path = Path(error_dir) / LOG_FILENAME
    if not log_path.exists():
        return 0
    with open(log_path, encoding="utf-8") as f:
        return sum(1 for line in f if line.strip())
