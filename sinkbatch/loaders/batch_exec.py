"""
Batch execution: one ``StatementContext`` → one ``executemany`` call.

Key behaviours:
  - ``cursor.bindarraysize`` is set from ``config.batch_size`` before execution.
  - ``cursor.setinputsizes()`` is called with types inferred from the rows.
  - ``batcherrors=True`` is always set — row errors never abort the batch.
  - After execution, ``cursor.getbatcherrors()`` is inspected:
      - Errors are logged via ``error_logging.log_batch_errors``.
      - If every row in the batch errored, ``all_rows_failed`` is set; what to
        do about it belongs to the caller.
  - ``connection.commit()`` is called once after executemany.
  - A database error from executemany / commit rolls back and raises
    ``BatchExecutionError``.  Nothing is retried.
  - ``cursor.close()`` is called in a ``finally`` block.

Usage::

    from sinkbatch.loaders.batch_exec import execute_batch

    for context in batcher.iterator(records):
        result = execute_batch(conn, context, config)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

import oracledb

from sinkbatch.configs.config import SinkConfig
from sinkbatch.configs.exceptions import BatchExecutionError
from sinkbatch.loaders.binds import build_input_sizes
from sinkbatch.loaders.error_logging import log_batch_errors
from sinkbatch.models.models import StatementContext

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Result object
# ---------------------------------------------------------------------------

@dataclass
class BatchResult:
    """
    Summary of an ``execute_batch`` call.

    Attributes:
        table_name:      Target table of the batch.
        row_count:       Rows sent to ``executemany``.
        error_count:     Row-level errors from ``getbatcherrors()``.
        error_log_path:  Path to the error log file, or ``None`` if no errors occurred.
        all_rows_failed: True if every row in the batch errored.
    """
    table_name: str = ""
    row_count: int = 0
    error_count: int = 0
    error_log_path: Path | None = None
    all_rows_failed: bool = False


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------

def execute_batch(
    connection,
    context: StatementContext,
    config: SinkConfig,
) -> BatchResult:
    """
    Execute ``cursor.executemany()`` for every row of ``context`` and commit.

    Args:
        connection: Open Oracle connection (real or mock).
        context:    Batch emitted by the grouping iterator.
        config:     Sink configuration (``batch_size``, ``error_dir``).

    Returns:
        ``BatchResult`` with row and error counts.

    Raises:
        BatchExecutionError: If the driver raises during executemany or commit.
    """
    result = BatchResult(table_name=context.table_name, row_count=len(context.rows))
    if not context.rows:
        return result

    cursor = connection.cursor()
    try:
        cursor.bindarraysize = config.batch_size
        cursor.setinputsizes(**build_input_sizes(context.rows))

        try:
            cursor.executemany(context.template, context.bind_rows(), batcherrors=True)
            connection.commit()
        except oracledb.Error as e:
            logger.error("Batch of %d row(s) for %s failed: %s", result.row_count, context.table_name, e)
            connection.rollback()
            raise BatchExecutionError(
                f"executemany failed: {e}",
                table_name=context.table_name,
                row_count=result.row_count,
            ) from e

        batch_errors = cursor.getbatcherrors()
        if batch_errors:
            result.error_count = len(batch_errors)
            result.error_log_path = log_batch_errors(batch_errors, context, error_dir=config.error_dir)
            result.all_rows_failed = result.error_count == result.row_count
            logger.warning(
                "%d of %d row(s) for %s failed; see %s",
                result.error_count,
                result.row_count,
                context.table_name,
                result.error_log_path,
            )
    finally:
        cursor.close()

    return result
