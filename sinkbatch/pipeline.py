"""
Orchestrator: drive one traversal and hand every batch to an executor.

The grouping iterator decides what goes into each batch; this module decides
nothing beyond "execute every batch as it comes out".  It is the single
callable most sinks need:

    result = run(records, batcher, partial(execute_batch, conn, config=cfg))

Failure policy:
  - ``MalformedPayloadError`` from the iterator → logged, re-raised unchanged.
    Batches executed before it are already committed; buffered ones are lost.
  - ``BatchExecutionError`` from the executor → logged, re-raised unchanged.
  - Row-level batch errors (``BatchResult.error_count``) → counted, never raised.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable

from sinkbatch.batching.iterator import StatementBatcher
from sinkbatch.configs.config import SinkConfig
from sinkbatch.configs.exceptions import BatchExecutionError, MalformedPayloadError
from sinkbatch.extractors.fields import FieldsExtractor
from sinkbatch.loaders.batch_exec import BatchResult
from sinkbatch.models.models import SourceItem, StatementContext, TargetMapping, UsageSnapshot
from sinkbatch.statements.oracle import builder_for_mode
from sinkbatch.utils.identifiers import to_schema_name

logger = logging.getLogger(__name__)

BatchExecutor = Callable[[StatementContext], BatchResult]


# ---------------------------------------------------------------------------
# Result object
# ---------------------------------------------------------------------------

@dataclass
class RunResult:
    """
    Summary of one traversal.

    Attributes:
        batches:     One ``BatchResult`` per executed batch, in execution order.
        usage:       Usage snapshot attached to the last batch (empty if none ran).
    """
    batches: list[BatchResult] = field(default_factory=list)
    usage: UsageSnapshot = field(default_factory=dict)

    @property
    def batch_count(self) -> int:
        return len(self.batches)

    @property
    def row_count(self) -> int:
        return sum(b.row_count for b in self.batches)

    @property
    def error_count(self) -> int:
        return sum(b.error_count for b in self.batches)


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------

def run(
    records: Iterable[SourceItem],
    batcher: StatementBatcher,
    executor: BatchExecutor,
) -> RunResult:
    """
    Group ``records`` into batches and execute each one.

    Args:
        records:  Finite collection of records for this traversal.
        batcher:  Configured ``StatementBatcher``.
        executor: Called once per batch, e.g. ``partial(execute_batch, conn, config=cfg)``.

    Returns:
        ``RunResult`` with per-batch results and the final usage snapshot.

    Raises:
        MalformedPayloadError: A record could not be read; the traversal stopped.
        BatchExecutionError:   A batch failed at the database level.
    """
    result = RunResult()
    try:
        for context in batcher.iterator(records):
            result.batches.append(executor(context))
            result.usage = context.usage
    except MalformedPayloadError as e:
        logger.error("Traversal aborted after %d batch(es): %s", result.batch_count, e)
        raise
    except BatchExecutionError as e:
        logger.error("Batch execution failed after %d batch(es): %s", result.batch_count, e)
        raise

    logger.info(
        "Sink run complete: %d batch(es), %d row(s), %d row error(s)",
        result.batch_count,
        result.row_count,
        result.error_count,
    )
    return result


def target_mapping(
    table_name: str,
    config: SinkConfig,
    key_fields: Iterable[str] = (),
    include: Iterable[str] | None = None,
) -> TargetMapping:
    """
    Build the stock ``TargetMapping`` for one origin from ``config``.

    Uses ``FieldsExtractor`` for the payload and the statement builder chosen
    by ``config.insert_mode`` (``insert`` → INSERT, ``upsert`` → MERGE).

    Raises:
        ConfigurationError: If ``config`` is invalid.
        ValueError:         If a table, schema, or key name cannot be sanitized.
    """
    config.validate()
    max_len = config.oracle_max_identifier_len
    return TargetMapping(
        extractor=FieldsExtractor(
            table_name,
            key_fields=key_fields,
            include=include,
            max_identifier_len=max_len,
        ),
        statement_builder=builder_for_mode(
            config.insert_mode,
            to_schema_name(config.schema_name, max_len),
        ),
    )
