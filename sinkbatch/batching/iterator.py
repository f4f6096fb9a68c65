"""
Grouping iterator: the record stream → batch stream core.

Pulls ``SourceItem`` records one at a time, routes each one through its
origin's extractor, groups rows by (table, non-key columns, key columns) and
hands back one ``StatementContext`` per call.

Emission rules (checked on every call, in order):
  1. A group holding exactly ``batch_size`` rows is returned before any
     further input is read — a previous call may have filled one group while
     returning another.
  2. If the source is exhausted, the oldest remaining group is returned
     (drain), or the traversal is over.
  3. Otherwise records are pulled until some group reaches ``batch_size``
     (stop right there) or the source runs out; then rule 1 / drain applies.

Record handling:
  - payload absent or not a mapping → ``MalformedPayloadError``; the traversal
    is aborted and buffered groups are discarded.
  - statement builder rejects a shape → ``StatementError`` is raised and the
    traversal is aborted the same way.
  - origin with no target mapping   → warning diagnostic, record skipped.
  - extractor returns no bindings   → debug diagnostic, record skipped.

Usage::

    batcher = StatementBatcher({"contacts": mapping}, batch_size=500)
    for context in batcher.iterator(records):
        execute(context.template, context.bind_rows())

    # Or without exceptions for end-of-stream / fatal input:
    it = batcher.iterator(records)
    while (outcome := it.advance()).status is OutcomeStatus.EMITTED:
        ...
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Mapping

from sinkbatch.batching.diagnostics import (
    DiagnosticEvent,
    DiagnosticKind,
    DiagnosticSink,
    log_diagnostic,
)
from sinkbatch.batching.groups import GroupStore
from sinkbatch.batching.keys import build_group_key, partition_columns
from sinkbatch.batching.usage import ColumnUsageTracker
from sinkbatch.configs.config import SinkConfig
from sinkbatch.configs.exceptions import (
    ConfigurationError,
    MalformedPayloadError,
    StatementError,
    UnsupportedOperationError,
)
from sinkbatch.models.models import (
    BatchGroup,
    SourceItem,
    StatementContext,
    TargetMapping,
    UsageSnapshot,
)
from sinkbatch.utils.validation import validate_payload

logger = logging.getLogger(__name__)

_END = object()


class IteratorState(str, Enum):
    HAS_MORE_INPUT = "has_more_input"
    DRAINING = "draining"
    DONE = "done"


class OutcomeStatus(str, Enum):
    EMITTED = "emitted"
    EXHAUSTED = "exhausted"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class BatchOutcome:
    """
    Result of one ``GroupingIterator.advance()`` call.

    Exactly one of ``context`` (EMITTED) or ``error`` (FAILED) is set;
    EXHAUSTED carries neither.
    """

    status: OutcomeStatus
    context: StatementContext | None = None
    error: MalformedPayloadError | None = None

    @classmethod
    def emitted(cls, context: StatementContext) -> "BatchOutcome":
        return cls(OutcomeStatus.EMITTED, context=context)

    @classmethod
    def exhausted(cls) -> "BatchOutcome":
        return cls(OutcomeStatus.EXHAUSTED)

    @classmethod
    def failed(cls, error: MalformedPayloadError) -> "BatchOutcome":
        return cls(OutcomeStatus.FAILED, error=error)


class StatementBatcher:
    """
    Validated configuration that produces one ``GroupingIterator`` per traversal.

    Args:
        target_mappings: Origin → ``TargetMapping``. Keys are matched
                         case-insensitively against ``SourceItem.origin``.
        batch_size:      Maximum number of rows per emitted batch.
        diagnostics:     Optional callable receiving a ``DiagnosticEvent`` for
                         every skipped or rejected record.

    Raises:
        ConfigurationError: If ``batch_size`` is not a positive integer or
            ``target_mappings`` is empty / ``None``.
    """

    def __init__(
        self,
        target_mappings: Mapping[str, TargetMapping] | None,
        batch_size: int,
        diagnostics: DiagnosticSink | None = None,
    ) -> None:
        if isinstance(batch_size, bool) or not isinstance(batch_size, int) or batch_size <= 0:
            raise ConfigurationError(
                "Invalid batch_size specified. The value has to be a positive and non zero integer.",
                setting="batch_size",
                value=batch_size,
            )
        if not target_mappings:
            raise ConfigurationError(
                "Invalid target_mappings provided. At least one origin must be mapped.",
                setting="target_mappings",
                value=target_mappings,
            )
        self.batch_size = batch_size
        self.target_mappings: dict[str, TargetMapping] = {
            origin.lower(): mapping for origin, mapping in target_mappings.items()
        }
        self.diagnostics = diagnostics

    @classmethod
    def from_config(
        cls,
        target_mappings: Mapping[str, TargetMapping] | None,
        config: SinkConfig,
        diagnostics: DiagnosticSink | None = None,
    ) -> "StatementBatcher":
        """Build a batcher whose ``batch_size`` comes from ``config``."""
        return cls(target_mappings, config.batch_size, diagnostics=diagnostics)

    def iterator(self, records: Iterable[SourceItem]) -> "GroupingIterator":
        """Start a fresh traversal over ``records``."""
        return GroupingIterator(records, self.target_mappings, self.batch_size, self.diagnostics)

    __call__ = iterator


class GroupingIterator(Iterator[StatementContext]):
    """
    Single-use, single-consumer traversal over one finite record collection.

    Use ``StatementBatcher.iterator()`` rather than constructing this directly;
    the batcher validates the configuration.
    """

    def __init__(
        self,
        records: Iterable[SourceItem],
        target_mappings: Mapping[str, TargetMapping],
        batch_size: int,
        diagnostics: DiagnosticSink | None = None,
    ) -> None:
        self._source = iter(records)
        self._pending: object = _END
        self._source_done = False
        self._mappings = target_mappings
        self._batch_size = batch_size
        self._diagnostics = diagnostics
        self._groups = GroupStore()
        self._usage = ColumnUsageTracker()
        self._templates: dict[str, str] = {}
        self._aborted = False

    # ── public API ───────────────────────────────────────────────────────

    @property
    def state(self) -> IteratorState:
        if self._aborted:
            return IteratorState.DONE
        if self._has_pending():
            return IteratorState.HAS_MORE_INPUT
        return IteratorState.DRAINING if self._groups else IteratorState.DONE

    def has_next(self) -> bool:
        """True while there is unread input or a buffered group."""
        return self.state is not IteratorState.DONE

    def advance(self) -> BatchOutcome:
        """
        Produce the next batch as an explicit outcome instead of raising.

        Returns:
            ``BatchOutcome`` with status EMITTED (and ``context``), EXHAUSTED,
            or FAILED (and the ``MalformedPayloadError`` that aborted the traversal).

        Raises:
            StatementError: If the statement builder rejects a column shape.  The
                traversal is aborted first, so the iterator reports DONE afterwards.
        """
        if self._aborted:
            return BatchOutcome.exhausted()
        try:
            context = self._next_context()
        except MalformedPayloadError as e:
            self._abort()
            self._report(
                DiagnosticEvent(
                    kind=DiagnosticKind.MALFORMED_PAYLOAD,
                    origin=e.origin or "",
                    partition=e.partition,
                    offset=e.offset,
                    message=str(e),
                )
            )
            return BatchOutcome.failed(e)
        except StatementError as e:
            self._abort()
            logger.error("Statement build failed; traversal aborted: %s", e)
            raise
        if context is None:
            return BatchOutcome.exhausted()
        return BatchOutcome.emitted(context)

    def __next__(self) -> StatementContext:
        outcome = self.advance()
        if outcome.status is OutcomeStatus.EMITTED:
            return outcome.context
        if outcome.status is OutcomeStatus.FAILED:
            raise outcome.error
        raise StopIteration

    def remove(self) -> None:
        """Not supported: groups leave the iterator only by being emitted."""
        raise UnsupportedOperationError(
            "GroupingIterator does not support remove(); batches are removed by emission."
        )

    @property
    def usage(self) -> UsageSnapshot:
        """Current usage snapshot (same object type attached to every batch)."""
        return self._usage.snapshot()

    # ── emission ─────────────────────────────────────────────────────────

    def _next_context(self) -> StatementContext | None:
        full_key = self._groups.key_at_size(self._batch_size)
        if full_key is not None:
            return self._emit(full_key)

        if not self._has_pending():
            drain_key = self._groups.any_key()
            return self._emit(drain_key) if drain_key is not None else None

        while self._has_pending():
            if self._accept(self._pull()) == self._batch_size:
                break

        if not self._groups:
            # Every remaining record was skipped.
            return None

        key = self._groups.key_at_size(self._batch_size) or self._groups.any_key()
        return self._emit(key)

    def _emit(self, key: str) -> StatementContext:
        group = self._groups.remove(key)
        logger.debug("Emitting %d row(s) for %s", len(group.rows), key)
        return StatementContext(
            template=group.template,
            rows=group.rows,
            usage=self._usage.snapshot(),
            table_name=group.table_name,
            group_key=key,
        )

    def _abort(self) -> None:
        self._aborted = True
        self._groups.clear()
        self._pending = _END
        self._source_done = True

    # ── record intake ────────────────────────────────────────────────────

    def _accept(self, item: SourceItem) -> int:
        """Route one record into its group; return the group's new size (0 if skipped)."""
        payload = validate_payload(item)

        mapping = self._mappings.get(item.origin.lower())
        if mapping is None:
            self._report(
                DiagnosticEvent.for_item(
                    DiagnosticKind.UNMAPPED_ORIGIN,
                    item,
                    f"For origin {item.origin} there is no mapping. Skipping record",
                )
            )
            return 0

        extractor = mapping.extractor
        bindings = extractor.extract(payload, item)
        if not bindings:
            self._report(
                DiagnosticEvent.for_item(
                    DiagnosticKind.EMPTY_EXTRACTION,
                    item,
                    f"No bindings extracted for origin {item.origin}. Skipping record",
                )
            )
            return 0

        table_name = extractor.table_name
        key = build_group_key(table_name, bindings)

        def _new_group() -> BatchGroup:
            # A key that comes back after emission reuses its first template.
            template = self._templates.get(key)
            if template is None:
                non_key_columns, key_columns = partition_columns(bindings)
                template = mapping.statement_builder.build(table_name, non_key_columns, key_columns)
                self._templates[key] = template
            return BatchGroup(table_name=table_name, template=template)

        self._groups.ensure(key, _new_group)
        self._usage.track_usage(table_name, bindings)
        return self._groups.append(key, list(bindings))

    def _report(self, event: DiagnosticEvent) -> None:
        log_diagnostic(event)
        if self._diagnostics is not None:
            self._diagnostics(event)

    # ── one-item lookahead over the source ───────────────────────────────

    def _has_pending(self) -> bool:
        if self._pending is _END and not self._source_done:
            self._pending = next(self._source, _END)
            if self._pending is _END:
                self._source_done = True
        return self._pending is not _END

    def _pull(self) -> SourceItem:
        item = self._pending
        self._pending = _END
        return item  # type: ignore[return-value]
