"""
Structured diagnostics for records the iterator does not turn into rows.

Every event is written to this module's logger and, when the caller injected
one, passed to a ``diagnostics`` callable. Tests assert on the events instead
of on log text.

Levels:
  - UNMAPPED_ORIGIN   → WARNING (record dropped, traversal continues)
  - EMPTY_EXTRACTION  → DEBUG   (no-op row, dropped silently)
  - MALFORMED_PAYLOAD → ERROR   (traversal aborted)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from sinkbatch.models.models import SourceItem

logger = logging.getLogger(__name__)


class DiagnosticKind(str, Enum):
    UNMAPPED_ORIGIN = "unmapped_origin"
    EMPTY_EXTRACTION = "empty_extraction"
    MALFORMED_PAYLOAD = "malformed_payload"


_LEVELS: dict[DiagnosticKind, int] = {
    DiagnosticKind.UNMAPPED_ORIGIN: logging.WARNING,
    DiagnosticKind.EMPTY_EXTRACTION: logging.DEBUG,
    DiagnosticKind.MALFORMED_PAYLOAD: logging.ERROR,
}


@dataclass(frozen=True, slots=True)
class DiagnosticEvent:
    """
    One skipped or rejected record.

    Attributes:
        kind:      What happened.
        origin:    Origin of the record.
        partition: Partition of the record, if known.
        offset:    Offset of the record, if known.
        message:   Human-readable description.
    """

    kind: DiagnosticKind
    origin: str
    partition: int | None
    offset: int | None
    message: str

    @classmethod
    def for_item(cls, kind: DiagnosticKind, item: SourceItem, message: str) -> "DiagnosticEvent":
        return cls(
            kind=kind,
            origin=item.origin,
            partition=item.partition,
            offset=item.offset,
            message=message,
        )


DiagnosticSink = Callable[[DiagnosticEvent], None]


def log_diagnostic(event: DiagnosticEvent) -> None:
    """Write ``event`` to the module logger at the level for its kind."""
    logger.log(
        _LEVELS[event.kind],
        "%s (origin=%s partition=%s offset=%s)",
        event.message,
        event.origin,
        event.partition,
        event.offset,
    )
