"""core.usage_log

Write-only sinks for per-attempt usage records.

The client records one `UsageLogEntry` per provider attempt and never reads
them back. Recording is fire-and-forget: a failing sink is logged and the
generation result is unaffected.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from notes_ai.core.types import UsageLogEntry

logger = logging.getLogger(__name__)


@runtime_checkable
class UsageSink(Protocol):
    def record(self, entry: UsageLogEntry) -> None: ...


class LoggingUsageSink:
    """Emit each entry as one INFO record on the ``notes_ai.usage`` logger."""

    def __init__(self, logger_name: str = 'notes_ai.usage') -> None:
        self._logger = logging.getLogger(logger_name)

    def record(self, entry: UsageLogEntry) -> None:
        self._logger.info(
            'model=%s tokens=%d+%d=%d latency=%dms success=%s%s',
            entry.model,
            entry.input_tokens,
            entry.output_tokens,
            entry.input_tokens + entry.output_tokens,
            entry.latency_ms,
            entry.success,
            f' error={entry.error}' if entry.error else '',
            extra={'_extra': entry.model_dump(mode='json')},
        )


class InMemoryUsageSink:
    """Keep entries in a list. Useful for diagnostics and tests."""

    def __init__(self) -> None:
        self.entries: list[UsageLogEntry] = []

    def record(self, entry: UsageLogEntry) -> None:
        self.entries.append(entry)

    def clear(self) -> None:
        self.entries.clear()


def log_api_usage(sink: UsageSink, entry: UsageLogEntry) -> None:
    """Hand *entry* to *sink*; sink failures are logged, never raised."""
    try:
        sink.record(entry)
    except Exception:
        logger.exception('Usage sink %r failed to record entry', sink)
