# src/tracesink/export/exporters/memory.py
"""In-memory exporter that captures batches for inspection.

The test double for the export contract: it records every batch it is
handed, in call order, and can be configured to fail or stall so callers
can exercise their failure handling.
"""

from __future__ import annotations

import math
import threading
import time
from typing import TYPE_CHECKING, Any

from tracesink.contracts.enums import ExportErrorKind
from tracesink.contracts.results import ExportResult
from tracesink.export.base import BaseSpanExporter
from tracesink.export.errors import ExporterConfigurationError

if TYPE_CHECKING:
    from tracesink.contracts.records import SpanRecord

# ALREADY_SHUT_DOWN is produced by the lifecycle itself, never simulated
_SIMULATED_FAILURES = frozenset({ExportErrorKind.ENCODING, ExportErrorKind.TRANSPORT, ExportErrorKind.TIMEOUT})


class InMemoryExporter(BaseSpanExporter):
    """Capture exported batches in memory.

    Configuration options:
        fail_with: Failure kind to return instead of storing the batch
            ("encoding", "transport" or "timeout")
        delay_seconds: Sleep before handling each batch (simulates a slow backend)

    Example:
        exporter = InMemoryExporter()
        exporter.export([record_a])
        exporter.export([record_b, record_c])
        assert exporter.spans == (record_a, record_b, record_c)
    """

    _name = "memory"

    def __init__(self) -> None:
        super().__init__()
        self._batches: list[tuple[SpanRecord, ...]] = []
        self._lock = threading.Lock()
        self._fail_with: ExportErrorKind | None = None
        self._delay_seconds: float = 0.0
        self.export_calls = 0
        self.shutdown_calls = 0

    def _configure(self, options: dict[str, Any]) -> None:
        fail_with = options.pop("fail_with", None)
        if fail_with is not None:
            try:
                kind = ExportErrorKind(fail_with)
            except ValueError:
                kind = None
            if kind not in _SIMULATED_FAILURES:
                raise ExporterConfigurationError(
                    self._name,
                    f"Invalid fail_with '{fail_with}'. Must be one of: {', '.join(sorted(k.value for k in _SIMULATED_FAILURES))}",
                )
            self._fail_with = kind

        delay = options.pop("delay_seconds", 0.0)
        if isinstance(delay, bool) or not isinstance(delay, (int, float)) or not math.isfinite(delay) or delay < 0:
            raise ExporterConfigurationError(
                self._name,
                f"'delay_seconds' must be a non-negative number, got {delay!r}",
            )
        self._delay_seconds = float(delay)

        self._reject_unknown_options(options)

    def _export(self, batch: tuple[SpanRecord, ...]) -> ExportResult:
        self.export_calls += 1
        if self._delay_seconds:
            time.sleep(self._delay_seconds)
        if self._fail_with is not None:
            return ExportResult.failure(self._fail_with, "simulated failure")
        with self._lock:
            self._batches.append(batch)
        return ExportResult.success()

    def _shutdown(self) -> None:
        self.shutdown_calls += 1

    @property
    def batches(self) -> list[tuple[SpanRecord, ...]]:
        """Stored batches in the order they were exported."""
        with self._lock:
            return list(self._batches)

    @property
    def spans(self) -> tuple[SpanRecord, ...]:
        """All stored records, flattened in export order."""
        with self._lock:
            return tuple(record for batch in self._batches for record in batch)

    def clear(self) -> None:
        """Forget all stored batches."""
        with self._lock:
            self._batches.clear()
