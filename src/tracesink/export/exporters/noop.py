# src/tracesink/export/exporters/noop.py
"""Exporter that accepts every batch and discards it."""

from __future__ import annotations

from typing import TYPE_CHECKING

from tracesink.contracts.results import ExportResult
from tracesink.export.base import BaseSpanExporter

if TYPE_CHECKING:
    from tracesink.contracts.records import SpanRecord


class NoopExporter(BaseSpanExporter):
    """Discard span records. Useful when export is wired but no backend exists."""

    _name = "noop"

    def _export(self, batch: tuple[SpanRecord, ...]) -> ExportResult:
        return ExportResult.success()
