# src/tracesink/export/__init__.py
"""Span export subsystem: the contract between span processing and sinks.

Components:
- protocols: SpanExporterProtocol, the interface a span processor calls
- base: BaseSpanExporter, the shared lifecycle (deadlines, shutdown, ordering)
- errors: ExporterConfigurationError plus the encoding/transport failures
  sinks raise inside _export()
- hookspecs: pluggy hooks for exporter discovery
- factory: create_span_exporter() builds the configured exporter
- exporters: Built-in exporters (console, memory, noop, otlp)

Usage:
    from tracesink.export import BaseSpanExporter, create_span_exporter

    exporter = create_span_exporter(RuntimeExportConfig.default())
    result = exporter.export(batch)
    if not result.ok:
        ...
    exporter.shutdown()
"""

from tracesink.export.base import BaseSpanExporter
from tracesink.export.errors import ExporterConfigurationError, SpanEncodingError, SpanTransportError
from tracesink.export.exporters import ConsoleExporter, InMemoryExporter, NoopExporter, OTLPExporter
from tracesink.export.factory import create_span_exporter, discover_exporter_registry
from tracesink.export.hookspecs import hookimpl
from tracesink.export.protocols import SpanExporterProtocol

__all__ = [
    "BaseSpanExporter",
    "ConsoleExporter",
    "ExporterConfigurationError",
    "InMemoryExporter",
    "NoopExporter",
    "OTLPExporter",
    "SpanEncodingError",
    "SpanExporterProtocol",
    "SpanTransportError",
    "create_span_exporter",
    "discover_exporter_registry",
    "hookimpl",
]
