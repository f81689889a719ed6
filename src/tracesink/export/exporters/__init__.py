# src/tracesink/export/exporters/__init__.py
"""Built-in span exporters.

Exporters are discovered via pluggy hooks.

Available exporters:
- ConsoleExporter: Write records to stdout/stderr for debugging
- InMemoryExporter: Capture batches in memory (test double)
- NoopExporter: Accept and discard every batch
- OTLPExporter: Export to OTLP-compatible backends (Jaeger, Tempo, etc.)

Plugin registration:
    The BuiltinExportersPlugin in this module registers all built-in
    exporters through the tracesink_get_exporters hook.
"""

from tracesink.export.exporters.console import ConsoleExporter
from tracesink.export.exporters.memory import InMemoryExporter
from tracesink.export.exporters.noop import NoopExporter
from tracesink.export.exporters.otlp import OTLPExporter
from tracesink.export.hookspecs import hookimpl


class BuiltinExportersPlugin:
    """Plugin that registers built-in span exporters."""

    @hookimpl
    def tracesink_get_exporters(self) -> list[type]:
        """Return built-in exporter classes."""
        return [ConsoleExporter, InMemoryExporter, NoopExporter, OTLPExporter]


__all__ = [
    "BuiltinExportersPlugin",
    "ConsoleExporter",
    "InMemoryExporter",
    "NoopExporter",
    "OTLPExporter",
]
