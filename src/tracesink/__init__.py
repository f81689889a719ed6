# src/tracesink/__init__.py
"""
TraceSink: the export boundary between span processing and telemetry backends.

Finished spans are frozen into SpanRecords and handed, in ordered batches, to
a pluggable exporter that reports every outcome as an ExportResult.
"""

__version__ = "0.1.0"
