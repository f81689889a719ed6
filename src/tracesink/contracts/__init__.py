# src/tracesink/contracts/__init__.py
"""Shared contracts for the span export boundary.

All dataclasses and enums that cross the boundary between span processing and
exporters are defined here. This package is a LEAF MODULE with no outbound
dependencies to core or export.

Settings classes are NOT re-exported here - import them from tracesink.core.config.

Import patterns:
    from tracesink.contracts import SpanRecord, ExportResult, ExportErrorKind
    from tracesink.core.config import TraceSinkSettings
"""

from tracesink.contracts.bounded import (
    AttributeValue,
    BoundedAttributes,
    BoundedCollection,
    BoundedSequence,
    FrozenCollectionError,
)
from tracesink.contracts.config import ExporterConfig, RuntimeExportConfig, SpanLimits
from tracesink.contracts.enums import ExporterState, ExportErrorKind, SpanKind, StatusCode, TraceFlags
from tracesink.contracts.identity import INVALID_SPAN_CONTEXT, INVALID_SPAN_ID, INVALID_TRACE_ID, SpanContext
from tracesink.contracts.records import (
    InstrumentationScope,
    Resource,
    SpanEvent,
    SpanLink,
    SpanRecord,
    Status,
)
from tracesink.contracts.results import ExportError, ExportResult

__all__ = [
    "INVALID_SPAN_CONTEXT",
    "INVALID_SPAN_ID",
    "INVALID_TRACE_ID",
    "AttributeValue",
    "BoundedAttributes",
    "BoundedCollection",
    "BoundedSequence",
    "ExportError",
    "ExportErrorKind",
    "ExportResult",
    "ExporterConfig",
    "ExporterState",
    "FrozenCollectionError",
    "InstrumentationScope",
    "Resource",
    "RuntimeExportConfig",
    "SpanContext",
    "SpanEvent",
    "SpanKind",
    "SpanLimits",
    "SpanLink",
    "SpanRecord",
    "Status",
    "StatusCode",
    "TraceFlags",
]
