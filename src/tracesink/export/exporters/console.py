# src/tracesink/export/exporters/console.py
"""Console exporter for span records.

Writes one line per span record to stdout or stderr in JSON or
human-readable format. Primarily used for local debugging and demos.
"""

from __future__ import annotations

import json
import sys
from typing import TYPE_CHECKING, Any, Literal, TextIO, TypeGuard

import structlog

from tracesink.contracts.results import ExportResult
from tracesink.export.base import BaseSpanExporter
from tracesink.export.errors import ExporterConfigurationError, SpanEncodingError, SpanTransportError

if TYPE_CHECKING:
    from tracesink.contracts.records import SpanRecord

logger = structlog.get_logger(__name__)


def _is_valid_format(v: str) -> TypeGuard[Literal["json", "pretty"]]:
    """TypeGuard for format validation - enables mypy type narrowing."""
    return v in {"json", "pretty"}


def _is_valid_output(v: str) -> TypeGuard[Literal["stdout", "stderr"]]:
    """TypeGuard for output validation - enables mypy type narrowing."""
    return v in {"stdout", "stderr"}


def serialize_span_record(record: SpanRecord) -> dict[str, Any]:
    """Convert a span record to a JSON-compatible dict.

    Handles:
    - trace/span ids -> lowercase hex strings
    - datetime -> ISO 8601 string
    - enums -> value
    - attribute tuples -> lists (via json)
    """
    context = record.span_context
    return {
        "name": record.name,
        "context": {
            "trace_id": context.trace_id_hex,
            "span_id": context.span_id_hex,
            "trace_flags": int(context.trace_flags),
            "trace_state": [list(entry) for entry in context.trace_state],
            "is_remote": context.is_remote,
        },
        "parent_span_id": None if record.is_root else format(record.parent_span_id, "016x"),
        "kind": record.span_kind.value,
        "start_time": record.start_time.isoformat(),
        "end_time": record.end_time.isoformat(),
        "status": {
            "code": record.status.code.value,
            "description": record.status.description,
        },
        "attributes": dict(record.attributes),
        "dropped_attributes_count": record.dropped_attributes_count,
        "events": [
            {
                "name": event.name,
                "timestamp": event.timestamp.isoformat(),
                "attributes": dict(event.attributes),
                "dropped_attributes_count": event.attributes.dropped_count,
            }
            for event in record.events
        ],
        "dropped_events_count": record.dropped_events_count,
        "links": [
            {
                "trace_id": link.span_context.trace_id_hex,
                "span_id": link.span_context.span_id_hex,
                "attributes": dict(link.attributes),
                "dropped_attributes_count": link.attributes.dropped_count,
            }
            for link in record.links
        ],
        "dropped_links_count": record.dropped_links_count,
        "resource": {
            "attributes": dict(record.resource.attributes),
            "schema_url": record.resource.schema_url,
        },
        "instrumentation_scope": {
            "name": record.instrumentation_scope.name,
            "version": record.instrumentation_scope.version,
        },
    }


class ConsoleExporter(BaseSpanExporter):
    """Export span records to stdout/stderr for debugging.

    Supports two output formats:
    - json: One JSON object per line (for machine processing)
    - pretty: Human-readable format with timestamp, name, ids and status

    Configuration options:
        format: Output format - "json" (default) or "pretty"
        output: Output stream - "stdout" (default) or "stderr"

    Example configuration:
        exporter:
          name: console
          options:
            format: pretty
            output: stderr
    """

    _name = "console"

    # Valid configuration values (kept for error messages)
    _VALID_FORMATS: frozenset[str] = frozenset({"json", "pretty"})
    _VALID_OUTPUTS: frozenset[str] = frozenset({"stdout", "stderr"})

    def __init__(self) -> None:
        """Initialize with json format on stdout."""
        super().__init__()
        self._format: Literal["json", "pretty"] = "json"
        self._output: Literal["stdout", "stderr"] = "stdout"

    @property
    def _stream(self) -> TextIO:
        """Resolved at write time so redirected stdout/stderr are honored."""
        return sys.stdout if self._output == "stdout" else sys.stderr

    def _configure(self, options: dict[str, Any]) -> None:
        """Validate format and output options.

        Raises:
            ExporterConfigurationError: If configuration values are invalid
        """
        format_value = options.pop("format", "json")
        if not isinstance(format_value, str):
            raise ExporterConfigurationError(
                self._name,
                f"'format' must be a string, got {type(format_value).__name__}",
            )
        if _is_valid_format(format_value):
            self._format = format_value
        else:
            raise ExporterConfigurationError(
                self._name,
                f"Invalid format '{format_value}'. Must be one of: {', '.join(sorted(self._VALID_FORMATS))}",
            )

        output_value = options.pop("output", "stdout")
        if not isinstance(output_value, str):
            raise ExporterConfigurationError(
                self._name,
                f"'output' must be a string, got {type(output_value).__name__}",
            )
        if _is_valid_output(output_value):
            self._output = output_value
        else:
            raise ExporterConfigurationError(
                self._name,
                f"Invalid output '{output_value}'. Must be one of: {', '.join(sorted(self._VALID_OUTPUTS))}",
            )
        self._reject_unknown_options(options)

    def _export(self, batch: tuple[SpanRecord, ...]) -> ExportResult:
        """Encode every record first, then write them all.

        Encoding the whole batch up front means an unencodable record
        produces no partial output.
        """
        try:
            if self._format == "json":
                lines = [json.dumps(serialize_span_record(record), allow_nan=False) for record in batch]
            else:
                lines = [self._format_pretty(record) for record in batch]
        except (TypeError, ValueError) as e:
            raise SpanEncodingError(f"Failed to encode span batch: {e}") from e

        try:
            for line in lines:
                print(line, file=self._stream)
            self._stream.flush()
        except (OSError, ValueError) as e:
            # ValueError: write to a closed stream
            raise SpanTransportError(f"Failed to write to {self._output}: {e}") from e

        return ExportResult.success()

    def _format_pretty(self, record: SpanRecord) -> str:
        """Format: [START] name trace=<hex> span=<hex> kind=<kind> status=<code> (<ms>ms)"""
        duration_ms = record.duration.total_seconds() * 1000
        status = record.status.code.value
        if record.status.description:
            status = f"{status}: {record.status.description}"
        line = (
            f"[{record.start_time.isoformat()}] {record.name} "
            f"trace={record.span_context.trace_id_hex} span={record.span_context.span_id_hex} "
            f"kind={record.span_kind.value} status={status} ({duration_ms:.3f}ms)"
        )
        if record.attributes:
            details = ", ".join(f"{key}={value}" for key, value in record.attributes.items())
            line = f"{line} {{{details}}}"
        return line

    def _shutdown(self) -> None:
        """Flush the stream.

        The console exporter does not own stdout/stderr, so they are not closed.
        """
        try:
            self._stream.flush()
        except (OSError, ValueError) as e:
            logger.warning(
                "Failed to flush console stream",
                exporter=self._name,
                error=str(e),
            )
