# src/tracesink/export/exporters/otlp.py
"""OTLP exporter for span records.

Ships span records via OpenTelemetry Protocol (OTLP/gRPC) to any compatible
backend: Jaeger, Tempo, Honeycomb, an OpenTelemetry Collector, etc.

Records are converted to OpenTelemetry SDK ReadableSpans and handed to the
SDK's OTLPSpanExporter. The OpenTelemetry packages are an optional
dependency (``pip install tracesink[otlp]``) and are imported lazily.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any

import structlog

from tracesink.contracts.results import ExportResult
from tracesink.export.base import BaseSpanExporter
from tracesink.export.errors import ExporterConfigurationError, SpanEncodingError, SpanTransportError

if TYPE_CHECKING:
    from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
    from opentelemetry.sdk.trace import ReadableSpan

    from tracesink.contracts.bounded import BoundedAttributes
    from tracesink.contracts.records import SpanRecord

logger = structlog.get_logger(__name__)

_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


def _to_unix_nanos(value: datetime) -> int:
    """Convert an aware datetime to integer nanoseconds since the Unix epoch.

    Integer timedelta division keeps microsecond precision exact, which
    float timestamp() arithmetic does not for present-day dates.
    """
    return (value - _EPOCH) // timedelta(microseconds=1) * 1000


def _sdk_attributes(attributes: BoundedAttributes) -> Any:
    """Copy a bounded attribute set into the SDK's own BoundedAttributes.

    The SDK reports dropped counts only from its own container types, so
    the record's count is carried across on the copy.
    """
    from opentelemetry.attributes import BoundedAttributes as SDKBoundedAttributes

    converted = SDKBoundedAttributes(maxlen=None, attributes=dict(attributes), immutable=True)
    converted.dropped = attributes.dropped_count
    return converted


def _sdk_list(items: list[Any], dropped: int) -> Any:
    from opentelemetry.sdk.util import BoundedList

    converted = BoundedList.from_seq(None, items)
    converted.dropped = dropped
    return converted


def record_to_readable_span(record: SpanRecord) -> ReadableSpan:
    """Convert a SpanRecord to an OpenTelemetry SDK ReadableSpan.

    Mapping:
    - trace/span ids, flags and trace state -> trace.SpanContext
    - parent_span_id -> parent SpanContext in the same trace (None for roots)
    - kind/status -> trace.SpanKind / trace.Status by member name
    - datetimes -> integer nanoseconds since epoch
    - resource/scope -> sdk Resource / InstrumentationScope
    - dropped attribute, event and link counts -> the SDK bounded containers

    Raises:
        ImportError: If the OpenTelemetry SDK is not installed
    """
    from opentelemetry import trace
    from opentelemetry.sdk.resources import Resource
    from opentelemetry.sdk.trace import Event, ReadableSpan
    from opentelemetry.sdk.util.instrumentation import InstrumentationScope

    def _context(trace_id: int, span_id: int, flags: int, state: tuple[tuple[str, str], ...], is_remote: bool) -> trace.SpanContext:
        return trace.SpanContext(
            trace_id=trace_id,
            span_id=span_id,
            is_remote=is_remote,
            trace_flags=trace.TraceFlags(flags),
            trace_state=trace.TraceState(list(state)),
        )

    context = record.span_context
    span_context = _context(context.trace_id, context.span_id, int(context.trace_flags), context.trace_state, context.is_remote)
    parent = None
    if not record.is_root:
        parent = _context(context.trace_id, record.parent_span_id, int(context.trace_flags), context.trace_state, False)

    events = [
        Event(
            name=event.name,
            attributes=_sdk_attributes(event.attributes),
            timestamp=_to_unix_nanos(event.timestamp),
        )
        for event in record.events
    ]
    links = [
        trace.Link(
            _context(
                link.span_context.trace_id,
                link.span_context.span_id,
                int(link.span_context.trace_flags),
                link.span_context.trace_state,
                link.span_context.is_remote,
            ),
            attributes=_sdk_attributes(link.attributes),
        )
        for link in record.links
    ]

    status_code = trace.StatusCode[record.status.code.name]
    status = trace.Status(status_code, record.status.description if record.status.is_error else None)

    scope = record.instrumentation_scope
    return ReadableSpan(
        name=record.name,
        context=span_context,
        parent=parent,
        resource=Resource(dict(record.resource.attributes), schema_url=record.resource.schema_url),
        attributes=_sdk_attributes(record.attributes),
        events=_sdk_list(events, record.dropped_events_count),
        links=_sdk_list(links, record.dropped_links_count),
        kind=trace.SpanKind[record.span_kind.name],
        status=status,
        start_time=_to_unix_nanos(record.start_time),
        end_time=_to_unix_nanos(record.end_time),
        instrumentation_scope=InstrumentationScope(scope.name, scope.version, scope.schema_url),
    )


class OTLPExporter(BaseSpanExporter):
    """Export span records via OpenTelemetry Protocol.

    Configuration options:
        endpoint: OTLP endpoint URL (required). For gRPC, typically port 4317.
        headers: Optional dict of headers (e.g., Authorization)
        insecure: Use an insecure channel (default: False)

    The exporter-level export_timeout_seconds is also passed to the
    underlying OTLPSpanExporter as its request timeout.

    Example configuration:
        exporter:
          name: otlp
          options:
            endpoint: http://localhost:4317
            headers:
              Authorization: Bearer ${OTEL_TOKEN}
            export_timeout_seconds: 10
    """

    _name = "otlp"

    def __init__(self) -> None:
        """Initialize unconfigured exporter."""
        super().__init__()
        self._endpoint: str | None = None
        self._headers: dict[str, str] = {}
        self._insecure: bool = False
        self._span_exporter: OTLPSpanExporter | None = None

    @property
    def endpoint(self) -> str | None:
        return self._endpoint

    def _configure(self, options: dict[str, Any]) -> None:
        """Validate options and build the underlying OTLPSpanExporter.

        Raises:
            ExporterConfigurationError: If endpoint is missing, an option has
                the wrong type, or OpenTelemetry packages are not installed
        """
        if "endpoint" not in options:
            raise ExporterConfigurationError(
                self._name,
                "OTLP exporter requires 'endpoint' in config",
            )
        endpoint = options.pop("endpoint")
        if not isinstance(endpoint, str) or not endpoint:
            raise ExporterConfigurationError(
                self._name,
                f"'endpoint' must be a non-empty string, got {endpoint!r}",
            )

        headers = options.pop("headers", None) or {}
        if not isinstance(headers, dict) or not all(isinstance(k, str) and isinstance(v, str) for k, v in headers.items()):
            raise ExporterConfigurationError(
                self._name,
                "'headers' must be a mapping of string keys to string values",
            )

        insecure = options.pop("insecure", False)
        if not isinstance(insecure, bool):
            raise ExporterConfigurationError(
                self._name,
                f"'insecure' must be a boolean, got {type(insecure).__name__}",
            )

        self._reject_unknown_options(options)

        try:
            from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
        except ImportError as e:
            raise ExporterConfigurationError(
                self._name,
                f"OpenTelemetry OTLP exporter not installed: {e}. Install with: pip install 'tracesink[otlp]'",
            ) from e

        self._endpoint = endpoint
        self._headers = dict(headers)
        self._insecure = insecure
        self._span_exporter = OTLPSpanExporter(
            endpoint=endpoint,
            insecure=insecure,
            headers=tuple(self._headers.items()) if self._headers else None,
            timeout=self.export_timeout,
        )

        logger.debug(
            "OTLP exporter configured",
            endpoint=self._endpoint,
            insecure=self._insecure,
            headers_count=len(self._headers),
        )

    def _export(self, batch: tuple[SpanRecord, ...]) -> ExportResult:
        if self._span_exporter is None:
            raise SpanTransportError("OTLP exporter is not configured")

        try:
            spans = [record_to_readable_span(record) for record in batch]
        except (ImportError, TypeError, ValueError, KeyError) as e:
            raise SpanEncodingError(f"Failed to convert span records to OTLP spans: {e}") from e

        from opentelemetry.sdk.trace.export import SpanExportResult

        outcome = self._span_exporter.export(spans)
        if outcome is not SpanExportResult.SUCCESS:
            raise SpanTransportError(f"OTLP endpoint {self._endpoint} rejected batch of {len(spans)} spans")

        logger.debug("OTLP batch exported", span_count=len(spans))
        return ExportResult.success()

    def _shutdown(self) -> None:
        """Shut down the underlying OTLP exporter (closes the gRPC channel)."""
        if self._span_exporter is not None:
            self._span_exporter.shutdown()
            self._span_exporter = None
