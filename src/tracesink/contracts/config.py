# src/tracesink/contracts/config.py
"""Runtime configuration dataclasses.

These dataclasses are the runtime mirror of the Pydantic settings models in
tracesink.core.config and provide factory methods to build from them.

Design Principles:
1. Frozen (immutable) - runtime config should never change mid-execution
2. Slots - memory efficient, prevents attribute typos
3. Factory methods - from_settings(), default()

Settings classes are imported only for type checking so that contracts stays
a leaf package with no dependency on core.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from tracesink.contracts.bounded import BoundedAttributes, BoundedSequence
from tracesink.contracts.records import SpanEvent, SpanLink

if TYPE_CHECKING:
    from tracesink.core.config import SpanLimitSettings, TraceSinkSettings

# Deadlines applied by BaseSpanExporter when an exporter is not configured
# with its own values. 30s mirrors the OpenTelemetry batch export timeout.
DEFAULT_EXPORT_TIMEOUT_SECONDS = 30.0
DEFAULT_SHUTDOWN_TIMEOUT_SECONDS = 5.0

# OpenTelemetry SDK default span limits
DEFAULT_SPAN_COLLECTION_LIMIT = 128


@dataclass(frozen=True, slots=True)
class SpanLimits:
    """Capacities for the bounded collections attached to a span.

    Example:
        limits = SpanLimits(max_attributes=16)
        record = SpanRecord(..., attributes=limits.attributes({"http.method": "GET"}))
    """

    max_attributes: int = DEFAULT_SPAN_COLLECTION_LIMIT
    max_events: int = DEFAULT_SPAN_COLLECTION_LIMIT
    max_links: int = DEFAULT_SPAN_COLLECTION_LIMIT
    max_attributes_per_event: int = DEFAULT_SPAN_COLLECTION_LIMIT
    max_attributes_per_link: int = DEFAULT_SPAN_COLLECTION_LIMIT

    def __post_init__(self) -> None:
        """Reject negative limits."""
        for name in (
            "max_attributes",
            "max_events",
            "max_links",
            "max_attributes_per_event",
            "max_attributes_per_link",
        ):
            value = getattr(self, name)
            if value < 0:
                raise ValueError(f"{name} must be >= 0, got {value}")

    @classmethod
    def from_settings(cls, settings: SpanLimitSettings) -> SpanLimits:
        return cls(
            max_attributes=settings.max_attributes,
            max_events=settings.max_events,
            max_links=settings.max_links,
            max_attributes_per_event=settings.max_attributes_per_event,
            max_attributes_per_link=settings.max_attributes_per_link,
        )

    def attributes(self, initial: Mapping[str, Any] | None = None) -> BoundedAttributes:
        """Span attribute container with max_attributes capacity."""
        return BoundedAttributes(self.max_attributes, initial)

    def event_attributes(self, initial: Mapping[str, Any] | None = None) -> BoundedAttributes:
        return BoundedAttributes(self.max_attributes_per_event, initial)

    def link_attributes(self, initial: Mapping[str, Any] | None = None) -> BoundedAttributes:
        return BoundedAttributes(self.max_attributes_per_link, initial)

    def events(self, initial: Iterable[SpanEvent] = ()) -> BoundedSequence[SpanEvent]:
        """Span event container with max_events capacity."""
        return BoundedSequence(self.max_events, initial)

    def links(self, initial: Iterable[SpanLink] = ()) -> BoundedSequence[SpanLink]:
        """Span link container with max_links capacity."""
        return BoundedSequence(self.max_links, initial)


@dataclass(frozen=True, slots=True)
class ExporterConfig:
    """Configuration for the exporter selected at assembly time.

    Each exporter has a name (which determines the exporter class) and an
    options dict (passed to the exporter's configure()).

    Example YAML that produces an ExporterConfig:
        exporter:
          name: otlp
          options:
            endpoint: http://localhost:4317
            export_timeout_seconds: 10
    """

    name: str
    options: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Validate exporter configuration."""
        if not self.name:
            raise ValueError("exporter name cannot be empty")


@dataclass(frozen=True, slots=True)
class RuntimeExportConfig:
    """Runtime configuration for span export.

    Field Origins (all from TraceSinkSettings):
        - enabled: TraceSinkSettings.enabled (direct)
        - exporter: TraceSinkSettings.exporter (converted to ExporterConfig)
        - span_limits: TraceSinkSettings.span_limits (converted to SpanLimits)
    """

    enabled: bool
    exporter: ExporterConfig
    span_limits: SpanLimits = field(default_factory=SpanLimits)

    @classmethod
    def default(cls) -> RuntimeExportConfig:
        """Factory for default configuration: enabled, console exporter, default limits."""
        return cls(enabled=True, exporter=ExporterConfig(name="console"))

    @classmethod
    def from_settings(cls, settings: TraceSinkSettings) -> RuntimeExportConfig:
        """Factory from the TraceSinkSettings config model.

        Args:
            settings: Validated Pydantic settings model

        Returns:
            RuntimeExportConfig with mapped values
        """
        return cls(
            enabled=settings.enabled,
            exporter=ExporterConfig(name=settings.exporter.name, options=dict(settings.exporter.options)),
            span_limits=SpanLimits.from_settings(settings.span_limits),
        )
