# src/tracesink/contracts/records.py
"""Span records: the immutable snapshot of a finished span handed to exporters.

These types answer: "What happened in this unit of work?"

A SpanRecord is created exactly once, when a span ends, by the component that
managed the span's lifecycle. From then on it is read-only: the dataclass is
frozen and construction freezes every bounded collection it holds, including
those inside its events and links. Exporters read records for the duration of
one export() call and never modify them.

Resource and InstrumentationScope are shared by reference across many records.
Both are immutable so sharing them needs no copying or locking.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from types import MappingProxyType
from typing import Any

from tracesink.contracts.bounded import (
    AttributeValue,
    BoundedAttributes,
    BoundedSequence,
    clean_attribute_value,
    typed_attribute_items,
)
from tracesink.contracts.enums import SpanKind, StatusCode
from tracesink.contracts.identity import INVALID_SPAN_ID, SpanContext


@dataclass(frozen=True, slots=True)
class Status:
    """Final status of a span.

    Use the factory methods. A description is only meaningful for ERROR and is
    preserved exactly as given.
    """

    code: StatusCode = StatusCode.UNSET
    description: str | None = None

    def __post_init__(self) -> None:
        """Validate that only ERROR statuses carry a description."""
        if self.description is not None and self.code != StatusCode.ERROR:
            raise ValueError(f"Status description is only allowed with StatusCode.ERROR, got code={self.code.value!r}")

    @classmethod
    def unset(cls) -> Status:
        return cls(StatusCode.UNSET)

    @classmethod
    def ok(cls) -> Status:
        return cls(StatusCode.OK)

    @classmethod
    def error(cls, description: str = "") -> Status:
        return cls(StatusCode.ERROR, description)

    @property
    def is_error(self) -> bool:
        return self.code == StatusCode.ERROR


class Resource(Mapping[str, AttributeValue]):
    """Immutable attribute set describing the entity that produced telemetry.

    One Resource is normally built when the SDK starts and then referenced by
    every SpanRecord it produces. The attribute mapping is copied once at
    construction and exposed read-only.
    """

    __slots__ = ("_attributes", "_schema_url")

    def __init__(self, attributes: Mapping[str, Any] | None = None, schema_url: str | None = None) -> None:
        cleaned = {key: clean_attribute_value(key, value) for key, value in (attributes or {}).items()}
        self._attributes: Mapping[str, AttributeValue] = MappingProxyType(cleaned)
        self._schema_url = schema_url

    @classmethod
    def empty(cls) -> Resource:
        return cls()

    @property
    def attributes(self) -> Mapping[str, AttributeValue]:
        """Read-only view of the resource attributes."""
        return self._attributes

    @property
    def schema_url(self) -> str | None:
        return self._schema_url

    def __getitem__(self, key: str) -> AttributeValue:
        return self._attributes[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._attributes)

    def __len__(self) -> int:
        return len(self._attributes)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Resource):
            return NotImplemented
        return self._identity() == other._identity()

    def __hash__(self) -> int:
        return hash(self._identity())

    def _identity(self) -> tuple[frozenset[tuple[str, Any]], str | None]:
        return frozenset(typed_attribute_items(self._attributes.items())), self._schema_url

    def __repr__(self) -> str:
        return f"Resource({dict(self._attributes)!r}, schema_url={self._schema_url!r})"


@dataclass(frozen=True, slots=True)
class InstrumentationScope:
    """Identifies the instrumentation library that produced a span."""

    name: str
    version: str | None = None
    schema_url: str | None = None


@dataclass(frozen=True)
class SpanEvent:
    """A timestamped annotation recorded during a span."""

    name: str
    timestamp: datetime
    attributes: BoundedAttributes = field(default_factory=BoundedAttributes)

    def __post_init__(self) -> None:
        self.attributes.freeze()


@dataclass(frozen=True)
class SpanLink:
    """A reference from one span to a causally related span."""

    span_context: SpanContext
    attributes: BoundedAttributes = field(default_factory=BoundedAttributes)

    def __post_init__(self) -> None:
        self.attributes.freeze()


@dataclass(frozen=True)
class SpanRecord:
    """Exportable snapshot of one finished span.

    Two records built from identical field values compare equal, which
    exporters may rely on for deduplication.

    Timestamps are wall-clock values and are NOT guaranteed to be ordered:
    under clock skew end_time may precede start_time. Consumers must not
    assume a non-negative duration.

    Attributes:
        span_context: Identity of this span
        parent_span_id: Parent span id, INVALID_SPAN_ID for root spans
        span_kind: Role of the span
        name: Span name
        start_time: Wall-clock start (timezone-aware)
        end_time: Wall-clock end (timezone-aware)
        resource: Shared description of the producing entity
        instrumentation_scope: Library that produced the span
        status: Final status (unset by default)
        attributes: Bounded span attributes
        events: Bounded timestamped events
        links: Bounded links to related spans
    """

    span_context: SpanContext
    parent_span_id: int
    span_kind: SpanKind
    name: str
    start_time: datetime
    end_time: datetime
    resource: Resource
    instrumentation_scope: InstrumentationScope
    status: Status = field(default_factory=Status.unset)
    attributes: BoundedAttributes = field(default_factory=BoundedAttributes)
    events: BoundedSequence[SpanEvent] = field(default_factory=BoundedSequence)
    links: BoundedSequence[SpanLink] = field(default_factory=BoundedSequence)

    def __post_init__(self) -> None:
        """Validate required fields and freeze the bounded collections."""
        for label, value in (("start_time", self.start_time), ("end_time", self.end_time)):
            if not isinstance(value, datetime):
                raise TypeError(f"SpanRecord.{label} must be a datetime, got {type(value).__name__}")
            if value.tzinfo is None:
                raise ValueError(f"SpanRecord.{label} must be timezone-aware, got naive {value.isoformat()}")
        if not 0 <= self.parent_span_id < 2**64:
            raise ValueError(f"parent_span_id must fit in 64 bits, got {self.parent_span_id!r}")
        self.attributes.freeze()
        self.events.freeze()
        self.links.freeze()

    @property
    def is_root(self) -> bool:
        return self.parent_span_id == INVALID_SPAN_ID

    @property
    def duration(self) -> timedelta:
        """end_time - start_time. May be negative under clock skew."""
        return self.end_time - self.start_time

    @property
    def dropped_attributes_count(self) -> int:
        return self.attributes.dropped_count

    @property
    def dropped_events_count(self) -> int:
        return self.events.dropped_count

    @property
    def dropped_links_count(self) -> int:
        return self.links.dropped_count
