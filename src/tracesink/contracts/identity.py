# src/tracesink/contracts/identity.py
"""Span identity: trace and span identifiers bundled into a SpanContext.

These types answer: "Which span is this, and which trace does it belong to?"
"""

from dataclasses import dataclass

from tracesink.contracts.enums import TraceFlags

INVALID_TRACE_ID = 0
INVALID_SPAN_ID = 0

_MAX_TRACE_ID = 2**128 - 1
_MAX_SPAN_ID = 2**64 - 1


@dataclass(frozen=True, slots=True)
class SpanContext:
    """Immutable identity of a span, copied by value into every SpanRecord.

    Attributes:
        trace_id: 128-bit trace identifier (0 is the invalid/nil id)
        span_id: 64-bit span identifier (0 is the invalid/nil id)
        trace_flags: W3C trace flags (sampled bit)
        trace_state: Ordered vendor key/value pairs from the W3C tracestate header
        is_remote: True if the context was propagated from another process
    """

    trace_id: int
    span_id: int
    trace_flags: TraceFlags = TraceFlags.DEFAULT
    trace_state: tuple[tuple[str, str], ...] = ()
    is_remote: bool = False

    def __post_init__(self) -> None:
        """Validate identifier ranges."""
        if not 0 <= self.trace_id <= _MAX_TRACE_ID:
            raise ValueError(f"trace_id must fit in 128 bits, got {self.trace_id!r}")
        if not 0 <= self.span_id <= _MAX_SPAN_ID:
            raise ValueError(f"span_id must fit in 64 bits, got {self.span_id!r}")
        for entry in self.trace_state:
            if len(entry) != 2 or not all(isinstance(part, str) for part in entry):
                raise ValueError(f"trace_state entries must be (key, value) string pairs, got {entry!r}")

    @property
    def is_valid(self) -> bool:
        """True when both identifiers are non-nil."""
        return self.trace_id != INVALID_TRACE_ID and self.span_id != INVALID_SPAN_ID

    @property
    def is_sampled(self) -> bool:
        return bool(self.trace_flags & TraceFlags.SAMPLED)

    @property
    def trace_id_hex(self) -> str:
        return format(self.trace_id, "032x")

    @property
    def span_id_hex(self) -> str:
        return format(self.span_id, "016x")


INVALID_SPAN_CONTEXT = SpanContext(trace_id=INVALID_TRACE_ID, span_id=INVALID_SPAN_ID)
