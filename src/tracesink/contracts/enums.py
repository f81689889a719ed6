# src/tracesink/contracts/enums.py
"""Status codes, kinds and states used across the export boundary."""

from enum import IntFlag, StrEnum


class SpanKind(StrEnum):
    """Role of a span in the interaction it describes."""

    INTERNAL = "internal"
    SERVER = "server"
    CLIENT = "client"
    PRODUCER = "producer"
    CONSUMER = "consumer"


class StatusCode(StrEnum):
    """Outcome code of a finished span.

    Values:
        UNSET: No status was recorded (the default)
        OK: Explicitly marked successful
        ERROR: The operation failed; Status carries a description
    """

    UNSET = "unset"
    OK = "ok"
    ERROR = "error"


class TraceFlags(IntFlag):
    """W3C trace-flags bit field carried in a SpanContext."""

    DEFAULT = 0x00
    SAMPLED = 0x01


class ExportErrorKind(StrEnum):
    """Classification of a failed export.

    Values:
        ENCODING: The batch could not be serialized into the sink's representation
        TRANSPORT: The backend was unreachable or rejected the payload
        TIMEOUT: The exporter's own deadline elapsed before completion
        ALREADY_SHUT_DOWN: export() was called after shutdown()
    """

    ENCODING = "encoding"
    TRANSPORT = "transport"
    TIMEOUT = "timeout"
    ALREADY_SHUT_DOWN = "already_shut_down"


class ExporterState(StrEnum):
    """Lifecycle state of an exporter instance. SHUT_DOWN is terminal."""

    ACTIVE = "active"
    SHUT_DOWN = "shut_down"
