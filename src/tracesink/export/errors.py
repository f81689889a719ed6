# src/tracesink/export/errors.py
"""Exporter exceptions.

ExporterConfigurationError is raised at assembly time. The other two are
raised by a sink inside its transmit hook and never escape export(): the
base class catches them and turns them into a classified ExportResult.
"""


class ExporterConfigurationError(Exception):
    """Raised when an exporter cannot be discovered, instantiated or configured.

    This is raised during exporter assembly (discovery/configure), NOT during
    export operations. export() reports failures through ExportResult instead.

    Attributes:
        exporter_name: Name of the exporter that failed
        message: Human-readable error description
    """

    def __init__(self, exporter_name: str, message: str) -> None:
        self.exporter_name = exporter_name
        self.message = message
        super().__init__(f"Exporter '{exporter_name}' failed: {message}")


class SpanEncodingError(Exception):
    """A batch could not be serialized into the sink's representation."""


class SpanTransportError(Exception):
    """The backend was unreachable or rejected the payload."""
