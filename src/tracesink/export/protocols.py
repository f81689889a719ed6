# src/tracesink/export/protocols.py
"""Protocol definition for span exporters.

Exporters are responsible for shipping finished span records to external
backends (OTLP collectors, the console, test doubles, etc.).
"""

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from tracesink.contracts.records import SpanRecord
    from tracesink.contracts.results import ExportResult


@runtime_checkable
class SpanExporterProtocol(Protocol):
    """Protocol for span exporters.

    Lifecycle:
        1. Discovery: tracesink_get_exporters hook returns exporter classes
        2. Instantiation: the factory creates one instance at assembly time
        3. Configuration: configure() called with exporter-specific options
        4. Operation: export() called once per batch, serially
        5. Shutdown: shutdown() called exactly once at teardown

    Error handling:
        - configure() MUST raise ExporterConfigurationError on invalid config
        - export() MUST NOT raise - failures are returned as ExportResult
        - shutdown() MUST NOT raise and MUST NOT block indefinitely

    BaseSpanExporter implements this lifecycle; concrete exporters normally
    subclass it rather than implementing the protocol from scratch.
    """

    @property
    def name(self) -> str:
        """Exporter name for configuration reference.

        This name selects the exporter in configuration:

            exporter:
              name: otlp  # matches this property
              options:
                endpoint: http://localhost:4317
        """
        ...

    @property
    def is_shut_down(self) -> bool:
        """True once shutdown() has been called."""
        ...

    def configure(self, config: dict[str, Any]) -> None:
        """Configure the exporter with options from configuration.

        Called once during assembly, before any batch is exported.

        Args:
            config: Exporter-specific options dict

        Raises:
            ExporterConfigurationError: If configuration is invalid or incomplete
        """
        ...

    def export(self, batch: "Sequence[SpanRecord]") -> "ExportResult":
        """Transmit one ordered batch of span records.

        Call discipline:
            The caller never invokes export() again on the same instance
            until the previous call has returned. Batches are delivered in
            submission order and the order of records within a batch is
            preserved.

        Must return within the exporter's deadline. An exporter that would
        otherwise block (unreachable backend) returns a TIMEOUT failure.
        Retries, if any, are the exporter's own business.

        Args:
            batch: Ordered span records. May be empty.

        Returns:
            Success, or a failure classified as ENCODING, TRANSPORT,
            TIMEOUT or ALREADY_SHUT_DOWN
        """
        ...

    def shutdown(self) -> None:
        """Release resources and move to the terminal shut-down state.

        Called exactly once at teardown. After it returns every
        export() call fails with ALREADY_SHUT_DOWN. Problems during
        shutdown are logged, never raised.
        """
        ...
