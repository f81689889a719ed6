# src/tracesink/contracts/results.py
"""Export outcomes.

These types answer: "What happened to the batch I handed to an exporter?"

An export either succeeds as a unit or fails with exactly one classified
error. There is no partial success at this layer; a sink that needs per-span
reporting does so through its own side channel.
"""

from __future__ import annotations

from dataclasses import dataclass

from tracesink.contracts.enums import ExportErrorKind


@dataclass(frozen=True, slots=True)
class ExportError:
    """Classified export failure.

    Attributes:
        kind: Failure classification
        message: Human-readable detail (backend response, exception text, ...)
    """

    kind: ExportErrorKind
    message: str = ""


@dataclass(frozen=True, slots=True)
class ExportResult:
    """Outcome of one export() call.

    Use the factory methods to create instances.

    Example:
        result = exporter.export(batch)
        if not result.ok:
            log.warning("export failed", kind=result.kind, detail=result.error.message)
    """

    error: ExportError | None = None

    @classmethod
    def success(cls) -> ExportResult:
        return cls()

    @classmethod
    def failure(cls, kind: ExportErrorKind, message: str = "") -> ExportResult:
        return cls(ExportError(kind=kind, message=message))

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def kind(self) -> ExportErrorKind | None:
        """Failure classification, or None for success."""
        return None if self.error is None else self.error.kind
