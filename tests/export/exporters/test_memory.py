"""Tests for the in-memory and no-op exporters."""

import pytest

from tracesink.contracts import ExportErrorKind
from tracesink.export.errors import ExporterConfigurationError
from tracesink.export.exporters import InMemoryExporter, NoopExporter
from tests.fixtures.records import make_batch


class TestInMemoryExporter:
    def test_name(self) -> None:
        assert InMemoryExporter().name == "memory"

    def test_batches_and_spans(self, memory_exporter: InMemoryExporter) -> None:
        first, second = make_batch(2), make_batch(1)
        memory_exporter.export(first)
        memory_exporter.export(second)

        assert memory_exporter.batches == [tuple(first), tuple(second)]
        assert memory_exporter.spans == (*first, *second)
        assert memory_exporter.export_calls == 2

    def test_batches_returns_copy(self, memory_exporter: InMemoryExporter) -> None:
        memory_exporter.export(make_batch(1))
        memory_exporter.batches.clear()
        assert len(memory_exporter.batches) == 1

    def test_clear(self, memory_exporter: InMemoryExporter) -> None:
        memory_exporter.export(make_batch(3))
        memory_exporter.clear()
        assert memory_exporter.spans == ()

    @pytest.mark.parametrize("kind", [ExportErrorKind.ENCODING, ExportErrorKind.TRANSPORT, ExportErrorKind.TIMEOUT])
    def test_simulated_failure(self, kind: ExportErrorKind) -> None:
        exporter = InMemoryExporter()
        exporter.configure({"fail_with": kind.value})
        try:
            result = exporter.export(make_batch(1))
        finally:
            exporter.shutdown()

        assert result.kind is kind
        assert exporter.batches == []

    def test_already_shut_down_cannot_be_simulated(self) -> None:
        with pytest.raises(ExporterConfigurationError, match="Invalid fail_with 'already_shut_down'"):
            InMemoryExporter().configure({"fail_with": "already_shut_down"})

    def test_unknown_failure_kind_rejected(self) -> None:
        with pytest.raises(ExporterConfigurationError, match="Invalid fail_with"):
            InMemoryExporter().configure({"fail_with": "explode"})

    @pytest.mark.parametrize("delay", [-0.1, "1", True, float("inf")])
    def test_invalid_delay_rejected(self, delay: object) -> None:
        with pytest.raises(ExporterConfigurationError, match="delay_seconds"):
            InMemoryExporter().configure({"delay_seconds": delay})

    def test_shutdown_counted(self) -> None:
        exporter = InMemoryExporter()
        exporter.shutdown()
        assert exporter.shutdown_calls == 1


class TestNoopExporter:
    def test_accepts_and_discards(self) -> None:
        exporter = NoopExporter()
        try:
            assert exporter.export(make_batch(10)).ok
        finally:
            exporter.shutdown()

    def test_rejects_options(self) -> None:
        with pytest.raises(ExporterConfigurationError, match="Unknown options"):
            NoopExporter().configure({"format": "json"})
