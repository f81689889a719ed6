"""Tests for the BaseSpanExporter lifecycle.

Tests cover:
- Empty batches, ordering and batch snapshotting
- Terminal shutdown: ALREADY_SHUT_DOWN after shutdown, idempotent shutdown
- Export and shutdown deadlines, including interpreter exit with a hung sink
- Exception classification (export never raises)
- Timeout option validation
"""

import os
import subprocess
import sys
import textwrap
import threading
import time
from datetime import timedelta
from pathlib import Path
from typing import Any

import pytest
from structlog.testing import capture_logs

from tracesink.contracts import ExporterState, ExportErrorKind, ExportResult, SpanRecord
from tracesink.export import (
    BaseSpanExporter,
    ExporterConfigurationError,
    InMemoryExporter,
    NoopExporter,
    SpanEncodingError,
    SpanExporterProtocol,
    SpanTransportError,
)
from tests.fixtures.records import make_batch, make_span_record


class RaisingExporter(BaseSpanExporter):
    """Raises the configured exception from _export()."""

    _name = "raising"

    def __init__(self, error: Exception) -> None:
        super().__init__()
        self.error = error

    def _export(self, batch: tuple[SpanRecord, ...]) -> ExportResult:
        raise self.error


class GatedExporter(BaseSpanExporter):
    """Blocks in _export() and/or _shutdown() until released."""

    _name = "gated"

    def __init__(self, *, block_export: bool = False, block_shutdown: bool = False) -> None:
        super().__init__()
        self.release = threading.Event()
        self.block_export = block_export
        self.block_shutdown = block_shutdown
        self.exported: list[tuple[SpanRecord, ...]] = []

    def _export(self, batch: tuple[SpanRecord, ...]) -> ExportResult:
        if self.block_export:
            self.release.wait(timeout=10)
        self.exported.append(batch)
        return ExportResult.success()

    def _shutdown(self) -> None:
        if self.block_shutdown:
            self.release.wait(timeout=10)


def _configured(exporter: BaseSpanExporter, **options: Any) -> BaseSpanExporter:
    exporter.configure(options)
    return exporter


# =============================================================================
# Export
# =============================================================================


class TestExport:
    def test_satisfies_protocol(self, memory_exporter: InMemoryExporter) -> None:
        assert isinstance(memory_exporter, SpanExporterProtocol)

    def test_empty_batch_succeeds_without_calling_sink(self, memory_exporter: InMemoryExporter) -> None:
        result = memory_exporter.export([])

        assert result.ok
        assert memory_exporter.export_calls == 0

    def test_batch_delivered_in_order(self, memory_exporter: InMemoryExporter) -> None:
        batch = make_batch(5)

        assert memory_exporter.export(batch).ok

        assert memory_exporter.batches == [tuple(batch)]

    def test_successive_batches_delivered_in_call_order(self, memory_exporter: InMemoryExporter) -> None:
        first, second, third = make_batch(2), make_batch(3), make_batch(1)

        for batch in (first, second, third):
            assert memory_exporter.export(batch).ok

        assert memory_exporter.spans == (*first, *second, *third)

    def test_zero_duration_record_exported_in_batch(self, memory_exporter: InMemoryExporter) -> None:
        instant = make_span_record("cache-hit", span_id=1, duration=timedelta(0))
        batch = [instant, make_span_record("db-query", span_id=2)]

        result = memory_exporter.export(batch)

        assert result.ok
        assert memory_exporter.spans == tuple(batch)
        assert memory_exporter.spans[0].start_time == memory_exporter.spans[0].end_time

    def test_caller_may_reuse_batch_list(self, memory_exporter: InMemoryExporter) -> None:
        batch = make_batch(2)
        memory_exporter.export(batch)
        batch.clear()

        assert len(memory_exporter.batches[0]) == 2

    def test_concurrent_exports_are_serialized(self) -> None:
        exporter = _configured(InMemoryExporter(), delay_seconds=0.05)
        results: list[ExportResult] = []

        def _export(name: str) -> None:
            results.append(exporter.export([make_span_record(name)]))

        threads = [threading.Thread(target=_export, args=(f"span-{i}",)) for i in range(3)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=5)

        try:
            assert [result.ok for result in results] == [True, True, True]
            assert len(exporter.batches) == 3
        finally:
            exporter.shutdown()


# =============================================================================
# Failure classification
# =============================================================================


class TestFailureClassification:
    @pytest.mark.parametrize(
        ("error", "kind"),
        [
            (SpanEncodingError("bad payload"), ExportErrorKind.ENCODING),
            (SpanTransportError("connection refused"), ExportErrorKind.TRANSPORT),
        ],
    )
    def test_sink_errors_classified(self, error: Exception, kind: ExportErrorKind) -> None:
        exporter = RaisingExporter(error)
        try:
            result = exporter.export([make_span_record()])
        finally:
            exporter.shutdown()

        assert result.kind is kind
        assert result.error is not None
        assert result.error.message == str(error)

    def test_unexpected_exception_reported_as_transport(self) -> None:
        exporter = RaisingExporter(RuntimeError("socket exploded"))
        try:
            with capture_logs() as logs:
                result = exporter.export([make_span_record()])
        finally:
            exporter.shutdown()

        assert result.kind is ExportErrorKind.TRANSPORT
        assert result.error is not None
        assert "RuntimeError" in result.error.message
        assert any(entry["event"] == "Span exporter raised unexpectedly" for entry in logs)

    def test_exporter_usable_after_failure(self) -> None:
        exporter = _configured(InMemoryExporter(), fail_with="transport")
        try:
            assert exporter.export([make_span_record()]).kind is ExportErrorKind.TRANSPORT
            assert exporter.export([make_span_record()]).kind is ExportErrorKind.TRANSPORT
            assert exporter.export_calls == 2
        finally:
            exporter.shutdown()


# =============================================================================
# Deadlines
# =============================================================================


class TestDeadlines:
    def test_slow_export_times_out(self) -> None:
        exporter = _configured(InMemoryExporter(), delay_seconds=1.0, export_timeout_seconds=0.1)
        try:
            start = time.monotonic()
            result = exporter.export([make_span_record()])
            elapsed = time.monotonic() - start
        finally:
            exporter.shutdown()

        assert result.kind is ExportErrorKind.TIMEOUT
        assert elapsed < 0.9

    def test_queued_batch_discarded_by_shutdown(self) -> None:
        exporter = GatedExporter(block_export=True)
        exporter.configure({"export_timeout_seconds": 0.5})
        outcome: list[ExportResult] = []
        try:
            # First batch blocks the worker and times out
            assert exporter.export([make_span_record("stuck")]).kind is ExportErrorKind.TIMEOUT

            waiter = threading.Thread(target=lambda: outcome.append(exporter.export([make_span_record("queued")])))
            waiter.start()
            time.sleep(0.1)
            exporter.shutdown()
            waiter.join(timeout=5)
        finally:
            exporter.release.set()

        assert [result.kind for result in outcome] == [ExportErrorKind.ALREADY_SHUT_DOWN]
        assert all(batch[0].name != "queued" for batch in exporter.exported)

    def test_hung_shutdown_is_bounded(self) -> None:
        exporter = GatedExporter(block_shutdown=True)
        exporter.configure({"shutdown_timeout_seconds": 0.1})
        try:
            with capture_logs() as logs:
                start = time.monotonic()
                exporter.shutdown()
                elapsed = time.monotonic() - start
        finally:
            exporter.release.set()

        assert elapsed < 2.0
        assert exporter.is_shut_down
        assert any(entry["event"] == "Span exporter shutdown did not complete within timeout" for entry in logs)

    def test_worker_thread_is_daemon(self) -> None:
        exporter = GatedExporter(block_export=True)
        exporter.configure({"export_timeout_seconds": 0.1})
        try:
            assert exporter.export([make_span_record()]).kind is ExportErrorKind.TIMEOUT
            workers = [thread for thread in threading.enumerate() if thread.name == "span-export-gated"]
            assert workers
            assert all(thread.daemon for thread in workers)
        finally:
            exporter.release.set()
            exporter.shutdown()

    def test_hung_export_does_not_block_interpreter_exit(self) -> None:
        script = textwrap.dedent(
            """
            import threading

            from tracesink.contracts import ExportResult
            from tracesink.export import BaseSpanExporter
            from tests.fixtures.records import make_span_record

            class HangingExporter(BaseSpanExporter):
                _name = "hanging"

                def _export(self, batch):
                    threading.Event().wait()
                    return ExportResult.success()

            exporter = HangingExporter()
            exporter.configure({"export_timeout_seconds": 0.2, "shutdown_timeout_seconds": 0.2})
            print("result", exporter.export([make_span_record()]).kind)
            exporter.shutdown()
            print("shutdown returned")
            """
        )
        root = Path(__file__).resolve().parents[2]
        env = {**os.environ, "PYTHONPATH": os.pathsep.join([str(root), str(root / "src"), os.environ.get("PYTHONPATH", "")])}

        completed = subprocess.run(
            [sys.executable, "-c", script],
            cwd=root,
            env=env,
            capture_output=True,
            text=True,
            timeout=30,
        )

        assert completed.returncode == 0, completed.stderr
        assert "result timeout" in completed.stdout
        assert "shutdown returned" in completed.stdout


# =============================================================================
# Shutdown
# =============================================================================


class TestShutdown:
    def test_export_after_shutdown_fails_without_calling_sink(self, memory_exporter: InMemoryExporter) -> None:
        memory_exporter.shutdown()

        result = memory_exporter.export([make_span_record()])

        assert result.kind is ExportErrorKind.ALREADY_SHUT_DOWN
        assert memory_exporter.export_calls == 0

    def test_empty_batch_after_shutdown_fails(self, memory_exporter: InMemoryExporter) -> None:
        memory_exporter.shutdown()
        assert memory_exporter.export([]).kind is ExportErrorKind.ALREADY_SHUT_DOWN

    def test_state_transitions(self, memory_exporter: InMemoryExporter) -> None:
        assert memory_exporter.state is ExporterState.ACTIVE
        memory_exporter.shutdown()
        assert memory_exporter.state is ExporterState.SHUT_DOWN
        assert memory_exporter.is_shut_down

    def test_repeated_shutdown_runs_hook_once(self, memory_exporter: InMemoryExporter) -> None:
        memory_exporter.shutdown()
        memory_exporter.shutdown()
        assert memory_exporter.shutdown_calls == 1

    def test_shutdown_without_exports(self) -> None:
        exporter = NoopExporter()
        exporter.shutdown()
        assert exporter.is_shut_down

    def test_failing_shutdown_hook_does_not_raise(self) -> None:
        class BrokenShutdownExporter(NoopExporter):
            def _shutdown(self) -> None:
                raise OSError("flush failed")

        exporter = BrokenShutdownExporter()
        with capture_logs() as logs:
            exporter.shutdown()

        assert exporter.is_shut_down
        assert any(entry["event"] == "Span exporter shutdown failed" for entry in logs)


# =============================================================================
# Configuration
# =============================================================================


class TestTimeoutConfiguration:
    def test_defaults(self) -> None:
        exporter = NoopExporter()
        assert exporter.export_timeout == 30.0
        assert exporter.shutdown_timeout == 5.0

    def test_timeouts_configurable(self) -> None:
        exporter = _configured(NoopExporter(), export_timeout_seconds=2, shutdown_timeout_seconds=0.5)
        assert exporter.export_timeout == 2.0
        assert exporter.shutdown_timeout == 0.5

    @pytest.mark.parametrize("value", [0, -1, float("inf"), float("nan")])
    def test_non_positive_or_non_finite_rejected(self, value: float) -> None:
        with pytest.raises(ExporterConfigurationError, match="positive finite"):
            NoopExporter().configure({"export_timeout_seconds": value})

    @pytest.mark.parametrize("value", ["30", True, None])
    def test_non_numeric_rejected(self, value: object) -> None:
        with pytest.raises(ExporterConfigurationError, match="must be a number"):
            NoopExporter().configure({"shutdown_timeout_seconds": value})

    def test_unknown_options_rejected(self) -> None:
        with pytest.raises(ExporterConfigurationError, match=r"Unknown options: \['colour'\]"):
            NoopExporter().configure({"colour": "blue"})

    def test_configure_does_not_mutate_input(self) -> None:
        options = {"export_timeout_seconds": 1}
        NoopExporter().configure(options)
        assert options == {"export_timeout_seconds": 1}
