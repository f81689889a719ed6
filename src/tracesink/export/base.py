# src/tracesink/export/base.py
"""BaseSpanExporter implements the export lifecycle once for every sink.

Concrete exporters override three hooks:
    _configure(options)  validate exporter-specific options
    _export(batch)       encode and transmit one batch
    _shutdown()          release resources (default: no-op)

The base class owns everything the contract requires around those hooks:
1. Terminal shutdown: once shutdown() starts, export() returns ALREADY_SHUT_DOWN
2. Empty batches succeed without touching the sink
3. Deadlines: the caller never waits longer than export_timeout_seconds
   for export() or shutdown_timeout_seconds for shutdown()
4. Failure isolation: export() never raises; sink exceptions are classified
5. Ordering: batches run on one FIFO worker thread per exporter
6. Bounded teardown: the worker is a daemon thread, so a sink stuck past
   its deadline cannot keep the interpreter alive after shutdown()

Thread Safety:
    export() is expected to be called serially (one outstanding call per
    instance). A concurrent call is serialized by _export_lock rather than
    rejected, and its wait counts against its own deadline.
    _state is guarded by _state_lock; queueing a batch for the worker happens
    under the same lock so shutdown can never race a submission.
"""

from __future__ import annotations

import math
import queue
import threading
import time
from abc import ABC, abstractmethod
from collections.abc import Sequence
from concurrent.futures import CancelledError, Future
from typing import Any, ClassVar

import structlog

from tracesink.contracts.config import DEFAULT_EXPORT_TIMEOUT_SECONDS, DEFAULT_SHUTDOWN_TIMEOUT_SECONDS
from tracesink.contracts.enums import ExporterState, ExportErrorKind
from tracesink.contracts.records import SpanRecord
from tracesink.contracts.results import ExportResult
from tracesink.export.errors import ExporterConfigurationError, SpanEncodingError, SpanTransportError

logger = structlog.get_logger(__name__)

# A queued batch and the future its caller waits on. None stops the worker.
_ExportJob = tuple[tuple[SpanRecord, ...], Future[ExportResult]]


class BaseSpanExporter(ABC):
    """Lifecycle state machine shared by all span exporters.

    States: ACTIVE -> SHUT_DOWN (terminal).

    Configuration options understood by every exporter:
        export_timeout_seconds: Deadline for one export() call (default: 30)
        shutdown_timeout_seconds: Deadline for shutdown() (default: 5)

    Example:
        exporter = ConsoleExporter()
        exporter.configure({"format": "pretty", "export_timeout_seconds": 2})
        result = exporter.export(batch)
        exporter.shutdown()
    """

    _name: ClassVar[str]

    def __init__(self) -> None:
        """Initialize an active, unconfigured exporter with default deadlines."""
        self._export_timeout: float = DEFAULT_EXPORT_TIMEOUT_SECONDS
        self._shutdown_timeout: float = DEFAULT_SHUTDOWN_TIMEOUT_SECONDS
        self._state = ExporterState.ACTIVE
        self._state_lock = threading.Lock()
        self._export_lock = threading.Lock()
        self._jobs: queue.Queue[_ExportJob | None] | None = None

    @property
    def name(self) -> str:
        """Exporter name for configuration reference."""
        return self._name

    @property
    def state(self) -> ExporterState:
        return self._state

    @property
    def is_shut_down(self) -> bool:
        return self._state is ExporterState.SHUT_DOWN

    @property
    def export_timeout(self) -> float:
        """Deadline in seconds for one export() call."""
        return self._export_timeout

    @property
    def shutdown_timeout(self) -> float:
        """Deadline in seconds for shutdown()."""
        return self._shutdown_timeout

    # =========================================================================
    # Configuration
    # =========================================================================

    def configure(self, config: dict[str, Any]) -> None:
        """Configure deadlines, then hand the remaining options to the sink.

        Args:
            config: Exporter options. Not modified.

        Raises:
            ExporterConfigurationError: If a deadline is not a positive number
                or the sink rejects its options
        """
        options = dict(config)
        self._export_timeout = self._pop_timeout(options, "export_timeout_seconds", DEFAULT_EXPORT_TIMEOUT_SECONDS)
        self._shutdown_timeout = self._pop_timeout(options, "shutdown_timeout_seconds", DEFAULT_SHUTDOWN_TIMEOUT_SECONDS)
        self._configure(options)

        logger.debug(
            "Span exporter configured",
            exporter=self.name,
            export_timeout_seconds=self._export_timeout,
            shutdown_timeout_seconds=self._shutdown_timeout,
        )

    def _pop_timeout(self, options: dict[str, Any], key: str, default: float) -> float:
        value = options.pop(key, default)
        # bool is an int subclass; True is not a deadline
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ExporterConfigurationError(
                self.name,
                f"'{key}' must be a number, got {type(value).__name__}",
            )
        if not math.isfinite(value) or value <= 0:
            raise ExporterConfigurationError(
                self.name,
                f"'{key}' must be a positive finite number, got {value}",
            )
        return float(value)

    def _configure(self, options: dict[str, Any]) -> None:
        """Validate exporter-specific options.

        The default accepts no options. Subclasses pop the keys they
        understand and call _reject_unknown_options() with the remainder.
        """
        self._reject_unknown_options(options)

    def _reject_unknown_options(self, options: dict[str, Any]) -> None:
        if options:
            raise ExporterConfigurationError(
                self.name,
                f"Unknown options: {sorted(options)}",
            )

    # =========================================================================
    # Export
    # =========================================================================

    def export(self, batch: Sequence[SpanRecord]) -> ExportResult:
        """Transmit one ordered batch of span records within the export deadline.

        The batch is snapshotted to a tuple, so the caller may reuse its list
        once this call returns. This method never raises.

        Args:
            batch: Ordered span records. May be empty.

        Returns:
            ExportResult: success, or ENCODING/TRANSPORT/TIMEOUT/ALREADY_SHUT_DOWN
        """
        deadline = time.monotonic() + self._export_timeout

        if self.is_shut_down:
            return self._already_shut_down()

        records = tuple(batch)
        if not records:
            return ExportResult.success()

        if not self._export_lock.acquire(timeout=self._export_timeout):
            logger.warning(
                "Concurrent export call timed out waiting for in-flight export",
                exporter=self.name,
                span_count=len(records),
            )
            return ExportResult.failure(
                ExportErrorKind.TIMEOUT,
                f"another export was still in flight after {self._export_timeout}s",
            )
        try:
            with self._state_lock:
                if self._state is ExporterState.SHUT_DOWN:
                    return self._already_shut_down()
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    return self._timed_out(records, cancelled=True)
                future: Future[ExportResult] = Future()
                self._worker().put((records, future))
            return self._await(future, records, deadline)
        finally:
            self._export_lock.release()

    def _await(self, future: Future[ExportResult], records: tuple[SpanRecord, ...], deadline: float) -> ExportResult:
        try:
            return future.result(timeout=max(0.0, deadline - time.monotonic()))
        except TimeoutError:
            # Only succeeds while the batch is still queued behind a stuck one
            return self._timed_out(records, cancelled=future.cancel())
        except CancelledError:
            # Queued batch discarded by shutdown()
            return self._already_shut_down()

    def _run_export(self, records: tuple[SpanRecord, ...]) -> ExportResult:
        """Worker-thread wrapper that turns sink exceptions into results."""
        try:
            return self._export(records)
        except SpanEncodingError as e:
            return ExportResult.failure(ExportErrorKind.ENCODING, str(e))
        except SpanTransportError as e:
            return ExportResult.failure(ExportErrorKind.TRANSPORT, str(e))
        except Exception as e:
            # Export MUST NOT raise - log and report as a transport failure
            logger.warning(
                "Span exporter raised unexpectedly",
                exporter=self.name,
                span_count=len(records),
                error_type=type(e).__name__,
                error=str(e),
            )
            return ExportResult.failure(ExportErrorKind.TRANSPORT, f"{type(e).__name__}: {e}")

    def _worker(self) -> queue.Queue[_ExportJob | None]:
        """Return the job queue of the single FIFO worker, starting it on first use.

        Must be called while holding _state_lock.
        """
        if self._jobs is None:
            self._jobs = queue.Queue()
            # Daemon: a batch stuck in _export() must not block interpreter exit
            threading.Thread(
                target=self._worker_loop,
                args=(self._jobs,),
                name=f"span-export-{self.name}",
                daemon=True,
            ).start()
        return self._jobs

    def _worker_loop(self, jobs: queue.Queue[_ExportJob | None]) -> None:
        """Run queued batches in order until the stop sentinel (None) arrives."""
        while True:
            job = jobs.get()
            if job is None:
                return
            records, future = job
            # False when the caller timed out or shutdown() cancelled the batch
            if not future.set_running_or_notify_cancel():
                continue
            future.set_result(self._run_export(records))

    @staticmethod
    def _stop_worker(jobs: queue.Queue[_ExportJob | None]) -> int:
        """Cancel every batch still queued, then send the stop sentinel.

        Returns:
            Number of batches cancelled
        """
        cancelled = 0
        while True:
            try:
                job = jobs.get_nowait()
            except queue.Empty:
                break
            if job is not None and job[1].cancel():
                cancelled += 1
        jobs.put(None)
        return cancelled

    def _already_shut_down(self) -> ExportResult:
        return ExportResult.failure(
            ExportErrorKind.ALREADY_SHUT_DOWN,
            f"exporter '{self.name}' has been shut down",
        )

    def _timed_out(self, records: tuple[SpanRecord, ...], *, cancelled: bool) -> ExportResult:
        logger.warning(
            "Span export timed out",
            exporter=self.name,
            span_count=len(records),
            timeout_seconds=self._export_timeout,
            batch_discarded=cancelled,
        )
        return ExportResult.failure(
            ExportErrorKind.TIMEOUT,
            f"export did not complete within {self._export_timeout}s",
        )

    @abstractmethod
    def _export(self, batch: tuple[SpanRecord, ...]) -> ExportResult:
        """Encode and transmit a non-empty batch.

        Runs on the exporter's worker thread. May block on I/O; the caller is
        protected by the deadline. May raise SpanEncodingError or
        SpanTransportError instead of returning a failure.
        """

    # =========================================================================
    # Shutdown
    # =========================================================================

    def shutdown(self) -> None:
        """Move to SHUT_DOWN and release sink resources within the shutdown deadline.

        Shutdown Sequence:
        1. Flip state under the lock - new exports fail from this point on
        2. Stop the worker without waiting: batches still queued behind an
           in-flight one are cancelled and their callers get ALREADY_SHUT_DOWN;
           an in-flight batch finishes (or hangs) on the daemon worker
        3. Run the sink's _shutdown() on a helper thread, bounded by
           shutdown_timeout_seconds (a stuck final flush cannot hang teardown)

        Called exactly once by contract. Repeated calls are logged and ignored.
        Never raises.
        """
        with self._state_lock:
            if self._state is ExporterState.SHUT_DOWN:
                logger.debug("Span exporter already shut down", exporter=self.name)
                return
            self._state = ExporterState.SHUT_DOWN
            jobs = self._jobs
            self._jobs = None

        if jobs is not None:
            cancelled = self._stop_worker(jobs)
            if cancelled:
                logger.warning("Queued span batches discarded at shutdown", exporter=self.name, batch_count=cancelled)

        self._run_shutdown_hook()

    def _run_shutdown_hook(self) -> None:
        errors: list[Exception] = []

        def _target() -> None:
            try:
                self._shutdown()
            except Exception as e:
                errors.append(e)

        thread = threading.Thread(target=_target, name=f"span-export-shutdown-{self.name}", daemon=True)
        thread.start()
        thread.join(timeout=self._shutdown_timeout)

        if thread.is_alive():
            logger.error(
                "Span exporter shutdown did not complete within timeout",
                exporter=self.name,
                timeout_seconds=self._shutdown_timeout,
            )
        elif errors:
            logger.warning(
                "Span exporter shutdown failed",
                exporter=self.name,
                error_type=type(errors[0]).__name__,
                error=str(errors[0]),
            )
        else:
            logger.debug("Span exporter shut down", exporter=self.name)

    def _shutdown(self) -> None:
        """Release sink resources. Default: nothing to release."""
        pass
