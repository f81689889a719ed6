# tests/conftest.py
"""Shared test fixtures and helpers.

Hypothesis Configuration:
- "ci" profile: Fast tests for CI (100 examples) - default
- "nightly" profile: Thorough tests (1000 examples)
- "debug" profile: Minimal tests with verbose output (10 examples)

Set profile via environment variable:
    HYPOTHESIS_PROFILE=nightly pytest tests/property/
"""

import os
from collections.abc import Iterator

import pytest
import structlog
from hypothesis import Phase, Verbosity, settings

from tracesink.export.exporters import InMemoryExporter

# =============================================================================
# Hypothesis Profiles
# =============================================================================

settings.register_profile(
    "ci",
    max_examples=100,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,  # Disable deadline for CI (timing varies)
)

settings.register_profile(
    "nightly",
    max_examples=1000,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "ci"))


# =============================================================================
# Logging Isolation
# =============================================================================


@pytest.fixture(autouse=True)
def _route_structlog_to_stdlib() -> Iterator[None]:
    """Send structlog output through stdlib logging for every test.

    structlog's default PrintLogger writes to stdout, which would mix log lines
    into the console exporter output that capsys assertions inspect. Routed
    through stdlib logging, records land in pytest's log capture instead.
    """
    structlog.configure(
        processors=[structlog.processors.add_log_level, structlog.processors.KeyValueRenderer()],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )
    yield
    structlog.reset_defaults()


# =============================================================================
# Exporter Fixtures
# =============================================================================


@pytest.fixture
def memory_exporter() -> Iterator[InMemoryExporter]:
    """Configured InMemoryExporter, shut down at teardown.

    Shutdown releases the worker thread so tests never leak threads.
    """
    exporter = InMemoryExporter()
    exporter.configure({"export_timeout_seconds": 5, "shutdown_timeout_seconds": 1})
    yield exporter
    exporter.shutdown()
