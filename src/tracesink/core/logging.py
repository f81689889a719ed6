# src/tracesink/core/logging.py
"""Structured logging setup for processes that host a span exporter.

Every tracesink module logs through ``structlog.get_logger(__name__)``.
configure_logging() points structlog and stdlib logging at one stderr
handler rendered by ProcessorFormatter, so grpc and OpenTelemetry records
come out in the same shape as tracesink's own. stdout is left to the
console exporter.
"""

import logging
import sys
from typing import TYPE_CHECKING, Any

import structlog
from structlog.stdlib import ProcessorFormatter

if TYPE_CHECKING:
    from tracesink.core.config import LoggingSettings

LOG_LEVELS: tuple[str, ...] = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

# Transport and SDK internals pulled in by the OTLP exporter
_NOISY_LOGGERS: tuple[str, ...] = ("grpc", "opentelemetry", "urllib3")


def _drop_formatter_bookkeeping(
    logger: logging.Logger | None,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Strip the _record/_from_structlog keys ProcessorFormatter adds."""
    event_dict.pop("_record", None)
    event_dict.pop("_from_structlog", None)
    return event_dict


def _shared_processors() -> list[Any]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
    ]


def _render_processors(json_output: bool) -> list[Any]:
    if json_output:
        return [
            _drop_formatter_bookkeeping,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    return [_drop_formatter_bookkeeping, structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())]


def configure_logging(*, json_output: bool = False, level: str = "INFO") -> None:
    """Route structlog and stdlib logging to stderr.

    Args:
        json_output: Render one JSON object per line instead of console text
        level: Root level name, case-insensitive

    Raises:
        ValueError: If level is not a known level name
    """
    level_name = level.upper()
    if level_name not in LOG_LEVELS:
        raise ValueError(f"Unknown log level {level!r}. Expected one of {list(LOG_LEVELS)}")
    log_level = logging.getLevelName(level_name)
    shared = _shared_processors()

    structlog.configure(
        processors=[*shared, ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        # Reconfigurable between tests
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(ProcessorFormatter(processors=_render_processors(json_output), foreign_pre_chain=shared))

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(log_level)

    # Never below WARNING, never looser than root
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))


def configure_logging_from_settings(settings: "LoggingSettings") -> None:
    """Apply the ``logging`` section of TraceSinkSettings."""
    configure_logging(json_output=settings.format == "json", level=settings.level)
