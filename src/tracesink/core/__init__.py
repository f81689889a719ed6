# src/tracesink/core/__init__.py
"""Core infrastructure: configuration loading and logging setup."""

from tracesink.core.config import ExporterSettings, LoggingSettings, SpanLimitSettings, TraceSinkSettings, load_settings
from tracesink.core.logging import configure_logging, configure_logging_from_settings

__all__ = [
    "ExporterSettings",
    "LoggingSettings",
    "SpanLimitSettings",
    "TraceSinkSettings",
    "configure_logging",
    "configure_logging_from_settings",
    "load_settings",
]
