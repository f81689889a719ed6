# src/tracesink/export/factory.py
"""Factory functions for selecting and configuring the span exporter.

This module provides the glue between configuration (RuntimeExportConfig)
and the exporter instance handed to the span processor. It handles:
1. Discovering exporter classes via pluggy hooks
2. Instantiating and configuring the selected exporter

The exporter is chosen once, at assembly time; the processor then calls it
directly through SpanExporterProtocol.

Usage:
    from tracesink.contracts.config import RuntimeExportConfig
    from tracesink.core.config import load_settings
    from tracesink.export.factory import create_span_exporter

    config = RuntimeExportConfig.from_settings(load_settings(path))
    exporter = create_span_exporter(config)
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

import pluggy
import structlog

from tracesink.contracts.config import RuntimeExportConfig
from tracesink.export.errors import ExporterConfigurationError
from tracesink.export.exporters import BuiltinExportersPlugin
from tracesink.export.hookspecs import PROJECT_NAME, TraceSinkExporterSpec
from tracesink.export.protocols import SpanExporterProtocol

logger = structlog.get_logger(__name__)


def _resolve_exporter_name(exporter_class: type[SpanExporterProtocol]) -> str:
    """Resolve exporter name from class metadata or a temporary instance.

    Args:
        exporter_class: Exporter class returned from hook discovery.

    Returns:
        Exporter name used in configuration.

    Raises:
        ExporterConfigurationError: If the class cannot be instantiated for name
            resolution or resolves to an invalid name.
    """
    try:
        class_name = exporter_class.__name__
    except AttributeError as e:  # pragma: no cover - plugin returned a non-class
        raise ExporterConfigurationError(
            "exporter_plugins",
            f"Invalid exporter declaration without __name__: {exporter_class!r}",
        ) from e

    # Prefer a class-level _name to avoid unnecessary instantiation
    name_hint = getattr(exporter_class, "_name", None)
    if name_hint is not None:
        if type(name_hint) is str and name_hint != "":
            return name_hint
        raise ExporterConfigurationError(
            class_name,
            f"Exporter class attribute _name must be a non-empty string, got {name_hint!r}",
        )

    try:
        resolved_name = exporter_class().name
    except Exception as e:
        raise ExporterConfigurationError(
            class_name,
            f"Failed to resolve exporter name during discovery: {e}",
        ) from e

    if type(resolved_name) is not str or resolved_name == "":
        raise ExporterConfigurationError(
            class_name,
            f"Exporter name must be a non-empty string, got {resolved_name!r}",
        )
    return resolved_name


def discover_exporter_registry(
    exporter_plugins: Iterable[Any] = (),
) -> dict[str, type[SpanExporterProtocol]]:
    """Discover span exporters via pluggy hooks.

    Registers built-in exporters plus any additional plugin objects provided
    by the caller, then calls ``tracesink_get_exporters`` hooks to build the
    name->class registry.

    Args:
        exporter_plugins: Optional additional plugin objects implementing
            ``tracesink_get_exporters``.

    Returns:
        Mapping of exporter name to exporter class.

    Raises:
        ExporterConfigurationError: If plugin registration fails, a hook returns
            something other than an iterable of classes, or two exporters share
            a name.
    """
    plugin_manager = pluggy.PluginManager(PROJECT_NAME)
    plugin_manager.add_hookspecs(TraceSinkExporterSpec)

    for plugin in [BuiltinExportersPlugin(), *exporter_plugins]:
        try:
            plugin_manager.register(plugin)
            plugin_manager.check_pending()
        except (pluggy.PluginValidationError, ValueError) as e:
            # PluginValidationError: hook spec mismatch (wrong method names, etc.)
            # ValueError: duplicate plugin object or plugin name already registered
            if isinstance(e, pluggy.PluginValidationError):
                plugin_manager.unregister(plugin=plugin)
            raise ExporterConfigurationError(
                "exporter_plugins",
                f"Invalid exporter plugin {type(plugin).__name__}: {e}",
            ) from e

    registry: dict[str, type[SpanExporterProtocol]] = {}
    for hook_impl in plugin_manager.hook.tracesink_get_exporters.get_hookimpls():
        plugin_name = type(hook_impl.plugin).__name__
        try:
            exporters = hook_impl.function()
        except Exception as e:
            raise ExporterConfigurationError(
                "exporter_plugins",
                f"Exporter plugin {plugin_name} failed in tracesink_get_exporters: {e}",
            ) from e

        if exporters is None or type(exporters) in (str, bytes):
            raise ExporterConfigurationError(
                "exporter_plugins",
                f"tracesink_get_exporters in plugin {plugin_name} returned {type(exporters).__name__}; expected iterable of exporter classes",
            )
        try:
            exporter_iter = iter(exporters)
        except TypeError as e:
            raise ExporterConfigurationError(
                "exporter_plugins",
                f"tracesink_get_exporters in plugin {plugin_name} returned {type(exporters).__name__}; expected iterable of exporter classes",
            ) from e

        for exporter_class in exporter_iter:
            exporter_name = _resolve_exporter_name(exporter_class)
            if exporter_name in registry:
                existing = registry[exporter_name].__name__
                raise ExporterConfigurationError(
                    exporter_name,
                    f"Duplicate exporter name '{exporter_name}' discovered: {existing} and {exporter_class.__name__}",
                )
            registry[exporter_name] = exporter_class

    return registry


def create_span_exporter(
    config: RuntimeExportConfig,
    *,
    exporter_plugins: Iterable[Any] = (),
) -> SpanExporterProtocol | None:
    """Create and configure the exporter named in configuration.

    Args:
        config: Runtime export configuration from RuntimeExportConfig.from_settings().
        exporter_plugins: Optional additional exporter plugin objects providing
            ``tracesink_get_exporters`` hooks.

    Returns:
        Configured exporter, or None if export is disabled.

    Raises:
        ExporterConfigurationError: If discovery fails, the exporter name is
            unknown, or the exporter rejects its options.
    """
    if not config.enabled:
        logger.debug("span_export_disabled", reason="config.enabled=False")
        return None

    registry = discover_exporter_registry(exporter_plugins)

    try:
        exporter_class = registry[config.exporter.name]
    except KeyError:
        available = sorted(registry.keys())
        raise ExporterConfigurationError(
            exporter_name=config.exporter.name,
            message=f"Unknown exporter. Available exporters: {available}",
        ) from None

    exporter = exporter_class()
    exporter.configure(config.exporter.options)
    logger.debug(
        "exporter_configured",
        exporter=config.exporter.name,
        options_keys=sorted(config.exporter.options.keys()),
    )
    return exporter
