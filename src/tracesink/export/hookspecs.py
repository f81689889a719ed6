# src/tracesink/export/hookspecs.py
"""pluggy hook specifications for span exporters.

Exporters implement these hooks to register themselves. The factory calls
them at assembly time to discover the available exporters.

Usage (implementing an exporter plugin):
    from tracesink.export.hookspecs import hookimpl

    class MyExporterPlugin:
        @hookimpl
        def tracesink_get_exporters(self):
            return [MyExporter]
"""

from typing import TYPE_CHECKING

import pluggy

if TYPE_CHECKING:
    from tracesink.export.protocols import SpanExporterProtocol

PROJECT_NAME = "tracesink"

# Hook specification marker
hookspec = pluggy.HookspecMarker(PROJECT_NAME)

# Hook implementation marker (for exporter plugins to use)
hookimpl = pluggy.HookimplMarker(PROJECT_NAME)


class TraceSinkExporterSpec:
    """Hook specifications for span exporter plugins."""

    @hookspec
    def tracesink_get_exporters(self) -> list[type["SpanExporterProtocol"]]:  # type: ignore[empty-body]
        """Return span exporter classes.

        Returns:
            List of exporter classes (not instances) that implement
            SpanExporterProtocol
        """
