# src/tracesink/core/config.py
"""
Configuration schema and loading for tracesink.

Uses Pydantic for validation and Dynaconf for multi-source loading.
Settings are frozen (immutable) after construction.
"""

from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

from tracesink.contracts.config import DEFAULT_SPAN_COLLECTION_LIMIT
from tracesink.core.logging import LOG_LEVELS


class ExporterSettings(BaseModel):
    """Exporter selection and exporter-specific options.

    The options dict is passed unchanged to the exporter's configure().
    Every exporter understands export_timeout_seconds and
    shutdown_timeout_seconds; the rest depends on the exporter.

    Example YAML:
        exporter:
          name: console
          options:
            format: pretty
            output: stderr
            export_timeout_seconds: 2
    """

    model_config = {"frozen": True}

    name: str = Field(default="console", description="Registered exporter name")
    options: dict[str, Any] = Field(default_factory=dict, description="Exporter-specific options")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Exporter names are non-empty and case-normalized."""
        normalized = v.strip().lower()
        if not normalized:
            raise ValueError("exporter name cannot be empty")
        return normalized


class SpanLimitSettings(BaseModel):
    """Capacities of the bounded attribute, event and link collections.

    Example YAML:
        span_limits:
          max_attributes: 64
          max_events: 32
    """

    model_config = {"frozen": True}

    max_attributes: int = Field(default=DEFAULT_SPAN_COLLECTION_LIMIT, ge=0)
    max_events: int = Field(default=DEFAULT_SPAN_COLLECTION_LIMIT, ge=0)
    max_links: int = Field(default=DEFAULT_SPAN_COLLECTION_LIMIT, ge=0)
    max_attributes_per_event: int = Field(default=DEFAULT_SPAN_COLLECTION_LIMIT, ge=0)
    max_attributes_per_link: int = Field(default=DEFAULT_SPAN_COLLECTION_LIMIT, ge=0)


class LoggingSettings(BaseModel):
    """Log level and rendering for configure_logging_from_settings().

    Example YAML:
        logging:
          level: debug
          format: json
    """

    model_config = {"frozen": True}

    level: str = Field(default="INFO", description="Root log level")
    format: Literal["console", "json"] = Field(default="console", description="Log rendering")

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        normalized = v.strip().upper()
        if normalized not in LOG_LEVELS:
            raise ValueError(f"log level must be one of {list(LOG_LEVELS)}, got {v!r}")
        return normalized


class TraceSinkSettings(BaseModel):
    """Top-level settings.

    Example YAML:
        enabled: true
        exporter:
          name: otlp
          options:
            endpoint: http://localhost:4317
        span_limits:
          max_attributes: 64
        logging:
          level: warning
    """

    model_config = {"frozen": True, "extra": "forbid"}

    enabled: bool = Field(default=True, description="When false no exporter is created")
    exporter: ExporterSettings = Field(default_factory=ExporterSettings)
    span_limits: SpanLimitSettings = Field(default_factory=SpanLimitSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


def load_settings(config_path: Path) -> TraceSinkSettings:
    """Load settings from YAML file with environment variable overrides.

    Uses Dynaconf for multi-source loading with precedence:
    1. Environment variables (TRACESINK_*) - highest priority
    2. Config file
    3. Defaults from Pydantic schema - lowest priority

    Environment variable format: TRACESINK_EXPORTER__NAME for nested keys.

    Args:
        config_path: Path to YAML configuration file

    Returns:
        Validated TraceSinkSettings instance

    Raises:
        ValidationError: If configuration fails Pydantic validation
        FileNotFoundError: If config file doesn't exist
    """
    from dynaconf import Dynaconf

    # Explicit check for file existence (Dynaconf silently accepts missing files)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    dynaconf_settings = Dynaconf(
        envvar_prefix="TRACESINK",
        settings_files=[str(config_path)],
        environments=False,  # No [default]/[production] sections
        load_dotenv=False,  # Don't auto-load .env
        merge_enabled=True,  # Deep merge nested dicts
    )

    # Dynaconf returns uppercase top-level keys; convert to lowercase for Pydantic
    # and filter out internal Dynaconf settings
    internal_keys = {"LOAD_DOTENV", "ENVIRONMENTS", "SETTINGS_FILES"}
    raw_config = {k.lower(): v for k, v in dynaconf_settings.as_dict().items() if k not in internal_keys}

    # Env overrides of nested keys (TRACESINK_EXPORTER__NAME) may arrive uppercase.
    # Only the section keys are normalized; exporter options keep their case.
    for section in ("exporter", "span_limits", "logging"):
        if isinstance(raw_config.get(section), dict):
            raw_config[section] = {k.lower(): v for k, v in raw_config[section].items()}

    return TraceSinkSettings(**raw_config)
