"""Tests for the Pydantic settings models and load_settings()."""

from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from tracesink.core.config import ExporterSettings, LoggingSettings, SpanLimitSettings, TraceSinkSettings, load_settings


def _write_yaml(directory: Path, data: dict[str, object]) -> Path:
    config_file = directory / "tracesink.yaml"
    config_file.write_text(yaml.safe_dump(data))
    return config_file


class TestSettingsModels:
    def test_defaults(self) -> None:
        settings = TraceSinkSettings()
        assert settings.enabled is True
        assert settings.exporter.name == "console"
        assert settings.exporter.options == {}
        assert settings.span_limits.max_attributes == 128

    def test_exporter_name_normalized(self) -> None:
        assert ExporterSettings(name="  Console ").name == "console"

    def test_blank_exporter_name_rejected(self) -> None:
        with pytest.raises(ValidationError, match="exporter name cannot be empty"):
            ExporterSettings(name="   ")

    def test_negative_limit_rejected(self) -> None:
        with pytest.raises(ValidationError):
            SpanLimitSettings(max_events=-1)

    def test_unknown_top_level_key_rejected(self) -> None:
        with pytest.raises(ValidationError):
            TraceSinkSettings(exporters=[])  # type: ignore[call-arg]

    def test_settings_frozen(self) -> None:
        settings = TraceSinkSettings()
        with pytest.raises(ValidationError):
            settings.enabled = False  # type: ignore[misc]

    def test_logging_defaults(self) -> None:
        assert TraceSinkSettings().logging == LoggingSettings(level="INFO", format="console")

    def test_log_level_normalized(self) -> None:
        assert LoggingSettings(level=" debug ").level == "DEBUG"

    def test_unknown_log_level_rejected(self) -> None:
        with pytest.raises(ValidationError, match="log level must be one of"):
            LoggingSettings(level="chatty")

    def test_unknown_log_format_rejected(self) -> None:
        with pytest.raises(ValidationError):
            LoggingSettings(format="xml")  # type: ignore[arg-type]


class TestLoadSettings:
    def test_missing_file_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError, match="Config file not found"):
            load_settings(tmp_path / "missing.yaml")

    def test_loads_yaml(self, tmp_path: Path) -> None:
        config_file = _write_yaml(
            tmp_path,
            {
                "enabled": True,
                "exporter": {"name": "console", "options": {"format": "pretty", "export_timeout_seconds": 2}},
                "span_limits": {"max_attributes": 16},
            },
        )

        settings = load_settings(config_file)

        assert settings.exporter.name == "console"
        assert settings.exporter.options == {"format": "pretty", "export_timeout_seconds": 2}
        assert settings.span_limits.max_attributes == 16
        assert settings.span_limits.max_events == 128

    def test_env_overrides_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        config_file = _write_yaml(tmp_path, {"enabled": True})
        monkeypatch.setenv("TRACESINK_ENABLED", "false")

        settings = load_settings(config_file)

        assert settings.enabled is False

    def test_invalid_yaml_values_rejected(self, tmp_path: Path) -> None:
        config_file = _write_yaml(tmp_path, {"span_limits": {"max_links": -5}})

        with pytest.raises(ValidationError):
            load_settings(config_file)

    def test_nested_env_override_for_logging(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        config_file = _write_yaml(tmp_path, {"logging": {"level": "info", "format": "console"}})
        monkeypatch.setenv("TRACESINK_LOGGING__FORMAT", "json")

        settings = load_settings(config_file)

        assert settings.logging.format == "json"
        assert settings.logging.level == "INFO"
