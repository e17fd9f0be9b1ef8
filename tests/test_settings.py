import pytest
from pydantic import ValidationError

from time_server.settings import TimeServerSettings, get_settings


def test_defaults(monkeypatch, tmp_path):
    monkeypatch.setenv("MCP_TIME_CONFIG_FILE", str(tmp_path / "missing.yaml"))
    settings = TimeServerSettings()
    assert settings.server.port == 8080
    assert settings.time.default_timezone == "UTC"
    assert settings.time.default_format == "RFC3339"
    assert "Layout" in settings.time.supported_formats
    assert settings.logging.format == "json"
    assert settings.metrics.path == "/metrics"
    assert settings.metrics_on_main_port is False


def test_environment_overrides_yaml_file(monkeypatch, tmp_path):
    config = tmp_path / "config.yaml"
    config.write_text(
        "server:\n"
        "  name: from-yaml\n"
        "  port: 7100\n"
        "time:\n"
        "  default_timezone: Europe/London\n"
        "metrics:\n"
        "  port: 7100\n",
        encoding="utf-8",
    )
    monkeypatch.setenv("MCP_TIME_CONFIG_FILE", str(config))
    monkeypatch.setenv("MCP_TIME_SERVER__PORT", "7200")
    monkeypatch.setenv("MCP_TIME_LOGGING__LEVEL", "debug")

    get_settings.cache_clear()
    settings = get_settings()
    get_settings.cache_clear()

    assert settings.server.name == "from-yaml"
    assert settings.server.port == 7200
    assert settings.time.default_timezone == "Europe/London"
    assert settings.logging.level == "debug"
    assert settings.metrics_on_main_port is False


def test_unknown_supported_format_is_rejected(monkeypatch, tmp_path):
    monkeypatch.setenv("MCP_TIME_CONFIG_FILE", str(tmp_path / "missing.yaml"))
    with pytest.raises(ValidationError):
        TimeServerSettings(time={"supported_formats": ["RFC3339", "Kitchen"]})


def test_default_format_must_be_supported(monkeypatch, tmp_path):
    monkeypatch.setenv("MCP_TIME_CONFIG_FILE", str(tmp_path / "missing.yaml"))
    with pytest.raises(ValidationError, match="default_format Layout"):
        TimeServerSettings(time={"default_format": "Layout", "supported_formats": ["RFC3339"]})


def test_default_timezone_must_resolve(monkeypatch, tmp_path):
    monkeypatch.setenv("MCP_TIME_CONFIG_FILE", str(tmp_path / "missing.yaml"))
    with pytest.raises(ValidationError, match="Nowhere/Place"):
        TimeServerSettings(time={"default_timezone": "Nowhere/Place"})


def test_bad_time_config_fails_get_settings(monkeypatch, tmp_path):
    monkeypatch.setenv("MCP_TIME_CONFIG_FILE", str(tmp_path / "missing.yaml"))
    monkeypatch.setenv("MCP_TIME_TIME__DEFAULT_TIMEZONE", "Mars/Olympus")
    get_settings.cache_clear()
    try:
        with pytest.raises(ValidationError):
            get_settings()
    finally:
        get_settings.cache_clear()
