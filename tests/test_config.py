"""
Tests for environment-driven configuration.
"""

import pytest

from a11y_scanner.core import config as config_module
from a11y_scanner.core.config import (
    Config,
    MonitoringConfig,
    RateLimitConfig,
    ScanConfig,
    init_config,
)


def test_defaults():
    config = Config(_env_file=None)

    assert config.rate_limit.requests_per_minute == 10
    assert config.rate_limit.window_seconds == 60
    assert config.scan.navigation_timeouts() == [45000, 30000, 15000]
    assert config.scan.script_load_timeout_ms == 10000
    assert config.scan.rule_tags == ["wcag2aa", "wcag21aa"]
    assert config.scan.viewport_width == 1280
    assert config.scan.viewport_height == 720


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("RATE_LIMIT_REQUESTS_PER_MINUTE", "3")
    monkeypatch.setenv("SCAN_NAVIGATION_TIMEOUT_MS", "20000")
    monkeypatch.setenv("SCAN_RULE_TAGS", "wcag2a, wcag2aa")
    monkeypatch.setenv("SCAN_BROWSER_ARGS", "--no-sandbox,--disable-gpu")
    monkeypatch.setenv("API_CORS_ORIGINS", "https://a.example,https://b.example")
    monkeypatch.setenv("GEMINI_API_KEY", "secret")

    config = Config(_env_file=None)

    assert config.rate_limit.requests_per_minute == 3
    assert config.scan.navigation_timeouts() == [20000, 5000, 5000]
    assert config.scan.rule_tags == ["wcag2a", "wcag2aa"]
    assert config.scan.browser_args == ["--no-sandbox", "--disable-gpu"]
    assert config.api.cors_origins == ["https://a.example", "https://b.example"]
    assert config.enrichment.is_configured


def test_log_level_normalized():
    assert MonitoringConfig(log_level="warn").log_level == "WARNING"
    assert MonitoringConfig(log_level="debug").log_level == "DEBUG"
    with pytest.raises(ValueError):
        MonitoringConfig(log_level="verbose")


def test_invalid_values_rejected():
    with pytest.raises(ValueError):
        RateLimitConfig(requests_per_minute=0)
    with pytest.raises(ValueError):
        Config(environment="moon")


def test_validation_messages(monkeypatch):
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    config = Config(
        _env_file=None,
        scan=ScanConfig(navigation_timeout_ms=12000, navigation_timeout_step_ms=6000),
    )

    messages = config.validate_config()

    assert any("GEMINI_API_KEY" in m for m in messages)
    assert any("clamped" in m for m in messages)
    assert not any(m.startswith("ERROR") for m in messages)


def test_init_config_rejects_errors(monkeypatch):
    monkeypatch.setenv("SCAN_SCRIPT_LOAD_TIMEOUT_MS", "60000")
    monkeypatch.setenv("SCAN_AUDIT_TIMEOUT_MS", "30000")
    monkeypatch.setattr(config_module, "_config", None)

    with pytest.raises(ValueError, match="SCAN_SCRIPT_LOAD_TIMEOUT_MS"):
        init_config()
