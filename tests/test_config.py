"""Tests for environment-driven settings."""

import pytest

from inquiry_analyzer.config import DEFAULT_TOKEN_LIMIT, Settings
from inquiry_analyzer.errors import ConfigurationError


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in (
        "DEEPSEEK_API_KEY", "DEEPSEEK_API_URL", "DEEPSEEK_MODEL",
        "ANALYZER_TOKEN_LIMIT", "ANALYZER_TEMPERATURE", "ANALYZER_MAX_RETRIES",
        "ANALYZER_RETRY_BACKOFF", "ANALYZER_REQUEST_TIMEOUT",
    ):
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    settings = Settings.from_env()
    assert settings.api_key == ""
    assert settings.model == "deepseek-chat"
    assert settings.token_limit == DEFAULT_TOKEN_LIMIT
    assert settings.max_retries == 3
    assert settings.base_url == "https://api.deepseek.com/v1"


def test_reads_environment(monkeypatch):
    monkeypatch.setenv("DEEPSEEK_API_KEY", "sk-live")
    monkeypatch.setenv("DEEPSEEK_API_URL", "http://localhost:8080/v1/")
    monkeypatch.setenv("ANALYZER_TOKEN_LIMIT", "64000")
    settings = Settings.from_env()
    assert settings.api_key == "sk-live"
    assert settings.base_url == "http://localhost:8080/v1"
    assert settings.token_limit == 64000


def test_non_numeric_value(monkeypatch):
    monkeypatch.setenv("ANALYZER_MAX_RETRIES", "three")
    with pytest.raises(ConfigurationError, match="ANALYZER_MAX_RETRIES"):
        Settings.from_env()


def test_out_of_range_value(monkeypatch):
    monkeypatch.setenv("ANALYZER_MAX_RETRIES", "0")
    with pytest.raises(ConfigurationError):
        Settings.from_env()


def test_require_api_key():
    with pytest.raises(ConfigurationError, match="DEEPSEEK_API_KEY"):
        Settings().require_api_key()
    Settings(api_key="sk-test").require_api_key()
