"""
Tests for settings loading and validation.
"""

import pytest
from pydantic import ValidationError

from taskboard.config import ClientSettings, ConfigManager, LoggingSettings, Settings


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """Run each test away from any .env file and stray variables."""
    monkeypatch.chdir(tmp_path)
    for name in ("ENVIRONMENT", "API_PORT", "LOG_LEVEL", "LOG_FORMAT", "STORE_PATH"):
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    settings = Settings()

    assert settings.environment == "development"
    assert settings.api.port == 5000
    assert settings.store.path is None
    assert settings.client.read_retries == 3
    assert settings.client.mutation_retries == 2
    assert settings.client.stale_time == 120
    assert not settings.is_production


def test_group_prefixes(monkeypatch):
    monkeypatch.setenv("API_PORT", "8080")
    monkeypatch.setenv("STORE_PATH", "/tmp/tasks.json")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    monkeypatch.setenv("CLIENT_BASE_URL", "http://tasks.internal:9000")
    monkeypatch.setenv("API_CORS_ORIGINS", '["http://a.test", "http://b.test"]')

    settings = Settings()

    assert settings.api.port == 8080
    assert settings.api.cors_origins == ["http://a.test", "http://b.test"]
    assert settings.store.path == "/tmp/tasks.json"
    assert settings.logging.level == "DEBUG"
    assert settings.client.base_url == "http://tasks.internal:9000"


def test_environment_is_validated():
    with pytest.raises(ValidationError):
        Settings(environment="moon")

    assert Settings(environment="PRODUCTION").is_production


@pytest.mark.parametrize("field,value", [("level", "LOUD"), ("format", "xml")])
def test_logging_validators(field, value):
    with pytest.raises(ValidationError):
        LoggingSettings(**{field: value})


def test_negative_retries_rejected():
    with pytest.raises(ValidationError):
        ClientSettings(read_retries=-1)


def test_env_file(tmp_path):
    (tmp_path / ".env").write_text("ENVIRONMENT=staging\n")

    assert Settings().environment == "staging"


def test_config_manager_caches_and_reloads(monkeypatch):
    manager = ConfigManager("testing")
    first = manager.load_config()

    assert manager.load_config() is first
    assert first.environment == "testing"

    monkeypatch.setenv("API_PORT", "7000")
    assert manager.reload_config().api.port == 7000
