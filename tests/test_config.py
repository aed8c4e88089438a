from __future__ import annotations

from pathlib import Path

import allure
import pytest

from codemaker_cli.config import (
    API_KEY_ENV,
    ClientSettings,
    Settings,
    resolve_api_key,
    write_api_key,
)
from codemaker_cli.errors import ConfigurationError
from codemaker_cli.lifecycle import BackoffPolicy

pytestmark = [
    allure.epic("Configuration"),
    allure.feature("Settings & Credentials"),
]


def test_resolve_api_key_prefers_environment(tmp_path: Path, monkeypatch) -> None:
    config_path = tmp_path / "config"
    config_path.write_text(f"{API_KEY_ENV}=from-file\n", "utf-8")
    monkeypatch.setenv(API_KEY_ENV, "from-env")

    assert resolve_api_key(config_path) == "from-env"


def test_resolve_api_key_falls_back_to_config_file(tmp_path: Path, monkeypatch) -> None:
    config_path = tmp_path / "config"
    config_path.write_text(f"{API_KEY_ENV}=from-file\n", "utf-8")
    monkeypatch.delenv(API_KEY_ENV, raising=False)

    assert resolve_api_key(config_path) == "from-file"


def test_resolve_api_key_fails_without_any_source(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.delenv(API_KEY_ENV, raising=False)

    with pytest.raises(ConfigurationError, match=API_KEY_ENV):
        resolve_api_key(tmp_path / "missing" / "config")


def test_resolve_api_key_ignores_blank_values(tmp_path: Path, monkeypatch) -> None:
    config_path = tmp_path / "config"
    config_path.write_text(f"{API_KEY_ENV}=\n", "utf-8")
    monkeypatch.setenv(API_KEY_ENV, "  ")

    with pytest.raises(ConfigurationError):
        resolve_api_key(config_path)


def test_write_api_key_creates_directory_and_keeps_other_entries(
    tmp_path: Path,
    monkeypatch,
) -> None:
    config_path = tmp_path / ".codemaker" / "config"
    monkeypatch.delenv(API_KEY_ENV, raising=False)

    write_api_key(config_path, "first")
    with config_path.open("a", encoding="utf-8") as handle:
        handle.write("OTHER=value\n")
    write_api_key(config_path, "second")

    assert resolve_api_key(config_path) == "second"
    assert "OTHER=value" in config_path.read_text("utf-8")


def test_write_api_key_rejects_empty_key(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError):
        write_api_key(tmp_path / "config", "   ")


def test_from_env_uses_reference_defaults(credentials) -> None:
    settings = Settings.from_env()

    assert settings.process_timeout_seconds == 600
    assert settings.client == ClientSettings()
    assert settings.backoff == BackoffPolicy()
    settings.validate()


def test_from_env_reads_overrides(credentials, monkeypatch) -> None:
    monkeypatch.setenv("CODEMAKER_ENDPOINT", "http://localhost:8080")
    monkeypatch.setenv("CODEMAKER_PROCESS_TIMEOUT_SECONDS", "30")
    monkeypatch.setenv("CODEMAKER_RETRY_INITIAL_DELAY_SECONDS", "0.5")
    monkeypatch.setenv("CODEMAKER_NON_EXPONENT_RETRIES", "2")

    settings = Settings.from_env()

    assert settings.client.endpoint == "http://localhost:8080"
    assert settings.process_timeout_seconds == 30
    assert settings.backoff.initial_delay_seconds == 0.5
    assert settings.backoff.non_exponent_retries == 2


def test_from_env_rejects_malformed_numbers(credentials, monkeypatch) -> None:
    monkeypatch.setenv("CODEMAKER_MAX_EXPONENT_RETRIES", "many")

    with pytest.raises(ConfigurationError, match="CODEMAKER_MAX_EXPONENT_RETRIES"):
        Settings.from_env()


def test_validate_rejects_relative_endpoint() -> None:
    settings = Settings(client=ClientSettings(endpoint="api.codemaker.ai"))

    with pytest.raises(ConfigurationError, match="CODEMAKER_ENDPOINT"):
        settings.validate()


def test_validate_rejects_max_delay_below_initial_delay() -> None:
    settings = Settings(
        backoff=BackoffPolicy(initial_delay_seconds=10.0, max_delay_seconds=5.0),
    )

    with pytest.raises(ConfigurationError, match="MAX_DELAY"):
        settings.validate()


def test_validate_rejects_non_positive_process_timeout() -> None:
    with pytest.raises(ConfigurationError, match="PROCESS_TIMEOUT"):
        Settings(process_timeout_seconds=0).validate()
