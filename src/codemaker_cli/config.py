"""Runtime configuration and API key resolution."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from urllib.parse import urlparse

from dotenv import dotenv_values, set_key

from codemaker_cli.client.http_client import (
    DEFAULT_ENDPOINT,
    DEFAULT_MAX_RETRIES,
    DEFAULT_TIMEOUT_SECONDS,
)
from codemaker_cli.errors import ConfigurationError
from codemaker_cli.lifecycle import DEFAULT_PROCESS_TIMEOUT_SECONDS, BackoffPolicy

API_KEY_ENV = "CODEMAKER_API_KEY"


def default_config_path() -> Path:
    return Path.home() / ".codemaker" / "config"


@dataclass(slots=True)
class ClientSettings:
    """Remote service connection settings."""

    endpoint: str = DEFAULT_ENDPOINT
    request_timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    transport_retries: int = DEFAULT_MAX_RETRIES


@dataclass(slots=True)
class Settings:
    """Application settings grouped by concern."""

    config_path: Path = field(default_factory=default_config_path)
    process_timeout_seconds: float = DEFAULT_PROCESS_TIMEOUT_SECONDS
    client: ClientSettings = field(default_factory=ClientSettings)
    backoff: BackoffPolicy = field(default_factory=BackoffPolicy)

    @classmethod
    def from_env(cls) -> Settings:
        """Load settings from environment, falling back to reference defaults."""

        config_file = os.getenv("CODEMAKER_CONFIG_FILE", "").strip()
        return cls(
            config_path=Path(config_file).expanduser() if config_file else default_config_path(),
            process_timeout_seconds=_env_float(
                "CODEMAKER_PROCESS_TIMEOUT_SECONDS",
                DEFAULT_PROCESS_TIMEOUT_SECONDS,
            ),
            client=ClientSettings(
                endpoint=os.getenv("CODEMAKER_ENDPOINT", DEFAULT_ENDPOINT).strip(),
                request_timeout_seconds=_env_float(
                    "CODEMAKER_REQUEST_TIMEOUT_SECONDS",
                    DEFAULT_TIMEOUT_SECONDS,
                ),
                transport_retries=_env_int("CODEMAKER_TRANSPORT_RETRIES", DEFAULT_MAX_RETRIES),
            ),
            backoff=BackoffPolicy(
                initial_delay_seconds=_env_float("CODEMAKER_RETRY_INITIAL_DELAY_SECONDS", 1.0),
                max_delay_seconds=_env_float("CODEMAKER_RETRY_MAX_DELAY_SECONDS", 60.0),
                non_exponent_retries=_env_int("CODEMAKER_NON_EXPONENT_RETRIES", 8),
                max_exponent_retries=_env_int("CODEMAKER_MAX_EXPONENT_RETRIES", 16),
            ),
        )

    def validate(self) -> None:
        """Raise configuration error if any value is out of range."""

        parsed = urlparse(self.client.endpoint)
        if parsed.scheme not in {"http", "https"} or not parsed.netloc:
            raise ConfigurationError(
                f"Invalid CODEMAKER_ENDPOINT: {self.client.endpoint!r}. "
                "Expected an absolute http:// or https:// URL.",
            )
        if self.process_timeout_seconds <= 0:
            raise ConfigurationError("CODEMAKER_PROCESS_TIMEOUT_SECONDS must be > 0.")
        if self.client.request_timeout_seconds <= 0:
            raise ConfigurationError("CODEMAKER_REQUEST_TIMEOUT_SECONDS must be > 0.")
        if self.client.transport_retries < 0:
            raise ConfigurationError("CODEMAKER_TRANSPORT_RETRIES must be >= 0.")
        if self.backoff.initial_delay_seconds <= 0:
            raise ConfigurationError("CODEMAKER_RETRY_INITIAL_DELAY_SECONDS must be > 0.")
        if self.backoff.max_delay_seconds < self.backoff.initial_delay_seconds:
            raise ConfigurationError(
                "CODEMAKER_RETRY_MAX_DELAY_SECONDS must be >= the initial delay.",
            )
        if self.backoff.non_exponent_retries < 0:
            raise ConfigurationError("CODEMAKER_NON_EXPONENT_RETRIES must be >= 0.")
        if self.backoff.max_exponent_retries < 0:
            raise ConfigurationError("CODEMAKER_MAX_EXPONENT_RETRIES must be >= 0.")


def resolve_api_key(config_path: Path) -> str:
    """Return the API key from the environment or the per-user config file."""

    api_key = os.getenv(API_KEY_ENV, "").strip()
    if api_key:
        return api_key

    if config_path.is_file():
        values = dotenv_values(config_path)
        api_key = (values.get(API_KEY_ENV) or "").strip()
        if api_key:
            return api_key

    raise ConfigurationError(
        f"Failed to resolve {API_KEY_ENV}. Set the environment variable "
        "or run `codemaker configure`.",
    )


def write_api_key(config_path: Path, api_key: str) -> None:
    """Persist the API key to the per-user config file."""

    value = api_key.strip()
    if not value:
        raise ConfigurationError("The API key must not be empty.")
    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.touch(mode=0o600, exist_ok=True)
    set_key(config_path, API_KEY_ENV, value, quote_mode="never")


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError as error:
        raise ConfigurationError(f"Invalid number for {name}: {raw!r}") from error


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as error:
        raise ConfigurationError(f"Invalid integer for {name}: {raw!r}") from error
