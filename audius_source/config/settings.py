"""Configuration management using Pydantic Settings.

This module provides type-safe configuration management with automatic
environment variable loading and validation using Pydantic Settings v2.

The configuration is organized into logical groups:
- LoggingConfig: Logging levels, files, and debugging options
- AudiusConfig: Discovery endpoint, application name and public web host
- HTTPConfig: Timeouts, connection pooling and streaming chunk size
"""

from pathlib import Path
from typing import Any

from pydantic import BaseModel, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LoggingConfig(BaseModel):
    """Logging configuration for console and file output."""

    console_level: str = "INFO"
    file_level: str = "DEBUG"
    log_file: Path = Path("audius_source.log")
    real_time_debug: bool = True


class AudiusConfig(BaseModel):
    """Audius network endpoints and attribution."""

    # Returns the list of discovery providers under "data"
    discovery_url: str = "https://api.audius.co"
    # Sent as app_name on every provider request
    app_name: str = "audius-source"
    # Used to absolutize relative permalinks such as "/artist/slug"
    web_base_url: str = "https://audius.co"


class HTTPConfig(BaseModel):
    """Upstream HTTP client configuration.

    The upstream is fail-fast: there is no retry count here on purpose,
    only bounded timeouts so that no request waits indefinitely.
    """

    connect_timeout: float = 5.0
    timeout: float = 15.0
    max_connections: int = 20
    stream_chunk_size: int = 64 * 1024
    user_agent: str = "audius-source/0.1.0 (+https://audius.co)"


class Settings(BaseSettings):
    """Main application settings with environment variable support.

    Environment variables can be set using flat naming or nested naming:
    - Flat: AUDIUS_APP_NAME, HTTP_TIMEOUT, CONSOLE_LOG_LEVEL
    - Nested: AUDIUS__APP_NAME, HTTP__TIMEOUT, LOGGING__CONSOLE_LEVEL

    The .env file is automatically loaded for development convenience.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    logging: LoggingConfig = LoggingConfig()
    audius: AudiusConfig = AudiusConfig()
    http: HTTPConfig = HTTPConfig()

    @model_validator(mode="before")
    @classmethod
    def transform_flat_env_vars(cls, data: Any) -> Any:
        """Transform flat environment variables to nested structure.

        Handles flat env vars (AUDIUS_APP_NAME) and maps them to the
        nested structure expected by the models (audius.app_name).
        """
        if not isinstance(data, dict):
            return data

        transformed: dict[str, dict[str, Any]] = {}

        group_mappings = {
            "logging": {
                "console_log_level": "console_level",
                "file_log_level": "file_level",
                "log_file": "log_file",
                "log_real_time_debug": "real_time_debug",
            },
            "audius": {
                "audius_discovery_url": "discovery_url",
                "audius_app_name": "app_name",
                "audius_web_base_url": "web_base_url",
            },
            "http": {
                "http_connect_timeout": "connect_timeout",
                "http_timeout": "timeout",
                "http_max_connections": "max_connections",
                "http_stream_chunk_size": "stream_chunk_size",
                "http_user_agent": "user_agent",
            },
        }

        for group, mapping in group_mappings.items():
            for env_key, field_key in mapping.items():
                if env_key in data:
                    transformed.setdefault(group, {})[field_key] = data.pop(env_key)

        # Flat values override matching nested ones
        for group, values in transformed.items():
            existing = data.get(group)
            if isinstance(existing, dict):
                data[group] = {**existing, **values}
            else:
                data[group] = values

        return data


# Singleton instance for application use
settings = Settings()
