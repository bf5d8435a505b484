"""Configuration module for audius-source.

This module provides a type-safe configuration system using Pydantic Settings
and Loguru-based logging helpers.

Public API:
----------
settings: Settings instance
    Pydantic settings object with nested configuration

get_logger(name: str) -> Logger
    Get a context-aware logger for your module

setup_loguru_logger(verbose: bool = False) -> None
    Configure Loguru logger for the application

resilient_operation(operation_name: str)
    Decorator for logging errors in upstream-facing operations

log_startup_info() -> None
    Log configuration at startup

configure_httpx_logging() -> None
    Forward httpx logs into Loguru

Usage:
------
```python
from audius_source.config import settings, get_logger

logger = get_logger(__name__)
logger.info("Using discovery endpoint {}", settings.audius.discovery_url)
```
"""

from .logging import (
    configure_httpx_logging,
    get_logger,
    log_startup_info,
    resilient_operation,
    setup_loguru_logger,
)
from .settings import Settings, settings

__all__ = [
    "Settings",
    "configure_httpx_logging",
    "get_logger",
    "log_startup_info",
    "resilient_operation",
    "settings",
    "setup_loguru_logger",
]
