"""Application configuration helpers."""

from __future__ import annotations

from .env import env_int, env_str
from .errors import ConfigurationError
from .lifecycle import LifecycleConfig, get_lifecycle_config
from .logging import configure_logging
from .storage import DatabaseConfig, get_database_config, get_database_uri

__all__ = [
    "ConfigurationError",
    "DatabaseConfig",
    "LifecycleConfig",
    "configure_logging",
    "env_int",
    "env_str",
    "get_database_config",
    "get_database_uri",
    "get_lifecycle_config",
]
