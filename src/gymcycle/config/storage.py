"""Database connection settings."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

from .env import env_str
from .errors import ConfigurationError

DATABASE_URI_ENV: Final[str] = "DATABASE_URI"


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    uri: str


def get_database_config() -> DatabaseConfig:
    uri = env_str(DATABASE_URI_ENV, "")
    if not uri:
        raise ConfigurationError(f"{DATABASE_URI_ENV} must be set to a SQLAlchemy database URL")
    return DatabaseConfig(uri=uri)


def get_database_uri() -> str:
    """Return the configured database URI, raising when none is set."""

    return get_database_config().uri
