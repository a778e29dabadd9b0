"""Environment-driven settings for relbridge.

Manifesto:
    Configuration should be explicit, validated, and environment-driven.

    - **Pydantic validation:** Type-checked at startup, not at first query
    - **Environment-driven:** ``RELBRIDGE_*`` env vars and ``.env`` files
    - **Sensible defaults:** A local SQLite file works out of the box

Examples:
    >>> import os
    >>> os.environ["RELBRIDGE_DB_TYPE"] = "postgresql"
    >>> RelbridgeSettings().db_type
    'postgresql'

Tags:
    settings, configuration, pydantic, environment, relbridge

Doc-Types:
    - API Reference
    - Configuration Guide
"""

from __future__ import annotations

from typing import Literal

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class RelbridgeSettings(BaseSettings):
    """Datasource, handler and logging settings.

    Fields
    ──────
    db_type     : Adapter name (sqlite, postgresql, mysql)
    path        : SQLite database path or ``file:`` URI
    host/port   : Server address for PostgreSQL / MySQL (port defaults per adapter)
    scope_id    : Scope mixed into every entity version tag
    log_level   : Structlog log level
    json_logs   : Force JSON (True) or console (False) rendering; auto when unset
    """

    model_config = SettingsConfigDict(
        env_prefix="RELBRIDGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Datasource ───────────────────────────────────────────────
    db_type: Literal["sqlite", "postgresql", "postgres", "mysql"] = "sqlite"
    path: str = "relbridge.db"
    readonly: bool = False
    host: str = "localhost"
    port: int | None = None
    database: str = ""
    username: str | None = None
    password: SecretStr | None = None
    pool_size: int = Field(default=5, ge=1)

    # ── Handler ──────────────────────────────────────────────────
    scope_id: str = "default"

    # ── Observability ────────────────────────────────────────────
    log_level: str = "INFO"
    json_logs: bool | None = None

    @field_validator("db_type", mode="before")
    @classmethod
    def _lower_db_type(cls, value: object) -> object:
        return value.lower() if isinstance(value, str) else value

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {value}")
        return level


__all__ = [
    "RelbridgeSettings",
]
