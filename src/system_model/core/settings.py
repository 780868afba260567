"""
Centralized settings for the system model.

Manifesto:
    One validated, cached settings object decides which storage backend
    the registry runs on and how it logs. Values come from ``SYSMODEL_*``
    environment variables or a ``.env`` file.

    - **Pydantic validation:** Type-checked at startup, not at first use
    - **Environment-driven:** Reads from env vars and .env files
    - **Sensible defaults:** In-memory storage works out of the box

Examples:
    >>> from system_model.core.settings import get_settings
    >>> settings = get_settings()
    >>> settings.storage_backend
    <StorageBackend.MEMORY: 'memory'>

Tags:
    settings, configuration, pydantic, environment, system-model
"""

from __future__ import annotations

from enum import Enum

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageBackend(str, Enum):
    """Where entity stores and the organization index live."""

    MEMORY = "memory"
    SQL = "sql"


class SystemModelSettings(BaseSettings):
    """System model configuration.

    All fields can be set via ``SYSMODEL_*`` environment variables (e.g.
    ``SYSMODEL_STORAGE_BACKEND=sql``) or through a ``.env`` file.
    """

    model_config = SettingsConfigDict(
        env_prefix="SYSMODEL_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Storage ──────────────────────────────────────────────────
    storage_backend: StorageBackend = Field(default=StorageBackend.MEMORY)
    database_url: str = Field(default="sqlite:///data/system_model.db")
    database_echo: bool = Field(default=False)

    # ── Logging ──────────────────────────────────────────────────
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="json", description="json or console")
    service_name: str = Field(default="system-model")

    @field_validator("log_level")
    @classmethod
    def _normalize_level(cls, value: str) -> str:
        level = value.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unsupported log level: {value}")
        return level

    @field_validator("log_format")
    @classmethod
    def _check_format(cls, value: str) -> str:
        fmt = value.lower()
        if fmt not in {"json", "console"}:
            raise ValueError(f"unsupported log format: {value}")
        return fmt

    @property
    def is_memory(self) -> bool:
        return self.storage_backend == StorageBackend.MEMORY


_settings_cache: dict[str, SystemModelSettings] = {}


def get_settings(*, _force_reload: bool = False) -> SystemModelSettings:
    """Load, validate, and cache a :class:`SystemModelSettings` instance."""
    if not _force_reload and "default" in _settings_cache:
        return _settings_cache["default"]
    settings = SystemModelSettings()
    _settings_cache["default"] = settings
    return settings


def clear_settings_cache() -> None:
    """Clear the settings cache (primarily for testing)."""
    _settings_cache.clear()
