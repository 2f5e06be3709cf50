"""
Centralized settings for docmigrate.

Manifesto:
    One validated, cached settings object resolves where migrations run
    (database URL, id separator), which run they are (direction, profiles,
    stop version) and how the run is logged. The CLI reads it for defaults;
    library callers can build ``RunOptions`` from it.

All fields can be set via ``DOCMIGRATE_*`` environment variables (e.g.
``DOCMIGRATE_DATABASE_URL=sqlite:///migrations.db``) or a ``.env`` file.
List fields take JSON (``DOCMIGRATE_PROFILES='["prod"]'``) or a
comma-separated string (``DOCMIGRATE_PROFILES=prod,eu``).

Tags:
    docmigrate, configuration, settings, pydantic, caching, validation

Doc-Types:
    api-reference
"""

from __future__ import annotations

import json
from typing import Annotated, Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from docmigrate.core.enums import Direction


class DocMigrateSettings(BaseSettings):
    """docmigrate configuration."""

    model_config = SettingsConfigDict(
        env_prefix="DOCMIGRATE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Store ────────────────────────────────────────────────────
    database_url: str = Field(default="sqlite:///docmigrate.db")
    database_echo: bool = Field(default=False)
    identity_separator: str = Field(default="/", min_length=1)

    # ── Run ──────────────────────────────────────────────────────
    direction: Direction = Field(default=Direction.UP)
    profiles: Annotated[list[str], NoDecode] = Field(default_factory=list)
    to_version: int | None = Field(default=None)
    reject_duplicate_versions: bool = Field(default=False)

    # ── Logging ──────────────────────────────────────────────────
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="console", description="console or json")

    @field_validator("direction", mode="before")
    @classmethod
    def _parse_direction(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("profiles", mode="before")
    @classmethod
    def _split_profiles(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = value.strip()
            if value.startswith("["):
                return json.loads(value)
            return [p.strip() for p in value.split(",") if p.strip()]
        return value

    @field_validator("log_format")
    @classmethod
    def _check_log_format(cls, value: str) -> str:
        value = value.lower()
        if value not in ("console", "json"):
            raise ValueError("log_format must be 'console' or 'json'")
        return value

    @property
    def json_logs(self) -> bool:
        return self.log_format == "json"


# ── Settings factory with caching ────────────────────────────────────────

_settings_cache: dict[str, DocMigrateSettings] = {}


def get_settings(*, _force_reload: bool = False) -> DocMigrateSettings:
    """Load, validate, and cache a :class:`DocMigrateSettings` instance."""
    if not _force_reload and "default" in _settings_cache:
        return _settings_cache["default"]
    settings = DocMigrateSettings()
    _settings_cache["default"] = settings
    return settings


def clear_settings_cache() -> None:
    """Clear the settings cache (primarily for testing)."""
    _settings_cache.clear()


__all__ = ["DocMigrateSettings", "get_settings", "clear_settings_cache"]
