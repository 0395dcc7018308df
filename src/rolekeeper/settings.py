"""Rolekeeper settings (Pydantic v2, ROLEKEEPER_* environment variables)."""

from __future__ import annotations

import json
from collections.abc import Mapping
from functools import lru_cache
from pathlib import Path
from typing import Any, ClassVar

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic_settings.sources import DotEnvSettingsSource, EnvSettingsSource

from rolekeeper.core.types import RoleDefinition
from rolekeeper.features.roles.registry import DEFAULT_ROLE_DEFINITIONS

# ---- Defaults ---------------------------------------------------------------

DEFAULT_STORAGE_ROOT = Path("./data")
DEFAULT_DB_FILENAME = "rolekeeper.sqlite"
DEFAULT_SQLITE_PATH = DEFAULT_STORAGE_ROOT / "db" / DEFAULT_DB_FILENAME

_LENIENT_LIST_FIELDS = {"default_roles"}


# ---- Helpers ----------------------------------------------------------------

def _list_from_env(value: Any, *, default: list[str]) -> list[str]:
    """JSON array or comma string; strip empties; dedupe preserving order."""
    if value in (None, "", []):
        items = list(default)
    elif isinstance(value, str):
        s = value.strip()
        if not s:
            items = list(default)
        elif s.startswith("["):
            try:
                parsed = json.loads(s)
            except json.JSONDecodeError as exc:
                raise ValueError("Expected a JSON array") from exc
            if not isinstance(parsed, list):
                raise ValueError("Expected a JSON array")
            items = [str(x).strip() for x in parsed if str(x).strip()]
        else:
            items = [seg.strip() for seg in s.split(",") if seg.strip()]
    elif isinstance(value, (list, tuple, set)):
        items = [str(x).strip() for x in value if str(x).strip()]
    else:
        raise TypeError("Expected string or list")

    seen, out = set(), []
    for x in items:
        if x not in seen:
            seen.add(x)
            out.append(x)
    return out


def default_database_dsn() -> str:
    """File-backed SQLite under ``./data/db``, resolved against the working directory."""
    path = DEFAULT_SQLITE_PATH.expanduser().resolve()
    return f"sqlite+aiosqlite:///{path.as_posix()}"


def _default_role_catalog() -> list[dict[str, Any]]:
    return [definition.document() for definition in DEFAULT_ROLE_DEFINITIONS]


# ---- Settings ---------------------------------------------------------------

class _RawListFieldsMixin:
    """Hand list-like fields to their validators as raw strings.

    pydantic-settings JSON-decodes complex fields before validation, which
    would reject ``authuser,contentcreator``.
    """

    lenient_fields: ClassVar[set[str]] = _LENIENT_LIST_FIELDS

    def prepare_field_value(self, field_name: str, field, value: Any, value_is_complex: bool) -> Any:
        if field_name in self.lenient_fields and isinstance(value, str):
            return value
        return super().prepare_field_value(field_name, field, value, value_is_complex)


class _EnvSource(_RawListFieldsMixin, EnvSettingsSource):
    pass


class _DotEnvSource(_RawListFieldsMixin, DotEnvSettingsSource):
    pass


class Settings(BaseSettings):
    """Role catalog, default-role and runtime settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="ROLEKEEPER_",
        case_sensitive=False,
        extra="ignore",
        env_ignore_empty=True,
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        return (
            init_settings,
            _EnvSource(settings_cls),
            _DotEnvSource(settings_cls),
            file_secret_settings,
        )

    # Core
    app_name: str = "Rolekeeper"
    app_version: str = "0.1.0"
    logging_level: str = "INFO"

    # Database
    database_dsn: str = Field(default_factory=default_database_dsn)
    database_echo: bool = False

    # Roles
    # Raw catalog entries; each one is validated on its own while provisioning.
    role_definitions: list[Any] = Field(default_factory=_default_role_catalog)
    default_roles: list[str] = Field(default_factory=list)
    default_roles_for_auth_types: dict[str, list[str]] = Field(default_factory=dict)

    # ---- Validators ----

    @field_validator("logging_level", mode="before")
    @classmethod
    def _v_log_level(cls, v: Any) -> str:
        s = ("" if v is None else str(v).strip()).upper()
        return s or "INFO"

    @field_validator("database_dsn", mode="before")
    @classmethod
    def _v_database_dsn(cls, v: Any) -> str:
        s = "" if v is None else str(v).strip()
        if not s:
            return default_database_dsn()
        if s.startswith("sqlite://"):
            return "sqlite+aiosqlite://" + s.removeprefix("sqlite://")
        return s

    @field_validator("default_roles", mode="before")
    @classmethod
    def _v_default_roles(cls, v: Any) -> list[str]:
        return _list_from_env(v, default=[])

    @field_validator("default_roles_for_auth_types", mode="before")
    @classmethod
    def _v_default_roles_for_auth_types(cls, v: Any) -> dict[str, list[str]]:
        if v in (None, ""):
            return {}
        if isinstance(v, str):
            try:
                v = json.loads(v)
            except json.JSONDecodeError as exc:
                raise ValueError("default_roles_for_auth_types must be a JSON object") from exc
        if not isinstance(v, dict):
            raise ValueError("default_roles_for_auth_types must be a mapping")
        return {
            str(auth_type).strip(): _list_from_env(short_names, default=[])
            for auth_type, short_names in v.items()
            if str(auth_type).strip()
        }

    @field_validator("role_definitions", mode="before")
    @classmethod
    def _v_role_definitions(cls, v: Any) -> list[Any]:
        if v in (None, ""):
            return _default_role_catalog()
        if isinstance(v, str):
            try:
                v = json.loads(v)
            except json.JSONDecodeError as exc:
                raise ValueError("role_definitions must be a JSON array") from exc
        if not isinstance(v, (list, tuple)):
            raise ValueError("role_definitions must be a list")
        entries: list[Any] = []
        for item in v:
            if isinstance(item, RoleDefinition):
                item = item.document()
            elif isinstance(item, Mapping):
                item = dict(item)
            entries.append(item)
        return entries

    @property
    def has_default_roles(self) -> bool:
        return bool(self.default_roles) or any(self.default_roles_for_auth_types.values())


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the cached settings instance."""

    return Settings()


def reload_settings() -> Settings:
    """Clear the settings cache and load a fresh instance."""

    get_settings.cache_clear()
    return get_settings()


__all__ = [
    "DEFAULT_SQLITE_PATH",
    "Settings",
    "default_database_dsn",
    "get_settings",
    "reload_settings",
]
