from __future__ import annotations

import pytest

from rolekeeper.features.roles.registry import DEFAULT_ROLE_BY_SHORT_NAME, DEFAULT_ROLE_DEFINITIONS
from rolekeeper.settings import Settings, default_database_dsn, get_settings, reload_settings


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    monkeypatch.chdir(tmp_path)
    for name in (
        "ROLEKEEPER_DEFAULT_ROLES",
        "ROLEKEEPER_DEFAULT_ROLES_FOR_AUTH_TYPES",
        "ROLEKEEPER_ROLE_DEFINITIONS",
        "ROLEKEEPER_DATABASE_DSN",
        "ROLEKEEPER_LOGGING_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)


def test_defaults() -> None:
    settings = Settings()

    assert settings.database_dsn == default_database_dsn()
    assert settings.logging_level == "INFO"
    assert [entry["short_name"] for entry in settings.role_definitions] == [
        d.short_name for d in DEFAULT_ROLE_DEFINITIONS
    ]
    assert settings.default_roles == []
    assert not settings.has_default_roles


def test_default_catalog_is_copied() -> None:
    settings = Settings()
    settings.role_definitions[0]["scopes"].append("mutated:here")

    assert "mutated:here" not in DEFAULT_ROLE_DEFINITIONS[0].scopes


def test_default_roles_accept_comma_string(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ROLEKEEPER_DEFAULT_ROLES", "authuser, contentcreator,authuser")

    settings = Settings()

    assert settings.default_roles == ["authuser", "contentcreator"]
    assert settings.has_default_roles


def test_default_roles_accept_json_array(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ROLEKEEPER_DEFAULT_ROLES", '["authuser"]')

    assert Settings().default_roles == ["authuser"]


def test_per_type_defaults_from_json(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(
        "ROLEKEEPER_DEFAULT_ROLES_FOR_AUTH_TYPES",
        '{"sso": ["authuser", "contentcreator"], "apikey": "authuser"}',
    )

    settings = Settings()

    assert settings.default_roles_for_auth_types == {
        "sso": ["authuser", "contentcreator"],
        "apikey": ["authuser"],
    }
    assert settings.has_default_roles


def test_role_definitions_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(
        "ROLEKEEPER_ROLE_DEFINITIONS",
        '[{"shortName": "root", "displayName": "Root", "scopes": ["*:*"]}]',
    )

    assert Settings().role_definitions == [
        {"shortName": "root", "displayName": "Root", "scopes": ["*:*"]}
    ]


def test_default_dsn_is_file_backed(tmp_path) -> None:
    expected = (tmp_path / "data" / "db" / "rolekeeper.sqlite").resolve()

    assert Settings().database_dsn == f"sqlite+aiosqlite:///{expected.as_posix()}"
    assert Settings(database_dsn="  ").database_dsn == default_database_dsn()


def test_catalog_entries_load_without_per_entry_validation() -> None:
    entries = [
        {"shortName": "a", "displayName": "A", "scopes": []},
        {"shortName": "viewer", "scopes": ["read:content"]},
        {"shortName": "a", "displayName": "A again", "scopes": []},
    ]

    assert Settings(role_definitions=entries).role_definitions == entries


def test_catalog_accepts_role_definition_instances() -> None:
    settings = Settings(role_definitions=[DEFAULT_ROLE_BY_SHORT_NAME["superuser"]])

    assert settings.role_definitions == [DEFAULT_ROLE_BY_SHORT_NAME["superuser"].document()]


def test_sync_sqlite_dsn_is_upgraded() -> None:
    settings = Settings(database_dsn="sqlite:///./data/roles.sqlite")

    assert settings.database_dsn == "sqlite+aiosqlite:///./data/roles.sqlite"


def test_logging_level_is_normalised() -> None:
    assert Settings(logging_level=" debug ").logging_level == "DEBUG"


def test_reload_settings_clears_cache(monkeypatch: pytest.MonkeyPatch) -> None:
    first = reload_settings()
    assert get_settings() is first

    monkeypatch.setenv("ROLEKEEPER_LOGGING_LEVEL", "warning")
    second = reload_settings()

    assert second is not first
    assert second.logging_level == "WARNING"
    reload_settings()


def test_builtin_catalog_shape() -> None:
    creator = DEFAULT_ROLE_BY_SHORT_NAME["contentcreator"]

    assert creator.extends == "authuser"
    assert DEFAULT_ROLE_BY_SHORT_NAME["superuser"].is_super
    assert not DEFAULT_ROLE_BY_SHORT_NAME["authuser"].is_super
