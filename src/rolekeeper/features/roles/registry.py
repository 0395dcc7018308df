"""Built-in role catalog provisioned when no ``role_definitions`` are configured."""

from __future__ import annotations

from rolekeeper.core.scopes import SUPER_SCOPES
from rolekeeper.core.types import RoleDefinition


def _role(
    *,
    short_name: str,
    display_name: str,
    scopes: tuple[str, ...],
    extends: str | None = None,
) -> RoleDefinition:
    return RoleDefinition(
        short_name=short_name,
        display_name=display_name,
        extends=extends,
        scopes=list(scopes),
    )


AUTHUSER = _role(
    short_name="authuser",
    display_name="Authenticated user",
    scopes=(
        "read:config",
        "read:lang",
        "read:me",
        "write:me",
        "disavow:auth",
    ),
)

CONTENTCREATOR = _role(
    short_name="contentcreator",
    display_name="Content creator",
    extends="authuser",
    scopes=(
        "read:content",
        "write:content",
        "read:assets",
        "write:assets",
        "read:tags",
        "write:tags",
        "read:users",
    ),
)

SUPERUSER = _role(
    short_name="superuser",
    display_name="Super user",
    scopes=SUPER_SCOPES,
)

DEFAULT_ROLE_DEFINITIONS: tuple[RoleDefinition, ...] = (AUTHUSER, CONTENTCREATOR, SUPERUSER)

DEFAULT_ROLE_BY_SHORT_NAME: dict[str, RoleDefinition] = {
    definition.short_name: definition for definition in DEFAULT_ROLE_DEFINITIONS
}


__all__ = [
    "AUTHUSER",
    "CONTENTCREATOR",
    "DEFAULT_ROLE_BY_SHORT_NAME",
    "DEFAULT_ROLE_DEFINITIONS",
    "SUPERUSER",
]
