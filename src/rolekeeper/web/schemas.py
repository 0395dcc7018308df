"""Request and response bodies for the HTTP surface.

Field names go over the wire in camelCase (``authType``, ``isSuper``), the
same spelling the role catalog uses for ``shortName``.
"""

from __future__ import annotations

from pydantic import Field

from rolekeeper.common.schema import BaseSchema


class PrincipalCreate(BaseSchema):
    auth_type: str | None = Field(default=None, alias="authType")
    roles: list[str] | None = None


class PrincipalOut(BaseSchema):
    id: str
    auth_type: str | None = Field(default=None, alias="authType")
    roles: list[str] = Field(default_factory=list)


class ScopesOut(BaseSchema):
    """Effective scopes of a role or principal."""

    id: str
    scopes: list[str]
    is_super: bool = Field(default=False, alias="isSuper")


__all__ = ["PrincipalCreate", "PrincipalOut", "ScopesOut"]
