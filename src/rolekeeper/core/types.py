"""Role, principal and request types shared across the stack."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from pydantic import Field, field_validator

from rolekeeper.common.schema import BaseSchema

from .scopes import is_super_scope_set

CREATE_METHOD = "POST"
DELETE_METHOD = "DELETE"


class RoleDefinition(BaseSchema):
    """Declarative role entry, as found in configuration."""

    short_name: str = Field(alias="shortName", min_length=1)
    display_name: str = Field(alias="displayName")
    extends: str | None = None
    scopes: list[str]

    @field_validator("short_name", mode="before")
    @classmethod
    def _v_short_name(cls, v: Any) -> str:
        return str(v).strip()

    @field_validator("extends", mode="before")
    @classmethod
    def _v_extends(cls, v: Any) -> str | None:
        if v in (None, ""):
            return None
        return str(v).strip() or None

    @property
    def is_super(self) -> bool:
        return is_super_scope_set(self.scopes)


class Role(RoleDefinition):
    """Persisted role record."""

    id: str

    @field_validator("id", mode="before")
    @classmethod
    def _v_id(cls, v: Any) -> str:
        return str(v)


class Principal(BaseSchema):
    """Principal record as seen by the roles core (owned elsewhere)."""

    id: str
    roles: list[str] = Field(default_factory=list)
    auth_type: str | None = Field(default=None, alias="authType")

    @field_validator("id", mode="before")
    @classmethod
    def _v_id(cls, v: Any) -> str:
        return str(v)

    @field_validator("roles", mode="before")
    @classmethod
    def _v_roles(cls, v: Any) -> list[str]:
        if v is None:
            return []
        return [str(item) for item in v]


@dataclass(slots=True)
class RequestAuth:
    """Authenticated requester, as resolved by the auth layer."""

    user_id: str | None
    scopes: list[str] = field(default_factory=list)
    is_super: bool = False


@dataclass(slots=True)
class RoleRequest:
    """In-flight request context handed to the guard interceptors.

    ``modifying`` mirrors the pipeline's phase flag: ``False`` during the
    pre-commit validation pass, ``True`` for the write itself and ``None``
    when the pipeline does not set it. ``query`` is the filter identifying
    the target principal, ``data`` the payload about to be written.
    """

    method: str
    auth: RequestAuth
    modifying: bool | None = None
    data: dict[str, Any] = field(default_factory=dict)
    query: dict[str, Any] = field(default_factory=dict)
    params: dict[str, Any] = field(default_factory=dict)
    body: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.method = self.method.upper()

    @property
    def is_creation(self) -> bool:
        return self.method == CREATE_METHOD

    @property
    def is_deletion(self) -> bool:
        return self.method == DELETE_METHOD

    @property
    def target_id(self) -> str | None:
        value = self.query.get("id")
        return None if value is None else str(value)

    @property
    def assigned_role_ids(self) -> list[str]:
        return [str(role_id) for role_id in self.data.get("roles") or []]

    @property
    def subject_id(self) -> str | None:
        """Principal whose sessions are revoked: route param, then body."""

        value = self.params.get("id") or self.body.get("id")
        return None if value is None else str(value)


__all__ = [
    "CREATE_METHOD",
    "DELETE_METHOD",
    "Principal",
    "RequestAuth",
    "Role",
    "RoleDefinition",
    "RoleRequest",
]
