"""In-memory store adapters for development and tests."""

from __future__ import annotations

import secrets
from collections.abc import Mapping, Sequence
from typing import Any
from uuid import uuid4

from rolekeeper.core.errors import StoreConflictError, StoreError
from rolekeeper.core.types import Principal, Role, RoleDefinition


def _normalize(value: Any) -> Any:
    if isinstance(value, (list, tuple)):
        return [_normalize(item) for item in value]
    return value


def matches_filter(document: Mapping[str, Any], filter: Mapping[str, Any] | None) -> bool:
    """Equality match of ``filter`` against ``document``; ids compare as strings."""

    if not filter:
        return True
    for key, expected in filter.items():
        if key not in document:
            return False
        actual = document[key]
        if key == "id":
            if str(actual) != str(expected):
                return False
            continue
        if _normalize(actual) != _normalize(expected):
            return False
    return True


class MemoryRoleStore:
    """Role store keeping documents in insertion order with a unique short name."""

    def __init__(self, roles: Sequence[Role | RoleDefinition] = ()) -> None:
        self._documents: dict[str, dict[str, Any]] = {}
        for role in roles:
            if isinstance(role, Role):
                self._documents[role.id] = role.document()
            else:
                self._put(role)

    def _short_name_owner(self, short_name: str) -> str | None:
        for role_id, document in self._documents.items():
            if document["short_name"] == short_name:
                return role_id
        return None

    def _put(self, role: RoleDefinition) -> Role:
        if self._short_name_owner(role.short_name) is not None:
            raise StoreConflictError(f"Duplicate short_name '{role.short_name}'")
        role_id = uuid4().hex
        document = {**role.model_dump(by_alias=False, exclude={"id"}), "id": role_id}
        self._documents[role_id] = document
        return Role.model_validate(document)

    async def find(
        self,
        filter: Mapping[str, Any] | None = None,
        *,
        limit: int | None = None,
    ) -> list[Role]:
        found = [
            Role.model_validate(document)
            for document in self._documents.values()
            if matches_filter(document, filter)
        ]
        return found if limit is None else found[:limit]

    async def insert(self, role: RoleDefinition) -> Role:
        return self._put(role)

    async def replace(self, role_id: str, role: RoleDefinition) -> None:
        role_id = str(role_id)
        if role_id not in self._documents:
            raise StoreError(f"Role '{role_id}' does not exist")
        owner = self._short_name_owner(role.short_name)
        if owner is not None and owner != role_id:
            raise StoreConflictError(f"Duplicate short_name '{role.short_name}'")
        self._documents[role_id] = {
            **role.model_dump(by_alias=False, exclude={"id"}),
            "id": role_id,
        }


class MemoryPrincipalStore:
    """Principal store keyed by id."""

    def __init__(self, principals: Sequence[Principal] = ()) -> None:
        self._documents: dict[str, dict[str, Any]] = {
            principal.id: principal.document() for principal in principals
        }

    async def find(
        self,
        filter: Mapping[str, Any],
        *,
        projection: Sequence[str] | None = None,
    ) -> list[Principal]:
        found: list[Principal] = []
        for document in self._documents.values():
            if not matches_filter(document, filter):
                continue
            if projection is not None:
                document = {
                    key: value
                    for key, value in document.items()
                    if key == "id" or key in projection
                }
            found.append(Principal.model_validate(document))
        return found

    async def insert(self, data: Mapping[str, Any]) -> Principal:
        principal = Principal.model_validate({"id": uuid4().hex, **data})
        if principal.id in self._documents:
            raise StoreConflictError(f"Duplicate principal id '{principal.id}'")
        self._documents[principal.id] = principal.document()
        return principal


class MemorySessionStore:
    """Tracks issued session tokens per principal."""

    def __init__(self) -> None:
        self._tokens: dict[str, set[str]] = {}
        self.disavowed: list[str] = []

    def issue(self, principal_id: str) -> str:
        token = secrets.token_urlsafe(24)
        self._tokens.setdefault(str(principal_id), set()).add(token)
        return token

    def active_tokens(self, principal_id: str) -> set[str]:
        return set(self._tokens.get(str(principal_id), set()))

    async def disavow(self, principal_id: str) -> None:
        principal_id = str(principal_id)
        self._tokens.pop(principal_id, None)
        self.disavowed.append(principal_id)


__all__ = [
    "MemoryPrincipalStore",
    "MemoryRoleStore",
    "MemorySessionStore",
    "matches_filter",
]
