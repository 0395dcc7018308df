"""Capability interfaces the roles core consumes from its collaborators.

Each collaborator is passed in explicitly at construction time; nothing in
the core looks services up at runtime. Concrete adapters live under
``rolekeeper.infra``.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping, Sequence
from typing import Any, Protocol

from .types import Principal, Role, RoleDefinition, RoleRequest

InsertMutator = Callable[[dict[str, Any]], None]
RequestInterceptor = Callable[[RoleRequest], Awaitable[Any]]


class RoleStore(Protocol):
    """Persistence for role records.

    ``filter`` is an equality match on document fields (``id``,
    ``short_name``, ``scopes`` ...). Writes that violate the unique
    ``short_name`` constraint raise ``StoreConflictError``.
    """

    async def find(
        self,
        filter: Mapping[str, Any] | None = None,
        *,
        limit: int | None = None,
    ) -> list[Role]: ...

    async def insert(self, role: RoleDefinition) -> Role: ...

    async def replace(self, role_id: str, role: RoleDefinition) -> None: ...


class PrincipalStore(Protocol):
    """Lookup for principal records (owned by the principals module)."""

    async def find(
        self,
        filter: Mapping[str, Any],
        *,
        projection: Sequence[str] | None = None,
    ) -> list[Principal]: ...

    async def insert(self, data: Mapping[str, Any]) -> Principal: ...


class SessionRevoker(Protocol):
    """Authentication capability that invalidates a principal's sessions."""

    async def disavow(self, principal_id: str) -> None: ...


class PrincipalInsertPipeline(Protocol):
    """Principal creation pipeline exposing a pre-insert hook."""

    def on_before_insert(self, mutator: InsertMutator) -> None: ...


class RequestPipeline(Protocol):
    """Request lifecycle hooks exposed by a module serving principal data."""

    def on_request(self, interceptor: RequestInterceptor) -> None: ...

    def on_access_check(self, interceptor: RequestInterceptor) -> None: ...


__all__ = [
    "InsertMutator",
    "PrincipalInsertPipeline",
    "PrincipalStore",
    "RequestInterceptor",
    "RequestPipeline",
    "RoleStore",
    "SessionRevoker",
]
