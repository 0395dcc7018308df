"""Effective scope resolution along a role's ``extends`` chain."""

from __future__ import annotations

import asyncio
from collections.abc import Iterable, Sequence

from rolekeeper.core.errors import InheritanceCycleError, RoleNotFoundError
from rolekeeper.core.interfaces import RoleStore
from rolekeeper.core.scopes import is_super_scope_set
from rolekeeper.core.types import Role


def walk_scopes(roles: Sequence[Role], role_ref: object) -> list[str]:
    """Flatten scopes for ``role_ref`` over an in-memory role snapshot.

    Scopes are concatenated child first, then parent, grandparent and so on.
    Duplicates are kept. The walk stops at a role without ``extends`` or whose
    parent is not in ``roles``.
    """

    target = str(role_ref)
    role = next((candidate for candidate in roles if str(candidate.id) == target), None)
    if role is None:
        raise RoleNotFoundError(target)

    by_short_name: dict[str, Role] = {}
    for candidate in roles:
        # first record wins, like a linear scan would
        by_short_name.setdefault(candidate.short_name, candidate)

    scopes: list[str] = []
    chain: list[str] = []
    visited: set[str] = set()
    current: Role | None = role
    while current is not None:
        if current.short_name in visited:
            chain.append(current.short_name)
            raise InheritanceCycleError(chain)
        visited.add(current.short_name)
        chain.append(current.short_name)
        scopes.extend(current.scopes)
        current = by_short_name.get(current.extends) if current.extends else None
    return scopes


class ScopeResolver:
    """Resolves role references to scopes and short names to ids.

    Every call reads the store afresh; nothing is cached here.
    """

    def __init__(self, *, roles: RoleStore) -> None:
        self._roles = roles

    async def resolve_scopes(self, role_ref: object) -> list[str]:
        """Return the flattened scope list for the role identified by ``role_ref``."""

        all_roles = await self._roles.find()
        return walk_scopes(all_roles, role_ref)

    async def resolve_ids(self, short_names: Iterable[str]) -> list[str]:
        """Map short names to role ids, preserving input order."""

        names = list(short_names)
        if not names:
            return []
        return list(await asyncio.gather(*(self._resolve_id(name) for name in names)))

    async def _resolve_id(self, short_name: str) -> str:
        found = await self._roles.find({"short_name": short_name}, limit=1)
        if not found:
            raise RoleNotFoundError(short_name)
        return str(found[0].id)

    async def resolve_principal_scopes(self, role_ids: Iterable[object]) -> list[str]:
        """Concatenate the effective scopes of each of a principal's roles."""

        refs = list(role_ids)
        if not refs:
            return []
        all_roles = await self._roles.find()
        scopes: list[str] = []
        for ref in refs:
            scopes.extend(walk_scopes(all_roles, ref))
        return scopes

    async def is_super_role(self, role_ref: object) -> bool:
        return is_super_scope_set(await self.resolve_scopes(role_ref))


__all__ = ["ScopeResolver", "walk_scopes"]
