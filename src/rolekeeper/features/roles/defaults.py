"""Default role assignment for newly created principals."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable, Mapping
from typing import Any

from rolekeeper.common.logging import log_context
from rolekeeper.core.interfaces import PrincipalInsertPipeline

from .resolver import ScopeResolver

logger = logging.getLogger(__name__)

AUTH_TYPE_KEYS = ("auth_type", "authType")


def _auth_type(data: Mapping[str, Any]) -> str | None:
    for key in AUTH_TYPE_KEYS:
        value = data.get(key)
        if value is not None:
            return str(value)
    return None


class DefaultRoleAssigner:
    """Stamps default role ids onto principals that are created without roles.

    ``initialize`` resolves the configured short names once; the resulting id
    lists are read only afterwards, so the pre-insert interceptor never
    touches the store.
    """

    def __init__(
        self,
        *,
        resolver: ScopeResolver,
        principals: PrincipalInsertPipeline,
    ) -> None:
        self._resolver = resolver
        self._principals = principals
        self._installed = False
        self.global_role_ids: list[str] = []
        self.role_ids_by_auth_type: dict[str, list[str]] = {}

    @property
    def installed(self) -> bool:
        return self._installed

    async def initialize(
        self,
        global_defaults: Iterable[str],
        per_type_defaults: Mapping[str, Iterable[str]],
    ) -> None:
        """Resolve default short names to ids and install the pre-insert hook.

        Raises ``RoleNotFoundError`` when a configured default role does not
        exist; the hook is not installed in that case.
        """

        global_role_ids = await self._resolver.resolve_ids(global_defaults)

        auth_types = list(per_type_defaults)
        resolved = await asyncio.gather(
            *(self._resolver.resolve_ids(per_type_defaults[auth_type]) for auth_type in auth_types)
        )

        self.global_role_ids = global_role_ids
        self.role_ids_by_auth_type = dict(zip(auth_types, resolved))

        if not self._installed:
            self._principals.on_before_insert(self.apply_defaults)
            self._installed = True

        logger.info(
            "roles.defaults.installed",
            extra=log_context(
                global_roles=len(self.global_role_ids),
                auth_types=",".join(sorted(self.role_ids_by_auth_type)) or None,
            ),
        )

    def default_role_ids(self, auth_type: str | None) -> list[str]:
        """Role ids a new principal of ``auth_type`` receives."""

        if auth_type is not None and auth_type in self.role_ids_by_auth_type:
            return list(self.role_ids_by_auth_type[auth_type])
        return list(self.global_role_ids)

    def apply_defaults(self, data: dict[str, Any]) -> None:
        """Pre-insert interceptor; leaves an already populated ``roles`` alone."""

        if data.get("roles"):
            return
        data["roles"] = self.default_role_ids(_auth_type(data))


__all__ = ["DefaultRoleAssigner"]
