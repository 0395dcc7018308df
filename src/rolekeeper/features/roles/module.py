"""Roles module bootstrap."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING

from rolekeeper.common.logging import log_context
from rolekeeper.core.interfaces import (
    PrincipalInsertPipeline,
    PrincipalStore,
    RequestPipeline,
    RoleStore,
    SessionRevoker,
)

from .defaults import DefaultRoleAssigner
from .guard import AuthorizationGuard
from .provisioner import ProvisionOutcome, RoleProvisioner
from .resolver import ScopeResolver

if TYPE_CHECKING:
    from rolekeeper.settings import Settings

logger = logging.getLogger(__name__)


class RolesModule:
    """Wires the roles core onto the collaborators it is handed.

    ``init`` runs, in order: catalog reconciliation, default role
    installation (only when defaults are configured) and guard registration
    on every request pipeline. A failure to resolve the default roles is
    logged and does not stop the guards from being registered.
    """

    def __init__(
        self,
        *,
        settings: Settings,
        roles: RoleStore,
        principals: PrincipalStore,
        sessions: SessionRevoker,
        principal_pipeline: PrincipalInsertPipeline,
        request_pipelines: Sequence[RequestPipeline] = (),
    ) -> None:
        self._settings = settings
        self._principal_pipeline = principal_pipeline
        self._request_pipelines = tuple(request_pipelines)

        self.resolver = ScopeResolver(roles=roles)
        self.provisioner = RoleProvisioner(roles=roles)
        self.defaults = DefaultRoleAssigner(resolver=self.resolver, principals=principal_pipeline)
        self.guard = AuthorizationGuard(
            roles=roles,
            principals=principals,
            sessions=sessions,
            resolver=self.resolver,
        )
        self.outcomes: list[ProvisionOutcome] = []
        self._initialized = False

    @property
    def initialized(self) -> bool:
        return self._initialized

    async def init(self) -> list[ProvisionOutcome]:
        if self._initialized:
            return self.outcomes

        self.outcomes = await self.provisioner.reconcile(self._settings.role_definitions)

        if self._settings.has_default_roles:
            try:
                await self.defaults.initialize(
                    self._settings.default_roles,
                    self._settings.default_roles_for_auth_types,
                )
            except Exception:
                logger.exception(
                    "roles.defaults.init.failed",
                    extra=log_context(
                        default_roles=",".join(self._settings.default_roles) or None,
                    ),
                )

        for pipeline in self._request_pipelines:
            self.guard.register(pipeline)

        self._initialized = True
        logger.info(
            "roles.module.ready",
            extra=log_context(
                roles=len(self.outcomes),
                pipelines=len(self._request_pipelines),
                defaults_installed=self.defaults.installed,
            ),
        )
        return self.outcomes


__all__ = ["RolesModule"]
