"""Request-time guards protecting role assignment and the super role."""

from __future__ import annotations

import logging
from typing import NoReturn

from rolekeeper.common.logging import log_context
from rolekeeper.core.errors import RoleNotFoundError, UnauthorizedError
from rolekeeper.core.interfaces import PrincipalStore, RequestPipeline, RoleStore, SessionRevoker
from rolekeeper.core.scopes import ASSIGN_ROLES_SCOPE, SUPER_SCOPE, SUPER_SCOPES, has_scope, is_super_scope_set
from rolekeeper.core.types import RequestAuth, RoleRequest

from .resolver import ScopeResolver

logger = logging.getLogger(__name__)

REASON_ASSIGN_ROLE = "assign role"
REASON_ASSIGN_SUPERUSER = "assign superuser"
REASON_MODIFY_SUPERUSER = "modify superuser"


class AuthorizationGuard:
    """Interceptors for the principal request pipeline.

    ``on_role_assignment_request`` runs during the pre-commit validation pass
    of requests that write a principal's ``roles`` (or delete the principal);
    ``on_access_check`` runs during generic access evaluation and blocks any
    modification of a super target. Both reject by raising
    ``UnauthorizedError``.
    """

    def __init__(
        self,
        *,
        roles: RoleStore,
        principals: PrincipalStore,
        sessions: SessionRevoker,
        resolver: ScopeResolver | None = None,
    ) -> None:
        self._roles = roles
        self._principals = principals
        self._sessions = sessions
        self._resolver = resolver or ScopeResolver(roles=roles)

    def register(self, pipeline: RequestPipeline) -> None:
        """Attach both interceptors to a module's request hooks."""

        pipeline.on_request(self.on_role_assignment_request)
        pipeline.on_access_check(self.on_access_check)

    # ------------- lookups -----------------------

    async def get_super_role_id(self) -> str:
        """Id of the role whose scopes are exactly ``["*:*"]``; first match wins."""

        found = await self._roles.find({"scopes": list(SUPER_SCOPES)})
        if not found:
            raise RoleNotFoundError(SUPER_SCOPE)
        if len(found) > 1:
            logger.warning(
                "roles.super.multiple",
                extra=log_context(role_ids=",".join(str(role.id) for role in found)),
            )
        return str(found[0].id)

    async def is_target_super(self, principal_id: object | None) -> bool:
        """True iff the principal's only role is the super role."""

        if principal_id is None:
            return False
        found = await self._principals.find({"id": str(principal_id)}, projection=("roles",))
        if not found:
            return False
        roles = found[0].roles
        if len(roles) != 1:
            return False
        return str(roles[0]) == await self.get_super_role_id()

    async def resolve_requester(self, principal_id: object) -> RequestAuth:
        """Build the requester view (scopes and super flag) for a principal."""

        found = await self._principals.find({"id": str(principal_id)}, projection=("roles",))
        role_ids = found[0].roles if found else []
        scopes = await self._resolver.resolve_principal_scopes(role_ids)
        return RequestAuth(
            user_id=str(principal_id),
            scopes=scopes,
            is_super=is_super_scope_set(scopes),
        )

    # ------------- interceptors ------------------

    async def on_role_assignment_request(self, request: RoleRequest) -> None:
        if request.modifying is not False:
            return
        if not request.is_deletion and request.data.get("roles") is None:
            return

        if not request.auth.is_super:
            if not has_scope(request.auth.scopes, ASSIGN_ROLES_SCOPE):
                self._reject(request, REASON_ASSIGN_ROLE)
            assigned = request.assigned_role_ids
            if assigned and await self.get_super_role_id() in assigned:
                self._reject(request, REASON_ASSIGN_SUPERUSER)
            if await self.is_target_super(request.target_id):
                self._reject(request, REASON_MODIFY_SUPERUSER)

        if request.is_creation:
            return
        subject_id = request.subject_id
        if subject_id is None:
            logger.debug(
                "roles.sessions.disavow.skipped",
                extra=log_context(user_id=request.auth.user_id, method=request.method),
            )
            return
        await self._sessions.disavow(subject_id)
        logger.debug("roles.sessions.disavow", extra=log_context(principal_id=subject_id))

    async def on_access_check(self, request: RoleRequest) -> bool:
        if request.modifying and await self.is_target_super(request.target_id):
            self._reject(request, REASON_MODIFY_SUPERUSER)
        return True

    @staticmethod
    def _reject(request: RoleRequest, reason: str) -> NoReturn:
        logger.error(
            "roles.guard.reject",
            extra=log_context(
                user_id=request.auth.user_id,
                reason=reason,
                method=request.method,
                principal_id=request.target_id,
            ),
        )
        raise UnauthorizedError(reason)


__all__ = [
    "AuthorizationGuard",
    "REASON_ASSIGN_ROLE",
    "REASON_ASSIGN_SUPERUSER",
    "REASON_MODIFY_SUPERUSER",
]
