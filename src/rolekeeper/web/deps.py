"""FastAPI dependencies reading the services wired onto ``app.state``."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Header, Request

from rolekeeper.core.types import RequestAuth
from rolekeeper.features.principals import PrincipalService, RequestHooks
from rolekeeper.features.roles import RolesModule


def get_roles_module(request: Request) -> RolesModule:
    return request.app.state.roles_module


def get_principal_service(request: Request) -> PrincipalService:
    return request.app.state.principal_service


def get_principal_hooks(request: Request) -> RequestHooks:
    return request.app.state.principal_hooks


async def get_requester(
    roles_module: Annotated[RolesModule, Depends(get_roles_module)],
    x_principal_id: Annotated[str | None, Header()] = None,
) -> RequestAuth:
    """Requester identified by the ``X-Principal-Id`` header; anonymous without it."""

    if not x_principal_id:
        return RequestAuth(user_id=None)
    return await roles_module.guard.resolve_requester(x_principal_id)


__all__ = [
    "get_principal_hooks",
    "get_principal_service",
    "get_requester",
    "get_roles_module",
]
