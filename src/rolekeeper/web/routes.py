"""Principal creation and scope inspection routes."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Path, status

from rolekeeper.core.scopes import is_super_scope_set
from rolekeeper.core.types import CREATE_METHOD, RequestAuth, RoleRequest
from rolekeeper.features.principals import PrincipalService, RequestHooks
from rolekeeper.features.roles import RolesModule

from .deps import get_principal_hooks, get_principal_service, get_requester, get_roles_module
from .schemas import PrincipalCreate, PrincipalOut, ScopesOut

router = APIRouter()

ROLE_ID_PARAM = Annotated[str, Path(description="Role identifier.")]
PRINCIPAL_ID_PARAM = Annotated[str, Path(description="Principal identifier.")]


@router.post(
    "/principals",
    response_model=PrincipalOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create a principal, applying default roles and role-assignment guards",
    responses={
        status.HTTP_401_UNAUTHORIZED: {
            "description": "Requester may not assign the requested roles.",
        },
    },
)
async def create_principal(
    payload: PrincipalCreate,
    requester: Annotated[RequestAuth, Depends(get_requester)],
    hooks: Annotated[RequestHooks, Depends(get_principal_hooks)],
    service: Annotated[PrincipalService, Depends(get_principal_service)],
) -> PrincipalOut:
    data = payload.model_dump(exclude_none=True)
    await hooks.run_request(
        RoleRequest(
            method=CREATE_METHOD,
            auth=requester,
            modifying=False,
            data=data,
            body=dict(data),
        )
    )
    principal = await service.create(data)
    return PrincipalOut.model_validate(principal.document())


@router.get(
    "/principals/{principal_id}/scopes",
    response_model=ScopesOut,
    summary="Effective scopes of a principal",
)
async def read_principal_scopes(
    principal_id: PRINCIPAL_ID_PARAM,
    roles_module: Annotated[RolesModule, Depends(get_roles_module)],
) -> ScopesOut:
    auth = await roles_module.guard.resolve_requester(principal_id)
    return ScopesOut(id=principal_id, scopes=auth.scopes, is_super=auth.is_super)


@router.get(
    "/roles/{role_id}/scopes",
    response_model=ScopesOut,
    summary="Effective scopes of a role, following its inheritance chain",
)
async def read_role_scopes(
    role_id: ROLE_ID_PARAM,
    roles_module: Annotated[RolesModule, Depends(get_roles_module)],
) -> ScopesOut:
    scopes = await roles_module.resolver.resolve_scopes(role_id)
    return ScopesOut(id=role_id, scopes=scopes, is_super=is_super_scope_set(scopes))


__all__ = ["router"]
