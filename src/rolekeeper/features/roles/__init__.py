"""Role catalog provisioning, scope resolution and request guards."""

from .defaults import DefaultRoleAssigner
from .guard import AuthorizationGuard
from .module import RolesModule
from .provisioner import ProvisionOutcome, ProvisionStatus, RoleProvisioner
from .registry import DEFAULT_ROLE_BY_SHORT_NAME, DEFAULT_ROLE_DEFINITIONS
from .resolver import ScopeResolver, walk_scopes

__all__ = [
    "AuthorizationGuard",
    "DEFAULT_ROLE_BY_SHORT_NAME",
    "DEFAULT_ROLE_DEFINITIONS",
    "DefaultRoleAssigner",
    "ProvisionOutcome",
    "ProvisionStatus",
    "RoleProvisioner",
    "RolesModule",
    "ScopeResolver",
    "walk_scopes",
]
