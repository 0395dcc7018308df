"""Core role types, scopes, errors and capability interfaces."""

from .errors import (
    InheritanceCycleError,
    RoleError,
    RoleNotFoundError,
    StoreConflictError,
    StoreError,
    UnauthorizedError,
)
from .types import Principal, RequestAuth, Role, RoleDefinition, RoleRequest

__all__ = [
    "InheritanceCycleError",
    "Principal",
    "RequestAuth",
    "Role",
    "RoleDefinition",
    "RoleError",
    "RoleNotFoundError",
    "RoleRequest",
    "StoreConflictError",
    "StoreError",
    "UnauthorizedError",
]
