"""Shared role, authorization and persistence error types."""

from __future__ import annotations

from collections.abc import Sequence


class RoleError(ValueError):
    """Base class for role resolution errors."""


class RoleNotFoundError(RoleError):
    """Raised when a role cannot be located by id or short name."""

    def __init__(self, reference: object) -> None:
        self.reference = str(reference)
        super().__init__(f"Role '{self.reference}' not found")


class InheritanceCycleError(RoleError):
    """Raised when a role's ``extends`` chain loops back on itself."""

    def __init__(self, chain: Sequence[str]) -> None:
        self.chain = tuple(chain)
        super().__init__(f"Role inheritance cycle: {' -> '.join(self.chain)}")


class UnauthorizedError(Exception):
    """Raised when a guard rejects a request; terminal for that request."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Unauthorized: {reason}")


class StoreError(Exception):
    """Base class for errors raised by store adapters."""


class StoreConflictError(StoreError):
    """Raised when a write violates a uniqueness constraint."""


__all__ = [
    "InheritanceCycleError",
    "RoleError",
    "RoleNotFoundError",
    "StoreConflictError",
    "StoreError",
    "UnauthorizedError",
]
