"""Reconcile the configured role catalog with persisted role records."""

from __future__ import annotations

import asyncio
import enum
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError

from rolekeeper.common.logging import log_context
from rolekeeper.core.errors import StoreConflictError
from rolekeeper.core.interfaces import RoleStore
from rolekeeper.core.types import RoleDefinition

logger = logging.getLogger(__name__)


def _entry_name(entry: Any) -> str:
    """Best-effort short name of a raw catalog entry, for logs and outcomes."""
    if isinstance(entry, Mapping):
        name = entry.get("shortName", entry.get("short_name"))
        if name is not None and str(name).strip():
            return str(name).strip()
    return "<unnamed>"


def _describe_invalid(exc: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(part) for part in error['loc']) or 'entry'}: {error['msg']}"
        for error in exc.errors()
    )


class ProvisionStatus(str, enum.Enum):
    """Per-definition reconciliation result."""

    INSERTED = "inserted"
    REPLACED = "replaced"
    CONFLICT = "conflict"
    FAILED = "failed"


@dataclass(frozen=True)
class ProvisionOutcome:
    """Outcome of reconciling one role definition."""

    short_name: str
    status: ProvisionStatus
    role_id: str | None = None
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.status in (ProvisionStatus.INSERTED, ProvisionStatus.REPLACED)


class RoleProvisioner:
    """Upserts role definitions by short name, one task per definition.

    ``reconcile`` never raises: a uniqueness conflict is treated as a benign
    concurrent write and dropped silently, any other failure is logged as a
    warning and reported in the outcome list. Raw catalog entries are
    validated one by one; a malformed entry fails alone.
    """

    def __init__(self, *, roles: RoleStore) -> None:
        self._roles = roles

    async def reconcile(
        self,
        definitions: Iterable[RoleDefinition | Mapping[str, Any]],
    ) -> list[ProvisionOutcome]:
        items = [self._coerce(entry) for entry in definitions]
        self._warn_multiple_super([item for item in items if isinstance(item, RoleDefinition)])
        if not items:
            return []
        outcomes = await asyncio.gather(*(self._settle(item) for item in items))
        logger.debug(
            "roles.provision.complete",
            extra=log_context(
                total=len(outcomes),
                failed=sum(1 for outcome in outcomes if outcome.status is ProvisionStatus.FAILED),
            ),
        )
        return list(outcomes)

    async def _settle(self, item: RoleDefinition | ProvisionOutcome) -> ProvisionOutcome:
        if isinstance(item, ProvisionOutcome):
            return item
        return await self._reconcile_one(item)

    async def _reconcile_one(self, definition: RoleDefinition) -> ProvisionOutcome:
        short_name = definition.short_name
        try:
            found = await self._roles.find({"short_name": short_name}, limit=1)
        except Exception as exc:
            return self._failed(short_name, "look up", exc)

        if found:
            existing = found[0]
            try:
                await self._roles.replace(existing.id, definition)
            except StoreConflictError as exc:
                return ProvisionOutcome(
                    short_name, ProvisionStatus.CONFLICT, role_id=existing.id, error=str(exc)
                )
            except Exception as exc:
                return self._failed(short_name, "update", exc, role_id=existing.id)
            logger.debug(
                "roles.provision.replace",
                extra=log_context(short_name=short_name, role_id=existing.id),
            )
            return ProvisionOutcome(short_name, ProvisionStatus.REPLACED, role_id=existing.id)

        try:
            created = await self._roles.insert(definition)
        except StoreConflictError as exc:
            return ProvisionOutcome(short_name, ProvisionStatus.CONFLICT, error=str(exc))
        except Exception as exc:
            return self._failed(short_name, "add", exc)
        logger.debug(
            "roles.provision.insert",
            extra=log_context(short_name=short_name, role_id=created.id),
        )
        return ProvisionOutcome(short_name, ProvisionStatus.INSERTED, role_id=created.id)

    @staticmethod
    def _failed(
        short_name: str,
        verb: str,
        exc: Exception | str,
        *,
        role_id: str | None = None,
    ) -> ProvisionOutcome:
        logger.warning(
            "failed to %s '%s' role, %s",
            verb,
            short_name,
            exc,
            extra=log_context(short_name=short_name, role_id=role_id),
        )
        return ProvisionOutcome(
            short_name, ProvisionStatus.FAILED, role_id=role_id, error=str(exc)
        )

    @classmethod
    def _coerce(cls, entry: Any) -> RoleDefinition | ProvisionOutcome:
        if isinstance(entry, RoleDefinition):
            return entry
        try:
            return RoleDefinition.model_validate(entry)
        except ValidationError as exc:
            return cls._failed(_entry_name(entry), "add", _describe_invalid(exc))

    @staticmethod
    def _warn_multiple_super(definitions: list[RoleDefinition]) -> None:
        super_names = [definition.short_name for definition in definitions if definition.is_super]
        if len(super_names) > 1:
            logger.warning(
                "roles.provision.multiple_super",
                extra=log_context(short_names=",".join(super_names)),
            )


__all__ = ["ProvisionOutcome", "ProvisionStatus", "RoleProvisioner"]
