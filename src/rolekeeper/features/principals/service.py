"""Principal creation pipeline."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from rolekeeper.common.hooks import Hook
from rolekeeper.common.logging import log_context
from rolekeeper.core.interfaces import InsertMutator, PrincipalStore
from rolekeeper.core.types import Principal

logger = logging.getLogger(__name__)


class PrincipalService:
    """Creates principals, running pre-insert mutators before the write."""

    def __init__(self, *, store: PrincipalStore) -> None:
        self._store = store
        self.pre_insert_hook = Hook("principals.pre_insert")

    def on_before_insert(self, mutator: InsertMutator) -> None:
        self.pre_insert_hook.tap(mutator)

    async def create(self, data: Mapping[str, Any]) -> Principal:
        payload = dict(data)
        self.pre_insert_hook.invoke_sync(payload)
        principal = await self._store.insert(payload)
        logger.info(
            "principals.create",
            extra=log_context(principal_id=principal.id, roles=len(principal.roles)),
        )
        return principal


__all__ = ["PrincipalService"]
