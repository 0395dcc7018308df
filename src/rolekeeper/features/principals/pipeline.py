"""Request lifecycle hooks exposed by modules that serve principal data."""

from __future__ import annotations

from rolekeeper.common.hooks import Hook
from rolekeeper.core.interfaces import RequestInterceptor
from rolekeeper.core.types import RoleRequest


class RequestHooks:
    """``request`` and ``access_check`` interceptor chains for one module."""

    def __init__(self, name: str = "principals") -> None:
        self.name = name
        self.request_hook = Hook(f"{name}.request")
        self.access_check_hook = Hook(f"{name}.access_check")

    def on_request(self, interceptor: RequestInterceptor) -> None:
        self.request_hook.tap(interceptor)

    def on_access_check(self, interceptor: RequestInterceptor) -> None:
        self.access_check_hook.tap(interceptor)

    async def run_request(self, request: RoleRequest) -> None:
        await self.request_hook.invoke(request)

    async def run_access_check(self, request: RoleRequest) -> bool:
        """Run access checks; any interceptor returning ``False`` denies."""

        results = await self.access_check_hook.invoke(request)
        return all(result is not False for result in results)


__all__ = ["RequestHooks"]
