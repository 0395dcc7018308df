"""Ordered interceptor lists used by the principal and request pipelines."""

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)


def _hook_name(fn: Any) -> str:
    name = getattr(fn, "__qualname__", None) or getattr(fn, "__name__", None)
    name = name or fn.__class__.__name__
    module = getattr(fn, "__module__", None)
    return f"{module}.{name}" if module else str(name)


class Hook:
    """Ordered list of observers invoked with the same arguments.

    Observers may be plain callables or coroutine functions; ``invoke`` awaits
    each result in registration order. An observer that raises stops the
    chain and the exception reaches the caller unchanged.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._observers: list[Callable[..., Any]] = []

    def __len__(self) -> int:
        return len(self._observers)

    @property
    def observers(self) -> tuple[Callable[..., Any], ...]:
        return tuple(self._observers)

    def tap(self, observer: Callable[..., Any]) -> None:
        self._observers.append(observer)
        logger.debug("hook.tap", extra={"hook": self.name, "observer": _hook_name(observer)})

    def untap(self, observer: Callable[..., Any]) -> None:
        try:
            self._observers.remove(observer)
        except ValueError:
            return

    def invoke_sync(self, *args: Any, **kwargs: Any) -> list[Any]:
        """Run observers synchronously; coroutine observers are rejected."""

        results: list[Any] = []
        for observer in self._observers:
            result = observer(*args, **kwargs)
            if inspect.isawaitable(result):
                close = getattr(result, "close", None)
                if close is not None:
                    close()
                raise TypeError(
                    f"Hook '{self.name}' is synchronous; {_hook_name(observer)} returned an awaitable"
                )
            results.append(result)
        return results

    async def invoke(self, *args: Any, **kwargs: Any) -> list[Any]:
        results: list[Any] = []
        for observer in self._observers:
            result = observer(*args, **kwargs)
            if inspect.isawaitable(result):
                result = await result
            results.append(result)
        return results


__all__ = ["Hook"]
