from __future__ import annotations

import pytest

from rolekeeper.common.hooks import Hook


def test_tap_untap_and_len() -> None:
    hook = Hook("demo")

    def observer(value: int) -> int:
        return value

    hook.tap(observer)
    assert len(hook) == 1
    assert hook.observers == (observer,)

    hook.untap(observer)
    hook.untap(observer)
    assert len(hook) == 0


def test_invoke_sync_collects_results() -> None:
    hook = Hook("demo")
    hook.tap(lambda value: value + 1)
    hook.tap(lambda value: value * 2)

    assert hook.invoke_sync(3) == [4, 6]


def test_invoke_sync_rejects_coroutines() -> None:
    hook = Hook("demo")

    async def observer() -> None:
        return None

    hook.tap(observer)

    with pytest.raises(TypeError, match="synchronous"):
        hook.invoke_sync()


@pytest.mark.asyncio
async def test_invoke_mixes_sync_and_async_observers() -> None:
    hook = Hook("demo")

    async def doubled(value: int) -> int:
        return value * 2

    hook.tap(lambda value: value)
    hook.tap(doubled)

    assert await hook.invoke(5) == [5, 10]


@pytest.mark.asyncio
async def test_invoke_stops_at_first_exception() -> None:
    hook = Hook("demo")
    calls: list[str] = []

    def boom() -> None:
        calls.append("boom")
        raise RuntimeError("stop")

    hook.tap(boom)
    hook.tap(lambda: calls.append("after"))

    with pytest.raises(RuntimeError, match="stop"):
        await hook.invoke()
    assert calls == ["boom"]
