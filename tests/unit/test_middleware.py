import pytest

from formflow import FlowMiddleware, compose_middleware
from formflow.middleware import call_hook


@pytest.mark.asyncio
async def test_compose_runs_hooks_in_order():
    calls = []

    async def async_enter(step, data):
        calls.append(("async", step))

    composed = compose_middleware(
        [
            FlowMiddleware(on_step_enter=lambda step, data: calls.append(("sync", step))),
            FlowMiddleware(on_step_enter=async_enter),
            FlowMiddleware(on_complete=lambda data: calls.append(("done", data))),
        ]
    )

    await call_hook(composed.on_step_enter, "a", {})
    await call_hook(composed.on_complete, {"a": 1})

    assert calls == [("sync", "a"), ("async", "a"), ("done", {"a": 1})]
    assert composed.on_error is None


@pytest.mark.asyncio
async def test_call_hook_ignores_missing_hook():
    await call_hook(None, "a")
