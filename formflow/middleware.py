"""Lifecycle hooks invoked by ``FlowMachine``.

Hooks may be plain functions or coroutines. ``on_step_complete`` and
``on_complete`` are awaited by ``next()``; an exception raised by any hook is
treated as a flow exception.
"""

from __future__ import annotations

import inspect
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Sequence


async def call_hook(hook: Optional[Callable[..., Any]], *args: Any) -> None:
    if hook is None:
        return
    result = hook(*args)
    if inspect.isawaitable(result):
        await result


async def _await_all(pending: Sequence[Any]) -> None:
    for awaitable in pending:
        await awaitable


@dataclass
class FlowMiddleware:
    on_step_enter: Optional[Callable[[str, Dict[str, Any]], Any]] = None
    on_step_exit: Optional[Callable[[str, Dict[str, Any]], Any]] = None
    on_step_complete: Optional[Callable[[str, Any], Any]] = None
    on_complete: Optional[Callable[[Dict[str, Any]], Any]] = None
    on_error: Optional[Callable[[Exception, str], Any]] = None
    on_navigate: Optional[Callable[[str, str], Any]] = None


def compose_middleware(middleware: Sequence[FlowMiddleware]) -> FlowMiddleware:
    """Combine several middleware; each hook runs in list order."""

    def fan_out(name: str) -> Optional[Callable[..., Any]]:
        hooks = [getattr(mw, name) for mw in middleware if getattr(mw, name) is not None]
        if not hooks:
            return None

        def run(*args: Any) -> Any:
            pending = []
            for hook in hooks:
                result = hook(*args)
                if inspect.isawaitable(result):
                    pending.append(result)
            if pending:
                return _await_all(pending)
            return None

        return run

    return FlowMiddleware(
        on_step_enter=fan_out("on_step_enter"),
        on_step_exit=fan_out("on_step_exit"),
        on_step_complete=fan_out("on_step_complete"),
        on_complete=fan_out("on_complete"),
        on_error=fan_out("on_error"),
        on_navigate=fan_out("on_navigate"),
    )
