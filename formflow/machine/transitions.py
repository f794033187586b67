from __future__ import annotations

from typing import TYPE_CHECKING, AbstractSet, Any, Mapping, Optional, Sequence

if TYPE_CHECKING:
    from ..definition import FlowDefinition


def resolve_transition(
    flow: "FlowDefinition",
    current_step: str,
    step_data: Any,
    all_data: Mapping[str, Any],
) -> Optional[str]:
    """Return the step following ``current_step`` or ``None``.

    ``None`` also signals an unknown ``current_step``. Exceptions raised by a
    dynamic transition function are not caught.
    """
    step = flow.get_step(current_step)
    if step is None:
        return None
    return step.next.resolve(step_data, all_data)


def get_next_step(current_step: str, path: Sequence[str]) -> Optional[str]:
    if current_step not in path:
        return None
    index = list(path).index(current_step)
    if index == len(path) - 1:
        return None
    return path[index + 1]


def get_previous_step(current_step: str, path: Sequence[str]) -> Optional[str]:
    if current_step not in path:
        return None
    index = list(path).index(current_step)
    if index == 0:
        return None
    return path[index - 1]


def get_frontier_step(completed_steps: AbstractSet[str], path: Sequence[str]) -> Optional[str]:
    """First step of ``path`` that is not completed."""
    for step in path:
        if step not in completed_steps:
            return step
    return None


def can_navigate_to_step(
    target: str, completed_steps: AbstractSet[str], path: Sequence[str]
) -> bool:
    """Whether ``target`` may be visited directly.

    Completed steps still in the path, the frontier step and the first step
    are navigable. The frontier is reachable without validating anything.
    """
    if target not in path:
        return False
    if target in completed_steps:
        return True
    index = list(path).index(target)
    if index == 0:
        return True
    return target == get_frontier_step(completed_steps, path)
