"""Reachable path computation over a flow definition."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, List, Mapping, Optional

from ..logger import FlowLogger, default_logger

if TYPE_CHECKING:
    from ..definition import FlowDefinition


def has_step_data(data: Mapping[str, Any], step_id: str) -> bool:
    """A step has data when its key is present with a non-``None`` value."""
    return data.get(step_id) is not None


def calculate_path(
    flow: "FlowDefinition",
    data: Mapping[str, Any],
    logger: Optional[FlowLogger] = None,
) -> List[str]:
    """Steps reachable from the initial step, stopping at the first without data."""
    return _walk(flow, data, logger or default_logger, full=False)


def calculate_full_path(
    flow: "FlowDefinition",
    data: Mapping[str, Any],
    logger: Optional[FlowLogger] = None,
) -> List[str]:
    """Like ``calculate_path`` but static edges are followed without data.

    Only a dynamic transition lacking its step's data halts the walk.
    """
    return _walk(flow, data, logger or default_logger, full=True)


def _walk(flow: "FlowDefinition", data: Mapping[str, Any], logger: FlowLogger, full: bool) -> List[str]:
    path: List[str] = []
    visited = set()
    current: Optional[str] = flow.initial
    label = "full path" if full else "path"

    while current is not None:
        if current in visited:
            logger.warn(f"[formflow] Circular reference detected in {label}", {"step": current})
            break
        visited.add(current)
        path.append(current)

        step = flow.get_step(current)
        if step is None:
            logger.warn(f"[formflow] Step not found in {label}", {"step": current})
            break

        transition = step.next
        if not has_step_data(data, current):
            if not full or transition.requires_data:
                break
        current = transition.resolve(data.get(current), data)

    return path
