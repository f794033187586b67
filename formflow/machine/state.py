"""Immutable flow state and the pure reducer that evolves it.

Every change to a ``FlowState`` goes through ``reduce(flow, state, command)``.
Commands are small pydantic models whose ``apply`` returns a new state; the
old state is never modified.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, FrozenSet, Literal, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from .transitions import can_navigate_to_step, get_frontier_step, get_next_step, get_previous_step

if TYPE_CHECKING:
    from ..definition import FlowDefinition

FlowStatus = Literal["idle", "validating", "submitting", "complete", "error"]


class FlowState(BaseModel):
    """Snapshot of a user's progress through a flow."""

    model_config = ConfigDict(frozen=True)

    current_step: str
    data: Dict[str, Any] = Field(default_factory=dict)
    completed_steps: FrozenSet[str] = frozenset()
    path: Tuple[str, ...] = ()
    history: Tuple[str, ...] = ()
    status: FlowStatus = "idle"

    @classmethod
    def initial(cls, step: str) -> "FlowState":
        return cls(current_step=step, path=(step,), history=(step,))

    @property
    def is_complete(self) -> bool:
        return self.status == "complete"

    def step_data(self, step: str) -> Any:
        return self.data.get(step)


def invalidate(completed: FrozenSet[str], path: Tuple[str, ...]) -> FrozenSet[str]:
    """Drop completed steps that fell out of ``path``."""
    return frozenset(step for step in completed if step in path)


def merge_step_value(current: Any, value: Any) -> Any:
    if isinstance(current, Mapping) and isinstance(value, Mapping):
        return {**current, **value}
    return value


class Command(BaseModel):
    model_config = ConfigDict(frozen=True)

    def apply(self, flow: "FlowDefinition", state: FlowState) -> FlowState:
        raise NotImplementedError


class SetStatus(Command):
    status: FlowStatus

    def apply(self, flow, state):
        return state.model_copy(update={"status": self.status})


class Navigate(Command):
    """Move to ``step`` unconditionally, recording it in the history."""

    step: str
    status: Optional[FlowStatus] = None

    def apply(self, flow, state):
        update: Dict[str, Any] = {
            "current_step": self.step,
            "history": state.history + (self.step,),
        }
        if self.status is not None:
            update["status"] = self.status
        return state.model_copy(update=update)


class Revert(Command):
    """Restore the position held before an optimistic move."""

    step: str
    history: Tuple[str, ...]
    status: FlowStatus = "error"

    def apply(self, flow, state):
        return state.model_copy(
            update={"current_step": self.step, "history": self.history, "status": self.status}
        )


class Back(Command):
    def apply(self, flow, state):
        previous = get_previous_step(state.current_step, state.path)
        if previous is None:
            return state
        return Navigate(step=previous).apply(flow, state)


class GoTo(Command):
    step: str

    def apply(self, flow, state):
        if not can_navigate_to_step(self.step, state.completed_steps, state.path):
            return state
        return Navigate(step=self.step).apply(flow, state)


class SetData(Command):
    """Merge ``value`` into a step's data without moving or completing it."""

    step: str
    value: Any = None

    def apply(self, flow, state):
        data = dict(state.data)
        data[self.step] = merge_step_value(data.get(self.step), self.value)
        path = tuple(flow.calculate_path(data))
        return state.model_copy(
            update={
                "data": data,
                "path": path,
                "completed_steps": invalidate(state.completed_steps, path),
            }
        )


class CommitStep(Command):
    """Record validated data for ``step`` and advance past it.

    Completed steps that are no longer on the recomputed path are dropped in
    the same update. At the end of the flow the status becomes ``submitting``
    and the current step stays on ``step``. A step that an upstream change
    removed from the path is stored but not completed; the user moves to the
    frontier of the new path instead.
    """

    step: str
    value: Any = None

    def apply(self, flow, state):
        data = {**state.data, self.step: self.value}
        path = tuple(flow.calculate_path(data))
        completed = invalidate(state.completed_steps, path)
        update: Dict[str, Any] = {"data": data, "path": path, "status": "idle"}

        if self.step not in path:
            target = get_frontier_step(completed, path) or path[-1]
            update["completed_steps"] = completed
            update["current_step"] = target
            if state.history[-1:] != (target,):
                update["history"] = state.history + (target,)
            return state.model_copy(update=update)

        update["completed_steps"] = completed | {self.step}
        following = get_next_step(self.step, path)

        if following is None:
            update["current_step"] = self.step
            update["status"] = "submitting"
            if state.current_step != self.step and state.history[-1:] == (state.current_step,):
                update["history"] = state.history[:-1]
            return state.model_copy(update=update)

        update["current_step"] = following
        if state.current_step == self.step:
            update["history"] = state.history + (following,)
        elif state.current_step != following:
            update["history"] = state.history[:-1] + (following,)
        return state.model_copy(update=update)


class Reset(Command):
    data: Optional[Dict[str, Any]] = None

    def apply(self, flow, state):
        fresh = flow.get_initial_state()
        if not self.data:
            return fresh
        return fresh.model_copy(
            update={"data": dict(self.data), "path": tuple(flow.calculate_path(self.data))}
        )


def reduce(flow: "FlowDefinition", state: FlowState, command: Command) -> FlowState:
    return command.apply(flow, state)
